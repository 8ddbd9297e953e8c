"""Cabin model."""

from __future__ import annotations

from sqlalchemy import JSON, Boolean, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cabanabook.database import Base
from cabanabook.modules.pricing.breakdown import PricingConfig, default_pricing_config
from cabanabook.stay import Capacity, default_capacity


class Cabana(Base):
    __tablename__ = "cabanas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nombre: Mapped[str] = mapped_column(String(200), nullable=False)
    descripcion: Mapped[str | None] = mapped_column(Text, nullable=True)
    max_adultos: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_menores: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_personas: Mapped[int | None] = mapped_column(Integer, nullable=True)
    precio_base: Mapped[float | None] = mapped_column(Float, nullable=True)  # None: no prices stored
    adicional_adulto: Mapped[float] = mapped_column(Float, default=0.0)
    adicional_menor: Mapped[float] = mapped_column(Float, default=0.0)
    adicional_menor3: Mapped[float] = mapped_column(Float, default=0.0)
    amenities: Mapped[list[str]] = mapped_column(JSON, default=list)  # e.g. ["pileta", "wifi"]
    destacada: Mapped[bool] = mapped_column(Boolean, default=False)
    disponible: Mapped[bool] = mapped_column(Boolean, default=True)
    ical_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    temporadas: Mapped[list["Temporada"]] = relationship(  # noqa: F821
        back_populates="cabana",
        order_by="Temporada.position",
        cascade="all, delete-orphan",
    )
    reservations: Mapped[list["Reservation"]] = relationship(back_populates="cabana")  # noqa: F821

    def __repr__(self) -> str:
        return f"<Cabana id={self.id} nombre={self.nombre!r}>"

    def pricing_config(self) -> PricingConfig:
        """Pricing rules as stored, or the default config if no base price is set."""
        if self.precio_base is None:
            return default_pricing_config()
        return PricingConfig(
            base=self.precio_base,
            adicional_adulto=self.adicional_adulto or 0.0,
            adicional_menor=self.adicional_menor or 0.0,
            adicional_menor3=self.adicional_menor3 or 0.0,
            temporadas=tuple(t.to_rule() for t in self.temporadas),
        )

    def capacity(self) -> Capacity:
        if not self.max_personas:
            return default_capacity()
        defaults = default_capacity()
        return Capacity(
            max_adultos=self.max_adultos or defaults.max_adultos,
            max_menores=self.max_menores if self.max_menores is not None else defaults.max_menores,
            max_personas=self.max_personas,
        )
