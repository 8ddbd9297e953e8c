"""Stored season rules."""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cabanabook.database import Base
from cabanabook.modules.pricing.season import DateRangeRule, SeasonRule, WeekdayRule

RULE_TYPES = ("fechas", "diasSemana")


class Temporada(Base):
    __tablename__ = "temporadas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cabana_id: Mapped[int] = mapped_column(ForeignKey("cabanas.id"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0)  # evaluation order
    tipo: Mapped[str] = mapped_column(String(20), nullable=False)  # fechas, diasSemana
    nombre: Mapped[str] = mapped_column(String(200), nullable=False)
    multiplicador: Mapped[float] = mapped_column(Float, default=1.0)
    fecha_inicio: Mapped[date | None] = mapped_column(Date, nullable=True)
    fecha_fin: Mapped[date | None] = mapped_column(Date, nullable=True)
    dias_semana: Mapped[str | None] = mapped_column(String(50), nullable=True)  # e.g. "5,6" for Fri/Sat

    cabana: Mapped["Cabana"] = relationship(back_populates="temporadas")  # noqa: F821

    def __repr__(self) -> str:
        return f"<Temporada id={self.id} tipo={self.tipo!r} nombre={self.nombre!r}>"

    def to_rule(self) -> SeasonRule:
        if self.tipo == "fechas":
            return DateRangeRule(
                nombre=self.nombre,
                multiplicador=self.multiplicador,
                fecha_inicio=self.fecha_inicio,
                fecha_fin=self.fecha_fin,
            )
        if self.tipo == "diasSemana":
            return WeekdayRule(
                nombre=self.nombre,
                multiplicador=self.multiplicador,
                dias_semana=frozenset(int(d) for d in (self.dias_semana or "").split(",") if d.strip()),
            )
        raise ValueError(f"Unknown season type {self.tipo!r}; expected one of {RULE_TYPES}")

    @classmethod
    def from_rule(cls, rule: SeasonRule, position: int = 0) -> Temporada:
        if isinstance(rule, DateRangeRule):
            return cls(
                tipo="fechas",
                position=position,
                nombre=rule.nombre,
                multiplicador=rule.multiplicador,
                fecha_inicio=rule.fecha_inicio,
                fecha_fin=rule.fecha_fin,
            )
        if isinstance(rule, WeekdayRule):
            return cls(
                tipo="diasSemana",
                position=position,
                nombre=rule.nombre,
                multiplicador=rule.multiplicador,
                dias_semana=",".join(str(d) for d in sorted(rule.dias_semana)),
            )
        raise TypeError(f"Unknown season rule type: {type(rule).__name__}")
