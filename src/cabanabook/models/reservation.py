"""Reservation model."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import JSON, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cabanabook.database import Base
from cabanabook.modules.availability.checker import BookedInterval

RESERVATION_STATUSES = ("pending", "confirmed", "cancelled")


class Reservation(Base):
    __tablename__ = "reservations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cabana_id: Mapped[int] = mapped_column(ForeignKey("cabanas.id"), nullable=False)
    ical_uid: Mapped[str | None] = mapped_column(String(500), unique=True, nullable=True)
    guest_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    guest_email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    guest_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    check_in: Mapped[date] = mapped_column(Date, nullable=False)
    check_out: Mapped[date] = mapped_column(Date, nullable=False)
    nights: Mapped[int] = mapped_column(Integer, default=0)
    adultos: Mapped[int] = mapped_column(Integer, default=2)
    menores: Mapped[int] = mapped_column(Integer, default=0)
    menores3: Mapped[int] = mapped_column(Integer, default=0)
    total_personas: Mapped[int] = mapped_column(Integer, default=2)
    precio_base: Mapped[float | None] = mapped_column(Float, nullable=True)
    adicionales_personas: Mapped[float] = mapped_column(Float, default=0.0)
    total: Mapped[float] = mapped_column(Float, default=0.0)
    desglose_precios: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending, confirmed, cancelled
    source: Mapped[str] = mapped_column(String(20), default="web")  # web, admin, ical
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)  # Raw iCal summary
    user_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    user_email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    cabana: Mapped["Cabana"] = relationship(back_populates="reservations")  # noqa: F821
    mails: Mapped[list["MailMessage"]] = relationship(back_populates="reservation")  # noqa: F821

    def __repr__(self) -> str:
        return (
            f"<Reservation id={self.id} cabana_id={self.cabana_id} "
            f"guest={self.guest_name!r} {self.check_in}..{self.check_out} {self.status}>"
        )

    def interval(self) -> BookedInterval:
        return BookedInterval(check_in=self.check_in, check_out=self.check_out, status=self.status)
