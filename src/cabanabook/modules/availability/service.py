"""Availability lookups against stored reservations."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from cabanabook.database import get_session
from cabanabook.models.reservation import Reservation
from cabanabook.modules.availability.checker import (
    BLOCKING_STATUSES,
    BookedInterval,
    booked_dates,
    has_overlap,
)
from cabanabook.modules.pricing.engine import daily_prices, load_cabana
from cabanabook.modules.pricing.season import DEFAULT_BASE_PRICE
from cabanabook.stay import StayInterval

logger = logging.getLogger(__name__)


@dataclass
class CalendarDay:
    fecha: date
    ocupado: bool
    precio: int
    temporada: str
    es_precio_especial: bool


def query_booked_intervals(session: Session, cabana_id: int) -> list[BookedInterval]:
    """Pending and confirmed reservations of a cabin as intervals."""
    reservations = (
        session.query(Reservation)
        .filter(
            Reservation.cabana_id == cabana_id,
            Reservation.status.in_(BLOCKING_STATUSES),
        )
        .all()
    )
    return [r.interval() for r in reservations]


class AvailabilityChecker:
    """Answers date availability questions for one cabin at a time."""

    def get_booked_intervals(self, cabana_id: int) -> list[BookedInterval]:
        session = get_session()
        try:
            return query_booked_intervals(session, cabana_id)
        finally:
            session.close()

    def is_available(self, cabana_id: int, check_in: date, check_out: date) -> bool:
        """True if no pending or confirmed reservation collides with the stay."""
        stay = StayInterval(check_in, check_out)
        return not has_overlap(stay, self.get_booked_intervals(cabana_id))

    def get_booked_dates(self, cabana_id: int) -> list[date]:
        return sorted(booked_dates(self.get_booked_intervals(cabana_id)))

    def month_calendar(self, cabana_id: int, year: int, month: int) -> list[CalendarDay]:
        """One entry per day of the month with its occupancy and nightly price."""
        session = get_session()
        try:
            cabana = load_cabana(session, cabana_id)
            if not cabana:
                return []
            config = cabana.pricing_config()
            blocked = booked_dates(query_booked_intervals(session, cabana_id))
        finally:
            session.close()

        last_day = calendar.monthrange(year, month)[1]
        base = config.base or DEFAULT_BASE_PRICE
        return [
            CalendarDay(
                fecha=p.date,
                ocupado=p.date in blocked,
                precio=p.price,
                temporada=p.temporada,
                es_precio_especial=p.price != base,
            )
            for p in daily_prices(cabana_id, config, date(year, month, 1), date(year, month, last_day))
        ]
