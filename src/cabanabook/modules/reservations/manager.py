"""Reservation creation, admin status changes, listing and stats."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from cabanabook.database import get_session
from cabanabook.errors import DatesUnavailableError, InvalidStatusError, MissingGuestInfoError
from cabanabook.events import Event, EventType, event_bus
from cabanabook.models.cabana import Cabana
from cabanabook.models.reservation import RESERVATION_STATUSES, Reservation
from cabanabook.modules.availability.checker import BLOCKING_STATUSES, has_overlap
from cabanabook.modules.availability.service import query_booked_intervals
from cabanabook.modules.pricing.breakdown import build_breakdown
from cabanabook.stay import Occupancy, StayInterval, validate_occupancy

logger = logging.getLogger(__name__)

_cabana_locks: dict[int, threading.Lock] = {}
_cabana_locks_guard = threading.Lock()


def cabana_lock(cabana_id: int) -> threading.Lock:
    """Lock serialising bookings and calendar imports for one cabin."""
    with _cabana_locks_guard:
        return _cabana_locks.setdefault(cabana_id, threading.Lock())


@dataclass
class GuestInfo:
    name: str
    email: str
    phone: str | None = None
    special_requests: str | None = None


@dataclass
class ReservationStats:
    total: int = 0
    pending: int = 0
    confirmed: int = 0
    cancelled: int = 0
    total_revenue: float = 0.0


class ReservationManager:
    """Books stays and applies admin decisions to existing reservations."""

    def create_reservation(
        self,
        cabana_id: int,
        check_in: date,
        check_out: date,
        occupancy: Occupancy,
        guest: GuestInfo,
        *,
        source: str = "web",
        user_id: str | None = None,
        user_email: str | None = None,
    ) -> Reservation | None:
        """Create a pending reservation with a snapshot of its price breakdown.

        The availability check and the insert run in one transaction while
        holding both a process-wide lock for the cabin and a row lock on the
        cabin record, so two concurrent requests for the same dates cannot both
        succeed. Returns None if the cabin does not exist.
        """
        if not guest.name or not guest.email:
            raise MissingGuestInfoError("Guest name and email are required")
        stay = StayInterval(check_in, check_out)

        with cabana_lock(cabana_id):
            session = get_session()
            try:
                cabana = (
                    session.query(Cabana)
                    .options(selectinload(Cabana.temporadas))
                    .filter(Cabana.id == cabana_id)
                    .with_for_update()
                    .first()
                )
                if not cabana:
                    return None
                validate_occupancy(occupancy, cabana.capacity())

                if has_overlap(stay, query_booked_intervals(session, cabana_id)):
                    session.rollback()
                    raise DatesUnavailableError(
                        f"Cabana {cabana_id} is not available from {check_in} to {check_out}"
                    )

                config = cabana.pricing_config()
                breakdown = build_breakdown(stay.check_in, stay.check_out, config, occupancy)
                reservation = Reservation(
                    cabana_id=cabana_id,
                    guest_name=guest.name,
                    guest_email=guest.email,
                    guest_phone=guest.phone,
                    special_requests=guest.special_requests,
                    check_in=stay.check_in,
                    check_out=stay.check_out,
                    nights=breakdown.noches,
                    adultos=occupancy.adultos,
                    menores=occupancy.menores,
                    menores3=occupancy.menores3,
                    total_personas=occupancy.total_personas,
                    precio_base=config.base,
                    adicionales_personas=breakdown.adicionales_personas,
                    total=breakdown.total,
                    desglose_precios=[night.to_snapshot() for night in breakdown.desglose],
                    status="pending",
                    source=source,
                    user_id=user_id,
                    user_email=user_email,
                )
                session.add(reservation)
                session.commit()
                session.refresh(reservation)
            finally:
                session.close()

        logger.info(
            "Created reservation %s for cabana %s: %s to %s, total %.2f",
            reservation.id, cabana_id, check_in, check_out, reservation.total,
        )
        event_bus.publish(Event(
            event_type=EventType.RESERVATION_CREATED,
            data={"reservation_id": reservation.id, "cabana_id": cabana_id},
        ))
        return reservation

    def update_status(self, reservation_id: int, status: str) -> Reservation | None:
        """Set a reservation's status.

        Reinstating a cancelled reservation re-checks availability, since its
        dates may have been booked in the meantime.
        """
        if status not in RESERVATION_STATUSES:
            raise InvalidStatusError(
                f"Invalid status: {status}. Must be one of {RESERVATION_STATUSES}"
            )

        session = get_session()
        try:
            reservation = session.get(Reservation, reservation_id)
            if not reservation:
                return None
            previous = reservation.status
            if previous == status:
                return reservation

            if previous not in BLOCKING_STATUSES and status in BLOCKING_STATUSES:
                with cabana_lock(reservation.cabana_id):
                    others = [
                        r.interval()
                        for r in session.query(Reservation).filter(
                            Reservation.cabana_id == reservation.cabana_id,
                            Reservation.id != reservation.id,
                            Reservation.status.in_(BLOCKING_STATUSES),
                        )
                    ]
                    if has_overlap(reservation.interval(), others):
                        raise DatesUnavailableError(
                            f"Reservation {reservation_id} overlaps another booking"
                        )
                    reservation.status = status
                    session.commit()
            else:
                reservation.status = status
                session.commit()
            session.refresh(reservation)
            cabana_id = reservation.cabana_id
        finally:
            session.close()

        logger.info("Reservation %s status %s -> %s", reservation_id, previous, status)
        data = {
            "reservation_id": reservation_id,
            "cabana_id": cabana_id,
            "previous_status": previous,
            "status": status,
        }
        event_bus.publish(Event(event_type=EventType.RESERVATION_STATUS_CHANGED, data=data))
        if status == "cancelled":
            event_bus.publish(Event(event_type=EventType.RESERVATION_CANCELLED, data=data))
        return reservation

    def delete_reservation(self, reservation_id: int) -> bool:
        session = get_session()
        try:
            reservation = session.get(Reservation, reservation_id)
            if not reservation:
                return False
            cabana_id = reservation.cabana_id
            for mail in list(reservation.mails):
                mail.reservation_id = None
            session.delete(reservation)
            session.commit()
        finally:
            session.close()

        logger.info("Deleted reservation %s", reservation_id)
        event_bus.publish(Event(
            event_type=EventType.RESERVATION_DELETED,
            data={"reservation_id": reservation_id, "cabana_id": cabana_id},
        ))
        return True

    def get_reservation(self, reservation_id: int) -> Reservation | None:
        session = get_session()
        try:
            return session.get(Reservation, reservation_id)
        finally:
            session.close()

    def list_reservations(
        self, cabana_id: int | None = None, status: str | None = None
    ) -> list[Reservation]:
        """Reservations, newest first, optionally filtered by cabin and status."""
        session = get_session()
        try:
            query = session.query(Reservation)
            if cabana_id:
                query = query.filter(Reservation.cabana_id == cabana_id)
            if status:
                query = query.filter(Reservation.status == status)
            return query.order_by(Reservation.created_at.desc(), Reservation.id.desc()).all()
        finally:
            session.close()

    def get_stats(self, cabana_id: int | None = None) -> ReservationStats:
        """Counts per status; revenue only counts confirmed reservations."""
        session = get_session()
        try:
            query = session.query(
                Reservation.status, func.count(Reservation.id), func.sum(Reservation.total)
            )
            if cabana_id:
                query = query.filter(Reservation.cabana_id == cabana_id)
            rows = query.group_by(Reservation.status).all()
        finally:
            session.close()

        stats = ReservationStats()
        for status, count, amount in rows:
            stats.total += count
            if status == "pending":
                stats.pending = count
            elif status == "confirmed":
                stats.confirmed = count
                stats.total_revenue = amount or 0.0
            elif status == "cancelled":
                stats.cancelled = count
        return stats
