"""iCal import of external bookings and iCal export of blocked dates."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

import httpx
from icalendar import Calendar
from icalendar import Event as ICalEvent
from sqlalchemy.orm import Session

from cabanabook.database import get_session
from cabanabook.events import Event, EventType, event_bus
from cabanabook.models.cabana import Cabana
from cabanabook.models.reservation import Reservation
from cabanabook.modules.availability.checker import BLOCKING_STATUSES, BookedInterval, intervals_overlap
from cabanabook.modules.reservations.manager import cabana_lock

logger = logging.getLogger(__name__)

PRODID = "-//cabanabook//reservas//ES"


def _parse_ical_date(dt_value) -> date:
    """Convert an icalendar date/datetime to a Python date."""
    if isinstance(dt_value, datetime):
        return dt_value.date()
    if isinstance(dt_value, date):
        return dt_value
    dt = dt_value.dt
    if isinstance(dt, datetime):
        return dt.date()
    return dt


class CalendarSyncer:
    """Imports external iCal feeds as blocking reservations."""

    def __init__(self) -> None:
        self._client = httpx.Client(timeout=30, follow_redirects=True)

    def sync_all(self) -> None:
        """Sync every cabin that has an iCal URL configured."""
        session = get_session()
        try:
            cabanas = session.query(Cabana).filter(Cabana.ical_url.isnot(None)).all()
            for cabana in cabanas:
                try:
                    self._sync_cabana(session, cabana)
                except Exception:
                    session.rollback()
                    logger.exception("Failed to sync calendar for cabana %s", cabana.nombre)
        finally:
            session.close()

    def sync_cabana_by_id(self, cabana_id: int) -> None:
        session = get_session()
        try:
            cabana = session.get(Cabana, cabana_id)
            if cabana and cabana.ical_url:
                self._sync_cabana(session, cabana)
        finally:
            session.close()

    def _sync_cabana(self, session: Session, cabana: Cabana) -> None:
        logger.info("Syncing calendar for cabana: %s", cabana.nombre)
        ical_text = self._fetch_ical(cabana.ical_url)
        if not ical_text:
            return
        events = self._parse_events(ical_text)

        created = updated = cancelled = 0
        conflicts: list[dict] = []

        # Overlap checks and writes run under the same cabin locks as web bookings
        with cabana_lock(cabana.id):
            session.query(Cabana).filter(Cabana.id == cabana.id).with_for_update().first()
            existing = (
                session.query(Reservation)
                .filter(Reservation.cabana_id == cabana.id, Reservation.source == "ical")
                .all()
            )
            existing_by_uid = {r.ical_uid: r for r in existing if r.ical_uid}
            seen_uids: set[str] = set()

            for evt in events:
                uid = evt["uid"]
                seen_uids.add(uid)

                if uid in existing_by_uid:
                    reservation = existing_by_uid[uid]
                    clashes = self._pending_conflicts(session, reservation, evt)
                    if clashes:
                        # Keep the stored dates and status; an admin has to resolve it
                        conflicts.append(self._conflict(cabana, evt, clashes, "kept"))
                    elif self._update_if_changed(reservation, evt):
                        updated += 1
                    continue

                clashes = self._overlapping(session, cabana.id, evt["check_in"], evt["check_out"])
                if clashes:
                    conflicts.append(self._conflict(cabana, evt, clashes, "imported"))
                session.add(Reservation(
                    cabana_id=cabana.id,
                    ical_uid=uid,
                    check_in=evt["check_in"],
                    check_out=evt["check_out"],
                    nights=(evt["check_out"] - evt["check_in"]).days,
                    summary=evt.get("summary"),
                    guest_name=evt.get("summary") or None,
                    status="confirmed",
                    source="ical",
                ))
                session.flush()
                created += 1
                logger.info(
                    "New external booking: %s, %s to %s",
                    cabana.nombre, evt["check_in"], evt["check_out"],
                )

            # Bookings in DB but no longer in the feed
            for uid, reservation in existing_by_uid.items():
                if uid not in seen_uids and reservation.status in BLOCKING_STATUSES:
                    reservation.status = "cancelled"
                    cancelled += 1
                    logger.info("External booking cancelled (removed from iCal): %s", reservation)

            session.commit()

        for conflict in conflicts:
            event_bus.publish(Event(event_type=EventType.CALENDAR_CONFLICT, data=conflict))
        if created or updated or cancelled:
            event_bus.publish(Event(
                event_type=EventType.CALENDAR_SYNCED,
                data={
                    "cabana_id": cabana.id,
                    "created": created,
                    "updated": updated,
                    "cancelled": cancelled,
                    "conflicts": len(conflicts),
                },
            ))

    def _overlapping(
        self, session: Session, cabana_id: int, check_in: date, check_out: date, exclude_id: int | None = None
    ) -> list[Reservation]:
        """Blocking reservations of the cabin that collide with the given stay."""
        query = session.query(Reservation).filter(
            Reservation.cabana_id == cabana_id,
            Reservation.status.in_(BLOCKING_STATUSES),
        )
        if exclude_id is not None:
            query = query.filter(Reservation.id != exclude_id)
        stay = BookedInterval(check_in=check_in, check_out=check_out)
        return [r for r in query.all() if intervals_overlap(stay, r.interval())]

    def _pending_conflicts(self, session: Session, reservation: Reservation, evt: dict) -> list[Reservation]:
        """Collisions caused by reinstating or moving an imported booking to the feed's dates."""
        moved = reservation.check_in != evt["check_in"] or reservation.check_out != evt["check_out"]
        if reservation.status not in BLOCKING_STATUSES or moved:
            return self._overlapping(
                session, reservation.cabana_id, evt["check_in"], evt["check_out"], exclude_id=reservation.id
            )
        return []

    def _conflict(self, cabana: Cabana, evt: dict, clashes: list[Reservation], action: str) -> dict:
        ids = [r.id for r in clashes]
        logger.warning(
            "External booking %s for cabana %s (%s to %s) overlaps reservations %s; %s",
            evt["uid"], cabana.nombre, evt["check_in"], evt["check_out"], ids, action,
        )
        return {
            "cabana_id": cabana.id,
            "uid": evt["uid"],
            "check_in": evt["check_in"].isoformat(),
            "check_out": evt["check_out"].isoformat(),
            "conflicting_reservation_ids": ids,
            "action": action,
        }

    def _fetch_ical(self, url: str) -> str | None:
        try:
            resp = self._client.get(url)
            resp.raise_for_status()
            return resp.text
        except httpx.HTTPError:
            logger.exception("Failed to fetch iCal from %s", url)
            return None

    def _parse_events(self, ical_text: str) -> list[dict]:
        """Parse iCal text into a list of event dicts."""
        cal = Calendar.from_ical(ical_text)
        events = []
        for component in cal.walk():
            if component.name != "VEVENT":
                continue
            uid = str(component.get("uid", ""))
            dtstart = component.get("dtstart")
            dtend = component.get("dtend")
            summary = str(component.get("summary", ""))

            if not uid or not dtstart or not dtend:
                continue
            check_in = _parse_ical_date(dtstart)
            check_out = _parse_ical_date(dtend)
            if check_out <= check_in:
                logger.warning("Skipping iCal event %s with non-positive length", uid)
                continue

            events.append({
                "uid": uid,
                "check_in": check_in,
                "check_out": check_out,
                "summary": summary,
            })
        return events

    def _update_if_changed(self, reservation: Reservation, evt: dict) -> bool:
        """Apply the feed's dates and summary, reinstating a cancelled block. Returns True if updated.

        Callers check the new dates for collisions first.
        """
        changed = False
        if reservation.check_in != evt["check_in"]:
            reservation.check_in = evt["check_in"]
            changed = True
        if reservation.check_out != evt["check_out"]:
            reservation.check_out = evt["check_out"]
            changed = True
        if reservation.summary != evt.get("summary"):
            reservation.summary = evt.get("summary")
            changed = True
        if reservation.status == "cancelled":
            reservation.status = "confirmed"
            changed = True
        if changed:
            reservation.nights = (reservation.check_out - reservation.check_in).days
            reservation.updated_at = datetime.now(timezone.utc)
        return changed


def export_ical(cabana_id: int) -> str | None:
    """iCal feed of a cabin's pending and confirmed reservations."""
    session = get_session()
    try:
        cabana = session.get(Cabana, cabana_id)
        if not cabana:
            return None
        reservations = (
            session.query(Reservation)
            .filter(
                Reservation.cabana_id == cabana_id,
                Reservation.status.in_(BLOCKING_STATUSES),
            )
            .order_by(Reservation.check_in)
            .all()
        )

        cal = Calendar()
        cal.add("prodid", PRODID)
        cal.add("version", "2.0")
        cal.add("x-wr-calname", cabana.nombre)
        for reservation in reservations:
            event = ICalEvent()
            event.add("uid", reservation.ical_uid or f"reservation-{reservation.id}@cabanabook")
            event.add("summary", "Reservado" if reservation.status == "confirmed" else "Pendiente")
            event.add("dtstart", reservation.check_in)
            event.add("dtend", reservation.check_out)
            event.add("dtstamp", reservation.created_at or datetime.now(timezone.utc))
            cal.add_component(event)
        return cal.to_ical().decode("utf-8")
    finally:
        session.close()
