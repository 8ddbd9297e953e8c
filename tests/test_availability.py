"""Tests for booked-interval overlap and availability lookups."""

from datetime import date, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.orm import Session

from cabanabook.models.cabana import Cabana
from cabanabook.models.reservation import Reservation
from cabanabook.modules.availability.checker import (
    BookedInterval,
    blocking_intervals,
    booked_dates,
    expand_booked_dates,
    has_overlap,
    intervals_overlap,
)
from cabanabook.stay import StayInterval


def _noop_close(self):
    pass


def _booked(start, end, status="confirmed"):
    return BookedInterval(check_in=start, check_out=end, status=status)


JAN_10_15 = _booked(date(2024, 1, 10), date(2024, 1, 15))


def test_boundary_checkout_equals_checkin_conflicts():
    candidate = StayInterval(date(2024, 1, 15), date(2024, 1, 18))
    assert has_overlap(candidate, [JAN_10_15]) is True


def test_identical_intervals_overlap():
    candidate = StayInterval(date(2024, 1, 10), date(2024, 1, 15))
    assert has_overlap(candidate, [JAN_10_15]) is True


def test_contained_and_containing_intervals_overlap():
    assert has_overlap(StayInterval(date(2024, 1, 11), date(2024, 1, 12)), [JAN_10_15])
    assert has_overlap(StayInterval(date(2024, 1, 1), date(2024, 1, 31)), [JAN_10_15])


def test_one_day_gap_does_not_overlap():
    assert has_overlap(StayInterval(date(2024, 1, 16), date(2024, 1, 20)), [JAN_10_15]) is False
    assert has_overlap(StayInterval(date(2024, 1, 5), date(2024, 1, 9)), [JAN_10_15]) is False


@pytest.mark.parametrize(
    "a, b",
    [
        ((date(2024, 1, 10), date(2024, 1, 15)), (date(2024, 1, 15), date(2024, 1, 18))),
        ((date(2024, 1, 10), date(2024, 1, 15)), (date(2024, 1, 10), date(2024, 1, 15))),
        ((date(2024, 1, 10), date(2024, 1, 15)), (date(2024, 1, 16), date(2024, 1, 18))),
        ((date(2024, 1, 1), date(2024, 1, 31)), (date(2024, 1, 12), date(2024, 1, 13))),
        ((date(2024, 1, 10), date(2024, 1, 12)), (date(2024, 2, 1), date(2024, 2, 3))),
    ],
)
def test_overlap_is_symmetric(a, b):
    first, second = _booked(*a), _booked(*b)
    assert has_overlap(first, [second]) == has_overlap(second, [first])
    assert intervals_overlap(first, second) == intervals_overlap(second, first)


def test_cancelled_bookings_do_not_block():
    cancelled = _booked(date(2024, 1, 10), date(2024, 1, 15), status="cancelled")
    candidate = StayInterval(date(2024, 1, 12), date(2024, 1, 14))
    assert has_overlap(candidate, [cancelled]) is False
    assert blocking_intervals([cancelled, JAN_10_15]) == [JAN_10_15]


def test_pending_bookings_block():
    pending = _booked(date(2024, 1, 10), date(2024, 1, 15), status="pending")
    assert has_overlap(StayInterval(date(2024, 1, 12), date(2024, 1, 14)), [pending])


def test_expand_booked_dates_is_inclusive():
    days = expand_booked_dates(JAN_10_15)
    assert days[0] == date(2024, 1, 10)
    assert days[-1] == date(2024, 1, 15)
    assert len(days) == 6


def test_booked_dates_skips_cancelled():
    cancelled = _booked(date(2024, 2, 1), date(2024, 2, 3), status="cancelled")
    dates = booked_dates([JAN_10_15, cancelled])
    assert date(2024, 1, 15) in dates
    assert date(2024, 2, 2) not in dates


def test_interval_and_day_set_agree_on_boundaries():
    blocked = booked_dates([JAN_10_15])
    start = date(2024, 1, 1)
    for offset in range(25):
        for length in range(1, 6):
            check_in = start + timedelta(days=offset)
            candidate = StayInterval(check_in, check_in + timedelta(days=length))
            touches_blocked_day = any(d in blocked for d in expand_booked_dates(candidate))
            assert has_overlap(candidate, [JAN_10_15]) == touches_blocked_day


def test_is_available(db_session: Session, sample_reservation: Reservation):
    from cabanabook.modules.availability.service import AvailabilityChecker

    with (
        patch("cabanabook.modules.availability.service.get_session", return_value=db_session),
        patch.object(type(db_session), "close", _noop_close),
    ):
        checker = AvailabilityChecker()
        cabana_id = sample_reservation.cabana_id
        assert checker.is_available(cabana_id, date(2027, 3, 15), date(2027, 3, 18)) is False
        assert checker.is_available(cabana_id, date(2027, 3, 16), date(2027, 3, 18)) is True
        assert checker.is_available(cabana_id, date(2027, 3, 1), date(2027, 3, 9)) is True


def test_cancelled_reservation_frees_dates(db_session: Session, sample_reservation: Reservation):
    from cabanabook.modules.availability.service import AvailabilityChecker

    sample_reservation.status = "cancelled"
    db_session.commit()

    with (
        patch("cabanabook.modules.availability.service.get_session", return_value=db_session),
        patch.object(type(db_session), "close", _noop_close),
    ):
        checker = AvailabilityChecker()
        assert checker.is_available(sample_reservation.cabana_id, date(2027, 3, 11), date(2027, 3, 12))
        assert checker.get_booked_dates(sample_reservation.cabana_id) == []


def test_month_calendar(db_session: Session, sample_reservation: Reservation):
    from cabanabook.modules.availability.service import AvailabilityChecker

    with (
        patch("cabanabook.modules.availability.service.get_session", return_value=db_session),
        patch.object(type(db_session), "close", _noop_close),
    ):
        days = AvailabilityChecker().month_calendar(sample_reservation.cabana_id, 2027, 3)

    assert len(days) == 31
    by_date = {d.fecha: d for d in days}
    assert by_date[date(2027, 3, 10)].ocupado is True
    assert by_date[date(2027, 3, 15)].ocupado is True
    assert by_date[date(2027, 3, 16)].ocupado is False
    # Saturday picks up the weekend rule (1.2 x 100)
    assert by_date[date(2027, 3, 6)].precio == 120
    assert by_date[date(2027, 3, 6)].es_precio_especial is True
    assert by_date[date(2027, 3, 1)].precio == 100
    assert by_date[date(2027, 3, 1)].es_precio_especial is False


def test_month_calendar_unknown_cabana(db_session: Session):
    from cabanabook.modules.availability.service import AvailabilityChecker

    with (
        patch("cabanabook.modules.availability.service.get_session", return_value=db_session),
        patch.object(type(db_session), "close", _noop_close),
    ):
        assert AvailabilityChecker().month_calendar(999, 2027, 3) == []


def test_cabana_without_prices_uses_defaults(db_session: Session):
    cabana = Cabana(nombre="Sin precios")
    db_session.add(cabana)
    db_session.commit()

    config = cabana.pricing_config()
    assert config.base == 100
    assert cabana.capacity().max_personas == 6
