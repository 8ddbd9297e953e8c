"""Tests for stay, occupancy and capacity validation."""

from datetime import date

import pytest

from cabanabook.errors import CapacityExceededError, InvalidStayError
from cabanabook.stay import Capacity, Occupancy, StayInterval, default_capacity, validate_occupancy


def test_occupancy_totals():
    occupancy = Occupancy(adultos=3, menores=2, menores3=1)
    assert occupancy.total_personas == 6
    assert occupancy.total_menores == 3
    assert occupancy.adultos_extra == 1


def test_occupancy_requires_an_adult():
    with pytest.raises(ValueError):
        Occupancy(adultos=0)
    with pytest.raises(ValueError):
        Occupancy(adultos=2, menores=-1)


def test_stay_nights_and_dates():
    stay = StayInterval(date(2027, 3, 30), date(2027, 4, 2))
    assert stay.nights == 3
    assert list(stay.dates()) == [date(2027, 3, 30), date(2027, 3, 31), date(2027, 4, 1)]


@pytest.mark.parametrize(
    "check_in, check_out",
    [
        (date(2027, 3, 5), date(2027, 3, 5)),
        (date(2027, 3, 5), date(2027, 3, 1)),
        (None, date(2027, 3, 1)),
    ],
)
def test_invalid_stay_rejected(check_in, check_out):
    with pytest.raises(InvalidStayError):
        StayInterval(check_in, check_out)


def test_invalid_stay_is_a_value_error():
    with pytest.raises(ValueError):
        StayInterval(date(2027, 3, 5), date(2027, 3, 5))


def test_default_capacity_from_config():
    capacity = default_capacity()
    assert capacity == Capacity(max_adultos=4, max_menores=2, max_personas=6)


def test_validate_occupancy_within_limits():
    validate_occupancy(Occupancy(adultos=2, menores=2), Capacity(4, 2, 4))


@pytest.mark.parametrize(
    "occupancy, message",
    [
        (Occupancy(adultos=3, menores=2), "people"),
        (Occupancy(adultos=5), "people"),
        (Occupancy(adultos=4, menores=0), "adults"),
        (Occupancy(adultos=1, menores=2, menores3=1), "minors"),
    ],
)
def test_validate_occupancy_over_limits(occupancy, message):
    capacity = Capacity(max_adultos=3, max_menores=2, max_personas=4)
    with pytest.raises(CapacityExceededError, match=message):
        validate_occupancy(occupancy, capacity)
