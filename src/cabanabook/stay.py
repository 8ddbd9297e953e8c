"""Stay, occupancy and capacity value types."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterator

from cabanabook.config import settings
from cabanabook.errors import CapacityExceededError, InvalidStayError

# Adults covered by a cabin's base nightly price
INCLUDED_ADULTS = 2


def as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def nights_between(check_in: date | datetime, check_out: date | datetime) -> int:
    """Whole nights between two instants, rounding a partial day up."""
    return math.ceil((check_out - check_in) / timedelta(days=1))


@dataclass(frozen=True)
class Occupancy:
    adultos: int = 2
    menores: int = 0
    menores3: int = 0

    def __post_init__(self) -> None:
        if self.adultos < 1:
            raise ValueError("At least one adult is required")
        if self.menores < 0 or self.menores3 < 0:
            raise ValueError("Minor counts cannot be negative")

    @property
    def total_personas(self) -> int:
        return self.adultos + self.menores + self.menores3

    @property
    def total_menores(self) -> int:
        return self.menores + self.menores3

    @property
    def adultos_extra(self) -> int:
        return max(0, self.adultos - INCLUDED_ADULTS)


@dataclass(frozen=True)
class StayInterval:
    check_in: date
    check_out: date

    def __post_init__(self) -> None:
        if self.check_in is None or self.check_out is None:
            raise InvalidStayError("Both check-in and check-out dates are required")
        if self.check_out <= self.check_in:
            raise InvalidStayError(
                f"Check-out {self.check_out} must be after check-in {self.check_in}"
            )

    @property
    def nights(self) -> int:
        return nights_between(self.check_in, self.check_out)

    def dates(self) -> Iterator[date]:
        """Yield the date of each night of the stay."""
        for i in range(self.nights):
            yield as_date(self.check_in + timedelta(days=i))


@dataclass(frozen=True)
class Capacity:
    max_adultos: int
    max_menores: int
    max_personas: int


def default_capacity() -> Capacity:
    """Capacity for cabins stored without limits."""
    cfg = settings.get("capacity", {})
    return Capacity(
        max_adultos=cfg.get("max_adultos", 4),
        max_menores=cfg.get("max_menores", 2),
        max_personas=cfg.get("max_personas", 6),
    )


def validate_occupancy(occupancy: Occupancy, capacity: Capacity) -> None:
    """Raise CapacityExceededError if the occupancy does not fit the cabin."""
    if occupancy.total_personas > capacity.max_personas:
        raise CapacityExceededError(
            f"Maximum {capacity.max_personas} people allowed, got {occupancy.total_personas}"
        )
    if occupancy.adultos > capacity.max_adultos:
        raise CapacityExceededError(
            f"Maximum {capacity.max_adultos} adults allowed, got {occupancy.adultos}"
        )
    if occupancy.total_menores > capacity.max_menores:
        raise CapacityExceededError(
            f"Maximum {capacity.max_menores} minors allowed, got {occupancy.total_menores}"
        )
