"""Booked-interval overlap tests and per-day expansion."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Protocol

from cabanabook.stay import as_date

# Reservation statuses that hold dates; cancelled ones free them
BLOCKING_STATUSES = ("pending", "confirmed")


class Interval(Protocol):
    check_in: date
    check_out: date


@dataclass(frozen=True)
class BookedInterval:
    check_in: date
    check_out: date
    status: str = "confirmed"


def _blocks(interval: Interval) -> bool:
    return getattr(interval, "status", "confirmed") in BLOCKING_STATUSES


def intervals_overlap(a: Interval, b: Interval) -> bool:
    """Inclusive overlap: a check-out on another stay's check-in day collides."""
    return a.check_in <= b.check_out and a.check_out >= b.check_in


def blocking_intervals(booked: Iterable[Interval]) -> list[Interval]:
    return [b for b in booked if _blocks(b)]


def has_overlap(candidate: Interval, booked: Iterable[Interval]) -> bool:
    """True if the candidate stay collides with any pending or confirmed booking."""
    return any(intervals_overlap(candidate, b) for b in blocking_intervals(booked))


def expand_booked_dates(interval: Interval) -> list[date]:
    """Every calendar day from check-in through check-out, both included."""
    start = as_date(interval.check_in)
    end = as_date(interval.check_out)
    days = []
    current = start
    while current <= end:
        days.append(current)
        current += timedelta(days=1)
    return days


def booked_dates(booked: Iterable[Interval]) -> set[date]:
    """Union of the expanded days of all blocking intervals."""
    dates: set[date] = set()
    for interval in blocking_intervals(booked):
        dates.update(expand_booked_dates(interval))
    return dates
