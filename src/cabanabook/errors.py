"""Validation errors raised before a stay is priced or booked."""

from __future__ import annotations


class ReservationError(ValueError):
    """Base class for caller-side reservation validation failures."""


class InvalidStayError(ReservationError):
    """Check-out is missing or not after check-in, or check-in is too early."""


class CapacityExceededError(ReservationError):
    """Occupancy is over one of the cabin's limits."""


class DatesUnavailableError(ReservationError):
    """The requested stay collides with a pending or confirmed reservation."""


class InvalidStatusError(ReservationError):
    pass


class MissingGuestInfoError(ReservationError):
    pass
