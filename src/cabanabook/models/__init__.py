"""Database models."""

from cabanabook.models.cabana import Cabana
from cabanabook.models.mail import MailMessage
from cabanabook.models.reservation import RESERVATION_STATUSES, Reservation
from cabanabook.models.season import Temporada

__all__ = [
    "Cabana",
    "MailMessage",
    "RESERVATION_STATUSES",
    "Reservation",
    "Temporada",
]
