from cabanabook.modules.reservations.manager import GuestInfo, ReservationManager, ReservationStats

__all__ = ["GuestInfo", "ReservationManager", "ReservationStats"]
