from cabanabook.modules.notifications.mailer import ReservationMailer

__all__ = ["ReservationMailer"]
