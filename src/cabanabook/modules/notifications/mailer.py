"""Reservation notification mail: template rendering, queueing and delivery."""

from __future__ import annotations

import logging
import smtplib
from datetime import datetime, timezone
from email.mime.text import MIMEText
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from cabanabook.config import get_env, settings
from cabanabook.database import get_session
from cabanabook.events import Event, EventType, event_bus
from cabanabook.models.mail import MailMessage
from cabanabook.models.reservation import Reservation

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent.parent / "templates"

STATUS_LABELS = {
    "pending": "pendiente",
    "confirmed": "confirmada",
    "cancelled": "cancelada",
}


class ReservationMailer:
    """Queues mail for new reservations and status changes, and sends it."""

    def __init__(self) -> None:
        self._config = settings.get("notifications", {})
        self._jinja_env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(default=False),
            trim_blocks=True,
        )

    def setup_event_handlers(self) -> None:
        event_bus.subscribe(EventType.RESERVATION_CREATED, self._on_reservation_created)
        event_bus.subscribe(EventType.RESERVATION_STATUS_CHANGED, self._on_status_changed)

    def _on_reservation_created(self, event: Event) -> None:
        reservation_id = event.data.get("reservation_id")
        if reservation_id:
            self.queue_admin_notice(reservation_id)

    def _on_status_changed(self, event: Event) -> None:
        reservation_id = event.data.get("reservation_id")
        if reservation_id:
            self.queue_guest_update(reservation_id)

    def queue_admin_notice(self, reservation_id: int) -> MailMessage | None:
        """Tell the admin about a new reservation; replies go to the guest."""
        admin_email = self._config.get("admin_email")
        if not admin_email:
            logger.warning("No admin_email configured, skipping reservation notice")
            return None
        return self._queue(
            reservation_id,
            "new_reservation",
            recipient=lambda r: admin_email,
            subject=lambda r: f"Nueva reserva: {r.guest_name or 'Huésped'} - {r.cabana.nombre}",
            reply_to=lambda r: r.guest_email,
            dedupe=True,
        )

    def queue_guest_update(self, reservation_id: int) -> MailMessage | None:
        return self._queue(
            reservation_id,
            "status_update",
            recipient=lambda r: r.guest_email,
            subject=lambda r: f"Tu reserva en {r.cabana.nombre}: {STATUS_LABELS.get(r.status, r.status)}",
            reply_to=lambda r: self._config.get("admin_email"),
            dedupe=False,
        )

    def _queue(self, reservation_id, template_name, *, recipient, subject, reply_to, dedupe) -> MailMessage | None:
        session = get_session()
        try:
            reservation = session.get(Reservation, reservation_id)
            if not reservation:
                logger.warning("Reservation %s not found, skipping mail", reservation_id)
                return None
            to = recipient(reservation)
            if not to:
                logger.warning("No recipient for %s mail on reservation %s", template_name, reservation_id)
                return None

            if dedupe:
                existing = (
                    session.query(MailMessage)
                    .filter(
                        MailMessage.reservation_id == reservation_id,
                        MailMessage.template_name == template_name,
                    )
                    .first()
                )
                if existing:
                    logger.debug("Mail %s already queued for reservation %s", template_name, reservation_id)
                    return existing

            msg = MailMessage(
                reservation_id=reservation_id,
                template_name=template_name,
                channel=self._config.get("channel", "email"),
                recipient=to,
                reply_to=reply_to(reservation),
                subject=subject(reservation),
                body=self.render(template_name, reservation),
                status="queued",
            )
            session.add(msg)
            session.commit()
            logger.info("Queued %s mail for reservation %s", template_name, reservation_id)
        finally:
            session.close()

        event_bus.publish(Event(
            event_type=EventType.MAIL_QUEUED,
            data={"mail_id": msg.id, "template": template_name},
        ))
        return msg

    def render(self, template_name: str, reservation: Reservation) -> str:
        try:
            template = self._jinja_env.get_template(f"{template_name}.txt")
        except TemplateNotFound:
            logger.error("No template found for %s", template_name)
            raise
        context = {
            "reservation_id": reservation.id,
            "cabana_name": reservation.cabana.nombre,
            "guest_name": reservation.guest_name or "Huésped",
            "guest_email": reservation.guest_email or "",
            "guest_phone": reservation.guest_phone,
            "special_requests": reservation.special_requests,
            "check_in": reservation.check_in.strftime("%d/%m/%Y"),
            "check_out": reservation.check_out.strftime("%d/%m/%Y"),
            "nights": reservation.nights,
            "adultos": reservation.adultos,
            "menores": reservation.menores,
            "menores3": reservation.menores3,
            "desglose": reservation.desglose_precios or [],
            "total": f"{reservation.total:.2f}",
            "status": reservation.status,
            "status_label": STATUS_LABELS.get(reservation.status, reservation.status),
        }
        return template.render(**context)

    def send_pending_mail(self) -> int:
        """Deliver queued email messages. Returns the number sent."""
        smtp_host = get_env("SMTP_HOST")
        smtp_port = int(get_env("SMTP_PORT", "587"))
        smtp_user = get_env("SMTP_USER")
        smtp_password = get_env("SMTP_PASSWORD")
        if not all([smtp_host, smtp_user, smtp_password]):
            logger.debug("SMTP not configured, leaving mail queued")
            return 0

        sent = 0
        session = get_session()
        try:
            messages = (
                session.query(MailMessage)
                .filter(MailMessage.status == "queued", MailMessage.channel == "email")
                .order_by(MailMessage.created_at)
                .all()
            )
            for msg in messages:
                email_msg = MIMEText(msg.body)
                email_msg["Subject"] = msg.subject or "Reserva"
                email_msg["From"] = smtp_user
                email_msg["To"] = msg.recipient
                if msg.reply_to:
                    email_msg["Reply-To"] = msg.reply_to
                try:
                    with smtplib.SMTP(smtp_host, smtp_port) as server:
                        server.starttls()
                        server.login(smtp_user, smtp_password)
                        server.send_message(email_msg)
                except (smtplib.SMTPException, OSError) as exc:
                    logger.exception("Failed to send mail %s to %s", msg.id, msg.recipient)
                    msg.status = "failed"
                    msg.error = str(exc)
                else:
                    msg.status = "sent"
                    msg.sent_at = datetime.now(timezone.utc)
                    sent += 1
                session.commit()
        finally:
            session.close()
        if sent:
            logger.info("Sent %d queued mails", sent)
        return sent
