import html
import logging
import smtplib
import uuid
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import make_msgid

import requests

from app.core.config import Settings

logger = logging.getLogger(__name__)

BOOKING_CONFIRMATION_SUBJECT = "Your Cruise Booking Confirmation - Cruise Voyager"


class MailSender:
    """Outbound mail capability. ``send`` returns a message id or raises."""

    def send(self, to_email: str, subject: str, html_body: str, text_body: str = "") -> str:
        raise NotImplementedError


class LogMailSender(MailSender):
    """Non-production sender: writes one structured log record instead of sending."""

    def send(self, to_email: str, subject: str, html_body: str, text_body: str = "") -> str:
        message_id = f"dev-{uuid.uuid4()}"
        logger.info(
            "email not sent (development)",
            extra={
                "message_id": message_id,
                "to": to_email,
                "subject": subject,
                "body_chars": len(html_body or text_body),
            },
        )
        return message_id


class SmtpMailSender(MailSender):
    def __init__(self, host: str, port: int, username: str = "", password: str = "", from_email: str = "", starttls: bool = True, timeout: int = 10):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.starttls = starttls
        self.timeout = timeout

    def send(self, to_email: str, subject: str, html_body: str, text_body: str = "") -> str:
        msg = EmailMessage()
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid(domain="cruisevoyager.com")
        msg.set_content(text_body or "This message requires an HTML-capable mail client.")
        msg.add_alternative(html_body, subtype="html")

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.starttls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(msg)
        return msg["Message-ID"]


class SendGridMailSender(MailSender):
    API_URL = "https://api.sendgrid.com/v3/mail/send"

    def __init__(self, api_key: str, from_email: str, timeout: int = 20):
        self.api_key = api_key
        self.from_email = from_email
        self.timeout = timeout

    def send(self, to_email: str, subject: str, html_body: str, text_body: str = "") -> str:
        content = []
        if text_body:
            content.append({"type": "text/plain", "value": text_body})
        content.append({"type": "text/html", "value": html_body})
        payload = {
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": {"email": self.from_email},
            "subject": subject,
            "content": content,
        }
        r = requests.post(
            self.API_URL,
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
        )
        if r.status_code >= 400:
            raise RuntimeError(f"SendGrid error {r.status_code}: {r.text}")
        return r.headers.get("X-Message-Id", "")


def build_mail_sender(settings: Settings) -> MailSender:
    """Pick the transport once, at startup."""
    if not settings.is_production:
        return LogMailSender()
    if settings.SENDGRID_API_KEY:
        return SendGridMailSender(settings.SENDGRID_API_KEY, settings.EMAIL_FROM)
    return SmtpMailSender(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USERNAME,
        password=settings.SMTP_PASSWORD,
        from_email=settings.EMAIL_FROM,
        starttls=settings.SMTP_STARTTLS,
    )


def _fmt_date(dt: datetime) -> str:
    return dt.strftime("%B %d, %Y").replace(" 0", " ")


def render_booking_confirmation(booking, cruise, user) -> tuple[str, str]:
    """Return (html, text) bodies for the booking confirmation email."""
    e = html.escape
    greeting = user.first_name or user.username
    departure = _fmt_date(booking.departure_date)
    returning = _fmt_date(booking.return_date)
    total = f"${booking.total_price:,.2f}"
    phone_row = f"<p><strong>Contact Phone:</strong> {e(booking.contact_phone)}</p>" if booking.contact_phone else ""
    year = datetime.now(timezone.utc).year

    html_body = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <div style="background-color: #0073b1; padding: 20px; text-align: center; color: white;">
          <h1>Booking Confirmation</h1>
          <p>Booking ID: #{e(booking.id)}</p>
        </div>
        <div style="padding: 20px; border: 1px solid #e9ecef; border-top: none;">
          <h2>Thank you for booking with Cruise Voyager!</h2>
          <p>Dear {e(greeting)},</p>
          <p>Your booking for the following cruise has been received:</p>
          <div style="background-color: #f5f7fa; padding: 15px; border-radius: 5px; margin: 15px 0;">
            <h3 style="color: #0073b1; margin-top: 0;">{e(cruise.title)}</h3>
            <p><strong>Ship:</strong> {e(cruise.ship_name)}</p>
            <p><strong>Departure:</strong> {departure} from {e(cruise.departure_port)}</p>
            <p><strong>Return:</strong> {returning}</p>
            <p><strong>Cabin Type:</strong> {e(booking.cabin_type)}</p>
            <p><strong>Guests:</strong> {booking.number_of_guests}</p>
          </div>
          <div style="margin: 20px 0; padding-top: 20px; border-top: 1px solid #e9ecef;">
            <h3>Booking Details</h3>
            <p><strong>Total Amount:</strong> {total}</p>
            <p><strong>Payment Status:</strong> {e(booking.payment_status)}</p>
            <p><strong>Contact Email:</strong> {e(booking.contact_email)}</p>
            {phone_row}
          </div>
          <div style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #e9ecef; text-align: center; color: #6c757d; font-size: 14px;">
            <p>Thank you for choosing Cruise Voyager!</p>
            <p>&copy; {year} Cruise Voyager. All rights reserved.</p>
          </div>
        </div>
      </div>
    """

    text_lines = [
        f"Booking Confirmation #{booking.id}",
        "",
        f"Dear {greeting},",
        f"Your booking for {cruise.title} ({cruise.ship_name}) has been received.",
        f"Departure: {departure} from {cruise.departure_port}",
        f"Return: {returning}",
        f"Cabin Type: {booking.cabin_type}",
        f"Guests: {booking.number_of_guests}",
        f"Total Amount: {total}",
        f"Payment Status: {booking.payment_status}",
        f"Contact Email: {booking.contact_email}",
    ]
    if booking.contact_phone:
        text_lines.append(f"Contact Phone: {booking.contact_phone}")
    return html_body, "\n".join(text_lines)


def send_booking_confirmation(mailer: MailSender, booking, cruise, user) -> str:
    html_body, text_body = render_booking_confirmation(booking, cruise, user)
    return mailer.send(booking.contact_email, BOOKING_CONFIRMATION_SUBJECT, html_body, text_body)


def dispatch_booking_confirmation(mailer: MailSender, booking, cruise, user) -> str | None:
    """Best-effort wrapper: a failed email never fails the booking."""
    try:
        message_id = send_booking_confirmation(mailer, booking, cruise, user)
    except Exception:
        logger.exception("error sending booking confirmation email", extra={"booking_id": booking.id})
        return None
    logger.info("booking confirmation sent", extra={"booking_id": booking.id, "message_id": message_id})
    return message_id
