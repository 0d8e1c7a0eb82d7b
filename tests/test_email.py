from unittest import mock

from app.core.config import Settings
from app.schemas.booking import BookingCreate
from app.services import booking_service
from app.services.email_service import (
    BOOKING_CONFIRMATION_SUBJECT,
    LogMailSender,
    SendGridMailSender,
    SmtpMailSender,
    build_mail_sender,
    dispatch_booking_confirmation,
    render_booking_confirmation,
    send_booking_confirmation,
)
from conftest import RecordingMailer, booking_payload, make_cruise, make_user


def _booking(storage, **user_kw):
    user = make_user(storage, **user_kw)
    cruise = make_cruise(storage, title="Caribbean Paradise Cruise", ship_name="Allure of the Seas", sale_price=899.0)
    deferred = []
    booking = booking_service.create_booking(
        storage, BookingCreate(**booking_payload(cruise.id)), user, RecordingMailer(), defer=lambda *a: deferred.append(a)
    )
    return booking, cruise, user


def test_render_contains_booking_details(storage):
    booking, cruise, user = _booking(storage, first_name="Alice")
    html, text = render_booking_confirmation(booking, cruise, user)

    for expected in (booking.id, "Caribbean Paradise Cruise", "Allure of the Seas", "Miami, FL", "balcony", "$1,798.00", "pending", "Dear Alice", "+1 555 0100"):
        assert expected in html
    assert "November 15, 2030" in html
    assert "Total Amount: $1,798.00" in text


def test_greeting_falls_back_to_username(storage):
    booking, cruise, user = _booking(storage)
    html, _ = render_booking_confirmation(booking, cruise, user)
    assert "Dear alice" in html


def test_html_is_escaped(storage):
    booking, cruise, user = _booking(storage, first_name="<script>")
    html, _ = render_booking_confirmation(booking, cruise, user)
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_send_goes_to_contact_email(storage):
    booking, cruise, user = _booking(storage)
    mailer = RecordingMailer()
    assert send_booking_confirmation(mailer, booking, cruise, user) == "msg-1"
    assert mailer.sent[0]["to"] == booking.contact_email
    assert mailer.sent[0]["subject"] == BOOKING_CONFIRMATION_SUBJECT


def test_dispatch_swallows_failures(storage, caplog):
    booking, cruise, user = _booking(storage)
    assert dispatch_booking_confirmation(RecordingMailer(fail=True), booking, cruise, user) is None
    assert "error sending booking confirmation email" in caplog.text


def test_build_mail_sender_by_environment():
    base = dict(SECRET_KEY="k", STORAGE_BACKEND="memory")
    assert isinstance(build_mail_sender(Settings(ENV="local", **base)), LogMailSender)
    assert isinstance(build_mail_sender(Settings(ENV="production", SENDGRID_API_KEY="SG.x", **base)), SendGridMailSender)
    assert isinstance(build_mail_sender(Settings(ENV="production", SENDGRID_API_KEY="", **base)), SmtpMailSender)


def test_log_sender_returns_message_id():
    assert LogMailSender().send("a@example.com", "hi", "<p>hi</p>").startswith("dev-")


def test_sendgrid_posts_html_content():
    sender = SendGridMailSender("SG.key", "noreply@cruisevoyager.com")
    response = mock.Mock(status_code=202, headers={"X-Message-Id": "sg-1"}, text="")
    with mock.patch("app.services.email_service.requests.post", return_value=response) as post:
        assert sender.send("a@example.com", "Subject", "<p>x</p>", "x") == "sg-1"

    payload = post.call_args.kwargs["json"]
    assert payload["personalizations"][0]["to"][0]["email"] == "a@example.com"
    assert {"type": "text/html", "value": "<p>x</p>"} in payload["content"]
    assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer SG.key"


def test_smtp_sender_uses_starttls_and_login():
    sender = SmtpMailSender("smtp.example.com", 587, "user", "pw", "noreply@cruisevoyager.com")
    with mock.patch("app.services.email_service.smtplib.SMTP") as smtp_cls:
        smtp = smtp_cls.return_value.__enter__.return_value
        message_id = sender.send("a@example.com", "Subject", "<p>x</p>")

    smtp.starttls.assert_called_once()
    smtp.login.assert_called_once_with("user", "pw")
    sent = smtp.send_message.call_args.args[0]
    assert sent["To"] == "a@example.com"
    assert message_id == sent["Message-ID"]
