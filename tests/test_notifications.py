from app.services import notifications
from app.services.notifications import TEMPLATES, Notifier, render


def test_every_template_renders_with_missing_fields():
    for name in TEMPLATES:
        subject, body = render(name, {"booking_id": 7})
        assert subject
        assert body


def test_render_fills_booking_details():
    subject, body = render(
        "payment_reminder",
        {
            "booking_id": 12,
            "customer_name": "Asha Rao",
            "venue_name": "Lotus Banquet Hall",
            "event_date": "2026-12-01",
            "payment_amount": 129800,
            "payment_deadline": "2026-11-02 10:00 UTC",
        },
    )

    assert "Asha Rao" in body
    assert "129800" in body
    assert "2026-11-02 10:00 UTC" in body


def test_send_without_recipient_is_skipped():
    assert Notifier().send("payment_reminder", None, {}) is False


def test_unknown_template_does_not_raise():
    assert Notifier().send("no_such_template", "asha@example.com", {}) is False


def test_send_without_smtp_is_dropped(monkeypatch):
    monkeypatch.setattr(notifications, "SMTP_HOST", None)
    assert Notifier().send("payment_reminder", "asha@example.com", {}) is False


def test_transport_failure_is_swallowed(monkeypatch):
    async def broken_send(msg):
        raise ConnectionRefusedError("smtp down")

    monkeypatch.setattr(notifications, "SMTP_HOST", "smtp.example.com")
    monkeypatch.setattr(notifications, "_send_async", broken_send)

    assert Notifier().send("payment_reminder", "asha@example.com", {"booking_id": 1}) is False


def test_successful_send(monkeypatch):
    sent = []

    async def fake_send(msg):
        sent.append(msg)

    monkeypatch.setattr(notifications, "SMTP_HOST", "smtp.example.com")
    monkeypatch.setattr(notifications, "_send_async", fake_send)

    assert Notifier().send("booking_auto_cancelled", "asha@example.com", {"booking_id": 3}) is True
    assert sent[0]["To"] == "asha@example.com"
    assert "#3" in sent[0]["Subject"]
