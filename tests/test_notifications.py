"""
Tests for confirmation email rendering and delivery.
"""

from __future__ import annotations

from datetime import date, time

import pytest
import resend

from massage_booking.application.exceptions import NotificationError
from massage_booking.domain.entities.appointment import BookingConfirmation
from massage_booking.domain.entities.enums import ConsultationType, PaymentPreference
from massage_booking.infrastructure.notifications.resend_notifier import ResendNotifier
from massage_booking.infrastructure.notifications.templates import (
    format_date,
    format_time,
    render_confirmation_text,
    subject_for,
)


def _confirmation(**overrides) -> BookingConfirmation:
    values = dict(
        appointment_id="appt-1",
        email="jamie@example.com",
        confirmation_number="ABC123-XY12",
        client_name="Jamie",
        service_name="Swedish Massage",
        appointment_date=date(2030, 5, 6),
        start_time=time(14, 0),
        end_time=time(15, 0),
        duration_minutes=60,
        payment_preference=PaymentPreference.pay_cash,
        total_price_cents=9000,
    )
    values.update(overrides)
    return BookingConfirmation(**values)


def _render(confirmation: BookingConfirmation) -> str:
    return render_confirmation_text(confirmation, "Alex", "SOZA Massage Therapy", "1 Main St", "https://book.example.com/")


def test_formatting():
    assert format_time(time(14, 0)) == "2:00 PM"
    assert format_time(time(0, 30)) == "12:30 AM"
    assert format_date(date(2030, 5, 6)) == "Monday, May 6, 2030"


def test_massage_confirmation_text():
    text = _render(_confirmation())

    assert "Confirmation number: ABC123-XY12" in text
    assert "Location: 1 Main St" in text
    assert "Cash payment at your appointment ($90.00)" in text
    assert "intake form" not in text
    assert subject_for(_confirmation()) == "Appointment Confirmed - Swedish Massage on May 6"


def test_intake_link_when_form_still_needed():
    text = _render(_confirmation(needs_intake_form=True))
    assert "https://book.example.com/intake-form?appointment=appt-1" in text


def test_video_consultation_link_or_fallback():
    with_room = _confirmation(
        is_consultation=True,
        consultation_type=ConsultationType.video,
        room_url="https://mock.daily.co/room",
        payment_preference=None,
        total_price_cents=0,
    )
    assert "Join your video consultation: https://mock.daily.co/room" in _render(with_room)
    assert subject_for(with_room).startswith("Your Free Consultation is Confirmed")

    without_room = _confirmation(is_consultation=True, consultation_type=ConsultationType.video, payment_preference=None)
    assert "instructions will follow" in _render(without_room)


def test_resend_notifier_suppresses_duplicates(monkeypatch):
    sent = []
    monkeypatch.setattr(resend.Emails, "send", lambda params: sent.append(params) or {"id": "email-1"})
    notifier = ResendNotifier(api_key="re_test", from_address="bookings@example.com")

    notifier.send_booking_confirmation(_confirmation())
    notifier.send_booking_confirmation(_confirmation())

    assert len(sent) == 1
    assert sent[0]["to"] == ["jamie@example.com"]
    assert "ABC123-XY12" in sent[0]["html"]


def test_resend_notifier_wraps_failures(monkeypatch):
    def boom(params):
        raise RuntimeError("provider down")

    monkeypatch.setattr(resend.Emails, "send", boom)
    notifier = ResendNotifier(api_key="re_test", from_address="bookings@example.com")

    with pytest.raises(NotificationError):
        notifier.send_booking_confirmation(_confirmation())
    # A failed send may be retried.
    with pytest.raises(NotificationError):
        notifier.send_booking_confirmation(_confirmation())


def test_resend_notifier_remembers_only_recent_sends(monkeypatch):
    sent = []
    monkeypatch.setattr(resend.Emails, "send", lambda params: sent.append(params) or {"id": "email-1"})
    notifier = ResendNotifier(api_key="re_test", from_address="bookings@example.com", remember_last=2)

    for appointment_id in ("appt-1", "appt-2", "appt-3"):
        notifier.send_booking_confirmation(_confirmation(appointment_id=appointment_id))
    notifier.send_booking_confirmation(_confirmation(appointment_id="appt-3"))
    notifier.send_booking_confirmation(_confirmation(appointment_id="appt-1"))

    assert len(sent) == 4
