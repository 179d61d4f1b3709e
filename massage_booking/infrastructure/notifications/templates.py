from __future__ import annotations

from datetime import date, time
from html import escape

from massage_booking.domain.entities.appointment import BookingConfirmation
from massage_booking.domain.entities.enums import ConsultationType, PaymentPreference

_PAYMENT_NOTES = {
    PaymentPreference.pay_now: "Paid online",
    PaymentPreference.pay_at_appointment: "Payment due at your appointment",
    PaymentPreference.pay_cash: "Cash payment at your appointment",
}


def format_date(value: date) -> str:
    return f"{value:%A, %B} {value.day}, {value.year}"


def format_time(value: time) -> str:
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def intake_form_url(app_url: str, appointment_id: str) -> str:
    return f"{app_url.rstrip('/')}/intake-form?appointment={appointment_id}"


def subject_for(confirmation: BookingConfirmation) -> str:
    short_date = f"{confirmation.appointment_date:%b} {confirmation.appointment_date.day}"
    if confirmation.is_consultation:
        return f"Your Free Consultation is Confirmed - {short_date}"
    if confirmation.is_reschedule:
        return f"Appointment Rescheduled - {confirmation.service_name} on {short_date}"
    return f"Appointment Confirmed - {confirmation.service_name} on {short_date}"


def _location_line(confirmation: BookingConfirmation, business_address: str) -> str:
    if not confirmation.is_consultation:
        return f"Location: {business_address}"
    if confirmation.consultation_type == ConsultationType.video:
        if confirmation.room_url:
            return f"Join your video consultation: {confirmation.room_url}"
        return "Video meeting instructions will follow in a separate email."
    if confirmation.consultation_type == ConsultationType.phone:
        return "We will call you at the number you provided."
    return f"Location: {business_address}"


def render_confirmation_text(
    confirmation: BookingConfirmation,
    therapist_name: str,
    business_name: str,
    business_address: str,
    app_url: str,
) -> str:
    lines = [
        f"Hi {confirmation.client_name},",
        "",
        f"Your {confirmation.service_name} with {therapist_name} at {business_name} is confirmed.",
        "",
        f"Date: {format_date(confirmation.appointment_date)}",
        f"Time: {format_time(confirmation.start_time)} - {format_time(confirmation.end_time)}",
        f"Duration: {confirmation.duration_minutes} minutes",
        _location_line(confirmation, business_address),
        f"Confirmation number: {confirmation.confirmation_number}",
    ]
    if not confirmation.is_consultation and confirmation.payment_preference:
        amount = confirmation.total_price_cents / 100
        lines.append(f"Payment: {_PAYMENT_NOTES[confirmation.payment_preference]} (${amount:.2f})")
    if confirmation.needs_intake_form:
        lines += [
            "",
            "Please complete your intake form before your visit:",
            intake_form_url(app_url, confirmation.appointment_id),
        ]
    return "\n".join(lines)


def render_confirmation_html(
    confirmation: BookingConfirmation,
    therapist_name: str,
    business_name: str,
    business_address: str,
    app_url: str,
) -> str:
    text = render_confirmation_text(confirmation, therapist_name, business_name, business_address, app_url)
    paragraphs = "".join(f"<p>{escape(line)}</p>" for line in text.split("\n") if line)
    return f"<html><body><h1>{escape(subject_for(confirmation))}</h1>{paragraphs}</body></html>"
