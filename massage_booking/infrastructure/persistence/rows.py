from __future__ import annotations

from datetime import date, datetime, time
from typing import Any

from massage_booking.domain.entities.appointment import Appointment, Consultation
from massage_booking.domain.entities.enums import (
    AppointmentStatus,
    ConsultationStatus,
    ConsultationType,
    FormStatus,
    FormType,
    PaymentPreference,
    PaymentStatus,
)
from massage_booking.domain.entities.intake_form import IntakeForm
from massage_booking.domain.entities.profile import ClientProfile
from massage_booking.domain.entities.service import ServiceDescriptor


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _parse_time(value: Any) -> time:
    if isinstance(value, time):
        return value
    return time.fromisoformat(str(value)[:8])


def service_from_row(row: dict[str, Any]) -> ServiceDescriptor:
    return ServiceDescriptor(
        id=str(row["id"]),
        name=row["name"],
        duration_minutes=int(row.get("duration_minutes") or 0),
        price_cents=int(row.get("price_cents") or 0),
        is_consultation=bool(row.get("is_consultation", False)),
        description=row.get("description"),
        is_active=bool(row.get("is_active", True)),
    )


def profile_from_row(row: dict[str, Any]) -> ClientProfile:
    return ClientProfile(
        id=str(row["id"]),
        email=row.get("email") or "",
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        phone=row.get("phone"),
        role=row.get("role") or "client",
        has_had_free_consultation=bool(row.get("has_had_free_consultation", False)),
        consultation_count=int(row.get("consultation_count") or 0),
        last_consultation_date=_parse_datetime(row.get("last_consultation_date")),
    )


def appointment_from_row(row: dict[str, Any]) -> Appointment:
    preference = row.get("payment_preference")
    return Appointment(
        id=str(row["id"]),
        client_id=str(row["client_id"]),
        service_id=str(row["service_id"]),
        appointment_date=_parse_date(row["appointment_date"]),
        start_time=_parse_time(row["start_time"]),
        end_time=_parse_time(row["end_time"]),
        total_price_cents=int(row.get("total_price_cents") or 0),
        payment_preference=PaymentPreference(preference) if preference else None,
        payment_status=PaymentStatus(row.get("payment_status") or PaymentStatus.pending.value),
        status=AppointmentStatus(row.get("status") or AppointmentStatus.scheduled.value),
    )


def consultation_from_row(row: dict[str, Any]) -> Consultation:
    return Consultation(
        id=str(row["id"]),
        appointment_id=str(row["appointment_id"]),
        client_id=str(row["client_id"]),
        consultation_type=ConsultationType(row["consultation_type"]),
        consultation_status=ConsultationStatus(row.get("consultation_status") or ConsultationStatus.scheduled.value),
        room_url=row.get("room_url"),
    )


def intake_form_from_row(row: dict[str, Any]) -> IntakeForm:
    appointment_id = row.get("appointment_id")
    return IntakeForm(
        id=str(row["id"]),
        client_id=str(row["client_id"]),
        form_type=FormType(row.get("form_type") or FormType.new_client.value),
        status=FormStatus(row.get("status") or FormStatus.draft.value),
        appointment_id=str(appointment_id) if appointment_id else None,
        submitted_at=_parse_datetime(row.get("submitted_at")),
    )
