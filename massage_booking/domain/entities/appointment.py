from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time

from massage_booking.domain.entities.enums import (
    AppointmentStatus,
    ConsultationStatus,
    ConsultationType,
    PaymentPreference,
    PaymentStatus,
)


@dataclass(frozen=True)
class AppointmentInput:
    client_id: str
    service_id: str
    appointment_date: date
    start_time: time
    end_time: time
    total_price_cents: int
    payment_preference: PaymentPreference | None
    payment_status: PaymentStatus
    requires_payment: bool = True
    notes: str = ""


@dataclass(frozen=True)
class Appointment:
    id: str
    client_id: str
    service_id: str
    appointment_date: date
    start_time: time
    end_time: time
    total_price_cents: int
    payment_preference: PaymentPreference | None
    payment_status: PaymentStatus
    status: AppointmentStatus = AppointmentStatus.scheduled


@dataclass(frozen=True)
class ConsultationInput:
    appointment_id: str
    client_id: str
    consultation_type: ConsultationType


@dataclass(frozen=True)
class Consultation:
    id: str
    appointment_id: str
    client_id: str
    consultation_type: ConsultationType
    consultation_status: ConsultationStatus = ConsultationStatus.scheduled
    room_url: str | None = None


@dataclass(frozen=True)
class CancellationResult:
    success: bool
    error: str | None = None


@dataclass(frozen=True)
class PaymentIntent:
    payment_intent_id: str
    client_secret: str
    amount_cents: int


@dataclass(frozen=True)
class VideoRoom:
    room_url: str
    room_name: str
    tokens: dict[str, str] = field(default_factory=dict)  # participant name -> meeting token
    owner_token: str | None = None


@dataclass(frozen=True)
class BookingConfirmation:
    appointment_id: str
    email: str
    confirmation_number: str
    client_name: str
    service_name: str
    appointment_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    is_consultation: bool = False
    consultation_type: ConsultationType | None = None
    room_url: str | None = None
    payment_preference: PaymentPreference | None = None
    total_price_cents: int = 0
    needs_intake_form: bool = False
    is_reschedule: bool = False


@dataclass(frozen=True)
class CommitResult:
    appointment_id: str
    confirmation_number: str
    consultation_id: str | None = None
    room_url: str | None = None
    warnings: tuple[str, ...] = ()
    already_committed: bool = False
