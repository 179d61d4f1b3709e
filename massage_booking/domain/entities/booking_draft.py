from __future__ import annotations

import re
import uuid
from dataclasses import MISSING, dataclass, field, fields
from datetime import date, time
from typing import Any

from massage_booking.domain.entities.enums import ConsultationType, PaymentPreference
from massage_booking.domain.entities.service import ServiceDescriptor
from massage_booking.domain.entities.step import BookingStep

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^\+?[1-9]\d{1,14}$")
_PHONE_NOISE_RE = re.compile(r"[\s\-().]")


class DraftValidationError(ValueError):
    """Raised when a draft mutation or transition is missing required data."""


@dataclass(frozen=True)
class TimeSlot:
    start: time
    end: time

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise DraftValidationError("Time slot must end after it starts.")


@dataclass(frozen=True)
class ClientInfo:
    first_name: str
    last_name: str
    email: str
    phone: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def is_complete(self) -> bool:
        if not self.first_name.strip() or not self.last_name.strip():
            return False
        if not _EMAIL_RE.match(self.email.strip()):
            return False
        return bool(_PHONE_RE.match(_PHONE_NOISE_RE.sub("", self.phone)))


# Fields owned by the commit path; never writable through update().
_SYSTEM_FIELDS = frozenset(
    {
        "draft_id",
        "appointment_id",
        "consultation_id",
        "confirmation_number",
        "room_url",
        "payment_confirmed",
        "payment_intent_id",
        "payment_client_secret",
        "intake_form_id",
        "intake_complete",
        "intake_deferred",
        "reschedule_id",
    }
)

# Fields that shape the appointment record; frozen once it exists.
_BOOKING_FIELDS = frozenset(
    {"service", "consultation_type", "date", "time_slot", "client_info", "payment_preference", "is_guest"}
)


@dataclass
class BookingDraft:
    draft_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    client_id: str | None = None  # authenticated identity, if any

    service: ServiceDescriptor | None = None
    consultation_type: ConsultationType | None = None
    date: date | None = None
    time_slot: TimeSlot | None = None
    client_info: ClientInfo | None = None
    is_guest: bool = False
    is_new_client: bool = True

    intake_form_id: str | None = None
    intake_complete: bool = False
    intake_deferred: bool = False  # guest bookings get the form link by email instead

    payment_preference: PaymentPreference | None = None
    payment_intent_id: str | None = None
    payment_client_secret: str | None = None
    payment_confirmed: bool = False

    appointment_id: str | None = None
    consultation_id: str | None = None
    confirmation_number: str | None = None
    room_url: str | None = None
    reschedule_id: str | None = None

    @property
    def is_consultation(self) -> bool:
        return self.service is not None and self.service.is_consultation

    @property
    def pays_now(self) -> bool:
        return not self.is_consultation and self.payment_preference == PaymentPreference.pay_now

    @property
    def is_committed(self) -> bool:
        return self.confirmation_number is not None

    def update(self, **partial: Any) -> None:
        known = {f.name for f in fields(self)}
        unknown = set(partial) - known
        if unknown:
            raise DraftValidationError(f"Unknown draft fields: {sorted(unknown)}")
        blocked = set(partial) & _SYSTEM_FIELDS
        if blocked:
            raise DraftValidationError(f"Fields are managed by the booking flow: {sorted(blocked)}")
        if self.is_committed:
            raise DraftValidationError("Booking is already confirmed.")
        if self.appointment_id and set(partial) & _BOOKING_FIELDS:
            raise DraftValidationError("Appointment already created; start a new booking to change it.")

        if "service" in partial:
            self._apply_service(partial.pop("service"))

        if partial.get("consultation_type") is not None:
            if not self.is_consultation:
                raise DraftValidationError("Consultation type only applies to consultations.")
            partial["consultation_type"] = ConsultationType(partial["consultation_type"])

        if partial.get("payment_preference") is not None:
            if self.is_consultation:
                raise DraftValidationError("Consultations are free; no payment preference applies.")
            preference = PaymentPreference(partial["payment_preference"])
            if preference != PaymentPreference.pay_now:
                self.payment_intent_id = None
                self.payment_client_secret = None
            partial["payment_preference"] = preference

        for key, value in partial.items():
            setattr(self, key, value)

    def _apply_service(self, service: ServiceDescriptor | None) -> None:
        previous = self.service
        self.service = service
        if previous is not None and service is not None and previous.id == service.id:
            return
        if self.is_consultation:
            self.payment_preference = None
            self.payment_intent_id = None
            self.payment_client_secret = None
        else:
            self.consultation_type = None

    def reset(self) -> None:
        """Restore the empty draft. Identity fields survive."""
        for f in fields(self):
            if f.name in ("draft_id", "client_id"):
                continue
            if f.default_factory is not MISSING:
                setattr(self, f.name, f.default_factory())
            else:
                setattr(self, f.name, f.default)

    def mark_appointment_created(self, appointment_id: str, consultation_id: str | None = None) -> None:
        if self.appointment_id is not None:
            raise DraftValidationError(f"Appointment already created: {self.appointment_id}")
        self.appointment_id = appointment_id
        self.consultation_id = consultation_id

    def mark_committed(self, confirmation_number: str, room_url: str | None = None) -> None:
        self.confirmation_number = confirmation_number
        self.room_url = room_url

    def mark_intake(self, form_id: str | None, complete: bool, deferred: bool = False) -> None:
        self.intake_form_id = form_id
        self.intake_complete = complete
        self.intake_deferred = deferred

    def attach_payment_intent(self, payment_intent_id: str, client_secret: str) -> None:
        if not self.pays_now:
            raise DraftValidationError("Payment intents only apply to pay-now bookings.")
        self.payment_intent_id = payment_intent_id
        self.payment_client_secret = client_secret

    def mark_payment_confirmed(self) -> None:
        self.payment_confirmed = True


@dataclass
class BookingSession:
    session_id: str
    draft: BookingDraft
    current_step: BookingStep = BookingStep.SERVICE
    created_at: float | None = None
    updated_at: float | None = None
