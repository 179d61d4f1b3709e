import datetime as dt
from typing import Any

from pydantic import BaseModel, Field

from massage_booking.domain.entities.enums import ConsultationType, FormType, PaymentPreference


class ServiceSchema(BaseModel):
    id: str
    name: str
    duration_minutes: int
    price_cents: int
    is_consultation: bool = False
    description: str | None = None


class ConsultationEligibilitySchema(BaseModel):
    is_eligible: bool
    consultation_count: int = 0
    last_consultation_date: dt.datetime | None = None
    error: str | None = None


class IntakeRequirementSchema(BaseModel):
    required: bool
    form_type: FormType
    last_form_date: dt.datetime | None = None
    days_since_last_form: int | None = None


class TimeSlotSchema(BaseModel):
    start: dt.time
    end: dt.time


class ClientInfoSchema(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str


class StartBookingRequestSchema(BaseModel):
    session_id: str | None = None
    reschedule_id: str | None = None
    service_id: str | None = None


class SelectServiceRequestSchema(BaseModel):
    service_id: str


class DraftUpdateRequestSchema(BaseModel):
    consultation_type: ConsultationType | None = None
    date: dt.date | None = None
    time_slot: TimeSlotSchema | None = None
    client_info: ClientInfoSchema | None = None
    payment_preference: PaymentPreference | None = None
    is_guest: bool | None = None


class BookingDraftSchema(BaseModel):
    draft_id: str
    client_id: str | None = None
    service: ServiceSchema | None = None
    consultation_type: ConsultationType | None = None
    date: dt.date | None = None
    time_slot: TimeSlotSchema | None = None
    client_info: ClientInfoSchema | None = None
    is_guest: bool = False
    is_new_client: bool = True
    intake_form_id: str | None = None
    intake_complete: bool = False
    payment_preference: PaymentPreference | None = None
    payment_intent_id: str | None = None
    payment_confirmed: bool = False
    appointment_id: str | None = None
    consultation_id: str | None = None
    confirmation_number: str | None = None
    room_url: str | None = None
    reschedule_id: str | None = None


class ProgressSchema(BaseModel):
    current: int
    total: int
    percent: float
    title: str


class BookingSessionSchema(BaseModel):
    session_id: str
    current_step: int
    step_name: str
    draft: BookingDraftSchema
    progress: ProgressSchema
    moved: bool | None = None


class IntakeStepResponseSchema(BaseModel):
    session: BookingSessionSchema
    requirement: IntakeRequirementSchema


class IntakeSubmitRequestSchema(BaseModel):
    signature: str = Field(min_length=1)


class PaymentIntentResponseSchema(BaseModel):
    payment_intent_id: str
    client_secret: str
    amount_cents: int


class PaymentConfirmationRequestSchema(BaseModel):
    payment_intent_id: str


class CommitResponseSchema(BaseModel):
    appointment_id: str
    confirmation_number: str
    consultation_id: str | None = None
    room_url: str | None = None
    warnings: list[str] = Field(default_factory=list)
    already_committed: bool = False


class ErrorDetailSchema(BaseModel):
    message: str
    retryable: bool = True
    retry_step: int | None = None
    meta: dict[str, Any] = Field(default_factory=dict)
