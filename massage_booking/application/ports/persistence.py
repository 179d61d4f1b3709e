from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from massage_booking.domain.entities.appointment import (
    Appointment,
    AppointmentInput,
    CancellationResult,
    Consultation,
    ConsultationInput,
)
from massage_booking.domain.entities.booking_draft import ClientInfo
from massage_booking.domain.entities.enums import FormType
from massage_booking.domain.entities.intake_form import IntakeForm
from massage_booking.domain.entities.profile import ClientProfile
from massage_booking.domain.entities.service import ServiceDescriptor


class PersistencePort(ABC):
    """Hosted relational store. Implementations raise PersistenceError on upstream failure."""

    @abstractmethod
    def list_services(self, active_only: bool = True) -> list[ServiceDescriptor]:
        raise NotImplementedError

    @abstractmethod
    def get_service(self, service_id: str) -> ServiceDescriptor | None:
        raise NotImplementedError

    @abstractmethod
    def query_profile(self, client_id: str) -> ClientProfile | None:
        raise NotImplementedError

    @abstractmethod
    def find_profile_by_email(self, email: str) -> ClientProfile | None:
        raise NotImplementedError

    @abstractmethod
    def create_guest_profile(self, info: ClientInfo) -> str:
        """Insert a client profile for a guest booking. Returns the new profile id."""
        raise NotImplementedError

    @abstractmethod
    def create_appointment(self, data: AppointmentInput) -> Appointment:
        raise NotImplementedError

    @abstractmethod
    def create_consultation(self, data: ConsultationInput) -> Consultation:
        raise NotImplementedError

    @abstractmethod
    def cancel_appointment(self, appointment_id: str) -> CancellationResult:
        """Mark an appointment cancelled. Reports failure in the result instead of raising."""
        raise NotImplementedError

    @abstractmethod
    def update_record(self, table: str, record_id: str, patch: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def query_latest_intake_form(self, client_id: str) -> IntakeForm | None:
        """Most recent submitted (or reviewed) intake form for the client."""
        raise NotImplementedError

    @abstractmethod
    def get_intake_form(self, form_id: str) -> IntakeForm | None:
        raise NotImplementedError

    @abstractmethod
    def create_intake_form(self, client_id: str, form_type: FormType) -> IntakeForm:
        """Create a draft form; the appointment link is filled in at commit."""
        raise NotImplementedError

    @abstractmethod
    def submit_intake_form(self, form_id: str, signature: str) -> IntakeForm:
        raise NotImplementedError
