from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import fields, replace
from datetime import datetime, timezone
from typing import Any

from massage_booking.application.exceptions import PersistenceError
from massage_booking.application.ports.persistence import PersistencePort
from massage_booking.domain.entities.appointment import (
    Appointment,
    AppointmentInput,
    CancellationResult,
    Consultation,
    ConsultationInput,
)
from massage_booking.domain.entities.booking_draft import ClientInfo
from massage_booking.domain.entities.enums import AppointmentStatus, FormStatus, FormType
from massage_booking.domain.entities.intake_form import IntakeForm
from massage_booking.domain.entities.profile import ClientProfile
from massage_booking.domain.entities.service import ServiceDescriptor

DEFAULT_SERVICES: tuple[ServiceDescriptor, ...] = (
    ServiceDescriptor(
        id="svc-free-consultation",
        name="Free Consultation",
        duration_minutes=30,
        price_cents=0,
        is_consultation=True,
        description="A short conversation about your goals before your first massage.",
    ),
    ServiceDescriptor(
        id="svc-swedish-60",
        name="Swedish Massage",
        duration_minutes=60,
        price_cents=9000,
        description="Relaxing full-body massage with long, flowing strokes.",
    ),
    ServiceDescriptor(
        id="svc-deep-tissue-60",
        name="Deep Tissue",
        duration_minutes=60,
        price_cents=11000,
        description="Focused work on chronic tension and deeper muscle layers.",
    ),
    ServiceDescriptor(
        id="svc-sports-90",
        name="Sports Massage",
        duration_minutes=90,
        price_cents=14000,
        description="Recovery and mobility work for active clients.",
    ),
)


class MemoryPersistence(PersistencePort):
    """
    In-process stand-in for the hosted database.

    Add a method name to `fail_on` to make that call raise PersistenceError;
    every call is recorded in `calls` in order.
    """

    def __init__(self, services: tuple[ServiceDescriptor, ...] | list[ServiceDescriptor] = DEFAULT_SERVICES) -> None:
        self._services: dict[str, ServiceDescriptor] = {s.id: s for s in services}
        self.profiles: dict[str, ClientProfile] = {}
        self.appointments: dict[str, Appointment] = {}
        self.consultations: dict[str, Consultation] = {}
        self.intake_forms: dict[str, IntakeForm] = {}
        self.updates: list[tuple[str, str, dict[str, Any]]] = []
        self.calls: list[str] = []
        self.fail_on: set[str] = set()
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise PersistenceError(f"{name} failed (injected)")

    def add_profile(self, profile: ClientProfile) -> None:
        self.profiles[profile.id] = profile

    def add_intake_form(self, form: IntakeForm) -> None:
        self.intake_forms[form.id] = form

    def list_services(self, active_only: bool = True) -> list[ServiceDescriptor]:
        self._record("list_services")
        services = sorted(self._services.values(), key=lambda s: s.name)
        if active_only:
            services = [s for s in services if s.is_active]
        return services

    def get_service(self, service_id: str) -> ServiceDescriptor | None:
        self._record("get_service")
        return self._services.get(service_id)

    def query_profile(self, client_id: str) -> ClientProfile | None:
        self._record("query_profile")
        return self.profiles.get(client_id)

    def find_profile_by_email(self, email: str) -> ClientProfile | None:
        self._record("find_profile_by_email")
        wanted = email.strip().lower()
        for profile in self.profiles.values():
            if profile.email.lower() == wanted:
                return profile
        return None

    def create_guest_profile(self, info: ClientInfo) -> str:
        self._record("create_guest_profile")
        profile = ClientProfile(
            id=uuid.uuid4().hex,
            email=info.email.strip().lower(),
            first_name=info.first_name,
            last_name=info.last_name,
            phone=info.phone,
        )
        self.profiles[profile.id] = profile
        return profile.id

    def create_appointment(self, data: AppointmentInput) -> Appointment:
        self._record("create_appointment")
        with self._lock:
            appointment = Appointment(
                id=uuid.uuid4().hex,
                client_id=data.client_id,
                service_id=data.service_id,
                appointment_date=data.appointment_date,
                start_time=data.start_time,
                end_time=data.end_time,
                total_price_cents=data.total_price_cents,
                payment_preference=data.payment_preference,
                payment_status=data.payment_status,
            )
            self.appointments[appointment.id] = appointment
        return appointment

    def create_consultation(self, data: ConsultationInput) -> Consultation:
        self._record("create_consultation")
        consultation = Consultation(
            id=uuid.uuid4().hex,
            appointment_id=data.appointment_id,
            client_id=data.client_id,
            consultation_type=data.consultation_type,
        )
        self.consultations[consultation.id] = consultation
        return consultation

    def cancel_appointment(self, appointment_id: str) -> CancellationResult:
        try:
            self._record("cancel_appointment")
        except PersistenceError as e:
            return CancellationResult(success=False, error=str(e))
        appointment = self.appointments.get(appointment_id)
        if appointment is None:
            return CancellationResult(success=False, error=f"Appointment {appointment_id} not found")
        self.appointments[appointment_id] = replace(appointment, status=AppointmentStatus.cancelled)
        return CancellationResult(success=True)

    def update_record(self, table: str, record_id: str, patch: dict[str, Any]) -> None:
        self._record("update_record")
        self.updates.append((table, record_id, dict(patch)))
        records: dict[str, Any] | None = {
            "appointments": self.appointments,
            "consultations": self.consultations,
            "intake_forms": self.intake_forms,
        }.get(table)
        if records is None or record_id not in records:
            return
        current = records[record_id]
        known = {f.name for f in fields(current)}
        changes = {k: v for k, v in patch.items() if k in known}
        if "payment_status" in changes and isinstance(changes["payment_status"], str):
            changes["payment_status"] = type(current.payment_status)(changes["payment_status"])
        if changes:
            records[record_id] = replace(current, **changes)

    def query_latest_intake_form(self, client_id: str) -> IntakeForm | None:
        self._record("query_latest_intake_form")
        forms = [f for f in self.intake_forms.values() if f.client_id == client_id and f.is_submitted]
        if not forms:
            return None
        return max(forms, key=lambda f: f.submitted_at or datetime.min.replace(tzinfo=timezone.utc))

    def get_intake_form(self, form_id: str) -> IntakeForm | None:
        self._record("get_intake_form")
        return self.intake_forms.get(form_id)

    def create_intake_form(self, client_id: str, form_type: FormType) -> IntakeForm:
        self._record("create_intake_form")
        form = IntakeForm(id=uuid.uuid4().hex, client_id=client_id, form_type=form_type)
        self.intake_forms[form.id] = form
        return form

    def submit_intake_form(self, form_id: str, signature: str) -> IntakeForm:
        self._record("submit_intake_form")
        form = self.intake_forms.get(form_id)
        if form is None:
            raise PersistenceError(f"intake form {form_id} not found")
        form = replace(form, status=FormStatus.submitted, submitted_at=datetime.now(timezone.utc))
        self.intake_forms[form_id] = form
        return form
