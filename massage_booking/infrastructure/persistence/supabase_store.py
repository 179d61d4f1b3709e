from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from supabase import Client, create_client

from massage_booking.application.exceptions import PersistenceError
from massage_booking.application.ports.persistence import PersistencePort
from massage_booking.core.config import settings
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
from massage_booking.infrastructure.persistence.rows import (
    appointment_from_row,
    consultation_from_row,
    intake_form_from_row,
    profile_from_row,
    service_from_row,
)

UPDATABLE_TABLES = {"appointments", "consultations", "intake_forms", "profiles"}


class SupabasePersistence(PersistencePort):
    def __init__(
        self,
        url: str | None = None,
        service_role_key: str | None = None,
        client: Client | None = None,
    ) -> None:
        self._logger = logging.getLogger(__name__)
        if client is not None:
            self._client = client
            return

        url = url or settings.SUPABASE_URL
        key = service_role_key or settings.SUPABASE_SERVICE_ROLE_KEY
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required for Supabase persistence")
        self._client = create_client(url, key)

    def _execute(self, action: str, query: Any) -> list[dict[str, Any]]:
        try:
            response = query.execute()
        except Exception as e:
            self._logger.error("Supabase request failed", extra={"reason": action, "error": str(e)})
            raise PersistenceError(f"{action} failed: {e}") from e
        return list(response.data or [])

    def list_services(self, active_only: bool = True) -> list[ServiceDescriptor]:
        query = self._client.table("services").select("*")
        if active_only:
            query = query.eq("is_active", True)
        rows = self._execute("list services", query.order("name"))
        return [service_from_row(row) for row in rows]

    def get_service(self, service_id: str) -> ServiceDescriptor | None:
        rows = self._execute(
            "get service",
            self._client.table("services").select("*").eq("id", service_id).limit(1),
        )
        return service_from_row(rows[0]) if rows else None

    def query_profile(self, client_id: str) -> ClientProfile | None:
        rows = self._execute(
            "query profile",
            self._client.table("profiles").select("*").eq("id", client_id).limit(1),
        )
        return profile_from_row(rows[0]) if rows else None

    def find_profile_by_email(self, email: str) -> ClientProfile | None:
        rows = self._execute(
            "find profile by email",
            self._client.table("profiles").select("*").eq("email", email.strip().lower()).limit(1),
        )
        return profile_from_row(rows[0]) if rows else None

    def create_guest_profile(self, info: ClientInfo) -> str:
        rows = self._execute(
            "create guest profile",
            self._client.table("profiles").insert(
                {
                    "email": info.email.strip().lower(),
                    "first_name": info.first_name,
                    "last_name": info.last_name,
                    "phone": info.phone,
                    "role": "client",
                }
            ),
        )
        if not rows:
            raise PersistenceError("create guest profile returned no row")
        return str(rows[0]["id"])

    def create_appointment(self, data: AppointmentInput) -> Appointment:
        rows = self._execute(
            "create appointment",
            self._client.table("appointments").insert(
                {
                    "client_id": data.client_id,
                    "service_id": data.service_id,
                    "appointment_date": data.appointment_date.isoformat(),
                    "start_time": data.start_time.isoformat(timespec="seconds"),
                    "end_time": data.end_time.isoformat(timespec="seconds"),
                    "status": AppointmentStatus.scheduled.value,
                    "total_price_cents": data.total_price_cents,
                    "payment_preference": data.payment_preference.value if data.payment_preference else None,
                    "payment_status": data.payment_status.value,
                    "requires_payment": data.requires_payment,
                    "notes": data.notes,
                }
            ),
        )
        if not rows:
            raise PersistenceError("create appointment returned no row")
        return appointment_from_row(rows[0])

    def create_consultation(self, data: ConsultationInput) -> Consultation:
        rows = self._execute(
            "create consultation",
            self._client.table("consultations").insert(
                {
                    "appointment_id": data.appointment_id,
                    "client_id": data.client_id,
                    "consultation_type": data.consultation_type.value,
                    "consultation_status": "scheduled",
                }
            ),
        )
        if not rows:
            raise PersistenceError("create consultation returned no row")
        return consultation_from_row(rows[0])

    def cancel_appointment(self, appointment_id: str) -> CancellationResult:
        try:
            self.update_record(
                "appointments",
                appointment_id,
                {"status": AppointmentStatus.cancelled.value},
            )
        except PersistenceError as e:
            return CancellationResult(success=False, error=str(e))
        return CancellationResult(success=True)

    def update_record(self, table: str, record_id: str, patch: dict[str, Any]) -> None:
        if table not in UPDATABLE_TABLES:
            raise PersistenceError(f"Updates to table {table!r} are not allowed")
        payload = dict(patch)
        payload["updated_at"] = datetime.now(timezone.utc).isoformat()
        self._execute(f"update {table}", self._client.table(table).update(payload).eq("id", record_id))

    def query_latest_intake_form(self, client_id: str) -> IntakeForm | None:
        rows = self._execute(
            "query latest intake form",
            self._client.table("intake_forms")
            .select("*")
            .eq("client_id", client_id)
            .in_("status", [FormStatus.submitted.value, FormStatus.reviewed.value])
            .order("submitted_at", desc=True)
            .limit(1),
        )
        return intake_form_from_row(rows[0]) if rows else None

    def get_intake_form(self, form_id: str) -> IntakeForm | None:
        rows = self._execute(
            "get intake form",
            self._client.table("intake_forms").select("*").eq("id", form_id).limit(1),
        )
        return intake_form_from_row(rows[0]) if rows else None

    def create_intake_form(self, client_id: str, form_type: FormType) -> IntakeForm:
        rows = self._execute(
            "create intake form",
            self._client.table("intake_forms").insert(
                {
                    "client_id": client_id,
                    "form_type": form_type.value,
                    "status": FormStatus.draft.value,
                }
            ),
        )
        if not rows:
            raise PersistenceError("create intake form returned no row")
        return intake_form_from_row(rows[0])

    def submit_intake_form(self, form_id: str, signature: str) -> IntakeForm:
        submitted_at = datetime.now(timezone.utc).isoformat()
        rows = self._execute(
            "submit intake form",
            self._client.table("intake_forms")
            .update(
                {
                    "status": FormStatus.submitted.value,
                    "signature": signature,
                    "signature_date": submitted_at,
                    "submitted_at": submitted_at,
                }
            )
            .eq("id", form_id),
        )
        if not rows:
            raise PersistenceError(f"intake form {form_id} not found")
        return intake_form_from_row(rows[0])
