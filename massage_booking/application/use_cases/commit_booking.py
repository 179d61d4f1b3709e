"""
Commit orchestrator: turns a completed booking draft into persisted records.

Ordered effects of a commit:
1. cancel the appointment being rescheduled (best effort)
2. create the appointment, plus the consultation record for consultations
3. link the draft intake form to the new appointment (best effort)
4. pay_now drafts arrive here with the appointment and a confirmed payment
   intent already in place (see PaymentStepUseCase)
5. provision a video room for video consultations (best effort)
6. send the confirmation email (best effort)
7. mark the draft committed

Only a failure in step 2 aborts the commit. Everything after it degrades
into a warning on the result.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Iterator
from zoneinfo import ZoneInfo

from massage_booking.application.exceptions import (
    CommitFailedError,
    CommitInProgressError,
    DraftValidationError,
    PersistenceError,
)
from massage_booking.application.ports.notifications import NotificationPort
from massage_booking.application.ports.persistence import PersistencePort
from massage_booking.application.ports.video_room import VideoRoomPort
from massage_booking.application.use_cases.eligibility import EligibilityResolver
from massage_booking.application.utils.confirmation import generate_confirmation_number
from massage_booking.domain.entities.appointment import (
    AppointmentInput,
    BookingConfirmation,
    CancellationResult,
    CommitResult,
    ConsultationInput,
)
from massage_booking.domain.entities.booking_draft import BookingDraft
from massage_booking.domain.entities.enums import ConsultationType, PaymentStatus

ROOM_FALLBACK_WARNING = "Video room setup failed. You will receive alternative meeting instructions via email."
EMAIL_FAILED_WARNING = "We could not send your confirmation email. Please keep your confirmation number."
RESCHEDULE_CANCEL_WARNING = "Your previous appointment could not be cancelled automatically. We will take care of it."


class CommitGuard:
    """
    One-shot, in-memory guard keyed by draft id.

    Held synchronously for the whole commit so a second invocation for the
    same draft (double-fired effects, a re-clicked button) is rejected
    before any network round trip starts. It also remembers what was
    already created, so a stale copy of the draft cannot create twice.
    Only the most recent `max_entries` drafts are remembered; a committed
    draft carries its own appointment id and confirmation number after that.
    """

    def __init__(self, max_entries: int = 1000) -> None:
        self._lock = threading.Lock()
        self._max_entries = max_entries
        self._active: set[str] = set()
        self._created: OrderedDict[str, tuple[str, str | None]] = OrderedDict()
        self._results: OrderedDict[str, CommitResult] = OrderedDict()

    def __len__(self) -> int:
        with self._lock:
            return len(self._created.keys() | self._results.keys())

    @contextmanager
    def hold(self, draft_id: str) -> Iterator[None]:
        with self._lock:
            if draft_id in self._active:
                raise CommitInProgressError(f"Booking {draft_id} is already being created.")
            self._active.add(draft_id)
        try:
            yield
        finally:
            with self._lock:
                self._active.discard(draft_id)

    def record_created(self, draft_id: str, appointment_id: str, consultation_id: str | None) -> None:
        with self._lock:
            self._remember(self._created, draft_id, (appointment_id, consultation_id))

    def created(self, draft_id: str) -> tuple[str, str | None] | None:
        with self._lock:
            return self._created.get(draft_id)

    def record_result(self, draft_id: str, result: CommitResult) -> None:
        with self._lock:
            self._remember(self._results, draft_id, result)

    def result(self, draft_id: str) -> CommitResult | None:
        with self._lock:
            return self._results.get(draft_id)

    def release(self, draft_id: str) -> None:
        with self._lock:
            self._created.pop(draft_id, None)
            self._results.pop(draft_id, None)

    def _remember(self, entries: OrderedDict, draft_id: str, value) -> None:
        entries[draft_id] = value
        entries.move_to_end(draft_id)
        while len(entries) > self._max_entries:
            entries.popitem(last=False)


class CommitBookingUseCase:
    def __init__(
        self,
        persistence: PersistencePort,
        notifications: NotificationPort,
        video_rooms: VideoRoomPort,
        eligibility: EligibilityResolver,
        consultation_duration_minutes: int = 30,
        therapist_name: str = "Therapist",
        business_timezone: str = "America/Los_Angeles",
        guard: CommitGuard | None = None,
    ) -> None:
        self._persistence = persistence
        self._notifications = notifications
        self._video_rooms = video_rooms
        self._eligibility = eligibility
        self._consultation_duration_minutes = consultation_duration_minutes
        self._therapist_name = therapist_name
        self._timezone = ZoneInfo(business_timezone)
        self._guard = guard or CommitGuard()
        self._logger = logging.getLogger(__name__)

    def commit(self, draft: BookingDraft) -> CommitResult:
        if draft.is_committed:
            return self._result_from_draft(draft)

        with self._guard.hold(draft.draft_id):
            cached = self._guard.result(draft.draft_id)
            if cached is not None:
                self._sync_created(draft)
                draft.mark_committed(cached.confirmation_number, cached.room_url)
                return replace(cached, already_committed=True)

            self._sync_created(draft)
            self.validate(draft)

            warnings: list[str] = []
            if draft.appointment_id is None:
                self._create(draft, warnings)

            room_url = self._provision_room(draft, warnings)
            confirmation_number = generate_confirmation_number()
            self._notify(draft, confirmation_number, room_url, warnings)

            draft.mark_committed(confirmation_number, room_url)
            result = CommitResult(
                appointment_id=draft.appointment_id or "",
                confirmation_number=confirmation_number,
                consultation_id=draft.consultation_id,
                room_url=room_url,
                warnings=tuple(warnings),
            )
            self._guard.record_result(draft.draft_id, result)
            self._logger.info(
                "Booking committed",
                extra={"draft_id": draft.draft_id, "appointment_id": draft.appointment_id},
            )
            return result

    def release(self, draft_id: str) -> None:
        """Forget a draft once its session is gone."""
        self._guard.release(draft_id)

    def ensure_appointment(self, draft: BookingDraft) -> str:
        """
        Create the appointment ahead of commit, for flows that must charge
        against it first. Returns the existing id when there already is one.
        """
        if draft.appointment_id is not None:
            return draft.appointment_id

        with self._guard.hold(draft.draft_id):
            self._sync_created(draft)
            if draft.appointment_id is not None:
                return draft.appointment_id
            missing = self._missing_for_creation(draft)
            if missing:
                raise DraftValidationError(f"Missing booking information: {', '.join(missing)}")
            warnings: list[str] = []
            self._create(draft, warnings)
            for warning in warnings:
                self._logger.warning(warning, extra={"draft_id": draft.draft_id})
            return draft.appointment_id  # type: ignore[return-value]

    def validate(self, draft: BookingDraft) -> None:
        missing = self._missing_for_creation(draft)
        if not draft.intake_complete:
            missing.append("intake_form")
        if draft.pays_now:
            if draft.appointment_id is None:
                missing.append("appointment")
            if draft.payment_intent_id is None or not draft.payment_confirmed:
                missing.append("payment")
        if missing:
            raise DraftValidationError(f"Missing booking information: {', '.join(missing)}")

    def _missing_for_creation(self, draft: BookingDraft) -> list[str]:
        missing: list[str] = []
        if draft.service is None:
            missing.append("service")
        if draft.is_consultation and draft.consultation_type is None:
            missing.append("consultation_type")
        if draft.date is None:
            missing.append("date")
        if draft.time_slot is None:
            missing.append("time_slot")
        if draft.client_info is None or not draft.client_info.is_complete():
            missing.append("client_info")
        if not draft.is_consultation and draft.payment_preference is None:
            missing.append("payment_preference")
        return missing

    def _sync_created(self, draft: BookingDraft) -> None:
        created = self._guard.created(draft.draft_id)
        if created is not None and draft.appointment_id is None:
            draft.mark_appointment_created(*created)

    def _result_from_draft(self, draft: BookingDraft) -> CommitResult:
        return CommitResult(
            appointment_id=draft.appointment_id or "",
            confirmation_number=draft.confirmation_number or "",
            consultation_id=draft.consultation_id,
            room_url=draft.room_url,
            already_committed=True,
        )

    def _create(self, draft: BookingDraft, warnings: list[str]) -> None:
        if draft.reschedule_id:
            self._cancel_previous(draft, warnings)

        try:
            client_id = self._resolve_client_id(draft)
            if draft.is_consultation:
                self._check_consultation_eligibility(client_id)
            appointment = self._persistence.create_appointment(self._appointment_input(draft, client_id))
        except CommitFailedError:
            raise
        except Exception as e:
            self._logger.exception(
                "Appointment creation failed",
                extra={"draft_id": draft.draft_id, "error": str(e)},
            )
            raise CommitFailedError("Failed to create appointment. Please try again.") from e

        consultation_id: str | None = None
        if draft.is_consultation:
            try:
                consultation = self._persistence.create_consultation(
                    ConsultationInput(
                        appointment_id=appointment.id,
                        client_id=client_id,
                        consultation_type=draft.consultation_type,  # type: ignore[arg-type]
                    )
                )
                consultation_id = consultation.id
            except Exception as e:
                self._logger.exception(
                    "Consultation record creation failed",
                    extra={"draft_id": draft.draft_id, "appointment_id": appointment.id, "error": str(e)},
                )
                self._discard_orphan(appointment.id)
                raise CommitFailedError("Failed to create consultation booking. Please try again.") from e

        draft.mark_appointment_created(appointment.id, consultation_id)
        self._guard.record_created(draft.draft_id, appointment.id, consultation_id)
        self._logger.info(
            "Appointment created",
            extra={"draft_id": draft.draft_id, "appointment_id": appointment.id, "client_id": client_id},
        )

        if draft.intake_form_id:
            self._link_intake_form(draft)

    def _cancel_previous(self, draft: BookingDraft, warnings: list[str]) -> None:
        reschedule_id = draft.reschedule_id or ""
        try:
            result = self._persistence.cancel_appointment(reschedule_id)
        except Exception as e:
            result = CancellationResult(success=False, error=str(e))
        if not result.success:
            # Continue with the new appointment even if the old one stays.
            self._logger.error(
                "Failed to cancel rescheduled appointment",
                extra={"draft_id": draft.draft_id, "appointment_id": reschedule_id, "error": result.error},
            )
            warnings.append(RESCHEDULE_CANCEL_WARNING)

    def _resolve_client_id(self, draft: BookingDraft) -> str:
        if draft.client_id and not draft.is_guest:
            return draft.client_id
        info = draft.client_info
        if info is None:
            raise CommitFailedError("Client information is required.", retryable=False)
        existing = self._persistence.find_profile_by_email(info.email)
        if existing is not None:
            return existing.id
        return self._persistence.create_guest_profile(info)

    def _check_consultation_eligibility(self, client_id: str) -> None:
        eligibility = self._eligibility.resolve_consultation_eligibility(client_id)
        if eligibility.error:
            raise CommitFailedError("Failed to check consultation eligibility. Please try again.")
        if not eligibility.is_eligible:
            raise CommitFailedError("You have already used your free consultation.", retryable=False)

    def _appointment_input(self, draft: BookingDraft, client_id: str) -> AppointmentInput:
        service = draft.service
        slot = draft.time_slot
        if service is None or slot is None or draft.date is None:
            raise DraftValidationError("Service, date and time are required.")
        notes = f"Rescheduled from appointment {draft.reschedule_id}" if draft.reschedule_id else ""

        if draft.is_consultation:
            return AppointmentInput(
                client_id=client_id,
                service_id=service.id,
                appointment_date=draft.date,
                start_time=slot.start,
                end_time=slot.end,
                total_price_cents=0,
                payment_preference=None,
                payment_status=PaymentStatus.paid,
                requires_payment=False,
                notes=notes,
            )

        return AppointmentInput(
            client_id=client_id,
            service_id=service.id,
            appointment_date=draft.date,
            start_time=slot.start,
            end_time=slot.end,
            total_price_cents=service.price_cents,
            payment_preference=draft.payment_preference,
            payment_status=PaymentStatus.pending if draft.pays_now else PaymentStatus.will_pay_later,
            notes=notes,
        )

    def _discard_orphan(self, appointment_id: str) -> None:
        try:
            self._persistence.cancel_appointment(appointment_id)
        except Exception as e:
            self._logger.error(
                "Failed to cancel orphaned appointment",
                extra={"appointment_id": appointment_id, "error": str(e)},
            )

    def _link_intake_form(self, draft: BookingDraft) -> None:
        try:
            self._persistence.update_record(
                "intake_forms",
                draft.intake_form_id or "",
                {"appointment_id": draft.appointment_id},
            )
        except PersistenceError as e:
            self._logger.error(
                "Failed to link intake form",
                extra={"draft_id": draft.draft_id, "appointment_id": draft.appointment_id, "error": str(e)},
            )

    def _provision_room(self, draft: BookingDraft, warnings: list[str]) -> str | None:
        if not draft.is_consultation or draft.consultation_type != ConsultationType.video:
            return None
        if draft.consultation_id is None:
            warnings.append(ROOM_FALLBACK_WARNING)
            return None

        info = draft.client_info
        starts_at = None
        if draft.date is not None and draft.time_slot is not None:
            starts_at = datetime.combine(draft.date, draft.time_slot.start, tzinfo=self._timezone)
        try:
            room = self._video_rooms.create_room(
                consultation_id=draft.consultation_id,
                participant_names=[info.full_name if info else "Client"],
                starts_at=starts_at,
                duration_minutes=self._consultation_duration_minutes,
                owner_name=self._therapist_name,
            )
        except Exception as e:
            # The consultation stays booked without a room.
            self._logger.warning(
                "Video room setup failed",
                extra={"draft_id": draft.draft_id, "appointment_id": draft.appointment_id, "error": str(e)},
            )
            warnings.append(ROOM_FALLBACK_WARNING)
            return None

        try:
            self._persistence.update_record(
                "consultations",
                draft.consultation_id,
                {"daily_room_url": room.room_url, "daily_room_name": room.room_name},
            )
        except PersistenceError as e:
            self._logger.error(
                "Failed to store video room on consultation",
                extra={"draft_id": draft.draft_id, "error": str(e)},
            )
        return room.room_url

    def _notify(
        self,
        draft: BookingDraft,
        confirmation_number: str,
        room_url: str | None,
        warnings: list[str],
    ) -> None:
        info = draft.client_info
        service = draft.service
        if info is None or service is None or draft.date is None or draft.time_slot is None:
            return
        confirmation = BookingConfirmation(
            appointment_id=draft.appointment_id or "",
            email=info.email,
            confirmation_number=confirmation_number,
            client_name=info.first_name or "Guest",
            service_name=service.name,
            appointment_date=draft.date,
            start_time=draft.time_slot.start,
            end_time=draft.time_slot.end,
            duration_minutes=service.duration_minutes,
            is_consultation=draft.is_consultation,
            consultation_type=draft.consultation_type,
            room_url=room_url,
            payment_preference=draft.payment_preference,
            total_price_cents=0 if draft.is_consultation else service.price_cents,
            needs_intake_form=draft.intake_deferred,
            is_reschedule=bool(draft.reschedule_id),
        )
        try:
            self._notifications.send_booking_confirmation(confirmation)
        except Exception as e:
            self._logger.error(
                "Failed to send booking confirmation",
                extra={"draft_id": draft.draft_id, "appointment_id": draft.appointment_id, "error": str(e)},
            )
            warnings.append(EMAIL_FAILED_WARNING)
