from __future__ import annotations

import logging

from massage_booking.application.exceptions import (
    DraftValidationError,
    PaymentError,
    PersistenceError,
)
from massage_booking.application.ports.draft_store import DraftStorePort
from massage_booking.application.ports.payments import PaymentPort
from massage_booking.application.ports.persistence import PersistencePort
from massage_booking.application.use_cases.commit_booking import CommitBookingUseCase
from massage_booking.application.use_cases.step_sequencer import can_proceed_to_step
from massage_booking.application.utils.sessions import load_session, save_session
from massage_booking.domain.entities.appointment import PaymentIntent
from massage_booking.domain.entities.booking_draft import BookingSession
from massage_booking.domain.entities.enums import PaymentStatus
from massage_booking.domain.entities.step import BookingStep

SUCCEEDED = "succeeded"


class PaymentStepUseCase:
    """Online card payment for pay-now massage bookings."""

    def __init__(
        self,
        store: DraftStorePort,
        payments: PaymentPort,
        persistence: PersistencePort,
        commit_use_case: CommitBookingUseCase,
    ) -> None:
        self._store = store
        self._payments = payments
        self._persistence = persistence
        self._commit = commit_use_case
        self._logger = logging.getLogger(__name__)

    def prepare(self, session_id: str) -> PaymentIntent:
        session = load_session(self._store, session_id)
        draft = session.draft
        if not draft.pays_now:
            raise DraftValidationError("Online payment only applies to pay-now bookings.")
        service = draft.service
        if service is None:
            raise DraftValidationError("Select a service first.")

        if draft.payment_intent_id and draft.payment_client_secret:
            return PaymentIntent(
                payment_intent_id=draft.payment_intent_id,
                client_secret=draft.payment_client_secret,
                amount_cents=service.price_cents,
            )
        if not can_proceed_to_step(BookingStep.PAYMENT, draft):
            raise DraftValidationError("Booking details are incomplete.")

        try:
            appointment_id = self._commit.ensure_appointment(draft)
        finally:
            save_session(self._store, session)

        intent = self._payments.create_payment_intent(
            appointment_id=appointment_id,
            amount_cents=service.price_cents,
            description=f"{service.name} on {draft.date.isoformat() if draft.date else ''}",
            metadata={"draft_id": draft.draft_id, "client_email": draft.client_info.email if draft.client_info else ""},
        )
        draft.attach_payment_intent(intent.payment_intent_id, intent.client_secret)
        self._update_appointment(appointment_id, {"stripe_payment_intent_id": intent.payment_intent_id})
        save_session(self._store, session)
        self._logger.info(
            "Payment intent created",
            extra={"draft_id": draft.draft_id, "appointment_id": appointment_id},
        )
        return intent

    def confirm(self, session_id: str, payment_intent_id: str) -> BookingSession:
        session = load_session(self._store, session_id)
        draft = session.draft
        if not draft.payment_intent_id or draft.payment_intent_id != payment_intent_id:
            raise DraftValidationError("Payment does not belong to this booking.")
        if draft.payment_confirmed:
            return session

        status = self._payments.get_payment_status(payment_intent_id)
        if status != SUCCEEDED:
            raise PaymentError(f"Payment has not completed (status: {status}).")

        draft.mark_payment_confirmed()
        if draft.appointment_id:
            self._update_appointment(draft.appointment_id, {"payment_status": PaymentStatus.paid.value})
        save_session(self._store, session)
        self._logger.info(
            "Payment confirmed",
            extra={"draft_id": draft.draft_id, "appointment_id": draft.appointment_id},
        )
        return session

    def _update_appointment(self, appointment_id: str, patch: dict) -> None:
        try:
            self._persistence.update_record("appointments", appointment_id, patch)
        except PersistenceError as e:
            self._logger.error(
                "Failed to update appointment payment details",
                extra={"appointment_id": appointment_id, "error": str(e)},
            )
