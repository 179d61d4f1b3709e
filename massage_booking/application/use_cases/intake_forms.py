from __future__ import annotations

import logging

from massage_booking.application.exceptions import (
    DraftValidationError,
    IntakeFormOwnershipError,
    PersistenceError,
)
from massage_booking.application.ports.draft_store import DraftStorePort
from massage_booking.application.ports.persistence import PersistencePort
from massage_booking.application.use_cases.eligibility import EligibilityResolver
from massage_booking.application.utils.sessions import load_session, save_session
from massage_booking.domain.entities.booking_draft import BookingDraft, BookingSession
from massage_booking.domain.entities.enums import FormType
from massage_booking.domain.entities.intake_form import IntakeForm, IntakeRequirement


class IntakeFormUseCase:
    def __init__(
        self,
        store: DraftStorePort,
        persistence: PersistencePort,
        eligibility: EligibilityResolver,
    ) -> None:
        self._store = store
        self._persistence = persistence
        self._eligibility = eligibility
        self._logger = logging.getLogger(__name__)

    def prepare(self, session_id: str) -> tuple[BookingSession, IntakeRequirement]:
        """
        Decide what the intake step needs for this draft and record it.

        Guests have no identity that could own a stored form, so their step
        is satisfied here and the confirmation email carries the form link.
        """
        session = load_session(self._store, session_id)
        draft = session.draft
        if draft.date is None or draft.client_info is None:
            raise DraftValidationError("Date and client information are required before the intake form.")

        if draft.is_guest or not draft.client_id:
            requirement = IntakeRequirement(required=True, form_type=FormType.new_client)
            if draft.appointment_id is None:
                draft.mark_intake(None, complete=True, deferred=True)
            save_session(self._store, session)
            return session, requirement

        requirement = self._eligibility.resolve_intake_requirement(draft.client_id, draft.date)
        draft.is_new_client = requirement.form_type == FormType.new_client

        if draft.appointment_id is not None:
            # Already linked at creation; leave the recorded form alone.
            save_session(self._store, session)
            return session, requirement

        if not requirement.required:
            draft.mark_intake(None, complete=True)
        else:
            form = self._reusable_form(draft)
            if form is None:
                form = self._persistence.create_intake_form(draft.client_id, requirement.form_type)
                self._logger.info(
                    "Intake form created",
                    extra={"draft_id": draft.draft_id, "client_id": draft.client_id},
                )
            draft.mark_intake(form.id, complete=form.is_submitted)

        save_session(self._store, session)
        return session, requirement

    def submit(self, session_id: str, signature: str) -> BookingSession:
        session = load_session(self._store, session_id)
        draft = session.draft
        if not draft.intake_form_id:
            raise DraftValidationError("No intake form to submit.")
        if not signature.strip():
            raise DraftValidationError("A signature is required.")

        form = self._persistence.get_intake_form(draft.intake_form_id)
        if form is None or not draft.client_id or form.client_id != draft.client_id:
            raise IntakeFormOwnershipError(draft.intake_form_id)

        if not form.is_submitted:
            form = self._persistence.submit_intake_form(form.id, signature)
        draft.mark_intake(form.id, complete=True)
        save_session(self._store, session)
        self._logger.info("Intake form submitted", extra={"draft_id": draft.draft_id, "client_id": draft.client_id})
        return session

    def _reusable_form(self, draft: BookingDraft) -> IntakeForm | None:
        if not draft.intake_form_id:
            return None
        try:
            form = self._persistence.get_intake_form(draft.intake_form_id)
        except PersistenceError as e:
            self._logger.warning("Intake form lookup failed", extra={"draft_id": draft.draft_id, "error": str(e)})
            return None
        if form is None or form.client_id != draft.client_id:
            self._logger.info(
                "Discarding intake form reference",
                extra={"draft_id": draft.draft_id, "reason": "form missing or owned by another client"},
            )
            return None
        return form
