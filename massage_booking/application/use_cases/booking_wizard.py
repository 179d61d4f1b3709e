from __future__ import annotations

import logging
import uuid

from massage_booking.application.exceptions import (
    CommitFailedError,
    DraftValidationError,
    PersistenceError,
    ServiceNotFoundError,
)
from massage_booking.application.ports.draft_store import DraftStorePort
from massage_booking.application.ports.persistence import PersistencePort
from massage_booking.application.use_cases.commit_booking import CommitBookingUseCase
from massage_booking.application.use_cases.step_sequencer import (
    StepProgress,
    can_proceed_to_step,
    next_step,
    previous_step,
    progress,
)
from massage_booking.application.utils.sessions import load_session, save_session
from massage_booking.domain.entities.appointment import CommitResult
from massage_booking.domain.entities.booking_draft import BookingDraft, BookingSession, ClientInfo
from massage_booking.domain.entities.step import BookingStep


class BookingWizardUseCase:
    """
    Session-scoped owner of booking drafts.

    Every operation loads the session from the draft store, applies one
    change and saves it back, so the wizard can be driven from stateless
    HTTP requests.
    """

    def __init__(
        self,
        store: DraftStorePort,
        persistence: PersistencePort,
        commit_use_case: CommitBookingUseCase,
    ) -> None:
        self._store = store
        self._persistence = persistence
        self._commit = commit_use_case
        self._logger = logging.getLogger(__name__)

    def start(
        self,
        client_id: str | None = None,
        reschedule_id: str | None = None,
        service_id: str | None = None,
        session_id: str | None = None,
    ) -> BookingSession:
        session = self._store.get(session_id) if session_id else None
        if session is not None and (session.draft.is_committed or session.draft.client_id != client_id):
            session = None
            session_id = None

        if session is None:
            session = BookingSession(
                session_id=session_id or uuid.uuid4().hex,
                draft=BookingDraft(client_id=client_id),
            )
        else:
            self._discard_stale_draft(session, reschedule_id)

        draft = session.draft
        if reschedule_id:
            draft.reschedule_id = reschedule_id

        if client_id:
            if draft.client_info is None:
                self._prefill_client_info(draft, client_id)
        else:
            draft.is_guest = True

        if service_id:
            draft.update(service=self._require_service(service_id))

        save_session(self._store, session)
        self._logger.info(
            "Booking session started",
            extra={"draft_id": draft.draft_id, "client_id": client_id, "step": session.current_step.name},
        )
        return session

    def get(self, session_id: str) -> BookingSession:
        return load_session(self._store, session_id)

    def select_service(self, session_id: str, service_id: str) -> BookingSession:
        session = load_session(self._store, session_id)
        session.draft.update(service=self._require_service(service_id))
        save_session(self._store, session)
        return session

    def update(self, session_id: str, **partial) -> BookingSession:
        session = load_session(self._store, session_id)
        session.draft.update(**partial)
        save_session(self._store, session)
        return session

    def next(self, session_id: str) -> BookingSession:
        session = load_session(self._store, session_id)
        target = next_step(session.current_step, session.draft)
        if target == session.current_step:
            self._logger.info(
                "Step transition blocked",
                extra={"draft_id": session.draft.draft_id, "step": session.current_step.name},
            )
            return session
        session.current_step = target
        save_session(self._store, session)
        return session

    def back(self, session_id: str) -> BookingSession:
        session = load_session(self._store, session_id)
        target = previous_step(session.current_step, session.draft)
        if target != session.current_step:
            session.current_step = target
            save_session(self._store, session)
        return session

    def progress(self, session_id: str) -> StepProgress:
        session = load_session(self._store, session_id)
        return progress(session.current_step, session.draft)

    def commit(self, session_id: str) -> CommitResult:
        session = load_session(self._store, session_id)
        if not session.draft.is_committed:
            self._require_ready_to_confirm(session)
        try:
            result = self._commit.commit(session.draft)
        except CommitFailedError as e:
            session.current_step = e.retry_step
            save_session(self._store, session)
            raise
        session.current_step = BookingStep.CONFIRMATION
        save_session(self._store, session)
        return result

    def discard(self, session_id: str) -> None:
        session = load_session(self._store, session_id)
        self._store.delete(session_id)
        self._commit.release(session.draft.draft_id)

    def _require_ready_to_confirm(self, session: BookingSession) -> None:
        draft = session.draft
        allowed = {BookingStep.CONFIRMATION, previous_step(BookingStep.CONFIRMATION, draft)}
        if session.current_step in allowed and can_proceed_to_step(BookingStep.CONFIRMATION, draft):
            return
        self._logger.info(
            "Commit blocked",
            extra={"draft_id": draft.draft_id, "step": session.current_step.name},
        )
        raise DraftValidationError("Complete the previous booking steps before confirming.")

    def _discard_stale_draft(self, session: BookingSession, reschedule_id: str | None) -> None:
        draft = session.draft
        if session.current_step != BookingStep.SERVICE or not draft.intake_form_id:
            return
        if reschedule_id or draft.reschedule_id:
            return
        self._logger.info(
            "Resetting stale booking draft",
            extra={"draft_id": draft.draft_id, "reason": "intake form from abandoned booking"},
        )
        draft.reset()

    def _prefill_client_info(self, draft: BookingDraft, client_id: str) -> None:
        try:
            profile = self._persistence.query_profile(client_id)
        except PersistenceError as e:
            self._logger.warning("Profile lookup failed", extra={"client_id": client_id, "error": str(e)})
            return
        if profile is None:
            return
        draft.update(
            client_info=ClientInfo(
                first_name=profile.first_name or "",
                last_name=profile.last_name or "",
                email=profile.email or "",
                phone=profile.phone or "",
            ),
            is_guest=False,
        )

    def _require_service(self, service_id: str):
        service = self._persistence.get_service(service_id)
        if service is None or not service.is_active:
            raise ServiceNotFoundError(service_id)
        return service
