"""
Tests for the session-scoped booking wizard.
"""

from __future__ import annotations

from datetime import date, time

import pytest

from massage_booking.application.exceptions import (
    CommitFailedError,
    DraftValidationError,
    ServiceNotFoundError,
    SessionNotFoundError,
)
from massage_booking.application.use_cases.booking_wizard import BookingWizardUseCase
from massage_booking.application.use_cases.commit_booking import CommitBookingUseCase, CommitGuard
from massage_booking.domain.entities.booking_draft import TimeSlot
from massage_booking.domain.entities.profile import ClientProfile
from massage_booking.domain.entities.step import BookingStep


def test_guest_start(wizard):
    session = wizard.start()

    assert session.current_step == BookingStep.SERVICE
    assert session.draft.is_guest
    assert session.created_at is not None
    assert wizard.get(session.session_id).draft.draft_id == session.draft.draft_id


def test_authenticated_start_prefills_client_info(wizard, persistence):
    persistence.add_profile(
        ClientProfile(id="client-1", email="pat@example.com", first_name="Pat", last_name="Kim", phone="5550001111")
    )

    session = wizard.start(client_id="client-1")

    assert not session.draft.is_guest
    assert session.draft.client_info.email == "pat@example.com"
    assert session.draft.client_info.is_complete()


def test_start_with_service_preselects(wizard):
    session = wizard.start(service_id="svc-swedish-60")
    assert session.draft.service.name == "Swedish Massage"


def test_unknown_service_is_rejected(wizard):
    session = wizard.start()
    with pytest.raises(ServiceNotFoundError):
        wizard.select_service(session.session_id, "svc-nope")


def test_resume_discards_abandoned_intake_form(wizard, draft_store):
    session = wizard.start(service_id="svc-swedish-60")
    session.draft.mark_intake("form-old", complete=False)
    draft_store.save(session)

    resumed = wizard.start(session_id=session.session_id)

    assert resumed.session_id == session.session_id
    assert resumed.draft.intake_form_id is None
    assert resumed.draft.service is None


def test_resume_keeps_draft_during_reschedule(wizard, draft_store):
    session = wizard.start(service_id="svc-swedish-60", reschedule_id="appt-old")
    session.draft.mark_intake("form-old", complete=False)
    draft_store.save(session)

    resumed = wizard.start(session_id=session.session_id)

    assert resumed.draft.intake_form_id == "form-old"
    assert resumed.draft.reschedule_id == "appt-old"


def test_resume_of_other_clients_session_starts_fresh(wizard):
    session = wizard.start(client_id="client-1")
    other = wizard.start(client_id="client-2", session_id=session.session_id)
    assert other.session_id != session.session_id
    assert wizard.get(session.session_id).draft.client_id == "client-1"


def test_walk_through_steps(wizard, client_info):
    session = wizard.start(service_id="svc-swedish-60")
    sid = session.session_id

    assert wizard.next(sid).current_step == BookingStep.DATE_TIME
    # Blocked until a date and time are chosen.
    assert wizard.next(sid).current_step == BookingStep.DATE_TIME

    wizard.update(sid, date=date(2030, 5, 6), time_slot=TimeSlot(start=time(11, 0), end=time(12, 0)))
    assert wizard.next(sid).current_step == BookingStep.CLIENT_INFO
    assert wizard.progress(sid).current == 3

    wizard.update(sid, client_info=client_info)
    assert wizard.next(sid).current_step == BookingStep.INTAKE_FORM
    assert wizard.back(sid).current_step == BookingStep.CLIENT_INFO


def test_commit_moves_to_confirmation(wizard, store_session, massage_draft, notifier):
    sid = store_session(massage_draft, step=BookingStep.PAYMENT_PREFERENCE)

    result = wizard.commit(sid)

    session = wizard.get(sid)
    assert session.current_step == BookingStep.CONFIRMATION
    assert session.draft.confirmation_number == result.confirmation_number
    assert wizard.back(sid).current_step == BookingStep.CONFIRMATION
    assert len(notifier.sent) == 1


def test_failed_commit_returns_to_service_step(wizard, store_session, massage_draft, persistence):
    sid = store_session(massage_draft, step=BookingStep.PAYMENT_PREFERENCE)
    persistence.fail_on.add("create_appointment")

    with pytest.raises(CommitFailedError):
        wizard.commit(sid)

    session = wizard.get(sid)
    assert session.current_step == BookingStep.SERVICE
    assert session.draft.service is not None
    assert not session.draft.is_committed


def test_commit_from_service_step_is_rejected(wizard, swedish, client_info, persistence, notifier):
    sid = wizard.start().session_id
    wizard.update(
        sid,
        service=swedish,
        date=date(2030, 5, 6),
        time_slot=TimeSlot(start=time(14, 0), end=time(15, 0)),
        client_info=client_info,
        payment_preference="pay_cash",
    )

    with pytest.raises(DraftValidationError):
        wizard.commit(sid)

    assert persistence.appointments == {}
    assert notifier.sent == []
    assert wizard.get(sid).current_step == BookingStep.SERVICE


def test_commit_needs_the_step_before_confirmation(wizard, store_session, massage_draft, persistence):
    sid = store_session(massage_draft, step=BookingStep.CLIENT_INFO)

    with pytest.raises(DraftValidationError):
        wizard.commit(sid)

    assert persistence.appointments == {}


def test_commit_needs_finished_intake(wizard, store_session, massage_draft, persistence):
    massage_draft.mark_intake("form-7", complete=False)
    sid = store_session(massage_draft, step=BookingStep.PAYMENT_PREFERENCE)

    with pytest.raises(DraftValidationError):
        wizard.commit(sid)

    assert persistence.appointments == {}


def test_discard_after_commit_releases_guard(draft_store, persistence, notifier, video_rooms, eligibility, store_session, massage_draft):
    guard = CommitGuard()
    commit_use_case = CommitBookingUseCase(persistence, notifier, video_rooms, eligibility, guard=guard)
    wizard = BookingWizardUseCase(store=draft_store, persistence=persistence, commit_use_case=commit_use_case)
    sid = store_session(massage_draft, step=BookingStep.PAYMENT_PREFERENCE)

    wizard.commit(sid)
    assert len(guard) == 1

    wizard.discard(sid)

    assert len(guard) == 0


def test_discard(wizard):
    session = wizard.start()
    wizard.discard(session.session_id)
    with pytest.raises(SessionNotFoundError):
        wizard.get(session.session_id)
