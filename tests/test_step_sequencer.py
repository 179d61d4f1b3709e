"""
Tests for wizard step sequencing and progress numbering.
"""

from __future__ import annotations

from massage_booking.application.use_cases.step_sequencer import (
    can_proceed_to_step,
    next_step,
    previous_step,
    progress,
    step_path,
)
from massage_booking.domain.entities.booking_draft import BookingDraft
from massage_booking.domain.entities.step import BookingStep

S = BookingStep


def _pay_now(draft: BookingDraft, confirmed: bool = True) -> BookingDraft:
    draft.update(payment_preference="pay_now")
    draft.attach_payment_intent("pi_1", "pi_1_secret")
    if confirmed:
        draft.mark_payment_confirmed()
    return draft


def test_consultation_route(consultation_draft):
    assert step_path(consultation_draft) == [
        S.SERVICE,
        S.CONSULTATION_TYPE,
        S.DATE_TIME,
        S.CLIENT_INFO,
        S.INTAKE_FORM,
        S.CONFIRMATION,
    ]


def test_massage_pay_later_route(massage_draft):
    assert step_path(massage_draft) == [
        S.SERVICE,
        S.DATE_TIME,
        S.CLIENT_INFO,
        S.INTAKE_FORM,
        S.PAYMENT_PREFERENCE,
        S.CONFIRMATION,
    ]


def test_massage_pay_now_route_includes_payment(massage_draft):
    _pay_now(massage_draft)
    assert S.PAYMENT in step_path(massage_draft)
    assert step_path(massage_draft)[-2:] == [S.PAYMENT, S.CONFIRMATION]


def test_next_then_previous_round_trips(massage_draft, consultation_draft):
    """Each forward move on a complete draft is undone by one backward move."""
    for draft in (massage_draft, consultation_draft):
        path = step_path(draft)
        for current, following in zip(path, path[1:]):
            assert next_step(current, draft) == following
            assert previous_step(following, draft) == current


def test_pay_now_round_trip(massage_draft):
    draft = _pay_now(massage_draft)
    path = step_path(draft)
    for current, following in zip(path, path[1:]):
        assert next_step(current, draft) == following
        assert previous_step(following, draft) == current


def test_next_is_blocked_without_prerequisites(swedish):
    draft = BookingDraft()
    assert next_step(S.SERVICE, draft) == S.SERVICE

    draft.update(service=swedish)
    assert next_step(S.SERVICE, draft) == S.DATE_TIME
    # No date or time yet.
    assert next_step(S.DATE_TIME, draft) == S.DATE_TIME


def test_consultation_needs_type_before_date(free_consultation):
    draft = BookingDraft()
    draft.update(service=free_consultation)
    assert next_step(S.SERVICE, draft) == S.CONSULTATION_TYPE
    assert next_step(S.CONSULTATION_TYPE, draft) == S.CONSULTATION_TYPE

    draft.update(consultation_type="phone")
    assert next_step(S.CONSULTATION_TYPE, draft) == S.DATE_TIME


def test_incomplete_intake_blocks_progress(massage_draft):
    massage_draft.mark_intake("form-1", complete=False)
    assert next_step(S.INTAKE_FORM, massage_draft) == S.INTAKE_FORM


def test_unconfirmed_payment_blocks_confirmation(massage_draft):
    draft = _pay_now(massage_draft, confirmed=False)
    assert next_step(S.PAYMENT, draft) == S.PAYMENT
    assert not can_proceed_to_step(S.CONFIRMATION, draft)


def test_consultation_never_reaches_payment_steps(consultation_draft):
    assert not can_proceed_to_step(S.PAYMENT_PREFERENCE, consultation_draft)
    assert not can_proceed_to_step(S.PAYMENT, consultation_draft)
    assert next_step(S.INTAKE_FORM, consultation_draft) == S.CONFIRMATION


def test_back_from_committed_confirmation_stays_put(massage_draft):
    massage_draft.mark_appointment_created("appt-1")
    massage_draft.mark_committed("ABC-1234")
    assert previous_step(S.CONFIRMATION, massage_draft) == S.CONFIRMATION


def test_back_falls_back_when_route_changed(massage_draft, free_consultation):
    # Sitting on PAYMENT, the draft switches to a consultation.
    draft = _pay_now(massage_draft)
    draft.update(service=free_consultation)
    assert previous_step(S.PAYMENT, draft) == S.INTAKE_FORM


def test_massage_progress_numbering(massage_draft):
    date_step = progress(S.DATE_TIME, massage_draft)
    assert (date_step.current, date_step.total) == (2, 6)
    assert date_step.title == "Date & Time"

    start = progress(S.SERVICE, massage_draft)
    assert (start.current, start.percent) == (1, 0.0)

    done = progress(S.CONFIRMATION, massage_draft)
    assert (done.current, done.total, done.percent) == (6, 6, 100.0)


def test_pay_now_progress_has_seven_steps(massage_draft):
    draft = _pay_now(massage_draft)
    assert progress(S.PAYMENT, draft).total == 7
    assert progress(S.PAYMENT, draft).current == 6


def test_consultation_progress_shares_last_slot(consultation_draft):
    consultation_type = progress(S.CONSULTATION_TYPE, consultation_draft)
    assert (consultation_type.current, consultation_type.total) == (2, 5)
    intake = progress(S.INTAKE_FORM, consultation_draft)
    confirmation = progress(S.CONFIRMATION, consultation_draft)
    assert intake.current == confirmation.current == 5
    assert confirmation.percent == 100.0


def test_empty_draft_progress_assumes_massage_route():
    assert progress(S.SERVICE, BookingDraft()).total == 6
