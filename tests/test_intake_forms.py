"""
Tests for the intake-form step.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from massage_booking.application.exceptions import DraftValidationError, IntakeFormOwnershipError
from massage_booking.domain.entities.enums import FormStatus, FormType
from massage_booking.domain.entities.intake_form import IntakeForm


@pytest.fixture
def member_draft(massage_draft):
    """The massage draft, booked by a signed-in client with no intake decided yet."""
    massage_draft.client_id = "client-1"
    massage_draft.is_guest = False
    massage_draft.mark_intake(None, complete=False)
    return massage_draft


def test_guest_intake_is_deferred_to_email(intake_use_case, store_session, massage_draft, persistence):
    massage_draft.mark_intake(None, complete=False)
    sid = store_session(massage_draft)

    session, requirement = intake_use_case.prepare(sid)

    assert requirement.required
    assert session.draft.intake_complete
    assert session.draft.intake_deferred
    assert persistence.intake_forms == {}


def test_new_client_gets_a_form_then_submits(intake_use_case, store_session, member_draft, persistence):
    sid = store_session(member_draft)

    session, requirement = intake_use_case.prepare(sid)

    assert requirement.form_type == FormType.new_client
    assert session.draft.is_new_client
    assert not session.draft.intake_complete
    form = persistence.intake_forms[session.draft.intake_form_id]
    assert form.client_id == "client-1"
    assert form.form_type == FormType.new_client

    session = intake_use_case.submit(sid, signature="Jamie Rivera")

    assert session.draft.intake_complete
    assert persistence.intake_forms[form.id].status == FormStatus.submitted


def test_prepare_reuses_own_draft_form(intake_use_case, store_session, member_draft, persistence):
    sid = store_session(member_draft)
    first, _ = intake_use_case.prepare(sid)
    second, _ = intake_use_case.prepare(sid)

    assert first.draft.intake_form_id == second.draft.intake_form_id
    assert len(persistence.intake_forms) == 1


def test_recent_form_skips_the_step(intake_use_case, store_session, member_draft, persistence):
    persistence.add_intake_form(
        IntakeForm(
            id="form-recent",
            client_id="client-1",
            form_type=FormType.new_client,
            status=FormStatus.reviewed,
            submitted_at=datetime(2030, 4, 1, tzinfo=timezone.utc),
        )
    )
    sid = store_session(member_draft)

    session, requirement = intake_use_case.prepare(sid)

    assert not requirement.required
    assert not session.draft.is_new_client
    assert session.draft.intake_complete
    assert session.draft.intake_form_id is None


def test_foreign_form_reference_is_replaced(intake_use_case, store_session, member_draft, persistence):
    persistence.add_intake_form(IntakeForm(id="form-other", client_id="client-2", form_type=FormType.new_client))
    member_draft.mark_intake("form-other", complete=False)
    sid = store_session(member_draft)

    session, _ = intake_use_case.prepare(sid)

    assert session.draft.intake_form_id not in (None, "form-other")
    assert persistence.intake_forms[session.draft.intake_form_id].client_id == "client-1"


def test_submit_checks_ownership(intake_use_case, store_session, member_draft, persistence):
    persistence.add_intake_form(IntakeForm(id="form-other", client_id="client-2", form_type=FormType.new_client))
    member_draft.mark_intake("form-other", complete=False)
    sid = store_session(member_draft)

    with pytest.raises(IntakeFormOwnershipError):
        intake_use_case.submit(sid, signature="Jamie Rivera")

    assert persistence.intake_forms["form-other"].status == FormStatus.draft


def test_submit_requires_form_and_signature(intake_use_case, store_session, member_draft):
    sid = store_session(member_draft)
    with pytest.raises(DraftValidationError):
        intake_use_case.submit(sid, signature="Jamie Rivera")

    intake_use_case.prepare(sid)
    with pytest.raises(DraftValidationError):
        intake_use_case.submit(sid, signature="  ")


def test_prepare_needs_date(intake_use_case, store_session, member_draft):
    member_draft.update(date=None)
    sid = store_session(member_draft)
    with pytest.raises(DraftValidationError):
        intake_use_case.prepare(sid)
