"""
Booking wizard step sequencing.

The routes through the wizard are data: a table of guarded transitions
plus a per-step prerequisite predicate. Consultations detour through
CONSULTATION_TYPE and skip both payment steps; massage bookings skip
CONSULTATION_TYPE and only visit PAYMENT when paying online.

    step = next_step(BookingStep.SERVICE, draft)
    progress(step, draft)  # StepProgress(current=2, total=6, ...)

Every function here is pure: it reads the draft and never mutates it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from massage_booking.domain.entities.booking_draft import BookingDraft
from massage_booking.domain.entities.step import BookingStep

Guard = Callable[[BookingDraft], bool]


def _always(draft: BookingDraft) -> bool:
    return True


def _is_consultation(draft: BookingDraft) -> bool:
    return draft.is_consultation


def _is_massage(draft: BookingDraft) -> bool:
    return not draft.is_consultation


def _pays_now(draft: BookingDraft) -> bool:
    return draft.pays_now


def _pays_later(draft: BookingDraft) -> bool:
    return not draft.is_consultation and not draft.pays_now


@dataclass(frozen=True)
class Transition:
    from_step: BookingStep
    to_step: BookingStep
    guard: Guard = _always


TRANSITIONS: tuple[Transition, ...] = (
    Transition(BookingStep.SERVICE, BookingStep.CONSULTATION_TYPE, _is_consultation),
    Transition(BookingStep.SERVICE, BookingStep.DATE_TIME, _is_massage),
    Transition(BookingStep.CONSULTATION_TYPE, BookingStep.DATE_TIME, _is_consultation),
    Transition(BookingStep.DATE_TIME, BookingStep.CLIENT_INFO),
    Transition(BookingStep.CLIENT_INFO, BookingStep.INTAKE_FORM),
    Transition(BookingStep.INTAKE_FORM, BookingStep.CONFIRMATION, _is_consultation),
    Transition(BookingStep.INTAKE_FORM, BookingStep.PAYMENT_PREFERENCE, _is_massage),
    Transition(BookingStep.PAYMENT_PREFERENCE, BookingStep.PAYMENT, _pays_now),
    Transition(BookingStep.PAYMENT_PREFERENCE, BookingStep.CONFIRMATION, _pays_later),
    Transition(BookingStep.PAYMENT, BookingStep.CONFIRMATION, _pays_now),
)


def _ready_for_date_time(draft: BookingDraft) -> bool:
    if draft.service is None:
        return False
    return not draft.is_consultation or draft.consultation_type is not None


def _ready_for_client_info(draft: BookingDraft) -> bool:
    return _ready_for_date_time(draft) and draft.date is not None and draft.time_slot is not None


def _ready_for_intake_form(draft: BookingDraft) -> bool:
    return (
        _ready_for_client_info(draft)
        and draft.client_info is not None
        and draft.client_info.is_complete()
    )


def _intake_done(draft: BookingDraft) -> bool:
    return _ready_for_intake_form(draft) and draft.intake_complete


def _ready_for_payment_preference(draft: BookingDraft) -> bool:
    return _intake_done(draft) and not draft.is_consultation


def _ready_for_payment(draft: BookingDraft) -> bool:
    return _ready_for_payment_preference(draft) and draft.pays_now


def _ready_for_confirmation(draft: BookingDraft) -> bool:
    if not _intake_done(draft):
        return False
    if draft.is_consultation:
        return True
    if draft.payment_preference is None:
        return False
    if draft.pays_now:
        return draft.payment_intent_id is not None and draft.payment_confirmed
    return True


PREREQUISITES: dict[BookingStep, Guard] = {
    BookingStep.SERVICE: _always,
    BookingStep.CONSULTATION_TYPE: lambda d: d.service is not None and d.is_consultation,
    BookingStep.DATE_TIME: _ready_for_date_time,
    BookingStep.CLIENT_INFO: _ready_for_client_info,
    BookingStep.INTAKE_FORM: _ready_for_intake_form,
    BookingStep.PAYMENT_PREFERENCE: _ready_for_payment_preference,
    BookingStep.PAYMENT: _ready_for_payment,
    BookingStep.CONFIRMATION: _ready_for_confirmation,
}


@dataclass(frozen=True)
class StepProgress:
    current: int
    total: int
    percent: float
    title: str


def can_proceed_to_step(target: BookingStep, draft: BookingDraft) -> bool:
    return PREREQUISITES[target](draft)


def _forward(step: BookingStep, draft: BookingDraft) -> BookingStep | None:
    for t in TRANSITIONS:
        if t.from_step == step and t.guard(draft):
            return t.to_step
    return None


def next_step(step: BookingStep, draft: BookingDraft) -> BookingStep:
    """Follow the forward rule for this draft. Returns `step` unchanged when blocked."""
    target = _forward(step, draft)
    if target is None or not can_proceed_to_step(target, draft):
        return step
    return target


def previous_step(step: BookingStep, draft: BookingDraft) -> BookingStep:
    """Mirror of next_step: return the step the forward rule would have come from."""
    if step == BookingStep.CONFIRMATION and draft.is_committed:
        return step
    for t in TRANSITIONS:
        if t.to_step == step and t.guard(draft):
            return t.from_step
    # The draft changed under us (e.g. a different service was picked);
    # fall back to the closest earlier step on the current route.
    earlier = [s for s in step_path(draft) if s < step]
    return earlier[-1] if earlier else BookingStep.SERVICE


def step_path(draft: BookingDraft) -> list[BookingStep]:
    """The full route this draft takes, prerequisites aside."""
    path = [BookingStep.SERVICE]
    while path[-1] != BookingStep.CONFIRMATION:
        target = _forward(path[-1], draft)
        if target is None:
            break
        path.append(target)
    return path


def progress(step: BookingStep, draft: BookingDraft) -> StepProgress:
    path = step_path(draft)
    # Consultations show confirmation in the same slot as the health form.
    slots = [s for s in path if not (draft.is_consultation and s == BookingStep.CONFIRMATION)]
    total = len(slots)

    if step in slots:
        current = slots.index(step) + 1
    elif step == BookingStep.CONFIRMATION:
        current = total
    else:
        current = max(1, sum(1 for s in slots if s < step))

    percent = (current - 1) / (total - 1) * 100 if total > 1 else 100.0
    return StepProgress(current=current, total=total, percent=round(percent, 1), title=step.title)
