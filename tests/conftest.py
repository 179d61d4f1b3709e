from __future__ import annotations

from datetime import date, time

import pytest

from massage_booking.application.use_cases.booking_wizard import BookingWizardUseCase
from massage_booking.application.use_cases.commit_booking import CommitBookingUseCase
from massage_booking.application.use_cases.eligibility import EligibilityResolver
from massage_booking.application.use_cases.intake_forms import IntakeFormUseCase
from massage_booking.application.use_cases.payments import PaymentStepUseCase
from massage_booking.application.utils.sessions import save_session
from massage_booking.domain.entities.booking_draft import BookingDraft, BookingSession, ClientInfo, TimeSlot
from massage_booking.domain.entities.enums import ConsultationType, PaymentPreference
from massage_booking.infrastructure.notifications.mock_notifier import MockNotifier
from massage_booking.infrastructure.payments.mock_payments import MockPayments
from massage_booking.infrastructure.persistence.memory_store import DEFAULT_SERVICES, MemoryPersistence
from massage_booking.infrastructure.store.memory_store import MemoryDraftStore
from massage_booking.infrastructure.video.mock_video import MockVideoRooms

BOOKING_DATE = date(2030, 5, 6)
SERVICES = {s.name: s for s in DEFAULT_SERVICES}


@pytest.fixture
def swedish():
    return SERVICES["Swedish Massage"]


@pytest.fixture
def free_consultation():
    return SERVICES["Free Consultation"]


@pytest.fixture
def client_info() -> ClientInfo:
    return ClientInfo(first_name="Jamie", last_name="Rivera", email="jamie@example.com", phone="+1 (555) 010-2030")


@pytest.fixture
def massage_draft(swedish, client_info) -> BookingDraft:
    """Guest massage booking, filled through the payment preference step (pay cash)."""
    draft = BookingDraft()
    draft.update(
        service=swedish,
        date=BOOKING_DATE,
        time_slot=TimeSlot(start=time(14, 0), end=time(15, 0)),
        client_info=client_info,
        is_guest=True,
        payment_preference=PaymentPreference.pay_cash,
    )
    draft.mark_intake(None, complete=True, deferred=True)
    return draft


@pytest.fixture
def consultation_draft(free_consultation, client_info) -> BookingDraft:
    """Guest video consultation, filled through the health form step."""
    draft = BookingDraft()
    draft.update(
        service=free_consultation,
        consultation_type=ConsultationType.video,
        date=BOOKING_DATE,
        time_slot=TimeSlot(start=time(10, 0), end=time(10, 30)),
        client_info=client_info,
        is_guest=True,
    )
    draft.mark_intake(None, complete=True, deferred=True)
    return draft


@pytest.fixture
def persistence() -> MemoryPersistence:
    return MemoryPersistence()


@pytest.fixture
def notifier() -> MockNotifier:
    return MockNotifier()


@pytest.fixture
def video_rooms() -> MockVideoRooms:
    return MockVideoRooms()


@pytest.fixture
def payments() -> MockPayments:
    return MockPayments()


@pytest.fixture
def draft_store() -> MemoryDraftStore:
    return MemoryDraftStore()


@pytest.fixture
def eligibility(persistence) -> EligibilityResolver:
    return EligibilityResolver(persistence, quick_update_after_days=180, full_refresh_after_days=365)


@pytest.fixture
def commit_use_case(persistence, notifier, video_rooms, eligibility) -> CommitBookingUseCase:
    return CommitBookingUseCase(
        persistence=persistence,
        notifications=notifier,
        video_rooms=video_rooms,
        eligibility=eligibility,
        consultation_duration_minutes=30,
        therapist_name="Alex",
    )


@pytest.fixture
def wizard(draft_store, persistence, commit_use_case) -> BookingWizardUseCase:
    return BookingWizardUseCase(store=draft_store, persistence=persistence, commit_use_case=commit_use_case)


@pytest.fixture
def intake_use_case(draft_store, persistence, eligibility) -> IntakeFormUseCase:
    return IntakeFormUseCase(store=draft_store, persistence=persistence, eligibility=eligibility)


@pytest.fixture
def payment_use_case(draft_store, payments, persistence, commit_use_case) -> PaymentStepUseCase:
    return PaymentStepUseCase(
        store=draft_store,
        payments=payments,
        persistence=persistence,
        commit_use_case=commit_use_case,
    )


@pytest.fixture
def store_session(draft_store):
    """Save a draft under a session id and return the id."""

    def _store(draft: BookingDraft, session_id: str = "session-1", step=None) -> str:
        session = BookingSession(session_id=session_id, draft=draft)
        if step is not None:
            session.current_step = step
        save_session(draft_store, session)
        return session_id

    return _store
