from functools import lru_cache
import logging

from massage_booking.core.config import settings
from massage_booking.application.ports.draft_store import DraftStorePort
from massage_booking.application.ports.notifications import NotificationPort
from massage_booking.application.ports.payments import PaymentPort
from massage_booking.application.ports.persistence import PersistencePort
from massage_booking.application.ports.video_room import VideoRoomPort
from massage_booking.application.use_cases.booking_wizard import BookingWizardUseCase
from massage_booking.application.use_cases.commit_booking import CommitBookingUseCase
from massage_booking.application.use_cases.eligibility import EligibilityResolver
from massage_booking.application.use_cases.intake_forms import IntakeFormUseCase
from massage_booking.application.use_cases.payments import PaymentStepUseCase
from massage_booking.infrastructure.notifications.mock_notifier import MockNotifier
from massage_booking.infrastructure.notifications.resend_notifier import ResendNotifier
from massage_booking.infrastructure.payments.mock_payments import MockPayments
from massage_booking.infrastructure.payments.stripe_payments import StripePayments
from massage_booking.infrastructure.persistence.memory_store import MemoryPersistence
from massage_booking.infrastructure.persistence.supabase_store import SupabasePersistence
from massage_booking.infrastructure.store.json_store import JsonDraftStore
from massage_booking.infrastructure.store.memory_store import MemoryDraftStore
from massage_booking.infrastructure.video.daily_client import DailyVideoRooms
from massage_booking.infrastructure.video.mock_video import MockVideoRooms

logger = logging.getLogger(__name__)


def _is_local() -> bool:
    return settings.ENV.lower() in {"dev", "local"}


@lru_cache
def get_persistence() -> PersistencePort:
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY or _is_local():
        logger.info("Using MemoryPersistence (credentials missing or ENV=dev/local)")
        return MemoryPersistence()
    return SupabasePersistence()


@lru_cache
def get_draft_store() -> DraftStorePort:
    if _is_local():
        return JsonDraftStore(data_dir=settings.DRAFT_STORE_DIR)
    return MemoryDraftStore()


@lru_cache
def get_payments() -> PaymentPort:
    if not settings.STRIPE_SECRET_KEY or _is_local():
        logger.info("Using MockPayments (STRIPE_SECRET_KEY missing or ENV=dev/local)")
        return MockPayments()
    return StripePayments()


@lru_cache
def get_video_rooms() -> VideoRoomPort:
    if not settings.DAILY_API_KEY or _is_local():
        logger.info("Using MockVideoRooms (DAILY_API_KEY missing or ENV=dev/local)")
        return MockVideoRooms()
    return DailyVideoRooms()


@lru_cache
def get_notifier() -> NotificationPort:
    if not settings.RESEND_API_KEY or _is_local():
        logger.info("Using MockNotifier (RESEND_API_KEY missing or ENV=dev/local)")
        return MockNotifier()
    return ResendNotifier()


@lru_cache
def get_eligibility_resolver() -> EligibilityResolver:
    return EligibilityResolver(
        persistence=get_persistence(),
        quick_update_after_days=settings.INTAKE_QUICK_UPDATE_AFTER_DAYS,
        full_refresh_after_days=settings.INTAKE_FULL_REFRESH_AFTER_DAYS,
    )


@lru_cache
def get_commit_use_case() -> CommitBookingUseCase:
    # Single instance: its in-memory guard must be shared by every request.
    return CommitBookingUseCase(
        persistence=get_persistence(),
        notifications=get_notifier(),
        video_rooms=get_video_rooms(),
        eligibility=get_eligibility_resolver(),
        consultation_duration_minutes=settings.CONSULTATION_DURATION_MINUTES,
        therapist_name=settings.THERAPIST_NAME,
        business_timezone=settings.BUSINESS_TIMEZONE,
    )


def get_booking_wizard() -> BookingWizardUseCase:
    return BookingWizardUseCase(
        store=get_draft_store(),
        persistence=get_persistence(),
        commit_use_case=get_commit_use_case(),
    )


def get_intake_form_use_case() -> IntakeFormUseCase:
    return IntakeFormUseCase(
        store=get_draft_store(),
        persistence=get_persistence(),
        eligibility=get_eligibility_resolver(),
    )


def get_payment_step_use_case() -> PaymentStepUseCase:
    return PaymentStepUseCase(
        store=get_draft_store(),
        payments=get_payments(),
        persistence=get_persistence(),
        commit_use_case=get_commit_use_case(),
    )
