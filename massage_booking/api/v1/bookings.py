from contextlib import contextmanager
from typing import Iterator

from fastapi import APIRouter, Depends, Header, HTTPException, Response

from massage_booking.api.v1.schemas import (
    BookingDraftSchema,
    BookingSessionSchema,
    ClientInfoSchema,
    CommitResponseSchema,
    DraftUpdateRequestSchema,
    ErrorDetailSchema,
    IntakeRequirementSchema,
    IntakeStepResponseSchema,
    IntakeSubmitRequestSchema,
    PaymentConfirmationRequestSchema,
    PaymentIntentResponseSchema,
    ProgressSchema,
    SelectServiceRequestSchema,
    ServiceSchema,
    StartBookingRequestSchema,
    TimeSlotSchema,
)
from massage_booking.application.exceptions import (
    CommitFailedError,
    CommitInProgressError,
    DraftValidationError,
    IntakeFormOwnershipError,
    PaymentError,
    PersistenceError,
    ServiceNotFoundError,
    SessionNotFoundError,
    VideoRoomError,
)
from massage_booking.application.use_cases.booking_wizard import BookingWizardUseCase
from massage_booking.application.use_cases.intake_forms import IntakeFormUseCase
from massage_booking.application.use_cases.payments import PaymentStepUseCase
from massage_booking.application.use_cases.step_sequencer import progress
from massage_booking.domain.entities.booking_draft import BookingSession, ClientInfo, TimeSlot
from massage_booking.wiring.dependencies import (
    get_booking_wizard,
    get_intake_form_use_case,
    get_payment_step_use_case,
)

router = APIRouter(prefix="/bookings")


@contextmanager
def _http_errors() -> Iterator[None]:
    try:
        yield
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Booking session not found")
    except ServiceNotFoundError:
        raise HTTPException(status_code=404, detail="Service not found")
    except IntakeFormOwnershipError:
        raise HTTPException(status_code=403, detail="Intake form does not belong to this client")
    except CommitInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except CommitFailedError as e:
        detail = ErrorDetailSchema(message=str(e), retryable=e.retryable, retry_step=int(e.retry_step))
        raise HTTPException(status_code=502, detail=detail.model_dump())
    except PaymentError as e:
        raise HTTPException(status_code=402, detail=str(e))
    except (PersistenceError, VideoRoomError) as e:
        raise HTTPException(status_code=502, detail=str(e))
    except DraftValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _session_schema(session: BookingSession, moved: bool | None = None) -> BookingSessionSchema:
    draft = session.draft
    service = draft.service
    info = draft.client_info
    step_progress = progress(session.current_step, draft)
    return BookingSessionSchema(
        session_id=session.session_id,
        current_step=int(session.current_step),
        step_name=session.current_step.name.lower(),
        draft=BookingDraftSchema(
            draft_id=draft.draft_id,
            client_id=draft.client_id,
            service=(
                ServiceSchema(
                    id=service.id,
                    name=service.name,
                    duration_minutes=service.duration_minutes,
                    price_cents=service.price_cents,
                    is_consultation=service.is_consultation,
                    description=service.description,
                )
                if service
                else None
            ),
            consultation_type=draft.consultation_type,
            date=draft.date,
            time_slot=(
                TimeSlotSchema(start=draft.time_slot.start, end=draft.time_slot.end) if draft.time_slot else None
            ),
            client_info=(
                ClientInfoSchema(
                    first_name=info.first_name,
                    last_name=info.last_name,
                    email=info.email,
                    phone=info.phone,
                )
                if info
                else None
            ),
            is_guest=draft.is_guest,
            is_new_client=draft.is_new_client,
            intake_form_id=draft.intake_form_id,
            intake_complete=draft.intake_complete,
            payment_preference=draft.payment_preference,
            payment_intent_id=draft.payment_intent_id,
            payment_confirmed=draft.payment_confirmed,
            appointment_id=draft.appointment_id,
            consultation_id=draft.consultation_id,
            confirmation_number=draft.confirmation_number,
            room_url=draft.room_url,
            reschedule_id=draft.reschedule_id,
        ),
        progress=ProgressSchema(
            current=step_progress.current,
            total=step_progress.total,
            percent=step_progress.percent,
            title=step_progress.title,
        ),
        moved=moved,
    )


@router.post("", response_model=BookingSessionSchema, status_code=201)
def start_booking(
    req: StartBookingRequestSchema,
    x_client_id: str | None = Header(default=None),
    uc: BookingWizardUseCase = Depends(get_booking_wizard),
):
    with _http_errors():
        session = uc.start(
            client_id=x_client_id,
            reschedule_id=req.reschedule_id,
            service_id=req.service_id,
            session_id=req.session_id,
        )
    return _session_schema(session)


@router.get("/{session_id}", response_model=BookingSessionSchema)
def get_booking(session_id: str, uc: BookingWizardUseCase = Depends(get_booking_wizard)):
    with _http_errors():
        session = uc.get(session_id)
    return _session_schema(session)


@router.delete("/{session_id}", status_code=204)
def discard_booking(session_id: str, uc: BookingWizardUseCase = Depends(get_booking_wizard)):
    with _http_errors():
        uc.discard(session_id)
    return Response(status_code=204)


@router.patch("/{session_id}", response_model=BookingSessionSchema)
def update_booking(
    session_id: str,
    req: DraftUpdateRequestSchema,
    uc: BookingWizardUseCase = Depends(get_booking_wizard),
):
    partial = {}
    for key in req.model_fields_set:
        value = getattr(req, key)
        if key == "time_slot" and value is not None:
            with _http_errors():
                value = TimeSlot(start=value.start, end=value.end)
        elif key == "client_info" and value is not None:
            value = ClientInfo(**value.model_dump())
        partial[key] = value

    with _http_errors():
        session = uc.update(session_id, **partial)
    return _session_schema(session)


@router.put("/{session_id}/service", response_model=BookingSessionSchema)
def select_service(
    session_id: str,
    req: SelectServiceRequestSchema,
    uc: BookingWizardUseCase = Depends(get_booking_wizard),
):
    with _http_errors():
        session = uc.select_service(session_id, req.service_id)
    return _session_schema(session)


@router.post("/{session_id}/next", response_model=BookingSessionSchema)
def next_step(session_id: str, uc: BookingWizardUseCase = Depends(get_booking_wizard)):
    with _http_errors():
        before = uc.get(session_id).current_step
        session = uc.next(session_id)
    return _session_schema(session, moved=session.current_step != before)


@router.post("/{session_id}/back", response_model=BookingSessionSchema)
def previous_step(session_id: str, uc: BookingWizardUseCase = Depends(get_booking_wizard)):
    with _http_errors():
        before = uc.get(session_id).current_step
        session = uc.back(session_id)
    return _session_schema(session, moved=session.current_step != before)


@router.get("/{session_id}/progress", response_model=ProgressSchema)
def booking_progress(session_id: str, uc: BookingWizardUseCase = Depends(get_booking_wizard)):
    with _http_errors():
        step_progress = uc.progress(session_id)
    return ProgressSchema(
        current=step_progress.current,
        total=step_progress.total,
        percent=step_progress.percent,
        title=step_progress.title,
    )


@router.post("/{session_id}/intake-form", response_model=IntakeStepResponseSchema)
def prepare_intake_form(session_id: str, uc: IntakeFormUseCase = Depends(get_intake_form_use_case)):
    with _http_errors():
        session, requirement = uc.prepare(session_id)
    return IntakeStepResponseSchema(
        session=_session_schema(session),
        requirement=IntakeRequirementSchema(
            required=requirement.required,
            form_type=requirement.form_type,
            last_form_date=requirement.last_form_date,
            days_since_last_form=requirement.days_since_last_form,
        ),
    )


@router.post("/{session_id}/intake-form/submit", response_model=BookingSessionSchema)
def submit_intake_form(
    session_id: str,
    req: IntakeSubmitRequestSchema,
    uc: IntakeFormUseCase = Depends(get_intake_form_use_case),
):
    with _http_errors():
        session = uc.submit(session_id, req.signature)
    return _session_schema(session)


@router.post("/{session_id}/payment-intent", response_model=PaymentIntentResponseSchema)
def create_payment_intent(session_id: str, uc: PaymentStepUseCase = Depends(get_payment_step_use_case)):
    with _http_errors():
        intent = uc.prepare(session_id)
    return PaymentIntentResponseSchema(
        payment_intent_id=intent.payment_intent_id,
        client_secret=intent.client_secret,
        amount_cents=intent.amount_cents,
    )


@router.post("/{session_id}/payment-confirmation", response_model=BookingSessionSchema)
def confirm_payment(
    session_id: str,
    req: PaymentConfirmationRequestSchema,
    uc: PaymentStepUseCase = Depends(get_payment_step_use_case),
):
    with _http_errors():
        session = uc.confirm(session_id, req.payment_intent_id)
    return _session_schema(session)


@router.post("/{session_id}/commit", response_model=CommitResponseSchema)
def commit_booking(session_id: str, uc: BookingWizardUseCase = Depends(get_booking_wizard)):
    with _http_errors():
        result = uc.commit(session_id)
    return CommitResponseSchema(
        appointment_id=result.appointment_id,
        confirmation_number=result.confirmation_number,
        consultation_id=result.consultation_id,
        room_url=result.room_url,
        warnings=list(result.warnings),
        already_committed=result.already_committed,
    )
