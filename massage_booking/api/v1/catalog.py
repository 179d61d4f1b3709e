from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from massage_booking.api.v1.schemas import (
    ConsultationEligibilitySchema,
    IntakeRequirementSchema,
    ServiceSchema,
)
from massage_booking.application.exceptions import PersistenceError
from massage_booking.application.ports.persistence import PersistencePort
from massage_booking.application.use_cases.eligibility import EligibilityResolver
from massage_booking.wiring.dependencies import get_eligibility_resolver, get_persistence

router = APIRouter()


@router.get("/services", response_model=list[ServiceSchema])
def list_services(persistence: PersistencePort = Depends(get_persistence)):
    try:
        services = persistence.list_services(active_only=True)
    except PersistenceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return [
        ServiceSchema(
            id=s.id,
            name=s.name,
            duration_minutes=s.duration_minutes,
            price_cents=s.price_cents,
            is_consultation=s.is_consultation,
            description=s.description,
        )
        for s in services
    ]


@router.get("/clients/{client_id}/consultation-eligibility", response_model=ConsultationEligibilitySchema)
def consultation_eligibility(
    client_id: str,
    resolver: EligibilityResolver = Depends(get_eligibility_resolver),
):
    result = resolver.resolve_consultation_eligibility(client_id)
    return ConsultationEligibilitySchema(
        is_eligible=result.is_eligible,
        consultation_count=result.consultation_count,
        last_consultation_date=result.last_consultation_date,
        error=result.error,
    )


@router.get("/clients/{client_id}/intake-requirement", response_model=IntakeRequirementSchema)
def intake_requirement(
    client_id: str,
    candidate_date: date = Query(alias="date"),
    resolver: EligibilityResolver = Depends(get_eligibility_resolver),
):
    result = resolver.resolve_intake_requirement(client_id, candidate_date)
    return IntakeRequirementSchema(
        required=result.required,
        form_type=result.form_type,
        last_form_date=result.last_form_date,
        days_since_last_form=result.days_since_last_form,
    )
