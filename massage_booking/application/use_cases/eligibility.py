from __future__ import annotations

import logging
from datetime import date

from massage_booking.application.exceptions import PersistenceError
from massage_booking.application.ports.persistence import PersistencePort
from massage_booking.domain.entities.enums import FormType
from massage_booking.domain.entities.intake_form import IntakeRequirement
from massage_booking.domain.entities.profile import ConsultationEligibility


class EligibilityResolver:
    """
    Decides whether a client owes an intake form before an appointment and
    whether they can still book the free consultation.

    Both lookups are read-only; the free-consultation flag is flipped
    elsewhere once a consultation is completed.
    """

    def __init__(
        self,
        persistence: PersistencePort,
        quick_update_after_days: int,
        full_refresh_after_days: int,
    ) -> None:
        if quick_update_after_days > full_refresh_after_days:
            raise ValueError("quick_update_after_days must not exceed full_refresh_after_days")
        self._persistence = persistence
        self._quick_update_after_days = quick_update_after_days
        self._full_refresh_after_days = full_refresh_after_days
        self._logger = logging.getLogger(__name__)

    def resolve_intake_requirement(self, client_id: str, candidate_date: date) -> IntakeRequirement:
        try:
            latest = self._persistence.query_latest_intake_form(client_id)
        except PersistenceError as e:
            # Fail toward collecting more information, never less.
            self._logger.warning(
                "Intake lookup failed, defaulting to new client form",
                extra={"client_id": client_id, "error": str(e)},
            )
            return IntakeRequirement(required=True, form_type=FormType.new_client)

        if latest is None:
            return IntakeRequirement(required=True, form_type=FormType.new_client)

        if latest.submitted_at is None:
            return IntakeRequirement(required=True, form_type=FormType.returning_client)

        last_form_date = latest.submitted_at
        days_since = (candidate_date - last_form_date.date()).days

        if days_since > self._full_refresh_after_days:
            return IntakeRequirement(
                required=True,
                form_type=FormType.returning_client,
                last_form_date=last_form_date,
                days_since_last_form=days_since,
            )

        if days_since > self._quick_update_after_days:
            return IntakeRequirement(
                required=True,
                form_type=FormType.quick_update,
                last_form_date=last_form_date,
                days_since_last_form=days_since,
            )

        return IntakeRequirement(
            required=False,
            form_type=FormType.quick_update,
            last_form_date=last_form_date,
            days_since_last_form=days_since,
        )

    def resolve_consultation_eligibility(self, client_id: str | None) -> ConsultationEligibility:
        # Anonymous visitors are eligible; a profile is created for them at booking.
        if not client_id:
            return ConsultationEligibility(is_eligible=True)

        try:
            profile = self._persistence.query_profile(client_id)
        except PersistenceError as e:
            self._logger.error(
                "Consultation eligibility lookup failed",
                extra={"client_id": client_id, "error": str(e)},
            )
            return ConsultationEligibility(
                is_eligible=True,
                error="Failed to check consultation eligibility",
            )

        if profile is None:
            return ConsultationEligibility(is_eligible=True)

        return ConsultationEligibility(
            is_eligible=not profile.has_had_free_consultation and profile.consultation_count == 0,
            consultation_count=profile.consultation_count,
            last_consultation_date=profile.last_consultation_date,
        )
