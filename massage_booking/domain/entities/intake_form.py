from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from massage_booking.domain.entities.enums import FormStatus, FormType


@dataclass(frozen=True)
class IntakeForm:
    id: str
    client_id: str
    form_type: FormType
    status: FormStatus = FormStatus.draft
    appointment_id: str | None = None
    submitted_at: datetime | None = None

    @property
    def is_submitted(self) -> bool:
        return self.status in (FormStatus.submitted, FormStatus.reviewed)


@dataclass(frozen=True)
class IntakeRequirement:
    required: bool
    form_type: FormType
    last_form_date: datetime | None = None
    days_since_last_form: int | None = None
