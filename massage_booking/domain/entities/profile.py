from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ClientProfile:
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    role: str = "client"
    has_had_free_consultation: bool = False
    consultation_count: int = 0
    last_consultation_date: datetime | None = None


@dataclass(frozen=True)
class ConsultationEligibility:
    is_eligible: bool
    consultation_count: int = 0
    last_consultation_date: datetime | None = None
    error: str | None = None  # set when the lookup failed and the default was used
