from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ServiceDescriptor:
    id: str
    name: str
    duration_minutes: int
    price_cents: int
    is_consultation: bool = False
    description: str | None = None
    is_active: bool = True
