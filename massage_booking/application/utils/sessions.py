from __future__ import annotations

import time

from massage_booking.application.exceptions import SessionNotFoundError
from massage_booking.application.ports.draft_store import DraftStorePort
from massage_booking.domain.entities.booking_draft import BookingSession


def load_session(store: DraftStorePort, session_id: str) -> BookingSession:
    session = store.get(session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    return session


def save_session(store: DraftStorePort, session: BookingSession, now_ts: float | None = None) -> None:
    now_ts = time.time() if now_ts is None else now_ts
    if session.created_at is None:
        session.created_at = now_ts
    session.updated_at = now_ts
    store.save(session)
