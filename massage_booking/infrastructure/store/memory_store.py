from __future__ import annotations

import copy
import threading

from massage_booking.application.ports.draft_store import DraftStorePort
from massage_booking.domain.entities.booking_draft import BookingSession


class MemoryDraftStore(DraftStorePort):
    def __init__(self) -> None:
        self._sessions: dict[str, BookingSession] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> BookingSession | None:
        # Copies keep callers from mutating stored state without a save.
        with self._lock:
            session = self._sessions.get(session_id)
            return copy.deepcopy(session) if session is not None else None

    def save(self, session: BookingSession) -> None:
        with self._lock:
            self._sessions[session.session_id] = copy.deepcopy(session)

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)
