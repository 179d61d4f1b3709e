from __future__ import annotations

import json
import logging
import threading
from datetime import date, time
from pathlib import Path
from typing import Any

from massage_booking.application.ports.draft_store import DraftStorePort
from massage_booking.domain.entities.booking_draft import BookingDraft, BookingSession, ClientInfo, TimeSlot
from massage_booking.domain.entities.enums import ConsultationType, PaymentPreference
from massage_booking.domain.entities.service import ServiceDescriptor
from massage_booking.domain.entities.step import BookingStep

SCHEMA_VERSION = 1


class JsonDraftStore(DraftStorePort):
    def __init__(self, data_dir: str = "./data/drafts") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._logger = logging.getLogger(__name__)

    def _get_lock(self, session_id: str) -> threading.Lock:
        """Get or create a lock for a session_id."""
        with self._lock_lock:
            if session_id not in self._locks:
                self._locks[session_id] = threading.Lock()
            return self._locks[session_id]

    def _get_file_path(self, session_id: str) -> Path:
        safe_id = "".join(ch for ch in session_id if ch.isalnum() or ch in "-_")
        return self._data_dir / f"{safe_id}.json"

    def get(self, session_id: str) -> BookingSession | None:
        file_path = self._get_file_path(session_id)
        with self._get_lock(session_id):
            if not file_path.exists():
                return None
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                # A corrupted draft is treated as expired.
                self._logger.warning("Unreadable booking draft", extra={"draft_id": session_id, "error": str(e)})
                return None
        return _deserialize_session(data)

    def save(self, session: BookingSession) -> None:
        """Save session data to a JSON file atomically."""
        file_path = self._get_file_path(session.session_id)
        temp_path = file_path.with_suffix(".json.tmp")
        data = _serialize_session(session)

        with self._get_lock(session.session_id):
            try:
                with open(temp_path, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                temp_path.replace(file_path)
            except Exception:
                if temp_path.exists():
                    temp_path.unlink(missing_ok=True)
                raise

    def delete(self, session_id: str) -> None:
        with self._get_lock(session_id):
            self._get_file_path(session_id).unlink(missing_ok=True)
        with self._lock_lock:
            self._locks.pop(session_id, None)


def _serialize_session(session: BookingSession) -> dict[str, Any]:
    return {
        "version": SCHEMA_VERSION,
        "session_id": session.session_id,
        "current_step": int(session.current_step),
        "created_at": session.created_at,
        "updated_at": session.updated_at,
        "draft": _serialize_draft(session.draft),
    }


def _serialize_draft(draft: BookingDraft) -> dict[str, Any]:
    service = draft.service
    return {
        "draft_id": draft.draft_id,
        "client_id": draft.client_id,
        "service": (
            {
                "id": service.id,
                "name": service.name,
                "duration_minutes": service.duration_minutes,
                "price_cents": service.price_cents,
                "is_consultation": service.is_consultation,
                "description": service.description,
                "is_active": service.is_active,
            }
            if service
            else None
        ),
        "consultation_type": draft.consultation_type.value if draft.consultation_type else None,
        "date": draft.date.isoformat() if draft.date else None,
        "time_slot": (
            {"start": draft.time_slot.start.isoformat(), "end": draft.time_slot.end.isoformat()}
            if draft.time_slot
            else None
        ),
        "client_info": (
            {
                "first_name": draft.client_info.first_name,
                "last_name": draft.client_info.last_name,
                "email": draft.client_info.email,
                "phone": draft.client_info.phone,
            }
            if draft.client_info
            else None
        ),
        "is_guest": draft.is_guest,
        "is_new_client": draft.is_new_client,
        "intake_form_id": draft.intake_form_id,
        "intake_complete": draft.intake_complete,
        "intake_deferred": draft.intake_deferred,
        "payment_preference": draft.payment_preference.value if draft.payment_preference else None,
        "payment_intent_id": draft.payment_intent_id,
        "payment_client_secret": draft.payment_client_secret,
        "payment_confirmed": draft.payment_confirmed,
        "appointment_id": draft.appointment_id,
        "consultation_id": draft.consultation_id,
        "confirmation_number": draft.confirmation_number,
        "room_url": draft.room_url,
        "reschedule_id": draft.reschedule_id,
    }


def _deserialize_session(data: dict[str, Any]) -> BookingSession:
    return BookingSession(
        session_id=data["session_id"],
        draft=_deserialize_draft(data.get("draft", {})),
        current_step=BookingStep(data.get("current_step", BookingStep.SERVICE)),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
    )


def _deserialize_draft(data: dict[str, Any]) -> BookingDraft:
    service_data = data.get("service")
    slot_data = data.get("time_slot")
    info_data = data.get("client_info")
    consultation_type = data.get("consultation_type")
    preference = data.get("payment_preference")
    draft_date = data.get("date")

    draft = BookingDraft(client_id=data.get("client_id"))
    if data.get("draft_id"):
        draft.draft_id = data["draft_id"]
    draft.service = ServiceDescriptor(**service_data) if service_data else None
    draft.consultation_type = ConsultationType(consultation_type) if consultation_type else None
    draft.date = date.fromisoformat(draft_date) if draft_date else None
    draft.time_slot = (
        TimeSlot(start=time.fromisoformat(slot_data["start"]), end=time.fromisoformat(slot_data["end"]))
        if slot_data
        else None
    )
    draft.client_info = ClientInfo(**info_data) if info_data else None
    draft.is_guest = data.get("is_guest", False)
    draft.is_new_client = data.get("is_new_client", True)
    draft.intake_form_id = data.get("intake_form_id")
    draft.intake_complete = data.get("intake_complete", False)
    draft.intake_deferred = data.get("intake_deferred", False)
    draft.payment_preference = PaymentPreference(preference) if preference else None
    draft.payment_intent_id = data.get("payment_intent_id")
    draft.payment_client_secret = data.get("payment_client_secret")
    draft.payment_confirmed = data.get("payment_confirmed", False)
    draft.appointment_id = data.get("appointment_id")
    draft.consultation_id = data.get("consultation_id")
    draft.confirmation_number = data.get("confirmation_number")
    draft.room_url = data.get("room_url")
    draft.reschedule_id = data.get("reschedule_id")
    return draft
