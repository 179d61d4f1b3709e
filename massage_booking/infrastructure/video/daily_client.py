from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any

import httpx

from massage_booking.application.exceptions import VideoRoomError
from massage_booking.application.ports.video_room import VideoRoomPort
from massage_booking.core.config import settings
from massage_booking.domain.entities.appointment import VideoRoom


class DailyVideoRooms(VideoRoomPort):
    """Private two-person consultation rooms on Daily.co."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key or settings.DAILY_API_KEY
        self._base_url = (base_url or settings.DAILY_BASE_URL).rstrip("/")
        self._client = client or httpx.Client(timeout=10.0)
        self._logger = logging.getLogger(__name__)

        if not self._api_key:
            raise ValueError("DAILY_API_KEY is required for Daily.co video rooms")

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"}

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self._client.post(f"{self._base_url}{path}", json=payload, headers=self._headers())
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            self._logger.error("Daily.co request failed", extra={"reason": path, "error": str(e)})
            raise VideoRoomError(f"Daily.co request to {path} failed: {e}") from e

    def create_room(
        self,
        consultation_id: str,
        participant_names: list[str],
        starts_at: datetime | None = None,
        duration_minutes: int = 30,
        owner_name: str | None = None,
    ) -> VideoRoom:
        if starts_at is not None and starts_at.tzinfo is None:
            raise ValueError("starts_at must be timezone-aware")
        not_before = int(starts_at.timestamp()) if starts_at else int(time.time())
        room_name = f"consultation-{consultation_id}-{int(time.time() * 1000)}"

        room = self._post(
            "/rooms",
            {
                "name": room_name,
                "privacy": "private",
                "properties": {
                    "max_participants": 2,
                    "enable_recording": False,
                    "enable_chat": True,
                    "enable_screenshare": True,
                    "enable_knocking": True,
                    "exp": not_before + duration_minutes * 60,
                    "nbf": not_before,
                    "lang": "en",
                },
            },
        )
        room_url = room.get("url")
        if not room_url:
            raise VideoRoomError("No room URL returned from Daily.co")
        room_name = room.get("name") or room_name

        tokens = {name: self._meeting_token(room_name, name, is_owner=False) for name in participant_names}
        owner_token = self._meeting_token(room_name, owner_name, is_owner=True) if owner_name else None

        self._logger.info("Video room created", extra={"reason": room_name})
        return VideoRoom(room_url=room_url, room_name=room_name, tokens=tokens, owner_token=owner_token)

    def _meeting_token(self, room_name: str, user_name: str, is_owner: bool) -> str:
        data = self._post(
            "/meeting-tokens",
            {
                "properties": {
                    "room_name": room_name,
                    "user_name": user_name,
                    "is_owner": is_owner,
                    "enable_screenshare": is_owner,
                    "enable_recording": False,
                }
            },
        )
        token = data.get("token")
        if not token:
            raise VideoRoomError("No meeting token returned from Daily.co")
        return token
