from __future__ import annotations

import logging
from datetime import datetime

from massage_booking.application.exceptions import VideoRoomError
from massage_booking.application.ports.video_room import VideoRoomPort
from massage_booking.domain.entities.appointment import VideoRoom


class MockVideoRooms(VideoRoomPort):
    def __init__(self) -> None:
        self.rooms: dict[str, VideoRoom] = {}
        self.starts: dict[str, datetime | None] = {}
        self.fail = False
        self._logger = logging.getLogger(__name__)

    def create_room(
        self,
        consultation_id: str,
        participant_names: list[str],
        starts_at: datetime | None = None,
        duration_minutes: int = 30,
        owner_name: str | None = None,
    ) -> VideoRoom:
        if self.fail:
            raise VideoRoomError("Mock video provider unavailable")
        if starts_at is not None and starts_at.tzinfo is None:
            raise ValueError("starts_at must be timezone-aware")
        room_name = f"consultation-{consultation_id}"
        room = VideoRoom(
            room_url=f"https://mock.daily.co/{room_name}",
            room_name=room_name,
            tokens={name: f"token-{index}" for index, name in enumerate(participant_names)},
            owner_token="token-owner" if owner_name else None,
        )
        self.rooms[consultation_id] = room
        self.starts[consultation_id] = starts_at
        self._logger.info("Mock video room created", extra={"reason": room_name})
        return room
