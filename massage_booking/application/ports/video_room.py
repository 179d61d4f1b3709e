from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from massage_booking.domain.entities.appointment import VideoRoom


class VideoRoomPort(ABC):
    @abstractmethod
    def create_room(
        self,
        consultation_id: str,
        participant_names: list[str],
        starts_at: datetime | None = None,
        duration_minutes: int = 30,
        owner_name: str | None = None,
    ) -> VideoRoom:
        """
        Provision a private room with one meeting token per participant.

        `owner_name` gets its own owner token, kept apart from the
        participant tokens. `starts_at` must be timezone-aware.
        """
        raise NotImplementedError
