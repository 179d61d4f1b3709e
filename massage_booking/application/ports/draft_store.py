from abc import ABC, abstractmethod

from massage_booking.domain.entities.booking_draft import BookingSession


class DraftStorePort(ABC):
    @abstractmethod
    def get(self, session_id: str) -> BookingSession | None:
        raise NotImplementedError

    @abstractmethod
    def save(self, session: BookingSession) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, session_id: str) -> None:
        raise NotImplementedError
