from abc import ABC, abstractmethod

from massage_booking.domain.entities.appointment import BookingConfirmation


class NotificationPort(ABC):
    @abstractmethod
    def send_booking_confirmation(self, confirmation: BookingConfirmation) -> None:
        raise NotImplementedError
