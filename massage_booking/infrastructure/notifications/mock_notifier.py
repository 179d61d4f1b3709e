from __future__ import annotations

import logging

from massage_booking.application.exceptions import NotificationError
from massage_booking.application.ports.notifications import NotificationPort
from massage_booking.domain.entities.appointment import BookingConfirmation


class MockNotifier(NotificationPort):
    def __init__(self) -> None:
        self.sent: list[BookingConfirmation] = []
        self.fail = False
        self._logger = logging.getLogger(__name__)

    def send_booking_confirmation(self, confirmation: BookingConfirmation) -> None:
        if self.fail:
            raise NotificationError("Mock email provider unavailable")
        if any(c.appointment_id == confirmation.appointment_id for c in self.sent):
            return
        self.sent.append(confirmation)
        self._logger.info(
            "Mock confirmation email",
            extra={"appointment_id": confirmation.appointment_id, "reason": confirmation.email},
        )
