from __future__ import annotations

import logging
import threading
from collections import OrderedDict

import resend

from massage_booking.application.exceptions import NotificationError
from massage_booking.application.ports.notifications import NotificationPort
from massage_booking.core.config import settings
from massage_booking.domain.entities.appointment import BookingConfirmation
from massage_booking.infrastructure.notifications.templates import (
    render_confirmation_html,
    render_confirmation_text,
    subject_for,
)


class ResendNotifier(NotificationPort):
    def __init__(
        self,
        api_key: str | None = None,
        from_address: str | None = None,
        remember_last: int = 1000,
    ) -> None:
        self._api_key = api_key or settings.RESEND_API_KEY
        self._from_address = from_address or settings.EMAIL_FROM_ADDRESS
        # Recently sent appointment ids, oldest first.
        self._sent: OrderedDict[str, None] = OrderedDict()
        self._remember_last = remember_last
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

        if not self._api_key:
            raise ValueError("RESEND_API_KEY is required for email notifications")
        resend.api_key = self._api_key

    def send_booking_confirmation(self, confirmation: BookingConfirmation) -> None:
        with self._lock:
            if confirmation.appointment_id in self._sent:
                self._logger.info(
                    "Confirmation already sent, skipping",
                    extra={"appointment_id": confirmation.appointment_id},
                )
                return
            self._sent[confirmation.appointment_id] = None
            while len(self._sent) > self._remember_last:
                self._sent.popitem(last=False)

        render_args = (
            confirmation,
            settings.THERAPIST_NAME,
            settings.BUSINESS_NAME,
            settings.BUSINESS_ADDRESS,
            settings.APP_URL,
        )
        try:
            resend.Emails.send(
                {
                    "from": self._from_address,
                    "to": [confirmation.email],
                    "subject": subject_for(confirmation),
                    "html": render_confirmation_html(*render_args),
                    "text": render_confirmation_text(*render_args),
                }
            )
        except Exception as e:
            with self._lock:
                self._sent.pop(confirmation.appointment_id, None)
            self._logger.error(
                "Error sending confirmation email",
                extra={"appointment_id": confirmation.appointment_id, "error": str(e)},
            )
            raise NotificationError(f"Failed to send confirmation email: {e}") from e

        self._logger.info("Confirmation email sent", extra={"appointment_id": confirmation.appointment_id})
