from __future__ import annotations

import logging
import uuid

from massage_booking.application.exceptions import PaymentError
from massage_booking.application.ports.payments import PaymentPort
from massage_booking.domain.entities.appointment import PaymentIntent


class MockPayments(PaymentPort):
    def __init__(self, default_status: str = "succeeded") -> None:
        self.intents: dict[str, PaymentIntent] = {}
        self.statuses: dict[str, str] = {}
        self.default_status = default_status
        self.fail = False
        self._logger = logging.getLogger(__name__)

    def create_payment_intent(
        self,
        appointment_id: str,
        amount_cents: int,
        description: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> PaymentIntent:
        if self.fail:
            raise PaymentError("Mock payment provider unavailable")
        intent_id = f"pi_mock_{uuid.uuid4().hex[:16]}"
        intent = PaymentIntent(
            payment_intent_id=intent_id,
            client_secret=f"{intent_id}_secret_mock",
            amount_cents=amount_cents,
        )
        self.intents[intent_id] = intent
        self.statuses[intent_id] = self.default_status
        self._logger.info(
            "Mock payment intent created",
            extra={"appointment_id": appointment_id},
        )
        return intent

    def get_payment_status(self, payment_intent_id: str) -> str:
        if payment_intent_id not in self.statuses:
            raise PaymentError(f"Unknown payment intent {payment_intent_id}")
        return self.statuses[payment_intent_id]
