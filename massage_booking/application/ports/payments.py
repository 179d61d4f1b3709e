from __future__ import annotations

from abc import ABC, abstractmethod

from massage_booking.domain.entities.appointment import PaymentIntent


class PaymentPort(ABC):
    @abstractmethod
    def create_payment_intent(
        self,
        appointment_id: str,
        amount_cents: int,
        description: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> PaymentIntent:
        """Create a payment intent against an existing appointment."""
        raise NotImplementedError

    @abstractmethod
    def get_payment_status(self, payment_intent_id: str) -> str:
        """Provider status string, e.g. "succeeded" or "requires_payment_method"."""
        raise NotImplementedError
