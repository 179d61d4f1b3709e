from __future__ import annotations

import logging

import stripe

from massage_booking.application.exceptions import PaymentError
from massage_booking.application.ports.payments import PaymentPort
from massage_booking.core.config import settings
from massage_booking.domain.entities.appointment import PaymentIntent


class StripePayments(PaymentPort):
    def __init__(self, api_key: str | None = None, currency: str | None = None) -> None:
        self._api_key = api_key or settings.STRIPE_SECRET_KEY
        self._currency = currency or settings.STRIPE_CURRENCY
        self._logger = logging.getLogger(__name__)

        if not self._api_key:
            raise ValueError("STRIPE_SECRET_KEY is required for Stripe payments")

    def create_payment_intent(
        self,
        appointment_id: str,
        amount_cents: int,
        description: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> PaymentIntent:
        if amount_cents <= 0:
            raise PaymentError("Payment amount must be positive")
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self._api_key,
                amount=amount_cents,
                currency=self._currency,
                description=description or "",
                metadata={"appointment_id": appointment_id, **(metadata or {})},
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as e:
            self._logger.error(
                "Error creating payment intent",
                extra={"appointment_id": appointment_id, "error": str(e)},
            )
            raise PaymentError(f"Failed to create payment intent: {e}") from e

        return PaymentIntent(
            payment_intent_id=intent.id,
            client_secret=intent.client_secret,
            amount_cents=intent.amount,
        )

    def get_payment_status(self, payment_intent_id: str) -> str:
        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self._api_key)
        except stripe.StripeError as e:
            self._logger.error("Error retrieving payment intent", extra={"error": str(e)})
            raise PaymentError(f"Failed to retrieve payment intent: {e}") from e
        return intent.status
