"""
Stripe payment client
"""

import logging
from typing import Dict, Optional

import stripe

logger = logging.getLogger(__name__)

UNCONFIGURED_MESSAGE = "Stripe is not configured. Please set STRIPE_SECRET_KEY in .env"


class ProviderUnconfigured(Exception):
    pass


class PaymentService:
    def __init__(self, secret_key: Optional[str] = None, currency: str = "bdt"):
        self.secret_key = secret_key
        self.currency = currency
        if not secret_key:
            logger.warning("STRIPE_SECRET_KEY not found in .env file")

    @property
    def configured(self) -> bool:
        return bool(self.secret_key)

    def create_payment_intent(self, amount: int, metadata: Dict[str, str]):
        """Create a Stripe payment intent for ``amount`` (smallest currency unit)."""
        if not self.configured:
            raise ProviderUnconfigured(UNCONFIGURED_MESSAGE)

        intent = stripe.PaymentIntent.create(
            amount=amount,
            currency=self.currency,
            metadata=metadata,
            api_key=self.secret_key,
        )
        logger.info("Created payment intent %s (%s %s)", intent.id, amount, self.currency)
        return intent
