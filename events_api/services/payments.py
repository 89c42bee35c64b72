import logging
import math

import stripe

from events_api.core.config import settings
from events_api.services.errors import InvalidAmountError, PaymentProcessorError

logger = logging.getLogger(__name__)


class StripeGateway:
    """Creates payment intents with Stripe; nothing is stored locally."""

    def __init__(self, api_key: str, currency: str = "usd"):
        self.api_key = api_key
        self.currency = currency

    def create_intent(self, amount_minor: int) -> str:
        intent = stripe.PaymentIntent.create(
            amount=amount_minor,
            currency=self.currency,
            payment_method_types=["card"],
            api_key=self.api_key,
        )
        return intent.client_secret


def get_payment_gateway() -> StripeGateway:
    return StripeGateway(settings.stripe_secret_key, settings.payment_currency)


def to_minor_units(price: float) -> int:
    # Halves round up, never to even.
    return math.floor(price * 100 + 0.5)


def create_payment_intent(gateway, price: float) -> str:
    if price <= 0 or price < settings.payment_min_amount:
        raise InvalidAmountError("Invalid amount")

    amount = to_minor_units(price)
    try:
        client_secret = gateway.create_intent(amount)
    except stripe.StripeError as e:
        logger.exception("Payment intent creation failed for amount %s", amount)
        raise PaymentProcessorError("Failed to create payment intent") from e

    logger.info("Payment intent created for amount %s", amount)
    return client_secret
