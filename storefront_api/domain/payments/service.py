"""Payment intent gateway - Integration with the Stripe API"""

import logging
import math
from typing import Optional

import stripe

from ...errors import GatewayError

logger = logging.getLogger(__name__)

CURRENCY = "usd"


def to_minor_units(amount_dollars: float) -> int:
    """Convert dollars to cents, rounding half up to the nearest cent"""
    return int(math.floor(amount_dollars * 100 + 0.5))


def processor_message(error: stripe.StripeError) -> str:
    """Stripe's own error message, without the request id that str() prefixes"""
    if error.user_message:
        return error.user_message
    body = getattr(error, "error", None)
    if body is not None and getattr(body, "message", None):
        return body.message
    return f"Payment processor error ({type(error).__name__})"


class PaymentIntentGateway:
    """Service for Stripe payment intent operations"""

    def __init__(
        self,
        api_key: str,
        timeout: float = 30,
        client: Optional[stripe.StripeClient] = None,
    ):
        if client is not None:
            self.client = client
        else:
            self.client = stripe.StripeClient(
                api_key,
                http_client=stripe.HTTPXClient(timeout=timeout),
                max_network_retries=0,
            )
            logger.info(f"Stripe client initialized (timeout={timeout:g}s)")

    async def create_payment_intent(self, amount_dollars: float) -> dict:
        """
        Create a payment intent for the given dollar amount.

        The amount is sent in cents with automatic payment methods enabled, and the
        processor's client secret is returned untouched for the storefront to confirm.

        Raises:
            GatewayError: Stripe rejected the request or could not be reached
        """
        amount = to_minor_units(amount_dollars)
        logger.info(f"Creating payment intent for ${amount_dollars} ({amount} {CURRENCY})")

        try:
            payment_intent = await self.client.v1.payment_intents.create_async(
                params={
                    "amount": amount,
                    "currency": CURRENCY,
                    "automatic_payment_methods": {"enabled": True},
                }
            )
        except stripe.StripeError as e:
            message = processor_message(e)
            logger.error(f"❌ Stripe payment intent failed: {message}")
            raise GatewayError(message) from e

        logger.info(f"✅ Payment intent created: {payment_intent.id}")
        return {"clientSecret": payment_intent.client_secret}
