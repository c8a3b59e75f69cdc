"""Payments domain - Payment intent creation through Stripe"""

from .router import router
from .service import PaymentIntentGateway

__all__ = ["router", "PaymentIntentGateway"]
