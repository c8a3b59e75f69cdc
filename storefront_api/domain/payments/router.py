"""Payments router - FastAPI endpoint for payment intent creation"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...errors import GatewayError
from .schemas import CreatePaymentIntentRequest, PaymentIntentResponse
from .service import PaymentIntentGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


def get_payment_gateway(request: Request) -> PaymentIntentGateway:
    """Dependency injection for the gateway built at startup"""
    return request.app.state.payment_gateway


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: CreatePaymentIntentRequest,
    gateway: PaymentIntentGateway = Depends(get_payment_gateway),
):
    """Create a Stripe payment intent and return its client secret"""
    try:
        return await gateway.create_payment_intent(body.amount)
    except GatewayError as e:
        return JSONResponse(status_code=500, content={"error": str(e)})
    except Exception as e:
        logger.exception(f"Unexpected error creating payment intent: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
