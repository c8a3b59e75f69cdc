"""Payments domain schemas - Pydantic models for validation"""

import math
from typing import Union

from pydantic import BaseModel, StrictFloat, StrictInt, field_validator


class CreatePaymentIntentRequest(BaseModel):
    """Schema for creating a payment intent; amount is in dollars"""

    # Strict so JSON booleans and numeric strings are refused instead of coerced
    amount: Union[StrictInt, StrictFloat]

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Union[int, float]) -> Union[int, float]:
        if not math.isfinite(v) or v <= 0:
            raise ValueError("amount must be a positive number")
        return v


class PaymentIntentResponse(BaseModel):
    clientSecret: str  # noqa: N815 - wire name used by the storefront
