from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ServiceSelection(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None
    category_name: Optional[str] = Field(default=None, alias="categoryName")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def display_category(self) -> Optional[str]:
        return self.category or self.category_name


class Address(BaseModel):
    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class PaymentData(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[Address] = None


class SendInvoiceEmailRequest(BaseModel):
    selected_service: Optional[ServiceSelection] = Field(default=None, alias="selectedService")
    payment_data: Optional[PaymentData] = Field(default=None, alias="paymentData")
    payment_intent_id: Optional[str] = Field(default=None, alias="paymentIntentId")
    order_number: Optional[str] = Field(default=None, alias="orderNumber")
    order_date: Optional[str] = Field(default=None, alias="orderDate")

    model_config = ConfigDict(populate_by_name=True)

    def missing_fields(self) -> list[str]:
        """Required fields absent from the request, using their wire names"""
        missing = []
        if self.selected_service is None:
            missing.append("selectedService")
        if self.payment_data is None or not (self.payment_data.email or "").strip():
            missing.append("paymentData.email")
        return missing
