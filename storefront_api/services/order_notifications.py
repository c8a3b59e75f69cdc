"""
Order notification composer
Builds the order confirmation email (subject, HTML and plain text) for a completed checkout
"""

import logging
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..config import Settings
from ..email_service import EmailService, SendResult, compile_mjml_to_html
from ..email_templates import (
    DEFAULT_CUSTOMER_NAME,
    order_confirmation_template,
    order_confirmation_text,
)
from ..schemas import Address, PaymentData, ServiceSelection
from ..utils.sanitization import format_currency, sanitize_string

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"


@dataclass
class ComposedEmail:
    subject: str
    html_body: str
    text_body: str
    order_number: str
    order_date: str


def generate_order_number() -> str:
    """ORD-<epoch millis>-<0..999>; two orders in the same millisecond may collide"""
    return f"ORD-{int(time.time() * 1000)}-{secrets.randbelow(1000)}"


def format_order_date(value: str) -> str:
    """Render an ISO-8601 timestamp as e.g. 'January 5, 2025'; unparseable values are shown as given"""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return value
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def format_address(address: Optional[Address]) -> Optional[str]:
    if not address:
        return None

    city_state = ", ".join(part for part in [address.city, address.state] if part)
    locality = " ".join(part for part in [city_state, address.postal_code] if part)
    lines = [address.line1, address.line2, locality, address.country]
    lines = [sanitize_string(line) for line in lines if line]
    return "<br/>".join(lines) if lines else None


def build_subject(order_number: str, brand_name: str) -> str:
    return f"Order Confirmation #{order_number} - {brand_name}"


def compose_order_confirmation(
    service: ServiceSelection,
    payment: PaymentData,
    *,
    brand_name: str,
    logo_url: Optional[str] = None,
    payment_intent_id: Optional[str] = None,
    order_number: Optional[str] = None,
    order_date: Optional[str] = None,
) -> ComposedEmail:
    """
    Compose the order confirmation email.

    Args:
        service: The purchased service
        payment: Buyer contact and billing details
        brand_name: Store name used in the subject and footer
        logo_url: Absolute URL of the logo shown at the top of the email
        payment_intent_id: Stripe payment reference, shown as N/A when absent
        order_number: Caller-supplied order number, used verbatim; generated when absent
        order_date: ISO-8601 timestamp; defaults to now

    Returns:
        ComposedEmail with subject, compiled HTML and plain-text bodies
    """
    order_number = order_number or generate_order_number()
    order_date = order_date or datetime.now(timezone.utc).isoformat()

    total = service.price if service.price is not None else 0
    total_display = format_currency(total)
    display_date = format_order_date(order_date)
    customer_name = payment.name or DEFAULT_CUSTOMER_NAME
    service_name = service.name or "Service"
    category = service.display_category or NOT_AVAILABLE
    payment_reference = payment_intent_id or NOT_AVAILABLE

    mjml_content = order_confirmation_template(
        customer_name=sanitize_string(customer_name),
        order_number=sanitize_string(order_number),
        order_date=sanitize_string(display_date),
        service_name=sanitize_string(service_name),
        service_price=total_display,
        category=sanitize_string(category),
        subtotal=total_display,
        total=total_display,
        payment_reference=sanitize_string(payment_reference),
        brand_name=sanitize_string(brand_name),
        logo_url=sanitize_string(logo_url),
        billing_address=format_address(payment.address),
    )

    text_body = order_confirmation_text(
        customer_name=customer_name,
        order_number=order_number,
        order_date=display_date,
        service_name=service_name,
        category=category,
        total=total_display,
        payment_reference=payment_reference,
        brand_name=brand_name,
    )

    return ComposedEmail(
        subject=build_subject(order_number, brand_name),
        html_body=compile_mjml_to_html(mjml_content),
        text_body=text_body,
        order_number=order_number,
        order_date=order_date,
    )


async def send_order_confirmation(
    email_service: EmailService,
    settings: Settings,
    service: ServiceSelection,
    payment: PaymentData,
    payment_intent_id: Optional[str] = None,
    order_number: Optional[str] = None,
    order_date: Optional[str] = None,
) -> tuple[ComposedEmail, SendResult]:
    """Compose the order confirmation and send it to the buyer"""
    composed = compose_order_confirmation(
        service,
        payment,
        brand_name=settings.brand_name,
        logo_url=settings.logo_url,
        payment_intent_id=payment_intent_id,
        order_number=order_number,
        order_date=order_date,
    )

    result = await email_service.send_email(
        to=payment.email,
        subject=composed.subject,
        html=composed.html_body,
        text=composed.text_body,
    )
    logger.info(f"✅ Order confirmation {composed.order_number} sent to {payment.email}")
    return composed, result
