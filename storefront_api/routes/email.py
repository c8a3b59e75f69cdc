"""
Email Routes - Order confirmation delivery and mail configuration checks
"""

import logging
import traceback

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse

from ..config import Settings
from ..email_service import EmailService, compile_mjml_to_html, select_transport_config
from ..email_templates import configuration_check_template
from ..errors import TransportError, ValidationError
from ..schemas import SendInvoiceEmailRequest
from ..services.order_notifications import send_order_confirmation

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Email"])


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def error_content(settings: Settings, error: str, exc: Exception, **extra) -> dict:
    """Error body for 500 responses; the stack trace is only exposed outside production"""
    content = {"error": error, "details": str(exc), **extra}
    if not settings.is_production:
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return content


@router.post("/send-invoice-email")
async def send_invoice_email(
    body: SendInvoiceEmailRequest,
    settings: Settings = Depends(get_settings),
    email_service: EmailService = Depends(get_email_service),
):
    """Send the order confirmation / invoice email to the buyer"""
    missing = body.missing_fields()
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", missing)

    try:
        composed, result = await send_order_confirmation(
            email_service,
            settings,
            service=body.selected_service,
            payment=body.payment_data,
            payment_intent_id=body.payment_intent_id,
            order_number=body.order_number,
            order_date=body.order_date,
        )
    except Exception as e:
        logger.error(f"❌ Failed to send invoice email to {body.payment_data.email}: {e}")
        return JSONResponse(
            status_code=500, content=error_content(settings, "Failed to send invoice email", e)
        )

    response = {
        "success": True,
        "messageId": result.message_id,
        "orderNumber": composed.order_number,
    }
    if result.preview_url:
        response["previewUrl"] = result.preview_url
    return response


@router.post("/test-email")
async def send_test_email(
    settings: Settings = Depends(get_settings),
    email_service: EmailService = Depends(get_email_service),
):
    """Verify the selected mail transport and send a test email to the configured address"""
    service_name = select_transport_config(settings).name
    recipient = settings.test_email_to or settings.from_address

    try:
        transport = await email_service.verify()
        service_name = transport.name
        html = compile_mjml_to_html(
            configuration_check_template(
                service=service_name, brand_name=settings.brand_name, logo_url=settings.logo_url
            )
        )
        result = await email_service.send_email(
            to=recipient,
            subject=f"Test Email from {settings.brand_name}",
            html=html,
            text=f"If you're seeing this, your email setup is working correctly! (via {service_name})",
            transport=transport,
        )
    except Exception as e:
        if isinstance(e, TransportError) and e.service:
            service_name = e.service
        logger.error(f"❌ Test email via {service_name} failed: {e}")
        return JSONResponse(
            status_code=500,
            content=error_content(settings, "Test email failed", e, service=service_name),
        )

    response = {
        "success": True,
        "message": f"Test email sent to {recipient}",
        "service": service_name,
        "messageId": result.message_id,
    }
    if result.preview_url:
        response["previewUrl"] = result.preview_url
    return response


@router.get("/email-preview/{preview_id}", response_class=HTMLResponse)
async def preview_email(
    preview_id: str,
    email_service: EmailService = Depends(get_email_service),
):
    """Render an email captured by the local test sink"""
    captured = email_service.sink.get(preview_id)
    if not captured:
        return JSONResponse(status_code=404, content={"error": "Email preview not found"})
    return HTMLResponse(content=captured.email.html)
