"""
MJML Email Templates
Order confirmation and test emails, compiled to HTML by the email service
"""

from typing import Optional

# Storefront theme colors - Indigo/Slate color scheme
THEME = {
    "primary": "#4f46e5",
    "primary_dark": "#4338ca",
    "primary_light": "#e0e7ff",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
}

DEFAULT_CUSTOMER_NAME = "Valued Customer"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    brand_name: str,
    logo_url: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    # A broken logo must not leave an empty frame in the email, so the image hides itself
    logo_section = ""
    if logo_url:
        logo_section = f"""
        <mj-section background-color="#ffffff" padding="32px 20px 0 20px">
          <mj-column>
            <mj-text align="center" padding="0">
              <img src="{logo_url}" alt="{brand_name}" width="140" style="max-width: 140px; height: auto;" onerror="this.style.display='none'" />
            </mj-text>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        {logo_section}

        <mj-section background-color="#ffffff" padding="24px 40px 0 40px">
          <mj-column>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 32px 0" />
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              Thank you for shopping with {brand_name}.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _summary_row(label: str, value: str, bold: bool = False) -> str:
    weight = "700" if bold else "400"
    return f"""
        <tr>
          <td style="padding: 10px 0; border-bottom: 1px solid {THEME['border']}; font-weight: {weight};">{label}</td>
          <td style="padding: 10px 0; border-bottom: 1px solid {THEME['border']}; text-align: right; font-weight: {weight};">{value}</td>
        </tr>"""


def order_confirmation_template(
    customer_name: str,
    order_number: str,
    order_date: str,
    service_name: str,
    service_price: str,
    category: str,
    subtotal: str,
    total: str,
    payment_reference: str,
    brand_name: str,
    logo_url: Optional[str] = None,
    billing_address: Optional[str] = None,
) -> str:
    """
    Order confirmation MJML template sent after a successful checkout

    All values must already be escaped and formatted; subtotal and total are rendered
    exactly as given.
    """
    address_section = ""
    if billing_address:
        address_section = f"""
    <mj-text font-size="14px" color="{THEME['text_muted']}" padding="16px 0 0 0">
      <strong>Billing Address</strong><br/>
      {billing_address}
    </mj-text>
        """

    content = f"""
    <mj-text>
      Hi {customer_name},
    </mj-text>

    <mj-text>
      Thank you for your order! We've received your payment and your order is confirmed.
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}" padding="8px 0 16px 0">
      Order Number: <strong>{order_number}</strong><br/>
      Order Date: {order_date}
    </mj-text>

    <mj-text padding="0">
      <table width="100%" cellpadding="0" cellspacing="0" style="font-size: 15px; color: {THEME['text_secondary']};">
        <tr>
          <td style="padding: 10px 0; border-bottom: 2px solid {THEME['border']};">
            <strong>{service_name}</strong><br/>
            <span style="font-size: 13px; color: {THEME['text_muted']};">{category}</span>
          </td>
          <td style="padding: 10px 0; border-bottom: 2px solid {THEME['border']}; text-align: right;">{service_price}</td>
        </tr>{_summary_row("Subtotal", subtotal)}{_summary_row("Total", total, bold=True)}
      </table>
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}" padding="16px 0 0 0">
      Payment Reference: {payment_reference}
    </mj-text>

    {address_section}

    <mj-text font-size="13px" color="{THEME['text_muted']}" padding="24px 0 0 0">
      This is an automated confirmation email. Please keep it for your records.
    </mj-text>
    """

    return get_base_template(
        title="Order Confirmation",
        preview_text=f"Order Confirmation #{order_number}",
        content_sections=content,
        brand_name=brand_name,
        logo_url=logo_url,
    )


def order_confirmation_text(
    customer_name: str,
    order_number: str,
    order_date: str,
    service_name: str,
    category: str,
    total: str,
    payment_reference: str,
    brand_name: str,
) -> str:
    """Plain-text fallback for clients that do not render HTML"""
    return "\n".join(
        [
            f"Hi {customer_name},",
            "",
            "Thank you for your order! Your order is confirmed.",
            "",
            f"Order Number: {order_number}",
            f"Order Date: {order_date}",
            f"Service: {service_name}",
            f"Category: {category}",
            f"Total: {total}",
            f"Payment Reference: {payment_reference}",
            "",
            f"Thank you for shopping with {brand_name}.",
        ]
    )


def configuration_check_template(service: str, brand_name: str, logo_url: Optional[str] = None) -> str:
    """Test email MJML template used to check the mail configuration"""
    content = f"""
    <mj-text>
      If you're seeing this, your email setup is working correctly!
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Delivered via: <strong>{service}</strong>
    </mj-text>
    """

    return get_base_template(
        title="Test Email",
        preview_text="This is a test email to verify your email configuration.",
        content_sections=content,
        brand_name=brand_name,
        logo_url=logo_url,
    )


__all__ = [
    "THEME",
    "DEFAULT_CUSTOMER_NAME",
    "get_base_template",
    "order_confirmation_template",
    "order_confirmation_text",
    "configuration_check_template",
]
