"""
Email delivery for low-stock alerts via SendGrid.
"""

import asyncio
import html
from dataclasses import dataclass
from datetime import datetime

import sendgrid
import structlog
from sendgrid.helpers.mail import Mail
from tenacity import retry, stop_after_attempt, wait_exponential

from core.config import get_settings

logger = structlog.get_logger()


@dataclass(frozen=True)
class LowStockEmail:
    """Everything a supplier needs to know about one low-stock product."""

    to_email: str
    supplier_name: str
    product_name: str
    sku: str
    current_stock: int
    threshold: int
    seller_company: str

    @property
    def subject(self) -> str:
        return f"Low Stock Alert: {self.product_name} (SKU: {self.sku})"


def render_low_stock_html(alert: LowStockEmail, generated_at: datetime | None = None) -> str:
    """Render the supplier-facing HTML body."""
    generated_at = generated_at or datetime.utcnow()
    supplier = html.escape(alert.supplier_name)
    product = html.escape(alert.product_name)
    sku = html.escape(alert.sku)
    company = html.escape(alert.seller_company)

    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; color: #333; line-height: 1.6;">
      <div style="background: #dc2626; color: white; padding: 20px; text-align: center;">
        <h1 style="margin: 0;">Low Stock Alert</h1>
        <p style="margin: 4px 0 0;">Immediate Attention Required</p>
      </div>
      <div style="padding: 20px;">
        <p>Dear <strong>{supplier}</strong>,</p>
        <div style="background: #fef2f2; border: 1px solid #fecaca; padding: 15px; border-radius: 8px; margin: 20px 0;">
          <p style="margin: 0; color: #dc2626; font-weight: bold;">
            One of your supplied products has fallen to or below its minimum stock threshold.
          </p>
        </div>
        <div style="background: #f9fafb; padding: 15px; border-radius: 8px; margin: 15px 0;">
          <p><strong>Product Name:</strong> {product}</p>
          <p><strong>SKU:</strong> {sku}</p>
          <p><strong>Current Stock:</strong> <span style="color: #dc2626; font-weight: bold;">{alert.current_stock} units</span></p>
          <p><strong>Minimum Threshold:</strong> {alert.threshold} units</p>
          <p><strong>Requesting Company:</strong> {company}</p>
        </div>
        <p>Please arrange replenishment to avoid a stockout.</p>
        <p>Best regards,<br><strong>FlowStock</strong><br>On behalf of {company}</p>
      </div>
      <div style="background: #f3f4f6; padding: 15px; text-align: center; font-size: 12px; color: #6b7280;">
        Automated notification from FlowStock, generated {generated_at:%Y-%m-%d %H:%M} UTC
      </div>
    </div>
    """


@retry(stop=stop_after_attempt(3), wait=wait_exponential(min=1, max=10), reraise=True)
async def _deliver(client: sendgrid.SendGridAPIClient, message: Mail):
    return await asyncio.to_thread(client.send, message)


async def send_low_stock_email(alert: LowStockEmail, html_content: str) -> bool:
    """
    Send one low-stock alert through SendGrid.

    Returns True only when SendGrid accepted the message. Delivery problems
    are logged and reported as False, never raised.
    """
    settings = get_settings()
    if not settings.sendgrid_api_key:
        logger.warning("email.not_configured", to=alert.to_email, sku=alert.sku)
        return False

    try:
        sg = sendgrid.SendGridAPIClient(api_key=settings.sendgrid_api_key)
        email = Mail(
            from_email=settings.alert_from_email,
            to_emails=alert.to_email,
            subject=alert.subject,
            html_content=html_content,
        )
        response = await _deliver(sg, email)
    except Exception as exc:
        logger.error("email.send_failed", to=alert.to_email, sku=alert.sku, error=str(exc))
        return False

    delivered = response.status_code in (200, 201, 202)
    if not delivered:
        logger.warning("email.rejected", to=alert.to_email, status_code=response.status_code)
    return delivered
