"""
Email Service - Transactional email through Resend

Renders Jinja2 templates from storefront/templates/emails and sends them
with resend.Emails.send. Sending never raises: callers get (sent, error).

Author: TM3
Date: 2025-10-17
"""
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import resend
from jinja2 import Environment, FileSystemLoader, select_autoescape

from storefront.core.config import settings
from storefront.domain.order import Order

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "emails"

# Statuses that notify the customer
NOTIFY_STATUSES = ("shipped", "delivered", "cancelled")

STATUS_HEADLINES = {
    "shipped": "Your order is on its way!",
    "delivered": "Your order has been delivered",
    "cancelled": "Your order has been cancelled",
}


def _money(value) -> str:
    return f"${float(value or 0):,.2f}"


class EmailService:
    """
    Sends order and account emails

    Without RESEND_API_KEY every send is skipped with a warning.
    """

    def __init__(self, api_key: Optional[str] = None, sender: Optional[str] = None):
        self.api_key = (api_key if api_key is not None else settings.RESEND_API_KEY or "").strip()
        self.sender = sender or settings.EMAIL_FROM
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )
        self.env.filters["money"] = _money

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def render(self, template_name: str, **context) -> str:
        context.setdefault("store_name", settings.STORE_NAME)
        context.setdefault("client_url", settings.CLIENT_URL.rstrip("/"))
        return self.env.get_template(template_name).render(**context)

    def send(self, to: str, subject: str, html: str, text: str) -> Tuple[bool, Optional[str]]:
        if not to:
            return False, "Missing recipient email"

        if not self.is_configured:
            logger.warning(f"RESEND_API_KEY not configured, skipping email '{subject}' to {to}")
            return False, "Email service is not configured"

        payload: Dict[str, object] = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html,
            "text": text,
        }

        resend.api_key = self.api_key
        try:
            response = resend.Emails.send(payload)
        except Exception as e:
            logger.error(f"Failed to send email '{subject}' to {to}: {e}")
            return False, str(e)

        if not isinstance(response, dict) or not response.get("id"):
            logger.error(f"Unexpected Resend response for '{subject}': {response}")
            return False, str(response)

        logger.info(f"Email '{subject}' sent to {to} (id={response['id']})")
        return True, None

    def send_template(self, to: str, subject: str, template_name: str, text: str,
                      **context) -> Tuple[bool, Optional[str]]:
        """Render an HTML template and send it; template errors are reported, not raised"""
        try:
            html = self.render(template_name, **context)
        except Exception as e:
            logger.error(f"Failed to render {template_name} for '{subject}': {e}")
            return False, str(e)

        return self.send(to, subject, html, text)

    def send_order_confirmation(self, order: Order, to: Optional[str] = None) -> Tuple[bool, Optional[str]]:
        recipient = to or order.contact_email
        subject = f"Order Confirmation - #{order.order_number} | {settings.STORE_NAME}"

        item_lines: List[str] = [
            f"- {item.title}"
            + (f" ({item.size})" if item.size else "")
            + f" x{item.quantity}: {_money(item.total)}"
            for item in order.items
        ]
        text_lines = [
            f"Thank you for your order, {order.shipping_address.full_name}!",
            f"Order #{order.order_number}",
            "",
            *item_lines,
            "",
            f"Subtotal: {_money(order.subtotal)}",
        ]
        if order.discount > 0:
            text_lines.append(f"Discount: -{_money(order.discount)}")
        text_lines.extend([
            f"Shipping: {_money(order.shipping_cost)}",
            f"Total: {_money(order.total)}",
            "",
            settings.STORE_NAME,
        ])

        return self.send_template(
            recipient, subject, "order_confirmation.html", "\n".join(text_lines),
            order=order, address=order.shipping_address,
        )

    def send_welcome(self, name: str, to: str) -> Tuple[bool, Optional[str]]:
        subject = f"Welcome to {settings.STORE_NAME}, {name}! 🎉"
        text = (
            f"Welcome, {name}!\n"
            f"Thank you for joining {settings.STORE_NAME}. "
            f"Use code WELCOME20 on your first order.\n"
            f"Start shopping: {settings.CLIENT_URL.rstrip('/')}/shop"
        )
        return self.send_template(to, subject, "welcome.html", text, name=name, coupon_code="WELCOME20")

    def send_status_update(self, order: Order, to: Optional[str] = None) -> Tuple[bool, Optional[str]]:
        status = order.order_status
        if status not in NOTIFY_STATUSES:
            return False, f"No email for status {status}"

        recipient = to or order.contact_email
        headline = STATUS_HEADLINES[status]
        subject = f"{headline} - #{order.order_number} | {settings.STORE_NAME}"

        text = f"{headline}\nOrder #{order.order_number}"
        if status == "shipped" and order.tracking_number:
            text += f"\nTracking number: {order.tracking_number}"
        if status == "cancelled" and order.cancel_reason:
            text += f"\nReason: {order.cancel_reason}"

        return self.send_template(recipient, subject, "order_status.html", text, order=order, headline=headline)


# Singleton instance for easy import
_email_service: Optional[EmailService] = None

def get_email_service() -> EmailService:
    """Get the singleton email service instance"""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
