import logging
import os
import smtplib
from email.message import EmailMessage
from typing import Dict, Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.config import settings

logger = logging.getLogger(__name__)

# Jinja2 environment for email templates
_templates_env = Environment(
    loader=FileSystemLoader(searchpath=os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")),
    autoescape=select_autoescape(["html", "xml"]),
    trim_blocks=True,
    lstrip_blocks=True,
)

STATUS_LABELS = {
    "forming": "Forming",
    "pending": "New",
    "processing": "Processing",
    "shipped": "Shipped",
    "delivered": "Delivered",
    "cancelled": "Cancelled",
}


def render_template(template_path: str, context: Dict[str, Any]) -> str:
    """Render a template from templates/ directory with provided context."""
    template = _templates_env.get_template(template_path)
    return template.render(**context)


def render_order_text(order, items, customer_name: str | None = None) -> str:
    return render_template(
        "emails/order_notification.txt",
        {
            "order": order,
            "items": items,
            "customer_name": customer_name or order.guest_name,
            "status_label": STATUS_LABELS.get(order.status, order.status),
            "shipping": order.shipping_address if isinstance(order.shipping_address, dict) else None,
        },
    )


def send_email(to_email: str, subject: str, body: str) -> None:
    """Send a plain-text email over SMTP; errors propagate to the caller."""
    # Nothing to send through without SMTP credentials
    if settings.TESTING or not settings.SMTP_PASSWORD:
        logger.info("Email to %s skipped (SMTP not configured): %s", to_email, subject)
        return

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.SMTP_FROM or settings.SMTP_USERNAME
    msg["To"] = to_email
    msg.set_content(body)

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        server.starttls()
        if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.send_message(msg)

    logger.info("Email sent to %s: %s", to_email, subject)
