import logging
import os
import smtplib
from urllib.parse import quote
from email.message import EmailMessage
from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from poster_shop import catalog, config

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

STATUS_MESSAGES = {
    "pending": "Your order is being processed.",
    "designing": "Our team is creating your custom poster!",
    "proof_ready": "Your proof is ready for review! Check your email for the preview.",
    "approved": "Your design has been approved and is being prepared.",
    "printing": "Your poster is being printed on museum-quality paper.",
    "shipped": "Your order has shipped! Check your email for tracking info.",
    "completed": "Your order is complete! We hope you love it.",
}


def format_amount(minor_units: int) -> str:
    return f"${minor_units / 100:.2f}"


class Notifier:
    """Renders order e-mails and sends them over SMTP, best effort.

    A failed send is logged and dropped; it never undoes the order change
    that triggered it.
    """

    def __init__(self, host=None, port=465, user=None, password=None,
                 sender=None, admin_email=None, base_url=config.BASE_URL):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender
        self.admin_email = admin_email
        self.base_url = base_url
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=select_autoescape(["html"]),
        )
        self.env.filters["money"] = format_amount

    @classmethod
    def from_env(cls):
        return cls(
            host=os.getenv("SMTP_HOST"),
            port=int(os.getenv("SMTP_PORT", "465")),
            user=os.getenv("SMTP_USER"),
            password=os.getenv("SMTP_PASS"),
            sender=os.getenv("SMTP_FROM"),
            admin_email=os.getenv("ADMIN_EMAIL"),
        )

    def _context(self, order) -> dict:
        return {
            "order": order,
            "theme_name": catalog.THEMES.get(order.theme, order.theme),
            "product_name": catalog.PRODUCTS.get(order.tier, {}).get("name", order.tier),
            "ships": order.tier in catalog.PRODUCTS and catalog.requires_shipping(order.tier),
            "base_url": self.base_url,
        }

    def render(self, template: str, **context) -> str:
        return self.env.get_template(template).render(**context)

    def send(self, to: str, subject: str, html: str) -> bool:
        if not self.host:
            logger.warning("SMTP_HOST not configured; skipping email %r to %s", subject, to)
            return False
        if not to:
            logger.warning("No recipient for email %r", subject)
            return False

        msg = EmailMessage()
        msg["From"] = self.sender or self.user
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML-capable mail client.")
        msg.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=30) as smtp:
                if self.user:
                    smtp.login(self.user, self.password or "")
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError):
            logger.exception("Email %r to %s failed", subject, to)
            return False
        return True

    def notify_order_created(self, order, upload=None):
        ctx = self._context(order)
        ctx["photo_url"] = f"{self.base_url}/uploads/{quote(upload.filename)}" if upload else None
        self.send(
            order.customer_email,
            "Order Confirmation - Jay's Frames Holiday Poster",
            self.render("order_confirmation.html", **ctx),
        )
        self.send(
            self.admin_email,
            f"New Order: {order.id}",
            self.render("staff_new_order.html", **ctx),
        )

    def notify_status_changed(self, order):
        ctx = self._context(order)
        ctx["status_message"] = STATUS_MESSAGES.get(order.status, "")
        self.send(
            order.customer_email,
            f"Order Update - Jay's Frames (Order #{order.id[:8]})",
            self.render("status_update.html", **ctx),
        )


@lru_cache
def get_notifier() -> Notifier:
    return Notifier.from_env()
