"""SMTP email delivery for reminders and stock alerts."""
from __future__ import annotations

from datetime import datetime
from email.message import EmailMessage
from html import escape
from typing import Sequence
import logging
import math
import smtplib

from ..config import Settings
from ..models import InventoryItem, MaintenanceRecord
from .maintenance_rules import now_utc

logger = logging.getLogger(__name__)

PRIORITY_COLORS = {
    "low": "#17a2b8",
    "medium": "#ffc107",
    "high": "#fd7e14",
    "critical": "#dc3545",
}


def days_until(scheduled_date: datetime | None, *, now: datetime) -> int:
    if scheduled_date is None:
        return 0
    return math.ceil((scheduled_date - now).total_seconds() / 86400)


class Emailer:
    """
    Fire-and-forget mailer.

    Without EMAIL_USER/EMAIL_PASSWORD configured it runs in mock mode and only
    logs what would have been sent.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        if not settings.email_enabled:
            logger.warning("Email not configured (EMAIL_USER/EMAIL_PASSWORD missing), using mock emails")

    @property
    def is_mock(self) -> bool:
        return not self._settings.email_enabled

    def send(self, to: str | None, subject: str, text: str, html: str | None = None) -> bool:
        if not to:
            return False

        if self.is_mock:
            logger.info(f"[MOCK EMAIL] To: {to}, Subject: {subject}")
            return True

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f'"{self._settings.EMAIL_FROM_NAME}" <{self._settings.EMAIL_USER}>'
        msg["To"] = to
        msg.set_content(text)
        if html:
            msg.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(
                self._settings.EMAIL_HOST,
                self._settings.EMAIL_PORT,
                timeout=self._settings.EMAIL_TIMEOUT_SECONDS,
            ) as s:
                if self._settings.EMAIL_USE_TLS:
                    s.starttls()
                s.login(self._settings.EMAIL_USER, self._settings.EMAIL_PASSWORD)
                s.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ Email to {to} failed ({subject}): {e}")
            return False

        logger.info(f"📧 Email sent to {to}: {subject}")
        return True

    def send_maintenance_reminder(
        self,
        to: str | None,
        record: MaintenanceRecord,
        *,
        now: datetime | None = None,
    ) -> bool:
        days = days_until(record.scheduled_date, now=now or now_utc())
        machine_name = record.machine.name if record.machine else "N/A"
        scheduled = record.scheduled_date.strftime("%Y-%m-%d") if record.scheduled_date else "N/A"
        priority = (record.priority or "medium").upper()

        subject = f"Upcoming Maintenance: {record.title}"
        text = (
            "Maintenance Reminder\n\n"
            f"{record.title}\n"
            f"Machine: {machine_name}\n"
            f"Scheduled: {scheduled}\n"
            f"Priority: {record.priority}\n"
            f"Days Until: {days}"
        )
        color = PRIORITY_COLORS.get(record.priority, "#6c757d")
        html = (
            '<div style="font-family: Arial, sans-serif; padding: 20px; max-width: 600px;">'
            "<h2>Maintenance Reminder</h2>"
            "<p>This is a reminder that the following maintenance is scheduled:</p>"
            f"<h3>{escape(record.title)}</h3>"
            f"<p><strong>Machine:</strong> {escape(machine_name)}</p>"
            f"<p><strong>Description:</strong> {escape(record.description or '')}</p>"
            f"<p><strong>Scheduled Date:</strong> {scheduled}</p>"
            f'<p><strong>Priority:</strong> <span style="color: {color}; font-weight: bold;">{priority}</span></p>'
            f"<p><strong>Days Until:</strong> {days} day(s)</p>"
            "</div>"
        )
        return self.send(to, subject, text, html)

    def send_low_stock_alert(self, to: str | None, items: Sequence[InventoryItem]) -> bool:
        subject = f"Low Stock Alert: {len(items)} Item(s)"
        text = "Low Stock Alert\n\n" + "\n".join(
            f"{item.name}: {item.current_stock}/{item.min_stock} {item.unit}" for item in items
        )
        rows = "".join(
            f"<li><strong>{escape(item.name)}</strong> - "
            f"Current: {item.current_stock} {escape(item.unit)}, Minimum: {item.min_stock} {escape(item.unit)}"
            f"{' <strong>OUT OF STOCK</strong>' if item.current_stock == 0 else ''}</li>"
            for item in items
        )
        html = (
            '<div style="font-family: Arial, sans-serif; padding: 20px; max-width: 600px;">'
            "<h2>Low Stock Alert</h2>"
            "<p>The following inventory items are running low or out of stock:</p>"
            f"<ul>{rows}</ul>"
            "<p>Please reorder these items to maintain adequate inventory levels.</p>"
            "</div>"
        )
        return self.send(to, subject, text, html)
