# -*- coding: utf-8 -*-
"""Email the daily sales report through the Gmail API.

The message has a plain-text and an HTML body with the run summary
(products sold, orders processed, total with tax) and the XLSX report
attached.
"""

import logging
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Dict, Optional

from src.modules.google_api import connect_to_gmail, send_message
from src.modules.sales.models import NotificationSummary
from src.report.exporter import format_display_date
from src.utils.exceptions import NotificationError
from src.utils.report_config import EmailSettings

logger = logging.getLogger(__name__)

XLSX_MIME = ("application", "vnd.openxmlformats-officedocument.spreadsheetml.sheet")

HTML_TEMPLATE = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">Reporte de Ventas - {location}</h2>
  <p>Adjunto encontrarás el reporte de ventas del <strong>{date}</strong>.</p>
  <div style="background: #f5f5f5; padding: 15px; border-radius: 8px;">
    <h3 style="margin-top: 0; color: #555;">Resumen:</h3>
    <ul style="list-style: none; padding: 0;">
      <li><strong>Productos vendidos:</strong> {products}</li>
      <li><strong>Órdenes procesadas:</strong> {orders}</li>
      <li><strong>Total con impuesto:</strong> {total}</li>
    </ul>
  </div>
  <p style="color: #666; font-size: 12px;">
    Este es un correo automático generado por el sistema de ventas.<br>
    El archivo está en formato compatible con Marketman.
  </p>
</div>
"""

TEXT_TEMPLATE = """\
Reporte de Ventas - {location}

Adjunto encontrarás el reporte de ventas del {date}.

Resumen:
- Productos vendidos: {products}
- Órdenes procesadas: {orders}
- Total con impuesto: {total}
"""


def format_clp(amount: int) -> str:
    """Format an amount the es-CL way: $13.400."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(int(amount)):,}".replace(",", ".")


def _count(value: int) -> str:
    return str(value) if value else "N/A"


def build_report_email(
    settings: EmailSettings,
    summary: NotificationSummary,
    report_date: str,
    location_label: str,
    attachment: Optional[Path] = None,
) -> EmailMessage:
    """Build the notification message.

    Args:
        settings: Sender, recipients and subject prefix
        summary: Product/order counts and total with tax
        report_date: Report date (YYYY-MM-DD)
        location_label: Location shown in the heading
        attachment: XLSX report to attach, if any

    Returns:
        EmailMessage ready to send
    """
    formatted_date = format_display_date(report_date)
    values = {
        "location": location_label,
        "date": formatted_date,
        "products": _count(summary.product_count),
        "orders": _count(summary.order_count),
        "total": format_clp(summary.total_incl_tax),
    }

    message = EmailMessage()
    message["From"] = settings.sender
    message["To"] = ", ".join(settings.recipients)
    message["Subject"] = f"{settings.subject_prefix} - {formatted_date}"
    message.set_content(TEXT_TEMPLATE.format(**values))
    message.add_alternative(HTML_TEMPLATE.format(**values), subtype="html")

    if attachment is not None:
        maintype, subtype = XLSX_MIME
        message.add_attachment(
            attachment.read_bytes(),
            maintype=maintype,
            subtype=subtype,
            filename=attachment.name,
        )

    return message


class GmailNotifier:
    """Sends sales report emails with the Gmail API.

    The Gmail service is created on first send unless one is injected.
    """

    def __init__(self, settings: EmailSettings, gmail_service: Any = None):
        self.settings = settings
        self._service = gmail_service

    def _get_service(self):
        if self._service is None:
            self._service = connect_to_gmail(
                self.settings.credentials_path, self.settings.token_path
            )
        return self._service

    def send_sales_report(
        self,
        report_path: Optional[Path],
        report_date: str,
        summary: NotificationSummary,
        location_label: str,
    ) -> Dict[str, Any]:
        """Send the report email.

        Returns:
            {"success": True, "message_id": ...} or {"success": False, "error": ...}
        """
        if not self.settings.recipients:
            logger.error("Cannot send email: no recipients configured (EMAIL_TO)")
            return {"success": False, "error": "No recipients configured"}

        try:
            message = build_report_email(
                self.settings, summary, report_date, location_label, report_path
            )
            message_id = send_message(self._get_service(), message)
        except (NotificationError, OSError) as e:
            logger.error(f"Error sending email: {e}")
            return {"success": False, "error": str(e)}

        logger.info(f"Email sent successfully: {message_id}")
        return {"success": True, "message_id": message_id}
