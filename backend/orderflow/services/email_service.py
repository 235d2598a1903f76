"""
Email service for sending notifications

Handles SMTP email sending for:
- Low stock notifications
"""
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import List, Optional

from orderflow.core.config import settings
from orderflow.logging_config import get_logger

logger = get_logger(__name__)


class EmailService:
    """Service for sending emails via SMTP"""

    def __init__(self):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.user = settings.SMTP_USER
        self.password = settings.SMTP_PASSWORD
        self.from_email = settings.SMTP_FROM_EMAIL
        self.from_name = settings.SMTP_FROM_NAME
        self.use_tls = settings.SMTP_TLS

    @property
    def is_configured(self) -> bool:
        return bool(self.user and self.password)

    def _send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None
    ) -> bool:
        """
        Send an email via SMTP

        Returns True if successful, False otherwise
        """
        if not self.is_configured:
            logger.warning("SMTP credentials not configured - email not sent")
            logger.info(f"Would have sent email to {to_email}: {subject}")
            logger.debug(f"Email body:\n{text_body or html_body}")
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{self.from_name} <{self.from_email}>"
            msg["To"] = to_email

            if text_body:
                msg.attach(MIMEText(text_body, "plain"))
            msg.attach(MIMEText(html_body, "html"))

            with smtplib.SMTP(self.host, self.port) as server:
                if self.use_tls:
                    server.starttls()
                server.login(self.user, self.password)
                server.sendmail(self.from_email, to_email, msg.as_string())

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {str(e)}")
            return False

    def send_low_stock_notification(
        self,
        to_email: str,
        materials: List[dict],
        threshold: float,
    ) -> bool:
        """
        Tell a recipient which raw materials dropped below their threshold.

        materials: dicts with id, name, stock, unit, threshold
        """
        subject = f"[{settings.PROJECT_NAME}] Low raw material stock ({len(materials)})"

        rows = "".join(
            f"<tr><td>{m['name']}</td><td>{m['stock']:g} {m['unit']}</td>"
            f"<td>{m['threshold']:g}</td></tr>"
            for m in materials
        )
        html_body = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <h2>Low Stock Alert</h2>
            <p>The following raw materials are below their stock threshold
            (default {threshold:g}) after recent usage:</p>
            <table border="1" cellpadding="6" cellspacing="0">
                <tr><th>Material</th><th>Stock</th><th>Threshold</th></tr>
                {rows}
            </table>
            <p>Please arrange replenishment.</p>
        </body>
        </html>
        """

        lines = "\n".join(
            f"- {m['name']}: {m['stock']:g} {m['unit']} (threshold {m['threshold']:g})"
            for m in materials
        )
        text_body = f"""Low Stock Alert

The following raw materials are below their stock threshold after recent usage:

{lines}

Please arrange replenishment.
"""
        return self._send_email(to_email, subject, html_body, text_body)


# Singleton instance
email_service = EmailService()
