"""
Email Service for admin notifications.
Tells admins when a bike with a promoted theft alert has been recovered, so
the campaign can be stopped.
"""

import smtplib
import ssl
import logging
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import List, Optional
from concurrent.futures import Future, ThreadPoolExecutor

from config import settings

logger = logging.getLogger(__name__)

# Deliveries happen off the request thread
_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="admin_email")

RECOVERY_HTML = """
<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: Arial, sans-serif; background-color: #f5f5f5; margin: 0; padding: 0;">
  <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff;">
    <h1 style="background-color: #28a745; color: #ffffff; margin: 0; padding: 24px; font-size: 22px;">
      Promoted alert bike recovered
    </h1>
    <div style="padding: 20px; color: #333;">
      <p><strong>{bike_title}</strong> (bike #{bike_id}, stolen record #{stolen_record_id})
         was marked recovered at {recovered_at}.</p>
      <p>Active promoted alerts: {alert_ids}</p>
      <blockquote style="border-left: 4px solid #28a745; margin: 16px 0; padding-left: 12px;">{description}</blockquote>
      <p style="color: #004085;">Please end the promotion for this bike.</p>
    </div>
  </div>
</body>
</html>
"""


def split_recipients(value: str) -> List[str]:
    """Comma separated addresses, blanks dropped."""
    return [address.strip() for address in (value or "").split(",") if address.strip()]


class EmailService:
    """
    Sends admin notifications over SMTP with STARTTLS.

    Sending is skipped (and logged) unless EMAIL_ALERTS_ENABLED is set and
    SMTP credentials and at least one admin recipient are configured.
    """

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.SMTP_FROM_EMAIL or settings.SMTP_USER
        self.recipients = split_recipients(settings.ADMIN_EMAIL_RECIPIENTS)
        self.enabled = settings.EMAIL_ALERTS_ENABLED

        if self.enabled:
            logger.info(f"Admin notifications via {self.smtp_host}:{self.smtp_port} to {self.recipients}")
        else:
            logger.info("Admin notifications disabled. Set EMAIL_ALERTS_ENABLED=true to enable.")

    def is_configured(self) -> bool:
        return bool(self.enabled and self.smtp_user and self.smtp_password and self.recipients)

    def build_recovery_message(self, notification) -> MIMEMultipart:
        """Plain text and HTML versions of the recovery notification."""
        recovered_at = notification.recovered_at.strftime('%Y-%m-%d %H:%M:%S UTC')
        alert_ids = ", ".join(str(i) for i in notification.theft_alert_ids)
        description = notification.recovered_description or "No recovery details provided."

        msg = MIMEMultipart('alternative')
        msg['Subject'] = f"Promoted alert bike recovered: stolen record {notification.stolen_record_id}"
        msg['From'] = self.from_email
        msg['To'] = ', '.join(self.recipients)

        text = (
            f"{notification.bike_title} (bike {notification.bike_id}) was marked recovered at {recovered_at}.\n"
            f"Active promoted alerts: {alert_ids}\n\n"
            f"{description}\n"
        )
        html = RECOVERY_HTML.format(
            bike_title=escape(notification.bike_title),
            bike_id=notification.bike_id,
            stolen_record_id=notification.stolen_record_id,
            recovered_at=recovered_at,
            alert_ids=alert_ids,
            description=escape(description),
        )
        msg.attach(MIMEText(text, 'plain'))
        msg.attach(MIMEText(html, 'html'))
        return msg

    def send_promoted_alert_recovery_notification(self, notification) -> bool:
        """
        Email admins that a promoted bike was recovered.

        Args:
            notification: NotifyPromotedAlertRecovery effect

        Returns:
            bool: True when the message was handed to the SMTP server
        """
        if not self.is_configured():
            logger.warning("Email service not configured. Skipping recovery notification.")
            return False

        try:
            msg = self.build_recovery_message(notification)
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls(context=ssl.create_default_context())
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)
        except Exception as e:
            logger.error(
                f"Failed to send recovery notification for stolen record "
                f"{notification.stolen_record_id}: {str(e)}"
            )
            return False

        logger.info(f"Recovery notification sent for stolen record {notification.stolen_record_id}")
        return True

    def send_recovery_notification_async(self, notification) -> Optional[Future]:
        """Queue the recovery notification on the email thread pool."""
        if not self.is_configured():
            logger.debug("Email not configured, skipping async recovery notification")
            return None

        future = _executor.submit(self.send_promoted_alert_recovery_notification, notification)
        logger.debug(f"Queued recovery notification for stolen record {notification.stolen_record_id}")
        return future


# Singleton instance
_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get or create the singleton email service."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
