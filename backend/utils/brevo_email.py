"""
Brevo (Sendinblue) transactional email for bike owners.

Parking notifications are sent with a stored Brevo template; admin mail goes
over SMTP instead (see services.email_service).

Usage:
    from utils.brevo_email import send_parking_notification_email

    send_parking_notification_email(
        user_email="owner@example.com",
        user_name="Owner",
        notification_details={
            "bike_title": "Black Surly Cross-Check",
            "kind": "parked_incorrectly_notification",
            "organization_name": "Campus Parking",
            "retrieval_link": "https://example.com/bikes/12/resolve-token?token=...",
        }
    )
"""

import logging
from typing import Any, Dict, Optional
from concurrent.futures import ThreadPoolExecutor

import sib_api_v3_sdk
from sib_api_v3_sdk.rest import ApiException

from config import settings

logger = logging.getLogger(__name__)

_executor = ThreadPoolExecutor(max_workers=3, thread_name_prefix="brevo_email")

KIND_SUBJECTS = {
    "parked_incorrectly_notification": "Your bike was parked incorrectly",
    "appears_abandoned_notification": "Your bike appears to be abandoned",
    "impound_notification": "Your bike was impounded",
}
DEFAULT_SUBJECT = "Notification about your bike"


def template_params(user_name: str, notification_details: Dict[str, Any]) -> Dict[str, Any]:
    """Variables exposed to the Brevo template."""
    kind = notification_details.get("kind") or "parked_incorrectly_notification"
    return {
        "name": user_name,
        "subject": KIND_SUBJECTS.get(kind, DEFAULT_SUBJECT),
        "kind": kind,
        "bike_title": notification_details.get("bike_title") or "Bike",
        "organization_name": notification_details.get("organization_name") or "",
        "retrieval_link": notification_details.get("retrieval_link") or "",
    }


class BrevoEmailService:
    """Owner-facing transactional email through the Brevo API."""

    def __init__(self):
        self.api_key = settings.BREVO_API_KEY
        self.sender = {"email": settings.DEFAULT_FROM_EMAIL, "name": settings.DEFAULT_FROM_NAME}
        self.template_id = settings.BREVO_PARKING_TEMPLATE_ID

        self.configuration = sib_api_v3_sdk.Configuration()
        self.configuration.api_key['api-key'] = self.api_key

        if self.is_configured():
            logger.info(f"Brevo email enabled, sending as {self.sender['email']} with template {self.template_id}")
        else:
            logger.warning("Brevo email disabled - BREVO_API_KEY not set")

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def send_parking_notification_email(
        self,
        user_email: str,
        user_name: str,
        notification_details: Dict[str, Any],
        template_id: Optional[int] = None
    ) -> bool:
        """
        Send a parking notification to a bike owner.

        Args:
            user_email: Owner's address
            user_name: Name used in the greeting
            notification_details: bike_title, kind, organization_name,
                retrieval_link and parking_notification_id
            template_id: Brevo template, defaults to BREVO_PARKING_TEMPLATE_ID

        Returns:
            bool: True if Brevo accepted the message
        """
        if not self.is_configured():
            logger.warning(f"Brevo not configured. Skipping parking notification for {user_email}.")
            return False

        notification_id = notification_details.get("parking_notification_id")
        message = sib_api_v3_sdk.SendSmtpEmail(
            to=[{"email": user_email, "name": user_name}],
            template_id=template_id or self.template_id,
            params=template_params(user_name, notification_details),
            sender=self.sender,
            reply_to=self.sender,
            headers={"X-Parking-Notification-Id": str(notification_id or "")}
        )

        try:
            api = sib_api_v3_sdk.TransactionalEmailsApi(sib_api_v3_sdk.ApiClient(self.configuration))
            response = api.send_transac_email(message)
        except ApiException as e:
            logger.error(f"Brevo rejected parking notification {notification_id}: {e.status} - {e.reason}")
            return False
        except Exception as e:
            logger.error(f"Failed to send parking notification {notification_id}: {str(e)}")
            return False

        logger.info(f"Parking notification {notification_id} emailed to {user_email} ({response.message_id})")
        return True

    def send_email_async(
        self,
        user_email: str,
        user_name: str,
        notification_details: Dict[str, Any],
        template_id: Optional[int] = None
    ) -> None:
        """Queue the email on the Brevo thread pool so requests don't wait on it."""
        if not self.is_configured():
            logger.debug("Brevo not configured. Skipping async email.")
            return

        _executor.submit(
            self.send_parking_notification_email,
            user_email,
            user_name,
            notification_details,
            template_id
        )


# Singleton instance
_brevo_service: Optional[BrevoEmailService] = None


def get_brevo_service() -> BrevoEmailService:
    global _brevo_service
    if _brevo_service is None:
        _brevo_service = BrevoEmailService()
    return _brevo_service


def send_parking_notification_email(
    user_email: str,
    user_name: str,
    notification_details: Dict[str, Any],
    template_id: Optional[int] = None,
    async_send: bool = True
) -> bool:
    """
    Email a bike owner about a parking notification.

    With async_send (the default) the message is queued and True only means
    it was handed off.
    """
    service = get_brevo_service()

    if async_send:
        service.send_email_async(user_email, user_name, notification_details, template_id)
        return service.is_configured()
    return service.send_parking_notification_email(user_email, user_name, notification_details, template_id)
