"""
Channel senders for patient communications.

This module encapsulates outbound delivery for each channel:
- SMS via an HTTP gateway authenticated with a bearer token
- Email via an HTTP gateway, or a logged simulation when no gateway is configured
- In-app notifications inserted into the notifications table for staff

Senders raise on failure; the dispatcher turns the exception message into the
communication's error_message.
"""

import logging
from typing import Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import (
    EMAIL_FROM_ADDRESS,
    EMAIL_GATEWAY_API_KEY,
    EMAIL_GATEWAY_ENDPOINT,
    EMAIL_GATEWAY_TIMEOUT_SECONDS,
    SMS_GATEWAY_API_KEY,
    SMS_GATEWAY_ENDPOINT,
    SMS_GATEWAY_TIMEOUT_SECONDS,
)
from core.constants import SMS_ERROR_BODY_PREVIEW_LENGTH
from models import Notification

logger = logging.getLogger(__name__)


class ChannelDeliveryError(Exception):
    """Base class for delivery failures; the message becomes the communication's error_message."""


class SmsGatewayError(ChannelDeliveryError):
    """Raised when the SMS gateway is unconfigured, unreachable or rejects a message."""


class EmailGatewayError(ChannelDeliveryError):
    """Raised when the email gateway is unreachable or rejects a message."""


class AppNotificationError(ChannelDeliveryError):
    """Raised when an in-app notification cannot be stored."""


def _mask_recipient(recipient: str) -> str:
    """Keep logs free of full phone numbers and email addresses."""
    return f"{recipient[:4]}..." if len(recipient) > 4 else "..."


class SmsGatewaySender:
    """
    Sender for the SMS gateway.

    The gateway accepts a JSON body {"recipient", "message"} and a bearer token.
    Endpoint and key default to SMS_GATEWAY_ENDPOINT / SMS_GATEWAY_API_KEY.

    Attributes:
        endpoint: Gateway URL, or None when not configured
        api_key: Bearer token, or None when not configured
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.endpoint = endpoint if endpoint is not None else SMS_GATEWAY_ENDPOINT
        self.api_key = api_key if api_key is not None else SMS_GATEWAY_API_KEY
        self.timeout = timeout if timeout is not None else SMS_GATEWAY_TIMEOUT_SECONDS

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.api_key)

    def send(self, recipient: str, message: str) -> None:
        """
        Send a text message to a phone number.

        Args:
            recipient: Destination phone number
            message: Message text

        Raises:
            SmsGatewayError: If the gateway is not configured, returns a
                non-2xx status, or cannot be reached
        """
        if not self.is_configured:
            logger.error("SMS gateway endpoint or API key is not configured")
            raise SmsGatewayError("SMS provider configuration missing.")

        try:
            response = httpx.post(
                self.endpoint,  # type: ignore[arg-type]
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}"
                },
                json={
                    "recipient": recipient,
                    "message": message,
                },
                timeout=self.timeout
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            body = e.response.text or ""
            logger.error(
                f"SMS gateway error for {_mask_recipient(recipient)}: "
                f"{e.response.status_code} - {body}"
            )
            raise SmsGatewayError(
                f"SMS provider error: {e.response.status_code} {e.response.reason_phrase}. "
                f"{body[:SMS_ERROR_BODY_PREVIEW_LENGTH]}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Failed to call SMS gateway for {_mask_recipient(recipient)}: {e}")
            raise SmsGatewayError(f"Failed to call SMS provider: {e}") from e

        logger.info(f"Sent SMS to {_mask_recipient(recipient)} (status {response.status_code})")


class EmailGatewaySender:
    """
    Sender for the email gateway.

    When EMAIL_GATEWAY_ENDPOINT is unset the email is logged instead of sent.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        from_address: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.endpoint = endpoint if endpoint is not None else EMAIL_GATEWAY_ENDPOINT
        self.api_key = api_key if api_key is not None else EMAIL_GATEWAY_API_KEY
        self.from_address = from_address or EMAIL_FROM_ADDRESS
        self.timeout = timeout if timeout is not None else EMAIL_GATEWAY_TIMEOUT_SECONDS

    def send(self, to_email: str, subject: str, text: str) -> None:
        """
        Send an email.

        Args:
            to_email: Recipient address
            subject: Subject line
            text: Plain text body

        Raises:
            EmailGatewayError: If the configured gateway rejects the message
                or cannot be reached
        """
        if not self.endpoint:
            logger.info(
                f"Email gateway not configured; simulated email to {_mask_recipient(to_email)} "
                f"subject={subject!r} length={len(text)}"
            )
            return

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            response = httpx.post(
                self.endpoint,
                headers=headers,
                json={
                    "from": self.from_address,
                    "to": to_email,
                    "subject": subject,
                    "text": text,
                },
                timeout=self.timeout
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            body = e.response.text or ""
            logger.error(
                f"Email gateway error for {_mask_recipient(to_email)}: "
                f"{e.response.status_code} - {body}"
            )
            raise EmailGatewayError(
                f"Email provider error: {e.response.status_code} {e.response.reason_phrase}. "
                f"{body[:SMS_ERROR_BODY_PREVIEW_LENGTH]}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Failed to call email gateway for {_mask_recipient(to_email)}: {e}")
            raise EmailGatewayError(f"Failed to call email provider: {e}") from e

        logger.info(f"Sent email to {_mask_recipient(to_email)} (status {response.status_code})")


class AppNotificationSender:
    """Sender for in-app notifications shown to staff in the clinic portal."""

    def __init__(self, db: Session):
        self.db = db

    def send(self, user_id: str, message: str, link_url: Optional[str] = None) -> Notification:
        """
        Insert an in-app notification.

        Args:
            user_id: Portal user receiving the notification
            message: Notification text
            link_url: Optional portal path the notification links to

        Returns:
            The stored Notification

        Raises:
            AppNotificationError: If the insert fails
        """
        notification = Notification(user_id=user_id, message=message, link_url=link_url, is_read=False)
        try:
            self.db.add(notification)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Failed to insert app notification for user {user_id}: {e}")
            raise AppNotificationError(f"Failed to insert staff app notification: {e}") from e

        logger.info(f"Inserted app notification {notification.id} for user {user_id}")
        return notification
