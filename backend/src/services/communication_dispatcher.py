"""
Communication dispatcher.

Delivers one scheduled communication through its channel and records the
outcome. The record is re-read with status = 'scheduled' before delivery and
the outcome is written with a compare-and-set update, so a communication is
never delivered after it was cancelled or already handled.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from core.config import APP_NOTIFICATION_RECIPIENT_ID
from models import PatientCommunication
from services.channel_senders import (
    AppNotificationSender,
    ChannelDeliveryError,
    EmailGatewaySender,
    SmsGatewaySender,
)
from services.communication_content_service import CommunicationContentService
from services.communication_store import CommunicationStore
from services.patient_records_service import PatientRecordsService
from utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class CommunicationDispatcher:
    """
    Service for delivering scheduled communications.

    Senders can be injected; by default they are built from configuration.

    Attributes:
        db: Database session
        store: Communication record store bound to the same session
        app_recipient_id: Fallback staff user for 'app' channel notifications
    """

    def __init__(
        self,
        db: Session,
        sms_sender: Optional[SmsGatewaySender] = None,
        email_sender: Optional[EmailGatewaySender] = None,
        app_sender: Optional[AppNotificationSender] = None,
        app_recipient_id: Optional[str] = None,
    ) -> None:
        self.db = db
        self.store = CommunicationStore(db)
        self.sms_sender = sms_sender or SmsGatewaySender()
        self.email_sender = email_sender or EmailGatewaySender()
        self.app_sender = app_sender or AppNotificationSender(db)
        self.app_recipient_id = app_recipient_id or APP_NOTIFICATION_RECIPIENT_ID

    def dispatch(self, communication_id: str) -> bool:
        """
        Deliver a communication if it is still scheduled.

        Args:
            communication_id: Communication to deliver

        Returns:
            True if the communication was delivered and marked 'sent'; False if
            it was not found, no longer scheduled, or delivery failed
        """
        communication = self.store.get_scheduled_with_patient(communication_id)
        if not communication:
            logger.info(f"Communication {communication_id} not found or no longer scheduled; skipping")
            return False

        error_message: Optional[str] = None
        try:
            self._deliver(communication)
        except ChannelDeliveryError as e:
            error_message = str(e)
            logger.warning(f"Delivery failed for communication {communication_id}: {error_message}")
        except Exception as e:
            logger.exception(f"Unexpected error delivering communication {communication_id}: {e}")
            self.db.rollback()
            error_message = str(e) or e.__class__.__name__

        if error_message is not None:
            self.store.update_status(communication_id, 'failed', error_message=error_message)
            return False

        sent = self.store.update_status(communication_id, 'sent', sent_at=utc_now())
        if sent:
            logger.info(f"Communication {communication_id} sent via {communication.channel}")
            if communication.treatment_plan_id:
                self._record_treatment_plan_notification(communication.treatment_plan_id)
        return sent

    def _deliver(self, communication: PatientCommunication) -> None:
        """
        Send a communication through its channel.

        Raises:
            ChannelDeliveryError: If the channel cannot deliver the message
        """
        patient = communication.patient
        channel = communication.channel

        if channel == 'app':
            recipient_id = communication.notify_user_id or self.app_recipient_id
            if not recipient_id:
                raise ChannelDeliveryError("Staff user ID to notify is missing.")
            self.app_sender.send(
                user_id=recipient_id,
                message=CommunicationContentService.build_staff_notification_message(communication),
                link_url=f"/patients/{communication.patient_id}",
            )
        elif channel == 'email':
            target_email = (patient.email or "").strip() if patient else ""
            if not target_email:
                raise ChannelDeliveryError("Missing target email address.")
            self.email_sender.send(
                to_email=target_email,
                subject=CommunicationContentService.build_email_subject(communication.type),
                text=communication.content,
            )
        elif channel == 'sms':
            target_phone = (patient.phone or "").strip() if patient else ""
            if not target_phone:
                raise ChannelDeliveryError("Missing target phone number.")
            self.sms_sender.send(recipient=target_phone, message=communication.content)
        else:
            raise ChannelDeliveryError(f"Channel not supported or integrated: {channel}")

    def _record_treatment_plan_notification(self, treatment_plan_id: str) -> None:
        """Best-effort bookkeeping; a failure here never changes the communication's status."""
        try:
            if not PatientRecordsService.mark_treatment_plan_notified(self.db, treatment_plan_id):
                logger.warning(f"Treatment plan {treatment_plan_id} not found for notification bookkeeping")
        except Exception as e:
            logger.exception(f"Failed to update notification bookkeeping for treatment plan {treatment_plan_id}: {e}")
            self.db.rollback()
