"""
Communication scheduling service.

Creates a patient communication from a scheduling request: validates the
request, resolves the message content, stores the record, and sends it
straight away when it is already due.
"""

import logging
from datetime import datetime
from typing import Optional, Union

from sqlalchemy.orm import Session

from models import PatientCommunication
from services.communication_content_service import CommunicationContentService
from services.communication_dispatcher import CommunicationDispatcher
from services.communication_store import (
    CommunicationDraft,
    CommunicationStore,
    CommunicationValidationError,
    validate_type_and_channel,
)
from services.patient_records_service import PatientRecordsService
from utils.datetime_utils import ensure_utc, parse_iso_datetime, utc_now
from utils.id_utils import normalize_id

logger = logging.getLogger(__name__)


class CommunicationSchedulingService:
    """Service for scheduling patient communications."""

    @staticmethod
    def schedule(
        db: Session,
        patient_id: Optional[str],
        communication_type: Optional[str],
        channel: Optional[str],
        scheduled_for: Optional[Union[str, datetime]],
        custom_message: Optional[str] = None,
        treatment_plan_id: Optional[str] = None,
        appointment_id: Optional[str] = None,
        notify_user_id: Optional[str] = None,
        dispatcher: Optional[CommunicationDispatcher] = None,
    ) -> PatientCommunication:
        """
        Schedule a communication for a patient.

        When no custom message is given the content is generated from the
        communication type. If scheduled_for is not in the future the
        communication is dispatched immediately, provided it is still
        'scheduled' at that point.

        Args:
            db: Database session
            patient_id: Patient receiving the communication
            communication_type: One of the communication types
            channel: 'email', 'sms' or 'app'
            scheduled_for: When to send (ISO 8601 string or datetime)
            custom_message: Message text overriding generated content
            treatment_plan_id: Optional treatment plan reference
            appointment_id: Optional appointment reference
            notify_user_id: Optional staff recipient for 'app' channel messages
            dispatcher: Dispatcher used for immediate sends (built from config if omitted)

        Returns:
            The stored communication as it is after any immediate dispatch

        Raises:
            CommunicationValidationError: If required fields are missing or invalid
            PatientNotFoundError: If the patient does not exist
        """
        patient_id = normalize_id(patient_id)
        if not patient_id or not communication_type or not channel or not scheduled_for:
            raise CommunicationValidationError("Missing required fields for scheduling")

        validate_type_and_channel(communication_type, channel)
        due_at = CommunicationSchedulingService._parse_scheduled_for(scheduled_for)

        patient = PatientRecordsService.get_patient_snapshot(db, patient_id)

        content = custom_message if custom_message and custom_message.strip() else None
        if content is None:
            content = CommunicationContentService.generate_content(
                db,
                communication_type,
                patient,
                treatment_plan_id=normalize_id(treatment_plan_id),
                appointment_id=normalize_id(appointment_id),
            )

        store = CommunicationStore(db)
        communication = store.create(CommunicationDraft(
            patient_id=patient_id,
            type=communication_type,
            channel=channel,
            content=content,
            scheduled_for=due_at,
            treatment_plan_id=treatment_plan_id,
            appointment_id=appointment_id,
            notify_user_id=notify_user_id,
        ))

        if due_at <= utc_now():
            CommunicationSchedulingService._send_now(db, store, communication.id, dispatcher)

        refreshed = store.get(communication.id)
        return refreshed or communication

    @staticmethod
    def _parse_scheduled_for(scheduled_for: Union[str, datetime]) -> datetime:
        if isinstance(scheduled_for, datetime):
            result = ensure_utc(scheduled_for)
            if result is None:
                raise CommunicationValidationError("Invalid scheduledFor")
            return result
        try:
            return parse_iso_datetime(scheduled_for)
        except ValueError as e:
            raise CommunicationValidationError(f"Invalid scheduledFor: {scheduled_for}") from e

    @staticmethod
    def _send_now(
        db: Session,
        store: CommunicationStore,
        communication_id: str,
        dispatcher: Optional[CommunicationDispatcher],
    ) -> None:
        """Dispatch a just-created communication if nothing else has handled it yet."""
        current = store.get(communication_id)
        if not current or current.status != 'scheduled':
            logger.info(f"Communication {communication_id} no longer scheduled; skipping immediate send")
            return

        logger.info(f"Communication {communication_id} is due; sending immediately")
        try:
            (dispatcher or CommunicationDispatcher(db)).dispatch(communication_id)
        except Exception as e:
            # Record stays 'scheduled' and is retried by the next processing pass
            logger.exception(f"Immediate send failed for communication {communication_id}: {e}")
            db.rollback()
