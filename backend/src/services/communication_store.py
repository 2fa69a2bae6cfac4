"""
Communication record store.

Owns persistence of PatientCommunication rows and their lifecycle. Every
status change is a conditional UPDATE guarded by status = 'scheduled', so
concurrent processors, cancellations and immediate sends never overwrite a
terminal record.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from core.constants import (
    COMMUNICATION_CHANNELS,
    COMMUNICATION_STATUSES,
    COMMUNICATION_TYPES,
    MAX_ERROR_MESSAGE_LENGTH,
    TERMINAL_COMMUNICATION_STATUSES,
)
from models import PatientCommunication
from utils.datetime_utils import ensure_utc, utc_now
from utils.id_utils import normalize_id

logger = logging.getLogger(__name__)


class CommunicationValidationError(ValueError):
    """Raised when a communication request is missing fields or uses unknown values."""


class CommunicationDraft(BaseModel):
    """Fields needed to create a communication record (content already resolved)."""

    patient_id: str
    type: str
    channel: str
    content: str
    scheduled_for: datetime
    treatment_plan_id: Optional[str] = None
    appointment_id: Optional[str] = None
    notify_user_id: Optional[str] = None


def truncate_error_message(message: str) -> str:
    """Bound an error message to the error_message column length."""
    return message[:MAX_ERROR_MESSAGE_LENGTH]


def validate_type_and_channel(communication_type: str, channel: str) -> None:
    """
    Check a type/channel pair against the closed vocabularies.

    Raises:
        CommunicationValidationError: If either value is unknown
    """
    if communication_type not in COMMUNICATION_TYPES:
        raise CommunicationValidationError(f"Invalid communication type: {communication_type}")
    if channel not in COMMUNICATION_CHANNELS:
        raise CommunicationValidationError(f"Invalid communication channel: {channel}")


class CommunicationStore:
    """Data access for patient communications."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, draft: CommunicationDraft) -> PatientCommunication:
        """
        Persist a new communication in 'scheduled' status.

        Args:
            draft: Resolved communication fields

        Returns:
            The created PatientCommunication

        Raises:
            CommunicationValidationError: If required fields are missing or
                type/channel are unknown
        """
        if not normalize_id(draft.patient_id):
            raise CommunicationValidationError("patientId is required")
        if not draft.content or not draft.content.strip():
            raise CommunicationValidationError("content is required")
        validate_type_and_channel(draft.type, draft.channel)

        communication = PatientCommunication(
            patient_id=draft.patient_id.strip(),
            type=draft.type,
            channel=draft.channel,
            content=draft.content,
            scheduled_for=ensure_utc(draft.scheduled_for),
            status='scheduled',
            treatment_plan_id=normalize_id(draft.treatment_plan_id),
            appointment_id=normalize_id(draft.appointment_id),
            notify_user_id=normalize_id(draft.notify_user_id),
        )
        self.db.add(communication)
        self.db.commit()
        self.db.refresh(communication)

        logger.info(
            f"Scheduled {communication.type} communication {communication.id} "
            f"via {communication.channel} for {communication.scheduled_for.isoformat()}"
        )
        return communication

    def get(self, communication_id: str) -> Optional[PatientCommunication]:
        """Get a communication by id, or None if it does not exist."""
        return self.db.query(PatientCommunication).populate_existing().filter(
            PatientCommunication.id == communication_id
        ).first()

    def get_scheduled_with_patient(self, communication_id: str) -> Optional[PatientCommunication]:
        """
        Get a communication together with its patient, only if still 'scheduled'.

        Returns:
            The communication with `patient` loaded, or None when it is missing
            or already in a terminal state
        """
        return self.db.query(PatientCommunication).options(
            joinedload(PatientCommunication.patient)
        ).populate_existing().filter(
            PatientCommunication.id == communication_id,
            PatientCommunication.status == 'scheduled',
        ).first()

    def list_due_before(self, timestamp: datetime, limit: int) -> List[PatientCommunication]:
        """
        List 'scheduled' communications due at or before a timestamp.

        Args:
            timestamp: Cut-off time (inclusive)
            limit: Maximum number of records returned

        Returns:
            Due communications ordered by scheduled_for ascending
        """
        return self.db.query(PatientCommunication).filter(
            PatientCommunication.status == 'scheduled',
            PatientCommunication.scheduled_for <= ensure_utc(timestamp),
        ).order_by(
            PatientCommunication.scheduled_for.asc()
        ).limit(limit).all()

    def list_for_patient(
        self,
        patient_id: str,
        status: Optional[str] = None,
    ) -> List[PatientCommunication]:
        """
        List a patient's communications, newest scheduled_for first.

        Raises:
            CommunicationValidationError: If status is not a known status
        """
        query = self.db.query(PatientCommunication).filter(
            PatientCommunication.patient_id == patient_id
        )
        if status is not None:
            if status not in COMMUNICATION_STATUSES:
                raise CommunicationValidationError(f"Invalid communication status: {status}")
            query = query.filter(PatientCommunication.status == status)
        return query.order_by(PatientCommunication.scheduled_for.desc()).all()

    def update_status(
        self,
        communication_id: str,
        status: str,
        sent_at: Optional[datetime] = None,
        error_message: Optional[str] = None,
    ) -> bool:
        """
        Move a 'scheduled' communication to a terminal status.

        The update only applies while the record is still 'scheduled'; updating
        a terminal or missing record is a no-op.

        Args:
            communication_id: Communication to update
            status: Target status ('sent', 'failed' or 'cancelled')
            sent_at: Delivery time for 'sent' (defaults to now)
            error_message: Failure reason for 'failed' (truncated to 500 chars)

        Returns:
            True if the record transitioned, False if nothing was updated
        """
        if status not in TERMINAL_COMMUNICATION_STATUSES:
            raise CommunicationValidationError(f"Cannot transition communication to status: {status}")

        now = utc_now()
        values: dict[str, object] = {'status': status, 'updated_at': now}
        if status == 'sent':
            values['sent_at'] = ensure_utc(sent_at) or now
        elif status == 'failed':
            values['error_message'] = truncate_error_message(error_message or 'Unknown error')
        else:
            values['cancelled_at'] = now

        result = self.db.execute(
            update(PatientCommunication)
            .where(
                PatientCommunication.id == communication_id,
                PatientCommunication.status == 'scheduled',
            )
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        self.db.commit()

        updated = bool(result.rowcount)  # type: ignore[attr-defined]
        if not updated:
            logger.info(
                f"Communication {communication_id} not updated to '{status}': "
                f"missing or no longer scheduled"
            )
        return updated

    def cancel_by_appointment_id(self, appointment_id: str) -> Tuple[int, List[str]]:
        """
        Cancel every 'scheduled' communication linked to an appointment.

        Executed as a single conditional UPDATE; records already sent, failed
        or cancelled are untouched, so repeated calls return zero.

        Returns:
            (number of records cancelled, their ids)
        """
        now = utc_now()
        result = self.db.execute(
            update(PatientCommunication)
            .where(
                PatientCommunication.appointment_id == appointment_id,
                PatientCommunication.status == 'scheduled',
            )
            .values(status='cancelled', cancelled_at=now, updated_at=now)
            .returning(PatientCommunication.id)
            .execution_options(synchronize_session="fetch")
        )
        cancelled_ids = list(result.scalars().all())
        self.db.commit()
        return len(cancelled_ids), cancelled_ids
