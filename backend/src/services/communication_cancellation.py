"""
Cancellation of pending communications when an appointment is cancelled.
"""

import logging
from typing import List

from pydantic import BaseModel
from sqlalchemy.orm import Session

from services.communication_store import CommunicationStore, CommunicationValidationError
from utils.id_utils import normalize_id

logger = logging.getLogger(__name__)


class CancellationResult(BaseModel):
    """Communications cancelled for one appointment."""

    cancelled_count: int
    cancelled_ids: List[str]


class CommunicationCancellationService:
    """Service for cancelling scheduled communications tied to an appointment."""

    @staticmethod
    def cancel_by_appointment(db: Session, appointment_id: str) -> CancellationResult:
        """
        Cancel all still-scheduled communications for an appointment.

        Sent, failed and already-cancelled communications are left unchanged,
        so calling this again for the same appointment cancels nothing.

        Args:
            db: Database session
            appointment_id: Appointment whose communications are cancelled

        Returns:
            CancellationResult with the count and ids of cancelled communications

        Raises:
            CommunicationValidationError: If appointment_id is empty
        """
        normalized_id = normalize_id(appointment_id)
        if not normalized_id:
            raise CommunicationValidationError("Missing appointmentId in request body")

        count, cancelled_ids = CommunicationStore(db).cancel_by_appointment_id(normalized_id)
        logger.info(f"Cancelled {count} scheduled communications for appointment {normalized_id}")
        return CancellationResult(cancelled_count=count, cancelled_ids=cancelled_ids)
