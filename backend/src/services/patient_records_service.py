"""
Patient records lookups.

Read access to the patient, appointment and treatment plan tables owned by
the wider clinic product, plus the best-effort treatment plan notification
bookkeeping written after a successful delivery.
"""

import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from models import Appointment, Patient, PatientSnapshot, TreatmentPlan
from utils.datetime_utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class PatientNotFoundError(LookupError):
    """Raised when a communication is requested for a patient that does not exist."""

    def __init__(self, patient_id: str):
        super().__init__("Patient not found")
        self.patient_id = patient_id


class AppointmentDetails(BaseModel):
    """Appointment time and practitioner as used in message content."""

    id: str
    start_time: datetime
    practitioner_name: Optional[str] = None


class TreatmentPlanDetails(BaseModel):
    """Treatment plan fields used in message content."""

    id: str
    title: str
    description: Optional[str] = None


class PatientRecordsService:
    """Service for reading patient-related records."""

    @staticmethod
    def get_patient_snapshot(db: Session, patient_id: str) -> PatientSnapshot:
        """
        Get a patient's contact details and validated profile.

        Args:
            db: Database session
            patient_id: Patient to look up

        Returns:
            PatientSnapshot for the patient

        Raises:
            PatientNotFoundError: If no patient has this id
        """
        patient = db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise PatientNotFoundError(patient_id)
        return patient.to_snapshot()

    @staticmethod
    def get_appointment_details(db: Session, appointment_id: str) -> Optional[AppointmentDetails]:
        """
        Get an appointment's start time and assigned practitioner name.

        Returns:
            AppointmentDetails, or None if the appointment does not exist
        """
        appointment = db.query(Appointment).options(
            joinedload(Appointment.staff)
        ).filter(Appointment.id == appointment_id).first()

        if not appointment:
            return None

        practitioner_name = appointment.staff.display_name if appointment.staff else None
        return AppointmentDetails(
            id=appointment.id,
            start_time=ensure_utc(appointment.start_time),
            practitioner_name=practitioner_name,
        )

    @staticmethod
    def get_treatment_plan(db: Session, treatment_plan_id: str) -> Optional[TreatmentPlanDetails]:
        """Get a treatment plan's title and description, or None if it does not exist."""
        plan = db.query(TreatmentPlan).filter(TreatmentPlan.id == treatment_plan_id).first()
        if not plan:
            return None
        return TreatmentPlanDetails(id=plan.id, title=plan.title, description=plan.description)

    @staticmethod
    def mark_treatment_plan_notified(db: Session, treatment_plan_id: str) -> bool:
        """
        Record that a communication about a treatment plan was delivered.

        Sets last_notification_sent to now and increments notification_count
        in one UPDATE.

        Returns:
            True if the plan exists and was updated
        """
        now = utc_now()
        result = db.execute(
            update(TreatmentPlan)
            .where(TreatmentPlan.id == treatment_plan_id)
            .values(
                last_notification_sent=now,
                notification_count=TreatmentPlan.notification_count + 1,
                updated_at=now,
            )
            .execution_options(synchronize_session="fetch")
        )
        db.commit()
        return bool(result.rowcount)  # type: ignore[attr-defined]
