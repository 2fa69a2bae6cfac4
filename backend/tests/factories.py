"""
Test utilities for patient communication tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy.orm import Session

from models import Appointment, Patient, PatientCommunication, Staff, TreatmentPlan


def create_patient(
    db_session: Session,
    first_name: Optional[str] = "Alice",
    last_name: Optional[str] = "Nguyen",
    email: Optional[str] = "alice@example.com",
    phone: Optional[str] = "+15551230000",
    **kwargs: Any,
) -> Patient:
    """Create and commit a patient."""
    patient = Patient(first_name=first_name, last_name=last_name, email=email, phone=phone, **kwargs)
    db_session.add(patient)
    db_session.commit()
    return patient


def create_staff(
    db_session: Session,
    first_name: Optional[str] = "Maria",
    last_name: Optional[str] = "Lopez",
    user_id: Optional[str] = "staff-user-1",
    role: str = "dentist",
) -> Staff:
    """Create and commit a staff member."""
    staff = Staff(first_name=first_name, last_name=last_name, user_id=user_id, role=role)
    db_session.add(staff)
    db_session.commit()
    return staff


def create_appointment(
    db_session: Session,
    patient: Patient,
    start_time: datetime,
    staff: Optional[Staff] = None,
    title: str = "Cleaning",
) -> Appointment:
    """Create and commit an appointment lasting one hour."""
    appointment = Appointment(
        patient_id=patient.id,
        staff_id=staff.id if staff else None,
        title=title,
        start_time=start_time,
        end_time=start_time + timedelta(hours=1),
        status="scheduled",
    )
    db_session.add(appointment)
    db_session.commit()
    return appointment


def create_treatment_plan(
    db_session: Session,
    patient: Patient,
    title: str = "Crown on #14",
    description: Optional[str] = "Two visits: preparation and fitting.",
) -> TreatmentPlan:
    """Create and commit a treatment plan."""
    plan = TreatmentPlan(patient_id=patient.id, title=title, description=description, notification_count=0)
    db_session.add(plan)
    db_session.commit()
    return plan


def create_communication(
    db_session: Session,
    patient: Patient,
    scheduled_for: Optional[datetime] = None,
    type: str = "appointment_reminder",
    channel: str = "email",
    status: str = "scheduled",
    content: str = "Hi Alice, see you soon.",
    **kwargs: Any,
) -> PatientCommunication:
    """Create and commit a communication row directly (bypassing scheduling)."""
    communication = PatientCommunication(
        patient_id=patient.id,
        type=type,
        channel=channel,
        content=content,
        scheduled_for=scheduled_for or datetime.now(timezone.utc) - timedelta(minutes=5),
        status=status,
        **kwargs,
    )
    db_session.add(communication)
    db_session.commit()
    return communication
