"""
Appointment model representing scheduled visits between patients and staff.

Appointments are managed by the wider clinic product. This backend reads them
to render reminder and cancellation messages, and uses the appointment id to
cancel pending communications when an appointment is cancelled.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, ForeignKey, Index, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from core.constants import MAX_STRING_LENGTH, UUID_STRING_LENGTH
from utils.id_utils import new_uuid


class Appointment(Base):
    """
    Appointment entity representing a scheduled session between a patient and a practitioner.

    The assigned practitioner is optional; reminders fall back to
    "your practitioner" when none is set.
    """

    __tablename__ = "appointments"

    id: Mapped[str] = mapped_column(String(UUID_STRING_LENGTH), primary_key=True, default=new_uuid)
    """Unique identifier for the appointment (UUID string)."""

    patient_id: Mapped[str] = mapped_column(ForeignKey("patients.id"))
    """Reference to the patient who has booked this appointment."""

    staff_id: Mapped[Optional[str]] = mapped_column(ForeignKey("staff.id"), nullable=True)
    """Reference to the assigned practitioner, if any."""

    title: Mapped[Optional[str]] = mapped_column(String(MAX_STRING_LENGTH), nullable=True)
    """Short description of the visit (e.g., 'Cleaning', 'Crown fitting')."""

    start_time: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """When the appointment starts."""

    end_time: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """When the appointment ends."""

    status: Mapped[str] = mapped_column(String(50), default='scheduled')  # 'scheduled', 'completed', 'cancelled', ...
    """Current status of the appointment as tracked by the clinic product."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """Timestamp when the appointment was created."""

    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """Timestamp when the appointment was last updated."""

    # Relationships
    patient = relationship("Patient", back_populates="appointments")
    """Relationship to the Patient entity who booked this appointment."""

    staff = relationship("Staff", back_populates="appointments")
    """Relationship to the assigned practitioner."""

    # Table indexes for performance
    __table_args__ = (
        Index('idx_appointments_patient', 'patient_id'),
        Index('idx_appointments_status', 'status'),
    )
