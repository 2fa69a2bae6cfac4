"""
Patient communication model.

This model stores every message scheduled for a patient (reminders, treatment
information, follow-ups, educational content, ...) together with its delivery
lifecycle: scheduled, then exactly one of sent, failed or cancelled.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, ForeignKey, TIMESTAMP, Text, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from core.constants import (
    COMMUNICATION_CHANNELS,
    COMMUNICATION_STATUSES,
    COMMUNICATION_TYPES,
    MAX_ERROR_MESSAGE_LENGTH,
    UUID_STRING_LENGTH,
)
from utils.id_utils import new_uuid


def _in_clause(column: str, values: tuple[str, ...]) -> str:
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({quoted})"


class PatientCommunication(Base):
    """
    Patient communication entity.

    Created in 'scheduled' status with its content already resolved. The
    dispatcher moves it to 'sent' or 'failed'; the cancellation coordinator
    moves it to 'cancelled'. Terminal records are never modified or deleted.
    """

    __tablename__ = "patient_communications"

    id: Mapped[str] = mapped_column(String(UUID_STRING_LENGTH), primary_key=True, default=new_uuid)
    """Unique identifier for the communication (UUID string)."""

    patient_id: Mapped[str] = mapped_column(ForeignKey("patients.id"), nullable=False)
    """Reference to the patient receiving the communication."""

    type: Mapped[str] = mapped_column(String(50), nullable=False)
    """Communication type: 'appointment_reminder', 'treatment_info', 'follow_up', etc."""

    channel: Mapped[str] = mapped_column(String(20), nullable=False)
    """Delivery channel: 'email', 'sms', or 'app'."""

    content: Mapped[str] = mapped_column(Text, nullable=False)
    """Resolved message text (caller-supplied or generated at scheduling time)."""

    scheduled_for: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """When the communication becomes due."""

    status: Mapped[str] = mapped_column(String(20), default='scheduled', nullable=False)
    """Status: 'scheduled', 'sent', 'failed', or 'cancelled'."""

    sent_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """When the communication was delivered. Set only on transition to 'sent'."""

    error_message: Mapped[Optional[str]] = mapped_column(String(MAX_ERROR_MESSAGE_LENGTH), nullable=True)
    """Delivery failure reason. Set only on transition to 'failed'."""

    cancelled_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """When the communication was cancelled. Set only on transition to 'cancelled'."""

    treatment_plan_id: Mapped[Optional[str]] = mapped_column(String(UUID_STRING_LENGTH), nullable=True)
    """Optional treatment plan this communication is about."""

    appointment_id: Mapped[Optional[str]] = mapped_column(String(UUID_STRING_LENGTH), nullable=True)
    """Optional appointment this communication is about; used for bulk cancellation."""

    notify_user_id: Mapped[Optional[str]] = mapped_column(String(UUID_STRING_LENGTH), nullable=True)
    """Staff user receiving the in-app notification for 'app' channel communications."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """Timestamp when the communication was created."""

    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """Timestamp when the communication was last updated."""

    # Relationships
    patient = relationship("Patient", back_populates="communications")
    """Relationship to the Patient entity."""

    # Table constraints
    __table_args__ = (
        CheckConstraint(_in_clause('status', COMMUNICATION_STATUSES), name='check_communication_status'),
        CheckConstraint(_in_clause('type', COMMUNICATION_TYPES), name='check_communication_type'),
        CheckConstraint(_in_clause('channel', COMMUNICATION_CHANNELS), name='check_communication_channel'),
        Index('idx_patient_communications_due', 'status', 'scheduled_for'),
        Index('idx_patient_communications_appointment', 'appointment_id'),
        Index('idx_patient_communications_patient', 'patient_id'),
    )
