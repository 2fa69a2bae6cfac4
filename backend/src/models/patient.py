"""
Patient model representing individuals who receive treatment at the clinic.

Patients are owned by the wider practice-management product; this backend
reads their contact details and profile when generating and delivering
communications. The structured dental history and lifestyle habits are stored
as JSON blobs and validated on read.
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy import String, TIMESTAMP, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from core.constants import MAX_STRING_LENGTH, UUID_STRING_LENGTH
from utils.id_utils import new_uuid

logger = logging.getLogger(__name__)


# Profile schema validation models
class DentalHistory(BaseModel):
    """Schema for the structured dental history captured at onboarding."""
    model_config = ConfigDict(extra="ignore")

    reason_for_visit: Optional[str] = Field(default=None)
    chief_complaint: Optional[str] = Field(default=None)
    has_pain: Optional[bool] = Field(default=None)
    pain_scale: Optional[int] = Field(default=None, ge=0, le=10)
    past_treatments: List[str] = Field(default_factory=list)
    brushing_frequency: Optional[str] = Field(default=None)
    flossing_habits: Optional[str] = Field(default=None)
    orthodontic_history: Optional[bool] = Field(default=None)
    future_goals: Optional[str] = Field(default=None)


class LifestyleHabits(BaseModel):
    """Schema for lifestyle and special considerations."""
    model_config = ConfigDict(extra="ignore")

    diet: Optional[str] = Field(default=None)
    exercise: Optional[str] = Field(default=None)
    stress: Optional[str] = Field(default=None)
    sleep_issues: Optional[str] = Field(default=None)
    pregnancy_status: Optional[str] = Field(default=None)
    additional_concerns: Optional[str] = Field(default=None)


class PatientSnapshot(BaseModel):
    """
    Read-only view of a patient used for content generation and delivery.

    Only the first name is required by message templates; contact fields are
    needed by the email and SMS channels.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    dental_history: Optional[DentalHistory] = None
    lifestyle_habits: Optional[LifestyleHabits] = None


class Patient(Base):
    """
    Patient entity representing an individual who receives treatment at the clinic.

    Each patient can have many appointments, treatment plans and scheduled
    communications. Email and phone are optional; a communication on a channel
    whose contact field is missing fails at delivery time.
    """

    __tablename__ = "patients"

    id: Mapped[str] = mapped_column(String(UUID_STRING_LENGTH), primary_key=True, default=new_uuid)
    """Unique identifier for the patient (UUID string)."""

    first_name: Mapped[Optional[str]] = mapped_column(String(MAX_STRING_LENGTH), nullable=True)
    """Patient's first name, used in message salutations."""

    last_name: Mapped[Optional[str]] = mapped_column(String(MAX_STRING_LENGTH), nullable=True)
    """Patient's last name."""

    email: Mapped[Optional[str]] = mapped_column(String(MAX_STRING_LENGTH), nullable=True)
    """Contact email address, required for the email channel."""

    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    """Contact phone number, required for the SMS channel."""

    user_id: Mapped[Optional[str]] = mapped_column(String(UUID_STRING_LENGTH), nullable=True)
    """Optional portal user account linked to this patient."""

    dental_history: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    """Structured dental history (see DentalHistory)."""

    lifestyle_habits: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    """Lifestyle habits and special considerations (see LifestyleHabits)."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """Timestamp when the patient was first created."""

    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """Timestamp when the patient was last updated."""

    # Relationships
    appointments = relationship("Appointment", back_populates="patient")
    """Relationship to all Appointment entities booked by this patient."""

    communications = relationship("PatientCommunication", back_populates="patient")
    """Relationship to all communications scheduled for this patient."""

    __table_args__ = (
        Index('idx_patients_email', 'email'),
    )

    def get_validated_dental_history(self) -> Optional[DentalHistory]:
        """Get dental history with schema validation, or None if absent or malformed."""
        if not self.dental_history:
            return None
        try:
            return DentalHistory.model_validate(self.dental_history)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed dental_history for patient {self.id}: {e}")
            return None

    def get_validated_lifestyle_habits(self) -> Optional[LifestyleHabits]:
        """Get lifestyle habits with schema validation, or None if absent or malformed."""
        if not self.lifestyle_habits:
            return None
        try:
            return LifestyleHabits.model_validate(self.lifestyle_habits)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed lifestyle_habits for patient {self.id}: {e}")
            return None

    def to_snapshot(self) -> PatientSnapshot:
        """Build the read-only snapshot used by content generation and delivery."""
        return PatientSnapshot(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            phone=self.phone,
            dental_history=self.get_validated_dental_history(),
            lifestyle_habits=self.get_validated_lifestyle_habits(),
        )
