"""
Treatment plan model.

Treatment plans are authored in the clinic product. Communications of type
'treatment_info' reference a plan, and each successful delivery records when
the patient was last notified about it.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Text, ForeignKey, Integer, TIMESTAMP, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base
from core.constants import MAX_STRING_LENGTH, UUID_STRING_LENGTH
from utils.id_utils import new_uuid


class TreatmentPlan(Base):
    """Treatment plan entity with notification bookkeeping."""

    __tablename__ = "treatment_plans"

    id: Mapped[str] = mapped_column(String(UUID_STRING_LENGTH), primary_key=True, default=new_uuid)
    """Unique identifier for the treatment plan (UUID string)."""

    patient_id: Mapped[str] = mapped_column(ForeignKey("patients.id"))
    """Reference to the patient this plan belongs to."""

    title: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH), nullable=False)
    """Plan title shown to the patient."""

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Optional plan description included in treatment info messages."""

    last_notification_sent: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """When a communication about this plan was last delivered."""

    notification_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    """Number of communications delivered about this plan."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint('notification_count >= 0', name='check_notification_count_non_negative'),
    )
