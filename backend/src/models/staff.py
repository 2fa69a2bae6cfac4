"""
Staff model for clinic personnel.

Staff members are practitioners and back-office users. Practitioners are
named in appointment reminders; any staff user can receive in-app
notifications about patient communications.
"""

from typing import Optional
from datetime import datetime
from sqlalchemy import String, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from core.constants import MAX_STRING_LENGTH, UUID_STRING_LENGTH
from utils.id_utils import new_uuid


class Staff(Base):
    """Clinic personnel (dentists, hygienists, front-desk and admin users)."""

    __tablename__ = "staff"

    id: Mapped[str] = mapped_column(String(UUID_STRING_LENGTH), primary_key=True, default=new_uuid)

    # Portal account; in-app notifications are addressed to this user id
    user_id: Mapped[Optional[str]] = mapped_column(String(UUID_STRING_LENGTH), nullable=True, index=True)

    first_name: Mapped[Optional[str]] = mapped_column(String(MAX_STRING_LENGTH), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(MAX_STRING_LENGTH), nullable=True)
    role: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # 'dentist', 'hygienist', 'admin', ...

    # Metadata
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    # Relationships
    appointments = relationship("Appointment", back_populates="staff")

    @property
    def display_name(self) -> Optional[str]:
        """Name as shown to patients ("Dr. First Last"), or None when no name is on file."""
        parts = [part for part in (self.first_name, self.last_name) if part]
        if not parts:
            return None
        return f"Dr. {' '.join(parts)}"
