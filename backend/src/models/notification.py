"""
In-app notification model.

Notifications are shown to staff in the clinic portal. The 'app' channel of
patient communications delivers by inserting a row here.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Text, Boolean, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base
from core.constants import MAX_STRING_LENGTH, UUID_STRING_LENGTH
from utils.id_utils import new_uuid


class Notification(Base):
    """In-app notification addressed to a portal user."""

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(UUID_STRING_LENGTH), primary_key=True, default=new_uuid)

    user_id: Mapped[str] = mapped_column(String(UUID_STRING_LENGTH), nullable=False)
    """Portal user the notification is addressed to."""

    message: Mapped[str] = mapped_column(Text, nullable=False)

    link_url: Mapped[Optional[str]] = mapped_column(String(MAX_STRING_LENGTH), nullable=True)
    """Optional portal path the notification links to."""

    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    __table_args__ = (
        Index('idx_notifications_user_unread', 'user_id', 'is_read'),
    )
