"""
Shared request and response models for API endpoints.

Field names are snake_case in Python and camelCase on the wire; responses are
serialized by alias.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from utils.datetime_utils import ensure_utc


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """Error body returned for every non-2xx response."""
    error: str


class ScheduleCommunicationRequest(CamelModel):
    """Request model for scheduling a communication."""
    patient_id: Optional[str] = None
    type: Optional[str] = None
    channel: Optional[str] = None
    scheduled_for: Optional[str] = None  # ISO 8601; naive values are treated as UTC
    custom_message: Optional[str] = None
    treatment_plan_id: Optional[str] = None
    appointment_id: Optional[str] = None
    notify_user_id: Optional[str] = None  # Staff recipient for 'app' channel messages


class CancelByAppointmentRequest(CamelModel):
    """Request model for cancelling an appointment's scheduled communications."""
    appointment_id: Optional[str] = None


class CommunicationRecordResponse(CamelModel):
    """Response model for a patient communication."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    patient_id: str
    type: str
    channel: str
    content: str
    scheduled_for: datetime
    status: str
    sent_at: Optional[datetime] = None
    error_message: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    treatment_plan_id: Optional[str] = None
    appointment_id: Optional[str] = None
    notify_user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator('scheduled_for', 'sent_at', 'cancelled_at', 'created_at', 'updated_at')
    @classmethod
    def normalize_to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        """Stored timestamps are UTC; some backends return them without tzinfo."""
        return ensure_utc(value)


class ScheduleCommunicationResponse(CamelModel):
    """Response model for a scheduled communication."""
    success: bool = True
    data: CommunicationRecordResponse


class CommunicationListResponse(CamelModel):
    """Response model for listing a patient's communications."""
    success: bool = True
    data: List[CommunicationRecordResponse]


class DispatchResultResponse(CamelModel):
    """Outcome of dispatching one communication."""
    id: str
    success: bool


class ProcessScheduledResponse(CamelModel):
    """Response model for a processing pass."""
    processed: int
    results: List[DispatchResultResponse]


class CancelByAppointmentResponse(CamelModel):
    """Response model for appointment-scoped cancellation."""
    success: bool = True
    cancelled_count: int
    cancelled_ids: List[str]
