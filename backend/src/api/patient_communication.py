# pyright: reportMissingTypeStubs=false
"""
Patient communication API endpoints.

Scheduling, periodic processing and appointment-scoped cancellation of
patient communications. Any other method or path under this router's prefix
is rejected with 405.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from sqlalchemy.orm import Session

from api.responses import (
    CancelByAppointmentRequest,
    CancelByAppointmentResponse,
    CommunicationListResponse,
    CommunicationRecordResponse,
    DispatchResultResponse,
    ProcessScheduledResponse,
    ScheduleCommunicationRequest,
    ScheduleCommunicationResponse,
)
from core.database import get_db
from services.communication_cancellation import CommunicationCancellationService
from services.communication_processor import CommunicationProcessor
from services.communication_scheduling_service import CommunicationSchedulingService
from services.communication_store import CommunicationStore, CommunicationValidationError
from services.patient_records_service import PatientNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()

METHOD_NOT_ALLOWED_MESSAGE = "Method or path not allowed"


@router.post("", summary="Schedule a patient communication")
@router.post("/", include_in_schema=False)
async def schedule_communication(
    request: ScheduleCommunicationRequest,
    db: Session = Depends(get_db)
) -> ScheduleCommunicationResponse:
    """
    Schedule a communication for a patient.

    Content is generated from the communication type unless customMessage is
    given. A communication whose scheduledFor is not in the future is sent
    immediately and returned with its post-send status.
    """
    try:
        communication = CommunicationSchedulingService.schedule(
            db,
            patient_id=request.patient_id,
            communication_type=request.type,
            channel=request.channel,
            scheduled_for=request.scheduled_for,
            custom_message=request.custom_message,
            treatment_plan_id=request.treatment_plan_id,
            appointment_id=request.appointment_id,
            notify_user_id=request.notify_user_id,
        )
        return ScheduleCommunicationResponse(
            success=True,
            data=CommunicationRecordResponse.model_validate(communication),
        )
    except HTTPException:
        raise
    except CommunicationValidationError as e:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except PatientNotFoundError as e:
        raise HTTPException(
            status_code=http_status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except Exception as e:
        logger.exception(f"Failed to schedule communication: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create communication"
        )


@router.get("/process-scheduled", summary="Send all due communications")
@router.get("/process-scheduled/", include_in_schema=False)
async def process_scheduled(
    db: Session = Depends(get_db)
) -> ProcessScheduledResponse:
    """Run one processing pass over due communications (at most one batch)."""
    try:
        summary = CommunicationProcessor(db).process_due()
        return ProcessScheduledResponse(
            processed=summary.processed,
            results=[
                DispatchResultResponse(id=result.id, success=result.success)
                for result in summary.results
            ],
        )
    except Exception as e:
        logger.exception(f"Failed to process scheduled communications: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process scheduled communications"
        )


@router.post("/cancel-by-appointment", summary="Cancel an appointment's scheduled communications")
@router.post("/cancel-by-appointment/", include_in_schema=False)
async def cancel_by_appointment(
    request: CancelByAppointmentRequest,
    db: Session = Depends(get_db)
) -> CancelByAppointmentResponse:
    """
    Cancel every still-scheduled communication linked to an appointment.

    Idempotent: repeating the call returns cancelledCount 0.
    """
    try:
        result = CommunicationCancellationService.cancel_by_appointment(db, request.appointment_id or "")
        return CancelByAppointmentResponse(
            success=True,
            cancelled_count=result.cancelled_count,
            cancelled_ids=result.cancelled_ids,
        )
    except HTTPException:
        raise
    except CommunicationValidationError as e:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        logger.exception(f"Failed to cancel communications for appointment {request.appointment_id}: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to cancel communications"
        )


@router.get("/patients/{patient_id}", summary="List a patient's communications")
async def list_patient_communications(
    patient_id: str,
    status: Optional[str] = None,
    db: Session = Depends(get_db)
) -> CommunicationListResponse:
    """List a patient's communications, newest scheduledFor first, optionally filtered by status."""
    try:
        communications = CommunicationStore(db).list_for_patient(patient_id, status=status)
        return CommunicationListResponse(
            success=True,
            data=[CommunicationRecordResponse.model_validate(c) for c in communications],
        )
    except HTTPException:
        raise
    except CommunicationValidationError as e:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        logger.exception(f"Failed to list communications for patient {patient_id}: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list communications"
        )


# Catch-all routes must be registered after every other route on this router
@router.api_route(
    "",
    methods=["GET", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
@router.api_route(
    "/{action:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def method_not_allowed(action: str = "") -> None:
    """Reject any method/path combination not handled above."""
    raise HTTPException(
        status_code=http_status.HTTP_405_METHOD_NOT_ALLOWED,
        detail=METHOD_NOT_ALLOWED_MESSAGE
    )
