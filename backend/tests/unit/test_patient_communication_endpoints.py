"""
Unit tests calling the patient communication endpoint functions directly.
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from fastapi import HTTPException

from api.patient_communication import (
    cancel_by_appointment,
    method_not_allowed,
    process_scheduled,
    schedule_communication,
)
from api.responses import CancelByAppointmentRequest, ScheduleCommunicationRequest
from tests.factories import create_communication, create_patient


class TestEndpointFunctions:

    @pytest.mark.asyncio
    async def test_schedule_returns_camel_case_record(self, db_session):
        patient = create_patient(db_session)
        request = ScheduleCommunicationRequest(
            patient_id=patient.id,
            type="education",
            channel="email",
            scheduled_for=(datetime.now(timezone.utc) + timedelta(days=1)).isoformat(),
        )

        response = await schedule_communication(request, db_session)

        payload = response.model_dump(by_alias=True)
        assert payload["success"] is True
        assert payload["data"]["patientId"] == patient.id
        assert payload["data"]["status"] == "scheduled"
        assert payload["data"]["scheduledFor"].tzinfo is not None

    @pytest.mark.asyncio
    async def test_schedule_unexpected_error_is_500(self, db_session):
        request = ScheduleCommunicationRequest(
            patient_id="p-1", type="education", channel="email", scheduled_for="2099-01-01T00:00:00Z"
        )

        with patch(
            "api.patient_communication.CommunicationSchedulingService.schedule",
            side_effect=RuntimeError("connection lost"),
        ):
            with pytest.raises(HTTPException) as exc_info:
                await schedule_communication(request, db_session)

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Failed to create communication"

    @pytest.mark.asyncio
    async def test_cancel_missing_appointment_id_is_400(self, db_session):
        with pytest.raises(HTTPException) as exc_info:
            await cancel_by_appointment(CancelByAppointmentRequest(), db_session)

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Missing appointmentId in request body"

    @pytest.mark.asyncio
    async def test_cancel_serializes_counts(self, db_session):
        patient = create_patient(db_session)
        communication = create_communication(
            db_session, patient, scheduled_for=datetime.now(timezone.utc) + timedelta(days=1), appointment_id="A9"
        )

        response = await cancel_by_appointment(CancelByAppointmentRequest(appointment_id="A9"), db_session)

        assert response.model_dump(by_alias=True) == {
            "success": True,
            "cancelledCount": 1,
            "cancelledIds": [communication.id],
        }

    @pytest.mark.asyncio
    async def test_process_failure_is_500(self, db_session):
        with patch(
            "api.patient_communication.CommunicationProcessor.process_due",
            side_effect=RuntimeError("database unavailable"),
        ):
            with pytest.raises(HTTPException) as exc_info:
                await process_scheduled(db_session)

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_catch_all_is_405(self):
        with pytest.raises(HTTPException) as exc_info:
            await method_not_allowed("anything")

        assert exc_info.value.status_code == 405
        assert exc_info.value.detail == "Method or path not allowed"
