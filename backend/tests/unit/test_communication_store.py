"""
Unit tests for CommunicationStore.

Covers creation validation, the due query, compare-and-set status updates
and the appointment-scoped bulk cancellation.
"""

import pytest
from datetime import datetime, timedelta, timezone

from services.communication_store import (
    CommunicationDraft,
    CommunicationStore,
    CommunicationValidationError,
    truncate_error_message,
)
from utils.datetime_utils import ensure_utc
from tests.factories import create_communication, create_patient


NOW = datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc)


def _draft(**overrides) -> CommunicationDraft:
    fields = dict(
        patient_id="patient-1",
        type="follow_up",
        channel="sms",
        content="Dear Alice, checking in.",
        scheduled_for=NOW + timedelta(days=1),
    )
    fields.update(overrides)
    return CommunicationDraft(**fields)


class TestCreate:
    """Test creating communications."""

    def test_create_sets_scheduled_status_and_defaults(self, db_session):
        patient = create_patient(db_session)
        store = CommunicationStore(db_session)

        communication = store.create(_draft(patient_id=patient.id, appointment_id="appt-1"))

        assert communication.id
        assert communication.status == "scheduled"
        assert communication.sent_at is None
        assert communication.error_message is None
        assert communication.cancelled_at is None
        assert communication.appointment_id == "appt-1"
        assert communication.created_at is not None
        assert communication.updated_at is not None

    def test_create_normalizes_scheduled_for_to_utc(self, db_session):
        patient = create_patient(db_session)
        store = CommunicationStore(db_session)
        local_time = datetime(2026, 3, 3, 9, 0, tzinfo=timezone(timedelta(hours=-5)))

        communication = store.create(_draft(patient_id=patient.id, scheduled_for=local_time))

        assert ensure_utc(communication.scheduled_for) == datetime(2026, 3, 3, 14, 0, tzinfo=timezone.utc)

    def test_create_treats_blank_references_as_absent(self, db_session):
        patient = create_patient(db_session)
        store = CommunicationStore(db_session)

        communication = store.create(_draft(patient_id=patient.id, appointment_id="  ", treatment_plan_id=""))

        assert communication.appointment_id is None
        assert communication.treatment_plan_id is None

    @pytest.mark.parametrize("overrides", [
        {"type": "birthday_greeting"},
        {"channel": "whatsapp"},
        {"content": "   "},
        {"patient_id": ""},
    ])
    def test_create_rejects_invalid_fields(self, db_session, overrides):
        patient = create_patient(db_session)
        store = CommunicationStore(db_session)

        with pytest.raises(CommunicationValidationError):
            store.create(_draft(**{"patient_id": patient.id, **overrides}))

    def test_validation_error_is_value_error(self):
        assert issubclass(CommunicationValidationError, ValueError)


class TestListDueBefore:
    """Test the due-communications query."""

    def test_returns_only_scheduled_and_due(self, db_session):
        patient = create_patient(db_session)
        due = create_communication(db_session, patient, scheduled_for=NOW - timedelta(minutes=1))
        exactly_now = create_communication(db_session, patient, scheduled_for=NOW)
        create_communication(db_session, patient, scheduled_for=NOW + timedelta(seconds=1))
        create_communication(db_session, patient, scheduled_for=NOW - timedelta(hours=1), status="sent")
        create_communication(db_session, patient, scheduled_for=NOW - timedelta(hours=1), status="failed",
                             error_message="boom")
        create_communication(db_session, patient, scheduled_for=NOW - timedelta(hours=1), status="cancelled")

        result = CommunicationStore(db_session).list_due_before(NOW, limit=50)

        assert [c.id for c in result] == [due.id, exactly_now.id]

    def test_orders_oldest_first_and_applies_limit(self, db_session):
        patient = create_patient(db_session)
        newest = create_communication(db_session, patient, scheduled_for=NOW - timedelta(minutes=1))
        oldest = create_communication(db_session, patient, scheduled_for=NOW - timedelta(hours=3))
        middle = create_communication(db_session, patient, scheduled_for=NOW - timedelta(hours=2))

        store = CommunicationStore(db_session)

        assert [c.id for c in store.list_due_before(NOW, limit=50)] == [oldest.id, middle.id, newest.id]
        assert [c.id for c in store.list_due_before(NOW, limit=2)] == [oldest.id, middle.id]


class TestUpdateStatus:
    """Test compare-and-set status updates."""

    def test_mark_sent(self, db_session):
        patient = create_patient(db_session)
        communication = create_communication(db_session, patient)
        store = CommunicationStore(db_session)

        assert store.update_status(communication.id, "sent", sent_at=NOW) is True

        stored = store.get(communication.id)
        assert stored.status == "sent"
        assert ensure_utc(stored.sent_at) == NOW
        assert stored.error_message is None

    def test_mark_failed_truncates_error_message(self, db_session):
        patient = create_patient(db_session)
        communication = create_communication(db_session, patient)
        store = CommunicationStore(db_session)

        assert store.update_status(communication.id, "failed", error_message="x" * 800) is True

        stored = store.get(communication.id)
        assert stored.status == "failed"
        assert stored.error_message == "x" * 500
        assert stored.sent_at is None

    def test_update_on_terminal_record_is_noop(self, db_session):
        patient = create_patient(db_session)
        communication = create_communication(db_session, patient)
        store = CommunicationStore(db_session)
        store.update_status(communication.id, "sent", sent_at=NOW)

        assert store.update_status(communication.id, "failed", error_message="late failure") is False

        stored = store.get(communication.id)
        assert stored.status == "sent"
        assert stored.error_message is None

    def test_update_missing_record_returns_false(self, db_session):
        assert CommunicationStore(db_session).update_status("does-not-exist", "sent") is False

    def test_rejects_non_terminal_target_status(self, db_session):
        patient = create_patient(db_session)
        communication = create_communication(db_session, patient)

        with pytest.raises(CommunicationValidationError):
            CommunicationStore(db_session).update_status(communication.id, "scheduled")

    def test_truncate_error_message(self):
        assert truncate_error_message("short") == "short"
        assert len(truncate_error_message("e" * 501)) == 500


class TestCancelByAppointmentId:
    """Test bulk cancellation by appointment."""

    def test_cancels_only_scheduled_records_for_appointment(self, db_session):
        patient = create_patient(db_session)
        first = create_communication(db_session, patient, appointment_id="appt-1")
        second = create_communication(db_session, patient, appointment_id="appt-1",
                                      scheduled_for=NOW + timedelta(days=2))
        sent = create_communication(db_session, patient, appointment_id="appt-1", status="sent", sent_at=NOW)
        other = create_communication(db_session, patient, appointment_id="appt-2")
        store = CommunicationStore(db_session)

        count, ids = store.cancel_by_appointment_id("appt-1")

        assert count == 2
        assert sorted(ids) == sorted([first.id, second.id])
        assert store.get(first.id).status == "cancelled"
        assert store.get(first.id).cancelled_at is not None
        assert store.get(sent.id).status == "sent"
        assert store.get(other.id).status == "scheduled"

    def test_second_cancel_returns_zero(self, db_session):
        patient = create_patient(db_session)
        create_communication(db_session, patient, appointment_id="appt-1")
        store = CommunicationStore(db_session)

        assert store.cancel_by_appointment_id("appt-1")[0] == 1
        assert store.cancel_by_appointment_id("appt-1") == (0, [])

    def test_cancelled_record_cannot_be_sent(self, db_session):
        patient = create_patient(db_session)
        communication = create_communication(db_session, patient, appointment_id="appt-1")
        store = CommunicationStore(db_session)
        store.cancel_by_appointment_id("appt-1")

        assert store.update_status(communication.id, "sent") is False
        assert store.get(communication.id).status == "cancelled"
        assert store.get_scheduled_with_patient(communication.id) is None


class TestListForPatient:
    """Test listing a patient's communications."""

    def test_lists_newest_first_with_status_filter(self, db_session):
        patient = create_patient(db_session)
        other_patient = create_patient(db_session, first_name="Bob", email="bob@example.com")
        older = create_communication(db_session, patient, scheduled_for=NOW - timedelta(days=2), status="sent")
        newer = create_communication(db_session, patient, scheduled_for=NOW + timedelta(days=1))
        create_communication(db_session, other_patient)
        store = CommunicationStore(db_session)

        assert [c.id for c in store.list_for_patient(patient.id)] == [newer.id, older.id]
        assert [c.id for c in store.list_for_patient(patient.id, status="sent")] == [older.id]

    def test_rejects_unknown_status(self, db_session):
        with pytest.raises(CommunicationValidationError):
            CommunicationStore(db_session).list_for_patient("patient-1", status="pending")
