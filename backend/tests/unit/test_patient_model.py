"""
Unit tests for patient profile validation and snapshots.
"""

from models import DentalHistory, Patient, Staff


class TestPatientProfile:
    """Test JSON profile validation on Patient."""

    def test_validated_dental_history(self):
        patient = Patient(
            id="p-1",
            dental_history={"has_pain": True, "pain_scale": 4,
                            "past_treatments": ["filling"], "legacy_field": "dropped"},
        )

        history = patient.get_validated_dental_history()

        assert isinstance(history, DentalHistory)
        assert history.has_pain is True
        assert history.pain_scale == 4
        assert history.past_treatments == ["filling"]

    def test_malformed_dental_history_is_ignored(self):
        patient = Patient(id="p-1", dental_history={"pain_scale": 42})

        assert patient.get_validated_dental_history() is None

    def test_missing_profiles(self):
        patient = Patient(id="p-1")

        assert patient.get_validated_dental_history() is None
        assert patient.get_validated_lifestyle_habits() is None

    def test_snapshot_carries_contact_details(self):
        patient = Patient(
            id="p-1",
            first_name="Alice",
            last_name="Nguyen",
            email="alice@example.com",
            phone="+15551230000",
            lifestyle_habits={"diet": "vegetarian"},
        )

        snapshot = patient.to_snapshot()

        assert snapshot.id == "p-1"
        assert snapshot.first_name == "Alice"
        assert snapshot.email == "alice@example.com"
        assert snapshot.phone == "+15551230000"
        assert snapshot.lifestyle_habits.diet == "vegetarian"
        assert snapshot.dental_history is None


class TestStaffDisplayName:
    def test_full_name(self):
        assert Staff(first_name="Maria", last_name="Lopez").display_name == "Dr. Maria Lopez"

    def test_partial_name(self):
        assert Staff(first_name=None, last_name="Lopez").display_name == "Dr. Lopez"

    def test_no_name(self):
        assert Staff(first_name=None, last_name=None).display_name is None
