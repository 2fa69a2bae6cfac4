"""
Communication content service for generating patient message text.

Maps a communication type and patient to message text, looking up the linked
appointment or treatment plan where the template needs it. Missing or
deleted references degrade to generic wording; generation never fails.
"""

import logging
import re
from typing import Dict, Any, Optional

from sqlalchemy.orm import Session

from core.config import CLINIC_NAME
from models import PatientCommunication, PatientSnapshot
from services.patient_records_service import PatientRecordsService
from utils.datetime_utils import format_long_date, format_time

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{(\w+)\}")

DEFAULT_FIRST_NAME = "there"
DEFAULT_PRACTITIONER_NAME = "your practitioner"
DEFAULT_PLAN_DESCRIPTION = "Please review the details in your portal."

REMINDER_TEMPLATE = (
    "Hi {first_name}, reminder: Your appointment is on {appointment_date} at {appointment_time} "
    "with {practitioner_name}. Please arrive 10 minutes early. "
    "Call us to reschedule (24hr notice appreciated)."
)
REMINDER_APPOINTMENT_MISSING_TEMPLATE = (
    "Hi {first_name}, this is a reminder about your upcoming appointment. "
    "Please contact us if you need details."
)
REMINDER_NO_APPOINTMENT_TEMPLATE = (
    "Hi {first_name}, this is a reminder about your upcoming appointment at {clinic_name}."
)

CANCELLATION_TEMPLATE = (
    "Hi {first_name}, this message confirms the cancellation of your appointment scheduled for "
    "{appointment_date} at {appointment_time} with {clinic_name}. "
    "Please call us if you need to reschedule."
)
CANCELLATION_APPOINTMENT_MISSING_TEMPLATE = (
    "Hi {first_name}, this confirms the cancellation of your recent appointment with {clinic_name}. "
    "Please contact us if you have questions."
)
CANCELLATION_NO_APPOINTMENT_TEMPLATE = (
    "Hi {first_name}, this confirms the cancellation of your appointment with {clinic_name}."
)

TREATMENT_INFO_TEMPLATE = (
    'Dear {first_name}, regarding your treatment plan "{plan_title}": {plan_description} '
    "Contact us with any questions."
)
TREATMENT_INFO_PLAN_MISSING_TEMPLATE = (
    "Dear {first_name}, please review the information regarding your treatment plan in your portal."
)
TREATMENT_INFO_NO_PLAN_TEMPLATE = (
    "Dear {first_name}, please review the information regarding your treatment plan."
)

STATIC_TEMPLATES: Dict[str, str] = {
    'post_treatment': (
        "Hello {first_name}, hope you're recovering well. Remember to follow post-care instructions "
        "provided. Contact us immediately if you experience severe pain or unusual symptoms."
    ),
    'education': (
        "Hi {first_name}, quick tip for great oral health: Brush twice daily, floss once daily, "
        "and visit us regularly for check-ups! More tips on our website."
    ),
    'follow_up': (
        "Dear {first_name}, checking in after your recent visit. Please let us know if you have "
        "any questions or concerns about your treatment."
    ),
    'new_patient_welcome': (
        "Welcome to {clinic_name}, {first_name}! We're excited to have you as a patient. "
        "You can manage your appointments and view information through our patient portal."
    ),
    'profile_update': (
        "Hi {first_name}, your information at {clinic_name} has been updated. "
        "If you did not make these changes, please contact us immediately."
    ),
}

FALLBACK_TEMPLATE = "Hello {first_name}, thank you for being a patient at {clinic_name}."

EMAIL_SUBJECT_LABELS: Dict[str, str] = {
    'appointment_reminder': "Appointment reminder",
    'treatment_info': "Your treatment plan",
    'post_treatment': "After your treatment",
    'education': "Oral health tip",
    'follow_up': "Following up on your visit",
    'appointment_cancellation': "Appointment cancelled",
    'new_patient_welcome': "Welcome",
    'profile_update': "Your information was updated",
}


class CommunicationContentService:
    """Service for generating communication message content."""

    @staticmethod
    def render_message(template: str, context: Dict[str, Any]) -> str:
        """
        Render message template with placeholders.

        Placeholders are substituted in a single pass over the template, so
        braces inside substituted values are kept as-is. Context keys with a
        missing value render as empty strings; names absent from the context
        are left untouched.

        Args:
            template: Message template with {placeholder} names
            context: Values keyed by placeholder name

        Returns:
            Rendered message with placeholders replaced
        """
        def substitute(match: re.Match) -> str:
            key = match.group(1)
            if key not in context:
                return match.group(0)
            return str(context[key] or "")

        return PLACEHOLDER_PATTERN.sub(substitute, template)

    @staticmethod
    def generate_content(
        db: Session,
        communication_type: str,
        patient: Optional[PatientSnapshot],
        treatment_plan_id: Optional[str] = None,
        appointment_id: Optional[str] = None,
    ) -> str:
        """
        Generate message text for a communication.

        Args:
            db: Database session used for appointment / treatment plan lookups
            communication_type: One of the communication types
            patient: Patient snapshot; only the first name is used
            treatment_plan_id: Plan referenced by 'treatment_info' messages
            appointment_id: Appointment referenced by reminder and cancellation messages

        Returns:
            Non-empty message text
        """
        context: Dict[str, Any] = {
            'first_name': (patient.first_name if patient else None) or DEFAULT_FIRST_NAME,
            'clinic_name': CLINIC_NAME,
        }

        if communication_type == 'appointment_reminder':
            template = CommunicationContentService._reminder_template(db, appointment_id, context)
        elif communication_type == 'appointment_cancellation':
            template = CommunicationContentService._cancellation_template(db, appointment_id, context)
        elif communication_type == 'treatment_info':
            template = CommunicationContentService._treatment_info_template(db, treatment_plan_id, context)
        elif communication_type in STATIC_TEMPLATES:
            template = STATIC_TEMPLATES[communication_type]
        else:
            logger.warning(f"Unknown communication type: {communication_type}")
            template = FALLBACK_TEMPLATE

        return CommunicationContentService.render_message(template, context)

    @staticmethod
    def _reminder_template(db: Session, appointment_id: Optional[str], context: Dict[str, Any]) -> str:
        if not appointment_id:
            logger.warning("Cannot generate reminder content without an appointment id")
            return REMINDER_NO_APPOINTMENT_TEMPLATE

        appointment = PatientRecordsService.get_appointment_details(db, appointment_id)
        if not appointment:
            logger.warning(f"Could not find appointment {appointment_id} to generate reminder")
            return REMINDER_APPOINTMENT_MISSING_TEMPLATE

        context['appointment_date'] = format_long_date(appointment.start_time)
        context['appointment_time'] = format_time(appointment.start_time)
        context['practitioner_name'] = appointment.practitioner_name or DEFAULT_PRACTITIONER_NAME
        return REMINDER_TEMPLATE

    @staticmethod
    def _cancellation_template(db: Session, appointment_id: Optional[str], context: Dict[str, Any]) -> str:
        if not appointment_id:
            logger.warning("Cannot generate cancellation content without an appointment id")
            return CANCELLATION_NO_APPOINTMENT_TEMPLATE

        appointment = PatientRecordsService.get_appointment_details(db, appointment_id)
        if not appointment:
            logger.warning(f"Could not find appointment {appointment_id} to generate cancellation message")
            return CANCELLATION_APPOINTMENT_MISSING_TEMPLATE

        context['appointment_date'] = format_long_date(appointment.start_time, include_year=False)
        context['appointment_time'] = format_time(appointment.start_time)
        return CANCELLATION_TEMPLATE

    @staticmethod
    def _treatment_info_template(db: Session, treatment_plan_id: Optional[str], context: Dict[str, Any]) -> str:
        if not treatment_plan_id:
            return TREATMENT_INFO_NO_PLAN_TEMPLATE

        plan = PatientRecordsService.get_treatment_plan(db, treatment_plan_id)
        if not plan:
            logger.warning(f"Could not find treatment plan {treatment_plan_id}")
            return TREATMENT_INFO_PLAN_MISSING_TEMPLATE

        context['plan_title'] = plan.title
        context['plan_description'] = plan.description or DEFAULT_PLAN_DESCRIPTION
        return TREATMENT_INFO_TEMPLATE

    @staticmethod
    def build_staff_notification_message(communication: PatientCommunication) -> str:
        """
        Build the summary shown to staff for an 'app' channel communication.

        Args:
            communication: The communication being delivered

        Returns:
            Short staff-facing summary text
        """
        if communication.type == 'appointment_reminder' and communication.appointment_id:
            return (
                f"Appointment reminder processed for patient {communication.patient_id} "
                f"(Appt ID: {communication.appointment_id})."
            )
        if communication.type == 'treatment_info' and communication.treatment_plan_id:
            return (
                f"Treatment info sent for patient {communication.patient_id} "
                f"(Plan ID: {communication.treatment_plan_id})."
            )
        return f"Communication ({communication.type}) processed for patient {communication.patient_id}."

    @staticmethod
    def build_email_subject(communication_type: str) -> str:
        """Build an email subject such as "our clinic: Appointment reminder"."""
        label = EMAIL_SUBJECT_LABELS.get(communication_type, "Message")
        return f"{CLINIC_NAME}: {label}"
