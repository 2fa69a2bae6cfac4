"""
Services package for patient communication business logic.

This package contains service classes that encapsulate the communication
lifecycle shared by the API endpoints and the cron script.
"""

from .communication_store import CommunicationStore, CommunicationValidationError
from .patient_records_service import PatientRecordsService, PatientNotFoundError
from .communication_content_service import CommunicationContentService
from .communication_dispatcher import CommunicationDispatcher
from .communication_processor import CommunicationProcessor
from .communication_cancellation import CommunicationCancellationService
from .communication_scheduling_service import CommunicationSchedulingService

__all__ = [
    "CommunicationStore",
    "CommunicationValidationError",
    "PatientRecordsService",
    "PatientNotFoundError",
    "CommunicationContentService",
    "CommunicationDispatcher",
    "CommunicationProcessor",
    "CommunicationCancellationService",
    "CommunicationSchedulingService",
]
