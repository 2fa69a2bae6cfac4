"""Application constants and configuration values."""

from core.config import FRONTEND_URL

# Database field lengths
MAX_STRING_LENGTH = 255
UUID_STRING_LENGTH = 36

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
_CORS_ORIGINS_RAW = [
    "http://localhost:5173",      # React dev server (Vite)
    FRONTEND_URL,
]

# Filter out None values and empty strings to avoid CORS errors
CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]

# Communication processing
PROCESS_BATCH_SIZE = 50  # Max due communications dispatched per processing pass
MAX_ERROR_MESSAGE_LENGTH = 500  # error_message column is truncated to this length
SMS_ERROR_BODY_PREVIEW_LENGTH = 100  # Provider response body kept in SMS error messages

# Closed vocabularies for patient communications
COMMUNICATION_TYPES = (
    "appointment_reminder",
    "treatment_info",
    "post_treatment",
    "education",
    "follow_up",
    "appointment_cancellation",
    "new_patient_welcome",
    "profile_update",
)
COMMUNICATION_CHANNELS = ("email", "sms", "app")
COMMUNICATION_STATUSES = ("scheduled", "sent", "failed", "cancelled")
TERMINAL_COMMUNICATION_STATUSES = ("sent", "failed", "cancelled")
