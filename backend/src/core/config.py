"""
Application configuration using python-dotenv.

This module loads environment variables from .env file into os.environ
for use throughout the application.
"""

import os
import pathlib
from dotenv import load_dotenv


# Determine if we're running in a test environment
# Don't load .env file during testing to ensure predictable test behavior
is_testing = os.getenv("PYTEST_VERSION") is not None or any("pytest" in str(frame) for frame in __import__('inspect').stack(0))

# Load .env file into os.environ (only outside of testing)
if not is_testing:
    # Try multiple possible locations for .env file
    possible_paths = [
        pathlib.Path(__file__).parent.parent.parent / ".env",  # backend/.env (when run from backend/src)
        pathlib.Path(__file__).parent.parent.parent.parent / ".env",  # .env (when run from src)
        pathlib.Path.cwd() / ".env",  # .env in current directory
        pathlib.Path.cwd().parent / ".env",  # .env in parent directory
    ]

    for env_path in possible_paths:
        if env_path.exists():
            load_dotenv(env_path)
            break


def _optional_env(name: str) -> str | None:
    """Read an environment variable, treating blank values as unset."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


# Configuration constants with defaults
# These match the environment variables defined in .env.example
def get_database_url():
    """Get the database URL from environment."""
    return os.getenv(
        "DATABASE_URL",
        "postgresql://localhost/dental_comms_dev"
    )

DATABASE_URL = get_database_url()
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Clinic identity used in generated message content
CLINIC_NAME = os.getenv("CLINIC_NAME", "our clinic")
CLINIC_UTC_OFFSET_HOURS = float(os.getenv("CLINIC_UTC_OFFSET_HOURS", "0"))

# Staff user that receives in-app ('app' channel) notifications when the
# communication itself does not name a recipient
APP_NOTIFICATION_RECIPIENT_ID = _optional_env("APP_NOTIFICATION_RECIPIENT_ID")

# SMS gateway (bearer-token authenticated HTTP POST)
SMS_GATEWAY_ENDPOINT = _optional_env("SMS_GATEWAY_ENDPOINT")
SMS_GATEWAY_API_KEY = _optional_env("SMS_GATEWAY_API_KEY")
SMS_GATEWAY_TIMEOUT_SECONDS = float(os.getenv("SMS_GATEWAY_TIMEOUT_SECONDS", "10"))

# Email gateway; when no endpoint is configured emails are only logged
EMAIL_GATEWAY_ENDPOINT = _optional_env("EMAIL_GATEWAY_ENDPOINT")
EMAIL_GATEWAY_API_KEY = _optional_env("EMAIL_GATEWAY_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "no-reply@clinic.example")
EMAIL_GATEWAY_TIMEOUT_SECONDS = float(os.getenv("EMAIL_GATEWAY_TIMEOUT_SECONDS", "10"))
