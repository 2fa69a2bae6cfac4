# pyright: reportMissingTypeStubs=false
"""
Patient Communication Backend API

A FastAPI application managing the lifecycle of patient communications for
a dental clinic.

Features:
- Scheduling reminders, follow-ups and educational messages on email, SMS
  and in-app channels
- Periodic processing of due communications (HTTP trigger or cron script)
- Appointment-scoped cancellation of pending communications
- PostgreSQL database with SQLAlchemy ORM
"""

import logging
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import patient_communication
from core.constants import CORS_ORIGINS

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)
logger.info("Patient Communication API starting...")


# Create FastAPI application
app = FastAPI(
    title="Patient Communication Backend",
    description="Scheduling, delivery and cancellation of dental patient communications",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI
    redoc_url="/redoc",  # ReDoc
)

# CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(
    patient_communication.router,
    prefix="/api/patient-communication",
    tags=["patient-communication"],
    responses={
        400: {"description": "Bad request"},
        404: {"description": "Patient not found"},
        405: {"description": "Method or path not allowed"},
        500: {"description": "Internal server error"},
    },
)


@app.get(
    "/",
    summary="Root endpoint",
    description="Returns basic API information",
)
async def root() -> dict[str, str]:
    """Get API information."""
    return {
        "message": "Patient Communication Backend API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get(
    "/health",
    summary="Health check",
    description="Returns the health status of the API",
)
async def health_check() -> dict[str, str]:
    """Check if the API is healthy and responding."""
    return {"status": "healthy"}


def _validation_error_message(exc: RequestValidationError) -> str:
    """Summarise a request validation error as a single message."""
    errors: list[Any] = list(exc.errors())
    if any(error.get("type") == "json_invalid" for error in errors):
        return "Invalid JSON body"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        return f"{location}: {message}" if location else message
    return "Invalid request"


# Global exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors as {"error": message}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies and parameters as 400 Bad Request."""
    message = _validation_error_message(exc)
    logger.warning(f"Request validation failed for {request.url.path}: {message}")
    return JSONResponse(
        status_code=400,
        content={"error": message},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions globally."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions."""
    logger.warning(f"ValueError: {exc}")
    return JSONResponse(
        status_code=400,
        content={"error": str(exc)},
    )


@app.exception_handler(httpx.HTTPStatusError)
async def http_status_error_handler(request: Request, exc: httpx.HTTPStatusError):
    """Handle HTTP status errors from external services."""
    logger.exception(f"External service error: {exc}")
    return JSONResponse(
        status_code=502,
        content={"error": "External service error"},
    )
