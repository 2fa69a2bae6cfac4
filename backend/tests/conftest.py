"""
Test configuration and shared fixtures for the patient communication test suite.

Uses an in-memory SQLite database. Each test gets its own freshly created
schema, so tests are isolated without transaction tricks.
"""

import os

# Must be set before any application module reads configuration
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from typing import Generator
from unittest.mock import Mock

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import create_tables, get_db
from services.channel_senders import AppNotificationSender, EmailGatewaySender, SmsGatewaySender
from services.communication_dispatcher import CommunicationDispatcher


@pytest.fixture(scope="function")
def db_engine() -> Generator[Engine, None, None]:
    """
    Create a database engine for one test.

    StaticPool keeps a single in-memory connection alive, so every session
    (including the one used by the FastAPI test client thread) sees the same
    database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    create_tables(bind=engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session bound to the test's engine."""
    TestingSession = sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = TestingSession()

    yield session

    session.close()


@pytest.fixture
def client(db_session) -> Generator[TestClient, None, None]:
    """FastAPI test client whose requests use the test database session."""
    from main import app

    def override_get_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            # Don't close the session as it's managed by the test fixture
            pass

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def mock_sms_sender():
    """SMS sender that records calls instead of contacting the gateway."""
    return Mock(spec=SmsGatewaySender)


@pytest.fixture
def mock_email_sender():
    """Email sender that records calls instead of contacting the gateway."""
    return Mock(spec=EmailGatewaySender)


@pytest.fixture
def dispatcher(db_session, mock_sms_sender, mock_email_sender) -> CommunicationDispatcher:
    """Dispatcher with mocked SMS/email senders and a real in-app notification sink."""
    return CommunicationDispatcher(
        db_session,
        sms_sender=mock_sms_sender,
        email_sender=mock_email_sender,
        app_sender=AppNotificationSender(db_session),
        app_recipient_id="staff-user-1",
    )
