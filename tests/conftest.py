"""
Shared fixtures: in-memory SQLite sessions, record builders and mocked
notification channels (email via Resend, push via Expo).
"""

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from completion_monitor.database import Base
from completion_monitor.models import (
    Appointment,
    CleanerJobCompletion,
    Home,
    PricingConfig,
    User,
)
from completion_monitor.schemas import AutoCompleteConfig
from completion_monitor.services.time_windows import (
    calculate_auto_complete_at,
    calculate_scheduled_end_time,
)

APPOINTMENT_DATE = "2024-08-15"
# "anytime" window ends at 18:00
SCHEDULED_END = datetime(2024, 8, 15, 18, 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def config():
    return AutoCompleteConfig()


def make_user(db, first_name="Sam", **overrides):
    fields = {
        "first_name": first_name,
        "last_name": "Tester",
        "email": f"{first_name.lower()}@example.com",
        "expo_push_token": f"ExponentPushToken[{first_name.lower()}]",
    }
    fields.update(overrides)
    user = User(**fields)
    db.add(user)
    db.commit()
    return user


def make_pricing_config(db, **overrides):
    fields = {"is_active": True}
    fields.update(overrides)
    pricing_config = PricingConfig(**fields)
    db.add(pricing_config)
    db.commit()
    return pricing_config


def make_appointment(db, homeowner, cleaners=(), config=None, **overrides):
    """In-progress appointment with its auto-complete deadline armed"""
    config = config or AutoCompleteConfig()
    home = Home(user_id=homeowner.id, address="12 Harbor Lane", city="Nantucket")
    db.add(home)
    db.commit()

    fields = {
        "user_id": homeowner.id,
        "home_id": home.id,
        "date": APPOINTMENT_DATE,
        "time_window": "anytime",
        "employees_assigned": [cleaner.id for cleaner in cleaners],
        "has_been_assigned": bool(cleaners),
        "is_multi_cleaner_job": len(cleaners) > 1,
        "completion_status": "in_progress",
    }
    fields.update(overrides)

    scheduled_end = calculate_scheduled_end_time(fields["date"], fields["time_window"])
    fields.setdefault("scheduled_end_time", scheduled_end)
    if not fields["is_multi_cleaner_job"]:
        fields.setdefault("auto_complete_at", calculate_auto_complete_at(scheduled_end, config))

    appointment = Appointment(**fields)
    db.add(appointment)
    db.commit()
    return appointment


def make_cleaner_completion(db, appointment, cleaner, config=None, **overrides):
    config = config or AutoCompleteConfig()
    fields = {
        "appointment_id": appointment.id,
        "cleaner_id": cleaner.id,
        "status": "started",
        "completion_status": "in_progress",
        "auto_complete_at": calculate_auto_complete_at(appointment.scheduled_end_time, config),
    }
    fields.update(overrides)
    completion = CleanerJobCompletion(**fields)
    db.add(completion)
    db.commit()
    return completion


@pytest.fixture
def mock_channels():
    """Patch outbound email and push; in-app notifications still hit the database"""
    with patch(
        "completion_monitor.email_service.send_auto_complete_reminder", new_callable=AsyncMock
    ) as reminder_email, patch(
        "completion_monitor.email_service.send_job_auto_completed", new_callable=AsyncMock
    ) as completed_email, patch(
        "completion_monitor.email_service.send_job_auto_completed_homeowner",
        new_callable=AsyncMock,
    ) as homeowner_email, patch(
        "completion_monitor.services.push_service.send_push_auto_complete_reminder",
        new_callable=AsyncMock,
        return_value=(True, None),
    ) as reminder_push, patch(
        "completion_monitor.services.push_service.send_push_job_auto_completed",
        new_callable=AsyncMock,
        return_value=(True, None),
    ) as completed_push, patch(
        "completion_monitor.services.push_service.send_push_job_auto_completed_homeowner",
        new_callable=AsyncMock,
        return_value=(True, None),
    ) as homeowner_push:
        yield SimpleNamespace(
            reminder_email=reminder_email,
            completed_email=completed_email,
            homeowner_email=homeowner_email,
            reminder_push=reminder_push,
            completed_push=completed_push,
            homeowner_push=homeowner_push,
        )
