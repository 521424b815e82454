"""Shared pytest fixtures."""

import os

# Keep tests off any local database file and real credentials
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("CRON_SECRET", None)

from datetime import date, time, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinicflow.database import Base, get_db
from clinicflow.domain.notifications.channels import NotificationSettings
from clinicflow.domain.notifications.dispatcher import NotificationDispatcher
from clinicflow.domain.notifications.router import get_dispatcher
from clinicflow.main import app
from clinicflow.models import Appointment, Clinic, Patient, default_working_hours
from clinicflow.shared.clock import clinic_today


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session in a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def simulation_dispatcher() -> NotificationDispatcher:
    """Dispatcher that only uses the always-succeeding simulation channel."""
    return NotificationDispatcher(settings=NotificationSettings(channel_order=["simulation"]))


@pytest.fixture
def notice_queue():
    """Replace the arq enqueue helper so tests never touch Redis."""
    with patch(
        "clinicflow.domain.scheduling.router.queue_appointment_notice",
        new=AsyncMock(return_value=None),
    ) as queued:
        yield queued


@pytest.fixture
def client(session_factory, notice_queue, simulation_dispatcher):
    """Test client wired to the in-memory database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_dispatcher] = lambda: simulation_dispatcher
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def clinic(db) -> Clinic:
    """Mon-Sat 09:00-18:00, Sunday closed, 15 minute slots."""
    clinic = Clinic(
        name="Sharma Family Clinic",
        slug="sharma-clinic",
        phone="+919812345678",
        working_hours=default_working_hours(),
        slot_duration=15,
        allow_online_booking=True,
    )
    db.add(clinic)
    db.commit()
    db.refresh(clinic)
    return clinic


@pytest.fixture
def patient(db, clinic) -> Patient:
    patient = Patient(
        clinic_id=clinic.id,
        patient_number="P0000001",
        full_name="Asha Verma",
        phone="+919876543210",
    )
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


@pytest.fixture
def booking_date() -> date:
    """A Monday at least a week after the clinic's today."""
    start = clinic_today() + timedelta(days=7)
    return start + timedelta(days=(7 - start.weekday()) % 7)


@pytest.fixture
def make_appointment(db, clinic, patient):
    """Insert an appointment row directly, bypassing booking validation."""
    tokens = {}

    def _make(appointment_date: date, appointment_time: time, **overrides) -> Appointment:
        tokens[appointment_date] = tokens.get(appointment_date, 0) + 1
        values = {
            "clinic_id": clinic.id,
            "patient_id": patient.id,
            "appointment_date": appointment_date,
            "appointment_time": appointment_time,
            "duration": clinic.slot_duration,
            "token_number": tokens[appointment_date],
            "status": "scheduled",
        }
        values.update(overrides)
        appointment = Appointment(**values)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _make
