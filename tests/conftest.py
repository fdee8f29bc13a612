"""
Pytest configuration: in-memory database and API client
"""

import os
import sys
from datetime import date, datetime

import pytest

# Point the app at an in-memory database BEFORE importing any app modules
os.environ["DATABASE_URL"] = "sqlite://"

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "backend")))

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ckd_app.db import Base, get_db
from ckd_app.main import app
from ckd_app.models import Condition, Observation, Patient, PatientRiskFactors

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create test client with overridden database"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def born_years_ago(years: int) -> date:
    # January 1st: the birthday has always passed, so age == years
    return date(date.today().year - years, 1, 1)


@pytest.fixture
def make_patient(db_session):
    """Insert a patient with risk factors, observations and conditions."""
    counter = {"n": 0}

    def _make(age, gender="male", risk_factors=None, observations=(), conditions=()):
        counter["n"] += 1
        p = Patient(
            medical_record_number=f"MRN{counter['n']:04d}",
            first_name="Test",
            last_name=f"Patient{counter['n']}",
            date_of_birth=born_years_ago(age) if age is not None else None,
            gender=gender,
        )
        db_session.add(p)
        db_session.flush()
        if risk_factors is not None:
            db_session.add(PatientRiskFactors(patient_id=p.id, **risk_factors))
        for obs_type, value, when in observations:
            db_session.add(Observation(
                patient_id=p.id,
                observation_type=obs_type,
                value_numeric=value,
                observation_date=when or datetime(2026, 1, 1),
            ))
        for code, name in conditions:
            db_session.add(Condition(patient_id=p.id, condition_code=code, condition_name=name))
        db_session.commit()
        return p.id

    return _make
