from datetime import date, timedelta
import os

# Must be set before the application modules read their settings
os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./test.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from medicloud.main import app
from medicloud.core.database import Base, engine, get_db, redis_client

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

PASSWORD = "TestPassword123"

PATIENT_PROFILE = {
    "role": "patient",
    "full_name": "Asha Rao",
    "phone": "9876543210",
    "date_of_birth": "1990-04-12",
    "gender": "female",
    "address": "12 MG Road",
    "emergency_contact": "9123456780",
    "medical_history": "Asthma",
}

DOCTOR_PROFILE = {
    "role": "doctor",
    "full_name": "Vikram Mehta",
    "mobile_number": "9000000001",
    "specialization": "Cardiology",
    "license_number": "MED-1001",
    "consultation_fee": 500,
    "available_from": "09:00",
    "available_to": "17:00",
}

PHARMACIST_PROFILE = {
    "role": "pharmacist",
    "full_name": "Neha Singh",
    "phone": "9000000002",
}

@pytest.fixture(scope="function")
def test_db():
    Base.metadata.create_all(bind=engine)
    redis_client.flushall()
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def client(test_db):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def register_and_login(client):
    """Register an account with the given profile and return its auth headers."""
    def _register_and_login(email, profile, password=PASSWORD):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": email, "password": password, "profile": profile},
        )
        assert response.status_code == 200, response.text

        login = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        return {"Authorization": f"Bearer {login.json()['access_token']}"}

    return _register_and_login

@pytest.fixture
def patient_headers(register_and_login):
    return register_and_login("patient@example.com", PATIENT_PROFILE)

@pytest.fixture
def doctor_headers(register_and_login):
    return register_and_login("doctor@example.com", DOCTOR_PROFILE)

@pytest.fixture
def pharmacist_headers(register_and_login):
    return register_and_login("pharmacist@example.com", PHARMACIST_PROFILE)

@pytest.fixture
def doctor_id(client, doctor_headers):
    response = client.get("/api/v1/appointments/doctors", headers=doctor_headers)
    assert response.status_code == 200
    return response.json()[0]["id"]

@pytest.fixture
def booked_appointment(client, patient_headers, doctor_id):
    """A waiting appointment with the doctor tomorrow at 9:00 AM."""
    response = client.post(
        "/api/v1/appointments",
        json={
            "doctor_id": doctor_id,
            "appointment_date": (date.today() + timedelta(days=1)).isoformat(),
            "appointment_time": "09:00",
            "symptoms": "Chest pain",
        },
        headers=patient_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()

@pytest.fixture
def prescription(client, doctor_headers, booked_appointment):
    response = client.post(
        "/api/v1/prescriptions",
        json={
            "appointment_id": booked_appointment["id"],
            "diagnosis": "Mild hypertension",
            "medicines": [
                {"name": "Amlodipine", "dosage": "1-0-1", "duration": "5 Days"},
                {"name": "Aspirin", "dosage": "0-0-1", "duration": "10 Days"},
            ],
            "suggestions": "Reduce salt",
        },
        headers=doctor_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()
