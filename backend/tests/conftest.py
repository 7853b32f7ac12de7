import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"

import pytest
from fastapi.testclient import TestClient

from clinic_api.core.security import create_token
from clinic_api.core.settings import settings
from clinic_api.db.session import SessionLocal, engine
from clinic_api.main import app
from clinic_api.models import Base
from clinic_api.routers import auth as auth_routes
from clinic_api.services.users import create_user

DEFAULT_PASSWORD = "Sup3r-secret!"


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    for limiter in (
        auth_routes.LOGIN_LIMITER,
        auth_routes.LOGIN_IP_LIMITER,
        auth_routes.RESET_REQUEST_LIMITER,
    ):
        limiter.clear()
    yield


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def api_client():
    return TestClient(app)


def _headers_for(user_id: int) -> dict[str, str]:
    token = create_token(
        subject=str(user_id),
        secret=settings.secret_key,
        alg=settings.jwt_alg,
        expires_minutes=5,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(db_session):
    def _make(username: str, email: str, phone: str, password: str = DEFAULT_PASSWORD):
        return create_user(db_session, username=username, email=email, phone=phone, password=password)

    return _make


@pytest.fixture
def dentist(make_user):
    return make_user("dr_rao", "rao@example.com", "9000000001")


@pytest.fixture
def auth_headers(dentist):
    return _headers_for(dentist.id)


@pytest.fixture
def other_headers(make_user):
    colleague = make_user("dr_mehta", "mehta@example.com", "9000000002")
    return _headers_for(colleague.id)


@pytest.fixture
def patient_payload():
    return {
        "firstName": "Asha",
        "lastName": "Kumar",
        "dob": "1990-04-12",
        "gender": "Female",
        "phone": "9876543210",
        "email": "Asha.Kumar@Example.com",
        "city": "Pune",
        "medicalHistory": {"takingMedicine": "yes", "problems": {"asthma": True}},
        "initialVisit": {
            "chiefComplaint": "Pain in lower left molar",
            "triggerFactors": ["Cold"],
            "procedures": [{"procedure": "Scaling", "total": 1500, "paid": 500}],
        },
    }


@pytest.fixture
def create_patient(api_client, auth_headers, patient_payload):
    def _create(headers=None, **overrides):
        payload = {**patient_payload, **overrides}
        res = api_client.post("/api/patients", json=payload, headers=headers or auth_headers)
        assert res.status_code == 201, res.text
        return res.json()

    return _create
