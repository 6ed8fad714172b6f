import os
import tempfile

# Configure the app before it is imported: file-backed SQLite (so worker
# threads share one database), cheap bcrypt, no rate limiting, no Redis.
_tmpdir = tempfile.mkdtemp(prefix="medeasy-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.sqlite3')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REDIS_URL"] = ""
os.environ["ADMIN_EMAIL"] = "admin@medeasy.test"
os.environ["ADMIN_PASSWORD"] = "admin-password"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from medeasy.auth import issue_token  # noqa: E402
from medeasy.database import Base, SessionLocal, engine  # noqa: E402
from medeasy.main import app  # noqa: E402
from medeasy.models import Doctor, Patient  # noqa: E402
from medeasy.security_utils import hash_password_bcrypt  # noqa: E402
from medeasy.shared.context import AuthContext  # noqa: E402

ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]
DEFAULT_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    # Objects stay readable after commit without starting a new transaction,
    # which on SQLite would hold the write lock against the app's sessions.
    session = SessionLocal(expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_doctor(db):
    counter = {"n": 0}

    def factory(**overrides) -> Doctor:
        counter["n"] += 1
        n = counter["n"]
        data = {
            "name": f"Dr. Test {n}",
            "email": f"doctor{n}@medeasy.test",
            "password_hash": hash_password_bcrypt(DEFAULT_PASSWORD),
            "speciality": "General physician",
            "degree": "MBBS",
            "experience": "4 Years",
            "about": "Experienced clinician.",
            "fees": 50.0,
            "address_line1": "1 Main Street",
            "address_line2": "",
            "available": True,
            "slots_booked": {},
        }
        data.update(overrides)
        doctor = Doctor(**data)
        db.add(doctor)
        db.commit()
        return doctor

    return factory


@pytest.fixture
def make_patient(db):
    counter = {"n": 0}

    def factory(**overrides) -> Patient:
        counter["n"] += 1
        n = counter["n"]
        data = {
            "name": f"Patient {n}",
            "email": f"patient{n}@medeasy.test",
            "password_hash": hash_password_bcrypt(DEFAULT_PASSWORD),
            "phone": "5550100",
            "gender": "Not Selected",
        }
        data.update(overrides)
        patient = Patient(**data)
        db.add(patient)
        db.commit()
        return patient

    return factory


def bearer(ctx: AuthContext) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_token(ctx)}"}


@pytest.fixture
def admin_headers():
    return bearer(AuthContext.admin())


@pytest.fixture
def doctor_headers():
    return lambda doctor: bearer(AuthContext.doctor(doctor.id))


@pytest.fixture
def patient_headers():
    return lambda patient: bearer(AuthContext.patient(patient.id))
