import os
import tempfile
import uuid

# Configure the app for tests before anything from ukuqala is imported
for var in (
    "REDIS_URL",
    "REDIS_HOST",
    "AGORA_APP_ID",
    "AGORA_APP_CERTIFICATE",
    "MISTRAL_API_KEY",
    "MISTRAL_API_KEY_2",
    "R2_ACCOUNT_ID",
    "R2_ACCESS_KEY_ID",
    "R2_SECRET_ACCESS_KEY",
    "SWAGGER_USER",
    "SWAGGER_PASS",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
):
    os.environ.pop(var, None)

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["ENCRYPTION_KEY"] = "0123456789abcdef0123456789abcdef"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="ukuqala-uploads-")
os.environ["BASE_URL"] = "http://testserver"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from ukuqala.database import Base, get_db  # noqa: E402
from ukuqala.main import app  # noqa: E402
from ukuqala.models import Doctor  # noqa: E402
from ukuqala.security_utils import create_doctor_token, hash_password_bcrypt  # noqa: E402
from ukuqala.services.agora_service import AgoraService, get_agora_service  # noqa: E402
from ukuqala.services.mistral_service import MistralError, get_mistral_service  # noqa: E402
from ukuqala.services.supabase_service import (  # noqa: E402
    SupabaseError,
    SupabaseService,
    get_supabase_service,
)

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PATIENT_ID = "6f1c2d3e-4a5b-4c6d-8e7f-001122334455"
PATIENT_TOKEN = "patient-access-token"
OTHER_PATIENT_ID = "9a8b7c6d-5e4f-4a3b-9c2d-aabbccddeeff"
OTHER_PATIENT_TOKEN = "other-patient-access-token"


class FakeSupabase(SupabaseService):
    """In-memory stand-in for the Supabase auth and PostgREST calls"""

    def __init__(self):
        super().__init__(url="https://supabase.test", anon_key="anon-key", service_role_key="service-key")
        self.users = {}  # access token -> user
        self.accounts = {}  # email -> (password, user)
        self.profiles = {}  # user id -> profile row
        self.medical_records = []
        self.pins = {}  # user id -> bcrypt hash

    def add_patient(self, user_id, token, email, password="patient-pass", profile=None):
        user = {"id": user_id, "email": email}
        self.users[token] = user
        self.accounts[email] = (password, user)
        if profile is not None:
            self.profiles[user_id] = {"id": user_id, **profile}
        return user

    async def get_user(self, access_token):
        return self.users.get(access_token)

    async def sign_in_with_password(self, email, password):
        account = self.accounts.get(email)
        if not account or account[0] != password:
            raise SupabaseError("Invalid login credentials", 401)
        user = account[1]
        token = next(t for t, u in self.users.items() if u is user)
        return {"access_token": token, "refresh_token": f"refresh-{user['id']}", "user": user}

    async def get_profile(self, user_id, access_token=None):
        return self.profiles.get(user_id)

    async def get_profiles(self, user_ids):
        return {uid: self.profiles[uid] for uid in user_ids if uid in self.profiles}

    async def get_medical_records(self, user_ids, access_token=None):
        ids = set(user_ids)
        return [row for row in self.medical_records if row.get("user_id") in ids]

    async def get_app_pin_hash(self, user_id, access_token=None):
        return self.pins.get(user_id)


class FakeMistral:
    def __init__(self):
        self.calls = []
        self.reply = "Rest, fluids and follow up in three days."
        self.fail = False

    async def chat(self, history):
        self.calls.append(history)
        if self.fail:
            raise MistralError("Chat assistant request failed")
        return {"content": self.reply, "model": "mistral-medium-latest"}


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def mistral():
    return FakeMistral()


@pytest.fixture
def agora():
    """Unconfigured by default; tests that issue tokens set credentials"""
    return AgoraService(app_id="", app_certificate="")


@pytest.fixture
def client(db_session, supabase, mistral, agora):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_supabase_service] = lambda: supabase
    app.dependency_overrides[get_mistral_service] = lambda: mistral
    app.dependency_overrides[get_agora_service] = lambda: agora
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_doctor(db_session):
    counter = {"n": 0}

    def _make(email=None, password="secret123", **fields):
        counter["n"] += 1
        fields.setdefault("first_name", "Doc")
        fields.setdefault("last_name", f"Number{counter['n']}")
        doctor = Doctor(
            email=email or f"doctor{counter['n']}-{uuid.uuid4().hex[:6]}@example.com",
            password=hash_password_bcrypt(password),
            **fields,
        )
        db_session.add(doctor)
        db_session.commit()
        db_session.refresh(doctor)
        return doctor

    return _make


@pytest.fixture
def doctor(make_doctor):
    return make_doctor(email="amara@example.com", first_name="Amara", last_name="Okafor")


@pytest.fixture
def doctor_headers(doctor):
    return auth_headers(create_doctor_token(doctor.id, doctor.email))


@pytest.fixture
def patient(supabase):
    return supabase.add_patient(
        PATIENT_ID,
        PATIENT_TOKEN,
        "thandi@example.com",
        profile={"full_name": "Thandi Nkosi", "email": "thandi@example.com", "city": "Durban", "country": "ZA"},
    )


@pytest.fixture
def patient_headers(patient):
    return auth_headers(PATIENT_TOKEN)


@pytest.fixture
def other_patient_headers(supabase):
    supabase.add_patient(OTHER_PATIENT_ID, OTHER_PATIENT_TOKEN, "sipho@example.com")
    return auth_headers(OTHER_PATIENT_TOKEN)
