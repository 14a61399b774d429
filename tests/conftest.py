import os
import tempfile

# Set testing environment before the application reads its settings
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="medicarebook-uploads-")

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from medicarebook.main import app
from medicarebook.api.deps import get_storage
from medicarebook.core.database import get_db, get_redis, Base
from medicarebook.core.security import UserRole, create_user_token
from medicarebook.models import DoctorProfile, DoctorStatus, User
from medicarebook.services.file_storage import LocalFileStorage

# Create test database
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

@pytest.fixture(scope="function")
def test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(str(tmp_path / "uploads"))

@pytest.fixture
def client(test_db, storage):
    redis_client = fakeredis.FakeRedis(decode_responses=True)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: redis_client
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

    app.dependency_overrides.clear()

@pytest.fixture
def create_user(db_session):
    """Insert a user directly; the password hash is not usable for login."""
    counter = {"n": 0}

    def _create(role=UserRole.PATIENT, full_name=None, email=None):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            password_hash="not-a-real-hash",
            full_name=full_name or f"User {counter['n']}",
            phone="555-0100",
            role=role,
            notifications=[],
            seen_notifications=[]
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create

@pytest.fixture
def create_doctor(db_session):
    def _create(user_id, status=DoctorStatus.APPROVED, full_name="Dr. Grey"):
        profile = DoctorProfile(
            user_id=user_id,
            full_name=full_name,
            email=f"doctor{user_id}@example.com",
            phone="555-0199",
            specialization="Cardiology",
            status=status
        )
        db_session.add(profile)
        db_session.commit()
        db_session.refresh(profile)
        return profile

    return _create

def auth_headers(user):
    token = create_user_token(user.id, user.email, user.role)
    return {"Authorization": f"Bearer {token.access_token}"}

@pytest.fixture
def headers_for():
    return auth_headers
