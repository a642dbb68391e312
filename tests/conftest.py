import os

# Settings are read at import time, so the environment must be in place first
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("MAIL_USERNAME", "store@example.com")
os.environ.setdefault("MAIL_PASSWORD", "app-password")
os.environ.setdefault("MAIL_FROM", "store@example.com")
os.environ.setdefault("MAIL_SUPPRESS_SEND", "true")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")
os.environ.setdefault("TWO_FACTOR_API_KEY", "twofactor-key")
os.environ.setdefault("ENVIRONMENT", "development")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, get_db
from app.main import create_app
from app.core.rate_limiter import limiter
from app.core.security import create_access_token
from app.services import auth_service, email_service

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def session_factory():
    return TestingSessionLocal


@pytest.fixture
def outbox(monkeypatch):
    """Every message handed to fastapi-mail, instead of talking to SMTP."""
    sent = []

    async def fake_send(message, template_name=None):
        sent.append(message)

    monkeypatch.setattr(email_service.fast_mail, "send_message", fake_send)
    return sent


@pytest.fixture
def client(outbox):
    application = create_app()

    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    with TestClient(application) as test_client:
        yield test_client
    limiter.enabled = True


@pytest.fixture
def customer(db):
    user, profile = auth_service.register_user(
        db, email="Asha@Example.com", password="secret123", full_name="Asha Rao", phone="9876543210"
    )
    return user, profile


@pytest.fixture
def admin(db):
    user, profile = auth_service.register_user(
        db, email="admin@example.com", password="adminpass", full_name="Store Admin"
    )
    profile.role = "admin"
    db.commit()
    db.refresh(profile)
    return user, profile


@pytest.fixture
def auth_headers():
    def _headers(user, role="customer") -> dict:
        return {"Authorization": f"Bearer {create_access_token(str(user.id), role)}"}
    return _headers
