"""Pytest configuration and fixtures."""

import os
import re
from datetime import UTC, datetime
from unittest.mock import patch

import pytest

# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").rsplit("/", 1)[0] + "/libala_test"
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

# Settings are read at import time, so configure them before importing the app
os.environ["DATABASE_URL"] = SQLALCHEMY_DATABASE_URL
os.environ["ENVIRONMENT"] = "test"
os.environ["SESSION_BACKEND"] = "memory"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RESEND_API_KEY"] = ""

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

import libala.services.rate_limit as rate_limit_module  # noqa: E402
import libala.services.sessions as sessions_module  # noqa: E402
from libala.database import Base, get_db  # noqa: E402
from libala.main import app  # noqa: E402
from libala.models import Membership, User, Wedding  # noqa: E402
from libala.models.enums import MembershipRole, Plan  # noqa: E402
from libala.models.wedding import default_wedding_config  # noqa: E402
from libala.services.passwords import hash_password  # noqa: E402

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "password123"

TOKEN_PATTERN = re.compile(r"token=([0-9a-f]{64})")


class Outbox(list):
    """Emails queued during a test, newest last."""

    def last_token(self, to: str | None = None) -> str:
        """Extract the token from the newest email, optionally for one recipient."""
        for email in reversed(self):
            if to is None or email["to"] == to:
                match = TOKEN_PATTERN.search(email["html"])
                assert match is not None, "email carries no token link"
                return match.group(1)
        raise AssertionError(f"No email sent to {to}")


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(scope="function", autouse=True)
def fresh_stores():
    """Give every test empty session and rate limit stores."""
    sessions_module._session_store = sessions_module.MemorySessionStore()
    rate_limit_module._counter_store = rate_limit_module.MemoryCounterStore()
    yield
    sessions_module._session_store = None
    rate_limit_module._counter_store = None


@pytest.fixture(scope="function", autouse=True)
def outbox():
    """Capture queued emails instead of sending them to the broker."""
    sent = Outbox()

    def record(to, subject, html):
        sent.append({"to": to, "subject": subject, "html": html})

    with patch("libala.tasks.email.send_email.delay", side_effect=record):
        yield sent


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Factory inserting a user directly, verified unless told otherwise."""

    def _make_user(
        email: str,
        password: str = DEFAULT_PASSWORD,
        first_name: str = "Test",
        verified: bool = True,
        is_admin: bool = False,
    ) -> User:
        user = User(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            is_admin=is_admin,
            email_verified_at=datetime.now(UTC) if verified else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_wedding(db):
    """Factory inserting a wedding owned by ``owner``."""

    def _make_wedding(
        owner: User,
        slug: str,
        plan: Plan = Plan.FREE,
        is_published: bool = True,
    ) -> Wedding:
        wedding = Wedding(
            owner_id=owner.id,
            slug=slug,
            title=slug.replace("-", " ").title(),
            current_plan=plan.value,
            is_published=is_published,
            config=default_wedding_config(),
        )
        db.add(wedding)
        db.commit()
        db.refresh(wedding)
        return wedding

    return _make_wedding


@pytest.fixture
def make_membership(db):
    """Factory granting ``user`` a role on ``wedding``."""

    def _make_membership(user: User, wedding: Wedding, role: MembershipRole) -> Membership:
        membership = Membership(user_id=user.id, wedding_id=wedding.id, role=role.value)
        db.add(membership)
        db.commit()
        db.refresh(membership)
        return membership

    return _make_membership


@pytest.fixture
def login(client):
    """Log the test client in; the session cookie is kept by the client."""

    def _login(email: str, password: str = DEFAULT_PASSWORD) -> dict:
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()

    return _login


@pytest.fixture
def verified_user(client, outbox):
    """Sign up through the API and confirm the emailed link."""
    email = "test@example.com"
    response = client.post(
        "/api/auth/signup",
        json={"email": email, "password": DEFAULT_PASSWORD, "firstName": "Test"},
    )
    assert response.status_code == 201
    user_id = response.json()["user"]["id"]

    response = client.get("/api/auth/verify-email", params={"token": outbox.last_token(email)})
    assert response.status_code == 200
    return {"email": email, "password": DEFAULT_PASSWORD, "id": user_id}
