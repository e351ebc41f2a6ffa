"""Pytest configuration and fixtures for all tests.

Tests run against an in-memory SQLite database, a fake identity provider and
a recording SMTP transport, so nothing leaves the process.
"""

import json
import os

# Must be set before email_relay.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_URL"] = ""
os.environ["SMTP_ENCRYPTION_KEY"] = ""
os.environ["STRICT_AUTH_STATUS"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from email_relay.auth import AuthUser, get_identity_provider  # noqa: E402
from email_relay.database import Base, SessionLocal, engine  # noqa: E402
from email_relay.email_service import get_mail_transport  # noqa: E402
from email_relay.exceptions import AuthenticationError  # noqa: E402
from email_relay.main import app  # noqa: E402
from email_relay.models import Profile, Setting  # noqa: E402

USER_TOKEN = "user-token"
ADMIN_TOKEN = "admin-token"
SUPPORT_TOKEN = "support-token"

USER = AuthUser(id="user-1", email="rep@wyalink.com")
ADMIN = AuthUser(id="admin-1", email="admin@wyalink.com")
SUPPORT = AuthUser(id="support-1", email="support@wyalink.com")

DEFAULT_EMAIL_SETTINGS = {
    "email.enabled": True,
    "email.smtp.host": "smtp.office365.com",
    "email.smtp.port": 587,
    "email.smtp.secure": False,
    "email.smtp.username": "notifications@wyalink.com",
    "email.smtp.password": "relay-secret",
    "email.from.name": "WyaLink",
    "email.from.address": "sales@wyalink.com",
}


class FakeIdentityProvider:
    def __init__(self, users: dict[str, AuthUser]):
        self.users = users
        self.calls: list[str] = []

    async def get_user(self, authorization: str) -> AuthUser:
        self.calls.append(authorization)
        token = authorization.removeprefix("Bearer ").strip()
        user = self.users.get(token)
        if not user:
            raise AuthenticationError("Unauthorized")
        return user


class RecordingTransport:
    def __init__(self):
        self.sent = []
        self.error = None

    def send(self, settings, email) -> dict:
        if self.error:
            raise self.error
        self.sent.append((settings, email))
        return {"id": f"<{len(self.sent)}@test>", "refused": []}


def seed_settings(db, values: dict, category: str = "email", raw: bool = False) -> None:
    """Insert settings rows; values are JSON-encoded unless raw=True."""
    for key, value in values.items():
        db.add(
            Setting(
                key=key,
                value=value if raw else json.dumps(value),
                category=category,
            )
        )
    db.commit()


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def profiles(db):
    db.add_all(
        [
            Profile(id=USER.id, role="customer"),
            Profile(id=ADMIN.id, role="admin"),
            Profile(id=SUPPORT.id, role="support"),
        ]
    )
    db.commit()


@pytest.fixture
def email_settings(db):
    seed_settings(db, DEFAULT_EMAIL_SETTINGS)
    return DEFAULT_EMAIL_SETTINGS


@pytest.fixture
def identity():
    return FakeIdentityProvider({USER_TOKEN: USER, ADMIN_TOKEN: ADMIN, SUPPORT_TOKEN: SUPPORT})


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def client(identity, transport, profiles):
    app.dependency_overrides[get_identity_provider] = lambda: identity
    app.dependency_overrides[get_mail_transport] = lambda: transport
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
