"""
Pytest configuration and shared fixtures.

Environment is set before any project module is imported so that
config.settings picks up the test values.
"""
import os

os.environ["JWT_SECRET"] = "test-secret-key-with-at-least-32-bytes!!"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timedelta

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from database import Base, get_db
from dependencies import get_redis
from main import app
from services import AuthService, ReferralCodeService, ReferralService
from stores.memory import InMemoryCodeStore, InMemoryUserStore
from stores.revocations import RedisTokenRevocationStore
from utils import build_password_context, utcnow

TEST_SECRET = os.environ["JWT_SECRET"]


class Clock:
    """Controllable clock; starts at the real current time."""

    def __init__(self, now: datetime = None):
        self.now = now or utcnow()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture(scope="session")
def password_context():
    return build_password_context(rounds=4)


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def code_store():
    return InMemoryCodeStore()


@pytest.fixture
def auth_service(user_store, password_context, fake_redis, clock):
    return AuthService(
        user_store,
        secret_key=TEST_SECRET,
        password_context=password_context,
        revocations=RedisTokenRevocationStore(fake_redis),
        clock=clock,
    )


@pytest.fixture
def code_service(code_store, auth_service, clock):
    return ReferralCodeService(code_store, auth_service, clock=clock)


@pytest.fixture
def referral_service(auth_service, code_service, code_store):
    return ReferralService(auth_service, code_service, code_store)


@pytest.fixture
def engine():
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
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory, fake_redis):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    yield TestClient(app)
    app.dependency_overrides.clear()
