"""
Landing CMS - Test Configuration

Pytest fixtures for authentication testing.
Provides test settings, database, client, and user fixtures.
"""

from typing import Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from landing_cms.app import create_app
from landing_cms.auth.database import get_engine, init_db
from landing_cms.auth.lockout import LockoutPolicy
from landing_cms.auth.models import Role, User, UserStatus, utcnow
from landing_cms.auth.password import PasswordHasher
from landing_cms.auth.repository import RefreshTokenRepository, UserRepository
from landing_cms.auth.service import AuthService
from landing_cms.auth.tokens import TokenCodec
from landing_cms.config import Settings


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_ACCESS_SECRET = "test-access-secret-0123456789abcdef"
TEST_REFRESH_SECRET = "test-refresh-secret-fedcba9876543210"

DEFAULT_PASSWORD = "correctpw"


def make_settings(**overrides) -> Settings:
    """Settings for tests: cheap bcrypt, generous rate limit, no audit worker."""
    values = dict(
        APP_ENV="test",
        DATABASE_URL=TEST_DATABASE_URL,
        JWT_ACCESS_SECRET=TEST_ACCESS_SECRET,
        JWT_REFRESH_SECRET=TEST_REFRESH_SECRET,
        BCRYPT_COST=4,
        RATE_LIMIT_AUTH_REQUESTS=1000,
        AUDIT_LOG_ENABLED=False,
        LOG_LEVEL="WARNING",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(scope="function")
def settings() -> Settings:
    return make_settings()


@pytest.fixture(scope="function")
def test_engine():
    """Create a fresh test database engine for each test."""
    engine = get_engine(TEST_DATABASE_URL)
    init_db(engine)

    yield engine

    # Cleanup
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a database session for testing."""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(scope="function")
def hasher(settings) -> PasswordHasher:
    return PasswordHasher(rounds=settings.BCRYPT_COST)


@pytest.fixture(scope="function")
def codec(settings) -> TokenCodec:
    return TokenCodec.from_settings(settings)


@pytest.fixture(scope="function")
def lockout(settings) -> LockoutPolicy:
    return LockoutPolicy.from_settings(settings)


@pytest.fixture(scope="function")
def auth_service(db_session, codec, hasher, lockout) -> AuthService:
    """Authentication service over the test database."""
    return AuthService(
        users=UserRepository(db_session),
        token_store=RefreshTokenRepository(db_session),
        codec=codec,
        hasher=hasher,
        lockout=lockout,
    )


@pytest.fixture(scope="function")
def client(settings, test_engine) -> Generator[TestClient, None, None]:
    """Create a test client bound to the test database."""
    app = create_app(settings, engine=test_engine)

    with TestClient(app) as c:
        yield c


def create_user(
    db: Session,
    hasher: PasswordHasher,
    email: str,
    role: Role = Role.EDITOR,
    password: str = DEFAULT_PASSWORD,
    status: UserStatus = UserStatus.ACTIVE,
    **fields,
) -> User:
    """Insert an account directly."""
    user = User(
        email=email,
        password_hash=hasher.hash(password),
        full_name=fields.pop("full_name", email.split("@")[0].title()),
        role=role,
        status=status,
        **fields,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def test_editor(db_session, hasher) -> User:
    """alice@example.com / correctpw, role editor."""
    return create_user(db_session, hasher, "alice@example.com")


@pytest.fixture(scope="function")
def test_admin(db_session, hasher) -> User:
    return create_user(db_session, hasher, "admin@example.com", role=Role.ADMIN)


@pytest.fixture(scope="function")
def test_super_admin(db_session, hasher) -> User:
    return create_user(db_session, hasher, "owner@example.com", role=Role.SUPER_ADMIN)


@pytest.fixture(scope="function")
def inactive_user(db_session, hasher) -> User:
    return create_user(db_session, hasher, "inactive@example.com", status=UserStatus.INACTIVE)


@pytest.fixture(scope="function")
def suspended_user(db_session, hasher) -> User:
    return create_user(db_session, hasher, "suspended@example.com", status=UserStatus.SUSPENDED)


@pytest.fixture(scope="function")
def deleted_user(db_session, hasher) -> User:
    return create_user(db_session, hasher, "deleted@example.com", deleted_at=utcnow())


def login_user(client: TestClient, email: str, password: str = DEFAULT_PASSWORD) -> Optional[dict]:
    """Helper function to login and return the response body."""
    response = client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )
    return response.json() if response.status_code == 200 else None


def auth_headers(access_token: str) -> dict:
    """Create authorization headers for authenticated requests."""
    return {"Authorization": f"Bearer {access_token}"}
