"""
Shared fixtures.

The environment is prepared before ``cryptosim`` is imported: settings
are read once at import time. Every test gets a fresh in-memory SQLite
database shared by all sessions through a StaticPool, and a fake
exchange in place of Binance.
"""

import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret-0123456789abcdef"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret-0123456789abcde"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="cryptosim-uploads-")

import uuid  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from cryptosim.core import database  # noqa: E402
from cryptosim.domain.accounts.entities import Admin, User  # noqa: E402
from cryptosim.infrastructure.accounts.admin_repository import AdminRepositoryAdapter  # noqa: E402
from cryptosim.infrastructure.accounts.user_repository import UserRepositoryAdapter  # noqa: E402
from cryptosim.infrastructure.security.passwords import BcryptPasswordHasher  # noqa: E402
from cryptosim.interfaces.dependencies import get_exchange_client  # noqa: E402
from cryptosim.main import app  # noqa: E402
from helpers import (  # noqa: E402
    OPERATOR_PASSWORD,
    TRADER_PASSWORD,
    FakeExchange,
    bearer,
    login_admin,
    login_user,
)

hasher = BcryptPasswordHasher(rounds=4)


@pytest.fixture
def engine(monkeypatch):
    """Fresh in-memory database, used by requests, the CLI and jobs alike."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    database.init_db(test_engine)
    monkeypatch.setattr(database, "get_engine", lambda: test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def exchange():
    return FakeExchange()


@pytest.fixture
def client(engine, exchange):
    app.dependency_overrides[get_exchange_client] = lambda: exchange
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def create_user(engine):
    """Factory inserting a trader directly through the repository."""

    def _create(email: str = "user001@mail.com", password: str = TRADER_PASSWORD, **fields):
        fields.setdefault("display_name", email.split("@")[0])
        with database.session_scope(engine) as session:
            return UserRepositoryAdapter(session).add(
                User(
                    id=str(uuid.uuid4()),
                    email=email,
                    password_hash=hasher.hash(password),
                    **fields,
                )
            )

    return _create


@pytest.fixture
def create_admin(engine):
    """Factory inserting an operator directly through the repository."""

    def _create(username: str = "ops", password: str = OPERATOR_PASSWORD, **fields):
        with database.session_scope(engine) as session:
            return AdminRepositoryAdapter(session).add(
                Admin(
                    id=str(uuid.uuid4()),
                    username=username,
                    password_hash=hasher.hash(password),
                    **fields,
                )
            )

    return _create


@pytest.fixture
def trader(client, create_user):
    """A signed-in trader with 10000 demo and 500 real balance."""
    user = create_user(
        "user001@mail.com",
        display_name="Trader 001",
        demo_balance=Decimal("10000"),
        real_balance=Decimal("500"),
    )
    tokens = login_user(client, user.email)["tokens"]
    return {"user": user, "tokens": tokens, "headers": bearer(tokens["accessToken"])}


@pytest.fixture
def operator(client, create_admin):
    """A signed-in back-office operator."""
    admin = create_admin("ops", display_name="Operations")
    tokens = login_admin(client, admin.username)["tokens"]
    return {"admin": admin, "tokens": tokens, "headers": bearer(tokens["accessToken"])}
