"""
Shared pytest fixtures.

Settings are read from the environment when ``portal`` is first
imported, so the test values are exported before any portal import.
API tests run against a fresh, bootstrapped and seeded SQLite file per
test; the engine dependency of the app is overridden to point at it.
"""

import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SEED_ON_STARTUP", "false")
os.environ.setdefault("DATABASE_URL", "sqlite:///./.pytest-portal.db")

from collections.abc import Iterator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402

from portal.infrastructure.database.engine import build_engine, get_engine  # noqa: E402
from portal.infrastructure.database.migrations import bootstrap_schema  # noqa: E402
from portal.infrastructure.database.seed import seed_database  # noqa: E402
from portal.infrastructure.security.passwords import BcryptPasswordHasher  # noqa: E402
from portal.main import app  # noqa: E402

API = "/api/v1"

DEMO_EMAIL = "demo@mekness.com"
DEMO_PASSWORD = "demo123"
SUPER_ADMIN = ("superadmin", "Admin@12345")
MIDDLE_ADMIN = ("middleadmin", "Middle@12345")
NORMAL_ADMIN = ("normaladmin", "Normal@12345")


@pytest.fixture
def hasher() -> BcryptPasswordHasher:
    return BcryptPasswordHasher(rounds=4)


@pytest.fixture
def engine(tmp_path, hasher) -> Iterator[Engine]:
    """A bootstrapped and seeded SQLite database in a temporary directory."""
    db_engine = build_engine(f"sqlite:///{tmp_path / 'portal.db'}")
    bootstrap_schema(db_engine)
    seed_database(db_engine, hasher)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def client(engine) -> Iterator[TestClient]:
    """A TestClient whose requests use the temporary database.

    Not entered as a context manager: the lifespan would bootstrap the
    process-wide engine instead of the test one.
    """
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(engine) -> Iterator[TestClient]:
    """A second, independent cookie jar for back-office requests."""
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def sign_up(client: TestClient, email: str, password: str = "secret1", **extra) -> dict:
    response = client.post(
        f"{API}/auth/signup", json={"email": email, "password": password, **extra}
    )
    assert response.status_code == 201, response.text
    return response.json()


def sign_in_admin(client: TestClient, credentials: tuple[str, str]) -> dict:
    username, password = credentials
    response = client.post(
        f"{API}/admin/auth/signin", json={"username": username, "password": password}
    )
    assert response.status_code == 200, response.text
    return response.json()


def open_account(client: TestClient, **payload) -> dict:
    response = client.post(f"{API}/trading-accounts", json=payload)
    assert response.status_code == 201, response.text
    return response.json()
