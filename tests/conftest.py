"""
Task Management API: Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── test_settings: Settings with fast bcrypt and an in-memory database
    ├── telemetry: RecordingTelemetry capturing every event
    ├── database: schema-ready in-memory Database
    ├── task_service: TaskService over a fresh TaskStore
    ├── app / test_client: full application with its lifespan entered
    └── admin_headers / user_headers: bearer headers for the demo accounts
"""

import os
from typing import Any, Dict, List, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Set before any taskmanager import; the module-level settings read these
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "TestSuiteSigningKeyThatIsLongEnoughForHS256"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

from taskmanager.config import Settings  # noqa: E402
from taskmanager.database import Database  # noqa: E402
from taskmanager.main import create_app  # noqa: E402
from taskmanager.services.task_service import TaskService  # noqa: E402
from taskmanager.services.telemetry import TelemetryService  # noqa: E402
from taskmanager.stores import TaskStore  # noqa: E402


class RecordingTelemetry(TelemetryService):
    """Telemetry sink that keeps every event and metric for assertions."""

    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []
        self.metrics: List[Tuple[str, float]] = []

    def _emit_event(self, name, properties):
        self.events.append((name, properties))

    def _emit_metric(self, name, value, properties):
        self.metrics.append((name, value))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "database_url": "sqlite+aiosqlite:///:memory:",
        "jwt_secret_key": "TestSuiteSigningKeyThatIsLongEnoughForHS256",
        "bcrypt_rounds": 4,
        "log_level": "WARNING",
        "rate_limit_requests": 1000,
    }
    values.update(overrides)
    return Settings(**values)


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
def telemetry() -> RecordingTelemetry:
    return RecordingTelemetry()


@pytest_asyncio.fixture
async def database(test_settings):
    db = Database(test_settings)
    await db.create_schema()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def task_service(database) -> TaskService:
    return TaskService(TaskStore(database))


@pytest.fixture
def app(test_settings, telemetry):
    return create_app(test_settings, telemetry=telemetry)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    The lifespan is entered explicitly so tables exist and demo data is
    seeded before the first request.
    """
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


async def login(client: AsyncClient, username: str, password: str) -> Dict[str, str]:
    response = await client.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest_asyncio.fixture
async def admin_headers(test_client) -> Dict[str, str]:
    return await login(test_client, "admin", "Admin123!")


@pytest_asyncio.fixture
async def user_headers(test_client) -> Dict[str, str]:
    return await login(test_client, "user", "User123!")
