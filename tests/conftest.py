"""Shared fixtures: settings on a temporary SQLite file and fake collaborators."""

from __future__ import annotations

import re
from collections.abc import Callable, Generator
from typing import Any

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.config import Settings
from app.infrastructure.database import DatabaseConnector
from app.infrastructure.executor import QueryExecutor
from app.infrastructure.pool import ConnectionPool
from app.interfaces.deps import get_email_sender, get_object_storage
from app.main import create_app

CODE_PATTERN = re.compile(r"\b(\d{6})\b")


class FakeEmailSender:
    """Records outgoing mail instead of sending it."""

    def __init__(self) -> None:
        self.outbox: list[dict[str, str]] = []

    async def send(self, to: str, subject: str, body: str) -> None:
        self.outbox.append({"to": to, "subject": subject, "body": body})

    def last_code(self, to: str) -> str:
        for message in reversed(self.outbox):
            if message["to"] == to:
                match = CODE_PATTERN.search(message["body"])
                assert match, f"no code in message to {to}"
                return match.group(1)
        raise AssertionError(f"no email sent to {to}")


class FakeObjectStorage:
    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}

    async def put(self, data: bytes, filename: str, content_type: str, bucket: str) -> str:
        url = f"https://storage.test/{bucket}/{filename}"
        self.objects[url] = data
        return url


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        DB_POOL_MAX_SIZE=3,
        DB_ACQUIRE_TIMEOUT_SECONDS=2.0,
        DB_CONNECT_RETRIES=1,
        BCRYPT_ROUNDS=4,
        ENVIRONMENT="test",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def object_storage() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest_asyncio.fixture
async def executor(settings: Settings):
    """Executor over a freshly created SQLite schema."""
    connector = DatabaseConnector(settings)
    await connector.create_all()
    pool = ConnectionPool(connector.connect, max_size=2, acquire_timeout=1.0)
    yield QueryExecutor(pool, request_timeout=5.0)
    await pool.shutdown_all()
    await connector.dispose()


@pytest.fixture
def client(
    settings: Settings, email_sender: FakeEmailSender, object_storage: FakeObjectStorage
) -> Generator[TestClient, None, None]:
    app = create_app(settings)
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_object_storage] = lambda: object_storage
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def run_on_app(client: TestClient) -> Callable[..., Any]:
    """Call an async function on the app's event loop."""

    def _run(fn, *args):
        return client.portal.call(fn, *args)

    return _run


@pytest.fixture
def register(client: TestClient, email_sender: FakeEmailSender) -> Callable[..., int]:
    """Run pre-signup and complete-signup; return the new user id."""

    def _register(
        username: str = "alice",
        email: str = "alice@example.com",
        password: str = "Secret123",
        **extra: Any,
    ) -> int:
        body = {
            "username": username,
            "email": email,
            "password": password,
            "firstname": "Alice",
            "lastname": "Reyes",
            **extra,
        }
        response = client.post("/pre-signup", json=body)
        assert response.status_code == 200, response.text
        code = email_sender.last_code(email)
        response = client.post("/complete-signup", json={"email": email, "code": code})
        assert response.status_code == 201, response.text
        return response.json()["userId"]

    return _register
