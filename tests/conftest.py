"""
Test configuration and fixtures

Environment is set before the application modules are imported, since they
read DATABASE_URL and friends at import time.
"""

import os
import tempfile
from pathlib import Path

_TEST_DB = Path(tempfile.mkdtemp(prefix="seatmap_test_")) / "test.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB}"
os.environ["CREATE_DEMO_DATA"] = "false"
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from seatmap import crud  # noqa: E402
from seatmap.database import engine  # noqa: E402
from seatmap.main import app  # noqa: E402
from seatmap.models import Base  # noqa: E402


class FakePubSub:
    """Yields a fixed list of pub/sub messages, then stops."""

    def __init__(self, messages):
        self.messages = messages
        self.channels = []

    async def subscribe(self, channel):
        self.channels.append(channel)

    async def listen(self):
        for msg in self.messages:
            yield msg


class RecordingRedis:
    """Stands in for the redis client; keeps published seat events."""

    def __init__(self):
        self.published = []
        self.on_publish = None
        self.feed = []

    async def publish(self, channel, message):
        if self.on_publish is not None:
            await self.on_publish(channel, message)
        self.published.append((channel, message))
        return 0

    def pubsub(self):
        return FakePubSub(self.feed)


@pytest.fixture
def redis_events(monkeypatch):
    fake = RecordingRedis()
    monkeypatch.setattr(crud, "redis_client", fake)
    return fake


@pytest_asyncio.fixture
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine


@pytest_asyncio.fixture
async def api(database, redis_events):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
