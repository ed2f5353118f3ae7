"""
SkyStore Test Configuration
===========================

Shared fixtures:
- settings: Settings pointed at in-memory SQLite and small upload limits
- engine / session_factory: aiosqlite engine with foreign keys enforced
- storage: in-memory object store with switchable failures
- bus: event bus that records what was published
- providers / service / client: the real wiring built from the fakes

Usage:
    pytest tests/unit/          # Pure functions and adapters
    pytest tests/integration/   # Workflow and HTTP surface on SQLite
"""

import logging
from typing import Any

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlalchemy.ext.asyncio import create_async_engine

from skystore.core.base import Base
from skystore.core.config import Settings
from skystore.core.db import build_sessionmaker
from skystore.platform.provider_registry import ProviderRegistry


def pytest_collection_modifyitems(config, items):
    """Auto-mark tests based on their path."""
    for item in items:
        if "/unit/" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    logging.basicConfig(level=logging.WARNING)


# ============================================================================
# Fakes
# ============================================================================

class MemoryStorage:
    """Object store kept in a dict. Flip the ``fail_*`` flags to simulate outages."""

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.uploaded: list[str] = []
        self.deleted: list[str] = []
        self.fail_put = False
        self.fail_presign = False
        self.fail_delete = False

    def ensure_bucket(self) -> None:
        return None

    def put_bytes(self, key: str, data: bytes, content_type: str) -> None:
        if self.fail_put:
            raise OSError("object store unavailable")
        self.objects[key] = (data, content_type)
        self.uploaded.append(key)

    def get_bytes(self, key: str) -> bytes:
        return self.objects[key][0]

    def exists(self, key: str) -> bool:
        return key in self.objects

    def delete(self, key: str) -> None:
        if self.fail_delete:
            raise OSError("delete refused")
        self.objects.pop(key, None)
        self.deleted.append(key)

    def presign_download(self, key: str, expires_seconds: int = 86400) -> str:
        if self.fail_presign:
            raise OSError("presign failed")
        return f"http://objects.test/{key}?expires={expires_seconds}"


class RecordingBus:
    def __init__(self):
        self.published: list[tuple[str, str, dict]] = []
        self.fail = False
        self.closed = False

    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None:
        if self.fail:
            raise ConnectionError("broker down")
        self.published.append((topic, key, value))

    async def close(self) -> None:
        self.closed = True


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def settings() -> Settings:
    return Settings(
        POSTGRES_DSN="sqlite+aiosqlite://",
        OBJECT_STORAGE_PROVIDER="local",
        EVENT_BUS_PROVIDER="noop",
        PRESIGN_EXPIRES_SECONDS=3600,
        MAX_UPLOAD_BYTES=64 * 1024,
    )


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    import skystore.modules.assets.models  # noqa: F401
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def bus() -> RecordingBus:
    return RecordingBus()


@pytest.fixture
def providers(settings, storage, bus) -> ProviderRegistry:
    return ProviderRegistry(settings, object_storage=storage, event_bus=bus)


@pytest.fixture
def service(session, storage, providers):
    from skystore.modules.assets.service import AssetService
    return AssetService(session, storage, providers.events(), presign_expires_seconds=3600)


@pytest_asyncio.fixture
async def client(settings, providers, engine, session_factory):
    from skystore.main import create_app

    app = create_app(settings, providers=providers, engine=engine, session_factory=session_factory)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    await providers.events().drain()


@pytest.fixture
def full_metadata() -> dict[str, Any]:
    return {
        "asset_type": "img",
        "asset_class": "family",
        "asset_location_name": "Lake House",
        "asset_camera": "Canon R5",
        "asset_date_label": "2024-07-01",
    }
