"""Shared fixtures: an in-memory database and fake platform adapters."""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import medianode.modules.media.models  # noqa: F401
from medianode.core.base import Base
from medianode.platform.adapters.media_store_memory import InMemoryMediaStore
from tests.fakes.fake_platform import FakeContentStore, FakePinning, RecordingNotifier


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def content_store() -> FakeContentStore:
    return FakeContentStore()


@pytest.fixture
def pinning() -> FakePinning:
    return FakePinning()


@pytest.fixture
def media_store() -> InMemoryMediaStore:
    return InMemoryMediaStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
