"""Shared fixtures: a throwaway SQLite database per test."""

from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from feeds.schemas import FeedsManager, JobType
from feeds.settings import Settings, get_settings
from feeds.stores.feeds import FeedsStore
from feeds.stores.postgres import create_engine, create_session_factory, create_tables, dispose_engine

URI = "http://192.168.0.1"
NAME = "Chainlink FMS"
PUBLIC_KEY = b"11111111111111111111111111111111"
JOB_TYPES = [JobType.FLUX_MONITOR, JobType.OFFCHAIN_REPORTING]
NETWORK = "mainnet"


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'feeds.db'}",
        db_operation_timeout_seconds=10,
    )


@pytest.fixture
async def engine(settings: Settings) -> AsyncIterator[AsyncEngine]:
    engine = create_engine(settings)
    await create_tables(engine)
    yield engine
    await dispose_engine(engine)


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession], settings: Settings) -> FeedsStore:
    return FeedsStore.from_settings(session_factory, settings)


@pytest.fixture
def manager() -> FeedsManager:
    """Feeds manager that has not been persisted yet."""
    return FeedsManager(
        uri=URI,
        name=NAME,
        public_key=PUBLIC_KEY,
        job_types=JOB_TYPES,
        network=NETWORK,
        is_ocr_bootstrap_peer=True,
    )


@pytest.fixture
async def manager_id(store: FeedsStore) -> int:
    """Id of a persisted feeds manager."""
    return await store.create_manager(
        FeedsManager(
            uri=URI,
            name=NAME,
            public_key=PUBLIC_KEY,
            job_types=JOB_TYPES,
            network=NETWORK,
        )
    )
