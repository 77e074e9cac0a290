"""Test configuration and fixtures for metaboxql."""

import asyncio
import os
import sys
from typing import AsyncGenerator

import pytest
from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from metaboxql.storage import MetaBase
from tests.schema import Demo

# Try to load environment variables from .env file
load_dotenv()


@pytest.fixture(scope="session", autouse=True)
def event_loop_policy():
    """Set event loop policy for Windows compatibility."""
    if sys.platform.startswith("win"):
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    yield


@pytest.fixture
def demo() -> Demo:
    """Fresh demo host with its own seeded meta store, for tests that write."""
    return Demo()


@pytest.fixture(scope="function")
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Meta table engine: METABOXQL_TEST_DATABASE_URL when set, a per-test SQLite file otherwise."""
    test_db_url = os.getenv('METABOXQL_TEST_DATABASE_URL')
    if test_db_url:
        engine = create_async_engine(test_db_url, echo=False, pool_pre_ping=True)
        async with engine.begin() as conn:
            await conn.run_sync(MetaBase.metadata.drop_all)
            await conn.run_sync(MetaBase.metadata.create_all)
    else:
        # file database: one connection per session
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'meta.db'}", echo=False)
        async with engine.begin() as conn:
            await conn.run_sync(MetaBase.metadata.create_all)

    yield engine

    if test_db_url:
        async with engine.begin() as conn:
            await conn.run_sync(MetaBase.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
