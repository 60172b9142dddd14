"""Shared pytest fixtures for store, service and API tests."""

import logging
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.config import Settings
from app.dependencies import AppContext
from app.keygen import RandomKeyGenerator
from app.main import app
from app.store import MemoryDocumentStore


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        STORAGE_TYPE="memory",
        MAX_LENGTH=400,
        KEY_LENGTH=5,
        KEY_MAX_ATTEMPTS=8,
        KEY_GROWTH_THRESHOLD=2,
    )


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("paste_service.tests")


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def app_context(settings: Settings, memory_store: MemoryDocumentStore, logger: logging.Logger) -> AppContext:
    return AppContext(
        settings=settings,
        store=memory_store,
        key_generator=RandomKeyGenerator(),
        logger=logger,
    )


@pytest_asyncio.fixture(scope="function")
async def client(app_context: AppContext) -> AsyncGenerator[AsyncClient, None]:
    app.state.context = app_context

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    del app.state.context
