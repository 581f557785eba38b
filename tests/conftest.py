"""
HashDoc Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from hashdoc.engine.attachments import AttachmentStore
from hashdoc.engine.connection import ConnectionManager
from hashdoc.engine.store import DocumentStore


# ---------------------------------------------------------------------------
# Redis doubles — no real server is touched in unit tests
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_pipeline():
    """Return a mock MULTI/EXEC pipeline; set execute.return_value per test."""
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[])
    return pipe


@pytest.fixture
def mock_redis(mock_pipeline):
    """Return a mock redis.asyncio client."""
    client = MagicMock()
    client.pipeline.return_value = mock_pipeline
    client.ping = AsyncMock(return_value=True)
    client.hset = AsyncMock(return_value=1)
    client.hget = AsyncMock(return_value=None)
    client.hdel = AsyncMock(return_value=1)
    client.hgetall = AsyncMock(return_value={})
    client.smembers = AsyncMock(return_value=set())
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def manager(mock_redis):
    """A ConnectionManager already holding the mock client."""
    mgr = ConnectionManager(
        "localhost", 6379, client_factory=lambda host, port: mock_redis
    )
    mgr._client = mock_redis
    return mgr


@pytest.fixture
def store(manager):
    return DocumentStore(manager, "models")


@pytest.fixture
def ephemeral_store(manager):
    return DocumentStore(manager, "ephemera", ephemeral=True)


@pytest.fixture
def attachment_store(manager):
    return AttachmentStore(manager, "models")


@pytest.fixture
def png_bytes():
    """A small binary payload that is not valid UTF-8."""
    return b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\xff\xfe\x00\x01"
