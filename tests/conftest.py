"""Pytest configuration and shared fixtures."""

import pytest

from serverquery.transport import MockClientTransport


@pytest.fixture(scope="module")
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep SERVERQUERY_* settings of the developer's shell out of tests."""
    for suffix in ("HOST", "PORT", "TIMEOUT", "PIPELINE"):
        monkeypatch.delenv(f"SERVERQUERY_{suffix}", raising=False)


@pytest.fixture
def transport():
    """In-memory transport with no canned responses."""
    return MockClientTransport()
