"""Shared test fixtures for the inventory chat agent test suite."""

from __future__ import annotations

import os
from unittest.mock import AsyncMock, MagicMock

import pytest


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    This runs before any imports, so config.py won't fail on module load.
    """
    os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key-123")
    os.environ.setdefault("METRICS_ENABLED", "false")
    os.environ.setdefault("CONVERSATION_STORE_BACKEND", "memory")


@pytest.fixture
def inventory():
    """A stand-in inventory store with a populated collection and no matches."""
    store = MagicMock()
    store.count.return_value = 10
    store.similarity_search.return_value = []
    store.text_search.return_value = []
    return store


@pytest.fixture
def scripted_llm():
    """Factory for a model whose ``ainvoke`` returns the given responses in order."""

    def _make(*responses):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=list(responses))
        return llm

    return _make
