"""
Test configuration and fixtures for QuickColor tests.
"""
from unittest.mock import AsyncMock

import pytest

from quickcolor.services.palettes import PaletteStore
from quickcolor.services.recent_colors import RecentColorsTracker
from quickcolor.services.results import PersistenceError
from quickcolor.services.settings import SettingsService
from quickcolor.services.storage import MemoryStore


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    from quickcolor.utils.metrics import reset_metrics
    reset_metrics()


@pytest.fixture
def memory_store():
    return MemoryStore("@quickcolor-test")


@pytest.fixture
def failing_store(memory_store):
    """Store whose reads work but whose writes and deletes are rejected."""
    memory_store.set = AsyncMock(side_effect=PersistenceError("disk full"))
    memory_store.delete = AsyncMock(side_effect=PersistenceError("disk full"))
    return memory_store


@pytest.fixture
def palette_store(memory_store):
    return PaletteStore(memory_store, free_limit=5, pro_limit=100, max_colors=20)


@pytest.fixture
def recent_colors(memory_store):
    return RecentColorsTracker(memory_store, max_colors=20)


@pytest.fixture
def settings_service(memory_store):
    return SettingsService(memory_store)

