"""Shared fixtures for modeldb tests."""

import json
import logging
from pathlib import Path

import pytest

from modeldb.catalog import store as store_module
from modeldb.catalog.store import SnapshotStore
from modeldb.sources import RuntimeSource
from modeldb.utils import logging as logging_utils
from modeldb.utils.logging import ROOT_LOGGER


@pytest.fixture(autouse=True)
def reset_logging(monkeypatch):
    """Drop handlers installed by configure_logging so streams don't leak between tests."""
    logger = logging.getLogger(ROOT_LOGGER)
    handlers = list(logger.handlers)
    level = logger.level
    monkeypatch.setattr(logging_utils, "_configured", False)
    yield
    for handler in logger.handlers[:]:
        if handler not in handlers:
            logger.removeHandler(handler)
    logger.setLevel(level)


@pytest.fixture
def store() -> SnapshotStore:
    """An isolated snapshot store."""
    return SnapshotStore()


@pytest.fixture
def default_store(monkeypatch) -> SnapshotStore:
    """Replace the process-wide store for the duration of a test."""
    fresh = SnapshotStore()
    monkeypatch.setattr(store_module, "_default_store", fresh)
    return fresh


@pytest.fixture
def base_source() -> RuntimeSource:
    """Two providers with a handful of models and mixed capabilities."""
    return RuntimeSource(
        providers=[
            {"id": "openai", "name": "OpenAI", "env": ["OPENAI_API_KEY"]},
            {"id": "anthropic", "name": "Anthropic"},
        ],
        models=[
            {
                "provider": "openai",
                "id": "gpt-4o",
                "aliases": ["gpt-4o-latest"],
                "cost": {"input": 2.5, "output": 10.0},
                "limits": {"context": 128000, "output": 16384},
                "capabilities": {"tools": {"enabled": True, "parallel": True}},
                "tags": ["flagship"],
            },
            {
                "provider": "openai",
                "id": "gpt-4o-mini",
                "capabilities": {"tools": {"enabled": True}},
            },
            {
                "provider": "openai",
                "id": "gpt-3.5-turbo",
                "capabilities": {"tools": {"enabled": False}},
            },
            {
                "provider": "anthropic",
                "id": "claude-3-5-sonnet",
                "aliases": ["claude-sonnet"],
                "capabilities": {"tools": {"enabled": True}, "reasoning": {"enabled": True}},
            },
        ],
        name="base",
    )


@pytest.fixture
def snapshot_file(tmp_path: Path) -> Path:
    """A minimal persisted snapshot document on disk."""
    document = {
        "version": 2,
        "generated_at": "2025-01-01T00:00:00Z",
        "providers": {
            "openai": {
                "id": "openai",
                "name": "OpenAI",
                "models": {
                    "gpt-4o": {"id": "gpt-4o", "provider": "openai", "cost": {"input": 2.5}},
                },
            },
            "google-vertex": {
                "id": "google-vertex",
                "models": {"gemini-pro": {"id": "gemini-pro"}},
            },
        },
    }
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(document))
    return path
