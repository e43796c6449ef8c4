"""Shared fixtures for the formlingo test suite."""

import os

import pytest

from formlingo.configuration import reset_config_cache
from formlingo.store import MemoryTranslationStore, SQLiteTranslationStore


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep the developer's environment and config files out of every test."""

    for key in list(os.environ):
        if key.startswith("FORMLINGO_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    reset_config_cache()
    yield
    reset_config_cache()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each backend, with its schema created."""

    if request.param == "memory":
        backend = MemoryTranslationStore()
    else:
        backend = SQLiteTranslationStore(tmp_path / "translations.db")
    backend.create_schema()
    return backend
