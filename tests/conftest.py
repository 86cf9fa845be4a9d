# tests/conftest.py
import os

import pytest

from jobharvest.config import get_settings

from fakes import ListSink


# ---------------------------------------------------------------------
# Env isolation: no JOBHARVEST_* from the developer's shell leaks in
# ---------------------------------------------------------------------
@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in list(os.environ):
        if key.startswith("JOBHARVEST_"):
            monkeypatch.delenv(key, raising=False)
    # .env lookups resolve relative to cwd
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sink():
    return ListSink()
