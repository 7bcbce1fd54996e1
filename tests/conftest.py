"""Pytest configuration helpers.

Puts the project root on `sys.path` so tests import `mediagen` without an
install, and keeps settings and credentials isolated from the developer's
environment.
"""
import os
import sys

import pytest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from mediagen.config import get_settings  # noqa: E402

_ENV_VARS = (
    "ARK_API_KEY",
    "ARK_BASE_URL",
    "GEMINI_API_KEY",
    "GEMINI_BASE_URL",
    "JIMENG_ACCESS_KEY_ID",
    "JIMENG_SECRET_ACCESS_KEY",
    "TOPVIEW_API_KEY",
    "TOPVIEW_UID",
    "TOPVIEW_BASE_URL",
    "DEBUG",
)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Fresh settings per test with the config file under tmp_path."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    config_path = tmp_path / "config" / "config.json"
    monkeypatch.setenv("MEDIAGEN_CONFIG_PATH", str(config_path))
    get_settings.cache_clear()
    yield config_path
    get_settings.cache_clear()


class FakeClock:
    """Monotonic clock that advances only when `sleep` is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
