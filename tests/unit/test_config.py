"""Tests for Settings validation."""

import pytest
from pydantic import ValidationError

from catalog.core.config import Settings

_STORE_ENV = (
    "STORE_BACKEND",
    "STORE_TIMEZONE",
    "FIREBASE_SERVICE_ACCOUNT_KEY",
    "FIREBASE_SERVICE_ACCOUNT_PATH",
    "FIRESTORE_PROJECT_ID",
    "FIRESTORE_EMULATOR_HOST",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _STORE_ENV:
        monkeypatch.delenv(name, raising=False)


def test_memory_backend_needs_no_credentials() -> None:
    """The in-memory backend loads with defaults only."""
    s = Settings(_env_file=None, store_backend="memory")
    assert s.store_timezone == "UTC"


def test_firestore_backend_requires_credentials() -> None:
    """Firestore without key, path or emulator is rejected at load time."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, store_backend="firestore")


def test_firestore_emulator_needs_project_id() -> None:
    """Emulator host together with a project id is enough for Firestore."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, firestore_emulator_host="localhost:8080")
    s = Settings(
        _env_file=None, firestore_emulator_host="localhost:8080", firestore_project_id="demo"
    )
    assert s.store_backend == "firestore"


def test_settings_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Environment variables override defaults (case-insensitive names)."""
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("STORE_TIMEZONE", "Asia/Seoul")
    s = Settings(_env_file=None)
    assert s.store_backend == "memory"
    assert s.store_timezone == "Asia/Seoul"


@pytest.mark.parametrize(
    "overrides",
    [
        {"store_backend": "mongo"},
        {"store_timezone": "Mars/Olympus"},
        {"store_timeout_seconds": 0},
    ],
)
def test_invalid_settings_rejected(overrides: dict) -> None:
    """Unknown backend, unknown timezone, or non-positive timeout fail validation."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{"store_backend": "memory", **overrides})
