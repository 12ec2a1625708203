"""Shared fixtures: isolate global configuration between tests."""

import pytest

from constants import Constants

_ENV_VARS = (
    "DEPBUMP_CONFIG",
    "DEPBUMP_REGISTRY_URL",
    "DEPBUMP_MAX_CONCURRENCY",
    "DEPBUMP_REQUEST_TIMEOUT",
    "DEPBUMP_LOG_LEVEL",
    "DEPBUMP_LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def restore_constants(monkeypatch, tmp_path):
    """Snapshot Constants, clear DEPBUMP_* env vars and run from an empty dir."""
    snapshot = {
        name: value for name, value in vars(Constants).items()
        if name.isupper()
    }
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    Constants.HTTP_RETRY_BASE_DELAY_SEC = 0
    yield
    for name, value in snapshot.items():
        setattr(Constants, name, value)
