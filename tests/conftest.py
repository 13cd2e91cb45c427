"""Shared test fixtures for tabby."""

import os
import tempfile
import time
from datetime import datetime, timedelta

import pytest

from tabby.core.events import ChangeSignal
from tabby.journal.store import EntryStore


class FakeClock:
    """Settable stand-in for ``datetime.now``."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file."""
    import yaml

    config_data = {
        "paths": {
            "data_dir": os.path.join(tmp_dir, "data"),
            "documents_dir": os.path.join(tmp_dir, "data", "documents"),
            "shared_dir": os.path.join(tmp_dir, "data", "shared"),
        },
        "autosave": {"quiet_period": 0.2},
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 8, 0, 0))


@pytest.fixture
def signal():
    sig = ChangeSignal()
    yield sig
    sig.close()


@pytest.fixture
def store(tmp_path, signal, clock):
    return EntryStore(tmp_path / "journal.db", signal=signal, clock=clock)


@pytest.fixture
def local_tz():
    """Switch the process timezone; restored after the test. POSIX only."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    original = os.environ.get("TZ")

    def _set(name: str) -> None:
        os.environ["TZ"] = name
        time.tzset()

    yield _set

    if original is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = original
    time.tzset()
