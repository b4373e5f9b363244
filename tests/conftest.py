"""Shared fixtures for the hotspot-radar test suite.

Provides an isolated SQLite cache per test, a pinned clock, a hotspot
factory, and a Flask test client whose sync layer talks to a mocked
remote source instead of the network.
"""

import atexit
import os
import tempfile
from datetime import datetime
from unittest.mock import MagicMock

import pytest

# Point the DB at a temp file BEFORE importing app/models (they read DB_PATH at import time)
_test_db_fd, _test_db_path = tempfile.mkstemp(suffix=".db")
os.close(_test_db_fd)  # close the fd immediately; sqlite3 opens its own handle
os.environ["HOTSPOT_DB_PATH"] = _test_db_path
atexit.register(lambda: os.unlink(_test_db_path) if os.path.exists(_test_db_path) else None)

# Never reach a real remote table from tests
os.environ.pop("HOTSPOT_REMOTE_URL", None)
os.environ.pop("HOTSPOT_REMOTE_KEY", None)
os.environ.pop("SENTRY_DSN", None)

from app import app, build_context, limiter  # noqa: E402
from hotspots import Category, PointOfInterest, Provenance  # noqa: E402
from models import LocalCacheStore  # noqa: E402
from remote_source import RemoteHotspotSource  # noqa: E402

# Monday 2024-03-04 and Saturday 2024-03-09
WEEKDAY = datetime(2024, 3, 4)
WEEKEND = datetime(2024, 3, 9)


@pytest.fixture()
def cache_store(tmp_path):
    """A fresh, initialised cache file per test with a controllable ms clock."""
    now = {"ms": 1_700_000_000_000}
    store = LocalCacheStore(db_path=str(tmp_path / "cache.db"), clock=lambda: now["ms"])
    store.init_db()
    store.now = now
    return store


@pytest.fixture()
def fixed_clock():
    """Factory: fixed_clock(hour, minute=0, weekend=False) -> clock callable."""
    def _make(hour, minute=0, weekend=False):
        base = WEEKEND if weekend else WEEKDAY
        moment = base.replace(hour=hour, minute=minute)
        return lambda: moment
    return _make


@pytest.fixture()
def make_poi():
    """Factory for PointOfInterest with sensible defaults."""
    def _make(id="poi-1", lat=-6.9175, lng=107.6191, category=Category.GENERAL,
              provenance=Provenance.REMOTE, **kwargs):
        return PointOfInterest(
            id=id,
            name=kwargs.pop("name", id),
            latitude=lat,
            longitude=lng,
            category=category,
            provenance=provenance,
            **kwargs,
        )
    return _make


@pytest.fixture()
def mock_remote():
    remote = MagicMock(spec=RemoteHotspotSource)
    remote.is_configured = True
    remote.fetch_all.return_value = []
    return remote


@pytest.fixture()
def client(cache_store, mock_remote):
    """Flask test client wired to a per-test cache and a mocked remote source."""
    app.config["TESTING"] = True
    limiter.enabled = False
    previous = app.extensions["hotspot"]
    ctx = build_context(cache=cache_store, remote=mock_remote, clock=lambda: WEEKDAY.replace(hour=8))
    ctx.orchestrator.start()
    app.extensions["hotspot"] = ctx
    try:
        with app.test_client() as c:
            yield c
    finally:
        app.extensions["hotspot"] = previous
