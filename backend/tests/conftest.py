"""
Shared test fixtures for the shift claims backend tests.
"""
import os
import sys
import pytest

# ── Python path setup ──────────────────────────────────────────────────────────
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ── Fake listing sources ───────────────────────────────────────────────────────

class FakeSource:
    """In-memory listing source that records every fetch.

    ``pages`` is a list of (items, has_next) tuples for page 1, 2, ...;
    a page past the end returns an empty page without a next link.
    """

    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    def __call__(self, page, limit):
        from shiftlib.pagination import Page
        self.calls.append((page, limit))
        if page - 1 < len(self.pages):
            items, has_next = self.pages[page - 1]
            return Page(items=list(items), has_next=has_next)
        return Page()


class FakeShardedSource:
    """Like FakeSource, keyed by shard index: ``{shard: [(items, has_next), ...]}``."""

    def __init__(self, shards):
        self.shards = shards
        self.calls = []

    def __call__(self, page, limit, shard):
        from shiftlib.pagination import Page
        self.calls.append((shard, page, limit))
        pages = self.shards.get(shard, [])
        if page - 1 < len(pages):
            items, has_next = pages[page - 1]
            return Page(items=list(items), has_next=has_next)
        return Page()


def items(start, count, prefix='item'):
    """Build ``count`` distinct item dicts with ids starting at ``start``."""
    return [{'id': i, 'name': f'{prefix}-{i}'} for i in range(start, start + count)]


# ── Store fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture
def db(tmp_path):
    """Function-scoped empty store."""
    from shiftlib.database import ShiftDatabase
    return ShiftDatabase(str(tmp_path / "data"), shard_size=5)


@pytest.fixture
def write_db_path(tmp_path, monkeypatch):
    """Function-scoped: fresh store directory, patched into api.main."""
    db_path = str(tmp_path / "data")
    import api.main as main_module
    monkeypatch.setattr(main_module, 'DB_PATH', db_path)
    monkeypatch.setattr(main_module, 'SHARD_SIZE', 5)
    monkeypatch.setenv("SHIFTS_DB_PATH", db_path)
    return db_path


@pytest.fixture
def app(write_db_path):
    """Return the FastAPI app pointed at the temporary store, rate limiting off."""
    from api.main import app as _app
    from api.dependencies import limiter
    limiter.enabled = False
    yield _app
    limiter.enabled = True


@pytest.fixture
def client(app):
    """Function-scoped sync TestClient with a fresh store."""
    from starlette.testclient import TestClient
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture
def seeded_client(client):
    """TestClient whose store holds three workplaces and some shifts.

    Workplaces: 1 "Alpha" (active), 2 "Beta" (suspended), 3 "Gamma" (active).
    Shifts: two at Alpha, one at Beta, one at Gamma.
    """
    for name, status in (("Alpha", 0), ("Beta", 1), ("Gamma", 0)):
        res = client.post('/api/workplaces', json={'name': name, 'status': status})
        assert res.status_code == 201
    for wp_id in (1, 1, 2, 3):
        res = client.post('/api/shifts', json={'workplaceId': wp_id})
        assert res.status_code == 201
    return client
