"""
JSON-file persistence for shifts and workplaces.

All records live in one document, ``shifts_db.json``, inside ``db_path``:

    {"shifts": [...], "workplaces": [...]}

Write safety:
  • Exclusive fcntl.flock() on a sidecar ``.lock`` file around every
    read-modify-write, so conditional updates are atomic across threads
    and processes.
  • The document is replaced atomically (write-to-temp + os.replace), so
    readers never observe a half-written file.
"""
import fcntl
import json
import os
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .errors import PreconditionFailed
from .pagination import DEFAULT_SHARD_SIZE, PageRequest, paginate, shard_slice
from .types import ShiftList, ShiftRecord, WorkplaceList, WorkplaceRecord

_DB_FILE = 'shifts_db.json'
_LOCK_FILE = 'shifts_db.lock'

_SHIFT_FIELDS = ('workplaceId', 'workerId', 'startAt', 'endAt', 'cancelledAt')


def _utcnow_iso() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f"{now.microsecond // 1000:03d}Z"


def _empty_document() -> Dict[str, list]:
    return {'shifts': [], 'workplaces': []}


class ShiftDatabase:
    def __init__(self, db_path: str, shard_size: int = DEFAULT_SHARD_SIZE):
        if shard_size < 1:
            raise ValueError(f"shard_size must be >= 1, got {shard_size}")
        self.db_path = db_path
        self.shard_size = shard_size

    # ── File helpers ───────────────────────────────────────────
    def _document_path(self) -> str:
        return os.path.join(self.db_path, _DB_FILE)

    @contextmanager
    def _locked(self, exclusive: bool = True):
        """Hold a POSIX lock on the sidecar lock file for the block."""
        os.makedirs(self.db_path, exist_ok=True)
        with open(os.path.join(self.db_path, _LOCK_FILE), 'a+') as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
            try:
                yield
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def _load(self) -> Dict[str, list]:
        """Read the document. Must be called while the lock is held."""
        path = self._document_path()
        if not os.path.exists(path):
            return _empty_document()
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        for key in ('shifts', 'workplaces'):
            data.setdefault(key, [])
        return data

    def _save(self, data: Dict[str, list]) -> None:
        """Atomically replace the document. Must be called while the lock is held."""
        with tempfile.NamedTemporaryFile(
            'w', encoding='utf-8', dir=self.db_path, delete=False, suffix='.tmp'
        ) as tmp:
            json.dump(data, tmp, indent=2, ensure_ascii=False)
            tmp_path = tmp.name
        os.replace(tmp_path, self._document_path())

    def _read(self, table: str) -> list:
        with self._locked(exclusive=False):
            return self._load()[table]

    @staticmethod
    def _next_id(rows: list) -> int:
        return max((r['id'] for r in rows), default=0) + 1

    def get_stats(self) -> Dict[str, int]:
        with self._locked(exclusive=False):
            data = self._load()
        return {'shifts': len(data['shifts']), 'workplaces': len(data['workplaces'])}

    # ── Workplaces ─────────────────────────────────────────────
    def create_workplace(self, data: dict) -> WorkplaceRecord:
        with self._locked():
            doc = self._load()
            record = {'id': self._next_id(doc['workplaces'])}
            record['name'] = data['name']
            record['status'] = int(data.get('status', 0))
            doc['workplaces'].append(record)
            self._save(doc)
            return record

    def get_workplace(self, wp_id: int) -> Optional[WorkplaceRecord]:
        for w in self._read('workplaces'):
            if w.get('id') == wp_id:
                return w
        return None

    def get_workplaces(self) -> WorkplaceList:
        rows = self._read('workplaces')
        rows.sort(key=lambda w: w['id'])
        return rows

    def get_workplaces_page(self, request: PageRequest) -> tuple[WorkplaceList, Optional[int]]:
        """Return one page of workplaces, restricted to ``request.shard`` when set."""
        rows = self.get_workplaces()
        if request.shard is not None:
            rows = shard_slice(rows, request.shard, self.shard_size)
        return paginate(rows, request)

    # ── Shifts ─────────────────────────────────────────────────
    def create_shift(self, data: dict) -> ShiftRecord:
        with self._locked():
            doc = self._load()
            record: ShiftRecord = {'id': self._next_id(doc['shifts'])}
            record['createdAt'] = _utcnow_iso()
            for key in _SHIFT_FIELDS:
                record[key] = data.get(key)
            doc['shifts'].append(record)
            self._save(doc)
            return record

    def get_shift(self, shift_id: int) -> Optional[ShiftRecord]:
        for s in self._read('shifts'):
            if s.get('id') == shift_id:
                return s
        return None

    def get_shifts(self) -> ShiftList:
        rows = self._read('shifts')
        rows.sort(key=lambda s: s['id'])
        return rows

    def get_shifts_page(self, request: PageRequest) -> tuple[ShiftList, Optional[int]]:
        return paginate(self.get_shifts(), request)

    def update_shift(
        self,
        shift_id: int,
        changes: Dict[str, Any],
        expect: Optional[Dict[str, Any]] = None,
    ) -> Optional[ShiftRecord]:
        """Conditionally update a shift and return the updated record.

        Every ``field: value`` pair in *expect* must match the stored record,
        checked under the same exclusive lock as the write. Returns None if the
        shift does not exist; raises PreconditionFailed on a mismatch (nothing
        is written in that case).
        """
        unknown = set(changes) - set(_SHIFT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown shift fields: {sorted(unknown)}")
        with self._locked():
            doc = self._load()
            record = next((s for s in doc['shifts'] if s.get('id') == shift_id), None)
            if record is None:
                return None
            for key, expected in (expect or {}).items():
                if record.get(key) != expected:
                    raise PreconditionFailed(shift_id, key, expected, record.get(key))
            record.update(changes)
            self._save(doc)
            return dict(record)
