from __future__ import annotations

import logging
import os
import sqlite3
import threading
from pathlib import Path
from typing import Any, Sequence

from leadscout.errors import InvalidFormatError, StoreError

logger = logging.getLogger("leadscout.store")

DEFAULT_SNAPSHOT_PATH = "state/leadscout.sqlite"

SCHEMA = """
CREATE TABLE IF NOT EXISTS leads (
  id TEXT PRIMARY KEY,
  name TEXT,
  address TEXT,
  rating REAL,
  latitude REAL,
  longitude REAL,
  industry TEXT,
  marketGaps TEXT,
  pitchAngle TEXT,
  website TEXT,
  hasChatbot INTEGER,
  hasOnlineBooking INTEGER,
  sentiment TEXT,
  isSaved INTEGER DEFAULT 0,
  notes TEXT,
  proposal TEXT,
  createdAt TEXT
);
"""

# Added on load when an imported image lacks them, so every query sees the full schema.
MIGRATED_COLUMNS = {
    "name": "TEXT",
    "address": "TEXT",
    "rating": "REAL",
    "latitude": "REAL",
    "longitude": "REAL",
    "industry": "TEXT",
    "marketGaps": "TEXT",
    "pitchAngle": "TEXT",
    "website": "TEXT",
    "hasChatbot": "INTEGER",
    "hasOnlineBooking": "INTEGER",
    "sentiment": "TEXT",
    "isSaved": "INTEGER DEFAULT 0",
    "notes": "TEXT",
    "proposal": "TEXT",
    "createdAt": "TEXT",
}

_WAL_HEADER = b"\x02\x02"
_LEGACY_HEADER = b"\x01\x01"


class LeadStore:
    """Single-writer SQLite store whose whole state lives in one snapshot file.

    The engine runs in memory. Every mutation made through the repository is
    followed by ``persist()``, which rewrites the snapshot file, so the file
    never lags memory by more than one operation.
    """

    def __init__(self, snapshot_path: str | Path = DEFAULT_SNAPSHOT_PATH) -> None:
        self.snapshot_path = Path(snapshot_path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    def initialize(self) -> None:
        with self._lock:
            if self._conn is not None:
                logger.debug("lead database already initialized, keeping the open one")
                return
            if self.snapshot_path.exists():
                self._conn = _open_snapshot(self._read_slot())
                logger.info("loaded snapshot from %s", self.snapshot_path)
            else:
                self._conn = _open_empty()
                logger.info("created empty lead database (no snapshot at %s)", self.snapshot_path)

    def reset(self) -> None:
        with self._lock:
            previous = self._conn
            self._conn = _open_empty()
            if previous is not None:
                previous.close()
            self.persist()

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def export_snapshot(self) -> bytes:
        with self._lock:
            try:
                return bytes(self._connection().serialize())
            except sqlite3.Error as exc:
                raise StoreError(f"Could not serialize database: {exc}") from exc

    def import_snapshot(self, blob: bytes) -> None:
        """Replace the whole database with ``blob`` and persist it.

        The blob is parsed into a new connection first; when it is rejected the
        current database and the snapshot file are left exactly as they were.
        """
        conn = _open_snapshot(blob)
        with self._lock:
            previous = self._conn
            self._conn = conn
            try:
                self.persist()
            finally:
                if previous is not None:
                    previous.close()
        logger.info("imported snapshot (%d bytes)", len(blob))

    def persist(self) -> None:
        with self._lock:
            self._write_slot(self.export_snapshot())

    def write_snapshot_file(self, path: str | Path) -> Path:
        target = Path(path)
        _atomic_write(target, self.export_snapshot())
        return target

    def import_snapshot_file(self, path: str | Path) -> None:
        source = Path(path)
        if not source.exists():
            raise FileNotFoundError(f"Snapshot file not found: {path}")
        self.import_snapshot(source.read_bytes())

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        with self._lock:
            conn = self._connection()
            cursor = conn.execute(sql, params)
            conn.commit()
            return cursor.rowcount

    def query(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self._connection().execute(sql, params).fetchall()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("LeadStore.initialize() must be called first")
        return self._conn

    def _read_slot(self) -> bytes:
        try:
            return self.snapshot_path.read_bytes()
        except OSError as exc:
            raise StoreError(f"Could not read snapshot {self.snapshot_path}: {exc}") from exc

    def _write_slot(self, blob: bytes) -> None:
        try:
            _atomic_write(self.snapshot_path, blob)
        except OSError as exc:
            raise StoreError(f"Could not write snapshot {self.snapshot_path}: {exc}") from exc
        logger.debug("persisted %d bytes to %s", len(blob), self.snapshot_path)


def _new_connection() -> sqlite3.Connection:
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def _open_empty() -> sqlite3.Connection:
    conn = _new_connection()
    conn.executescript(SCHEMA)
    conn.commit()
    return conn


def _open_snapshot(blob: bytes) -> sqlite3.Connection:
    data = bytes(blob)
    # deserialize() cannot open WAL-mode images; rewrite the header to rollback mode.
    if len(data) >= 20 and data[18:20] == _WAL_HEADER:
        data = data[:18] + _LEGACY_HEADER + data[20:]

    conn = _new_connection()
    try:
        conn.deserialize(data)
        columns = {row["name"] for row in conn.execute("PRAGMA table_info(leads)")}
        if "id" not in columns:
            raise InvalidFormatError("Database image has no leads table")
        if not _id_is_unique(conn):
            raise InvalidFormatError("leads.id is neither the primary key nor uniquely indexed")
        for column, decl in MIGRATED_COLUMNS.items():
            if column not in columns:
                conn.execute(f"ALTER TABLE leads ADD COLUMN {column} {decl}")
        conn.commit()
    except (sqlite3.Error, OverflowError) as exc:
        conn.close()
        raise InvalidFormatError(f"Not a valid database image: {exc}") from exc
    except InvalidFormatError:
        conn.close()
        raise
    return conn


def _id_is_unique(conn: sqlite3.Connection) -> bool:
    primary_key = [row["name"] for row in conn.execute("PRAGMA table_info(leads)") if row["pk"]]
    if primary_key == ["id"]:
        return True
    for index in conn.execute("PRAGMA index_list(leads)").fetchall():
        if not index["unique"] or index["partial"]:
            continue
        quoted = index["name"].replace('"', '""')
        columns = [row["name"] for row in conn.execute(f'PRAGMA index_info("{quoted}")')]
        if columns == ["id"]:
            return True
    return False


def _atomic_write(path: Path, blob: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        tmp_path.write_bytes(blob)
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
