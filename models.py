"""
SQLite persistence for the offline hotspot cache.

No ORM, just raw sqlite3. One file holds three tables:
  - hotspots:      whole-record upserts keyed by hotspot id
  - metadata:      small scalar values (last_sync, session flags)
  - weather_cache: short-lived current-weather payloads

Every storage failure is logged and turned into an empty answer so the
app degrades to "no offline data" instead of crashing.
"""

import json
import logging
import os
import sqlite3
import time
from typing import Any, Callable, Iterable, List, Optional

from errors import StorageError
from hotspots import CacheRecord, Category, PointOfInterest, Provenance

logger = logging.getLogger(__name__)

DB_PATH = os.environ.get("HOTSPOT_DB_PATH", "hotspot_cache.db")

# Bump when the schema changes; init_db() migrates older files forward.
SCHEMA_VERSION = 2

LAST_SYNC_KEY = "last_sync"

_HOTSPOT_COLUMNS = (
    "id", "name", "description", "latitude", "longitude", "category",
    "peak_hours", "is_safe_zone", "verified", "is_preset", "upvotes",
    "tips", "area", "provenance", "synced_at",
)


def _now_ms() -> int:
    return int(time.time() * 1000)


class LocalCacheStore:
    """Durable local copy of hotspot records plus a metadata table.

    ``clock`` returns epoch milliseconds and is injectable for tests.
    """

    def __init__(self, db_path: Optional[str] = None, clock: Optional[Callable[[], int]] = None):
        self.db_path = db_path or DB_PATH
        self._clock = clock or _now_ms

    def _get_db(self):
        """Get a sqlite3 connection with WAL mode for concurrent reads."""
        conn = sqlite3.connect(self.db_path, timeout=10)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def init_db(self) -> bool:
        """Create tables if they don't exist. Safe to call on every startup."""
        try:
            conn = self._get_db()
            try:
                conn.executescript("""
                    CREATE TABLE IF NOT EXISTS hotspots (
                        id            TEXT PRIMARY KEY,
                        name          TEXT NOT NULL,
                        description   TEXT,
                        latitude      REAL NOT NULL,
                        longitude     REAL NOT NULL,
                        category      TEXT NOT NULL,
                        peak_hours    TEXT NOT NULL DEFAULT '[]',
                        is_safe_zone  INTEGER NOT NULL DEFAULT 1,
                        verified      INTEGER NOT NULL DEFAULT 0,
                        is_preset     INTEGER NOT NULL DEFAULT 0,
                        upvotes       INTEGER NOT NULL DEFAULT 0,
                        tips          TEXT,
                        area          TEXT,
                        provenance    TEXT NOT NULL DEFAULT 'remote',
                        synced_at     INTEGER NOT NULL
                    );
                    CREATE INDEX IF NOT EXISTS idx_hotspots_category ON hotspots(category);
                    CREATE INDEX IF NOT EXISTS idx_hotspots_area ON hotspots(area);
                    CREATE INDEX IF NOT EXISTS idx_hotspots_preset ON hotspots(is_preset);
                    CREATE INDEX IF NOT EXISTS idx_hotspots_synced ON hotspots(synced_at);

                    CREATE TABLE IF NOT EXISTS metadata (
                        key         TEXT PRIMARY KEY,
                        value       TEXT NOT NULL,
                        updated_at  INTEGER NOT NULL
                    );

                    CREATE TABLE IF NOT EXISTS weather_cache (
                        cache_key   TEXT PRIMARY KEY,
                        payload     TEXT NOT NULL,
                        created_at  INTEGER NOT NULL
                    );
                """)
                # Migrate v1 files, which predate the provenance column.
                cols = {row["name"] for row in conn.execute("PRAGMA table_info(hotspots)").fetchall()}
                if "provenance" not in cols:
                    conn.execute(
                        "ALTER TABLE hotspots ADD COLUMN provenance TEXT NOT NULL DEFAULT 'remote'"
                    )
                    conn.execute("UPDATE hotspots SET provenance = 'preset' WHERE is_preset = 1")
                conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
                conn.commit()
            finally:
                conn.close()
            return True
        except (sqlite3.Error, OSError) as e:
            self._log_failure("init_db", e)
            return False

    def schema_version(self) -> int:
        try:
            conn = self._get_db()
            try:
                return conn.execute("PRAGMA user_version").fetchone()[0]
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            self._log_failure("schema_version", e)
            return 0

    # ------------------------------------------------------------------
    # Hotspot records
    # ------------------------------------------------------------------

    def upsert_all(self, records: Iterable[PointOfInterest]) -> bool:
        """Whole-record upsert of every hotspot in one transaction.

        Stamps synced_at = now on every row. Returns False (and writes
        nothing) if the engine fails part-way.
        """
        now = self._clock()
        rows = [self._to_row(poi, now) for poi in records]
        placeholders = ", ".join("?" for _ in _HOTSPOT_COLUMNS)
        sql = (
            f"INSERT OR REPLACE INTO hotspots ({', '.join(_HOTSPOT_COLUMNS)}) "
            f"VALUES ({placeholders})"
        )
        try:
            conn = self._get_db()
            try:
                with conn:
                    conn.executemany(sql, rows)
            finally:
                conn.close()
            logger.info("[cache] upserted %d hotspot records", len(rows))
            return True
        except (sqlite3.Error, OSError) as e:
            self._log_failure("upsert_all", e)
            return False

    def get_all(self) -> List[CacheRecord]:
        return self._select("SELECT * FROM hotspots ORDER BY rowid", ())

    def get_by_category(self, category) -> List[CacheRecord]:
        cat = Category.parse(category)
        return self._select(
            "SELECT * FROM hotspots WHERE category = ? ORDER BY rowid", (cat.value,)
        )

    def get_by_area(self, area: str) -> List[CacheRecord]:
        return self._select(
            "SELECT * FROM hotspots WHERE area = ? ORDER BY rowid", (area,)
        )

    def count(self) -> int:
        try:
            conn = self._get_db()
            try:
                return conn.execute("SELECT COUNT(*) FROM hotspots").fetchone()[0]
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            self._log_failure("count", e)
            return 0

    def has_offline_data(self) -> bool:
        return self.count() > 0

    def clear(self) -> bool:
        """Remove every cached hotspot (metadata is kept)."""
        try:
            conn = self._get_db()
            try:
                with conn:
                    conn.execute("DELETE FROM hotspots")
            finally:
                conn.close()
            return True
        except (sqlite3.Error, OSError) as e:
            self._log_failure("clear", e)
            return False

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def get_metadata(self, key: str) -> Optional[Any]:
        """Return the stored value for key, or None if absent/unreadable."""
        try:
            conn = self._get_db()
            try:
                row = conn.execute(
                    "SELECT value FROM metadata WHERE key = ?", (key,)
                ).fetchone()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            self._log_failure("get_metadata", e)
            return None
        if not row:
            return None
        try:
            return json.loads(row["value"])
        except (json.JSONDecodeError, TypeError):
            logger.warning("Corrupted metadata value for key %s", key)
            return None

    def set_metadata(self, key: str, value: Any) -> bool:
        try:
            conn = self._get_db()
            try:
                with conn:
                    conn.execute(
                        """INSERT OR REPLACE INTO metadata (key, value, updated_at)
                           VALUES (?, ?, ?)""",
                        (key, json.dumps(value), self._clock()),
                    )
            finally:
                conn.close()
            return True
        except (sqlite3.Error, OSError, TypeError) as e:
            self._log_failure("set_metadata", e)
            return False

    def delete_metadata(self, key: str) -> bool:
        try:
            conn = self._get_db()
            try:
                with conn:
                    conn.execute("DELETE FROM metadata WHERE key = ?", (key,))
            finally:
                conn.close()
            return True
        except (sqlite3.Error, OSError) as e:
            self._log_failure("delete_metadata", e)
            return False

    def get_last_sync(self) -> Optional[int]:
        """Epoch ms of the last successful merge-and-persist, or None."""
        value = self.get_metadata(LAST_SYNC_KEY)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return int(value)
        return None

    def set_last_sync(self, when_ms: Optional[int] = None) -> bool:
        return self.set_metadata(LAST_SYNC_KEY, when_ms if when_ms is not None else self._clock())

    # ------------------------------------------------------------------
    # Weather cache
    # ------------------------------------------------------------------

    def get_weather_cache(self, cache_key: str, ttl_seconds: int) -> Optional[str]:
        """Cached weather payload if younger than ttl_seconds, else None."""
        try:
            conn = self._get_db()
            try:
                row = conn.execute(
                    "SELECT payload, created_at FROM weather_cache WHERE cache_key = ?",
                    (cache_key,),
                ).fetchone()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            self._log_failure("get_weather_cache", e)
            return None
        if not row:
            return None
        if self._clock() - row["created_at"] > ttl_seconds * 1000:
            return None  # Expired
        return row["payload"]

    def set_weather_cache(self, cache_key: str, payload: str) -> bool:
        try:
            conn = self._get_db()
            try:
                with conn:
                    conn.execute(
                        """INSERT OR REPLACE INTO weather_cache (cache_key, payload, created_at)
                           VALUES (?, ?, ?)""",
                        (cache_key, payload, self._clock()),
                    )
            finally:
                conn.close()
            return True
        except (sqlite3.Error, OSError) as e:
            self._log_failure("set_weather_cache", e)
            return False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _select(self, sql: str, params: tuple) -> List[CacheRecord]:
        try:
            conn = self._get_db()
            try:
                rows = conn.execute(sql, params).fetchall()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            self._log_failure("select", e)
            return []

        records = []
        for row in rows:
            try:
                records.append(self._from_row(row))
            except (ValueError, TypeError, KeyError):
                logger.warning("Skipping unreadable cached hotspot %s", row["id"], exc_info=True)
        return records

    @staticmethod
    def _to_row(poi: PointOfInterest, synced_at: int) -> tuple:
        return (
            poi.id,
            poi.name,
            poi.description,
            poi.latitude,
            poi.longitude,
            poi.category.value,
            json.dumps(list(poi.peak_hours)),
            1 if poi.is_safe_zone else 0,
            1 if poi.verified else 0,
            1 if poi.is_preset else 0,
            poi.upvotes,
            poi.tips,
            poi.area,
            poi.provenance.value,
            synced_at,
        )

    @staticmethod
    def _from_row(row: sqlite3.Row) -> CacheRecord:
        data = dict(row)
        data["peak_hours"] = json.loads(data.get("peak_hours") or "[]")
        data["is_safe_zone"] = bool(data["is_safe_zone"])
        data["verified"] = bool(data["verified"])
        data["is_preset"] = bool(data["is_preset"])
        provenance = Provenance(data.get("provenance") or Provenance.REMOTE.value)
        return CacheRecord(
            poi=PointOfInterest.from_record(data, provenance),
            synced_at=int(data["synced_at"]),
        )

    def _log_failure(self, operation: str, exc: Exception) -> None:
        err = StorageError(f"{operation} failed on {self.db_path}: {exc}")
        logger.warning("[cache] %s", err, exc_info=True)
