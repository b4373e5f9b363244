"""Unit tests for models.py — the SQLite offline cache.

Covers: schema creation and migration, whole-record upserts, queries,
metadata, the weather cache TTL, and degradation when the engine fails.
"""

import sqlite3

import pytest

from hotspots import Category, Provenance
from models import LAST_SYNC_KEY, SCHEMA_VERSION, LocalCacheStore
from presets import PRESET_HOTSPOTS


# =========================================================================
# Schema
# =========================================================================

class TestInitDb:
    def test_idempotent(self, cache_store):
        assert cache_store.init_db()
        assert cache_store.init_db()
        assert cache_store.schema_version() == SCHEMA_VERSION

    def test_migrates_v1_file(self, tmp_path):
        path = str(tmp_path / "old.db")
        conn = sqlite3.connect(path)
        conn.execute("""
            CREATE TABLE hotspots (
                id TEXT PRIMARY KEY, name TEXT NOT NULL, description TEXT,
                latitude REAL NOT NULL, longitude REAL NOT NULL,
                category TEXT NOT NULL, peak_hours TEXT NOT NULL DEFAULT '[]',
                is_safe_zone INTEGER NOT NULL DEFAULT 1,
                verified INTEGER NOT NULL DEFAULT 0,
                is_preset INTEGER NOT NULL DEFAULT 0,
                upvotes INTEGER NOT NULL DEFAULT 0,
                tips TEXT, area TEXT, synced_at INTEGER NOT NULL
            )
        """)
        conn.execute(
            "INSERT INTO hotspots (id, name, latitude, longitude, category, is_preset, synced_at) "
            "VALUES ('campus-itb', 'ITB', -6.89, 107.61, 'campus', 1, 1)"
        )
        conn.execute(
            "INSERT INTO hotspots (id, name, latitude, longitude, category, is_preset, synced_at) "
            "VALUES ('u-1', 'Community', -6.90, 107.60, 'mall', 0, 1)"
        )
        conn.commit()
        conn.close()

        store = LocalCacheStore(db_path=path)
        assert store.init_db()
        by_id = {r.poi.id: r.poi for r in store.get_all()}
        assert by_id["campus-itb"].provenance is Provenance.PRESET
        assert by_id["u-1"].provenance is Provenance.REMOTE
        assert store.schema_version() == SCHEMA_VERSION


# =========================================================================
# Hotspot records
# =========================================================================

class TestUpsertAll:
    def test_round_trip_preserves_fields(self, cache_store):
        itb = PRESET_HOTSPOTS[0]
        assert cache_store.upsert_all([itb])

        [record] = cache_store.get_all()
        assert record.poi == itb
        assert record.synced_at == cache_store.now["ms"]

    def test_idempotent(self, cache_store, make_poi):
        records = [make_poi(id=f"p{i}") for i in range(5)]
        cache_store.upsert_all(records)
        cache_store.upsert_all(records)

        ids = [r.poi.id for r in cache_store.get_all()]
        assert sorted(ids) == sorted(r.id for r in records)
        assert cache_store.count() == 5

    def test_whole_record_replace(self, cache_store, make_poi):
        cache_store.upsert_all([make_poi(id="p1", name="Old", upvotes=1)])
        cache_store.now["ms"] += 1000
        cache_store.upsert_all([make_poi(id="p1", name="New", upvotes=9)])

        [record] = cache_store.get_all()
        assert record.poi.name == "New"
        assert record.poi.upvotes == 9
        assert record.synced_at == cache_store.now["ms"]

    def test_empty_upsert(self, cache_store):
        assert cache_store.upsert_all([])
        assert cache_store.count() == 0

    def test_failed_write_leaves_previous_rows(self, cache_store, make_poi):
        cache_store.upsert_all([make_poi(id="keep")])
        # NOT NULL name violation on the second row aborts the whole batch
        bad = make_poi(id="bad", name=None)
        assert cache_store.upsert_all([make_poi(id="new"), bad]) is False

        assert [r.poi.id for r in cache_store.get_all()] == ["keep"]


class TestQueries:
    def test_by_category(self, cache_store, make_poi):
        cache_store.upsert_all([
            make_poi(id="m1", category=Category.MALL),
            make_poi(id="s1", category=Category.STATION),
            make_poi(id="m2", category=Category.MALL),
        ])
        assert [r.poi.id for r in cache_store.get_by_category("mall")] == ["m1", "m2"]

    def test_by_category_unknown_raises(self, cache_store):
        with pytest.raises(ValueError):
            cache_store.get_by_category("casino")

    def test_by_area(self, cache_store, make_poi):
        cache_store.upsert_all([
            make_poi(id="a", area="dago"),
            make_poi(id="b", area="buah_batu"),
        ])
        assert [r.poi.id for r in cache_store.get_by_area("dago")] == ["a"]

    def test_has_offline_data_and_clear(self, cache_store, make_poi):
        assert not cache_store.has_offline_data()
        cache_store.upsert_all([make_poi()])
        assert cache_store.has_offline_data()
        assert cache_store.clear()
        assert not cache_store.has_offline_data()

    def test_unreadable_row_is_skipped(self, cache_store, make_poi):
        cache_store.upsert_all([make_poi(id="ok"), make_poi(id="broken")])
        conn = sqlite3.connect(cache_store.db_path)
        conn.execute("UPDATE hotspots SET category = 'casino' WHERE id = 'broken'")
        conn.commit()
        conn.close()

        assert [r.poi.id for r in cache_store.get_all()] == ["ok"]

    def test_row_with_malformed_peak_window_is_skipped(self, cache_store, make_poi):
        cache_store.upsert_all([make_poi(id="ok"), make_poi(id="broken")])
        conn = sqlite3.connect(cache_store.db_path)
        conn.execute("UPDATE hotspots SET peak_hours = ? WHERE id = ?", ('["7am-9am"]', "broken"))
        conn.commit()
        conn.close()

        assert [r.poi.id for r in cache_store.get_all()] == ["ok"]


# =========================================================================
# Metadata
# =========================================================================

class TestMetadata:
    def test_missing_key(self, cache_store):
        assert cache_store.get_metadata("nope") is None

    def test_set_get_delete(self, cache_store):
        assert cache_store.set_metadata("flag", {"a": 1})
        assert cache_store.get_metadata("flag") == {"a": 1}
        assert cache_store.delete_metadata("flag")
        assert cache_store.get_metadata("flag") is None

    def test_last_sync_defaults_to_clock(self, cache_store):
        assert cache_store.get_last_sync() is None
        cache_store.set_last_sync()
        assert cache_store.get_last_sync() == cache_store.now["ms"]

    def test_last_sync_explicit(self, cache_store):
        cache_store.set_last_sync(123)
        assert cache_store.get_last_sync() == 123

    def test_non_numeric_last_sync_ignored(self, cache_store):
        cache_store.set_metadata(LAST_SYNC_KEY, "yesterday")
        assert cache_store.get_last_sync() is None


class TestWeatherCache:
    def test_fresh_then_expired(self, cache_store):
        cache_store.set_weather_cache("k", '{"x": 1}')
        assert cache_store.get_weather_cache("k", ttl_seconds=60) == '{"x": 1}'
        cache_store.now["ms"] += 61_000
        assert cache_store.get_weather_cache("k", ttl_seconds=60) is None

    def test_missing(self, cache_store):
        assert cache_store.get_weather_cache("none", ttl_seconds=60) is None


# =========================================================================
# Engine failure
# =========================================================================

class TestStorageFailure:
    @pytest.fixture()
    def broken_store(self, tmp_path):
        # A directory cannot be opened as a database file
        return LocalCacheStore(db_path=str(tmp_path))

    def test_reads_degrade_to_empty(self, broken_store):
        assert broken_store.get_all() == []
        assert broken_store.count() == 0
        assert broken_store.has_offline_data() is False
        assert broken_store.get_last_sync() is None
        assert broken_store.get_weather_cache("k", 60) is None

    def test_writes_report_failure(self, broken_store, make_poi):
        assert broken_store.init_db() is False
        assert broken_store.upsert_all([make_poi()]) is False
        assert broken_store.set_metadata("k", 1) is False
        assert broken_store.clear() is False

    def test_failure_is_logged(self, broken_store, caplog):
        with caplog.at_level("WARNING", logger="models"):
            broken_store.get_all()
        assert "select failed" in caplog.text
