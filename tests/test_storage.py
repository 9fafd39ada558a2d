"""Tests for the SQLite adapter and the key-value storage."""

from honours_tracker.db import connect, create_schema
from honours_tracker.storage import KeyValueStorage


class TestKeyValueStorage:
    def test_missing_key_returns_default(self, storage):
        assert storage.load("semesters", []) == []
        assert storage.load("user", None) is None

    def test_save_and_load(self, storage):
        rows = [{"id": "1", "name": "1st Semester"}]
        assert storage.save("semesters", rows) is True
        assert storage.load("semesters", []) == rows

    def test_keys_are_prefixed(self, storage, db):
        storage.save("semesters", [])
        stored = [r["key"] for r in db.execute("SELECT key FROM kv_store").fetchall()]
        assert stored == ["bou_tracker_v1_semesters"]

    def test_save_overwrites(self, storage):
        storage.save("courses", [{"id": "a"}])
        storage.save("courses", [{"id": "b"}])
        assert storage.load("courses", []) == [{"id": "b"}]

    def test_unicode_is_kept(self, storage):
        storage.save("user", {"name": "রহিম"})
        assert storage.load("user", None) == {"name": "রহিম"}

    def test_malformed_json_returns_default(self, storage, db):
        db.execute(
            "INSERT INTO kv_store(key, value, updated_at) VALUES (?, ?, ?)",
            ("bou_tracker_v1_sessions", "{not json", "2024-01-01"),
        )
        db.commit()
        assert storage.load("sessions", []) == []

    def test_stored_null_returns_default(self, storage):
        storage.save("user", None)
        assert storage.load("user", "fallback") == "fallback"

    def test_unserializable_value_is_not_saved(self, storage):
        storage.save("semesters", [{"id": "1"}])
        assert storage.save("semesters", [object()]) is False
        assert storage.load("semesters", []) == [{"id": "1"}]

    def test_read_failure_returns_default(self):
        database = connect(":memory:")
        # no schema: every SELECT fails
        assert KeyValueStorage(database).load("semesters", ["x"]) == ["x"]
        database.close()

    def test_keys_only_lists_own_namespace(self, db, storage):
        other = KeyValueStorage(db, prefix="other_app")
        storage.save("semesters", [])
        storage.save("courses", [])
        other.save("semesters", [])
        assert storage.keys() == ["courses", "semesters"]
        assert other.keys() == ["semesters"]


class TestSchema:
    def test_create_schema_is_idempotent(self, db, storage):
        storage.save("user", {"id": "x"})
        create_schema(db)
        assert storage.load("user", None) == {"id": "x"}

    def test_reset_db_clears_store(self, db, storage):
        storage.save("user", {"id": "x"})
        create_schema(db, reset_db=True)
        assert storage.load("user", None) is None
