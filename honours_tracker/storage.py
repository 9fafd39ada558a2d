"""
Persistenz-Adapter (Key-Value-Store).

Zweck:
    Schmale Lese-/Schreibschnittstelle über einen dauerhaften lokalen Speicher.
    Werte werden als JSON unter `<APP_KEY>_<key>` in der Tabelle `kv_store` abgelegt.

Fehlerverhalten:
    - `load()` wirft nie: bei fehlendem Schlüssel, SQL-Fehler oder defektem JSON
      wird der übergebene Default zurückgegeben.
    - `save()` wirft nie: Schreibfehler werden geloggt und nicht wiederholt.
      Aufrufer dürfen sich nicht darauf verlassen, dass der Wert dauerhaft gespeichert wurde.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Protocol, TypeVar

from honours_tracker import config
from honours_tracker.db_protocol import DatabaseProtocol

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageProtocol(Protocol):
    """Interface, gegen das Repositories und Identity-Service typisieren."""

    def load(self, key: str, default: T) -> Any: ...
    def save(self, key: str, value: Any) -> bool: ...


class KeyValueStorage:
    """
    Key-Value-Store auf Basis von `DatabaseProtocol`.

    Attribute:
        db (DatabaseProtocol): Datenbank-Adapter mit angelegter `kv_store`-Tabelle.
        prefix (str): Namensraum der Anwendung (Default `config.APP_KEY`).
    """

    def __init__(self, db: DatabaseProtocol, prefix: str = config.APP_KEY) -> None:
        self.db = db
        self.prefix = prefix

    def _full_key(self, key: str) -> str:
        return f"{self.prefix}{config.KEY_SEPARATOR}{key}"

    def load(self, key: str, default: T) -> Any:
        """
        Liest einen Wert.

        Parameter:
            key (str): Schlüssel ohne Präfix (z. B. "semesters").
            default: Rückgabewert bei fehlendem/defektem Eintrag.

        Rückgabe:
            Any: Dekodierter JSON-Wert oder `default`.

        Hinweise:
            Ein gespeichertes JSON-`null` (z. B. nach Logout) liefert ebenfalls `default`.
        """

        try:
            row = self.db.execute(
                "SELECT value FROM kv_store WHERE key=?",
                (self._full_key(key),),
            ).fetchone()
        except sqlite3.Error:
            logger.exception("Error loading %r from storage", key)
            return default

        if not row:
            return default

        try:
            value = json.loads(row["value"])
        except (TypeError, ValueError):
            logger.error("Malformed JSON stored under %r, using default", key)
            return default
        return value if value is not None else default

    def save(self, key: str, value: Any) -> bool:
        """
        Schreibt einen Wert (Upsert).

        Rückgabe:
            bool: True bei Erfolg, False wenn der Schreibvorgang fehlgeschlagen ist.
        """

        try:
            payload = json.dumps(value, ensure_ascii=False)
            self.db.execute(
                """
                INSERT INTO kv_store(key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value=excluded.value,
                    updated_at=excluded.updated_at
                """,
                (
                    self._full_key(key),
                    payload,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            self.db.commit()
        except (sqlite3.Error, TypeError, ValueError):
            logger.exception("Error saving %r to storage", key)
            try:
                self.db.rollback()
            except sqlite3.Error:
                logger.debug("Rollback after failed save of %r failed as well", key)
            return False
        return True

    def keys(self) -> list[str]:
        """Listet alle Schlüssel dieses Namensraums (ohne Präfix)."""

        full_prefix = self._full_key("")
        try:
            rows = self.db.execute(
                "SELECT key FROM kv_store WHERE substr(key, 1, ?)=? ORDER BY key ASC",
                (len(full_prefix), full_prefix),
            ).fetchall()
        except sqlite3.Error:
            logger.exception("Error listing storage keys")
            return []
        return [str(r["key"])[len(full_prefix):] for r in rows]
