from __future__ import annotations

# -----------------------------------------------------------------------------
# Infrastructure: SQLite DB
# -----------------------------------------------------------------------------
# Enthält:
# - SQLiteDatabase: hält die Verbindung, die der Key-Value-Store benutzt
# - connect(): öffnet DB (Default-Pfad: ~/.honours_tracker/tracker.db)
# - create_schema(): legt die Tabelle `kv_store` an (optional reset_db für Demo/Test)
#
# Die Anwendung speichert keine relationalen Tabellen, sondern vier JSON-Werte
# (user, semesters, courses, sessions) unter namensraum-präfixierten Schlüsseln.
# -----------------------------------------------------------------------------


"""SQLite-Infrastruktur.

Zweck:
    Stellt die konkrete SQLite-Implementierung bereit, auf der der Key-Value-Store
    (`storage.py`) aufsetzt.

Inhalt:
    - SQLiteDatabase: Verbindung zur Tracker-Datei (erfüllt `DatabaseProtocol`)
    - connect(): Öffnet die Datenbank
    - create_schema(): Legt die Tabelle `kv_store` an
"""

import logging
import os
import sqlite3
from pathlib import Path
from typing import Any, Optional, Sequence

from honours_tracker.config import default_db_path
from honours_tracker.db_protocol import DatabaseProtocol

__all__ = ["SQLiteDatabase", "connect", "create_schema"]

logger = logging.getLogger(__name__)


class SQLiteDatabase:
    """
    Verbindung zur Tracker-Datei.

    Zweck:
        Kapselt eine `sqlite3.Connection` und bietet nur die Methoden an, die der
        Key-Value-Store benötigt.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    # --- DatabaseProtocol ---
    def execute(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Ein Statement mit `?`-Platzhaltern; liefert den `sqlite3.Cursor`."""

        return self._conn.execute(sql, params)

    def executescript(self, sql_script: str) -> None:
        # sqlite3 liefert hier einen Cursor zurück; er wird nicht genutzt.
        self._conn.executescript(sql_script)

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        """
        Gibt die Datei frei.

        Hinweise:
            Das kontrollierte Schließen übernimmt `TrackerService.close`.
        """

        self._conn.close()

    # Komfortzugriff für Debugging (wird vom Store nicht benötigt).
    @property
    def conn(self) -> sqlite3.Connection:
        return self._conn


def connect(db_path: Optional[str | os.PathLike[str]] = None) -> SQLiteDatabase:
    """
    Öffnet die Tracker-Datei.

    Zweck:
        Erstellt eine Verbindung zur Datenbankdatei und setzt `row_factory` auf
        `sqlite3.Row`, damit der Store spaltenbasiert zugreifen kann.

    Parameter:
        db_path (str | PathLike | None): Optionaler Pfad; `":memory:"` für eine flüchtige DB.

    Rückgabe:
        SQLiteDatabase: Verbindung mit `sqlite3.Row` als Zeilentyp.
    """

    if db_path is None:
        path: str | Path = default_db_path()
    elif str(db_path) == ":memory:":
        path = ":memory:"
    else:
        path = Path(db_path)
    logger.debug("Opening SQLite database at %s", path)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return SQLiteDatabase(conn)


def create_schema(db: DatabaseProtocol, reset_db: bool = False) -> None:
    """
    Legt das Datenbankschema an.

    Zweck:
        Erstellt die Tabelle `kv_store` (Schlüssel → JSON-Text). Optional kann das
        Schema für einen reproduzierbaren Demo-Lauf vorher zurückgesetzt werden.

    Parameter:
        db (DatabaseProtocol): Geöffnete Tracker-Datei.
        reset_db (bool): Wenn True, wird die Tabelle vorher gelöscht.

    Hinweise:
        Für echte Persistenz muss `reset_db=False` bleiben (Standard der CLI).
    """

    if reset_db:
        db.executescript("DROP TABLE IF EXISTS kv_store;")

    db.executescript(
        """
        CREATE TABLE IF NOT EXISTS kv_store(
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        """
    )
    db.commit()
