"""
Datenbank-Interfaces (Protocols) für die Persistenzschicht.

Zweck:
    Entkoppelt den Key-Value-Store (`storage.py`) von der konkreten Datenbank
    (hier: SQLite). Der Store typisiert nur gegen diese kleinen Interfaces.

Inhalt:
    - CursorProtocol: minimales Cursor-Verhalten (fetchone/fetchall)
    - DatabaseProtocol: minimale DB-API (execute/executescript + Transaktionen)

Hinweise:
    Die konkrete Implementierung liegt in `db.py` (SQLiteDatabase).
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence


class CursorProtocol(Protocol):
    """
    Cursor-Interface, das vom Key-Value-Store benötigt wird.

    Hinweise:
        Ein echtes `sqlite3.Cursor` bietet deutlich mehr; für SELECT auf `kv_store`
        genügen `fetchone` und `fetchall`.
    """

    def fetchone(self) -> Any: ...
    def fetchall(self) -> list[Any]: ...


class DatabaseProtocol(Protocol):
    """
    Minimales Datenbank-Interface.

    Zweck:
        Vereinheitlicht den Zugriff (execute/commit/rollback/close), ohne den Store
        an `sqlite3` zu koppeln. In Tests kann so auch eine Attrappe eingesetzt werden.
    """

    def execute(self, sql: str, params: Sequence[Any] = ()) -> CursorProtocol: ...
    def executescript(self, sql_script: str) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...
    def close(self) -> None: ...
