"""
Backup-Dateien (Export / Import).

Zweck:
    Baut das Export-Dokument des aktuellen Nutzers, serialisiert es als eingerücktes
    JSON und prüft Import-Dateien, *bevor* irgendetwas zusammengeführt wird.

Format:
    {
      "metadata": {"version", "exportedAt", "user", "program", "subject"},
      "data": {"semesters": [...], "courses": [...], "sessions": [...]}
    }
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, Optional

from honours_tracker.config import BACKUP_FILENAME_PREFIX, EXPORT_VERSION
from honours_tracker.models import ClassSession, Course, Semester, User

logger = logging.getLogger(__name__)


class BackupError(Exception):
    """Basisklasse für ungültige Backup-Dateien (Meldung ist für Nutzer:innen gedacht)."""


class ImportParseError(BackupError):
    """Die Datei ist kein lesbares JSON."""


class ImportFormatError(BackupError):
    """Das JSON enthält keinen gültigen `data`-Block."""


def build_export_document(
    user: Optional[User],
    semesters: Iterable[Semester],
    courses: Iterable[Course],
    sessions: Iterable[ClassSession],
    *,
    exported_at: datetime,
) -> dict[str, Any]:
    """
    Erstellt das Export-Dokument.

    Zweck:
        Exportiert werden nur Kurse der übergebenen Semester und nur Sitzungen dieser
        Kurse; verwaiste Zeilen gehören nicht ins Backup.

    Parameter:
        user (User | None): Aktuelles Profil (Metadaten; bei None leer).
        semesters, courses, sessions: Gescopte Sammlungen.
        exported_at (datetime): Zeitpunkt des Exports.

    Rückgabe:
        dict: JSON-kompatibles Dokument.
    """

    semesters = list(semesters)
    semester_ids = {s.id for s in semesters}
    own_courses = [c for c in courses if c.semester_id in semester_ids]
    course_ids = {c.id for c in own_courses}
    own_sessions = [s for s in sessions if s.course_id in course_ids]

    return {
        "metadata": {
            "version": EXPORT_VERSION,
            "exportedAt": exported_at.isoformat(),
            "user": user.name if user else None,
            "program": user.program.value if user else None,
            "subject": user.subject.value if user else None,
        },
        "data": {
            "semesters": [s.to_dict() for s in semesters],
            "courses": [c.to_dict() for c in own_courses],
            "sessions": [s.to_dict() for s in own_sessions],
        },
    }


def dumps_document(document: dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def backup_filename(day: date) -> str:
    """z. B. `honours-tracker-backup-2024-03-05.json`."""

    return f"{BACKUP_FILENAME_PREFIX}-{day.isoformat()}.json"


def write_backup(document: dict[str, Any], path: str | Path) -> Path:
    """Schreibt das Dokument als UTF-8-JSON und liefert den Zielpfad."""

    target = Path(path)
    target.write_text(dumps_document(document), encoding="utf-8")
    logger.info("Backup written to %s", target)
    return target


def validate_import_document(document: Any) -> dict[str, Any]:
    """
    Prüft ein bereits geparstes Import-Dokument.

    Rückgabe:
        dict: Der `data`-Block.

    Ausnahmen:
        ImportFormatError: Wenn `data` fehlt oder `data.semesters` keine Liste ist.
    """

    data = document.get("data") if isinstance(document, dict) else None
    if not isinstance(data, dict) or not isinstance(data.get("semesters"), list):
        raise ImportFormatError("Invalid file format! Please upload a valid backup file.")
    return data


def parse_import_document(text: str) -> dict[str, Any]:
    """
    Parst und prüft den Inhalt einer Backup-Datei.

    Ausnahmen:
        ImportParseError: Kein gültiges JSON.
        ImportFormatError: Kein gültiger `data`-Block.
    """

    try:
        document = json.loads(text)
    except ValueError as exc:
        logger.warning("Backup is not valid JSON: %s", exc)
        raise ImportParseError("Could not read file. It might be corrupted.") from exc
    return validate_import_document(document)


def read_backup(path: str | Path) -> dict[str, Any]:
    """
    Liest eine Backup-Datei und liefert den geprüften `data`-Block.

    Ausnahmen:
        ImportParseError: Datei nicht lesbar oder kein JSON.
        ImportFormatError: Kein gültiger `data`-Block.
    """

    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ImportParseError("Could not read file. It might be corrupted.") from exc
    return parse_import_document(text)
