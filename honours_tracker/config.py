"""
Konfiguration des Honours Class Trackers.

Zweck:
    Bündelt alle Konstanten (Storage-Präfix, Standardwerte, Studienprogramm-Katalog)
    an einer Stelle. Pfade und Logging lassen sich über Umgebungsvariablen überschreiben.
"""

from __future__ import annotations

import os
from pathlib import Path

# =============================================================================
# STORAGE
# =============================================================================

# Alle Schlüssel im Key-Value-Store werden mit diesem Präfix versehen,
# z. B. `bou_tracker_v1_semesters`.
APP_KEY = "bou_tracker_v1"
KEY_SEPARATOR = "_"

USER_KEY = "user"
SEMESTERS_KEY = "semesters"
COURSES_KEY = "courses"
SESSIONS_KEY = "sessions"

DB_PATH_ENV = "HONOURS_TRACKER_DB"
DEFAULT_DB_DIR = Path.home() / ".honours_tracker"
DEFAULT_DB_NAME = "tracker.db"


def default_db_path() -> Path:
    """
    Ermittelt den Pfad der SQLite-Datei.

    Rückgabe:
        Path: Wert aus `HONOURS_TRACKER_DB` oder `~/.honours_tracker/tracker.db`.

    Hinweise:
        Das Zielverzeichnis wird bei Bedarf angelegt.
    """

    override = os.environ.get(DB_PATH_ENV)
    path = Path(override).expanduser() if override else DEFAULT_DB_DIR / DEFAULT_DB_NAME
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.environ.get("HONOURS_TRACKER_LOG_LEVEL", "WARNING")
LOG_FORMAT = os.environ.get("HONOURS_TRACKER_LOG_FORMAT", "text")


# =============================================================================
# DOMAIN DEFAULTS
# =============================================================================

# Soll-Anzahl Sitzungen pro Kurs (ein Kurs gilt danach als abgeschlossen)
TOTAL_CLASSES_DEFAULT = 24

SEMESTER_OPTIONS = (
    "1st Semester",
    "2nd Semester",
    "3rd Semester",
    "4th Semester",
    "5th Semester",
    "6th Semester",
    "7th Semester",
    "8th Semester",
)

# Programm → zulässige Fächer (Werte entsprechen den Enum-Labels in `models.py`)
PROGRAM_SUBJECTS = {
    "BA Honours": (
        "Bangla Language & Literature",
        "Islamic Studies",
        "History",
        "Philosophy",
    ),
    "BSS Honours": (
        "Political Science",
        "Sociology",
    ),
}


# =============================================================================
# EXPORT / REPORT
# =============================================================================

APP_NAME = "Honours Class Tracker"
EXPORT_VERSION = "1.0"
BACKUP_FILENAME_PREFIX = "honours-tracker-backup"
REPORT_DATE_FORMAT = "%d-%m-%Y"
