"""
Logging-Konfiguration.

- Text-Format für die Konsole (Standard)
- JSON-Format (einzeilig, maschinenlesbar) für Auswertungen
"""

from __future__ import annotations

import json
import logging

from honours_tracker import config

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JSONFormatter(logging.Formatter):
    """Gibt Log-Records als einzeiliges JSON aus."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def init_logging(level: str | None = None, fmt: str | None = None) -> None:
    """
    Richtet das Root-Logging ein.

    Parameter:
        level (str | None): Log-Level (Default aus `config.LOG_LEVEL`).
        fmt (str | None): "text" oder "json" (Default aus `config.LOG_FORMAT`).
    """

    level = (level or config.LOG_LEVEL).upper()
    fmt = fmt or config.LOG_FORMAT

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.WARNING))
    root.handlers.clear()

    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter(datefmt=DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)

    # matplotlib loggt Font-Cache-Details auf INFO
    logging.getLogger("matplotlib").setLevel(logging.WARNING)
