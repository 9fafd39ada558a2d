"""
Startpunkt der Anwendung (Honours Class Tracker).

Zweck:
    Startet die Kommandozeile. Sie ruft für alle Aktionen ausschließlich die
    Service-Schicht auf.

Ausführung:
    python -m honours_tracker.main <command>
"""

from __future__ import annotations

import sys

from honours_tracker.cli import main


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
