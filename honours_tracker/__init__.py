"""
Honours Class Tracker.

Zweck:
    Lokaler Tracker für Studierende eines Honours-Programms: Semester, Kurse und
    besuchte Sitzungen werden je Profil in einem Key-Value-Store (SQLite) gehalten.

Inhalt:
    - Präsentation: CLI (`cli.py`) und Diagramme (`charts.py`)
    - Service-Schicht: Entity-Store, Identität, Statistiken, Berichte, Backup
    - Repository-Schicht: Sammlungen im Key-Value-Store
    - Model-Schicht: Datenklassen (Entities)
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
