from __future__ import annotations

# -----------------------------------------------------------------------------
# Diagramme (Matplotlib)
# -----------------------------------------------------------------------------
# Erzeugt `Figure`-Objekte ohne pyplot-Zustand; die Präsentation entscheidet, ob sie
# eingebettet oder als Datei gespeichert werden (`save_figure`, Agg-Backend).
# -----------------------------------------------------------------------------


from pathlib import Path
from typing import Sequence

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from honours_tracker.stats import CourseProgress, OverallStats

COMPLETED_COLOR = "#0d9488"
REMAINING_COLOR = "#cbd5e1"


def _new_figure(width: float, height: float) -> Figure:
    # Agg-Canvas sofort anhängen, damit tight_layout und savefig ohne pyplot funktionieren.
    fig = Figure(figsize=(width, height), dpi=100)
    FigureCanvasAgg(fig)
    return fig


def _clear_ax_with_message(ax, msg: str) -> None:
    """
    Leert eine Achse und zeigt stattdessen einen Hinweistext.

    Zweck:
        Verhindert leere bzw. irreführende Diagramme, wenn keine Daten vorliegen.
    """

    ax.clear()
    ax.text(0.5, 0.5, msg, ha="center", va="center", transform=ax.transAxes)
    ax.set_xticks([])
    ax.set_yticks([])


def completion_figure(stats: OverallStats) -> Figure:
    """
    Ringdiagramm "Completed / Remaining" über alle aktiven Semester.

    Parameter:
        stats (OverallStats): Gesamtkennzahlen.

    Rückgabe:
        Figure: Diagramm; ohne geplante Sitzungen mit Hinweistext.
    """

    fig = _new_figure(4, 4)
    ax = fig.add_subplot(111)

    if stats.total_scheduled <= 0 and stats.total_completed <= 0:
        _clear_ax_with_message(ax, "Noch keine Kurse in aktiven Semestern")
        return fig

    values = [stats.total_completed, stats.remaining]
    ax.pie(
        values,
        labels=["Completed", "Remaining"],
        colors=[COMPLETED_COLOR, REMAINING_COLOR],
        startangle=90,
        counterclock=False,
        wedgeprops={"width": 0.35},
    )
    ax.text(0, 0, f"{stats.percentage}%", ha="center", va="center", fontsize=16)
    ax.set_title("Overall Progress")
    ax.set_aspect("equal")
    return fig


def course_progress_figure(rows: Sequence[CourseProgress]) -> Figure:
    """
    Horizontales Balkendiagramm: Fortschritt je Kurs in Prozent (max. 100).
    """

    fig = _new_figure(6, max(2.5, 0.5 * len(rows) + 1))
    ax = fig.add_subplot(111)

    if not rows:
        _clear_ax_with_message(ax, "Keine Kurse vorhanden")
        return fig

    labels = [r.course.name for r in rows]
    values = [min(r.percentage, 100) for r in rows]
    positions = list(range(len(rows)))

    ax.barh(positions, [100] * len(rows), color=REMAINING_COLOR)
    ax.barh(positions, values, color=COMPLETED_COLOR)
    for y, r in zip(positions, rows):
        ax.text(min(r.percentage, 100) + 1, y, f"{r.completed}/{r.course.total_classes}", va="center", fontsize=8)

    ax.set_yticks(positions)
    ax.set_yticklabels(labels)
    ax.invert_yaxis()
    ax.set_xlim(0, 110)
    ax.set_xlabel("Completion (%)")
    ax.set_title("Course Progress")
    fig.tight_layout()
    return fig


def save_figure(fig: Figure, path: str | Path) -> Path:
    """Rendert das Diagramm mit dem Agg-Backend in eine Bilddatei (Format aus der Endung)."""

    target = Path(path)
    fig.savefig(target)
    return target
