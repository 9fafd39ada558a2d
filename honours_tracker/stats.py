"""
Abgeleitete Statistiken (reine Funktionen).

Zweck:
    Berechnet Kennzahlen über die gescopten Sammlungen: Anzahl erledigter Sitzungen,
    Prozentwerte, Aufschlüsselung nach Sitzungstyp sowie Summen über alle *aktiven*
    Semester. Archivierte Semester zählen nicht zu den aktuellen Kennzahlen.

Rundung:
    Prozentwerte werden kaufmännisch gerundet (12.5 → 13), nicht mit Pythons
    Banker's Rounding.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional

from honours_tracker.models import ClassSession, Course, Semester, SemesterStatus, SessionType


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(slots=True)
class CourseProgress:
    """Fortschritt eines Kurses (für Berichte, Diagramme und CLI-Tabellen)."""

    course: Course
    completed: int
    remaining: int
    percentage: int
    online: int
    drc: int


@dataclass(slots=True)
class OverallStats:
    """
    Summen über alle aktiven Semester.

    Begriffe:
        - total_scheduled: Summe der Soll-Sitzungen aller aktiven Kurse
        - total_completed: erfasste Sitzungen dieser Kurse
        - remaining: max(0, scheduled - completed)
        - percentage: gerundet, 0 wenn nichts geplant ist
    """

    total_scheduled: int
    total_completed: int
    remaining: int
    percentage: int


@dataclass(slots=True)
class SemesterProgress:
    semester: Semester
    courses: list[CourseProgress]
    total_scheduled: int
    total_completed: int
    percentage: int


def completed_count(course_id: str, sessions: Iterable[ClassSession]) -> int:
    return sum(1 for s in sessions if s.course_id == course_id)


def completion_percentage(completed: int, total_classes: int) -> int:
    """
    Prozentualer Fortschritt eines Kurses.

    Rückgabe:
        int: round(min(completed / total * 100, 100)); 0 bei `total_classes <= 0`.
    """

    if total_classes <= 0:
        return 0
    return round_half_up(min(completed / total_classes * 100, 100))


def remaining_classes(completed: int, total_classes: int) -> int:
    return max(0, total_classes - completed)


def type_breakdown(sessions: Iterable[ClassSession]) -> dict[SessionType, int]:
    """Anzahl Sitzungen je Typ; alle Typen sind immer als Schlüssel vorhanden."""

    counts = {t: 0 for t in SessionType}
    for s in sessions:
        counts[s.type] += 1
    return counts


def course_progress(course: Course, sessions: Iterable[ClassSession]) -> CourseProgress:
    own = [s for s in sessions if s.course_id == course.id]
    breakdown = type_breakdown(own)
    done = completed_count(course.id, own)
    return CourseProgress(
        course=course,
        completed=done,
        remaining=remaining_classes(done, course.total_classes),
        percentage=completion_percentage(done, course.total_classes),
        online=breakdown[SessionType.ONLINE],
        drc=breakdown[SessionType.DRC],
    )


def _by_status(semesters: Iterable[Semester], status: SemesterStatus) -> list[Semester]:
    return sorted((s for s in semesters if s.status is status), key=lambda s: s.created_at)


def active_semesters(semesters: Iterable[Semester]) -> list[Semester]:
    return _by_status(semesters, SemesterStatus.ACTIVE)


def archived_semesters(semesters: Iterable[Semester]) -> list[Semester]:
    return _by_status(semesters, SemesterStatus.ARCHIVED)


def overall_stats(
    semesters: Iterable[Semester],
    courses: Iterable[Course],
    sessions: Iterable[ClassSession],
) -> OverallStats:
    """
    Berechnet die Gesamtkennzahlen über alle aktiven Semester.

    Hinweise:
        Der Gesamt-Prozentwert wird nicht auf 100 begrenzt; `remaining` dagegen
        nie negativ.
    """

    active_ids = {s.id for s in semesters if s.status is SemesterStatus.ACTIVE}
    active_courses = [c for c in courses if c.semester_id in active_ids]
    active_course_ids = {c.id for c in active_courses}

    scheduled = sum(c.total_classes for c in active_courses)
    completed = sum(1 for s in sessions if s.course_id in active_course_ids)
    return OverallStats(
        total_scheduled=scheduled,
        total_completed=completed,
        remaining=max(0, scheduled - completed),
        percentage=round_half_up(completed / scheduled * 100) if scheduled > 0 else 0,
    )


def semester_progress(
    semester: Semester,
    courses: Iterable[Course],
    sessions: Iterable[ClassSession],
) -> SemesterProgress:
    sessions = list(sessions)
    rows = [course_progress(c, sessions) for c in courses if c.semester_id == semester.id]
    scheduled = sum(r.course.total_classes for r in rows)
    completed = sum(r.completed for r in rows)
    return SemesterProgress(
        semester=semester,
        courses=rows,
        total_scheduled=scheduled,
        total_completed=completed,
        percentage=round_half_up(completed / scheduled * 100) if scheduled > 0 else 0,
    )


# -----------------------------------------------------------------------------
# CGPA-Rechner
# -----------------------------------------------------------------------------

GRADE_POINTS: dict[str, float] = {
    "A+": 4.00,
    "A": 3.75,
    "A-": 3.50,
    "B+": 3.25,
    "B": 3.00,
    "B-": 2.75,
    "C+": 2.50,
    "C": 2.25,
    "D": 2.00,
    "F": 0.00,
}

DEFAULT_CREDIT = 4.0


@dataclass(slots=True)
class GradeRow:
    course_name: str
    credit: float
    grade_point: float


@dataclass(slots=True)
class CgpaResult:
    cgpa: float
    total_credits: float


def grade_point_for(grade: str) -> Optional[float]:
    """Notenpunkte zu einer Buchstabennote ("a+" → 4.0); None bei unbekannter Note."""

    return GRADE_POINTS.get(grade.strip().upper())


def compute_cgpa(rows: Iterable[GradeRow]) -> CgpaResult:
    """
    Credit-gewichteter Notendurchschnitt.

    Zweck:
        Summe(credit * grade_point) / Summe(credit). Zeilen mit `credit <= 0`
        werden ignoriert.

    Rückgabe:
        CgpaResult: cgpa 0.0, wenn keine Credits vorliegen.
    """

    points = 0.0
    credits = 0.0
    for r in rows:
        if r.credit > 0:
            points += r.grade_point * r.credit
            credits += r.credit
    return CgpaResult(cgpa=points / credits if credits > 0 else 0.0, total_credits=credits)
