"""
Textberichte zum Teilen (Zwischenablage, Messenger).

Zweck:
    Erzeugt aus Profil, aktiven Semestern, Kursen und Sitzungen einen reinen Textbericht.
    Die Funktionen sind deterministisch: Das Berichtsdatum wird übergeben, Sitzungen
    werden stabil sortiert. Das Kopieren in die Zwischenablage ist Sache der Präsentation.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional

from honours_tracker.config import APP_NAME, REPORT_DATE_FORMAT
from honours_tracker.models import ClassSession, Course, Semester, User
from honours_tracker.stats import active_semesters, course_progress, overall_stats

SEPARATOR = "------------------"
FOOTER = f"App: {APP_NAME}"


def _parse_date(value: str) -> Optional[date]:
    text = value.strip()
    for candidate in (text, text.replace("Z", "+00:00")):
        try:
            return datetime.fromisoformat(candidate).date()
        except ValueError:
            continue
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def format_date(value: date | datetime | str) -> str:
    """
    Formatiert ein Datum als `DD-MM-YYYY`.

    Parameter:
        value: `date`, `datetime` oder ISO-String (`2024-03-05`, `2024-03-05T10:00:00Z`).

    Rückgabe:
        str: Formatiertes Datum; nicht lesbare Strings werden unverändert zurückgegeben.
    """

    if isinstance(value, datetime):
        return value.date().strftime(REPORT_DATE_FORMAT)
    if isinstance(value, date):
        return value.strftime(REPORT_DATE_FORMAT)
    parsed = _parse_date(value)
    return parsed.strftime(REPORT_DATE_FORMAT) if parsed else value


def sessions_newest_first(sessions: Iterable[ClassSession]) -> list[ClassSession]:
    """Sitzungen nach Datum absteigend; bei gleichem Datum nach ID absteigend."""

    def key(s: ClassSession) -> tuple[str, str]:
        parsed = _parse_date(s.date)
        return (parsed.isoformat() if parsed else s.date, s.id)

    return sorted(sessions, key=key, reverse=True)


def build_full_report(
    user: User,
    semesters: Iterable[Semester],
    courses: Iterable[Course],
    sessions: Iterable[ClassSession],
    today: date,
) -> str:
    """
    Gesamtbericht über alle aktiven Semester.

    Aufbau:
        Kopf (Datum, Name, Programm, Fach), je aktivem Semester eine Zeile pro Kurs
        ("<Kurs>: n done (Online: a, DRC: b), r left"), Gesamtfortschritt, Fußzeile.
    """

    semesters = list(semesters)
    courses = list(courses)
    sessions = list(sessions)

    lines = [
        "🎓 *Honours Class Report*",
        f"📅 Date: {format_date(today)}",
        f"👤 Name: {user.name}",
        f"🎓 Program: {user.program.value}",
        f"📚 Subject: {user.subject.value}",
        SEPARATOR,
    ]

    for sem in active_semesters(semesters):
        lines.append("")
        lines.append(f"📌 *{sem.name}*")
        for c in courses:
            if c.semester_id != sem.id:
                continue
            p = course_progress(c, sessions)
            lines.append(
                f"- {c.name}: {p.completed} done (Online: {p.online}, DRC: {p.drc}), {p.remaining} left"
            )

    overall = overall_stats(semesters, courses, sessions)
    lines += [
        "",
        "📊 *Overall Progress*",
        f"✅ Completed: {overall.total_completed} classes",
        f"⏳ Remaining: {overall.remaining} classes",
        f"📈 Progress: {overall.percentage}%",
        "",
        FOOTER,
    ]
    return "\n".join(lines)


def build_course_report(course: Course, sessions: Iterable[ClassSession]) -> str:
    """
    Bericht zu einem einzelnen Kurs mit Verlauf (neueste Sitzung zuerst).

    Hinweise:
        Die Verlaufsnummern zählen absteigend, die neueste Sitzung trägt die höchste Nummer.
    """

    own = sessions_newest_first(s for s in sessions if s.course_id == course.id)
    p = course_progress(course, own)

    lines = [
        f"📚 *Course Report: {course.name}*",
        f"👤 Teacher: {course.teacher_name}",
        f"📊 Progress: {p.completed}/{course.total_classes} ({p.percentage}%)",
        f"🏫 Breakdown: Online: {p.online}, DRC: {p.drc}",
        f"⏳ Remaining: {p.remaining} classes",
        SEPARATOR,
        "",
    ]

    if own:
        lines.append("📝 *Class History:*")
        for idx, s in enumerate(own):
            entry = f"{len(own) - idx}. {format_date(s.date)} ({s.type.value})"
            if s.note:
                entry += f" - {s.note}"
            lines.append(entry)
    else:
        lines.append("No classes recorded yet.")

    lines += ["", FOOTER]
    return "\n".join(lines)
