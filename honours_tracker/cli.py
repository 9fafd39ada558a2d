"""
Kommandozeile des Honours Class Trackers.

Usage:
    python -m honours_tracker [--db PATH] <command> [options]

Commands:
    login / logout / whoami     Profil wählen bzw. abmelden
    semester                    add, list, rename, archive, restore, delete
    course                      add, list, update, delete
    session                     add, list, delete
    stats                       Fortschritt aller aktiven Semester
    report                      Textbericht (gesamt oder --course ID)
    export / import             Backup schreiben bzw. einlesen
    cgpa                        CGPA aus CREDIT:GRADE-Paaren berechnen
    chart                       Diagramm als Bilddatei speichern

Environment:
    HONOURS_TRACKER_DB          Pfad der SQLite-Datei
    HONOURS_TRACKER_LOG_LEVEL   DEBUG|INFO|WARNING|ERROR
"""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import Callable, Optional, Sequence

from honours_tracker import backup, charts, config, reports, stats
from honours_tracker.backup import BackupError
from honours_tracker.logging_config import init_logging
from honours_tracker.models import SemesterStatus
from honours_tracker.services import TrackerService
from honours_tracker.validation import (
    ValidationError,
    parse_date,
    parse_float,
    parse_semester_status,
    parse_session_type,
    parse_total_classes,
    require_text,
    validate_login,
)

Handler = Callable[[TrackerService, argparse.Namespace], int]


class CommandError(Exception):
    """Fehler, der als Meldung (ohne Traceback) ausgegeben wird."""


def _require_login(svc: TrackerService) -> None:
    if svc.current_user is None:
        raise CommandError("Nicht angemeldet. Bitte zuerst `login` ausführen.")


def _require_semester(svc: TrackerService, semester_id: str) -> None:
    if svc.get_semester(semester_id) is None:
        raise CommandError(f"Semester {semester_id} nicht gefunden.")


def _require_course(svc: TrackerService, course_id: str):
    course = svc.get_course(course_id)
    if course is None:
        raise CommandError(f"Kurs {course_id} nicht gefunden.")
    return course


# -----------------------------
# Identity
# -----------------------------
def cmd_login(svc: TrackerService, args: argparse.Namespace) -> int:
    name, password, program, subject = validate_login(args.name, args.password, args.program, args.subject)
    svc.identity.login(name, password, program, subject)
    print(f"Angemeldet als {name} ({program.value}, {subject.value})")
    return 0


def cmd_logout(svc: TrackerService, args: argparse.Namespace) -> int:
    svc.identity.logout()
    print("Abgemeldet.")
    return 0


def cmd_whoami(svc: TrackerService, args: argparse.Namespace) -> int:
    user = svc.current_user
    if user is None:
        print("Nicht angemeldet.")
        return 1
    print(f"{user.name} | {user.program.value} | {user.subject.value}")
    return 0


# -----------------------------
# Semester
# -----------------------------
def cmd_semester_add(svc: TrackerService, args: argparse.Namespace) -> int:
    _require_login(svc)
    semester = svc.add_semester(require_text(args.name, field="Semestername"))
    print(f"Semester angelegt: {semester.id}  {semester.name}")
    return 0


def cmd_semester_list(svc: TrackerService, args: argparse.Namespace) -> int:
    _require_login(svc)
    status = parse_semester_status(args.status) if args.status else None
    semesters = svc.semesters_by_status(status) if status else sorted(svc.semesters, key=lambda s: s.created_at)
    if not semesters:
        print("Keine Semester vorhanden.")
        return 0
    for s in semesters:
        progress = stats.semester_progress(s, svc.courses, svc.sessions)
        print(f"{s.id}  {s.name:<16} {s.status.value:<9} {progress.total_completed}/{progress.total_scheduled} ({progress.percentage}%)")
    return 0


def cmd_semester_rename(svc: TrackerService, args: argparse.Namespace) -> int:
    _require_login(svc)
    _require_semester(svc, args.id)
    svc.update_semester_name(args.id, require_text(args.name, field="Semestername"))
    print("Semester umbenannt.")
    return 0


def _set_status(status: SemesterStatus, message: str) -> Handler:
    def handler(svc: TrackerService, args: argparse.Namespace) -> int:
        _require_login(svc)
        _require_semester(svc, args.id)
        svc.update_semester_status(args.id, status)
        print(message)
        return 0

    return handler


def cmd_semester_delete(svc: TrackerService, args: argparse.Namespace) -> int:
    _require_login(svc)
    _require_semester(svc, args.id)
    svc.delete_semester(args.id)
    print("Semester samt Kursen und Sitzungen gelöscht.")
    return 0


# -----------------------------
# Course
# -----------------------------
def cmd_course_add(svc: TrackerService, args: argparse.Namespace) -> int:
    _require_login(svc)
    _require_semester(svc, args.semester)
    total = parse_total_classes(args.total) if args.total is not None else config.TOTAL_CLASSES_DEFAULT
    course = svc.add_course(
        args.semester,
        require_text(args.name, field="Kursname"),
        args.teacher or "",
        total,
    )
    print(f"Kurs angelegt: {course.id}  {course.name}")
    return 0


def cmd_course_list(svc: TrackerService, args: argparse.Namespace) -> int:
    _require_login(svc)
    courses = svc.courses_for_semester(args.semester) if args.semester else svc.courses
    if not courses:
        print("Keine Kurse vorhanden.")
        return 0
    for p in svc.progress_for_courses(courses):
        c = p.course
        print(
            f"{c.id}  {c.name:<24} {c.teacher_name:<18} "
            f"{p.completed}/{c.total_classes} ({p.percentage}%) Online: {p.online} DRC: {p.drc}"
        )
    return 0


def cmd_course_update(svc: TrackerService, args: argparse.Namespace) -> int:
    _require_login(svc)
    _require_course(svc, args.id)
    fields = {}
    if args.name is not None:
        fields["name"] = require_text(args.name, field="Kursname")
    if args.teacher is not None:
        fields["teacher_name"] = args.teacher
    if args.total is not None:
        fields["total_classes"] = parse_total_classes(args.total)
    if not fields:
        raise CommandError("Nichts zu ändern (--name, --teacher oder --total angeben).")
    svc.update_course(args.id, **fields)
    print("Kurs aktualisiert.")
    return 0


def cmd_course_delete(svc: TrackerService, args: argparse.Namespace) -> int:
    _require_login(svc)
    _require_course(svc, args.id)
    svc.delete_course(args.id)
    print("Kurs samt Sitzungen gelöscht.")
    return 0


# -----------------------------
# Session
# -----------------------------
def cmd_session_add(svc: TrackerService, args: argparse.Namespace) -> int:
    _require_login(svc)
    _require_course(svc, args.course)
    day = parse_date(args.date or "") or date.today()
    session = svc.add_session(args.course, day.isoformat(), parse_session_type(args.type), args.note or None)
    print(f"Sitzung erfasst: {session.id}  {reports.format_date(session.date)} ({session.type.value})")
    return 0


def cmd_session_list(svc: TrackerService, args: argparse.Namespace) -> int:
    _require_login(svc)
    sessions = reports.sessions_newest_first(svc.sessions_for_course(args.course))
    if not sessions:
        print("Noch keine Sitzungen erfasst.")
        return 0
    for s in sessions:
        note = f"  {s.note}" if s.note else ""
        print(f"{s.id}  {reports.format_date(s.date)}  {s.type.value:<6}{note}")
    return 0


def cmd_session_delete(svc: TrackerService, args: argparse.Namespace) -> int:
    _require_login(svc)
    svc.delete_session(args.id)
    print("Sitzung gelöscht.")
    return 0


# -----------------------------
# Stats / Report
# -----------------------------
def cmd_stats(svc: TrackerService, args: argparse.Namespace) -> int:
    _require_login(svc)
    overall = svc.overall_stats()
    print(f"Completed: {overall.total_completed} classes")
    print(f"Remaining: {overall.remaining} classes")
    print(f"Progress:  {overall.percentage}%")
    breakdown = stats.type_breakdown(svc.sessions)
    print(", ".join(f"{t.value}: {n}" for t, n in breakdown.items()))
    return 0


def cmd_report(svc: TrackerService, args: argparse.Namespace) -> int:
    _require_login(svc)
    if args.course:
        course = _require_course(svc, args.course)
        print(reports.build_course_report(course, svc.sessions))
    else:
        print(reports.build_full_report(svc.current_user, svc.semesters, svc.courses, svc.sessions, date.today()))
    return 0


# -----------------------------
# Backup
# -----------------------------
def cmd_export(svc: TrackerService, args: argparse.Namespace) -> int:
    _require_login(svc)
    document = svc.export_document()
    target = Path(args.output) if args.output else Path(backup.backup_filename(date.today()))
    backup.write_backup(document, target)
    print(f"Backup gespeichert: {target}")
    return 0


def cmd_import(svc: TrackerService, args: argparse.Namespace) -> int:
    data = backup.read_backup(args.path)
    if not args.yes:
        answer = input("Warning: This will merge the backup file with your current data. Continue? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Import abgebrochen.")
            return 1
    svc.import_data(data)
    print("Data restored successfully!")
    return 0


# -----------------------------
# CGPA / Charts
# -----------------------------
def _parse_grade_row(index: int, text: str) -> stats.GradeRow:
    credit_text, sep, grade_text = text.partition(":")
    if not sep:
        raise ValidationError(f"'{text}' muss die Form CREDIT:GRADE haben (z. B. 4:A+)")
    credit = parse_float(credit_text, field="Credit", min_value=0)
    point = stats.grade_point_for(grade_text)
    if point is None:
        raise ValidationError(f"Unbekannte Note '{grade_text}' (erlaubt: {', '.join(stats.GRADE_POINTS)})")
    return stats.GradeRow(course_name=f"Course {index}", credit=credit, grade_point=point)


def cmd_cgpa(svc: TrackerService, args: argparse.Namespace) -> int:
    rows = [_parse_grade_row(i, item) for i, item in enumerate(args.rows, start=1)]
    result = stats.compute_cgpa(rows)
    print(f"CGPA: {result.cgpa:.2f} ({result.total_credits:g} credits)")
    return 0


def cmd_chart(svc: TrackerService, args: argparse.Namespace) -> int:
    _require_login(svc)
    if args.kind == "overall":
        fig = charts.completion_figure(svc.overall_stats())
    else:
        active_ids = {s.id for s in stats.active_semesters(svc.semesters)}
        courses = [c for c in svc.courses if c.semester_id in active_ids]
        fig = charts.course_progress_figure(svc.progress_for_courses(courses))
    target = charts.save_figure(fig, args.output)
    print(f"Diagramm gespeichert: {target}")
    return 0


# -----------------------------
# Parser
# -----------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="honours-tracker",
        description="Honours Class Tracker: Semester, Kurse und Sitzungen lokal erfassen.",
    )
    parser.add_argument("--db", help="Pfad der SQLite-Datei (Default: HONOURS_TRACKER_DB bzw. ~/.honours_tracker)")
    parser.add_argument("--log-level", default=None, help="DEBUG|INFO|WARNING|ERROR")
    parser.add_argument("--log-format", choices=("text", "json"), default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login", help="Profil wählen")
    p.add_argument("name")
    p.add_argument("password")
    p.add_argument("program", help="BA_HONORS oder BSS_HONORS")
    p.add_argument("subject", help="z. B. BANGLA, HISTORY, SOCIOLOGY")
    p.set_defaults(handler=cmd_login)

    sub.add_parser("logout", help="Profil abmelden").set_defaults(handler=cmd_logout)
    sub.add_parser("whoami", help="Aktives Profil anzeigen").set_defaults(handler=cmd_whoami)

    # semester
    sem = sub.add_parser("semester", help="Semester verwalten").add_subparsers(dest="action", required=True)
    p = sem.add_parser("add")
    p.add_argument("name", help=f"z. B. '{config.SEMESTER_OPTIONS[0]}'")
    p.set_defaults(handler=cmd_semester_add)
    p = sem.add_parser("list")
    p.add_argument("--status", help="Active oder Archived")
    p.set_defaults(handler=cmd_semester_list)
    p = sem.add_parser("rename")
    p.add_argument("id")
    p.add_argument("name")
    p.set_defaults(handler=cmd_semester_rename)
    p = sem.add_parser("archive")
    p.add_argument("id")
    p.set_defaults(handler=_set_status(SemesterStatus.ARCHIVED, "Semester archiviert."))
    p = sem.add_parser("restore")
    p.add_argument("id")
    p.set_defaults(handler=_set_status(SemesterStatus.ACTIVE, "Semester wieder aktiv."))
    p = sem.add_parser("delete")
    p.add_argument("id")
    p.set_defaults(handler=cmd_semester_delete)

    # course
    crs = sub.add_parser("course", help="Kurse verwalten").add_subparsers(dest="action", required=True)
    p = crs.add_parser("add")
    p.add_argument("semester", help="Semester-ID")
    p.add_argument("name")
    p.add_argument("--teacher", default="")
    p.add_argument("--total", default=None, help=f"Soll-Sitzungen (Default {config.TOTAL_CLASSES_DEFAULT})")
    p.set_defaults(handler=cmd_course_add)
    p = crs.add_parser("list")
    p.add_argument("--semester", default=None)
    p.set_defaults(handler=cmd_course_list)
    p = crs.add_parser("update")
    p.add_argument("id")
    p.add_argument("--name", default=None)
    p.add_argument("--teacher", default=None)
    p.add_argument("--total", default=None)
    p.set_defaults(handler=cmd_course_update)
    p = crs.add_parser("delete")
    p.add_argument("id")
    p.set_defaults(handler=cmd_course_delete)

    # session
    ses = sub.add_parser("session", help="Sitzungen erfassen").add_subparsers(dest="action", required=True)
    p = ses.add_parser("add")
    p.add_argument("course", help="Kurs-ID")
    p.add_argument("--date", default=None, help="YYYY-MM-DD (Default: heute)")
    p.add_argument("--type", default="DRC", help="Online oder DRC")
    p.add_argument("--note", default=None)
    p.set_defaults(handler=cmd_session_add)
    p = ses.add_parser("list")
    p.add_argument("course")
    p.set_defaults(handler=cmd_session_list)
    p = ses.add_parser("delete")
    p.add_argument("id")
    p.set_defaults(handler=cmd_session_delete)

    sub.add_parser("stats", help="Gesamtfortschritt").set_defaults(handler=cmd_stats)

    p = sub.add_parser("report", help="Textbericht ausgeben")
    p.add_argument("--course", default=None, help="Nur diesen Kurs")
    p.set_defaults(handler=cmd_report)

    p = sub.add_parser("export", help="Backup schreiben")
    p.add_argument("--output", default=None)
    p.set_defaults(handler=cmd_export)

    p = sub.add_parser("import", help="Backup zusammenführen")
    p.add_argument("path")
    p.add_argument("--yes", action="store_true", help="Ohne Rückfrage")
    p.set_defaults(handler=cmd_import)

    p = sub.add_parser("cgpa", help="CGPA berechnen")
    p.add_argument("rows", nargs="+", metavar="CREDIT:GRADE")
    p.set_defaults(handler=cmd_cgpa)

    p = sub.add_parser("chart", help="Diagramm speichern")
    p.add_argument("kind", choices=("overall", "courses"))
    p.add_argument("--output", required=True, help="Zieldatei, z. B. progress.png")
    p.set_defaults(handler=cmd_chart)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Einstiegspunkt der CLI.

    Rückgabe:
        int: 0 bei Erfolg, 1 bei einer Fehlermeldung für Nutzer:innen.
    """

    parser = build_parser()
    args = parser.parse_args(argv)
    init_logging(args.log_level, args.log_format)

    svc = TrackerService.bootstrap(db_path=args.db)
    try:
        return args.handler(svc, args)
    except (CommandError, ValidationError, BackupError, ValueError) as exc:
        print(f"Fehler: {exc}", file=sys.stderr)
        return 1
    finally:
        svc.close()
