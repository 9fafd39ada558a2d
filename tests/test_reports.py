"""Tests for the shareable text reports."""

from datetime import date, datetime

from honours_tracker.models import ClassSession, Course, ProgramType, Semester, SemesterStatus, SubjectType, User
from honours_tracker.reports import build_course_report, build_full_report, format_date, sessions_newest_first

USER = User(id="ann_pw1", name="Ann", password="pw1", program=ProgramType.BA_HONORS, subject=SubjectType.BANGLA)

SEMESTERS = [
    Semester(id="s1", user_id="ann_pw1", name="1st Semester", status=SemesterStatus.ACTIVE, start_date="", created_at=1),
    Semester(id="s2", user_id="ann_pw1", name="Old", status=SemesterStatus.ARCHIVED, start_date="", created_at=0),
]
POETRY = Course(id="c1", semester_id="s1", name="Bangla Poetry", teacher_name="Dr. Rahman")
COURSES = [POETRY, Course(id="c2", semester_id="s2", name="Archived Course", teacher_name="T")]
SESSIONS = [
    ClassSession(id="x1", course_id="c1", date="2024-03-01", type="Online"),
    ClassSession(id="x2", course_id="c1", date="2024-03-05", type="DRC", note="Chapter 3"),
    ClassSession(id="x3", course_id="c2", date="2024-03-02", type="DRC"),
]


class TestFormatting:
    def test_format_date(self):
        assert format_date("2024-03-05") == "05-03-2024"
        assert format_date("2024-03-05T10:00:00Z") == "05-03-2024"
        assert format_date(date(2024, 3, 5)) == "05-03-2024"
        assert format_date(datetime(2024, 3, 5, 23, 59)) == "05-03-2024"
        assert format_date("someday") == "someday"

    def test_sessions_newest_first(self):
        ordered = sessions_newest_first(SESSIONS)
        assert [s.id for s in ordered] == ["x2", "x3", "x1"]


class TestFullReport:
    def test_full_report_text(self):
        text = build_full_report(USER, SEMESTERS, COURSES, SESSIONS, date(2024, 3, 5))
        assert text == "\n".join([
            "🎓 *Honours Class Report*",
            "📅 Date: 05-03-2024",
            "👤 Name: Ann",
            "🎓 Program: BA Honours",
            "📚 Subject: Bangla Language & Literature",
            "------------------",
            "",
            "📌 *1st Semester*",
            "- Bangla Poetry: 2 done (Online: 1, DRC: 1), 22 left",
            "",
            "📊 *Overall Progress*",
            "✅ Completed: 2 classes",
            "⏳ Remaining: 22 classes",
            "📈 Progress: 8%",
            "",
            "App: Honours Class Tracker",
        ])

    def test_report_is_deterministic(self):
        a = build_full_report(USER, SEMESTERS, COURSES, SESSIONS, date(2024, 3, 5))
        b = build_full_report(USER, SEMESTERS, COURSES, list(reversed(SESSIONS)), date(2024, 3, 5))
        assert a == b

    def test_no_active_semesters(self):
        text = build_full_report(USER, [], [], [], date(2024, 3, 5))
        assert "📌" not in text
        assert "📈 Progress: 0%" in text


class TestCourseReport:
    def test_course_report_text(self):
        text = build_course_report(POETRY, SESSIONS)
        assert text == "\n".join([
            "📚 *Course Report: Bangla Poetry*",
            "👤 Teacher: Dr. Rahman",
            "📊 Progress: 2/24 (8%)",
            "🏫 Breakdown: Online: 1, DRC: 1",
            "⏳ Remaining: 22 classes",
            "------------------",
            "",
            "📝 *Class History:*",
            "2. 05-03-2024 (DRC) - Chapter 3",
            "1. 01-03-2024 (Online)",
            "",
            "App: Honours Class Tracker",
        ])

    def test_course_without_sessions(self):
        text = build_course_report(POETRY, [])
        assert "No classes recorded yet." in text
        assert "📊 Progress: 0/24 (0%)" in text
