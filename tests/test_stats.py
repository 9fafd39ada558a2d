"""Tests for derived statistics and the CGPA calculator."""

import pytest

from honours_tracker.models import ClassSession, Course, Semester, SemesterStatus, SessionType
from honours_tracker.stats import (
    GradeRow,
    active_semesters,
    archived_semesters,
    completed_count,
    completion_percentage,
    compute_cgpa,
    course_progress,
    grade_point_for,
    overall_stats,
    remaining_classes,
    round_half_up,
    semester_progress,
    type_breakdown,
)


def semester(id, status=SemesterStatus.ACTIVE, created_at=1):
    return Semester(id=id, user_id="ann_pw1", name=id, status=status, start_date="", created_at=created_at)


def sessions_for(course_id, n, type=SessionType.DRC):
    return [ClassSession(id=f"{course_id}-{i}", course_id=course_id, date="2024-03-05", type=type) for i in range(n)]


class TestCompletion:
    def test_half_up_rounding(self):
        assert round_half_up(12.5) == 13
        assert round_half_up(12.4999) == 12
        assert completion_percentage(3, 24) == 13

    def test_full_range_for_24_classes(self):
        for n in range(0, 25):
            assert completion_percentage(n, 24) == round_half_up(n / 24 * 100)
        assert completion_percentage(24, 24) == 100

    def test_clamped_at_100(self):
        assert completion_percentage(30, 24) == 100

    def test_zero_total_is_zero_percent(self):
        assert completion_percentage(5, 0) == 0

    def test_remaining_never_negative(self):
        assert remaining_classes(3, 24) == 21
        assert remaining_classes(30, 24) == 0

    def test_type_breakdown_has_all_types(self):
        assert type_breakdown([]) == {SessionType.ONLINE: 0, SessionType.DRC: 0}
        mixed = sessions_for("c1", 2, SessionType.ONLINE) + sessions_for("c2", 1)
        assert type_breakdown(mixed) == {SessionType.ONLINE: 2, SessionType.DRC: 1}

    def test_completed_count(self):
        sessions = sessions_for("c1", 3) + sessions_for("c2", 2)
        assert completed_count("c1", sessions) == 3
        assert completed_count("c9", sessions) == 0

    def test_course_progress_counts_only_own_sessions(self):
        course = Course(id="c1", semester_id="s1", name="Poetry")
        p = course_progress(course, sessions_for("c1", 3) + sessions_for("c2", 5))
        assert (p.completed, p.remaining, p.percentage, p.drc, p.online) == (3, 21, 13, 3, 0)


class TestOverall:
    def test_archived_semesters_are_excluded(self):
        semesters = [semester("s1"), semester("s2", SemesterStatus.ARCHIVED)]
        courses = [
            Course(id="c1", semester_id="s1", name="a", total_classes=10),
            Course(id="c2", semester_id="s2", name="b", total_classes=10),
        ]
        stats = overall_stats(semesters, courses, sessions_for("c1", 4) + sessions_for("c2", 6))
        assert (stats.total_scheduled, stats.total_completed, stats.remaining, stats.percentage) == (10, 4, 6, 40)

    def test_overall_percentage_is_not_clamped(self):
        courses = [Course(id="c1", semester_id="s1", name="a", total_classes=2)]
        stats = overall_stats([semester("s1")], courses, sessions_for("c1", 3))
        assert stats.percentage == 150
        assert stats.remaining == 0

    def test_nothing_scheduled(self):
        stats = overall_stats([], [], [])
        assert (stats.total_scheduled, stats.percentage) == (0, 0)

    def test_semester_progress(self):
        courses = [
            Course(id="c1", semester_id="s1", name="a", total_classes=10),
            Course(id="c2", semester_id="s1", name="b", total_classes=10),
        ]
        progress = semester_progress(semester("s1"), courses, sessions_for("c1", 5))
        assert [r.completed for r in progress.courses] == [5, 0]
        assert (progress.total_scheduled, progress.total_completed, progress.percentage) == (20, 5, 25)

    def test_semesters_by_status_are_sorted(self):
        semesters = [semester("b", created_at=2), semester("a", created_at=1), semester("z", SemesterStatus.ARCHIVED)]
        assert [s.id for s in active_semesters(semesters)] == ["a", "b"]
        assert [s.id for s in archived_semesters(semesters)] == ["z"]


class TestCgpa:
    def test_grade_points(self):
        assert grade_point_for("A+") == 4.0
        assert grade_point_for(" a- ") == 3.5
        assert grade_point_for("F") == 0.0
        assert grade_point_for("E") is None

    def test_weighted_average(self):
        result = compute_cgpa([GradeRow("Poetry", 4, 4.0), GradeRow("Prose", 4, 3.0)])
        assert result.cgpa == pytest.approx(3.5)
        assert result.total_credits == 8

    def test_credit_weighting(self):
        result = compute_cgpa([GradeRow("a", 3, 4.0), GradeRow("b", 1, 2.0)])
        assert result.cgpa == pytest.approx(3.5)

    def test_zero_credit_rows_are_ignored(self):
        result = compute_cgpa([GradeRow("a", 0, 0.0), GradeRow("b", 4, 3.25)])
        assert result.cgpa == pytest.approx(3.25)

    def test_no_rows(self):
        result = compute_cgpa([])
        assert (result.cgpa, result.total_credits) == (0.0, 0.0)
