"""Tests for the matplotlib figures."""

from matplotlib.figure import Figure

from honours_tracker.charts import completion_figure, course_progress_figure, save_figure
from honours_tracker.models import Course
from honours_tracker.stats import CourseProgress, OverallStats


def progress(name, completed, total=24):
    course = Course(id=name, semester_id="s1", name=name, total_classes=total)
    return CourseProgress(course=course, completed=completed, remaining=max(0, total - completed),
                          percentage=min(100, round(completed / total * 100)), online=0, drc=completed)


class TestCompletionFigure:
    def test_donut(self):
        fig = completion_figure(OverallStats(total_scheduled=24, total_completed=6, remaining=18, percentage=25))
        assert isinstance(fig, Figure)
        texts = [t.get_text() for t in fig.axes[0].texts]
        assert "25%" in texts

    def test_placeholder_without_data(self):
        fig = completion_figure(OverallStats(0, 0, 0, 0))
        assert [t.get_text() for t in fig.axes[0].texts] == ["Noch keine Kurse in aktiven Semestern"]


class TestCourseProgressFigure:
    def test_bars_per_course(self):
        fig = course_progress_figure([progress("Poetry", 6), progress("Prose", 30)])
        ax = fig.axes[0]
        assert [t.get_text() for t in ax.get_yticklabels()] == ["Poetry", "Prose"]
        assert len(ax.patches) == 4

    def test_placeholder_without_courses(self):
        fig = course_progress_figure([])
        assert [t.get_text() for t in fig.axes[0].texts] == ["Keine Kurse vorhanden"]

    def test_save_png(self, tmp_path):
        target = save_figure(course_progress_figure([progress("Poetry", 6)]), tmp_path / "courses.png")
        assert target.exists()
        assert target.read_bytes()[:4] == b"\x89PNG"
