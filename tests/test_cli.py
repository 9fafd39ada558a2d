"""Tests for the command line front-end."""

import json
import logging

import pytest

from honours_tracker.cli import main
from honours_tracker.db import connect
from honours_tracker.storage import KeyValueStorage


@pytest.fixture(autouse=True)
def restore_root_logging():
    # init_logging() replaces the root handlers
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def cli(tmp_path, capsys):
    db_path = str(tmp_path / "cli.db")

    def run(*argv):
        code = main(["--db", db_path, *argv])
        out, err = capsys.readouterr()
        return code, out, err

    run.db_path = db_path
    return run


def created_id(out):
    # "Semester angelegt: <id>  <name>"
    return out.split(": ", 1)[1].split()[0]


def stored(db_path, key):
    db = connect(db_path)
    try:
        return KeyValueStorage(db).load(key, [])
    finally:
        db.close()


class TestIdentityCommands:
    def test_login_and_whoami(self, cli):
        code, out, _ = cli("login", "Ann Lee", "pw1", "BA_HONORS", "BANGLA")
        assert code == 0
        assert "Angemeldet als Ann Lee" in out
        code, out, _ = cli("whoami")
        assert code == 0
        assert out.strip() == "Ann Lee | BA Honours | Bangla Language & Literature"

    def test_whoami_without_login(self, cli):
        code, out, _ = cli("whoami")
        assert code == 1
        assert "Nicht angemeldet" in out

    def test_subject_must_match_program(self, cli):
        code, _, err = cli("login", "Ann", "pw1", "BA_HONORS", "SOCIOLOGY")
        assert code == 1
        assert "gehört nicht zu" in err

    def test_logout(self, cli):
        cli("login", "Ann", "pw1", "BA_HONORS", "HISTORY")
        assert cli("logout")[0] == 0
        assert cli("whoami")[0] == 1

    def test_commands_require_login(self, cli):
        code, _, err = cli("semester", "add", "1st Semester")
        assert code == 1
        assert "Nicht angemeldet" in err


class TestTrackingCommands:
    def setup_course(self, cli):
        cli("login", "Ann", "pw1", "BA_HONORS", "BANGLA")
        _, out, _ = cli("semester", "add", "1st Semester")
        semester_id = created_id(out)
        _, out, _ = cli("course", "add", semester_id, "Bangla Poetry", "--teacher", "Dr. Rahman", "--total", "24")
        return semester_id, created_id(out)

    def test_track_sessions_and_report(self, cli):
        semester_id, course_id = self.setup_course(cli)
        for day, kind in (("2024-03-01", "Online"), ("2024-03-02", "Online"), ("05-03-2024", "DRC")):
            code, _, _ = cli("session", "add", course_id, "--date", day, "--type", kind)
            assert code == 0

        code, out, _ = cli("stats")
        assert code == 0
        assert "Completed: 3 classes" in out
        assert "13%" in out

        code, out, _ = cli("report", "--course", course_id)
        assert "📊 Progress: 3/24 (13%)" in out
        assert "3. 05-03-2024 (DRC)" in out

        code, out, _ = cli("report")
        assert "- Bangla Poetry: 3 done (Online: 2, DRC: 1), 21 left" in out

        code, out, _ = cli("semester", "list")
        assert "3/24 (13%)" in out

    def test_archive_and_delete_semester(self, cli):
        semester_id, course_id = self.setup_course(cli)
        cli("session", "add", course_id, "--date", "2024-03-01")
        assert cli("semester", "archive", semester_id)[0] == 0
        _, out, _ = cli("semester", "list", "--status", "Archived")
        assert "Archived" in out

        assert cli("semester", "delete", semester_id)[0] == 0
        assert stored(cli.db_path, "courses") == []
        assert stored(cli.db_path, "sessions") == []

    def test_course_update(self, cli):
        _, course_id = self.setup_course(cli)
        assert cli("course", "update", course_id, "--total", "30", "--name", "Modern Poetry")[0] == 0
        course = stored(cli.db_path, "courses")[0]
        assert (course["name"], course["totalClasses"]) == ("Modern Poetry", 30)

    def test_invalid_total_is_rejected(self, cli):
        semester_id, _ = self.setup_course(cli)
        code, _, err = cli("course", "add", semester_id, "Prose", "--total", "0")
        assert code == 1
        assert "Anzahl Sitzungen" in err

    def test_unknown_course(self, cli):
        self.setup_course(cli)
        code, _, err = cli("report", "--course", "nope")
        assert code == 1
        assert "nicht gefunden" in err

    def test_chart(self, cli, tmp_path):
        self.setup_course(cli)
        target = tmp_path / "overall.png"
        assert cli("chart", "overall", "--output", str(target))[0] == 0
        assert target.exists()


class TestBackupCommands:
    def test_export_and_import(self, cli, tmp_path):
        cli("login", "Ann", "pw1", "BA_HONORS", "BANGLA")
        cli("semester", "add", "1st Semester")
        target = tmp_path / "backup.json"
        code, _, _ = cli("export", "--output", str(target))
        assert code == 0
        document = json.loads(target.read_text(encoding="utf-8"))
        assert document["metadata"]["user"] == "Ann"
        assert len(document["data"]["semesters"]) == 1

        document["data"]["semesters"][0]["name"] = "Renamed"
        target.write_text(json.dumps(document), encoding="utf-8")
        code, out, _ = cli("import", str(target), "--yes")
        assert code == 0
        assert "Data restored successfully!" in out
        assert stored(cli.db_path, "semesters")[0]["name"] == "Renamed"

    def test_invalid_import_leaves_store_untouched(self, cli, tmp_path):
        cli("login", "Ann", "pw1", "BA_HONORS", "BANGLA")
        cli("semester", "add", "1st Semester")
        before = stored(cli.db_path, "semesters")
        bad = tmp_path / "bad.json"
        bad.write_text('{"metadata": {}}', encoding="utf-8")
        code, _, err = cli("import", str(bad), "--yes")
        assert code == 1
        assert "Invalid file format!" in err
        assert stored(cli.db_path, "semesters") == before

    def test_import_can_be_cancelled(self, cli, tmp_path, monkeypatch):
        source = tmp_path / "backup.json"
        source.write_text(json.dumps({"data": {"semesters": [{"id": "s9", "userId": "x"}]}}), encoding="utf-8")
        monkeypatch.setattr("builtins.input", lambda prompt="": "n")
        code, out, _ = cli("import", str(source))
        assert code == 1
        assert "abgebrochen" in out
        assert stored(cli.db_path, "semesters") == []


class TestMiscCommands:
    def test_cgpa(self, cli):
        code, out, _ = cli("cgpa", "4:A+", "4:B")
        assert code == 0
        assert out.strip() == "CGPA: 3.50 (8 credits)"

    def test_cgpa_unknown_grade(self, cli):
        code, _, err = cli("cgpa", "4:Z")
        assert code == 1
        assert "Unbekannte Note" in err

    def test_usage_error_exits_with_2(self, cli):
        with pytest.raises(SystemExit) as exc:
            cli("bogus")
        assert exc.value.code == 2
