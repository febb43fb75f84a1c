"""Integration tests for CLI functionality."""

import json
import os
import subprocess
import sys

import pytest

from studycalc_pkg.cli import main_entry


def run_cli(*args, store_dir):
    env = dict(os.environ, STUDYCALC_STORE_DIR=str(store_dir))
    return subprocess.run(
        [sys.executable, "-m", "studycalc_pkg.cli", *args],
        capture_output=True,
        text=True,
        timeout=30,
        env=env,
    )


def test_cli_version(tmp_path):
    """Test --version flag."""
    result = run_cli("--version", store_dir=tmp_path)
    assert result.returncode == 0
    assert result.stdout.strip() != ""


def test_cli_eval_json(tmp_path):
    """Test CLI evaluation with JSON output."""
    result = run_cli("--format", "json", "--eval", "2+2", store_dir=tmp_path)
    assert result.returncode == 0
    data = json.loads(result.stdout.strip())
    assert data["ok"] is True
    assert data["result"] == "4"


def test_cli_eval_error_exit_code(tmp_path):
    """Failed evaluations print the message and exit non-zero."""
    result = run_cli("eval", "171!", store_dir=tmp_path)
    assert result.returncode == 1
    assert "Error: Factorial is too large to compute safely." in result.stdout


def test_cli_module_entry(tmp_path):
    """python -m studycalc_pkg runs the same CLI."""
    env = dict(os.environ, STUDYCALC_STORE_DIR=str(tmp_path))
    result = subprocess.run(
        [sys.executable, "-m", "studycalc_pkg", "gpa", "--course", "Math:3:95", "--course", "History:2:70"],
        capture_output=True,
        text=True,
        timeout=30,
        env=env,
    )
    assert result.returncode == 0
    assert "GPA: 3.33" in result.stdout


class TestInProcess:
    """Drive main_entry directly with an isolated store."""

    @pytest.fixture
    def cli(self, tmp_path, capsys):
        def run(*args):
            code = main_entry(["--store-dir", str(tmp_path), *args])
            return code, capsys.readouterr().out

        return run

    def test_eval_human(self, cli):
        code, out = cli("eval", "sin(30)", "+", "2^3")
        assert code == 0
        assert out.strip() == "sin(30) + 2^3 = 8.5"

    def test_eval_radians(self, cli):
        code, out = cli("--mode", "rad", "eval", "sin(pi/2)")
        assert code == 0
        assert out.strip().endswith("= 1")

    def test_history_persisted(self, cli):
        cli("eval", "2+2")
        cli("eval", "3!")
        code, out = cli("history")
        assert code == 0
        assert out.splitlines() == ["3! = 6", "2+2 = 4"]

        code, out = cli("--format", "json", "history")
        assert json.loads(out)["history"][0] == {"expression": "3!", "result": "6"}

        cli("history", "--clear")
        _, out = cli("history")
        assert out.strip() == "No history yet."

    def test_no_history_flag(self, cli):
        cli("--no-history", "eval", "2+2")
        _, out = cli("history")
        assert out.strip() == "No history yet."

    def test_grade(self, cli):
        code, out = cli("grade", "--reg-term", "80", "--final", "70")
        assert code == 0
        assert "Total: 76.00" in out
        assert "Letter: B- (2.67, Good)" in out
        assert "Status: Passed. Eligible for scholarship (≥ 70)." in out

    def test_grade_json_error(self, cli):
        code, out = cli("--format", "json", "grade", "--reg-term", "150")
        assert code == 1
        assert json.loads(out) == {"ok": False, "error": "RegTerm must be between 0 and 100."}

    def test_target(self, cli):
        code, out = cli("target", "60")
        assert code == 0
        assert "Scholarship (>= 70): 85.0" in out
        assert "High scholarship (>= 90): Not achievable (>100)" in out

    def test_target_generic(self, cli):
        code, out = cli("target", "--current", "80", "--desired", "85", "--final-weight", "40")
        assert code == 0
        assert out.strip() == "You need 92.5% on the final exam."

    def test_gpa_saved(self, cli):
        code, _ = cli("gpa", "--course", "Math:3:95", "--course", "History:2:70", "--save")
        assert code == 0
        code, out = cli("--format", "json", "gpa")
        data = json.loads(out)
        assert data["gpa"] == "3.33"
        assert data["counted_courses"] == 2

    def test_gpa_bad_course(self, cli):
        code, out = cli("gpa", "--course", "Math")
        assert code == 1
        assert out.startswith("Error: Course 'Math'")

    def test_gpa_file(self, cli, tmp_path):
        path = tmp_path / "courses.json"
        path.write_text(json.dumps([{"name": "Math", "credits": 4, "total": 85}]), encoding="utf-8")
        _, out = cli("gpa", "--file", str(path))
        assert "GPA: 3.33" in out

    def test_syllabus_template_round_trip(self, cli, tmp_path):
        code, out = cli("syllabus", "--template")
        assert code == 0
        course = json.loads(out)
        for item in course["sections"][2]["items"]:
            item["score"] = "100"
        path = tmp_path / "course.json"
        path.write_text(json.dumps(course), encoding="utf-8")

        code, out = cli("syllabus", "--file", str(path))
        assert code == 0
        assert "Weighted total: 40.00" in out

    def test_schedule(self, cli, tmp_path):
        path = tmp_path / "schedule.json"
        path.write_text(
            json.dumps(
                [
                    {"day": "Monday", "start_time": "10:00", "end_time": "11:00", "subject": "Math", "classroom": "A1"},
                    {"day": "Monday", "start_time": "10:30", "end_time": "11:30", "subject": "Physics", "mode": "online"},
                ]
            ),
            encoding="utf-8",
        )
        code, out = cli("schedule", str(path))
        assert code == 0
        assert "Mon:" in out
        assert "10:00-11:00  Math (lecture, A1)" in out
        assert "Monday: Math 10:00-11:00 overlaps Physics 10:30-11:30" in out

        _, out = cli("schedule", str(path), "--class-mode", "online")
        assert "No conflicts." in out

    def test_schedule_missing_file(self, cli, tmp_path):
        code, out = cli("schedule", str(tmp_path / "nope.json"))
        assert code == 1
        assert out.startswith("Error:")

    def test_repl(self, cli, monkeypatch):
        lines = iter(["2+2", "mode rad", "sin(pi/2)", "1/0", "history", "quit"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))
        code, out = cli("repl")
        assert code == 0
        assert "= 4" in out
        assert "Mode: RAD" in out
        assert "= 1" in out
        assert "Error: Expression produced an invalid result." in out
        assert "sin(pi/2) = 1" in out

    def test_repl_eof(self, cli, monkeypatch):
        def raise_eof(prompt=""):
            raise EOFError

        monkeypatch.setattr("builtins.input", raise_eof)
        code, _ = cli()
        assert code == 0

    def test_schedule_list(self, cli, tmp_path):
        path = tmp_path / "schedule.json"
        path.write_text(
            json.dumps(
                [
                    {"day": "Monday", "start_time": "10:00", "end_time": "11:00", "subject": "Math", "lecturer": "Ivanov"},
                    {"day": "Friday", "start_time": "09:00", "end_time": "10:00", "subject": "Art", "electiveGroup": "Elective 1"},
                ]
            ),
            encoding="utf-8",
        )
        code, out = cli("--format", "json", "schedule", str(path), "--list")
        assert code == 0
        assert json.loads(out) == {
            "ok": True,
            "subjects": ["Math"],
            "electives": {"Art": "Elective 1"},
            "lecturers": ["Ivanov"],
        }

    def test_repl_parenthesis_hint(self, cli, monkeypatch):
        lines = iter(["(1+2", "exit"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))
        _, out = cli("repl")
        assert "Hint: unbalanced parenthesis at position 1" in out

    @pytest.mark.parametrize(
        "course",
        [{"sections": ["oops"]}, {"title": "C", "sections": [{"title": "Labs", "items": [1]}]}],
    )
    def test_syllabus_malformed_file(self, cli, tmp_path, course):
        path = tmp_path / "course.json"
        path.write_text(json.dumps(course), encoding="utf-8")
        code, out = cli("syllabus", "--file", str(path), "--save")
        assert code == 1
        assert out.startswith("Error: Syllabus")

        # Rejected courses are not remembered
        code, out = cli("syllabus")
        assert code == 0
        assert out.startswith("Course 1")

    def test_syllabus_corrupted_store_value(self, cli, tmp_path):
        from studycalc_pkg.cli import SYLLABUS_STORE_KEY
        from studycalc_pkg.store import KeyValueStore

        KeyValueStore(tmp_path / "store.json").set(SYLLABUS_STORE_KEY, ["junk"])
        code, out = cli("--format", "json", "syllabus")
        assert code == 1
        assert json.loads(out) == {
            "ok": False,
            "type": "syllabus",
            "error": "Syllabus course must be an object",
        }

    def test_eval_long_chain(self, cli):
        code, out = cli("--no-history", "eval", "+".join(["1"] * 500))
        assert code == 0
        assert out.strip().endswith("= 500")

    def test_grade_uses_passing_threshold(self, cli):
        _, out = cli("--format", "json", "grade", "--reg-term", "45", "--final", "60")
        from studycalc_pkg.grades import required_final_for_target

        assert json.loads(out)["required_final"]["pass"] == required_final_for_target(45, 50)
