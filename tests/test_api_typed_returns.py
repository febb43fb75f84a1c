"""Tests for the typed return values of the public API."""

import pytest

from studycalc_pkg.api import (
    course_grade,
    evaluate_expression,
    final_targets,
    gpa,
    schedule_report,
    syllabus_result,
    validate_expression,
)
from studycalc_pkg.gpa import GpaCourse
from studycalc_pkg.history import History
from studycalc_pkg.syllabus import create_course
from studycalc_pkg.types import CourseGradeResult, EvalResult, GpaResult, ReportResult


class TestEvaluateExpression:
    def test_success(self):
        result = evaluate_expression("sin(90) + 2^3")
        assert isinstance(result, EvalResult)
        assert result.ok
        assert result.display == "9"
        assert result.angle_mode == "DEG"
        assert result.to_dict() == {
            "ok": True,
            "expression": "sin(90) + 2^3",
            "mode": "DEG",
            "value": pytest.approx(9.0),
            "result": "9",
        }

    def test_error(self):
        result = evaluate_expression("foo(1)")
        assert not result.ok
        assert result.error == "Unknown function or token in expression: 'foo'"
        assert result.error_code == "UNKNOWN_TOKEN"
        assert "value" not in result.to_dict()

    def test_mode_case_insensitive(self):
        assert evaluate_expression("cos(pi)", "rad").display == "-1"

    def test_bad_mode(self):
        result = evaluate_expression("1", "GRAD")
        assert not result.ok
        assert result.error_code == "INVALID_ANGLE_MODE"

    def test_history_records_successes_only(self):
        history = History()
        evaluate_expression("2+2", history=history)
        evaluate_expression("1/0", history=history)
        evaluate_expression("0.1+0.2", history=history)
        assert [(e.expression, e.result) for e in history] == [("0.1+0.2", "0.3"), ("2+2", "4")]


def test_validate_expression():
    assert validate_expression("2 + 2") == (True, None)
    assert validate_expression("2 $ 2") == (False, "Expression contains unsupported characters.")
    assert validate_expression("") == (False, "Enter an expression first.")


class TestCourseGrade:
    def test_from_reg_term(self):
        result = course_grade(reg_term="80", final_score="70")
        assert isinstance(result, CourseGradeResult)
        assert result.ok
        assert result.total == pytest.approx(76)
        assert result.letter == "B-"
        assert result.status == "Passed. Eligible for scholarship (≥ 70)."
        assert set(result.required_final) == {"pass", "scholarship", "high_scholarship"}

    def test_from_mid_and_end(self):
        result = course_grade(reg_mid=70, reg_end=90, final_score=90)
        assert result.reg_term == 80
        assert result.total == pytest.approx(84)

    def test_manual_total_overrides_letter(self):
        result = course_grade(reg_term="80", final_score="70", manual_total="96")
        assert result.letter == "A"
        assert result.total == pytest.approx(76)

    def test_without_final(self):
        result = course_grade(reg_term=80)
        assert result.ok
        assert result.total is None
        assert result.letter is None
        assert result.status == "Enter a final score to see your result."

    def test_invalid_reg_term(self):
        result = course_grade(reg_term="150", final_score="70")
        assert not result.ok
        assert result.to_dict() == {"ok": False, "error": "RegTerm must be between 0 and 100."}

    def test_invalid_manual_total(self):
        assert course_grade(reg_term="80", manual_total="abc").error == "Total must be between 0 and 100."


def test_final_targets():
    assert final_targets(60).required_final["scholarship"] == "85.0"
    assert not final_targets("abc").ok


def test_gpa_accepts_dicts_and_rows():
    result = gpa([{"name": "Math", "credits": "3", "total": "95"}, GpaCourse("History", "2", "70")])
    assert isinstance(result, GpaResult)
    assert result.gpa == "3.33"
    assert result.to_dict()["total_credits"] == "5"
    assert result.summary.endswith("GPA: 3.33")


def test_syllabus_result():
    course = create_course("Algebra")
    for item in course.sections[2].items:
        item.score = "100"
    result = syllabus_result(course)
    assert isinstance(result, ReportResult)
    data = result.to_dict()
    assert data["type"] == "syllabus"
    assert data["title"] == "Algebra"
    assert data["weighted_total"] == pytest.approx(40)


class TestScheduleReport:
    def test_conflicts_and_days(self):
        result = schedule_report(
            [
                {"day": "Monday", "start_time": "10:00", "end_time": "11:00", "subject": "Math"},
                {"day": "Monday", "start_time": "10:30", "end_time": "11:30", "subject": "Physics"},
            ]
        )
        assert result.ok
        assert result.data["item_count"] == 2
        assert len(result.data["conflicts"]) == 1
        assert list(result.data["days"]) == ["Monday"]
        assert result.data["time_range"] == ["10:00", "11:30"]

    def test_empty(self):
        result = schedule_report([])
        assert result.data["time_range"] is None

    def test_invalid_item(self):
        result = schedule_report([{"day": "Monday"}])
        assert not result.ok
        assert result.to_dict()["type"] == "schedule"
        assert "missing" in result.error
