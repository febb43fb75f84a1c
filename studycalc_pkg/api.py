"""Public API for StudyCalc - returns structured objects without side effects."""

from __future__ import annotations

from typing import Any, Iterable

from .evaluator import evaluate, format_number, normalize_angle_mode
from .gpa import GpaCourse, calculate_gpa, gpa_summary
from .grades import (
    PASSING_THRESHOLD,
    calculate_course_total,
    course_status,
    is_percentage,
    letter_grade_info,
    parse_input_value,
    required_finals,
    resolve_reg_term,
)
from .history import History
from .logging_config import get_logger
from .parser import preprocess
from .schedule import (
    ScheduleItem,
    detect_conflicts,
    detect_gaps,
    format_minutes_to_time,
    group_by_day,
    item_from_dict,
    time_range,
)
from .syllabus import SyllabusCourse, calculate_course_result
from .types import (
    CalculatorError,
    CourseGradeResult,
    EvalResult,
    GpaResult,
    ReportResult,
    ValidationError,
)

logger = get_logger("api")


def evaluate_expression(
    expression: str, angle_mode: str = "DEG", history: History | None = None
) -> EvalResult:
    """Evaluate a scientific-calculator expression.

    Args:
        expression: Expression string (e.g., "2+2", "sin(90)", "5!")
        angle_mode: "DEG" or "RAD"
        history: Optional history that receives successful results

    Returns:
        EvalResult with the raw value and its display form

    Example:
        >>> from studycalc_pkg.api import evaluate_expression
        >>> evaluate_expression("3!").display
        '6'
        >>> evaluate_expression("foo(1)").error
        "Unknown function or token in expression: 'foo'"
    """
    try:
        mode = normalize_angle_mode(angle_mode)
        value = evaluate(expression, mode)
        display = format_number(value)
    except CalculatorError as e:
        logger.debug(f"Evaluation of {expression!r} failed: {e}")
        return EvalResult(
            ok=False,
            expression=expression,
            error=e.message,
            error_code=e.code,
        )

    if history is not None:
        history.record(expression, display)
    return EvalResult(
        ok=True, expression=expression, angle_mode=mode, value=value, display=display
    )


def validate_expression(expression: str) -> tuple[bool, str | None]:
    """Validate an expression's characters and tokens without evaluating it.

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> from studycalc_pkg.api import validate_expression
        >>> validate_expression("2 + 2")
        (True, None)
        >>> validate_expression("2 $ 2")
        (False, 'Expression contains unsupported characters.')
    """
    try:
        preprocess(expression)
        return True, None
    except ValidationError as e:
        return False, str(e)


def course_grade(
    reg_mid: Any = None,
    reg_end: Any = None,
    final_score: Any = None,
    reg_term: Any = None,
    manual_total: Any = None,
) -> CourseGradeResult:
    """Compute RegTerm, the course total, letter grade and status.

    Inputs may be numbers or form strings. ``reg_term`` overrides the mean
    of RegMid and RegEnd; ``manual_total`` overrides the computed total for
    the letter grade only.
    """
    mid = parse_input_value(reg_mid)
    end = parse_input_value(reg_end)
    final = parse_input_value(final_score)
    explicit_term = parse_input_value(reg_term)

    if reg_term not in (None, "") and not is_percentage(explicit_term):
        return CourseGradeResult(ok=False, error="RegTerm must be between 0 and 100.")

    term = resolve_reg_term(mid, end, explicit_term)
    total = None
    if term is not None and is_percentage(final):
        total = calculate_course_total(term, final)

    letter_source = total
    if manual_total not in (None, ""):
        letter_source = parse_input_value(manual_total)
        if not is_percentage(letter_source):
            return CourseGradeResult(ok=False, error="Total must be between 0 and 100.")

    status = course_status(term, mid, final, total)
    info = letter_grade_info(letter_source)
    return CourseGradeResult(
        ok=True,
        reg_term=term,
        total=total,
        letter=info.letter if info else None,
        grade_points=info.numeric if info else None,
        traditional=info.traditional if info else None,
        status=status.text,
        tone=status.tone,
        required_final=(
            required_finals(term, PASSING_THRESHOLD) if term is not None else {}
        ),
    )


def final_targets(reg_term: Any) -> CourseGradeResult:
    """Required final scores for pass, scholarship and high scholarship."""
    term = parse_input_value(reg_term)
    if not is_percentage(term):
        return CourseGradeResult(ok=False, error="RegTerm must be between 0 and 100.")
    return CourseGradeResult(ok=True, reg_term=term, required_final=required_finals(term))


def gpa(courses: Iterable[GpaCourse | dict[str, Any]]) -> GpaResult:
    """Credit-weighted GPA of the given course rows."""
    rows = [c if isinstance(c, GpaCourse) else GpaCourse.from_dict(c) for c in courses]
    summary = calculate_gpa(rows)
    return GpaResult(
        ok=True,
        total_credits=summary.total_credits,
        gpa=summary.gpa,
        counted_courses=summary.counted_courses,
        summary=gpa_summary(rows),
    )


def syllabus_result(course: SyllabusCourse | dict[str, Any]) -> ReportResult:
    """Weighted total of a syllabus course."""
    if not isinstance(course, SyllabusCourse):
        try:
            course = SyllabusCourse.from_dict(course)
        except ValidationError as e:
            return ReportResult(ok=False, report_type="syllabus", error=e.message)
    result = calculate_course_result(course)
    data = result.to_dict()
    data["title"] = course.title
    return ReportResult(ok=True, report_type="syllabus", data=data)


def schedule_report(items: Iterable[ScheduleItem | dict[str, Any]]) -> ReportResult:
    """Conflicts, long gaps and per-day layout of a weekly schedule."""
    try:
        parsed = [
            item if isinstance(item, ScheduleItem) else item_from_dict(item, i)
            for i, item in enumerate(items)
        ]
    except ValidationError as e:
        return ReportResult(ok=False, report_type="schedule", error=e.message)

    earliest, latest = time_range(parsed)
    data = {
        "item_count": len(parsed),
        "conflicts": [
            {"day": c.day, "a": c.a.to_dict(), "b": c.b.to_dict()} for c in detect_conflicts(parsed)
        ],
        "gaps": [
            {
                "day": g.day,
                "after": g.after_item.subject,
                "before": g.before_item.subject,
                "minutes": g.minutes,
                "slots": g.slots,
            }
            for g in detect_gaps(parsed)
        ],
        "days": {day: [i.to_dict() for i in day_items] for day, day_items in group_by_day(parsed).items()},
        "time_range": (
            [format_minutes_to_time(earliest), format_minutes_to_time(latest)] if parsed else None
        ),
    }
    return ReportResult(ok=True, report_type="schedule", data=data)
