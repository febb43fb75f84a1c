"""Course-grade formulas, required-final forecasts and letter grades.

Total = 0.6 * RegTerm + 0.4 * Final, where RegTerm is the mean of RegMid
and RegEnd. A final strictly between 25 and 50 is the FX band (paid
retake exam), so the required final is never forecast below 50.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

COURSE_TERM_WEIGHT = 0.6
COURSE_FINAL_WEIGHT = 0.4
PASSING_THRESHOLD = 50
PASSING_TARGET_TOTAL = 50.1
SCHOLARSHIP_THRESHOLD = 70
HIGH_SCHOLARSHIP_THRESHOLD = 90
FX_MIN_EXCLUSIVE = 25
FX_MAX_EXCLUSIVE = 50
RETAKE_THRESHOLD = 25

NOT_ACHIEVABLE = "Not achievable (>100)"


@dataclass(frozen=True)
class LetterGradeInfo:
    min: float
    letter: str
    numeric: str
    traditional: str


LETTER_GRADE_SCALE = (
    LetterGradeInfo(95, "A", "4.0", "Excellent"),
    LetterGradeInfo(90, "A-", "3.67", "Excellent"),
    LetterGradeInfo(85, "B+", "3.33", "Good"),
    LetterGradeInfo(80, "B", "3.0", "Good"),
    LetterGradeInfo(75, "B-", "2.67", "Good"),
    LetterGradeInfo(70, "C+", "2.33", "Good"),
    LetterGradeInfo(65, "C", "2.0", "Satisfactory"),
    LetterGradeInfo(60, "C-", "1.67", "Satisfactory"),
    LetterGradeInfo(55, "D+", "1.33", "Satisfactory"),
    LetterGradeInfo(50, "D", "1.0", "Satisfactory"),
    LetterGradeInfo(25, "FX", "0", "Fail"),
    LetterGradeInfo(0, "F", "0", "Fail"),
)


@dataclass(frozen=True)
class CourseStatus:
    text: str
    tone: str  # "ok" or "warn"


def parse_input_value(raw_value: Any) -> float | None:
    """Parse a form-style input. Blank or non-numeric values yield None."""
    if raw_value is None:
        return None
    if isinstance(raw_value, (int, float)) and not isinstance(raw_value, bool):
        value = float(raw_value)
    else:
        text = str(raw_value).strip()
        if text == "":
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    return value if math.isfinite(value) else None


def is_percentage(value: float | None) -> bool:
    return value is not None and math.isfinite(value) and 0 <= value <= 100


def format_score(score: float, digits: int = 2) -> str:
    """Fixed decimals with ties rounded away from zero (92.125 -> "92.13").

    The tie is decided on the exact binary value, so 2.675 (stored as
    2.67499...) still gives "2.67".
    """
    if score == 0:
        score = 0.0
    quantum = Decimal(1).scaleb(-digits)
    return str(Decimal(score).quantize(quantum, rounding=ROUND_HALF_UP))


def calculate_reg_term(reg_mid: float, reg_end: float) -> float:
    return (reg_mid + reg_end) / 2


def calculate_course_total(reg_term: float, final_score: float) -> float:
    return COURSE_TERM_WEIGHT * reg_term + COURSE_FINAL_WEIGHT * final_score


def required_final_for_target(reg_term: float, target_score: float) -> str:
    """Final exam score needed to reach ``target_score`` as a display string.

    The answer is floored at the top of the FX band: a lower final would
    fail the course regardless of the total.
    """
    final_by_formula = (target_score - COURSE_TERM_WEIGHT * reg_term) / COURSE_FINAL_WEIGHT
    required = max(final_by_formula, FX_MAX_EXCLUSIVE)

    if required > 100:
        return NOT_ACHIEVABLE
    if final_by_formula <= FX_MAX_EXCLUSIVE:
        return f"{format_score(FX_MAX_EXCLUSIVE, 1)} (retake-safe minimum)"
    return format_score(required, 1)


def required_final_for_passing(reg_term: float) -> str:
    return required_final_for_target(reg_term, PASSING_TARGET_TOTAL)


def required_finals(
    reg_term: float, pass_target: float = PASSING_TARGET_TOTAL
) -> dict[str, str]:
    """Forecasts for passing, scholarship and high scholarship.

    The final-target view aims just above 50 (``PASSING_TARGET_TOTAL``); the
    course-grade view uses ``PASSING_THRESHOLD`` itself.
    """
    return {
        "pass": required_final_for_target(reg_term, pass_target),
        "scholarship": required_final_for_target(reg_term, SCHOLARSHIP_THRESHOLD),
        "high_scholarship": required_final_for_target(reg_term, HIGH_SCHOLARSHIP_THRESHOLD),
    }


def letter_grade_info(total_score: float | None) -> LetterGradeInfo | None:
    if not is_percentage(total_score):
        return None
    for step in LETTER_GRADE_SCALE:
        if total_score >= step.min:
            return step
    return None


def resolve_reg_term(
    reg_mid: float | None, reg_end: float | None, reg_term: float | None = None
) -> float | None:
    """A valid explicit RegTerm wins, otherwise the mean of RegMid and RegEnd."""
    if is_percentage(reg_term):
        return reg_term
    if is_percentage(reg_mid) and is_percentage(reg_end):
        return calculate_reg_term(reg_mid, reg_end)
    return None


def course_status(
    reg_term: float | None,
    reg_mid: float | None,
    final_score: float | None,
    total: float | None,
) -> CourseStatus:
    """Describe the course outcome, checking failure conditions first."""
    if reg_term is None:
        return CourseStatus("Set RegTerm directly or enter valid RegMid and RegEnd.", "warn")
    if final_score is None:
        return CourseStatus("Enter a final score to see your result.", "warn")
    if not is_percentage(final_score):
        return CourseStatus("Final score must be between 0 and 100.", "warn")
    if total is None:
        return CourseStatus("-", "warn")

    if reg_mid is not None and reg_mid < RETAKE_THRESHOLD and reg_term < RETAKE_THRESHOLD:
        return CourseStatus("Course retake required: RegMid < 25 and RegTerm < 25.", "warn")
    if final_score <= FX_MIN_EXCLUSIVE:
        return CourseStatus("Not passed: Final is 25 or below.", "warn")
    if final_score < FX_MAX_EXCLUSIVE:
        return CourseStatus("FX status: Final is between 25 and 50 (paid retake exam).", "warn")
    if total < PASSING_THRESHOLD:
        return CourseStatus("Not passed: total score is below 50.", "warn")
    if total >= HIGH_SCHOLARSHIP_THRESHOLD:
        return CourseStatus("Passed. Eligible for high scholarship (≥ 90).", "ok")
    if total >= SCHOLARSHIP_THRESHOLD:
        return CourseStatus("Passed. Eligible for scholarship (≥ 70).", "ok")
    return CourseStatus("Passed the course (≥ 50).", "ok")


def needed_final_score(
    current_grade: float, desired_grade: float, final_weight_percent: float
) -> tuple[float | None, str, str]:
    """Generic "what do I need on the final" calculator.

    Args:
        current_grade: Current course percentage before the final
        desired_grade: Target course percentage
        final_weight_percent: Weight of the final exam (0 < w <= 100)

    Returns:
        Tuple of (needed score or None when inputs are invalid, message, tone)
    """
    valid = (
        is_percentage(current_grade)
        and is_percentage(desired_grade)
        and final_weight_percent is not None
        and math.isfinite(final_weight_percent)
        and 0 < final_weight_percent <= 100
    )
    if not valid:
        return None, "Please enter valid percentages.", "warn"

    final_weight = final_weight_percent / 100
    needed = (desired_grade - current_grade * (1 - final_weight)) / final_weight

    if needed <= 0:
        return (
            needed,
            f"You already meet your target. Even 0% on the final keeps about {format_score(desired_grade, 1)}%.",
            "ok",
        )
    if needed > 100:
        return (
            needed,
            f"You would need {format_score(needed, 1)}% on the final. This target may not be achievable.",
            "warn",
        )
    return needed, f"You need {format_score(needed, 1)}% on the final exam.", "ok"
