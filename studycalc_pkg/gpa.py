"""Credit-weighted GPA on the 4.0 scale."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable

from .grades import format_score, is_percentage, letter_grade_info, parse_input_value

GPA_SCALE = (
    (95, 4.0),
    (90, 3.67),
    (85, 3.33),
    (80, 3.0),
    (75, 2.67),
    (70, 2.33),
    (65, 2.0),
    (60, 1.67),
    (55, 1.33),
    (50, 1.0),
    (0, 0.0),
)

GPA_STORE_KEY = "gpa-courses"


@dataclass
class GpaCourse:
    """One row of the GPA table. Fields hold raw user input."""

    name: str = ""
    credits: str = ""
    total: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GpaCourse":
        return cls(
            name=str(data.get("name", "") or ""),
            credits=str(data.get("credits", "") if data.get("credits") is not None else ""),
            total=str(data.get("total", "") if data.get("total") is not None else ""),
        )

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class GpaSummary:
    total_credits: str
    gpa: str
    counted_courses: int


def total_to_grade_points(total: float) -> float:
    for minimum, points in GPA_SCALE:
        if total >= minimum:
            return points
    return 0.0


def _counted(course: GpaCourse) -> tuple[float, float] | None:
    credits = parse_input_value(course.credits)
    total = parse_input_value(course.total)
    if credits is None or credits <= 0 or not is_percentage(total):
        return None
    return credits, total


def _format_credits(credits: float) -> str:
    rounded = round(credits * 100) / 100
    return str(int(rounded)) if rounded.is_integer() else str(rounded)


def calculate_gpa(courses: Iterable[GpaCourse]) -> GpaSummary:
    """Weighted GPA over rows with positive credits and a 0-100 total.

    Rows with missing or invalid values are skipped rather than rejected,
    so a half-filled table still yields a GPA for the completed rows.
    """
    sum_points = 0.0
    sum_credits = 0.0
    counted = 0

    for course in courses:
        row = _counted(course)
        if row is None:
            continue
        credits, total = row
        sum_points += credits * total_to_grade_points(total)
        sum_credits += credits
        counted += 1

    if sum_credits == 0:
        return GpaSummary("0", "0.00", 0)
    return GpaSummary(
        _format_credits(sum_credits), format_score(sum_points / sum_credits), counted
    )


def gpa_summary(courses: list[GpaCourse]) -> str:
    """Plain-text table suitable for copying, one line per course."""
    lines = []
    for course in courses:
        total = parse_input_value(course.total)
        name = course.name or "Untitled"
        credits = course.credits or "-"
        if is_percentage(total):
            info = letter_grade_info(total)
            points = total_to_grade_points(total)
            tot = format_score(total)
            grade = f"{info.letter} ({format_score(points)})"
        else:
            tot = "-"
            grade = "-"
        lines.append(f"{name} | {credits} cr | {tot}% | {grade}")

    summary = calculate_gpa(courses)
    lines.append("---")
    lines.append(f"Total Credits: {summary.total_credits}")
    lines.append(f"GPA: {summary.gpa}")
    return "\n".join(lines)
