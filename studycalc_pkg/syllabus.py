"""Weighted syllabus calculator with attestation sections.

A course is a list of weighted sections. Ordinary sections average the
item percentages. Attestation sections (title contains "attest") treat each
item's ``max_points`` as its share of the section: an item graded 80% with
25 max points contributes 20 points, and the section total is expected to
add up to 100 points.
"""

from __future__ import annotations

import itertools
from dataclasses import asdict, dataclass, field
from typing import Any

from .grades import is_percentage, parse_input_value
from .types import ValidationError

ATTESTATION_SECTION_MAX = 100
DEFAULT_ITEM_MAX_POINTS = 25
MAX_POINTS_TOLERANCE = 0.0001

STANDARD_ATT1_WEIGHT = 30
STANDARD_ATT2_WEIGHT = 30
STANDARD_FINAL_WEIGHT = 40

_ids = itertools.count(1)


def _entity_id(prefix: str) -> str:
    return f"{prefix}-{next(_ids)}"


def _require_object(data: Any, what: str) -> None:
    if not isinstance(data, dict):
        raise ValidationError(f"{what} must be an object", "INVALID_FILE")


def _require_list(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise ValidationError(f"'{key}' must be a list", "INVALID_FILE")
    return value


@dataclass
class SyllabusItem:
    title: str
    max_points: str = str(DEFAULT_ITEM_MAX_POINTS)
    score: str = ""
    id: str = field(default_factory=lambda: _entity_id("item"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyllabusItem":
        _require_object(data, "Syllabus item")
        return cls(
            title=str(data.get("title", "")),
            max_points=_text(data.get("max_points", DEFAULT_ITEM_MAX_POINTS)),
            score=_text(data.get("score", "")),
            id=str(data.get("id") or _entity_id("item")),
        )


@dataclass
class SyllabusSection:
    title: str
    weight: str
    items: list[SyllabusItem] = field(default_factory=list)
    id: str = field(default_factory=lambda: _entity_id("section"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyllabusSection":
        _require_object(data, "Syllabus section")
        return cls(
            title=str(data.get("title", "")),
            weight=_text(data.get("weight", "")),
            items=[SyllabusItem.from_dict(item) for item in _require_list(data, "items")],
            id=str(data.get("id") or _entity_id("section")),
        )


@dataclass
class SyllabusCourse:
    title: str
    sections: list[SyllabusSection] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyllabusCourse":
        _require_object(data, "Syllabus course")
        return cls(
            title=str(data.get("title", "Course")),
            sections=[SyllabusSection.from_dict(s) for s in _require_list(data, "sections")],
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SectionPreset:
    title: str
    weight: str
    items: tuple[tuple[str, float], ...]


DEFAULT_SECTION_PRESETS = (
    SectionPreset(
        "1st Attestation",
        str(STANDARD_ATT1_WEIGHT),
        (("Assignment 1", 25), ("Assignment 2", 25), ("Assignment 3", 25), ("Midterm", 25)),
    ),
    SectionPreset(
        "2nd Attestation",
        str(STANDARD_ATT2_WEIGHT),
        (("Assignment 4", 25), ("Assignment 5", 25), ("Assignment 6", 25), ("Endterm", 25)),
    ),
    SectionPreset("Final Exam", str(STANDARD_FINAL_WEIGHT), (("MCQ", 100),)),
)


@dataclass
class SectionResult:
    section_id: str
    title: str
    score: float
    weight: float
    contribution: float
    graded_items: int
    total_items: int
    is_attestation: bool
    max_points_sum: float
    max_points_mismatch: bool
    overflow_amount: float


@dataclass
class FormulaBreakdown:
    att1_score: float
    att1_weight: float
    att2_score: float
    att2_weight: float
    final_score: float
    final_weight: float
    total: float


@dataclass
class CourseResult:
    section_results: list[SectionResult]
    total_weight: float
    weighted_total: float
    has_invalid_weights: bool
    uses_attestation_structure: bool
    has_attestation_overflow: bool
    formula_breakdown: FormulaBreakdown | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def create_section(title: str, weight: str, items: tuple[tuple[str, float], ...]) -> SyllabusSection:
    return SyllabusSection(
        title=title,
        weight=weight,
        items=[SyllabusItem(item_title, _text(max_points)) for item_title, max_points in items],
    )


def create_course(title: str = "Course 1") -> SyllabusCourse:
    """A course laid out as 1st Attestation 30 / 2nd Attestation 30 / Final 40."""
    return SyllabusCourse(
        title=title,
        sections=[create_section(p.title, p.weight, p.items) for p in DEFAULT_SECTION_PRESETS],
    )


def is_attestation_section(title: str) -> bool:
    return "attest" in title.strip().lower()


def is_final_exam_section(title: str) -> bool:
    normalized = title.strip().lower()
    return "final" in normalized or "exam" in normalized


def uses_standard_attestation_structure(course: SyllabusCourse) -> bool:
    attestations = [s for s in course.sections if is_attestation_section(s.title)]
    finals = [s for s in course.sections if is_final_exam_section(s.title)]
    return len(attestations) == 2 and len(finals) >= 1 and len(course.sections) <= 4


def section_metric_label(title: str) -> str:
    return "Total" if is_attestation_section(title) else "Avg"


def _parse_weight(weight: str) -> float | None:
    value = parse_input_value(weight)
    return value if is_percentage(value) else None


def calculate_section(section: SyllabusSection, weight: float) -> SectionResult:
    is_attest = is_attestation_section(section.title)
    graded = 0
    raw_sum = 0.0
    max_points_sum = 0.0

    for item in section.items:
        item_max = parse_input_value(item.max_points)
        if is_attest and item_max is not None and item_max > 0:
            max_points_sum += item_max

        score = parse_input_value(item.score)
        if score is None:
            continue

        if is_attest:
            if score >= 0:
                share = item_max if item_max is not None and item_max > 0 else DEFAULT_ITEM_MAX_POINTS
                raw_sum += share * (min(score, 100) / 100)
                graded += 1
        elif is_percentage(score):
            raw_sum += score
            graded += 1

    if is_attest and max_points_sum == 0:
        max_points_sum = len(section.items) * DEFAULT_ITEM_MAX_POINTS

    max_points_mismatch = (
        is_attest and abs(max_points_sum - ATTESTATION_SECTION_MAX) > MAX_POINTS_TOLERANCE
    )

    if is_attest:
        section_score = raw_sum
    else:
        section_score = raw_sum / graded if graded else 0.0

    if is_attest:
        normalized = (raw_sum / max_points_sum) * 100 if max_points_sum > 0 else raw_sum
        normalized = min(normalized, 100)
        overflow = max(0.0, raw_sum - max_points_sum)
    else:
        normalized = section_score
        overflow = 0.0

    return SectionResult(
        section_id=section.id,
        title=section.title,
        score=section_score,
        weight=weight,
        contribution=normalized * (weight / 100),
        graded_items=graded,
        total_items=len(section.items),
        is_attestation=is_attest,
        max_points_sum=max_points_sum if is_attest else 0.0,
        max_points_mismatch=max_points_mismatch,
        overflow_amount=overflow,
    )


def _normalized_attestation(result: SectionResult) -> float:
    if result.max_points_sum > 0:
        return min((result.score / result.max_points_sum) * 100, 100)
    return result.score


def calculate_course_result(course: SyllabusCourse) -> CourseResult:
    """Weighted total of every section plus diagnostics.

    Invalid weights count as zero and set ``has_invalid_weights``. When the
    course follows the standard attestation layout, ``formula_breakdown``
    carries the normalized attestation scores next to the final exam.
    """
    total_weight = 0.0
    weighted_total = 0.0
    has_invalid_weights = False
    results: list[SectionResult] = []

    for section in course.sections:
        weight = _parse_weight(section.weight)
        if weight is None:
            has_invalid_weights = True
            weight = 0.0
        total_weight += weight
        result = calculate_section(section, weight)
        weighted_total += result.contribution
        results.append(result)

    uses_attestation = uses_standard_attestation_structure(course)
    breakdown = None
    if uses_attestation:
        attestations = [
            r for s, r in zip(course.sections, results) if is_attestation_section(s.title)
        ]
        finals = [r for s, r in zip(course.sections, results) if is_final_exam_section(s.title)]
        if len(attestations) >= 2 and finals:
            breakdown = FormulaBreakdown(
                att1_score=_normalized_attestation(attestations[0]),
                att1_weight=attestations[0].weight,
                att2_score=_normalized_attestation(attestations[1]),
                att2_weight=attestations[1].weight,
                final_score=finals[0].score,
                final_weight=finals[0].weight,
                total=weighted_total,
            )

    return CourseResult(
        section_results=results,
        total_weight=total_weight,
        weighted_total=weighted_total,
        has_invalid_weights=has_invalid_weights,
        uses_attestation_structure=uses_attestation,
        has_attestation_overflow=any(r.overflow_amount > 0 for r in results),
        formula_breakdown=breakdown,
    )
