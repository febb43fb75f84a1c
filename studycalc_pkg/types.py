"""Type definitions and result dataclasses for consistent API responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class EvalResult:
    """Result of evaluating a scientific expression."""

    ok: bool
    expression: str | None = None
    angle_mode: str | None = None
    value: float | None = None
    display: str | None = None
    error: str | None = None
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.expression is not None:
            result_dict["expression"] = self.expression
        if self.angle_mode is not None:
            result_dict["mode"] = self.angle_mode
        if self.value is not None:
            result_dict["value"] = self.value
        if self.display is not None:
            result_dict["result"] = self.display
        if self.error is not None:
            result_dict["error"] = self.error
        if self.error_code is not None:
            result_dict["error_code"] = self.error_code
        return result_dict

    def __repr__(self) -> str:
        if not self.ok:
            return f"EvalResult(ok=False, error={self.error!r})"
        return f"EvalResult(ok=True, display={self.display!r}, mode={self.angle_mode!r})"


@dataclass
class CourseGradeResult:
    """Result of the course-grade calculator."""

    ok: bool
    reg_term: float | None = None
    total: float | None = None
    letter: str | None = None
    grade_points: str | None = None
    traditional: str | None = None
    status: str | None = None
    tone: str | None = None
    required_final: dict[str, str] = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        if not self.ok:
            return {"ok": False, "error": self.error}
        return {
            "ok": True,
            "reg_term": self.reg_term,
            "total": self.total,
            "letter": self.letter,
            "grade_points": self.grade_points,
            "traditional": self.traditional,
            "status": self.status,
            "tone": self.tone,
            "required_final": dict(self.required_final),
        }


@dataclass
class GpaResult:
    """Result of the GPA calculator."""

    ok: bool
    total_credits: str = "0"
    gpa: str = "0.00"
    counted_courses: int = 0
    summary: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if not self.ok:
            result_dict["error"] = self.error
            return result_dict
        result_dict.update(
            total_credits=self.total_credits,
            gpa=self.gpa,
            counted_courses=self.counted_courses,
        )
        if self.summary is not None:
            result_dict["summary"] = self.summary
        return result_dict


@dataclass
class ReportResult:
    """Generic wrapper for structured reports (syllabus, schedule)."""

    ok: bool
    report_type: str
    data: dict[str, Any] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok, "type": self.report_type}
        if self.data is not None:
            result_dict.update(self.data)
        if self.error is not None:
            result_dict["error"] = self.error
        return result_dict


class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ParseError(Exception):
    """Raised when an expression cannot be parsed."""

    def __init__(self, message: str, code: str = "SYNTAX_ERROR", position: int | None = None):
        self.message = message
        self.code = code
        self.position = position
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class EvaluationError(Exception):
    """Raised when a parsed expression cannot be evaluated to a finite number."""

    def __init__(self, message: str, code: str = "INVALID_RESULT"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


CalculatorError = (ValidationError, ParseError, EvaluationError)
