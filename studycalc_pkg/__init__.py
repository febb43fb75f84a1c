"""StudyCalc package: expression parser, evaluator, academic calculators and CLI."""

from .evaluator import evaluate

__all__ = [
    "config",
    "parser",
    "evaluator",
    "history",
    "store",
    "grades",
    "gpa",
    "syllabus",
    "schedule",
    "cli",
    "types",
    "api",
    "logging_config",
    "evaluate",
]

# Public API exports

__api_exports__ = [
    "evaluate_expression",
    "validate_expression",
    "course_grade",
    "final_targets",
    "gpa",
    "syllabus_result",
    "schedule_report",
]
