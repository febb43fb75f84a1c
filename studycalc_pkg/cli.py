from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from . import config as _config
from .api import (
    course_grade,
    evaluate_expression,
    final_targets,
    gpa,
    schedule_report,
    syllabus_result,
)
from .config import HISTORY_STORE_KEY, VERSION
from .gpa import GPA_STORE_KEY, GpaCourse
from .grades import format_score, needed_final_score, parse_input_value
from .history import History
from .logging_config import get_logger, setup_logging
from .parser import is_balanced
from .schedule import (
    CLASS_MODES,
    DAY_SHORT,
    DAYS,
    filter_items,
    load_schedule,
    unique_subjects,
    unique_values,
)
from .store import KeyValueStore, get_default_store
from .syllabus import create_course, section_metric_label
from .types import ValidationError

logger = get_logger("cli")

SYLLABUS_STORE_KEY = "syllabus-course"

REPL_HELP = """Commands:
  <expression>      Evaluate, e.g. sin(30) + 2^3, 5!, 12%, sqrt(2)
  mode [deg|rad]    Show or switch the angle mode
  history           Show recent results
  clear             Clear the history
  help              Show this help
  quit / exit       Leave
Functions: sin cos tan log (base 10) ln sqrt abs   Constants: pi e"""


def _emit(data: dict[str, Any], output_format: str, human: str) -> None:
    if output_format == "json":
        print(json.dumps(data, ensure_ascii=False))
    else:
        print(human)


def _open_store(args: argparse.Namespace) -> KeyValueStore:
    if args.store_dir:
        return KeyValueStore(Path(args.store_dir) / _config.STORE_FILE_NAME)
    return get_default_store()


def print_eval_result(res: dict[str, Any], output_format: str = "human") -> None:
    if not res.get("ok"):
        _emit(res, output_format, f"Error: {res.get('error')}")
        return
    _emit(res, output_format, f"{res['expression']} = {res['result']}")


def _run_eval(args: argparse.Namespace, expression: str) -> int:
    store = None if args.no_history else _open_store(args)
    history = History.load(store) if store is not None else None
    result = evaluate_expression(expression, args.mode, history=history)
    if result.ok and store is not None:
        history.save(store)
    print_eval_result(result.to_dict(), args.format)
    return 0 if result.ok else 1


def repl_loop(args: argparse.Namespace) -> int:
    """Interactive scientific calculator."""
    store = _open_store(args)
    history = History.load(store)
    mode = args.mode
    print(f"StudyCalc {VERSION} scientific calculator ({mode}). Type 'help' for commands.")

    while True:
        try:
            line = input(">>> ").strip()
        except EOFError:
            print()
            return 0
        except KeyboardInterrupt:
            print("\nInterrupted by user.")
            return 0

        if not line:
            continue
        command = line.lower()
        if command in ("quit", "exit"):
            return 0
        if command == "help":
            print(REPL_HELP)
            continue
        if command == "history":
            _print_history(history)
            continue
        if command == "clear":
            history.clear()
            history.save(store)
            print("History cleared.")
            continue
        if command == "mode" or command.startswith("mode "):
            requested = command[4:].strip()
            if requested:
                if requested.upper() not in _config.ANGLE_MODES:
                    print("Error: mode must be DEG or RAD")
                    continue
                mode = requested.upper()
            print(f"Mode: {mode}")
            continue

        result = evaluate_expression(line, mode, history=history)
        if result.ok:
            history.save(store)
            print(f"= {result.display}")
        else:
            print(f"Error: {result.error}")
            balanced, position = is_balanced(line)
            if not balanced:
                print(f"Hint: unbalanced parenthesis at position {position + 1}")


def _print_history(history: History) -> None:
    if not len(history):
        print("No history yet.")
        return
    for entry in history:
        print(f"{entry.expression} = {entry.result}")


def _run_history(args: argparse.Namespace) -> int:
    store = _open_store(args)
    history = History.load(store)
    if args.clear:
        store.delete(HISTORY_STORE_KEY)
        _emit({"ok": True, "cleared": True}, args.format, "History cleared.")
        return 0
    if args.format == "json":
        print(json.dumps({"ok": True, "history": history.to_list()}, ensure_ascii=False))
    else:
        _print_history(history)
    return 0


def _run_grade(args: argparse.Namespace) -> int:
    result = course_grade(
        reg_mid=args.reg_mid,
        reg_end=args.reg_end,
        final_score=args.final,
        reg_term=args.reg_term,
        manual_total=args.total,
    )
    if not result.ok:
        _emit(result.to_dict(), args.format, f"Error: {result.error}")
        return 1

    lines = [
        f"RegTerm: {format_score(result.reg_term)}" if result.reg_term is not None else "RegTerm: -",
        f"Total: {format_score(result.total)}" if result.total is not None else "Total: -",
    ]
    if result.letter:
        lines.append(f"Letter: {result.letter} ({result.grade_points}, {result.traditional})")
    lines.append(f"Status: {result.status}")
    if result.required_final:
        lines.append("Required final:")
        lines.extend(_required_lines(result.required_final))
    _emit(result.to_dict(), args.format, "\n".join(lines))
    return 0


def _required_lines(required: dict[str, str]) -> list[str]:
    return [
        f"  Pass (> 50): {required['pass']}",
        f"  Scholarship (>= 70): {required['scholarship']}",
        f"  High scholarship (>= 90): {required['high_scholarship']}",
    ]


def _run_target(args: argparse.Namespace) -> int:
    if args.reg_term is not None:
        result = final_targets(args.reg_term)
        if not result.ok:
            _emit(result.to_dict(), args.format, f"Error: {result.error}")
            return 1
        _emit(
            result.to_dict(),
            args.format,
            "\n".join([f"RegTerm: {format_score(result.reg_term)}"] + _required_lines(result.required_final)),
        )
        return 0

    needed, message, tone = needed_final_score(
        parse_input_value(args.current),
        parse_input_value(args.desired),
        parse_input_value(args.final_weight),
    )
    data = {"ok": needed is not None, "needed": needed, "message": message, "tone": tone}
    _emit(data, args.format, message)
    return 0 if needed is not None else 1


def _parse_course_arg(raw: str) -> GpaCourse:
    parts = raw.rsplit(":", 2)
    if len(parts) != 3:
        raise ValidationError(f"Course '{raw}' must look like NAME:CREDITS:TOTAL", "INVALID_COURSE")
    name, credits, total = (part.strip() for part in parts)
    return GpaCourse(name=name, credits=credits, total=total)


def _read_json_file(path: str) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ValidationError(f"Cannot read {path}: {e}", "INVALID_FILE") from e


def _run_gpa(args: argparse.Namespace) -> int:
    store = _open_store(args)
    rows: list[GpaCourse] = []
    if args.file:
        data = _read_json_file(args.file)
        if not isinstance(data, list):
            raise ValidationError("GPA file must contain a list of courses", "INVALID_FILE")
        rows.extend(GpaCourse.from_dict(row) for row in data if isinstance(row, dict))
    rows.extend(_parse_course_arg(raw) for raw in args.course or [])

    if not rows:
        rows = [GpaCourse.from_dict(row) for row in store.get(GPA_STORE_KEY, []) if isinstance(row, dict)]
    elif args.save:
        store.set(GPA_STORE_KEY, [row.to_dict() for row in rows])

    result = gpa(rows)
    _emit(result.to_dict(), args.format, result.summary)
    return 0


def _run_syllabus(args: argparse.Namespace) -> int:
    store = _open_store(args)
    if args.template:
        print(json.dumps(create_course().to_dict(), ensure_ascii=False, indent=2))
        return 0

    if args.file:
        course_data = _read_json_file(args.file)
        if not isinstance(course_data, dict):
            raise ValidationError("Syllabus file must contain a course object", "INVALID_FILE")
    else:
        course_data = store.get(SYLLABUS_STORE_KEY) or create_course().to_dict()

    result = syllabus_result(course_data)
    if not result.ok:
        _emit(result.to_dict(), args.format, f"Error: {result.error}")
        return 1
    if args.file and args.save:
        store.set(SYLLABUS_STORE_KEY, course_data)

    data = result.data
    lines = [f"{data['title']}"]
    for section_result in data["section_results"]:
        label = section_metric_label(section_result["title"])
        score = format_score(section_result["score"])
        contribution = format_score(section_result["contribution"])
        line = (
            f"  {section_result['title']} ({section_result['weight']:g}%): "
            f"{label} {score} -> {contribution}"
        )
        if section_result["max_points_mismatch"]:
            line += f"  [max points sum {section_result['max_points_sum']:g} != 100]"
        lines.append(line)
    total = format_score(data["weighted_total"])
    lines.append(f"Weighted total: {total} (weights sum {data['total_weight']:g}%)")
    if data["has_invalid_weights"]:
        lines.append("Warning: some section weights are not valid percentages.")
    if data["has_attestation_overflow"]:
        lines.append("Warning: an attestation exceeds its maximum points.")
    _emit(result.to_dict(), args.format, "\n".join(lines))
    return 0


def _run_schedule(args: argparse.Namespace) -> int:
    items = load_schedule(args.file)
    if args.list:
        base, electives = unique_subjects(items)
        data = {
            "ok": True,
            "subjects": base,
            "electives": electives,
            "lecturers": unique_values(items, "lecturer"),
        }
        lines = ["Subjects: " + ", ".join(base)]
        lines.extend(f"Elective: {subject} ({group})" for subject, group in sorted(electives.items()))
        lines.append("Lecturers: " + ", ".join(data["lecturers"]))
        _emit(data, args.format, "\n".join(lines))
        return 0

    items = filter_items(
        items,
        enabled_subjects=set(args.subject) if args.subject else None,
        lecturer=args.lecturer or "",
        mode=args.class_mode or "",
        day=args.day or "",
    )
    result = schedule_report(items)
    if not result.ok:
        _emit(result.to_dict(), args.format, f"Error: {result.error}")
        return 1

    data = result.data
    lines = []
    for day, day_items in data["days"].items():
        lines.append(f"{DAY_SHORT[day]}:")
        for item in day_items:
            room = item["classroom"] or item["mode"]
            lines.append(f"  {item['start_time']}-{item['end_time']}  {item['subject']} ({item['type']}, {room})")
    if data["conflicts"]:
        lines.append("Conflicts:")
        for c in data["conflicts"]:
            lines.append(
                f"  {c['day']}: {c['a']['subject']} {c['a']['start_time']}-{c['a']['end_time']}"
                f" overlaps {c['b']['subject']} {c['b']['start_time']}-{c['b']['end_time']}"
            )
    else:
        lines.append("No conflicts.")
    for g in data["gaps"]:
        lines.append(f"Gap on {g['day']}: {g['minutes']} min ({g['slots']} slots) between {g['after']} and {g['before']}")
    _emit(result.to_dict(), args.format, "\n".join(lines))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="studycalc",
        description="Academic calculators: scientific expressions, course grade, GPA, syllabus, schedule.",
    )
    parser.add_argument(
        "-e",
        "--eval",
        type=str,
        help="Evaluate one expression and exit (non-interactive)",
        dest="eval_expr",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "human"],
        default="human",
        help="Output format: json (machine-readable) or human (human-readable)",
    )
    parser.add_argument(
        "--mode",
        type=str.upper,
        choices=list(_config.ANGLE_MODES),
        default=_config.DEFAULT_ANGLE_MODE,
        help="Angle mode for sin/cos/tan (default: DEG)",
    )
    parser.add_argument(
        "--no-history", action="store_true", help="Do not record evaluations in the history"
    )
    parser.add_argument("--store-dir", type=str, help="Directory of the persisted store")
    parser.add_argument(
        "-v", "--version", action="store_true", help="Show program version"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging level (default: STUDYCALC_LOG_LEVEL or WARNING)",
    )
    parser.add_argument("--log-file", type=str, help="Write logs to file")

    sub = parser.add_subparsers(dest="command")

    p_eval = sub.add_parser("eval", help="Evaluate an expression")
    p_eval.add_argument("expression", nargs="+", help="Expression, e.g. 'sin(30) + 2^3'")

    sub.add_parser("repl", help="Interactive scientific calculator")

    p_hist = sub.add_parser("history", help="Show recent results")
    p_hist.add_argument("--clear", action="store_true", help="Clear the history")

    p_grade = sub.add_parser("grade", help="Course total, letter grade and status")
    p_grade.add_argument("--reg-mid", type=str)
    p_grade.add_argument("--reg-end", type=str)
    p_grade.add_argument("--reg-term", type=str, help="Overrides the RegMid/RegEnd mean")
    p_grade.add_argument("--final", type=str)
    p_grade.add_argument("--total", type=str, help="Manual total for the letter grade")

    p_target = sub.add_parser("target", help="Required final exam score")
    p_target.add_argument("reg_term", nargs="?", help="RegTerm score")
    p_target.add_argument("--current", type=str, help="Current grade (generic calculator)")
    p_target.add_argument("--desired", type=str, help="Desired grade (generic calculator)")
    p_target.add_argument("--final-weight", type=str, help="Final exam weight in percent")

    p_gpa = sub.add_parser("gpa", help="Credit-weighted GPA")
    p_gpa.add_argument(
        "--course", action="append", help="NAME:CREDITS:TOTAL (repeatable)"
    )
    p_gpa.add_argument("--file", type=str, help="JSON list of {name, credits, total}")
    p_gpa.add_argument("--save", action="store_true", help="Remember these courses")

    p_syl = sub.add_parser("syllabus", help="Weighted syllabus total")
    p_syl.add_argument("--file", type=str, help="JSON course with sections and items")
    p_syl.add_argument("--template", action="store_true", help="Print the default course as JSON")
    p_syl.add_argument("--save", action="store_true", help="Remember this course")

    p_sched = sub.add_parser("schedule", help="Schedule conflicts and gaps")
    p_sched.add_argument("file", help="JSON list of schedule items")
    p_sched.add_argument("--subject", action="append", help="Only these subjects (repeatable)")
    p_sched.add_argument("--lecturer", type=str)
    p_sched.add_argument("--class-mode", choices=list(CLASS_MODES))
    p_sched.add_argument("--day", choices=list(DAYS))
    p_sched.add_argument(
        "--list", action="store_true", help="List subjects, electives and lecturers instead"
    )

    return parser


def main_entry(argv: list[str] | None = None) -> int:
    """
    Main entry point for the StudyCalc CLI.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        level=args.log_level, log_file=args.log_file, json_lines=args.format == "json"
    )

    if args.version:
        print(VERSION)
        return 0

    try:
        if args.eval_expr is not None:
            return _run_eval(args, args.eval_expr)
        if args.command == "eval":
            return _run_eval(args, " ".join(args.expression))
        if args.command == "history":
            return _run_history(args)
        if args.command == "grade":
            return _run_grade(args)
        if args.command == "target":
            if args.reg_term is None and args.current is None:
                parser.error("target needs a RegTerm or --current/--desired/--final-weight")
            return _run_target(args)
        if args.command == "gpa":
            return _run_gpa(args)
        if args.command == "syllabus":
            return _run_syllabus(args)
        if args.command == "schedule":
            return _run_schedule(args)
        return repl_loop(args)
    except ValidationError as e:
        logger.debug(f"Command failed: {e.code}")
        _emit({"ok": False, "error": e.message, "error_code": e.code}, args.format, f"Error: {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main_entry())
