"""Weekly class schedule helpers: conflicts, gaps, grouping and filters."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Iterable

from .logging_config import get_logger
from .types import ValidationError

logger = get_logger("schedule")

DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
DAY_SHORT = {day: day[:3] for day in DAYS}
CLASS_MODES = ("offline", "online")

SLOT_MINUTES = 55
MIN_GAP_SLOTS = 2

_CAMEL_CASE_KEYS = {
    "startTime": "start_time",
    "endTime": "end_time",
    "electiveGroup": "elective_group",
}


@dataclass(frozen=True)
class ScheduleItem:
    id: str
    day: str
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    subject: str
    classroom: str | None = None
    type: str = "lecture"
    lecturer: str | None = None
    elective_group: str = "Base"
    mode: str = "offline"
    notes: str | None = None

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end_time)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Conflict:
    a: ScheduleItem
    b: ScheduleItem
    day: str


@dataclass(frozen=True)
class Gap:
    day: str
    after_item: ScheduleItem
    before_item: ScheduleItem
    minutes: int
    slots: int


def parse_time_to_minutes(time: str) -> int:
    """Convert "HH:MM" to minutes after midnight."""
    try:
        hours, minutes = (int(part) for part in time.split(":"))
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid time '{time}' (expected HH:MM)", "INVALID_TIME") from None
    if not (0 <= hours <= 24 and 0 <= minutes < 60):
        raise ValidationError(f"Invalid time '{time}' (expected HH:MM)", "INVALID_TIME")
    return hours * 60 + minutes


def format_minutes_to_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def overlaps(a: ScheduleItem, b: ScheduleItem) -> bool:
    """Same day and intersecting half-open [start, end) intervals."""
    if a.day != b.day:
        return False
    return a.start_minutes < b.end_minutes and b.start_minutes < a.end_minutes


def detect_conflicts(items: list[ScheduleItem]) -> list[Conflict]:
    conflicts = []
    for i, first in enumerate(items):
        for second in items[i + 1 :]:
            if overlaps(first, second):
                conflicts.append(Conflict(first, second, first.day))
    return conflicts


def group_by_day(items: Iterable[ScheduleItem]) -> dict[str, list[ScheduleItem]]:
    """Items per day in weekday order, each day sorted by start time."""
    grouped: dict[str, list[ScheduleItem]] = {}
    for item in items:
        grouped.setdefault(item.day, []).append(item)
    return {
        day: sorted(grouped[day], key=lambda item: item.start_minutes)
        for day in DAYS
        if day in grouped
    }


def detect_gaps(items: Iterable[ScheduleItem]) -> list[Gap]:
    """Free windows of at least MIN_GAP_SLOTS class slots between two classes."""
    gaps = []
    for day, day_items in group_by_day(items).items():
        for current, following in zip(day_items, day_items[1:]):
            gap = following.start_minutes - current.end_minutes
            slots = gap // SLOT_MINUTES
            if slots >= MIN_GAP_SLOTS:
                gaps.append(Gap(day, current, following, gap, slots))
    return gaps


def filter_items(
    items: Iterable[ScheduleItem],
    enabled_subjects: set[str] | None = None,
    lecturer: str = "",
    mode: str = "",
    day: str = "",
) -> list[ScheduleItem]:
    """Keep items matching every non-empty filter.

    ``enabled_subjects=None`` means all subjects are enabled.
    """
    result = []
    for item in items:
        if enabled_subjects is not None and item.subject not in enabled_subjects:
            continue
        if lecturer and item.lecturer != lecturer:
            continue
        if mode and item.mode != mode:
            continue
        if day and item.day != day:
            continue
        result.append(item)
    return result


def unique_subjects(items: Iterable[ScheduleItem]) -> tuple[list[str], dict[str, str]]:
    """Sorted base subjects and a mapping of elective subject -> elective group."""
    base = set()
    electives: dict[str, str] = {}
    for item in items:
        if item.elective_group == "Base":
            base.add(item.subject)
        else:
            electives[item.subject] = item.elective_group
    return sorted(base), electives


def unique_values(items: Iterable[ScheduleItem], key: str) -> list[str]:
    values = set()
    for item in items:
        value = getattr(item, key)
        if isinstance(value, str) and value:
            values.add(value)
    return sorted(values)


def time_range(items: Iterable[ScheduleItem]) -> tuple[int, int]:
    """(earliest start, latest end) in minutes; (1440, 0) when empty."""
    earliest = 24 * 60
    latest = 0
    for item in items:
        earliest = min(earliest, item.start_minutes)
        latest = max(latest, item.end_minutes)
    return earliest, latest


def item_from_dict(data: dict[str, Any], index: int = 0) -> ScheduleItem:
    """Build and validate a ScheduleItem from a JSON object.

    Accepts both snake_case keys and the camelCase keys used by exported
    browser data (``startTime``, ``endTime``, ``electiveGroup``).
    """
    if not isinstance(data, dict):
        raise ValidationError(
            f"Schedule item {index + 1} must be an object", "INVALID_SCHEDULE"
        )
    data = {_CAMEL_CASE_KEYS.get(key, key): value for key, value in data.items()}
    missing = [key for key in ("day", "start_time", "end_time", "subject") if not data.get(key)]
    if missing:
        raise ValidationError(
            f"Schedule item {index + 1} is missing: {', '.join(missing)}", "INVALID_SCHEDULE"
        )
    day = str(data["day"]).strip().capitalize()
    if day not in DAYS:
        raise ValidationError(
            f"Schedule item {index + 1} has unknown day '{data['day']}'", "INVALID_SCHEDULE"
        )
    item = ScheduleItem(
        id=str(data.get("id") or f"s{index + 1}"),
        day=day,
        start_time=str(data["start_time"]),
        end_time=str(data["end_time"]),
        subject=str(data["subject"]),
        classroom=data.get("classroom"),
        type=str(data.get("type", "lecture")),
        lecturer=data.get("lecturer"),
        elective_group=str(data.get("elective_group", "Base")),
        mode=str(data.get("mode", "offline")),
        notes=data.get("notes"),
    )
    if item.end_minutes <= item.start_minutes:
        raise ValidationError(
            f"Schedule item {index + 1} ends before it starts", "INVALID_SCHEDULE"
        )
    return item


def load_schedule(path: str | Path) -> list[ScheduleItem]:
    """Load schedule items from a JSON file containing a list of objects."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ValidationError(f"Cannot read schedule file {path}: {e}", "INVALID_SCHEDULE") from e

    if isinstance(data, dict):
        data = data.get("items", [])
    if not isinstance(data, list):
        raise ValidationError("Schedule file must contain a list of items", "INVALID_SCHEDULE")

    items = [item_from_dict(row, i) for i, row in enumerate(data)]
    logger.debug(f"Loaded {len(items)} schedule items from {path}")
    return items
