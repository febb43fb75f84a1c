"""Recent-results history for the scientific calculator."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable, Iterator

from .config import HISTORY_STORE_KEY, MAX_HISTORY
from .store import KeyValueStore


@dataclass(frozen=True)
class HistoryEntry:
    expression: str
    result: str


class History:
    """Most-recent-first list of successful evaluations, capped at ``limit``."""

    def __init__(self, limit: int = MAX_HISTORY, entries: Iterable[HistoryEntry] = ()):
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self._entries: list[HistoryEntry] = list(entries)[:limit]

    def record(self, expression: str, result: str) -> HistoryEntry:
        entry = HistoryEntry(expression, result)
        self._entries.insert(0, entry)
        del self._entries[self.limit :]
        return entry

    def clear(self) -> None:
        self._entries.clear()

    @property
    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def latest(self) -> HistoryEntry | None:
        return self._entries[0] if self._entries else None

    def to_list(self) -> list[dict[str, str]]:
        return [asdict(entry) for entry in self._entries]

    @classmethod
    def from_list(cls, data: Any, limit: int = MAX_HISTORY) -> "History":
        """Build a history from stored data, skipping malformed rows."""
        entries = []
        if isinstance(data, list):
            for row in data:
                if (
                    isinstance(row, dict)
                    and isinstance(row.get("expression"), str)
                    and isinstance(row.get("result"), str)
                ):
                    entries.append(HistoryEntry(row["expression"], row["result"]))
        return cls(limit=limit, entries=entries)

    @classmethod
    def load(
        cls, store: KeyValueStore, key: str = HISTORY_STORE_KEY, limit: int = MAX_HISTORY
    ) -> "History":
        return cls.from_list(store.get(key, []), limit=limit)

    def save(self, store: KeyValueStore, key: str = HISTORY_STORE_KEY) -> None:
        store.set(key, self.to_list())

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
