"""Persistent key-value storage for StudyCalc.

This module provides:
- A JSON file store with a narrow get/set interface
- Versioned storage format with fallback to an empty store
- Atomic writes (temp file then rename)
- A lazily created default store under STORE_DIR

Calculators persist their inputs here between runs (GPA rows, syllabus
courses, the scientific-calculator history), one JSON value per key.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from . import config
from .config import STORE_VERSION
from .logging_config import get_logger

logger = get_logger("store")


def _empty_payload() -> dict[str, Any]:
    return {"version": STORE_VERSION, "values": {}}


def load_store_file(path: Path) -> dict[str, Any]:
    """Load the store payload from disk.

    Returns:
        Dictionary with store data: {"version": int, "values": {key: value}}
    """
    if not path.exists():
        return _empty_payload()

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to load store {path}: {e}, starting with empty store")
        return _empty_payload()

    if not isinstance(data, dict) or data.get("version") != STORE_VERSION:
        logger.info(f"Store version mismatch in {path}, starting with empty store")
        return _empty_payload()

    if not isinstance(data.get("values"), dict):
        data["values"] = {}

    logger.debug(f"Loaded {len(data['values'])} store entries from {path}")
    return data


def save_store_file(path: Path, payload: dict[str, Any]) -> bool:
    """Write the store payload to disk atomically.

    Returns:
        True if the file was written, False otherwise
    """
    temp_file = path.with_suffix(".tmp")
    try:
        # Serialize first so an unserializable value never reaches the disk
        text = json.dumps(payload, ensure_ascii=False, indent=2)
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_file.write_text(text, encoding="utf-8")
        temp_file.replace(path)
    except (OSError, TypeError, ValueError) as e:
        logger.warning(f"Failed to save store {path}: {e}")
        return False
    finally:
        temp_file.unlink(missing_ok=True)

    logger.debug(f"Saved {len(payload.get('values', {}))} store entries to {path}")
    return True


class KeyValueStore:
    """JSON-backed key-value store.

    Values must be JSON serializable. Every ``set`` writes through to disk;
    a failed ``set`` is logged and leaves the store as it was.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = (
            Path(path) if path is not None else config.STORE_DIR / config.STORE_FILE_NAME
        )
        self._payload = load_store_file(self.path)

    @property
    def _values(self) -> dict[str, Any]:
        return self._payload["values"]

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> bool:
        """Store ``value`` and write through.

        Returns False when the write fails; the previous value is restored.
        """
        missing = key not in self._values
        previous = self._values.get(key)
        self._values[key] = value
        if self.save():
            return True
        if missing:
            del self._values[key]
        else:
            self._values[key] = previous
        return False

    def delete(self, key: str) -> bool:
        if key not in self._values:
            return False
        del self._values[key]
        self.save()
        return True

    def keys(self) -> list[str]:
        return sorted(self._values)

    def clear(self) -> None:
        self._payload = _empty_payload()
        self.save()

    def save(self) -> bool:
        return save_store_file(self.path, self._payload)

    def reload(self) -> None:
        self._payload = load_store_file(self.path)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)


# Global store, created on first use
_default_store: KeyValueStore | None = None


def get_default_store() -> KeyValueStore:
    """Get or initialize the store under STORE_DIR."""
    global _default_store
    if _default_store is None:
        _default_store = KeyValueStore()
    return _default_store


def reset_default_store() -> None:
    """Forget the cached default store (used when STORE_DIR changes)."""
    global _default_store
    _default_store = None
