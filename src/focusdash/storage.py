"""Keyed JSON persistence for settings and scheduler state.

Storage is a best-effort mirror of the in-memory state: ``get`` falls back to
the caller's default and ``set``/``remove`` report failure through their
return value and the ``on_error`` callback, never by raising.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol

from loguru import logger

logger = logger.bind(module="focusdash.storage")

ErrorCallback = Callable[[str], None]

WRITE_FAILED_MESSAGE = "Storage unavailable. Some data may not be saved."


class Storage(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> bool: ...

    def remove(self, key: str) -> bool: ...


class MemoryStorage:
    """Dict-backed storage. Values are copied through JSON like the file store."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self._data[key] = json.dumps(value)

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    def set(self, key: str, value: Any) -> bool:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError, RecursionError) as e:
            logger.warning(f"Failed to save {key!r} in memory: {e}")
            return False
        return True

    def remove(self, key: str) -> bool:
        self._data.pop(key, None)
        return True


class JsonFileStorage:
    """All keys live in one JSON object on disk."""

    def __init__(self, path: str | Path, on_error: Optional[ErrorCallback] = None):
        self.path = Path(path).expanduser()
        self.on_error = on_error

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object in {self.path}")
        return data

    def _write_all(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        tmp_path.replace(self.path)

    def _report(self, message: str) -> None:
        if self.on_error is not None:
            self.on_error(message)

    def get(self, key: str, default: Any = None) -> Any:
        try:
            data = self._read_all()
        except (OSError, ValueError, RecursionError) as e:
            logger.error(f"Error reading {self.path}: {e}")
            return default
        return data.get(key, default)

    def set(self, key: str, value: Any) -> bool:
        try:
            try:
                data = self._read_all()
            except (ValueError, RecursionError) as e:
                logger.warning(f"Overwriting unreadable {self.path}: {e}")
                data = {}
            data[key] = value
            self._write_all(data)
        except (OSError, TypeError, ValueError, RecursionError) as e:
            logger.warning(f"Failed to save {key!r} to {self.path}: {e}")
            self._report(WRITE_FAILED_MESSAGE)
            return False
        return True

    def remove(self, key: str) -> bool:
        try:
            data = self._read_all()
            if key in data:
                del data[key]
                self._write_all(data)
        except (OSError, ValueError, RecursionError) as e:
            logger.error(f"Error removing {key!r} from {self.path}: {e}")
            return False
        return True
