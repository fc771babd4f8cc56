"""Duration settings for the focus/break cycle."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional, Union

from loguru import logger

from .storage import Storage
from .types import IntervalType

logger = logger.bind(module="focusdash.settings")

SETTINGS_KEY = "focusdash.pomodoroSettings.v1"

DEFAULTS = {
    "focus_minutes": 25,
    "short_break_minutes": 5,
    "long_break_minutes": 15,
    "intervals_before_long": 4,
}

# snake_case field -> key in the persisted blob
_RECORD_KEYS = {
    "focus_minutes": "focusMinutes",
    "short_break_minutes": "shortBreakMinutes",
    "long_break_minutes": "longBreakMinutes",
    "intervals_before_long": "intervalsBeforeLong",
}


@dataclass(frozen=True)
class Settings:
    """The four positive integers that shape the cycle."""

    focus_minutes: int = DEFAULTS["focus_minutes"]
    short_break_minutes: int = DEFAULTS["short_break_minutes"]
    long_break_minutes: int = DEFAULTS["long_break_minutes"]
    intervals_before_long: int = DEFAULTS["intervals_before_long"]

    def minutes_for(self, interval_type: IntervalType) -> int:
        if interval_type is IntervalType.FOCUS:
            return self.focus_minutes
        if interval_type is IntervalType.SHORT_BREAK:
            return self.short_break_minutes
        return self.long_break_minutes

    def to_record(self) -> dict:
        return {_RECORD_KEYS[name]: value for name, value in asdict(self).items()}


def _as_positive_int(value: Any) -> Optional[int]:
    """Return ``value`` as a positive int, or None when it cannot be one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        number = int(value)
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if number > 0 else None


def coerce_positive_int(value: Any, field_name: str = "value") -> int:
    """Coerce ``value`` to a positive integer, falling back to 1.

    Bad input never raises: a zero, negative or non-numeric duration becomes
    the smallest legal value so the timer keeps working.
    """
    number = _as_positive_int(value)
    if number is None:
        logger.warning(f"Invalid {field_name}={value!r}, using 1")
        return 1
    return number


SettingsInput = Union[Settings, Mapping[str, Any]]


class SettingsStore:
    """Loads, validates and persists :class:`Settings`."""

    def __init__(self, storage: Storage, key: str = SETTINGS_KEY):
        self.storage = storage
        self.key = key
        self._current = Settings()

    @property
    def current(self) -> Settings:
        return self._current

    def load(self) -> Settings:
        """Merge the persisted blob over the defaults, one field at a time."""
        record = self.storage.get(self.key)
        values = dict(DEFAULTS)
        if isinstance(record, Mapping):
            for name, record_key in _RECORD_KEYS.items():
                if record_key not in record:
                    continue
                number = _as_positive_int(record[record_key])
                if number is None:
                    logger.warning(
                        f"Ignoring malformed {record_key}={record[record_key]!r} in stored settings"
                    )
                    continue
                values[name] = number
        elif record is not None:
            logger.warning(f"Ignoring stored settings of type {type(record).__name__}")
        self._current = Settings(**values)
        return self._current

    def save(self, settings: SettingsInput) -> Settings:
        """Coerce every field to a positive integer, persist and return the result."""
        if isinstance(settings, Settings):
            raw = asdict(settings)
        else:
            raw = {name: settings.get(name, getattr(self._current, name)) for name in DEFAULTS}
        coerced = Settings(**{name: coerce_positive_int(raw[name], name) for name in DEFAULTS})
        self._current = coerced
        self.storage.set(self.key, coerced.to_record())
        logger.info(f"Settings saved: {coerced}")
        return coerced

    def get_duration_seconds(self, interval_type: IntervalType) -> int:
        return self._current.minutes_for(interval_type) * 60
