"""Application configuration from the environment and an optional .env file."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

STATE_FILE_NAME = "state.json"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in ("0", "false", "off", "no")


@dataclass
class AppConfig:
    """Where state lives and how noisy the app is."""

    data_dir: Path = field(default_factory=lambda: Path.home() / ".focusdash")
    log_level: str = "WARNING"
    log_file: Optional[Path] = None
    sound_enabled: bool = True

    @property
    def storage_path(self) -> Path:
        return self.data_dir / STATE_FILE_NAME

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "AppConfig":
        if dotenv:
            load_dotenv()
        log_file = os.getenv("FOCUSDASH_LOG_FILE")
        return cls(
            data_dir=Path(os.getenv("FOCUSDASH_DATA_DIR", str(Path.home() / ".focusdash"))).expanduser(),
            log_level=os.getenv("FOCUSDASH_LOG_LEVEL", "WARNING").upper(),
            log_file=Path(log_file).expanduser() if log_file else None,
            sound_enabled=_env_flag("FOCUSDASH_SOUND", True),
        )
