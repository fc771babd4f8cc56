"""loguru sink setup."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

LOG_FORMAT = "{time:HH:mm:ss} | {level: <7} | {extra[module]} - {message}"


def setup_logger(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Replace loguru's default sink with stderr and an optional rotating file."""
    logger.remove()
    logger.configure(extra={"module": "focusdash"})
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level="DEBUG", format=LOG_FORMAT, rotation="1 MB", retention=3)
