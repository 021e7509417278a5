from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True)
class Settings:
    app_name: str = "Protocol Executors"
    log_dir: Path = Path("logs")
    log_level: int = logging.INFO
    default_timeout_seconds: float | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        log_dir = Path(os.getenv("PEX_LOG_DIR", "logs"))

        level_raw = os.getenv("PEX_LOG_LEVEL", "INFO").strip().upper()
        log_level = logging.getLevelName(level_raw)
        if not isinstance(log_level, int):
            log_level = logging.INFO

        timeout_raw = os.getenv("PEX_DEFAULT_TIMEOUT", "")
        try:
            default_timeout = float(timeout_raw) if timeout_raw else None
        except ValueError:
            default_timeout = None
        if default_timeout is not None and default_timeout <= 0:
            default_timeout = None

        return cls(log_dir=log_dir, log_level=log_level, default_timeout_seconds=default_timeout)
