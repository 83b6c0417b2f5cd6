"""
Runtime configuration.

Values come from the process environment. Entry points load a `.env` file
into the environment before importing this module (see server/main.py).
"""
from __future__ import annotations

import os
import logging
from dataclasses import dataclass
from typing import Optional

LOG_FORMAT = '[%(asctime)s]:%(name)s:(%(levelname)s) - %(message)s'
LOG_DATEFMT = '%H:%M:%S'


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable '{name}' must be an integer, got '{raw}'")


@dataclass(frozen=True)
class Settings:
    # 0 means the undo history is unbounded
    history_limit: int = 256
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3001

    @classmethod
    def from_env(cls) -> 'Settings':
        return cls(
            history_limit=_env_int("COOKGRAPH_HISTORY_LIMIT", cls.history_limit),
            log_level=os.environ.get("COOKGRAPH_LOG_LEVEL", cls.log_level).upper(),
            host=os.environ.get("COOKGRAPH_HOST", cls.host),
            port=_env_int("COOKGRAPH_PORT", cls.port),
        )


settings = Settings.from_env()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure logging ONCE at the entry point of an application."""
    logging.basicConfig(
        level=level or settings.log_level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
