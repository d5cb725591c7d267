from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


def env_int(name: str, default: int, environ: Optional[Mapping[str, str]] = None) -> int:
    """Reads a positive integer from the environment, falling back to default when unset or invalid."""
    env = os.environ if environ is None else environ
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("[config] %s=%r is not an integer; using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("[config] %s=%r must be positive; using %s", name, raw, default)
        return default
    return value


@dataclass(frozen=True)
class EngineSettings:
    """Presentation timings. They never change moves or matching, only when things happen."""
    cooldown_seconds: float = 0.9
    win_delay_seconds: float = 0.4
    tick_seconds: float = 1.0

    def __post_init__(self) -> None:
        for name in ("cooldown_seconds", "win_delay_seconds", "tick_seconds"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'EngineSettings':
        return cls(
            cooldown_seconds=env_int('MEMORY_COOLDOWN_MS', 900, environ) / 1000.0,
            win_delay_seconds=env_int('MEMORY_WIN_DELAY_MS', 400, environ) / 1000.0,
            tick_seconds=env_int('MEMORY_TICK_MS', 1000, environ) / 1000.0,
        )
