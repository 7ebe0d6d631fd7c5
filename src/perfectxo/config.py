"""Environment-driven settings for the PerfectXO server."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

ENV_PREFIX = "PERFECTXO_"
LOG_LEVELS: Tuple[str, ...] = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _read(env: Mapping[str, str], name: str, default: str) -> str:
    return env.get(ENV_PREFIX + name, default)


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _read(env, name, str(default))
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    ai_delay_min: float = 0.4
    ai_delay_max: float = 0.9
    log_level: str = "INFO"

    @property
    def ai_think_delay(self) -> Tuple[float, float]:
        return self.ai_delay_min, self.ai_delay_max

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``PERFECTXO_*`` variables (``os.environ`` by default)."""

        if env is None:
            env = os.environ

        raw_port = _read(env, "PORT", str(cls.port))
        try:
            port = int(raw_port)
        except ValueError as exc:
            raise ValueError(
                f"{ENV_PREFIX}PORT must be an integer, got {raw_port!r}"
            ) from exc

        log_level = _read(env, "LOG_LEVEL", cls.log_level).upper()
        if log_level not in LOG_LEVELS:
            raise ValueError(
                f"{ENV_PREFIX}LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, "
                f"got {log_level!r}"
            )

        delay_min = max(0.0, _read_float(env, "AI_DELAY_MIN", cls.ai_delay_min))
        delay_max = max(delay_min, _read_float(env, "AI_DELAY_MAX", cls.ai_delay_max))

        return cls(
            host=_read(env, "HOST", cls.host),
            port=port,
            ai_delay_min=delay_min,
            ai_delay_max=delay_max,
            log_level=log_level,
        )
