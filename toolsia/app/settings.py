from __future__ import annotations
import os
from dataclasses import dataclass

from toolsia.app.errors import ConfigError


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        v = float(raw)
    except ValueError as e:
        raise ConfigError(f"Invalid number for {name}: {raw!r}") from e
    if v <= 0:
        raise ConfigError(f"{name} must be positive, got {v}")
    return v


@dataclass(frozen=True)
class Settings:
    # Logging
    log_level: str = "INFO"

    # Per-stage wall-clock budget (seconds)
    stage_timeout_s: float = 30.0

    # Basic-tier background removal watermark
    watermark_text: str = "toolsIA"


def load_settings() -> Settings:
    return Settings(
        log_level=os.getenv("TOOLSIA_LOG_LEVEL", "INFO").upper().strip(),
        stage_timeout_s=_get_float("TOOLSIA_STAGE_TIMEOUT_S", 30.0),
        watermark_text=os.getenv("TOOLSIA_WATERMARK_TEXT", "toolsIA"),
    )
