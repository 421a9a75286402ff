"""Configuration values for the blockchain tutor assistant."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, TypeVar

T = TypeVar("T")


def _env(name: str, default: T, cast: Callable[[str], T]) -> T:
    """Read and convert an environment variable; blank or unparsable values fall back."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    return _env(name, default, str)


def _env_int(name: str, default: int) -> int:
    return _env(name, default, int)


def _env_float(name: str, default: float) -> float:
    return _env(name, default, float)


def _system_api_key() -> str:
    """Host-provided Gemini key. API_KEY wins over GEMINI_API_KEY."""
    return _env_str("API_KEY", _env_str("GEMINI_API_KEY", ""))


@dataclass
class Settings:
    """Runtime settings loaded from environment variables."""

    # Factories run per instance, after load_dotenv() in the entry points.
    system_api_key: str = field(default_factory=_system_api_key)
    gemini_model_name: str = field(default_factory=lambda: _env_str("GEMINI_MODEL", "gemini-2.5-flash"))
    gemini_temperature: float = field(default_factory=lambda: _env_float("GEMINI_TEMPERATURE", 0.7))
    rate_limit_cooldown_seconds: float = field(
        default_factory=lambda: _env_float("RATE_LIMIT_COOLDOWN_SECONDS", 60.0)
    )
    max_attachment_mb: int = field(default_factory=lambda: _env_int("MAX_ATTACHMENT_MB", 10))
    user_credential_path: Path = field(
        default_factory=lambda: Path(_env_str("USER_CREDENTIAL_PATH", "data/user_credential.json"))
    )
    notification_duration_ms: int = field(default_factory=lambda: _env_int("NOTIFICATION_DURATION_MS", 3000))
    log_level: str = field(default_factory=lambda: _env_str("LOG_LEVEL", "WARNING"))

    def __post_init__(self) -> None:
        self.user_credential_path = Path(self.user_credential_path)
        self.log_level = self.log_level.upper()
        if self.rate_limit_cooldown_seconds < 0:
            raise ValueError("rate_limit_cooldown_seconds must be >= 0")
        if self.max_attachment_mb <= 0:
            raise ValueError("max_attachment_mb must be positive")
