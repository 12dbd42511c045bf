"""
Application settings for Archcheck.

Loads settings from environment variables or uses defaults.
Provides centralized configuration management.
"""

import os
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field

from .constants import (
    APP_VERSION,
    CLICK_DEBOUNCE_MS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_SESSION_ID,
)
from .paths import get_cache_path

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


@dataclass
class Settings:
    """
    Application settings.

    Can be loaded from environment variables or initialized with defaults.
    """

    # Application info
    app_version: str = APP_VERSION

    # Session cache settings
    cache_type: str = "sqlite"
    cache_path: Path = field(default_factory=get_cache_path)
    persist_selection: bool = False
    session_id: str = DEFAULT_SESSION_ID

    # Interaction settings
    click_debounce_ms: int = CLICK_DEBOUNCE_MS

    # Debug settings
    debug_mode: bool = False
    log_level: str = DEFAULT_LOG_LEVEL  # DEBUG, INFO, WARNING, ERROR

    def __post_init__(self):
        """Normalize values after initialization."""
        if str(self.cache_path) != ":memory:":
            self.cache_path = Path(self.cache_path)
        self.log_level = (self.log_level or DEFAULT_LOG_LEVEL).upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")
        if self.click_debounce_ms < 0:
            raise ValueError(f"click_debounce_ms cannot be negative: {self.click_debounce_ms}")

    @property
    def click_debounce_seconds(self) -> float:
        return self.click_debounce_ms / 1000.0

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Load settings from environment variables.

        Environment variables:
        - ARCHCHECK_CACHE_PATH: Path to SQLite session cache (":memory:" allowed)
        - ARCHCHECK_LOG_LEVEL: Logging level (DEBUG/INFO/WARNING/ERROR)
        - ARCHCHECK_DEBUG: Enable debug mode (true/false)
        - ARCHCHECK_CLICK_DEBOUNCE_MS: Click debounce window in milliseconds
        - ARCHCHECK_PERSIST_SELECTION: Persist selection to the cache (true/false)
        - ARCHCHECK_SESSION_ID: Session key for persisted selection

        Returns:
            Settings instance with values from environment or defaults

        Raises:
            ValueError: If a numeric or enum value is invalid
        """
        debug_mode = _env_bool("ARCHCHECK_DEBUG")
        return cls(
            cache_path=os.getenv("ARCHCHECK_CACHE_PATH") or get_cache_path(),
            log_level=os.getenv("ARCHCHECK_LOG_LEVEL", "DEBUG" if debug_mode else DEFAULT_LOG_LEVEL),
            debug_mode=debug_mode,
            click_debounce_ms=int(os.getenv("ARCHCHECK_CLICK_DEBOUNCE_MS", str(CLICK_DEBOUNCE_MS))),
            persist_selection=_env_bool("ARCHCHECK_PERSIST_SELECTION"),
            session_id=os.getenv("ARCHCHECK_SESSION_ID", DEFAULT_SESSION_ID),
        )

    def to_dict(self) -> dict:
        """Convert settings to dictionary for serialization."""
        return {
            "app_version": self.app_version,
            "cache_type": self.cache_type,
            "cache_path": str(self.cache_path),
            "persist_selection": self.persist_selection,
            "session_id": self.session_id,
            "click_debounce_ms": self.click_debounce_ms,
            "debug_mode": self.debug_mode,
            "log_level": self.log_level,
        }


# Global settings instance (lazy-loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get global settings instance.

    Lazy-loaded on first call. Loads from environment variables.

    Returns:
        Settings instance

    Example:
        >>> from config.settings import get_settings
        >>> settings = get_settings()
        >>> print(settings.cache_path)
    """
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings():
    """
    Reset global settings instance.

    Useful for testing - forces reload from environment on next get_settings() call.
    """
    global _settings
    _settings = None
