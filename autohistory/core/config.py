"""Library configuration (settings and environment).

Single source of truth for autohistory configuration. Uses pydantic-settings
with .env support. History capture settings are read when listeners are
installed; database settings only when the bundled engine helpers are used.
"""

from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment and .env.

    All settings have defaults; nothing is required unless the bundled
    async engine (autohistory.infrastructure.persistence.database) is used,
    in which case DATABASE_URL must be set.
    """

    # App
    app_name: str = "autohistory"
    debug: bool = False

    # Database (only for get_db / get_db_transactional)
    database_url: str = ""
    database_echo: bool = False
    # Optional pool overrides (None = use defaults in database.py)
    db_pool_size: int | None = None
    db_max_overflow: int | None = None

    # History capture
    history_enabled: bool = True
    # Nesting cap for serialized values; deeper values are written as null.
    history_max_depth: int = 64
    # JSON indent for stored diffs; None writes compact single-line JSON.
    history_indent: int | None = 2
    # Numeric columns are compared after rounding to this many places.
    history_decimal_places: int = 2
    # Drop staged insertions when the session rolls back.
    history_discard_on_rollback: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_history_limits(self) -> "Settings":
        """Validate history capture limits.

        - history_max_depth must be at least 1.
        - history_decimal_places must not be negative.
        """
        if self.history_max_depth < 1:
            raise ValueError(
                f"history_max_depth must be >= 1, got: {self.history_max_depth}"
            )
        if self.history_decimal_places < 0:
            raise ValueError(
                "history_decimal_places must be >= 0, "
                f"got: {self.history_decimal_places}"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
