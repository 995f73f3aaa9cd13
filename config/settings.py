"""Configuration settings loaded from .env file."""

from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

from models.enums import ReorderStrategy


class Settings(BaseSettings):
    """Application settings, loaded from .env file.

    Authentication is external; ``default_user_id`` stands in for the
    identifier the auth provider would supply to the CLI.
    """

    # Ownership
    default_user_id: str = "local"

    # Database
    sqlite_db_path: Path = Path("./data/penwright.db")
    store_timeout_seconds: float = 10.0

    # Books
    default_target_word_count: int = 50000

    # Autosave
    autosave_debounce_seconds: float = 30.0
    autosave_max_retries: int = 5
    autosave_max_backoff_seconds: float = 300.0

    # Ordering
    reorder_strategy: ReorderStrategy = ReorderStrategy.TRANSACTION

    # Proofreading
    llm_model_proofreading: str = "claude-sonnet-4-5"

    # Logging
    log_dir: Path = Path("./data/logs")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @field_validator("autosave_debounce_seconds", "store_timeout_seconds")
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Delay and timeout seconds must be > 0")
        return v

    @field_validator("autosave_max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("autosave_max_retries must be >= 0")
        return v

    @field_validator("default_target_word_count")
    @classmethod
    def validate_target(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("default_target_word_count must be positive")
        return v

    @field_validator("sqlite_db_path", "log_dir")
    @classmethod
    def ensure_parent_dirs(cls, v: Path) -> Path:
        v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @model_validator(mode="after")
    def validate_backoff_range(self) -> "Settings":
        if self.autosave_max_backoff_seconds < self.autosave_debounce_seconds:
            raise ValueError(
                f"autosave_max_backoff_seconds ({self.autosave_max_backoff_seconds}) must be at "
                f"least autosave_debounce_seconds ({self.autosave_debounce_seconds})"
            )
        return self


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
