from pydantic_settings import BaseSettings
from pydantic import ConfigDict, field_validator
from pathlib import Path
from typing import Literal
from functools import lru_cache
from ..validators.config_validators import normalize_case, require_positive

class Settings(BaseSettings):
    """
    Application settings loaded from environment.
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/bookreview")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False

    # Error messages shown to site visitors / admins
    ERROR_MESSAGE_MAX_LENGTH: int = 200
    LOG_UNMATCHED_ERRORS: bool = True
    PUBLIC_FALLBACK_MESSAGE: str = "Something went wrong. Please try again."
    ADMIN_FALLBACK_MESSAGE: str = "An error occurred."

    # --- Derived settings ---
    @property
    def record_unmatched_errors(self) -> bool:
        """
        Whether unmatched public error messages are written to the diagnostics logger.

        Only development and testing runs record them; the raw text of an unknown
        backend error must never reach production logs through this path.
        """
        return self.LOG_UNMATCHED_ERRORS and self.ENV in ("development", "testing")

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    def normalize_log_level(cls, v: str | None) -> str | None:
        """
        Normalize LOG_LEVEL to uppercase so "debug" in the environment is accepted.
        """
        return normalize_case(v, upper=True)

    @field_validator("LOG_FORMAT", mode="before")
    def normalize_log_format(cls, v: str | None) -> str | None:
        return normalize_case(v, upper=False)

    @field_validator("ERROR_MESSAGE_MAX_LENGTH")
    def check_max_length(cls, v: int) -> int:
        return require_positive(v, "ERROR_MESSAGE_MAX_LENGTH")

    model_config = ConfigDict(
        # .env sits next to the package root (src/bookreview/.env)
        env_file=str(Path(__file__).parent.parent / ".env"),
        env_file_encoding="utf-8"
    )

# Settings never change for the life of the process, so build them once.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
