# backend/lesson_scheduling/core/config.py
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment environment name")
    log_level: str = Field(default="INFO", description="Root log level")

    database_url: str = Field(
        default="sqlite+pysqlite:///./lesson_scheduling.db",
        description="SQLAlchemy URL of the scheduling store",
    )
    database_echo: bool = False

    # Optional per-resource mutex; empty disables it
    redis_url: Optional[str] = Field(default=None, description="Redis URL for booking locks")
    booking_lock_ttl_seconds: int = 30
    booking_lock_namespace: str = "lesson_scheduling"

    recurrence_safety_cap: int = Field(
        default=366, description="Maximum loop iterations when expanding one pattern"
    )
    slow_operation_threshold_seconds: float = 1.0

    # Defaults applied when a tenant's scheduling settings row is first created
    default_buffer_time_between_lessons: int = 15
    default_buffer_time_before_first_lesson: int = 0
    default_buffer_time_after_last_lesson: int = 0
    default_min_hours_advance_booking: int = 24
    default_max_days_advance_booking: int = 90
    default_lesson_duration: int = 60
    default_allow_back_to_back_lessons: bool = False
    default_work_start_time: str = "08:00:00"
    default_work_end_time: str = "18:00:00"

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("redis_url", mode="before")
    @classmethod
    def _blank_redis_url(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator(
        "default_buffer_time_between_lessons",
        "default_buffer_time_before_first_lesson",
        "default_buffer_time_after_last_lesson",
        "default_min_hours_advance_booking",
        "default_max_days_advance_booking",
    )
    @classmethod
    def _non_negative(cls, value: int, info: ValidationInfo) -> int:
        if value < 0:
            raise ValueError(f"{info.field_name} must not be negative")
        return value

    @field_validator("default_lesson_duration", "recurrence_safety_cap")
    @classmethod
    def _positive(cls, value: int, info: ValidationInfo) -> int:
        if value <= 0:
            raise ValueError(f"{info.field_name} must be positive")
        return value


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the standard log format at the configured level."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
        format=LOG_FORMAT,
    )


settings = Settings()
