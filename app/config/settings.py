from datetime import time
from typing import Annotated, Any

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from app.domains.scheduling.domain.value_objects import SchedulingPolicy, parse_hhmm


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and ``.env``.
    """

    # API Configuration
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Doctor Scheduling API"
    PROJECT_DESCRIPTION: str = "Doctor availability and appointment scheduling engine"
    VERSION: str = "0.1.0"

    # Environment
    ENVIRONMENT: str = Field("development", description="Runtime environment name")
    DEBUG: bool = Field(False, description="Debug mode")
    LOG_LEVEL: str = Field("INFO", description="Root logging level")

    # PostgreSQL Database Settings
    DB_HOST: str = Field("localhost", description="PostgreSQL host")
    DB_PORT: int = Field(5432, description="PostgreSQL port")
    DB_NAME: str = Field("scheduling", description="Database name")
    DB_USER: str = Field("postgres", description="PostgreSQL user")
    DB_PASSWORD: str | None = Field(None, description="PostgreSQL password")
    DB_ECHO: bool = Field(False, description="Log SQL queries (debug only)")
    DB_CREATE_TABLES: bool = Field(True, description="Create missing scheduling tables at startup")

    # Database connection pool settings
    DB_POOL_SIZE: int = Field(20, description="Connection pool size")
    DB_MAX_OVERFLOW: int = Field(30, description="Maximum pool overflow")
    DB_POOL_RECYCLE: int = Field(3600, description="Recycle connections every X seconds")
    DB_POOL_TIMEOUT: int = Field(30, description="Timeout to obtain a pooled connection")

    # Error tracking
    SENTRY_DSN: str | None = Field(None, description="Sentry DSN; error tracking is off when unset")

    # Scheduling engine
    SCHEDULING_STORAGE_BACKEND: str = Field(
        "sqlalchemy", description="Appointment and working-hours storage: 'sqlalchemy' or 'memory'"
    )
    SCHEDULING_ADVISORY_ENABLED: bool = Field(False, description="Try the slot advisor before deterministic booking")
    SCHEDULING_ADVISORY_CONFIDENCE_THRESHOLD: float = Field(
        0.7, description="Minimum advisor confidence for a suggestion to be used"
    )
    SCHEDULING_REMINDERS_ENABLED: bool = Field(True, description="Schedule appointment reminders")
    SCHEDULING_REMINDER_OFFSETS_HOURS: Annotated[list[int], NoDecode] = Field(
        default=[24, 2], description="Hours before an appointment at which reminders fire"
    )
    SCHEDULING_DEFAULT_TIMEZONE: str = Field("UTC", description="Timezone of days without a template row")
    SCHEDULING_DEFAULT_APPOINTMENT_DURATION: int = Field(30, description="Slot length of days without a template row")
    SCHEDULING_NEXT_AVAILABLE_SEARCH_DAYS: int = Field(30, description="Days scanned by next-available lookups")
    SCHEDULING_TEMPLATE_IMPACT_DAYS: int = Field(28, description="Days checked for bookings affected by a template change")

    # Template rule bounds
    SCHEDULING_MIN_APPOINTMENT_DURATION: int = Field(15, description="Shortest allowed appointment (minutes)")
    SCHEDULING_MAX_APPOINTMENT_DURATION: int = Field(480, description="Longest allowed appointment (minutes)")
    SCHEDULING_MAX_BUFFER_TIME: int = Field(60, description="Longest allowed buffer between slots (minutes)")
    SCHEDULING_MIN_BREAK_MINUTES: int = Field(15, description="Shortest allowed break (minutes)")
    SCHEDULING_MAX_BREAK_MINUTES: int = Field(120, description="Longest allowed break (minutes)")
    SCHEDULING_MIN_WORKING_HOURS: int = Field(1, description="Shortest working day (hours)")
    SCHEDULING_MAX_WORKING_HOURS: int = Field(16, description="Longest working day (hours)")
    SCHEDULING_BUSINESS_HOURS_START: time = Field(time(6, 0), description="Earliest allowed start (HH:MM)")
    SCHEDULING_BUSINESS_HOURS_END: time = Field(time(22, 0), description="Latest allowed end (HH:MM)")
    SCHEDULING_MAX_APPOINTMENTS_PER_DAY: int = Field(32, description="Highest allowed daily appointment limit")

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def __init__(self, **data: Any):
        super().__init__(**data)

    @field_validator("SCHEDULING_REMINDER_OFFSETS_HOURS", mode="before")
    @classmethod
    def parse_reminder_offsets(cls, value):
        if isinstance(value, str):
            value = [int(hours.strip()) for hours in value.split(",") if hours.strip()]
        if isinstance(value, list):
            for hours in value:
                if int(hours) <= 0:
                    raise ValueError("Reminder offsets must be positive hours")
        return value

    @field_validator("SCHEDULING_BUSINESS_HOURS_START", "SCHEDULING_BUSINESS_HOURS_END", mode="before")
    @classmethod
    def parse_business_hours(cls, value):
        if isinstance(value, str):
            return parse_hhmm(value)
        return value

    @field_validator("SCHEDULING_STORAGE_BACKEND")
    @classmethod
    def validate_storage_backend(cls, v):
        if v not in ("sqlalchemy", "memory"):
            raise ValueError("SCHEDULING_STORAGE_BACKEND must be 'sqlalchemy' or 'memory'")
        return v

    @field_validator("SCHEDULING_ADVISORY_CONFIDENCE_THRESHOLD")
    @classmethod
    def validate_confidence_threshold(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError("SCHEDULING_ADVISORY_CONFIDENCE_THRESHOLD must be between 0 and 1")
        return v

    @field_validator("DB_POOL_SIZE")
    @classmethod
    def validate_pool_size(cls, v):
        if v < 1:
            raise ValueError("DB_POOL_SIZE must be at least 1")
        if v > 100:
            raise ValueError("DB_POOL_SIZE should not exceed 100")
        return v

    @field_validator("DB_MAX_OVERFLOW")
    @classmethod
    def validate_max_overflow(cls, v):
        if v < 0:
            raise ValueError("DB_MAX_OVERFLOW must be 0 or greater")
        if v > 200:
            raise ValueError("DB_MAX_OVERFLOW should not exceed 200")
        return v

    @computed_field
    @property
    def database_url(self) -> str:
        """PostgreSQL connection URL"""
        if self.DB_PASSWORD:
            return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        return f"postgresql://{self.DB_USER}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @computed_field
    @property
    def is_development(self) -> bool:
        return self.DEBUG or self.ENVIRONMENT.lower() in ["development", "dev", "local"]

    def to_policy(self) -> SchedulingPolicy:
        """Build the immutable scheduling policy handed to each service."""
        return SchedulingPolicy(
            min_appointment_duration=self.SCHEDULING_MIN_APPOINTMENT_DURATION,
            max_appointment_duration=self.SCHEDULING_MAX_APPOINTMENT_DURATION,
            max_buffer_time=self.SCHEDULING_MAX_BUFFER_TIME,
            min_break_minutes=self.SCHEDULING_MIN_BREAK_MINUTES,
            max_break_minutes=self.SCHEDULING_MAX_BREAK_MINUTES,
            min_working_hours=self.SCHEDULING_MIN_WORKING_HOURS,
            max_working_hours=self.SCHEDULING_MAX_WORKING_HOURS,
            business_hours_start=self.SCHEDULING_BUSINESS_HOURS_START,
            business_hours_end=self.SCHEDULING_BUSINESS_HOURS_END,
            max_appointments_per_day=self.SCHEDULING_MAX_APPOINTMENTS_PER_DAY,
            default_appointment_duration=self.SCHEDULING_DEFAULT_APPOINTMENT_DURATION,
            default_timezone=self.SCHEDULING_DEFAULT_TIMEZONE,
            advisory_enabled=self.SCHEDULING_ADVISORY_ENABLED,
            advisory_confidence_threshold=self.SCHEDULING_ADVISORY_CONFIDENCE_THRESHOLD,
            reminder_offsets_hours=tuple(self.SCHEDULING_REMINDER_OFFSETS_HOURS),
            next_available_search_days=self.SCHEDULING_NEXT_AVAILABLE_SEARCH_DAYS,
            template_impact_days=self.SCHEDULING_TEMPLATE_IMPACT_DAYS,
        )


# Settings singleton
_settings_instance = None


def get_settings() -> Settings:
    """
    Return the cached settings instance so the environment is read once.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
