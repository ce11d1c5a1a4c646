"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal, InvalidOperation

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from commission_engine.config.business_constants import (
    CPA_DEFAULT_LEVEL_AMOUNTS,
    CPA_DEFAULT_MIN_BETS,
    CPA_DEFAULT_MIN_DEPOSIT,
    CPA_DEFAULT_MIN_GGR,
    DEFAULT_HIERARCHY_DEPTH,
    INACTIVITY_DECAY_SCHEDULE,
)


def _format_amounts(amounts: tuple[Decimal, ...]) -> str:
    return ",".join(str(amount) for amount in amounts)


def _format_schedule(schedule: tuple[tuple[int, Decimal], ...]) -> str:
    return ",".join(f"{days}:{percent}" for days, percent in schedule)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (cache, event bus and dramatiq broker)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    log_level: str = "INFO"
    log_file: str | None = None

    # CPA eligibility
    cpa_model: str = Field(
        default="A",
        description="Active CPA eligibility model: A (deposit only) or B (deposit + activity)",
    )
    cpa_min_deposit_model_a: Decimal = Field(
        default=CPA_DEFAULT_MIN_DEPOSIT, gt=0,
        description="Minimum single deposit for model A",
    )
    cpa_min_deposit_model_b: Decimal = Field(
        default=CPA_DEFAULT_MIN_DEPOSIT, gt=0,
        description="Minimum single deposit for model B",
    )
    cpa_min_bets: int = Field(
        default=CPA_DEFAULT_MIN_BETS, ge=0,
        description="Bet count after the qualifying deposit (model B)",
    )
    cpa_min_ggr: Decimal = Field(
        default=CPA_DEFAULT_MIN_GGR, ge=0,
        description="Accumulated GGR after the qualifying deposit (model B)",
    )
    cpa_level_amounts: str = Field(
        default=_format_amounts(CPA_DEFAULT_LEVEL_AMOUNTS),
        description="Comma-separated CPA amounts for hierarchy levels 1..N",
    )

    # Revenue share
    inactivity_decay_schedule: str = Field(
        default=_format_schedule(INACTIVITY_DECAY_SCHEDULE),
        description="Comma-separated days:percent pairs for inactivity decay",
    )
    hierarchy_depth: int = Field(
        default=DEFAULT_HIERARCHY_DEPTH, ge=1, le=10,
        description="Number of hierarchy levels that receive commissions",
    )
    revshare_batch_concurrency: int = Field(
        default=4, ge=1, le=64,
        description="Affiliates distributed in parallel by the batch runner",
    )

    # Cache
    category_cache_ttl_seconds: int = Field(default=3600, ge=1)
    carryover_cache_ttl_seconds: int = Field(default=300, ge=1)

    # Event bus
    event_channel: str = "affiliate-events"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ("postgresql://", "postgresql+asyncpg://", "sqlite+aiosqlite://")
        ):
            raise ValueError(
                "DATABASE_URL must start with postgresql://, "
                "postgresql+asyncpg:// or sqlite+aiosqlite://"
            )
        return v

    @field_validator("cpa_model")
    @classmethod
    def validate_cpa_model(cls, v: str) -> str:
        """Validate CPA model selector."""
        model = v.strip().upper()
        if model not in ("A", "B"):
            raise ValueError("CPA_MODEL must be 'A' or 'B'")
        return model

    @field_validator("cpa_level_amounts")
    @classmethod
    def validate_level_amounts(cls, v: str) -> str:
        """Validate comma-separated CPA level amounts."""
        for raw in v.split(","):
            try:
                amount = Decimal(raw.strip())
            except InvalidOperation as exc:
                raise ValueError(f"Invalid CPA level amount: {raw!r}") from exc
            if amount < 0:
                raise ValueError(f"CPA level amount must be non-negative: {raw!r}")
        return v

    @field_validator("inactivity_decay_schedule")
    @classmethod
    def validate_decay_schedule(cls, v: str) -> str:
        """Validate days:percent pairs."""
        if not v.strip():
            return v
        for pair in v.split(","):
            days, sep, percent = pair.partition(":")
            if not sep:
                raise ValueError(f"Invalid decay entry {pair!r}, expected days:percent")
            try:
                int(days.strip())
                Decimal(percent.strip())
            except (ValueError, InvalidOperation) as exc:
                raise ValueError(f"Invalid decay entry {pair!r}") from exc
        return v

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production" and self.database_url.startswith("sqlite"):
            logger.warning(
                "DATABASE_URL points to SQLite in production. "
                "Row-level locking is emulated by database-wide write locks."
            )
        return self

    @property
    def async_database_url(self) -> str:
        """Database URL with an async driver (postgresql:// -> asyncpg)."""
        if self.database_url.startswith("postgresql://"):
            return "postgresql+asyncpg://" + self.database_url[len("postgresql://"):]
        return self.database_url

    def get_level_amounts(self) -> tuple[Decimal, ...]:
        """Parse CPA level amounts."""
        return tuple(Decimal(raw.strip()) for raw in self.cpa_level_amounts.split(","))

    def get_decay_schedule(self) -> tuple[tuple[int, Decimal], ...]:
        """Parse inactivity decay schedule."""
        if not self.inactivity_decay_schedule.strip():
            return ()
        result = []
        for pair in self.inactivity_decay_schedule.split(","):
            days, _, percent = pair.partition(":")
            result.append((int(days.strip()), Decimal(percent.strip())))
        return tuple(result)


# Global settings instance
settings = Settings()
