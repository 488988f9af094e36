"""
Application-wide settings using Pydantic.

Environment variables (prefix MONOPOLY_):
    MONOPOLY_STARTING_MONEY            - Cash each player joins with (default: 1500)
    MONOPOLY_GO_SALARY                 - Salary for passing GO (default: 200)
    MONOPOLY_JAIL_FINE                 - Fine to leave jail (default: 50)
    MONOPOLY_TURN_TIMEOUT_SECONDS      - Seconds before a turn can be forced (default: 30)
    MONOPOLY_TURN_GRACE_PERIOD_SECONDS - Minimum idle time before enforcement (default: 10)
    MONOPOLY_MAX_TIMEOUT_PENALTIES     - Penalties before forced bankruptcy (default: 3)
    MONOPOLY_LOG_LEVEL                 - Root log level for the server (default: INFO)
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from panda_monopoly import config


class EngineSettings(BaseSettings):
    """Deployment-level tunables for the rules engine and server."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="MONOPOLY_",
    )

    starting_money: int = Field(
        default=config.STARTING_MONEY,
        gt=0,
        description="Cash balance and net worth a player joins with.",
    )
    go_salary: int = Field(default=config.GO_SALARY, ge=0)
    jail_fine: int = Field(default=config.JAIL_FINE, ge=0)
    max_jail_turns: int = Field(default=config.MAX_JAIL_TURNS, gt=0)
    initial_bank_balance: int = Field(default=config.INITIAL_BANK_BALANCE, ge=0)

    turn_timeout_seconds: int = Field(
        default=config.DEFAULT_TURN_TIMEOUT_SECONDS,
        gt=0,
        description="Elapsed turn time after which an enforcer may force the turn to end.",
    )
    turn_grace_period_seconds: int = Field(
        default=config.DEFAULT_GRACE_PERIOD_SECONDS,
        ge=0,
        description="Minimum idle time since a player's last action before enforcement.",
    )
    max_timeout_penalties: int = Field(default=config.MAX_TIMEOUT_PENALTIES, gt=0)
    timeout_enforcement_enabled: bool = True

    max_active_trades: int = Field(default=config.MAX_ACTIVE_TRADES, gt=0)
    trade_expiry_seconds: int = Field(default=config.TRADE_EXPIRY_SECONDS, gt=0)

    log_level: str = Field(default="INFO", description="Root logging level for the server.")

    @field_validator("turn_grace_period_seconds", mode="after")
    @classmethod
    def grace_within_timeout(cls, value: int, info):
        """The grace period cannot outlast the timeout it guards."""
        timeout = info.data.get("turn_timeout_seconds", config.DEFAULT_TURN_TIMEOUT_SECONDS)
        if value > timeout:
            raise ValueError(
                f"turn_grace_period_seconds ({value}) exceeds turn_timeout_seconds ({timeout})"
            )
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return str(value or "INFO").upper()


@lru_cache
def get_engine_settings() -> EngineSettings:
    """Return cached engine settings instance."""
    return EngineSettings()
