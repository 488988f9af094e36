"""
Game configuration settings.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from panda_monopoly.settings import EngineSettings


BOARD_SIZE = 40
MIN_PLAYERS = 2
MAX_PLAYERS = 4

STARTING_MONEY = 1500
GO_SALARY = 200
JAIL_FINE = 50
MAX_JAIL_TURNS = 3
MAX_DOUBLES = 3

TOTAL_HOUSES = 32
TOTAL_HOTELS = 12
HOUSES_PER_HOTEL = 4
INITIAL_BANK_BALANCE = 1_000_000

DEFAULT_TURN_TIMEOUT_SECONDS = 30
DEFAULT_GRACE_PERIOD_SECONDS = 10
MAX_TIMEOUT_PENALTIES = 3

MAX_ACTIVE_TRADES = 20
TRADE_EXPIRY_SECONDS = 3600

# Board landmarks
GO_POSITION = 0
JAIL_POSITION = 10
FREE_PARKING_POSITION = 20
GO_TO_JAIL_POSITION = 30


@dataclass
class GameConfig:
    """Configuration for a Monopoly game."""

    starting_money: int = STARTING_MONEY
    go_salary: int = GO_SALARY
    jail_fine: int = JAIL_FINE
    max_jail_turns: int = MAX_JAIL_TURNS
    mortgage_interest_rate: float = 0.10

    house_limit: int = TOTAL_HOUSES
    hotel_limit: int = TOTAL_HOTELS
    initial_bank_balance: int = INITIAL_BANK_BALANCE

    min_players: int = MIN_PLAYERS
    max_players: int = MAX_PLAYERS

    turn_timeout_seconds: int = DEFAULT_TURN_TIMEOUT_SECONDS
    turn_grace_period_seconds: int = DEFAULT_GRACE_PERIOD_SECONDS
    max_timeout_penalties: int = MAX_TIMEOUT_PENALTIES
    timeout_enforcement_enabled: bool = True

    max_active_trades: int = MAX_ACTIVE_TRADES
    trade_expiry_seconds: int = TRADE_EXPIRY_SECONDS

    entry_fee: int = 0
    time_limit_seconds: Optional[int] = None

    seed: Optional[int] = None

    @classmethod
    def from_settings(cls, settings: "EngineSettings", **overrides) -> "GameConfig":
        """Build a per-game config from deployment settings."""
        values = dict(
            starting_money=settings.starting_money,
            go_salary=settings.go_salary,
            jail_fine=settings.jail_fine,
            max_jail_turns=settings.max_jail_turns,
            initial_bank_balance=settings.initial_bank_balance,
            turn_timeout_seconds=settings.turn_timeout_seconds,
            turn_grace_period_seconds=settings.turn_grace_period_seconds,
            max_timeout_penalties=settings.max_timeout_penalties,
            timeout_enforcement_enabled=settings.timeout_enforcement_enabled,
            max_active_trades=settings.max_active_trades,
            trade_expiry_seconds=settings.trade_expiry_seconds,
        )
        values.update(overrides)
        return cls(**values)

    def unmortgage_cost(self, mortgage_value: int) -> int:
        """Mortgage value plus interest, rounded down."""
        return mortgage_value + int(mortgage_value * self.mortgage_interest_rate)
