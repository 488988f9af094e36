"""
Money management and event logging.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from panda_monopoly.exceptions import (
    ArithmeticSafetyError,
    GameErrorCode,
    InvalidActionError,
)

U64_MAX = 2**64 - 1


def checked_add(a: int, b: int) -> int:
    """Add two unsigned amounts, raising instead of wrapping past u64."""
    result = a + b
    if result > U64_MAX:
        raise ArithmeticSafetyError(GameErrorCode.ARITHMETIC_OVERFLOW, f"{a} + {b} overflows")
    return result


def checked_sub(a: int, b: int) -> int:
    """Subtract two unsigned amounts, raising instead of going negative."""
    if b > a:
        raise ArithmeticSafetyError(GameErrorCode.ARITHMETIC_UNDERFLOW, f"{a} - {b} underflows")
    return a - b


class EventType(Enum):
    """Types of game events."""

    GAME_CREATED = "game_created"
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"
    GAME_START = "game_start"
    TURN_START = "turn_start"
    TURN_END = "turn_end"
    DICE_ROLL = "dice_roll"
    MOVE = "move"
    PASS_GO = "pass_go"
    LAND = "land"

    PURCHASE = "purchase"
    PURCHASE_DECLINED = "purchase_declined"

    RENT_PAYMENT = "rent_payment"
    TAX_PAYMENT = "tax_payment"
    PAYMENT_DEFERRED = "payment_deferred"

    CARD_DRAW = "card_draw"
    CARD_EFFECT = "card_effect"

    BUILD_HOUSE = "build_house"
    BUILD_HOTEL = "build_hotel"
    SELL_BUILDING = "sell_building"

    MORTGAGE = "mortgage"
    UNMORTGAGE = "unmortgage"

    GO_TO_JAIL = "go_to_jail"
    JAIL_ATTEMPT = "jail_attempt"
    JAIL_RELEASE = "jail_release"

    TRANSFER = "transfer"
    BANKRUPTCY = "bankruptcy"
    GAME_END = "game_end"
    REWARD_CLAIMED = "reward_claimed"

    TRADE_PROPOSED = "trade_proposed"
    TRADE_ACCEPTED = "trade_accepted"
    TRADE_REJECTED = "trade_rejected"
    TRADE_CANCELLED = "trade_cancelled"
    TRADE_EXPIRED = "trade_expired"

    TURN_TIMEOUT = "turn_timeout"
    TIMEOUT_BANKRUPTCY = "timeout_bankruptcy"


@dataclass
class GameEvent:
    """A logged event in the game."""

    event_type: EventType
    player_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "player_id": self.player_id,
            "details": dict(self.details),
        }

    def __repr__(self) -> str:
        player_str = self.player_id if self.player_id is not None else "System"
        return f"[{player_str}] {self.event_type.value}: {self.details}"


class EventLog:
    """Manages the game event log."""

    def __init__(self):
        self.events: List[GameEvent] = []

    def log(self, event_type: EventType, player_id: Optional[str] = None, **details: Any) -> None:
        """Log a game event."""
        self.events.append(GameEvent(event_type, player_id, details))

    def of_type(self, event_type: EventType) -> List[GameEvent]:
        return [e for e in self.events if e.event_type == event_type]


class Bank:
    """
    Holds the bank's cash balance and the building supply.

    Houses and hotels are finite; returning buildings can never push a pool
    above the supply the game started with.
    """

    def __init__(self, balance: int, house_limit: int = 32, hotel_limit: int = 12):
        self.balance = balance
        self.house_limit = house_limit
        self.hotel_limit = hotel_limit
        self.houses_available = house_limit
        self.hotels_available = hotel_limit

    def collect(self, amount: int) -> None:
        """Money flowing into the bank (purchases, taxes, fines, liquidation)."""
        self.balance = checked_add(self.balance, amount)

    def pay(self, amount: int) -> None:
        """Money flowing out of the bank (salary, mortgages, card rewards)."""
        self.balance = checked_sub(self.balance, amount)

    def can_buy_houses(self, count: int) -> bool:
        """Check if enough houses are available."""
        return self.houses_available >= count

    def can_buy_hotel(self) -> bool:
        """Check if a hotel is available."""
        return self.hotels_available > 0

    def can_return_houses(self, count: int) -> bool:
        return self.houses_available + count <= self.house_limit

    def take_houses(self, count: int) -> None:
        if not self.can_buy_houses(count):
            raise InvalidActionError(
                GameErrorCode.NOT_ENOUGH_HOUSES_IN_BANK,
                f"Bank has {self.houses_available} houses, {count} needed",
            )
        self.houses_available -= count

    def return_houses(self, count: int) -> None:
        if not self.can_return_houses(count):
            raise ArithmeticSafetyError(
                GameErrorCode.ARITHMETIC_OVERFLOW,
                f"Returning {count} houses exceeds supply of {self.house_limit}",
            )
        self.houses_available += count

    def take_hotel(self) -> None:
        if not self.can_buy_hotel():
            raise InvalidActionError(GameErrorCode.NOT_ENOUGH_HOTELS_IN_BANK, "No hotels left in bank")
        self.hotels_available -= 1

    def return_hotels(self, count: int = 1) -> None:
        if self.hotels_available + count > self.hotel_limit:
            raise ArithmeticSafetyError(
                GameErrorCode.ARITHMETIC_OVERFLOW,
                f"Returning {count} hotels exceeds supply of {self.hotel_limit}",
            )
        self.hotels_available += count
