"""
Player state, per-space ownership state, and the turn phase machine.
"""

from dataclasses import dataclass
from typing import Optional, Set, Tuple

from panda_monopoly.spaces import DeckType


class TurnPhase:
    """
    Where a player stands within their turn.

    Exactly one phase holds at a time, so two pending obligations can never
    be outstanding together. Phases that block end_turn are "pending".
    """

    is_pending = False

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class AwaitingRoll(TurnPhase):
    """On turn and free to roll (start of turn, or after doubles)."""


@dataclass(frozen=True)
class AwaitingPropertyDecision(TurnPhase):
    """Landed on an unowned purchasable space: buy or decline."""

    position: int
    is_pending = True


@dataclass(frozen=True)
class AwaitingCardDraw(TurnPhase):
    """Landed on a card space and must draw."""

    deck: DeckType
    is_pending = True


@dataclass(frozen=True)
class AwaitingPayment(TurnPhase):
    """
    Owes rent or tax for the space at `position`.

    payee is the owning player for rent, or None when the bank is owed.
    """

    amount: int
    payee: Optional[str]
    position: int
    is_pending = True


@dataclass(frozen=True)
class AwaitingBankruptcy(TurnPhase):
    """Could not meet an obligation; the next step is bankruptcy resolution."""

    amount: int = 0
    creditor: Optional[str] = None
    is_pending = True


@dataclass(frozen=True)
class Resolved(TurnPhase):
    """Rolled and nothing is outstanding; the turn may close."""


@dataclass(frozen=True)
class Closed(TurnPhase):
    """Not this player's turn."""


@dataclass
class PropertyState:
    """Tracks ownership state of a board space."""

    owner: Optional[str] = None
    houses: int = 0
    has_hotel: bool = False
    is_mortgaged: bool = False

    def is_owned(self) -> bool:
        """Check if the space is owned by any player."""
        return self.owner is not None

    def has_buildings(self) -> bool:
        return self.houses > 0 or self.has_hotel

    def reset(self) -> None:
        """Return the space to the bank: no owner, buildings or mortgage."""
        self.owner = None
        self.houses = 0
        self.has_hotel = False
        self.is_mortgaged = False


class PlayerState:
    """Represents the complete state of a player in the game."""

    def __init__(self, player_id: str, seat: int, starting_money: int):
        self.player_id = player_id
        self.seat = seat
        self.cash_balance = starting_money
        self.net_worth = starting_money
        self.position = 0
        self.in_jail = False
        self.jail_turns = 0
        self.doubles_count = 0
        self.is_bankrupt = False
        self.properties_owned: Set[int] = set()
        self.get_out_of_jail_cards = 0

        self.phase: TurnPhase = Closed()
        self.has_rolled_dice = False
        self.last_dice_roll: Optional[Tuple[int, int]] = None

        self.timeout_penalty_count = 0
        self.total_timeout_penalties = 0
        self.last_action_timestamp = 0

    def reset_turn_state(self) -> None:
        """Clear turn-scoped fields at turn close."""
        self.has_rolled_dice = False
        self.last_dice_roll = None
        self.doubles_count = 0

    def __repr__(self) -> str:
        return (
            f"PlayerState(id='{self.player_id}', seat={self.seat}, "
            f"cash={self.cash_balance}, position={self.position}, "
            f"phase={self.phase.kind}, bankrupt={self.is_bankrupt})"
        )
