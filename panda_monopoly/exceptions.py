"""
Custom exception hierarchy for the Monopoly rules engine and server.

Every error carries a GameErrorCode naming the precondition or invariant
that was violated, so callers can decide whether retrying with different
parameters makes sense.
"""

from enum import Enum
from typing import Optional


class GameErrorCode(Enum):
    """Machine-readable reason attached to every engine error."""

    # Turn state
    NOT_PLAYER_TURN = "NotPlayerTurn"
    ALREADY_ROLLED_DICE = "AlreadyRolledDice"
    HAS_NOT_ROLLED_DICE = "HasNotRolledDice"
    MUST_HANDLE_SPECIAL_SPACE = "MustHandleSpecialSpace"
    MUST_DECLARE_BANKRUPTCY = "MustDeclareBankruptcy"
    INVALID_SPECIAL_SPACE_ACTION = "InvalidSpecialSpaceAction"

    # Economy
    INSUFFICIENT_FUNDS = "InsufficientFunds"

    # Property
    PROPERTY_NOT_PURCHASABLE = "PropertyNotPurchasable"
    PROPERTY_ALREADY_OWNED = "PropertyAlreadyOwned"
    PROPERTY_NOT_OWNED_BY_PLAYER = "PropertyNotOwnedByPlayer"
    PROPERTY_MORTGAGED = "PropertyMortgaged"
    PROPERTY_NOT_MORTGAGED = "PropertyNotMortgaged"
    CANNOT_MORTGAGE_WITH_BUILDINGS = "CannotMortgageWithBuildings"

    # Building
    DOES_NOT_OWN_COLOR_GROUP = "DoesNotOwnColorGroup"
    CANNOT_BUILD_ON_PROPERTY_TYPE = "CannotBuildOnPropertyType"
    MAX_HOUSES_REACHED = "MaxHousesReached"
    INVALID_HOUSE_COUNT = "InvalidHouseCount"
    PROPERTY_HAS_HOTEL = "PropertyHasHotel"
    MUST_BUILD_EVENLY = "MustBuildEvenly"
    MUST_SELL_EVENLY = "MustSellEvenly"
    NO_HOUSES_TO_SELL = "NoHousesToSell"
    NO_HOTEL_TO_SELL = "NoHotelToSell"
    NOT_ENOUGH_HOUSES_IN_BANK = "NotEnoughHousesInBank"
    NOT_ENOUGH_HOTELS_IN_BANK = "NotEnoughHotelsInBank"

    # Input
    INVALID_DICE_ROLL = "InvalidDiceRoll"
    INVALID_BOARD_POSITION = "InvalidBoardPosition"
    INVALID_CARD_INDEX = "InvalidCardIndex"

    # Trading
    TRADE_NOT_FOUND = "TradeNotFound"
    CANNOT_TRADE_WITH_SELF = "CannotTradeWithSelf"
    TRADE_EXPIRED = "TradeExpired"
    NOT_AUTHORIZED_FOR_TRADE = "NotAuthorizedForTrade"
    INVALID_TRADE_PROPOSAL = "InvalidTradeProposal"
    TRADE_NOT_PENDING = "TradeNotPending"
    TOO_MANY_ACTIVE_TRADES = "TooManyActiveTrades"

    # Lifecycle
    GAME_NOT_FOUND = "GameNotFound"
    GAME_NOT_IN_PROGRESS = "GameNotInProgress"
    GAME_ALREADY_STARTED = "GameAlreadyStarted"
    MAX_PLAYERS_REACHED = "MaxPlayersReached"
    MIN_PLAYERS_NOT_MET = "MinPlayersNotMet"
    PLAYER_ALREADY_EXISTS = "PlayerAlreadyExists"
    PLAYER_NOT_FOUND = "PlayerNotFound"
    PLAYER_NOT_IN_JAIL = "PlayerNotInJail"
    NO_GET_OUT_OF_JAIL_CARDS = "NoGetOutOfJailCards"
    CREATOR_CANNOT_LEAVE_GAME = "CreatorCannotLeaveGame"
    GAME_CANNOT_END = "GameCannotEnd"
    GAME_NOT_FINISHED = "GameNotFinished"
    NOT_WINNER = "NotWinner"
    PRIZE_ALREADY_CLAIMED = "PrizeAlreadyClaimed"
    NO_PRIZE_TO_CLAIM = "NoPrizeToClaim"
    UNAUTHORIZED = "Unauthorized"

    # Arithmetic safety
    ARITHMETIC_OVERFLOW = "ArithmeticOverflow"
    ARITHMETIC_UNDERFLOW = "ArithmeticUnderflow"

    # Timeout enforcement
    GRACE_PERIOD_NOT_EXPIRED = "GracePeriodNotExpired"
    TIMEOUT_NOT_REACHED = "TimeoutNotReached"
    PLAYER_HAS_RECENT_ACTIVITY = "PlayerHasRecentActivity"
    INSUFFICIENT_TIMEOUT_PENALTIES = "InsufficientTimeoutPenalties"
    TIMEOUT_ENFORCEMENT_DISABLED = "TimeoutEnforcementDisabled"


class MonopolyError(Exception):
    """Base exception for all game-related errors."""

    def __init__(self, code: GameErrorCode, message: Optional[str] = None):
        self.code = code
        self.message = message or code.value
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.code.value}: {self.message})"


class GameNotFoundError(MonopolyError):
    """Game does not exist."""

    def __init__(self, game_id: str):
        super().__init__(GameErrorCode.GAME_NOT_FOUND, f"Game {game_id} not found")
        self.game_id = game_id


class InvalidActionError(MonopolyError):
    """Action is not legal in the current state."""


class InsufficientFundsError(MonopolyError):
    """Player cannot cover a payment that has no soft-fail path."""

    def __init__(self, required: int, available: int):
        super().__init__(
            GameErrorCode.INSUFFICIENT_FUNDS,
            f"Insufficient funds: need ${required}, have ${available}",
        )
        self.required = required
        self.available = available


class ArithmeticSafetyError(MonopolyError):
    """Checked money or supply arithmetic left its valid range."""


class InvalidPositionError(MonopolyError):
    """Board position, dice value or card index is out of range."""


class TradeError(MonopolyError):
    """Trade proposal or resolution failed."""


class TimeoutEnforcementError(MonopolyError):
    """Forced turn progress is not allowed yet."""
