"""
Peer-to-peer trading protocol.

Trade flow:
1. Proposer creates a trade of a declared shape
2. Receiver accepts or rejects; proposer may cancel
3. Pending trades past their expiry are reaped by a cleanup sweep

Nothing is escrowed, so acceptance re-validates both sides before the
cash and property legs are swapped in one step.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

from panda_monopoly.exceptions import GameErrorCode, TradeError
from panda_monopoly.money import EventLog, EventType, checked_add, checked_sub
from panda_monopoly.spaces import OwnableSpace

if TYPE_CHECKING:
    from panda_monopoly.game import GameState
    from panda_monopoly.player import PlayerState


class TradeType(Enum):
    """Shapes a trade can take."""

    MONEY_ONLY = "money_only"
    PROPERTY_ONLY = "property_only"
    MONEY_FOR_PROPERTY = "money_for_property"
    PROPERTY_FOR_MONEY = "property_for_money"


class TradeStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


@dataclass
class Trade:
    """
    A trade proposal between two players.

    proposer_money and proposer_property flow from proposer to receiver;
    receiver_money and receiver_property flow the other way.
    """

    trade_id: int
    proposer: str
    receiver: str
    trade_type: TradeType
    proposer_money: int = 0
    receiver_money: int = 0
    proposer_property: Optional[int] = None
    receiver_property: Optional[int] = None
    status: TradeStatus = TradeStatus.PENDING
    created_at: int = 0
    expires_at: int = 0

    def is_pending(self) -> bool:
        return self.status == TradeStatus.PENDING

    def is_expired(self, now: int) -> bool:
        return now > self.expires_at

    def to_dict(self) -> dict:
        return {
            "trade_id": self.trade_id,
            "proposer": self.proposer,
            "receiver": self.receiver,
            "trade_type": self.trade_type.value,
            "proposer_money": self.proposer_money,
            "receiver_money": self.receiver_money,
            "proposer_property": self.proposer_property,
            "receiver_property": self.receiver_property,
            "status": self.status.value,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
        }

    def __repr__(self) -> str:
        return (
            f"Trade(#{self.trade_id} {self.proposer}->{self.receiver} "
            f"{self.trade_type.value}, {self.status.value})"
        )


def _invalid(message: str) -> TradeError:
    return TradeError(GameErrorCode.INVALID_TRADE_PROPOSAL, message)


def validate_shape(
    trade_type: TradeType,
    proposer_money: int,
    receiver_money: int,
    proposer_property: Optional[int],
    receiver_property: Optional[int],
) -> None:
    """Check that the money and property fields match the declared shape exactly."""
    if proposer_money < 0 or receiver_money < 0:
        raise _invalid("Trade amounts cannot be negative")

    if trade_type == TradeType.MONEY_ONLY:
        if proposer_property is not None or receiver_property is not None:
            raise _invalid("Money-only trade cannot include property")
        if proposer_money == 0 and receiver_money == 0:
            raise _invalid("Money-only trade must move some money")
    elif trade_type == TradeType.PROPERTY_ONLY:
        if proposer_money or receiver_money:
            raise _invalid("Property-only trade cannot include money")
        if proposer_property is None and receiver_property is None:
            raise _invalid("Property-only trade must include a property")
    elif trade_type == TradeType.MONEY_FOR_PROPERTY:
        if proposer_money == 0 or receiver_property is None:
            raise _invalid("Money-for-property needs proposer money and a receiver property")
        if receiver_money or proposer_property is not None:
            raise _invalid("Money-for-property only moves proposer money and receiver property")
    elif trade_type == TradeType.PROPERTY_FOR_MONEY:
        if proposer_property is None or receiver_money == 0:
            raise _invalid("Property-for-money needs a proposer property and receiver money")
        if proposer_money or receiver_property is not None:
            raise _invalid("Property-for-money only moves proposer property and receiver money")


def asset_value(game: "GameState", position: int) -> int:
    """Net-worth weight of a traded space: price, less the mortgage taken against it."""
    space = game.board.get_ownable_space(position)
    value = space.price
    if game.properties[position].is_mortgaged:
        value -= space.mortgage_value
    return value


def _validate_holdings(
    game: "GameState",
    player: "PlayerState",
    money: int,
    position: Optional[int],
) -> None:
    if player.cash_balance < money:
        raise TradeError(
            GameErrorCode.INSUFFICIENT_FUNDS,
            f"{player.player_id} has ${player.cash_balance}, trade needs ${money}",
        )
    if position is None:
        return
    space = game.board.get_space(position)
    if not isinstance(space, OwnableSpace):
        raise TradeError(GameErrorCode.PROPERTY_NOT_PURCHASABLE, f"{space.name} cannot be traded")
    state = game.properties[position]
    if state.owner != player.player_id or position not in player.properties_owned:
        raise TradeError(
            GameErrorCode.PROPERTY_NOT_OWNED_BY_PLAYER,
            f"{player.player_id} does not own {space.name}",
        )
    if state.has_buildings():
        raise _invalid(f"{space.name} has buildings; sell them before trading")


class TradeManager:
    """
    Manages active trades and trade history.
    At most max_active_trades proposals may be pending at once.
    """

    def __init__(self, event_log: EventLog, max_active_trades: int = 20, expiry_seconds: int = 3600):
        self.event_log = event_log
        self.max_active_trades = max_active_trades
        self.expiry_seconds = expiry_seconds
        self.active_trades: Dict[int, Trade] = {}
        self.next_trade_id = 1
        self.trade_history: List[Trade] = []

    def get_trade(self, trade_id: int) -> Trade:
        trade = self.active_trades.get(trade_id)
        if trade is None:
            raise TradeError(GameErrorCode.TRADE_NOT_FOUND, f"Trade {trade_id} not found")
        return trade

    def get_trades_for_player(self, player_id: str) -> List[Trade]:
        return [
            t for t in self.active_trades.values()
            if t.proposer == player_id or t.receiver == player_id
        ]

    def _close(self, trade: Trade, status: TradeStatus, event_type: EventType, actor: Optional[str]) -> None:
        trade.status = status
        del self.active_trades[trade.trade_id]
        self.trade_history.append(trade)
        self.event_log.log(
            event_type,
            player_id=actor,
            trade_id=trade.trade_id,
            proposer=trade.proposer,
            receiver=trade.receiver,
        )

    def create_trade(
        self,
        game: "GameState",
        proposer_id: str,
        receiver_id: str,
        trade_type: TradeType,
        proposer_money: int = 0,
        receiver_money: int = 0,
        proposer_property: Optional[int] = None,
        receiver_property: Optional[int] = None,
    ) -> Trade:
        """Validate and record a new pending proposal."""
        game.require_in_progress()
        if proposer_id == receiver_id:
            raise TradeError(GameErrorCode.CANNOT_TRADE_WITH_SELF, "Cannot trade with yourself")
        proposer = game.get_player(proposer_id)
        receiver = game.get_player(receiver_id)
        if len(self.active_trades) >= self.max_active_trades:
            raise TradeError(
                GameErrorCode.TOO_MANY_ACTIVE_TRADES,
                f"{self.max_active_trades} trades already pending",
            )

        validate_shape(trade_type, proposer_money, receiver_money, proposer_property, receiver_property)
        _validate_holdings(game, proposer, proposer_money, proposer_property)
        _validate_holdings(game, receiver, receiver_money, receiver_property)

        now = game.now()
        trade = Trade(
            trade_id=self.next_trade_id,
            proposer=proposer_id,
            receiver=receiver_id,
            trade_type=trade_type,
            proposer_money=proposer_money,
            receiver_money=receiver_money,
            proposer_property=proposer_property,
            receiver_property=receiver_property,
            created_at=now,
            expires_at=now + self.expiry_seconds,
        )
        self.next_trade_id += 1
        self.active_trades[trade.trade_id] = trade
        game.touch(proposer)

        self.event_log.log(
            EventType.TRADE_PROPOSED,
            player_id=proposer_id,
            trade_id=trade.trade_id,
            receiver=receiver_id,
            trade_type=trade_type.value,
            proposer_money=proposer_money,
            receiver_money=receiver_money,
            proposer_property=proposer_property,
            receiver_property=receiver_property,
        )
        return trade

    def _require_open(self, game: "GameState", trade: Trade) -> None:
        if not trade.is_pending():
            raise TradeError(GameErrorCode.TRADE_NOT_PENDING, f"Trade {trade.trade_id} is {trade.status.value}")
        if trade.is_expired(game.now()):
            raise TradeError(GameErrorCode.TRADE_EXPIRED, f"Trade {trade.trade_id} has expired")

    def accept_trade(self, game: "GameState", trade_id: int, player_id: str) -> Trade:
        """
        Receiver accepts: re-validate both sides, then swap every leg at once.
        """
        game.require_in_progress()
        trade = self.get_trade(trade_id)
        if player_id != trade.receiver:
            raise TradeError(GameErrorCode.NOT_AUTHORIZED_FOR_TRADE, "Only the receiver can accept")
        self._require_open(game, trade)

        proposer = game.get_player(trade.proposer)
        receiver = game.get_player(trade.receiver)
        _validate_holdings(game, proposer, trade.proposer_money, trade.proposer_property)
        _validate_holdings(game, receiver, trade.receiver_money, trade.receiver_property)

        # Net change per side; computed in full before anything is written.
        proposer_cash = trade.receiver_money - trade.proposer_money
        proposer_worth = proposer_cash
        if trade.proposer_property is not None:
            proposer_worth -= asset_value(game, trade.proposer_property)
        if trade.receiver_property is not None:
            proposer_worth += asset_value(game, trade.receiver_property)

        new_balances = {}
        for player, cash_delta, worth_delta in (
            (proposer, proposer_cash, proposer_worth),
            (receiver, -proposer_cash, -proposer_worth),
        ):
            new_balances[player.player_id] = (
                _apply_delta(player.cash_balance, cash_delta),
                _apply_delta(player.net_worth, worth_delta),
            )

        for player in (proposer, receiver):
            player.cash_balance, player.net_worth = new_balances[player.player_id]
        if trade.proposer_property is not None:
            _move_property(game, trade.proposer_property, proposer, receiver)
        if trade.receiver_property is not None:
            _move_property(game, trade.receiver_property, receiver, proposer)

        game.touch(receiver)
        self._close(trade, TradeStatus.ACCEPTED, EventType.TRADE_ACCEPTED, player_id)
        return trade

    def reject_trade(self, game: "GameState", trade_id: int, player_id: str) -> Trade:
        """Receiver declines the proposal."""
        trade = self.get_trade(trade_id)
        if player_id != trade.receiver:
            raise TradeError(GameErrorCode.NOT_AUTHORIZED_FOR_TRADE, "Only the receiver can reject")
        self._require_open(game, trade)
        self._close(trade, TradeStatus.REJECTED, EventType.TRADE_REJECTED, player_id)
        return trade

    def cancel_trade(self, game: "GameState", trade_id: int, player_id: str) -> Trade:
        """Proposer withdraws the proposal."""
        trade = self.get_trade(trade_id)
        if player_id != trade.proposer:
            raise TradeError(GameErrorCode.NOT_AUTHORIZED_FOR_TRADE, "Only the proposer can cancel")
        if not trade.is_pending():
            raise TradeError(GameErrorCode.TRADE_NOT_PENDING, f"Trade {trade_id} is {trade.status.value}")
        self._close(trade, TradeStatus.CANCELLED, EventType.TRADE_CANCELLED, player_id)
        return trade

    def cancel_trades_for(self, player_id: str) -> List[int]:
        """Cancel every pending trade involving a departing player."""
        closed = []
        for trade in self.get_trades_for_player(player_id):
            self._close(trade, TradeStatus.CANCELLED, EventType.TRADE_CANCELLED, None)
            closed.append(trade.trade_id)
        return closed

    def cleanup_expired_trades(self, now: int) -> List[int]:
        """Sweep pending trades whose expiry has passed. Returns the reaped ids."""
        expired = [t for t in self.active_trades.values() if t.is_pending() and t.is_expired(now)]
        for trade in expired:
            self._close(trade, TradeStatus.EXPIRED, EventType.TRADE_EXPIRED, None)
        return [t.trade_id for t in expired]


def _apply_delta(value: int, delta: int) -> int:
    if delta >= 0:
        return checked_add(value, delta)
    return checked_sub(value, -delta)


def _move_property(game: "GameState", position: int, giver: "PlayerState", taker: "PlayerState") -> None:
    game.properties[position].owner = taker.player_id
    giver.properties_owned.discard(position)
    taker.properties_owned.add(position)


def create_trade(game: "GameState", proposer_id: str, receiver_id: str, trade_type: TradeType, **legs) -> Trade:
    return game.trade_manager.create_trade(game, proposer_id, receiver_id, trade_type, **legs)


def accept_trade(game: "GameState", trade_id: int, player_id: str) -> Trade:
    return game.trade_manager.accept_trade(game, trade_id, player_id)


def reject_trade(game: "GameState", trade_id: int, player_id: str) -> Trade:
    return game.trade_manager.reject_trade(game, trade_id, player_id)


def cancel_trade(game: "GameState", trade_id: int, player_id: str) -> Trade:
    return game.trade_manager.cancel_trade(game, trade_id, player_id)


def cleanup_expired_trades(game: "GameState") -> List[int]:
    return game.trade_manager.cleanup_expired_trades(game.now())
