"""
High-level rules API for controlling game flow.
This module provides the public interface for game actions and legal move detection.
"""

from enum import Enum
from typing import Any, List, Optional, Tuple

from panda_monopoly.bankruptcy import declare_bankruptcy
from panda_monopoly.buildings import (
    BuildingType,
    build_hotel,
    build_house,
    can_build_hotel,
    can_build_house,
    can_sell_building,
    sell_building,
)
from panda_monopoly.cards import draw_chance_card, draw_community_chest_card
from panda_monopoly.exceptions import GameErrorCode, InvalidActionError, InvalidPositionError, TradeError
from panda_monopoly.game import GameState, GameStatus
from panda_monopoly.player import (
    AwaitingBankruptcy,
    AwaitingCardDraw,
    AwaitingPayment,
    AwaitingPropertyDecision,
    AwaitingRoll,
    Resolved,
)
from panda_monopoly.spaces import DeckType
from panda_monopoly.timeouts import force_bankruptcy_for_timeout, force_end_turn
from panda_monopoly.trade import (
    TradeType,
    accept_trade,
    cancel_trade,
    cleanup_expired_trades,
    create_trade,
    reject_trade,
)
from panda_monopoly.properties import (
    buy_property,
    decline_property,
    mortgage_property,
    pay_rent,
    pay_tax,
    unmortgage_property,
)


class ActionType(Enum):
    """Types of actions a player can take."""

    JOIN_GAME = "join_game"
    LEAVE_GAME = "leave_game"
    START_GAME = "start_game"
    ROLL_DICE = "roll_dice"
    END_TURN = "end_turn"
    BUY_PROPERTY = "buy_property"
    DECLINE_PROPERTY = "decline_property"
    PAY_RENT = "pay_rent"
    PAY_TAX = "pay_tax"
    DRAW_CHANCE_CARD = "draw_chance_card"
    DRAW_COMMUNITY_CHEST_CARD = "draw_community_chest_card"
    BUILD_HOUSE = "build_house"
    BUILD_HOTEL = "build_hotel"
    SELL_BUILDING = "sell_building"
    MORTGAGE_PROPERTY = "mortgage_property"
    UNMORTGAGE_PROPERTY = "unmortgage_property"
    PAY_JAIL_FINE = "pay_jail_fine"
    USE_JAIL_CARD = "use_jail_card"
    DECLARE_BANKRUPTCY = "declare_bankruptcy"
    CREATE_TRADE = "create_trade"
    ACCEPT_TRADE = "accept_trade"
    REJECT_TRADE = "reject_trade"
    CANCEL_TRADE = "cancel_trade"
    CLEANUP_EXPIRED_TRADES = "cleanup_expired_trades"
    FORCE_END_TURN = "force_end_turn"
    FORCE_BANKRUPTCY_FOR_TIMEOUT = "force_bankruptcy_for_timeout"
    END_GAME = "end_game"
    CLAIM_REWARD = "claim_reward"


class Action:
    """Represents a game action taken by one player."""

    def __init__(self, action_type: ActionType, player_id: Optional[str] = None, **params: Any):
        self.action_type = action_type
        self.player_id = player_id
        self.params = params

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Action):
            return NotImplemented
        return (
            self.action_type == other.action_type
            and self.player_id == other.player_id
            and self.params == other.params
        )

    def to_dict(self) -> dict:
        return {"action_type": self.action_type.value, "player_id": self.player_id, "params": dict(self.params)}

    def __repr__(self) -> str:
        return f"Action({self.action_type.value}, {self.player_id}, {self.params})"


def get_legal_actions(game_state: GameState, player_id: str) -> List[Action]:
    """
    Get all legal actions available to a player.

    This is the main interface for controllers to determine valid moves.
    Trade responses are open to any live player; everything else needs the
    player to be on turn, except declaring a pending bankruptcy.

    Args:
        game_state: Current game state
        player_id: Player to get actions for

    Returns:
        List of legal Action objects
    """
    if game_state.status == GameStatus.WAITING_FOR_PLAYERS:
        return _get_lobby_actions(game_state, player_id)
    if game_state.status == GameStatus.FINISHED:
        if (
            game_state.winner == player_id
            and not game_state.prize_claimed
            and game_state.entry_fee > 0
            and game_state.total_prize_pool > 0
        ):
            return [Action(ActionType.CLAIM_REWARD, player_id)]
        return []

    player = game_state.find_player(player_id)
    if player is None or not game_state.is_alive(player.seat):
        return []

    actions: List[Action] = []
    phase = player.phase

    # A player facing bankruptcy can only resolve it, on turn or not
    if isinstance(phase, AwaitingBankruptcy):
        actions.append(Action(ActionType.DECLARE_BANKRUPTCY, player_id))
        return actions

    if player.seat != game_state.current_turn:
        actions.extend(_get_trade_actions(game_state, player_id))
        return actions

    if isinstance(phase, AwaitingRoll):
        if player.in_jail and player.last_dice_roll is None:
            if player.cash_balance >= game_state.config.jail_fine:
                actions.append(Action(ActionType.PAY_JAIL_FINE, player_id))
            if player.get_out_of_jail_cards > 0:
                actions.append(Action(ActionType.USE_JAIL_CARD, player_id))
        actions.append(Action(ActionType.ROLL_DICE, player_id))

    elif isinstance(phase, AwaitingPropertyDecision):
        space = game_state.board.get_ownable_space(phase.position)
        if space is not None and player.cash_balance >= space.price:
            actions.append(Action(ActionType.BUY_PROPERTY, player_id, position=phase.position))
        actions.append(Action(ActionType.DECLINE_PROPERTY, player_id, position=phase.position))

    elif isinstance(phase, AwaitingCardDraw):
        if phase.deck == DeckType.CHANCE:
            actions.append(Action(ActionType.DRAW_CHANCE_CARD, player_id))
        else:
            actions.append(Action(ActionType.DRAW_COMMUNITY_CHEST_CARD, player_id))

    elif isinstance(phase, AwaitingPayment):
        # Paying is always offered; a short player falls into bankruptcy by trying
        if phase.payee is None:
            actions.append(Action(ActionType.PAY_TAX, player_id))
        else:
            actions.append(Action(ActionType.PAY_RENT, player_id, position=phase.position))
        if player.cash_balance < phase.amount:
            actions.append(Action(ActionType.DECLARE_BANKRUPTCY, player_id))

    elif isinstance(phase, Resolved):
        actions.append(Action(ActionType.END_TURN, player_id))

    actions.extend(_get_property_management_actions(game_state, player_id))
    actions.extend(_get_trade_actions(game_state, player_id))
    return actions


def _get_lobby_actions(game_state: GameState, player_id: str) -> List[Action]:
    player = game_state.find_player(player_id)
    if player is None:
        if len(game_state.players) < game_state.config.max_players:
            return [Action(ActionType.JOIN_GAME, player_id)]
        return []

    actions: List[Action] = []
    if player_id == game_state.creator:
        if len(game_state.players) >= game_state.config.min_players:
            actions.append(Action(ActionType.START_GAME, player_id))
    else:
        actions.append(Action(ActionType.LEAVE_GAME, player_id))
    return actions


def _get_property_management_actions(game_state: GameState, player_id: str) -> List[Action]:
    """Get actions related to building, mortgaging, etc."""
    actions: List[Action] = []
    player = game_state.get_player(player_id)

    for position in sorted(player.properties_owned):
        if can_build_house(game_state, player_id, position):
            actions.append(Action(ActionType.BUILD_HOUSE, player_id, position=position))

        if can_build_hotel(game_state, player_id, position):
            actions.append(Action(ActionType.BUILD_HOTEL, player_id, position=position))

        for building_type in BuildingType:
            if can_sell_building(game_state, player_id, position, building_type):
                actions.append(
                    Action(ActionType.SELL_BUILDING, player_id, position=position, building_type=building_type.value)
                )

        state = game_state.properties[position]
        if not state.has_buildings() and not state.is_mortgaged:
            actions.append(Action(ActionType.MORTGAGE_PROPERTY, player_id, position=position))

        if state.is_mortgaged:
            space = game_state.board.get_ownable_space(position)
            if player.cash_balance >= game_state.config.unmortgage_cost(space.mortgage_value):
                actions.append(Action(ActionType.UNMORTGAGE_PROPERTY, player_id, position=position))

    return actions


def _get_trade_actions(game_state: GameState, player_id: str) -> List[Action]:
    """Get available trade actions for a player."""
    actions: List[Action] = []
    manager = game_state.trade_manager
    now = game_state.now()

    for trade in manager.get_trades_for_player(player_id):
        if not trade.is_pending():
            continue
        if trade.receiver == player_id and not trade.is_expired(now):
            actions.append(Action(ActionType.ACCEPT_TRADE, player_id, trade_id=trade.trade_id))
            actions.append(Action(ActionType.REJECT_TRADE, player_id, trade_id=trade.trade_id))
        elif trade.proposer == player_id:
            actions.append(Action(ActionType.CANCEL_TRADE, player_id, trade_id=trade.trade_id))

    # The trade terms are left to the caller; only the counterparty is listed
    if len(manager.active_trades) < manager.max_active_trades:
        for other in game_state.active_players():
            if other.player_id != player_id:
                actions.append(Action(ActionType.CREATE_TRADE, player_id, receiver_id=other.player_id))

    return actions


def _require_param(action: Action, name: str) -> Any:
    value = action.params.get(name)
    if value is None:
        raise InvalidActionError(
            GameErrorCode.INVALID_SPECIAL_SPACE_ACTION,
            f"{action.action_type.value} requires '{name}'",
        )
    return value


def _as_int(value: Any) -> Optional[int]:
    """Accept ints and integer strings from JSON callers; anything else is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _position_param(action: Action, name: str = "position", required: bool = True) -> Optional[int]:
    value = _require_param(action, name) if required else action.params.get(name)
    if value is None:
        return None
    position = _as_int(value)
    if position is None:
        raise InvalidPositionError(GameErrorCode.INVALID_BOARD_POSITION, f"Invalid {name} {value!r}")
    return position


def _card_index_param(action: Action) -> Optional[int]:
    value = action.params.get("card_index")
    if value is None:
        return None
    index = _as_int(value)
    if index is None:
        raise InvalidPositionError(GameErrorCode.INVALID_CARD_INDEX, f"Invalid card index {value!r}")
    return index


def _trade_id_param(action: Action) -> int:
    value = _require_param(action, "trade_id")
    trade_id = _as_int(value)
    if trade_id is None:
        raise TradeError(GameErrorCode.TRADE_NOT_FOUND, f"Invalid trade id {value!r}")
    return trade_id


def _money_param(action: Action, name: str) -> int:
    value = action.params.get(name, 0)
    amount = _as_int(value)
    if amount is None:
        raise TradeError(GameErrorCode.INVALID_TRADE_PROPOSAL, f"Invalid {name} {value!r}")
    return amount


def _parse_dice(action: Action) -> Optional[Tuple[int, int]]:
    dice = action.params.get("dice")
    if dice is None:
        return None
    values = [_as_int(d) for d in dice] if isinstance(dice, (list, tuple)) else []
    if len(values) != 2 or None in values:
        raise InvalidPositionError(GameErrorCode.INVALID_DICE_ROLL, f"Expected two dice, got {dice!r}")
    return values[0], values[1]


def _parse_trade_type(action: Action) -> TradeType:
    value = _require_param(action, "trade_type")
    try:
        return TradeType(value)
    except ValueError:
        raise TradeError(GameErrorCode.INVALID_TRADE_PROPOSAL, f"Unknown trade type {value!r}") from None


def _parse_building_type(action: Action) -> BuildingType:
    value = action.params.get("building_type", BuildingType.HOUSE.value)
    try:
        return BuildingType(value)
    except ValueError:
        raise InvalidActionError(GameErrorCode.CANNOT_BUILD_ON_PROPERTY_TYPE, f"Unknown building {value!r}") from None


def _require_actor(action: Action) -> str:
    if action.player_id is None:
        raise InvalidActionError(GameErrorCode.PLAYER_NOT_FOUND, f"{action.action_type.value} requires a player")
    return action.player_id


def apply_action(game_state: GameState, action: Action) -> Any:
    """
    Apply an action to the game state.

    This is the main interface for executing moves. Each action type maps
    onto one engine operation; a failed precondition raises the operation's
    MonopolyError and leaves the game untouched.

    Args:
        game_state: Current game state
        action: Action to apply

    Returns:
        Whatever the underlying operation returns (dice, a trade, a payment
        outcome, a liquidation result...), or None
    """
    action_type = action.action_type

    if action_type == ActionType.CLEANUP_EXPIRED_TRADES:
        return cleanup_expired_trades(game_state)
    if action_type == ActionType.END_GAME:
        return game_state.end_game()

    player_id = _require_actor(action)

    if action_type == ActionType.JOIN_GAME:
        return game_state.join_game(player_id)

    elif action_type == ActionType.LEAVE_GAME:
        return game_state.leave_game(player_id)

    elif action_type == ActionType.START_GAME:
        return game_state.start_game(player_id)

    elif action_type == ActionType.ROLL_DICE:
        return game_state.roll_dice(player_id, _parse_dice(action))

    elif action_type == ActionType.END_TURN:
        return game_state.end_turn(player_id)

    elif action_type == ActionType.BUY_PROPERTY:
        return buy_property(game_state, player_id, _position_param(action))

    elif action_type == ActionType.DECLINE_PROPERTY:
        return decline_property(game_state, player_id, _position_param(action))

    elif action_type == ActionType.PAY_RENT:
        return pay_rent(game_state, player_id, _position_param(action))

    elif action_type == ActionType.PAY_TAX:
        return pay_tax(game_state, player_id)

    elif action_type == ActionType.DRAW_CHANCE_CARD:
        return draw_chance_card(game_state, player_id, _card_index_param(action))

    elif action_type == ActionType.DRAW_COMMUNITY_CHEST_CARD:
        return draw_community_chest_card(game_state, player_id, _card_index_param(action))

    elif action_type == ActionType.BUILD_HOUSE:
        return build_house(game_state, player_id, _position_param(action))

    elif action_type == ActionType.BUILD_HOTEL:
        return build_hotel(game_state, player_id, _position_param(action))

    elif action_type == ActionType.SELL_BUILDING:
        return sell_building(game_state, player_id, _position_param(action), _parse_building_type(action))

    elif action_type == ActionType.MORTGAGE_PROPERTY:
        return mortgage_property(game_state, player_id, _position_param(action))

    elif action_type == ActionType.UNMORTGAGE_PROPERTY:
        return unmortgage_property(game_state, player_id, _position_param(action))

    elif action_type == ActionType.PAY_JAIL_FINE:
        return game_state.pay_jail_fine(player_id)

    elif action_type == ActionType.USE_JAIL_CARD:
        return game_state.use_get_out_of_jail_card(player_id)

    elif action_type == ActionType.DECLARE_BANKRUPTCY:
        return declare_bankruptcy(game_state, player_id)

    elif action_type == ActionType.CREATE_TRADE:
        return create_trade(
            game_state,
            player_id,
            _require_param(action, "receiver_id"),
            _parse_trade_type(action),
            proposer_money=_money_param(action, "proposer_money"),
            receiver_money=_money_param(action, "receiver_money"),
            proposer_property=_position_param(action, "proposer_property", required=False),
            receiver_property=_position_param(action, "receiver_property", required=False),
        )

    elif action_type == ActionType.ACCEPT_TRADE:
        return accept_trade(game_state, _trade_id_param(action), player_id)

    elif action_type == ActionType.REJECT_TRADE:
        return reject_trade(game_state, _trade_id_param(action), player_id)

    elif action_type == ActionType.CANCEL_TRADE:
        return cancel_trade(game_state, _trade_id_param(action), player_id)

    elif action_type == ActionType.FORCE_END_TURN:
        return force_end_turn(game_state, player_id)

    elif action_type == ActionType.FORCE_BANKRUPTCY_FOR_TIMEOUT:
        return force_bankruptcy_for_timeout(game_state, player_id, _require_param(action, "target_id"))

    elif action_type == ActionType.CLAIM_REWARD:
        return game_state.claim_reward(player_id)

    raise InvalidActionError(GameErrorCode.UNAUTHORIZED, f"Unknown action type {action_type}")
