"""
Property purchase, rent and tax payment, and mortgages.

Rent and tax use a soft-fail path: a player who cannot cover the amount is
moved into bankruptcy resolution and nothing is transferred, instead of the
call raising and leaving the turn stuck.
"""

from typing import Tuple

from panda_monopoly.exceptions import (
    GameErrorCode,
    InsufficientFundsError,
    InvalidActionError,
)
from panda_monopoly.game import GameState
from panda_monopoly.money import EventType, checked_add, checked_sub
from panda_monopoly.player import (
    AwaitingPayment,
    AwaitingPropertyDecision,
    PlayerState,
    PropertyState,
)
from panda_monopoly.rent import compute_rent
from panda_monopoly.spaces import OwnableSpace


def _require_ownable(game: GameState, position: int) -> OwnableSpace:
    space = game.board.get_space(position)
    if not isinstance(space, OwnableSpace) or not space.is_purchasable:
        raise InvalidActionError(GameErrorCode.PROPERTY_NOT_PURCHASABLE, f"{space.name} cannot be owned")
    return space


def _require_pending_decision(player: PlayerState, position: int) -> None:
    phase = player.phase
    if player.position != position or not (
        isinstance(phase, AwaitingPropertyDecision) and phase.position == position
    ):
        raise InvalidActionError(
            GameErrorCode.INVALID_SPECIAL_SPACE_ACTION,
            f"{player.player_id} has no purchase decision pending at {position}",
        )


def require_owned_by(game: GameState, player: PlayerState, position: int) -> Tuple[OwnableSpace, PropertyState]:
    """Return the space and its state if the player owns it."""
    space = _require_ownable(game, position)
    state = game.properties[position]
    if state.owner != player.player_id:
        raise InvalidActionError(
            GameErrorCode.PROPERTY_NOT_OWNED_BY_PLAYER,
            f"{player.player_id} does not own {space.name}",
        )
    return space, state


def buy_property(game: GameState, player_id: str, position: int) -> None:
    """
    Buy the unowned space the player is standing on.

    The price goes to the bank and is added to the buyer's net worth.
    """
    player = game.require_turn(player_id)
    game.require_not_bankrupting(player)
    space = _require_ownable(game, position)
    state = game.properties[position]
    if state.is_owned():
        raise InvalidActionError(GameErrorCode.PROPERTY_ALREADY_OWNED, f"{space.name} is already owned")
    _require_pending_decision(player, position)
    if player.cash_balance < space.price:
        raise InsufficientFundsError(space.price, player.cash_balance)

    cash = checked_sub(player.cash_balance, space.price)
    net_worth = checked_add(player.net_worth, space.price)
    game.bank.collect(space.price)
    player.cash_balance = cash
    player.net_worth = net_worth
    state.owner = player_id
    player.properties_owned.add(position)

    game.touch(player)
    game.event_log.log(
        EventType.PURCHASE,
        player_id=player_id,
        property=space.name,
        position=position,
        price=space.price,
        new_balance=player.cash_balance,
    )
    game.clear_obligation(player)


def decline_property(game: GameState, player_id: str, position: int) -> None:
    """Pass on buying the space. The space stays with the bank."""
    player = game.require_turn(player_id)
    game.require_not_bankrupting(player)
    space = _require_ownable(game, position)
    _require_pending_decision(player, position)

    game.touch(player)
    game.event_log.log(EventType.PURCHASE_DECLINED, player_id=player_id, property=space.name, position=position)
    game.clear_obligation(player)


def pay_rent(game: GameState, player_id: str, position: int) -> bool:
    """
    Pay rent owed for the space the player landed on.

    Rent is recomputed from the current ownership table, since a trade may
    have moved the space since landing. Returns False when the player cannot
    pay: no money moves and the player must resolve bankruptcy.
    """
    player = game.require_turn(player_id)
    game.require_not_bankrupting(player)
    phase = player.phase
    if not (isinstance(phase, AwaitingPayment) and phase.payee is not None and phase.position == position):
        raise InvalidActionError(
            GameErrorCode.INVALID_SPECIAL_SPACE_ACTION,
            f"{player_id} owes no rent at {position}",
        )

    state = game.properties[position]
    owner = game.find_player(state.owner) if state.owner else None
    rent = 0
    if owner is not None and owner is not player and game.is_alive(owner.seat):
        dice_total = sum(player.last_dice_roll) if player.last_dice_roll else 0
        rent = compute_rent(game.properties, position, dice_total, game.board)

    game.touch(player)
    if rent == 0:
        game.clear_obligation(player)
        return True
    if player.cash_balance < rent:
        game.defer_to_bankruptcy(player, rent, creditor=owner.player_id)
        return False

    game.transfer(player, owner, rent)
    game.event_log.log(
        EventType.RENT_PAYMENT,
        player_id=player_id,
        owner=owner.player_id,
        position=position,
        amount=rent,
    )
    game.clear_obligation(player)
    return True


def pay_tax(game: GameState, player_id: str) -> bool:
    """Pay the tax for the tax space the player landed on. Soft-fails like rent."""
    player = game.require_turn(player_id)
    game.require_not_bankrupting(player)
    phase = player.phase
    if not (isinstance(phase, AwaitingPayment) and phase.payee is None):
        raise InvalidActionError(GameErrorCode.INVALID_SPECIAL_SPACE_ACTION, f"{player_id} owes no tax")

    game.touch(player)
    if player.cash_balance < phase.amount:
        game.defer_to_bankruptcy(player, phase.amount)
        return False

    game.pay_bank(player, phase.amount)
    game.event_log.log(
        EventType.TAX_PAYMENT,
        player_id=player_id,
        position=phase.position,
        amount=phase.amount,
    )
    game.clear_obligation(player)
    return True


def mortgage_property(game: GameState, player_id: str, position: int) -> int:
    """
    Mortgage a property to raise funds.
    Cannot mortgage if the property has buildings. Returns the cash raised.
    """
    player = game.require_turn(player_id)
    game.require_not_bankrupting(player)
    space, state = require_owned_by(game, player, position)
    if state.is_mortgaged:
        raise InvalidActionError(GameErrorCode.PROPERTY_MORTGAGED, f"{space.name} is already mortgaged")
    if state.has_buildings():
        raise InvalidActionError(
            GameErrorCode.CANNOT_MORTGAGE_WITH_BUILDINGS,
            f"Sell buildings on {space.name} first",
        )

    value = space.mortgage_value
    cash = checked_add(player.cash_balance, value)
    net_worth = checked_sub(player.net_worth, value)
    game.bank.pay(value)
    player.cash_balance = cash
    player.net_worth = net_worth
    state.is_mortgaged = True

    game.touch(player)
    game.event_log.log(
        EventType.MORTGAGE,
        player_id=player_id,
        property=space.name,
        position=position,
        value=value,
        new_balance=player.cash_balance,
    )
    return value


def unmortgage_property(game: GameState, player_id: str, position: int) -> int:
    """
    Unmortgage a property by paying mortgage value + interest.
    Returns the amount paid.
    """
    player = game.require_turn(player_id)
    game.require_not_bankrupting(player)
    space, state = require_owned_by(game, player, position)
    if not state.is_mortgaged:
        raise InvalidActionError(GameErrorCode.PROPERTY_NOT_MORTGAGED, f"{space.name} is not mortgaged")

    cost = game.config.unmortgage_cost(space.mortgage_value)
    if player.cash_balance < cost:
        raise InsufficientFundsError(cost, player.cash_balance)

    cash = checked_sub(player.cash_balance, cost)
    net_worth = checked_add(player.net_worth, space.mortgage_value)
    game.bank.collect(cost)
    player.cash_balance = cash
    player.net_worth = net_worth
    state.is_mortgaged = False

    game.touch(player)
    game.event_log.log(
        EventType.UNMORTGAGE,
        player_id=player_id,
        property=space.name,
        position=position,
        cost=cost,
        new_balance=player.cash_balance,
    )
    return cost
