"""
Building rules: houses, hotels, and the even-development rule.

A hotel counts as five houses when comparing development across a color
group. Buildings are bought at the street's house cost and sold back to the
bank for half of it.
"""

from enum import Enum
from typing import Tuple

from panda_monopoly.config import HOUSES_PER_HOTEL
from panda_monopoly.exceptions import (
    ArithmeticSafetyError,
    GameErrorCode,
    InsufficientFundsError,
    InvalidActionError,
    MonopolyError,
)
from panda_monopoly.game import GameState
from panda_monopoly.money import EventType, checked_add, checked_sub
from panda_monopoly.player import PlayerState, PropertyState
from panda_monopoly.rent import has_monopoly
from panda_monopoly.spaces import PropertySpace


class BuildingType(Enum):
    HOUSE = "house"
    HOTEL = "hotel"


def development_level(state: PropertyState) -> int:
    """Houses on a street, with a hotel counted as one step past four houses."""
    return HOUSES_PER_HOTEL + 1 if state.has_hotel else state.houses


def can_build_evenly(game: GameState, space: PropertySpace, new_houses: int) -> bool:
    """
    Check the even-build rule: after building, this street may not exceed
    any other street in its group by more than one house.
    """
    for pos in game.board.get_color_group(space.color_group):
        if pos != space.position and new_houses - development_level(game.properties[pos]) > 1:
            return False
    return True


def can_sell_evenly(game: GameState, space: PropertySpace, new_houses: int) -> bool:
    """
    Check the even-sell rule: after selling, this street may not fall more
    than one house below any other street in its group.
    """
    for pos in game.board.get_color_group(space.color_group):
        if pos != space.position and development_level(game.properties[pos]) - new_houses > 1:
            return False
    return True


def _require_own_street(game: GameState, player_id: str, position: int) -> Tuple[PlayerState, PropertySpace, PropertyState]:
    player = game.require_turn(player_id)
    game.require_not_bankrupting(player)
    space = game.board.get_space(position)
    if not isinstance(space, PropertySpace):
        raise InvalidActionError(
            GameErrorCode.CANNOT_BUILD_ON_PROPERTY_TYPE,
            f"Cannot build on {space.name}",
        )
    state = game.properties[position]
    if state.owner != player_id:
        raise InvalidActionError(
            GameErrorCode.PROPERTY_NOT_OWNED_BY_PLAYER,
            f"{player_id} does not own {space.name}",
        )
    return player, space, state


def _require_buildable(space: PropertySpace, state: PropertyState) -> None:
    if state.is_mortgaged:
        raise InvalidActionError(GameErrorCode.PROPERTY_MORTGAGED, f"{space.name} is mortgaged")
    if state.has_hotel:
        raise InvalidActionError(GameErrorCode.PROPERTY_HAS_HOTEL, f"{space.name} already has a hotel")


def _require_funds(player: PlayerState, cost: int) -> None:
    if player.cash_balance < cost:
        raise InsufficientFundsError(cost, player.cash_balance)


def _pay_for_building(game: GameState, player: PlayerState, cost: int) -> None:
    cash = checked_sub(player.cash_balance, cost)
    net_worth = checked_add(player.net_worth, cost)
    game.bank.collect(cost)
    player.cash_balance = cash
    player.net_worth = net_worth


def _validate_house(game: GameState, player_id: str, position: int) -> Tuple[PlayerState, PropertySpace, PropertyState]:
    """
    Check that a house can go on a street.

    Requirements:
    - Player owns the street, which is not mortgaged and has no hotel
    - Fewer than 4 houses on it
    - Player owns the whole color group
    - Even build rule is satisfied
    - A house is available in the bank
    - Player can afford the house cost
    """
    player, space, state = _require_own_street(game, player_id, position)
    _require_buildable(space, state)
    if state.houses >= HOUSES_PER_HOTEL:
        raise InvalidActionError(GameErrorCode.MAX_HOUSES_REACHED, f"{space.name} has 4 houses")
    if not has_monopoly(game.properties, player_id, space.color_group, game.board):
        raise InvalidActionError(
            GameErrorCode.DOES_NOT_OWN_COLOR_GROUP,
            f"{player_id} does not own all of {space.color_group}",
        )
    if not can_build_evenly(game, space, state.houses + 1):
        raise InvalidActionError(GameErrorCode.MUST_BUILD_EVENLY, f"Build evenly across {space.color_group}")
    if not game.bank.can_buy_houses(1):
        raise InvalidActionError(GameErrorCode.NOT_ENOUGH_HOUSES_IN_BANK, "No houses left in bank")
    _require_funds(player, space.house_cost)
    return player, space, state


def build_house(game: GameState, player_id: str, position: int) -> None:
    """Build a house on a street."""
    player, space, state = _validate_house(game, player_id, position)
    _pay_for_building(game, player, space.house_cost)
    game.bank.take_houses(1)
    state.houses += 1

    game.touch(player)
    game.event_log.log(
        EventType.BUILD_HOUSE,
        player_id=player_id,
        property=space.name,
        position=position,
        cost=space.house_cost,
        houses=state.houses,
        new_balance=player.cash_balance,
    )


def _validate_hotel(game: GameState, player_id: str, position: int) -> Tuple[PlayerState, PropertySpace, PropertyState]:
    player, space, state = _require_own_street(game, player_id, position)
    _require_buildable(space, state)
    if state.houses != HOUSES_PER_HOTEL:
        raise InvalidActionError(
            GameErrorCode.INVALID_HOUSE_COUNT,
            f"{space.name} needs {HOUSES_PER_HOTEL} houses for a hotel, has {state.houses}",
        )
    if not has_monopoly(game.properties, player_id, space.color_group, game.board):
        raise InvalidActionError(
            GameErrorCode.DOES_NOT_OWN_COLOR_GROUP,
            f"{player_id} does not own all of {space.color_group}",
        )
    if not can_build_evenly(game, space, HOUSES_PER_HOTEL + 1):
        raise InvalidActionError(GameErrorCode.MUST_BUILD_EVENLY, f"Build evenly across {space.color_group}")
    if not game.bank.can_buy_hotel():
        raise InvalidActionError(GameErrorCode.NOT_ENOUGH_HOTELS_IN_BANK, "No hotels left in bank")
    if not game.bank.can_return_houses(HOUSES_PER_HOTEL):
        raise ArithmeticSafetyError(GameErrorCode.ARITHMETIC_OVERFLOW, "House supply would exceed its cap")
    _require_funds(player, space.house_cost)
    return player, space, state


def build_hotel(game: GameState, player_id: str, position: int) -> None:
    """
    Replace four houses with a hotel.
    The four houses go back to the bank and one hotel leaves it.
    """
    player, space, state = _validate_hotel(game, player_id, position)
    _pay_for_building(game, player, space.house_cost)
    game.bank.return_houses(HOUSES_PER_HOTEL)
    game.bank.take_hotel()
    state.houses = 0
    state.has_hotel = True

    game.touch(player)
    game.event_log.log(
        EventType.BUILD_HOTEL,
        player_id=player_id,
        property=space.name,
        position=position,
        cost=space.house_cost,
        new_balance=player.cash_balance,
    )


def _validate_sale(
    game: GameState, player_id: str, position: int, building_type: BuildingType
) -> Tuple[PlayerState, PropertySpace, PropertyState]:
    player, space, state = _require_own_street(game, player_id, position)
    if building_type == BuildingType.HOUSE:
        if state.houses == 0:
            raise InvalidActionError(GameErrorCode.NO_HOUSES_TO_SELL, f"No houses on {space.name}")
        if not can_sell_evenly(game, space, state.houses - 1):
            raise InvalidActionError(GameErrorCode.MUST_SELL_EVENLY, f"Sell evenly across {space.color_group}")
        if not game.bank.can_return_houses(1):
            raise ArithmeticSafetyError(GameErrorCode.ARITHMETIC_OVERFLOW, "House supply would exceed its cap")
    else:
        if not state.has_hotel:
            raise InvalidActionError(GameErrorCode.NO_HOTEL_TO_SELL, f"No hotel on {space.name}")
        if not game.bank.can_buy_houses(HOUSES_PER_HOTEL):
            raise InvalidActionError(
                GameErrorCode.NOT_ENOUGH_HOUSES_IN_BANK,
                f"Bank needs {HOUSES_PER_HOTEL} houses to break down a hotel",
            )
    return player, space, state


def sell_building(
    game: GameState,
    player_id: str,
    position: int,
    building_type: BuildingType = BuildingType.HOUSE,
) -> int:
    """
    Sell a house, or break a hotel back down to four houses, for half the
    house cost. Returns the sale price.
    """
    player, space, state = _validate_sale(game, player_id, position, building_type)
    sale_price = space.house_cost // 2
    cash = checked_add(player.cash_balance, sale_price)
    net_worth = checked_sub(player.net_worth, sale_price)
    game.bank.pay(sale_price)
    if building_type == BuildingType.HOUSE:
        game.bank.return_houses(1)
        state.houses -= 1
    else:
        game.bank.take_houses(HOUSES_PER_HOTEL)
        game.bank.return_hotels(1)
        state.has_hotel = False
        state.houses = HOUSES_PER_HOTEL
    player.cash_balance = cash
    player.net_worth = net_worth

    game.touch(player)
    game.event_log.log(
        EventType.SELL_BUILDING,
        player_id=player_id,
        property=space.name,
        position=position,
        building=building_type.value,
        sale_price=sale_price,
        houses=state.houses,
        new_balance=player.cash_balance,
    )
    return sale_price


def can_build_house(game: GameState, player_id: str, position: int) -> bool:
    try:
        _validate_house(game, player_id, position)
    except MonopolyError:
        return False
    return True


def can_build_hotel(game: GameState, player_id: str, position: int) -> bool:
    try:
        _validate_hotel(game, player_id, position)
    except MonopolyError:
        return False
    return True


def can_sell_building(game: GameState, player_id: str, position: int, building_type: BuildingType) -> bool:
    try:
        _validate_sale(game, player_id, position, building_type)
    except MonopolyError:
        return False
    return True
