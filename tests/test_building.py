"""
Tests for building houses and hotels.
"""

import pytest

from panda_monopoly.buildings import (
    BuildingType,
    build_hotel,
    build_house,
    can_build_hotel,
    can_build_house,
    sell_building,
)
from panda_monopoly.config import GameConfig
from panda_monopoly.exceptions import GameErrorCode, InsufficientFundsError, InvalidActionError


def assert_supply_invariant(game):
    houses = sum(state.houses for state in game.properties)
    hotels = sum(1 for state in game.properties if state.has_hotel)
    assert game.houses_remaining + houses <= game.config.house_limit
    assert game.hotels_remaining + hotels <= game.config.hotel_limit


@pytest.fixture
def brown_monopoly(basic_game, give_property):
    give_property(basic_game, "alice", 1)
    give_property(basic_game, "alice", 3)
    return basic_game


def test_cannot_build_without_monopoly(basic_game, give_property):
    give_property(basic_game, "alice", 1)

    with pytest.raises(InvalidActionError) as exc:
        build_house(basic_game, "alice", 1)
    assert exc.value.code == GameErrorCode.DOES_NOT_OWN_COLOR_GROUP


def test_build_house_charges_cost(brown_monopoly):
    alice = brown_monopoly.get_player("alice")
    worth_before = alice.net_worth
    bank_before = brown_monopoly.bank_balance

    build_house(brown_monopoly, "alice", 1)

    assert brown_monopoly.properties[1].houses == 1
    assert alice.cash_balance == 1450
    assert alice.net_worth == worth_before
    assert brown_monopoly.bank_balance == bank_before + 50
    assert brown_monopoly.houses_remaining == 31


def test_even_build_rule(brown_monopoly):
    """A second house on Mediterranean must wait for one on Baltic."""
    build_house(brown_monopoly, "alice", 1)

    with pytest.raises(InvalidActionError) as exc:
        build_house(brown_monopoly, "alice", 1)
    assert exc.value.code == GameErrorCode.MUST_BUILD_EVENLY
    assert brown_monopoly.properties[1].houses == 1

    assert can_build_house(brown_monopoly, "alice", 3)
    build_house(brown_monopoly, "alice", 3)
    assert can_build_house(brown_monopoly, "alice", 1)


def test_cannot_build_on_railroad(basic_game, give_property):
    give_property(basic_game, "alice", 5)

    with pytest.raises(InvalidActionError) as exc:
        build_house(basic_game, "alice", 5)
    assert exc.value.code == GameErrorCode.CANNOT_BUILD_ON_PROPERTY_TYPE


def test_cannot_build_on_someone_elses_street(brown_monopoly):
    brown_monopoly.current_turn = 1
    with pytest.raises(InvalidActionError) as exc:
        build_house(brown_monopoly, "bob", 1)
    assert exc.value.code == GameErrorCode.PROPERTY_NOT_OWNED_BY_PLAYER


def test_cannot_build_on_mortgaged_street(brown_monopoly):
    brown_monopoly.properties[1].is_mortgaged = True

    with pytest.raises(InvalidActionError) as exc:
        build_house(brown_monopoly, "alice", 1)
    assert exc.value.code == GameErrorCode.PROPERTY_MORTGAGED


def test_build_requires_cash(brown_monopoly):
    alice = brown_monopoly.get_player("alice")
    alice.cash_balance = 40

    with pytest.raises(InsufficientFundsError):
        build_house(brown_monopoly, "alice", 1)
    assert brown_monopoly.properties[1].houses == 0
    assert brown_monopoly.houses_remaining == 32


def test_house_limit(make_game, give_property):
    """Building stops when the bank runs out of houses."""
    game = make_game(config=GameConfig(seed=42, house_limit=1))
    give_property(game, "alice", 1)
    give_property(game, "alice", 3)

    build_house(game, "alice", 1)
    with pytest.raises(InvalidActionError) as exc:
        build_house(game, "alice", 3)
    assert exc.value.code == GameErrorCode.NOT_ENOUGH_HOUSES_IN_BANK


def test_fifth_house_is_rejected(basic_game, give_property):
    give_property(basic_game, "alice", 1, houses=4)
    give_property(basic_game, "alice", 3, houses=4)

    with pytest.raises(InvalidActionError) as exc:
        build_house(basic_game, "alice", 1)
    assert exc.value.code == GameErrorCode.MAX_HOUSES_REACHED


def test_build_hotel_swaps_houses(basic_game, give_property):
    alice = basic_game.get_player("alice")
    give_property(basic_game, "alice", 1, houses=4)
    give_property(basic_game, "alice", 3, houses=4)
    assert basic_game.houses_remaining == 24

    build_hotel(basic_game, "alice", 1)

    state = basic_game.properties[1]
    assert state.has_hotel
    assert state.houses == 0
    assert basic_game.houses_remaining == 28
    assert basic_game.hotels_remaining == 11
    assert alice.cash_balance == 1450
    assert_supply_invariant(basic_game)


def test_hotel_needs_four_houses(basic_game, give_property):
    give_property(basic_game, "alice", 1, houses=3)
    give_property(basic_game, "alice", 3, houses=4)

    with pytest.raises(InvalidActionError) as exc:
        build_hotel(basic_game, "alice", 1)
    assert exc.value.code == GameErrorCode.INVALID_HOUSE_COUNT


def test_hotel_must_build_evenly(basic_game, give_property):
    give_property(basic_game, "alice", 6, houses=4)
    give_property(basic_game, "alice", 8, houses=3)
    give_property(basic_game, "alice", 9, houses=4)

    with pytest.raises(InvalidActionError) as exc:
        build_hotel(basic_game, "alice", 6)
    assert exc.value.code == GameErrorCode.MUST_BUILD_EVENLY
    assert basic_game.properties[6].houses == 4
    assert basic_game.hotels_remaining == 12
    assert not can_build_hotel(basic_game, "alice", 6)

    build_house(basic_game, "alice", 8)
    build_hotel(basic_game, "alice", 6)

    assert basic_game.properties[6].has_hotel
    assert_supply_invariant(basic_game)


def test_no_house_on_hotel(basic_game, give_property):
    give_property(basic_game, "alice", 1, hotel=True)
    give_property(basic_game, "alice", 3, hotel=True)

    with pytest.raises(InvalidActionError) as exc:
        build_house(basic_game, "alice", 1)
    assert exc.value.code == GameErrorCode.PROPERTY_HAS_HOTEL


def test_sell_house_pays_half(basic_game, give_property):
    alice = basic_game.get_player("alice")
    give_property(basic_game, "alice", 1, houses=1)
    give_property(basic_game, "alice", 3, houses=1)
    worth_before = alice.net_worth

    assert sell_building(basic_game, "alice", 1) == 25

    assert basic_game.properties[1].houses == 0
    assert alice.cash_balance == 1525
    assert alice.net_worth == worth_before - 25
    assert basic_game.houses_remaining == 31


def test_even_sell_rule(basic_game, give_property):
    give_property(basic_game, "alice", 1, houses=2)
    give_property(basic_game, "alice", 3, houses=1)

    with pytest.raises(InvalidActionError) as exc:
        sell_building(basic_game, "alice", 3)
    assert exc.value.code == GameErrorCode.MUST_SELL_EVENLY

    sell_building(basic_game, "alice", 1)
    assert basic_game.properties[1].houses == 1


def test_sell_with_no_houses(brown_monopoly):
    with pytest.raises(InvalidActionError) as exc:
        sell_building(brown_monopoly, "alice", 1)
    assert exc.value.code == GameErrorCode.NO_HOUSES_TO_SELL


def test_sell_hotel_restores_four_houses(basic_game, give_property):
    alice = basic_game.get_player("alice")
    give_property(basic_game, "alice", 1, hotel=True)
    give_property(basic_game, "alice", 3, houses=4)

    sell_building(basic_game, "alice", 1, BuildingType.HOTEL)

    state = basic_game.properties[1]
    assert not state.has_hotel
    assert state.houses == 4
    assert basic_game.hotels_remaining == 12
    assert basic_game.houses_remaining == 24
    assert alice.cash_balance == 1525
    assert_supply_invariant(basic_game)


def test_sell_hotel_needs_houses_in_bank(basic_game, give_property):
    give_property(basic_game, "alice", 1, hotel=True)
    give_property(basic_game, "alice", 3, hotel=True)
    basic_game.bank.houses_available = 3

    with pytest.raises(InvalidActionError) as exc:
        sell_building(basic_game, "alice", 1, BuildingType.HOTEL)
    assert exc.value.code == GameErrorCode.NOT_ENOUGH_HOUSES_IN_BANK
    assert basic_game.properties[1].has_hotel


def test_building_out_of_turn(brown_monopoly):
    brown_monopoly.roll_dice("alice", (1, 2))
    brown_monopoly.end_turn("alice")

    with pytest.raises(InvalidActionError) as exc:
        build_house(brown_monopoly, "alice", 1)
    assert exc.value.code == GameErrorCode.NOT_PLAYER_TURN
