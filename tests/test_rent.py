"""
Tests for rent calculation and rent payment.
"""

import pytest

from panda_monopoly.bankruptcy import declare_bankruptcy
from panda_monopoly.config import BOARD_SIZE
from panda_monopoly.exceptions import GameErrorCode, InvalidActionError
from panda_monopoly.game import GameStatus
from panda_monopoly.player import AwaitingBankruptcy, AwaitingPayment, PropertyState, Resolved
from panda_monopoly.properties import pay_rent
from panda_monopoly.rent import compute_rent, has_monopoly


@pytest.fixture
def table():
    return [PropertyState() for _ in range(BOARD_SIZE)]


def _own(table, owner, *positions, houses=0, hotel=False, mortgaged=False):
    for pos in positions:
        table[pos].owner = owner
        table[pos].houses = houses
        table[pos].has_hotel = hotel
        table[pos].is_mortgaged = mortgaged


def test_unowned_space_charges_nothing(table):
    assert compute_rent(table, 1) == 0


def test_base_rent(table):
    _own(table, "bob", 1)
    assert compute_rent(table, 1) == 2


def test_monopoly_doubles_base_rent(table):
    _own(table, "bob", 1, 3)
    assert has_monopoly(table, "bob", "brown")
    assert compute_rent(table, 1) == 4
    assert compute_rent(table, 3) == 8


def test_house_and_hotel_tiers(table):
    _own(table, "bob", 37, 39)
    expected = [100, 200, 600, 1200, 1600]
    for houses, rent in zip(range(0, 5), expected):
        table[39].houses = houses
        assert compute_rent(table, 39) == rent
    table[39].houses = 0
    table[39].has_hotel = True
    assert compute_rent(table, 39) == 2000


def test_street_rent_is_monotonic_in_development(table):
    _own(table, "bob", 11, 13, 14)
    rents = []
    for houses in range(5):
        table[14].houses = houses
        rents.append(compute_rent(table, 14))
    table[14].houses = 0
    table[14].has_hotel = True
    rents.append(compute_rent(table, 14))
    assert rents == sorted(rents)


def test_mortgaged_space_charges_nothing(table):
    _own(table, "bob", 1, 3)
    table[1].is_mortgaged = True
    assert compute_rent(table, 1) == 0


@pytest.mark.parametrize("count, rent", [(1, 25), (2, 50), (3, 100), (4, 200)])
def test_railroad_rent(table, count, rent):
    _own(table, "bob", *[5, 15, 25, 35][:count])
    assert compute_rent(table, 5) == rent


def test_utility_rent_uses_dice(table):
    _own(table, "bob", 12)
    assert compute_rent(table, 12, dice_total=7) == 28
    _own(table, "bob", 28)
    assert compute_rent(table, 12, dice_total=7) == 70


def test_landing_creates_rent_obligation(basic_game, give_property):
    alice = basic_game.get_player("alice")
    give_property(basic_game, "bob", 3)

    basic_game.roll_dice("alice", (1, 2))

    assert alice.phase == AwaitingPayment(amount=4, payee="bob", position=3)


def test_pay_rent_transfers_to_owner(basic_game, give_property):
    alice = basic_game.get_player("alice")
    bob = basic_game.get_player("bob")
    give_property(basic_game, "bob", 3)
    basic_game.roll_dice("alice", (1, 2))

    assert pay_rent(basic_game, "alice", 3) is True

    assert alice.cash_balance == 1496
    assert alice.net_worth == 1496
    assert bob.cash_balance == 1504
    assert alice.phase == Resolved()


def test_utility_rent_uses_landing_roll(basic_game, give_property):
    alice = basic_game.get_player("alice")
    give_property(basic_game, "bob", 12)
    alice.position = 7

    basic_game.roll_dice("alice", (2, 3))

    assert alice.phase == AwaitingPayment(amount=20, payee="bob", position=12)


def test_pay_rent_without_obligation(basic_game):
    with pytest.raises(InvalidActionError) as exc:
        pay_rent(basic_game, "alice", 3)
    assert exc.value.code == GameErrorCode.INVALID_SPECIAL_SPACE_ACTION


def test_unaffordable_rent_soft_fails(basic_game, give_property):
    alice = basic_game.get_player("alice")
    bob = basic_game.get_player("bob")
    give_property(basic_game, "bob", 37)
    give_property(basic_game, "bob", 39, hotel=True)
    alice.position = 36

    basic_game.roll_dice("alice", (1, 2))
    assert pay_rent(basic_game, "alice", 39) is False

    assert alice.cash_balance == 1500
    assert bob.cash_balance == 1500
    assert alice.phase == AwaitingBankruptcy(amount=2000, creditor="bob")


def test_rent_bankruptcy_scenario(basic_game, give_property):
    """Owing $300 with $100 cash and one mortgaged space ends in bankruptcy."""
    alice = basic_game.get_player("alice")
    give_property(basic_game, "bob", 24, houses=2)
    give_property(basic_game, "alice", 5, mortgaged=True)
    alice.cash_balance = 100
    alice.position = 20
    bank_before = basic_game.bank_balance

    basic_game.roll_dice("alice", (1, 3))
    assert pay_rent(basic_game, "alice", 24) is False
    assert isinstance(alice.phase, AwaitingBankruptcy)

    declare_bankruptcy(basic_game, "alice")

    assert alice.cash_balance == 0
    assert alice.net_worth == 0
    assert alice.properties_owned == set()
    assert basic_game.bank_balance == bank_before + 100
    assert not basic_game.is_alive(alice.seat)
    assert basic_game.properties[5].owner is None
    assert basic_game.status == GameStatus.FINISHED
    assert basic_game.winner == "bob"
