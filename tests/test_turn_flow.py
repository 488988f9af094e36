"""
Tests for turn flow: rolling, movement, landing resolution and turn order.
"""

import pytest

from panda_monopoly.cards import draw_chance_card, draw_community_chest_card
from panda_monopoly.config import (
    FREE_PARKING_POSITION,
    GO_POSITION,
    GO_TO_JAIL_POSITION,
    JAIL_POSITION,
    GameConfig,
)
from panda_monopoly.exceptions import ArithmeticSafetyError, GameErrorCode, InvalidActionError, InvalidPositionError
from panda_monopoly.game import GameStatus
from panda_monopoly.money import EventType
from panda_monopoly.player import (
    AwaitingCardDraw,
    AwaitingPayment,
    AwaitingPropertyDecision,
    AwaitingRoll,
    Closed,
    Resolved,
)
from panda_monopoly.properties import decline_property, pay_tax
from panda_monopoly.spaces import DeckType, FreeParkingSpace, GoSpace, GoToJailSpace, JailSpace


def test_start_game_gives_first_seat_the_turn(basic_game, clock):
    alice = basic_game.get_player("alice")
    bob = basic_game.get_player("bob")

    assert basic_game.status == GameStatus.IN_PROGRESS
    assert basic_game.current_turn == 0
    assert basic_game.turn_started_at == clock.now
    assert alice.phase == AwaitingRoll()
    assert bob.phase == Closed()


def test_roll_moves_and_offers_purchase(basic_game):
    alice = basic_game.get_player("alice")

    dice = basic_game.roll_dice("alice", (2, 3))

    assert dice == (2, 3)
    assert alice.position == 5
    assert alice.has_rolled_dice
    assert alice.last_dice_roll == (2, 3)
    assert alice.phase == AwaitingPropertyDecision(5)


def test_roll_out_of_turn_fails(basic_game):
    with pytest.raises(InvalidActionError) as exc:
        basic_game.roll_dice("bob", (2, 3))
    assert exc.value.code == GameErrorCode.NOT_PLAYER_TURN


def test_cannot_roll_twice_without_doubles(basic_game):
    basic_game.roll_dice("alice", (1, 2))
    decline_property(basic_game, "alice", 3)

    with pytest.raises(InvalidActionError) as exc:
        basic_game.roll_dice("alice", (1, 2))
    assert exc.value.code == GameErrorCode.ALREADY_ROLLED_DICE


def test_invalid_dice_leave_state_untouched(basic_game):
    alice = basic_game.get_player("alice")

    with pytest.raises(InvalidPositionError) as exc:
        basic_game.roll_dice("alice", (0, 7))

    assert exc.value.code == GameErrorCode.INVALID_DICE_ROLL
    assert alice.position == 0
    assert alice.last_dice_roll is None
    assert alice.phase == AwaitingRoll()


def test_end_turn_requires_roll(basic_game):
    with pytest.raises(InvalidActionError) as exc:
        basic_game.end_turn("alice")
    assert exc.value.code == GameErrorCode.HAS_NOT_ROLLED_DICE


def test_end_turn_blocked_by_pending_decision(basic_game):
    basic_game.roll_dice("alice", (1, 2))

    with pytest.raises(InvalidActionError) as exc:
        basic_game.end_turn("alice")
    assert exc.value.code == GameErrorCode.MUST_HANDLE_SPECIAL_SPACE
    assert basic_game.current_turn == 0


def test_chance_payment_scenario(basic_game):
    """Roll (3,4) onto Chance, pay $50, then close the turn."""
    alice = basic_game.get_player("alice")

    basic_game.roll_dice("alice", (3, 4))
    assert alice.position == 7
    assert alice.phase == AwaitingCardDraw(DeckType.CHANCE)

    draw_chance_card(basic_game, "alice", card_index=1)
    assert alice.cash_balance == 1450
    assert alice.phase == Resolved()

    basic_game.end_turn("alice")
    assert basic_game.current_turn == 1
    assert basic_game.get_player("bob").phase == AwaitingRoll()


def test_doubles_grant_another_roll(basic_game):
    alice = basic_game.get_player("alice")

    basic_game.roll_dice("alice", (1, 1))
    assert alice.doubles_count == 1
    assert not alice.has_rolled_dice
    draw_community_chest_card(basic_game, "alice", card_index=3)
    assert alice.phase == AwaitingRoll()

    with pytest.raises(InvalidActionError) as exc:
        basic_game.end_turn("alice")
    assert exc.value.code == GameErrorCode.HAS_NOT_ROLLED_DICE

    basic_game.roll_dice("alice", (4, 5))
    assert alice.position == 11
    assert alice.doubles_count == 0
    decline_property(basic_game, "alice", 11)
    basic_game.end_turn("alice")
    assert basic_game.current_turn == 1


def test_third_doubles_sends_to_jail(basic_game):
    alice = basic_game.get_player("alice")

    basic_game.roll_dice("alice", (1, 1))
    draw_community_chest_card(basic_game, "alice", card_index=3)
    basic_game.roll_dice("alice", (2, 2))
    decline_property(basic_game, "alice", 6)
    basic_game.roll_dice("alice", (3, 3))

    assert alice.in_jail
    assert alice.position == 10
    assert alice.doubles_count == 0
    assert alice.phase == Closed()
    assert basic_game.current_turn == 1


def test_passing_go_pays_salary(basic_game):
    alice = basic_game.get_player("alice")
    alice.position = 38
    bank_before = basic_game.bank_balance

    basic_game.roll_dice("alice", (1, 2))

    assert alice.position == 1
    assert alice.cash_balance == 1700
    assert alice.net_worth == 1700
    assert basic_game.bank_balance == bank_before - 200
    assert basic_game.event_log.of_type(EventType.PASS_GO)


def test_go_to_jail_space_closes_turn(basic_game):
    alice = basic_game.get_player("alice")
    alice.position = 25

    basic_game.roll_dice("alice", (2, 3))

    assert alice.in_jail
    assert alice.position == 10
    assert alice.cash_balance == 1500
    assert basic_game.current_turn == 1


def test_landing_on_own_property_is_free(basic_game, give_property):
    alice = basic_game.get_player("alice")
    give_property(basic_game, "alice", 5)

    basic_game.roll_dice("alice", (2, 3))

    assert alice.phase == Resolved()


def test_income_tax(basic_game):
    alice = basic_game.get_player("alice")
    bank_before = basic_game.bank_balance

    basic_game.roll_dice("alice", (1, 3))
    assert alice.phase == AwaitingPayment(amount=200, payee=None, position=4)

    assert pay_tax(basic_game, "alice") is True
    assert alice.cash_balance == 1300
    assert basic_game.bank_balance == bank_before + 200
    assert alice.phase == Resolved()


def test_luxury_tax_soft_fails(basic_game):
    alice = basic_game.get_player("alice")
    alice.position = 35
    alice.cash_balance = 40

    basic_game.roll_dice("alice", (1, 2))
    assert alice.phase == AwaitingPayment(amount=75, payee=None, position=38)

    assert pay_tax(basic_game, "alice") is False
    assert alice.cash_balance == 40
    assert alice.phase.kind == "AwaitingBankruptcy"


def test_turn_order_skips_eliminated_seats(four_player_game):
    bob = four_player_game.get_player("bob")
    four_player_game.eliminate_player(bob)

    four_player_game.roll_dice("alice", (1, 2))
    decline_property(four_player_game, "alice", 3)
    four_player_game.end_turn("alice")

    assert four_player_game.current_turn == 2
    assert four_player_game.current_players == 3


def test_turn_wraps_to_first_seat(basic_game):
    basic_game.roll_dice("alice", (1, 2))
    decline_property(basic_game, "alice", 3)
    basic_game.end_turn("alice")

    basic_game.roll_dice("bob", (1, 2))
    decline_property(basic_game, "bob", 3)
    basic_game.end_turn("bob")

    assert basic_game.current_turn == 0
    assert basic_game.turn_number == 3


def test_roll_past_go_with_empty_bank_changes_nothing(make_game):
    game = make_game(config=GameConfig(seed=42, initial_bank_balance=0))
    alice = game.get_player("alice")
    alice.position = 38
    events_before = len(game.event_log.events)

    with pytest.raises(ArithmeticSafetyError) as exc:
        game.roll_dice("alice", (1, 2))

    assert exc.value.code == GameErrorCode.ARITHMETIC_UNDERFLOW
    assert alice.position == 38
    assert not alice.has_rolled_dice
    assert alice.last_dice_roll is None
    assert alice.phase == AwaitingRoll()
    assert len(game.event_log.events) == events_before


def test_roll_short_of_go_works_with_empty_bank(make_game):
    game = make_game(config=GameConfig(seed=42, initial_bank_balance=0))

    game.roll_dice("alice", (1, 2))

    assert game.get_player("alice").position == 3


@pytest.mark.parametrize(
    "position, space_class",
    [
        (GO_POSITION, GoSpace),
        (JAIL_POSITION, JailSpace),
        (FREE_PARKING_POSITION, FreeParkingSpace),
        (GO_TO_JAIL_POSITION, GoToJailSpace),
    ],
)
def test_corner_spaces(basic_game, position, space_class):
    assert isinstance(basic_game.board.get_space(position), space_class)
