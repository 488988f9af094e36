"""
Tests for the legal-action listing and action dispatch.
"""

import pytest

from panda_monopoly.exceptions import GameErrorCode, InvalidActionError, InvalidPositionError, TradeError
from panda_monopoly.player import AwaitingBankruptcy, AwaitingPropertyDecision
from panda_monopoly.rules import Action, ActionType, apply_action, get_legal_actions
from panda_monopoly.trade import TradeType


def _types(actions):
    return [a.action_type for a in actions]


class TestLegalActions:
    """What each player may do in each phase."""

    def test_turn_start(self, basic_game):
        assert get_legal_actions(basic_game, "alice") == [
            Action(ActionType.ROLL_DICE, "alice"),
            Action(ActionType.CREATE_TRADE, "alice", receiver_id="bob"),
        ]
        assert get_legal_actions(basic_game, "bob") == [
            Action(ActionType.CREATE_TRADE, "bob", receiver_id="alice"),
        ]

    def test_unknown_player_has_no_actions(self, basic_game):
        assert get_legal_actions(basic_game, "mallory") == []

    def test_property_decision(self, basic_game):
        basic_game.roll_dice("alice", (1, 2))

        actions = get_legal_actions(basic_game, "alice")

        assert actions[:2] == [
            Action(ActionType.BUY_PROPERTY, "alice", position=3),
            Action(ActionType.DECLINE_PROPERTY, "alice", position=3),
        ]

    def test_cannot_buy_without_cash(self, basic_game):
        basic_game.get_player("alice").cash_balance = 10
        basic_game.roll_dice("alice", (1, 2))

        assert _types(get_legal_actions(basic_game, "alice"))[0] == ActionType.DECLINE_PROPERTY

    def test_end_turn_after_resolution(self, basic_game):
        basic_game.roll_dice("alice", (1, 2))
        apply_action(basic_game, Action(ActionType.DECLINE_PROPERTY, "alice", position=3))

        assert ActionType.END_TURN in _types(get_legal_actions(basic_game, "alice"))

    def test_pending_bankruptcy_only_allows_declaring(self, basic_game):
        basic_game.get_player("alice").phase = AwaitingBankruptcy(amount=300)

        assert get_legal_actions(basic_game, "alice") == [Action(ActionType.DECLARE_BANKRUPTCY, "alice")]

    def test_jail_options_before_rolling(self, basic_game):
        alice = basic_game.get_player("alice")
        alice.in_jail = True
        alice.position = 10
        alice.get_out_of_jail_cards = 1

        assert _types(get_legal_actions(basic_game, "alice"))[:3] == [
            ActionType.PAY_JAIL_FINE,
            ActionType.USE_JAIL_CARD,
            ActionType.ROLL_DICE,
        ]

    def test_building_and_mortgage_options(self, basic_game, give_property):
        give_property(basic_game, "alice", 1)
        give_property(basic_game, "alice", 3)

        actions = get_legal_actions(basic_game, "alice")

        assert Action(ActionType.BUILD_HOUSE, "alice", position=1) in actions
        assert Action(ActionType.MORTGAGE_PROPERTY, "alice", position=3) in actions
        assert ActionType.BUILD_HOTEL not in _types(actions)

    def test_trade_responses(self, basic_game):
        trade = apply_action(
            basic_game,
            Action(ActionType.CREATE_TRADE, "bob", receiver_id="alice", trade_type="money_only", proposer_money=50),
        )

        assert Action(ActionType.ACCEPT_TRADE, "alice", trade_id=trade.trade_id) in get_legal_actions(
            basic_game, "alice"
        )
        assert Action(ActionType.CANCEL_TRADE, "bob", trade_id=trade.trade_id) in get_legal_actions(
            basic_game, "bob"
        )

    def test_lobby(self, make_game):
        game = make_game(start=False)

        assert get_legal_actions(game, "alice") == [Action(ActionType.START_GAME, "alice")]
        assert get_legal_actions(game, "bob") == [Action(ActionType.LEAVE_GAME, "bob")]
        assert get_legal_actions(game, "carol") == [Action(ActionType.JOIN_GAME, "carol")]


class TestApplyAction:
    """Dispatch onto engine operations."""

    def test_roll_with_fixed_dice(self, basic_game):
        assert apply_action(basic_game, Action(ActionType.ROLL_DICE, "alice", dice=[1, 2])) == (1, 2)
        assert basic_game.get_player("alice").phase == AwaitingPropertyDecision(position=3)

    def test_buy_through_dispatch(self, basic_game):
        apply_action(basic_game, Action(ActionType.ROLL_DICE, "alice", dice=[1, 2]))
        apply_action(basic_game, Action(ActionType.BUY_PROPERTY, "alice", position=3))

        assert basic_game.properties[3].owner == "alice"

    def test_bad_dice(self, basic_game):
        with pytest.raises(InvalidPositionError) as exc:
            apply_action(basic_game, Action(ActionType.ROLL_DICE, "alice", dice=[1, 2, 3]))
        assert exc.value.code == GameErrorCode.INVALID_DICE_ROLL

    def test_missing_parameter(self, basic_game):
        with pytest.raises(InvalidActionError) as exc:
            apply_action(basic_game, Action(ActionType.BUY_PROPERTY, "alice"))
        assert "position" in exc.value.message

    def test_missing_actor(self, basic_game):
        with pytest.raises(InvalidActionError) as exc:
            apply_action(basic_game, Action(ActionType.ROLL_DICE))
        assert exc.value.code == GameErrorCode.PLAYER_NOT_FOUND

    def test_create_trade_parses_type(self, basic_game):
        trade = apply_action(
            basic_game,
            Action(ActionType.CREATE_TRADE, "alice", receiver_id="bob", trade_type="money_only", proposer_money=25),
        )
        assert trade.trade_type == TradeType.MONEY_ONLY
        assert trade.proposer_money == 25

    def test_unknown_trade_type(self, basic_game):
        with pytest.raises(TradeError) as exc:
            apply_action(
                basic_game,
                Action(ActionType.CREATE_TRADE, "alice", receiver_id="bob", trade_type="swap", proposer_money=1),
            )
        assert exc.value.code == GameErrorCode.INVALID_TRADE_PROPOSAL

    def test_rejected_action_leaves_state_alone(self, basic_game):
        with pytest.raises(InvalidActionError) as exc:
            apply_action(basic_game, Action(ActionType.ROLL_DICE, "bob", dice=[1, 2]))

        assert exc.value.code == GameErrorCode.NOT_PLAYER_TURN
        assert basic_game.get_player("bob").position == 0
        assert basic_game.current_turn == 0

    def test_action_serializes(self):
        action = Action(ActionType.SELL_BUILDING, "alice", position=1, building_type="house")
        assert action.to_dict() == {
            "action_type": "sell_building",
            "player_id": "alice",
            "params": {"position": 1, "building_type": "house"},
        }


class TestParamTypes:
    """Params arrive from JSON; ints may come as strings, anything else is rejected."""

    def test_integer_strings_are_accepted(self, basic_game):
        apply_action(basic_game, Action(ActionType.ROLL_DICE, "alice", dice=["1", "2"]))
        apply_action(basic_game, Action(ActionType.BUY_PROPERTY, "alice", position="3"))

        assert basic_game.properties[3].owner == "alice"

    @pytest.mark.parametrize("position", ["three", 3.5, [3], True])
    def test_bad_position(self, basic_game, position):
        apply_action(basic_game, Action(ActionType.ROLL_DICE, "alice", dice=[1, 2]))

        with pytest.raises(InvalidPositionError) as exc:
            apply_action(basic_game, Action(ActionType.BUY_PROPERTY, "alice", position=position))

        assert exc.value.code == GameErrorCode.INVALID_BOARD_POSITION
        assert basic_game.properties[3].owner is None

    @pytest.mark.parametrize("dice", ["12", [1, "x"], 7])
    def test_bad_dice_values(self, basic_game, dice):
        with pytest.raises(InvalidPositionError) as exc:
            apply_action(basic_game, Action(ActionType.ROLL_DICE, "alice", dice=dice))
        assert exc.value.code == GameErrorCode.INVALID_DICE_ROLL

    def test_bad_card_index(self, basic_game):
        basic_game.roll_dice("alice", (3, 4))

        with pytest.raises(InvalidPositionError) as exc:
            apply_action(basic_game, Action(ActionType.DRAW_CHANCE_CARD, "alice", card_index="first"))
        assert exc.value.code == GameErrorCode.INVALID_CARD_INDEX

    def test_bad_trade_id(self, basic_game):
        with pytest.raises(TradeError) as exc:
            apply_action(basic_game, Action(ActionType.ACCEPT_TRADE, "alice", trade_id="latest"))
        assert exc.value.code == GameErrorCode.TRADE_NOT_FOUND

    def test_bad_trade_amount(self, basic_game):
        with pytest.raises(TradeError) as exc:
            apply_action(
                basic_game,
                Action(ActionType.CREATE_TRADE, "alice", receiver_id="bob", trade_type="money_only", proposer_money="lots"),
            )
        assert exc.value.code == GameErrorCode.INVALID_TRADE_PROPOSAL
        assert basic_game.active_trades == {}
