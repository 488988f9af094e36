"""
Bankruptcy and liquidation.

A bankrupt player's whole position is converted into bank currency: each
owned space is stripped of buildings and returned to the bank, the
buildings go back to the supply pools, and the buildings' half value plus
any unmortgaged equity plus the player's cash is credited to the bank.
Liquidation always pays the bank, even when a creditor is known.
"""

from dataclasses import dataclass
from typing import List

from panda_monopoly.config import HOUSES_PER_HOTEL
from panda_monopoly.exceptions import ArithmeticSafetyError, GameErrorCode, InvalidActionError
from panda_monopoly.game import GameState
from panda_monopoly.money import EventType, checked_add
from panda_monopoly.player import AwaitingBankruptcy, PlayerState, PropertyState
from panda_monopoly.spaces import OwnableSpace, PropertySpace


@dataclass
class LiquidationResult:
    """What liquidating one player returned to the bank."""

    player_id: str
    cash: int
    asset_value: int
    houses_returned: int
    hotels_returned: int
    positions: List[int]

    @property
    def total(self) -> int:
        return self.cash + self.asset_value


def liquidation_value(space: OwnableSpace, state: PropertyState) -> int:
    """
    Value one space contributes when liquidated.

    Houses return half their cost, a hotel half of five houses' cost, and
    the mortgage value counts only while the space is unmortgaged.
    """
    value = 0
    if isinstance(space, PropertySpace):
        value += state.houses * (space.house_cost // 2)
        if state.has_hotel:
            value += (HOUSES_PER_HOTEL + 1) * space.house_cost // 2
    if not state.is_mortgaged:
        value += space.mortgage_value
    return value


def liquidate_player(game: GameState, player: PlayerState) -> LiquidationResult:
    """Convert a player's assets and cash into bank currency and clear their record."""
    positions = sorted(player.properties_owned)
    asset_value = 0
    houses = 0
    hotels = 0
    for pos in positions:
        space = game.board.get_ownable_space(pos)
        state = game.properties[pos]
        asset_value = checked_add(asset_value, liquidation_value(space, state))
        houses += state.houses
        hotels += 1 if state.has_hotel else 0

    if not game.bank.can_return_houses(houses) or game.bank.hotels_available + hotels > game.bank.hotel_limit:
        raise ArithmeticSafetyError(
            GameErrorCode.ARITHMETIC_OVERFLOW,
            "Returned buildings would exceed the bank supply",
        )
    result = LiquidationResult(
        player_id=player.player_id,
        cash=player.cash_balance,
        asset_value=asset_value,
        houses_returned=houses,
        hotels_returned=hotels,
        positions=positions,
    )
    new_balance = checked_add(game.bank.balance, result.total)

    for pos in positions:
        game.properties[pos].reset()
    game.bank.return_houses(houses)
    game.bank.return_hotels(hotels)
    game.bank.balance = new_balance

    player.cash_balance = 0
    player.net_worth = 0
    player.properties_owned.clear()
    player.get_out_of_jail_cards = 0
    player.in_jail = False
    player.jail_turns = 0
    player.position = 0
    player.reset_turn_state()

    game.event_log.log(
        EventType.BANKRUPTCY,
        player_id=player.player_id,
        cash=result.cash,
        asset_value=result.asset_value,
        houses_returned=houses,
        hotels_returned=hotels,
        properties=positions,
    )
    return result


def remove_bankrupt_player(game: GameState, player: PlayerState) -> LiquidationResult:
    """Liquidate, drop the player's pending trades, free the seat and check for a winner."""
    result = liquidate_player(game, player)
    game.trade_manager.cancel_trades_for(player.player_id)
    game.eliminate_player(player)
    return result


def declare_bankruptcy(game: GameState, player_id: str) -> LiquidationResult:
    """
    Declare bankruptcy.

    Allowed for a player facing bankruptcy resolution at any time, or
    voluntarily by the player whose turn it is.
    """
    game.require_in_progress()
    player = game.get_player(player_id)
    if not isinstance(player.phase, AwaitingBankruptcy) and player.seat != game.current_turn:
        raise InvalidActionError(GameErrorCode.NOT_PLAYER_TURN, f"Not {player_id}'s turn")

    game.touch(player)
    return remove_bankrupt_player(game, player)
