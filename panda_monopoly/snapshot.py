"""
Public snapshot serialization of GameState.

Produces a JSON-safe, UI-friendly view of the current game. The fallback
RNG state is not exposed.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

from panda_monopoly.game import GameState, GameStatus
from panda_monopoly.player import PlayerState, TurnPhase
from panda_monopoly.spaces import OwnableSpace, PropertySpace


def serialize_phase(phase: TurnPhase) -> Dict[str, Any]:
    """Flatten a turn phase into {"kind": ..., **fields}."""
    data: Dict[str, Any] = {"kind": phase.kind}
    for key, value in asdict(phase).items():
        data[key] = getattr(value, "value", value)
    return data


def _serialize_player(game: GameState, player: PlayerState) -> Dict[str, Any]:
    props: List[Dict[str, Any]] = []
    for pos in sorted(player.properties_owned):
        space = game.board.get_space(pos)
        state = game.properties[pos]
        entry: Dict[str, Any] = {
            "position": pos,
            "name": space.name,
            "houses": state.houses,
            "has_hotel": state.has_hotel,
            "mortgaged": state.is_mortgaged,
        }
        if isinstance(space, PropertySpace):
            entry["color_group"] = space.color_group
        props.append(entry)

    return {
        "player_id": player.player_id,
        "seat": player.seat,
        "cash": player.cash_balance,
        "net_worth": player.net_worth,
        "position": player.position,
        "in_jail": player.in_jail,
        "jail_turns": player.jail_turns,
        "jail_cards": player.get_out_of_jail_cards,
        "doubles_count": player.doubles_count,
        "has_rolled_dice": player.has_rolled_dice,
        "last_dice_roll": list(player.last_dice_roll) if player.last_dice_roll else None,
        "is_bankrupt": player.is_bankrupt,
        "is_active": game.is_alive(player.seat),
        "timeout_penalties": player.timeout_penalty_count,
        "phase": serialize_phase(player.phase),
        "properties": props,
    }


def serialize_snapshot(game: GameState) -> Dict[str, Any]:
    """Serialize a GameState into a public, stable JSON dict.

    The snapshot includes:
    - status, turn_number and current_player_id
    - players with public info (cash, net worth, position, jail, phase, properties)
    - bank balance and building supply
    - the ownership table for every ownable space
    - active trades and the prize pool
    """
    current_player_id = None
    if game.players and game.status == GameStatus.IN_PROGRESS:
        current_player_id = game.get_current_player().player_id

    ownership: List[Dict[str, Any]] = []
    for space in game.board.spaces:
        if not isinstance(space, OwnableSpace):
            continue
        state = game.properties[space.position]
        ownership.append(
            {
                "position": space.position,
                "name": space.name,
                "owner": state.owner,
                "houses": state.houses,
                "has_hotel": state.has_hotel,
                "mortgaged": state.is_mortgaged,
            }
        )

    snapshot: Dict[str, Any] = {
        "status": game.status.value,
        "creator": game.creator,
        "turn_number": game.turn_number,
        "current_turn": game.current_turn,
        "current_player_id": current_player_id,
        "current_players": game.current_players,
        "turn_started_at": game.turn_started_at,
        "players": [_serialize_player(game, p) for p in game.players],
        "bank": {
            "balance": game.bank_balance,
            "houses_available": game.houses_remaining,
            "hotels_available": game.hotels_remaining,
        },
        "properties": ownership,
        "trades": [t.to_dict() for t in sorted(game.active_trades.values(), key=lambda t: t.trade_id)],
        "prize_pool": game.total_prize_pool,
        "prize_claimed": game.prize_claimed,
        "winner": game.winner,
        "end_reason": game.end_reason.value if game.end_reason else None,
    }
    return snapshot
