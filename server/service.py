"""
GameService orchestrates the rules engine behind the HTTP surface.

Every call takes the game's lock, dispatches through the rules API and logs
what happened. Engine errors propagate to the app, which maps them to HTTP
responses.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from panda_monopoly.config import GameConfig
from panda_monopoly.exceptions import GameErrorCode, InvalidActionError, MonopolyError
from panda_monopoly.game import GameState, initialize_game
from panda_monopoly.player import PlayerState
from panda_monopoly.rules import Action, ActionType, apply_action, get_legal_actions
from panda_monopoly.settings import EngineSettings
from panda_monopoly.snapshot import serialize_snapshot

from server.registry import GameRegistry

logger = logging.getLogger(__name__)

RESERVED_PARAMS = frozenset({"action_type", "player_id"})


def to_jsonable(value: Any) -> Any:
    """Convert an operation's return value into plain JSON types."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, PlayerState):
        return {"player_id": value.player_id, "seat": value.seat}
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if is_dataclass(value):
        return {k: to_jsonable(v) for k, v in asdict(value).items()}
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    return str(value)


class GameService:
    """Use-case service for creating and running games."""

    def __init__(self, registry: GameRegistry, settings: EngineSettings):
        self.registry = registry
        self.settings = settings

    async def create_game(
        self,
        *,
        creator: str,
        seed: Optional[int] = None,
        entry_fee: int = 0,
        time_limit_seconds: Optional[int] = None,
        max_players: Optional[int] = None,
        join: bool = True,
    ) -> str:
        """Create a game from deployment settings and per-game overrides."""
        overrides: Dict[str, Any] = {
            "seed": seed,
            "entry_fee": entry_fee,
            "time_limit_seconds": time_limit_seconds,
        }
        if max_players is not None:
            overrides["max_players"] = max_players
        config = GameConfig.from_settings(self.settings, **overrides)

        game = initialize_game(creator, config)
        if join:
            game.join_game(creator)
        game_id = await self.registry.add(game)
        logger.info("Created game %s for %s", game_id, creator)
        return game_id

    async def apply(self, game_id: str, action_type: str, player_id: Optional[str], params: Dict[str, Any]) -> Any:
        """Apply one action under the game's lock and return a JSON-safe result."""
        try:
            atype = ActionType(action_type)
        except ValueError:
            logger.info("Game %s: unknown action type %r", game_id, action_type)
            raise InvalidActionError(GameErrorCode.UNAUTHORIZED, f"Unknown action type: {action_type}") from None

        reserved = sorted(RESERVED_PARAMS.intersection(params))
        if reserved:
            raise InvalidActionError(
                GameErrorCode.INVALID_SPECIAL_SPACE_ACTION,
                f"Params cannot override {', '.join(reserved)}",
            )

        action = Action(atype, player_id, **params)
        async with self.registry.lock(game_id):
            game = self.registry.get(game_id)
            try:
                result = apply_action(game, action)
            except MonopolyError as exc:
                logger.info("Game %s: rejected %r (%s)", game_id, action, exc.code.value)
                raise
            except Exception:
                logger.exception("Game %s: unexpected failure applying %r", game_id, action)
                raise
        logger.debug("Game %s: applied %r", game_id, action)
        return to_jsonable(result)

    async def join(self, game_id: str, player_id: str) -> Any:
        return await self.apply(game_id, ActionType.JOIN_GAME.value, player_id, {})

    async def start(self, game_id: str, player_id: str) -> Any:
        return await self.apply(game_id, ActionType.START_GAME.value, player_id, {})

    async def legal_actions(self, game_id: str, player_id: str) -> List[Dict[str, Any]]:
        async with self.registry.lock(game_id):
            game = self.registry.get(game_id)
            return [a.to_dict() for a in get_legal_actions(game, player_id)]

    async def snapshot(self, game_id: str) -> Dict[str, Any]:
        async with self.registry.lock(game_id):
            return serialize_snapshot(self.registry.get(game_id))

    async def events_since(self, game_id: str, since_index: int = -1) -> Dict[str, Any]:
        """Events after `since_index`, with their sequence numbers."""
        async with self.registry.lock(game_id):
            game: GameState = self.registry.get(game_id)
            events = game.event_log.events
            start = max(since_index + 1, 0)
            mapped = []
            for index in range(start, len(events)):
                event = events[index].to_dict()
                mapped.append(
                    {
                        "sequence_number": index,
                        "event_type": event["event_type"],
                        "player_id": event["player_id"],
                        "payload": to_jsonable(event["details"]),
                    }
                )
            return {"events": mapped, "from_index": start, "to_index": len(events) - 1}
