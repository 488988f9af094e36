from __future__ import annotations

import asyncio
import uuid
from typing import Dict

from panda_monopoly.exceptions import GameNotFoundError
from panda_monopoly.game import GameState


class GameRegistry:
    """
    In-memory registry of games.

    Each game gets its own asyncio.Lock; every operation on a game runs
    under it, so operations on one game never interleave.
    """

    def __init__(self):
        self._games: Dict[str, GameState] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock = asyncio.Lock()

    async def add(self, game: GameState) -> str:
        game_id = uuid.uuid4().hex[:12]
        async with self._lock:
            self._games[game_id] = game
            self._locks[game_id] = asyncio.Lock()
        return game_id

    def get(self, game_id: str) -> GameState:
        game = self._games.get(game_id)
        if game is None:
            raise GameNotFoundError(game_id)
        return game

    def lock(self, game_id: str) -> asyncio.Lock:
        self.get(game_id)
        return self._locks[game_id]
