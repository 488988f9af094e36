"""
Panda Monopoly Rules Engine

A deterministic, validate-then-mutate implementation of the board game's
rules with a bank counterparty, peer trades and timeout enforcement.
"""

from .board import BOARD, Board
from .config import GameConfig
from .exceptions import GameErrorCode, MonopolyError
from .game import GameState, GameStatus, initialize_game
from .player import PlayerState
from .rules import Action, ActionType, apply_action, get_legal_actions
from .snapshot import serialize_snapshot

__all__ = [
    "BOARD",
    "Board",
    "GameConfig",
    "GameErrorCode",
    "MonopolyError",
    "GameState",
    "GameStatus",
    "initialize_game",
    "PlayerState",
    "Action",
    "ActionType",
    "apply_action",
    "get_legal_actions",
    "serialize_snapshot",
]
