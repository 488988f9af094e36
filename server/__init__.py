"""
Server package exposing the FastAPI app, game registry and game service.
"""

from .app import app  # noqa: F401
from .registry import GameRegistry  # noqa: F401
from .service import GameService  # noqa: F401
