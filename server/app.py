from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from panda_monopoly.exceptions import GameNotFoundError, InvalidPositionError, MonopolyError
from panda_monopoly.settings import EngineSettings, get_engine_settings

from .registry import GameRegistry
from .schemas import (
    ActionRequest,
    ActionResponse,
    CreateGameRequest,
    CreateGameResponse,
    ErrorResponse,
    EventsResponse,
    LegalActionsResponse,
    PlayerRequest,
)
from .service import GameService

logger = logging.getLogger(__name__)

RULE_ERRORS = {400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}
GAME_ERRORS = {404: {"model": ErrorResponse}, **RULE_ERRORS}


def _error_response(status_code: int, exc: MonopolyError) -> JSONResponse:
    body = ErrorResponse(code=exc.code.value, message=exc.message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app(settings: Optional[EngineSettings] = None) -> FastAPI:
    """Build the API app with its own registry and service."""
    settings = settings or get_engine_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(level=settings.log_level)
        logger.info("Starting Monopoly rules server")
        yield
        logger.info("Shutting down Monopoly rules server")

    app = FastAPI(title="Panda Monopoly Server", version="0.1.0", lifespan=lifespan)
    service = GameService(GameRegistry(), settings)
    app.state.service = service

    @app.exception_handler(GameNotFoundError)
    async def game_not_found(request: Request, exc: GameNotFoundError):
        return _error_response(404, exc)

    @app.exception_handler(InvalidPositionError)
    async def invalid_position(request: Request, exc: InvalidPositionError):
        return _error_response(400, exc)

    @app.exception_handler(MonopolyError)
    async def rule_violation(request: Request, exc: MonopolyError):
        return _error_response(409, exc)

    @app.post("/games", response_model=CreateGameResponse, responses=RULE_ERRORS)
    async def create_game(req: CreateGameRequest):
        game_id = await service.create_game(
            creator=req.creator,
            seed=req.seed,
            entry_fee=req.entry_fee,
            time_limit_seconds=req.time_limit_seconds,
            max_players=req.max_players,
            join=req.join,
        )
        return CreateGameResponse(game_id=game_id)

    @app.post("/games/{game_id}/join", response_model=ActionResponse, responses=GAME_ERRORS)
    async def join_game(game_id: str, req: PlayerRequest):
        result = await service.join(game_id, req.player_id)
        return ActionResponse(accepted=True, action_type="join_game", result=result)

    @app.post("/games/{game_id}/start", response_model=ActionResponse, responses=GAME_ERRORS)
    async def start_game(game_id: str, req: PlayerRequest):
        result = await service.start(game_id, req.player_id)
        return ActionResponse(accepted=True, action_type="start_game", result=result)

    @app.post("/games/{game_id}/actions", response_model=ActionResponse, responses=GAME_ERRORS)
    async def apply_action(game_id: str, req: ActionRequest):
        result = await service.apply(game_id, req.action_type, req.player_id, req.params)
        return ActionResponse(accepted=True, action_type=req.action_type, result=result)

    @app.get("/games/{game_id}/snapshot", responses=GAME_ERRORS)
    async def get_snapshot(game_id: str):
        return await service.snapshot(game_id)

    @app.get("/games/{game_id}/legal_actions", response_model=LegalActionsResponse, responses=GAME_ERRORS)
    async def legal_actions(game_id: str, player_id: str):
        actions = await service.legal_actions(game_id, player_id)
        return LegalActionsResponse(game_id=game_id, player_id=player_id, actions=actions)

    @app.get("/games/{game_id}/events", response_model=EventsResponse, responses=GAME_ERRORS)
    async def get_events(game_id: str, since: int = -1):
        delta = await service.events_since(game_id, since)
        return EventsResponse(game_id=game_id, **delta)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.app:app", host="0.0.0.0", port=8000)
