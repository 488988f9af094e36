from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CreateGameRequest(BaseModel):
    creator: str = Field(min_length=1)
    seed: Optional[int] = None
    entry_fee: int = Field(default=0, ge=0)
    time_limit_seconds: Optional[int] = Field(default=None, gt=0)
    max_players: Optional[int] = Field(default=None, ge=2, le=4)
    join: bool = Field(default=True, description="Seat the creator immediately.")


class CreateGameResponse(BaseModel):
    game_id: str


class PlayerRequest(BaseModel):
    player_id: str = Field(min_length=1)


class ActionRequest(BaseModel):
    player_id: Optional[str] = None
    action_type: str
    params: Dict[str, Any] = Field(default_factory=dict)


class ActionResponse(BaseModel):
    accepted: bool
    action_type: str
    result: Any = None


class ActionDTO(BaseModel):
    action_type: str
    player_id: Optional[str] = None
    params: Dict[str, Any] = Field(default_factory=dict)


class LegalActionsResponse(BaseModel):
    game_id: str
    player_id: str
    actions: List[ActionDTO]


class GameEventDTO(BaseModel):
    sequence_number: int
    event_type: str
    player_id: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)


class EventsResponse(BaseModel):
    game_id: str
    events: List[GameEventDTO]
    from_index: int
    to_index: int


class ErrorResponse(BaseModel):
    code: str
    message: str
