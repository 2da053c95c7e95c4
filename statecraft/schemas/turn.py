from datetime import datetime
from typing import Any

from pydantic import BaseModel

from statecraft.models.game import GamePhase, GameStatus


class SubmitRequest(BaseModel):
    """Raw submission; the payload is validated against the open phase by the scheduler."""

    phase: str
    payload: dict[str, Any]


class SubmitResponse(BaseModel):
    status: str
    turn: int
    phase: GamePhase
    revision: int
    phase_closed: bool


class PhaseResponse(BaseModel):
    game_id: int
    status: GameStatus
    turn: int
    phase: GamePhase | None
    deadline: datetime | None
    is_paused: bool

    model_config = {"from_attributes": True}


class EventResponse(BaseModel):
    id: int
    game_id: int
    turn: int
    phase: str | None
    event_type: str
    payload: dict[str, Any]
    icon: str
    description: str
    is_private: bool
    created_at: datetime
