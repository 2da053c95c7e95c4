from datetime import datetime

from pydantic import BaseModel, Field

from statecraft.models.game import GamePhase, GameStatus
from statecraft.models.pact import PactKind


class GameCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    min_players: int | None = Field(default=None, ge=2)
    max_players: int | None = Field(default=None, ge=2)
    max_turns: int | None = Field(default=None, ge=1, le=500)
    phase_deadline_seconds: int | None = Field(default=None, ge=1)
    fallback_action: str | None = None
    seed: int | None = None


class CountryResponse(BaseModel):
    key: str
    name: str
    agent_id: int | None
    territory: int
    military: int
    naval: int
    gdp: int
    money: int
    tech: int
    stability: int
    spy_tokens: int
    capital_province_key: str | None
    supply_penalty: float
    is_eliminated: bool
    elimination_cause: str | None
    eliminated_turn: int | None
    annexed_by: str | None

    model_config = {"from_attributes": True}


class GameResponse(BaseModel):
    id: int
    name: str
    status: GameStatus
    is_paused: bool
    pause_reason: str | None
    current_turn: int
    current_phase: GamePhase | None
    phase_deadline: datetime | None
    phase_deadline_seconds: int
    min_players: int
    max_players: int
    max_turns: int
    fallback_action: str
    world_tension: int
    winner_country_key: str | None
    end_reason: str | None
    created_at: datetime
    started_at: datetime | None
    ended_at: datetime | None
    countries: list[CountryResponse] = []

    model_config = {"from_attributes": True}


class JoinGame(BaseModel):
    country: str


class EndGame(BaseModel):
    reason: str = Field(default="admin", max_length=64)


class RosterProvince(BaseModel):
    key: str
    name: str
    terrain: str
    gdp_value: int
    is_capital: bool


class RosterCountry(BaseModel):
    key: str
    name: str
    military: int
    naval: int
    money: int
    tech: int
    stability: int
    provinces: list[RosterProvince]


class PactResponse(BaseModel):
    key: str
    kind: PactKind
    name: str
    abbreviation: str
    color: str
    members: list[str]
    formed_turn: int

    model_config = {"from_attributes": True}


class WarResponse(BaseModel):
    key: str
    attacker_key: str
    defender_key: str
    start_turn: int

    model_config = {"from_attributes": True}


class LeaderboardResponse(BaseModel):
    game_id: int
    turn: int
    world_tension: int
    countries: list[CountryResponse]
    pacts: list[PactResponse]
    wars: list[WarResponse]
