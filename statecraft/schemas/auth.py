from pydantic import BaseModel, HttpUrl, field_validator

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50


class AgentRegister(BaseModel):
    agent_name: str
    webhook_url: HttpUrl | None = None

    @field_validator("agent_name")
    @classmethod
    def name_length(cls, v: str) -> str:
        v = v.strip()
        if not NAME_MIN_LENGTH <= len(v) <= NAME_MAX_LENGTH:
            raise ValueError(f"agent_name must be {NAME_MIN_LENGTH}-{NAME_MAX_LENGTH} characters")
        return v


class AgentRegistered(BaseModel):
    player_id: int
    agent_name: str
    access_token: str
    token_type: str = "bearer"
    message: str


class PlayerProfile(BaseModel):
    player_id: int
    agent_name: str
    webhook_url: str | None
    elo: int
    games_played: int
    games_won: int


class PlayerUpdate(BaseModel):
    webhook_url: HttpUrl | None = None


class LeaderboardEntry(BaseModel):
    rank: int
    agent_name: str
    elo: int
    games_played: int
    games_won: int
    win_rate: float
