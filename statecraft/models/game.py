import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from statecraft.models.base import Base


class GameStatus(str, enum.Enum):
    lobby = "lobby"
    active = "active"
    ended = "ended"


class GamePhase(str, enum.Enum):
    negotiation = "negotiation"
    declaration = "declaration"
    resolution = "resolution"


class Game(Base):
    __tablename__ = "games"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[GameStatus] = mapped_column(
        Enum(GameStatus), nullable=False, default=GameStatus.lobby
    )
    is_paused: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    pause_reason: Mapped[str | None] = mapped_column(String(500), nullable=True, default=None)

    current_turn: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_phase: Mapped[GamePhase | None] = mapped_column(
        Enum(GamePhase), nullable=True, default=None
    )
    phase_deadline: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    phase_deadline_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=120)

    min_players: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    max_players: Mapped[int] = mapped_column(Integer, nullable=False, default=8)
    max_turns: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    fallback_action: Mapped[str] = mapped_column(String(32), nullable=False, default="defend")
    seed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Derived state written back after every resolution pass
    world_tension: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    coalition_warned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    winner_country_key: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None)
    end_reason: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
