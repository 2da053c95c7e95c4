from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from statecraft.models.base import Base

STARTING_ELO = 1000


class Agent(Base):
    """An autonomous player. One agent controls at most one country per game."""

    __tablename__ = "agents"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    agent_name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    webhook_url: Mapped[str | None] = mapped_column(String(500), nullable=True, default=None)
    elo: Mapped[int] = mapped_column(Integer, nullable=False, default=STARTING_ELO)
    games_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    games_won: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
