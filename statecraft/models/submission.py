from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from statecraft.models.base import Base
from statecraft.models.game import GamePhase


class Submission(Base):
    """A country's payload for one (turn, phase) slot.

    Replacing a submission rewrites ``payload`` in place; the unique constraint
    keeps exactly one slot per country per phase.
    """

    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("game_id", "country_key", "turn", "phase", name="uq_submission_slot"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"), nullable=False, index=True)
    country_key: Mapped[str] = mapped_column(String(64), nullable=False)
    turn: Mapped[int] = mapped_column(Integer, nullable=False)
    phase: Mapped[GamePhase] = mapped_column(Enum(GamePhase), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
