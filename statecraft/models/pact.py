import enum
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from statecraft.models.base import Base


class PactKind(str, enum.Enum):
    alliance = "alliance"
    union = "union"


class Pact(Base):
    __tablename__ = "pacts"
    __table_args__ = (UniqueConstraint("game_id", "key", name="uq_pact_game_key"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String(64), nullable=False)
    kind: Mapped[PactKind] = mapped_column(Enum(PactKind), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    abbreviation: Mapped[str] = mapped_column(String(16), nullable=False)
    color: Mapped[str] = mapped_column(String(16), nullable=False)
    # Ordered list of country keys; JSON keeps membership changes a single-row update
    members: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    formed_turn: Mapped[int] = mapped_column(Integer, nullable=False)
    dissolved_turn: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
