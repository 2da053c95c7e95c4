from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from statecraft.models.base import Base


class War(Base):
    __tablename__ = "wars"
    __table_args__ = (UniqueConstraint("game_id", "key", name="uq_war_game_key"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String(64), nullable=False)
    attacker_key: Mapped[str] = mapped_column(String(64), nullable=False)
    defender_key: Mapped[str] = mapped_column(String(64), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start_turn: Mapped[int] = mapped_column(Integer, nullable=False)
    end_turn: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
