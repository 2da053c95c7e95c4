import enum

from sqlalchemy import Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from statecraft.models.base import Base


class UltimatumStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    enforced_concession = "enforced_concession"
    enforced_war = "enforced_war"
    void = "void"


class Ultimatum(Base):
    __tablename__ = "ultimatums"
    __table_args__ = (UniqueConstraint("game_id", "key", name="uq_ultimatum_game_key"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String(64), nullable=False)
    sender_key: Mapped[str] = mapped_column(String(64), nullable=False)
    target_key: Mapped[str] = mapped_column(String(64), nullable=False)
    demand: Mapped[str] = mapped_column(String(32), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    province_key: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None)
    issued_turn: Mapped[int] = mapped_column(Integer, nullable=False)
    expires_turn: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[UltimatumStatus] = mapped_column(
        Enum(UltimatumStatus), nullable=False, default=UltimatumStatus.pending
    )
