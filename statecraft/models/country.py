from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from statecraft.models.base import Base


class Country(Base):
    """A playable nation inside one game. Keyed by a roster string such as ``france``."""

    __tablename__ = "countries"
    __table_args__ = (UniqueConstraint("game_id", "key", name="uq_country_game_key"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    agent_id: Mapped[int | None] = mapped_column(
        ForeignKey("agents.id"), nullable=True, default=None
    )

    territory: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    military: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    naval: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    gdp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    money: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tech: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stability: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    spy_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    capital_province_key: Mapped[str | None] = mapped_column(String(64), nullable=True)
    supply_penalty: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    forced_neutral_turn: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)

    is_eliminated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    elimination_cause: Mapped[str | None] = mapped_column(String(16), nullable=True, default=None)
    eliminated_turn: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    annexed_by: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None)
