from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from statecraft.models.base import Base


class Province(Base):
    __tablename__ = "provinces"
    __table_args__ = (UniqueConstraint("game_id", "key", name="uq_province_game_key"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    owner_key: Mapped[str] = mapped_column(String(64), nullable=False)
    original_owner_key: Mapped[str] = mapped_column(String(64), nullable=False)
    terrain: Mapped[str] = mapped_column(String(16), nullable=False, default="plains")
    gdp_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    population: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    troops: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_capital: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
