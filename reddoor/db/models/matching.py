"""Swipe and match tables."""

from sqlalchemy import BigInteger, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reddoor.db.base import Base


class SwipeRow(Base):
    """Latest swipe for an ordered (from, to) user pair."""

    __tablename__ = "swipes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    from_user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    to_user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    direction: Mapped[str] = mapped_column(
        String(8), nullable=False, comment="'like' or 'pass'"
    )
    created_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        UniqueConstraint("from_user_id", "to_user_id", name="uq_swipe_pair"),
    )

    def __repr__(self) -> str:
        return (
            f"<SwipeRow({self.from_user_id} -> {self.to_user_id}, "
            f"direction={self.direction})>"
        )


class MatchRow(Base):
    """Mutual match; user_a sorts before user_b."""

    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    match_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    user_a: Mapped[str] = mapped_column(String(255), nullable=False)
    user_b: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_a", "user_b", name="uq_match_pair"),
        Index("idx_match_user_b", "user_b"),
    )

    def __repr__(self) -> str:
        return f"<MatchRow(match_id={self.match_id}, {self.user_a} <-> {self.user_b})>"
