"""
Vote model for PostgreSQL storage.

Votes are never deleted. A later vote by the same voter on the same
proposal flips the earlier row to historical (is_current=False), so at most
one current vote exists per (proposal, voter).
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class Vote(Base):
    """One admitted ballot."""

    __tablename__ = "votes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Denormalised from the option for the current-vote lookup
    proposal_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("proposals.id", ondelete="CASCADE"),
        index=True,
    )
    proposal_option_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("proposal_options.id", ondelete="CASCADE"),
        index=True,
    )

    voter: Mapped[str] = mapped_column(String(64), index=True)

    # Chain height the vote was cast at
    block: Mapped[int] = mapped_column(Integer)
    # Balance-derived weight, never below the configured floor
    weight: Mapped[int] = mapped_column(BigInteger, default=1)

    is_current: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )

    __table_args__ = (
        Index("ix_votes_proposal_voter_current", "proposal_id", "voter", "is_current"),
    )

    def __repr__(self) -> str:
        return (
            f"<Vote(id={self.id}, voter={self.voter}, option={self.proposal_option_id}, "
            f"block={self.block}, current={self.is_current})>"
        )
