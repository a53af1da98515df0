"""
Proposal tally snapshots.

Each ProposalResult is an immutable snapshot taken at a chain height; the
most recently created one is the current tally of its proposal.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base


class ProposalResult(Base):
    """Point-in-time tally of a proposal."""

    __tablename__ = "proposal_results"

    __table_args__ = (Index("ix_proposal_results_proposal_block", "proposal_id", "block"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    proposal_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("proposals.id", ondelete="CASCADE"),
        index=True,
    )

    # Chain height at computation time
    block: Mapped[int] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    option_results = relationship(
        "ProposalOptionResult",
        back_populates="proposal_result",
        cascade="all, delete-orphan",
    )


class ProposalOptionResult(Base):
    """Tally of one option within a ProposalResult."""

    __tablename__ = "proposal_option_results"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    proposal_result_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("proposal_results.id", ondelete="CASCADE"),
        index=True,
    )
    proposal_option_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("proposal_options.id", ondelete="CASCADE"),
        index=True,
    )

    # Sum of admitted vote weights
    weight: Mapped[int] = mapped_column(BigInteger, default=0)
    # Distinct voters whose current vote is this option
    voters: Mapped[int] = mapped_column(Integer, default=0)

    proposal_result = relationship("ProposalResult", back_populates="option_results")
