"""
Proposal models for PostgreSQL storage.

A proposal is a question with a fixed set of options. Identity across
nodes is the content hash; locally at most one proposal exists per subject.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base


class ProposalType(str, Enum):
    """What a proposal is about."""

    ITEM_VOTE = "ITEM_VOTE"  # Vote to remove a listing item
    PUBLIC_VOTE = "PUBLIC_VOTE"  # Free-form question posted by a user


class OptionRole(str, Enum):
    """Semantic marker of an option, so the engine never matches on text."""

    REMOVE = "REMOVE"
    KEEP = "KEEP"
    CUSTOM = "CUSTOM"


class Proposal(Base):
    """
    Canonical proposal record for a subject.

    The row is created on the first valid proposal message for the subject and
    may later be overwritten in place (same id) when an older message shows up.
    It is never deleted by message processing.
    """

    __tablename__ = "proposals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Content-derived global identity
    hash: Mapped[str] = mapped_column(String(64), unique=True, index=True)

    # Listing item hash for ITEM_VOTE, the proposal hash otherwise
    subject: Mapped[str] = mapped_column(String(128), unique=True, index=True)

    submitter: Mapped[str] = mapped_column(String(64), index=True)
    item: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    type: Mapped[str] = mapped_column(String(20), default=ProposalType.PUBLIC_VOTE.value)

    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")

    block_start: Mapped[int] = mapped_column(Integer)
    block_end: Mapped[int] = mapped_column(Integer)

    # Local receipt time vs. the origin time claimed by the message
    received_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    posted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    options = relationship(
        "ProposalOption",
        back_populates="proposal",
        cascade="all, delete-orphan",
        order_by="ProposalOption.option_id",
    )

    def __repr__(self) -> str:
        return f"<Proposal(id={self.id}, subject={self.subject}, hash={self.hash[:12]})>"


class ProposalOption(Base):
    """One selectable answer of a proposal."""

    __tablename__ = "proposal_options"

    __table_args__ = (
        UniqueConstraint("proposal_id", "option_id", name="uq_proposal_options_ordinal"),
        Index("ix_proposal_options_proposal_role", "proposal_id", "role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    proposal_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("proposals.id", ondelete="CASCADE"),
        index=True,
    )

    # Ordinal 0..N-1 within the proposal
    option_id: Mapped[int] = mapped_column(Integer)
    description: Mapped[str] = mapped_column(Text)
    role: Mapped[str] = mapped_column(String(10), default=OptionRole.CUSTOM.value)

    proposal = relationship("Proposal", back_populates="options")


class ProposalHash(Base):
    """
    A non-canonical hash seen for a subject.

    Hashes of proposals that lost the oldest-origin rule, either by being
    replaced or by arriving too late, point at the canonical proposal so
    votes naming them still resolve.
    """

    __tablename__ = "proposal_hashes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    hash: Mapped[str] = mapped_column(String(64), unique=True, index=True)

    proposal_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("proposals.id", ondelete="CASCADE"),
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
