"""
Vote repository for database operations.

Votes are never deleted; superseding flips is_current off on the old row.
"""

from typing import Optional

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.vote import Vote
from repositories.errors import translate_db_errors
from schemas.vote import VoteCreateRequest


class VoteRepository:
    """Repository for vote database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @translate_db_errors
    async def find_current(self, proposal_id: int, voter: str) -> Optional[Vote]:
        """Get the voter's current vote on a proposal."""
        result = await self.db.execute(
            select(Vote).where(
                and_(
                    Vote.proposal_id == proposal_id,
                    Vote.voter == voter,
                    Vote.is_current.is_(True),
                )
            )
        )
        return result.scalar_one_or_none()

    @translate_db_errors
    async def list_current(self, proposal_id: int) -> list[Vote]:
        """Get every current vote on a proposal."""
        result = await self.db.execute(
            select(Vote)
            .where(
                and_(
                    Vote.proposal_id == proposal_id,
                    Vote.is_current.is_(True),
                )
            )
            .order_by(Vote.id.asc())
        )
        return list(result.scalars().all())

    @translate_db_errors
    async def create(self, request: VoteCreateRequest) -> Vote:
        """Insert a vote as the voter's current vote."""
        vote = Vote(
            proposal_id=request.proposal_id,
            proposal_option_id=request.proposal_option_id,
            voter=request.voter,
            block=request.block,
            weight=request.weight,
            is_current=True,
        )

        self.db.add(vote)
        await self.db.flush()
        await self.db.refresh(vote)

        return vote

    @translate_db_errors
    async def supersede(self, vote_id: int) -> None:
        """Mark a vote as historical."""
        await self.db.execute(
            update(Vote)
            .where(Vote.id == vote_id)
            .values(is_current=False)
            .execution_options(synchronize_session="fetch")
        )
