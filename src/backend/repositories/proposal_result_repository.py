"""
Proposal result repository for tally snapshot storage.

Snapshots are append-only; the current result of a proposal is simply the
most recently inserted one.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.proposal import Proposal
from models.proposal_result import ProposalOptionResult, ProposalResult
from repositories.errors import translate_db_errors
from schemas.proposal import ProposalOptionResultCreateRequest, ProposalResultCreateRequest


class ProposalResultRepository:
    """Repository for ProposalResult / ProposalOptionResult operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @translate_db_errors
    async def get_by_id(self, result_id: int) -> Optional[ProposalResult]:
        """Get a result snapshot with its option results."""
        result = await self.db.execute(
            select(ProposalResult)
            .options(selectinload(ProposalResult.option_results))
            .where(ProposalResult.id == result_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @translate_db_errors
    async def find_current(self, proposal_hash: str) -> Optional[ProposalResult]:
        """Get the most recent result snapshot for a proposal hash."""
        result = await self.db.execute(
            select(ProposalResult)
            .join(Proposal, Proposal.id == ProposalResult.proposal_id)
            .options(selectinload(ProposalResult.option_results))
            .where(Proposal.hash == proposal_hash)
            .order_by(ProposalResult.id.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @translate_db_errors
    async def create(self, request: ProposalResultCreateRequest) -> ProposalResult:
        """Insert a new, still empty, result snapshot."""
        proposal_result = ProposalResult(
            proposal_id=request.proposal_id,
            block=request.block,
        )

        self.db.add(proposal_result)
        await self.db.flush()

        return proposal_result

    @translate_db_errors
    async def create_option_result(
        self, request: ProposalOptionResultCreateRequest
    ) -> ProposalOptionResult:
        """Insert the tally row of one option within a snapshot."""
        option_result = ProposalOptionResult(
            proposal_result_id=request.proposal_result_id,
            proposal_option_id=request.proposal_option_id,
            weight=request.weight,
            voters=request.voters,
        )

        self.db.add(option_result)
        await self.db.flush()

        return option_result
