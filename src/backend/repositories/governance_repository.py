"""
Unit-of-work facade over the proposal, result and vote repositories.

The reconciliation services talk to this single object; it owns the
session's commit/rollback so a message is applied all-or-nothing.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from models.proposal import Proposal
from models.proposal_result import ProposalOptionResult, ProposalResult
from models.vote import Vote
from repositories.errors import translate_db_errors
from repositories.proposal_repository import ProposalRepository
from repositories.proposal_result_repository import ProposalResultRepository
from repositories.vote_repository import VoteRepository
from schemas.proposal import (
    ProposalCreateRequest,
    ProposalOptionResultCreateRequest,
    ProposalResultCreateRequest,
)
from schemas.vote import VoteCreateRequest


class GovernanceRepository:
    """SQLAlchemy implementation of GovernanceRepositoryProtocol."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.proposals = ProposalRepository(db)
        self.results = ProposalResultRepository(db)
        self.votes = VoteRepository(db)

    # ========================================================================
    # Proposals
    # ========================================================================

    async def find_proposal_by_subject(self, subject: str) -> Optional[Proposal]:
        return await self.proposals.find_by_subject(subject)

    async def find_proposal_by_hash(self, proposal_hash: str) -> Optional[Proposal]:
        return await self.proposals.find_by_hash(proposal_hash)

    async def add_proposal_alias(self, proposal_id: int, proposal_hash: str) -> None:
        await self.proposals.add_alias(proposal_id, proposal_hash)

    async def get_proposal(self, proposal_id: int) -> Optional[Proposal]:
        return await self.proposals.get_by_id(proposal_id)

    async def create_proposal(self, request: ProposalCreateRequest) -> Proposal:
        return await self.proposals.create(request)

    async def update_proposal(self, proposal_id: int, request: ProposalCreateRequest) -> Proposal:
        return await self.proposals.update(proposal_id, request)

    # ========================================================================
    # Results
    # ========================================================================

    async def find_current_result(self, proposal_hash: str) -> Optional[ProposalResult]:
        return await self.results.find_current(proposal_hash)

    async def get_result(self, result_id: int) -> Optional[ProposalResult]:
        return await self.results.get_by_id(result_id)

    async def create_result(self, request: ProposalResultCreateRequest) -> ProposalResult:
        return await self.results.create(request)

    async def create_option_result(
        self, request: ProposalOptionResultCreateRequest
    ) -> ProposalOptionResult:
        return await self.results.create_option_result(request)

    # ========================================================================
    # Votes
    # ========================================================================

    async def find_current_vote(self, proposal_id: int, voter: str) -> Optional[Vote]:
        return await self.votes.find_current(proposal_id, voter)

    async def list_current_votes(self, proposal_id: int) -> list[Vote]:
        return await self.votes.list_current(proposal_id)

    async def create_vote(self, request: VoteCreateRequest) -> Vote:
        return await self.votes.create(request)

    async def supersede_vote(self, vote_id: int) -> None:
        await self.votes.supersede(vote_id)

    # ========================================================================
    # Unit of work
    # ========================================================================

    @translate_db_errors
    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
