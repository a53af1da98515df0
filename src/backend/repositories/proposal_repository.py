"""
Proposal repository for database operations.
"""

from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.proposal import Proposal, ProposalHash, ProposalOption
from repositories.errors import translate_db_errors
from schemas.proposal import ProposalCreateRequest


class ProposalRepository:
    """Repository for proposal and proposal option operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @translate_db_errors
    async def get_by_id(self, proposal_id: int) -> Optional[Proposal]:
        """Get a proposal by local ID with its options."""
        result = await self.db.execute(
            select(Proposal)
            .options(selectinload(Proposal.options))
            .where(Proposal.id == proposal_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @translate_db_errors
    async def find_by_subject(self, subject: str) -> Optional[Proposal]:
        """Get the canonical proposal for a subject, if any."""
        result = await self.db.execute(
            select(Proposal)
            .options(selectinload(Proposal.options))
            .where(Proposal.subject == subject)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @translate_db_errors
    async def find_by_hash(self, proposal_hash: str) -> Optional[Proposal]:
        """Get the canonical proposal for a content hash, following aliases."""
        aliased = select(ProposalHash.proposal_id).where(ProposalHash.hash == proposal_hash)
        result = await self.db.execute(
            select(Proposal)
            .options(selectinload(Proposal.options))
            .where(or_(Proposal.hash == proposal_hash, Proposal.id.in_(aliased)))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @translate_db_errors
    async def add_alias(self, proposal_id: int, proposal_hash: str) -> None:
        """Record a non-canonical hash of a subject; known hashes are left as they are."""
        existing = await self.db.execute(
            select(ProposalHash).where(ProposalHash.hash == proposal_hash)
        )
        alias = existing.scalar_one_or_none()
        if alias is None:
            self.db.add(ProposalHash(hash=proposal_hash, proposal_id=proposal_id))
        else:
            alias.proposal_id = proposal_id
        await self.db.flush()

    @translate_db_errors
    async def create(self, request: ProposalCreateRequest) -> Proposal:
        """Create a proposal together with its options."""
        proposal = Proposal(
            hash=request.hash,
            subject=request.subject,
            submitter=request.submitter,
            item=request.item,
            type=request.type.value,
            title=request.title,
            description=request.description,
            block_start=request.block_start,
            block_end=request.block_end,
            received_at=request.received_at,
            posted_at=request.posted_at,
            options=[
                ProposalOption(
                    option_id=option.option_id,
                    description=option.description,
                    role=option.role.value,
                )
                for option in request.options
            ],
        )

        self.db.add(proposal)
        await self.db.flush()

        return await self._reload(proposal.id)

    @translate_db_errors
    async def update(self, proposal_id: int, request: ProposalCreateRequest) -> Proposal:
        """
        Overwrite a proposal's content in place, keeping its local ID.

        Options are matched by ordinal: existing rows are rewritten, new
        ordinals are added and ordinals missing from the request are removed.
        """
        proposal = await self._reload(proposal_id)

        proposal.hash = request.hash
        proposal.subject = request.subject
        proposal.submitter = request.submitter
        proposal.item = request.item
        proposal.type = request.type.value
        proposal.title = request.title
        proposal.description = request.description
        proposal.block_start = request.block_start
        proposal.block_end = request.block_end
        proposal.received_at = request.received_at
        proposal.posted_at = request.posted_at

        existing = {option.option_id: option for option in proposal.options}
        wanted = {option.option_id for option in request.options}

        for option in request.options:
            row = existing.get(option.option_id)
            if row is None:
                proposal.options.append(
                    ProposalOption(
                        option_id=option.option_id,
                        description=option.description,
                        role=option.role.value,
                    )
                )
            else:
                row.description = option.description
                row.role = option.role.value

        for option_id, row in existing.items():
            if option_id not in wanted:
                proposal.options.remove(row)

        await self.db.flush()

        return await self._reload(proposal_id)

    async def _reload(self, proposal_id: int) -> Proposal:
        result = await self.db.execute(
            select(Proposal)
            .options(selectinload(Proposal.options))
            .where(Proposal.id == proposal_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()
