"""
Repository and oracle interfaces for dependency injection.

The reconciliation services depend on these protocols only, so the
SQLAlchemy repository and the particl-core RPC client can be swapped for
in-memory doubles.

Usage:
    from repositories.provider import get_governance_repository

    async with async_session_maker() as db:
        repository = get_governance_repository(db)
        proposal = await repository.find_proposal_by_subject("item-42")
"""

from typing import Protocol, runtime_checkable

from sqlalchemy.ext.asyncio import AsyncSession

from schemas.proposal import (
    ProposalCreateRequest,
    ProposalOptionResultCreateRequest,
    ProposalResultCreateRequest,
)
from schemas.vote import VoteCreateRequest


# =============================================================================
# Protocols (Interfaces)
# =============================================================================


@runtime_checkable
class GovernanceRepositoryProtocol(Protocol):
    """Persistence operations needed by proposal/vote reconciliation."""

    async def find_proposal_by_subject(self, subject: str): ...
    async def find_proposal_by_hash(self, proposal_hash: str): ...
    async def add_proposal_alias(self, proposal_id: int, proposal_hash: str): ...
    async def get_proposal(self, proposal_id: int): ...
    async def create_proposal(self, request: ProposalCreateRequest): ...
    async def update_proposal(self, proposal_id: int, request: ProposalCreateRequest): ...
    async def find_current_result(self, proposal_hash: str): ...
    async def get_result(self, result_id: int): ...
    async def create_result(self, request: ProposalResultCreateRequest): ...
    async def create_option_result(self, request: ProposalOptionResultCreateRequest): ...
    async def find_current_vote(self, proposal_id: int, voter: str): ...
    async def list_current_votes(self, proposal_id: int) -> list: ...
    async def create_vote(self, request: VoteCreateRequest): ...
    async def supersede_vote(self, vote_id: int) -> None: ...
    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...


@runtime_checkable
class ChainOracleProtocol(Protocol):
    """Read-only view of the chain: height and balances."""

    async def current_height(self) -> int: ...
    async def balance_at(self, address: str, height: int) -> int: ...


# =============================================================================
# Factory Functions
# =============================================================================


def get_governance_repository(
    db: AsyncSession,
) -> GovernanceRepositoryProtocol:
    """Build the SQLAlchemy governance repository for a session."""
    from repositories.governance_repository import GovernanceRepository

    return GovernanceRepository(db)