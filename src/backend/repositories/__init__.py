"""Repository modules for database access."""

from repositories.governance_repository import GovernanceRepository
from repositories.proposal_repository import ProposalRepository
from repositories.proposal_result_repository import ProposalResultRepository
from repositories.vote_repository import VoteRepository

__all__ = [
    "GovernanceRepository",
    "ProposalRepository",
    "ProposalResultRepository",
    "VoteRepository",
]
