"""Database models module."""

from models.proposal import OptionRole, Proposal, ProposalHash, ProposalOption, ProposalType
from models.proposal_result import ProposalOptionResult, ProposalResult
from models.vote import Vote

__all__ = [
    "OptionRole",
    "Proposal",
    "ProposalHash",
    "ProposalOption",
    "ProposalType",
    "ProposalResult",
    "ProposalOptionResult",
    "Vote",
]
