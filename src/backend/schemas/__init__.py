"""Pydantic schemas for messages, requests and responses."""

from schemas.messages import (
    EnvelopeMeta,
    InboundMessage,
    MarketplaceMessage,
    ProposalMessage,
    ProposalMessageType,
    ProposalOptionMessage,
    VoteMessage,
    VoteMessageType,
    decode_marketplace_message,
)
from schemas.outcomes import ProcessingOutcome, ReconcileOutcome, VoteOutcome
from schemas.proposal import (
    ProposalCreateRequest,
    ProposalOptionCreateRequest,
    ProposalOptionResultCreateRequest,
    ProposalOptionResultResponse,
    ProposalResultCreateRequest,
    ProposalResultResponse,
)
from schemas.vote import VoteClaim, VoteCreateRequest

__all__ = [
    "EnvelopeMeta",
    "InboundMessage",
    "MarketplaceMessage",
    "ProposalMessage",
    "ProposalMessageType",
    "ProposalOptionMessage",
    "VoteMessage",
    "VoteMessageType",
    "decode_marketplace_message",
    "ProcessingOutcome",
    "ReconcileOutcome",
    "VoteOutcome",
    "ProposalCreateRequest",
    "ProposalOptionCreateRequest",
    "ProposalOptionResultCreateRequest",
    "ProposalOptionResultResponse",
    "ProposalResultCreateRequest",
    "ProposalResultResponse",
    "VoteClaim",
    "VoteCreateRequest",
]
