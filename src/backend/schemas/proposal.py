"""
Proposal-related Pydantic schemas.

Create requests are what the reconciler hands to the repository; the
response schemas back the read-side tally endpoint.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from models.proposal import OptionRole, ProposalType


class ProposalOptionCreateRequest(BaseModel):
    """One option to store with a proposal."""

    option_id: int = Field(..., ge=0)
    description: str
    role: OptionRole = OptionRole.CUSTOM


class ProposalCreateRequest(BaseModel):
    """Canonical proposal content, used for both create and in-place replace."""

    hash: str
    subject: str
    submitter: str
    item: Optional[str] = None
    type: ProposalType
    title: str
    description: str = ""
    block_start: int
    block_end: int
    received_at: datetime
    posted_at: datetime
    options: list[ProposalOptionCreateRequest]


class ProposalResultCreateRequest(BaseModel):
    proposal_id: int
    block: int


class ProposalOptionResultCreateRequest(BaseModel):
    proposal_result_id: int
    proposal_option_id: int
    weight: int = 0
    voters: int = 0


class ProposalOptionResultResponse(BaseModel):
    """Tally of a single option."""

    option_id: int
    description: str
    role: OptionRole
    weight: int
    voters: int


class ProposalResultResponse(BaseModel):
    """Current tally of a proposal."""

    proposal_hash: str
    subject: str
    type: ProposalType
    title: str
    block: int
    total_voters: int
    total_weight: int
    options: list[ProposalOptionResultResponse]
