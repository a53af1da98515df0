"""
Vote-related Pydantic schemas.
"""

from typing import Optional

from pydantic import BaseModel, Field

from models.proposal import OptionRole


class VoteClaim(BaseModel):
    """
    A voter's claim to have voted, before admission.

    The target option is named by role (ITEM_VOTE semantics) or by ordinal.
    """

    voter: str
    block: int = Field(..., ge=0)
    option_id: Optional[int] = None
    option_role: Optional[OptionRole] = None


class VoteCreateRequest(BaseModel):
    """Admitted vote to store as the voter's current vote."""

    proposal_id: int
    proposal_option_id: int
    voter: str
    block: int
    weight: int = Field(..., ge=0)
