"""
Marketplace wire message schemas.

Inbound proposal and vote messages arrive wrapped in a MarketplaceMessage
envelope; `decode_marketplace_message` turns the raw payload into a typed
message or raises MalformedMessageError.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from core.exceptions import MalformedMessageError
from models.proposal import OptionRole, ProposalType


class ProposalMessageType(str, Enum):
    MP_PROPOSAL_ADD = "MP_PROPOSAL_ADD"


class VoteMessageType(str, Enum):
    MP_VOTE = "MP_VOTE"


class EnvelopeMeta(BaseModel):
    """Delivery metadata supplied by the messaging subsystem."""

    msgid: Optional[str] = None
    received_at: datetime
    # Origin time claimed by the sender
    claimed_origin_at: datetime
    market: Optional[str] = None


class ProposalOptionMessage(BaseModel):
    """One option of a proposal as sent over the wire."""

    option_id: int = Field(..., ge=0)
    description: str = Field(..., min_length=1)
    role: Optional[OptionRole] = None

    def resolved_role(self) -> OptionRole:
        """Explicit role if present, otherwise derived from a REMOVE/KEEP description."""
        if self.role is not None:
            return self.role
        marker = self.description.strip().upper()
        if marker == OptionRole.REMOVE.value:
            return OptionRole.REMOVE
        if marker == OptionRole.KEEP.value:
            return OptionRole.KEEP
        return OptionRole.CUSTOM


class ProposalMessage(BaseModel):
    """MP_PROPOSAL_ADD payload."""

    type: ProposalMessageType = ProposalMessageType.MP_PROPOSAL_ADD
    submitter: str = Field(..., min_length=1)
    category: ProposalType
    item: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    block_start: int = Field(..., ge=0)
    block_end: int = Field(..., ge=0)
    options: list[ProposalOptionMessage]
    # Content hash declared by the sender, checked against our own
    hash: Optional[str] = None

    @model_validator(mode="after")
    def validate_structure(self) -> "ProposalMessage":
        if self.block_end < self.block_start:
            raise ValueError("block_end must not be before block_start")
        ordinals = sorted(option.option_id for option in self.options)
        if ordinals != list(range(len(self.options))):
            raise ValueError("option ids must be exactly 0..N-1")
        if self.category == ProposalType.ITEM_VOTE and not self.item:
            raise ValueError("ITEM_VOTE proposals require an item")
        return self

    @property
    def sorted_options(self) -> list[ProposalOptionMessage]:
        return sorted(self.options, key=lambda option: option.option_id)


class VoteMessage(BaseModel):
    """MP_VOTE payload."""

    type: VoteMessageType = VoteMessageType.MP_VOTE
    proposal_hash: str = Field(..., min_length=1)
    option_id: Optional[int] = Field(None, ge=0)
    option_role: Optional[OptionRole] = None
    voter: str = Field(..., min_length=1)
    block: int = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_target(self) -> "VoteMessage":
        if self.option_id is None and self.option_role is None:
            raise ValueError("a vote must name an option_id or an option_role")
        return self


InboundMessage = Union[ProposalMessage, VoteMessage]


class MarketplaceMessage(BaseModel):
    """Envelope shared by every marketplace action."""

    version: str
    mpaction: dict[str, Any]


_MESSAGE_TYPES: dict[str, type[BaseModel]] = {
    ProposalMessageType.MP_PROPOSAL_ADD.value: ProposalMessage,
    VoteMessageType.MP_VOTE.value: VoteMessage,
}


def decode_marketplace_message(payload: dict[str, Any]) -> InboundMessage:
    """
    Decode a raw marketplace payload into a proposal or vote message.

    Raises:
        MalformedMessageError: unknown action type or failed validation
    """
    try:
        envelope = MarketplaceMessage.model_validate(payload)
    except ValidationError as e:
        raise MalformedMessageError(f"Invalid marketplace envelope: {e}") from e

    action_type = envelope.mpaction.get("type")
    message_cls = _MESSAGE_TYPES.get(str(action_type))
    if message_cls is None:
        raise MalformedMessageError(f"Unsupported action type: {action_type!r}")

    try:
        return message_cls.model_validate(envelope.mpaction)  # type: ignore[return-value]
    except ValidationError as e:
        raise MalformedMessageError(f"Invalid {action_type} message: {e}") from e
