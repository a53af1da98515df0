"""
Proposal and vote message factories.

Builds outbound MP_PROPOSAL_ADD / MP_VOTE messages for locally initiated
actions, and turns inbound proposal messages into create requests. The
proposal hash is derived from content only, so every node computes the same
hash for the same proposal.
"""

import hashlib
import json
from typing import Optional

from core.config import settings
from core.exceptions import InvalidProposalError, MalformedMessageError
from models.proposal import OptionRole, Proposal, ProposalOption, ProposalType
from schemas.messages import (
    EnvelopeMeta,
    InboundMessage,
    MarketplaceMessage,
    ProposalMessage,
    ProposalOptionMessage,
    VoteMessage,
)
from schemas.proposal import ProposalCreateRequest, ProposalOptionCreateRequest


def hash_proposal(
    submitter: str,
    category: ProposalType,
    item: Optional[str],
    title: str,
    description: str,
    block_start: int,
    block_end: int,
    options: list[str],
) -> str:
    """SHA-256 hex digest of the canonical JSON form of a proposal."""
    canonical = json.dumps(
        {
            "submitter": submitter,
            "category": category.value,
            "item": item,
            "title": title,
            "description": description,
            "blockStart": block_start,
            "blockEnd": block_end,
            "options": options,
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def hash_proposal_message(message: ProposalMessage) -> str:
    return hash_proposal(
        submitter=message.submitter,
        category=message.category,
        item=message.item,
        title=message.title,
        description=message.description,
        block_start=message.block_start,
        block_end=message.block_end,
        options=[option.description for option in message.sorted_options],
    )


def subject_for(message: ProposalMessage) -> str:
    """The listing item for item votes, the content hash otherwise."""
    return message.item or hash_proposal_message(message)


class ProposalFactory:
    """Maps between proposal messages and proposal create requests."""

    def __init__(self, min_options: Optional[int] = None):
        self.min_options = min_options or settings.PROPOSAL_MIN_OPTIONS

    def get_message(
        self,
        category: ProposalType,
        title: str,
        description: str,
        block_start: int,
        block_end: int,
        options: list[str],
        submitter: str,
        item: Optional[str] = None,
    ) -> ProposalMessage:
        """
        Build an outbound MP_PROPOSAL_ADD message.

        Raises:
            InvalidProposalError: empty title, too few options or a bad block range
        """
        if not title.strip():
            raise InvalidProposalError("Proposal title must not be empty")
        if len(options) < self.min_options:
            raise InvalidProposalError(
                f"Proposal needs at least {self.min_options} options, got {len(options)}"
            )
        if block_end < block_start:
            raise InvalidProposalError("block_end must not be before block_start")

        message = ProposalMessage(
            submitter=submitter,
            category=category,
            item=item,
            title=title,
            description=description,
            block_start=block_start,
            block_end=block_end,
            options=[
                ProposalOptionMessage(option_id=index, description=text)
                for index, text in enumerate(options)
            ],
        )
        message.hash = hash_proposal_message(message)
        return message

    def get_model(self, message: ProposalMessage, meta: EnvelopeMeta) -> ProposalCreateRequest:
        """
        Build the create request for a received proposal.

        Raises:
            MalformedMessageError: declared hash does not match the content
            InvalidProposalError: too few options
        """
        if len(message.options) < self.min_options:
            raise InvalidProposalError(
                f"Proposal needs at least {self.min_options} options, got {len(message.options)}"
            )

        proposal_hash = hash_proposal_message(message)
        if message.hash and message.hash != proposal_hash:
            raise MalformedMessageError(
                f"Declared proposal hash {message.hash} does not match content hash {proposal_hash}"
            )

        return ProposalCreateRequest(
            hash=proposal_hash,
            subject=message.item or proposal_hash,
            submitter=message.submitter,
            item=message.item,
            type=message.category,
            title=message.title,
            description=message.description,
            block_start=message.block_start,
            block_end=message.block_end,
            received_at=meta.received_at,
            posted_at=meta.claimed_origin_at,
            options=[
                ProposalOptionCreateRequest(
                    option_id=option.option_id,
                    description=option.description,
                    role=option.resolved_role(),
                )
                for option in message.sorted_options
            ],
        )


class VoteFactory:
    """Builds outbound vote messages."""

    def get_message(
        self,
        proposal: Proposal,
        option: ProposalOption,
        voter: str,
        block: int,
    ) -> VoteMessage:
        """Build an outbound MP_VOTE message for a locally cast vote."""
        if option.proposal_id != proposal.id:
            raise InvalidProposalError(
                f"Option {option.option_id} does not belong to proposal {proposal.hash}"
            )

        role = OptionRole(option.role)
        return VoteMessage(
            proposal_hash=proposal.hash,
            option_id=option.option_id,
            option_role=role if role != OptionRole.CUSTOM else None,
            voter=voter,
            block=block,
        )


def wrap(message: InboundMessage, version: Optional[str] = None) -> MarketplaceMessage:
    """Wrap a proposal or vote message in the marketplace envelope."""
    return MarketplaceMessage(
        version=version or settings.MARKETPLACE_VERSION,
        mpaction=message.model_dump(mode="json", exclude_none=True),
    )
