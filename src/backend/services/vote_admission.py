"""
Vote Admission Controller.

Validates a vote claim against its proposal, derives the vote weight from
the chain oracle and records it as the voter's current vote:

- at most one current vote per (proposal, voter)
- a vote at the same or a higher block supersedes the current one
  (same block: the later arrival wins)
- a vote at a lower block is stale and ignored
- weight is the voter's balance at the cast height, clamped to a floor
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from core.config import settings
from core.exceptions import OptionNotFoundError
from models.proposal import OptionRole, Proposal, ProposalOption, ProposalType
from models.proposal_result import ProposalResult
from models.vote import Vote
from repositories.provider import ChainOracleProtocol, GovernanceRepositoryProtocol
from schemas.outcomes import VoteOutcome
from schemas.vote import VoteClaim, VoteCreateRequest
from services.result_tally_engine import ResultTallyEngine

logger = structlog.get_logger(__name__)


@dataclass
class VoteAdmission:
    """Result of admitting one vote claim."""

    outcome: VoteOutcome
    vote: Optional[Vote] = None
    result: Optional[ProposalResult] = None


def resolve_option(proposal: Proposal, claim: VoteClaim) -> ProposalOption:
    """
    Find the option a vote claim targets.

    ITEM_VOTE proposals must carry a REMOVE option. A claim naming a role is
    matched on role, otherwise on the option ordinal.

    Raises:
        OptionNotFoundError: the proposal lacks the targeted option
    """
    options = list(proposal.options)

    if proposal.type == ProposalType.ITEM_VOTE.value and not any(
        option.role == OptionRole.REMOVE.value for option in options
    ):
        raise OptionNotFoundError(proposal.hash, "ITEM_VOTE proposal has no REMOVE option")

    if claim.option_role is not None:
        for option in options:
            if option.role == claim.option_role.value:
                return option
        raise OptionNotFoundError(proposal.hash, f"no option with role {claim.option_role.value}")

    if claim.option_id is not None:
        for option in options:
            if option.option_id == claim.option_id:
                return option
        raise OptionNotFoundError(proposal.hash, f"no option with id {claim.option_id}")

    raise OptionNotFoundError(proposal.hash, "vote names neither an option id nor a role")


class VoteAdmissionController:
    """Admits votes and refreshes the proposal tally after each change."""

    def __init__(
        self,
        repository: GovernanceRepositoryProtocol,
        oracle: ChainOracleProtocol,
        tally_engine: Optional[ResultTallyEngine] = None,
        min_weight: Optional[int] = None,
        reject_zero_balance: Optional[bool] = None,
    ):
        self.repository = repository
        self.oracle = oracle
        self.tally_engine = tally_engine or ResultTallyEngine(repository, oracle)
        self.min_weight = min_weight if min_weight is not None else settings.VOTE_MIN_WEIGHT
        self.reject_zero_balance = (
            reject_zero_balance
            if reject_zero_balance is not None
            else settings.VOTE_REJECT_ZERO_BALANCE
        )

    async def admit_vote(
        self,
        proposal: Proposal,
        claim: VoteClaim,
        chain_height_at_cast: Optional[int] = None,
    ) -> VoteAdmission:
        """
        Admit a vote claim.

        The weight is read at `chain_height_at_cast`, which defaults to the
        block the vote claims to have been cast at.

        Raises:
            OptionNotFoundError: structural, the message must be discarded
            TransientError: repository/oracle failure, nothing is committed
        """
        log = logger.bind(proposal_hash=proposal.hash, voter=claim.voter, block=claim.block)

        option = resolve_option(proposal, claim)

        existing = await self.repository.find_current_vote(proposal.id, claim.voter)
        if existing is not None:
            if claim.block < existing.block:
                log.info("vote_stale_ignored", current_block=existing.block)
                return VoteAdmission(outcome=VoteOutcome.STALE_IGNORED, vote=existing)
            if claim.block == existing.block and existing.proposal_option_id == option.id:
                log.debug("vote_duplicate_ignored")
                return VoteAdmission(outcome=VoteOutcome.DUPLICATE, vote=existing)

        height = chain_height_at_cast if chain_height_at_cast is not None else claim.block
        balance = await self.oracle.balance_at(claim.voter, height)
        if balance <= 0 and self.reject_zero_balance:
            log.info("vote_zero_balance_rejected")
            return VoteAdmission(outcome=VoteOutcome.ZERO_WEIGHT_REJECTED, vote=existing)
        weight = max(balance, self.min_weight)

        if existing is not None:
            await self.repository.supersede_vote(existing.id)
            outcome = VoteOutcome.SUPERSEDED
        else:
            outcome = VoteOutcome.ADMITTED

        vote = await self.repository.create_vote(
            VoteCreateRequest(
                proposal_id=proposal.id,
                proposal_option_id=option.id,
                voter=claim.voter,
                block=claim.block,
                weight=weight,
            )
        )

        current = await self.repository.find_current_result(proposal.hash)
        if current is None:
            result = await self.tally_engine.rebuild(proposal)
        else:
            result = await self.tally_engine.recompute(current.id)

        log.info(
            "vote_recorded",
            outcome=outcome.value,
            option_id=option.option_id,
            weight=weight,
        )
        return VoteAdmission(outcome=outcome, vote=vote, result=result)
