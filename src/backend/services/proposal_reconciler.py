"""
Proposal Reconciler.

Decides what an incoming proposal message means for the subject it is
about. Identity is by subject, not by arrival order, and the proposal with
the oldest claimed origin time is canonical:

- no proposal for the subject yet     -> create it with a zeroed tally
- incoming origin later               -> keep the stored proposal
- incoming origin earlier             -> overwrite the stored proposal in
                                         place and rebuild its tally

Equal origin times go to the lexicographically lower hash. The hash that
loses is kept as an alias of the canonical proposal so votes naming it
still resolve. Every node applying these rules converges on the same
canonical proposal and tally whatever order the messages arrive in.

ITEM_VOTE proposals additionally record the submitter's own vote for the
REMOVE option, cast at the proposal's start block.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import structlog

from core.exceptions import OptionNotFoundError, TransientError
from models.proposal import OptionRole, Proposal, ProposalType
from models.proposal_result import ProposalResult
from repositories.provider import ChainOracleProtocol, GovernanceRepositoryProtocol
from schemas.messages import EnvelopeMeta, ProposalMessage
from schemas.outcomes import ReconcileOutcome
from schemas.vote import VoteClaim
from services.proposal_factory import ProposalFactory
from services.result_tally_engine import ResultTallyEngine
from services.vote_admission import VoteAdmissionController

logger = structlog.get_logger(__name__)


@dataclass
class Reconciliation:
    """Result of reconciling one proposal message."""

    outcome: ReconcileOutcome
    proposal: Optional[Proposal] = None
    result: Optional[ProposalResult] = None


@dataclass
class _SubmitterVote:
    """Who cast the implicit REMOVE vote of a proposal, and at which block."""

    submitter: str
    block: int


def _as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC so stored and claimed times compare."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _takes_precedence(posted_at: datetime, proposal_hash: str, existing: Proposal) -> bool:
    """Whether an incoming proposal displaces the stored one; equal origins go to the lower hash."""
    incoming, stored = _as_utc(posted_at), _as_utc(existing.posted_at)
    if incoming != stored:
        return incoming < stored
    return proposal_hash < existing.hash


class ProposalReconciler:
    """Creates, replaces or ignores proposals for a subject."""

    def __init__(
        self,
        repository: GovernanceRepositoryProtocol,
        oracle: ChainOracleProtocol,
        factory: Optional[ProposalFactory] = None,
        tally_engine: Optional[ResultTallyEngine] = None,
        vote_controller: Optional[VoteAdmissionController] = None,
    ):
        self.repository = repository
        self.oracle = oracle
        self.factory = factory or ProposalFactory()
        self.tally_engine = tally_engine or ResultTallyEngine(repository, oracle)
        self.vote_controller = vote_controller or VoteAdmissionController(
            repository, oracle, tally_engine=self.tally_engine
        )

    async def admit(self, message: ProposalMessage, meta: EnvelopeMeta) -> Reconciliation:
        """
        Reconcile an incoming proposal against the stored one for its subject.

        Raises:
            StructuralError: the message content is invalid
        """
        request = self.factory.get_model(message, meta)
        log = logger.bind(subject=request.subject, proposal_hash=request.hash)

        try:
            existing = await self.repository.find_proposal_by_subject(request.subject)

            if existing is None:
                proposal = await self.repository.create_proposal(request)
                result = await self.tally_engine.materialize_result(proposal)
                log.info("proposal_created", type=request.type.value)
                result = await self._record_submitter_vote(proposal, result, previous=None)
                return Reconciliation(ReconcileOutcome.CREATED, proposal, result)

            if not _takes_precedence(request.posted_at, request.hash, existing):
                log.debug(
                    "proposal_superseded_by_existing",
                    stored_posted_at=existing.posted_at.isoformat(),
                    incoming_posted_at=request.posted_at.isoformat(),
                )
                if request.hash != existing.hash:
                    await self.repository.add_proposal_alias(existing.id, request.hash)
                result = await self.repository.find_current_result(existing.hash)
                return Reconciliation(ReconcileOutcome.SUPERSEDED_BY_EXISTING, existing, result)

            previous = _SubmitterVote(existing.submitter, existing.block_start)
            replaced_hash = existing.hash if existing.hash != request.hash else None
            if replaced_hash is not None:
                await self.repository.add_proposal_alias(existing.id, replaced_hash)
            proposal = await self.repository.update_proposal(existing.id, request)
            result = await self.tally_engine.rebuild(proposal)
            log.info(
                "proposal_replaced",
                replaced_hash=replaced_hash,
                posted_at=request.posted_at.isoformat(),
            )
            result = await self._record_submitter_vote(proposal, result, previous=previous)
            return Reconciliation(ReconcileOutcome.REPLACED, proposal, result)

        except TransientError as e:
            log.warning("proposal_deferred", error=str(e))
            return Reconciliation(ReconcileOutcome.DEFERRED)

    async def _record_submitter_vote(
        self,
        proposal: Proposal,
        result: ProposalResult,
        previous: Optional[_SubmitterVote],
    ) -> ProposalResult:
        """Cast the submitter's REMOVE vote on an item proposal."""
        if proposal.type != ProposalType.ITEM_VOTE.value:
            return result

        current = _SubmitterVote(proposal.submitter, proposal.block_start)
        if previous is not None and previous != current:
            result = await self._retract_submitter_vote(proposal, previous) or result

        claim = VoteClaim(
            voter=proposal.submitter,
            block=proposal.block_start,
            option_role=OptionRole.REMOVE,
        )
        try:
            admission = await self.vote_controller.admit_vote(proposal, claim)
        except OptionNotFoundError:
            # The proposal itself is kept; explicit votes on it will be rejected
            logger.warning(
                "item_proposal_without_remove_option",
                subject=proposal.subject,
                proposal_hash=proposal.hash,
            )
            return result

        return admission.result or result

    async def _retract_submitter_vote(
        self, proposal: Proposal, previous: _SubmitterVote
    ) -> Optional[ProposalResult]:
        """
        Withdraw the implicit vote of a replaced proposal's submitter.

        Only a vote that still looks implicit (REMOVE option, cast at the old
        start block) is withdrawn; anything the voter cast since is kept.
        """
        vote = await self.repository.find_current_vote(proposal.id, previous.submitter)
        if vote is None or vote.block != previous.block:
            return None

        remove_ids = {o.id for o in proposal.options if o.role == OptionRole.REMOVE.value}
        if vote.proposal_option_id not in remove_ids:
            return None

        await self.repository.supersede_vote(vote.id)
        logger.info(
            "submitter_vote_retracted",
            proposal_hash=proposal.hash,
            voter=previous.submitter,
        )
        return await self.tally_engine.rebuild(proposal)
