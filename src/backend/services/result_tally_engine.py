"""
Result Tally Engine.

Maintains option-level tallies for proposals. A tally is never edited in
place: every refresh writes a new ProposalResult snapshot at the current
chain height, computed from the proposal's current votes only. Computing
twice from the same vote set yields the same numbers.
"""

from collections import defaultdict
from dataclasses import dataclass, field

import structlog

from models.proposal import Proposal
from models.proposal_result import ProposalResult
from models.vote import Vote
from repositories.provider import ChainOracleProtocol, GovernanceRepositoryProtocol
from schemas.proposal import ProposalOptionResultCreateRequest, ProposalResultCreateRequest

logger = structlog.get_logger(__name__)


@dataclass
class OptionTally:
    """Aggregated weight and distinct voters of one option."""

    weight: int = 0
    voters: set[str] = field(default_factory=set)


def aggregate_votes(proposal: Proposal, votes: list[Vote]) -> dict[int, OptionTally]:
    """
    Aggregate current votes into per-option tallies, keyed by option row id.

    Historical votes and votes on options the proposal no longer has are
    skipped; a voter is counted at most once per proposal.
    """
    tallies: dict[int, OptionTally] = {option.id: OptionTally() for option in proposal.options}
    seen: set[str] = set()

    for vote in sorted(votes, key=lambda v: (v.block, v.id), reverse=True):
        if not vote.is_current or vote.voter in seen:
            continue
        tally = tallies.get(vote.proposal_option_id)
        if tally is None:
            continue
        seen.add(vote.voter)
        tally.weight += int(vote.weight)
        tally.voters.add(vote.voter)

    return tallies


class ResultTallyEngine:
    """Creates and refreshes ProposalResult snapshots."""

    def __init__(self, repository: GovernanceRepositoryProtocol, oracle: ChainOracleProtocol):
        self.repository = repository
        self.oracle = oracle

    async def materialize_result(self, proposal: Proposal) -> ProposalResult:
        """Create a zeroed result for every option of a proposal at the current height."""
        return await self._snapshot(proposal, defaultdict(OptionTally))

    async def recompute(self, proposal_result_id: int) -> ProposalResult:
        """
        Refresh the tally of the proposal owning `proposal_result_id`.

        The given snapshot is left untouched; the returned one becomes current.
        """
        current = await self.repository.get_result(proposal_result_id)
        if current is None:
            raise LookupError(f"ProposalResult {proposal_result_id} does not exist")

        proposal = await self.repository.get_proposal(current.proposal_id)
        if proposal is None:
            raise LookupError(f"Proposal {current.proposal_id} does not exist")

        return await self.rebuild(proposal)

    async def rebuild(self, proposal: Proposal) -> ProposalResult:
        """Compute a fresh snapshot for a proposal from its current votes."""
        votes = await self.repository.list_current_votes(proposal.id)
        return await self._snapshot(proposal, aggregate_votes(proposal, votes))

    async def current_tally(self, proposal: Proposal) -> ProposalResult:
        """Current snapshot of a proposal, materializing one if it has none yet."""
        result = await self.repository.find_current_result(proposal.hash)
        if result is None:
            result = await self.rebuild(proposal)
        return result

    async def _snapshot(self, proposal: Proposal, tallies: dict[int, OptionTally]) -> ProposalResult:
        block = await self.oracle.current_height()

        proposal_result = await self.repository.create_result(
            ProposalResultCreateRequest(proposal_id=proposal.id, block=block)
        )

        for option in proposal.options:
            tally = tallies[option.id]
            await self.repository.create_option_result(
                ProposalOptionResultCreateRequest(
                    proposal_result_id=proposal_result.id,
                    proposal_option_id=option.id,
                    weight=tally.weight,
                    voters=len(tally.voters),
                )
            )

        logger.debug(
            "proposal_result_snapshot",
            proposal_hash=proposal.hash,
            block=block,
            voters=sum(len(t.voters) for t in tallies.values()),
        )

        snapshot = await self.repository.get_result(proposal_result.id)
        if snapshot is None:
            raise LookupError(f"ProposalResult {proposal_result.id} vanished after insert")
        return snapshot
