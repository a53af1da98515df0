"""
Processing outcomes reported by the reconciliation engine.
"""

from enum import Enum


class ProcessingOutcome(str, Enum):
    """Terminal status of an inbound message, reported to the delivery subsystem."""

    PROCESSED = "PROCESSED"  # Done; created, replaced or ignored as known
    WAITING = "WAITING"  # Transient failure, deliver again later
    PARSING_FAILED = "PARSING_FAILED"  # Structurally invalid, discard


class ReconcileOutcome(str, Enum):
    """What the proposal reconciler did with an incoming proposal."""

    CREATED = "CREATED"
    REPLACED = "REPLACED"
    SUPERSEDED_BY_EXISTING = "SUPERSEDED_BY_EXISTING"
    DEFERRED = "DEFERRED"  # Repository failure, nothing committed


class VoteOutcome(str, Enum):
    """What the vote admission controller did with a vote claim."""

    ADMITTED = "ADMITTED"  # First vote of this voter on the proposal
    SUPERSEDED = "SUPERSEDED"  # Replaced the voter's previous current vote
    STALE_IGNORED = "STALE_IGNORED"  # Older than the voter's current vote
    DUPLICATE = "DUPLICATE"  # Same option and block as the current vote
    ZERO_WEIGHT_REJECTED = "ZERO_WEIGHT_REJECTED"  # Zero balance under the strict policy

    @property
    def changed_tally(self) -> bool:
        return self in (VoteOutcome.ADMITTED, VoteOutcome.SUPERSEDED)
