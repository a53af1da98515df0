"""
Error taxonomy for proposal and vote processing.

Structural errors mean the message itself is wrong and will never succeed;
transient errors mean the node could not finish right now and the message
should be delivered again later, unmodified.
"""


class GovernanceError(Exception):
    """Base exception for proposal/vote processing."""

    pass


# =============================================================================
# Structural (never retried)
# =============================================================================


class StructuralError(GovernanceError):
    """The message can never be processed successfully."""

    pass


class MalformedMessageError(StructuralError):
    """The wire message failed decoding or validation."""

    pass


class InvalidProposalError(StructuralError):
    """The proposal content violates proposal rules (options, block range)."""

    pass


class OptionNotFoundError(StructuralError):
    """The proposal lacks the option a vote targets."""

    def __init__(self, proposal_hash: str, detail: str):
        self.proposal_hash = proposal_hash
        super().__init__(f"Proposal {proposal_hash}: {detail}")


# =============================================================================
# Transient (retried by the delivery subsystem)
# =============================================================================


class TransientError(GovernanceError):
    """A retryable infrastructure or dependency failure."""

    pass


class RepositoryUnavailableError(TransientError):
    """The persistence layer failed or timed out."""

    pass


class OracleUnavailableError(TransientError):
    """The chain oracle failed, timed out or returned an RPC error."""

    pass


class ProposalNotFoundYetError(TransientError):
    """A vote references a proposal this node does not (yet) hold."""

    def __init__(self, proposal_hash: str):
        self.proposal_hash = proposal_hash
        super().__init__(f"No proposal with hash {proposal_hash}")
