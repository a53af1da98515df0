"""
Message Ingestion Port.

Entry point for decoded proposal and vote messages handed over by the
secure-messaging subsystem. Each message is processed as one unit of work
under its subject's lock and answered with a terminal ProcessingOutcome:

- PROCESSED       reconciliation finished (including ignored duplicates)
- WAITING         transient failure, nothing committed, deliver again later
- PARSING_FAILED  structurally invalid, discard

The caller owns delivery records and retry scheduling.
"""

import asyncio
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any, Optional

import structlog

from core.exceptions import ProposalNotFoundYetError, StructuralError, TransientError
from db.session import async_session_maker
from repositories.provider import (
    ChainOracleProtocol,
    GovernanceRepositoryProtocol,
    get_governance_repository,
)
from schemas.messages import (
    EnvelopeMeta,
    InboundMessage,
    ProposalMessage,
    VoteMessage,
    decode_marketplace_message,
)
from schemas.outcomes import ProcessingOutcome, ReconcileOutcome
from schemas.vote import VoteClaim
from services.proposal_factory import ProposalFactory, subject_for
from services.proposal_reconciler import ProposalReconciler
from services.subject_lock import SubjectLockRegistry
from services.vote_admission import VoteAdmissionController

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[Any]]
RepositoryFactory = Callable[[Any], GovernanceRepositoryProtocol]


class MessageIngestionService:
    """Routes inbound messages to the reconciler or the vote controller."""

    def __init__(
        self,
        oracle: ChainOracleProtocol,
        session_factory: SessionFactory = async_session_maker,
        repository_factory: RepositoryFactory = get_governance_repository,
        locks: Optional[SubjectLockRegistry] = None,
        factory: Optional[ProposalFactory] = None,
    ):
        self.oracle = oracle
        self.session_factory = session_factory
        self.repository_factory = repository_factory
        self.locks = locks or SubjectLockRegistry()
        self.factory = factory or ProposalFactory()

    async def process_payload(self, payload: dict[str, Any], meta: EnvelopeMeta) -> ProcessingOutcome:
        """Decode a raw marketplace payload and process it."""
        try:
            message = decode_marketplace_message(payload)
        except StructuralError as e:
            logger.warning("message_parsing_failed", msgid=meta.msgid, error=str(e))
            return ProcessingOutcome.PARSING_FAILED
        return await self.notify(message, meta)

    async def notify(self, message: InboundMessage, meta: EnvelopeMeta) -> ProcessingOutcome:
        """Process one decoded message and report its terminal outcome."""
        log = logger.bind(msgid=meta.msgid, message_type=message.type.value)

        async with self.session_factory() as db:
            repository = self.repository_factory(db)
            try:
                subject = await self._subject_of(repository, message)
                async with self.locks.hold(subject):
                    outcome = await self._process(repository, message, meta)
                    if outcome == ProcessingOutcome.PROCESSED:
                        await repository.commit()
                    else:
                        await self._rollback(repository)
                log.info("message_processed", subject=subject, outcome=outcome.value)
                return outcome

            except StructuralError as e:
                await self._rollback(repository)
                log.warning(
                    "message_parsing_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return ProcessingOutcome.PARSING_FAILED

            except (TransientError, asyncio.TimeoutError) as e:
                await self._rollback(repository)
                log.warning(
                    "message_waiting",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return ProcessingOutcome.WAITING

            except Exception as e:
                await self._rollback(repository)
                log.exception("message_processing_error", error=str(e))
                return ProcessingOutcome.PARSING_FAILED

    async def _subject_of(
        self, repository: GovernanceRepositoryProtocol, message: InboundMessage
    ) -> str:
        if isinstance(message, ProposalMessage):
            return subject_for(message)

        proposal = await repository.find_proposal_by_hash(message.proposal_hash)
        if proposal is None:
            raise ProposalNotFoundYetError(message.proposal_hash)
        return proposal.subject

    async def _process(
        self,
        repository: GovernanceRepositoryProtocol,
        message: InboundMessage,
        meta: EnvelopeMeta,
    ) -> ProcessingOutcome:
        if isinstance(message, ProposalMessage):
            reconciler = ProposalReconciler(repository, self.oracle, factory=self.factory)
            reconciliation = await reconciler.admit(message, meta)
            if reconciliation.outcome == ReconcileOutcome.DEFERRED:
                return ProcessingOutcome.WAITING
            logger.debug("proposal_reconciled", outcome=reconciliation.outcome.value)
            return ProcessingOutcome.PROCESSED

        return await self._process_vote(repository, message)

    async def _process_vote(
        self, repository: GovernanceRepositoryProtocol, message: VoteMessage
    ) -> ProcessingOutcome:
        # Re-read under the subject lock; a replacement may have changed the hash
        proposal = await repository.find_proposal_by_hash(message.proposal_hash)
        if proposal is None:
            raise ProposalNotFoundYetError(message.proposal_hash)

        controller = VoteAdmissionController(repository, self.oracle)
        admission = await controller.admit_vote(
            proposal,
            VoteClaim(
                voter=message.voter,
                block=message.block,
                option_id=message.option_id,
                option_role=message.option_role,
            ),
        )
        logger.debug("vote_reconciled", outcome=admission.outcome.value)
        return ProcessingOutcome.PROCESSED

    async def _rollback(self, repository: GovernanceRepositoryProtocol) -> None:
        try:
            await repository.rollback()
        except Exception as e:
            logger.error("rollback_failed", error=str(e))
