"""
Inbound message endpoint.

The secure-messaging bridge posts every received proposal or vote payload
here and stores the returned outcome on its own delivery record.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.deps import get_ingestion_service
from schemas.messages import EnvelopeMeta
from schemas.outcomes import ProcessingOutcome
from services.message_ingestion import MessageIngestionService

router = APIRouter()


class IngestRequest(BaseModel):
    """A received marketplace payload with its delivery metadata."""

    meta: EnvelopeMeta
    payload: dict[str, Any]


class IngestResponse(BaseModel):
    msgid: str | None
    outcome: ProcessingOutcome


@router.post("", response_model=IngestResponse)
async def ingest_message(
    body: IngestRequest,
    ingestion: MessageIngestionService = Depends(get_ingestion_service),
) -> IngestResponse:
    """Process a proposal or vote message and return its processing outcome."""
    outcome = await ingestion.process_payload(body.payload, body.meta)
    return IngestResponse(msgid=body.meta.msgid, outcome=outcome)
