"""
Shared dependencies for API endpoints.
"""

from fastapi import HTTPException, Request, status

from services.message_ingestion import MessageIngestionService


def get_ingestion_service(request: Request) -> MessageIngestionService:
    """Message ingestion service created at startup."""
    service = getattr(request.app.state, "ingestion", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Message ingestion is not initialised",
        )
    return service
