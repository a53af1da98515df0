"""
Application lifecycle event handlers.

Manages startup and shutdown of the database engine, the chain oracle
client and the message ingestion service.
"""

from typing import Callable

import structlog
from fastapi import FastAPI

from core.config import settings
from core.logging import configure_logging
from db.session import close_db, init_db

logger = structlog.get_logger(__name__)


def create_start_app_handler(app: FastAPI) -> Callable:
    """Create startup event handler."""

    async def start_app() -> None:
        configure_logging(settings.APP_ENV, settings.LOG_LEVEL)
        logger.info("Starting MarketVote node...")

        await init_db()

        from services.chain_oracle import CoreRpcService
        from services.message_ingestion import MessageIngestionService

        oracle = CoreRpcService()
        app.state.oracle = oracle
        app.state.ingestion = MessageIngestionService(oracle)
        logger.info("Message ingestion ready", core_rpc_url=settings.CORE_RPC_URL)

    return start_app


def create_stop_app_handler(app: FastAPI) -> Callable:
    """Create shutdown event handler."""

    async def stop_app() -> None:
        logger.info("Shutting down MarketVote node...")

        oracle = getattr(app.state, "oracle", None)
        if oracle is not None:
            await oracle.close()

        await close_db()
        logger.info("MarketVote node shutdown complete")

    return stop_app
