"""
API v1 router aggregating all endpoints.
"""

from fastapi import APIRouter

from api.v1.messages import router as messages_router
from api.v1.proposals import router as proposals_router

router = APIRouter()

router.include_router(messages_router, prefix="/messages", tags=["Messages"])
router.include_router(proposals_router, prefix="/proposals", tags=["Proposals"])
