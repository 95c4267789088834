"""System health endpoint."""

import logging

from fastapi import APIRouter, Request

from web.app_state import get_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint to verify API is running."""
    engine = get_engine(request)
    return {"isAlive": True, "runningDiscussions": engine.running_count()}
