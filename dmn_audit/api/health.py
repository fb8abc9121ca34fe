"""Health and metrics endpoints."""

from fastapi import APIRouter

from dmn_audit.config import settings

router = APIRouter()


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/metrics")
async def metrics():
    """Basic metrics endpoint for observability."""
    return {
        "service": "dmn-audit",
        "version": "0.1.0",
        "history_executor": (
            "message-queue"
            if settings.async_history_executor_message_queue_mode
            else "in-process"
        ),
    }
