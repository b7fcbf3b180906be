"""
Health endpoint for the PairChat server.

Reports liveness together with a snapshot of the session core: how many
connections are open, how many participants are registered, how long each
waiting pool is and how many conversations are running.
"""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from ..realtime.envelope import utc_now_z
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

health_router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall service status")
    connections: int = Field(..., ge=0, description="Open WebSocket connections")
    participants: int = Field(..., ge=0, description="Registered participants")
    waiting: dict[str, int] = Field(default_factory=dict, description="Waiting pool sizes by attribute")
    pairs: int = Field(..., ge=0, description="Active conversations")
    timestamp: str = Field(..., description="ISO 8601 UTC timestamp of the snapshot")


@health_router.get("/health", response_model=HealthResponse)
async def get_health(request: Request) -> HealthResponse:
    coordinator = getattr(request.app.state, "coordinator", None)
    if coordinator is None:
        logger.warning("Health requested before session services were initialized")
        raise HTTPException(status_code=503, detail="Service temporarily unavailable")

    stats = coordinator.get_stats()
    return HealthResponse(
        status="healthy",
        connections=stats["connections"],
        participants=stats["participants"],
        waiting=stats["waiting"],
        pairs=stats["pairs"],
        timestamp=utc_now_z(),
    )
