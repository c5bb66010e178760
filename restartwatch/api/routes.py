"""Route handlers for the restartwatch status API."""

from __future__ import annotations

from fastapi import APIRouter, Request

from restartwatch.api.schemas import HealthResponse, StatusResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse()


@router.get("/status", response_model=StatusResponse)
async def status(request: Request) -> StatusResponse:
    """Report ledger size and the outcome of the most recent poll cycle."""
    poll_loop = request.app.state.poll_loop
    return StatusResponse(
        ledger_size=len(poll_loop.detector.ledger),
        cycles=poll_loop.cycles,
        last_cycle_at=poll_loop.last_cycle_at,
        last_error=poll_loop.last_error,
        notifiers=[n.channel_name for n in poll_loop.dispatcher.notifiers],
    )
