"""Response models for the restartwatch status API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"


class StatusResponse(BaseModel):
    """Poll loop and ledger state."""

    ledger_size: int
    cycles: int
    last_cycle_at: datetime | None = None
    last_error: str | None = None
    notifiers: list[str]
