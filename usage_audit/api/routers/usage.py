# usage_audit/api/routers/usage.py

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from usage_audit.api.dependencies import get_usage_accumulator
from usage_audit.telemetry.accumulator import UsageAccumulator

router = APIRouter()


class UsageEventRequest(BaseModel):
    """Client-reported usage event. Unset identity fields fall back to the request headers."""

    command: str = Field(..., min_length=1)
    object_id: Optional[str] = None
    object_type: Optional[str] = None
    classname: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


@router.post("", status_code=202)
async def record_usage(
    body: UsageEventRequest,
    accumulator: UsageAccumulator = Depends(get_usage_accumulator),
):
    """Mark this request as a usage event; the row is written after the response."""
    accumulator.command = body.command
    accumulator.object_id = body.object_id
    accumulator.object_type = body.object_type
    accumulator.classname = body.classname
    accumulator.metadata.update(body.metadata)
    return {"status": "accepted", "command": body.command}
