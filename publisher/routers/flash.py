from typing import Annotated, Optional

from fastapi import APIRouter, Header

from publisher.errors import BadRequest
from publisher.flash import flash

router = APIRouter(prefix="/api/v1/flash", tags=["flash"])

@router.get("")
async def pop_flash(session_id: Annotated[Optional[str], Header(alias="X-Session-Id")] = None):
    """Return the pending flash payload for this session (or null) and clear it."""
    if not session_id:
        raise BadRequest("X-Session-Id header is required", details={"field": "X-Session-Id"})
    return await flash.pop(session_id)
