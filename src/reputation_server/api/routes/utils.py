"""Shared helpers for API route modules."""

from typing import Any

from fastapi import HTTPException

from reputation_server.api.models import ErrorResponse
from reputation_server.api.permissions import Access, Caller, require_access
from reputation_server.core.service import ReputationService
from reputation_server.reputation.types import Faction

# Documented error shapes shared by every router (OpenAPI only).
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    403: {"model": ErrorResponse, "description": "Caller lacks the required access"},
    404: {"model": ErrorResponse, "description": "Faction or entry not found"},
    503: {"model": ErrorResponse, "description": "Reputation store unavailable"},
}


async def authorize(service: ReputationService, caller: Caller, access: Access) -> None:
    """Check ``caller`` against the current module settings (403 on denial)."""
    require_access(caller, access, await service.get_settings())


async def faction_or_404(service: ReputationService, faction_id: str) -> Faction:
    faction = await service.get_faction(faction_id)
    if faction is None:
        raise HTTPException(status_code=404, detail=f"Faction '{faction_id}' not found")
    return faction
