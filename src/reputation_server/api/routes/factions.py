"""Faction endpoints (CRUD, bounds, levels).

Reads need ``view`` access; create, update and delete are operator-only.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from reputation_server.api.models import (
    BoundsResponse,
    DeleteResponse,
    FactionCreateRequest,
    FactionListResponse,
    FactionResponse,
    FactionUpdateRequest,
    LevelResponse,
)
from reputation_server.api.permissions import Access, Caller, get_caller
from reputation_server.api.routes.utils import ERROR_RESPONSES, authorize, faction_or_404
from reputation_server.core.service import ReputationService
from reputation_server.reputation.scale import faction_bounds

logger = logging.getLogger(__name__)


def router(service: ReputationService) -> APIRouter:
    """Build the faction router."""
    api = APIRouter(prefix="/factions", tags=["factions"], responses=ERROR_RESPONSES)

    @api.get("", response_model=FactionListResponse)
    async def list_factions(caller: Caller = Depends(get_caller)):
        await authorize(service, caller, Access.VIEW)
        factions = await service.list_factions()
        return FactionListResponse(
            factions=[FactionResponse.from_faction(f, faction_bounds(f)) for f in factions]
        )

    @api.post("", response_model=FactionResponse, status_code=201)
    async def create_faction(request: FactionCreateRequest, caller: Caller = Depends(get_caller)):
        """Create a faction; ``steps`` is normalised, never rejected."""
        await authorize(service, caller, Access.MANAGE)
        try:
            faction = await service.create_faction(
                request.name,
                steps=request.steps,
                storage_mode=request.storage_mode,
                lookup_table_id=request.lookup_table_id,
                start_at_neutral=request.start_at_neutral,
                icon=request.icon,
                journal_id=request.journal_id,
                subject_ids=request.subject_ids,
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return FactionResponse.from_faction(faction, faction_bounds(faction))

    @api.get("/{faction_id}", response_model=FactionResponse)
    async def get_faction(faction_id: str, caller: Caller = Depends(get_caller)):
        await authorize(service, caller, Access.VIEW)
        faction = await faction_or_404(service, faction_id)
        return FactionResponse.from_faction(faction, faction_bounds(faction))

    @api.patch("/{faction_id}", response_model=FactionResponse)
    async def update_faction(
        faction_id: str, request: FactionUpdateRequest, caller: Caller = Depends(get_caller)
    ):
        """Update only the fields present in the request body."""
        await authorize(service, caller, Access.MANAGE)
        changes = request.model_dump(exclude_unset=True)
        try:
            faction = await service.update_faction(faction_id, **changes)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if faction is None:
            raise HTTPException(status_code=404, detail=f"Faction '{faction_id}' not found")
        return FactionResponse.from_faction(faction, faction_bounds(faction))

    @api.delete("/{faction_id}", response_model=DeleteResponse)
    async def delete_faction(faction_id: str, caller: Caller = Depends(get_caller)):
        """Delete a faction with its change log and every standing value."""
        await authorize(service, caller, Access.MANAGE)
        if not await service.delete_faction(faction_id):
            raise HTTPException(status_code=404, detail=f"Faction '{faction_id}' not found")
        logger.info("api: %s deleted faction %s", caller.actor_id, faction_id)
        return DeleteResponse(success=True, message=f"Faction '{faction_id}' deleted")

    @api.get("/{faction_id}/bounds", response_model=BoundsResponse)
    async def get_bounds(faction_id: str, caller: Caller = Depends(get_caller)):
        await authorize(service, caller, Access.VIEW)
        scale = await service.get_bounds(faction_id)
        if scale is None:
            raise HTTPException(status_code=404, detail=f"Faction '{faction_id}' not found")
        return BoundsResponse.from_bounds(scale)

    @api.get("/{faction_id}/levels", response_model=list[LevelResponse])
    async def get_levels(faction_id: str, caller: Caller = Depends(get_caller)):
        """Every rank on the faction's scale, lowest value first."""
        await authorize(service, caller, Access.VIEW)
        await faction_or_404(service, faction_id)
        return [LevelResponse.from_level(level) for level in await service.get_levels(faction_id)]

    return api
