"""Standing endpoints: read, apply a delta, set a value.

Out-of-range input is clamped, never rejected.  Mutations need ``edit``
access; the caller's ``X-Actor-Id`` is stamped into the change log.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from reputation_server.api.models import (
    BarSegmentResponse,
    BoundsResponse,
    DeltaRequest,
    LevelResponse,
    MutationResponse,
    SetValueRequest,
    StandingResponse,
)
from reputation_server.api.permissions import Access, Caller, get_caller
from reputation_server.api.routes.utils import ERROR_RESPONSES, authorize
from reputation_server.core.service import ReputationService
from reputation_server.reputation.constants import GLOBAL_SUBJECT
from reputation_server.reputation.types import StorageMode


def router(service: ReputationService) -> APIRouter:
    """Build the standings router."""
    api = APIRouter(
        prefix="/factions/{faction_id}/standing", tags=["standings"], responses=ERROR_RESPONSES
    )

    def _not_found(faction_id: str) -> HTTPException:
        return HTTPException(status_code=404, detail=f"Faction '{faction_id}' not found")

    @api.get("", response_model=StandingResponse)
    async def get_standing(
        faction_id: str,
        subject_id: str = Query(default=GLOBAL_SUBJECT),
        caller: Caller = Depends(get_caller),
    ):
        await authorize(service, caller, Access.VIEW)
        overview = await service.standing_overview(faction_id, subject_id)
        if overview is None:
            raise _not_found(faction_id)
        return StandingResponse(
            faction_id=faction_id,
            subject_id=GLOBAL_SUBJECT if overview.mode is StorageMode.SHARED else subject_id,
            value=overview.value,
            display_value=overview.display_value,
            storage_mode=overview.mode.value,
            tier=overview.tier,
            level=LevelResponse.from_level(overview.level),
            bounds=BoundsResponse.from_bounds(overview.bounds),
            bar=[BarSegmentResponse.from_segment(s) for s in overview.bar],
        )

    @api.post("/delta", response_model=MutationResponse)
    async def apply_delta(
        faction_id: str, request: DeltaRequest, caller: Caller = Depends(get_caller)
    ):
        """Add ``delta`` to the standing; always recorded in the change log."""
        await authorize(service, caller, Access.EDIT)
        value = await service.apply_delta(
            request.subject_id, faction_id, request.delta, actor=caller.actor_id
        )
        if value is None:
            raise _not_found(faction_id)
        return MutationResponse(faction_id=faction_id, subject_id=request.subject_id, value=value)

    @api.put("", response_model=MutationResponse)
    async def set_value(
        faction_id: str, request: SetValueRequest, caller: Caller = Depends(get_caller)
    ):
        """Set the standing; recorded only when the value changes."""
        await authorize(service, caller, Access.EDIT)
        value = await service.set_value(
            request.subject_id, faction_id, request.value, actor=caller.actor_id
        )
        if value is None:
            raise _not_found(faction_id)
        return MutationResponse(faction_id=faction_id, subject_id=request.subject_id, value=value)

    return api
