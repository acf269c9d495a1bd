"""Change-log endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from reputation_server.api.models import (
    ChangeLogEntryResponse,
    ChangeLogResponse,
    CommentRequest,
)
from reputation_server.api.permissions import Access, Caller, get_caller
from reputation_server.api.routes.utils import ERROR_RESPONSES, authorize, faction_or_404
from reputation_server.core.service import ReputationService


def router(service: ReputationService) -> APIRouter:
    """Build the change-log router."""
    api = APIRouter(
        prefix="/factions/{faction_id}/log", tags=["audit"], responses=ERROR_RESPONSES
    )

    def _entry_not_found(faction_id: str, entry_id: str) -> HTTPException:
        return HTTPException(
            status_code=404,
            detail=f"Log entry '{entry_id}' not found in faction '{faction_id}'",
        )

    @api.get("", response_model=ChangeLogResponse)
    async def get_log(faction_id: str, caller: Caller = Depends(get_caller)):
        """The faction's change log, newest first."""
        await authorize(service, caller, Access.VIEW)
        await faction_or_404(service, faction_id)
        entries = await service.get_audit_log(faction_id)
        return ChangeLogResponse(
            faction_id=faction_id,
            entries=[ChangeLogEntryResponse.from_entry(e) for e in entries],
        )

    @api.post("/{entry_id}/comment", response_model=ChangeLogEntryResponse)
    async def annotate(
        faction_id: str,
        entry_id: str,
        request: CommentRequest,
        caller: Caller = Depends(get_caller),
    ):
        """Set (or replace) an entry's comment."""
        await authorize(service, caller, Access.EDIT)
        if not await service.annotate(faction_id, entry_id, request.comment, actor=caller.actor_id):
            raise _entry_not_found(faction_id, entry_id)
        # the faction may have been deleted since the annotation
        entries = await service.get_audit_log(faction_id)
        entry = next((e for e in entries if e.id == entry_id), None)
        if entry is None:
            raise _entry_not_found(faction_id, entry_id)
        return ChangeLogEntryResponse.from_entry(entry)

    return api
