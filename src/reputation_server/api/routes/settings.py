"""Module settings endpoints (operator-only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from reputation_server.api.models import SettingsResponse, SettingsUpdateRequest
from reputation_server.api.permissions import Access, Caller, get_caller
from reputation_server.api.routes.utils import ERROR_RESPONSES, authorize
from reputation_server.core.service import ReputationService


def router(service: ReputationService) -> APIRouter:
    """Build the settings router."""
    api = APIRouter(prefix="/settings", tags=["settings"], responses=ERROR_RESPONSES)

    @api.get("", response_model=SettingsResponse)
    async def get_settings(caller: Caller = Depends(get_caller)):
        await authorize(service, caller, Access.MANAGE)
        return SettingsResponse(**(await service.get_settings()).as_dict())

    @api.put("", response_model=SettingsResponse)
    async def update_settings(request: SettingsUpdateRequest, caller: Caller = Depends(get_caller)):
        """Merge the fields present in the body into the stored settings."""
        await authorize(service, caller, Access.MANAGE)
        updated = await service.update_settings(**request.model_dump(exclude_none=True))
        return SettingsResponse(**updated.as_dict())

    return api
