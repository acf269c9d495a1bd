"""Health and root endpoints.

The version string is read from ``reputation_server.__version__``, resolved
from the installed package metadata.
"""

from fastapi import APIRouter

from reputation_server import __version__
from reputation_server.core.service import ReputationService


def router(service: ReputationService) -> APIRouter:
    """Build the health router."""
    api = APIRouter()

    @api.get("/")
    async def root():
        """API identity and current version."""
        return {"message": "Reputation Server API", "version": __version__}

    @api.get("/health")
    async def health_check():
        """Liveness check with the number of tracked factions."""
        factions = await service.list_factions()
        return {"status": "ok", "factions": len(factions)}

    return api
