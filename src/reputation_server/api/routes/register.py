"""
Route registration entry point for the FastAPI application.

Keeps the public ``register_routes(app, service)`` API stable while the
implementation lives in focused router modules.
"""

from fastapi import FastAPI

from reputation_server.api.routes import audit, factions, health, settings, standings
from reputation_server.core.service import ReputationService


def register_routes(app: FastAPI, service: ReputationService) -> None:
    """Register all API routes with the FastAPI app."""
    app.include_router(health.router(service))
    app.include_router(factions.router(service))
    app.include_router(standings.router(service))
    app.include_router(audit.router(service))
    app.include_router(settings.router(service))
