"""API route definitions."""

from reputation_server.api.routes.register import register_routes

__all__ = ["register_routes"]
