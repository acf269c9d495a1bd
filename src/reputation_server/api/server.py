"""
FastAPI application factory for the reputation server.

``create_app`` wires a :class:`ReputationService` into a FastAPI app:

- CORS middleware so browser-based display layers can call the API
- a ``StoreError`` handler mapping persistence failures to 503
- every router from :mod:`reputation_server.api.routes`

Run it with the CLI (``reputation-server run``) or directly::

    python -m reputation_server.api.server
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from reputation_server import __version__
from reputation_server.api.routes import register_routes
from reputation_server.core.service import ReputationService
from reputation_server.store.errors import StoreError, StoreOperationError

logger = logging.getLogger(__name__)

STORE_UNAVAILABLE_DETAIL = "Reputation store unavailable"


async def _store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map store failures to a stable 503; details go to the log only."""
    logger.error("api: store failure on %s %s: %s", request.method, request.url.path, exc)
    context = None
    if isinstance(exc, StoreOperationError):
        context = {"operation": exc.context.operation}
    return JSONResponse(
        status_code=503,
        content={"detail": STORE_UNAVAILABLE_DETAIL, "context": context},
    )


def create_app(service: ReputationService | None = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        service: Engine facade to expose.  Defaults to one built from the
            server config (configured store backend and lookup table root).

    Returns:
        Configured FastAPI application.  The service is available as
        ``app.state.service``.
    """
    if service is None:
        service = ReputationService.from_config()

    app = FastAPI(title="Reputation Server", version=__version__)
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StoreError, _store_error_handler)

    register_routes(app, service)
    return app


def start_server(host: str | None = None, port: int | None = None) -> None:
    """Serve the configured app with uvicorn (blocking)."""
    import uvicorn

    from reputation_server.config import config

    host = host or config.server.host
    port = port or config.server.port
    logger.info("api: starting server on %s:%d", host, port)
    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    from reputation_server.config import configure_logging

    configure_logging()
    start_server()
