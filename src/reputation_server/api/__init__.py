"""HTTP API (FastAPI) for the reputation server."""
