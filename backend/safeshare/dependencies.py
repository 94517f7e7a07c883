"""FastAPI dependency injection for the share store."""

from __future__ import annotations

from fastapi import HTTPException, Request

from safeshare.services.share_store import ShareStore


def get_share_store(request: Request) -> ShareStore:
    """Inject the ShareStore built and rehydrated at startup."""
    store = getattr(request.app.state, "share_store", None)
    if store is None:
        raise HTTPException(
            status_code=503,
            detail="Share store unavailable",
        )
    return store
