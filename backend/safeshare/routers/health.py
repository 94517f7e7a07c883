from __future__ import annotations

import os

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(prefix="/api", tags=["health"])

SERVICE_NAME = "safeshare-backend"
VERSION = "0.1.0"


@router.get("/health")
async def health(request: Request):
    store = getattr(request.app.state, "share_store", None)

    store_status: dict = {"status": "unavailable"}
    if store is not None:
        root = getattr(store.backend, "root", None)
        writable = root is not None and os.access(root, os.W_OK)
        store_status = {
            "status": "ok" if writable else "read_only",
            "items": len(store),
        }

    is_healthy = store_status["status"] == "ok"

    return {
        "status": "healthy" if is_healthy else "unhealthy",
        "service": SERVICE_NAME,
        "version": VERSION,
        "checks": {
            "store": store_status,
        },
    }


@router.get("/health/ready")
async def readiness(request: Request):
    if getattr(request.app.state, "share_store", None) is None:
        return JSONResponse(
            status_code=503,
            content={
                "status": "not ready",
                "service": SERVICE_NAME,
                "error": "share store not initialised",
            },
        )

    return {
        "status": "ready",
        "service": SERVICE_NAME,
    }
