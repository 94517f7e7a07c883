"""Share API — deposit encrypted content and hand it out a limited number of times.

POST /api/store          — store encrypted content, returns its id
GET  /api/info/{id}      — metadata only, does not count as a download
GET  /api/retrieve/{id}  — return the content and count one download
"""

from __future__ import annotations

import base64
import binascii
import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from safeshare.config import get_settings
from safeshare.dependencies import get_share_store
from safeshare.services.share_store import (
    InvalidIdError,
    InvalidLimitError,
    InvalidPayloadError,
    ItemExhaustedError,
    ItemNotFoundError,
    ShareStore,
    ShareStoreError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["share"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StoreRequest(_CamelModel):
    encrypted_data: str | None = None
    # Left untyped: the store sanitizes or rejects whatever the client sends
    filename: Any = None
    is_text: bool | None = False
    max_downloads: Any = None


class StoreResponse(_CamelModel):
    id: str


class InfoResponse(_CamelModel):
    filename: str
    is_text: bool
    downloads: int
    max_downloads: int
    remaining_downloads: int
    created_at: datetime


class RetrieveResponse(_CamelModel):
    encrypted_data: str
    filename: str
    is_text: bool
    downloads: int
    max_downloads: int
    is_last_download: bool


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_http_error(exc: ShareStoreError) -> HTTPException:
    if isinstance(exc, (InvalidIdError, InvalidLimitError, InvalidPayloadError)):
        return HTTPException(400, str(exc))
    if isinstance(exc, ItemNotFoundError):
        return HTTPException(404, "Content not found")
    if isinstance(exc, ItemExhaustedError):
        return HTTPException(410, "Content has been deleted due to download limit")
    return HTTPException(500, "Internal server error")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/store", response_model=StoreResponse)
def store_content(
    body: StoreRequest,
    store: ShareStore = Depends(get_share_store),
) -> StoreResponse:
    """Store already-encrypted content and return its id."""
    settings = get_settings()

    if not body.encrypted_data:
        raise HTTPException(400, "No encrypted data provided")

    max_size = settings.max_payload_mb * 1024 * 1024
    too_large = HTTPException(
        413, f"Content exceeds maximum size of {settings.max_payload_mb}MB"
    )
    # Base64 text for max_size bytes is at most 4 * ceil(max_size / 3) chars
    if len(body.encrypted_data) > 4 * -(-max_size // 3):
        raise too_large

    try:
        payload = base64.b64decode(body.encrypted_data, validate=True)
    except binascii.Error:
        raise HTTPException(400, "encryptedData must be base64")
    if len(payload) > max_size:
        raise too_large

    max_downloads = body.max_downloads
    if max_downloads is None:
        max_downloads = settings.default_max_downloads

    try:
        item_id = store.put(
            payload,
            filename=body.filename,
            is_text=bool(body.is_text),
            max_downloads=max_downloads,
        )
    except ShareStoreError as exc:
        raise _to_http_error(exc)
    except Exception:
        logger.exception("Failed to store content")
        raise HTTPException(500, "Internal server error")

    return StoreResponse(id=item_id)


@router.get("/info/{item_id}", response_model=InfoResponse)
def get_info(
    item_id: str,
    store: ShareStore = Depends(get_share_store),
) -> InfoResponse:
    """Return metadata for an item without counting a download."""
    try:
        info = store.peek(item_id)
    except ShareStoreError as exc:
        raise _to_http_error(exc)
    except Exception:
        logger.exception("Failed to read info for item %s", item_id)
        raise HTTPException(500, "Internal server error")

    return InfoResponse(
        filename=info.filename,
        is_text=info.is_text,
        downloads=info.downloads,
        max_downloads=info.max_downloads,
        remaining_downloads=info.remaining,
        created_at=info.created_at,
    )


@router.get("/retrieve/{item_id}", response_model=RetrieveResponse)
def retrieve_content(
    item_id: str,
    store: ShareStore = Depends(get_share_store),
) -> RetrieveResponse:
    """Return the encrypted content and count one download."""
    try:
        result = store.consume(item_id)
    except ShareStoreError as exc:
        raise _to_http_error(exc)
    except Exception:
        logger.exception("Failed to retrieve item %s", item_id)
        raise HTTPException(500, "Internal server error")

    return RetrieveResponse(
        encrypted_data=base64.b64encode(result.payload).decode("ascii"),
        filename=result.info.filename,
        is_text=result.info.is_text,
        downloads=result.info.downloads,
        max_downloads=result.info.max_downloads,
        is_last_download=result.is_last,
    )
