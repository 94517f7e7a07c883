from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

MIN_DOWNLOADS = 1
MAX_DOWNLOADS = 100


class Item(BaseModel):
    """One shared blob plus its consumption bookkeeping.

    This is also the on-disk unit format: ``model_dump_json()`` writes the
    payload as standard base64 text, ``model_validate_json()`` reads it back.
    """

    id: str
    payload: bytes
    filename: str
    is_text: bool = False
    max_downloads: int = Field(ge=MIN_DOWNLOADS, le=MAX_DOWNLOADS)
    downloads: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("payload", mode="before")
    @classmethod
    def _decode_payload(cls, value: object) -> object:
        if isinstance(value, str):
            try:
                return base64.b64decode(value, validate=True)
            except binascii.Error as exc:
                raise ValueError("payload is not valid base64") from exc
        return value

    @field_serializer("payload", when_used="json")
    def _encode_payload(self, value: bytes) -> str:
        return base64.b64encode(value).decode("ascii")

    @model_validator(mode="after")
    def _check_counts(self) -> Item:
        if self.downloads > self.max_downloads:
            raise ValueError(
                f"downloads ({self.downloads}) exceeds max_downloads ({self.max_downloads})"
            )
        return self

    @property
    def is_exhausted(self) -> bool:
        return self.downloads >= self.max_downloads

    def info(self) -> ItemInfo:
        return ItemInfo(
            id=self.id,
            filename=self.filename,
            is_text=self.is_text,
            downloads=self.downloads,
            max_downloads=self.max_downloads,
            created_at=self.created_at,
        )


@dataclass(frozen=True, slots=True)
class ItemInfo:
    """Read-only view of an item. Never carries the payload."""

    id: str
    filename: str
    is_text: bool
    downloads: int
    max_downloads: int
    created_at: datetime

    @property
    def remaining(self) -> int:
        return self.max_downloads - self.downloads


@dataclass(frozen=True, slots=True)
class ConsumeResult:
    """Outcome of a successful consuming read."""

    payload: bytes
    info: ItemInfo
    is_last: bool
