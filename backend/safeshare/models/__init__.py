from __future__ import annotations

from safeshare.models.item import ConsumeResult, Item, ItemInfo  # noqa: F401
