"""The share store — download-limited, ephemeral blob storage.

Holds the authoritative in-memory index of live items and mirrors every
mutation into an :class:`~safeshare.services.item_backend.ItemBackend`
before the operation returns. The backend is only read as a source of truth
during :meth:`ShareStore.rehydrate` and for the lazy reload of an id the
index does not know.

All operations on one id are serialized by a per-id lock held across the
whole lookup / check / increment / persist / destroy sequence. Different
ids never wait on each other.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from uuid import uuid4

from safeshare.models.item import MAX_DOWNLOADS, MIN_DOWNLOADS, ConsumeResult, Item, ItemInfo
from safeshare.services.item_backend import ItemBackend
from safeshare.utils.validation import (
    DEFAULT_MAX_FILENAME_LENGTH,
    is_valid_item_id,
    sanitize_filename,
)

logger = logging.getLogger(__name__)


class ShareStoreError(Exception):
    """Base class for outcomes the HTTP layer translates into client responses."""


class InvalidIdError(ShareStoreError, ValueError):
    """The handle does not have the shape of an issued id."""


class InvalidLimitError(ShareStoreError, ValueError):
    """The download limit is not an integer in the allowed range."""


class InvalidPayloadError(ShareStoreError, ValueError):
    """The payload is missing, empty or not bytes."""


class ItemNotFoundError(ShareStoreError, LookupError):
    """No item with this id exists (never created, or already cleaned up)."""


class ItemExhaustedError(ShareStoreError):
    """The item existed but its download limit has been reached."""


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class ShareStore:
    """Create, inspect and consume download-limited items."""

    def __init__(
        self,
        backend: ItemBackend,
        max_filename_length: int = DEFAULT_MAX_FILENAME_LENGTH,
    ) -> None:
        self.backend = backend
        self.max_filename_length = max_filename_length
        self._index: dict[str, Item] = {}
        self._item_locks: dict[str, _LockEntry] = {}
        # Guards _index and _item_locks; never held across backend I/O
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._index)

    def __contains__(self, item_id: object) -> bool:
        with self._guard:
            return item_id in self._index

    # ── Locking ──────────────────────────────────────────────────────

    @contextmanager
    def _locked(self, item_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._item_locks.get(item_id)
            if entry is None:
                entry = self._item_locks[item_id] = _LockEntry()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._item_locks[item_id]

    # ── Index helpers (caller holds the item lock) ───────────────────

    def _lookup(self, item_id: str) -> Item | None:
        with self._guard:
            item = self._index.get(item_id)
        if item is not None:
            return item

        try:
            item = self.backend.load(item_id)
        except ValueError:
            # Same treatment as a corrupt unit during rehydrate
            logger.warning("Ignoring unreadable unit for item %s", item_id, exc_info=True)
            return None
        if item is not None:
            logger.debug("Reloaded item %s from backing store", item_id)
            with self._guard:
                self._index[item_id] = item
        return item

    def _destroy(self, item_id: str) -> None:
        with self._guard:
            self._index.pop(item_id, None)
        self.backend.delete(item_id)

    @staticmethod
    def _check_id(item_id: object) -> str:
        if not is_valid_item_id(item_id):
            raise InvalidIdError("Invalid item id")
        return item_id  # type: ignore[return-value]

    # ── Public operations ────────────────────────────────────────────

    def put(
        self,
        payload: bytes,
        filename: object = None,
        is_text: bool = False,
        max_downloads: object = 5,
    ) -> str:
        """Store *payload* and return its new id.

        Raises:
            InvalidPayloadError: If *payload* is not non-empty bytes.
            InvalidLimitError: If *max_downloads* is not an int in [1, 100].
            OSError: If the item could not be persisted. The item is not
                left in the index.
        """
        if not isinstance(payload, bytes) or not payload:
            raise InvalidPayloadError("Payload must be non-empty bytes")
        if (
            not isinstance(max_downloads, int)
            or isinstance(max_downloads, bool)
            or not MIN_DOWNLOADS <= max_downloads <= MAX_DOWNLOADS
        ):
            raise InvalidLimitError(
                f"Download limit must be an integer between {MIN_DOWNLOADS} and {MAX_DOWNLOADS}"
            )

        item_id = self._new_id()
        item = Item(
            id=item_id,
            payload=payload,
            filename=sanitize_filename(filename, self.max_filename_length),
            is_text=bool(is_text),
            max_downloads=max_downloads,
        )

        with self._locked(item_id):
            with self._guard:
                self._index[item_id] = item
            try:
                self.backend.save(item)
            except Exception:
                with self._guard:
                    self._index.pop(item_id, None)
                raise

        logger.info("Stored item %s (max_downloads=%d)", item_id, max_downloads)
        return item_id

    def peek(self, item_id: str) -> ItemInfo:
        """Return item metadata without counting a download.

        Raises:
            InvalidIdError, ItemNotFoundError, ItemExhaustedError
        """
        item_id = self._check_id(item_id)
        with self._locked(item_id):
            item = self._lookup(item_id)
            if item is None:
                raise ItemNotFoundError(item_id)
            if item.is_exhausted:
                raise ItemExhaustedError(item_id)
            return item.info()

    def consume(self, item_id: str) -> ConsumeResult:
        """Count one download and return the payload.

        The incremented count is persisted before anything is returned. When
        the download is the last one allowed, the item is destroyed before
        this method returns.

        Raises:
            InvalidIdError, ItemNotFoundError, ItemExhaustedError
            OSError: If the incremented count could not be persisted. The
                count is rolled back and no payload is returned.
        """
        item_id = self._check_id(item_id)
        with self._locked(item_id):
            item = self._lookup(item_id)
            if item is None:
                raise ItemNotFoundError(item_id)
            if item.is_exhausted:
                # Leftover from an interrupted terminal delete
                logger.info("Cleaning up exhausted item %s", item_id)
                self._destroy(item_id)
                raise ItemExhaustedError(item_id)

            item.downloads += 1
            try:
                self.backend.save(item)
            except Exception:
                item.downloads -= 1
                raise

            result = ConsumeResult(
                payload=item.payload,
                info=item.info(),
                is_last=item.is_exhausted,
            )

            if result.is_last:
                try:
                    self._destroy(item_id)
                except OSError:
                    # The exhausted unit is removed on next access or at startup
                    logger.error(
                        "Failed to delete exhausted item %s", item_id, exc_info=True
                    )
                else:
                    logger.info("Deleted item %s after final download", item_id)

            return result

    def rehydrate(self) -> int:
        """Rebuild the index from the backing store. Returns items loaded.

        Unreadable or corrupt units are logged and skipped. Units that are
        already exhausted are deleted rather than loaded.
        """
        self.backend.cleanup_temp()

        loaded: dict[str, Item] = {}
        skipped = 0
        purged = 0
        for path in self.backend.iter_units():
            try:
                item = self.backend.load_unit(path)
            except (OSError, ValueError):
                logger.warning("Skipping unreadable unit %s", path.name, exc_info=True)
                skipped += 1
                continue

            if item.is_exhausted:
                try:
                    self.backend.delete(item.id)
                except OSError:
                    logger.warning("Could not purge exhausted unit %s", path.name, exc_info=True)
                else:
                    purged += 1
                continue

            loaded[item.id] = item

        with self._guard:
            self._index = loaded

        logger.info(
            "Loaded %d existing item(s) (%d skipped, %d exhausted purged)",
            len(loaded), skipped, purged,
        )
        return len(loaded)

    def _new_id(self) -> str:
        while True:
            item_id = str(uuid4())
            if item_id not in self and not self.backend.exists(item_id):
                return item_id
