"""Durable backing store for shared items — one JSON file per item.

Units live at ``root/{id}.json``. Writes go to a temporary file in the same
directory and are moved into place with ``os.replace``, so a reader never
sees a half-written unit.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol, runtime_checkable

from safeshare.models.item import Item
from safeshare.utils.validation import is_valid_item_id

logger = logging.getLogger(__name__)

UNIT_SUFFIX = ".json"
TEMP_SUFFIX = ".tmp"


@runtime_checkable
class ItemBackend(Protocol):
    """Persistence interface the share store mirrors its index into."""

    def save(self, item: Item) -> None: ...

    def load(self, item_id: str) -> Item | None: ...

    def delete(self, item_id: str) -> None: ...

    def exists(self, item_id: str) -> bool: ...

    def iter_units(self) -> Iterator[Path]: ...

    def load_unit(self, path: Path) -> Item: ...

    def cleanup_temp(self) -> int: ...


class FileItemBackend:
    """Filesystem implementation of :class:`ItemBackend`."""

    def __init__(self, root: Path) -> None:
        self.root = root.resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _unit_path(self, item_id: str) -> Path:
        """Return the unit path for *item_id*.

        Raises:
            ValueError: If *item_id* is not a canonical handle. Only canonical
                ids are ever turned into file names, which keeps every unit
                inside ``root``.
        """
        if not is_valid_item_id(item_id):
            raise ValueError(f"Refusing non-canonical item id: {item_id!r}")
        return self.root / f"{item_id}{UNIT_SUFFIX}"

    def save(self, item: Item) -> None:
        """Write the full item, replacing any previous unit atomically.

        Raises:
            OSError: If the write or the rename fails. The temporary file is
                removed before the error propagates.
        """
        target = self._unit_path(item.id)
        data = item.model_dump_json().encode("utf-8")

        fd, tmp_name = tempfile.mkstemp(
            dir=self.root, prefix=f".{item.id}.", suffix=TEMP_SUFFIX
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def load(self, item_id: str) -> Item | None:
        """Read the unit for *item_id*, or None if there is none.

        Raises:
            pydantic.ValidationError: If the unit exists but is corrupt.
            ValueError: If the stored id does not match *item_id*.
        """
        path = self._unit_path(item_id)
        try:
            return self.load_unit(path)
        except FileNotFoundError:
            return None

    def delete(self, item_id: str) -> None:
        """Remove the unit for *item_id*. Missing units are not an error."""
        self._unit_path(item_id).unlink(missing_ok=True)

    def exists(self, item_id: str) -> bool:
        return self._unit_path(item_id).is_file()

    def iter_units(self) -> Iterator[Path]:
        """Yield every unit file currently on disk."""
        for path in sorted(self.root.glob(f"*{UNIT_SUFFIX}")):
            if path.is_file():
                yield path

    def load_unit(self, path: Path) -> Item:
        """Parse one unit file.

        Raises:
            OSError: If the file cannot be read.
            pydantic.ValidationError: If the content is not a valid item.
            ValueError: If the stored id does not match the file name.
        """
        item = Item.model_validate_json(path.read_bytes())
        if path.name != f"{item.id}{UNIT_SUFFIX}" or not is_valid_item_id(item.id):
            raise ValueError(f"Unit {path.name} holds mismatched id {item.id!r}")
        return item

    def cleanup_temp(self) -> int:
        """Delete temporary files left behind by an interrupted save."""
        removed = 0
        for path in self.root.glob(f".*{TEMP_SUFFIX}"):
            path.unlink(missing_ok=True)
            removed += 1
        if removed:
            logger.info("Removed %d stale temporary unit file(s)", removed)
        return removed
