from __future__ import annotations

import os
import tempfile
from pathlib import Path

# Set test environment BEFORE importing app modules.
# safeshare.main reads get_settings() at import time for CORS, and the
# lifespan creates the store under DATA_DIR.
_test_tmp = tempfile.mkdtemp(prefix="safeshare-test-")
os.environ.setdefault("DATA_DIR", os.path.join(_test_tmp, "data"))

import pytest
from fastapi.testclient import TestClient

from safeshare.dependencies import get_share_store
from safeshare.main import app as fastapi_app
from safeshare.services.item_backend import FileItemBackend
from safeshare.services.share_store import ShareStore


# ── Store fixtures ────────────────────────────────────────────────────


@pytest.fixture(name="items_dir")
def items_dir_fixture(tmp_path: Path) -> Path:
    """Temporary directory holding the backing units."""
    return tmp_path / "items"


@pytest.fixture(name="item_backend")
def item_backend_fixture(items_dir: Path) -> FileItemBackend:
    return FileItemBackend(items_dir)


@pytest.fixture(name="share_store")
def share_store_fixture(item_backend: FileItemBackend) -> ShareStore:
    """ShareStore over an empty temporary backing directory."""
    store = ShareStore(item_backend)
    store.rehydrate()
    return store


# ── HTTP client fixtures ──────────────────────────────────────────────


@pytest.fixture(name="client")
def client_fixture(share_store: ShareStore):
    """FastAPI TestClient wired to the per-test share store."""
    fastapi_app.dependency_overrides[get_share_store] = lambda: share_store
    with TestClient(fastapi_app) as client:
        yield client
    fastapi_app.dependency_overrides.clear()


@pytest.fixture(name="encrypted_payload")
def encrypted_payload_fixture() -> bytes:
    """Stand-in for ciphertext produced by the browser (IV + AES-GCM output)."""
    return os.urandom(12) + b"\x8f\x01ciphertext-bytes\x00\xff" + os.urandom(16)
