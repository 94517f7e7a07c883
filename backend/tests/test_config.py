"""Tests for safeshare/config.py — Settings validation."""
from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from safeshare.config import Settings


class TestDefaults:
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            s = Settings(_env_file=None)
        assert s.default_max_downloads == 5
        assert s.max_payload_mb == 50
        assert s.max_filename_length == 255
        assert s.data_dir == Path("/app/data")

    def test_items_dir_under_data_dir(self):
        with patch.dict(os.environ, {"DATA_DIR": "/srv/share"}, clear=False):
            s = Settings(_env_file=None)
        assert s.items_dir == Path("/srv/share/items")

    def test_env_is_case_insensitive(self):
        with patch.dict(os.environ, {"default_max_downloads": "7"}, clear=False):
            s = Settings(_env_file=None)
        assert s.default_max_downloads == 7


class TestValidation:
    @pytest.mark.parametrize("value", ["0", "101", "-1"])
    def test_default_max_downloads_out_of_range(self, value):
        with patch.dict(os.environ, {"DEFAULT_MAX_DOWNLOADS": value}, clear=False):
            with pytest.raises(ValueError, match="DEFAULT_MAX_DOWNLOADS"):
                Settings(_env_file=None)

    def test_max_payload_must_be_positive(self):
        with patch.dict(os.environ, {"MAX_PAYLOAD_MB": "0"}, clear=False):
            with pytest.raises(ValueError, match="MAX_PAYLOAD_MB"):
                Settings(_env_file=None)

    def test_max_filename_length_must_be_positive(self):
        with patch.dict(os.environ, {"MAX_FILENAME_LENGTH": "0"}, clear=False):
            with pytest.raises(ValueError, match="MAX_FILENAME_LENGTH"):
                Settings(_env_file=None)
