from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from safeshare.models.item import MAX_DOWNLOADS, MIN_DOWNLOADS


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    domain: str = "localhost"
    data_dir: Path = Path("/app/data")
    max_payload_mb: int = 50
    default_max_downloads: int = 5
    max_filename_length: int = 255

    @model_validator(mode="after")
    def _check_limits(self) -> Settings:
        if not MIN_DOWNLOADS <= self.default_max_downloads <= MAX_DOWNLOADS:
            raise ValueError(
                f"DEFAULT_MAX_DOWNLOADS must be between {MIN_DOWNLOADS} and "
                f"{MAX_DOWNLOADS}, got {self.default_max_downloads}"
            )
        if self.max_payload_mb <= 0:
            raise ValueError(f"MAX_PAYLOAD_MB must be > 0, got {self.max_payload_mb}")
        if self.max_filename_length <= 0:
            raise ValueError(
                f"MAX_FILENAME_LENGTH must be > 0, got {self.max_filename_length}"
            )
        return self

    @property
    def items_dir(self) -> Path:
        return self.data_dir / "items"


@lru_cache
def get_settings() -> Settings:
    return Settings()
