"""
config.py — pydantic-settings Settings class.

All environment variables for the Toronto Pulse pipeline are declared here.
Fetchers, validators and the CLI import `settings` from this module.

Usage:
    from pulse_shared.config import settings
    print(settings.ckan_base_url)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pulse_shared.geo import BoundingBox


def _find_dotenv() -> Path | None:
    """Walk up from CWD to find the nearest .env file."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / ".env"
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_dotenv() or ".env",
        env_file_encoding="utf-8",
        env_prefix="PULSE_",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Upstream endpoints
    # -------------------------------------------------------------------------
    ckan_base_url: str = Field(
        default="https://ckan0.cf.opendata.inter.prod-toronto.ca/api/3/action"
    )
    gbfs_base_url: str = Field(
        default="https://tor.publicbikesystem.net/ube/gbfs/v1/en"
    )
    nextbus_url: str = Field(
        default="https://webservices.umoiq.com/service/publicXMLFeed"
    )

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------
    http_timeout_s: float = Field(default=10.0, gt=0)
    user_agent: str = Field(default="TorontoPulse/1.0")
    max_concurrent_requests: int = Field(default=4, ge=1)

    # -------------------------------------------------------------------------
    # Service area (Toronto, including the islands)
    # -------------------------------------------------------------------------
    service_area_north: float = Field(default=43.85)
    service_area_south: float = Field(default=43.58)
    service_area_east: float = Field(default=-79.12)
    service_area_west: float = Field(default=-79.64)

    # -------------------------------------------------------------------------
    # Source descriptors
    # -------------------------------------------------------------------------
    sources_dir: Path | None = Field(default=None)

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")

    # -------------------------------------------------------------------------
    # Derived / computed
    # -------------------------------------------------------------------------
    @property
    def service_area(self) -> BoundingBox:
        return BoundingBox(
            north=self.service_area_north,
            south=self.service_area_south,
            east=self.service_area_east,
            west=self.service_area_west,
        )

    @field_validator("ckan_base_url", "gbfs_base_url", "nextbus_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Module-level singleton, import this everywhere
# ---------------------------------------------------------------------------
settings = Settings()
