from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogFormat = Literal["json", "console"]

LIONS_PARK_SITE_ID = 1
BULK_CONNECTIONS_SITE_ID = 2

SITE_NAMES: dict[int, str] = {
    LIONS_PARK_SITE_ID: "Lions Park",
    BULK_CONNECTIONS_SITE_ID: "Bulk Connections",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WEIGH8_",
        env_file=".env",
        extra="ignore",
    )

    api_base_url: str = Field(default="http://localhost:3001/api")
    lions_site_id: int = Field(default=LIONS_PARK_SITE_ID)
    bulk_site_id: int = Field(default=BULK_CONNECTIONS_SITE_ID)
    site_names: dict[int, str] = Field(default_factory=lambda: dict(SITE_NAMES))
    allocation_limit: int = Field(default=500, ge=1)

    poll_interval_s: float = Field(default=5.0, gt=0)
    http_timeout_s: float = Field(default=30.0, gt=0)
    http_max_attempts: int = Field(default=3, ge=1)

    log_level: str = Field(default="INFO")
    log_format: LogFormat = Field(default="console")

    def site_name(self, site_id: int) -> str:
        return self.site_names.get(site_id, f"Site {site_id}")


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    return Settings()
