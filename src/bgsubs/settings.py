from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """bgsubs runtime settings.

    Every field can be overridden with a ``BG_SUBS_`` prefixed environment
    variable (e.g. ``BG_SUBS_SEARCH_TIMEOUT=8``) or from a ``.env`` file.
    List fields take JSON (``BG_SUBS_ENABLED_PROVIDERS='["subsunacs"]'``).
    """

    model_config = SettingsConfigDict(
        env_prefix="BG_SUBS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = "INFO"
    json_logs: bool = False

    public_url: str = Field(default="", validation_alias=AliasChoices("BG_SUBS_PUBLIC_URL", "PUBLIC_URL"))
    vercel_url: str = Field(default="", validation_alias=AliasChoices("BG_SUBS_VERCEL_URL", "VERCEL_URL"))

    user_agent: str = DEFAULT_USER_AGENT
    search_timeout: float = 15.0
    download_timeout: float = 25.0
    max_redirects: int = 5
    metadata_timeout: float = 10.0

    metadata_cache_ttl: float = 24 * 60 * 60
    search_cache_ttl: float = 60 * 60
    max_results_per_source: int = 20
    default_fps: float = 25.0

    # Yavka sits behind Cloudflare; add it here once a relay is available.
    enabled_providers: List[str] = ["subsunacs", "subsab"]

    cinemeta_bases: List[str] = [
        "https://v3-cinemeta.strem.io",
        "https://cinemeta-live.strem.io",
    ]
    imdb_base_url: str = "https://www.imdb.com"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
