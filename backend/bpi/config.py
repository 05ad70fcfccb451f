"""Runtime configuration for the Bilibili API client."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional
from urllib.parse import urlparse

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

NAV_PATH = "/x/web-interface/nav"


def _env_bool(name: str, default: str = "false") -> bool:
    value = os.getenv(name, default)
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(slots=True)
class Settings:
    """Runtime configuration sourced from environment variables."""

    api_base_url: str = field(
        default_factory=lambda: os.getenv("BPI_API_BASE_URL", "https://api.bilibili.com")
    )
    web_base_url: str = field(
        default_factory=lambda: os.getenv("BPI_WEB_BASE_URL", "https://www.bilibili.com")
    )
    cookie_domain: str = field(
        default_factory=lambda: os.getenv("BPI_COOKIE_DOMAIN", ".bilibili.com")
    )
    http_timeout: float = field(
        default_factory=lambda: float(os.getenv("BPI_HTTP_TIMEOUT", "10"))
    )
    user_agent: str = field(
        default_factory=lambda: os.getenv("BPI_USER_AGENT", DEFAULT_USER_AGENT)
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    wbi_cache_prune: bool = field(
        default_factory=lambda: _env_bool("BPI_WBI_CACHE_PRUNE", "true")
    )
    # Account configured from the environment (optional)
    dede_user_id: str = field(default_factory=lambda: os.getenv("BPI_DEDEUSERID", ""))
    dede_user_id_ckmd5: str = field(
        default_factory=lambda: os.getenv("BPI_DEDEUSERID_CKMD5", "")
    )
    sessdata: str = field(default_factory=lambda: os.getenv("BPI_SESSDATA", ""))
    bili_jct: str = field(default_factory=lambda: os.getenv("BPI_BILI_JCT", ""))
    buvid3: str = field(default_factory=lambda: os.getenv("BPI_BUVID3", ""))
    cookie: Optional[str] = field(default_factory=lambda: os.getenv("BPI_COOKIE") or None)

    def __post_init__(self) -> None:
        self.api_base_url = self.api_base_url.rstrip("/")
        self.web_base_url = self.web_base_url.rstrip("/")
        if self.http_timeout <= 0:
            self.http_timeout = 10.0
        domain = self.cookie_domain.strip()
        if domain and not domain.startswith("."):
            domain = f".{domain}"
        self.cookie_domain = domain or ".bilibili.com"
        self.log_level = self.log_level.upper()
        if self.cookie is not None:
            self.cookie = self.cookie.strip() or None

    @property
    def api_host(self) -> str:
        return urlparse(self.api_base_url).hostname or ""

    @property
    def nav_url(self) -> str:
        return f"{self.api_base_url}{NAV_PATH}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
