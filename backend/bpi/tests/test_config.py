"""Tests for environment-sourced settings."""
import pytest

from bpi.config import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "BPI_API_BASE_URL",
        "BPI_COOKIE_DOMAIN",
        "BPI_HTTP_TIMEOUT",
        "BPI_WBI_CACHE_PRUNE",
        "BPI_COOKIE",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env) -> None:
    settings = Settings()

    assert settings.api_base_url == "https://api.bilibili.com"
    assert settings.api_host == "api.bilibili.com"
    assert settings.nav_url == "https://api.bilibili.com/x/web-interface/nav"
    assert settings.cookie_domain == ".bilibili.com"
    assert settings.http_timeout == 10.0
    assert settings.wbi_cache_prune is True
    assert settings.cookie is None


def test_env_overrides(clean_env) -> None:
    clean_env.setenv("BPI_API_BASE_URL", "http://localhost:8080/")
    clean_env.setenv("BPI_COOKIE_DOMAIN", "example.test")
    clean_env.setenv("BPI_HTTP_TIMEOUT", "2.5")
    clean_env.setenv("BPI_WBI_CACHE_PRUNE", "off")
    clean_env.setenv("LOG_LEVEL", "debug")

    settings = Settings()

    assert settings.api_base_url == "http://localhost:8080"
    assert settings.api_host == "localhost"
    assert settings.cookie_domain == ".example.test"
    assert settings.http_timeout == 2.5
    assert settings.wbi_cache_prune is False
    assert settings.log_level == "DEBUG"


def test_invalid_timeout_falls_back(clean_env) -> None:
    assert Settings(http_timeout=0).http_timeout == 10.0


def test_blank_cookie_is_none(clean_env) -> None:
    clean_env.setenv("BPI_COOKIE", "   ")
    assert Settings().cookie is None
