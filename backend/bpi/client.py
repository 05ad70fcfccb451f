"""Composition root for the Bilibili API client."""
from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Tuple

import httpx
from dotenv import load_dotenv

from bpi.config import Settings, get_settings
from bpi.errors import ParseError, TransportError
from bpi.models.account import Account
from bpi.models.wbi import BpiResponse, NavData, WbiData
from bpi.services.session_service import SessionManager
from bpi.services.wbi_key_cache import WbiKeyCache
from bpi.services.wbi_service import WbiSigner
from bpi.utils.log import configure_logging
from bpi.utils.wbi_signer import extract_key_from_url

logger = logging.getLogger("bpi.client")


class BpiClient:
    """HTTP client holding the transport, the login session and the WBI signer.

    Build one per process with :func:`init_bpi_client` and pass it around, or
    construct ``BpiClient()`` directly for an independent instance.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.headers = {
            "User-Agent": self.settings.user_agent,
            "Accept": "application/json, text/plain, */*",
        }
        self.http = httpx.AsyncClient(
            headers=self.headers,
            timeout=self.settings.http_timeout,
            transport=transport,
            trust_env=False,
        )
        self.session = SessionManager(
            self.http.cookies,
            cookie_domain=self.settings.cookie_domain,
            api_host=self.settings.api_host,
        )
        self.wbi_cache = WbiKeyCache(self.fetch_wbi_keys, prune=self.settings.wbi_cache_prune)
        self.signer = WbiSigner(self.wbi_cache, self.fetch_wbi_keys)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs: Any) -> "BpiClient":
        """Create a client and install the account configured in ``settings``, if any."""
        client = cls(settings, **kwargs)
        settings = client.settings
        if settings.cookie:
            client.set_account_from_cookie_string(settings.cookie)
        elif any((settings.dede_user_id, settings.sessdata, settings.bili_jct, settings.buvid3)):
            client.set_account(
                Account(
                    dede_user_id=settings.dede_user_id,
                    dede_user_id_ckmd5=settings.dede_user_id_ckmd5,
                    sessdata=settings.sessdata,
                    bili_jct=settings.bili_jct,
                    buvid3=settings.buvid3,
                )
            )
        else:
            logger.info("No account configured, using guest mode")
        return client

    async def __aenter__(self) -> "BpiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    # Session

    def set_account(self, account: Account) -> bool:
        return self.session.set_account(account)

    def set_account_from_cookie_string(self, raw: str) -> bool:
        return self.session.set_account_from_cookie_string(raw)

    def clear_account(self) -> None:
        self.session.clear_account()

    def get_account(self) -> Optional[Account]:
        return self.session.get_account()

    def csrf(self) -> str:
        return self.session.csrf()

    def has_login_cookies(self) -> bool:
        return self.session.has_login_cookies()

    # Requests

    def _headers(self, bilibili_headers: bool, headers: Optional[Mapping[str, str]]) -> dict:
        merged = {}
        if bilibili_headers:
            merged["Referer"] = f"{self.settings.web_base_url}/"
            merged["Origin"] = self.settings.web_base_url
        if headers:
            merged.update(headers)
        return merged

    async def get(
        self,
        url: str,
        *,
        bilibili_headers: bool = False,
        headers: Optional[Mapping[str, str]] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        return await self.http.get(url, headers=self._headers(bilibili_headers, headers), **kwargs)

    async def post(
        self,
        url: str,
        *,
        bilibili_headers: bool = False,
        headers: Optional[Mapping[str, str]] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        return await self.http.post(url, headers=self._headers(bilibili_headers, headers), **kwargs)

    async def get_json(self, url: str, action: str, **kwargs: Any) -> BpiResponse:
        """GET ``url`` and parse the JSON envelope.

        Raises:
            TransportError: the request failed or returned a non-2xx status
            ParseError: the body is not a valid envelope
        """
        logger.debug("Request started: %s", action)
        try:
            response = await self.get(url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Request failed (%s): %s", action, exc)
            raise TransportError(f"{action}: {exc}") from exc

        try:
            envelope = BpiResponse.model_validate(response.json())
        except ValueError as exc:
            raise ParseError(f"{action}: invalid response body") from exc
        logger.debug("Request finished: %s (code=%s)", action, envelope.code)
        return envelope

    # WBI signing

    async def fetch_wbi_keys(self) -> Tuple[str, str]:
        """Fetch the raw image/subtitle keys from the navigation endpoint."""
        envelope = await self.get_json(self.settings.nav_url, "fetch wbi keys", bilibili_headers=True)
        if envelope.data is None:
            raise ParseError(f"fetch wbi keys: no data (code={envelope.code}, message={envelope.message!r})")
        try:
            nav = NavData.model_validate(envelope.data)
        except ValueError as exc:
            raise ParseError("fetch wbi keys: missing wbi_img urls") from exc
        if envelope.code != 0:
            # guest sessions get code -101 but still receive wbi_img
            logger.debug("Nav returned code %s, using wbi_img anyway", envelope.code)
        return extract_key_from_url(nav.wbi_img.img_url), extract_key_from_url(nav.wbi_img.sub_url)

    async def wbi_sign(self, params: Mapping[str, Any]) -> List[Tuple[str, str]]:
        return await self.signer.sign(params)

    async def wbi_sign_only(self) -> WbiData:
        return await self.signer.wbi_sign()


_bpi_client: Optional[BpiClient] = None


def init_bpi_client(settings: Optional[Settings] = None) -> BpiClient:
    """Initialize the shared client once, loading ``.env`` and the configured account."""
    global _bpi_client
    if _bpi_client is None:
        load_dotenv()
        settings = settings or get_settings()
        configure_logging(settings)
        _bpi_client = BpiClient.from_settings(settings)
    return _bpi_client


def get_bpi_client() -> BpiClient:
    if _bpi_client is None:
        raise RuntimeError("BpiClient has not been initialized yet")
    return _bpi_client
