"""WBI signer combining the key cache with the signing primitives."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from bpi.models.wbi import WbiData
from bpi.services.wbi_key_cache import KeyFetcher, WbiKeyCache
from bpi.utils.wbi_signer import enc_wbi, get_mixin_key

logger = logging.getLogger("bpi.wbi")


class WbiSigner:
    """Signs request parameters for WBI-protected endpoints."""

    def __init__(
        self,
        cache: WbiKeyCache,
        fetcher: KeyFetcher,
        time_provider: Optional[Callable[[], float]] = None,
    ) -> None:
        self.cache = cache
        self._fetcher = fetcher
        self._time_provider = time_provider or time.time

    def _now(self) -> int:
        return int(self._time_provider())

    async def sign_dict(self, params: Mapping[str, Any]) -> Dict[str, str]:
        img_key, sub_key = await self.cache.get_keys()
        return enc_wbi(params, get_mixin_key(img_key, sub_key), self._now())

    async def sign(self, params: Mapping[str, Any]) -> List[Tuple[str, str]]:
        """Return ``params`` plus ``wts`` and ``w_rid`` as sorted ``(name, value)`` pairs."""
        return list((await self.sign_dict(params)).items())

    async def wbi_sign(self) -> WbiData:
        """Fetch fresh keys (bypassing the cache) and return only ``wts`` and ``w_rid``."""
        img_key, sub_key = await self._fetcher()
        signed = enc_wbi({}, get_mixin_key(img_key, sub_key), self._now())
        logger.debug("Standalone wbi signature generated (wts=%s)", signed["wts"])
        return WbiData(wts=int(signed["wts"]), w_rid=signed["w_rid"])
