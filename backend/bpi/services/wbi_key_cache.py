"""Hour-bucketed cache for the raw WBI signing keys."""
from __future__ import annotations

import logging
from datetime import datetime
from threading import Lock
from typing import Awaitable, Callable, Dict, Optional, Tuple

from bpi.utils.log import structured_log

logger = logging.getLogger("bpi.wbi")

KeyPair = Tuple[str, str]
KeyFetcher = Callable[[], Awaitable[KeyPair]]

IMG_KEY_SUFFIX = "img_key"
SUB_KEY_SUFFIX = "sub_key"


class WbiKeyCache:
    """Caches the image/subtitle keys for the current local hour.

    A miss triggers one call to ``fetcher``. The lock is only held for dict
    access, never across the fetch.
    """

    def __init__(
        self,
        fetcher: KeyFetcher,
        now_provider: Optional[Callable[[], datetime]] = None,
        prune: bool = True,
    ) -> None:
        self._fetcher = fetcher
        self._now_provider = now_provider or datetime.now
        self._prune = prune
        self._entries: Dict[str, str] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def current_bucket(self) -> str:
        return self._now_provider().strftime("%Y-%m-%d %H")

    async def get_keys(self) -> KeyPair:
        bucket = self.current_bucket()
        with self._lock:
            img_key = self._entries.get(bucket + IMG_KEY_SUFFIX)
            sub_key = self._entries.get(bucket + SUB_KEY_SUFFIX)
        if img_key is not None and sub_key is not None:
            return img_key, sub_key

        img_key, sub_key = await self._fetcher()

        # the hour may have rolled over during the fetch
        bucket = self.current_bucket()
        with self._lock:
            if self._prune:
                self._entries = {
                    key: value for key, value in self._entries.items() if key.startswith(bucket)
                }
            self._entries[bucket + IMG_KEY_SUFFIX] = img_key
            self._entries[bucket + SUB_KEY_SUFFIX] = sub_key
        structured_log(logger, "wbi_keys_refreshed", bucket=bucket)
        return img_key, sub_key

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
