"""Account credential model."""
from __future__ import annotations

from typing import Iterator, Mapping, Tuple

from pydantic import BaseModel

# Account field -> cookie name expected by the service
COOKIE_NAMES: Tuple[Tuple[str, str], ...] = (
    ("dede_user_id", "DedeUserID"),
    ("dede_user_id_ckmd5", "DedeUserID__ckMd5"),
    ("sessdata", "SESSDATA"),
    ("bili_jct", "bili_jct"),
    ("buvid3", "buvid3"),
)


class Account(BaseModel):
    """Credential bundle used to authenticate requests."""

    dede_user_id: str = ""
    dede_user_id_ckmd5: str = ""
    sessdata: str = ""
    bili_jct: str = ""
    buvid3: str = ""

    def is_complete(self) -> bool:
        return all(getattr(self, attr) for attr, _ in COOKIE_NAMES)

    def cookie_pairs(self) -> Iterator[Tuple[str, str]]:
        """Yield ``(cookie_name, value)`` for the five login cookies."""
        for attr, cookie_name in COOKIE_NAMES:
            yield cookie_name, getattr(self, attr)

    @classmethod
    def from_cookie_map(cls, cookies: Mapping[str, str]) -> "Account":
        """Build an account from cookie names; missing cookies become empty strings."""
        return cls(**{attr: cookies.get(cookie_name, "") for attr, cookie_name in COOKIE_NAMES})
