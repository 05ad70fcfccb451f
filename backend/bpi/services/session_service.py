"""Login session state and cookie management."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Dict, List, Optional

import httpx

from bpi.errors import MissingCsrfError
from bpi.models.account import Account
from bpi.utils.log import preview

logger = logging.getLogger("bpi.session")


def parse_cookie_string(raw: str) -> Dict[str, str]:
    """Parse ``name1=value1; name2=value2`` into a dict (last assignment wins)."""
    cookies: Dict[str, str] = {}
    for piece in raw.split(";"):
        piece = piece.strip()
        if "=" not in piece:
            continue
        key, value = piece.split("=", 1)
        cookies[key.strip()] = value.strip()
    return cookies


def _domain_matches(host: str, domain: str) -> bool:
    domain = domain.lower()
    host = host.lower()
    if domain.startswith("."):
        return host == domain[1:] or host.endswith(domain)
    return host == domain


class SessionManager:
    """Owns the active account and writes its login cookies into the cookie store.

    The cookie store is the jar used by the HTTP transport, so cookies written
    here are attached to every outgoing request for the cookie domain.
    """

    def __init__(self, cookies: httpx.Cookies, *, cookie_domain: str, api_host: str) -> None:
        self._cookies = cookies
        self.cookie_domain = cookie_domain
        self.api_host = api_host
        self._account: Optional[Account] = None
        self._lock = Lock()

    @property
    def cookies(self) -> httpx.Cookies:
        return self._cookies

    def set_account(self, account: Account) -> bool:
        """Install ``account`` as the active session.

        Returns False, leaving the current session untouched, when the account
        is incomplete.
        """
        if not account.is_complete():
            logger.warning("Account is incomplete, keeping current session (guest mode if none)")
            return False

        account = account.model_copy()
        with self._lock:
            self._write_cookies_locked(account)
            self._account = account
        logger.info("Account set for user %s, using login mode", account.dede_user_id)
        return True

    def set_account_from_cookie_string(self, raw: str) -> bool:
        return self.set_account(Account.from_cookie_map(parse_cookie_string(raw)))

    def clear_account(self) -> None:
        with self._lock:
            self._account = None
            self._cookies.clear()
        logger.info("Account cleared, cookie store emptied")

    def get_account(self) -> Optional[Account]:
        with self._lock:
            return self._account.model_copy() if self._account else None

    def csrf(self) -> str:
        with self._lock:
            if self._account is None or not self._account.bili_jct:
                raise MissingCsrfError()
            return self._account.bili_jct

    def has_login_cookies(self) -> bool:
        """Return whether any cookie would be sent to the API host."""
        with self._lock:
            return any(_domain_matches(self.api_host, cookie.domain) for cookie in self._cookies.jar)

    def cookie_lines(self) -> List[str]:
        """Render the active login cookies in ``Set-Cookie`` style."""
        with self._lock:
            if self._account is None:
                return []
            return [
                f"{name}={value}; Domain={self.cookie_domain}; Path=/"
                for name, value in self._account.cookie_pairs()
            ]

    def _write_cookies_locked(self, account: Account) -> None:
        for name, value in account.cookie_pairs():
            self._cookies.set(name, value, domain=self.cookie_domain, path="/")
            logger.debug("Cookie set: %s=%s", name, preview(value))
