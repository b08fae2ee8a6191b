# ABAP ADT MCP Server
# File: csrf.py
# Version: v1

"""CSRF session state and the token fetch/retry state machine.

SAP requires an ``x-csrf-token`` on every state-changing request. A token is
obtained by sending ``x-csrf-token: fetch`` on a GET to the ADT discovery
endpoint; the server answers with the token in the response headers and a
set of session cookies that must accompany the token.

Two SAP quirks are handled here on purpose:

- the discovery endpoint sometimes answers ``405 Method Not Allowed`` but
  still sends a valid token, and
- other error replies may carry a usable token as well.

In both cases the header wins over the status code.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import httpx

from .config import SapConfig
from .errors import CsrfTokenError

logger = logging.getLogger(__name__)

STATE_NO_TOKEN = "no_token"
STATE_FETCHING = "fetching"
STATE_HOLDING = "holding"


@dataclass
class CsrfSession:
    """Token and cookie pair shared by every request of one connection."""

    token: Optional[str] = None
    cookies: Optional[str] = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def invalidate(self) -> None:
        self.token = None

    def clear(self) -> None:
        self.token = None
        self.cookies = None


def discovery_url(url: str) -> str:
    """Return the URL to fetch a token from.

    ADT paths are used as-is; anything else gets the discovery path appended.
    """
    if "/sap/bc/adt/" in url:
        return url
    trimmed = url.rstrip("/")
    if trimmed.endswith("/sap/bc/adt"):
        return f"{trimmed}/discovery"
    return f"{trimmed}/sap/bc/adt/discovery"


def _cookie_header(response: httpx.Response) -> Optional[str]:
    """Collapse ``set-cookie`` headers into a ``Cookie`` request header."""
    pairs: List[str] = []
    for raw in response.headers.get_list("set-cookie"):
        pair = raw.split(";", 1)[0].strip()
        if pair:
            pairs.append(pair)
    return "; ".join(pairs) if pairs else None


class CsrfTokenManager:
    """Fetches CSRF tokens and keeps them in a :class:`CsrfSession`.

    States: ``no_token`` -> ``fetching`` -> ``holding``; a rejected token
    sends the caller back through ``fetching``. Refreshes are serialized by
    the session lock.
    """

    def __init__(
        self,
        config: SapConfig,
        session: CsrfSession,
        http_client: Callable[[], httpx.AsyncClient],
    ) -> None:
        self.config = config
        self.session = session
        self._http_client = http_client
        self.state = STATE_NO_TOKEN

    async def fetch_token(
        self,
        base_url: Optional[str] = None,
        retry_count: int = 3,
        retry_delay_ms: int = 1000,
    ) -> str:
        """Fetch a fresh token, retrying up to ``retry_count`` attempts.

        Raises:
            CsrfTokenError: when every attempt failed.
        """
        url = discovery_url(base_url or self.config.base_url)
        attempts = max(int(retry_count), 1)

        async with self.session.lock:
            self.state = STATE_FETCHING
            last_error: Optional[str] = None

            for attempt in range(1, attempts + 1):
                logger.debug("CSRF fetch attempt %d/%d: %s", attempt, attempts, url)
                try:
                    token = await self._fetch_once(url)
                except httpx.HTTPError as exc:
                    token = None
                    last_error = str(exc) or type(exc).__name__
                    logger.warning("CSRF fetch attempt %d failed: %s", attempt, last_error)
                else:
                    if token:
                        self.state = STATE_HOLDING
                        logger.debug("CSRF token obtained on attempt %d", attempt)
                        return token
                    last_error = "No CSRF token in response headers"

                if attempt < attempts:
                    logger.info(
                        "Retrying CSRF fetch in %d ms (%d attempts left)",
                        retry_delay_ms,
                        attempts - attempt,
                    )
                    await asyncio.sleep(retry_delay_ms / 1000.0)

            self.state = STATE_NO_TOKEN
            self.session.invalidate()
            logger.error("CSRF fetch failed after %d attempts: %s", attempts, last_error)
            raise CsrfTokenError(
                f"Failed to fetch CSRF token after {attempts} attempts: {last_error}"
            )

    async def _fetch_once(self, url: str) -> Optional[str]:
        headers = dict(self.config.auth_headers())
        headers["x-csrf-token"] = "fetch"
        headers["Accept"] = "application/atomsvc+xml"
        if self.session.cookies:
            headers["Cookie"] = self.session.cookies

        response = await self._http_client().get(
            url,
            headers=headers,
            timeout=self.config.timeout_ms("csrf") / 1000.0,
        )

        token = response.headers.get("x-csrf-token")
        if not token or token.lower() == "required":
            if response.is_error:
                logger.warning(
                    "CSRF fetch got HTTP %d without a token", response.status_code
                )
            return None

        if response.status_code == 405:
            logger.warning(
                "SAP returned 405 (Method Not Allowed) on CSRF fetch; "
                "using the token from the response headers."
            )
        elif response.is_error:
            logger.warning(
                "CSRF fetch got HTTP %d but a token was present; using it.",
                response.status_code,
            )

        cookies = _cookie_header(response)
        if cookies:
            self.session.cookies = cookies
        self.session.token = token
        return token
