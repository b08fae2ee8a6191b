# ABAP ADT MCP Server
# File: client.py
# Version: v1
"""Authenticated request layer for SAP ADT REST endpoints.

One :class:`AdtClient` owns:

- a lazily created, reused ``httpx.AsyncClient``,
- the :class:`~.csrf.CsrfSession` (token + cookies) of its connection, and
- the :class:`~.csrf.CsrfTokenManager` that refreshes that session.

``request()`` is the single entry point used by every tool handler.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

import httpx

from .config import SapConfig, get_config, reset_config
from .csrf import CsrfSession, CsrfTokenManager
from .errors import AdtRequestError, CsrfTokenError

logger = logging.getLogger(__name__)

ADT_PATH = "/sap/bc/adt"
WRITE_METHODS = frozenset({"POST", "PUT"})
DEFAULT_ACCEPT = "application/xml, application/json, text/plain, */*"

# Budget for the refetch after a server-side CSRF rejection.
CSRF_RECOVERY_RETRIES = 5
CSRF_RECOVERY_DELAY_MS = 2000


def normalize_adt_url(url: str) -> str:
    """Make sure ``url`` points somewhere under the ADT base path."""
    if f"{ADT_PATH}/" in url or url.endswith(ADT_PATH):
        return url
    if url.endswith("/"):
        return f"{url}{ADT_PATH.lstrip('/')}"
    return f"{url}{ADT_PATH}"


def encode_name(name: str) -> str:
    """Percent-encode an object name for a URL path segment.

    Namespaced names such as ``/CBY/MMSKLCARD`` keep their slashes encoded.
    """
    return quote(name, safe="")


def is_csrf_rejection(exc: BaseException) -> bool:
    """True when a failure looks like SAP rejected our CSRF token."""
    if isinstance(exc, AdtRequestError) and exc.status == 403:
        if exc.body and "CSRF" in exc.body:
            return True
    return "CSRF" in str(exc)


@dataclass
class AdtClient:
    """Wrapper around one SAP system's ADT API."""

    config: SapConfig
    session: CsrfSession = field(default_factory=CsrfSession)

    # Injected by tests (httpx.MockTransport); None means real network.
    transport: Optional[httpx.AsyncBaseTransport] = None

    _http: Optional[httpx.AsyncClient] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.csrf = CsrfTokenManager(self.config, self.session, self.http_client)

    # ------------------------------------------------------------------
    # Shared HTTP client
    # ------------------------------------------------------------------

    def http_client(self) -> httpx.AsyncClient:
        if self._http is None:
            logger.debug(
                "TLS certificate validation is %s",
                "enabled" if self.config.verify_tls else "disabled",
            )
            self._http = httpx.AsyncClient(
                verify=self.config.verify_tls,
                transport=self.transport,
            )
        return self._http

    async def aclose(self) -> None:
        """Close the HTTP client and forget the CSRF session."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
        self.session.clear()

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def url(self, path: str) -> str:
        """Absolute URL for an ADT path such as ``/sap/bc/adt/discovery``."""
        return f"{self.base_url}{path}"

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def request(
        self,
        url: str,
        method: str = "GET",
        timeout: Optional[int] = None,
        data: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """Send one ADT request.

        Args:
            url: absolute URL; the ADT base path is appended when missing.
            method: HTTP method. POST and PUT always get a fresh CSRF token.
            timeout: per-request timeout in milliseconds.
            data: optional request body (str or bytes).
            params: optional query parameters; ``None`` values are dropped.
            headers: extra headers, overriding the defaults.

        Raises:
            AdtRequestError: the server answered with a non-2xx status.
            CsrfTokenError: a write could not obtain a token.
            httpx.TransportError: network failure or timeout.
        """
        method = method.upper()
        request_url = normalize_adt_url(url)
        timeout_ms = timeout if timeout is not None else self.config.timeout_ms("default")
        is_write = method in WRITE_METHODS

        request_headers: Dict[str, str] = dict(self.config.auth_headers())

        if is_write:
            try:
                token = await self.csrf.fetch_token(self.base_url)
            except CsrfTokenError as exc:
                raise CsrfTokenError(
                    "CSRF token is required for POST/PUT requests but could not "
                    f"be fetched: {exc}"
                ) from exc
            request_headers["x-csrf-token"] = token

        if self.session.cookies:
            request_headers["Cookie"] = self.session.cookies
        request_headers["Accept"] = DEFAULT_ACCEPT
        if isinstance(data, str):
            request_headers["Content-Type"] = "text/plain"
        if headers:
            request_headers.update(headers)

        query = {k: v for k, v in (params or {}).items() if v is not None}

        logger.info("Executing request to: %s (method: %s)", request_url, method)
        try:
            return await self._send(method, request_url, request_headers, query, data, timeout_ms)
        except (AdtRequestError, httpx.HTTPError) as exc:
            if not is_csrf_rejection(exc):
                raise
            logger.warning("CSRF token rejected for %s %s; refetching", method, request_url)

        self.session.invalidate()
        token = await self.csrf.fetch_token(
            self.base_url,
            retry_count=CSRF_RECOVERY_RETRIES,
            retry_delay_ms=CSRF_RECOVERY_DELAY_MS,
        )
        request_headers["x-csrf-token"] = token
        if self.session.cookies:
            request_headers["Cookie"] = self.session.cookies

        return await self._send(method, request_url, request_headers, query, data, timeout_ms)

    async def _send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        params: Dict[str, Any],
        data: Any,
        timeout_ms: int,
    ) -> httpx.Response:
        response = await self.http_client().request(
            method,
            url,
            headers=headers,
            params=params or None,
            content=data,
            timeout=timeout_ms / 1000.0,
        )

        if response.is_error:
            body = response.text
            logger.error(
                "Request error: %s %s -> HTTP %d: %s",
                method,
                url,
                response.status_code,
                body[:200],
            )
            raise AdtRequestError(
                f"ADT request {method} {url} failed (HTTP {response.status_code})",
                status=response.status_code,
                body=body,
                url=url,
                method=method,
            )

        return response


# ---------------------------------------------------------------------------
# Process-wide client
# ---------------------------------------------------------------------------

_CLIENT: AdtClient | None = None


def get_adt_client() -> AdtClient:
    """Return the shared client, creating it from configuration on first use."""
    global _CLIENT
    if _CLIENT is None:
        _CLIENT = AdtClient(config=get_config())
    return _CLIENT


async def cleanup() -> None:
    """Tear down the shared client, session and cached configuration."""
    global _CLIENT
    if _CLIENT is not None:
        await _CLIENT.aclose()
    _CLIENT = None
    reset_config()
