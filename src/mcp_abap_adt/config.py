# ABAP ADT MCP Server
# File: config.py
# Version: v1

"""Configuration loading for the ABAP ADT MCP Server."""

from __future__ import annotations

import base64
import os
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlparse

from .errors import ConfigError

_TIMEOUT_KINDS = ("default", "csrf", "long")


def _clean_env(name: str, strip_comments: bool = True) -> Optional[str]:
    """Read an env var, dropping trailing ``# comments`` and whitespace."""
    raw = os.getenv(name)
    if raw is None:
        return None
    value = raw.split("#", 1)[0] if strip_comments else raw
    value = value.strip()
    return value or None


def _parse_bool_env(name: str, default: bool = False) -> bool:
    """Parse a boolean-like environment variable.

    Accepts 1/0, true/false, yes/no, on/off (case-insensitive).
    """
    val = _clean_env(name)
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "on"}


def _parse_int_env(
    name: str,
    default: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    """Parse an int environment variable with clamping and safe fallback."""
    raw = _clean_env(name)
    if raw is None:
        value = int(default)
    else:
        try:
            value = int(raw)
        except ValueError:
            value = int(default)

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value

    return value


@dataclass(frozen=True)
class SapConfig:
    """Connection settings for one SAP system.

    Built once per process (see :func:`get_config`) and never mutated.
    """

    url: str
    auth_type: str
    client: str | None = None
    username: str | None = None
    password: str | None = None
    jwt_token: str | None = None

    verify_tls: bool = True

    # Per-request timeouts in milliseconds
    timeout_default_ms: int = 45000
    timeout_csrf_ms: int = 15000
    timeout_long_ms: int = 60000

    # Objects-list cache
    cache_ttl_seconds: int = 600
    cache_max_entries: int = 32

    @classmethod
    def from_env(cls) -> "SapConfig":
        """Create configuration from environment variables."""
        url = _clean_env("SAP_URL")
        if not url or not url.lower().startswith(("http://", "https://")):
            raise ConfigError(
                f"Missing or invalid SAP_URL. Got: '{url}'. "
                "SAP_URL must be a valid URL, e.g. https://<host>:<port>."
            )

        auth_type = (_clean_env("SAP_AUTH_TYPE") or "basic").lower()
        if auth_type == "xsuaa":
            auth_type = "jwt"
        if auth_type not in {"basic", "jwt"}:
            raise ConfigError(
                f"Unsupported SAP_AUTH_TYPE '{auth_type}'. Use 'basic' or 'jwt'."
            )

        client = _clean_env("SAP_CLIENT")
        username = password = jwt_token = None

        if auth_type == "basic":
            if not client:
                raise ConfigError(
                    "Missing required environment variable: SAP_CLIENT. "
                    "This is required for basic authentication."
                )
            username = _clean_env("SAP_USERNAME")
            # Passwords may legitimately contain '#'.
            password = _clean_env("SAP_PASSWORD", strip_comments=False)
            if not username or not password:
                raise ConfigError(
                    "Basic authentication requires SAP_USERNAME and SAP_PASSWORD."
                )
        else:
            jwt_token = _clean_env("SAP_JWT_TOKEN")
            if not jwt_token:
                raise ConfigError(
                    "JWT authentication requires a token. Set SAP_JWT_TOKEN."
                )

        verify_tls = _parse_bool_env("SAP_VERIFY_TLS", default=True)
        if _clean_env("TLS_REJECT_UNAUTHORIZED") == "0":
            verify_tls = False

        return cls(
            url=url,
            auth_type=auth_type,
            client=client,
            username=username,
            password=password,
            jwt_token=jwt_token,
            verify_tls=verify_tls,
            timeout_default_ms=_parse_int_env(
                "SAP_TIMEOUT_DEFAULT", default=45000, min_value=1000, max_value=600000
            ),
            timeout_csrf_ms=_parse_int_env(
                "SAP_TIMEOUT_CSRF", default=15000, min_value=1000, max_value=600000
            ),
            timeout_long_ms=_parse_int_env(
                "SAP_TIMEOUT_LONG", default=60000, min_value=1000, max_value=600000
            ),
            cache_ttl_seconds=_parse_int_env(
                "SAP_CACHE_TTL_SECONDS", default=600, min_value=0, max_value=86400
            ),
            cache_max_entries=_parse_int_env(
                "SAP_CACHE_MAX_ENTRIES", default=32, min_value=0, max_value=10000
            ),
        )

    @property
    def base_url(self) -> str:
        """Origin of SAP_URL (scheme://host[:port]), without any path."""
        parsed = urlparse(self.url)
        if not parsed.scheme or not parsed.netloc:
            raise ConfigError(f"Invalid URL in configuration: '{self.url}'")
        return f"{parsed.scheme}://{parsed.netloc}"

    def auth_headers(self) -> Dict[str, str]:
        """Headers carrying the SAP client and credentials."""
        headers: Dict[str, str] = {}
        if self.client:
            headers["X-SAP-Client"] = self.client

        if self.auth_type == "basic" and self.username and self.password:
            raw_credentials = f"{self.username}:{self.password}"
            token = base64.b64encode(raw_credentials.encode("utf-8")).decode("ascii")
            headers["Authorization"] = f"Basic {token}"
        elif self.auth_type == "jwt" and self.jwt_token:
            headers["Authorization"] = f"Bearer {self.jwt_token}"
        else:
            raise ConfigError("Invalid authentication configuration")

        return headers

    def timeout_ms(self, kind: str = "default") -> int:
        """Timeout in milliseconds for one of: default, csrf, long."""
        if kind not in _TIMEOUT_KINDS:
            raise ValueError(f"Unknown timeout kind '{kind}'")
        return {
            "default": self.timeout_default_ms,
            "csrf": self.timeout_csrf_ms,
            "long": self.timeout_long_ms,
        }[kind]


_CONFIG: SapConfig | None = None


def get_config() -> SapConfig:
    """Return the process-wide configuration, loading it on first use."""
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = SapConfig.from_env()
    return _CONFIG


def reset_config() -> None:
    global _CONFIG
    _CONFIG = None
