# ABAP ADT MCP Server
# File: errors.py
# Version: v1

"""Exception types raised by the ADT request layer."""

from __future__ import annotations

from typing import Optional

from mcp.shared.exceptions import McpError
from mcp.types import INVALID_PARAMS, ErrorData


class AdtError(Exception):
    """Base class for all ADT server errors."""


class ConfigError(AdtError):
    """Missing or invalid SAP connection settings."""


class CsrfTokenError(AdtError):
    """A CSRF token could not be obtained within the retry budget."""


class AdtRequestError(AdtError):
    """Non-2xx response from an ADT endpoint.

    The response body is kept on the exception (``body``) but deliberately
    left out of the message, so callers decide how much of it to surface.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
        url: Optional[str] = None,
        method: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body
        self.url = url
        self.method = method


def invalid_params(message: str) -> McpError:
    """Build a protocol-level invalid-params error."""
    return McpError(ErrorData(code=INVALID_PARAMS, message=message))
