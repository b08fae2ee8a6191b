# ABAP ADT MCP Server
# File: responses.py
# Version: v1

"""Turn HTTP responses and exceptions into :class:`ToolResult` envelopes."""

from __future__ import annotations

from typing import Any

import httpx

from .errors import AdtRequestError
from .models import ToolResult


def ok(response: httpx.Response) -> ToolResult:
    """Wrap a raw response body as a single text block."""
    return ToolResult(is_error=False, content=[{"type": "text", "text": response.text}])


def text_result(text: str) -> ToolResult:
    return ToolResult(is_error=False, content=[{"type": "text", "text": text}])


def json_result(payload: Any) -> ToolResult:
    return ToolResult(is_error=False, content=[{"type": "json", "json": payload}])


def error_message(error: BaseException) -> str:
    """Human-readable text for a failure: HTTP body, else the message."""
    if isinstance(error, AdtRequestError) and error.body:
        return error.body
    message = str(error)
    return message or type(error).__name__


def err(error: BaseException) -> ToolResult:
    """Failure envelope; never raises."""
    return ToolResult(
        is_error=True,
        content=[{"type": "text", "text": f"Error: {error_message(error)}"}],
    )
