# ABAP ADT MCP Server
# File: __init__.py
# Version: v1

"""Top-level package for the ABAP ADT MCP Server."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

__all__ = ["__version__"]


def _resolve_version() -> str:
    """Resolve installed distribution version.

    Falls back to the source-tree version when the distribution is not
    installed (e.g. running straight from a checkout).
    """
    try:
        return version("mcp-abap-adt-server")
    except PackageNotFoundError:
        return "0.1.0"


__version__ = _resolve_version()
