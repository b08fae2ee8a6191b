# ABAP ADT MCP Server
# File: transports/stdio_server.py
# Version: v1

"""STDIO entrypoint for the ABAP ADT MCP server.

This is the script behind the ``mcp-abap-adt`` console command.

It:

- loads connection settings from ``--env <file>`` or ``./.env``,
- sends all logging to stderr (stdout carries the MCP protocol),
- creates a FastMCP server with every ADT tool registered, and
- runs the built-in stdio transport.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import mcp.types as types
from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.shared.exceptions import McpError

from ..tools import tasks

logger = logging.getLogger(__name__)


def _env_file_from_args(argv: List[str]) -> Optional[str]:
    """Value of ``--env <path>`` or ``--env=<path>``, if given."""
    for index, arg in enumerate(argv):
        if arg.startswith("--env="):
            return arg.split("=", 1)[1]
        if arg == "--env" and index + 1 < len(argv):
            return argv[index + 1]
    return None


def load_environment(argv: Optional[List[str]] = None) -> Optional[Path]:
    """Load a dotenv file without overriding variables already set.

    Returns the file that was loaded, or None.
    """
    env_arg = _env_file_from_args(sys.argv[1:] if argv is None else argv)
    if env_arg:
        path = Path(env_arg).expanduser().resolve()
        if not path.is_file():
            raise SystemExit(f"Environment file not found: {path}")
    else:
        path = Path.cwd() / ".env"
        if not path.is_file():
            return None

    load_dotenv(path, override=False)
    return path


def configure_logging() -> None:
    debug = os.getenv("DEBUG", "").strip().lower() in {"1", "true", "yes", "on"}
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def install_call_tool_handler(mcp: FastMCP) -> None:
    """Answer tools/call so that McpError reaches the client as a JSON-RPC error.

    FastMCP wraps every exception raised by a tool in ToolError and the
    default handler turns that into an isError result. Argument validation
    in the tasks raises McpError(INVALID_PARAMS), which must stay a
    protocol-level error instead.
    """

    async def handle_call_tool(req: types.CallToolRequest) -> types.ServerResult:
        try:
            result = await mcp.call_tool(req.params.name, req.params.arguments or {})
        except ToolError as exc:
            if isinstance(exc.__cause__, McpError):
                raise exc.__cause__ from None
            return types.ServerResult(
                types.CallToolResult(
                    content=[types.TextContent(type="text", text=str(exc))],
                    isError=True,
                )
            )

        if isinstance(result, types.CallToolResult):
            return types.ServerResult(result)
        return types.ServerResult(types.CallToolResult(content=list(result), isError=False))

    mcp._mcp_server.request_handlers[types.CallToolRequest] = handle_call_tool


def build_server() -> FastMCP:
    mcp = FastMCP("mcp-abap-adt")
    tasks.register_tools(mcp)
    install_call_tool_handler(mcp)
    return mcp


def main() -> None:
    """Synchronous entrypoint for console_scripts."""
    loaded = load_environment()
    configure_logging()
    if loaded:
        logger.info("Loaded environment from %s", loaded)

    mcp = build_server()

    # Let FastMCP handle stdio + event loop setup.
    mcp.run()


if __name__ == "__main__":
    main()
