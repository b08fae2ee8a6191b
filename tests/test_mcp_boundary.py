# ABAP ADT MCP Server
# File: tests/test_mcp_boundary.py
# Version: v1

"""Tool calls going through a real MCP client session (in-memory streams)."""

from __future__ import annotations

import pytest
from mcp.shared.exceptions import McpError
from mcp.shared.memory import create_connected_server_and_client_session
from mcp.types import INVALID_PARAMS

from mcp_abap_adt.transports import stdio_server

ADT = "/sap/bc/adt"


@pytest.mark.asyncio
async def test_blank_argument_is_a_jsonrpc_invalid_params_error(use_fake_adt) -> None:
    server = stdio_server.build_server()

    async with create_connected_server_and_client_session(server) as session:
        with pytest.raises(McpError) as info:
            await session.call_tool("GetProgram", {"program_name": "  "})

    assert info.value.error.code == INVALID_PARAMS
    assert 'Parameter "program_name" (string) is required' in info.value.error.message
    assert use_fake_adt.requests == []


@pytest.mark.asyncio
async def test_invalid_enum_argument_is_a_jsonrpc_error(use_fake_adt) -> None:
    server = stdio_server.build_server()

    async with create_connected_server_and_client_session(server) as session:
        with pytest.raises(McpError) as info:
            await session.call_tool(
                "GetIncludesList", {"object_name": "ZMAIN", "object_type": "class"}
            )

    assert info.value.error.code == INVALID_PARAMS


@pytest.mark.asyncio
async def test_successful_call_returns_tool_result(use_fake_adt) -> None:
    use_fake_adt.get(f"{ADT}/programs/programs/ZTEST/source/main", "REPORT ztest.")
    server = stdio_server.build_server()

    async with create_connected_server_and_client_session(server) as session:
        result = await session.call_tool("GetProgram", {"program_name": "ZTEST"})

    assert result.isError is False
    assert result.content[0].text == "REPORT ztest."


@pytest.mark.asyncio
async def test_backend_failure_stays_a_result_envelope(use_fake_adt) -> None:
    server = stdio_server.build_server()

    async with create_connected_server_and_client_session(server) as session:
        result = await session.call_tool("GetTable", {"table_name": "ZMISSING"})

    assert result.isError is True
    assert result.content[0].text.startswith("Error: Resource")


@pytest.mark.asyncio
async def test_unknown_tool_is_an_error_result(use_fake_adt) -> None:
    server = stdio_server.build_server()

    async with create_connected_server_and_client_session(server) as session:
        result = await session.call_tool("NoSuchTool", {})

    assert result.isError is True
    assert "Unknown tool" in result.content[0].text
