# ABAP ADT MCP Server
# File: tests/test_sanity.py
# Version: v1

"""Basic sanity tests: package metadata, result envelope, entrypoint helpers."""

from __future__ import annotations

import importlib.util
import logging
import os
from pathlib import Path

import pytest
from mcp.types import CallToolResult

import mcp_abap_adt
from mcp_abap_adt.models import ToolResult
from mcp_abap_adt.output import write_result_to_file
from mcp_abap_adt.transports import stdio_server


def test_version_is_a_string() -> None:
    assert isinstance(mcp_abap_adt.__version__, str)
    assert mcp_abap_adt.__version__


def test_tool_result_converts_json_blocks_to_text() -> None:
    result = ToolResult(
        is_error=False,
        content=[{"type": "json", "json": {"a": 1}}, {"type": "text", "text": "done"}],
    )

    converted = result.to_call_tool_result()

    assert isinstance(converted, CallToolResult)
    assert converted.isError is False
    assert converted.content[0].text == '{\n  "a": 1\n}'
    assert converted.content[1].text == "done"
    assert result.text == '{\n  "a": 1\n}\ndone'


def test_write_result_to_file(tmp_path) -> None:
    text_path = write_result_to_file("line1\nline2", str(tmp_path / "a" / "out.txt"))
    json_path = write_result_to_file({"k": "v"}, str(tmp_path / "out.json"))

    assert text_path.read_text(encoding="utf-8") == "line1\nline2"
    assert json_path.read_text(encoding="utf-8") == '{\n  "k": "v"\n}'


def test_env_file_argument_forms() -> None:
    assert stdio_server._env_file_from_args(["--env", "dev.env"]) == "dev.env"
    assert stdio_server._env_file_from_args(["--env=prod.env"]) == "prod.env"
    assert stdio_server._env_file_from_args(["--other"]) is None


def test_load_environment_does_not_override(monkeypatch, tmp_path) -> None:
    env_file = tmp_path / "sap.env"
    env_file.write_text("SAP_CLIENT=900\nSAP_LANGUAGE_TEST=EN\n", encoding="utf-8")
    monkeypatch.delenv("SAP_LANGUAGE_TEST", raising=False)

    loaded = stdio_server.load_environment(["--env", str(env_file)])

    assert loaded == env_file.resolve()
    assert os.environ["SAP_CLIENT"] == "100"
    assert os.environ["SAP_LANGUAGE_TEST"] == "EN"


def test_load_environment_without_dotenv(monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    assert stdio_server.load_environment([]) is None


def test_build_server_registers_tools() -> None:
    server = stdio_server.build_server()
    assert server.name == "mcp-abap-adt"


def test_configure_logging_respects_debug(monkeypatch) -> None:
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        root.handlers.clear()
        monkeypatch.setenv("DEBUG", "true")
        stdio_server.configure_logging()
        assert root.level == logging.DEBUG
    finally:
        root.handlers[:] = saved[0]
        root.setLevel(saved[1])


def _load_demo(name: str):
    path = Path(__file__).resolve().parent.parent / f"{name}.py"
    spec = importlib.util.spec_from_file_location(name, path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.mark.asyncio
async def test_includes_demo_cleans_up_after_error(monkeypatch) -> None:
    demo = _load_demo("demo_mcp_includes_list")
    closed = []

    async def failing_task(*_args, **_kwargs):
        return ToolResult(is_error=True, content=[{"type": "text", "text": "Error: boom"}])

    async def fake_cleanup():
        closed.append(True)

    monkeypatch.setattr(demo.tasks, "get_includes_list", failing_task)
    monkeypatch.setattr(demo, "cleanup", fake_cleanup)

    await demo.main("ZMAIN")

    assert closed == [True]
