# ABAP ADT MCP Server
# File: tests/conftest.py
# Version: v1

"""Shared fixtures.

Nothing here talks to a real SAP system: HTTP goes through
``httpx.MockTransport`` handlers that play the part of the ADT endpoints.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from mcp_abap_adt import client as client_module
from mcp_abap_adt.client import AdtClient
from mcp_abap_adt.config import SapConfig, reset_config
from mcp_abap_adt.tools import tasks

DISCOVERY_PATH = "/sap/bc/adt/discovery"

Route = Union[Tuple[int, str], Callable[[httpx.Request], httpx.Response]]

_SAP_VARS = (
    "SAP_URL",
    "SAP_CLIENT",
    "SAP_AUTH_TYPE",
    "SAP_USERNAME",
    "SAP_PASSWORD",
    "SAP_JWT_TOKEN",
    "SAP_VERIFY_TLS",
    "TLS_REJECT_UNAUTHORIZED",
    "SAP_TIMEOUT_DEFAULT",
    "SAP_TIMEOUT_CSRF",
    "SAP_TIMEOUT_LONG",
    "SAP_CACHE_TTL_SECONDS",
    "SAP_CACHE_MAX_ENTRIES",
)


@pytest.fixture(autouse=True)
def sap_env(monkeypatch):
    """A basic-auth test system; process-wide singletons reset around each test."""
    for name in _SAP_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SAP_URL", "https://sap.example.com:44300")
    monkeypatch.setenv("SAP_CLIENT", "100")
    monkeypatch.setenv("SAP_AUTH_TYPE", "basic")
    monkeypatch.setenv("SAP_USERNAME", "DEVELOPER")
    monkeypatch.setenv("SAP_PASSWORD", "s3cret#pw")

    reset_config()
    monkeypatch.setattr(client_module, "_CLIENT", None)
    monkeypatch.setattr(tasks, "_CACHE", None)
    monkeypatch.setattr(tasks, "_CACHE_SIGNATURE", None)
    yield
    reset_config()


class FakeAdt:
    """Routing mock of an ADT backend.

    CSRF fetches against the discovery endpoint always succeed with
    ``token``. Other requests are answered from ``routes``, keyed by
    ``(method, path)``; unknown paths get a 404.
    """

    def __init__(self, token: str = "token-1") -> None:
        self.token = token
        self.routes: Dict[Tuple[str, str], Route] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, route: Route) -> None:
        self.routes[(method.upper(), path)] = route

    def get(self, path: str, text: str, status: int = 200) -> None:
        self.add("GET", path, (status, text))

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == DISCOVERY_PATH and request.headers.get("x-csrf-token") == "fetch":
            return httpx.Response(
                200,
                headers=[
                    ("x-csrf-token", self.token),
                    ("set-cookie", "SAP_SESSIONID_DEV_100=abc123; path=/; secure"),
                    ("set-cookie", "sap-usercontext=sap-client=100; path=/"),
                ],
                text="<app:service/>",
            )

        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, text=f"Resource {path} does not exist")
        if callable(route):
            return route(request)
        status, text = route
        return httpx.Response(status, text=text)

    def calls(self, method: Optional[str] = None, path: Optional[str] = None) -> List[httpx.Request]:
        return [
            r
            for r in self.requests
            if (method is None or r.method == method)
            and (path is None or r.url.path == path)
        ]

    @property
    def csrf_fetches(self) -> List[httpx.Request]:
        return [r for r in self.calls("GET", DISCOVERY_PATH) if r.headers.get("x-csrf-token") == "fetch"]

    def client(self) -> AdtClient:
        return AdtClient(config=SapConfig.from_env(), transport=httpx.MockTransport(self.handle))


@pytest.fixture
def fake_adt() -> FakeAdt:
    return FakeAdt()


@pytest.fixture
def use_fake_adt(monkeypatch, fake_adt):
    """Route every task through a client backed by ``fake_adt``."""
    adt_client = fake_adt.client()
    monkeypatch.setattr(tasks, "_make_client", lambda: adt_client)
    return fake_adt


@pytest.fixture
def no_sleep(monkeypatch):
    """Skip the delays between CSRF retry attempts."""
    slept: List[float] = []

    async def _sleep(seconds: float, *args: Any, **kwargs: Any) -> None:
        slept.append(seconds)

    monkeypatch.setattr("mcp_abap_adt.csrf.asyncio.sleep", _sleep)
    return slept


# ---------------------------------------------------------------------------
# XML builders
# ---------------------------------------------------------------------------


def repo_node(
    object_type: str,
    object_name: str,
    tech_name: Optional[str] = None,
    object_uri: Optional[str] = None,
    node_id: Optional[str] = None,
    description: str = "",
) -> str:
    parts = [f"<OBJECT_TYPE>{object_type}</OBJECT_TYPE>", f"<OBJECT_NAME>{object_name}</OBJECT_NAME>"]
    if tech_name is not None:
        parts.append(f"<TECH_NAME>{tech_name}</TECH_NAME>")
    if object_uri is not None:
        parts.append(f"<OBJECT_URI>{object_uri}</OBJECT_URI>")
    if node_id is not None:
        parts.append(f"<NODE_ID>{node_id}</NODE_ID>")
    if description:
        parts.append(f"<DESCRIPTION>{description}</DESCRIPTION>")
    return "<SEU_ADT_REPOSITORY_OBJ_NODE>" + "".join(parts) + "</SEU_ADT_REPOSITORY_OBJ_NODE>"


def type_info(object_type: str, node_id: str, label: str = "", category: str = "") -> str:
    tag = f"<CATEGORY_TAG>{category}</CATEGORY_TAG>" if category else ""
    return (
        "<SEU_ADT_OBJECT_TYPE_INFO>"
        f"<OBJECT_TYPE>{object_type}</OBJECT_TYPE>"
        f"<NODE_ID>{node_id}</NODE_ID>"
        f"<OBJECT_TYPE_LABEL>{label}</OBJECT_TYPE_LABEL>"
        f"{tag}"
        "</SEU_ADT_OBJECT_TYPE_INFO>"
    )


def nodestructure_xml(nodes: List[str] = (), types: List[str] = ()) -> str:
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<asx:abap xmlns:asx="http://www.sap.com/abapxml" version="1.0">'
        "<asx:values><DATA>"
        "<TREE_CONTENT>" + "".join(nodes) + "</TREE_CONTENT>"
        "<OBJECT_TYPES>" + "".join(types) + "</OBJECT_TYPES>"
        "</DATA></asx:values></asx:abap>"
    )


def nodestructure_route(replies: Dict[str, Route]) -> Callable[[httpx.Request], httpx.Response]:
    """Answer nodestructure POSTs by their ``node_id`` query parameter."""

    def handler(request: httpx.Request) -> httpx.Response:
        reply = replies.get(request.url.params.get("node_id"))
        if reply is None:
            return httpx.Response(404, text="unknown node")
        if callable(reply):
            return reply(request)
        status, text = reply
        return httpx.Response(status, text=text)

    return handler


def data_preview_xml(columns: List[Tuple[str, str, List[str]]], total: int, seconds: str = "0.12") -> str:
    """Column-wise ``dataPreview:tableData`` reply; each column is (name, type, values)."""
    sections = []
    for name, abap_type, values in columns:
        cells = "".join(f"<dataPreview:data>{v}</dataPreview:data>" for v in values)
        sections.append(
            "<dataPreview:columns>"
            f'<dataPreview:metadata dataPreview:name="{name}" dataPreview:type="{abap_type}" '
            f'dataPreview:description="{name.title()}" dataPreview:length="3"/>'
            f"<dataPreview:dataSet>{cells}</dataPreview:dataSet>"
            "</dataPreview:columns>"
        )
    return (
        '<dataPreview:tableData xmlns:dataPreview="http://www.sap.com/adt/dataPreview">'
        f"<dataPreview:totalRows>{total}</dataPreview:totalRows>"
        "<dataPreview:isHanaAnalyticalView>false</dataPreview:isHanaAnalyticalView>"
        f"<dataPreview:queryExecutionTime>{seconds}</dataPreview:queryExecutionTime>"
        + "".join(sections)
        + "</dataPreview:tableData>"
    )
