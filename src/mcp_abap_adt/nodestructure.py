# ABAP ADT MCP Server
# File: nodestructure.py
# Version: v1

"""Single call to ADT's ``repository/nodestructure`` tree-expansion API."""

from __future__ import annotations

from typing import Optional
from xml.sax.saxutils import escape

from .client import AdtClient

NODESTRUCTURE_PATH = "/sap/bc/adt/repository/nodestructure"

# Node id of the top level of a fresh traversal.
ROOT_NODE_ID = "000000"

_NODEKEY_BODY = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<asx:abap xmlns:asx="http://www.sap.com/abapxml" version="1.0">'
    "<asx:values><TV_NODEKEY>{node_id}</TV_NODEKEY></asx:values>"
    "</asx:abap>"
)


async def fetch_node_structure(
    client: AdtClient,
    parent_name: str,
    parent_tech_name: str,
    parent_type: str,
    node_id: str = ROOT_NODE_ID,
    with_descriptions: bool = True,
    timeout: Optional[int] = None,
) -> str:
    """POST one nodestructure expansion and return the raw XML.

    No retries of its own; request failures propagate to the caller.
    """
    params = {
        "parent_name": parent_name,
        "parent_tech_name": parent_tech_name,
        "parent_type": parent_type,
        "node_id": node_id,
        "withShortDescriptions": "true" if with_descriptions else "false",
    }
    response = await client.request(
        client.url(NODESTRUCTURE_PATH),
        "POST",
        timeout=timeout,
        data=_NODEKEY_BODY.format(node_id=escape(node_id)),
        params=params,
        headers={
            "Content-Type": "application/vnd.sap.as+xml; charset=UTF-8; dataname=null",
        },
    )
    return response.text
