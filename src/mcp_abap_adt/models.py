# ABAP ADT MCP Server
# File: models.py
# Version: v1

"""Domain models used by the ABAP ADT MCP server."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from mcp.types import CallToolResult, TextContent


@dataclass
class RepositoryNode:
    """One ``SEU_ADT_REPOSITORY_OBJ_NODE`` entry from a nodestructure reply.

    ADT does not publish a schema for this payload, so every field may be
    missing.
    """

    object_type: Optional[str] = None
    object_name: Optional[str] = None
    tech_name: Optional[str] = None
    object_uri: Optional[str] = None
    node_id: Optional[str] = None
    parent_node_id: Optional[str] = None
    description: Optional[str] = None
    expandable: bool = False

    @property
    def key(self) -> str:
        """Dedup key: ``TYPE:NAME`` upper-cased."""
        return f"{(self.object_type or '').upper()}:{(self.object_name or '').upper()}"

    @property
    def is_leaf(self) -> bool:
        """Terminal object: carries both a name and a URI."""
        return bool(self.object_name and self.object_uri)

    @property
    def is_group(self) -> bool:
        """Category node: has a node id and type but no URI."""
        return bool(self.node_id and self.object_type and not self.object_uri)

    def to_dict(self) -> Dict[str, Any]:
        """Upper-case field names, as ADT spells them."""
        return {
            "OBJECT_TYPE": self.object_type,
            "OBJECT_NAME": self.object_name,
            "TECH_NAME": self.tech_name,
            "OBJECT_URI": self.object_uri,
        }


@dataclass
class ObjectTypeInfo:
    """One ``SEU_ADT_OBJECT_TYPE_INFO`` entry: an expandable category node."""

    object_type: Optional[str] = None
    node_id: Optional[str] = None
    label: Optional[str] = None
    category: Optional[str] = None

    @property
    def key(self) -> str:
        return f"NODE:{self.node_id}"


@dataclass
class ToolResult:
    """Uniform output envelope of every tool handler.

    ``content`` holds plain dict blocks such as ``{"type": "text", "text": ...}``
    or ``{"type": "json", "json": {...}}``.
    """

    is_error: bool
    content: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"isError": self.is_error, "content": list(self.content)}

    @property
    def text(self) -> str:
        """Concatenated text of all blocks (json blocks rendered)."""
        return "\n".join(_render_block(block) for block in self.content)

    def to_call_tool_result(self) -> CallToolResult:
        """Convert to the MCP wire type; json blocks become JSON text."""
        return CallToolResult(
            isError=self.is_error,
            content=[
                TextContent(type="text", text=_render_block(block))
                for block in self.content
            ],
        )


def _render_block(block: Dict[str, Any]) -> str:
    if block.get("type") == "json":
        return json.dumps(block.get("json"), indent=2, ensure_ascii=False)
    text = block.get("text")
    return text if isinstance(text, str) else str(text)
