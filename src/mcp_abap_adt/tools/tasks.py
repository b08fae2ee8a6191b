# ABAP ADT MCP Server
# File: tools/tasks.py
# Version: v1
#
# NOTE: This module is the single place where we define the ADT "business
# logic" that is exposed as MCP tools. The stdio transport simply calls
# `register_tools(server)` to wire these up.
#
# Every handler returns a ToolResult. Input validation raises McpError
# (INVALID_PARAMS) before the envelope boundary; everything after it is
# converted into ToolResult(is_error=True, ...) and never raised.

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Dict, List, Optional
from urllib.parse import unquote, urlparse

import httpx

from ..abap_includes import find_include_names
from ..adt_xml import (
    find_element_text,
    parse_data_preview,
    parse_enhancement_spot,
    parse_enhancements,
    parse_field_names,
    parse_include_context,
    parse_object_properties,
    parse_object_structure_nodes,
    parse_object_type_infos,
    parse_repository_nodes,
    parse_search_references,
    parse_usage_references,
)
from ..cache import ObjectsListCache
from ..client import AdtClient, encode_name, get_adt_client
from ..config import SapConfig
from ..errors import AdtError, AdtRequestError, ConfigError, invalid_params
from ..models import ObjectTypeInfo, RepositoryNode, ToolResult
from ..nodestructure import ROOT_NODE_ID, fetch_node_structure
from ..output import write_result_to_file
from ..responses import err, error_message, json_result, ok, text_result
from ..walker import TreeWalker

logger = logging.getLogger(__name__)

ADT = "/sap/bc/adt"


# ---------------------------------------------------------------------------
# Internal helpers (client factory, cache, argument checks)
# ---------------------------------------------------------------------------


def _make_client() -> AdtClient:
    """Return the ADT client used by all tasks.

    Tests replace this with a no-arg lambda returning a client built on an
    ``httpx.MockTransport``.
    """
    return get_adt_client()


_CACHE: ObjectsListCache | None = None
_CACHE_SIGNATURE: tuple[int, int] | None = None


def _get_cache(cfg: SapConfig) -> ObjectsListCache:
    """Lazily create (or re-create) the objects-list cache based on config."""
    global _CACHE, _CACHE_SIGNATURE

    signature = (int(cfg.cache_ttl_seconds), int(cfg.cache_max_entries))
    if _CACHE is None or _CACHE_SIGNATURE != signature:
        _CACHE = ObjectsListCache(ttl_seconds=signature[0], max_entries=signature[1])
        _CACHE_SIGNATURE = signature
    return _CACHE


def _make_error(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Small, LLM-friendly error shape used by diagnostics."""
    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return error


def _cap_int(value: Any, cap: int, min_value: int = 1) -> tuple[int, bool]:
    """Clamp an integer to [min_value, cap]. Returns (effective, cap_applied)."""
    try:
        v = int(value)
    except (TypeError, ValueError):
        v = min_value

    if v < min_value:
        return min_value, True

    if cap > 0 and v > cap:
        return cap, True

    return v, False


def _require_str(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise invalid_params(
            f'Parameter "{name}" (string) is required and cannot be empty.'
        )
    return value.strip()


def _timeout_arg(timeout: Any) -> Optional[int]:
    """Caller timeout in ms, or None for the configured default."""
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        return None
    return int(timeout) if timeout > 0 else None


async def _get_text(
    client: AdtClient,
    path: str,
    timeout: Optional[int] = None,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> str:
    response = await client.request(
        client.url(path), "GET", timeout=timeout, params=params, headers=headers
    )
    return response.text


async def _get_source(path: str, timeout: Optional[int] = None) -> ToolResult:
    """build URL -> GET -> wrap: the shape of every single-object getter."""
    try:
        client = _make_client()
        response = await client.request(client.url(path), "GET", timeout=timeout)
        return ok(response)
    except Exception as exc:  # noqa: BLE001
        return err(exc)


# ---------------------------------------------------------------------------
# Single-object source getters
# ---------------------------------------------------------------------------


async def get_program(program_name: str) -> ToolResult:
    name = _require_str("program_name", program_name)
    return await _get_source(f"{ADT}/programs/programs/{encode_name(name)}/source/main")


async def get_class(class_name: str) -> ToolResult:
    name = _require_str("class_name", class_name)
    return await _get_source(f"{ADT}/oo/classes/{encode_name(name)}/source/main")


async def get_interface(interface_name: str) -> ToolResult:
    name = _require_str("interface_name", interface_name)
    return await _get_source(f"{ADT}/oo/interfaces/{encode_name(name)}/source/main")


async def get_include(include_name: str) -> ToolResult:
    name = _require_str("include_name", include_name)
    return await _get_source(f"{ADT}/programs/includes/{encode_name(name)}/source/main")


async def get_function_group(function_group: str) -> ToolResult:
    name = _require_str("function_group", function_group)
    return await _get_source(f"{ADT}/functions/groups/{encode_name(name)}/source/main")


async def get_function(function_name: str, function_group: str) -> ToolResult:
    fname = _require_str("function_name", function_name)
    group = _require_str("function_group", function_group)
    return await _get_source(
        f"{ADT}/functions/groups/{encode_name(group)}/fmodules/{encode_name(fname)}/source/main"
    )


async def get_table(table_name: str) -> ToolResult:
    name = _require_str("table_name", table_name)
    return await _get_source(f"{ADT}/ddic/tables/{encode_name(name)}/source/main")


async def get_structure(structure_name: str) -> ToolResult:
    name = _require_str("structure_name", structure_name)
    return await _get_source(f"{ADT}/ddic/structures/{encode_name(name)}/source/main")


async def get_package(package_name: str) -> ToolResult:
    """Objects directly inside a package (one nodestructure expansion)."""
    name = _require_str("package_name", package_name)
    try:
        client = _make_client()
        xml_text = await fetch_node_structure(client, name.upper(), name.upper(), "DEVC/K")
        objects = [
            {
                "OBJECT_TYPE": node.object_type,
                "OBJECT_NAME": node.object_name,
                "OBJECT_DESCRIPTION": node.description,
                "OBJECT_URI": node.object_uri,
            }
            for node in parse_repository_nodes(xml_text)
            if node.is_leaf
        ]
        return json_result(objects)
    except Exception as exc:  # noqa: BLE001
        return err(exc)


async def search_object(
    query: str,
    max_results: int = 100,
    file_path: Optional[str] = None,
) -> ToolResult:
    """Repository quick search (prefix match on the object name)."""
    q = _require_str("query", query)
    effective_max, _ = _cap_int(max_results, 1000, min_value=1)
    try:
        client = _make_client()
        response = await client.request(
            client.url(f"{ADT}/repository/informationsystem/search"),
            "GET",
            params={"operation": "quickSearch", "query": f"{q}*", "maxResults": effective_max},
        )
        result = ok(response)
        if file_path:
            write_result_to_file(result.to_dict(), file_path)
        return result
    except Exception as exc:  # noqa: BLE001
        return err(exc)


# ---------------------------------------------------------------------------
# Include discovery (source text scanned for INCLUDE statements)
# ---------------------------------------------------------------------------


def _source_path(object_name: str, object_type: str) -> str:
    if object_type == "program":
        return f"{ADT}/programs/programs/{encode_name(object_name)}/source/main"
    return f"{ADT}/programs/includes/{encode_name(object_name)}/source/main"


def _include_walker(
    client: AdtClient,
    root_name: str,
    root_type: str,
    timeout: Optional[int],
    max_depth: Optional[int] = None,
) -> TreeWalker[str]:
    """Walker over the include tree of a program or include.

    The root is read with its own type; everything it pulls in is an include.
    Includes whose source cannot be read are left out.
    """

    async def fetch(name: str) -> str:
        kind = root_type if name == root_name else "include"
        return await _get_text(client, _source_path(name, kind), timeout=timeout)

    return TreeWalker(
        fetch=fetch,
        extract_children=lambda _name, source: find_include_names(source),
        key=str.upper,
        max_depth=max_depth,
        drop_failed=True,
    )


async def get_includes_list(
    object_name: str,
    object_type: str,
    detailed: bool = False,
    timeout: Optional[int] = None,
    max_depth: Optional[int] = None,
    file_path: Optional[str] = None,
) -> ToolResult:
    """Recursively discover every include pulled in by a program or include."""
    name = _require_str("object_name", object_name).upper()
    if object_type not in ("program", "include"):
        raise invalid_params('Parameter "object_type" must be either "program" or "include".')
    depth_limit = None
    if max_depth is not None:
        depth_limit, _ = _cap_int(max_depth, 50, min_value=1)

    try:
        client = _make_client()
        walker = _include_walker(client, name, object_type, _timeout_arg(timeout), depth_limit)
        entries = await walker.walk_entries(name)
        includes = [entry.item for entry in entries]

        if detailed:
            payload: Any = {
                "object_name": object_name,
                "object_type": object_type,
                "detailed": True,
                "total_includes": len(includes),
                "includes": includes,
                "tree": [
                    {"name": e.item, "parent": e.parent_key, "depth": e.depth}
                    for e in entries
                ],
                "failed_branches": walker.last_failures,
            }
            result = json_result(payload)
        elif includes:
            payload = "\n".join(includes)
            result = text_result(payload)
        else:
            payload = f"No includes found in {object_type} '{object_name}'."
            result = text_result(payload)

        if file_path:
            write_result_to_file(payload, file_path)
        return result
    except Exception as exc:  # noqa: BLE001
        return err(exc)


# ---------------------------------------------------------------------------
# Object listing (nodestructure category nodes)
# ---------------------------------------------------------------------------


def _node_key(item: Any) -> str:
    """Leaves dedup by TYPE:NAME, expandable nodes by node id."""
    if isinstance(item, RepositoryNode) and not item.is_leaf and item.node_id:
        return f"NODE:{item.node_id}"
    return item.key


def _is_expandable(item: Any) -> bool:
    if isinstance(item, ObjectTypeInfo):
        return True
    return isinstance(item, RepositoryNode) and item.is_group


async def _collect_objects(
    client: AdtClient,
    parent_name: str,
    parent_tech_name: str,
    parent_type: str,
    with_descriptions: bool,
) -> List[RepositoryNode]:
    """Every complete repository object under a parent, walking all category nodes."""

    async def fetch(node: ObjectTypeInfo) -> str:
        return await fetch_node_structure(
            client,
            parent_name,
            parent_tech_name,
            parent_type,
            node.node_id or ROOT_NODE_ID,
            with_descriptions,
        )

    def extract(_node: ObjectTypeInfo, xml_text: str) -> List[Any]:
        objects: List[Any] = [
            n
            for n in parse_repository_nodes(xml_text)
            if n.object_type and n.object_name and n.tech_name and n.object_uri
        ]
        return objects + list(parse_object_type_infos(xml_text))

    walker: TreeWalker[Any] = TreeWalker(
        fetch=fetch,
        extract_children=extract,
        key=_node_key,
        should_descend=_is_expandable,
    )
    root = ObjectTypeInfo(object_type=parent_type, node_id=ROOT_NODE_ID)
    items = await walker.walk(root)
    return [item for item in items if isinstance(item, RepositoryNode)]


def _objects_payload(
    parent_name: str, parent_tech_name: str, parent_type: str, objects: List[RepositoryNode]
) -> Dict[str, Any]:
    return {
        "parent_name": parent_name,
        "parent_tech_name": parent_tech_name,
        "parent_type": parent_type,
        "total_objects": len(objects),
        "objects": [obj.to_dict() for obj in objects],
    }


async def get_objects_list(
    parent_name: str,
    parent_tech_name: str,
    parent_type: str,
    with_short_descriptions: bool = True,
    file_path: Optional[str] = None,
) -> ToolResult:
    """All repository objects under a parent (program, function group, ...)."""
    name = _require_str("parent_name", parent_name)
    tech_name = _require_str("parent_tech_name", parent_tech_name)
    ptype = _require_str("parent_type", parent_type)

    try:
        client = _make_client()
        objects = await _collect_objects(
            client, name.upper(), tech_name.upper(), ptype, bool(with_short_descriptions)
        )
        payload = _objects_payload(name, tech_name, ptype, objects)

        cache = _get_cache(client.config)
        cache.set(ObjectsListCache.make_key(ptype, name), payload)

        if file_path:
            write_result_to_file(payload, file_path)
        return json_result(payload)
    except Exception as exc:  # noqa: BLE001
        return err(exc)


async def get_object_node_from_cache(
    object_type: str, object_name: str, tech_name: str
) -> ToolResult:
    """A node from the objects-list cache, with its OBJECT_URI expanded once."""
    otype = _require_str("object_type", object_type)
    oname = _require_str("object_name", object_name)
    tname = _require_str("tech_name", tech_name)

    try:
        client = _make_client()
        cache = _get_cache(client.config)
        node = cache.find_node(otype, oname, tname)
        if node is None:
            return ToolResult(
                is_error=True,
                content=[{"type": "text", "text": "Node not found in cache"}],
            )

        uri = node.get("OBJECT_URI")
        if uri and not node.get("object_uri_response"):
            url = uri if uri.startswith("http") else f"{client.base_url}{uri}"
            try:
                response = await client.request(url, "GET", timeout=15000)
                expanded = response.text
            except (AdtError, httpx.HTTPError) as exc:
                expanded = f"ERROR: {error_message(exc)}"
            cache.update_node(otype, oname, tname, {"object_uri_response": expanded})

        return json_result(node)
    except Exception as exc:  # noqa: BLE001
        return err(exc)


# ---------------------------------------------------------------------------
# Full code export
# ---------------------------------------------------------------------------


def _code_path(obj: Dict[str, Any], parent_name: str, parent_type: str) -> Optional[str]:
    otype = (obj.get("OBJECT_TYPE") or "").upper()
    name = encode_name(obj.get("OBJECT_NAME") or "")
    if otype == "PROG/P":
        return f"{ADT}/programs/programs/{name}/source/main"
    if otype in ("PROG/I", "FUGR/I"):
        return f"{ADT}/programs/includes/{name}/source/main"
    if otype == "FUGR":
        return f"{ADT}/functions/groups/{name}/source/main"
    if otype == "FUGR/FF" and parent_type == "FUGR":
        return f"{ADT}/functions/groups/{encode_name(parent_name)}/fmodules/{name}/source/main"
    return None


async def get_prog_full_code(name: str, type: str) -> ToolResult:  # noqa: A002
    """Main program or function group source, followed by every include."""
    parent_name = _require_str("name", name).upper()
    if type not in ("PROG/P", "FUGR"):
        raise invalid_params('Parameter "type" must be either "PROG/P" or "FUGR".')

    try:
        client = _make_client()
        objects = await _collect_objects(client, parent_name, parent_name, type, True)
        payload = _objects_payload(parent_name, parent_name, type, objects)
        _get_cache(client.config).set(ObjectsListCache.make_key(type, parent_name), payload)

        root = {
            "OBJECT_TYPE": type,
            "OBJECT_NAME": parent_name,
            "TECH_NAME": parent_name,
            "OBJECT_URI": "",
        }
        code_objects: List[Dict[str, Any]] = []
        for obj in [root] + payload["objects"]:
            if obj is not root and obj["OBJECT_TYPE"] == type and (
                (obj["OBJECT_NAME"] or "").upper() == parent_name
            ):
                continue
            path = _code_path(obj, parent_name, type)
            if path is None:
                continue
            entry = dict(obj)
            try:
                entry["code"] = await _get_text(client, path)
            except (AdtError, httpx.HTTPError) as exc:
                entry["code"] = None
                entry["error"] = error_message(exc)
            code_objects.append(entry)

        return ToolResult(
            is_error=False,
            content=[
                {
                    "type": "json",
                    "json": {
                        "parent_name": parent_name,
                        "parent_tech_name": parent_name,
                        "parent_type": type,
                        "total_code_objects": len(code_objects),
                        "code_objects": code_objects,
                    },
                }
            ],
        )
    except Exception as exc:  # noqa: BLE001
        return err(exc)


# ---------------------------------------------------------------------------
# Object info tree (nodestructure with depth bound + optional enrichment)
# ---------------------------------------------------------------------------


async def _enrich(client: AdtClient, object_type: str, object_name: str) -> Dict[str, Any]:
    """Package and description of an object via quick search; empty on failure."""
    try:
        xml_text = await _get_text(
            client,
            f"{ADT}/repository/informationsystem/search",
            params={"operation": "quickSearch", "query": object_name, "maxResults": 1},
        )
        for ref in parse_search_references(xml_text):
            if (ref.get("name") or "").upper() == object_name.upper():
                return {
                    "package": ref.get("packageName"),
                    "description": ref.get("description"),
                    "type": ref.get("type") or object_type,
                }
    except Exception as exc:  # noqa: BLE001
        logger.debug("Enrichment of %s %s failed: %s", object_type, object_name, exc)
    return {}


def _info_node(item: Any) -> Dict[str, Any]:
    if isinstance(item, ObjectTypeInfo):
        return {
            "OBJECT_TYPE": item.object_type,
            "OBJECT_NAME": item.label,
            "NODE_ID": item.node_id,
            "node_type": "point",
            "CHILDREN": [],
        }
    node: Dict[str, Any] = {
        "OBJECT_TYPE": item.object_type,
        "OBJECT_NAME": item.object_name,
        "NODE_ID": item.node_id,
        "PARENT_NODE_ID": item.parent_node_id,
        "node_type": "end" if item.is_leaf else "point",
        "CHILDREN": [],
    }
    if item.is_leaf:
        node["OBJECT_URI"] = item.object_uri
    return node


async def get_object_info(
    parent_type: str,
    parent_name: str,
    max_depth: int = 2,
    enrich: bool = True,
) -> ToolResult:
    """Object tree: root, group ("point") nodes and leaves ("end") up to max_depth."""
    ptype = _require_str("parent_type", parent_type)
    pname = _require_str("parent_name", parent_name).upper()
    depth_limit, _ = _cap_int(max_depth, 10, min_value=0)

    try:
        client = _make_client()

        async def fetch(node: Any) -> str:
            return await fetch_node_structure(
                client, pname, pname, ptype, node.node_id or ROOT_NODE_ID, True
            )

        def extract(_node: Any, xml_text: str) -> List[Any]:
            nodes: List[Any] = [
                n for n in parse_repository_nodes(xml_text) if n.is_leaf or n.is_group
            ]
            return nodes + list(parse_object_type_infos(xml_text))

        walker: TreeWalker[Any] = TreeWalker(
            fetch=fetch,
            extract_children=extract,
            key=_node_key,
            should_descend=_is_expandable,
            max_depth=depth_limit,
        )
        root_item = ObjectTypeInfo(object_type=ptype, node_id=ROOT_NODE_ID)
        entries = await walker.walk_entries(root_item)

        enrichment = await _enrich(client, ptype, pname) if enrich else {}
        tree: Dict[str, Any] = {
            "OBJECT_TYPE": enrichment.get("type") or ptype,
            "OBJECT_NAME": pname,
            "OBJECT_DESCRIPTION": enrichment.get("description"),
            "OBJECT_PACKAGE": enrichment.get("package"),
            "NODE_ID": "ROOT",
            "node_type": "root",
            "CHILDREN": [],
        }

        by_key: Dict[str, Dict[str, Any]] = {root_item.key: tree}
        for entry in entries:
            node = _info_node(entry.item)
            by_key[_node_key(entry.item)] = node
            by_key.get(entry.parent_key, tree)["CHILDREN"].append(node)

        return text_result(json.dumps(tree, indent=2, ensure_ascii=False))
    except Exception as exc:  # noqa: BLE001
        return err(exc)


# ---------------------------------------------------------------------------
# Object structure (repository/objectstructure)
# ---------------------------------------------------------------------------


def _serialize_tree(nodes: List[Dict[str, Any]], indent: str = "") -> str:
    out = ""
    for node in nodes:
        out += f"{indent}- {node['objecttype']}: {node['objectname']}\n"
        if node["children"]:
            out += _serialize_tree(node["children"], indent + "  ")
    return out


async def get_object_structure(object_type: str, object_name: str) -> ToolResult:
    """ADT object structure rendered as an indented ``tree:`` text."""
    otype = _require_str("object_type", object_type)
    oname = _require_str("object_name", object_name)

    try:
        client = _make_client()
        xml_text = await _get_text(
            client,
            f"{ADT}/repository/objectstructure",
            params={"objecttype": otype, "objectname": oname},
        )
        flat = parse_object_structure_nodes(xml_text)
        if not flat:
            return ToolResult(
                is_error=True,
                content=[{"type": "text", "text": "No nodes found in object structure response."}],
            )

        by_id: Dict[Optional[str], Dict[str, Any]] = {}
        for node in flat:
            by_id[node["nodeid"]] = {
                "objecttype": node["objecttype"],
                "objectname": node["objectname"],
                "children": [],
            }
        roots: List[Dict[str, Any]] = []
        for node in flat:
            parent = by_id.get(node["parentid"]) if node["parentid"] else None
            target = by_id[node["nodeid"]]
            if parent is not None and parent is not target:
                parent["children"].append(target)
            else:
                roots.append(target)

        return text_result("tree:\n" + _serialize_tree(roots))
    except Exception as exc:  # noqa: BLE001
        return err(exc)


# ---------------------------------------------------------------------------
# Enhancements
# ---------------------------------------------------------------------------


def _program_uri(program: str) -> str:
    return f"{ADT}/programs/programs/{encode_name(program.upper())}"


async def _resolve_enhancement_target(
    client: AdtClient,
    object_name: str,
    program: Optional[str],
    timeout: Optional[int],
) -> Dict[str, Any]:
    """Decide whether ``object_name`` is a program or an include.

    Includes need the URI of their main program as ``context``; it comes from
    the ``program`` argument or from the include's own metadata.
    """
    encoded = encode_name(object_name)
    if program:
        return {"type": "include", "name": object_name, "context": _program_uri(program)}

    try:
        await _get_text(
            client,
            f"{ADT}/programs/programs/{encoded}",
            timeout=timeout,
            headers={"Accept": "application/vnd.sap.adt.programs.programs.v2+xml"},
        )
        logger.info("%s is a program", object_name)
        return {"type": "program", "name": object_name, "context": None}
    except (AdtError, httpx.HTTPError) as exc:
        logger.info("%s is not a program (%s), trying as include", object_name, exc)

    metadata = await _get_text(
        client,
        f"{ADT}/programs/includes/{encoded}",
        timeout=timeout,
        headers={"Accept": "application/vnd.sap.adt.programs.includes.v2+xml"},
    )
    context = parse_include_context(metadata)
    if not context:
        raise AdtError(
            "Could not determine parent program context for include: "
            f"{object_name}. No contextRef found in metadata."
        )
    return {"type": "include", "name": object_name, "context": context}


async def _fetch_enhancements(
    client: AdtClient, target: Dict[str, Any], timeout: Optional[int]
) -> List[Dict[str, Any]]:
    kind = "programs" if target["type"] == "program" else "includes"
    path = f"{ADT}/programs/{kind}/{encode_name(target['name'])}/source/main/enhancements/elements"
    params = {"context": target["context"]} if target["type"] == "include" else None
    xml_text = await _get_text(client, path, timeout=timeout, params=params)
    return parse_enhancements(xml_text)


async def get_enhancements(
    object_name: str,
    program: Optional[str] = None,
    include_nested: bool = False,
    timeout: Optional[int] = None,
) -> ToolResult:
    """Enhancement implementations of a program or include.

    With ``include_nested`` the include tree is flattened first and each
    include is asked for its own enhancements; that second step does not
    recurse any further.
    """
    name = _require_str("object_name", object_name).upper()
    request_timeout = _timeout_arg(timeout)

    try:
        client = _make_client()
        target = await _resolve_enhancement_target(client, name, program, request_timeout)
        enhancements = await _fetch_enhancements(client, target, request_timeout)

        if not include_nested:
            return json_result(
                {
                    "object_name": name,
                    "object_type": target["type"],
                    "context": target["context"],
                    "total_enhancements": len(enhancements),
                    "enhancements": enhancements,
                }
            )

        context = target["context"] or _program_uri(name)
        walker = _include_walker(client, name, target["type"], request_timeout)
        include_names = await walker.walk(name)

        objects: List[Dict[str, Any]] = [
            {
                "object_name": name,
                "object_type": target["type"],
                "context": target["context"],
                "enhancements": enhancements,
            }
        ]
        for include in include_names:
            entry: Dict[str, Any] = {
                "object_name": include,
                "object_type": "include",
                "context": context,
                "enhancements": [],
            }
            try:
                entry["enhancements"] = await _fetch_enhancements(
                    client,
                    {"type": "include", "name": include, "context": context},
                    request_timeout,
                )
            except Exception as exc:  # noqa: BLE001
                logger.warning("Enhancements of include %s failed: %s", include, exc)
                entry["error"] = error_message(exc)
            objects.append(entry)

        return json_result(
            {
                "main_object": {"name": name, "type": target["type"]},
                "include_nested": True,
                "total_objects_analyzed": len(objects),
                "total_enhancements_found": sum(len(o["enhancements"]) for o in objects),
                "objects": objects,
            }
        )
    except Exception as exc:  # noqa: BLE001
        return err(exc)


def _enhancement_source(raw: str) -> str:
    """Decoded source of the first enhancement in ``raw``, else ``raw`` itself."""
    try:
        found = parse_enhancements(raw)
    except SyntaxError:
        # Plain-text source, not XML.
        found = []
    return found[0]["sourceCode"] if found else raw


async def get_enhancement_by_name(enhancement_spot: str, enhancement_name: str) -> ToolResult:
    """Source code of one enhancement implementation."""
    spot = _require_str("enhancement_spot", enhancement_spot)
    ename = _require_str("enhancement_name", enhancement_name)

    try:
        client = _make_client()
        raw = await _get_text(
            client,
            f"{ADT}/enhancements/{encode_name(spot)}/{encode_name(ename)}/source/main",
        )
        return json_result(
            {
                "enhancement_spot": spot,
                "enhancement_name": ename,
                "source_code": _enhancement_source(raw),
                "raw_xml": raw,
            }
        )
    except Exception as exc:  # noqa: BLE001
        return err(exc)


# ---------------------------------------------------------------------------
# Node structure by category
# ---------------------------------------------------------------------------


async def get_objects_by_type(
    parent_name: str,
    parent_tech_name: str,
    parent_type: str,
    node_id: str,
    format: str = "parsed",  # noqa: A002
    with_short_descriptions: bool = True,
) -> ToolResult:
    """Objects of one category node (one nodestructure expansion, no recursion)."""
    name = _require_str("parent_name", parent_name).upper()
    tech_name = _require_str("parent_tech_name", parent_tech_name).upper()
    ptype = _require_str("parent_type", parent_type)
    nid = _require_str("node_id", node_id)
    if format not in ("raw", "parsed"):
        raise invalid_params('Parameter "format" must be either "raw" or "parsed".')

    try:
        client = _make_client()
        xml_text = await fetch_node_structure(
            client, name, tech_name, ptype, nid, bool(with_short_descriptions)
        )
        if format == "raw":
            return text_result(xml_text)

        objects = [
            RepositoryNode(
                object_type=node.object_type,
                object_name=node.object_name,
                tech_name=node.tech_name or node.object_name,
                object_uri=node.object_uri,
            )
            for node in parse_repository_nodes(xml_text)
            if node.object_type and node.object_name
        ]
        if not objects:
            return text_result(f"No objects found for node_id '{nid}' in {ptype} '{name}'.")

        payload = _objects_payload(name, tech_name, ptype, objects)
        payload["node_id"] = nid
        _get_cache(client.config).set(ObjectsListCache.make_key(ptype, f"{name}#{nid}"), payload)
        return json_result(payload)
    except Exception as exc:  # noqa: BLE001
        return err(exc)


# Short filter names accepted by GetRelatedObjectTypes.
OBJECT_TYPE_FILTERS: Dict[str, List[str]] = {
    "enhancement": ["ENHO/XH", "ENHS/XS"],
    "include": ["PROG/I", "FUGR/I"],
    "screen": ["PROG/PS"],
    "dialog": ["DIAL/A"],
    "transaction": ["TRAN/T"],
    "class": ["PROG/PL"],
    "subroutine": ["PROG/PU"],
    "module": ["PROG/PM", "PROG/PO"],
    "macro": ["PROG/PK"],
    "type": ["PROG/PY", "PROG/PT"],
    "text": ["PROG/PX"],
    "gui": ["PROG/PC", "PROG/PZ"],
    "event": ["PROG/PE"],
    "field": ["PROG/PD"],
    "typegroup": ["PROG/PG"],
}


async def get_related_object_types(
    parent_name: str,
    parent_tech_name: str,
    parent_type: str,
    object_filter: Optional[str] = None,
    with_short_descriptions: bool = True,
) -> ToolResult:
    """Category nodes available under a parent, grouped by category tag.

    An unknown ``object_filter`` matches every type.
    """
    name = _require_str("parent_name", parent_name).upper()
    tech_name = _require_str("parent_tech_name", parent_tech_name).upper()
    ptype = _require_str("parent_type", parent_type)
    wanted = OBJECT_TYPE_FILTERS.get((object_filter or "").lower(), [])

    try:
        client = _make_client()
        xml_text = await fetch_node_structure(
            client, name, tech_name, ptype, ROOT_NODE_ID, bool(with_short_descriptions)
        )
        infos = [
            info
            for info in parse_object_type_infos(xml_text)
            if not wanted or info.object_type in wanted
        ]
        if not infos:
            suffix = f" matching filter '{object_filter}'" if object_filter else ""
            return text_result(f"No object types found{suffix} in {ptype} '{name}'.")

        categories: Dict[str, List[Dict[str, Any]]] = {}
        for info in infos:
            categories.setdefault(info.category or "unknown", []).append(
                {"object_type": info.object_type, "node_id": info.node_id, "label": info.label}
            )
        return json_result(
            {
                "parent_name": name,
                "parent_type": ptype,
                "object_filter": object_filter,
                "total_types": len(infos),
                "categories": categories,
            }
        )
    except Exception as exc:  # noqa: BLE001
        return err(exc)


# ---------------------------------------------------------------------------
# Data preview (POST with CSRF token)
# ---------------------------------------------------------------------------


_CDS_FIELD = re.compile(r"^(key\s+)?([a-z0-9_]+)\s*:\s*[a-z0-9_]+", re.IGNORECASE)
_CLASSIC_FIELD = re.compile(r"^\s+([A-Z0-9_]+)\s*(?::|\s)\s*[A-Z0-9_]", re.IGNORECASE | re.MULTILINE)


def table_field_names(source: str) -> List[str]:
    """Field names declared in a table's source, in declaration order."""
    names: Dict[str, None] = {}
    if "define table" in source:
        for line in source.splitlines():
            match = _CDS_FIELD.match(line.strip())
            if match:
                names[match.group(2).upper()] = None
    else:
        for match in _CLASSIC_FIELD.finditer(source):
            names[match.group(1).upper()] = None
    return list(names)


async def _table_fields(client: AdtClient, table: str) -> List[str]:
    """``TABLE~FIELD`` list for a SELECT; empty when the layout is unknown."""
    encoded = encode_name(table)
    try:
        source = await _get_text(client, f"{ADT}/ddic/tables/{encoded}/source/main")
        return [f"{table}~{name}" for name in table_field_names(source)]
    except (AdtError, httpx.HTTPError) as exc:
        logger.warning("Could not read source of table %s, trying metadata: %s", table, exc)

    try:
        metadata = await _get_text(client, f"{ADT}/ddic/tables/{encoded}")
    except (AdtError, httpx.HTTPError) as exc:
        logger.warning("Could not read metadata of table %s either: %s", table, exc)
        return []
    return [f"{table}~{name}" for name in parse_field_names(metadata)]


async def get_table_contents(
    table_name: str,
    max_rows: int = 100,
    file_path: Optional[str] = None,
) -> ToolResult:
    """Rows of a DDIC table via the data preview service."""
    table = _require_str("table_name", table_name).upper()
    rows, _ = _cap_int(max_rows, 0, min_value=1)

    try:
        client = _make_client()
        fields = await _table_fields(client, table)
        if fields:
            statement = f"SELECT {', '.join(fields)} FROM {table}"
        else:
            logger.warning("Using SELECT * for %s; the data preview may reject it", table)
            statement = f"SELECT * FROM {table}"

        response = await client.request(
            client.url(f"{ADT}/datapreview/ddic"),
            "POST",
            timeout=client.config.timeout_ms("long"),
            data=statement,
            params={"rowNumber": rows, "ddicEntityName": table},
        )
        preview = parse_data_preview(response.text)
        payload = {
            "tableName": table,
            "totalRows": preview["total_rows"],
            "queryExecutionTime": preview["execution_time"],
            "columns": preview["columns"],
            "rows": preview["rows"],
            "metadata": {
                "recordCount": len(preview["rows"]),
                "columnCount": len(preview["columns"]),
            },
        }
        result = json_result(payload)
        if file_path:
            write_result_to_file(result.to_dict(), file_path)
        return result
    except Exception as exc:  # noqa: BLE001
        return err(exc)


async def get_sql_query(
    sql_query: str,
    row_number: int = 100,
    file_path: Optional[str] = None,
) -> ToolResult:
    """Run a freestyle SELECT through the data preview service."""
    query = _require_str("sql_query", sql_query)
    rows, _ = _cap_int(row_number, 0, min_value=1)

    try:
        client = _make_client()
        response = await client.request(
            client.url(f"{ADT}/datapreview/freestyle"),
            "POST",
            timeout=client.config.timeout_ms("long"),
            data=query,
            params={"rowNumber": rows},
        )
        preview = parse_data_preview(response.text)
        result = json_result({"sql_query": query, "row_number": rows, **preview})
        if file_path:
            write_result_to_file(result.to_dict(), file_path)
        return result
    except Exception as exc:  # noqa: BLE001
        return err(exc)


# ---------------------------------------------------------------------------
# Where-used list (POST with CSRF token)
# ---------------------------------------------------------------------------


_WHERE_USED_URIS = {
    "class": "oo/classes",
    "program": "programs/programs",
    "include": "programs/includes",
    "function": "functions/groups",
    "interface": "oo/interfaces",
    "package": "packages",
    "table": "ddic/tables",
    "tabl": "ddic/tables",
    "bdef": "bo/behaviordefinitions",
}

_USAGE_REQUEST = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<usagereferences:usageReferenceRequest '
    'xmlns:usagereferences="http://www.sap.com/adt/ris/usageReferences">'
    "<usagereferences:affectedObjects/>"
    "</usagereferences:usageReferenceRequest>"
)


def _is_relevant_reference(ref: Dict[str, Any]) -> bool:
    """Enhancement implementations, main results (not packages) and direct FM usages."""
    ref_type = ref.get("type") or ""
    if ref_type == "ENHO/XHH":
        return True
    if ref.get("isResult") is True and ref_type != "DEVC/K":
        return True
    return ref_type == "FUGR/FF" and "gradeDirect" in (ref.get("usageInformation") or "")


async def get_where_used(object_name: str, object_type: str, detailed: bool = False) -> ToolResult:
    """Where-used list of a repository object."""
    name = _require_str("object_name", object_name)
    otype = _require_str("object_type", object_type)
    segment = _WHERE_USED_URIS.get(otype.lower())
    if segment is None:
        raise invalid_params(f"Unsupported object type: {otype}")
    object_uri = f"{ADT}/{segment}/{encode_name(name)}"

    try:
        client = _make_client()
        response = await client.request(
            client.url(f"{ADT}/repository/informationsystem/usageReferences"),
            "POST",
            data=_USAGE_REQUEST,
            params={"uri": object_uri},
            headers={"Content-Type": "application/vnd.sap.adt.repository.usagereferences.request.v1+xml"},
        )
        found = parse_usage_references(response.text)
        if detailed:
            references: List[Dict[str, Any]] = found
        else:
            references = [
                {"name": ref["name"], "type": ref["type"]}
                for ref in found
                if _is_relevant_reference(ref)
            ]
        return json_result(
            {
                "object_name": name,
                "object_type": otype,
                "object_uri": object_uri,
                "detailed": bool(detailed),
                "total_references": len(references),
                "total_found": len(found),
                "filtered_out": 0 if detailed else len(found) - len(references),
                "references": references,
            }
        )
    except Exception as exc:  # noqa: BLE001
        return err(exc)


# ---------------------------------------------------------------------------
# Object properties (transactions, descriptions) and DDIC types
# ---------------------------------------------------------------------------


async def _object_properties(client: AdtClient, object_uri: str) -> str:
    return await _get_text(
        client,
        f"{ADT}/repository/informationsystem/objectproperties/values",
        params={"uri": object_uri, "facet": ["package", "appl"]},
    )


async def get_transaction(transaction_name: str, file_path: Optional[str] = None) -> ToolResult:
    """Package, description and type of a transaction code."""
    name = _require_str("transaction_name", transaction_name).upper()

    try:
        client = _make_client()
        xml_text = await _object_properties(
            client, f"{ADT}/vit/wb/object_type/trant/object_name/{name}"
        )
        obj = parse_object_properties(xml_text)["object"]
        if obj:
            payload: Dict[str, Any] = {
                "name": obj.get("name"),
                "objectType": "transaction",
                "description": obj.get("text"),
                "package": obj.get("package"),
                "type": obj.get("type"),
            }
        else:
            payload = {"raw": xml_text}
        result = json_result(payload)
        if file_path:
            write_result_to_file(result.to_dict(), file_path)
        return result
    except Exception as exc:  # noqa: BLE001
        return err(exc)


async def get_type_info(type_name: str) -> ToolResult:
    """Domain source, or the data element when no such domain exists."""
    name = encode_name(_require_str("type_name", type_name))

    try:
        client = _make_client()
        try:
            response = await client.request(
                client.url(f"{ADT}/ddic/domains/{name}/source/main"), "GET", timeout=30000
            )
        except (AdtError, httpx.HTTPError) as exc:
            logger.info("No domain %s (%s), trying data element", type_name, exc)
            response = await client.request(
                client.url(f"{ADT}/ddic/dataelements/{name}"), "GET", timeout=30000
            )
        return ok(response)
    except Exception as exc:  # noqa: BLE001
        return err(exc)


def _description_uri(object_type: str, object_name: str) -> str:
    kind = object_type.lower()
    if kind in ("enhancementspot", "enhancement_spot", "enhancement-spot", "enhs", "enho"):
        return f"{ADT}/enhancements/enhsxsb/{encode_name(object_name)}"
    if kind in ("enhancementimpl", "enhancement_impl", "enhancement-impl", "enhi"):
        return f"{ADT}/enhancements/enhoxhh/{encode_name(object_name)}"
    if kind == "function":
        group, _, function = object_name.partition("|")
        return (
            f"{ADT}/functions/groups/{encode_name(group)}"
            f"/fmodules/{encode_name(function)}/source/main"
        )
    segments = {
        "class": "oo/classes",
        "interface": "oo/interfaces",
        "program": "programs/programs",
        "include": "programs/includes",
        "functiongroup": "functions/groups",
        "package": "packages",
        "table": "ddic/tables",
        "tabl": "ddic/tables",
        "tabletype": "ddic/tabletypes",
        "tabletypes": "ddic/tabletypes",
        "bdef": "bo/behaviordefinitions",
    }
    segment = segments.get(kind, f"{kind}s")
    return f"{ADT}/{segment}/{encode_name(object_name)}"


async def _resolve_function_group(client: AdtClient, function_name: str) -> Dict[str, Any]:
    """Function group of a function module, found through quick search."""
    xml_text = await _get_text(
        client,
        f"{ADT}/repository/informationsystem/search",
        params={"operation": "quickSearch", "query": f"{function_name}*", "maxResults": 999},
    )
    for ref in parse_search_references(xml_text):
        if (ref.get("type") or "").upper() != "FUGR/FF":
            continue
        if (ref.get("name") or "").upper() != function_name.upper():
            continue
        parts = (ref.get("uri") or "").split("/")
        if "groups" in parts and parts.index("groups") + 1 < len(parts):
            return {
                "group": unquote(parts[parts.index("groups") + 1]),
                "name": function_name,
                "package": ref.get("packageName"),
                "description": ref.get("description"),
            }
    raise AdtError(f'Function module "{function_name}" not found via quick search.')


async def get_description(object_type: str, object_name: str) -> ToolResult:
    """Name, description, package and application component of an object.

    Function modules may be given as ``GROUP|FUNCTION``; a bare name is
    resolved to its group through quick search.
    """
    otype = _require_str("object_type", object_type)
    oname = _require_str("object_name", object_name)
    is_function = otype.lower() == "function"

    try:
        client = _make_client()
        function_meta: Optional[Dict[str, Any]] = None
        if is_function and "|" not in oname:
            function_meta = await _resolve_function_group(client, oname)
            oname = f"{function_meta['group']}|{function_meta['name']}"

        parsed = parse_object_properties(
            await _object_properties(client, _description_uri(otype, oname))
        )
        result: Dict[str, Any] = {}

        if is_function:
            for prop in parsed["properties"]:
                if prop.get("facet") == "FUNCTIONMODULE":
                    result.update(
                        name=prop.get("name"),
                        type="FUNCTIONMODULE",
                        description=prop.get("text") or prop.get("description"),
                    )
                elif prop.get("facet") == "PACKAGE":
                    result["package"] = prop.get("name")
            if "name" not in result:
                group, _, function = oname.partition("|")
                result = {"name": function, "group": group, "type": "FUNCTIONMODULE"}
                if function_meta:
                    result["package"] = function_meta["package"]
                    result["description"] = function_meta["description"]
        else:
            obj = parsed["object"]
            if obj:
                result = {
                    "name": obj.get("name"),
                    "type": obj.get("type"),
                    "description": obj.get("text"),
                    "package": obj.get("package"),
                }
            for prop in parsed["properties"]:
                if prop.get("facet") == "PACKAGE":
                    result["package"] = prop.get("name")
                    result["package_text"] = prop.get("text")
                elif prop.get("facet") == "APPL":
                    result["application"] = prop.get("name")
                    result["application_text"] = prop.get("text")

        return json_result(result or parsed)
    except Exception as exc:  # noqa: BLE001
        return err(exc)


# ---------------------------------------------------------------------------
# Enhancement spots and implementations
# ---------------------------------------------------------------------------


ENHANCEMENTS_ACCEPT = "application/vnd.sap.adt.enhancements.v1+xml"


async def get_enhancement_spot(enhancement_spot: str) -> ToolResult:
    """Metadata of an enhancement spot, whether or not it has implementations."""
    spot = _require_str("enhancement_spot", enhancement_spot)

    try:
        client = _make_client()
        raw = await _get_text(
            client,
            f"{ADT}/enhancements/enhsxsb/{encode_name(spot)}",
            headers={"Accept": ENHANCEMENTS_ACCEPT},
        )
        return json_result(
            {
                "enhancement_spot": spot,
                "metadata": parse_enhancement_spot(raw),
                "raw_xml": raw,
            }
        )
    except Exception as exc:  # noqa: BLE001
        return err(exc)


async def get_enhancement_impl(
    enhancement_spot: str,
    enhancement_name: str,
    file_path: Optional[str] = None,
) -> ToolResult:
    """Source of an enhancement implementation.

    When the implementation cannot be read, the spot's own metadata is
    returned with ``status: not_found`` instead.
    """
    spot = _require_str("enhancement_spot", enhancement_spot)
    ename = _require_str("enhancement_name", enhancement_name)

    try:
        client = _make_client()
        raw = ""
        try:
            raw = await _get_text(
                client,
                f"{ADT}/enhancements/{encode_name(spot)}/{encode_name(ename)}/source/main",
            )
        except AdtRequestError as exc:
            logger.warning("Enhancement %s not readable in spot %s: %s", ename, spot, exc)

        if raw:
            payload: Dict[str, Any] = {
                "enhancement_spot": spot,
                "enhancement_name": ename,
                "source_code": _enhancement_source(raw),
                "raw_xml": raw,
            }
        else:
            spot_xml = await _get_text(
                client,
                f"{ADT}/enhancements/{encode_name(spot)}",
                headers={"Accept": ENHANCEMENTS_ACCEPT},
            )
            spot_metadata: Dict[str, Any] = {}
            description = find_element_text(spot_xml, "description")
            if description:
                spot_metadata["description"] = description
            payload = {
                "enhancement_spot": spot,
                "enhancement_name": ename,
                "status": "not_found",
                "message": f"Enhancement implementation {ename} not found in spot {spot}.",
                "spot_metadata": spot_metadata,
                "raw_xml": spot_xml,
            }

        result = json_result(payload)
        if file_path:
            write_result_to_file(result.to_dict(), file_path)
        return result
    except Exception as exc:  # noqa: BLE001
        return err(exc)


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


def _collect_connection_info(cfg: SapConfig) -> Dict[str, Any]:
    """Redacted snapshot of the connection configuration."""
    parsed = urlparse(cfg.url)
    return {
        "url": cfg.base_url,
        "host": parsed.hostname,
        "client": cfg.client,
        "auth_type": cfg.auth_type,
        "credentials": {
            "username_configured": bool(cfg.username),
            "password_configured": bool(cfg.password),
            "jwt_token_configured": bool(cfg.jwt_token),
        },
        "verify_tls": bool(cfg.verify_tls),
        "timeouts_ms": {
            "default": cfg.timeout_default_ms,
            "csrf": cfg.timeout_csrf_ms,
            "long": cfg.timeout_long_ms,
        },
    }


async def diagnostics() -> Dict[str, Any]:
    """Config snapshot plus a live CSRF handshake against the discovery endpoint."""
    started = time.time()
    checks: List[Dict[str, Any]] = []

    t0 = time.time()
    try:
        client = _make_client()
        cfg = client.config
    except ConfigError as exc:
        checks.append(
            {
                "name": "client_init",
                "ok": False,
                "error": _make_error("CONFIG_ERROR", str(exc)),
                "elapsed_ms": int((time.time() - t0) * 1000),
            }
        )
        return {
            "ok": False,
            "config": None,
            "checks": checks,
            "meta": {"elapsed_ms": int((time.time() - started) * 1000)},
        }
    checks.append(
        {"name": "client_init", "ok": True, "error": None, "elapsed_ms": int((time.time() - t0) * 1000)}
    )

    overall_ok = True
    t0 = time.time()
    try:
        await client.csrf.fetch_token(client.base_url, retry_count=1)
        checks.append(
            {"name": "csrf_token", "ok": True, "error": None, "elapsed_ms": int((time.time() - t0) * 1000)}
        )
    except Exception as exc:  # noqa: BLE001
        overall_ok = False
        checks.append(
            {
                "name": "csrf_token",
                "ok": False,
                "error": _make_error("BACKEND_ERROR", error_message(exc)),
                "elapsed_ms": int((time.time() - t0) * 1000),
            }
        )

    cache = _get_cache(cfg)
    cache.purge_expired()

    return {
        "ok": overall_ok,
        "config": _collect_connection_info(cfg),
        "checks": checks,
        "meta": {
            "elapsed_ms": int((time.time() - started) * 1000),
            "csrf_state": client.csrf.state,
            "cache": cache.stats(),
        },
    }


# ---------------------------------------------------------------------------
# MCP tool registration
# ---------------------------------------------------------------------------


def register_tools(server: Any) -> None:
    """Register MCP tools on an MCP Server-like instance."""
    if server is None or not hasattr(server, "tool"):
        raise TypeError(
            "register_tools(server) expects an MCP Server-like object that exposes a .tool() decorator."
        )

    @server.tool(name="GetProgram", description="Retrieve ABAP program source code.")
    async def mcp_get_program(program_name: str):
        return (await get_program(program_name)).to_call_tool_result()

    @server.tool(name="GetClass", description="Retrieve ABAP class source code.")
    async def mcp_get_class(class_name: str):
        return (await get_class(class_name)).to_call_tool_result()

    @server.tool(name="GetInterface", description="Retrieve ABAP interface source code.")
    async def mcp_get_interface(interface_name: str):
        return (await get_interface(interface_name)).to_call_tool_result()

    @server.tool(name="GetInclude", description="Retrieve source code of a specific ABAP include.")
    async def mcp_get_include(include_name: str):
        return (await get_include(include_name)).to_call_tool_result()

    @server.tool(name="GetFunctionGroup", description="Retrieve ABAP function group source code.")
    async def mcp_get_function_group(function_group: str):
        return (await get_function_group(function_group)).to_call_tool_result()

    @server.tool(name="GetFunction", description="Retrieve ABAP function module source code.")
    async def mcp_get_function(function_name: str, function_group: str):
        return (await get_function(function_name, function_group)).to_call_tool_result()

    @server.tool(name="GetTable", description="Retrieve ABAP table definition.")
    async def mcp_get_table(table_name: str):
        return (await get_table(table_name)).to_call_tool_result()

    @server.tool(name="GetStructure", description="Retrieve ABAP structure definition.")
    async def mcp_get_structure(structure_name: str):
        return (await get_structure(structure_name)).to_call_tool_result()

    @server.tool(name="GetPackage", description="List the objects of an ABAP package.")
    async def mcp_get_package(package_name: str):
        return (await get_package(package_name)).to_call_tool_result()

    @server.tool(
        name="SearchObject",
        description="Search ABAP repository objects by name prefix (ADT quick search).",
    )
    async def mcp_search_object(query: str, maxResults: int = 100, filePath: Optional[str] = None):
        return (await search_object(query, max_results=maxResults, file_path=filePath)).to_call_tool_result()

    @server.tool(
        name="GetIncludesList",
        description="Recursively discover and list ALL include files within an ABAP program or include.",
    )
    async def mcp_get_includes_list(
        object_name: str,
        object_type: str,
        detailed: bool = False,
        timeout: Optional[int] = None,
        max_depth: Optional[int] = None,
        filePath: Optional[str] = None,
    ):
        return (
            await get_includes_list(
                object_name,
                object_type,
                detailed=detailed,
                timeout=timeout,
                max_depth=max_depth,
                file_path=filePath,
            )
        ).to_call_tool_result()

    @server.tool(
        name="GetObjectsList",
        description=(
            "Recursively retrieves all valid ABAP repository objects for a given parent "
            "(program, function group, etc.) including nested includes."
        ),
    )
    async def mcp_get_objects_list(
        parent_name: str,
        parent_tech_name: str,
        parent_type: str,
        with_short_descriptions: bool = True,
        filePath: Optional[str] = None,
    ):
        return (
            await get_objects_list(
                parent_name,
                parent_tech_name,
                parent_type,
                with_short_descriptions=with_short_descriptions,
                file_path=filePath,
            )
        ).to_call_tool_result()

    @server.tool(
        name="GetObjectInfo",
        description=(
            "Return ABAP object tree: root, group nodes and terminal leaves up to maxDepth. "
            "Each node has node_type: root, point, end."
        ),
    )
    async def mcp_get_object_info(
        parent_type: str, parent_name: str, maxDepth: int = 2, enrich: bool = True
    ):
        return (
            await get_object_info(parent_type, parent_name, max_depth=maxDepth, enrich=enrich)
        ).to_call_tool_result()

    @server.tool(
        name="GetObjectStructure",
        description="Retrieve ADT object structure as a compact tree.",
    )
    async def mcp_get_object_structure(objecttype: str, objectname: str):
        return (await get_object_structure(objecttype, objectname)).to_call_tool_result()

    @server.tool(
        name="GetEnhancements",
        description=(
            "Retrieve enhancement implementations for an ABAP program or include. "
            "With include_nested=true, also searches every include of the object."
        ),
    )
    async def mcp_get_enhancements(
        object_name: str,
        program: Optional[str] = None,
        include_nested: bool = False,
        timeout: Optional[int] = None,
    ):
        return (
            await get_enhancements(
                object_name, program=program, include_nested=include_nested, timeout=timeout
            )
        ).to_call_tool_result()

    @server.tool(
        name="GetEnhancementByName",
        description="Retrieve the source code of one enhancement implementation.",
    )
    async def mcp_get_enhancement_by_name(enhancement_spot: str, enhancement_name: str):
        return (await get_enhancement_by_name(enhancement_spot, enhancement_name)).to_call_tool_result()

    @server.tool(
        name="GetProgFullCode",
        description=(
            "Returns the full code for a program or function group, including all includes, "
            "in tree traversal order."
        ),
    )
    async def mcp_get_prog_full_code(name: str, type: str):  # noqa: A002
        return (await get_prog_full_code(name, type)).to_call_tool_result()

    @server.tool(
        name="GetObjectNodeFromCache",
        description=(
            "Returns a node from the in-memory objects list cache by OBJECT_TYPE, OBJECT_NAME, "
            "TECH_NAME, and expands OBJECT_URI if present."
        ),
    )
    async def mcp_get_object_node_from_cache(object_type: str, object_name: str, tech_name: str):
        return (await get_object_node_from_cache(object_type, object_name, tech_name)).to_call_tool_result()

    @server.tool(
        name="GetObjectsByType",
        description="Retrieves all ABAP objects of a specific type under a given node.",
    )
    async def mcp_get_objects_by_type(
        parent_name: str,
        parent_tech_name: str,
        parent_type: str,
        node_id: str,
        format: str = "parsed",  # noqa: A002
        with_short_descriptions: bool = True,
    ):
        return (
            await get_objects_by_type(
                parent_name,
                parent_tech_name,
                parent_type,
                node_id,
                format=format,
                with_short_descriptions=with_short_descriptions,
            )
        ).to_call_tool_result()

    @server.tool(
        name="GetRelatedObjectTypes",
        description=(
            "List the object type categories (with node ids) available under a parent; "
            "use GetObjectsByType with a node id to list the objects of one type."
        ),
    )
    async def mcp_get_related_object_types(
        parent_name: str,
        parent_tech_name: str,
        parent_type: str,
        object_filter: Optional[str] = None,
        with_short_descriptions: bool = True,
    ):
        return (
            await get_related_object_types(
                parent_name,
                parent_tech_name,
                parent_type,
                object_filter=object_filter,
                with_short_descriptions=with_short_descriptions,
            )
        ).to_call_tool_result()

    @server.tool(name="GetTableContents", description="Retrieve contents of an ABAP table.")
    async def mcp_get_table_contents(
        table_name: str, max_rows: int = 100, filePath: Optional[str] = None
    ):
        return (
            await get_table_contents(table_name, max_rows=max_rows, file_path=filePath)
        ).to_call_tool_result()

    @server.tool(
        name="GetSqlQuery",
        description="Execute a freestyle SQL SELECT through the ADT data preview.",
    )
    async def mcp_get_sql_query(
        sql_query: str, row_number: int = 100, filePath: Optional[str] = None
    ):
        return (
            await get_sql_query(sql_query, row_number=row_number, file_path=filePath)
        ).to_call_tool_result()

    @server.tool(
        name="GetWhereUsed",
        description=(
            "Where-used list of an ABAP object (class, program, include, function, interface, "
            "package, table, bdef). detailed=true returns every reference."
        ),
    )
    async def mcp_get_where_used(object_name: str, object_type: str, detailed: bool = False):
        return (await get_where_used(object_name, object_type, detailed=detailed)).to_call_tool_result()

    @server.tool(name="GetTransaction", description="Retrieve ABAP transaction details.")
    async def mcp_get_transaction(transaction_name: str, filePath: Optional[str] = None):
        return (await get_transaction(transaction_name, file_path=filePath)).to_call_tool_result()

    @server.tool(name="GetTypeInfo", description="Retrieve ABAP type information.")
    async def mcp_get_type_info(type_name: str):
        return (await get_type_info(type_name)).to_call_tool_result()

    @server.tool(
        name="GetDescription",
        description="Retrieve description, package and application component of an ABAP object.",
    )
    async def mcp_get_description(object_type: str, object_name: str):
        return (await get_description(object_type, object_name)).to_call_tool_result()

    @server.tool(
        name="GetEnhancementSpot",
        description="Retrieve metadata and BAdI definitions of an enhancement spot.",
    )
    async def mcp_get_enhancement_spot(enhancement_spot: str):
        return (await get_enhancement_spot(enhancement_spot)).to_call_tool_result()

    @server.tool(
        name="GetEnhancementImpl",
        description=(
            "Retrieve the source code of an enhancement implementation; falls back to the "
            "spot metadata when the implementation is not found."
        ),
    )
    async def mcp_get_enhancement_impl(
        enhancement_spot: str, enhancement_name: str, filePath: Optional[str] = None
    ):
        return (
            await get_enhancement_impl(enhancement_spot, enhancement_name, file_path=filePath)
        ).to_call_tool_result()

    @server.tool(
        name="Diagnostics",
        description="Run health checks against the configured SAP system (config, CSRF handshake, cache).",
    )
    async def mcp_diagnostics():
        return json_result(await diagnostics()).to_call_tool_result()
