# ABAP ADT MCP Server
# File: adt_xml.py
# Version: v1

"""Mapping of ADT XML payloads onto plain Python objects.

ADT replies use SAP-proprietary namespaces and no published schema. Only a
small set of tags is consumed, matched by *local* name so namespace prefixes
do not matter, and every field is optional.

All parsers raise ``xml.etree.ElementTree.ParseError`` on malformed XML.
"""

from __future__ import annotations

import base64
import binascii
import xml.etree.ElementTree as ET
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import unquote

from .models import ObjectTypeInfo, RepositoryNode


def _local(name: str) -> str:
    """Strip an ElementTree ``{namespace}`` prefix."""
    return name.rsplit("}", 1)[-1]


def _iter_local(root: ET.Element, local_name: str) -> Iterator[ET.Element]:
    for elem in root.iter():
        if _local(elem.tag) == local_name:
            yield elem


def _child_texts(elem: ET.Element) -> Dict[str, Optional[str]]:
    out: Dict[str, Optional[str]] = {}
    for child in elem:
        text = (child.text or "").strip()
        out[_local(child.tag)] = text or None
    return out


def _attrs(elem: ET.Element) -> Dict[str, str]:
    return {_local(k): v for k, v in elem.attrib.items()}


def _decode_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return unquote(value)


# ---------------------------------------------------------------------------
# repository/nodestructure
# ---------------------------------------------------------------------------


def parse_repository_nodes(xml_text: str) -> List[RepositoryNode]:
    """All ``SEU_ADT_REPOSITORY_OBJ_NODE`` entries, in document order."""
    root = ET.fromstring(xml_text)
    nodes: List[RepositoryNode] = []
    for elem in _iter_local(root, "SEU_ADT_REPOSITORY_OBJ_NODE"):
        fields = _child_texts(elem)
        nodes.append(
            RepositoryNode(
                object_type=fields.get("OBJECT_TYPE"),
                object_name=_decode_name(fields.get("OBJECT_NAME")),
                tech_name=_decode_name(fields.get("TECH_NAME")),
                object_uri=fields.get("OBJECT_URI"),
                node_id=fields.get("NODE_ID"),
                parent_node_id=fields.get("PARENT_NODE_ID"),
                description=fields.get("DESCRIPTION"),
                expandable=(fields.get("EXPANDABLE") or "").upper() == "X",
            )
        )
    return nodes


def parse_object_type_infos(xml_text: str) -> List[ObjectTypeInfo]:
    """All ``SEU_ADT_OBJECT_TYPE_INFO`` category entries that carry a node id."""
    root = ET.fromstring(xml_text)
    infos: List[ObjectTypeInfo] = []
    for elem in _iter_local(root, "SEU_ADT_OBJECT_TYPE_INFO"):
        fields = _child_texts(elem)
        if not fields.get("NODE_ID"):
            continue
        infos.append(
            ObjectTypeInfo(
                object_type=fields.get("OBJECT_TYPE"),
                node_id=fields.get("NODE_ID"),
                label=fields.get("OBJECT_TYPE_LABEL"),
                category=fields.get("CATEGORY_TAG"),
            )
        )
    return infos


# ---------------------------------------------------------------------------
# Program / include metadata
# ---------------------------------------------------------------------------


def parse_include_context(xml_text: str) -> Optional[str]:
    """URI of the main program an include belongs to (``contextRef/@uri``)."""
    root = ET.fromstring(xml_text)
    for elem in _iter_local(root, "contextRef"):
        uri = _attrs(elem).get("uri")
        if uri:
            return uri
    return None


# ---------------------------------------------------------------------------
# Enhancements
# ---------------------------------------------------------------------------


def _decode_source(text: str) -> str:
    """Enhancement sources are usually base64; fall back to the raw text."""
    compact = "".join(text.split())
    if not compact:
        return ""
    try:
        return base64.b64decode(compact, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return text


def _named_near(
    source: ET.Element, parents: Dict[ET.Element, ET.Element]
) -> Dict[str, str]:
    """Attributes of the closest element carrying a ``name`` attribute.

    Looks through the source's parent element (sibling metadata elements),
    then at the ancestors themselves. Other elements' subtrees are not searched.
    """
    parent = parents.get(source)
    if parent is None:
        return {}
    for elem in parent.iter():
        attrs = _attrs(elem)
        if attrs.get("name"):
            return attrs
    current = parents.get(parent)
    while current is not None:
        attrs = _attrs(current)
        if attrs.get("name"):
            return attrs
        current = parents.get(current)
    return {}


def parse_enhancements(xml_text: str) -> List[Dict[str, Any]]:
    """Enhancement implementations found in an ``enhancements/elements`` reply."""
    root = ET.fromstring(xml_text)
    parents = {child: parent for parent in root.iter() for child in parent}

    enhancements: List[Dict[str, Any]] = []
    for index, source in enumerate(_iter_local(root, "source"), start=1):
        attrs = _named_near(source, parents)
        enhancements.append(
            {
                "name": attrs.get("name") or f"enhancement_{index}",
                "type": attrs.get("type"),
                "description": attrs.get("description"),
                "sourceCode": _decode_source(source.text or ""),
            }
        )
    return enhancements


# ---------------------------------------------------------------------------
# Repository information system
# ---------------------------------------------------------------------------


def parse_search_references(xml_text: str) -> List[Dict[str, str]]:
    """``objectReference`` entries of a quickSearch reply, attributes by local name."""
    root = ET.fromstring(xml_text)
    return [_attrs(elem) for elem in _iter_local(root, "objectReference")]


def parse_object_structure_nodes(xml_text: str) -> List[Dict[str, Optional[str]]]:
    """Flat ``node`` list of a ``repository/objectstructure`` reply.

    Fields may come as attributes or as child elements; both are accepted.
    """
    root = ET.fromstring(xml_text)
    nodes: List[Dict[str, Optional[str]]] = []
    for elem in _iter_local(root, "node"):
        fields: Dict[str, Optional[str]] = dict(_attrs(elem))
        for key, value in _child_texts(elem).items():
            fields.setdefault(key, value)
        nodes.append(
            {
                "nodeid": fields.get("nodeid"),
                "parentid": fields.get("parentid"),
                "objecttype": fields.get("objecttype"),
                "objectname": _decode_name(fields.get("objectname")),
            }
        )
    return nodes


def parse_usage_references(xml_text: str) -> List[Dict[str, Any]]:
    """``referencedObject`` entries of a ``usageReferences`` reply.

    Only fields present in the reply are set; ``isResult`` and
    ``canHaveChildren`` become booleans.
    """
    root = ET.fromstring(xml_text)
    references: List[Dict[str, Any]] = []
    for elem in _iter_local(root, "referencedObject"):
        attrs = _attrs(elem)
        adt_object = next(_iter_local(elem, "adtObject"), None)
        names = _attrs(adt_object) if adt_object is not None else {}
        reference: Dict[str, Any] = {
            "name": names.get("name", ""),
            "type": names.get("type", ""),
            "uri": attrs.get("uri", ""),
        }
        if attrs.get("parentUri"):
            reference["parentUri"] = attrs["parentUri"]
        for flag in ("isResult", "canHaveChildren"):
            if flag in attrs:
                reference[flag] = attrs[flag] == "true"
        if attrs.get("usageInformation"):
            reference["usageInformation"] = attrs["usageInformation"]
        identifier = next(_iter_local(elem, "objectIdentifier"), None)
        if identifier is not None and (identifier.text or "").strip():
            reference["objectIdentifier"] = identifier.text.strip()
        references.append(reference)
    return references


def parse_object_properties(xml_text: str) -> Dict[str, Any]:
    """``objectproperties/values`` reply: the ``object`` and its ``property`` facets."""
    root = ET.fromstring(xml_text)
    obj = next(_iter_local(root, "object"), None)
    return {
        "object": _attrs(obj) if obj is not None else None,
        "properties": [_attrs(elem) for elem in _iter_local(root, "property")],
    }


# ---------------------------------------------------------------------------
# Enhancement spots and DDIC metadata
# ---------------------------------------------------------------------------


def parse_enhancement_spot(xml_text: str) -> Dict[str, Any]:
    """Metadata of an enhancement spot: name, BAdI definitions and links."""
    root = ET.fromstring(xml_text)
    root_attrs = _attrs(root)
    metadata: Dict[str, Any] = {}
    for field in ("name", "description", "type"):
        if root_attrs.get(field):
            metadata[field] = root_attrs[field]

    package = next(_iter_local(root, "packageRef"), None)
    if package is not None and _attrs(package).get("name"):
        metadata["package"] = _attrs(package)["name"]

    interface = next(_iter_local(root, "interface"), None)
    if interface is not None and _attrs(interface).get("name"):
        metadata["interface"] = _attrs(interface)["name"]

    badis = []
    for badi in _iter_local(root, "badiDefinition"):
        badi_interface = next(_iter_local(badi, "interface"), None)
        badis.append(
            {
                "name": _attrs(badi).get("name"),
                "shorttext": _attrs(badi).get("shorttext"),
                "interface": _attrs(badi_interface).get("name") if badi_interface is not None else None,
            }
        )
    if badis:
        metadata["badi_definitions"] = badis

    links = [
        {key: _attrs(link).get(key) for key in ("href", "rel", "type", "title")}
        for link in _iter_local(root, "link")
    ]
    if links:
        metadata["links"] = links
    return metadata


def parse_field_names(xml_text: str) -> List[str]:
    """Names of the ``field`` elements of a DDIC table metadata reply."""
    root = ET.fromstring(xml_text)
    return [
        _attrs(elem)["name"] for elem in _iter_local(root, "field") if _attrs(elem).get("name")
    ]


def find_element_text(xml_text: str, local_name: str) -> Optional[str]:
    """Text of the first element with the given local name, if any."""
    root = ET.fromstring(xml_text)
    elem = next(_iter_local(root, local_name), None)
    if elem is None:
        return None
    return (elem.text or "").strip() or None


# ---------------------------------------------------------------------------
# Data preview
# ---------------------------------------------------------------------------


def _number(text: Optional[str], cast: Any) -> Any:
    try:
        return cast((text or "").strip())
    except ValueError:
        return 0


def parse_data_preview(xml_text: str) -> Dict[str, Any]:
    """Column-wise ``dataPreview`` reply turned into row dicts.

    Column ``i`` takes its values from the ``i``-th ``columns`` section;
    empty cells become ``None``.
    """
    root = ET.fromstring(xml_text)
    total_rows = next(_iter_local(root, "totalRows"), None)
    query_time = next(_iter_local(root, "queryExecutionTime"), None)

    columns: List[Dict[str, Any]] = []
    for meta in _iter_local(root, "metadata"):
        attrs = _attrs(meta)
        if not attrs.get("name"):
            continue
        length = attrs.get("length")
        columns.append(
            {
                "name": attrs["name"],
                "type": attrs.get("type", "UNKNOWN"),
                "description": attrs.get("description", ""),
                "length": int(length) if length and length.isdigit() else None,
            }
        )

    values: Dict[str, List[Optional[str]]] = {}
    for column, section in zip(columns, _iter_local(root, "columns")):
        values[column["name"]] = [(data.text or None) for data in _iter_local(section, "data")]

    row_count = max((len(v) for v in values.values()), default=0)
    rows = []
    for index in range(row_count):
        row: Dict[str, Optional[str]] = {}
        for column in columns:
            cells = values.get(column["name"], [])
            row[column["name"]] = cells[index] if index < len(cells) else None
        rows.append(row)

    return {
        "total_rows": _number(total_rows.text if total_rows is not None else None, int),
        "execution_time": _number(query_time.text if query_time is not None else None, float),
        "columns": columns,
        "rows": rows,
    }
