# ABAP ADT MCP Server
# File: abap_includes.py
# Version: v1

"""Find ``INCLUDE`` statements in ABAP source text.

Recognized forms::

    INCLUDE zfoo.
    INCLUDE zfoo IF FOUND.
    INCLUDE: zfoo, zbar.

``INCLUDE TYPE`` / ``INCLUDE STRUCTURE`` inside data declarations are not
program includes and are ignored.
"""

from __future__ import annotations

import re
from typing import List

_INCLUDE_STATEMENT = re.compile(r"^INCLUDE\b\s*(:?)\s*(.*)$", re.IGNORECASE | re.DOTALL)
_NOT_PROGRAM_INCLUDE = {"TYPE", "STRUCTURE"}
_NAME = re.compile(r"^[A-Za-z0-9_/<>%$-]+$")


def strip_comments(source: str) -> str:
    """Drop ``*`` full-line comments and ``"`` end-of-line comments."""
    lines: List[str] = []
    for line in source.splitlines():
        if line.startswith("*"):
            continue
        lines.append(_strip_trailing_comment(line))
    return "\n".join(lines)


def _strip_trailing_comment(line: str) -> str:
    # A '"' inside a '...' or `...` literal does not start a comment.
    quote = None
    for index, ch in enumerate(line):
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", "`"):
            quote = ch
        elif ch == '"':
            return line[:index]
    return line


def _split_statements(source: str) -> List[str]:
    # A '.' inside a '...' or `...` literal does not end a statement.
    statements: List[str] = []
    start = 0
    quote = None
    for index, ch in enumerate(source):
        if quote:
            if ch == quote or ch == "\n":
                quote = None
        elif ch in ("'", "`"):
            quote = ch
        elif ch == ".":
            statements.append(source[start:index])
            start = index + 1
    statements.append(source[start:])
    return statements


def find_include_names(source: str) -> List[str]:
    """Upper-cased include names in first-occurrence order, without duplicates."""
    names: List[str] = []
    seen = set()

    for statement in _split_statements(strip_comments(source)):
        match = _INCLUDE_STATEMENT.match(statement.strip())
        if not match:
            continue
        chained, rest = match.group(1), match.group(2)
        operands = rest.split(",") if chained else [rest]

        for operand in operands:
            words = operand.split()
            if not words:
                continue
            if words[0].upper() in _NOT_PROGRAM_INCLUDE:
                continue
            name = words[0].strip("'`").upper()
            if not _NAME.match(name) or name in seen:
                continue
            seen.add(name)
            names.append(name)

    return names
