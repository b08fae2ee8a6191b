# ABAP ADT MCP Server
# File: walker.py
# Version: v1

"""Cycle-safe, depth-bounded traversal over ADT object graphs.

The same walk serves include discovery (source text scanned for ``INCLUDE``
statements), full object listing (nodestructure category nodes) and the
include flattening behind nested enhancement discovery. Each use site plugs
in how to fetch a node, how to read its children and which children to
expand further.

Children are expanded one at a time, depth-first. A failure while fetching
or parsing any node below the root only prunes that branch; a failure on
the root itself propagates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Iterable, List, Optional, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class WalkEntry(Generic[T]):
    """A discovered item, where it was found and how deep."""

    item: T
    parent_key: str
    depth: int


@dataclass
class TraversalState(Generic[T]):
    """Per-walk bookkeeping; discarded when the walk returns."""

    visited: Set[str] = field(default_factory=set)
    accumulated: List[WalkEntry[T]] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)


class TreeWalker(Generic[T]):
    """Generic walker.

    Args:
        fetch: loads the payload (XML, source text, ...) for a node.
        extract_children: turns ``(node, payload)`` into child items.
        key: normalized identity of an item, used for the visited set.
        should_descend: whether a child gets expanded; defaults to all.
        max_depth: maximum number of edges between the root and any returned
            item; ``None`` means unbounded.
        drop_failed: leave items whose own fetch failed out of the result
            (they stay visited, so they are not retried).
    """

    def __init__(
        self,
        fetch: Callable[[T], Awaitable[Any]],
        extract_children: Callable[[T, Any], Iterable[T]],
        key: Callable[[T], str],
        should_descend: Optional[Callable[[T], bool]] = None,
        max_depth: Optional[int] = None,
        drop_failed: bool = False,
    ) -> None:
        self.fetch = fetch
        self.extract_children = extract_children
        self.key = key
        self.should_descend = should_descend or (lambda _child: True)
        self.max_depth = max_depth
        self.drop_failed = drop_failed
        self.last_failures: List[str] = []

    async def walk(self, root: T) -> List[T]:
        """Items reachable from ``root`` (root excluded), deduplicated, pre-order."""
        return [entry.item for entry in await self.walk_entries(root)]

    async def walk_entries(self, root: T) -> List[WalkEntry[T]]:
        state: TraversalState[T] = TraversalState()
        state.visited.add(self.key(root))
        try:
            await self._expand(root, 0, state)
        finally:
            self.last_failures = list(state.failures)
        return state.accumulated

    async def _expand(self, node: T, depth: int, state: TraversalState[T]) -> None:
        if self.max_depth is not None and depth >= self.max_depth:
            return

        node_key = self.key(node)
        try:
            payload = await self.fetch(node)
            children = list(self.extract_children(node, payload))
        except Exception as exc:  # noqa: BLE001
            if depth == 0:
                raise
            logger.warning("Skipping branch %s: %s", node_key, exc)
            state.failures.append(node_key)
            if self.drop_failed and state.accumulated:
                # The failed node is always the newest entry.
                if self.key(state.accumulated[-1].item) == node_key:
                    state.accumulated.pop()
            return

        for child in children:
            child_key = self.key(child)
            if child_key in state.visited:
                continue
            # Mark before descending so cycles (A -> B -> A) stop here.
            state.visited.add(child_key)
            state.accumulated.append(WalkEntry(item=child, parent_key=node_key, depth=depth + 1))
            if self.should_descend(child):
                await self._expand(child, depth + 1, state)
