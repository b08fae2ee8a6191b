# ABAP ADT MCP Server
# File: tests/test_cache.py
# Version: v1

from __future__ import annotations

from mcp_abap_adt import cache as cache_module
from mcp_abap_adt.cache import ObjectsListCache


def _payload(*names: str):
    return {
        "objects": [
            {"OBJECT_TYPE": "PROG/I", "OBJECT_NAME": n, "TECH_NAME": n, "OBJECT_URI": f"/u/{n}"}
            for n in names
        ]
    }


def test_set_and_node_lookup() -> None:
    cache = ObjectsListCache(ttl_seconds=60, max_entries=4)
    key = ObjectsListCache.make_key("prog/p", "zmain")
    cache.set(key, _payload("ZINC1"))

    assert key == ("PROG/P", "ZMAIN")
    assert cache.stats()["sets"] == 1
    assert cache.find_node("prog/i", "zinc1", "zinc1")["OBJECT_URI"] == "/u/ZINC1"
    assert cache.find_node("PROG/I", "ZINC1", "OTHER") is None


def test_most_recent_entry_wins() -> None:
    cache = ObjectsListCache(ttl_seconds=60, max_entries=4)
    cache.set(("PROG/P", "A"), _payload("ZINC1"))
    newer = _payload("ZINC1")
    newer["objects"][0]["OBJECT_URI"] = "/newer"
    cache.set(("PROG/P", "B"), newer)

    assert cache.find_node("PROG/I", "ZINC1", "ZINC1")["OBJECT_URI"] == "/newer"


def test_update_node_in_place() -> None:
    cache = ObjectsListCache(ttl_seconds=60, max_entries=4)
    cache.set(("PROG/P", "A"), _payload("ZINC1"))

    assert cache.update_node("PROG/I", "ZINC1", "ZINC1", {"object_uri_response": "<x/>"}) is True
    assert cache.find_node("PROG/I", "ZINC1", "ZINC1")["object_uri_response"] == "<x/>"
    assert cache.update_node("PROG/I", "NOPE", "NOPE", {}) is False


def test_eviction_beyond_max_entries() -> None:
    cache = ObjectsListCache(ttl_seconds=60, max_entries=2)
    for name in ("A", "B", "C"):
        cache.set(("PROG/P", name), _payload(name))

    assert cache.find_node("PROG/I", "A", "A") is None
    assert cache.find_node("PROG/I", "C", "C") is not None
    assert cache.stats()["evictions"] == 1
    assert cache.stats()["size"] == 2


def test_expiry(monkeypatch) -> None:
    now = [1000.0]
    monkeypatch.setattr(cache_module.time, "time", lambda: now[0])
    cache = ObjectsListCache(ttl_seconds=10, max_entries=4)
    cache.set(("PROG/P", "A"), _payload("ZINC1"))

    now[0] += 11

    assert cache.find_node("PROG/I", "ZINC1", "ZINC1") is None
    assert cache.stats()["expirations"] == 1


def test_disabled_cache() -> None:
    cache = ObjectsListCache(ttl_seconds=0, max_entries=4)
    cache.set(("PROG/P", "A"), _payload("ZINC1"))

    assert cache.enabled is False
    assert cache.stats()["size"] == 0
