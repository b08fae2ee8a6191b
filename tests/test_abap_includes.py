# ABAP ADT MCP Server
# File: tests/test_abap_includes.py
# Version: v1

from __future__ import annotations

from mcp_abap_adt.abap_includes import find_include_names, strip_comments


def test_simple_includes_in_order() -> None:
    source = """REPORT zmain.
INCLUDE zmain_top.
include zmain_f01 .
START-OF-SELECTION.
  PERFORM run.
INCLUDE zmain_top.
"""
    assert find_include_names(source) == ["ZMAIN_TOP", "ZMAIN_F01"]


def test_chained_include_statement() -> None:
    source = "INCLUDE: zinc_a,\n         zinc_b,\n         zinc_c."
    assert find_include_names(source) == ["ZINC_A", "ZINC_B", "ZINC_C"]


def test_if_found_suffix_is_ignored() -> None:
    assert find_include_names("INCLUDE mv45afzz IF FOUND.") == ["MV45AFZZ"]


def test_type_and_structure_includes_are_not_program_includes() -> None:
    source = """TYPES BEGIN OF ty_line.
  INCLUDE TYPE ty_base.
  INCLUDE STRUCTURE mara.
TYPES END OF ty_line.
INCLUDE zreal."""
    assert find_include_names(source) == ["ZREAL"]


def test_comments_are_skipped() -> None:
    source = """* INCLUDE zcommented_out.
INCLUDE zlive. " INCLUDE zin_comment.
  WRITE 'a "quote" inside'. INCLUDE zafter_literal.
"""
    assert find_include_names(source) == ["ZLIVE", "ZAFTER_LITERAL"]


def test_dots_inside_literals_do_not_split_statements() -> None:
    source = """WRITE 'x. INCLUDE zfake'.
MESSAGE `done. INCLUDE ztemplate` TYPE 'I'.
INCLUDE zreal."""
    assert find_include_names(source) == ["ZREAL"]


def test_namespaced_include() -> None:
    assert find_include_names("INCLUDE /cby/mmsklcard_top.") == ["/CBY/MMSKLCARD_TOP"]


def test_no_includes() -> None:
    assert find_include_names("REPORT zempty.\nWRITE 'hello'.") == []


def test_strip_comments() -> None:
    assert strip_comments("* full line\nWRITE x. \" tail") == "WRITE x. "
