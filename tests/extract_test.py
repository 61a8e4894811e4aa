"""Tests for slicing declarations out of a declaration file."""

from __future__ import annotations

from sdd_extract import extract_declaration_block

DTS = """import { X } from "./x";

/** Options for the thing. */
export interface Options<T = {}> extends Base<T> {
  /** @default "a" */
  mode: "a" | "}";
  nested: { a: number };
}

// not a doc comment
export declare type Mode = {
  kind: "x;y";
} | string;

type Fn<T> = (a: T) => void;

interface Last { z: 1 }
"""


def test_interface_with_doc_comment() -> None:
    block = extract_declaration_block(DTS, "Options")
    assert block is not None
    assert block.startswith("/** Options for the thing. */\nexport interface Options<T = {}>")
    assert block.endswith('  nested: { a: number };\n}')


def test_interface_without_doc_comment() -> None:
    block = extract_declaration_block(DTS, "Options", include_jsdoc=False)
    assert block is not None
    assert block.startswith("export interface Options")


def test_type_alias_ends_at_top_level_semicolon() -> None:
    block = extract_declaration_block(DTS, "Mode")
    assert block == 'export declare type Mode = {\n  kind: "x;y";\n} | string;'


def test_generic_function_type_alias() -> None:
    assert extract_declaration_block(DTS, "Fn") == "type Fn<T> = (a: T) => void;"


def test_qualified_name_uses_last_segment() -> None:
    assert extract_declaration_block(DTS, "Ns.Last") == "interface Last { z: 1 }"


def test_trailing_semicolon_after_interface_is_kept() -> None:
    assert extract_declaration_block("interface A { a: 1 };\n", "A") == "interface A { a: 1 };"


def test_name_must_match_exactly() -> None:
    assert extract_declaration_block(DTS, "Option") is None
    assert extract_declaration_block("interface OptionsX { }\n", "Options") is None


def test_unbalanced_body() -> None:
    assert extract_declaration_block("interface A {\n  a: number;\n", "A") is None
