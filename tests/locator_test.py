"""Tests for locating interface bodies and property heads."""

from __future__ import annotations

from sdd_locator import BodyRange, find_interface_body, list_interface_properties, list_properties

DTS = """export interface Options {
  /** The mode. */
  mode: "a" | "b";
  readonly retries?: number;
  "quoted-key": string;
  'single': boolean;
  nested: {
    inner: number;
  };
  method(): void;
  [key: string]: unknown;
  wrapped:
    | string;
  fn: (a: number) => void;
  // trailing: comment;
}
"""


def test_find_interface_body_simple() -> None:
    text = "interface Foo { x: number; }"
    assert find_interface_body(text, "Foo") == BodyRange(body_start=15, body_end=27)


def test_find_interface_body_missing() -> None:
    assert find_interface_body(DTS, "Nope") is None


def test_find_interface_body_respects_word_boundary() -> None:
    """`Options` does not match `OptionsExtra`."""
    text = "interface OptionsExtra { a: 1; }\ninterface Options { b: 2; }\n"
    body = find_interface_body(text, "Options")
    assert body is not None
    assert text[body.body_start:body.body_end] == " b: 2; "


def test_find_interface_body_skips_mentions_in_prose() -> None:
    """A comment that mentions `interface Options` is not a declaration head."""
    text = "// see interface Options for details\ndeclare interface Options { a: number; }\n"
    body = find_interface_body(text, "Options")
    assert body is not None
    assert text[body.body_start:body.body_end] == " a: number; "


def test_find_interface_body_generics_and_extends() -> None:
    text = "export interface Opts<T = {}> extends Base<T>, Other {\n  a: T;\n}\n"
    body = find_interface_body(text, "Opts")
    assert body is not None
    assert text[body.body_start:body.body_end] == "\n  a: T;\n"


def test_find_interface_body_unbalanced() -> None:
    assert find_interface_body("interface A {\n  a: number;\n", "A") is None


def test_list_properties_shapes() -> None:
    """Identifier and quoted keys are found; methods, index signatures and wrapped annotations are skipped."""
    names = [p.name for p in list_interface_properties(DTS, "Options")]
    assert names == ["mode", "retries", "quoted-key", "single", "nested", "fn"]


def test_list_properties_offsets_and_indent() -> None:
    props = list_interface_properties(DTS, "Options")
    mode = props[0]
    assert mode.head_start == DTS.index('mode: "a"')
    assert mode.indent == "  "
    starts = [p.head_start for p in props]
    assert starts == sorted(starts)


def test_nested_fields_are_not_enumerated() -> None:
    names = [p.name for p in list_interface_properties(DTS, "Options")]
    assert "inner" not in names


def test_list_properties_body_offset() -> None:
    body = "\n\tx: number;\n"
    props = list_properties(body, 100)
    assert len(props) == 1
    assert props[0].head_start == 102
    assert props[0].indent == "\t"


def test_duplicate_names_are_reported() -> None:
    props = list_properties("\n  a: number;\n  a: string;\n")
    assert [p.name for p in props] == ["a", "a"]


def test_list_interface_properties_missing_interface() -> None:
    assert list_interface_properties(DTS, "Missing") == []
