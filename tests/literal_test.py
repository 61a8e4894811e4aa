"""Tests for formatting runtime values as `@default` literals."""

from __future__ import annotations

from sdd_evaluate import JsExpression
from sdd_literal import MAX_LITERAL_LENGTH, format_literal


def test_strings_are_json_quoted() -> None:
    assert format_literal("fast") == '"fast"'
    assert format_literal("a\nb") == '"a\\nb"'
    assert format_literal('say "hi"') == '"say \\"hi\\""'


def test_non_ascii_is_kept() -> None:
    assert format_literal("héllo") == '"héllo"'


def test_keywords() -> None:
    assert format_literal(True) == "true"
    assert format_literal(False) == "false"
    assert format_literal(None) == "null"


def test_integers() -> None:
    assert format_literal(3) == "3"
    assert format_literal(-42) == "-42"
    assert format_literal(10**30) == str(10**30)


def test_floats_follow_javascript_formatting() -> None:
    assert format_literal(2.0) == "2"
    assert format_literal(0.5) == "0.5"
    assert format_literal(-0.0) == "0"
    assert format_literal(1e-7) == "1e-7"
    assert format_literal(0.000001) == "0.000001"
    assert format_literal(1.5e-5) == "0.000015"
    assert format_literal(1e21) == "1e+21"
    assert format_literal(float("nan")) == "NaN"
    assert format_literal(float("inf")) == "Infinity"
    assert format_literal(float("-inf")) == "-Infinity"


def test_containers_are_compact_json() -> None:
    assert format_literal({"a": [1, 2.0], "b": None}) == '{"a":[1,2],"b":null}'
    assert format_literal([]) == "[]"
    assert format_literal({}) == "{}"
    assert format_literal(("x", True)) == '["x",true]'


def test_non_finite_numbers_in_containers_become_null() -> None:
    assert format_literal([float("nan"), float("inf")]) == "[null,null]"


def test_long_containers_are_truncated() -> None:
    out = format_literal({"a": "x" * 500})
    assert len(out) == MAX_LITERAL_LENGTH - 2
    assert out.endswith("…")
    assert out.startswith('{"a":"xxx')


def test_short_containers_are_not_truncated() -> None:
    value = ["y" * 50]
    assert format_literal(value) == '["' + "y" * 50 + '"]'


def test_long_strings_are_not_truncated() -> None:
    s = "z" * 300
    assert format_literal(s) == '"' + s + '"'


def test_expressions_render_as_collapsed_source() -> None:
    assert format_literal(JsExpression("() =>\n  1")) == "() => 1"


def test_expressions_inside_containers_follow_json_rules() -> None:
    assert format_literal({"a": 1, "f": JsExpression("() => 1")}) == '{"a":1}'
    assert format_literal([JsExpression("() => 1")]) == "[null]"


def test_unserializable_values_fall_back_to_str() -> None:
    value = {1, 2}
    assert format_literal(value) == str(value)


def test_never_raises_on_broken_str() -> None:
    class Broken:
        def __str__(self) -> str:
            raise RuntimeError("no")

    out = format_literal(Broken())
    assert "Broken" in out


def test_numbers_inside_containers_follow_javascript_formatting() -> None:
    assert format_literal([1.5e-7]) == "[1.5e-7]"
    assert format_literal({"tiny": 0.000015, "big": 1e21, "half": 0.5}) == '{"tiny":0.000015,"big":1e+21,"half":0.5}'
