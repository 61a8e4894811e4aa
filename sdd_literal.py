#!/usr/bin/env python3
"""
Copyright 2025 7th software Ltd.

Licensed under the Apache License, Version 2.0 (the "License"); you may not use this file except in compliance with the
License. You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software distributed under the License is distributed on an
"AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the License for the specific
language governing permissions and limitations under the License.

Turns a runtime default value into the literal text recorded after `@default`.

The literal is what a TypeScript reader expects to see, so numbers and keywords are written the way JavaScript prints
them (`true`, `null`, `NaN`, `1e-7`), strings are JSON-quoted and containers are compact JSON. Long container literals
are truncated so that generated documentation stays readable.
"""

from __future__ import annotations

from typing import Any
import json
import math


MAX_LITERAL_LENGTH = 120
_ELLIPSIS = "…"

# Container entries JSON cannot express are left out, as JSON.stringify leaves out functions
_OMIT = object()


def _js_number(x: float) -> str:
    """
    Render a float the way JavaScript's `Number#toString` does.

    Integral values below 1e21 print without a fractional part, `-0` prints as `0`, and exponents use no zero padding.
    Values down to 1e-6 are written positionally rather than in exponent form.
    """

    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    if x == 0:
        return "0"
    if x.is_integer() and abs(x) < 1e21:
        return str(int(x))

    r = repr(x)
    if "e" not in r:
        return r

    mantissa, exp = r.split("e")
    e = int(exp)
    if -7 < e < 0:
        sign = "-" if mantissa.startswith("-") else ""
        digits = mantissa.lstrip("-").replace(".", "")
        return f"{sign}0.{'0' * (-e - 1)}{digits}"
    return f"{mantissa}e{'+' if e > 0 else '-'}{abs(e)}"


def _to_json_value(value: Any) -> Any:
    """
    Convert a value into something `json.dumps` renders the way JSON.stringify would.

    Integral floats become ints, non-finite floats become `None` (JSON `null`) and tuples become lists. Anything JSON
    cannot hold is returned as `_OMIT`: dictionaries drop such entries, lists turn them into `null`.
    """

    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        if value.is_integer() and abs(value) < 1e21:
            return int(value)
        return value
    if isinstance(value, dict):
        out = {}
        for k, v in value.items():
            converted = _to_json_value(v)
            if converted is not _OMIT:
                out[str(k)] = converted
        return out
    if isinstance(value, (list, tuple)):
        items = [_to_json_value(v) for v in value]
        return [None if v is _OMIT else v for v in items]
    return _OMIT


def _dump_json(data: Any) -> str:
    """Compact JSON for the output of `_to_json_value`, with numbers printed by `_js_number` as JSON.stringify does."""

    if isinstance(data, dict):
        return "{" + ",".join(f"{json.dumps(k, ensure_ascii=False)}:{_dump_json(v)}" for k, v in data.items()) + "}"
    if isinstance(data, list):
        return "[" + ",".join(_dump_json(v) for v in data) + "]"
    if isinstance(data, float):
        return _js_number(data)
    return json.dumps(data, ensure_ascii=False)


def format_literal(value: Any) -> str:
    """
    Format a value for the `@default` tag.

    Parameters:
    - `value`: Any runtime value: a string, number, boolean, `None`, or a container of those. Objects the evaluator
      could not reduce to data (functions, calls) are rendered from their string form.

    Returns:
    - The literal text. Strings are JSON-quoted with non-ASCII characters kept; `True`, `False` and `None` become
      `true`, `false` and `null`; numbers follow JavaScript's formatting. Containers become compact JSON, cut to 117
      characters plus an ellipsis when longer than 120. Values that cannot be serialized fall back to `str(value)`.

    Notes:
    This function never raises.

    Examples:
        format_literal("a\\nb")          ->  '"a\\\\nb"'
        format_literal(0.5)              ->  '0.5'
        format_literal({"x": [1, 2]})    ->  '{"x":[1,2]}'
    """

    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _js_number(value)

    try:
        data = _to_json_value(value)
        s = None if data is _OMIT else _dump_json(data)
    except RecursionError:
        s = None

    if s is None:
        try:
            return str(value)
        except Exception:
            return object.__repr__(value)

    if len(s) > MAX_LITERAL_LENGTH:
        return s[:MAX_LITERAL_LENGTH - 3] + _ELLIPSIS
    return s
