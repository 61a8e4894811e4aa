#!/usr/bin/env python3
"""
Copyright 2025 7th software Ltd.

Licensed under the Apache License, Version 2.0 (the "License"); you may not use this file except in compliance with the
License. You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software distributed under the License is distributed on an
"AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the License for the specific
language governing permissions and limitations under the License.

Locates interface declarations and their property heads inside TypeScript declaration text.

`find_interface_body` finds the `{ ... }` body of a named interface. `list_properties` then walks that body one member
at a time, at nesting depth zero, and reports each property's name, the offset of its first character and its exact
leading indentation. Members typed with an inline object literal are reported once under their own name; their nested
fields are never enumerated, since they are not properties of the outer interface.

Only single-line property signatures (plus inline nested types) are recognised. A property whose type annotation
wraps over several lines without any bracket nesting is not reported.
"""

from __future__ import annotations

from dataclasses import dataclass
from sdd_scan import is_arrow, iter_code, scan_balanced, skip_space
from typing import List, Optional, Tuple
import re


@dataclass(frozen=True)
class BodyRange:
    """
    Half-open character range of an interface body.

    Attributes:
        body_start (int): Offset just after the opening `{`.
        body_end (int): Offset of the matching closing `}`.
    """

    body_start: int
    body_end: int


@dataclass(frozen=True)
class PropertyInfo:
    """
    A property declaration found in an interface body.

    Attributes:
        name (str): The property key, with surrounding quotes stripped.
        head_start (int): Offset of the first character of the property's line content (after the indentation).
        indent (str): The exact leading whitespace of the property's line.
    """

    name: str
    head_start: int
    indent: str


_PROP_HEAD = re.compile(r"""(?:readonly\s+)?(?:"([^"\n]+)"|'([^'\n]+)'|([A-Za-z_$][\w$]*))\??\s*:""")
_INDENT = re.compile(r"[ \t]*")
_EXTENDS = re.compile(r"extends(?![\w$])")


def _interface_head(name: str) -> re.Pattern:
    return re.compile(r"\b(?:export\s+)?(?:declare\s+)?interface\s+" + re.escape(name) + r"(?![\w$])")


def find_body_open(text: str, i: int) -> Optional[int]:
    """
    Find the `{` that opens a declaration body, starting just after the declared name.

    An optional generic parameter list and an optional `extends` clause may sit between the name and the brace. Anything
    else (prose in a comment that happens to mention the name, say) means this was not a declaration head.

    Parameters:
    - `text`: The declaration text.
    - `i`: Offset just after the declared name.

    Returns:
    - The offset of the opening brace, or `None` if the head is not followed by a body.
    """

    n = len(text)
    i = skip_space(text, i)
    if i < n and text[i] == "<":
        close = scan_balanced(text, i, "<", ">")
        if close is None:
            return None
        i = skip_space(text, close + 1)

    if i < n and text[i] == "{":
        return i
    if not _EXTENDS.match(text, i):
        return None

    depth = 0
    for j, ch in iter_code(text, i + len("extends")):
        if ch in "<([":
            depth += 1
        elif ch in ")]" or (ch == ">" and not is_arrow(text, j)):
            depth = max(0, depth - 1)
        elif depth == 0:
            if ch == "{":
                return j
            if ch in ";}=":
                return None
    return None


def find_interface_body(text: str, interface_name: str) -> Optional[BodyRange]:
    """
    Find the character range of an interface body.

    Matches `interface <name>` with optional `export` and `declare` modifiers, the name matched exactly and on a word
    boundary. Only the first valid declaration is used; if the name is declared twice, the second is ignored.

    Parameters:
    - `text`: TypeScript declaration file content.
    - `interface_name`: Name of the interface to find (case-sensitive).

    Returns:
    - A `BodyRange`, or `None` if the interface is not declared or its braces never balance.

    Example:
        find_interface_body("interface Foo { x: number; }", "Foo")  ->  BodyRange(body_start=15, body_end=27)
    """

    for m in _interface_head(interface_name).finditer(text):
        open_idx = find_body_open(text, m.end())
        if open_idx is None:
            continue
        close = scan_balanced(text, open_idx, "{", "}")
        if close is None:
            return None
        return BodyRange(open_idx + 1, close)
    return None


def _member_end(text: str, start: int) -> Tuple[int, bool, bool]:
    """
    Find where the member starting at `start` ends.

    A member ends at the first semicolon or line break seen outside any bracket nesting. While inside nesting, line
    breaks are recorded as the member "spanning" an inline nested type.

    Parameters:
    - `text`: The body text.
    - `start`: Offset of the member's first character.

    Returns:
    - A tuple `(end, terminated, spanned)`: the offset of the character that ended the member, whether that was a
      semicolon, and whether a nested type carried it over more than one line.
    """

    depth = 0
    spanned = False
    for i, ch in iter_code(text, start):
        if ch in "{([<":
            depth += 1
        elif ch in "})]" or (ch == ">" and not is_arrow(text, i)):
            if depth == 0:
                return i, False, spanned
            depth -= 1
        elif ch == "\n":
            if depth == 0:
                return i, False, spanned
            spanned = True
        elif ch == ";" and depth == 0:
            return i, True, spanned
    return len(text), False, spanned


def list_properties(body_text: str, body_offset: int = 0) -> List[PropertyInfo]:
    """
    Enumerate the property heads within an interface body.

    Each top-level member that starts its own line and looks like `[readonly] key[?]: type;` is reported. Keys may be
    identifiers or single/double-quoted strings. Method, index and call signatures don't match the shape and are
    skipped, as are members whose type wraps onto further lines without bracket nesting.

    Parameters:
    - `body_text`: The text between an interface's braces.
    - `body_offset`: Offset of `body_text` within the full text; added to every reported `head_start`.

    Returns:
    - A list of `PropertyInfo` in source order.
    """

    out: List[PropertyInfo] = []
    n = len(body_text)
    pos = 0

    while pos < n:
        pos = skip_space(body_text, pos)
        if pos >= n:
            break

        # Comments between members
        if body_text.startswith("//", pos):
            nl = body_text.find("\n", pos)
            if nl == -1:
                break
            pos = nl + 1
            continue
        if body_text.startswith("/*", pos):
            close = body_text.find("*/", pos + 2)
            if close == -1:
                break
            pos = close + 2
            continue

        line_start = body_text.rfind("\n", 0, pos) + 1
        indent = body_text[line_start:pos]
        end, terminated, spanned = _member_end(body_text, pos)

        if _INDENT.fullmatch(indent) and (terminated or spanned):
            m = _PROP_HEAD.match(body_text, pos)
            if m is not None:
                name = m.group(1) or m.group(2) or m.group(3)
                out.append(PropertyInfo(name=name, head_start=body_offset + pos, indent=indent))

        pos = end + 1

    return out


def list_interface_properties(text: str, interface_name: str) -> List[PropertyInfo]:
    """
    Enumerate the properties of a named interface in `text`.

    Returns:
    - The properties in source order, or an empty list if the interface cannot be found.
    """

    body = find_interface_body(text, interface_name)
    if body is None:
        return []
    return list_properties(text[body.body_start:body.body_end], body.body_start)
