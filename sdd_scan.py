#!/usr/bin/env python3
"""
Copyright 2025 7th software Ltd.

Licensed under the Apache License, Version 2.0 (the "License"); you may not use this file except in compliance with the
License. You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software distributed under the License is distributed on an
"AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the License for the specific
language governing permissions and limitations under the License.

Character-level scanning over TypeScript declaration text.

Nothing here builds a syntax tree. The scanners walk forward one character at a time, stepping over string literals
(single, double and backtick quoted, with backslash escapes) and comments (`//` to end of line, `/* ... */`), so that
brackets and semicolons appearing inside them are never counted. On top of that walk sit two scans:

1. `scan_balanced` finds the delimiter that closes a given opening delimiter.
2. `scan_type_alias_terminator` finds the semicolon that ends a `type X = ...;` statement, which has no single
   enclosing bracket pair, by tracking curly, round, square and angle nesting independently.
"""

from __future__ import annotations

from typing import Iterator, Optional, Tuple


_QUOTES = ("'", '"', "`")


def _skip_string(text: str, i: int, end: int) -> int:
    """
    Return the offset just past the string literal that opens at `i`.

    Single- and double-quoted strings cannot span lines in TypeScript, so an unterminated one stops at the newline
    (which is left for the caller to see). Template literals may span lines.

    Parameters:
    - `text`: The text being scanned.
    - `i`: Offset of the opening quote.
    - `end`: Offset at which scanning must stop.

    Returns:
    - The offset of the first character after the literal.
    """

    quote = text[i]
    j = i + 1
    while j < end:
        c = text[j]
        if c == "\\":
            j += 2
            continue
        if c == quote:
            return j + 1
        if c == "\n" and quote != "`":
            return j
        j += 1
    return end


def iter_code(text: str, start: int = 0, end: Optional[int] = None) -> Iterator[Tuple[int, str]]:
    """
    Yield `(offset, char)` for every character outside string literals and comments.

    The newline that terminates a `//` comment is yielded, since it is a line break in the code itself. Newlines inside
    block comments and template literals are not.

    Parameters:
    - `text`: The text to scan.
    - `start`: Offset to start from.
    - `end`: Optional offset to stop at (exclusive). Defaults to the end of `text`.

    Yields:
    - Tuples of the character offset and the character.
    """

    n = len(text) if end is None else min(end, len(text))
    i = start
    while i < n:
        ch = text[i]
        if ch == "/" and i + 1 < n:
            nxt = text[i + 1]
            if nxt == "/":
                nl = text.find("\n", i + 2, n)
                if nl == -1:
                    return
                i = nl
                continue
            if nxt == "*":
                close = text.find("*/", i + 2, n)
                if close == -1:
                    return
                i = close + 2
                continue
        if ch in _QUOTES:
            i = _skip_string(text, i, n)
            continue
        yield i, ch
        i += 1


def is_arrow(text: str, i: int) -> bool:
    """Return True when the `>` at offset `i` is the tail of an `=>` arrow rather than a closing angle bracket."""

    return i > 0 and text[i] == ">" and text[i - 1] == "="


def skip_space(text: str, i: int) -> int:
    """
    Advance past whitespace.

    Parameters:
    - `text`: The text to scan.
    - `i`: The starting offset.

    Returns:
    - The offset of the first non-whitespace character at or after `i`, or `len(text)`.
    """

    n = len(text)
    while i < n and text[i].isspace():
        i += 1
    return i


def scan_balanced(text: str, start: int, open_char: str, close_char: str) -> Optional[int]:
    """
    Find the delimiter matching the opening delimiter at `start`.

    A depth counter is incremented on `open_char` and decremented on `close_char`; the offset at which it returns to
    zero is the match. Delimiters inside strings and comments do not count. When scanning angle brackets, the `>` of an
    `=>` arrow is ignored.

    Parameters:
    - `text`: The text to scan.
    - `start`: Offset of the opening delimiter. It must hold `open_char`.
    - `open_char`: The opening delimiter, e.g. "{".
    - `close_char`: The closing delimiter, e.g. "}".

    Returns:
    - The offset of the matching closing delimiter, or `None` if the text ends first (or `start` does not point at
      `open_char`).
    """

    if start < 0 or start >= len(text) or text[start] != open_char:
        return None

    depth = 0
    for i, ch in iter_code(text, start):
        if ch == open_char:
            depth += 1
        elif ch == close_char:
            if close_char == ">" and is_arrow(text, i):
                continue
            depth -= 1
            if depth == 0:
                return i
    return None


def scan_type_alias_terminator(text: str, start: int) -> Optional[int]:
    """
    Scan from `start` to the semicolon that terminates a type alias.

    Four nesting counters (curly, round, square and angle) are tracked independently; each is clamped at zero so that a
    stray closing delimiter cannot drive it negative. The first `;` seen while all four are zero is the terminator.

    Parameters:
    - `text`: The text to scan.
    - `start`: Offset to start from, normally just after the alias's `=`.

    Returns:
    - The offset of the terminating semicolon, or `None` if there is none.
    """

    curly = paren = square = angle = 0

    for i, ch in iter_code(text, start):
        if ch == "{":
            curly += 1
        elif ch == "}":
            curly = max(0, curly - 1)
        elif ch == "(":
            paren += 1
        elif ch == ")":
            paren = max(0, paren - 1)
        elif ch == "[":
            square += 1
        elif ch == "]":
            square = max(0, square - 1)
        elif ch == "<":
            angle += 1
        elif ch == ">":
            if not is_arrow(text, i):
                angle = max(0, angle - 1)
        elif ch == ";" and curly == 0 and paren == 0 and square == 0 and angle == 0:
            return i
    return None
