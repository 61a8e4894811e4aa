#!/usr/bin/env python3
"""
Copyright 2025 7th software Ltd.

Licensed under the Apache License, Version 2.0 (the "License"); you may not use this file except in compliance with the
License. You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software distributed under the License is distributed on an
"AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the License for the specific
language governing permissions and limitations under the License.

Reads, renders and rewrites the documentation comment attached to a property head.

A comment belongs to a property purely by adjacency: only whitespace may separate the end of the comment from the
property's first character. Nothing about that link is stored; `find_leading_comment` recomputes it from the current
text every time it is asked, because every edit shifts offsets.

# Highlights of Internal Workings

1. **Detection**: `find_leading_comment` walks backward from the property head. A `/** ... */` block ending just above
   wins; otherwise a run of consecutive `//` lines is taken. The result is a `BlockComment`, a `LineComments`, or `None`.
2. **Parsing**: `parse_jsdoc` splits a block into description lines and `@tag text` entries, in source order. Line
   comments are treated as plain description.
3. **Rendering**: `render_jsdoc` emits a canonical block: description, one blank separator line, exactly one default
   line using the preferred tag, then every other original tag.
4. **Upsert**: `upsert_default` splices the rendered block over the old comment (or inserts it above the property),
   keeping the author's indentation and ` * ` versus ` *` style, with exactly one line break on either side.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Union
import re


PreferredTag = Literal["default", "defaultValue"]

# Both are accepted when reading; only the preferred one is written.
DEFAULT_TAGS = ("default", "defaultValue")


@dataclass(frozen=True)
class JsdocTag:
    tag: str
    text: str


@dataclass
class Jsdoc:
    """
    Parsed documentation comment.

    Attributes:
        description (List[str]): Human description lines above the tags (no leading `*`).
        tags (List[JsdocTag]): Structured `@tag text` entries in order of appearance.
    """

    description: List[str] = field(default_factory=list)
    tags: List[JsdocTag] = field(default_factory=list)


@dataclass(frozen=True)
class BlockComment:
    """
    A `/** ... */` comment immediately above a property.

    Attributes:
        start (int): Start of the replaceable range. This is the start of the opener's own line, so that replacing the
            range also removes the old indentation.
        end (int): Offset just after the closing `*/`.
        opener (int): Offset of the `/**`.
        text (str): The raw comment, from `/**` to `*/` inclusive.
        indent (str): Leading whitespace of the opener's line.
    """

    start: int
    end: int
    opener: int
    text: str
    indent: str


@dataclass(frozen=True)
class LineComments:
    """
    A run of consecutive `//` comment lines immediately above a property.

    Attributes:
        start (int): Start of the first comment line.
        end (int): End of the last comment line (before its line break).
        text (str): The raw lines, including their `//` markers.
        indent (str): Leading whitespace of the first comment line.
    """

    start: int
    end: int
    text: str
    indent: str


LeadingComment = Union[BlockComment, LineComments]


_INDENT = re.compile(r"[ \t]*")
_LINE_MARKER = re.compile(r"^\s*//[ \t]?")
_STAR_MARKER = re.compile(r"^[ \t]*\*?[ \t]?")
_TAG_LINE = re.compile(r"^@(\w+)\s*(.*)$")
_STAR_STYLE = re.compile(r"[ \t]*\*(?!/)(.)")

# A literal containing `*/` would end the comment early; it is stored as `*\/`
_CLOSER = "*/"
_ESCAPED_CLOSER = "*\\/"


# ---- Detection ---------------------------------------------------------------


def _line_start(text: str, i: int) -> int:
    return text.rfind("\n", 0, i) + 1


def _block_opener(text: str, close: int) -> Optional[int]:
    """
    Find the `/**` opening the block comment whose `*/` sits at `close`.

    The opener has to start a line's content, or end a line. On the closing line itself it may also follow code, as in
    `a; /** doc */`. A `/**` in the middle of a comment line, such as one inside a recorded literal, is never taken.

    Returns:
    - The opener's offset, or `None` when the comment closing at `close` is a plain `/* ... */` comment or another
      comment's `*/` is met first.
    """

    line_start = _line_start(text, close)
    lead = text[line_start:close]
    stripped = lead.lstrip()
    if stripped.startswith("/**"):
        return line_start + len(lead) - len(stripped)
    if not stripped.startswith("*"):
        j = lead.rfind("/**")
        if j != -1:
            return line_start + j
        if "/*" in lead:
            return None

    while line_start > 0:
        line_end = line_start - 1
        line_start = _line_start(text, line_end)
        content = text[line_start:line_end].rstrip()
        stripped = content.lstrip()
        if "*/" in content:
            return None
        if stripped.startswith("/**"):
            return line_start + len(content) - len(stripped)
        if stripped.startswith("/*"):
            return None
        if stripped.endswith("/**"):
            return line_start + len(content) - 3
    return None


def find_leading_comment(text: str, head_start: int) -> Optional[LeadingComment]:
    """
    Find the documentation comment attached to the declaration starting at `head_start`.

    Parameters:
    - `text`: The full declaration text.
    - `head_start`: Offset of the first character of the property (after its indentation).

    Returns:
    - A `BlockComment` when a `/** ... */` ends with only whitespace between it and the property.
    - Otherwise a `LineComments` when `//` lines sit directly above the property (blank lines may intervene).
    - Otherwise `None`.

    Notes:
    A plain `/* ... */` comment is not a documentation comment and is never returned.
    """

    i = head_start
    while i > 0 and text[i - 1] in " \t\r\n":
        i -= 1

    if i >= 2 and text[i - 2:i] == "*/":
        close = i - 2
        opener = _block_opener(text, close)
        if opener is not None:
            line_start = _line_start(text, opener)
            lead = text[line_start:opener]
            start = line_start if _INDENT.fullmatch(lead) else opener
            indent = _INDENT.match(text, line_start).group(0)
            return BlockComment(start=start, end=close + 2, opener=opener, text=text[opener:close + 2], indent=indent)

    # The property must own its line for comments above it to belong to it
    line_start = _line_start(text, head_start)
    if not _INDENT.fullmatch(text[line_start:head_start]):
        return None

    first: Optional[int] = None
    last_end: Optional[int] = None
    while line_start > 0:
        prev_end = line_start - 1
        prev_start = _line_start(text, prev_end)
        stripped = text[prev_start:prev_end].strip()
        if stripped.startswith("//"):
            first = prev_start
            if last_end is None:
                last_end = prev_end - 1 if text[prev_end - 1:prev_end] == "\r" else prev_end
        elif stripped:
            break
        line_start = prev_start

    if first is None or last_end is None:
        return None
    return LineComments(start=first, end=last_end, text=text[first:last_end], indent=_INDENT.match(text, first).group(0))


# ---- Parsing -----------------------------------------------------------------


def _trim_blank(lines: List[str]) -> List[str]:
    out = list(lines)
    while out and not out[0].strip():
        out.pop(0)
    while out and not out[-1].strip():
        out.pop()
    return out


def parse_jsdoc(raw: Optional[str]) -> Jsdoc:
    """
    Parse a raw comment into description lines and tags.

    For a `/** ... */` block the delimiters are removed and each line loses its leading whitespace, one `*` and at most
    one following space. Lines of the form `@name rest` become tags; all other lines are description, with leading and
    trailing blank lines trimmed.

    `//` comments are never searched for tags: each line loses its `//` marker (and one space) and the whole comment
    becomes description.

    Parameters:
    - `raw`: The raw comment text, or `None`.

    Returns:
    - The parsed `Jsdoc`. Empty when `raw` is empty or `None`.
    """

    if not raw:
        return Jsdoc()

    if not raw.startswith("/**"):
        lines = [_LINE_MARKER.sub("", line).rstrip() for line in raw.splitlines()]
        return Jsdoc(description=_trim_blank(lines))

    body = raw[3:]
    if body.endswith("*/"):
        body = body[:-2]

    description: List[str] = []
    tags: List[JsdocTag] = []
    for line in body.splitlines():
        line = _STAR_MARKER.sub("", line, count=1).rstrip()
        m = _TAG_LINE.match(line)
        if m:
            tags.append(JsdocTag(tag=m.group(1), text=m.group(2).strip()))
        else:
            description.append(line)

    return Jsdoc(description=_trim_blank(description), tags=tags)


def read_default_literal(raw: Optional[str]) -> Optional[str]:
    """
    Return the literal recorded by the first `@default` or `@defaultValue` tag, trimmed.

    Either tag name is accepted; when both are present the one appearing first wins.

    Returns:
    - The literal text, or `None` if neither tag is present (or its text is empty).
    """

    for tag in parse_jsdoc(raw).tags:
        if tag.tag in DEFAULT_TAGS:
            return tag.text.strip().replace(_ESCAPED_CLOSER, _CLOSER) or None
    return None


def is_already_correct(raw: Optional[str], expected: str, preferred_tag: PreferredTag) -> bool:
    """
    Decide whether a comment already carries the expected default in canonical form.

    True only when the literal matches exactly, the preferred tag is present and the other default tag is absent. A
    comment carrying both tags always needs normalising, even if the literal is right.

    Parameters:
    - `raw`: The raw comment text, or `None` when the property has no comment.
    - `expected`: The expected, formatted literal.
    - `preferred_tag`: The tag name that should be used.

    Returns:
    - `True` if no edit is needed.
    """

    if not raw:
        return False
    names = {t.tag for t in parse_jsdoc(raw).tags}
    other = "defaultValue" if preferred_tag == "default" else "default"
    return read_default_literal(raw) == expected and preferred_tag in names and other not in names


# ---- Rendering ---------------------------------------------------------------


def detect_star_pad(raw: Optional[str]) -> str:
    """
    Detect whether a block comment writes its lines as ` * text` or ` *text`.

    Returns:
    - `" "` or `""`. Defaults to `" "` when there is no block comment or no line shows a preference.
    """

    if not raw or not raw.startswith("/**"):
        return " "
    for line in raw.splitlines()[1:]:
        m = _STAR_STYLE.match(line)
        if m:
            return " " if m.group(1) in " \t" else ""
    return " "


def choose_indent(prop_indent: str, existing_indent: Optional[str] = None) -> str:
    """
    Choose the indentation for a rewritten documentation block.

    With no existing comment the property's own indentation is used. An existing comment within one character of the
    property's indentation keeps its own; a larger drift is treated as stale and normalised to the property's.

    Parameters:
    - `prop_indent`: Leading whitespace of the property line.
    - `existing_indent`: Leading whitespace of the existing comment's opener line, if any.

    Returns:
    - The indentation string to use for every line of the block.
    """

    if existing_indent is None:
        return prop_indent
    if abs(len(prop_indent) - len(existing_indent)) <= 1:
        return existing_indent
    return prop_indent


def render_jsdoc(
    indent: str,
    star_pad: str,
    description: List[str],
    tags: List[JsdocTag],
    default_literal: str,
    preferred_tag: PreferredTag,
    newline: str = "\n",
) -> str:
    """
    Render a canonical documentation block carrying a default annotation.

    Layout: opener; description lines followed by one blank separator line (only when there is a description); the
    single `@<preferred_tag> <literal>` line; every other original tag in order; closer. Any `@default` or
    `@defaultValue` tags in `tags` are dropped in favour of the new line.

    Parameters:
    - `indent`: Indentation written before every line.
    - `star_pad`: `" "` to render ` * text`, `""` to render ` *text`.
    - `description`: Description lines.
    - `tags`: Tags to carry over.
    - `default_literal`: The literal to record.
    - `preferred_tag`: Which default tag name to write.
    - `newline`: Line separator.

    Returns:
    - The block text, without a trailing line break.
    """

    def star(s: str = "") -> str:
        return f"{indent} *{star_pad}{s}" if s else f"{indent} *"

    out = [f"{indent}/**"]

    if description:
        out.extend(star(line) for line in description)
        out.append(star())

    out.append(star(f"@{preferred_tag} {default_literal.replace(_CLOSER, _ESCAPED_CLOSER)}"))
    for t in tags:
        if t.tag in DEFAULT_TAGS:
            continue
        out.append(star(f"@{t.tag} {t.text}" if t.text else f"@{t.tag}"))

    out.append(f"{indent} */")
    return newline.join(out)


def detect_line_ending(text: str) -> str:
    """Return the dominant line ending of `text`: `"\\r\\n"` when CRLF outnumbers bare LF, else `"\\n"`."""

    count_rn = text.count("\r\n")
    count_n = text.count("\n") - count_rn
    return "\r\n" if count_rn > count_n else "\n"


# ---- Upsert ------------------------------------------------------------------


def upsert_default(text: str, head_start: int, prop_indent: str, literal: str, preferred_tag: PreferredTag) -> str:
    """
    Create or replace the documentation block above a property so that it records `literal`.

    An existing comment is parsed and re-rendered in canonical form, carrying over its description, its non-default
    tags, its star padding and (when close to the property's) its indentation. Without one, a new block is inserted
    directly above the property using the property's own indentation.

    Parameters:
    - `text`: The full declaration text.
    - `head_start`: Offset of the property's first character.
    - `prop_indent`: The property line's indentation.
    - `literal`: The formatted default literal.
    - `preferred_tag`: The default tag name to write.

    Returns:
    - The new text. Offsets at or after the edited comment are invalidated; offsets before it are not.
    """

    found = find_leading_comment(text, head_start)
    raw = found.text if found is not None else None
    newline = detect_line_ending(text)

    parsed = parse_jsdoc(raw)
    block = render_jsdoc(
        indent=choose_indent(prop_indent, found.indent if found is not None else None),
        star_pad=detect_star_pad(raw),
        description=parsed.description,
        tags=parsed.tags,
        default_literal=literal,
        preferred_tag=preferred_tag,
        newline=newline,
    )

    if found is not None:
        if not _INDENT.fullmatch(text[_line_start(text, found.start):found.start]):
            # The old comment followed other code on its line; the new block starts a line of its own
            block = newline + block
        if isinstance(found, BlockComment) and "\n" in text[found.end:head_start]:
            return text[:found.start] + block + text[found.end:]
        # Line comments are replaced through the property head, blank lines after them included
        return text[:found.start] + block + newline + prop_indent + text[head_start:]

    line_start = _line_start(text, head_start)
    if _INDENT.fullmatch(text[line_start:head_start]):
        return text[:line_start] + block + newline + text[line_start:]

    # The property follows other code on its line, e.g. `interface X { foo: string; }`
    cut = head_start
    while cut > line_start and text[cut - 1] in " \t":
        cut -= 1
    return text[:cut] + newline + block + newline + prop_indent + text[head_start:]
