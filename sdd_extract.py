#!/usr/bin/env python3
"""
Copyright 2025 7th software Ltd.

Licensed under the Apache License, Version 2.0 (the "License"); you may not use this file except in compliance with the
License. You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software distributed under the License is distributed on an
"AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the License for the specific
language governing permissions and limitations under the License.

Slices a single `interface` or `type` declaration (optionally with its documentation comment) out of a declaration file,
for dry-run previews.
"""

from __future__ import annotations

from sdd_jsdoc import BlockComment, find_leading_comment
from sdd_locator import find_body_open
from sdd_scan import scan_balanced, scan_type_alias_terminator, skip_space
from typing import Optional
import re


def _declaration_head(name: str) -> re.Pattern:
    return re.compile(
        r"^[ \t]*(?:export\s+)?(?:declare\s+)?(interface|type)\s+" + re.escape(name) + r"(?![\w$])",
        re.MULTILINE,
    )


def _alias_end(text: str, i: int) -> Optional[int]:
    """Return the offset of the `;` ending the type alias whose name ends at `i`, or `None`."""

    i = skip_space(text, i)
    if i < len(text) and text[i] == "<":
        close = scan_balanced(text, i, "<", ">")
        if close is None:
            return None
        i = skip_space(text, close + 1)
    if i >= len(text) or text[i] != "=":
        return None
    return scan_type_alias_terminator(text, i + 1)


def extract_declaration_block(text: str, type_name: str, include_jsdoc: bool = True) -> Optional[str]:
    """
    Extract the full text of a named `interface` or `type` declaration.

    Parameters:
    - `text`: The declaration file content.
    - `type_name`: The declared name. A qualified name such as `Ns.Options` is reduced to its last segment.
    - `include_jsdoc`: Whether to start the slice at a `/** ... */` comment directly above the declaration.

    Returns:
    - The declaration text, from the start of its line (or its comment) through the closing `}` or the terminating
      `;`. `None` if the declaration or its end cannot be found.

    Example:
        extract_declaration_block(text, "Ns.Options")  ->  "export interface Options {\\n  a: number;\\n}"
    """

    name = type_name.split(".")[-1]

    for m in _declaration_head(name).finditer(text):
        kind = m.group(1)

        if kind == "interface":
            open_idx = find_body_open(text, m.end())
            if open_idx is None:
                continue
            close = scan_balanced(text, open_idx, "{", "}")
            if close is None:
                return None
            end = close + 1
            if text[end:end + 1] == ";":
                end += 1
        else:
            semi = _alias_end(text, m.end())
            if semi is None:
                continue
            end = semi + 1

        start = m.start()
        if include_jsdoc:
            found = find_leading_comment(text, start)
            if isinstance(found, BlockComment):
                start = found.opener
        return text[start:end]

    return None
