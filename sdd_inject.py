#!/usr/bin/env python3
"""
Copyright 2025 7th software Ltd.

Licensed under the Apache License, Version 2.0 (the "License"); you may not use this file except in compliance with the
License. You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software distributed under the License is distributed on an
"AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the License for the specific
language governing permissions and limitations under the License.

Writes `@default` annotations for every property of an interface that has a known default value.

Edits are applied bottom-up: tasks are sorted by descending property offset, so an edit never shifts the offset of a
property that has not been visited yet. Each task re-reads the comment above its property from the current text
rather than from a snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from sdd_jsdoc import PreferredTag, find_leading_comment, is_already_correct, upsert_default
from sdd_literal import format_literal
from sdd_locator import find_interface_body, list_properties
from sdd_log import debug
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True)
class Outcome:
    """
    Per-property outcome of an injection or a check.

    Attributes:
        interface_name (str): The interface that was searched.
        prop (str): The property name from the defaults map.
        expected (Optional[str]): The expected literal, when one was computed.
        found (Optional[str]): The literal currently documented, or `None` when there is none.
    """

    interface_name: str
    prop: str
    expected: Optional[str] = None
    found: Optional[str] = None


@dataclass
class DtsEditResult:
    updated_text: str
    updated_count: int = 0
    missing: List[Outcome] = field(default_factory=list)


@dataclass(frozen=True)
class _Task:
    prop: str
    head_start: int
    indent: str
    expected: str


def inject_defaults(
    text: str,
    interface_name: str,
    defaults: Mapping[str, Any],
    preferred_tag: PreferredTag = "default",
) -> DtsEditResult:
    """
    Inject or update the default annotation of every property of `interface_name` listed in `defaults`.

    Parameters:
    - `text`: The declaration text.
    - `interface_name`: The interface whose properties should be documented.
    - `defaults`: Property name to runtime default value.
    - `preferred_tag`: `"default"` or `"defaultValue"`; the other tag is removed where found.

    Returns:
    - A `DtsEditResult` with the new text, the number of comments that were created or changed, and an `Outcome` for
      every key that matches no property. A missing interface is not an error: the text comes back unchanged and every
      key is reported missing.
    """

    body = find_interface_body(text, interface_name)
    if body is None:
        debug(f"interface {interface_name} not found")
        return DtsEditResult(text, 0, [Outcome(interface_name, key) for key in defaults])

    props = list_properties(text[body.body_start:body.body_end], body.body_start)
    debug(f"{interface_name}: properties {[p.name for p in props]}")

    by_name: Dict[str, Any] = {}
    for p in props:
        # First declaration wins when a name repeats
        by_name.setdefault(p.name, p)

    tasks: List[_Task] = []
    missing: List[Outcome] = []
    for key, value in defaults.items():
        prop = by_name.get(key)
        if prop is None:
            missing.append(Outcome(interface_name, key))
            continue
        tasks.append(_Task(key, prop.head_start, prop.indent, format_literal(value)))

    tasks.sort(key=lambda t: t.head_start, reverse=True)

    updated = 0
    for task in tasks:
        found = find_leading_comment(text, task.head_start)
        if is_already_correct(found.text if found is not None else None, task.expected, preferred_tag):
            continue
        text = upsert_default(text, task.head_start, task.indent, task.expected, preferred_tag)
        updated += 1

    return DtsEditResult(text, updated, missing)
