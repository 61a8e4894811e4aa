#!/usr/bin/env python3
"""
Copyright 2025 7th software Ltd.

Licensed under the Apache License, Version 2.0 (the "License"); you may not use this file except in compliance with the
License. You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software distributed under the License is distributed on an
"AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the License for the specific
language governing permissions and limitations under the License.

Read-only comparison of documented defaults against runtime defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from sdd_inject import Outcome
from sdd_jsdoc import find_leading_comment, read_default_literal
from sdd_literal import format_literal
from sdd_locator import list_interface_properties
from typing import Any, List, Mapping


@dataclass
class CheckResult:
    ok: bool
    mismatches: List[Outcome] = field(default_factory=list)


def check_defaults(text: str, interface_name: str, defaults: Mapping[str, Any]) -> CheckResult:
    """
    Compare each property's documented default with its expected literal.

    Either `@default` or `@defaultValue` is accepted. A missing interface, a missing property and a missing literal all
    produce a mismatch with `found=None`. Every key is checked; the first failure does not stop the scan.

    Parameters:
    - `text`: The declaration text. It is never modified.
    - `interface_name`: The interface to check.
    - `defaults`: Property name to runtime default value.

    Returns:
    - A `CheckResult`; `ok` is True exactly when there are no mismatches.
    """

    props = {}
    for p in list_interface_properties(text, interface_name):
        props.setdefault(p.name, p)

    mismatches: List[Outcome] = []
    for key, value in defaults.items():
        expected = format_literal(value)
        prop = props.get(key)
        if prop is None:
            mismatches.append(Outcome(interface_name, key, expected, None))
            continue

        found = find_leading_comment(text, prop.head_start)
        literal = read_default_literal(found.text if found is not None else None)
        if literal != expected:
            mismatches.append(Outcome(interface_name, key, expected, literal))

    return CheckResult(ok=not mismatches, mismatches=mismatches)
