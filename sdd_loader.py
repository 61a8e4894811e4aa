#!/usr/bin/env python3
"""
Copyright 2025 7th software Ltd.

Licensed under the Apache License, Version 2.0 (the "License"); you may not use this file except in compliance with the
License. You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software distributed under the License is distributed on an
"AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the License for the specific
language governing permissions and limitations under the License.

Loads the module that exports the runtime defaults and selects a defaults object from it.

JSON modules are parsed; JavaScript and TypeScript modules are evaluated statically (see `sdd_evaluate`). For a
TypeScript module the compiled JavaScript is preferred when the tsconfig says where it lives, because that is what the
package actually ships. The `ts_mode` decides what happens when no compiled output exists:

- "auto": evaluate the TypeScript source instead.
- "on": always evaluate the TypeScript source, even if compiled output exists.
- "off": fail with COULD_NOT_LOAD_TS.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from sdd_config import JS_EXTENSIONS, TS_EXTENSIONS, PathLike, TsProject, infer_built_js_for_ts, relative_to_root
from sdd_errors import DocDefaultsError
from sdd_evaluate import evaluate_module, language_for_path
from sdd_log import debug
from typing import Any, Dict, List, Optional
import json


@dataclass(frozen=True)
class LoaderContext:
    """
    Everything the loader needs to know about the project. It never reads the process environment.

    Attributes:
        repo_root (Path): The project root, used for messages.
        ts (TsProject): The TypeScript output layout, used to find compiled JavaScript.
        ts_mode (str): "auto", "on" or "off".
    """

    repo_root: Path
    ts: TsProject
    ts_mode: str = "auto"


def _not_found(path: Path, ctx: LoaderContext) -> DocDefaultsError:
    return DocDefaultsError(
        "DEFAULTS_MODULE_NOT_FOUND",
        f"Defaults module not found: {relative_to_root(ctx.repo_root, path)}",
    )


def _evaluate_file(path: Path, ctx: LoaderContext, language: Optional[str] = None) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        raise _not_found(path, ctx)
    language = language or language_for_path(str(path))
    debug(f"Loading {language} module {relative_to_root(ctx.repo_root, path)}")
    return evaluate_module(text, language)


def _load_json(path: Path, ctx: LoaderContext) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError:
        raise _not_found(path, ctx)
    except json.JSONDecodeError as e:
        raise DocDefaultsError(
            "MODULE_PARSE_FAILED",
            f"Could not parse {relative_to_root(ctx.repo_root, path)}: {e.msg} at line {e.lineno}",
        )

    debug(f"Loading JSON module {relative_to_root(ctx.repo_root, path)}")
    exports: Dict[str, Any] = dict(data) if isinstance(data, dict) else {}
    exports.setdefault("default", data)
    return exports


def _built_candidates(path: Path, ctx: LoaderContext) -> List[Path]:
    built = infer_built_js_for_ts(ctx.ts, path)
    if built is None:
        return []
    return [built, built.with_suffix(".cjs")]


def load_module_smart(path: PathLike, ctx: LoaderContext) -> Dict[str, Any]:
    """
    Load a defaults module and return its exports.

    Parameters:
    - `path`: Absolute path of the module.
    - `ctx`: The loader context.

    Returns:
    - Export name to value. The default export (or the whole JSON document, or CommonJS `module.exports`) is stored
      under "default".

    Raises:
    - `DocDefaultsError`: DEFAULTS_MODULE_NOT_FOUND if the module does not exist, COULD_NOT_LOAD_TS if `ts_mode` is
      "off" and no compiled JavaScript exists, INVALID_CONFIG for an unsupported file extension.
    """

    path = Path(path)
    ext = path.suffix.lower()

    if ext == ".json":
        return _load_json(path, ctx)

    if ext in JS_EXTENSIONS:
        return _evaluate_file(path, ctx, "javascript")

    if ext in TS_EXTENSIONS:
        if ctx.ts_mode != "on":
            for candidate in _built_candidates(path, ctx):
                if candidate.is_file():
                    return _evaluate_file(candidate, ctx, "javascript")

            if ctx.ts_mode == "off":
                out_dir = ctx.ts.out_dir or ctx.ts.declaration_dir
                raise DocDefaultsError(
                    "COULD_NOT_LOAD_TS",
                    f"Could not load {relative_to_root(ctx.repo_root, path)}: no compiled JavaScript found (ts mode=off).",
                    hint=(
                        f"Build your project so compiled JS exists in "
                        f"{relative_to_root(ctx.repo_root, out_dir) if out_dir else '<outDir>'}, "
                        f'or run with "--ts auto" (or SYNCDOCDEFAULTS_TS=auto) to read the TS source.'
                    ),
                )
            debug(f"No compiled JS for {relative_to_root(ctx.repo_root, path)}; reading the TS source")

        if not path.is_file():
            raise _not_found(path, ctx)
        return _evaluate_file(path, ctx)

    raise DocDefaultsError("INVALID_CONFIG", f"Unsupported file extension for {path}")


def select_defaults(exports: Dict[str, Any], member: str) -> Any:
    """
    Select a (possibly nested) defaults object from a module's exports.

    Parameters:
    - `exports`: The module exports.
    - `member`: A dotted path such as "DEFAULTS" or "config.defaults.ui".

    Returns:
    - The selected value, or `None` if the path does not exist. A single-segment name that is not a named export is
      also looked up on the default export.

    Example:
        select_defaults({"default": {"DEFAULTS": {"a": 1}}}, "DEFAULTS")  ->  {"a": 1}
    """

    parts = member.split(".")
    cur: Any = exports
    for p in parts:
        if not isinstance(cur, dict) or p not in cur:
            cur = None
            break
        cur = cur[p]

    if cur is None and len(parts) == 1:
        default = exports.get("default")
        if isinstance(default, dict):
            cur = default.get(parts[0])

    return cur
