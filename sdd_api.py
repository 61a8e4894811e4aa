#!/usr/bin/env python3
"""
Copyright 2025 7th software Ltd.

Licensed under the Apache License, Version 2.0 (the "License"); you may not use this file except in compliance with the
License. You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software distributed under the License is distributed on an
"AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the License for the specific
language governing permissions and limitations under the License.

Library entry points: `inject` and `assert_defaults`.

Both load the config, resolve the TypeScript project, load the defaults module, and then visit every configured target:
resolve its `.d.ts` path, select its defaults object and read the declaration text. `inject` then rewrites the comments
and saves the file (or previews the changed declaration in a dry run); `assert_defaults` only compares, reports every
mismatch, and fails if there was any.

Unlike the text-editing core, these functions are strict: a missing `.d.ts`, interface or defaults object is an error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from sdd_assert import check_defaults
from sdd_config import (
    RUN_DEFAULTS,
    DocDefaultsConfig,
    PathLike,
    RunOptions,
    TargetConfig,
    TsProject,
    discover_config,
    find_nearest_tsconfig,
    infer_dts_from_src,
    load_config,
    load_ts_project,
    relative_to_root,
    resolve_options,
    validate_path_within_root,
)
from sdd_errors import DocDefaultsError, config_not_found
from sdd_extract import extract_declaration_block
from sdd_inject import Outcome, inject_defaults
from sdd_loader import LoaderContext, load_module_smart, select_defaults
from sdd_locator import find_interface_body
from sdd_log import debug, echo, error, set_debug, set_verbosity, warn
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class InjectTargetResult:
    name: str
    interface_name: str
    dts_path: Path
    updated: int
    missing: List[Outcome] = field(default_factory=list)


@dataclass
class InjectResult:
    """
    Outcome of an `inject` run.

    Attributes:
        updated (int): Total number of comments created or changed across all targets.
        project_label (Optional[str]): The config's `label`, if any.
        target_results (List[InjectTargetResult]): Per-target details, in config order.
    """

    updated: int = 0
    project_label: Optional[str] = None
    target_results: List[InjectTargetResult] = field(default_factory=list)


@dataclass(frozen=True)
class AssertTargetResult:
    name: str
    interface_name: str
    dts_path: Path
    mismatches: List[Outcome] = field(default_factory=list)


@dataclass
class AssertResult:
    ok: bool = True
    project_label: Optional[str] = None
    target_results: List[AssertTargetResult] = field(default_factory=list)


@dataclass(frozen=True)
class _Session:
    options: RunOptions
    config: DocDefaultsConfig
    ts: TsProject
    defaults_path: Path
    exports: Dict[str, Any]


# ---- Shared setup ------------------------------------------------------------


def _open_session(config_path: Optional[PathLike], options: Optional[RunOptions]) -> _Session:
    """
    Load everything a run needs before visiting targets.

    Parameters:
    - `config_path`: The config file; discovered upward from the repo root when `None`.
    - `options`: Run options; resolved from defaults when `None`.

    Returns:
    - The loaded session.
    """

    if options is None:
        options = resolve_options()
    set_verbosity(not options.quiet)
    set_debug(options.debug_paths)

    repo_root = options.repo_root
    if config_path is None:
        config_path = discover_config(repo_root)
        if config_path is None:
            raise config_not_found(str(repo_root))
    config_path = Path(config_path).resolve()

    config = load_config(config_path, repo_root)
    debug(f"repoRoot={repo_root}")

    if config.tsconfig:
        tsconfig_path = validate_path_within_root(repo_root, config.tsconfig, "tsconfig")
    else:
        tsconfig_path = find_nearest_tsconfig(repo_root)
    ts = load_ts_project(tsconfig_path, repo_root)
    debug(
        f"projectRoot={ts.project_root} tsconfig={ts.tsconfig_path} rootDir={ts.root_dir} "
        f"outDir={ts.out_dir} declarationDir={ts.declaration_dir} tsMode={options.ts_mode}"
    )

    defaults_path = validate_path_within_root(repo_root, config.defaults, "defaults")
    debug(f"defaultsModulePath={defaults_path}")
    exports = load_module_smart(defaults_path, LoaderContext(repo_root, ts, options.ts_mode))

    return _Session(options, config, ts, defaults_path, exports)


def _resolve_dts_path(session: _Session, target: TargetConfig) -> Path:
    repo_root = session.options.repo_root
    if target.dts:
        return validate_path_within_root(repo_root, target.dts, "dts")

    src = validate_path_within_root(repo_root, target.types, "types")
    dts = infer_dts_from_src(session.ts, src)
    if dts is None:
        raise DocDefaultsError(
            "DTS_NOT_FOUND",
            f"{target.label}: could not infer the .d.ts for {target.types}.",
            hint='Ensure tsconfig has "rootDir" and "declarationDir" (or "outDir"), or set "dts" on the target.',
        )
    return dts


def _select_target_defaults(session: _Session, target: TargetConfig) -> Dict[str, Any]:
    defaults = select_defaults(session.exports, target.member)
    if not isinstance(defaults, dict):
        raise DocDefaultsError(
            "DEFAULTS_SYMBOL_NOT_FOUND",
            f'{target.label}: defaults symbol "{target.member}" not found or not an object in '
            f"{relative_to_root(session.options.repo_root, session.defaults_path)}",
        )
    return defaults


def _read_dts(session: _Session, target: TargetConfig, dts_path: Path) -> str:
    rel = relative_to_root(session.options.repo_root, dts_path)
    try:
        # Bytes in, bytes out: line endings must survive untouched
        data = dts_path.read_bytes()
    except OSError:
        raise DocDefaultsError("DTS_NOT_FOUND", f"{target.label}: .d.ts not found at {rel}")
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DocDefaultsError(
            "DTS_DECODE_FAILED",
            f"{target.label}: could not decode {rel} as UTF-8 ({e.reason} at byte {e.start})",
        )


# ---- Public API --------------------------------------------------------------


def inject(config_path: Optional[PathLike] = None, options: Optional[RunOptions] = None) -> InjectResult:
    """
    Write `@default` annotations into the declaration files of every configured target.

    Parameters:
    - `config_path`: Path to the config file. If omitted, it is discovered upward from `options.repo_root`.
    - `options`: Run options. In a dry run nothing is written; the updated declaration of each changed target is printed
      instead.

    Returns:
    - An `InjectResult`. Properties named in a defaults object but absent from the interface are logged as warnings
      and listed per target; they do not fail the run.

    Raises:
    - `DocDefaultsError`: If the config, the defaults module, a `.d.ts` file, an interface or a defaults object cannot
      be found or loaded.
    """

    session = _open_session(config_path, options)
    options, config = session.options, session.config
    tag = options.tag or config.tag or RUN_DEFAULTS["tag"]
    repo_root = options.repo_root

    result = InjectResult(project_label=config.label)
    for target in config.targets:
        name = target.label
        dts_path = _resolve_dts_path(session, target)
        defaults = _select_target_defaults(session, target)
        text = _read_dts(session, target, dts_path)
        rel = relative_to_root(repo_root, dts_path)

        if find_interface_body(text, target.interface) is None:
            raise DocDefaultsError("INTERFACE_NOT_FOUND", f'{name}: Interface "{target.interface}" not found in {rel}')

        edit = inject_defaults(text, target.interface, defaults, tag)
        for m in edit.missing:
            warn(f'{name}: property "{m.prop}" not found in interface {target.interface}')

        if edit.updated_count > 0:
            if options.dry_run:
                print(f"--- [sync-doc-defaults] {name}: updated .d.ts (dry run) ---\n")
                print(extract_declaration_block(edit.updated_text, target.interface) or "(not found)")
                print(f"\n--- end of {name} ---\n")
            else:
                dts_path.write_bytes(edit.updated_text.encode("utf-8"))
            echo(f"{name}: injected {edit.updated_count} @{tag} update(s) → {rel}")
        else:
            echo(f"{name}: up-to-date")

        debug(f'target="{name}" src={target.types} dts={rel} tsconfig={session.ts.tsconfig_path}')

        result.updated += edit.updated_count
        result.target_results.append(
            InjectTargetResult(name, target.interface, dts_path, edit.updated_count, list(edit.missing))
        )

    return result


def assert_defaults(config_path: Optional[PathLike] = None, options: Optional[RunOptions] = None) -> AssertResult:
    """
    Verify that the documented defaults of every configured target match the runtime defaults.

    Every mismatch of every target is logged before failing, so all drift can be fixed in one pass.

    Parameters:
    - `config_path`: Path to the config file. If omitted, it is discovered upward from `options.repo_root`.
    - `options`: Run options.

    Returns:
    - An `AssertResult` with `ok=True`.

    Raises:
    - `DocDefaultsError` (ASSERT_FAILED): If any documented default is missing or differs.
    - `DocDefaultsError`: If the config, the defaults module, a `.d.ts` file or a defaults object cannot be loaded.
    """

    session = _open_session(config_path, options)
    config = session.config

    result = AssertResult(project_label=config.label)
    for target in config.targets:
        name = target.label
        dts_path = _resolve_dts_path(session, target)
        defaults = _select_target_defaults(session, target)
        text = _read_dts(session, target, dts_path)

        check = check_defaults(text, target.interface, defaults)
        for m in check.mismatches:
            found = f"found {m.found}" if m.found is not None else "missing"
            error(f"{name}: {target.interface}.{m.prop} expected @default {m.expected} ({found})")

        if not check.ok:
            result.ok = False
        result.target_results.append(AssertTargetResult(name, target.interface, dts_path, list(check.mismatches)))

    if not result.ok:
        count = sum(len(t.mismatches) for t in result.target_results)
        raise DocDefaultsError("ASSERT_FAILED", f"sync-doc-defaults assert failed: {count} mismatch(es)")

    return result
