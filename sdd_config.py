#!/usr/bin/env python3
"""
Copyright 2025 7th software Ltd.

Licensed under the Apache License, Version 2.0 (the "License"); you may not use this file except in compliance with the
License. You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software distributed under the License is distributed on an
"AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the License for the specific
language governing permissions and limitations under the License.

Configuration for sync-doc-defaults: the config file, run options and the TypeScript project layout.

A config file names a defaults module and a list of targets. Each target ties one interface in one declaration file to
one exported defaults object:

    {
      "defaults": "src/constants.ts",
      "targets": [
        { "name": "Example", "types": "src/types.ts", "interface": "ExampleOptions", "member": "DEFAULTS" }
      ]
    }

Config files are discovered by walking up from a start directory. JSON configs are parsed directly; JS and TS configs
are evaluated statically and their default export (or `module.exports`) is used.

Run options come from three places, in order of precedence: values passed explicitly (the command line or a library
caller), the `SYNCDOCDEFAULTS_*` environment variables, then `RUN_DEFAULTS`.

The TypeScript project (`rootDir`, `outDir`, `declarationDir`) is read from the nearest tsconfig and used to infer where
a source file's compiled `.js` and `.d.ts` live.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from sdd_errors import DocDefaultsError, usage_error
from sdd_evaluate import evaluate_expression_text, evaluate_module, language_for_path
from sdd_jsdoc import DEFAULT_TAGS
from sdd_log import debug
from typing import Any, Dict, List, Mapping, Optional, Union
import json
import os


CONFIG_FILENAME_CANDIDATES = [
    "docdefaults.config.mjs",
    "docdefaults.config.cjs",
    "docdefaults.config.js",
    "docdefaults.config.json",
    "sync-doc-defaults.config.mjs",
    "sync-doc-defaults.config.cjs",
    "sync-doc-defaults.config.js",
    "sync-doc-defaults.config.json",
]

TSCONFIG_FILENAME_CANDIDATES = [
    "tsconfig.docdefaults.json",
    "tsconfig.build.json",
    "tsconfig.types.json",
    "tsconfig.json",
]

RUN_DEFAULTS: Dict[str, Any] = {
    "dry_run": False,
    "quiet": False,
    "debug_paths": False,
    "ts_mode": "auto",
    "tag": "default",
}

TS_MODES = ("auto", "on", "off")

JS_EXTENSIONS = (".js", ".mjs", ".cjs", ".jsx")
TS_EXTENSIONS = (".ts", ".tsx", ".mts", ".cts")

PathLike = Union[str, Path]


# ---- Config file -------------------------------------------------------------


@dataclass(frozen=True)
class TargetConfig:
    """
    One interface to keep in sync.

    Attributes:
        types (str): Repo-relative path of the TypeScript source declaring the interface.
        interface (str): Name of the interface in the generated declaration file.
        member (str): Dotted path of the defaults object within the defaults module, e.g. "DEFAULTS".
        name (Optional[str]): Label used in log output; defaults to the interface name.
        dts (Optional[str]): Explicit repo-relative `.d.ts` path; inferred from the tsconfig when omitted.
    """

    types: str
    interface: str
    member: str
    name: Optional[str] = None
    dts: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name or self.interface


@dataclass(frozen=True)
class DocDefaultsConfig:
    """
    A validated config file.

    Attributes:
        defaults (str): Repo-relative path of the module exporting the defaults objects.
        targets (List[TargetConfig]): The interfaces to keep in sync.
        tsconfig (Optional[str]): Repo-relative tsconfig path; discovered when omitted.
        tag (Optional[str]): Preferred tag, "default" or "defaultValue".
        label (Optional[str]): Human-readable project label for log output.
    """

    defaults: str
    targets: List[TargetConfig] = field(default_factory=list)
    tsconfig: Optional[str] = None
    tag: Optional[str] = None
    label: Optional[str] = None


def discover_config(start_dir: PathLike) -> Optional[Path]:
    """
    Search for a config file from `start_dir` up to the filesystem root.

    In each directory the candidates in `CONFIG_FILENAME_CANDIDATES` are tried in order.

    Returns:
    - The absolute path of the first config found, or `None`.
    """

    d = Path(start_dir).resolve()
    while True:
        for name in CONFIG_FILENAME_CANDIDATES:
            candidate = d / name
            if candidate.is_file():
                return candidate
        if d.parent == d:
            return None
        d = d.parent


def _invalid(path: Path, message: str) -> DocDefaultsError:
    return DocDefaultsError("INVALID_CONFIG", f"Invalid config in {path}: {message}")


def _optional_str(raw: Mapping[str, Any], key: str, path: Path, where: str) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise _invalid(path, f'{where}"{key}" must be a string if provided')
    return value


def _required_str(raw: Mapping[str, Any], key: str, path: Path, where: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value:
        raise _invalid(path, f'{where}"{key}" must be a non-empty string')
    return value


def validate_config(raw: Any, path: PathLike) -> DocDefaultsConfig:
    """
    Check the shape of a loaded config and convert it to a `DocDefaultsConfig`.

    Parameters:
    - `raw`: The value the config file evaluated to.
    - `path`: The config file, for error messages.

    Returns:
    - The validated config.

    Raises:
    - `DocDefaultsError` (INVALID_CONFIG): If a required field is missing or a field has the wrong type.
    """

    path = Path(path)
    if not isinstance(raw, dict):
        raise _invalid(path, "not an object")

    defaults = _required_str(raw, "defaults", path, "")
    targets_raw = raw.get("targets")
    if not isinstance(targets_raw, list):
        raise _invalid(path, '"targets" must be an array')

    targets: List[TargetConfig] = []
    for i, t in enumerate(targets_raw):
        if not isinstance(t, dict):
            raise _invalid(path, f"target #{i + 1} is not an object")
        where = f"target #{i + 1}: "
        targets.append(
            TargetConfig(
                types=_required_str(t, "types", path, where),
                interface=_required_str(t, "interface", path, where),
                member=_required_str(t, "member", path, where),
                name=_optional_str(t, "name", path, where),
                dts=_optional_str(t, "dts", path, where),
            )
        )

    tag = _optional_str(raw, "tag", path, "")
    if tag is not None and tag not in DEFAULT_TAGS:
        raise _invalid(path, f'"tag" must be one of {", ".join(DEFAULT_TAGS)}')

    return DocDefaultsConfig(
        defaults=defaults,
        targets=targets,
        tsconfig=_optional_str(raw, "tsconfig", path, ""),
        tag=tag,
        label=_optional_str(raw, "label", path, ""),
    )


def load_config(path: PathLike, repo_root: Optional[PathLike] = None) -> DocDefaultsConfig:
    """
    Load and validate a config file.

    Parameters:
    - `path`: The config file. `.json` files are parsed as JSON; `.js`, `.mjs`, `.cjs` and TypeScript configs are
      evaluated statically.
    - `repo_root`: Optional project root, only used to shorten paths in debug output.

    Returns:
    - The validated config.

    Raises:
    - `DocDefaultsError`: CONFIG_NOT_FOUND if the file cannot be read, INVALID_CONFIG if it cannot be parsed or has the
      wrong shape.
    """

    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DocDefaultsError("CONFIG_NOT_FOUND", f"Could not read config file {path}: {e.strerror or e}")

    ext = path.suffix.lower()
    if ext == ".json":
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise _invalid(path, f"not valid JSON ({e.msg} at line {e.lineno})")
    elif ext in JS_EXTENSIONS or ext in TS_EXTENSIONS:
        exports = evaluate_module(text, language_for_path(str(path)))
        raw = exports.get("default", exports)
    else:
        raise _invalid(path, f"unsupported config file extension {ext or '(none)'}")

    config = validate_config(raw, path)
    debug(f"configPath={relative_to_root(repo_root, path) if repo_root else path}")
    return config


# ---- Run options -------------------------------------------------------------


@dataclass(frozen=True)
class RunOptions:
    repo_root: Path
    dry_run: bool = False
    quiet: bool = False
    debug_paths: bool = False
    ts_mode: str = "auto"
    tag: Optional[str] = None


def _env_flag(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    return value.strip().lower() in ("1", "true")


def resolve_options(
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RunOptions:
    """
    Merge explicit options, environment variables and `RUN_DEFAULTS`.

    Parameters:
    - `overrides`: Explicit values keyed by `RunOptions` field name. `None` values count as "not given".
    - `environ`: The environment to read `SYNCDOCDEFAULTS_TS`, `SYNCDOCDEFAULTS_TAG`, `SYNCDOCDEFAULTS_QUIET` and
      `SYNCDOCDEFAULTS_DEBUG_PATHS` from. Nothing is read from the process environment unless the caller passes it.

    Returns:
    - The resolved `RunOptions`. `repo_root` defaults to the current directory. `tag` is `None` when neither an explicit
      value nor the environment sets it.

    Raises:
    - `DocDefaultsError` (CLI_USAGE): If a TS mode or tag value is not recognised.
    """

    given = {k: v for k, v in (overrides or {}).items() if v is not None}
    env = environ or {}

    from_env: Dict[str, Any] = {
        "ts_mode": env.get("SYNCDOCDEFAULTS_TS") or None,
        "tag": env.get("SYNCDOCDEFAULTS_TAG") or None,
        "quiet": _env_flag(env.get("SYNCDOCDEFAULTS_QUIET")),
        "debug_paths": _env_flag(env.get("SYNCDOCDEFAULTS_DEBUG_PATHS")),
    }

    def pick(key: str) -> Any:
        if key in given:
            return given[key]
        if from_env.get(key) is not None:
            return from_env[key]
        return RUN_DEFAULTS[key]

    ts_mode = str(pick("ts_mode")).lower()
    if ts_mode not in TS_MODES:
        raise usage_error(f"Invalid TS mode: {ts_mode}. Use on|off|auto.")
    # The tag stays unset unless given, so that a config file's "tag" can still apply
    tag = given.get("tag") or from_env["tag"]
    if tag is not None and tag not in DEFAULT_TAGS:
        raise usage_error(f"Invalid tag: {tag}. Use default|defaultValue.")

    return RunOptions(
        repo_root=Path(given.get("repo_root") or os.getcwd()).resolve(),
        dry_run=bool(pick("dry_run")),
        quiet=bool(pick("quiet")),
        debug_paths=bool(pick("debug_paths")),
        ts_mode=ts_mode,
        tag=tag,
    )


# ---- TypeScript project ------------------------------------------------------


@dataclass(frozen=True)
class TsProject:
    """
    Where a TypeScript project keeps its sources and build output.

    Attributes:
        project_root (Path): Directory of the tsconfig, or the fallback root when there is none.
        tsconfig_path (Optional[Path]): The tsconfig that was read.
        root_dir (Optional[Path]): Absolute `compilerOptions.rootDir`.
        out_dir (Optional[Path]): Absolute `compilerOptions.outDir`.
        declaration_dir (Optional[Path]): Absolute `compilerOptions.declarationDir`.
    """

    project_root: Path
    tsconfig_path: Optional[Path] = None
    root_dir: Optional[Path] = None
    out_dir: Optional[Path] = None
    declaration_dir: Optional[Path] = None


def find_nearest_tsconfig(start_dir: PathLike) -> Optional[Path]:
    """Walk up from `start_dir` and return the first tsconfig found, trying `TSCONFIG_FILENAME_CANDIDATES` in order."""

    d = Path(start_dir).resolve()
    while True:
        for name in TSCONFIG_FILENAME_CANDIDATES:
            candidate = d / name
            if candidate.is_file():
                return candidate
        if d.parent == d:
            return None
        d = d.parent


def load_ts_project(tsconfig_path: Optional[PathLike], project_root: Optional[PathLike] = None) -> TsProject:
    """
    Read the output layout from a tsconfig.

    tsconfig files may contain comments and trailing commas, so they are read with the expression evaluator rather
    than as strict JSON. `extends` chains are not followed.

    Parameters:
    - `tsconfig_path`: The tsconfig to read, or `None`.
    - `project_root`: Root to report when there is no tsconfig; defaults to the current directory.

    Returns:
    - A `TsProject`. A missing or unreadable tsconfig degrades to a project with no directories set.
    """

    if tsconfig_path is None:
        return TsProject(project_root=Path(project_root or os.getcwd()).resolve())

    tsconfig_path = Path(tsconfig_path).resolve()
    base = tsconfig_path.parent
    try:
        raw = evaluate_expression_text(tsconfig_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        debug(f"could not read {tsconfig_path}: {e}")
        return TsProject(project_root=base, tsconfig_path=tsconfig_path)

    options = raw.get("compilerOptions") if isinstance(raw, dict) else None
    if not isinstance(options, dict):
        options = {}

    def directory(key: str) -> Optional[Path]:
        value = options.get(key)
        return (base / value).resolve() if isinstance(value, str) and value else None

    return TsProject(
        project_root=base,
        tsconfig_path=tsconfig_path,
        root_dir=directory("rootDir"),
        out_dir=directory("outDir"),
        declaration_dir=directory("declarationDir"),
    )


def _with_extension(rel: Path, extension: str) -> Path:
    name = rel.name
    i = name.rfind(".")
    return rel.with_name((name[:i] if i > 0 else name) + extension)


def _mirror(src: PathLike, root: Optional[Path], out_base: Optional[Path], extension: str) -> Optional[Path]:
    if root is None or out_base is None:
        return None
    try:
        rel = Path(src).resolve().relative_to(root)
    except ValueError:
        return None
    return out_base / _with_extension(rel, extension)


def infer_dts_from_src(ts: TsProject, src: PathLike) -> Optional[Path]:
    """
    Map a source file to its generated declaration file.

    `src/models/options.ts` under rootDir `src` and declarationDir `dist/types` maps to
    `dist/types/models/options.d.ts`. `outDir` is used when there is no `declarationDir`.

    Returns:
    - The `.d.ts` path, or `None` if the layout is unknown or `src` lies outside `rootDir`.
    """

    return _mirror(src, ts.root_dir, ts.declaration_dir or ts.out_dir, ".d.ts")


def infer_built_js_for_ts(ts: TsProject, src: PathLike) -> Optional[Path]:
    """
    Map a TypeScript source file to its compiled JavaScript.

    Like `infer_dts_from_src`, but prefers `outDir` over `declarationDir` and produces a `.js` path.
    """

    return _mirror(src, ts.root_dir, ts.out_dir or ts.declaration_dir, ".js")


# ---- Paths -------------------------------------------------------------------


def validate_path_within_root(root: PathLike, path: PathLike, label: str) -> Path:
    """
    Resolve a config-relative path and make sure it stays inside the project root.

    Parameters:
    - `root`: The project root.
    - `path`: A path from the config, relative to `root` (or absolute).
    - `label`: What the path is for ("defaults", "types", "dts"), for the error message.

    Returns:
    - The resolved absolute path.

    Raises:
    - `DocDefaultsError` (INVALID_CONFIG): If the path escapes `root`.
    """

    root = Path(root).resolve()
    resolved = (root / path).resolve()
    try:
        resolved.relative_to(root)
    except ValueError:
        raise DocDefaultsError("INVALID_CONFIG", f"Security: {label} path escapes project root: {path}")
    return resolved


def relative_to_root(root: Optional[PathLike], path: PathLike) -> str:
    """Return `path` relative to `root` for display, or the path itself when it lies elsewhere."""

    if root is None:
        return str(path)
    try:
        rel = os.path.relpath(Path(path), Path(root))
    except ValueError:
        return str(path)
    return str(path) if rel == ".." or rel.startswith(".." + os.sep) else rel
