"""Tests for config discovery and validation, run options and TypeScript layout inference."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import write_files
from sdd_config import (
    DocDefaultsConfig,
    TargetConfig,
    TsProject,
    discover_config,
    find_nearest_tsconfig,
    infer_built_js_for_ts,
    infer_dts_from_src,
    load_config,
    load_ts_project,
    relative_to_root,
    resolve_options,
    validate_config,
    validate_path_within_root,
)
from sdd_errors import DocDefaultsError

CONFIG = {"defaults": "src/constants.ts", "targets": [{"types": "src/types.ts", "interface": "A", "member": "D"}]}


# ---- Config file -------------------------------------------------------------


def test_discover_config_walks_up(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    write_files(root, {"docdefaults.config.json": "{}", "a/b/c/.keep": ""})
    assert discover_config(root / "a" / "b" / "c") == root / "docdefaults.config.json"


def test_discover_config_candidate_order(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    write_files(root, {"docdefaults.config.json": "{}", "docdefaults.config.js": "", "sync-doc-defaults.config.mjs": ""})
    assert discover_config(root) == root / "docdefaults.config.js"


def test_validate_config() -> None:
    config = validate_config(dict(CONFIG, tag="defaultValue", label="Pkg"), "x.json")
    assert config == DocDefaultsConfig(
        defaults="src/constants.ts",
        targets=[TargetConfig(types="src/types.ts", interface="A", member="D")],
        tag="defaultValue",
        label="Pkg",
    )
    assert config.targets[0].label == "A"


@pytest.mark.parametrize(
    "raw,message",
    [
        ([], "not an object"),
        ({"targets": []}, '"defaults" must be a non-empty string'),
        ({"defaults": "d.ts"}, '"targets" must be an array'),
        ({"defaults": "d.ts", "targets": [1]}, "target #1 is not an object"),
        ({"defaults": "d.ts", "targets": [{"types": "t", "interface": "I"}]}, 'target #1: "member"'),
        ({"defaults": "d.ts", "targets": [{"types": "t", "interface": "I", "member": "M", "dts": 3}]}, '"dts"'),
        ({"defaults": "d.ts", "targets": [], "tag": "nope"}, '"tag" must be one of'),
    ],
)
def test_validate_config_rejects(raw: object, message: str) -> None:
    with pytest.raises(DocDefaultsError) as e:
        validate_config(raw, "cfg.json")
    assert e.value.code == "INVALID_CONFIG"
    assert e.value.exit_code == 4
    assert message in str(e.value)


def test_load_js_config(tmp_path: Path) -> None:
    path = tmp_path / "docdefaults.config.mjs"
    path.write_text(
        "/** @type {import('sync-doc-defaults').Config} */\n"
        "export default {\n"
        "  defaults: 'src/constants.ts',\n"
        "  targets: [{ name: 'Ex', types: 'src/types.ts', interface: 'A', member: 'D', },],\n"
        "};\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.defaults == "src/constants.ts"
    assert config.targets[0].label == "Ex"


def test_load_cjs_config(tmp_path: Path) -> None:
    path = tmp_path / "docdefaults.config.cjs"
    path.write_text("module.exports = " + str(CONFIG).replace("'", '"') + ";\n", encoding="utf-8")
    assert load_config(path).targets[0].interface == "A"


def test_load_config_bad_json(tmp_path: Path) -> None:
    path = tmp_path / "docdefaults.config.json"
    path.write_text("{ nope", encoding="utf-8")
    with pytest.raises(DocDefaultsError) as e:
        load_config(path)
    assert e.value.code == "INVALID_CONFIG"


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(DocDefaultsError) as e:
        load_config(tmp_path / "docdefaults.config.json")
    assert e.value.code == "CONFIG_NOT_FOUND"
    assert e.value.exit_code == 2


# ---- Run options -------------------------------------------------------------


def test_resolve_options_defaults(tmp_path: Path) -> None:
    options = resolve_options({"repo_root": tmp_path})
    assert options.repo_root == tmp_path.resolve()
    assert (options.dry_run, options.quiet, options.debug_paths, options.ts_mode, options.tag) == (
        False,
        False,
        False,
        "auto",
        None,
    )


def test_resolve_options_environment(tmp_path: Path) -> None:
    env = {
        "SYNCDOCDEFAULTS_TS": "OFF",
        "SYNCDOCDEFAULTS_TAG": "defaultValue",
        "SYNCDOCDEFAULTS_QUIET": "1",
        "SYNCDOCDEFAULTS_DEBUG_PATHS": "true",
    }
    options = resolve_options({"repo_root": tmp_path}, env)
    assert (options.ts_mode, options.tag, options.quiet, options.debug_paths) == ("off", "defaultValue", True, True)


def test_explicit_options_beat_environment(tmp_path: Path) -> None:
    env = {"SYNCDOCDEFAULTS_TS": "off", "SYNCDOCDEFAULTS_TAG": "defaultValue", "SYNCDOCDEFAULTS_QUIET": "0"}
    options = resolve_options({"repo_root": tmp_path, "ts_mode": "on", "tag": "default", "quiet": None}, env)
    assert (options.ts_mode, options.tag, options.quiet) == ("on", "default", False)


@pytest.mark.parametrize("overrides", [{"ts_mode": "maybe"}, {"tag": "defaults"}])
def test_resolve_options_rejects_bad_values(tmp_path: Path, overrides: dict) -> None:
    with pytest.raises(DocDefaultsError) as e:
        resolve_options(dict(overrides, repo_root=tmp_path))
    assert e.value.code == "CLI_USAGE"
    assert e.value.exit_code == 5


# ---- TypeScript project ------------------------------------------------------


def test_load_ts_project_with_comments(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    write_files(
        root,
        {"tsconfig.json": '{\n  // c\n  "compilerOptions": { "rootDir": "./src", "outDir": "dist", },\n}\n'},
    )
    ts = load_ts_project(find_nearest_tsconfig(root))
    assert ts == TsProject(
        project_root=root, tsconfig_path=root / "tsconfig.json", root_dir=root / "src", out_dir=root / "dist"
    )


def test_find_nearest_tsconfig_prefers_docdefaults_variant(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    write_files(root, {"tsconfig.json": "{}", "tsconfig.docdefaults.json": "{}", "pkg/src/.keep": ""})
    assert find_nearest_tsconfig(root / "pkg" / "src") == root / "tsconfig.docdefaults.json"


def test_load_ts_project_degrades_on_bad_tsconfig(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    write_files(root, {"tsconfig.json": "{ nope"})
    ts = load_ts_project(root / "tsconfig.json")
    assert ts.tsconfig_path == root / "tsconfig.json"
    assert ts.root_dir is None and ts.out_dir is None


def test_load_ts_project_without_tsconfig(tmp_path: Path) -> None:
    assert load_ts_project(None, tmp_path) == TsProject(project_root=tmp_path.resolve())


def test_infer_paths(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    ts = TsProject(project_root=root, root_dir=root / "src", out_dir=root / "dist", declaration_dir=root / "types")
    src = root / "src" / "models" / "options.ts"
    assert infer_dts_from_src(ts, src) == root / "types" / "models" / "options.d.ts"
    assert infer_built_js_for_ts(ts, src) == root / "dist" / "models" / "options.js"


def test_infer_paths_fall_back_between_dirs(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    only_out = TsProject(project_root=root, root_dir=root / "src", out_dir=root / "dist")
    only_decl = TsProject(project_root=root, root_dir=root / "src", declaration_dir=root / "types")
    src = root / "src" / "a.ts"
    assert infer_dts_from_src(only_out, src) == root / "dist" / "a.d.ts"
    assert infer_built_js_for_ts(only_decl, src) == root / "types" / "a.js"


def test_infer_paths_unknown_layout(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    assert infer_dts_from_src(TsProject(project_root=root, out_dir=root / "dist"), root / "src" / "a.ts") is None
    outside = TsProject(project_root=root, root_dir=root / "src", out_dir=root / "dist")
    assert infer_dts_from_src(outside, root / "lib" / "a.ts") is None


# ---- Paths -------------------------------------------------------------------


def test_validate_path_within_root(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    assert validate_path_within_root(root, "src/a.ts", "types") == root / "src" / "a.ts"
    with pytest.raises(DocDefaultsError) as e:
        validate_path_within_root(root, "../outside.ts", "defaults")
    assert e.value.code == "INVALID_CONFIG"
    assert "Security" in str(e.value)


def test_relative_to_root(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    assert relative_to_root(root, root / "dist" / "a.d.ts") == str(Path("dist") / "a.d.ts")
    assert relative_to_root(root / "sub", root / "x") == str(root / "x")
    assert relative_to_root(None, "x") == "x"
