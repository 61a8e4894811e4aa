"""End-to-end tests of the `inject` and `assert_defaults` library entry points."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional
import json

import pytest

from conftest import DTS_OPTIONS, write_files
from sdd_api import assert_defaults, inject
from sdd_config import resolve_options
from sdd_errors import DocDefaultsError

DTS = Path("dist") / "types" / "types.d.ts"


def _write_config(project: Path, target: Optional[Dict[str, Any]] = None, **top: Any) -> Path:
    t = {"name": "Opts", "types": "src/types.ts", "interface": "Options", "member": "DEFAULTS"}
    t.update(target or {})
    config: Dict[str, Any] = {"defaults": "src/constants.ts", "targets": [t]}
    config.update(top)
    path = project / "docdefaults.config.json"
    path.write_text(json.dumps(config), encoding="utf-8")
    return path


def _options(project: Path, **overrides: Any):
    return resolve_options(dict(overrides, repo_root=project))


def test_inject_writes_declaration(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    result = inject(project / "docdefaults.config.json", _options(project))

    assert result.updated == 2
    assert result.target_results[0].dts_path == project / DTS
    assert result.target_results[0].missing == []
    text = (project / DTS).read_text(encoding="utf-8")
    assert '  /**\n   * @default "fast"\n   */\n  mode: string;' in text
    assert "  /**\n   * @default 3\n   */\n  retries?: number;" in text
    assert f"Opts: injected 2 @default update(s) → {DTS}" in capsys.readouterr().out


def test_inject_twice_is_up_to_date(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    inject(project / "docdefaults.config.json", _options(project))
    first = (project / DTS).read_bytes()
    capsys.readouterr()

    result = inject(project / "docdefaults.config.json", _options(project))
    assert result.updated == 0
    assert (project / DTS).read_bytes() == first
    assert "Opts: up-to-date" in capsys.readouterr().out


def test_inject_discovers_config(project: Path) -> None:
    assert inject(options=_options(project)).updated == 2


def test_dry_run_prints_and_does_not_write(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    result = inject(project / "docdefaults.config.json", _options(project, dry_run=True))

    assert result.updated == 2
    assert (project / DTS).read_text(encoding="utf-8") == DTS_OPTIONS
    out = capsys.readouterr().out
    assert "--- [sync-doc-defaults] Opts: updated .d.ts (dry run) ---" in out
    assert 'export interface Options {\n  /**\n   * @default "fast"' in out
    assert "--- end of Opts ---" in out


def test_assert_after_inject(project: Path) -> None:
    inject(project / "docdefaults.config.json", _options(project))
    result = assert_defaults(project / "docdefaults.config.json", _options(project))
    assert result.ok
    assert result.target_results[0].mismatches == []


def test_assert_reports_every_mismatch(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(DocDefaultsError) as e:
        assert_defaults(project / "docdefaults.config.json", _options(project))

    assert e.value.code == "ASSERT_FAILED"
    assert e.value.exit_code == 1
    assert "2 mismatch(es)" in str(e.value)
    err = capsys.readouterr().err
    assert 'Opts: Options.mode expected @default "fast" (missing)' in err
    assert "Opts: Options.retries expected @default 3 (missing)" in err


def test_assert_reports_found_value(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    write_files(project, {str(DTS): "export interface Options {\n  /** @default 4 */\n  retries?: number;\n}\n"})
    write_files(project, {"src/constants.ts": "export const DEFAULTS = { retries: 3 };\n"})
    with pytest.raises(DocDefaultsError):
        assert_defaults(project / "docdefaults.config.json", _options(project))
    assert "Opts: Options.retries expected @default 3 (found 4)" in capsys.readouterr().err


def test_config_tag_is_used(project: Path) -> None:
    config = _write_config(project, tag="defaultValue")
    inject(config, _options(project))
    assert '@defaultValue "fast"' in (project / DTS).read_text(encoding="utf-8")


def test_option_tag_beats_config_tag(project: Path) -> None:
    config = _write_config(project, tag="defaultValue")
    inject(config, _options(project, tag="default"))
    text = (project / DTS).read_text(encoding="utf-8")
    assert '@default "fast"' in text
    assert "@defaultValue" not in text


def test_explicit_dts_path(project: Path) -> None:
    write_files(project, {"types/custom.d.ts": DTS_OPTIONS})
    config = _write_config(project, target={"dts": "types/custom.d.ts"})
    result = inject(config, _options(project))
    assert result.target_results[0].dts_path == project / "types" / "custom.d.ts"
    assert (project / DTS).read_text(encoding="utf-8") == DTS_OPTIONS


def test_unknown_property_warns(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    write_files(project, {"src/constants.ts": "export const DEFAULTS = { mode: 'fast', extra: 1 };\n"})
    result = inject(project / "docdefaults.config.json", _options(project))
    assert result.updated == 1
    assert [m.prop for m in result.target_results[0].missing] == ["extra"]
    assert 'Opts: property "extra" not found in interface Options' in capsys.readouterr().err


def test_crlf_declaration_keeps_crlf(project: Path) -> None:
    (project / DTS).write_bytes(DTS_OPTIONS.replace("\n", "\r\n").encode("utf-8"))
    inject(project / "docdefaults.config.json", _options(project))
    data = (project / DTS).read_bytes()
    assert b"@default 3\r\n" in data
    assert b"\n" not in data.replace(b"\r\n", b"")


def test_quiet_run_prints_nothing(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    inject(project / "docdefaults.config.json", _options(project, quiet=True))
    assert capsys.readouterr().out == ""


def test_debug_paths_prints_breadcrumbs(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    inject(project / "docdefaults.config.json", _options(project, debug_paths=True))
    out = capsys.readouterr().out
    assert "[sync-doc-defaults:debug] defaultsModulePath=" in out
    assert 'target="Opts"' in out


@pytest.mark.parametrize(
    "target,top,code",
    [
        ({"interface": "Nope"}, {}, "INTERFACE_NOT_FOUND"),
        ({"member": "NOPE"}, {}, "DEFAULTS_SYMBOL_NOT_FOUND"),
        ({"dts": "types/missing.d.ts"}, {}, "DTS_NOT_FOUND"),
        ({"types": "../elsewhere.ts"}, {}, "INVALID_CONFIG"),
        ({}, {"defaults": "../outside.ts"}, "INVALID_CONFIG"),
        ({}, {"defaults": "src/missing.ts"}, "DEFAULTS_MODULE_NOT_FOUND"),
    ],
)
def test_inject_failures(project: Path, target: Dict[str, Any], top: Dict[str, Any], code: str) -> None:
    config = _write_config(project, target=target, **top)
    with pytest.raises(DocDefaultsError) as e:
        inject(config, _options(project))
    assert e.value.code == code


def test_types_outside_root_dir_cannot_be_inferred(project: Path) -> None:
    write_files(project, {"lib/types.ts": ""})
    config = _write_config(project, target={"types": "lib/types.ts"})
    with pytest.raises(DocDefaultsError) as e:
        inject(config, _options(project))
    assert e.value.code == "DTS_NOT_FOUND"
    assert "declarationDir" in str(e.value)


def test_missing_config(tmp_path: Path) -> None:
    with pytest.raises(DocDefaultsError) as e:
        inject(options=_options(tmp_path.resolve()))
    assert e.value.code == "CONFIG_NOT_FOUND"


def test_undecodable_declaration_is_reported(project: Path) -> None:
    (project / DTS).write_bytes(b"export interface Options {\n  mode: string; // \xff\xfe\n}\n")
    with pytest.raises(DocDefaultsError) as e:
        inject(project / "docdefaults.config.json", _options(project))
    assert e.value.code == "DTS_DECODE_FAILED"
    assert e.value.exit_code == 3
    assert "could not decode" in str(e.value)
    assert "not found" not in str(e.value)
