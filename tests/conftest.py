"""Shared fixtures and helpers for tests."""

from __future__ import annotations

from pathlib import Path
from typing import Dict

import pytest

import sdd_log

_ENV_VARS = (
    "SYNCDOCDEFAULTS_TS",
    "SYNCDOCDEFAULTS_TAG",
    "SYNCDOCDEFAULTS_QUIET",
    "SYNCDOCDEFAULTS_DEBUG_PATHS",
)


@pytest.fixture(autouse=True)
def _isolated_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """Every test starts verbose, without debug output and without SYNCDOCDEFAULTS_* in the environment."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(sdd_log, "VERBOSE", True)
    monkeypatch.setattr(sdd_log, "DEBUG", False)


def write_files(root: Path, files: Dict[str, str]) -> None:
    """Write `files` (relative path to content) under `root`, creating directories as needed."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))


DTS_OPTIONS = """export interface Options {
  mode: string;
  retries?: number;
}
"""

PROJECT_FILES: Dict[str, str] = {
    "tsconfig.json": '{\n  // build layout\n  "compilerOptions": { "rootDir": "src", "outDir": "dist", '
    '"declarationDir": "dist/types", },\n}\n',
    "src/constants.ts": 'export const DEFAULTS = { mode: "fast", retries: 3 } as const;\n',
    "src/types.ts": "export interface Options {\n  mode: string;\n  retries?: number;\n}\n",
    "dist/types/types.d.ts": DTS_OPTIONS,
    "docdefaults.config.json": '{"defaults": "src/constants.ts", "targets": [{"name": "Opts", "types": "src/types.ts", '
    '"interface": "Options", "member": "DEFAULTS"}]}\n',
}


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small TypeScript project with one target, its sources, and an undocumented .d.ts."""
    root = tmp_path.resolve() / "proj"
    write_files(root, PROJECT_FILES)
    return root
