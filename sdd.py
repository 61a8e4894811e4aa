#!/usr/bin/env python3
"""
Copyright 2025 7th software Ltd.

Licensed under the Apache License, Version 2.0 (the "License"); you may not use this file except in compliance with the
License. You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software distributed under the License is distributed on an
"AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the License for the specific
language governing permissions and limitations under the License.

sync-doc-defaults: keep `@default` JSDoc tags in generated `.d.ts` files in sync with the runtime defaults they
document.

Usage:
  sync-doc-defaults <inject|assert> [options]
  sdd <inject|assert> [options]

`inject` writes the annotations; `assert` verifies them without writing, and exits non-zero on any mismatch, which
makes it suitable for CI.

Exit codes: 0 success, 1 assertion failed, 2 config not found, 3 loading error, 4 invalid config, 5 usage error,
6 anything else.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from sdd_api import assert_defaults, inject
from sdd_config import discover_config, resolve_options
from sdd_errors import EXIT_CODES, DocDefaultsError
from sdd_log import echo, error, set_debug, set_verbosity
from typing import NoReturn, Optional, Sequence
import argparse
import os


_ENV_HELP = """\
environment:
  SYNCDOCDEFAULTS_TS=auto|on|off            Used when --ts is not given
  SYNCDOCDEFAULTS_TAG=default|defaultValue  Used when --tag is not given
  SYNCDOCDEFAULTS_QUIET=1                   Silences routine logs
  SYNCDOCDEFAULTS_DEBUG_PATHS=1             Enables path breadcrumbs

examples:
  sync-doc-defaults inject
  sync-doc-defaults assert --quiet
  sdd inject --dry --debug-paths
  sdd inject -c ./docdefaults.config.json
"""


class _ArgumentParser(argparse.ArgumentParser):
    """An argument parser that reports usage errors as `DocDefaultsError` instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise DocDefaultsError("CLI_USAGE", message, hint=self.format_usage().rstrip())


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments and return an argparse.Namespace object.

    Flags that are not given are left as `None`, so that the `SYNCDOCDEFAULTS_*` environment variables can fill them.

    Parameters:
    - `argv`: Optional sequence of command-line arguments. Defaults to `sys.argv[1:]`.

    Returns:
    - An argparse.Namespace object containing the parsed arguments.
    """

    p = _ArgumentParser(
        prog="sync-doc-defaults",
        description="Synchronize @default JSDoc tags in .d.ts files with runtime default values",
        epilog=_ENV_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("command", choices=("inject", "assert"), help="inject: write @default docs; assert: verify them")
    p.add_argument("--config", "-c", default=None, help="Path to config file (default: search upward from cwd)")
    p.add_argument("--dry", action="store_true", help="(inject) Show changes but don't write files")
    p.add_argument("--quiet", action="store_const", const=True, default=None, help="Minimal output")
    p.add_argument("--debug-paths", action="store_const", const=True, default=None, help="Print path breadcrumbs")
    p.add_argument("--ts", choices=("auto", "on", "off"), default=None, help="TypeScript handling mode (default: auto)")
    p.add_argument("--tag", choices=("default", "defaultValue"), default=None, help="JSDoc tag to render")
    return p.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point of the command line tool.

    Parameters:
    - `argv`: Optional sequence of command-line arguments.

    Returns:
    - The process exit code. Expected failures are reported on stderr and mapped to their exit code.
    """

    try:
        args = _parse_args(argv)
        options = resolve_options(
            {
                "repo_root": os.getcwd(),
                "dry_run": args.dry,
                "quiet": args.quiet,
                "debug_paths": args.debug_paths,
                "ts_mode": args.ts,
                "tag": args.tag,
            },
            os.environ,
        )
        set_verbosity(not options.quiet)
        set_debug(options.debug_paths)

        config_path = Path(args.config).resolve() if args.config else discover_config(Path.cwd())
        if config_path is None:
            error("No config found. Looked for docdefaults.config.(mjs|cjs|js|json) up from cwd.")
            return EXIT_CODES["CONFIG_NOT_FOUND"]

        if args.command == "inject":
            inject(config_path, options)
        else:
            assert_defaults(config_path, replace(options, dry_run=False))
            echo("All defaults asserted OK")

    except DocDefaultsError as e:
        error(str(e))
        return e.exit_code

    return EXIT_CODES["SUCCESS"]


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
