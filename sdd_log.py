#!/usr/bin/env python3
"""
Copyright 2025 7th software Ltd.

Licensed under the Apache License, Version 2.0 (the "License"); you may not use this file except in compliance with the
License. You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software distributed under the License is distributed on an
"AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the License for the specific
language governing permissions and limitations under the License.

This module provides the logging and verbosity control used throughout sync-doc-defaults. It defines four output
functions, `echo`, `warn`, `error` and `debug`, plus the two switches `set_verbosity` and `set_debug`.

`echo` writes routine progress to stdout and `warn` writes warnings to stderr; both are silenced when the program runs
quietly. `error` always writes to stderr. `debug` writes path-resolution breadcrumbs to stdout, but only when debugging
has been switched on.

Every line is prefixed with `[sync-doc-defaults]` so that output from the tool stands out in build logs.
"""

from __future__ import annotations

import sys


LOG_PREFIX = "[sync-doc-defaults]"
DEBUG_PREFIX = "[sync-doc-defaults:debug]"

VERBOSE = True
DEBUG = False


def _join(args) -> str:
    return " ".join(str(a) for a in args)


def echo(*args, **kwargs):
    """
    Write a routine progress message to stdout if the verbosity level is enabled.

    Parameters:
    - `*args`: The message(s) to be printed. They are joined with spaces.
    - `**kwargs`: Additional keyword arguments to pass to the `print` function.

    Notes:
    The verbosity level is controlled by the global variable `VERBOSE`, which `--quiet` switches off.
    """

    if VERBOSE:
        kwargs["flush"] = True
        print(LOG_PREFIX, _join(args), **kwargs)


def warn(*args):
    """
    Write a warning to stderr, unless running quietly.

    Parameters:
    - `*args`: Variable number of arguments to be joined into a single warning message string.
    """

    if VERBOSE:
        sys.stderr.write(f"{LOG_PREFIX} Warning: {_join(args)}\n")
        sys.stderr.flush()


def error(*args, **kwargs):
    """
    Writes an error message to stderr.

    Parameters:
    - `*args`: Variable number of arguments to be joined into a single error message string.
    - `**kwargs`: Not used.

    Notes:
    This function always writes to stderr, regardless of the current verbosity level. Messages that already carry the
    log prefix are not prefixed a second time.
    """

    msg = _join(args)
    if not msg.startswith(LOG_PREFIX):
        msg = f"{LOG_PREFIX} {msg}"
    sys.stderr.write(msg + "\n")
    sys.stderr.flush()


def debug(*args):
    """
    Write a debugging breadcrumb to stdout when `DEBUG` is enabled.

    Parameters:
    - `*args`: The message(s) to be printed.
    """

    if DEBUG:
        print(DEBUG_PREFIX, _join(args), flush=True)


def set_verbosity(state: bool):
    """
    Enable or disable routine program output.

    Parameters:
    - `state`: Set verbosity state to enabled (`True`) or disabled (`False`).

    Notes:
    This updates the global `VERBOSE` variable directly. Errors are always written regardless of this setting.
    """

    global VERBOSE

    VERBOSE = state


def set_debug(state: bool):
    """
    Enable or disable the path-resolution breadcrumbs written by `debug`.

    Parameters:
    - `state`: `True` to print debug lines, `False` to suppress them.
    """

    global DEBUG

    DEBUG = state
