#!/usr/bin/env python3
"""
Copyright 2025 7th software Ltd.

Licensed under the Apache License, Version 2.0 (the "License"); you may not use this file except in compliance with the
License. You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software distributed under the License is distributed on an
"AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the License for the specific
language governing permissions and limitations under the License.

Error types and process exit codes for sync-doc-defaults.

The text-editing core never raises for "not found" conditions; it reports them as values. Errors are raised by the
surrounding layers (configuration, module loading, the library API and the command line), always as a
`DocDefaultsError` carrying a symbolic code. The command line maps that code to a process exit code.
"""

from __future__ import annotations

from typing import Dict, Optional


EXIT_CODES: Dict[str, int] = {
    "SUCCESS": 0,
    # Assertion mismatches and other expected validation failures
    "VALIDATION_ERROR": 1,
    # No config file discovered walking up from the start directory
    "CONFIG_NOT_FOUND": 2,
    # I/O and resolution problems: .d.ts missing, interface missing, module could not be loaded
    "LOADING_ERROR": 3,
    # Config file found but of the wrong shape
    "INVALID_CONFIG": 4,
    # Bad command line usage
    "USAGE_ERROR": 5,
    "GENERAL_ERROR": 6,
}


_DEFAULT_EXIT_BY_CODE: Dict[str, int] = {
    "CLI_USAGE": EXIT_CODES["USAGE_ERROR"],
    "CONFIG_NOT_FOUND": EXIT_CODES["CONFIG_NOT_FOUND"],
    "INVALID_CONFIG": EXIT_CODES["INVALID_CONFIG"],
    "ASSERT_FAILED": EXIT_CODES["VALIDATION_ERROR"],
    "INTERFACE_NOT_FOUND": EXIT_CODES["LOADING_ERROR"],
    "DEFAULTS_SYMBOL_NOT_FOUND": EXIT_CODES["LOADING_ERROR"],
    "DEFAULTS_MODULE_NOT_FOUND": EXIT_CODES["LOADING_ERROR"],
    "DTS_NOT_FOUND": EXIT_CODES["LOADING_ERROR"],
    "DTS_DECODE_FAILED": EXIT_CODES["LOADING_ERROR"],
    "COULD_NOT_LOAD_TS": EXIT_CODES["LOADING_ERROR"],
    "MODULE_PARSE_FAILED": EXIT_CODES["LOADING_ERROR"],
}


class DocDefaultsError(Exception):
    """
    An expected, user-facing failure of a sync-doc-defaults run.

    Parameters:
    - `code`: Symbolic error code, e.g. "DTS_NOT_FOUND" or "ASSERT_FAILED".
    - `message`: Human-readable description of the problem.
    - `hint`: Optional second line suggesting how to fix it.
    - `exit_code`: Optional explicit process exit code; defaults to the code's usual exit code.
    """

    def __init__(self, code: str, message: str, hint: Optional[str] = None, exit_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.hint = hint
        if exit_code is None:
            exit_code = _DEFAULT_EXIT_BY_CODE.get(code, EXIT_CODES["GENERAL_ERROR"])
        self.exit_code = exit_code

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\n{self.hint}"
        return self.message


def usage_error(message: str) -> DocDefaultsError:
    return DocDefaultsError("CLI_USAGE", message)


def config_not_found(start: str) -> DocDefaultsError:
    return DocDefaultsError(
        "CONFIG_NOT_FOUND",
        f"Config file not found. Looked for docdefaults.config.(mjs|cjs|js|json) from {start}",
    )
