# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */


"""Utility functions for kubectl invocation and command checks."""

from __future__ import annotations

import sh


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    try:
        sh.which(cmd)
    except sh.ErrorReturnCode as err:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.") from err


def run_kubectl(args: list[str], stdin: str | None = None) -> tuple[str, str]:
    """Run kubectl via sh and return (stdout, stderr).

    Args:
        args: kubectl arguments (e.g. ``["apply", "-f", "-"]``).
        stdin: Text fed to kubectl's standard input, or None.

    Returns:
        Tuple of (stdout, stderr) decoded as text.

    Raises:
        sh.ErrorReturnCode: If kubectl exits non-zero.
        sh.CommandNotFound: If kubectl is not on the PATH.
    """
    result = sh.kubectl(*args, _in=stdin, _return_cmd=True)
    return decode_output(result.stdout), decode_output(result.stderr)


def decode_output(data: bytes | str | None) -> str:
    """Decode captured command output to text."""
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode(errors="replace")
    return data
