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


"""Exception hierarchy for the installer."""

from __future__ import annotations


class InstallerError(RuntimeError):
    """Base class for all installer errors."""


class ManifestParseError(InstallerError):
    """Raised when manifest text cannot be parsed into resource objects."""


class KubectlError(InstallerError):
    """Raised when a kubectl invocation fails.

    Attributes:
        stdout: Captured standard output of the failed command.
        stderr: Captured standard error of the failed command.
    """

    def __init__(self, message: str, stdout: str = "", stderr: str = "") -> None:
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr


class WaitTimeoutError(InstallerError):
    """Raised when resources do not become ready before a deadline.

    Attributes:
        not_ready: Names of the resources still outstanding at the deadline.
    """

    def __init__(self, message: str, not_ready: list[str] | None = None) -> None:
        self.not_ready = list(not_ready or [])
        if self.not_ready:
            message = message + "\n" + "\n".join(self.not_ready)
        super().__init__(message)


class ClusterConnectionError(InstallerError):
    """Raised when no usable cluster connection can be resolved."""


class DependencyFailedError(InstallerError):
    """Recorded for a component skipped because a parent failed."""


class InstallError(InstallerError):
    """Raised when a whole install run fails after components were applied.

    Attributes:
        outcomes: Per-component outcomes collected before the failure.
    """

    def __init__(self, message: str, outcomes: dict | None = None) -> None:
        super().__init__(message)
        self.outcomes = dict(outcomes or {})
