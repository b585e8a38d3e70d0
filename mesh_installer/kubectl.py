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


"""kubectl-backed apply executor."""

from __future__ import annotations

import shlex
from collections.abc import Sequence

import sh

from mesh_installer import console, logger
from mesh_installer.errors import KubectlError
from mesh_installer.utils import decode_output, run_kubectl


class KubectlExecutor:
    """Apply, delete, and list manifests through the kubectl binary.

    Attributes:
        kubeconfig: Path passed as ``--kubeconfig``, or None.
        context: Context passed as ``--context``, or None.
    """

    def __init__(self, kubeconfig: str | None = None, context: str | None = None) -> None:
        self.kubeconfig = kubeconfig
        self.context = context

    def _base_args(self, namespace: str) -> list[str]:
        args: list[str] = []
        if self.kubeconfig:
            args += ["--kubeconfig", self.kubeconfig]
        if self.context:
            args += ["--context", self.context]
        if namespace:
            args += ["-n", namespace]
        return args

    def _run(
        self,
        args: list[str],
        *,
        stdin: str | None = None,
        dry_run: bool = False,
        verbose: bool = False,
    ) -> tuple[str, str]:
        """Run kubectl and return (stdout, stderr).

        Raises:
            KubectlError: If kubectl exits non-zero or cannot be found.
        """
        cmd_str = shlex.join(["kubectl", *args])
        if dry_run:
            console.print(f"[yellow]   (dry run) {cmd_str}[/yellow]")
            return cmd_str, ""
        if verbose:
            console.print(f"[dim]   {cmd_str}[/dim]")
        logger.debug("Running %s", cmd_str)

        try:
            return run_kubectl(args, stdin=stdin)
        except sh.ErrorReturnCode as err:
            stdout, stderr = decode_output(err.stdout), decode_output(err.stderr)
            raise KubectlError(
                f"`{cmd_str}` failed with exit code {err.exit_code}: {stderr.strip()}",
                stdout=stdout,
                stderr=stderr,
            ) from err
        except sh.CommandNotFound as err:
            raise KubectlError("Required command 'kubectl' not found. Please install it first.") from err

    def apply(
        self,
        manifest: str,
        *,
        namespace: str = "",
        dry_run: bool = False,
        verbose: bool = False,
        extra_args: Sequence[str] = (),
    ) -> tuple[str, str]:
        """Apply manifest text via ``kubectl apply -f -``."""
        if not manifest.strip():
            return "", ""
        args = ["apply", *self._base_args(namespace), "-f", "-", *extra_args]
        return self._run(args, stdin=manifest, dry_run=dry_run, verbose=verbose)

    def delete(
        self,
        manifest: str,
        *,
        namespace: str = "",
        dry_run: bool = False,
        verbose: bool = False,
        extra_args: Sequence[str] = (),
    ) -> tuple[str, str]:
        """Delete the objects in manifest text via ``kubectl delete -f -``."""
        if not manifest.strip():
            return "", ""
        args = ["delete", *self._base_args(namespace), "-f", "-", *extra_args]
        return self._run(args, stdin=manifest, dry_run=dry_run, verbose=verbose)

    def get_all(
        self,
        resources: str,
        *,
        namespace: str = "",
        output: str = "yaml",
        extra_args: Sequence[str] = (),
    ) -> tuple[str, str]:
        """List live objects via ``kubectl get``; never skipped by dry run."""
        args = ["get", resources, *self._base_args(namespace), "-o", output, *extra_args]
        return self._run(args)
