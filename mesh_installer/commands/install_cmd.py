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


"""Install subcommand: apply component manifests to the cluster."""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError

from mesh_installer import __version__, console
from mesh_installer.config import InstallerSettings, display_config, resolve_options
from mesh_installer.errors import InstallError
from mesh_installer.installer import Installer, print_summary
from mesh_installer.manifests import load_manifest_dir
from mesh_installer.utils import require_command


def install(
    manifest_dir: Path = typer.Argument(..., help="Directory holding <Component>.yaml or <Component>/<Component>.yaml"),
    version: str = typer.Option(__version__, "--version", help="Version label stamped on every object"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print kubectl commands instead of running them"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print every kubectl command line"),
    wait: bool = typer.Option(False, "--wait", help="Wait for all resources to be ready"),
    wait_timeout: float | None = typer.Option(
        None, "--wait-timeout", help="Seconds to wait for resources (overrides MESH_WAIT_TIMEOUT)"),
    kubeconfig: str | None = typer.Option(None, "--kubeconfig", help="Path to the kubeconfig file"),
    context: str | None = typer.Option(None, "--context", help="Kubeconfig context to use"),
    prune_disabled: bool = typer.Option(
        False, "--prune-disabled", help="Prune declared components that have no manifest"),
    parent_failure_policy: str | None = typer.Option(
        None, "--parent-failure-policy", help="proceed or skip children of a failed component"),
) -> None:
    """Apply component manifests in dependency order."""
    overrides: dict = {}
    if wait_timeout is not None:
        overrides["wait_timeout"] = wait_timeout
    if kubeconfig is not None:
        overrides["kubeconfig"] = kubeconfig
    if context is not None:
        overrides["context"] = context
    if parent_failure_policy is not None:
        overrides["parent_failure_policy"] = parent_failure_policy
    # Init values outrank MESH_* env vars.
    try:
        settings = InstallerSettings(**overrides)
    except ValidationError as err:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in err.errors())
        raise typer.BadParameter(problems) from err

    options = resolve_options(settings, dry_run=dry_run, verbose=verbose, wait=wait)
    display_config(options, version)
    if not dry_run:
        require_command("kubectl")

    installer = Installer.from_options(options, settings)
    manifests = load_manifest_dir(manifest_dir, installer.graph.walk(), include_disabled=prune_disabled)
    if not manifests:
        console.print(f"[yellow]\u26a0\ufe0f  No manifests found in {manifest_dir}[/yellow]")
        return

    try:
        outcomes = installer.install(manifests, version, options)
    except InstallError as err:
        print_summary(err.outcomes)
        raise
    if not print_summary(outcomes):
        raise typer.Exit(code=1)
    console.print("[green]\u2705 Installation complete[/green]")
