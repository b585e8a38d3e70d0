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


"""
cli.py - Unified CLI for dependency-ordered mesh installation.

Subcommands:
    install    Apply component manifests to the cluster in dependency order
    render     Write component manifests to <dir>/<Component>/<Component>.yaml
    tree       Show the component dependency tree

Examples:
    # Install every component found in ./manifests and wait for readiness
    mesh-installer install ./manifests --wait

    # See what would be applied without touching the cluster
    mesh-installer install ./manifests --dry-run

    # Prune components that are declared but have no manifest
    mesh-installer install ./manifests --prune-disabled

Environment Variables:
    MESH_KUBECONFIG, MESH_CONTEXT, MESH_WAIT_TIMEOUT, MESH_CRD_POLL_INTERVAL,
    MESH_CRD_POLL_TIMEOUT, MESH_RESOURCE_POLL_INTERVAL,
    MESH_PARENT_FAILURE_POLICY (see InstallerSettings)
"""

from __future__ import annotations

import logging
import sys

import typer

from mesh_installer import console
from mesh_installer.commands import install_cmd, render_cmd, tree_cmd

app = typer.Typer(
    help="Unified CLI for dependency-ordered mesh installation.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.command("install")(install_cmd.install)
app.command("render")(render_cmd.render)
app.command("tree")(tree_cmd.tree)


def main() -> None:
    """Console-script entry point."""
    try:
        app()
    except Exception as e:
        console.print(f"[red]\u274c {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
