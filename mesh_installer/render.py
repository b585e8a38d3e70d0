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


"""Rendering component manifests to a local directory tree."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from rich.panel import Panel

from mesh_installer import console, logger
from mesh_installer.constants import COMPONENT_DEPENDENCIES, MANIFEST_SUFFIX, ROOT_COMPONENT
from mesh_installer.errors import InstallerError
from mesh_installer.graph import DependencyGraph


def manifest_path(output_dir: Path, name: str) -> Path:
    """Location of component *name*'s manifest under *output_dir*."""
    return output_dir / name / f"{name}{MANIFEST_SUFFIX}"


def render_to_dir(
    manifests: Mapping[str, str],
    output_dir: Path | str,
    dry_run: bool = False,
    verbose: bool = False,
    graph: DependencyGraph | None = None,
) -> list[Path]:
    """Write each component's manifest to ``output_dir/<name>/<name>.yaml``.

    Components with an empty manifest are skipped. Under dry run nothing
    is created on disk.

    Args:
        manifests: Component name to manifest text.
        output_dir: Root directory for the rendered tree.
        dry_run: Log what would be written without touching the disk.
        verbose: Log every skipped component too.
        graph: Dependency graph used for ordering and logging; defaults to
            the static declaration.

    Returns:
        Paths written (or that would be written under dry run).

    Raises:
        InstallerError: If a directory or file cannot be written.
    """
    output_dir = Path(output_dir)
    if graph is None:
        graph = DependencyGraph(COMPONENT_DEPENDENCIES, ROOT_COMPONENT)
    console.print(Panel.fit(f"Rendering manifests to {output_dir}", style="bold blue"))
    logger.info("Component dependencies tree: \n%s", graph.render())

    in_tree = graph.walk()
    ordered = [name for name in in_tree if name in manifests]
    ordered += sorted(name for name in manifests if name not in in_tree)

    written: list[Path] = []
    for name in ordered:
        manifest = manifests[name]
        if not manifest:
            if verbose:
                console.print(f"[yellow]   Manifest for {name} not found, skip.[/yellow]")
            continue
        path = manifest_path(output_dir, name)
        console.print(f"   Writing manifest to {path}")
        written.append(path)
        if dry_run:
            continue
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise InstallerError(f"could not create directory {path.parent}: {err}") from err
        try:
            path.write_text(manifest)
        except OSError as err:
            raise InstallerError(f"could not write manifest {path}: {err}") from err
    console.print(f"[green]\u2705 Rendered {len(written)} manifests[/green]")
    return written
