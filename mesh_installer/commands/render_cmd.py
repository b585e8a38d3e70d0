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


"""Render subcommand: write manifests to a directory tree."""

from __future__ import annotations

from pathlib import Path

import typer

from mesh_installer.manifests import load_manifest_dir
from mesh_installer.render import render_to_dir


def render(
    manifest_dir: Path = typer.Argument(..., help="Directory holding component manifests"),
    output_dir: Path = typer.Argument(..., help="Directory to render <Component>/<Component>.yaml into"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Do not create any directory or file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Also report skipped components"),
) -> None:
    """Render component manifests into one directory per component."""
    render_to_dir(load_manifest_dir(manifest_dir), output_dir, dry_run=dry_run, verbose=verbose)
