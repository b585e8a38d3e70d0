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


"""Loading a manifest map back from a rendered directory tree."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from mesh_installer import logger
from mesh_installer.constants import MANIFEST_SUFFIX
from mesh_installer.errors import InstallerError
from mesh_installer.render import manifest_path


def load_manifest_dir(
    manifest_dir: Path | str,
    components: Iterable[str] = (),
    include_disabled: bool = False,
) -> dict[str, str]:
    """Read component manifests from a directory into a manifest map.

    Both the rendered layout (``<dir>/<name>/<name>.yaml``) and a flat
    layout (``<dir>/<name>.yaml``) are accepted; the rendered file wins when
    both exist.

    Args:
        manifest_dir: Directory holding the manifests.
        components: Known component names.
        include_disabled: Map known components without a manifest file to an
            empty manifest, so their live objects are pruned on install.

    Returns:
        Component name to manifest text.

    Raises:
        InstallerError: If the directory does not exist.
    """
    manifest_dir = Path(manifest_dir)
    if not manifest_dir.is_dir():
        raise InstallerError(f"manifest directory {manifest_dir} does not exist")

    manifests: dict[str, str] = {}
    for entry in sorted(manifest_dir.iterdir()):
        if entry.is_file() and entry.suffix == MANIFEST_SUFFIX:
            manifests.setdefault(entry.stem, entry.read_text())
        elif entry.is_dir():
            path = manifest_path(manifest_dir, entry.name)
            if path.is_file():
                manifests[entry.name] = path.read_text()
            else:
                logger.debug("No manifest file in %s", entry)

    if include_disabled:
        for name in components:
            if name not in manifests:
                logger.info("No manifest for %s, it will be pruned", name)
                manifests[name] = ""
    return manifests
