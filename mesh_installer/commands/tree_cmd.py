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


"""Tree subcommand: show the component dependency tree."""

from __future__ import annotations

from rich.panel import Panel

from mesh_installer import console
from mesh_installer.constants import COMPONENT_DEPENDENCIES, ROOT_COMPONENT
from mesh_installer.graph import DependencyGraph


def tree() -> None:
    """Print the component dependency tree."""
    graph = DependencyGraph(COMPONENT_DEPENDENCIES, ROOT_COMPONENT)
    console.print(Panel.fit("Component dependencies", style="bold blue"))
    console.print(graph.render(), end="", markup=False, highlight=False)
