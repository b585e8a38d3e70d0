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


"""Component dependency graph built from the static declaration."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

ComponentTree = dict[str, "ComponentTree"]


class DependencyGraph:
    """Tree of component names rooted at the root component.

    Every declared child is nested under its parent, recursively. A node is
    inserted at most once, so the tree stays acyclic even if the
    declaration repeats a child.

    Attributes:
        root: Name of the root component.
        tree: Nested mapping ``{root: {child: {...}}}``.
    """

    def __init__(self, dependencies: Mapping[str, Sequence[str]], root: str) -> None:
        self.root = root
        self._dependencies = {parent: list(children) for parent, children in dependencies.items()}
        self._inserted: set[str] = set()
        self.tree: ComponentTree = {}
        self._insert_children(root, self.tree)

    def _insert_children(self, name: str, tree: ComponentTree) -> None:
        self._inserted.add(name)
        tree[name] = {}
        for child in self._dependencies.get(name, []):
            if child in self._inserted:
                continue
            self._insert_children(child, tree[name])

    def children(self, name: str) -> list[str]:
        """Declared children of *name*, in declaration order."""
        return list(self._dependencies.get(name, []))

    def parents(self, name: str) -> list[str]:
        """Declared parents of *name*."""
        return [parent for parent, children in self._dependencies.items() if name in children]

    def __contains__(self, name: str) -> bool:
        return name in self._inserted

    def walk(self) -> list[str]:
        """Component names in tree order, parents before children."""
        names: list[str] = []
        self._walk(self.tree, names)
        return names

    def _walk(self, tree: ComponentTree, names: list[str]) -> None:
        for name, subtree in tree.items():
            names.append(name)
            self._walk(subtree, names)

    def render(self) -> str:
        """Render the tree as indented lines, root at indent 0."""
        lines: list[str] = []
        self._render(self.tree, "", lines)
        return "".join(lines)

    def _render(self, tree: ComponentTree, prefix: str, lines: list[str]) -> None:
        for name, subtree in tree.items():
            lines.append(f"{prefix}{name}\n")
            self._render(subtree, prefix + "  ", lines)
