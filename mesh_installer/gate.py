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


"""Dependency gate delaying a component until its parents have finished."""

from __future__ import annotations

import queue
from collections.abc import Iterable, Mapping, Sequence

from mesh_installer import logger


class DependencyGate:
    """Per-child signal set built for one install run.

    Only parents and children that take part in the run are wired. A child
    consumes one signal from each participating parent; a component with no
    participating parent is never blocked. Each signal carries the parent's
    name and whether its apply succeeded.
    """

    def __init__(self, dependencies: Mapping[str, Sequence[str]], components: Iterable[str]) -> None:
        present = set(components)
        self._children: dict[str, list[str]] = {}
        self._expected: dict[str, int] = {}
        for parent, children in dependencies.items():
            if parent not in present:
                continue
            wired = [c for c in dict.fromkeys(children) if c in present and c != parent]
            self._children[parent] = wired
            for child in wired:
                self._expected[child] = self._expected.get(child, 0) + 1
        self._signals: dict[str, queue.Queue[tuple[str, bool]]] = {
            child: queue.Queue() for child in self._expected
        }

    def has_gate(self, name: str) -> bool:
        """Whether *name* must wait for at least one parent."""
        return name in self._signals

    def children(self, name: str) -> list[str]:
        """Participating children of *name*."""
        return list(self._children.get(name, []))

    def wait(self, name: str) -> list[str]:
        """Block until every participating parent of *name* has signaled.

        Args:
            name: Component about to install.

        Returns:
            Names of parents that reported failure, empty if all succeeded.
        """
        signals = self._signals.get(name)
        if signals is None:
            return []
        failed: list[str] = []
        for _ in range(self._expected[name]):
            parent, ok = signals.get()
            if not ok:
                failed.append(parent)
        return failed

    def signal_children(self, name: str, ok: bool = True) -> None:
        """Unblock every participating child of *name*.

        Args:
            name: Component that has finished.
            ok: Whether the component's apply succeeded.
        """
        for child in self._children.get(name, []):
            logger.info("Unblocking child %s.", child)
            self._signals[child].put((name, ok))
