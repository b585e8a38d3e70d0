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


"""Apply ordering and partitioning of resource objects."""

from __future__ import annotations

from collections.abc import Iterable

from mesh_installer.constants import KIND_CRD, KIND_NAMESPACE
from mesh_installer.objects import ResourceObject

DEFAULT_PRIORITY = 1000

# Keyed by kind, then by API group; None matches any group.
_KIND_PRIORITIES: dict[str, dict[str | None, int]] = {
    # CRDs are slow to establish and their instances usually follow soon.
    KIND_CRD: {"apiextensions.k8s.io": -1000},
    # Accounts and roles exist before anything binds them.
    "ServiceAccount": {"": 1},
    "ClusterRole": {"rbac.authorization.k8s.io": 1},
    "ClusterRoleBinding": {"rbac.authorization.k8s.io": 2},
    # Pods mount these; creating them first avoids crash-loop backoff.
    "ConfigMap": {"": 100},
    "Secret": {"": 100},
    "Deployment": {None: 1000},
    "HorizontalPodAutoscaler": {"autoscaling": 1001},
    # Services last, after the pods behind them have started.
    "Service": {"": 10000},
}


def priority(kind: str, api_group: str = "") -> int:
    """Return the apply priority of a resource; smaller applies first.

    Args:
        kind: Resource kind (e.g. ``Deployment``).
        api_group: API group, empty for the core group.

    Returns:
        Integer priority, ``DEFAULT_PRIORITY`` for unrecognized kinds.
    """
    groups = _KIND_PRIORITIES.get(kind)
    if not groups:
        return DEFAULT_PRIORITY
    if api_group in groups:
        return groups[api_group]
    return groups.get(None, DEFAULT_PRIORITY)


def sort_objects(objects: Iterable[ResourceObject]) -> list[ResourceObject]:
    """Stable-sort objects by apply priority."""
    return sorted(objects, key=lambda o: priority(o.kind, o.api_group))


def partition_objects(
    objects: Iterable[ResourceObject],
) -> tuple[list[ResourceObject], list[ResourceObject], list[ResourceObject]]:
    """Split objects into namespaces, CRDs, and everything else.

    Relative order is preserved within each partition.

    Returns:
        Tuple of (namespace_objects, crd_objects, remaining_objects).
    """
    namespaces: list[ResourceObject] = []
    crds: list[ResourceObject] = []
    rest: list[ResourceObject] = []
    for obj in objects:
        if obj.kind == KIND_NAMESPACE:
            namespaces.append(obj)
        elif obj.kind == KIND_CRD:
            crds.append(obj)
        else:
            rest.append(obj)
    return namespaces, crds, rest
