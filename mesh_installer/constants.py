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


"""Constants, dependency declaration loading, and dep_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_dependencies() -> dict:
    """Load the component dependency declaration from dependencies.yaml.

    Returns:
        Parsed YAML content with ``root`` and ``dependencies`` keys.
    """
    deps_file = Path(__file__).resolve().parent / "dependencies.yaml"
    with open(deps_file) as f:
        return yaml.safe_load(f)


DEPENDENCIES = load_dependencies()


def dep_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the DEPENDENCIES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = DEPENDENCIES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


ROOT_COMPONENT: str = dep_value("root", default="Base")
COMPONENT_DEPENDENCIES: dict[str, list[str]] = dep_value("dependencies", default={})

# -- Resource labels --
LABEL_PREFIX = "install.mesh.io"
LABEL_MANAGED = f"{LABEL_PREFIX}/managed"
LABEL_COMPONENT = f"{LABEL_PREFIX}/component"
LABEL_VERSION = f"{LABEL_PREFIX}/version"
MANAGED_RECONCILE = "Reconcile"

# -- Polling --
CRD_POLL_INTERVAL_SECONDS = 0.5
CRD_POLL_TIMEOUT_SECONDS = 60.0
RESOURCE_POLL_INTERVAL_SECONDS = 2.0
DEFAULT_WAIT_TIMEOUT_SECONDS = 300.0

# -- Kinds --
KIND_NAMESPACE = "Namespace"
KIND_CRD = "CustomResourceDefinition"
KIND_LIST = "List"
KIND_POD = "Pod"
KIND_DEPLOYMENT = "Deployment"
KIND_DAEMONSET = "DaemonSet"
KIND_STATEFULSET = "StatefulSet"
KIND_REPLICASET = "ReplicaSet"
KIND_REPLICATION_CONTROLLER = "ReplicationController"
KIND_SERVICE = "Service"
# Kinds that never carry a namespace.
CLUSTER_SCOPED_KINDS = frozenset({
    KIND_NAMESPACE,
    KIND_CRD,
    "ClusterRole",
    "ClusterRoleBinding",
    "PersistentVolume",
    "StorageClass",
    "PriorityClass",
    "IngressClass",
    "RuntimeClass",
    "APIService",
    "MutatingWebhookConfiguration",
    "ValidatingWebhookConfiguration",
})

# -- Namespaces --
NS_DEFAULT = "default"

# -- Status values --
NAMESPACE_ACTIVE = "Active"
CONDITION_TRUE = "True"
CONDITION_FALSE = "False"
CONDITION_READY = "Ready"
CONDITION_ESTABLISHED = "Established"
CONDITION_NAMES_ACCEPTED = "NamesAccepted"
SERVICE_TYPE_EXTERNAL_NAME = "ExternalName"
SERVICE_TYPE_LOAD_BALANCER = "LoadBalancer"
CLUSTER_IP_NONE = "None"
DEPLOYMENT_REVISION_ANNOTATION = "deployment.kubernetes.io/revision"

# -- kubectl --
KUBECTL_FORCE_FLAG = "--force"
KUBECTL_PRUNE_FLAG = "--prune"
# Resource types looked up when pruning a disabled component.
PRUNE_RESOURCE_TYPES = (
    "all,configmap,secret,serviceaccount,role,rolebinding,"
    "clusterrole,clusterrolebinding,horizontalpodautoscaler,poddisruptionbudget"
)

# -- Parent failure policies --
POLICY_PROCEED = "proceed"
POLICY_SKIP = "skip"

# -- Rendering --
MANIFEST_SUFFIX = ".yaml"
