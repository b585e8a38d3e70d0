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


"""Polling live resources until they report ready."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from tenacity import RetryError, retry, retry_if_result, stop_after_delay, wait_fixed

from mesh_installer import console, logger
from mesh_installer.cluster import ClusterClients
from mesh_installer.constants import (
    CLUSTER_IP_NONE,
    CONDITION_READY,
    CONDITION_TRUE,
    DEPLOYMENT_REVISION_ANNOTATION,
    KIND_DAEMONSET,
    KIND_DEPLOYMENT,
    KIND_NAMESPACE,
    KIND_POD,
    KIND_REPLICASET,
    KIND_REPLICATION_CONTROLLER,
    KIND_SERVICE,
    KIND_STATEFULSET,
    NAMESPACE_ACTIVE,
    NS_DEFAULT,
    RESOURCE_POLL_INTERVAL_SECONDS,
    SERVICE_TYPE_EXTERNAL_NAME,
    SERVICE_TYPE_LOAD_BALANCER,
)
from mesh_installer.errors import WaitTimeoutError
from mesh_installer.objects import ResourceObject

# A readiness check resolves the live state of one applied object and
# returns the names of everything behind it that is not ready yet.
ReadinessCheck = Callable[[ClusterClients, ResourceObject], list[str]]

_READINESS_CHECKS: dict[str, ReadinessCheck] = {}


def register_readiness_check(kind: str) -> Callable[[ReadinessCheck], ReadinessCheck]:
    """Register *fn* as the readiness check for resources of *kind*."""
    def _register(fn: ReadinessCheck) -> ReadinessCheck:
        _READINESS_CHECKS[kind] = fn
        return fn
    return _register


def readiness_check_for(kind: str) -> ReadinessCheck | None:
    """Return the check registered for *kind*, or None if it is not tracked."""
    return _READINESS_CHECKS.get(kind)


# ============================================================================
# Predicates
# ============================================================================

def is_pod_ready(pod) -> bool:
    """A pod is ready when it has a ``Ready`` condition with status ``True``."""
    conditions = (pod.status.conditions if pod.status else None) or []
    return any(c.type == CONDITION_READY and c.status == CONDITION_TRUE for c in conditions)


def is_namespace_ready(namespace) -> bool:
    return bool(namespace.status) and namespace.status.phase == NAMESPACE_ACTIVE


def is_service_ready(service) -> bool:
    """ExternalName services are always ready; others need an IP or ingress."""
    spec = service.spec
    if spec.type == SERVICE_TYPE_EXTERNAL_NAME:
        return True
    if spec.cluster_ip != CLUSTER_IP_NONE and not spec.cluster_ip:
        return False
    if spec.type == SERVICE_TYPE_LOAD_BALANCER:
        lb = service.status.load_balancer if service.status else None
        if lb is None or lb.ingress is None:
            return False
    return True


_EXPRESSION_FORMATS = {
    "In": "{key} in ({values})",
    "NotIn": "{key} notin ({values})",
    "Exists": "{key}",
    "DoesNotExist": "!{key}",
}


def selector_string(selector) -> str:
    """Render a label selector as a ``label_selector`` query string.

    Args:
        selector: A plain ``{key: value}`` mapping (replication controllers)
            or a ``V1LabelSelector`` with match labels and expressions.

    Returns:
        Comma-joined requirements, empty if the selector has none or uses
        an unknown operator.
    """
    if selector is None:
        return ""
    if isinstance(selector, dict):
        match_labels, expressions = selector, []
    else:
        match_labels = selector.match_labels
        expressions = getattr(selector, "match_expressions", None) or []
    parts = [f"{k}={v}" for k, v in sorted((match_labels or {}).items())]
    for expr in expressions:
        fmt = _EXPRESSION_FORMATS.get(expr.operator)
        if fmt is None:
            logger.warning("Unsupported label selector operator %r on %s", expr.operator, expr.key)
            return ""
        parts.append(fmt.format(key=expr.key, values=",".join(expr.values or [])))
    return ",".join(parts)


def _namespace_of(obj: ResourceObject) -> str:
    return obj.namespace or NS_DEFAULT


def _pods_not_ready(clients: ClusterClients, namespace: str, selector) -> list[str]:
    label_selector = selector_string(selector)
    if not label_selector:
        # An empty selector would match every pod in the namespace.
        logger.warning("Skipping pod readiness in %s: controller has an empty selector", namespace)
        return []
    pods = clients.core.list_namespaced_pod(namespace, label_selector=label_selector).items
    return [
        f"Pod/{pod.metadata.namespace}/{pod.metadata.name}"
        for pod in pods
        if not is_pod_ready(pod)
    ]


def current_replica_set(clients: ClusterClients, deployment):
    """Find the replica set backing the deployment's current revision.

    Args:
        clients: Cluster API clients.
        deployment: Live ``V1Deployment``.

    Returns:
        The matching ``V1ReplicaSet``, or None if it does not exist yet.
    """
    revision = (deployment.metadata.annotations or {}).get(DEPLOYMENT_REVISION_ANNOTATION)
    if revision is None:
        return None
    selector = deployment.spec.selector
    replica_sets = clients.apps.list_namespaced_replica_set(
        deployment.metadata.namespace, label_selector=selector_string(selector),
    ).items
    for rs in replica_sets:
        owners = rs.metadata.owner_references or []
        if not any(ref.uid == deployment.metadata.uid for ref in owners):
            continue
        if (rs.metadata.annotations or {}).get(DEPLOYMENT_REVISION_ANNOTATION) == revision:
            return rs
    return None


# ============================================================================
# Per-kind checks
# ============================================================================

@register_readiness_check(KIND_NAMESPACE)
def _check_namespace(clients: ClusterClients, obj: ResourceObject) -> list[str]:
    namespace = clients.core.read_namespace(obj.name)
    return [] if is_namespace_ready(namespace) else [f"Namespace/{obj.name}"]


@register_readiness_check(KIND_POD)
def _check_pod(clients: ClusterClients, obj: ResourceObject) -> list[str]:
    pod = clients.core.read_namespaced_pod(obj.name, _namespace_of(obj))
    return [] if is_pod_ready(pod) else [f"Pod/{_namespace_of(obj)}/{obj.name}"]


@register_readiness_check(KIND_REPLICATION_CONTROLLER)
def _check_replication_controller(clients: ClusterClients, obj: ResourceObject) -> list[str]:
    rc = clients.core.read_namespaced_replication_controller(obj.name, _namespace_of(obj))
    return _pods_not_ready(clients, rc.metadata.namespace, rc.spec.selector)


@register_readiness_check(KIND_DAEMONSET)
def _check_daemon_set(clients: ClusterClients, obj: ResourceObject) -> list[str]:
    ds = clients.apps.read_namespaced_daemon_set(obj.name, _namespace_of(obj))
    return _pods_not_ready(clients, ds.metadata.namespace, ds.spec.selector)


@register_readiness_check(KIND_STATEFULSET)
def _check_stateful_set(clients: ClusterClients, obj: ResourceObject) -> list[str]:
    sts = clients.apps.read_namespaced_stateful_set(obj.name, _namespace_of(obj))
    return _pods_not_ready(clients, sts.metadata.namespace, sts.spec.selector)


@register_readiness_check(KIND_REPLICASET)
def _check_replica_set(clients: ClusterClients, obj: ResourceObject) -> list[str]:
    rs = clients.apps.read_namespaced_replica_set(obj.name, _namespace_of(obj))
    return _pods_not_ready(clients, rs.metadata.namespace, rs.spec.selector)


@register_readiness_check(KIND_DEPLOYMENT)
def _check_deployment(clients: ClusterClients, obj: ResourceObject) -> list[str]:
    deployment = clients.apps.read_namespaced_deployment(obj.name, _namespace_of(obj))
    name = f"Deployment/{_namespace_of(obj)}/{obj.name}"
    rs = current_replica_set(clients, deployment)
    if rs is None:
        return [name]
    desired = deployment.spec.replicas if deployment.spec.replicas is not None else 1
    ready = (rs.status.ready_replicas if rs.status else None) or 0
    return [] if ready >= desired else [name]


@register_readiness_check(KIND_SERVICE)
def _check_service(clients: ClusterClients, obj: ResourceObject) -> list[str]:
    service = clients.core.read_namespaced_service(obj.name, _namespace_of(obj))
    return [] if is_service_ready(service) else [f"Service/{_namespace_of(obj)}/{obj.name}"]


# ============================================================================
# Waiter
# ============================================================================

class ResourceReadinessWaiter:
    """Poll applied objects until all of them report ready.

    Attributes:
        clients: Cluster API clients.
        interval: Seconds between polls.
    """

    def __init__(self, clients: ClusterClients, interval: float = RESOURCE_POLL_INTERVAL_SECONDS) -> None:
        self.clients = clients
        self.interval = interval

    def not_ready(self, objects: Iterable[ResourceObject]) -> list[str]:
        """Evaluate every tracked object once.

        Returns:
            Names of resources that are not ready; kinds without a registered
            check are ignored.

        Raises:
            kubernetes.client.ApiException: If resolving live state fails.
        """
        pending: list[str] = []
        for obj in objects:
            check = readiness_check_for(obj.kind)
            if check is None:
                continue
            pending.extend(check(self.clients, obj))
        if pending:
            console.print("[yellow]   Waiting for resources to become ready...[/yellow]")
            logger.debug("Not ready: %s", ", ".join(pending))
        return pending

    def wait(self, objects: Iterable[ResourceObject], timeout: float, dry_run: bool = False) -> None:
        """Block until every tracked object is ready or *timeout* elapses.

        Args:
            objects: Objects applied to the cluster.
            timeout: Maximum seconds to wait.
            dry_run: Skip waiting entirely.

        Raises:
            WaitTimeoutError: If resources are still not ready at the deadline.
            kubernetes.client.ApiException: If resolving live state fails.
        """
        if dry_run:
            console.print("[yellow]   Not waiting for resources ready in dry run mode.[/yellow]")
            return

        tracked = [o for o in objects if readiness_check_for(o.kind) is not None]
        if not tracked:
            return

        @retry(
            stop=stop_after_delay(timeout),
            wait=wait_fixed(self.interval),
            retry=retry_if_result(bool),
        )
        def _poll() -> list[str]:
            return self.not_ready(tracked)

        try:
            _poll()
        except RetryError as err:
            raise WaitTimeoutError(
                f"resources not ready after {timeout:g}s",
                not_ready=err.last_attempt.result(),
            ) from err
