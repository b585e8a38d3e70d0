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


"""Shared pytest fixtures and fakes for mesh_installer tests."""

import os
import threading
import time
from types import SimpleNamespace

import pytest
import yaml
from kubernetes.client.rest import ApiException

from mesh_installer.cluster import ClusterClients
from mesh_installer.config import InstallerSettings, InstallOptions
from mesh_installer.constants import DEPLOYMENT_REVISION_ANNOTATION, LABEL_COMPONENT
from mesh_installer.errors import ClusterConnectionError, KubectlError


# ============================================================================
# Live object builders
# ============================================================================

def meta(name, namespace="", labels=None, annotations=None, uid=None, owner_uid=None):
    owners = [SimpleNamespace(uid=owner_uid)] if owner_uid else None
    return SimpleNamespace(
        name=name, namespace=namespace, labels=labels or {},
        annotations=annotations or {}, uid=uid, owner_references=owners,
    )


def condition(type_, status, reason=None):
    return SimpleNamespace(type=type_, status=status, reason=reason)


def make_namespace(name, phase="Active"):
    return SimpleNamespace(metadata=meta(name), status=SimpleNamespace(phase=phase))


def make_crd(name, established=True, names_accepted=True):
    conditions = [condition("NamesAccepted", "True" if names_accepted else "False", "NameConflict")]
    if established:
        conditions.append(condition("Established", "True"))
    return SimpleNamespace(metadata=meta(name), status=SimpleNamespace(conditions=conditions))


def make_pod(name, namespace, ready=True, labels=None):
    status = SimpleNamespace(conditions=[condition("Ready", "True" if ready else "False")])
    return SimpleNamespace(metadata=meta(name, namespace, labels=labels), status=status)


def make_deployment(name, namespace, replicas=1, revision="1", uid="deploy-uid", match_labels=None):
    annotations = {DEPLOYMENT_REVISION_ANNOTATION: revision} if revision else {}
    selector = SimpleNamespace(match_labels=match_labels or {"app": name})
    return SimpleNamespace(
        metadata=meta(name, namespace, annotations=annotations, uid=uid),
        spec=SimpleNamespace(replicas=replicas, selector=selector),
    )


def make_replica_set(name, namespace, ready_replicas, revision="1", owner_uid="deploy-uid", labels=None):
    return SimpleNamespace(
        metadata=meta(
            name, namespace, labels=labels,
            annotations={DEPLOYMENT_REVISION_ANNOTATION: revision}, owner_uid=owner_uid,
        ),
        spec=SimpleNamespace(selector=SimpleNamespace(match_labels=labels or {})),
        status=SimpleNamespace(ready_replicas=ready_replicas),
    )


def make_service(name, namespace, type_="ClusterIP", cluster_ip="10.0.0.1", ingress=None):
    load_balancer = SimpleNamespace(ingress=ingress)
    return SimpleNamespace(
        metadata=meta(name, namespace),
        spec=SimpleNamespace(type=type_, cluster_ip=cluster_ip),
        status=SimpleNamespace(load_balancer=load_balancer),
    )


def _matches(selector, labels):
    if not selector:
        return True
    wanted = dict(part.split("=", 1) for part in selector.split(","))
    return all((labels or {}).get(k) == v for k, v in wanted.items())


# ============================================================================
# Fake cluster
# ============================================================================

class FakeCluster:
    """In-memory stand-in for the CoreV1, AppsV1 and ApiextensionsV1 APIs.

    Objects are stored by (kind, namespace, name). A stored value may be a
    callable, in which case it is invoked on every read so tests can evolve
    state between polls. Every read is appended to ``journal``.
    """

    def __init__(self, journal=None):
        self.objects = {}
        self.journal = journal if journal is not None else []
        self.reads = []
        self.errors = {}

    def add(self, kind, obj, namespace="", name=None):
        if name is None:
            name = obj.metadata.name
        self.objects[(kind, namespace, name)] = obj

    def _get(self, kind, name, namespace=""):
        key = (kind, namespace, name)
        self.reads.append(key)
        self.journal.append(("read", kind, name))
        if key in self.errors:
            raise self.errors[key]
        if key not in self.objects:
            raise ApiException(status=404, reason="Not Found")
        value = self.objects[key]
        return value() if callable(value) else value

    def _list(self, kind, namespace, label_selector):
        self.journal.append(("list", kind, namespace))
        items = []
        for (k, ns, _), value in self.objects.items():
            if k != kind or ns != namespace:
                continue
            obj = value() if callable(value) else value
            if _matches(label_selector, obj.metadata.labels):
                items.append(obj)
        return SimpleNamespace(items=items)

    # CoreV1Api
    def read_namespace(self, name):
        return self._get("Namespace", name)

    def read_namespaced_pod(self, name, namespace):
        return self._get("Pod", name, namespace)

    def read_namespaced_service(self, name, namespace):
        return self._get("Service", name, namespace)

    def read_namespaced_replication_controller(self, name, namespace):
        return self._get("ReplicationController", name, namespace)

    def list_namespaced_pod(self, namespace, label_selector=""):
        return self._list("Pod", namespace, label_selector)

    # AppsV1Api
    def read_namespaced_deployment(self, name, namespace):
        return self._get("Deployment", name, namespace)

    def read_namespaced_daemon_set(self, name, namespace):
        return self._get("DaemonSet", name, namespace)

    def read_namespaced_stateful_set(self, name, namespace):
        return self._get("StatefulSet", name, namespace)

    def read_namespaced_replica_set(self, name, namespace):
        return self._get("ReplicaSet", name, namespace)

    def list_namespaced_replica_set(self, namespace, label_selector=""):
        return self._list("ReplicaSet", namespace, label_selector)

    # ApiextensionsV1Api
    def read_custom_resource_definition(self, name):
        return self._get("CustomResourceDefinition", name)

    @property
    def clients(self):
        return ClusterClients(core=self, apps=self, apiextensions=self)


class FakeConnection:
    """Connection returning fixed clients, or raising ClusterConnectionError."""

    def __init__(self, clients=None, error=None):
        self.clients = clients
        self.error = error
        self.calls = 0

    def connect(self):
        self.calls += 1
        if self.error:
            raise ClusterConnectionError(self.error)
        return self.clients


# ============================================================================
# Fake executor
# ============================================================================

class FakeExecutor:
    """Records kubectl calls instead of running them.

    Attributes:
        calls: ``(verb, docs, kwargs)`` tuples in call order.
        fail_on: Substring to error message; an apply whose manifest
            contains the substring raises KubectlError.
        get_output: Text returned by :meth:`get_all`.
    """

    def __init__(self, journal=None, fail_on=None, delay=0.0):
        self.calls = []
        self.journal = journal if journal is not None else []
        self.fail_on = dict(fail_on or {})
        self.delay = delay
        self.get_output = "apiVersion: v1\nkind: List\nitems: []\n"
        self._lock = threading.Lock()

    def _record(self, verb, manifest, kwargs):
        docs = [d for d in yaml.safe_load_all(manifest or "") if d]
        components = sorted({(d.get("metadata", {}).get("labels") or {}).get(LABEL_COMPONENT, "") for d in docs})
        with self._lock:
            self.calls.append((verb, docs, kwargs))
            self.journal.append((verb, ",".join(components), tuple(d["kind"] for d in docs)))
        return docs

    def apply(self, manifest, *, namespace="", dry_run=False, verbose=False, extra_args=()):
        if self.delay:
            time.sleep(self.delay)
        docs = self._record("apply", manifest, {
            "namespace": namespace, "dry_run": dry_run, "extra_args": list(extra_args),
        })
        for needle, message in self.fail_on.items():
            if needle in manifest:
                raise KubectlError(message, stdout="partial output", stderr=f"error: {message}")
        return f"applied {len(docs)} objects", ""

    def delete(self, manifest, *, namespace="", dry_run=False, verbose=False, extra_args=()):
        docs = self._record("delete", manifest, {
            "namespace": namespace, "dry_run": dry_run, "extra_args": list(extra_args),
        })
        return f"deleted {len(docs)} objects", ""

    def get_all(self, resources, *, namespace="", output="yaml", extra_args=()):
        with self._lock:
            self.calls.append(("get", [], {"resources": resources, "extra_args": list(extra_args)}))
        return self.get_output, ""

    def verbs(self):
        return [verb for verb, _, _ in self.calls]

    def applied_kinds(self):
        return [[d["kind"] for d in docs] for verb, docs, _ in self.calls if verb == "apply"]


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def journal():
    return []


@pytest.fixture
def cluster(journal):
    return FakeCluster(journal)


@pytest.fixture
def executor(journal):
    return FakeExecutor(journal)


@pytest.fixture
def fast_settings():
    return InstallerSettings(
        crd_poll_interval=0.01,
        crd_poll_timeout=0.5,
        resource_poll_interval=0.01,
        wait_timeout=0.5,
    )


@pytest.fixture
def options():
    return InstallOptions(wait_timeout=0.5)


@pytest.fixture(autouse=True)
def _clean_mesh_env(monkeypatch):
    """Keep MESH_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("MESH_"):
            monkeypatch.delenv(key)
