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


"""Tests for mesh_installer.engine."""

import pytest
import yaml

from conftest import FakeExecutor, make_crd, make_namespace
from mesh_installer.config import InstallOptions
from mesh_installer.constants import LABEL_COMPONENT, LABEL_MANAGED, LABEL_VERSION
from mesh_installer.crds import CRDEstablishmentWaiter
from mesh_installer.engine import ApplyOutcome, ComponentApplyEngine, component_selector
from mesh_installer.errors import KubectlError, ManifestParseError, WaitTimeoutError
from mesh_installer.readiness import ResourceReadinessWaiter


PILOT_MANIFEST = """\
apiVersion: v1
kind: Service
metadata:
  name: istiod
  namespace: istio-system
---
apiVersion: apiextensions.k8s.io/v1
kind: CustomResourceDefinition
metadata:
  name: gateways.networking.mesh.io
---
apiVersion: apps/v1
kind: Deployment
metadata:
  name: istiod
  namespace: istio-system
---
apiVersion: v1
kind: Namespace
metadata:
  name: istio-system
---
apiVersion: v1
kind: ConfigMap
metadata:
  name: mesh
  namespace: istio-system
"""


def _engine(executor, cluster, root="Base", crd_timeout=0.2):
    return ComponentApplyEngine(
        executor=executor,
        crd_waiter=CRDEstablishmentWaiter(cluster.clients, interval=0.01, timeout=crd_timeout),
        readiness_waiter=ResourceReadinessWaiter(cluster.clients, interval=0.01),
        root_component=root,
    )


@pytest.fixture
def ready_cluster(cluster):
    cluster.add("Namespace", make_namespace("istio-system"))
    cluster.add("CustomResourceDefinition", make_crd("gateways.networking.mesh.io"))
    return cluster


class TestApplyComponent:
    """Tests for ComponentApplyEngine.apply_component."""

    def test_apply_steps_in_order(self, executor, ready_cluster, options):
        outcome, applied = _engine(executor, ready_cluster).apply_component(
            "Pilot", PILOT_MANIFEST, "1.2.3", options)

        assert outcome.ok
        assert executor.applied_kinds() == [
            ["Namespace"],
            ["CustomResourceDefinition"],
            ["ConfigMap", "Deployment", "Service"],
        ]
        assert len(applied) == 5
        assert outcome.stdout == "applied 1 objects\napplied 1 objects\napplied 3 objects"
        assert len(list(yaml.safe_load_all(outcome.manifest))) == 5

    def test_waits_between_steps(self, journal, executor, ready_cluster, options):
        _engine(executor, ready_cluster).apply_component("Pilot", PILOT_MANIFEST, "1.2.3", options)
        events = [(e[0], e[1]) for e in journal]
        ns_apply = events.index(("apply", "Pilot"))
        ns_read = journal.index(("read", "Namespace", "istio-system"))
        crd_read = journal.index(("read", "CustomResourceDefinition", "gateways.networking.mesh.io"))
        applies = [i for i, e in enumerate(events) if e[0] == "apply"]
        assert ns_apply < ns_read < applies[1] < crd_read < applies[2]

    def test_labels_stamped_on_every_object(self, executor, ready_cluster, options):
        _engine(executor, ready_cluster).apply_component("Pilot", PILOT_MANIFEST, "1.2.3", options)
        for _, docs, _ in executor.calls:
            for doc in docs:
                labels = doc["metadata"]["labels"]
                assert labels[LABEL_COMPONENT] == "Pilot"
                assert labels[LABEL_MANAGED] == "Reconcile"
                assert labels[LABEL_VERSION] == "1.2.3"

    def test_non_root_prunes_by_component(self, executor, ready_cluster, options):
        _engine(executor, ready_cluster).apply_component("Pilot", PILOT_MANIFEST, "1.2.3", options)
        for _, _, kwargs in executor.calls:
            assert kwargs["namespace"] == "istio-system"
            assert kwargs["extra_args"] == ["--force", "--prune", "--selector", component_selector("Pilot")]

    def test_root_is_never_pruned(self, executor, ready_cluster, options):
        _engine(executor, ready_cluster).apply_component("Base", PILOT_MANIFEST, "1.2.3", options)
        for _, _, kwargs in executor.calls:
            assert kwargs["extra_args"] == ["--force"]

    def test_empty_remainder_is_not_applied(self, executor, ready_cluster, options):
        manifest = "apiVersion: v1\nkind: Namespace\nmetadata:\n  name: istio-system\n"
        outcome, _ = _engine(executor, ready_cluster).apply_component("Pilot", manifest, "1", options)
        assert outcome.ok
        assert executor.applied_kinds() == [["Namespace"]]

    def test_parse_error_recorded(self, executor, ready_cluster, options):
        outcome, applied = _engine(executor, ready_cluster).apply_component(
            "Pilot", "kind: [broken\n", "1", options)
        assert isinstance(outcome.error, ManifestParseError)
        assert applied == []
        assert executor.calls == []

    def test_kubectl_failure_stops_component(self, ready_cluster, options):
        executor = FakeExecutor(fail_on={"CustomResourceDefinition": "crd apply failed"})
        outcome, applied = _engine(executor, ready_cluster).apply_component(
            "Pilot", PILOT_MANIFEST, "1", options)

        assert isinstance(outcome.error, KubectlError)
        assert executor.applied_kinds() == [["Namespace"], ["CustomResourceDefinition"]]
        assert [o.kind for o in applied] == ["Namespace"]
        assert "partial output" in outcome.stdout
        assert "crd apply failed" in outcome.stderr

    def test_crd_timeout_stops_component(self, executor, cluster, options):
        cluster.add("Namespace", make_namespace("istio-system"))
        cluster.add("CustomResourceDefinition", make_crd("gateways.networking.mesh.io", established=False))
        outcome, _ = _engine(executor, cluster, crd_timeout=0.05).apply_component(
            "Pilot", PILOT_MANIFEST, "1", options)
        assert isinstance(outcome.error, WaitTimeoutError)
        assert len(executor.applied_kinds()) == 2

    def test_dry_run_skips_waits(self, executor, cluster):
        outcome, _ = _engine(executor, cluster).apply_component(
            "Pilot", PILOT_MANIFEST, "1", InstallOptions(dry_run=True))
        assert outcome.ok
        assert cluster.reads == []
        assert all(kwargs["dry_run"] for _, _, kwargs in executor.calls)


class TestPruneComponent:
    """Tests for pruning a disabled component."""

    def test_nothing_to_prune(self, executor, cluster, options):
        outcome, applied = _engine(executor, cluster).apply_component("Kiali", "", "1", options)
        assert outcome == ApplyOutcome()
        assert applied == []
        assert executor.verbs() == ["get"]
        _, _, kwargs = executor.calls[0]
        assert kwargs["extra_args"] == ["--all-namespaces", "--selector", component_selector("Kiali")]

    def test_deletes_live_objects(self, executor, cluster, options):
        executor.get_output = yaml.safe_dump({
            "apiVersion": "v1",
            "kind": "List",
            "items": [
                {"apiVersion": "apps/v1", "kind": "Deployment",
                 "metadata": {"name": "kiali", "namespace": "istio-system"}},
                {"apiVersion": "v1", "kind": "Service",
                 "metadata": {"name": "kiali", "namespace": "istio-system"}},
            ],
        })
        outcome, applied = _engine(executor, cluster).apply_component("Kiali", "", "1", options)

        assert outcome.ok
        assert applied == []
        assert executor.verbs() == ["get", "delete"]
        verb, docs, kwargs = executor.calls[1]
        assert kwargs["extra_args"] == ["--selector", component_selector("Kiali")]
        assert [d["kind"] for d in docs] == ["List"]
        assert len(list(yaml.safe_load_all(outcome.manifest))) == 2

    def test_bad_get_output(self, executor, cluster, options):
        executor.get_output = "kind: Pod\nmetadata: {name: p}\n"
        outcome, _ = _engine(executor, cluster).apply_component("Kiali", "", "1", options)
        assert isinstance(outcome.error, ManifestParseError)
        assert executor.verbs() == ["get"]


class TestComponentNamespace:
    """Tests for objects that inherit the component namespace."""

    MANIFEST = """\
apiVersion: v1
kind: ConfigMap
metadata:
  name: mesh
  namespace: istio-system
---
apiVersion: apps/v1
kind: Deployment
metadata:
  name: istiod
---
apiVersion: rbac.authorization.k8s.io/v1
kind: ClusterRole
metadata:
  name: istiod-reader
"""

    def test_namespace_less_object_gets_component_namespace(self, executor, cluster, options):
        outcome, applied = _engine(executor, cluster).apply_component("Pilot", self.MANIFEST, "1", options)
        assert outcome.ok
        by_kind = {o.kind: o for o in applied}
        assert by_kind["Deployment"].namespace == "istio-system"
        assert by_kind["Deployment"].key == "Deployment/istio-system/istiod"

    def test_cluster_scoped_object_stays_cluster_scoped(self, executor, cluster, options):
        _, applied = _engine(executor, cluster).apply_component("Pilot", self.MANIFEST, "1", options)
        by_kind = {o.kind: o for o in applied}
        assert by_kind["ClusterRole"].namespace == ""

    def test_no_component_namespace(self, executor, cluster, options):
        manifest = "apiVersion: apps/v1\nkind: Deployment\nmetadata:\n  name: istiod\n"
        _, applied = _engine(executor, cluster).apply_component("Pilot", manifest, "1", options)
        assert applied[0].namespace == ""
