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


"""Applying a single component's manifest to the cluster."""

from __future__ import annotations

from dataclasses import dataclass, field

from kubernetes.client.rest import ApiException

from mesh_installer import console, logger
from mesh_installer.config import InstallOptions
from mesh_installer.constants import (
    CLUSTER_SCOPED_KINDS,
    KUBECTL_FORCE_FLAG,
    KUBECTL_PRUNE_FLAG,
    LABEL_COMPONENT,
    LABEL_MANAGED,
    LABEL_VERSION,
    MANAGED_RECONCILE,
    PRUNE_RESOURCE_TYPES,
    ROOT_COMPONENT,
)
from mesh_installer.crds import CRDEstablishmentWaiter
from mesh_installer.errors import InstallerError, KubectlError, ManifestParseError
from mesh_installer.kubectl import KubectlExecutor
from mesh_installer.objects import ResourceObject, parse_list_items, parse_manifest, to_manifest
from mesh_installer.ordering import partition_objects, sort_objects
from mesh_installer.readiness import ResourceReadinessWaiter


@dataclass(frozen=True)
class ApplyOutcome:
    """Result of applying one component.

    Attributes:
        stdout: Combined kubectl standard output of every step.
        stderr: Combined kubectl standard error of every step.
        error: The error that stopped the component, or None.
        manifest: Manifest of the objects applied (or pruned).
        skipped: True if the component never ran because a parent failed.
    """

    stdout: str = ""
    stderr: str = ""
    error: BaseException | None = None
    manifest: str = ""
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class _StepOutput:
    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)

    def add(self, stdout: str, stderr: str) -> None:
        if stdout:
            self.stdout.append(stdout)
        if stderr:
            self.stderr.append(stderr)

    def outcome(self, applied: list[ResourceObject], error: BaseException | None = None) -> ApplyOutcome:
        return ApplyOutcome(
            stdout="\n".join(self.stdout),
            stderr="\n".join(self.stderr),
            error=error,
            manifest=to_manifest(applied),
        )


def component_selector(name: str) -> str:
    """Label selector matching every object owned by component *name*."""
    return f"{LABEL_COMPONENT}={name}"


class ComponentApplyEngine:
    """Parse, label, order, and apply one component's manifest.

    Namespaces are applied and waited on first, then CRDs are applied and
    waited on until established, then everything else is applied with
    label-scoped pruning (except for the root component).

    Attributes:
        executor: kubectl executor used for apply, delete, and get.
        crd_waiter: Waiter for CRD establishment.
        readiness_waiter: Waiter for namespace readiness.
        root_component: Component whose objects are never pruned.
    """

    def __init__(
        self,
        executor: KubectlExecutor,
        crd_waiter: CRDEstablishmentWaiter,
        readiness_waiter: ResourceReadinessWaiter,
        root_component: str = ROOT_COMPONENT,
    ) -> None:
        self.executor = executor
        self.crd_waiter = crd_waiter
        self.readiness_waiter = readiness_waiter
        self.root_component = root_component

    def apply_component(
        self,
        name: str,
        manifest: str,
        version: str,
        options: InstallOptions,
    ) -> tuple[ApplyOutcome, list[ResourceObject]]:
        """Apply one component.

        Errors never escape: they end the component's remaining steps and
        are recorded in the returned outcome.

        Args:
            name: Component name.
            manifest: Raw manifest text; empty means the component is disabled.
            version: Version string stamped on every object.
            options: Options for this run.

        Returns:
            Tuple of (outcome, objects successfully applied).
        """
        try:
            objects = parse_manifest(manifest)
        except ManifestParseError as err:
            logger.error("Failed to parse manifest for %s: %s", name, err)
            return ApplyOutcome(error=err), []

        if not objects:
            return self.prune_component(name, options), []

        namespace = ""
        for obj in objects:
            obj.add_labels({
                LABEL_COMPONENT: name,
                LABEL_MANAGED: MANAGED_RECONCILE,
                LABEL_VERSION: version,
            })
            # Every object of a component shares one namespace.
            if obj.namespace:
                namespace = obj.namespace
        # kubectl -n places namespace-less objects in the component namespace;
        # record it so readiness reads them from there.
        if namespace:
            for obj in objects:
                if not obj.namespace and obj.kind not in CLUSTER_SCOPED_KINDS:
                    obj.metadata["namespace"] = namespace
        objects = sort_objects(objects)

        extra_args = [KUBECTL_FORCE_FLAG]
        # The root component owns namespaces and CRDs; pruning them would remove user config.
        if name != self.root_component:
            extra_args += [KUBECTL_PRUNE_FLAG, "--selector", component_selector(name)]

        ns_objects, crd_objects, rest = partition_objects(objects)
        out = _StepOutput()
        applied: list[ResourceObject] = []
        console.print(f"- Applying manifest for component {name}...")
        try:
            if ns_objects:
                self._apply(ns_objects, namespace, extra_args, options, out)
                self.readiness_waiter.wait(ns_objects, options.wait_timeout, dry_run=options.dry_run)
            applied.extend(ns_objects)

            if crd_objects:
                self._apply(crd_objects, namespace, extra_args, options, out)
                self.crd_waiter.wait(crd_objects, dry_run=options.dry_run)
            applied.extend(crd_objects)

            if rest:
                self._apply(rest, namespace, extra_args, options, out)
            applied.extend(rest)
        except (InstallerError, ApiException) as err:
            console.print(f"[red]\u2718 Finished applying manifest for component {name}.[/red]")
            logger.error("Applying %s failed: %s", name, err)
            return out.outcome(applied, err), applied

        console.print(f"[green]\u2714 Finished applying manifest for component {name}.[/green]")
        return out.outcome(applied), applied

    def _apply(
        self,
        objects: list[ResourceObject],
        namespace: str,
        extra_args: list[str],
        options: InstallOptions,
        out: _StepOutput,
    ) -> None:
        try:
            stdout, stderr = self.executor.apply(
                to_manifest(objects),
                namespace=namespace,
                dry_run=options.dry_run,
                verbose=options.verbose,
                extra_args=extra_args,
            )
        except KubectlError as err:
            out.add(err.stdout, err.stderr)
            raise
        out.add(stdout, stderr)

    def prune_component(self, name: str, options: InstallOptions) -> ApplyOutcome:
        """Delete live objects left behind by a disabled component.

        Args:
            name: Component name.
            options: Options for this run.

        Returns:
            A no-op outcome if nothing is labeled for the component, otherwise
            an outcome recording the deletion.
        """
        selector = component_selector(name)
        try:
            stdout, _ = self.executor.get_all(
                PRUNE_RESOURCE_TYPES, extra_args=["--all-namespaces", "--selector", selector],
            )
            items = parse_list_items(stdout)
        except KubectlError as err:
            return ApplyOutcome(stdout=err.stdout, stderr=err.stderr, error=err)
        except ManifestParseError as err:
            return ApplyOutcome(error=err)

        if not items:
            logger.info("No live objects for disabled component %s", name)
            return ApplyOutcome()

        console.print(f"- Pruning objects for disabled component {name}...")
        deleted = to_manifest([ResourceObject(body=item) for item in items])
        try:
            del_stdout, del_stderr = self.executor.delete(
                stdout,
                dry_run=options.dry_run,
                verbose=options.verbose,
                extra_args=["--selector", selector],
            )
        except KubectlError as err:
            console.print(f"[red]\u2718 Finished pruning objects for disabled component {name}.[/red]")
            return ApplyOutcome(stdout=err.stdout, stderr=err.stderr, error=err, manifest=deleted)
        console.print(f"[green]\u2714 Finished pruning objects for disabled component {name}.[/green]")
        return ApplyOutcome(stdout=del_stdout, stderr=del_stderr, manifest=deleted)
