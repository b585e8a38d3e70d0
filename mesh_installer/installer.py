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


"""Orchestrating a dependency-ordered install of every component."""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

from kubernetes.client.rest import ApiException
from rich.panel import Panel

from mesh_installer import console, logger
from mesh_installer.cluster import ClusterClients, ClusterConnection
from mesh_installer.config import InstallerSettings, InstallOptions
from mesh_installer.constants import COMPONENT_DEPENDENCIES, POLICY_SKIP, ROOT_COMPONENT
from mesh_installer.crds import CRDEstablishmentWaiter
from mesh_installer.engine import ApplyOutcome, ComponentApplyEngine
from mesh_installer.errors import DependencyFailedError, InstallError, WaitTimeoutError
from mesh_installer.gate import DependencyGate
from mesh_installer.graph import DependencyGraph
from mesh_installer.kubectl import KubectlExecutor
from mesh_installer.objects import ResourceObject
from mesh_installer.readiness import ResourceReadinessWaiter


class Installer:
    """Apply a set of component manifests in dependency order.

    One thread is started per component. A component waits on its gate
    until its parents have finished, applies its manifest, and then
    unblocks its own children whether or not it succeeded.

    Attributes:
        executor: kubectl executor shared by every component.
        connection: Lazily resolved cluster connection.
        settings: Polling and policy settings.
        dependencies: Static parent to children declaration.
        graph: Dependency tree built from the declaration.
    """

    def __init__(
        self,
        executor: KubectlExecutor,
        connection: ClusterConnection,
        settings: InstallerSettings | None = None,
        dependencies: Mapping[str, Sequence[str]] = COMPONENT_DEPENDENCIES,
        root: str = ROOT_COMPONENT,
    ) -> None:
        self.executor = executor
        self.connection = connection
        self.settings = settings or InstallerSettings()
        self.dependencies = dependencies
        self.root = root
        self.graph = DependencyGraph(dependencies, root)

    @classmethod
    def from_options(cls, options: InstallOptions, settings: InstallerSettings | None = None) -> Installer:
        """Build an installer talking to the cluster named by *options*."""
        return cls(
            executor=KubectlExecutor(options.kubeconfig, options.context),
            connection=ClusterConnection(options.kubeconfig, options.context),
            settings=settings,
        )

    def build_engine(self, clients: ClusterClients) -> ComponentApplyEngine:
        """Wire a component engine to *clients* using the configured intervals."""
        return ComponentApplyEngine(
            executor=self.executor,
            crd_waiter=CRDEstablishmentWaiter(
                clients,
                interval=self.settings.crd_poll_interval,
                timeout=self.settings.crd_poll_timeout,
            ),
            readiness_waiter=ResourceReadinessWaiter(clients, interval=self.settings.resource_poll_interval),
            root_component=self.root,
        )

    def install(
        self,
        manifests: Mapping[str, str],
        version: str,
        options: InstallOptions,
    ) -> dict[str, ApplyOutcome]:
        """Apply every manifest and return per-component outcomes.

        Individual component failures are recorded in their outcomes and do
        not stop other components.

        Args:
            manifests: Component name to manifest text; empty text prunes.
            version: Version string stamped on every object.
            options: Options for this run.

        Returns:
            Mapping of component name to its outcome.

        Raises:
            ClusterConnectionError: If the cluster connection cannot be
                resolved. Raised before any component starts.
            InstallError: If the final readiness wait fails.
        """
        console.print(Panel.fit("Installing components", style="bold blue"))
        logger.info("Preparing manifests for these components:")
        for name in manifests:
            logger.info("- %s", name)
        logger.info("Component dependencies tree: \n%s", self.graph.render())

        clients = self.connection.connect()
        if not manifests:
            return {}

        engine = self.build_engine(clients)
        gate = DependencyGate(self.dependencies, manifests)
        outcomes: dict[str, ApplyOutcome] = {}
        applied: list[ResourceObject] = []
        lock = threading.Lock()

        def _run_component(name: str, manifest: str) -> None:
            outcome, objects = ApplyOutcome(), []
            with console.buffered() as buf:
                try:
                    outcome, objects = self._apply_gated(engine, gate, name, manifest, version, options)
                except Exception as err:
                    logger.exception("Unexpected error installing %s", name)
                    outcome = ApplyOutcome(error=err)
            try:
                with lock:
                    outcomes[name] = outcome
                    applied.extend(objects)
                    console.print(buf.getvalue(), end="", markup=False, highlight=False)
            finally:
                gate.signal_children(name, ok=outcome.ok)

        with ThreadPoolExecutor(max_workers=len(manifests)) as pool:
            futures = {
                pool.submit(_run_component, name, manifest): name
                for name, manifest in manifests.items()
            }
            for future in as_completed(futures):
                future.result()

        if options.wait:
            try:
                engine.readiness_waiter.wait(applied, options.wait_timeout, dry_run=options.dry_run)
            except (WaitTimeoutError, ApiException) as err:
                raise InstallError(f"failed to wait for resources: {err}", outcomes=outcomes) from err
            console.print("[green]\u2705 All resources are ready[/green]")
        return outcomes

    def _apply_gated(
        self,
        engine: ComponentApplyEngine,
        gate: DependencyGate,
        name: str,
        manifest: str,
        version: str,
        options: InstallOptions,
    ) -> tuple[ApplyOutcome, list[ResourceObject]]:
        if gate.has_gate(name):
            logger.info("%s is waiting on a prerequisite...", name)
            failed_parents = gate.wait(name)
            logger.info("Prerequisite for %s has completed, proceeding with install.", name)
            if failed_parents and options.parent_failure_policy == POLICY_SKIP:
                console.print(f"[yellow]\u26a0\ufe0f  Skipping {name}: {', '.join(failed_parents)} failed[/yellow]")
                err = DependencyFailedError(f"{name} skipped because {', '.join(failed_parents)} failed")
                return ApplyOutcome(error=err, skipped=True), []
        return engine.apply_component(name, manifest, version, options)


def print_summary(outcomes: Mapping[str, ApplyOutcome]) -> bool:
    """Print one line per component outcome.

    Returns:
        True if every component succeeded.
    """
    console.print(Panel.fit("Install summary", style="bold blue"))
    for name in sorted(outcomes):
        outcome = outcomes[name]
        if outcome.ok:
            console.print(f"[green]  \u2713 {name}[/green]")
        elif outcome.skipped:
            console.print(f"[yellow]  - {name} (skipped: {outcome.error})[/yellow]")
        else:
            console.print(f"[red]  \u2717 {name} - {outcome.error}[/red]")
    return all(o.ok for o in outcomes.values())
