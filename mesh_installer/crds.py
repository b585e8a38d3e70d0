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


"""Waiting for CustomResourceDefinitions to become established."""

from __future__ import annotations

from collections.abc import Iterable

from tenacity import RetryError, retry, retry_if_result, stop_after_delay, wait_fixed

from mesh_installer import console, logger
from mesh_installer.cluster import ClusterClients
from mesh_installer.constants import (
    CONDITION_ESTABLISHED,
    CONDITION_FALSE,
    CONDITION_NAMES_ACCEPTED,
    CONDITION_TRUE,
    CRD_POLL_INTERVAL_SECONDS,
    CRD_POLL_TIMEOUT_SECONDS,
    KIND_CRD,
)
from mesh_installer.errors import WaitTimeoutError
from mesh_installer.objects import ResourceObject


class CRDEstablishmentWaiter:
    """Poll CRD status until every CRD carries ``Established=True``.

    Attributes:
        clients: Cluster API clients.
        interval: Seconds between polls.
        timeout: Maximum seconds to wait.
    """

    def __init__(
        self,
        clients: ClusterClients,
        interval: float = CRD_POLL_INTERVAL_SECONDS,
        timeout: float = CRD_POLL_TIMEOUT_SECONDS,
    ) -> None:
        self.clients = clients
        self.interval = interval
        self.timeout = timeout

    def _is_established(self, crd_name: str) -> bool:
        crd = self.clients.apiextensions.read_custom_resource_definition(crd_name)
        conditions = (crd.status.conditions if crd.status else None) or []
        established = False
        for cond in conditions:
            if cond.type == CONDITION_ESTABLISHED and cond.status == CONDITION_TRUE:
                established = True
            elif cond.type == CONDITION_NAMES_ACCEPTED and cond.status == CONDITION_FALSE:
                logger.warning("name conflict for CRD %s: %s", crd_name, cond.reason)
        if established:
            logger.info("established CRD %s", crd_name)
        else:
            logger.info("missing status condition for %s", crd_name)
        return established

    def _pending(self, crd_names: list[str]) -> list[str]:
        """Return the CRDs not yet established; API errors propagate."""
        return [name for name in crd_names if not self._is_established(name)]

    def wait(self, objects: Iterable[ResourceObject], dry_run: bool = False) -> None:
        """Wait until every CRD among *objects* is established.

        Args:
            objects: Objects just applied; non-CRD kinds are ignored.
            dry_run: Skip waiting entirely.

        Raises:
            WaitTimeoutError: If some CRD is not established before the timeout.
            kubernetes.client.ApiException: If reading a CRD fails.
        """
        if dry_run:
            logger.info("Not waiting for CRDs in dry run mode.")
            return

        crd_names = [o.name for o in objects if o.kind == KIND_CRD]
        if not crd_names:
            return

        console.print(f"[yellow]\u2139\ufe0f  Waiting for {len(crd_names)} CRDs to be established...[/yellow]")

        @retry(
            stop=stop_after_delay(self.timeout),
            wait=wait_fixed(self.interval),
            retry=retry_if_result(bool),
        )
        def _poll() -> list[str]:
            return self._pending(crd_names)

        try:
            _poll()
        except RetryError as err:
            pending = err.last_attempt.result()
            logger.error("failed to verify CRD creation; %d CRDs pending", len(pending))
            raise WaitTimeoutError(
                f"failed to verify CRD creation: CRDs not established after {self.timeout:g}s",
                not_ready=pending,
            ) from err
        console.print("[green]\u2705 CRDs established[/green]")
