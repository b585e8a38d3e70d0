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


"""Cluster connection resolution and API client bundle."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Any

from kubernetes import client, config

from mesh_installer import logger
from mesh_installer.errors import ClusterConnectionError


@dataclass(frozen=True)
class ClusterClients:
    """API clients used by the waiters.

    Attributes:
        core: CoreV1Api for namespaces, pods, services, replication controllers.
        apps: AppsV1Api for deployments, replica sets, daemon sets, stateful sets.
        apiextensions: ApiextensionsV1Api for custom resource definitions.
    """

    core: Any
    apps: Any
    apiextensions: Any

    @classmethod
    def from_api_client(cls, api_client: client.ApiClient) -> ClusterClients:
        return cls(
            core=client.CoreV1Api(api_client),
            apps=client.AppsV1Api(api_client),
            apiextensions=client.ApiextensionsV1Api(api_client),
        )


def _usable_kubeconfig(path: str | None) -> str | None:
    """Return *path* if it names an existing, non-empty file."""
    if not path:
        return None
    try:
        if os.path.getsize(path) > 0:
            return path
    except OSError:
        pass
    logger.info("Kubeconfig %s is missing or empty, falling back to defaults", path)
    return None


def build_client_config(kubeconfig: str | None = None, context: str | None = None) -> client.Configuration:
    """Resolve a client configuration.

    Loading order:
        1. ``kubeconfig`` if it exists and is non-empty
        2. in-cluster service account credentials
        3. kubeconfig file(s) named by ``KUBECONFIG``
        4. ``~/.kube/config``

    Args:
        kubeconfig: Optional path to a kubeconfig file.
        context: Optional kubeconfig context to use.

    Returns:
        A populated client configuration.

    Raises:
        ClusterConnectionError: If no source yields a usable configuration.
    """
    cfg = client.Configuration()
    explicit = _usable_kubeconfig(kubeconfig)
    try:
        if explicit:
            config.load_kube_config(config_file=explicit, context=context, client_configuration=cfg)
            return cfg
        try:
            config.load_incluster_config(client_configuration=cfg)
            logger.info("Using in-cluster configuration")
            return cfg
        except config.ConfigException:
            pass
        # config_file=None reads KUBECONFIG, then ~/.kube/config.
        config.load_kube_config(context=context, client_configuration=cfg)
        return cfg
    except (config.ConfigException, OSError) as err:
        raise ClusterConnectionError(f"Failed to load Kubernetes config: {err}") from err


class ClusterConnection:
    """Lazily resolved, shared cluster connection.

    The first call to :meth:`connect` resolves the configuration; later
    calls return the same clients. Safe to call from several threads.
    """

    def __init__(self, kubeconfig: str | None = None, context: str | None = None) -> None:
        self.kubeconfig = kubeconfig
        self.context = context
        self._clients: ClusterClients | None = None
        self._lock = threading.Lock()

    def connect(self) -> ClusterClients:
        """Return the shared clients, resolving the connection on first use.

        Raises:
            ClusterConnectionError: If the connection cannot be resolved.
        """
        with self._lock:
            if self._clients is None:
                cfg = build_client_config(self.kubeconfig, self.context)
                self._clients = ClusterClients.from_api_client(client.ApiClient(cfg))
            return self._clients
