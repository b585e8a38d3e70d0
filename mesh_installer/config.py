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


"""Configuration classes and config models."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from mesh_installer import console
from mesh_installer.constants import (
    CRD_POLL_INTERVAL_SECONDS,
    CRD_POLL_TIMEOUT_SECONDS,
    DEFAULT_WAIT_TIMEOUT_SECONDS,
    POLICY_PROCEED,
    RESOURCE_POLL_INTERVAL_SECONDS,
)


# ============================================================================
# Configuration classes
# ============================================================================

class InstallerSettings(BaseSettings):
    """Installer tuning, auto-loaded from MESH_* env vars.

    Attributes:
        kubeconfig: Path to the kubeconfig file, or None for the default chain.
        context: Kubeconfig context name, or None for the current context.
        wait_timeout: Seconds to wait for resources when waiting is enabled.
        crd_poll_interval: Seconds between CRD establishment polls.
        crd_poll_timeout: Maximum seconds to wait for CRD establishment.
        resource_poll_interval: Seconds between resource readiness polls.
        parent_failure_policy: ``proceed`` to install children of a failed
            parent anyway, ``skip`` to mark them as failed dependencies.
    """

    model_config = SettingsConfigDict(env_prefix="MESH_", extra="ignore")

    kubeconfig: str | None = None
    context: str | None = None
    wait_timeout: float = Field(default=DEFAULT_WAIT_TIMEOUT_SECONDS, gt=0)
    crd_poll_interval: float = Field(default=CRD_POLL_INTERVAL_SECONDS, gt=0)
    crd_poll_timeout: float = Field(default=CRD_POLL_TIMEOUT_SECONDS, gt=0)
    resource_poll_interval: float = Field(default=RESOURCE_POLL_INTERVAL_SECONDS, gt=0)
    parent_failure_policy: str = Field(default=POLICY_PROCEED, pattern=r"^(proceed|skip)$")


# ============================================================================
# Install options
# ============================================================================

@dataclass(frozen=True)
class InstallOptions:
    """Options for a single install run.

    Attributes:
        dry_run: Perform every step except touching the cluster or disk.
        verbose: Print the kubectl command lines being run.
        wait: Wait for all applied resources to become ready at the end.
        wait_timeout: Seconds to wait for resources to become ready.
        kubeconfig: Path to the kubeconfig file, or None.
        context: Kubeconfig context name, or None.
        parent_failure_policy: ``proceed`` or ``skip``.
    """

    dry_run: bool = False
    verbose: bool = False
    wait: bool = False
    wait_timeout: float = DEFAULT_WAIT_TIMEOUT_SECONDS
    kubeconfig: str | None = None
    context: str | None = None
    parent_failure_policy: str = POLICY_PROCEED


def resolve_options(
    settings: InstallerSettings,
    *,
    dry_run: bool = False,
    verbose: bool = False,
    wait: bool = False,
) -> InstallOptions:
    """Build run options from settings and CLI flags.

    Args:
        settings: Resolved installer settings.
        dry_run: Whether to skip every cluster-side effect.
        verbose: Whether to print kubectl command lines.
        wait: Whether to wait for resources after install.

    Returns:
        Immutable options for one install run.
    """
    return InstallOptions(
        dry_run=dry_run,
        verbose=verbose,
        wait=wait,
        wait_timeout=settings.wait_timeout,
        kubeconfig=settings.kubeconfig,
        context=settings.context,
        parent_failure_policy=settings.parent_failure_policy,
    )


def display_config(options: InstallOptions, version: str) -> None:
    """Print the effective install configuration.

    Args:
        options: Options for this run.
        version: Version string stamped on every installed object.
    """
    console.print(Panel.fit("Install configuration", style="bold blue"))
    console.print(f"  Version:        {version}")
    console.print(f"  Kubeconfig:     {options.kubeconfig or '(default)'}")
    console.print(f"  Context:        {options.context or '(current)'}")
    console.print(f"  Dry run:        {options.dry_run}")
    console.print(f"  Wait:           {options.wait} (timeout {options.wait_timeout:g}s)")
    console.print(f"  Parent failure: {options.parent_failure_policy}")
