"""Deployment constants and defaults.

This module centralizes all magic strings and default values used
throughout install and uninstall.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DeploymentConstants:
    """Constants for Kubernetes/Helm deployment.

    These are the defaults a DeployerSettings instance starts from; any of
    them can be overridden per invocation.
    """

    # Kubernetes/Helm identifiers
    DEFAULT_NAMESPACE: str = "edc"
    HELM_RELEASE_NAME: str = "construct-x-edge"
    CHART_PATH: str = "."
    VALUES_FILE: str = "values.yaml"

    # Release identity label stamped on every object the chart renders
    INSTANCE_LABEL: str = "app.kubernetes.io/instance"

    # Timeouts
    HELM_TIMEOUT: str = "10m"
    POD_READY_TIMEOUT_SECONDS: float = 300.0
    POLL_INTERVAL_SECONDS: float = 5.0
    SWEEP_TIMEOUT: str = "300s"
    NAMESPACE_DELETE_TIMEOUT: str = "300s"
    RESIDUAL_SETTLE_SECONDS: float = 5.0

    # Client tools that must be on PATH
    REQUIRED_TOOLS: tuple[str, ...] = ("kubectl", "helm")

    # Managed secrets, in processing order
    PRIMARY_CONFIG_SECRET: str = "edc-config"
    SECONDARY_CONFIG_SECRET: str = "weather-config"
    TLS_SECRET: str = "tls-construct-x"

    # Placeholder written when no value source overrides a literal
    PLACEHOLDER_VALUE: str = "change-me-in-production"

    # Environment variable prefix for settings overrides
    ENV_PREFIX: str = "EDGE_DEPLOYER_"

    @property
    def managed_secret_names(self) -> tuple[str, ...]:
        """Get the fixed set of managed secret names."""
        return (
            self.PRIMARY_CONFIG_SECRET,
            self.SECONDARY_CONFIG_SECRET,
            self.TLS_SECRET,
        )
