"""Prometheus metrics for vscode-deployer."""

from vscode_deployer.metrics.collector import (
    DEPLOYER_ENGINE_ERRORS,
    DEPLOYER_PROVISION_DURATION,
    DEPLOYER_PROVISION_TOTAL,
)

__all__ = [
    "DEPLOYER_ENGINE_ERRORS",
    "DEPLOYER_PROVISION_DURATION",
    "DEPLOYER_PROVISION_TOTAL",
]
