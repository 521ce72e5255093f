"""Prometheus metrics definitions for vscode-deployer.

Tracks deploy outcomes and container engine CLI failures.
"""

from prometheus_client import Counter, Histogram

from vscode_deployer.errors import ErrorCode

# Deploys include a fixed startup grace period, so they are never fast
_BUCKETS_DEPLOY = (
    0.5, 1, 2, 3, 5,
    8, 13, 21, 34, 60,
)

DEPLOYER_PROVISION_TOTAL = Counter(
    "vscode_deployer_provision_total",
    "Total deploy requests by outcome",
    ["outcome"],  # succeeded or an ErrorCode value
)

DEPLOYER_PROVISION_DURATION = Histogram(
    "vscode_deployer_provision_duration_seconds",
    "Duration of deploy requests",
    buckets=_BUCKETS_DEPLOY,
)

DEPLOYER_ENGINE_ERRORS = Counter(
    "vscode_deployer_engine_errors_total",
    "Total failed container engine CLI invocations",
    ["runtime", "operation"],  # operation: first CLI argument (run, ps, --version)
)


def _init_metrics() -> None:
    """Initialize labeled metrics with zero values."""
    DEPLOYER_PROVISION_TOTAL.labels(outcome="succeeded")
    for code in ErrorCode:
        DEPLOYER_PROVISION_TOTAL.labels(outcome=code.value)


_init_metrics()
