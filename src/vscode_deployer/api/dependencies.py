"""API dependencies for dependency injection."""

from vscode_deployer.config import DeployerConfig
from vscode_deployer.provisioner import Provisioner

# Singleton provisioner; owns the runtime cache for the server's lifetime
_provisioner: Provisioner | None = None


def init_provisioner(config: DeployerConfig) -> Provisioner:
    """Build the provisioner singleton from the service config.

    Must be called during app startup.
    """
    global _provisioner
    _provisioner = Provisioner(config)
    return _provisioner


def get_provisioner() -> Provisioner:
    """Get provisioner singleton.

    Raises:
        RuntimeError: If called before init_provisioner().
    """
    if _provisioner is None:
        raise RuntimeError("Provisioner not initialized. Call init_provisioner() first.")
    return _provisioner


def reset_provisioner() -> None:
    """Reset provisioner singleton (for testing)."""
    global _provisioner
    _provisioner = None
