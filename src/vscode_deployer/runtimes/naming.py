"""Resource naming for deployed instances."""

from vscode_deployer.config import RuntimeConfig


class ResourceNaming:
    """Centralized naming conventions for instance containers and volumes."""

    def __init__(self, config: RuntimeConfig) -> None:
        self._prefix = config.instance_prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    def instance_name(self, name: str, instance_id: str) -> str:
        return f"{self._prefix}-{name}-{instance_id}"

    def data_volume(self, instance_name: str) -> str:
        return f"{self._prefix}-data-{instance_name}"

    def extensions_volume(self, instance_name: str) -> str:
        return f"{self._prefix}-extensions-{instance_name}"
