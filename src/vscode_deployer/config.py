"""Deployer configuration using pydantic-settings.

Configuration hierarchy:
- DefaultsConfig: Per-instance defaults applied when a request omits a value
- RuntimeConfig: Container engine selection and launch settings
- PortConfig: Host port allocation range
- StorageConfig: Instance record location
- LoggingConfig: Logging behavior
- ServerConfig: HTTP server settings
- DeployerConfig: Main config aggregating all sub-configs

Environment variable prefix: VSCODE_
Example: VSCODE_DEFAULT_PASSWORD=secret
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DefaultsConfig(BaseSettings):
    """Defaults for values omitted from a deploy request.

    An unset password falls back to ``password``; an explicit empty string
    in the request means passwordless and never reads this default.
    """

    model_config = SettingsConfigDict(env_prefix="VSCODE_DEFAULT_")

    password: str = Field(default="changeme", description="Default editor password")
    extensions: str = Field(
        default="ms-python.python,dbaeumer.vscode-eslint",
        description="Comma-separated default extension identifiers",
    )
    cpu_limit: str = Field(default="1.0", description="Default --cpus value")
    memory_limit: str = Field(default="2g", description="Default --memory value")

    @property
    def extension_list(self) -> list[str]:
        return self.extensions.split(",")


class RuntimeConfig(BaseSettings):
    """Container engine configuration."""

    model_config = SettingsConfigDict(env_prefix="VSCODE_RUNTIME_")

    # Engine selection
    mode: Literal["auto", "docker", "podman"] = Field(
        default="auto",
        description="Engine selection: auto-detect or force docker/podman",
    )

    # Launch settings
    image: str = Field(default="codercom/code-server:latest", description="Editor image")
    container_port: int = Field(default=8080, description="Editor port inside the container")
    instance_prefix: str = Field(default="vscode", description="Prefix for instance names")
    workspace_mount: str = Field(default="/workspace", description="Workspace path in container")
    data_mount: str = Field(
        default="/home/coder/.local/share/code-server",
        description="Editor state volume target",
    )
    extensions_mount: str = Field(
        default="/home/coder/.vscode/extensions",
        description="Editor extensions volume target",
    )

    # Verification
    startup_grace_seconds: float = Field(
        default=2.0,
        description="Wait before checking that the container is running (seconds)",
    )


class PortConfig(BaseSettings):
    """Host port allocation configuration."""

    model_config = SettingsConfigDict(env_prefix="VSCODE_PORT_")

    range_start: int = Field(default=10000, description="Lowest allocatable host port")
    range_end: int = Field(default=65535, description="Highest allocatable host port")
    max_attempts: int = Field(default=10, description="Random probes before giving up")


class StorageConfig(BaseSettings):
    """Instance record storage configuration."""

    model_config = SettingsConfigDict(env_prefix="VSCODE_STORAGE_")

    records_dir: Path = Field(
        default=Path("vscode-instances"),
        description="Directory holding one JSON record per instance",
    )


class LoggingConfig(BaseSettings):
    """Logging configuration.

    - text: Human-readable for local development
    - json: Structured logging for log aggregation
    """

    model_config = SettingsConfigDict(env_prefix="VSCODE_LOGGING_")

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="text", description="Log format (text, json)")
    service_name: str = Field(default="vscode-deployer", description="Service identifier in logs")


class ServerConfig(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(env_prefix="VSCODE_SERVER_")

    host: str = Field(default="127.0.0.1", description="Server bind address")
    port: int = Field(default=8090, description="Server port")
    api_key: str = Field(default="", description="API key for authentication")


class DeployerConfig(BaseSettings):
    """Main deployer configuration aggregating all sub-configs."""

    model_config = SettingsConfigDict(
        env_prefix="VSCODE_",
        env_nested_delimiter="__",
    )

    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    ports: PortConfig = Field(default_factory=PortConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


@lru_cache
def get_config() -> DeployerConfig:
    """Get cached deployer configuration singleton."""
    return DeployerConfig()
