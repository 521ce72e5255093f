"""Deploy request, resolved instance and result models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from vscode_deployer.errors import ErrorDetail

RuntimeName = Literal["docker", "podman"]


class InstanceSpec(BaseModel):
    """Caller-supplied deploy request.

    ``password=None`` means "use the configured default"; ``password=""``
    means passwordless. ``name`` and ``workspace_path`` are validated by the
    provisioner so a missing value is reported as INVALID_PARAMETER.
    """

    name: str | None = None
    workspace_path: str | None = None
    port: int | None = Field(default=None, ge=1, le=65535)
    password: str | None = None
    extensions: list[str] | None = None
    cpu_limit: str | float | None = None
    memory_limit: str | None = None
    environment: dict[str, str | int | float | bool] | None = None
    runtime: RuntimeName | None = None

    model_config = {"frozen": True}


class ResolvedInstance(BaseModel):
    """Instance configuration after defaults, overrides and allocation."""

    id: str
    name: str
    instance_name: str
    runtime: RuntimeName
    workspace_path: str
    port: int
    password: str
    extensions: list[str]
    cpu_limit: str
    memory_limit: str
    environment: dict[str, str] = {}
    created_at: datetime

    @property
    def passwordless(self) -> bool:
        return not self.password

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}"


class DeploymentResult(BaseModel):
    """Success descriptor for a deployed instance."""

    id: str
    name: str
    instance_name: str
    runtime: RuntimeName
    port: int
    url: str
    status: str
    workspace_path: str
    passwordless: bool
    summary: str
    instance: ResolvedInstance

    @classmethod
    def from_instance(cls, instance: ResolvedInstance, status: str = "running") -> "DeploymentResult":
        auth = (
            "Authentication: Passwordless"
            if instance.passwordless
            else f"Password: {instance.password}"
        )
        summary = (
            "VSCode instance deployed successfully!\n\n"
            f"Runtime: {instance.runtime}\n"
            f"Name: {instance.name}\n"
            f"Instance ID: {instance.id}\n"
            f"URL: {instance.url}\n"
            f"{auth}\n"
            f"Status: {status}\n"
            f"Workspace: {instance.workspace_path}"
        )
        return cls(
            id=instance.id,
            name=instance.name,
            instance_name=instance.instance_name,
            runtime=instance.runtime,
            port=instance.port,
            url=instance.url,
            status=status,
            workspace_path=instance.workspace_path,
            passwordless=instance.passwordless,
            summary=summary,
            instance=instance,
        )


class ProvisionResult(BaseModel):
    """Either a deployed instance or an error, never both."""

    instance: DeploymentResult | None = None
    error: ErrorDetail | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
