"""Launch command synthesis for docker and podman."""

from pydantic import BaseModel

from vscode_deployer.config import RuntimeConfig
from vscode_deployer.models import ResolvedInstance, RuntimeName
from vscode_deployer.runtimes.naming import ResourceNaming

RESTART_POLICY = "unless-stopped"


class LaunchCommand(BaseModel):
    """Engine invocation for starting an instance.

    ``args`` excludes the engine binary; ``argv`` includes it.
    """

    runtime: RuntimeName
    args: list[str]

    model_config = {"frozen": True}

    @property
    def argv(self) -> list[str]:
        return [self.runtime, *self.args]

    def render(self) -> str:
        """Shell-style rendering for logs.

        Values are joined as-is, without quoting, so the string is not safe
        to hand to a shell.
        """
        return " ".join(self.argv)


def restart_flags(runtime: RuntimeName) -> list[str]:
    if runtime == "podman":
        return [f"--restart={RESTART_POLICY}"]
    return ["--restart", RESTART_POLICY]


def build_launch_command(
    runtime: RuntimeName,
    instance: ResolvedInstance,
    config: RuntimeConfig,
    naming: ResourceNaming | None = None,
) -> LaunchCommand:
    """Build the detached ``run`` invocation for an instance."""
    naming = naming or ResourceNaming(config)
    name = instance.instance_name

    args = [
        "run",
        "-d",
        "--name",
        name,
        *restart_flags(runtime),
        "-p",
        f"{instance.port}:{config.container_port}",
        "-v",
        f"{instance.workspace_path}:{config.workspace_mount}",
        "-v",
        f"{naming.data_volume(name)}:{config.data_mount}",
        "-v",
        f"{naming.extensions_volume(name)}:{config.extensions_mount}",
        f"--cpus={instance.cpu_limit}",
        f"--memory={instance.memory_limit}",
    ]
    for key, value in instance.environment.items():
        args += ["-e", f"{key}={value}"]
    if instance.password:
        args += ["-e", f"PASSWORD={instance.password}"]
    args += ["-e", f"EXTENSIONS={','.join(instance.extensions)}"]
    args.append(config.image)

    return LaunchCommand(runtime=runtime, args=args)
