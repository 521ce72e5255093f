"""Container runtime detection, gateway and launch command synthesis."""

from vscode_deployer.runtimes.command import LaunchCommand, build_launch_command
from vscode_deployer.runtimes.detector import CANDIDATE_RUNTIMES, RuntimeCache, RuntimeDetector
from vscode_deployer.runtimes.gateway import (
    CliEngineGateway,
    CommandResult,
    EngineCommandError,
    EngineGateway,
)
from vscode_deployer.runtimes.naming import ResourceNaming

__all__ = [
    "CANDIDATE_RUNTIMES",
    "CliEngineGateway",
    "CommandResult",
    "EngineCommandError",
    "EngineGateway",
    "LaunchCommand",
    "ResourceNaming",
    "RuntimeCache",
    "RuntimeDetector",
    "build_launch_command",
]
