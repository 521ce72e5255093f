"""Error handling module for vscode_deployer.

Defines error codes, exception classes, and response models.

Error Response Format:
{
    "error": {
        "code": "PORT_CONFLICT",
        "message": "Port 12345 is already in use",
        "details": {"suggested_port": 23456}
    }
}

Recoverable errors carry enough detail for the caller to succeed on a new
request (for example a suggested port). Nothing here is retried
automatically.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes for deploy requests."""

    INVALID_PARAMETER = "INVALID_PARAMETER"
    NO_RUNTIME_AVAILABLE = "NO_RUNTIME_AVAILABLE"
    WORKSPACE_NOT_FOUND = "WORKSPACE_NOT_FOUND"
    PORT_CONFLICT = "PORT_CONFLICT"
    PORT_CONFLICT_AT_LAUNCH = "PORT_CONFLICT_AT_LAUNCH"
    LAUNCH_FAILED = "LAUNCH_FAILED"
    STARTUP_VERIFICATION_FAILED = "STARTUP_VERIFICATION_FAILED"
    PORT_EXHAUSTION = "PORT_EXHAUSTION"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorDetail(BaseModel):
    """Error detail containing code, message and optional structured details."""

    code: str
    message: str
    details: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Error response format."""

    error: ErrorDetail


class DeployerError(Exception):
    """Base exception for vscode_deployer.

    Attributes:
        code: The error code from ErrorCode enum.
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Structured, caller-actionable data (e.g. suggested_port).
        recoverable: True when the caller can act on details and resubmit.
    """

    recoverable = False

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_detail(self) -> ErrorDetail:
        return ErrorDetail(code=self.code.value, message=self.message, details=self.details)

    def to_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse model."""
        return ErrorResponse(error=self.to_detail())


class InvalidParameterError(DeployerError):
    """400 Bad Request - Required parameter missing or invalid."""

    def __init__(
        self, message: str = "Invalid parameter", details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(ErrorCode.INVALID_PARAMETER, message, 400, details)


class NoRuntimeAvailableError(DeployerError):
    """503 Service Unavailable - Neither docker nor podman is usable."""

    def __init__(
        self,
        message: str = (
            "Neither Docker nor Podman is available or running. "
            "Please install and start one of them."
        ),
        tried: list[str] | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.NO_RUNTIME_AVAILABLE,
            message,
            503,
            {"tried": tried} if tried else None,
        )


class WorkspaceNotFoundError(DeployerError):
    """404 Not Found - Workspace path does not exist."""

    def __init__(self, workspace_path: str) -> None:
        super().__init__(
            ErrorCode.WORKSPACE_NOT_FOUND,
            f"Workspace path not found: {workspace_path}",
            404,
        )


class PortConflictError(DeployerError):
    """409 Conflict - Requested port is busy before launch."""

    recoverable = True

    def __init__(self, port: int, suggested_port: int) -> None:
        super().__init__(
            ErrorCode.PORT_CONFLICT,
            f"Port {port} is already in use. Consider using port {suggested_port} instead.",
            409,
            {"port": port, "suggested_port": suggested_port},
        )
        self.suggested_port = suggested_port


class PortConflictAtLaunchError(DeployerError):
    """409 Conflict - Engine reported the port taken at launch time."""

    recoverable = True

    def __init__(self, port: int, suggested_port: int) -> None:
        super().__init__(
            ErrorCode.PORT_CONFLICT_AT_LAUNCH,
            f"Port {port} is already allocated. Consider using port {suggested_port} instead.",
            409,
            {"port": port, "suggested_port": suggested_port},
        )
        self.suggested_port = suggested_port


class LaunchFailedError(DeployerError):
    """502 Bad Gateway - Container engine rejected the launch."""

    recoverable = True

    def __init__(self, runtime: str, engine_message: str, record_path: str | None = None) -> None:
        super().__init__(
            ErrorCode.LAUNCH_FAILED,
            f"Failed to deploy {runtime} container: {engine_message}",
            502,
            {"record_path": record_path} if record_path else None,
        )


class StartupVerificationFailedError(DeployerError):
    """500 Internal Server Error - Container did not reach a running state."""

    def __init__(
        self,
        message: str = "Failed to start VSCode instance",
        record_path: str | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.STARTUP_VERIFICATION_FAILED,
            message,
            500,
            {"record_path": record_path} if record_path else None,
        )


class PortExhaustionError(DeployerError):
    """503 Service Unavailable - No free port found within the attempt budget."""

    def __init__(self, attempts: int, conflicting_port: int | None = None) -> None:
        message = f"Could not find an available port after {attempts} attempts"
        details: dict[str, Any] = {"attempts": attempts}
        if conflicting_port is not None:
            message = f"Port {conflicting_port} is already in use and no alternative was found: {message}"
            details["port"] = conflicting_port
        super().__init__(ErrorCode.PORT_EXHAUSTION, message, 503, details)
        self.attempts = attempts


class InternalError(DeployerError):
    """500 Internal Server Error - Internal error."""

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(ErrorCode.INTERNAL_ERROR, message, 500)
