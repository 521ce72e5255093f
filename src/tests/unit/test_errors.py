"""Tests for error handling classes."""

import pytest

from vscode_deployer.errors import (
    DeployerError,
    ErrorCode,
    InternalError,
    InvalidParameterError,
    LaunchFailedError,
    NoRuntimeAvailableError,
    PortConflictAtLaunchError,
    PortConflictError,
    PortExhaustionError,
    StartupVerificationFailedError,
    WorkspaceNotFoundError,
)


class TestPortConflictError:
    """Tests for PortConflictError."""

    def test_carries_suggested_port(self) -> None:
        exc = PortConflictError(12345, 23456)

        assert exc.suggested_port == 23456
        assert exc.details == {"port": 12345, "suggested_port": 23456}
        assert exc.recoverable is True

    def test_message_mentions_both_ports(self) -> None:
        exc = PortConflictError(12345, 23456)

        assert exc.message == (
            "Port 12345 is already in use. Consider using port 23456 instead."
        )

    def test_to_response(self) -> None:
        resp = PortConflictError(12345, 23456).to_response()

        assert resp.error.code == "PORT_CONFLICT"
        assert resp.error.details == {"port": 12345, "suggested_port": 23456}


class TestNoRuntimeAvailableError:
    """Tests for NoRuntimeAvailableError."""

    def test_names_engines_tried(self) -> None:
        exc = NoRuntimeAvailableError(tried=["docker", "podman"])

        assert "Docker" in exc.message
        assert "Podman" in exc.message
        assert exc.details == {"tried": ["docker", "podman"]}


class TestErrorClasses:
    """Consistency checks across the taxonomy."""

    @pytest.mark.parametrize(
        "exc,code,status_code,recoverable",
        [
            (InvalidParameterError(), ErrorCode.INVALID_PARAMETER, 400, False),
            (NoRuntimeAvailableError(), ErrorCode.NO_RUNTIME_AVAILABLE, 503, False),
            (WorkspaceNotFoundError("/nope"), ErrorCode.WORKSPACE_NOT_FOUND, 404, False),
            (PortConflictError(1, 2), ErrorCode.PORT_CONFLICT, 409, True),
            (PortConflictAtLaunchError(1, 2), ErrorCode.PORT_CONFLICT_AT_LAUNCH, 409, True),
            (LaunchFailedError("docker", "boom"), ErrorCode.LAUNCH_FAILED, 502, True),
            (
                StartupVerificationFailedError(),
                ErrorCode.STARTUP_VERIFICATION_FAILED,
                500,
                False,
            ),
            (PortExhaustionError(10), ErrorCode.PORT_EXHAUSTION, 503, False),
            (InternalError(), ErrorCode.INTERNAL_ERROR, 500, False),
        ],
    )
    def test_error_attributes(
        self,
        exc: DeployerError,
        code: ErrorCode,
        status_code: int,
        recoverable: bool,
    ) -> None:
        assert isinstance(exc, DeployerError)
        assert exc.code == code
        assert exc.status_code == status_code
        assert exc.recoverable is recoverable
        assert exc.to_response().error.code == code.value

    def test_launch_failed_includes_engine_message(self) -> None:
        exc = LaunchFailedError("podman", "image not known", record_path="/r/x.json")

        assert exc.message == "Failed to deploy podman container: image not known"
        assert exc.details == {"record_path": "/r/x.json"}
