"""Unit tests for CliEngineGateway."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vscode_deployer.config import RuntimeConfig
from vscode_deployer.errors import NoRuntimeAvailableError
from vscode_deployer.runtimes import CliEngineGateway, EngineCommandError, RuntimeDetector


def _process(returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"") -> MagicMock:
    proc = MagicMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    return proc


class TestCliEngineGateway:
    """Tests for CliEngineGateway."""

    @pytest.fixture
    def gateway(self) -> CliEngineGateway:
        return CliEngineGateway("docker")

    async def test_invoke_passes_argument_vector(self, gateway: CliEngineGateway) -> None:
        with patch(
            "asyncio.create_subprocess_exec",
            AsyncMock(return_value=_process(stdout=b"abc\n")),
        ) as exec_mock:
            result = await gateway.invoke(["run", "-e", "A=b c"])

        assert exec_mock.call_args.args == ("docker", "run", "-e", "A=b c")
        assert result.stdout == "abc\n"
        assert result.returncode == 0

    async def test_invoke_nonzero_raises(self, gateway: CliEngineGateway) -> None:
        proc = _process(
            returncode=125,
            stderr=b"Bind for 0.0.0.0:12345 failed: port is already allocated\n",
        )
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with pytest.raises(EngineCommandError) as exc_info:
                await gateway.invoke(["run"])

        assert "port is already allocated" in str(exc_info.value)
        assert exc_info.value.result.returncode == 125

    async def test_invoke_missing_binary(self, gateway: CliEngineGateway) -> None:
        with patch(
            "asyncio.create_subprocess_exec",
            AsyncMock(side_effect=FileNotFoundError("docker")),
        ):
            with pytest.raises(EngineCommandError) as exc_info:
                await gateway.invoke(["--version"])

        assert exc_info.value.result.returncode == 127
        assert "command not found" in str(exc_info.value)

    async def test_query_status(self, gateway: CliEngineGateway) -> None:
        with patch(
            "asyncio.create_subprocess_exec",
            AsyncMock(return_value=_process(stdout=b"Up 2 seconds\n")),
        ) as exec_mock:
            status = await gateway.query_status("vscode-demo-abcd1234")

        assert status == "Up 2 seconds"
        assert exec_mock.call_args.args == (
            "docker",
            "ps",
            "--filter",
            "name=vscode-demo-abcd1234",
            "--format",
            "{{.Status}}",
        )

    async def test_query_status_empty(self, gateway: CliEngineGateway) -> None:
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=_process())):
            assert await gateway.query_status("vscode-demo-abcd1234") == ""

    async def test_is_installed_false_when_missing(self, gateway: CliEngineGateway) -> None:
        with patch(
            "asyncio.create_subprocess_exec",
            AsyncMock(side_effect=FileNotFoundError("docker")),
        ):
            assert await gateway.is_installed() is False

    async def test_is_responsive_false_when_daemon_down(
        self, gateway: CliEngineGateway
    ) -> None:
        proc = _process(returncode=1, stderr=b"Cannot connect to the Docker daemon")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            assert await gateway.is_responsive() is False

    async def test_invoke_binary_not_executable(self, gateway: CliEngineGateway) -> None:
        with patch(
            "asyncio.create_subprocess_exec",
            AsyncMock(side_effect=PermissionError(13, "Permission denied")),
        ):
            with pytest.raises(EngineCommandError) as exc_info:
                await gateway.invoke(["--version"])

        assert exc_info.value.result.returncode == 126
        assert "Permission denied" in str(exc_info.value)

    async def test_is_installed_false_when_not_executable(
        self, gateway: CliEngineGateway
    ) -> None:
        with patch(
            "asyncio.create_subprocess_exec",
            AsyncMock(side_effect=PermissionError(13, "Permission denied")),
        ):
            assert await gateway.is_installed() is False


class TestDetectionWithUnusableBinaries:
    """Detection over real binaries that are missing or not executable."""

    async def test_non_executable_binary_is_skipped(self, tmp_path: Path) -> None:
        docker = tmp_path / "docker"
        docker.write_text("#!/bin/sh\nexit 0\n")
        docker.chmod(0o644)
        binaries = {"docker": str(docker), "podman": str(tmp_path / "podman")}
        detector = RuntimeDetector(
            RuntimeConfig(),
            gateway_factory=lambda runtime: CliEngineGateway(runtime, binary=binaries[runtime]),
        )

        with pytest.raises(NoRuntimeAvailableError) as exc_info:
            await detector.resolve()

        assert exc_info.value.details == {"tried": ["docker", "podman"]}
