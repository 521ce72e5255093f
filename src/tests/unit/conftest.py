"""Fixtures for deployer unit tests."""

import random
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from vscode_deployer.config import DeployerConfig, RuntimeConfig, StorageConfig
from vscode_deployer.ports import PortAllocator, PortProber
from vscode_deployer.provisioner import Provisioner
from vscode_deployer.runtimes import CliEngineGateway, CommandResult, RuntimeDetector
from vscode_deployer.store import InstanceRecordStore

INSTANCE_ID = "abcd1234"


@pytest.fixture
def records_dir(tmp_path: Path) -> Path:
    """Records directory (not created up front)."""
    return tmp_path / "records"


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Existing workspace directory."""
    path = tmp_path / "ws"
    path.mkdir()
    return path


@pytest.fixture
def deployer_config(records_dir: Path) -> DeployerConfig:
    """Config with defaults, a temp records dir and no startup wait."""
    return DeployerConfig(
        runtime=RuntimeConfig(mode="auto", startup_grace_seconds=0.0),
        storage=StorageConfig(records_dir=records_dir),
    )


@pytest.fixture
def mock_gateway() -> AsyncMock:
    """Mock engine gateway where every command succeeds."""
    gateway = AsyncMock(spec=CliEngineGateway)
    gateway.runtime = "docker"
    gateway.invoke = AsyncMock(return_value=CommandResult(args=[], returncode=0, stdout="c0ffee\n"))
    gateway.query_status = AsyncMock(return_value="Up 2 seconds")
    gateway.is_installed = AsyncMock(return_value=True)
    gateway.is_responsive = AsyncMock(return_value=True)
    return gateway


@pytest.fixture
def mock_prober() -> AsyncMock:
    """Mock port prober reporting every port free."""
    prober = AsyncMock(spec=PortProber)
    prober.is_free = AsyncMock(return_value=True)
    return prober


@pytest.fixture
def allocator(deployer_config: DeployerConfig, mock_prober: AsyncMock) -> PortAllocator:
    """Allocator with a seeded RNG."""
    return PortAllocator(deployer_config.ports, mock_prober, rng=random.Random(0))


@pytest.fixture
def store(records_dir: Path) -> InstanceRecordStore:
    return InstanceRecordStore(records_dir)


@pytest.fixture
def mock_sleep() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def provisioner(
    deployer_config: DeployerConfig,
    mock_gateway: AsyncMock,
    mock_prober: AsyncMock,
    allocator: PortAllocator,
    store: InstanceRecordStore,
    mock_sleep: AsyncMock,
) -> Provisioner:
    """Provisioner wired to mocks only; no engine or network needed."""
    return Provisioner(
        config=deployer_config,
        detector=RuntimeDetector(deployer_config.runtime, gateway_factory=lambda _: mock_gateway),
        prober=mock_prober,
        allocator=allocator,
        store=store,
        gateway_factory=lambda _: mock_gateway,
        sleep=mock_sleep,
        id_factory=lambda: INSTANCE_ID,
    )
