"""Instance provisioning orchestrator.

Create path for a code-server instance:

    validate -> resolve runtime -> check workspace -> resolve port
             -> save record -> launch container -> verify running

The record is saved before launch so a failed launch still leaves a trace.
It is removed only when the engine reports the port as taken at launch
time; the caller then gets a suggested port and must resubmit. No step is
retried automatically.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import time
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from pathlib import Path

from vscode_deployer.config import DeployerConfig, get_config
from vscode_deployer.errors import (
    DeployerError,
    ErrorCode,
    InternalError,
    InvalidParameterError,
    LaunchFailedError,
    PortConflictAtLaunchError,
    PortConflictError,
    PortExhaustionError,
    StartupVerificationFailedError,
    WorkspaceNotFoundError,
)
from vscode_deployer.logging import deploy_context
from vscode_deployer.logging_schema import LogEvent
from vscode_deployer.metrics import DEPLOYER_PROVISION_DURATION, DEPLOYER_PROVISION_TOTAL
from vscode_deployer.models import (
    DeploymentResult,
    InstanceSpec,
    ProvisionResult,
    ResolvedInstance,
    RuntimeName,
)
from vscode_deployer.ports import PortAllocator, PortProber
from vscode_deployer.runtimes import (
    CliEngineGateway,
    EngineCommandError,
    EngineGateway,
    ResourceNaming,
    RuntimeDetector,
    build_launch_command,
)
from vscode_deployer.store import InstanceRecordStore

logger = logging.getLogger(__name__)

# Engine error fragments meaning the host port was taken between probe and launch
PORT_COLLISION_MARKERS = (
    "port is already allocated",  # docker
    "address already in use",  # podman
)

# Container engines accept this alphabet for names; it also keeps record
# file names inside the records directory
INSTANCE_NAME_PATTERN = re.compile(r"[a-zA-Z0-9][a-zA-Z0-9_.-]*")


def new_instance_id() -> str:
    return uuid.uuid4().hex[:8]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_port_collision(engine_message: str) -> bool:
    message = engine_message.lower()
    return any(marker in message for marker in PORT_COLLISION_MARKERS)


def env_value(value: str | int | float | bool) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class Provisioner:
    """Creates code-server instances on the local container engine.

    All collaborators are injectable. The runtime cache lives in the
    detector, so one Provisioner shares a single detected runtime across
    all of its calls.
    """

    def __init__(
        self,
        config: DeployerConfig | None = None,
        detector: RuntimeDetector | None = None,
        prober: PortProber | None = None,
        allocator: PortAllocator | None = None,
        store: InstanceRecordStore | None = None,
        gateway_factory: Callable[[str], EngineGateway] = CliEngineGateway,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        id_factory: Callable[[], str] = new_instance_id,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._config = config or get_config()
        self._gateway_factory = gateway_factory
        self._detector = detector or RuntimeDetector(
            self._config.runtime, gateway_factory=gateway_factory
        )
        self._prober = prober or (allocator.prober if allocator else PortProber())
        self._allocator = allocator or PortAllocator(self._config.ports, self._prober)
        self._store = store or InstanceRecordStore(self._config.storage.records_dir)
        self._naming = ResourceNaming(self._config.runtime)
        self._sleep = sleep
        self._id_factory = id_factory
        self._clock = clock

    @property
    def detector(self) -> RuntimeDetector:
        return self._detector

    @property
    def store(self) -> InstanceRecordStore:
        return self._store

    async def provision(self, spec: InstanceSpec) -> ProvisionResult:
        """Deploy an instance and report the outcome as a result object.

        Never raises for deploy failures; unexpected exceptions are logged
        and reported as INTERNAL_ERROR.
        """
        try:
            deployed = await self.create(spec)
        except DeployerError as e:
            return ProvisionResult(error=e.to_detail())
        except Exception as e:
            logger.exception(
                "Error in deploy",
                extra={"event": LogEvent.UNHANDLED_EXCEPTION, "instance": spec.name},
            )
            error = InternalError(f"Failed to deploy VSCode instance: {e}")
            return ProvisionResult(error=error.to_detail())
        return ProvisionResult(instance=deployed)

    async def create(self, spec: InstanceSpec) -> DeploymentResult:
        """Deploy an instance.

        Raises:
            DeployerError: Any deploy failure, see vscode_deployer.errors.
        """
        start = time.monotonic()
        try:
            result = await self._create(spec)
        except DeployerError as e:
            DEPLOYER_PROVISION_TOTAL.labels(outcome=e.code.value).inc()
            raise
        except Exception:
            DEPLOYER_PROVISION_TOTAL.labels(outcome=ErrorCode.INTERNAL_ERROR.value).inc()
            raise
        finally:
            DEPLOYER_PROVISION_DURATION.observe(time.monotonic() - start)
        DEPLOYER_PROVISION_TOTAL.labels(outcome="succeeded").inc()
        return result

    async def _create(self, spec: InstanceSpec) -> DeploymentResult:
        if not spec.name:
            raise InvalidParameterError("name parameter is required")
        if not INSTANCE_NAME_PATTERN.fullmatch(spec.name):
            raise InvalidParameterError(
                f"name must match {INSTANCE_NAME_PATTERN.pattern}", {"name": spec.name}
            )
        if not spec.workspace_path:
            raise InvalidParameterError("workspace_path parameter is required")

        runtime = await self._detector.resolve(spec.runtime)

        workspace_path = os.path.abspath(spec.workspace_path)
        if not await asyncio.to_thread(os.path.exists, workspace_path):
            raise WorkspaceNotFoundError(workspace_path)

        port = await self._resolve_port(spec.port)
        instance = self._resolve_instance(spec, runtime, workspace_path, port)

        with deploy_context(
            instance_name=instance.instance_name, runtime=runtime, port=instance.port
        ):
            record_path = await self._store.save(instance)
            gateway = self._gateway_factory(runtime)
            await self._launch(gateway, instance, record_path)
            await self._verify(gateway, instance, record_path)

        return DeploymentResult.from_instance(instance)

    async def _resolve_port(self, requested: int | None) -> int:
        if not requested:
            return await self._allocator.allocate()

        if await self._prober.is_free(requested):
            return requested

        suggested = await self._suggest_port(requested)
        logger.info(
            "Requested port is in use",
            extra={
                "event": LogEvent.PORT_CONFLICT,
                "port": requested,
                "suggested_port": suggested,
            },
        )
        raise PortConflictError(requested, suggested)

    async def _suggest_port(self, conflicting: int) -> int:
        try:
            return await self._allocator.allocate(exclude={conflicting})
        except PortExhaustionError as e:
            logger.warning(
                "Port is in use and no alternative is free",
                extra={
                    "event": LogEvent.PORT_EXHAUSTED,
                    "port": conflicting,
                    "attempts": e.attempts,
                },
            )
            raise PortExhaustionError(e.attempts, conflicting_port=conflicting) from e

    def _resolve_instance(
        self,
        spec: InstanceSpec,
        runtime: RuntimeName,
        workspace_path: str,
        port: int,
    ) -> ResolvedInstance:
        defaults = self._config.defaults
        instance_id = self._id_factory()
        name = spec.name or ""
        return ResolvedInstance(
            id=instance_id,
            name=name,
            instance_name=self._naming.instance_name(name, instance_id),
            runtime=runtime,
            workspace_path=workspace_path,
            port=port,
            # Empty string is passwordless; only an unset password takes the default
            password=spec.password if spec.password is not None else defaults.password,
            extensions=(
                list(spec.extensions) if spec.extensions is not None else defaults.extension_list
            ),
            cpu_limit=str(spec.cpu_limit) if spec.cpu_limit else defaults.cpu_limit,
            memory_limit=spec.memory_limit or defaults.memory_limit,
            environment={
                key: env_value(value) for key, value in (spec.environment or {}).items()
            },
            created_at=self._clock(),
        )

    async def _launch(
        self,
        gateway: EngineGateway,
        instance: ResolvedInstance,
        record_path: Path,
    ) -> None:
        command = build_launch_command(
            instance.runtime, instance, self._config.runtime, self._naming
        )
        logger.info("Launching container", extra={"event": LogEvent.CONTAINER_LAUNCHING})
        logger.debug("Executing: %s...", command.render()[:100])

        try:
            await gateway.invoke(command.args)
        except EngineCommandError as e:
            message = str(e)
            logger.warning(
                "Container launch failed",
                extra={"event": LogEvent.CONTAINER_LAUNCH_FAILED, "error": message},
            )
            if not is_port_collision(message):
                raise LaunchFailedError(instance.runtime, message, str(record_path)) from e

            await self._store.delete(record_path)
            suggested = await self._suggest_port(instance.port)
            raise PortConflictAtLaunchError(instance.port, suggested) from e

    async def _verify(
        self,
        gateway: EngineGateway,
        instance: ResolvedInstance,
        record_path: Path,
    ) -> None:
        await self._sleep(self._config.runtime.startup_grace_seconds)

        try:
            status = await gateway.query_status(instance.instance_name)
        except EngineCommandError as e:
            raise StartupVerificationFailedError(
                f"Failed to query VSCode instance status: {e}", str(record_path)
            ) from e

        if not status:
            logger.error(
                "Container is not running after launch",
                extra={"event": LogEvent.CONTAINER_NOT_RUNNING},
            )
            raise StartupVerificationFailedError(record_path=str(record_path))

        logger.info(
            "VSCode instance started",
            extra={"event": LogEvent.CONTAINER_STARTED, "status": status},
        )
