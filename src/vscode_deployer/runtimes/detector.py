"""Container runtime detection with an injectable cache."""

import logging
from collections.abc import Callable
from typing import cast

from vscode_deployer.config import RuntimeConfig
from vscode_deployer.errors import NoRuntimeAvailableError
from vscode_deployer.logging_schema import LogEvent
from vscode_deployer.models import RuntimeName
from vscode_deployer.runtimes.gateway import CliEngineGateway, EngineGateway

logger = logging.getLogger(__name__)

# Probe order
CANDIDATE_RUNTIMES: tuple[RuntimeName, ...] = ("docker", "podman")


class RuntimeCache:
    """Holds the detected runtime for the lifetime of its owner.

    Written once by detection, or replaced whole by an explicit override.
    """

    def __init__(self, value: RuntimeName | None = None) -> None:
        self._value = value

    def get(self) -> RuntimeName | None:
        return self._value

    def set(self, value: RuntimeName) -> None:
        self._value = value

    def reset(self) -> None:
        self._value = None


class RuntimeDetector:
    """Resolve which container engine to use.

    Resolution order:
    1. Explicit override: accepted without probing, replaces the cache
    2. Cached value: returned without probing
    3. Forced mode from config: cached without probing
    4. Probe candidates in order; first with a working binary and daemon wins
    """

    def __init__(
        self,
        config: RuntimeConfig,
        cache: RuntimeCache | None = None,
        gateway_factory: Callable[[str], EngineGateway] = CliEngineGateway,
        candidates: tuple[RuntimeName, ...] = CANDIDATE_RUNTIMES,
    ) -> None:
        self._mode = config.mode
        self._cache = cache if cache is not None else RuntimeCache()
        self._gateway_factory = gateway_factory
        self._candidates = candidates

    @property
    def cache(self) -> RuntimeCache:
        return self._cache

    async def resolve(self, override: RuntimeName | None = None) -> RuntimeName:
        """Return the runtime to use for a deploy.

        Raises:
            NoRuntimeAvailableError: No candidate passed both checks.
        """
        if override:
            self._cache.set(override)
            logger.debug(
                "Using runtime override",
                extra={"event": LogEvent.RUNTIME_OVERRIDDEN, "runtime": override},
            )
            return override

        cached = self._cache.get()
        if cached:
            return cached

        if self._mode != "auto":
            forced = cast(RuntimeName, self._mode)
            self._cache.set(forced)
            return forced

        for runtime in self._candidates:
            if await self._probe(runtime):
                self._cache.set(runtime)
                logger.info(
                    "Detected container runtime: %s",
                    runtime,
                    extra={"event": LogEvent.RUNTIME_DETECTED, "runtime": runtime},
                )
                return runtime

        logger.error(
            "No container runtime available",
            extra={"event": LogEvent.RUNTIME_UNAVAILABLE, "tried": list(self._candidates)},
        )
        raise NoRuntimeAvailableError(tried=list(self._candidates))

    async def _probe(self, runtime: RuntimeName) -> bool:
        gateway = self._gateway_factory(runtime)
        if not await gateway.is_installed():
            return False
        if not await gateway.is_responsive():
            # Binary present but the daemon/service is down
            logger.warning(
                "%s is installed but not responding",
                runtime,
                extra={"event": LogEvent.RUNTIME_UNAVAILABLE, "runtime": runtime},
            )
            return False
        return True
