"""Host port probing and allocation.

Allocation samples the configured range at random instead of scanning it
in order, so concurrent deployers rarely pick the same candidate. There is
no reservation: a port found free here can still be taken before the engine
binds it, which the provisioner handles at launch time.
"""

import asyncio
import errno
import logging
import os
import random
import socket
from collections.abc import Collection

from vscode_deployer.config import PortConfig
from vscode_deployer.errors import PortExhaustionError
from vscode_deployer.logging_schema import LogEvent

logger = logging.getLogger(__name__)

ALL_INTERFACES = "0.0.0.0"


def is_port_free(port: int, host: str = ALL_INTERFACES) -> bool:
    """Check whether a TCP port can be bound on all interfaces.

    Only EADDRINUSE counts as busy. Any other bind error (permission,
    unavailable address, ...) is reported as free.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        if os.name != "nt":
            # Match a typical server listener so TIME_WAIT sockets do not count as busy
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(1)
    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            return False
        logger.debug("Ignoring bind error on port %d: %s", port, e)
        return True
    finally:
        sock.close()
    return True


class PortProber:
    """Async wrapper around is_port_free."""

    def __init__(self, host: str = ALL_INTERFACES) -> None:
        self._host = host

    async def is_free(self, port: int) -> bool:
        return await asyncio.to_thread(is_port_free, port, self._host)


class PortAllocator:
    """Bounded random port allocator."""

    def __init__(
        self,
        config: PortConfig,
        prober: PortProber | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._start = config.range_start
        self._end = config.range_end
        self._max_attempts = config.max_attempts
        self._prober = prober or PortProber()
        self._rng = rng or random.Random()

    @property
    def prober(self) -> PortProber:
        return self._prober

    async def allocate(self, exclude: Collection[int] = ()) -> int:
        """Return a free port from the range.

        Candidates in ``exclude`` are treated as busy and still use up an
        attempt.

        Raises:
            PortExhaustionError: Every sampled candidate was busy.
        """
        for attempt in range(1, self._max_attempts + 1):
            port = self._rng.randint(self._start, self._end)
            if port in exclude:
                continue
            if await self._prober.is_free(port):
                logger.debug(
                    "Allocated port",
                    extra={"event": LogEvent.PORT_ALLOCATED, "port": port, "attempt": attempt},
                )
                return port

        logger.warning(
            "No free port found",
            extra={
                "event": LogEvent.PORT_EXHAUSTED,
                "attempts": self._max_attempts,
                "range": f"{self._start}-{self._end}",
            },
        )
        raise PortExhaustionError(self._max_attempts)
