"""Logging for vscode-deployer with per-deploy context.

While an instance is being deployed, the provisioner binds its
``instance_name``, ``runtime`` and ``port`` to the current task. Every log
line emitted in that task (store, engine gateway, provisioner) then carries
them, in both output formats:

- text: ``... - Launching container [vscode-demo-abcd1234 docker:12345]``
- json: the bound fields appear as top-level keys next to ``event``
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger import json as jsonlogger

from vscode_deployer.config import LoggingConfig

# Fields describing the instance a log line is about
DEPLOY_FIELDS = ("instance_name", "runtime", "port")

deploy_ctx: ContextVar[dict[str, Any] | None] = ContextVar("deploy_ctx", default=None)


def get_deploy_context() -> dict[str, Any]:
    """Get the deploy fields bound to the current task."""
    return dict(deploy_ctx.get() or {})


@contextmanager
def deploy_context(**fields: Any) -> Iterator[None]:
    """Bind deploy fields for the duration of the block.

    Nested blocks add to the outer fields; the outer set is restored on exit.
    """
    token = deploy_ctx.set({**get_deploy_context(), **fields})
    try:
        yield
    finally:
        deploy_ctx.reset(token)


def _deploy_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Deploy fields for a record; explicit ``extra`` wins over bound context."""
    fields = get_deploy_context()
    for name in DEPLOY_FIELDS:
        value = getattr(record, name, None)
        if value is not None:
            fields[name] = value
    return {name: fields[name] for name in DEPLOY_FIELDS if fields.get(name) is not None}


class DeployerTextFormatter(logging.Formatter):
    """Human-readable formatter that appends the deployed instance, if any."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        fields = _deploy_fields(record)
        if "instance_name" not in fields:
            return line
        target = fields["instance_name"]
        if "runtime" in fields and "port" in fields:
            target = f"{target} {fields['runtime']}:{fields['port']}"
        return f"{line} [{target}]"


class DeployerJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter for log aggregation.

    Adds timestamp, level, logger, service and pid, plus the deploy fields
    bound with deploy_context(). ``event`` is always present so log queries
    can filter on it; lines logged without one get ``"log"``.
    """

    def __init__(self, config: LoggingConfig, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._service = config.service_name

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.fromtimestamp(
            record.created, tz=timezone.utc
        ).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = self._service
        log_record["pid"] = record.process
        log_record["event"] = str(getattr(record, "event", None) or "log")
        log_record.update(_deploy_fields(record))

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def setup_logging(config: LoggingConfig) -> None:
    """Send all logs to stdout in the configured format.

    uvicorn's server logs share the handler; its access log is turned off
    since the deployer logs each deploy outcome itself.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)

    if config.format == "json":
        formatter: logging.Formatter = DeployerJsonFormatter(config)
    else:
        formatter = DeployerTextFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in ("uvicorn", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = False
        uv_logger.addHandler(handler)
    logging.getLogger("uvicorn.access").disabled = True
