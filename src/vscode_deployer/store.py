"""Instance record store.

One JSON file per instance, named ``<instance_name>.json``. Records are
written before the container is launched and are only removed when a launch
loses a port race, so failed launches leave a trail for diagnosis.
"""

import asyncio
import json
import logging
from pathlib import Path

from vscode_deployer.logging_schema import LogEvent
from vscode_deployer.models import ResolvedInstance

logger = logging.getLogger(__name__)


class InstanceRecordStore:
    """Filesystem-backed instance records."""

    def __init__(self, records_dir: Path | str) -> None:
        self._dir = Path(records_dir).expanduser().resolve()

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, instance_name: str) -> Path:
        return self._dir / f"{instance_name}.json"

    async def save(self, instance: ResolvedInstance) -> Path:
        """Write the record and return its path."""
        path = self.path_for(instance.instance_name)
        content = json.dumps(instance.model_dump(mode="json"), indent=2, sort_keys=True)
        await asyncio.to_thread(self._write, path, content)
        logger.debug(
            "Saved instance record",
            extra={"event": LogEvent.RECORD_SAVED, "path": str(path)},
        )
        return path

    def _write(self, path: Path, content: str) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        path.write_text(content + "\n", encoding="utf-8")

    async def load(self, path: Path) -> ResolvedInstance:
        content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        return ResolvedInstance.model_validate_json(content)

    async def delete(self, path: Path) -> None:
        """Remove a record. Failures are logged, never raised."""
        try:
            await asyncio.to_thread(path.unlink)
        except OSError as e:
            logger.warning(
                "Failed to clean up instance record",
                extra={
                    "event": LogEvent.RECORD_DELETE_FAILED,
                    "path": str(path),
                    "error": str(e),
                },
            )
            return
        logger.debug(
            "Deleted instance record",
            extra={"event": LogEvent.RECORD_DELETED, "path": str(path)},
        )
