"""Log event types for structured logging."""

from enum import StrEnum


class LogEvent(StrEnum):
    """Log event types for the deployer.

    Used with logger.info/warning/error extra dict:
        logger.info("message", extra={"event": LogEvent.CONTAINER_STARTED, ...})
    """

    # Application lifecycle
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"

    # Runtime detection
    RUNTIME_DETECTED = "runtime_detected"
    RUNTIME_UNAVAILABLE = "runtime_unavailable"
    RUNTIME_OVERRIDDEN = "runtime_overridden"

    # Ports
    PORT_ALLOCATED = "port_allocated"
    PORT_CONFLICT = "port_conflict"
    PORT_EXHAUSTED = "port_exhausted"

    # Records
    RECORD_SAVED = "record_saved"
    RECORD_DELETED = "record_deleted"
    RECORD_DELETE_FAILED = "record_delete_failed"

    # Container events
    CONTAINER_LAUNCHING = "container_launching"
    CONTAINER_LAUNCH_FAILED = "container_launch_failed"
    CONTAINER_STARTED = "container_started"
    CONTAINER_NOT_RUNNING = "container_not_running"

    # Error events
    UNHANDLED_EXCEPTION = "unhandled_exception"
    DEPLOYER_ERROR = "deployer_error"
