"""Logging, event and metrics helpers shared by the runners."""

from cloudsdk_runner.util.logging import (
    PROCESS_LOGGER,
    STDERR_LOGGER,
    STDOUT_LOGGER,
    configure_logging,
    get_logger,
    stream_logger,
)
from cloudsdk_runner.util.observability import (
    EventLogger,
    MetricsCollector,
    ObservabilityManager,
    create_observability_manager,
)

__all__ = [
    "EventLogger",
    "MetricsCollector",
    "ObservabilityManager",
    "PROCESS_LOGGER",
    "STDERR_LOGGER",
    "STDOUT_LOGGER",
    "configure_logging",
    "create_observability_manager",
    "get_logger",
    "stream_logger",
]
