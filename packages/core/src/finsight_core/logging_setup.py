"""structlog configuration for hosts embedding finsight-core.

The core modules only call ``structlog.get_logger()``; nothing is configured
at import time. A host application calls ``configure_logging`` once at
startup, typically with values from FinsightConfig.
"""

import logging
from typing import Any

import structlog

SERVICE_NAME = "finsight-core"


def _add_service(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(level: str = "INFO", json: bool = False) -> None:
    """
    Configure structlog level filtering and rendering.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json: Render JSON lines instead of the console format.

    Raises:
        ValueError: If the level name is unknown.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_service,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )


def configure_from_settings(config: Any) -> None:
    """Apply ``log_level`` and ``log_json`` from a FinsightConfig."""
    configure_logging(level=config.log_level, json=config.log_json)
