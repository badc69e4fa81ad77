"""
Structured logging for SyncScript, using structlog on top of stdlib logging.

Engine modules log through ``logging.getLogger(__name__)``. The dashboard
routes use ``get_logger`` to emit key/value events ("task_toggled",
task_id=..., energy_earned=...). Both end up in the same stdlib handler and
carry the service name, version and any request context bound for the
current toggle.

Settings come from args/logging.yaml, overridden by the environment:
    SYNCSCRIPT_LOG_LEVEL   DEBUG / INFO / WARNING
    SYNCSCRIPT_LOG_FORMAT  "json" for JSON lines, "console" otherwise

Usage:
    from syncscript.logging_config import get_logger, setup_logging

    setup_logging()
    get_logger(__name__).info("task_toggled", task_id="t1", energy_earned=5)

Dependencies:
    - structlog
    - pyyaml
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any

import structlog
import yaml

from syncscript import __version__
from syncscript.tasks import PROJECT_ROOT

CONFIG_PATH = PROJECT_ROOT / "args" / "logging.yaml"

SERVICE_NAME = "syncscript"

DEFAULT_SETTINGS: dict[str, Any] = {
    "level": "INFO",
    "format": "console",
    "quiet_loggers": ["uvicorn.access", "httpx"],
}


def load_logging_settings(path: Path | None = None) -> dict[str, Any]:
    """Read the ``logging`` block of args/logging.yaml merged over the defaults."""
    config_path = path or CONFIG_PATH
    settings = dict(DEFAULT_SETTINGS)
    if config_path.exists():
        with open(config_path) as f:
            config = yaml.safe_load(f) or {}
        settings.update(config.get("logging") or {})
    return settings


def add_service_info(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Stamp every event with the service name and version."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", __version__)
    return event_dict


def setup_logging(
    level: str | None = None,
    json_output: bool | None = None,
    settings: dict[str, Any] | None = None,
) -> None:
    """
    Route structlog and stdlib records through one stderr handler.

    Args:
        level: Log level name; falls back to SYNCSCRIPT_LOG_LEVEL, then the config file
        json_output: Force JSON lines on or off; falls back to SYNCSCRIPT_LOG_FORMAT
        settings: Already-loaded settings (reads args/logging.yaml if omitted)
    """
    if settings is None:
        settings = load_logging_settings()

    level = level or os.environ.get("SYNCSCRIPT_LOG_LEVEL") or settings["level"]
    if json_output is None:
        log_format = os.environ.get("SYNCSCRIPT_LOG_FORMAT") or settings["format"]
        json_output = str(log_format).lower() == "json"

    numeric_level = getattr(logging, str(level).upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    # foreign_pre_chain renders plain stdlib records the same way
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in settings.get("quiet_loggers") or []:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Key/value event logger that shares the stdlib handler."""
    return structlog.get_logger(name)


def bind_request_context(**values: object) -> None:
    """Attach values (e.g. task_id) to every log line in the current context."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = [
    "add_service_info",
    "bind_request_context",
    "clear_request_context",
    "get_logger",
    "load_logging_settings",
    "setup_logging",
]
