"""
Logging configuration and utilities.

This module provides centralized logging configuration for the plan executor.
Loggers write to stdout, either as plain text or as JSON lines
(via python-json-logger) for structured log aggregation.

Node-level code logs through ``NodeLoggerAdapter`` so every record carries
the name of the graph node that emitted it.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from pythonjsonlogger import jsonlogger

ROOT_LOGGER_NAME = "plan_executor"

TEXT_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
JSON_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)
        if not log_record.get('timestamp'):
            log_record['timestamp'] = datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ')
        if log_record.get('level'):
            log_record['level'] = log_record['level'].upper()
        else:
            log_record['level'] = record.levelname


class NodeLoggerAdapter(logging.LoggerAdapter):
    """
    Adapter that merges extra fields passed to the log call
    with those defined in the adapter (e.g. node name).
    The standard LoggerAdapter overwrites 'extra', losing data.
    """
    def process(self, msg, kwargs):
        merged_extra = dict(self.extra)
        merged_extra.update(kwargs.get("extra", {}))
        kwargs["extra"] = merged_extra
        return msg, kwargs


def configure_logging(level: str = "INFO", fmt: str = "text", stream=None) -> logging.Logger:
    """
    Configure the package root logger.

    Calling this more than once replaces the handler instead of stacking
    duplicates, so tests and the CLI can reconfigure freely.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: "text" or "json"
        stream: Output stream, stdout by default

    Returns:
        logging.Logger: The configured root logger of the package
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level.upper())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    if fmt == "json":
        handler.setFormatter(CustomJsonFormatter(JSON_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str, node: Optional[str] = None) -> Union[logging.Logger, NodeLoggerAdapter]:
    """
    Get a logger instance for a module or graph node.

    Names are placed under the package root logger so a single
    ``configure_logging`` call controls every module.

    Args:
        name: Logger name, typically a short module name.
              Examples: "services.plan_executor", "graph.nodes"
        node: Optional graph node name. When given, the returned adapter
              attaches it to every record as ``extra["node"]``.

    Returns:
        logging.Logger (or NodeLoggerAdapter when ``node`` is set)

    Example:
        ```python
        from .core.logging import get_logger

        logger = get_logger("services.plan_validator")
        logger.info("Plan validation successful.")
        ```
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    if node:
        return NodeLoggerAdapter(logger, {"node": node})
    return logger


def log_state_transition(logger, step_name: str, state_diff: Dict[str, Any]):
    """Logs how the state changes."""
    logger.info(
        f"State Updated: {step_name}",
        extra={
            "event_type": "state_transition",
            "state_updates": state_diff
        }
    )
