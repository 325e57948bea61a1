"""
Structured logging configuration.

JSON-formatted logs with a trace_id field (the entity id) for correlating
everything one interaction logs.

Environment Variables:
    PERSONA_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR) - default: INFO
    PERSONA_LOG_FORMAT: Log format (json, text) - default: json

Usage:
    from persona.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__, trace_id="7")
    logger.info("Interaction accepted")
"""

import logging
import os
import sys
from typing import Optional

from pythonjsonlogger.json import JsonFormatter


class TraceIDFilter(logging.Filter):
    """
    Ensures every record has a trace_id, even if not set via LoggerAdapter.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "trace_id"):
            record.trace_id = "N/A"  # type: ignore
        return True


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Explicit arguments win over PERSONA_LOG_LEVEL / PERSONA_LOG_FORMAT.
    """
    log_level = (level or os.getenv("PERSONA_LOG_LEVEL", "INFO")).upper()
    log_format = (fmt or os.getenv("PERSONA_LOG_FORMAT", "json")).lower()

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    resolved = level_map.get(log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # stderr keeps CLI --json output on stdout clean
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved)
    handler.addFilter(TraceIDFilter())

    if log_format == "json":
        formatter = JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s %(trace_id)s",
            rename_fields={
                "asctime": "timestamp",
                "name": "logger",
                "levelname": "level",
            },
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s [trace_id=%(trace_id)s]",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def get_logger(name: str, trace_id: Optional[str] = None) -> logging.LoggerAdapter:
    """
    Get a logger with trace_id in its extra fields.

    Example:
        logger = get_logger(__name__, trace_id="7")
        logger.info("Interaction accepted")
        # {"timestamp": "...", "level": "INFO", "message": "Interaction accepted", "trace_id": "7"}
    """
    logger = logging.getLogger(name)
    return logging.LoggerAdapter(logger, {"trace_id": trace_id or "N/A"})
