"""Structured logging for pkgaudit: structlog rendered through stdlib logging.

Engine modules log dotted events (``graph.built``, ``hasher.file_unreadable``)
via ``structlog.get_logger("pkgaudit.engine")``; stdlib loggers such as
:mod:`pkgaudit.progress` go through the same formatter.
"""

from __future__ import annotations

import logging
import logging.config
import os

import structlog

LOG_LEVEL_ENV = "PKGAUDIT_LOG_LEVEL"
LOG_FORMAT_ENV = "PKGAUDIT_LOG_FORMAT"


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=False)


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    *level* and *fmt* override ``PKGAUDIT_LOG_LEVEL`` (default WARNING) and
    ``PKGAUDIT_LOG_FORMAT`` (``console`` or ``json``). Output goes to stderr
    so command output on stdout stays machine-readable.
    """
    log_level = (level or os.environ.get(LOG_LEVEL_ENV) or "WARNING").upper()
    log_format = (fmt or os.environ.get(LOG_FORMAT_ENV) or "console").lower()
    pre_chain = _pre_chain()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "pkgaudit": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": pre_chain,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(log_format),
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "pkgaudit",
                },
            },
            "root": {"handlers": ["stderr"], "level": log_level},
            "loggers": {"pkgaudit": {"level": log_level}},
        }
    )
