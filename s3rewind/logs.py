# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Per-run structlog loggers.

Verbosity belongs to a run's configuration rather than to process-wide
state, so nothing here calls structlog.configure(). The logger returned by
make_logger() is passed explicitly to the backend, engine and applier.
"""

import logging
import sys
from typing import Any, TextIO

import structlog

from s3rewind.config import RestoreConfig


def log_level_for(config: RestoreConfig) -> int:
    return logging.DEBUG if config.debug else logging.WARNING


def make_logger(
    config: RestoreConfig,
    stream: TextIO | None = None,
    **initial_values: Any,
) -> Any:
    """
    Build a bound logger filtered at the config's level.

    Args:
        config: Run configuration (debug=True enables DEBUG, else WARNING)
        stream: Where to write log lines (default: stderr)
        **initial_values: Context bound to every event (e.g. operation_id)
    """
    return structlog.wrap_logger(
        structlog.PrintLogger(file=stream or sys.stderr),
        wrapper_class=structlog.make_filtering_bound_logger(log_level_for(config)),
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        **initial_values,
    )
