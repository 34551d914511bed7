"""
utils.py — Shared Utility Functions and Logging Setup
======================================================

Common helpers used across the pipeline modules.
"""

import os
import logging

from . import config
from .errors import MissingFeatureError


def setup_logging(level: str = None) -> None:
    """
    Configure structured logging for the pipeline.

    Sets up a console handler with timestamp, logger name, level,
    and message. All ml.* loggers inherit this configuration.

    Args:
        level: Log level string (DEBUG/INFO/WARNING/ERROR/CRITICAL).
               Defaults to config.LOG_LEVEL.
    """
    level = level or config.LOG_LEVEL
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(name)s] %(levelname)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    ml_logger = logging.getLogger("ml")
    ml_logger.setLevel(numeric_level)

    # Avoid duplicate handlers on repeated calls
    if not ml_logger.handlers:
        ml_logger.addHandler(handler)


def ensure_output_dirs(output_dir: str = None) -> str:
    """
    Ensure the output directory and its plots/ subdirectory exist.

    Args:
        output_dir: Target directory.  Defaults to config.OUTPUT_DIR.

    Returns:
        Absolute path to the output directory.
    """
    output_dir = os.path.abspath(output_dir or config.OUTPUT_DIR)
    os.makedirs(os.path.join(output_dir, "plots"), exist_ok=True)
    return output_dir


def require_columns(table, columns, context: str = "table") -> None:
    """
    Raise MissingFeatureError if any of `columns` is absent from `table`.

    Args:
        table: DataFrame to check.
        columns: Iterable of required column names.
        context: Name used in the error message.
    """
    missing = [c for c in columns if c not in table.columns]
    if missing:
        raise MissingFeatureError(missing, context=context)
