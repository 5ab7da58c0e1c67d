"""Logging setup shared by the API and the worker scripts."""

import logging
import logging.config
import sys

from typing import Any, Dict, Optional

_logging_configured = False


def _build_logging_config(level: str) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "console",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {"level": level, "handlers": ["console"]},
    }


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging once per process.

    Args:
        level: Log level name. Defaults to ``FORMFIX_LOG_LEVEL``.
    """
    global _logging_configured

    if _logging_configured:
        return

    if level is None:
        from formfix.config import get_settings

        level = get_settings().log_level
    level = level.upper()

    try:
        logging.config.dictConfig(_build_logging_config(level))
    except (ValueError, TypeError) as e:
        sys.stderr.write(f"WARNING: Failed to configure logging: {e}\n")
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    _logging_configured = True
