"""
Centralized logging configuration.

Logs go to stderr: stdout carries the MCP stdio transport.
"""

import logging
import sys

from .config import AppConfig

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(config: AppConfig | None = None) -> None:
    """
    Configure the root logger once for the server process.

    Args:
        config: AppConfig instance, defaults used if None
    """
    config = config or AppConfig()
    logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO),
                        format=_FORMAT,
                        handlers=[logging.StreamHandler(sys.stderr)])


def get_logger(name: str) -> logging.Logger:
    """Get a module logger (usually ``get_logger(__name__)``)."""
    return logging.getLogger(name)
