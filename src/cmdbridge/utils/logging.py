"""Logging setup utilities for cmdbridge.

Configures logging for the entire application based on the logging
configuration settings.
"""

from __future__ import annotations

import logging
import sys

from cmdbridge.config.settings import LoggingConfig


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure logging for the cmdbridge application.

    Sets up the ``cmdbridge`` logger with the specified level, format,
    and optional file handler. The ``websockets`` library logger gets
    the same handlers at WARNING so handshake failures stay visible
    without per-frame noise.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
    """
    if config is None:
        config = LoggingConfig()

    root_logger = logging.getLogger("cmdbridge")
    root_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    formatter = logging.Formatter(config.format)

    handlers: list[logging.Handler] = []

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    # File handler (optional)
    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    ws_logger = logging.getLogger("websockets")
    ws_logger.setLevel(logging.WARNING)

    for handler in handlers:
        root_logger.addHandler(handler)
        ws_logger.addHandler(handler)

    root_logger.info("Logging initialized at %s level", config.level)
