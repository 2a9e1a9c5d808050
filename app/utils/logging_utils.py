"""
Logging Utilities for the subscription credit service.

This module provides centralized logging configuration for the FastAPI
application and the monthly credit scheduler. It ensures consistent log
formatting with run ID tracing across every subscriber processed by a single
reconciliation run.
"""
import logging
from typing import Optional

RUN_LOGGER_NAME = "credit_reconciliation"


def configure_root_logging(level: str = "INFO") -> None:
    """Idempotent root logging setup for module-level loggers."""
    root = logging.getLogger()
    if root.handlers:
        return
    numeric_level = getattr(logging, str(level or "INFO").upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def setup_logger(
    log_level: int = logging.INFO,
    logger_name: str = RUN_LOGGER_NAME
) -> logging.Logger:
    """
    Configure the reconciliation run logger.

    Args:
        log_level: Logging level constant from logging module.
                  Defaults to logging.INFO (20).
        logger_name: Name for the logger instance.

    Returns:
        Configured Logger instance ready for use with get_run_logger().

    Example:
        >>> logger = setup_logger(log_level=logging.DEBUG)
        >>> run_logger = get_run_logger("run-1a2b3c4d")
        >>> run_logger.info("Monthly credit run started")
        2026-10-01 00:00:01 | INFO | [run-1a2b3c4d] Monthly credit run started
    """
    log_format = logging.Formatter(
        '%(asctime)s | %(levelname)s | [%(request_id)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)

    # Prevent duplicate handlers if logger already configured
    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(log_format)
        logger.addHandler(console_handler)
        # The run format needs request_id; keep these records off the root handler
        logger.propagate = False

    return logger


def get_run_logger(
    run_id: str,
    base_logger: Optional[logging.Logger] = None
) -> logging.LoggerAdapter:
    """
    Create a logger adapter with the reconciliation run ID for tracing.

    The LoggerAdapter injects the run_id into all log messages, so every
    skip, credit and failure of one run can be grepped together.

    Args:
        run_id: Unique identifier for the reconciliation run.
        base_logger: Optional base logger to wrap. If None, uses the
                    "credit_reconciliation" logger.

    Returns:
        LoggerAdapter configured to inject run_id into all log messages.
    """
    if base_logger is None:
        base_logger = logging.getLogger(RUN_LOGGER_NAME)

    return logging.LoggerAdapter(base_logger, {"request_id": run_id})
