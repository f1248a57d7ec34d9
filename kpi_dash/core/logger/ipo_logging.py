# Path: kpi_dash/core/logger/ipo_logging.py
"""
IPO-Aware Logging for kpi_dash (Brand KPI Dashboard)

Input-Process-Output separated logging for KPI computation.

This module sets up logging with separate files for:
- INPUT layer (data source, row normalization, CLI)
- PROCESS layer (expression evaluator, KPI calculator, dashboard service)
- OUTPUT layer (table rendering)
- Full activity (everything combined)

Files rotate by size so a long-running dashboard host never grows
unbounded logs.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from constants import LogCategory


class IPOFilter(logging.Filter):
    """Filter logs by IPO layer prefix."""

    def __init__(self, layer: str):
        """
        Initialize filter for specific IPO layer.

        Args:
            layer: 'input', 'process', or 'output'
        """
        super().__init__()
        self.layer = layer

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter records by logger name prefix."""
        return record.name.startswith(self.layer)


def _rotating_handler(
    path: Path,
    formatter: logging.Formatter,
    max_bytes: int,
    backup_count: int,
) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8',
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_ipo_logging(
    log_dir: Path,
    log_level: str = 'INFO',
    console_output: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Set up IPO-aware logging for kpi_dash.

    Creates separate rotating log files for:
    - input_activity.log (INPUT layer)
    - process_activity.log (PROCESS/calculation layer)
    - output_activity.log (OUTPUT layer)
    - full_activity.log (all activities combined)

    Args:
        log_dir: Directory for log files
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        console_output: Whether to also output to console
        max_bytes: Size at which a log file rotates
        backup_count: Rotated files kept per log

    Example:
        setup_ipo_logging(
            log_dir=Path('/var/log/kpi_dash'),
            log_level='INFO',
            console_output=True
        )
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    # Clear any existing handlers
    root_logger.handlers.clear()

    formatter = logging.Formatter(
        '[%(asctime)s] [%(levelname)s] %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger.addHandler(_rotating_handler(
        log_dir / 'full_activity.log', formatter, max_bytes, backup_count,
    ))

    for layer in LogCategory:
        handler = _rotating_handler(
            log_dir / f'{layer.value}_activity.log',
            formatter, max_bytes, backup_count,
        )
        handler.addFilter(IPOFilter(layer.value))
        root_logger.addHandler(handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, log_level.upper()))
        # Simpler format for console
        console_handler.setFormatter(logging.Formatter(
            '[%(levelname)s] %(name)s - %(message)s'
        ))
        root_logger.addHandler(console_handler)


def get_input_logger(name: str) -> logging.Logger:
    """
    Get logger for INPUT layer.

    Args:
        name: Logger name (e.g., 'row_normalizer', 'sql_data_source')

    Returns:
        Logger configured for INPUT layer
    """
    return logging.getLogger(f'{LogCategory.INPUT.value}.{name}')


def get_process_logger(name: str) -> logging.Logger:
    """
    Get logger for PROCESS layer (computation engine).

    Args:
        name: Logger name (e.g., 'kpi_calculator', 'expression_evaluator')

    Returns:
        Logger configured for PROCESS layer

    Example:
        logger = get_process_logger('kpi_calculator')
        logger.debug("Unresolved reference 'x' in formula of k7")
    """
    return logging.getLogger(f'{LogCategory.PROCESS.value}.{name}')


def get_output_logger(name: str) -> logging.Logger:
    """
    Get logger for OUTPUT layer.

    Args:
        name: Logger name (e.g., 'report_table')

    Returns:
        Logger configured for OUTPUT layer
    """
    return logging.getLogger(f'{LogCategory.OUTPUT.value}.{name}')


__all__ = [
    'IPOFilter',
    'setup_ipo_logging',
    'get_input_logger',
    'get_process_logger',
    'get_output_logger',
]
