# Path: kpi_dash/core/logger/__init__.py
"""
kpi_dash Logger Package

IPO-aware logging for the Brand KPI Dashboard.

Provides separate log streams for:
- INPUT layer (data source, normalization)
- PROCESS layer (KPI computation)
- OUTPUT layer (rendering)
"""

from .ipo_logging import (
    IPOFilter,
    setup_ipo_logging,
    get_input_logger,
    get_process_logger,
    get_output_logger,
)

__all__ = [
    'IPOFilter',
    'setup_ipo_logging',
    'get_input_logger',
    'get_process_logger',
    'get_output_logger',
]
