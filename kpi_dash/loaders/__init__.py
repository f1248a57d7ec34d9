# Path: kpi_dash/loaders/__init__.py
"""
kpi_dash Loaders Package

Data-fetch boundary between the value store and the computation engine.

Components:
    - row_normalizer: backend row aliases -> canonical Kpi / PeriodValue /
      CumulativeOverride records
    - snapshot_builder: fetch plan per window, frozen KpiSnapshot

Example:
    from loaders import SnapshotBuilder

    builder = SnapshotBuilder(source)
    snapshot = builder.build_monthly('brand-1', 2025, 6)
"""

from .row_normalizer import (
    pick,
    parse_locale_number,
    parse_bool,
    parse_ytd_calc,
    normalize_kpi_row,
    normalize_kpi_rows,
    normalize_formula_rows,
    normalize_cumulative_source_rows,
    normalize_daily_rows,
    normalize_monthly_rows,
    normalize_override_rows,
    normalize_target_rows,
)
from .snapshot_builder import KpiDataSource, SnapshotBuilder


__all__ = [
    # Normalization
    'pick',
    'parse_locale_number',
    'parse_bool',
    'parse_ytd_calc',
    'normalize_kpi_row',
    'normalize_kpi_rows',
    'normalize_formula_rows',
    'normalize_cumulative_source_rows',
    'normalize_daily_rows',
    'normalize_monthly_rows',
    'normalize_override_rows',
    'normalize_target_rows',

    # Snapshots
    'KpiDataSource',
    'SnapshotBuilder',
]
