# Path: kpi_dash/database/operations/__init__.py
"""
Database Operations for kpi_dash.

Provides CRUD operations and queries for:
- KPI catalog operations (brands, KPIs, formulas, sources, assignments)
- Report operations (daily/monthly values, targets)
"""

from database.operations.kpi_ops import KpiOperations
from database.operations.report_ops import ReportOperations


__all__ = [
    'KpiOperations',
    'ReportOperations',
]
