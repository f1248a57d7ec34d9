# Path: kpi_dash/database/models/__init__.py
"""
Database Models for kpi_dash.

Provides SQLAlchemy models for storing:
- Brands and the KPI catalog (definitions, formulas, cumulative sources)
- Brand KPI assignments
- Daily and monthly report values
- Monthly targets
"""

from database.models.base import (
    Base,
    sqlite_url,
    initialize_engine,
    get_engine,
    get_session,
    session_scope,
    create_all_tables,
)
from database.models.kpi_catalog import (
    Brand,
    KpiDefinition,
    KpiFormula,
    KpiCumulativeSource,
    BrandKpiMapping,
)
from database.models.kpi_reports import (
    KpiDailyReport,
    KpiMonthlyReport,
    BrandKpiTarget,
)


__all__ = [
    'Base',
    'sqlite_url',
    'initialize_engine',
    'get_engine',
    'get_session',
    'session_scope',
    'create_all_tables',
    'Brand',
    'KpiDefinition',
    'KpiFormula',
    'KpiCumulativeSource',
    'BrandKpiMapping',
    'KpiDailyReport',
    'KpiMonthlyReport',
    'BrandKpiTarget',
]
