# Path: kpi_dash/database/__init__.py
"""
kpi_dash Database Module

Value store for the Brand KPI Dashboard: KPI catalog, recorded values and
targets, and the data source the computation engine reads from.

This module provides:
- Database models for brands, KPIs, formulas, sources, reports and targets
- CRUD operations for the catalog and for recorded values
- SqlKpiDataSource, the engine-facing fetch interface

Example:
    from database import initialize_database, session_scope
    from database import KpiOperations, ReportOperations, SqlKpiDataSource

    initialize_database('sqlite:///kpi_dash.db')

    with session_scope() as session:
        brand = KpiOperations.create_brand(session, 'Kuzey Otomotiv')
        kpi = KpiOperations.create_kpi(session, 'Satış Adedi', unit='Adet')
        KpiOperations.assign_to_brand(session, brand.brand_id, kpi.id)
        ReportOperations.record_daily_value(
            session, brand.brand_id, kpi.id, date(2025, 3, 1), 5
        )
"""

from typing import Optional

from database.models.base import (
    Base,
    sqlite_url,
    initialize_engine,
    get_engine,
    get_session,
    session_scope,
    create_all_tables,
    reset_engine,
    get_database_type,
    get_connection_info,
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

from database.operations.kpi_ops import KpiOperations
from database.operations.report_ops import ReportOperations

from database.integration.sql_data_source import SqlKpiDataSource


def initialize_database(db_url: Optional[str] = None) -> None:
    """
    Initialize the kpi_dash database.

    Args:
        db_url: Optional database URL (':memory:', 'sqlite:///...',
                'postgresql://...'). If None, uses configuration.

    Example:
        # Configured database
        initialize_database()

        # Local file
        initialize_database(sqlite_url('/path/to/kpi_dash.db'))
    """
    initialize_engine(db_url)
    create_all_tables()


__all__ = [
    # Initialization
    'initialize_database',
    'sqlite_url',
    'initialize_engine',
    'get_engine',
    'get_session',
    'session_scope',
    'create_all_tables',
    'reset_engine',
    'get_database_type',
    'get_connection_info',
    # Models
    'Base',
    'Brand',
    'KpiDefinition',
    'KpiFormula',
    'KpiCumulativeSource',
    'BrandKpiMapping',
    'KpiDailyReport',
    'KpiMonthlyReport',
    'BrandKpiTarget',
    # Operations
    'KpiOperations',
    'ReportOperations',
    # Integration
    'SqlKpiDataSource',
]
