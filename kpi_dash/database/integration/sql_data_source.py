# Path: kpi_dash/database/integration/sql_data_source.py
"""
SQL KPI Data Source

Connects the snapshot builder with database storage: answers the engine's
fetch operations from the KPI tables through the database operations.

This creates the bridge between:
- loaders.SnapshotBuilder (expects backend-shaped rows)
- database.operations (KpiOperations, ReportOperations)

Rows are returned in the backend shape (kpi_id, report_date, value, ...)
and pass through the row normalizer like any other source.

Example:
    with session_scope() as session:
        source = SqlKpiDataSource(session)
        service = KpiDashboardService(source)
        overview = service.monthly_overview(brand_id, 2025, 6)
"""

import logging
from typing import Dict, List, Sequence

from sqlalchemy.orm import Session

from constants import MAX_MONTH
from database.operations.kpi_ops import KpiOperations
from database.operations.report_ops import ReportOperations


logger = logging.getLogger(__name__)

Row = Dict[str, object]


class SqlKpiDataSource:
    """
    KPI data source backed by a SQLAlchemy session.

    The session stays owned by the caller (typically session_scope()).
    """

    def __init__(self, session: Session):
        self.session = session

    def list_kpis_for_brand(self, brand_id: str) -> List[Row]:
        """Brand catalog rows in display order."""
        rows = [kpi.to_dict() for kpi in KpiOperations.list_for_brand(self.session, brand_id)]
        logger.debug(f"Fetched {len(rows)} KPIs for brand {brand_id}")
        return rows

    def list_daily_values(
        self, brand_id: str, year: int, month: int, kpi_ids: Sequence[str]
    ) -> List[Row]:
        """Daily rows of (year, month) for the given KPIs."""
        return [
            report.to_dict()
            for report in ReportOperations.list_daily(
                self.session, brand_id, year, month, kpi_ids
            )
        ]

    def list_monthly_values(
        self, brand_id: str, year: int, month: int, kpi_ids: Sequence[str]
    ) -> List[Row]:
        """Monthly rows of months 1..month of year for the given KPIs."""
        months = range(1, min(month, MAX_MONTH) + 1)
        return [
            report.to_dict()
            for report in ReportOperations.list_monthly(
                self.session, brand_id, year, months, kpi_ids
            )
        ]

    def list_monthly_overrides(
        self, brand_id: str, year: int, month: int, kpi_ids: Sequence[str]
    ) -> List[Row]:
        """Monthly rows of exactly (year, month); the override of only-cumulative KPIs."""
        return [
            report.to_dict()
            for report in ReportOperations.list_monthly(
                self.session, brand_id, year, [month], kpi_ids
            )
        ]

    def list_formula_expressions(self, kpi_ids: Sequence[str]) -> List[Row]:
        return [f.to_dict() for f in KpiOperations.list_formulas(self.session, kpi_ids)]

    def list_cumulative_sources(self, kpi_ids: Sequence[str]) -> List[Row]:
        return [
            s.to_dict()
            for s in KpiOperations.list_cumulative_sources(self.session, kpi_ids)
        ]

    def list_targets(
        self, brand_id: str, year: int, month: int, kpi_ids: Sequence[str]
    ) -> List[Row]:
        return [
            t.to_dict()
            for t in ReportOperations.list_targets(self.session, brand_id, year, month, kpi_ids)
        ]


__all__ = ['SqlKpiDataSource']
