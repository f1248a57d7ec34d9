# Path: kpi_dash/database/operations/report_ops.py
"""
Report Operations

Upserts and window queries for daily values, monthly values and targets.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from database.models.kpi_reports import BrandKpiTarget, KpiDailyReport, KpiMonthlyReport


logger = logging.getLogger(__name__)


class ReportOperations:
    """
    Operations for recorded KPI values.

    All methods require a session to be passed in. Writes are upserts
    keyed on (brand, kpi, period).

    Example:
        with session_scope() as session:
            ReportOperations.record_daily_value(
                session, brand_id, kpi_id, date(2025, 3, 12), 14
            )
            rows = ReportOperations.list_daily(session, brand_id, 2025, 3)
    """

    @staticmethod
    def record_daily_value(
        session: Session,
        brand_id: str,
        kpi_id: str,
        report_date: date,
        value: float,
    ) -> KpiDailyReport:
        """
        Create or update the value of a KPI for one day.

        Returns:
            Stored KpiDailyReport
        """
        report = session.query(KpiDailyReport).filter_by(
            brand_id=brand_id,
            kpi_id=kpi_id,
            report_date=report_date,
        ).first()

        if report is None:
            report = KpiDailyReport(
                brand_id=brand_id,
                kpi_id=kpi_id,
                report_date=report_date,
                year=report_date.year,
                month=report_date.month,
                day=report_date.day,
                value=float(value),
            )
            session.add(report)
        else:
            report.value = float(value)
        session.flush()

        logger.debug(f"Daily value {kpi_id} {report_date}: {value}")
        return report

    @staticmethod
    def record_monthly_value(
        session: Session,
        brand_id: str,
        kpi_id: str,
        year: int,
        month: int,
        value: float,
    ) -> KpiMonthlyReport:
        """
        Create or update the value of a KPI for one month.

        For only-cumulative KPIs this is the cumulative override.

        Raises:
            ValueError: If month is out of range
        """
        if not 1 <= month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {month}")

        report = session.query(KpiMonthlyReport).filter_by(
            brand_id=brand_id,
            kpi_id=kpi_id,
            year=year,
            month=month,
        ).first()

        if report is None:
            report = KpiMonthlyReport(
                brand_id=brand_id,
                kpi_id=kpi_id,
                year=year,
                month=month,
                value=float(value),
            )
            session.add(report)
        else:
            report.value = float(value)
        session.flush()

        logger.debug(f"Monthly value {kpi_id} {year}-{month:02d}: {value}")
        return report

    @staticmethod
    def set_target(
        session: Session,
        brand_id: str,
        kpi_id: str,
        year: int,
        month: int,
        target: Optional[float],
    ) -> Optional[BrandKpiTarget]:
        """
        Create, update or (with target=None) remove a monthly target.

        Returns:
            Stored BrandKpiTarget, or None when removed
        """
        row = session.query(BrandKpiTarget).filter_by(
            brand_id=brand_id,
            kpi_id=kpi_id,
            year=year,
            month=month,
        ).first()

        if target is None:
            if row is not None:
                session.delete(row)
                session.flush()
            return None

        if row is None:
            row = BrandKpiTarget(
                brand_id=brand_id,
                kpi_id=kpi_id,
                year=year,
                month=month,
                target=float(target),
            )
            session.add(row)
        else:
            row.target = float(target)
        session.flush()
        return row

    @staticmethod
    def list_daily(
        session: Session,
        brand_id: str,
        year: int,
        month: int,
        kpi_ids: Optional[Iterable[str]] = None,
    ) -> List[KpiDailyReport]:
        """Daily values of one month, optionally limited to some KPIs."""
        query = session.query(KpiDailyReport).filter_by(
            brand_id=brand_id,
            year=year,
            month=month,
        )
        if kpi_ids is not None:
            query = query.filter(KpiDailyReport.kpi_id.in_(list(kpi_ids)))
        return query.order_by(KpiDailyReport.report_date).all()

    @staticmethod
    def list_monthly(
        session: Session,
        brand_id: str,
        year: int,
        months: Optional[Iterable[int]] = None,
        kpi_ids: Optional[Iterable[str]] = None,
    ) -> List[KpiMonthlyReport]:
        """Monthly values of one year, optionally limited to months and KPIs."""
        query = session.query(KpiMonthlyReport).filter_by(
            brand_id=brand_id,
            year=year,
        )
        if months is not None:
            query = query.filter(KpiMonthlyReport.month.in_(list(months)))
        if kpi_ids is not None:
            query = query.filter(KpiMonthlyReport.kpi_id.in_(list(kpi_ids)))
        return query.order_by(KpiMonthlyReport.month).all()

    @staticmethod
    def list_targets(
        session: Session,
        brand_id: str,
        year: int,
        month: int,
        kpi_ids: Optional[Iterable[str]] = None,
    ) -> List[BrandKpiTarget]:
        """Targets of one month, optionally limited to some KPIs."""
        query = session.query(BrandKpiTarget).filter_by(
            brand_id=brand_id,
            year=year,
            month=month,
        )
        if kpi_ids is not None:
            query = query.filter(BrandKpiTarget.kpi_id.in_(list(kpi_ids)))
        return query.all()


__all__ = ['ReportOperations']
