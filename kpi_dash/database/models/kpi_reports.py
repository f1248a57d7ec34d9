# Path: kpi_dash/database/models/kpi_reports.py
"""
KPI Report Models

Recorded values per brand and KPI: daily entries, monthly entries
(which double as cumulative overrides for only-cumulative KPIs) and
monthly targets.
"""

from datetime import datetime

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)

from database.models.base import Base


class KpiDailyReport(Base):
    """
    Value entered for one KPI on one day.

    Example:
        report = KpiDailyReport(
            brand_id=brand.brand_id,
            kpi_id=kpi.id,
            report_date=date(2025, 3, 12),
            year=2025, month=3, day=12,
            value=14.0,
        )
    """
    __tablename__ = 'kpi_daily_reports'

    id = Column(Integer, primary_key=True, autoincrement=True)
    brand_id = Column(
        String(36),
        ForeignKey('brands.brand_id', ondelete='CASCADE'),
        nullable=False,
        comment="Brand"
    )
    kpi_id = Column(
        String(36),
        ForeignKey('kpis.id', ondelete='CASCADE'),
        nullable=False,
        comment="KPI"
    )
    report_date = Column(
        Date,
        nullable=False,
        comment="Day the value belongs to"
    )
    year = Column(Integer, nullable=False, comment="Calendar year")
    month = Column(Integer, nullable=False, comment="Month of year (1-12)")
    day = Column(Integer, nullable=False, comment="Day of month (1-31)")
    value = Column(Float, nullable=False, comment="Recorded value")

    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        comment="Record last update timestamp"
    )

    __table_args__ = (
        UniqueConstraint('brand_id', 'kpi_id', 'report_date', name='uq_daily_report'),
        Index('idx_daily_window', 'brand_id', 'year', 'month'),
    )

    def __repr__(self) -> str:
        return f"<KpiDailyReport(kpi={self.kpi_id}, date={self.report_date}, value={self.value})>"

    def to_dict(self) -> dict:
        return {
            'kpi_id': self.kpi_id,
            'brand_id': self.brand_id,
            'report_date': self.report_date.isoformat() if self.report_date else None,
            'year': self.year,
            'month': self.month,
            'day': self.day,
            'value': self.value,
        }


class KpiMonthlyReport(Base):
    """Value entered for one KPI for a whole month."""
    __tablename__ = 'kpi_monthly_reports'

    id = Column(Integer, primary_key=True, autoincrement=True)
    brand_id = Column(
        String(36),
        ForeignKey('brands.brand_id', ondelete='CASCADE'),
        nullable=False,
        comment="Brand"
    )
    kpi_id = Column(
        String(36),
        ForeignKey('kpis.id', ondelete='CASCADE'),
        nullable=False,
        comment="KPI"
    )
    year = Column(Integer, nullable=False, comment="Calendar year")
    month = Column(Integer, nullable=False, comment="Month of year (1-12)")
    value = Column(Float, nullable=False, comment="Recorded value")

    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        comment="Record last update timestamp"
    )

    __table_args__ = (
        UniqueConstraint('brand_id', 'kpi_id', 'year', 'month', name='uq_monthly_report'),
        Index('idx_monthly_window', 'brand_id', 'year'),
    )

    def __repr__(self) -> str:
        return f"<KpiMonthlyReport(kpi={self.kpi_id}, {self.year}-{self.month:02d}, value={self.value})>"

    def to_dict(self) -> dict:
        return {
            'kpi_id': self.kpi_id,
            'brand_id': self.brand_id,
            'year': self.year,
            'month': self.month,
            'value': self.value,
        }


class BrandKpiTarget(Base):
    """Target of one KPI for one brand and month."""
    __tablename__ = 'brand_kpi_targets'

    id = Column(Integer, primary_key=True, autoincrement=True)
    brand_id = Column(
        String(36),
        ForeignKey('brands.brand_id', ondelete='CASCADE'),
        nullable=False,
        comment="Brand"
    )
    kpi_id = Column(
        String(36),
        ForeignKey('kpis.id', ondelete='CASCADE'),
        nullable=False,
        comment="KPI"
    )
    year = Column(Integer, nullable=False, comment="Calendar year")
    month = Column(Integer, nullable=False, comment="Month of year (1-12)")
    target = Column(Float, nullable=False, comment="Target value")

    __table_args__ = (
        UniqueConstraint('brand_id', 'kpi_id', 'year', 'month', name='uq_brand_kpi_target'),
    )

    def __repr__(self) -> str:
        return f"<BrandKpiTarget(kpi={self.kpi_id}, {self.year}-{self.month:02d}, target={self.target})>"

    def to_dict(self) -> dict:
        return {
            'kpi_id': self.kpi_id,
            'brand_id': self.brand_id,
            'year': self.year,
            'month': self.month,
            'target': self.target,
        }


__all__ = ['KpiDailyReport', 'KpiMonthlyReport', 'BrandKpiTarget']
