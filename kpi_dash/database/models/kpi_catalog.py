# Path: kpi_dash/database/models/kpi_catalog.py
"""
KPI Catalog Models

Brands, KPI definitions and the cross-KPI structure the engine reads:
formula expressions, cumulative sources and brand assignments.

Architecture:
- KPI definitions are global; brands opt in through BrandKpiMapping
- Formula text and cumulative sources live in their own tables
- Target formulas are stored inline on the KPI (target_formula_text)
"""

import uuid as uuid_module
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database.models.base import Base


def _new_id() -> str:
    return str(uuid_module.uuid4())


class Brand(Base):
    """
    Brand whose KPIs are tracked.

    Example:
        brand = Brand(name='Kuzey Otomotiv')
    """
    __tablename__ = 'brands'

    brand_id = Column(
        String(36),
        primary_key=True,
        default=_new_id,
        comment="Unique brand identifier"
    )
    name = Column(
        String(255),
        nullable=False,
        unique=True,
        comment="Brand display name"
    )
    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        comment="Record creation timestamp"
    )

    kpi_mappings = relationship(
        "BrandKpiMapping",
        back_populates="brand",
        cascade="all, delete-orphan",
        order_by="BrandKpiMapping.sort_order",
    )

    def __repr__(self) -> str:
        return f"<Brand(id={self.brand_id[:8] if self.brand_id else 'NEW'}, name='{self.name}')>"

    def to_dict(self) -> dict:
        return {
            'brand_id': self.brand_id,
            'name': self.name,
        }


class KpiDefinition(Base):
    """
    KPI catalog entry.

    calculation_type decides which of numerator/denominator, cumulative
    sources and formula text are meaningful.

    Example:
        kpi = KpiDefinition(
            name='Servis Geliri',
            unit='TL',
            calculation_type='direct',
        )
    """
    __tablename__ = 'kpis'

    id = Column(
        String(36),
        primary_key=True,
        default=_new_id,
        comment="Unique KPI identifier"
    )
    name = Column(
        String(255),
        nullable=False,
        index=True,
        comment="Display name, also a formula reference key"
    )
    unit = Column(
        String(50),
        default='',
        comment="Free-text unit (TL, %, Adet, Dakika, ...)"
    )
    category = Column(
        String(100),
        comment="Dashboard category"
    )
    calculation_type = Column(
        String(20),
        nullable=False,
        default='direct',
        comment="direct | cumulative | formula | percentage | target"
    )
    only_cumulative = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="No daily entry; monthly override only"
    )
    numerator_kpi_id = Column(
        String(36),
        comment="Percentage numerator KPI"
    )
    denominator_kpi_id = Column(
        String(36),
        comment="Percentage denominator KPI"
    )
    ytd_calc = Column(
        String(20),
        comment="Explicit YTD rollup (toplam / ortalama)"
    )
    target = Column(
        Float,
        comment="Fixed target value"
    )
    target_formula_text = Column(
        Text,
        comment="Target formula over cumulative values"
    )

    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        comment="Record creation timestamp"
    )
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        comment="Record last update timestamp"
    )

    formula = relationship(
        "KpiFormula",
        back_populates="kpi",
        uselist=False,
        cascade="all, delete-orphan",
    )
    cumulative_sources = relationship(
        "KpiCumulativeSource",
        back_populates="kpi",
        cascade="all, delete-orphan",
        order_by="KpiCumulativeSource.position",
        foreign_keys="KpiCumulativeSource.kpi_id",
    )

    def __repr__(self) -> str:
        return (
            f"<KpiDefinition("
            f"id={self.id[:8] if self.id else 'NEW'}, "
            f"name='{self.name}', "
            f"type={self.calculation_type}"
            f")>"
        )

    def to_dict(self) -> dict:
        """
        Convert KPI to a backend-shaped row.

        Returns:
            Dictionary representation
        """
        return {
            'id': self.id,
            'name': self.name,
            'unit': self.unit,
            'category': self.category,
            'calculation_type': self.calculation_type,
            'only_cumulative': self.only_cumulative,
            'numerator_kpi_id': self.numerator_kpi_id,
            'denominator_kpi_id': self.denominator_kpi_id,
            'ytd_calc': self.ytd_calc,
            'target': self.target,
            'target_formula_text': self.target_formula_text,
        }


class KpiFormula(Base):
    """Formula text of a formula-kind KPI."""
    __tablename__ = 'kpi_formulas'

    id = Column(Integer, primary_key=True, autoincrement=True)
    kpi_id = Column(
        String(36),
        ForeignKey('kpis.id', ondelete='CASCADE'),
        nullable=False,
        unique=True,
        comment="Owning KPI"
    )
    expression = Column(
        Text,
        nullable=False,
        comment="Formula with {{ref}} / [ref] tokens"
    )
    display_expression = Column(
        Text,
        comment="Formula as typed, with KPI names"
    )

    kpi = relationship("KpiDefinition", back_populates="formula")

    def __repr__(self) -> str:
        return f"<KpiFormula(kpi_id={self.kpi_id}, expression='{self.expression}')>"

    def to_dict(self) -> dict:
        return {
            'kpi_id': self.kpi_id,
            'expression': self.expression,
            'display_expression': self.display_expression,
        }


class KpiCumulativeSource(Base):
    """One source KPI summed into a cumulative-kind KPI."""
    __tablename__ = 'kpi_cumulative_sources'

    id = Column(Integer, primary_key=True, autoincrement=True)
    kpi_id = Column(
        String(36),
        ForeignKey('kpis.id', ondelete='CASCADE'),
        nullable=False,
        comment="Cumulative KPI"
    )
    source_kpi_id = Column(
        String(36),
        ForeignKey('kpis.id', ondelete='CASCADE'),
        nullable=False,
        comment="KPI whose daily values are summed"
    )
    position = Column(
        Integer,
        nullable=False,
        default=0,
        comment="Order within the source list"
    )

    kpi = relationship(
        "KpiDefinition",
        back_populates="cumulative_sources",
        foreign_keys=[kpi_id],
    )

    __table_args__ = (
        UniqueConstraint('kpi_id', 'source_kpi_id', name='uq_kpi_cumulative_source'),
    )

    def __repr__(self) -> str:
        return f"<KpiCumulativeSource({self.kpi_id} <- {self.source_kpi_id})>"

    def to_dict(self) -> dict:
        return {
            'kpi_id': self.kpi_id,
            'source_kpi_id': self.source_kpi_id,
        }


class BrandKpiMapping(Base):
    """Assignment of a KPI to a brand, with its display order."""
    __tablename__ = 'brand_kpi_mappings'

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
    sort_order = Column(
        Integer,
        nullable=False,
        default=0,
        comment="Display order within the brand"
    )

    brand = relationship("Brand", back_populates="kpi_mappings")
    kpi = relationship("KpiDefinition")

    __table_args__ = (
        UniqueConstraint('brand_id', 'kpi_id', name='uq_brand_kpi'),
        Index('idx_brand_kpi_order', 'brand_id', 'sort_order'),
    )

    def __repr__(self) -> str:
        return f"<BrandKpiMapping(brand={self.brand_id}, kpi={self.kpi_id}, order={self.sort_order})>"


__all__ = [
    'Brand',
    'KpiDefinition',
    'KpiFormula',
    'KpiCumulativeSource',
    'BrandKpiMapping',
]
