# Path: kpi_dash/database/operations/kpi_ops.py
"""
KPI Catalog Operations

CRUD operations for brands, KPI definitions, formulas, cumulative
sources and brand assignments.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from constants import CalculationKind
from database.models.kpi_catalog import (
    Brand,
    BrandKpiMapping,
    KpiCumulativeSource,
    KpiDefinition,
    KpiFormula,
)


logger = logging.getLogger(__name__)


class KpiOperations:
    """
    Operations for the KPI catalog.

    Provides static methods for common catalog operations.
    All methods require a session to be passed in.

    Example:
        with session_scope() as session:
            brand = KpiOperations.create_brand(session, 'Kuzey Otomotiv')
            sales = KpiOperations.create_kpi(session, 'Satış Adedi', unit='Adet')
            KpiOperations.assign_to_brand(session, brand.brand_id, sales.id)
    """

    @staticmethod
    def create_brand(session: Session, name: str) -> Brand:
        """
        Create a new brand.

        Args:
            session: Database session
            name: Brand name

        Returns:
            Created Brand instance
        """
        brand = Brand(name=name.strip())
        session.add(brand)
        session.flush()

        logger.info(f"Created brand: {brand.name}")
        return brand

    @staticmethod
    def find_brand(session: Session, key: str) -> Optional[Brand]:
        """
        Find brand by id, falling back to exact name.

        Args:
            session: Database session
            key: Brand id or name

        Returns:
            Brand or None
        """
        brand = session.query(Brand).filter_by(brand_id=key).first()
        if brand is None:
            brand = session.query(Brand).filter_by(name=key.strip()).first()
        return brand

    @staticmethod
    def list_brands(session: Session) -> List[Brand]:
        """All brands ordered by name."""
        return session.query(Brand).order_by(Brand.name).all()

    @staticmethod
    def create_kpi(
        session: Session,
        name: str,
        unit: str = '',
        calculation_type: str = CalculationKind.DIRECT.value,
        category: Optional[str] = None,
        only_cumulative: bool = False,
        numerator_kpi_id: Optional[str] = None,
        denominator_kpi_id: Optional[str] = None,
        ytd_calc: Optional[str] = None,
        target: Optional[float] = None,
        target_formula_text: Optional[str] = None,
        kpi_id: Optional[str] = None,
    ) -> KpiDefinition:
        """
        Create a new KPI definition.

        Args:
            session: Database session
            name: Display name
            unit: Unit label
            calculation_type: direct | cumulative | formula | percentage | target
            category: Dashboard category
            only_cumulative: Monthly override only
            numerator_kpi_id: Percentage numerator
            denominator_kpi_id: Percentage denominator
            ytd_calc: Explicit YTD rollup
            target: Fixed target
            target_formula_text: Target formula (target kind)
            kpi_id: Explicit id (generated when omitted)

        Returns:
            Created KpiDefinition instance
        """
        kpi = KpiDefinition(
            name=name.strip(),
            unit=unit,
            calculation_type=CalculationKind.from_value(calculation_type).value,
            category=category,
            only_cumulative=only_cumulative,
            numerator_kpi_id=numerator_kpi_id,
            denominator_kpi_id=denominator_kpi_id,
            ytd_calc=ytd_calc,
            target=target,
            target_formula_text=target_formula_text,
        )
        if kpi_id:
            kpi.id = kpi_id
        session.add(kpi)
        session.flush()

        logger.info(f"Created KPI: {kpi.name} ({kpi.calculation_type})")
        return kpi

    @staticmethod
    def find_by_id(session: Session, kpi_id: str) -> Optional[KpiDefinition]:
        """Find KPI by id."""
        return session.query(KpiDefinition).filter_by(id=kpi_id).first()

    @staticmethod
    def set_formula(
        session: Session,
        kpi_id: str,
        expression: str,
        display_expression: Optional[str] = None,
    ) -> Optional[KpiFormula]:
        """
        Create, replace or remove the formula of a KPI.

        An empty expression removes the stored formula.

        Returns:
            Stored KpiFormula, or None when removed
        """
        formula = session.query(KpiFormula).filter_by(kpi_id=kpi_id).first()
        text = (expression or '').strip()

        if not text:
            if formula is not None:
                session.delete(formula)
                session.flush()
                logger.info(f"Removed formula of KPI {kpi_id}")
            return None

        if formula is None:
            formula = KpiFormula(kpi_id=kpi_id, expression=text)
            session.add(formula)
        else:
            formula.expression = text
        formula.display_expression = display_expression
        session.flush()

        logger.info(f"Set formula of KPI {kpi_id}: {text}")
        return formula

    @staticmethod
    def set_cumulative_sources(
        session: Session,
        kpi_id: str,
        source_ids: Sequence[str],
    ) -> List[KpiCumulativeSource]:
        """
        Replace the cumulative sources of a KPI.

        Ids are trimmed; blanks, duplicates and self references are dropped.

        Returns:
            Stored sources in order
        """
        session.query(KpiCumulativeSource).filter_by(kpi_id=kpi_id).delete()

        cleaned: List[str] = []
        for source_id in source_ids:
            text = str(source_id or '').strip()
            if not text or text == kpi_id or text in cleaned:
                continue
            cleaned.append(text)

        sources = [
            KpiCumulativeSource(kpi_id=kpi_id, source_kpi_id=source_id, position=position)
            for position, source_id in enumerate(cleaned)
        ]
        session.add_all(sources)
        session.flush()

        logger.info(f"Set {len(sources)} cumulative sources for KPI {kpi_id}")
        return sources

    @staticmethod
    def assign_to_brand(
        session: Session,
        brand_id: str,
        kpi_id: str,
        sort_order: Optional[int] = None,
    ) -> BrandKpiMapping:
        """
        Assign a KPI to a brand (idempotent).

        Args:
            session: Database session
            brand_id: Brand id
            kpi_id: KPI id
            sort_order: Display order; appended last when omitted

        Returns:
            Existing or created BrandKpiMapping
        """
        mapping = session.query(BrandKpiMapping).filter_by(
            brand_id=brand_id,
            kpi_id=kpi_id,
        ).first()

        if mapping is None:
            if sort_order is None:
                sort_order = session.query(BrandKpiMapping).filter_by(
                    brand_id=brand_id
                ).count()
            mapping = BrandKpiMapping(brand_id=brand_id, kpi_id=kpi_id, sort_order=sort_order)
            session.add(mapping)
        elif sort_order is not None:
            mapping.sort_order = sort_order
        session.flush()
        return mapping

    @staticmethod
    def list_for_brand(session: Session, brand_id: str) -> List[KpiDefinition]:
        """
        KPIs assigned to a brand, in display order.
        """
        return session.query(KpiDefinition).join(
            BrandKpiMapping, BrandKpiMapping.kpi_id == KpiDefinition.id
        ).filter(
            BrandKpiMapping.brand_id == brand_id
        ).order_by(
            BrandKpiMapping.sort_order, KpiDefinition.name
        ).all()

    @staticmethod
    def list_formulas(session: Session, kpi_ids: Iterable[str]) -> List[KpiFormula]:
        """Formulas of the given KPIs."""
        ids = list(kpi_ids)
        if not ids:
            return []
        return session.query(KpiFormula).filter(KpiFormula.kpi_id.in_(ids)).all()

    @staticmethod
    def list_cumulative_sources(
        session: Session, kpi_ids: Iterable[str]
    ) -> List[KpiCumulativeSource]:
        """Cumulative sources of the given KPIs, in stored order."""
        ids = list(kpi_ids)
        if not ids:
            return []
        return session.query(KpiCumulativeSource).filter(
            KpiCumulativeSource.kpi_id.in_(ids)
        ).order_by(
            KpiCumulativeSource.kpi_id, KpiCumulativeSource.position
        ).all()


__all__ = ['KpiOperations']
