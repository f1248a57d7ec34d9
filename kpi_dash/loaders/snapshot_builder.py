# Path: kpi_dash/loaders/snapshot_builder.py
"""
Snapshot Builder

Fetches everything one computation pass needs from a KPI data source,
normalizes the rows and freezes them into a KpiSnapshot.

Fetch plan per window:
1. Brand catalog
2. Formula expressions (formula KPIs) and cumulative sources (cumulative KPIs)
3. Period values for every KPI, plus percentage numerators/denominators
   kept outside the brand catalog
4. Cumulative overrides (only-cumulative KPIs)
5. Targets
"""

from dataclasses import replace
from typing import Any, Dict, List, Mapping, Protocol, Sequence

from constants import Cadence, CalculationKind
from core.logger.ipo_logging import get_input_logger

from kpi_engine.kpi_models import CumulativeOverride, Kpi, KpiSnapshot, PeriodValue

from .row_normalizer import (
    normalize_cumulative_source_rows,
    normalize_daily_rows,
    normalize_formula_rows,
    normalize_kpi_rows,
    normalize_monthly_rows,
    normalize_override_rows,
    normalize_target_rows,
)


Row = Mapping[str, Any]


class KpiDataSource(Protocol):
    """
    Fetch operations the engine consumes. Implementations return raw
    backend rows; the builder normalizes them.
    """

    def list_kpis_for_brand(self, brand_id: str) -> Sequence[Row]: ...

    def list_daily_values(
        self, brand_id: str, year: int, month: int, kpi_ids: Sequence[str]
    ) -> Sequence[Row]: ...

    def list_monthly_values(
        self, brand_id: str, year: int, month: int, kpi_ids: Sequence[str]
    ) -> Sequence[Row]: ...

    def list_monthly_overrides(
        self, brand_id: str, year: int, month: int, kpi_ids: Sequence[str]
    ) -> Sequence[Row]: ...

    def list_formula_expressions(self, kpi_ids: Sequence[str]) -> Sequence[Row]: ...

    def list_cumulative_sources(self, kpi_ids: Sequence[str]) -> Sequence[Row]: ...

    def list_targets(
        self, brand_id: str, year: int, month: int, kpi_ids: Sequence[str]
    ) -> Sequence[Row]: ...


class SnapshotBuilder:
    """
    Builds daily and monthly snapshots from a data source.

    Example:
        builder = SnapshotBuilder(SqlKpiDataSource(session))
        snapshot = builder.build_daily('brand-1', 2025, 3)
        results = compute_kpi_values(snapshot, period=12)
    """

    def __init__(self, source: KpiDataSource):
        self.source = source
        self.logger = get_input_logger('snapshot_builder')

    def load_catalog(self, brand_id: str) -> List[Kpi]:
        """
        Brand catalog with formula expressions and cumulative sources attached.
        """
        kpis = normalize_kpi_rows(self.source.list_kpis_for_brand(brand_id))

        formula_ids = [k.id for k in kpis if k.calculation_kind is CalculationKind.FORMULA]
        cumulative_ids = [k.id for k in kpis if k.calculation_kind is CalculationKind.CUMULATIVE]

        formulas: Dict[str, str] = {}
        if formula_ids:
            formulas = normalize_formula_rows(self.source.list_formula_expressions(formula_ids))

        sources: Dict[str, tuple] = {}
        if cumulative_ids:
            sources = normalize_cumulative_source_rows(
                self.source.list_cumulative_sources(cumulative_ids)
            )

        catalog = []
        for kpi in kpis:
            if kpi.calculation_kind is CalculationKind.FORMULA:
                kpi = replace(kpi, formula_expression=formulas.get(kpi.id))
            elif kpi.calculation_kind is CalculationKind.CUMULATIVE:
                kpi = replace(kpi, cumulative_source_ids=sources.get(kpi.id, ()))
            catalog.append(kpi)

        self.logger.info(
            f"Loaded {len(catalog)} KPIs for brand {brand_id} "
            f"({len(formulas)} formulas, {len(sources)} cumulative)"
        )
        return catalog

    def build_daily(self, brand_id: str, year: int, month: int) -> KpiSnapshot:
        """Snapshot whose periods are the days of (year, month)."""
        catalog = self.load_catalog(brand_id)
        value_ids = self._value_ids(catalog)

        values: List[PeriodValue] = []
        if value_ids:
            values = normalize_daily_rows(
                self.source.list_daily_values(brand_id, year, month, value_ids)
            )

        return self._freeze(brand_id, year, month, Cadence.DAILY, catalog, values)

    def build_monthly(self, brand_id: str, year: int, month: int) -> KpiSnapshot:
        """Snapshot whose periods are months 1..month of year."""
        catalog = self.load_catalog(brand_id)
        value_ids = self._value_ids(catalog)

        values: List[PeriodValue] = []
        if value_ids:
            rows = self.source.list_monthly_values(brand_id, year, month, value_ids)
            values = [v for v in normalize_monthly_rows(rows) if v.period <= month]

        return self._freeze(brand_id, year, month, Cadence.MONTHLY, catalog, values)

    def _freeze(
        self,
        brand_id: str,
        year: int,
        month: int,
        cadence: Cadence,
        catalog: List[Kpi],
        values: List[PeriodValue],
    ) -> KpiSnapshot:
        overrides: List[CumulativeOverride] = []
        override_ids = [k.id for k in catalog if k.only_cumulative]
        if override_ids:
            overrides = normalize_override_rows(
                self.source.list_monthly_overrides(brand_id, year, month, override_ids),
                month,
            )

        targets: Dict[str, float] = {}
        kpi_ids = [k.id for k in catalog]
        if kpi_ids:
            targets = normalize_target_rows(
                self.source.list_targets(brand_id, year, month, kpi_ids)
            )

        self.logger.info(
            f"{cadence.value} snapshot {brand_id} {year}-{month:02d}: "
            f"{len(values)} values, {len(overrides)} overrides, {len(targets)} targets"
        )
        return KpiSnapshot.from_records(
            brand_id, year, month, cadence, catalog,
            period_values=values,
            overrides=overrides,
            targets=targets,
        )

    @staticmethod
    def _value_ids(catalog: List[Kpi]) -> List[str]:
        """Catalog ids plus percentage sides that live outside the catalog."""
        ids = [k.id for k in catalog]
        seen = set(ids)
        for kpi in catalog:
            if kpi.calculation_kind is not CalculationKind.PERCENTAGE:
                continue
            for side_id in (kpi.numerator_kpi_id, kpi.denominator_kpi_id):
                if side_id and side_id not in seen:
                    seen.add(side_id)
                    ids.append(side_id)
        return ids


__all__ = ['KpiDataSource', 'SnapshotBuilder']
