# Path: kpi_dash/kpi_engine/kpi_models.py
"""
KPI Models

Data classes for the KPI computation engine.
Snapshots are built once at the data-fetch boundary and only read by the
engine; computed results are consumed by dashboards and reports.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from constants import CalculationKind, Cadence, YtdCalc, MAX_DAY, MAX_MONTH


def normalize_text(value) -> str:
    """Trim and lower-case a label for case-insensitive comparison."""
    return str(value or '').strip().lower()


@dataclass(frozen=True)
class Kpi:
    """
    Catalog entry for a brand KPI.

    Attributes:
        id: Opaque unique identifier
        name: Display name, also a fallback formula reference key
        unit: Free-text unit label ('TL', '%', 'Adet', 'Dakika', ...)
        calculation_kind: How the value is derived
        only_cumulative: No per-period entry; only a monthly override exists
        numerator_kpi_id: Percentage numerator (percentage kind only)
        denominator_kpi_id: Percentage denominator (percentage kind only)
        cumulative_source_ids: KPIs summed per period (cumulative kind only)
        formula_expression: Formula text with {{ref}} / [ref] tokens
            (formula kind, and the target formula of target kind)
        ytd_calc: Explicit YTD rollup override
        target_value: Fixed numeric target
        category: Dashboard category label
    """
    id: str
    name: str
    unit: str = ''
    calculation_kind: CalculationKind = CalculationKind.DIRECT
    only_cumulative: bool = False
    numerator_kpi_id: Optional[str] = None
    denominator_kpi_id: Optional[str] = None
    cumulative_source_ids: Tuple[str, ...] = ()
    formula_expression: Optional[str] = None
    ytd_calc: Optional[YtdCalc] = None
    target_value: Optional[float] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class PeriodValue:
    """A recorded number for (kpi_id, period)."""
    kpi_id: str
    period: int
    value: float


@dataclass(frozen=True)
class CumulativeOverride:
    """A manually entered monthly figure for an only-cumulative KPI."""
    kpi_id: str
    month: int
    value: float


@dataclass(frozen=True)
class EvaluationFailure:
    """
    Failed arithmetic evaluation.

    Returned instead of raising; always falsy.
    """
    reason: str

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class PeriodContribution:
    """
    One period's share of a rollup.

    Attributes:
        value: Numeric value, None when nothing could be computed
        contributed: Whether any recorded input backed the value
    """
    value: Optional[float]
    contributed: bool


@dataclass(frozen=True)
class KpiSnapshot:
    """
    Read-only inputs for one computation pass.

    Attributes:
        brand_id: Brand the catalog belongs to
        year: Calendar year
        month: Month of the daily grid, or last month of the YTD window
        cadence: DAILY (periods are days) or MONTHLY (periods are months)
        kpis: Full brand catalog
        values: kpi_id -> period -> recorded value
        overrides: kpi_id -> month -> cumulative override
        targets: kpi_id -> target for (brand, year, month)
    """
    brand_id: str
    year: int
    month: int
    cadence: Cadence
    kpis: Tuple[Kpi, ...] = ()
    values: Mapping[str, Mapping[int, float]] = field(default_factory=dict)
    overrides: Mapping[str, Mapping[int, float]] = field(default_factory=dict)
    targets: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        index: Dict[str, Kpi] = {}
        for kpi in self.kpis:
            index.setdefault(kpi.id, kpi)
        object.__setattr__(self, '_index', index)

    @classmethod
    def from_records(
        cls,
        brand_id: str,
        year: int,
        month: int,
        cadence: Cadence,
        kpis: Sequence[Kpi],
        period_values: Iterable[PeriodValue] = (),
        overrides: Iterable[CumulativeOverride] = (),
        targets: Optional[Mapping[str, float]] = None,
    ) -> 'KpiSnapshot':
        """
        Fold flat records into a snapshot.

        Later records for the same (kpi_id, period) replace earlier ones.

        Example:
            snapshot = KpiSnapshot.from_records(
                'b1', 2025, 3, Cadence.DAILY, kpis,
                period_values=[PeriodValue('k1', 1, 5.0)],
            )
        """
        values: Dict[str, Dict[int, float]] = {}
        for record in period_values:
            values.setdefault(record.kpi_id, {})[record.period] = record.value

        override_map: Dict[str, Dict[int, float]] = {}
        for record in overrides:
            override_map.setdefault(record.kpi_id, {})[record.month] = record.value

        return cls(
            brand_id=brand_id,
            year=year,
            month=month,
            cadence=cadence,
            kpis=tuple(kpis),
            values=values,
            overrides=override_map,
            targets=dict(targets or {}),
        )

    @property
    def period_limit(self) -> int:
        """Highest period index for this cadence."""
        return MAX_DAY if self.cadence is Cadence.DAILY else MAX_MONTH

    def kpi_by_id(self, kpi_id: str) -> Optional[Kpi]:
        return self._index.get(kpi_id)

    def stored_value(self, kpi_id: str, period: int) -> Optional[float]:
        return self.values.get(kpi_id, {}).get(period)

    def override_value(self, kpi_id: str, month: int) -> Optional[float]:
        return self.overrides.get(kpi_id, {}).get(month)

    def target_for(self, kpi_id: str) -> Optional[float]:
        return self.targets.get(kpi_id)


@dataclass
class ComputedKpi:
    """
    Derived numbers for one KPI in one dashboard window.

    Attributes:
        kpi_id: KPI identifier
        name: Display name
        unit: Unit label
        calculation_kind: How the value was derived
        period_value: Day/month figure (None = not shown)
        cumulative_value: Month-to-date or year-to-date figure
        target_value: Target for the window, if any
        attainment_pct: Rounded percentage of target reached
        ytd_calc: Rollup policy applied, None for ratio/target kinds
        only_cumulative: Period figure is closed for data entry
        is_percent: Unit is a percentage
        is_tl: Unit is Turkish lira
        warnings: Recovered problems (unresolved references, cycles, ...)
        error: Set only when computing this KPI raised unexpectedly
    """
    kpi_id: str
    name: str
    unit: str = ''
    calculation_kind: CalculationKind = CalculationKind.DIRECT
    period_value: Optional[float] = None
    cumulative_value: float = 0.0
    target_value: Optional[float] = None
    attainment_pct: Optional[int] = None
    ytd_calc: Optional[YtdCalc] = None
    only_cumulative: bool = False
    is_percent: bool = False
    is_tl: bool = False
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        """
        Convert to dictionary.

        Returns:
            Dictionary representation
        """
        return {
            'kpi_id': self.kpi_id,
            'name': self.name,
            'unit': self.unit,
            'calculation_kind': self.calculation_kind.value,
            'period_value': self.period_value,
            'cumulative_value': self.cumulative_value,
            'target_value': self.target_value,
            'attainment_pct': self.attainment_pct,
            'ytd_calc': self.ytd_calc.value if self.ytd_calc else None,
            'only_cumulative': self.only_cumulative,
            'warnings': list(self.warnings),
            'error': self.error,
        }


__all__ = [
    'normalize_text',
    'Kpi',
    'PeriodValue',
    'CumulativeOverride',
    'EvaluationFailure',
    'PeriodContribution',
    'KpiSnapshot',
    'ComputedKpi',
]
