# Path: kpi_dash/kpi_engine/kpi_engine.py
"""
KPI Engine

Entry point for one computation pass: every requested KPI of a snapshot
gets its period value, cumulative value, target and attainment.

The pass is pure. It reads the snapshot, never mutates it, and keeps
nothing between calls; callers that want memoization wrap it (see
dashboard_service).
"""

from typing import Dict, Iterable, Optional

from constants import CalculationKind, DEFAULT_MAX_FORMULA_DEPTH
from core.logger.ipo_logging import get_process_logger

from .attainment import attainment_pct
from .kpi_calculator import KpiValueCalculator
from .kpi_models import ComputedKpi, Kpi, KpiSnapshot
from .units import unit_meta


logger = get_process_logger('kpi_engine')


def resolve_target(kpi: Kpi, snapshot: KpiSnapshot) -> Optional[float]:
    """
    Target for a KPI in the snapshot window.

    The target store wins; target-kind KPIs fall back to their fixed
    target value.
    """
    target = snapshot.target_for(kpi.id)
    if target is None and kpi.calculation_kind is CalculationKind.TARGET:
        target = kpi.target_value
    return target


def compute_kpi_values(
    snapshot: KpiSnapshot,
    period: int,
    kpi_ids: Optional[Iterable[str]] = None,
    max_depth: int = DEFAULT_MAX_FORMULA_DEPTH,
) -> Dict[str, ComputedKpi]:
    """
    Compute display numbers for the KPIs of a snapshot.

    Args:
        snapshot: Read-only inputs (daily or monthly cadence)
        period: Day of month (daily) or month of year (monthly); the
            cumulative figure covers periods 1..period
        kpi_ids: Subset to compute, catalog order when omitted
        max_depth: Formula nesting guard

    Returns:
        Dictionary of kpi_id to ComputedKpi, in request order

    Example:
        results = compute_kpi_values(snapshot, period=2)
        results['k2'].cumulative_value  # 12.0
    """
    if kpi_ids is None:
        kpis = list(snapshot.kpis)
    else:
        kpis = []
        for kpi_id in kpi_ids:
            kpi = snapshot.kpi_by_id(kpi_id)
            if kpi is None:
                logger.warning(f"KPI '{kpi_id}' is not in the catalog of brand {snapshot.brand_id}")
                continue
            kpis.append(kpi)

    calculator = KpiValueCalculator(snapshot, max_depth=max_depth)
    results: Dict[str, ComputedKpi] = {}

    for kpi in kpis:
        results[kpi.id] = _compute_one(calculator, kpi, snapshot, period)

    failed = sum(1 for result in results.values() if not result.valid)
    logger.info(
        f"Computed {len(results)} KPIs for brand {snapshot.brand_id} "
        f"{snapshot.year}-{snapshot.month:02d} ({snapshot.cadence.value}, period {period})"
        + (f", {failed} failed" if failed else "")
    )
    return results


def _compute_one(
    calculator: KpiValueCalculator,
    kpi: Kpi,
    snapshot: KpiSnapshot,
    period: int,
) -> ComputedKpi:
    meta = unit_meta(kpi.unit)
    result = ComputedKpi(
        kpi_id=kpi.id,
        name=kpi.name,
        unit=kpi.unit,
        calculation_kind=kpi.calculation_kind,
        only_cumulative=kpi.only_cumulative,
        is_percent=meta.is_percent,
        is_tl=meta.is_tl,
    )

    try:
        result.period_value = calculator.period_value(kpi, period)
        result.cumulative_value = calculator.cumulative_value(kpi, period)
        result.ytd_calc = calculator.rollup_policy(kpi)
        result.target_value = resolve_target(kpi, snapshot)
        if kpi.calculation_kind is not CalculationKind.TARGET:
            result.attainment_pct = attainment_pct(
                result.cumulative_value, result.target_value, kpi.unit
            )
    except Exception as e:
        logger.exception(f"Computing KPI '{kpi.id}' failed")
        result.error = str(e) or type(e).__name__
        result.attainment_pct = None

    result.warnings = calculator.drain_warnings()
    if result.warnings:
        logger.debug(f"KPI '{kpi.id}': {len(result.warnings)} warnings")
    return result


__all__ = ['compute_kpi_values', 'resolve_target']
