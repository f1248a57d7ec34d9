# Path: kpi_dash/kpi_engine/kpi_calculator.py
"""
KPI Value Calculator

Produces the period value and the cumulative value of a KPI from one
snapshot. Delegates to:
- expression_evaluator: arithmetic after reference substitution
- reference_resolver: {{ref}} / [ref] tokens to KPI ids
- value_provider: stored and source-derived period values
- ytd_policy: sum or average rollup

Dispatch order:
1. only_cumulative (any kind): override for the month, no period figure
2. target: target formula over cumulative values, no period figure
3. percentage: ratio of numerator and denominator
4. formula: per-period evaluation, rolled up
5. cumulative / direct: provider values, rolled up

Recovered faults (unresolved references, failed evaluations, cycles,
missing kind fields) never raise. They become 0 / None and are collected
as warnings for the KPI being computed.
"""

from typing import Dict, FrozenSet, List, Optional, Set, Tuple

from constants import (
    Cadence,
    CalculationKind,
    DEFAULT_MAX_FORMULA_DEPTH,
    YtdCalc,
)
from core.logger.ipo_logging import get_process_logger

from .expression_evaluator import evaluate, normalize_locale_expression
from .kpi_models import EvaluationFailure, Kpi, KpiSnapshot, PeriodContribution
from .reference_resolver import (
    ReferenceResolver,
    extract_reference_tokens,
    substitute_references,
    to_decimal_string,
)
from .units import scales_to_percent
from .value_provider import ValueProvider
from . import ytd_policy


logger = get_process_logger('kpi_calculator')


class KpiValueCalculator:
    """
    Calculates period and cumulative values over one snapshot.

    Holds no state between snapshots; build one calculator per pass.

    Example:
        calculator = KpiValueCalculator(snapshot)
        kpi = snapshot.kpi_by_id('k2')
        calculator.period_value(kpi, 2)       # 7.0
        calculator.cumulative_value(kpi, 2)   # 12.0
        calculator.drain_warnings()           # []
    """

    def __init__(
        self,
        snapshot: KpiSnapshot,
        max_depth: int = DEFAULT_MAX_FORMULA_DEPTH,
    ):
        """
        Initialize calculator.

        Args:
            snapshot: Read-only inputs for the pass
            max_depth: Deepest formula-in-formula nesting followed before
                the reference is treated as unresolved
        """
        self.snapshot = snapshot
        self.provider = ValueProvider(snapshot)
        self.resolver = ReferenceResolver(snapshot.kpis)
        self.max_depth = max(1, int(max_depth))
        self._warnings: List[str] = []
        self._formula_memo: Dict[
            Tuple[str, int, FrozenSet[str]], Tuple[Optional[float], bool, Tuple[str, ...]]
        ] = {}
        self._collectors: List[List[str]] = []

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def period_value(self, kpi: Kpi, period: int) -> Optional[float]:
        """
        Figure shown for a single day (daily) or month (monthly).

        Returns:
            Value, or None when the KPI has no figure for that period
        """
        if kpi.only_cumulative:
            return None

        kind = kpi.calculation_kind

        if kind is CalculationKind.TARGET:
            return None

        if kind is CalculationKind.PERCENTAGE:
            return self._percentage_period_value(kpi, period, {kpi.id})

        if kind is CalculationKind.FORMULA:
            if not self._has_expression(kpi):
                self._warn(f"Formula KPI '{kpi.id}' has no expression")
                return None
            value, _ = self._formula_period(kpi, period, {kpi.id})
            return value if value is not None else 0.0

        if kind is CalculationKind.CUMULATIVE:
            if not kpi.cumulative_source_ids:
                self._warn(f"Cumulative KPI '{kpi.id}' has no sources")
                return None
            return self.provider.period_value(kpi.id, period)

        return self.provider.stored_value(kpi.id, period)

    def cumulative_value(self, kpi: Kpi, upto: int) -> float:
        """
        Month-to-date (daily) or year-to-date (monthly) figure.

        Args:
            kpi: KPI to roll up
            upto: Last period included

        Returns:
            Rolled-up value, 0 when nothing could be computed
        """
        return self._cumulative(kpi, upto, {kpi.id})

    def rollup_policy(self, kpi: Kpi) -> Optional[YtdCalc]:
        """
        Policy used to roll periods up for this KPI.

        Daily grids always sum. Percentage and target KPIs have their own
        rules and report None.
        """
        if kpi.only_cumulative:
            return None
        if kpi.calculation_kind in (CalculationKind.PERCENTAGE, CalculationKind.TARGET):
            return None
        if self.snapshot.cadence is Cadence.DAILY:
            return YtdCalc.SUM
        return ytd_policy.decide(kpi)

    def drain_warnings(self) -> List[str]:
        """Return and clear the warnings collected since the last drain."""
        warnings, self._warnings = self._warnings, []
        return warnings

    # ------------------------------------------------------------------
    # Rollups
    # ------------------------------------------------------------------

    def _cumulative(self, kpi: Kpi, upto: int, visiting: Set[str]) -> float:
        if kpi.only_cumulative:
            override = self.provider.override_value(kpi.id, self._override_month(upto))
            return override if override is not None else 0.0

        kind = kpi.calculation_kind

        if kind is CalculationKind.TARGET:
            return self._target_value(kpi, upto, visiting)

        if kind is CalculationKind.PERCENTAGE:
            return self._percentage_cumulative(kpi, upto, visiting)

        if kind is CalculationKind.CUMULATIVE and not kpi.cumulative_source_ids:
            self._warn(f"Cumulative KPI '{kpi.id}' has no sources")
            return 0.0

        if kind is CalculationKind.FORMULA and not self._has_expression(kpi):
            self._warn(f"Formula KPI '{kpi.id}' has no expression")
            return 0.0

        contributions = [
            self._contribution(kpi, period, visiting)
            for period in self._periods(upto)
        ]
        policy = self.rollup_policy(kpi) or YtdCalc.SUM
        return ytd_policy.aggregate(contributions, policy)

    def _contribution(
        self, kpi: Kpi, period: int, visiting: Set[str]
    ) -> PeriodContribution:
        kind = kpi.calculation_kind

        if kind is CalculationKind.FORMULA:
            value, contributed = self._formula_period(kpi, period, visiting)
            return PeriodContribution(value, contributed)

        if kind is CalculationKind.CUMULATIVE:
            return PeriodContribution(
                self.provider.period_value(kpi.id, period),
                self.provider.has_contribution(kpi.id, period),
            )

        stored = self.provider.stored_value(kpi.id, period)
        return PeriodContribution(stored, stored is not None)

    def _side_total(
        self, kpi: Kpi, side_id: str, upto: int, visiting: Set[str]
    ) -> Tuple[float, int]:
        """Sum of one percentage side over the window and its valid period count."""
        if not self._guard(kpi, side_id, side_id, visiting):
            return 0.0, 0

        side = self.snapshot.kpi_by_id(side_id)
        if side is not None and side.only_cumulative:
            override = self.provider.override_value(side_id, self._override_month(upto))
            return (override, 1) if override is not None else (0.0, 0)

        total = 0.0
        valid = 0
        for period in self._periods(upto):
            value, contributed = self._reference_period(side_id, period, visiting | {side_id})
            if contributed:
                total += value
                valid += 1
        return total, valid

    # ------------------------------------------------------------------
    # Percentage kind
    # ------------------------------------------------------------------

    def _percentage_sides(self, kpi: Kpi) -> Optional[Tuple[str, str]]:
        if not kpi.numerator_kpi_id or not kpi.denominator_kpi_id:
            self._warn(f"Percentage KPI '{kpi.id}' is missing numerator or denominator")
            return None
        return kpi.numerator_kpi_id, kpi.denominator_kpi_id

    def _percentage_period_value(
        self, kpi: Kpi, period: int, visiting: Set[str]
    ) -> Optional[float]:
        sides = self._percentage_sides(kpi)
        if sides is None:
            return None

        values = []
        for side_id in sides:
            if not self._guard(kpi, side_id, side_id, visiting):
                return None
            value, contributed = self._reference_period(side_id, period, visiting | {side_id})
            if not contributed:
                return None
            values.append(value)

        numerator, denominator = values
        if denominator == 0:
            return None
        return self._scaled_ratio(kpi, numerator, denominator)

    def _percentage_cumulative(self, kpi: Kpi, upto: int, visiting: Set[str]) -> float:
        sides = self._percentage_sides(kpi)
        if sides is None:
            return 0.0
        numerator_id, denominator_id = sides

        if self.snapshot.cadence is Cadence.MONTHLY and not self._has_override_side(sides):
            numerator, denominator, valid = self._paired_totals(kpi, sides, upto, visiting)
            if valid == 0 or denominator == 0:
                return 0.0
            return self._scaled_ratio(kpi, numerator, denominator)

        numerator, num_valid = self._side_total(kpi, numerator_id, upto, visiting)
        denominator, den_valid = self._side_total(kpi, denominator_id, upto, visiting)

        if num_valid == 0 or den_valid == 0 or denominator == 0:
            return 0.0
        return self._scaled_ratio(kpi, numerator, denominator)

    def _has_override_side(self, sides: Tuple[str, str]) -> bool:
        for side_id in sides:
            side = self.snapshot.kpi_by_id(side_id)
            if side is not None and side.only_cumulative:
                return True
        return False

    def _paired_totals(
        self, kpi: Kpi, sides: Tuple[str, str], upto: int, visiting: Set[str]
    ) -> Tuple[float, float, int]:
        """
        Year-to-date sides of a monthly percentage.

        A month counts toward both totals only when numerator and
        denominator both have a value and the denominator is not 0.

        Returns:
            (numerator total, denominator total, months counted)
        """
        numerator_id, denominator_id = sides
        for side_id in sides:
            if not self._guard(kpi, side_id, side_id, visiting):
                return 0.0, 0.0, 0

        numerator_total = 0.0
        denominator_total = 0.0
        valid = 0
        for period in self._periods(upto):
            numerator, num_ok = self._reference_period(
                numerator_id, period, visiting | {numerator_id}
            )
            denominator, den_ok = self._reference_period(
                denominator_id, period, visiting | {denominator_id}
            )
            if not (num_ok and den_ok) or denominator == 0:
                continue
            numerator_total += numerator
            denominator_total += denominator
            valid += 1
        return numerator_total, denominator_total, valid

    @staticmethod
    def _scaled_ratio(kpi: Kpi, numerator: float, denominator: float) -> float:
        ratio = numerator / denominator
        return ratio * 100 if scales_to_percent(kpi.unit) else ratio

    # ------------------------------------------------------------------
    # Formula and target kinds
    # ------------------------------------------------------------------

    def _formula_period(
        self, kpi: Kpi, period: int, visiting: Set[str]
    ) -> Tuple[Optional[float], bool]:
        """
        Evaluate a formula for one period.

        Results are memoized per (kpi, period, visiting chain) for the life
        of the calculator; the warnings raised while computing an entry are
        replayed on every hit.

        Returns:
            (value, contributed); value is None when evaluation failed
        """
        key = (kpi.id, period, frozenset(visiting))
        memoized = self._formula_memo.get(key)
        if memoized is not None:
            value, contributed, warnings = memoized
            for message in warnings:
                self._warn(message)
            return value, contributed

        collected: List[str] = []
        self._collectors.append(collected)
        try:
            value, contributed = self._evaluate_formula_period(kpi, period, visiting)
        finally:
            self._collectors.pop()

        self._formula_memo[key] = (value, contributed, tuple(collected))
        return value, contributed

    def _evaluate_formula_period(
        self, kpi: Kpi, period: int, visiting: Set[str]
    ) -> Tuple[Optional[float], bool]:
        expression = kpi.formula_expression or ''
        contributed = not extract_reference_tokens(expression)

        def replace(token: str) -> str:
            nonlocal contributed
            ref_id = self._resolve(kpi, token, visiting)
            if ref_id is None:
                return '0'
            value, ref_contributed = self._reference_period(ref_id, period, visiting | {ref_id})
            contributed = contributed or ref_contributed
            return to_decimal_string(value)

        result = self._evaluate(kpi, substitute_references(expression, replace), period)
        return result, contributed

    def _target_value(self, kpi: Kpi, upto: int, visiting: Set[str]) -> float:
        if not self._has_expression(kpi):
            self._warn(f"Target KPI '{kpi.id}' has no target formula")
            return 0.0

        def replace(token: str) -> str:
            ref_id = self._resolve(kpi, token, visiting)
            if ref_id is None:
                return '0'
            return to_decimal_string(self._reference_cumulative(ref_id, upto, visiting | {ref_id}))

        result = self._evaluate(kpi, substitute_references(kpi.formula_expression, replace), upto)
        return result if result is not None else 0.0

    def _reference_period(
        self, kpi_id: str, period: int, visiting: Set[str]
    ) -> Tuple[float, bool]:
        """Period value substituted for a reference, with its contribution flag."""
        ref = self.snapshot.kpi_by_id(kpi_id)

        if ref is None:
            stored = self.provider.stored_value(kpi_id, period)
            return (stored, True) if stored is not None else (0.0, False)

        if ref.only_cumulative or ref.calculation_kind is CalculationKind.TARGET:
            return 0.0, False

        if ref.calculation_kind is CalculationKind.FORMULA:
            if not self._has_expression(ref):
                return 0.0, False
            value, contributed = self._formula_period(ref, period, visiting)
            return (value if value is not None else 0.0), contributed

        if ref.calculation_kind is CalculationKind.PERCENTAGE:
            value = self._percentage_period_value(ref, period, visiting)
            return (value, True) if value is not None else (0.0, False)

        return (
            self.provider.period_value(kpi_id, period),
            self.provider.has_contribution(kpi_id, period),
        )

    def _reference_cumulative(self, kpi_id: str, upto: int, visiting: Set[str]) -> float:
        ref = self.snapshot.kpi_by_id(kpi_id)
        if ref is None:
            total = 0.0
            for period in self._periods(upto):
                stored = self.provider.stored_value(kpi_id, period)
                if stored is not None:
                    total += stored
            return total
        return self._cumulative(ref, upto, visiting)

    def _resolve(self, kpi: Kpi, token: str, visiting: Set[str]) -> Optional[str]:
        """Resolve a token, applying the cycle and depth guards."""
        ref_id = self.resolver.resolve(token)
        if ref_id is None:
            self._warn(f"Unresolved reference '{token}' in KPI '{kpi.id}'")
            return None
        return ref_id if self._guard(kpi, ref_id, token, visiting) else None

    def _guard(self, kpi: Kpi, ref_id: str, token: str, visiting: Set[str]) -> bool:
        """False when following ref_id would cycle or nest too deep."""
        if ref_id in visiting:
            self._warn(f"Cyclic reference '{token}' in KPI '{kpi.id}'")
            return False
        if len(visiting) >= self.max_depth:
            self._warn(
                f"Reference '{token}' in KPI '{kpi.id}' exceeds "
                f"formula depth {self.max_depth}"
            )
            return False
        return True

    def _evaluate(self, kpi: Kpi, expression: str, period: int) -> Optional[float]:
        result = evaluate(normalize_locale_expression(expression))
        if isinstance(result, EvaluationFailure):
            self._warn(
                f"Formula of KPI '{kpi.id}' failed for period {period}: {result.reason}"
            )
            return None
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _periods(self, upto: int) -> range:
        return range(1, max(0, min(int(upto), self.snapshot.period_limit)) + 1)

    def _override_month(self, upto: int) -> int:
        if self.snapshot.cadence is Cadence.DAILY:
            return self.snapshot.month
        return upto

    @staticmethod
    def _has_expression(kpi: Kpi) -> bool:
        return bool((kpi.formula_expression or '').strip())

    def _warn(self, message: str) -> None:
        for collected in self._collectors:
            collected.append(message)
        if message not in self._warnings:
            logger.debug(message)
            self._warnings.append(message)


__all__ = ['KpiValueCalculator']
