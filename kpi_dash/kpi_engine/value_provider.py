# Path: kpi_dash/kpi_engine/value_provider.py
"""
Value Provider

Recorded (or source-derived) numbers for a single KPI and period.

- direct / unclassified KPIs: the stored value, 0 when absent
- cumulative KPIs: sum of the sources' stored values for that same period
- only-cumulative KPIs: always 0 per period; their figure lives in the
  monthly override

Formulas are never evaluated here; the KPI Value Calculator does that and
calls back into this provider for each referenced KPI.
"""

from typing import Optional

from constants import Cadence, CalculationKind

from .kpi_models import KpiSnapshot


class ValueProvider:
    """
    Period value lookups over one snapshot.

    Example:
        provider = ValueProvider(daily_snapshot)
        provider.daily_value('k1', 12)
        provider.has_contribution('k1', 12)
    """

    def __init__(self, snapshot: KpiSnapshot):
        self.snapshot = snapshot

    def stored_value(self, kpi_id: str, period: int) -> Optional[float]:
        """Raw recorded value, None when nothing was entered."""
        return self.snapshot.stored_value(kpi_id, period)

    def period_value(self, kpi_id: str, period: int) -> float:
        """
        Value of a KPI for one period of the snapshot's cadence.

        KPIs missing from the catalog (e.g. a percentage denominator kept in
        another category) fall back to their stored value.
        """
        kpi = self.snapshot.kpi_by_id(kpi_id)

        if kpi is not None and kpi.only_cumulative:
            return 0.0

        if kpi is not None and kpi.calculation_kind is CalculationKind.CUMULATIVE:
            total = 0.0
            for source_id in kpi.cumulative_source_ids:
                stored = self.stored_value(source_id, period)
                if stored is not None:
                    total += stored
            return total

        stored = self.stored_value(kpi_id, period)
        return stored if stored is not None else 0.0

    def has_contribution(self, kpi_id: str, period: int) -> bool:
        """Whether any recorded input backs period_value(kpi_id, period)."""
        kpi = self.snapshot.kpi_by_id(kpi_id)

        if kpi is not None and kpi.only_cumulative:
            return False

        if kpi is not None and kpi.calculation_kind is CalculationKind.CUMULATIVE:
            return any(
                self.stored_value(source_id, period) is not None
                for source_id in kpi.cumulative_source_ids
            )

        return self.stored_value(kpi_id, period) is not None

    def daily_value(self, kpi_id: str, day: int) -> float:
        """period_value() on a daily snapshot."""
        self._require(Cadence.DAILY)
        return self.period_value(kpi_id, day)

    def monthly_value(self, kpi_id: str, month: int) -> float:
        """period_value() on a monthly snapshot."""
        self._require(Cadence.MONTHLY)
        return self.period_value(kpi_id, month)

    def override_value(self, kpi_id: str, month: int) -> Optional[float]:
        """Cumulative override recorded for (kpi_id, month)."""
        return self.snapshot.override_value(kpi_id, month)

    def _require(self, cadence: Cadence) -> None:
        if self.snapshot.cadence is not cadence:
            raise ValueError(
                f"{cadence.value} lookup on a {self.snapshot.cadence.value} snapshot"
            )


__all__ = ['ValueProvider']
