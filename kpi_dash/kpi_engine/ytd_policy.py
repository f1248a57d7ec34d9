# Path: kpi_dash/kpi_engine/ytd_policy.py
"""
YTD Aggregation Policy

Decides whether a KPI's year-to-date figure is a sum or an average of its
monthly figures, and applies that decision.

- explicit ytd_calc wins
- otherwise units containing 'adet', 'puan', 'tl' or '₺' sum
- everything else (%, ratios, durations, ...) averages
"""

from typing import Iterable

from constants import YtdCalc

from .kpi_models import Kpi, PeriodContribution
from .units import is_summable_unit


def decide(kpi: Kpi) -> YtdCalc:
    """
    Rollup policy for a KPI.

    Example:
        decide(Kpi('k1', 'Satış', unit='Adet'))  # YtdCalc.SUM
        decide(Kpi('k2', 'Oran', unit='%'))      # YtdCalc.AVERAGE
    """
    if kpi.ytd_calc is not None:
        return kpi.ytd_calc
    return YtdCalc.SUM if is_summable_unit(kpi.unit) else YtdCalc.AVERAGE


def aggregate(contributions: Iterable[PeriodContribution], policy: YtdCalc) -> float:
    """
    Roll period contributions up into one figure.

    SUM adds every computed value. AVERAGE divides the total of the periods
    backed by recorded input by their count; periods without input are left
    out of both. No qualifying period yields 0.
    """
    total = 0.0
    count = 0

    for contribution in contributions:
        if contribution.value is None:
            continue
        if policy is YtdCalc.AVERAGE and not contribution.contributed:
            continue
        total += contribution.value
        count += 1

    if policy is YtdCalc.SUM or count == 0:
        return total
    return total / count


__all__ = ['decide', 'aggregate']
