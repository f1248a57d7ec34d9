# Path: kpi_dash/kpi_engine/attainment.py
"""
Target Attainment

Share of a target reached by a KPI's cumulative figure, as a whole
percentage floored at 0. No upper cap: 130% stays 130.
"""

import math
from typing import Optional

from .units import is_minute_unit


def attainment_pct(
    cumulative_value: Optional[float],
    target_value: Optional[float],
    unit: Optional[str],
) -> Optional[int]:
    """
    Percentage of target reached.

    Args:
        cumulative_value: Month-to-date or year-to-date figure
        target_value: Target for the same window
        unit: KPI unit label

    Returns:
        Rounded percentage (halves round up), or None for minute units,
        missing or non-positive targets and non-finite inputs

    Example:
        attainment_pct(120, 100, 'Adet')   # 120
        attainment_pct(50, 0, 'Adet')      # None
        attainment_pct(50, 100, 'Dakika')  # None
    """
    if is_minute_unit(unit):
        return None
    if target_value is None or target_value <= 0:
        return None
    if cumulative_value is None:
        return None

    ratio = cumulative_value / target_value * 100
    if not math.isfinite(ratio):
        return None
    return int(math.floor(max(0.0, ratio) + 0.5))


__all__ = ['attainment_pct']
