# Path: kpi_dash/kpi_engine/units.py
"""
Unit Classification

Unit labels are free text typed by administrators. These helpers classify
them once, case-insensitively and whitespace-trimmed, so every consumer
agrees on what counts as a percentage, currency, count or duration.
"""

from dataclasses import dataclass
from typing import Optional

from constants import (
    COUNT_UNIT,
    CURRENCY_UNIT_ALIASES,
    MINUTE_UNIT_KEYWORD,
    PERCENT_UNIT,
    PERCENT_UNIT_ALIASES,
    SUMMABLE_UNIT_KEYWORDS,
)

from .kpi_models import normalize_text


@dataclass(frozen=True)
class UnitMeta:
    """
    Display-relevant traits of a unit label.

    Attributes:
        is_percent: '%' or 'yüzde'
        is_tl: 'TL' or '₺'
        is_count: 'Adet'
        is_minute: contains 'dakika'
        label: Trimmed original label, None when empty
    """
    is_percent: bool
    is_tl: bool
    is_count: bool
    is_minute: bool
    label: Optional[str]


def unit_meta(unit: Optional[str]) -> UnitMeta:
    """Classify a unit label."""
    label = str(unit or '').strip()
    key = normalize_text(label)
    return UnitMeta(
        is_percent=key in PERCENT_UNIT_ALIASES,
        is_tl=key in CURRENCY_UNIT_ALIASES,
        is_count=key == COUNT_UNIT,
        is_minute=is_minute_unit(label),
        label=label or None,
    )


def is_minute_unit(unit: Optional[str]) -> bool:
    """True for minute-denominated units ('Dakika', 'dakika/araç', ...)."""
    return MINUTE_UNIT_KEYWORD in normalize_text(unit)


def is_summable_unit(unit: Optional[str]) -> bool:
    """True for count/score/currency units, whose YTD defaults to a sum."""
    key = normalize_text(unit)
    return any(keyword in key for keyword in SUMMABLE_UNIT_KEYWORDS)


def scales_to_percent(unit: Optional[str]) -> bool:
    """
    True when a ratio KPI should be multiplied by 100.

    Only the exact label '%' qualifies; 'yüzde' and other spellings keep
    the raw ratio.
    """
    return str(unit or '').strip() == PERCENT_UNIT


__all__ = [
    'UnitMeta',
    'unit_meta',
    'is_minute_unit',
    'is_summable_unit',
    'scales_to_percent',
]
