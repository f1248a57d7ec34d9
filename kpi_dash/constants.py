# Path: kpi_dash/constants.py
"""
System-Wide Constants for kpi_dash (Brand KPI Dashboard)

Central repository for all constant values used across the system.
NO HARDCODED VALUES in module code - all constants defined here.

Constants are organized by category:
- Calculation Kinds
- YTD Aggregation
- Cadences
- Unit Keywords
- Formula Syntax
- Row Keys
- Display / Status Codes
"""

from enum import Enum
from typing import Final


# ==============================================================================
# CALCULATION KINDS
# ==============================================================================

class CalculationKind(str, Enum):
    """
    How a KPI's value is derived.

    DIRECT: value is entered per period
    CUMULATIVE: daily figure is the sum of its source KPIs
    FORMULA: arithmetic over other KPIs' period values
    PERCENTAGE: numerator KPI over denominator KPI
    TARGET: formula over other KPIs' cumulative values
    """
    DIRECT = 'direct'
    CUMULATIVE = 'cumulative'
    FORMULA = 'formula'
    PERCENTAGE = 'percentage'
    TARGET = 'target'

    @classmethod
    def from_value(cls, value) -> 'CalculationKind':
        """Parse a raw kind, falling back to DIRECT for unknown values."""
        text = str(value or '').strip().lower()
        for kind in cls:
            if kind.value == text:
                return kind
        return cls.DIRECT


# ==============================================================================
# YTD AGGREGATION
# ==============================================================================

class YtdCalc(str, Enum):
    """Year-to-date rollup policy."""
    SUM = 'sum'
    AVERAGE = 'average'


# Backend spellings accepted for ytd_calc
YTD_CALC_ALIASES: Final[dict[str, YtdCalc]] = {
    'sum': YtdCalc.SUM,
    'toplam': YtdCalc.SUM,
    'average': YtdCalc.AVERAGE,
    'avg': YtdCalc.AVERAGE,
    'ortalama': YtdCalc.AVERAGE,
}


# ==============================================================================
# CADENCES
# ==============================================================================

class Cadence(str, Enum):
    """
    Period granularity of a snapshot.

    DAILY: periods are days of one month, rolled up month-to-date
    MONTHLY: periods are months of one year, rolled up year-to-date
    """
    DAILY = 'daily'
    MONTHLY = 'monthly'


MAX_DAY: Final[int] = 31
MAX_MONTH: Final[int] = 12


# ==============================================================================
# UNIT KEYWORDS
# ==============================================================================

# Units whose YTD defaults to a sum (substring match on normalized unit)
SUMMABLE_UNIT_KEYWORDS: Final[tuple[str, ...]] = ('adet', 'puan', 'tl', '₺')

# Minute-denominated KPIs never show attainment
MINUTE_UNIT_KEYWORD: Final[str] = 'dakika'

# Exact unit that scales percentage KPIs by 100
PERCENT_UNIT: Final[str] = '%'
PERCENT_UNIT_ALIASES: Final[tuple[str, ...]] = ('%', 'yüzde')
CURRENCY_UNIT_ALIASES: Final[tuple[str, ...]] = ('tl', '₺')
COUNT_UNIT: Final[str] = 'adet'


# ==============================================================================
# FORMULA SYNTAX
# ==============================================================================

# {{ref}} or [ref]
REFERENCE_TOKEN_PATTERN: Final[str] = r'\{\{([^}]+)\}\}|\[([^\]]+)\]'

OPERATOR_PRECEDENCE: Final[dict[str, int]] = {
    '+': 1,
    '-': 1,
    '*': 2,
    '/': 2,
}

DEFAULT_MAX_FORMULA_DEPTH: Final[int] = 16


# ==============================================================================
# ROW KEYS - backend aliases, first match wins
# ==============================================================================

class RowKeys:
    """
    Alias chains for backend rows.

    Each tuple lists the keys tried in order. Dotted entries look inside a
    nested object (e.g. 'kpi.unit').
    """
    KPI_ID: Final[tuple[str, ...]] = ('kpi_id', 'id', 'kpi.id')
    KPI_NAME: Final[tuple[str, ...]] = ('kpi_name', 'name', 'kpi.name')
    UNIT: Final[tuple[str, ...]] = ('unit', 'kpi_unit', 'kpi.unit', 'kpis.unit')
    CATEGORY: Final[tuple[str, ...]] = ('category', 'kpi.category')
    CALCULATION_TYPE: Final[tuple[str, ...]] = (
        'calculation_type', 'calculationType', 'kpi.calculation_type',
    )
    ONLY_CUMULATIVE: Final[tuple[str, ...]] = (
        'only_cumulative', 'onlyCumulative', 'kpi.only_cumulative',
    )
    NUMERATOR: Final[tuple[str, ...]] = ('numerator_kpi_id', 'numeratorKpiId')
    DENOMINATOR: Final[tuple[str, ...]] = ('denominator_kpi_id', 'denominatorKpiId')
    YTD_CALC: Final[tuple[str, ...]] = ('ytd_calc', 'ytdCalc', 'kpi.ytd_calc')
    TARGET: Final[tuple[str, ...]] = ('target', 'target_value', 'targetValue')
    TARGET_FORMULA: Final[tuple[str, ...]] = (
        'target_formula_text', 'targetFormulaText',
    )
    EXPRESSION: Final[tuple[str, ...]] = ('expression', 'display_expression')
    SOURCE_KPI_ID: Final[tuple[str, ...]] = ('source_kpi_id', 'sourceKpiId')
    VALUE: Final[tuple[str, ...]] = ('value',)
    DAY: Final[tuple[str, ...]] = ('day',)
    MONTH: Final[tuple[str, ...]] = ('month',)
    REPORT_DATE: Final[tuple[str, ...]] = ('report_date', 'reportDate')


# ==============================================================================
# DISPLAY FORMATTING
# ==============================================================================

# Table formatting
MENU_WIDTH: Final[int] = 78
MENU_SEPARATOR: Final[str] = '-' * MENU_WIDTH
MENU_HEADER: Final[str] = '=' * MENU_WIDTH

# Number formatting (tr-TR)
THOUSANDS_SEPARATOR: Final[str] = '.'
DECIMAL_SEPARATOR: Final[str] = ','
PERCENTAGE_PLACES: Final[int] = 2
EMPTY_PLACEHOLDER: Final[str] = '—'
ONLY_CUMULATIVE_LABEL: Final[str] = 'auto'

# Status indicators (ASCII only - no emojis)
STATUS_OK: Final[str] = '[OK]'
STATUS_FAIL: Final[str] = '[FAIL]'
STATUS_WARN: Final[str] = '[WARN]'
STATUS_INFO: Final[str] = '[INFO]'


# ==============================================================================
# LOGGING CATEGORIES
# ==============================================================================

class LogCategory(str, Enum):
    """
    IPO logging categories for kpi_dash.
    """
    INPUT = 'input'
    PROCESS = 'process'
    OUTPUT = 'output'


# ==============================================================================
# EXPORTS
# ==============================================================================

__all__ = [
    # Enums
    'CalculationKind',
    'YtdCalc',
    'Cadence',
    'LogCategory',

    # Aggregation
    'YTD_CALC_ALIASES',
    'MAX_DAY',
    'MAX_MONTH',

    # Units
    'SUMMABLE_UNIT_KEYWORDS',
    'MINUTE_UNIT_KEYWORD',
    'PERCENT_UNIT',
    'PERCENT_UNIT_ALIASES',
    'CURRENCY_UNIT_ALIASES',
    'COUNT_UNIT',

    # Formula syntax
    'REFERENCE_TOKEN_PATTERN',
    'OPERATOR_PRECEDENCE',
    'DEFAULT_MAX_FORMULA_DEPTH',

    # Key classes
    'RowKeys',

    # Display
    'MENU_WIDTH',
    'MENU_SEPARATOR',
    'MENU_HEADER',
    'THOUSANDS_SEPARATOR',
    'DECIMAL_SEPARATOR',
    'PERCENTAGE_PLACES',
    'EMPTY_PLACEHOLDER',
    'ONLY_CUMULATIVE_LABEL',
    'STATUS_OK',
    'STATUS_FAIL',
    'STATUS_WARN',
    'STATUS_INFO',
]
