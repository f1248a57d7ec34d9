# Path: kpi_dash/loaders/row_normalizer.py
"""
Row Normalizer

Maps backend rows into the canonical engine records.

Backend rows arrive with drifting field names (snake_case, camelCase,
nested 'kpi' objects from joins). Every alias chain is resolved here, once,
so the engine only ever sees Kpi / PeriodValue / CumulativeOverride.

Rows that cannot be interpreted (no KPI id, unparseable value, period out
of range) are skipped with a warning on the input logger.
"""

import math
import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from constants import (
    CalculationKind,
    MAX_DAY,
    MAX_MONTH,
    RowKeys,
    YTD_CALC_ALIASES,
    YtdCalc,
)
from core.logger.ipo_logging import get_input_logger

from kpi_engine.kpi_models import CumulativeOverride, Kpi, PeriodValue


logger = get_input_logger('row_normalizer')

_TRUE_VALUES = ('true', '1', 'yes', 'on', 'evet')
_PLAIN_NUMBER = re.compile(r'^[+-]?\d+(\.\d+)?$')


# ==============================================================================
# FIELD ACCESS
# ==============================================================================

def pick(row: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """
    First non-None value among alias keys.

    Dotted keys look inside nested mappings: 'kpi.unit' reads
    row['kpi']['unit'].

    Example:
        pick({'kpi_unit': '%'}, RowKeys.UNIT)          # '%'
        pick({'kpi': {'unit': 'TL'}}, RowKeys.UNIT)    # 'TL'
    """
    for key in keys:
        value: Any = row
        for part in key.split('.'):
            if not isinstance(value, Mapping):
                value = None
                break
            value = value.get(part)
        if value is not None:
            return value
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# ==============================================================================
# SCALAR PARSING
# ==============================================================================

def parse_locale_number(value: Any) -> Optional[float]:
    """
    Parse a number typed in Turkish or plain notation.

    - numbers pass through
    - '1.234,5' -> 1234.5 (dot thousands, comma decimal)
    - '1.234.567' -> 1234567 (several dots are thousands separators)
    - '12.5' -> 12.5 (a single dot with no comma is a decimal point)

    Returns:
        float, or None for empty, unparseable or non-finite input
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    text = str(value).strip().replace(' ', '')
    if not text:
        return None

    if ',' in text:
        text = text.replace('.', '').replace(',', '.')
    elif text.count('.') > 1:
        text = text.replace('.', '')

    if not _PLAIN_NUMBER.match(text):
        return None

    number = float(text)
    return number if math.isfinite(number) else None


def parse_bool(value: Any) -> bool:
    """Interpret database / JSON truthiness ('true', 1, 'evet', ...)."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in _TRUE_VALUES


def parse_ytd_calc(value: Any) -> Optional[YtdCalc]:
    """Map 'sum' / 'toplam' / 'average' / 'ortalama' to YtdCalc."""
    key = _text(value)
    if key is None:
        return None
    return YTD_CALC_ALIASES.get(key.lower())


def _parse_int(value: Any) -> Optional[int]:
    number = parse_locale_number(value)
    if number is None or number != int(number):
        return None
    return int(number)


def _day_from_date(value: Any) -> Optional[int]:
    if isinstance(value, datetime):
        return value.day
    if isinstance(value, date):
        return value.day
    text = _text(value)
    if text is None:
        return None
    try:
        return date.fromisoformat(text[:10]).day
    except ValueError:
        return None


# ==============================================================================
# KPI CATALOG
# ==============================================================================

def normalize_kpi_row(row: Mapping[str, Any]) -> Optional[Kpi]:
    """
    Build a Kpi from a catalog row.

    Formula expressions and cumulative sources live in their own tables and
    are attached later by the snapshot builder; target KPIs carry their
    target formula text inline.

    Returns:
        Kpi, or None when the row has no id
    """
    kpi_id = _text(pick(row, RowKeys.KPI_ID))
    if kpi_id is None:
        logger.warning(f"Skipping KPI row without id: {dict(row)}")
        return None

    kind = CalculationKind.from_value(pick(row, RowKeys.CALCULATION_TYPE))
    target_formula = _text(pick(row, RowKeys.TARGET_FORMULA))

    return Kpi(
        id=kpi_id,
        name=_text(pick(row, RowKeys.KPI_NAME)) or kpi_id,
        unit=_text(pick(row, RowKeys.UNIT)) or '',
        calculation_kind=kind,
        only_cumulative=parse_bool(pick(row, RowKeys.ONLY_CUMULATIVE)),
        numerator_kpi_id=_text(pick(row, RowKeys.NUMERATOR)),
        denominator_kpi_id=_text(pick(row, RowKeys.DENOMINATOR)),
        formula_expression=target_formula if kind is CalculationKind.TARGET else None,
        ytd_calc=parse_ytd_calc(pick(row, RowKeys.YTD_CALC)),
        target_value=parse_locale_number(pick(row, RowKeys.TARGET)),
        category=_text(pick(row, RowKeys.CATEGORY)),
    )


def normalize_kpi_rows(rows: Iterable[Mapping[str, Any]]) -> List[Kpi]:
    """Normalize catalog rows, keeping the first row seen per id."""
    kpis: List[Kpi] = []
    seen = set()
    for row in rows:
        kpi = normalize_kpi_row(row)
        if kpi is None or kpi.id in seen:
            continue
        seen.add(kpi.id)
        kpis.append(kpi)
    return kpis


def normalize_formula_rows(rows: Iterable[Mapping[str, Any]]) -> Dict[str, str]:
    """kpi_id -> trimmed expression; empty expressions are dropped."""
    formulas: Dict[str, str] = {}
    for row in rows:
        kpi_id = _text(pick(row, RowKeys.KPI_ID))
        expression = _text(pick(row, RowKeys.EXPRESSION))
        if kpi_id is None or expression is None:
            continue
        formulas[kpi_id] = expression
    return formulas


def normalize_cumulative_source_rows(
    rows: Iterable[Mapping[str, Any]],
) -> Dict[str, Tuple[str, ...]]:
    """
    kpi_id -> ordered source ids.

    Ids are trimmed, self references dropped, duplicates collapsed to
    their first position.
    """
    sources: Dict[str, List[str]] = {}
    for row in rows:
        kpi_id = _text(pick(row, RowKeys.KPI_ID))
        source_id = _text(pick(row, RowKeys.SOURCE_KPI_ID))
        if kpi_id is None or source_id is None:
            continue
        if source_id == kpi_id:
            logger.warning(f"Dropping self reference in cumulative sources of {kpi_id}")
            continue
        bucket = sources.setdefault(kpi_id, [])
        if source_id not in bucket:
            bucket.append(source_id)
    return {kpi_id: tuple(ids) for kpi_id, ids in sources.items()}


# ==============================================================================
# PERIOD VALUES
# ==============================================================================

def _value_of(row: Mapping[str, Any], kpi_id: str) -> Optional[float]:
    raw = pick(row, RowKeys.VALUE)
    if raw is None:
        return None
    value = parse_locale_number(raw)
    if value is None:
        logger.warning(f"Skipping unparseable value {raw!r} for KPI {kpi_id}")
    return value


def normalize_daily_rows(rows: Iterable[Mapping[str, Any]]) -> List[PeriodValue]:
    """
    Daily report rows -> PeriodValue(period=day).

    The day comes from 'day' or from the day of month of 'report_date'.
    """
    values: List[PeriodValue] = []
    for row in rows:
        kpi_id = _text(pick(row, RowKeys.KPI_ID))
        if kpi_id is None:
            continue

        day = _parse_int(pick(row, RowKeys.DAY))
        if day is None:
            day = _day_from_date(pick(row, RowKeys.REPORT_DATE))
        if day is None or not 1 <= day <= MAX_DAY:
            logger.warning(f"Skipping daily row for {kpi_id} without a valid day")
            continue

        value = _value_of(row, kpi_id)
        if value is not None:
            values.append(PeriodValue(kpi_id, day, value))
    return values


def normalize_monthly_rows(rows: Iterable[Mapping[str, Any]]) -> List[PeriodValue]:
    """Monthly report rows -> PeriodValue(period=month)."""
    values: List[PeriodValue] = []
    for row in rows:
        kpi_id = _text(pick(row, RowKeys.KPI_ID))
        if kpi_id is None:
            continue

        month = _parse_int(pick(row, RowKeys.MONTH))
        if month is None or not 1 <= month <= MAX_MONTH:
            logger.warning(f"Skipping monthly row for {kpi_id} without a valid month")
            continue

        value = _value_of(row, kpi_id)
        if value is not None:
            values.append(PeriodValue(kpi_id, month, value))
    return values


def normalize_override_rows(
    rows: Iterable[Mapping[str, Any]], month: int
) -> List[CumulativeOverride]:
    """
    Override rows for one month -> CumulativeOverride.

    Rows carrying their own 'month' keep it; the rest get the requested one.
    """
    overrides: List[CumulativeOverride] = []
    for row in rows:
        kpi_id = _text(pick(row, RowKeys.KPI_ID))
        if kpi_id is None:
            continue
        value = _value_of(row, kpi_id)
        if value is None:
            continue
        row_month = _parse_int(pick(row, RowKeys.MONTH)) or month
        overrides.append(CumulativeOverride(kpi_id, row_month, value))
    return overrides


def normalize_target_rows(rows: Iterable[Mapping[str, Any]]) -> Dict[str, float]:
    """kpi_id -> target; rows without a numeric target are skipped."""
    targets: Dict[str, float] = {}
    for row in rows:
        kpi_id = _text(pick(row, RowKeys.KPI_ID))
        if kpi_id is None:
            continue
        target = parse_locale_number(pick(row, RowKeys.TARGET))
        if target is not None:
            targets[kpi_id] = target
    return targets


__all__ = [
    'pick',
    'parse_locale_number',
    'parse_bool',
    'parse_ytd_calc',
    'normalize_kpi_row',
    'normalize_kpi_rows',
    'normalize_formula_rows',
    'normalize_cumulative_source_rows',
    'normalize_daily_rows',
    'normalize_monthly_rows',
    'normalize_override_rows',
    'normalize_target_rows',
]
