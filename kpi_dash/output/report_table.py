# Path: kpi_dash/output/report_table.py
"""
Report Table

Renders computed KPI rows as a fixed-width text table for the console.

Numbers use tr-TR notation: '.' groups thousands, ',' separates decimals.
Percent units show two decimals, count and currency units whole numbers.
Missing values render as the configured placeholder.
"""

from typing import Iterable, List, Optional

from constants import (
    DECIMAL_SEPARATOR,
    EMPTY_PLACEHOLDER,
    MENU_HEADER,
    MENU_SEPARATOR,
    ONLY_CUMULATIVE_LABEL,
    PERCENTAGE_PLACES,
    STATUS_FAIL,
    STATUS_WARN,
    THOUSANDS_SEPARATOR,
)
from core.logger.ipo_logging import get_output_logger
from kpi_engine.kpi_models import ComputedKpi
from kpi_engine.units import unit_meta


logger = get_output_logger('report_table')

NAME_WIDTH = 28
UNIT_WIDTH = 8
VALUE_WIDTH = 14
ATTAINMENT_WIDTH = 6


def format_number(
    value: Optional[float],
    unit: Optional[str] = '',
    decimal_separator: str = DECIMAL_SEPARATOR,
    placeholder: str = EMPTY_PLACEHOLDER,
) -> str:
    """
    Format a KPI value for display.

    Example:
        format_number(1234567, 'TL')   # '1.234.567'
        format_number(12.5, '%')       # '12,50'
        format_number(None, 'Adet')    # '—'
    """
    if value is None:
        return placeholder

    meta = unit_meta(unit)
    if meta.is_percent:
        places = PERCENTAGE_PLACES
    elif meta.is_count or meta.is_tl or float(value).is_integer():
        places = 0
    else:
        places = 2

    text = f"{abs(value):,.{places}f}"
    if text.strip('0.,') == '':
        sign = ''
    else:
        sign = '-' if value < 0 else ''

    integer, _, fraction = text.partition('.')
    integer = integer.replace(',', THOUSANDS_SEPARATOR)
    if fraction:
        return f"{sign}{integer}{decimal_separator}{fraction}"
    return f"{sign}{integer}"


def format_attainment(pct: Optional[int], placeholder: str = EMPTY_PLACEHOLDER) -> str:
    """Attainment as '%120' (Turkish percent notation)."""
    if pct is None:
        return placeholder
    return f"%{pct}"


def render_rows(
    rows: Iterable[ComputedKpi],
    title: str = '',
    decimal_separator: str = DECIMAL_SEPARATOR,
    placeholder: str = EMPTY_PLACEHOLDER,
    show_warnings: bool = False,
) -> str:
    """
    Render computed KPIs as a text table.

    Args:
        rows: Computed KPIs in display order
        title: Heading line
        decimal_separator: Decimal mark for values
        placeholder: Text for missing values
        show_warnings: Append each KPI's warnings under its row

    Returns:
        Table text
    """
    def number(value, unit):
        return format_number(value, unit, decimal_separator, placeholder)

    lines: List[str] = []
    if title:
        lines.append(MENU_HEADER)
        lines.append(f"  {title}")
    lines.append(MENU_HEADER)
    lines.append(
        f"  {'KPI':<{NAME_WIDTH}} {'Unit':<{UNIT_WIDTH}}"
        f"{'Period':>{VALUE_WIDTH}}{'Cumulative':>{VALUE_WIDTH}}"
        f"{'Target':>{VALUE_WIDTH}}{'Att.':>{ATTAINMENT_WIDTH}}"
    )
    lines.append(MENU_SEPARATOR)

    count = 0
    for row in rows:
        count += 1
        name = row.name[:NAME_WIDTH]
        unit = (row.unit or '')[:UNIT_WIDTH]

        if not row.valid:
            lines.append(f"  {name:<{NAME_WIDTH}} {unit:<{UNIT_WIDTH}} {STATUS_FAIL} {row.error}")
            continue

        period = ONLY_CUMULATIVE_LABEL if row.only_cumulative else number(row.period_value, row.unit)
        lines.append(
            f"  {name:<{NAME_WIDTH}} {unit:<{UNIT_WIDTH}}"
            f"{period:>{VALUE_WIDTH}}"
            f"{number(row.cumulative_value, row.unit):>{VALUE_WIDTH}}"
            f"{number(row.target_value, row.unit):>{VALUE_WIDTH}}"
            f"{format_attainment(row.attainment_pct, placeholder):>{ATTAINMENT_WIDTH}}"
        )
        if show_warnings:
            for warning in row.warnings:
                lines.append(f"      {STATUS_WARN} {warning}")

    lines.append(MENU_SEPARATOR)
    logger.info(f"Rendered {count} KPI rows")
    return '\n'.join(lines)


__all__ = ['format_number', 'format_attainment', 'render_rows']
