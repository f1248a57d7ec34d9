# Path: kpi_dash/tests/unit/test_report_table.py
"""
Unit Tests for the Report Table

Tests tr-TR number formatting and table rendering.
"""

import sys
from pathlib import Path

import pytest

# Add kpi_dash to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from constants import EMPTY_PLACEHOLDER, ONLY_CUMULATIVE_LABEL, STATUS_FAIL, STATUS_WARN
from kpi_engine.kpi_models import ComputedKpi
from output.report_table import format_attainment, format_number, render_rows


class TestFormatNumber:
    """Test format_number()."""

    @pytest.mark.parametrize('value, unit, expected', [
        (1234567, 'TL', '1.234.567'),
        (1234567.4, 'TL', '1.234.567'),
        (12.5, '%', '12,50'),
        (0.256, 'yüzde', '0,26'),
        (42, 'Adet', '42'),
        (7.0, 'Saat', '7'),
        (7.25, 'Saat', '7,25'),
        (-1500.0, 'TL', '-1.500'),
    ])
    def test_formats(self, value, unit, expected):
        """Places depend on the unit."""
        assert format_number(value, unit) == expected

    def test_placeholder(self):
        assert format_number(None, 'TL') == EMPTY_PLACEHOLDER
        assert format_number(None, 'TL', placeholder='-') == '-'

    def test_no_negative_zero(self):
        """Values that round to zero drop the sign."""
        assert format_number(-0.001, '%') == '0,00'

    def test_custom_decimal_separator(self):
        assert format_number(12.5, '%', decimal_separator='.') == '12.50'


class TestFormatAttainment:
    """Test format_attainment()."""

    def test_turkish_percent(self):
        assert format_attainment(120) == '%120'

    def test_missing(self):
        assert format_attainment(None) == EMPTY_PLACEHOLDER


class TestRenderRows:
    """Test render_rows()."""

    def test_row_values(self):
        """Period, cumulative, target and attainment appear on the row."""
        row = ComputedKpi('a', 'Satış Adedi', unit='Adet', period_value=7,
                          cumulative_value=12, target_value=10, attainment_pct=120)
        table = render_rows([row], title='Kuzey | 2025-03-02')

        assert 'Kuzey | 2025-03-02' in table
        line = next(l for l in table.splitlines() if 'Satış Adedi' in l)
        assert line.split()[-4:] == ['7', '12', '10', '%120']

    def test_only_cumulative_label(self):
        row = ComputedKpi('o', 'Memnuniyet', unit='Puan', cumulative_value=42, only_cumulative=True)
        line = next(l for l in render_rows([row]).splitlines() if 'Memnuniyet' in l)
        assert ONLY_CUMULATIVE_LABEL in line

    def test_failed_row(self):
        row = ComputedKpi('x', 'Bozuk', error='boom')
        line = next(l for l in render_rows([row]).splitlines() if 'Bozuk' in l)
        assert STATUS_FAIL in line
        assert 'boom' in line

    def test_warnings_optional(self):
        """Warnings render only when asked for."""
        row = ComputedKpi('f', 'Formül', warnings=["Unresolved reference 'x' in KPI 'f'"])

        assert STATUS_WARN not in render_rows([row])
        assert "Unresolved reference 'x'" in render_rows([row], show_warnings=True)

    def test_empty(self):
        table = render_rows([])
        assert 'KPI' in table
