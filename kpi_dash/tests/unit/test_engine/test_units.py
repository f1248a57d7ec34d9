# Path: kpi_dash/tests/unit/test_engine/test_units.py
"""
Unit tests for unit label classification.
"""

import pytest

from kpi_engine.units import (
    is_minute_unit,
    is_summable_unit,
    scales_to_percent,
    unit_meta,
)


class TestUnitMeta:
    """unit_meta() classification."""

    @pytest.mark.parametrize('unit', ['%', ' % ', 'yüzde', 'Yüzde'])
    def test_percent(self, unit):
        assert unit_meta(unit).is_percent is True

    @pytest.mark.parametrize('unit', ['TL', 'tl', ' ₺ '])
    def test_currency(self, unit):
        meta = unit_meta(unit)
        assert meta.is_tl is True
        assert meta.is_percent is False

    def test_count(self):
        assert unit_meta('Adet').is_count is True
        assert unit_meta('Adet/gün').is_count is False

    def test_minute(self):
        assert unit_meta('Ortalama dakika').is_minute is True

    def test_empty(self):
        meta = unit_meta(None)
        assert meta.label is None
        assert not (meta.is_percent or meta.is_tl or meta.is_count or meta.is_minute)

    def test_label_trimmed(self):
        assert unit_meta('  Puan ').label == 'Puan'


class TestPredicates:
    """Standalone predicates."""

    def test_is_minute_unit(self):
        assert is_minute_unit('Dakika') is True
        assert is_minute_unit('Saat') is False

    def test_is_summable_unit(self):
        assert is_summable_unit('Müşteri Puanı') is True
        assert is_summable_unit('Saat') is False

    def test_only_exact_percent_scales(self):
        assert scales_to_percent('%') is True
        assert scales_to_percent(' %  ') is True
        assert scales_to_percent('yüzde') is False
        assert scales_to_percent('%/gün') is False
        assert scales_to_percent(None) is False
