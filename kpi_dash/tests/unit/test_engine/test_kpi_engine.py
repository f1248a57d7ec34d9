# Path: kpi_dash/tests/unit/test_engine/test_kpi_engine.py
"""
Unit tests for the engine entry point compute_kpi_values().
"""

from unittest.mock import patch

import pytest

from constants import Cadence, CalculationKind, YtdCalc
from kpi_engine.kpi_engine import compute_kpi_values, resolve_target
from kpi_engine.kpi_models import Kpi


class TestComputeKpiValues:
    """One pass over a snapshot."""

    def test_all_kpis_in_catalog_order(self, make_snapshot, direct_and_cumulative):
        snapshot = make_snapshot(direct_and_cumulative, {'A': {1: 5.0, 2: 7.0}})
        results = compute_kpi_values(snapshot, 2)

        assert list(results) == ['A', 'B']
        assert results['B'].period_value == 7.0
        assert results['B'].cumulative_value == 12.0
        assert results['B'].ytd_calc is YtdCalc.SUM

    def test_subset_in_request_order(self, make_snapshot, direct_and_cumulative):
        snapshot = make_snapshot(direct_and_cumulative)
        results = compute_kpi_values(snapshot, 1, kpi_ids=['B', 'unknown', 'A'])
        assert list(results) == ['B', 'A']

    def test_idempotent(self, make_snapshot, percentage_kpis):
        snapshot = make_snapshot(percentage_kpis, {'N': {1: 1.0}, 'D': {1: 4.0}})
        first = compute_kpi_values(snapshot, 1)
        second = compute_kpi_values(snapshot, 1)
        assert [r.to_dict() for r in first.values()] == [r.to_dict() for r in second.values()]

    def test_unit_flags(self, make_snapshot):
        kpis = [Kpi('R', 'R', unit='%'), Kpi('M', 'M', unit='TL')]
        results = compute_kpi_values(make_snapshot(kpis), 1)

        assert results['R'].is_percent is True
        assert results['M'].is_tl is True

    def test_warnings_attached_per_kpi(self, make_snapshot):
        kpis = [
            Kpi('A', 'A'),
            Kpi('F', 'F', calculation_kind=CalculationKind.FORMULA,
                formula_expression='{{A}} + {{ghost}}'),
        ]
        results = compute_kpi_values(make_snapshot(kpis, {'A': {1: 1.0}}), 1)

        assert results['A'].warnings == []
        assert any('ghost' in w for w in results['F'].warnings)
        assert results['F'].valid is True

    def test_unexpected_error_is_isolated(self, make_snapshot, direct_and_cumulative):
        snapshot = make_snapshot(direct_and_cumulative, {'A': {1: 5.0}})

        with patch('kpi_engine.kpi_engine.attainment_pct', side_effect=ZeroDivisionError('boom')):
            results = compute_kpi_values(snapshot, 1)

        assert results['A'].valid is False
        assert results['A'].error == 'boom'
        assert results['A'].attainment_pct is None
        assert len(results) == 2

    @pytest.mark.parametrize('error', [AttributeError('no attr'), RecursionError('too deep')])
    def test_any_error_stays_with_its_kpi(self, make_snapshot, direct_and_cumulative, error):
        """One KPI failing should not stop the rest of the pass."""
        snapshot = make_snapshot(direct_and_cumulative, {'A': {1: 5.0}})

        def failing_target(kpi, snap):
            if kpi.id == 'A':
                raise error
            return None

        with patch('kpi_engine.kpi_engine.resolve_target', side_effect=failing_target):
            results = compute_kpi_values(snapshot, 1)

        assert results['A'].valid is False
        assert results['A'].error == str(error)
        assert results['B'].valid is True
        assert results['B'].cumulative_value == 5.0


class TestTargets:
    """Target lookup and attainment."""

    def test_attainment_from_target_store(self, make_snapshot, direct_and_cumulative):
        snapshot = make_snapshot(direct_and_cumulative, {'A': {1: 6.0, 2: 6.0}}, targets={'A': 10.0})
        result = compute_kpi_values(snapshot, 2)['A']

        assert result.target_value == 10.0
        assert result.attainment_pct == 120

    def test_no_target(self, make_snapshot, direct_and_cumulative):
        result = compute_kpi_values(make_snapshot(direct_and_cumulative), 1)['A']
        assert result.target_value is None
        assert result.attainment_pct is None

    def test_minute_unit_suppressed(self, make_snapshot):
        kpi = Kpi('W', 'Bekleme', unit='Dakika')
        snapshot = make_snapshot([kpi], {'W': {1: 5.0}}, targets={'W': 10.0})
        assert compute_kpi_values(snapshot, 1)['W'].attainment_pct is None

    def test_target_kind_fixed_target_without_attainment(self, make_snapshot):
        kpi = Kpi('T', 'T', calculation_kind=CalculationKind.TARGET,
                  formula_expression='10', target_value=100.0)
        result = compute_kpi_values(make_snapshot([kpi]), 1)['T']

        assert result.cumulative_value == 10.0
        assert result.target_value == 100.0
        assert result.attainment_pct is None

    def test_store_wins_over_fixed_target(self, make_snapshot):
        kpi = Kpi('T', 'T', calculation_kind=CalculationKind.TARGET, target_value=100.0)
        snapshot = make_snapshot([kpi], targets={'T': 50.0})
        assert resolve_target(kpi, snapshot) == 50.0

    def test_fixed_target_ignored_for_other_kinds(self, make_snapshot):
        kpi = Kpi('A', 'A', target_value=100.0)
        assert resolve_target(kpi, make_snapshot([kpi])) is None


class TestMonthlyPass:
    """Monthly cadence end to end."""

    @pytest.mark.parametrize('unit, expected', [('Adet', 60.0), ('%', 20.0)])
    def test_ytd_by_unit(self, make_snapshot, unit, expected):
        kpi = Kpi('K', 'K', unit=unit)
        snapshot = make_snapshot([kpi], {'K': {1: 10.0, 2: 20.0, 3: 30.0}}, cadence=Cadence.MONTHLY)
        result = compute_kpi_values(snapshot, 3)['K']

        assert result.period_value == 30.0
        assert result.cumulative_value == expected
