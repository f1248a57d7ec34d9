# Path: kpi_dash/tests/unit/test_engine/test_kpi_calculator.py
"""
Unit tests for KpiValueCalculator.

Covers every calculation kind, rollup policies, recovered faults and
the cycle / depth guards.
"""

from unittest.mock import patch

import pytest

from constants import Cadence, CalculationKind, YtdCalc
from kpi_engine.expression_evaluator import evaluate
from kpi_engine.kpi_calculator import KpiValueCalculator
from kpi_engine.kpi_models import Kpi


def formula(kpi_id, expression, **kwargs):
    return Kpi(kpi_id, kpi_id, calculation_kind=CalculationKind.FORMULA,
               formula_expression=expression, **kwargs)


class TestDirectKind:
    """Direct KPIs."""

    def test_period_value(self, make_snapshot, direct_and_cumulative):
        snapshot = make_snapshot(direct_and_cumulative, {'A': {1: 5.0, 2: 7.0}})
        calc = KpiValueCalculator(snapshot)
        kpi = snapshot.kpi_by_id('A')

        assert calc.period_value(kpi, 2) == 7.0
        assert calc.period_value(kpi, 3) is None

    def test_cumulative_ignores_absent_periods(self, make_snapshot, direct_and_cumulative):
        snapshot = make_snapshot(direct_and_cumulative, {'A': {1: 5.0, 3: 2.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.cumulative_value(snapshot.kpi_by_id('A'), 3) == 7.0
        assert calc.cumulative_value(snapshot.kpi_by_id('A'), 2) == 5.0

    def test_upto_beyond_period_limit_is_clamped(self, make_snapshot, direct_and_cumulative):
        snapshot = make_snapshot(direct_and_cumulative, {'A': {31: 1.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.cumulative_value(snapshot.kpi_by_id('A'), 99) == 1.0


class TestCumulativeKind:
    """Cumulative KPIs over their sources."""

    def test_end_to_end_scenario(self, make_snapshot, direct_and_cumulative):
        snapshot = make_snapshot(direct_and_cumulative, {'A': {1: 5.0, 2: 7.0}})
        calc = KpiValueCalculator(snapshot)
        b = snapshot.kpi_by_id('B')

        assert calc.period_value(b, 2) == 7.0
        assert calc.cumulative_value(b, 2) == 12.0

    def test_day_without_source_values_is_zero(self, make_snapshot, direct_and_cumulative):
        """An empty sum of sources is 0, not an empty figure."""
        snapshot = make_snapshot(direct_and_cumulative, {'A': {1: 5.0}})
        calc = KpiValueCalculator(snapshot)
        b = snapshot.kpi_by_id('B')

        assert calc.period_value(b, 2) == 0.0
        assert calc.cumulative_value(b, 2) == 5.0

    def test_no_sources_recovers(self, make_snapshot):
        kpi = Kpi('B', 'B', calculation_kind=CalculationKind.CUMULATIVE)
        calc = KpiValueCalculator(make_snapshot([kpi]))

        assert calc.period_value(kpi, 1) is None
        assert calc.cumulative_value(kpi, 5) == 0.0
        assert any('no sources' in w for w in calc.drain_warnings())


class TestOnlyCumulative:
    """Override replaces every derived figure."""

    def test_daily_uses_snapshot_month_override(self, make_snapshot):
        kpi = Kpi('O', 'O', calculation_kind=CalculationKind.CUMULATIVE,
                  cumulative_source_ids=('A',), only_cumulative=True)
        snapshot = make_snapshot([kpi, Kpi('A', 'A')], {'A': {1: 9.0}},
                                 overrides={'O': {3: 42.0}})
        calc = KpiValueCalculator(snapshot)

        assert calc.period_value(kpi, 1) is None
        assert calc.cumulative_value(kpi, 10) == 42.0
        assert calc.rollup_policy(kpi) is None

    def test_missing_override_is_zero(self, make_snapshot):
        kpi = Kpi('O', 'O', only_cumulative=True)
        calc = KpiValueCalculator(make_snapshot([kpi]))
        assert calc.cumulative_value(kpi, 10) == 0.0

    def test_monthly_uses_upto_month(self, make_snapshot):
        kpi = Kpi('O', 'O', only_cumulative=True)
        snapshot = make_snapshot([kpi], cadence=Cadence.MONTHLY, month=6,
                                 overrides={'O': {5: 7.0, 6: 8.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.cumulative_value(kpi, 5) == 7.0


class TestFormulaKind:
    """Formula KPIs evaluated per period."""

    def test_period_value_by_id_and_name(self, make_snapshot):
        kpis = [Kpi('A', 'Satış'), Kpi('D', 'Ziyaret'), formula('F', '{{A}} + [ ziyaret ] * 2')]
        snapshot = make_snapshot(kpis, {'A': {1: 5.0}, 'D': {1: 3.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.period_value(snapshot.kpi_by_id('F'), 1) == 11.0

    def test_cumulative_sums_per_period_results(self, make_snapshot):
        kpis = [Kpi('A', 'A'), formula('F', '{{A}} * 2')]
        snapshot = make_snapshot(kpis, {'A': {1: 5.0, 2: 7.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.cumulative_value(snapshot.kpi_by_id('F'), 2) == 24.0

    def test_uses_period_not_cumulative_values(self, make_snapshot, direct_and_cumulative):
        kpis = direct_and_cumulative + [formula('F', '{{B}}')]
        snapshot = make_snapshot(kpis, {'A': {1: 5.0, 2: 7.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.period_value(snapshot.kpi_by_id('F'), 2) == 7.0

    def test_unresolved_reference_is_zero_with_warning(self, make_snapshot):
        kpis = [Kpi('A', 'A'), formula('F', '{{A}} + {{missing}}')]
        snapshot = make_snapshot(kpis, {'A': {1: 5.0}})
        calc = KpiValueCalculator(snapshot)

        assert calc.period_value(snapshot.kpi_by_id('F'), 1) == 5.0
        assert any("'missing'" in w for w in calc.drain_warnings())

    def test_failed_period_is_skipped_in_rollup(self, make_snapshot):
        kpis = [Kpi('A', 'A'), Kpi('D', 'D'), formula('F', '{{A}} / {{D}}')]
        snapshot = make_snapshot(kpis, {'A': {1: 6.0, 2: 5.0}, 'D': {1: 3.0, 2: 0.0}})
        calc = KpiValueCalculator(snapshot)
        f = snapshot.kpi_by_id('F')

        assert calc.cumulative_value(f, 2) == 2.0
        assert calc.period_value(f, 2) == 0.0
        assert any('Division by zero' in w for w in calc.drain_warnings())

    def test_nested_formula(self, make_snapshot):
        kpis = [Kpi('A', 'A'), formula('F1', '{{A}} + 1'), formula('F2', '{{F1}} * 10')]
        snapshot = make_snapshot(kpis, {'A': {1: 2.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.period_value(snapshot.kpi_by_id('F2'), 1) == 30.0

    def test_missing_expression(self, make_snapshot):
        kpi = formula('F', '  ')
        calc = KpiValueCalculator(make_snapshot([kpi]))
        assert calc.period_value(kpi, 1) is None
        assert calc.cumulative_value(kpi, 3) == 0.0

    def test_locale_decimal_in_formula(self, make_snapshot):
        kpis = [Kpi('A', 'A'), formula('F', '{{A}} * 0,5')]
        snapshot = make_snapshot(kpis, {'A': {1: 8.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.period_value(snapshot.kpi_by_id('F'), 1) == 4.0

    def test_negative_reference_fails_evaluation(self, make_snapshot):
        kpis = [Kpi('A', 'A'), formula('F', '{{A}} + 1')]
        snapshot = make_snapshot(kpis, {'A': {1: -3.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.period_value(snapshot.kpi_by_id('F'), 1) == 0.0


class TestCycles:
    """Cyclic references fail closed."""

    def test_two_formula_cycle_terminates(self, make_snapshot):
        kpis = [formula('F1', '{{F2}} + 1'), formula('F2', '{{F1}} + 1')]
        calc = KpiValueCalculator(make_snapshot(kpis))

        assert calc.period_value(kpis[0], 1) == 2.0
        assert calc.cumulative_value(kpis[0], 3) == 6.0
        assert any('Cyclic' in w for w in calc.drain_warnings())

    def test_self_reference(self, make_snapshot):
        kpi = formula('F', '{{F}} + 5')
        calc = KpiValueCalculator(make_snapshot([kpi]))
        assert calc.period_value(kpi, 1) == 5.0

    def test_percentage_cycle_terminates(self, make_snapshot):
        kpis = [
            formula('F', '{{P}} + 1'),
            Kpi('P', 'P', calculation_kind=CalculationKind.PERCENTAGE,
                numerator_kpi_id='F', denominator_kpi_id='F'),
        ]
        calc = KpiValueCalculator(make_snapshot(kpis))
        assert calc.period_value(kpis[1], 1) is None
        assert calc.cumulative_value(kpis[1], 2) == 0.0

    def test_depth_guard(self, make_snapshot):
        kpis = [Kpi('A', 'A')] + [
            formula(f'F{i}', '{{A}}' if i == 0 else f'{{{{F{i - 1}}}}} + 1')
            for i in range(6)
        ]
        snapshot = make_snapshot(kpis, {'A': {1: 1.0}})

        deep = KpiValueCalculator(snapshot, max_depth=16)
        shallow = KpiValueCalculator(snapshot, max_depth=2)
        top = snapshot.kpi_by_id('F5')

        assert deep.period_value(top, 1) == 6.0
        assert shallow.period_value(top, 1) < 6.0
        assert any('depth' in w for w in shallow.drain_warnings())


class TestFormulaReuse:
    """Formula results are computed once per pass."""

    def test_shared_references_evaluated_once(self, make_snapshot):
        kpis = [Kpi('A', 'A')] + [
            formula(f'F{i}', '{{A}} + {{A}}' if i == 1 else f'{{{{F{i - 1}}}}} + {{{{F{i - 1}}}}}')
            for i in range(1, 13)
        ]
        snapshot = make_snapshot(kpis, {'A': {1: 1.0}})
        calc = KpiValueCalculator(snapshot)

        with patch('kpi_engine.kpi_calculator.evaluate', wraps=evaluate) as spy:
            value = calc.period_value(snapshot.kpi_by_id('F12'), 1)

        assert value == 4096.0
        assert spy.call_count == 12

    def test_warnings_replayed_on_reuse(self, make_snapshot):
        kpi = formula('F', '{{ghost}} + 1')
        calc = KpiValueCalculator(make_snapshot([kpi]))

        calc.period_value(kpi, 1)
        assert any('ghost' in w for w in calc.drain_warnings())

        calc.cumulative_value(kpi, 1)
        assert any('ghost' in w for w in calc.drain_warnings())


class TestPercentageKind:
    """Ratio of numerator over denominator."""

    def test_ratio_of_sums_scaled(self, make_snapshot, percentage_kpis):
        snapshot = make_snapshot(percentage_kpis, {'N': {1: 20.0, 2: 30.0}, 'D': {1: 100.0, 2: 100.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.cumulative_value(snapshot.kpi_by_id('P'), 2) == pytest.approx(25.0)

    def test_non_percent_unit_not_scaled(self, make_snapshot):
        kpis = [
            Kpi('N', 'N'), Kpi('D', 'D'),
            Kpi('P', 'P', unit='Adet', calculation_kind=CalculationKind.PERCENTAGE,
                numerator_kpi_id='N', denominator_kpi_id='D'),
        ]
        snapshot = make_snapshot(kpis, {'N': {1: 50.0}, 'D': {1: 200.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.cumulative_value(snapshot.kpi_by_id('P'), 1) == pytest.approx(0.25)

    def test_percent_label_scaling(self, make_snapshot):
        kpis = [
            Kpi('N', 'N'), Kpi('D', 'D'),
            Kpi('P', 'P', unit=' % ', calculation_kind=CalculationKind.PERCENTAGE,
                numerator_kpi_id='N', denominator_kpi_id='D'),
            Kpi('Y', 'Y', unit='yüzde', calculation_kind=CalculationKind.PERCENTAGE,
                numerator_kpi_id='N', denominator_kpi_id='D'),
        ]
        snapshot = make_snapshot(kpis, {'N': {1: 50.0}, 'D': {1: 200.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.cumulative_value(snapshot.kpi_by_id('P'), 1) == pytest.approx(25.0)
        assert calc.cumulative_value(snapshot.kpi_by_id('Y'), 1) == pytest.approx(0.25)

    def test_zero_denominator(self, make_snapshot, percentage_kpis):
        snapshot = make_snapshot(percentage_kpis, {'N': {1: 50.0}, 'D': {1: 0.0}})
        calc = KpiValueCalculator(snapshot)
        p = snapshot.kpi_by_id('P')

        assert calc.cumulative_value(p, 1) == 0.0
        assert calc.period_value(p, 1) is None

    def test_side_without_values(self, make_snapshot, percentage_kpis):
        snapshot = make_snapshot(percentage_kpis, {'N': {1: 50.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.cumulative_value(snapshot.kpi_by_id('P'), 1) == 0.0

    def test_period_value(self, make_snapshot, percentage_kpis):
        snapshot = make_snapshot(percentage_kpis, {'N': {1: 1.0, 2: 3.0}, 'D': {1: 4.0, 2: 4.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.period_value(snapshot.kpi_by_id('P'), 2) == pytest.approx(75.0)

    def test_missing_denominator_field(self, make_snapshot):
        kpi = Kpi('P', 'P', unit='%', calculation_kind=CalculationKind.PERCENTAGE,
                  numerator_kpi_id='N')
        calc = KpiValueCalculator(make_snapshot([kpi, Kpi('N', 'N')], {'N': {1: 1.0}}))

        assert calc.period_value(kpi, 1) is None
        assert calc.cumulative_value(kpi, 1) == 0.0
        assert any('numerator or denominator' in w for w in calc.drain_warnings())

    def test_monthly_ratio_ignores_ytd_policy(self, make_snapshot, percentage_kpis):
        values = {'N': {1: 10.0, 2: 40.0}, 'D': {1: 100.0, 2: 100.0}}
        snapshot = make_snapshot(percentage_kpis, values, cadence=Cadence.MONTHLY, month=2)
        calc = KpiValueCalculator(snapshot)
        p = snapshot.kpi_by_id('P')

        assert calc.cumulative_value(p, 2) == pytest.approx(25.0)
        assert calc.rollup_policy(p) is None

    def test_monthly_skips_month_with_zero_denominator(self, make_snapshot, percentage_kpis):
        values = {'N': {1: 5.0, 2: 10.0}, 'D': {1: 0.0, 2: 100.0}}
        snapshot = make_snapshot(percentage_kpis, values, cadence=Cadence.MONTHLY, month=2)
        calc = KpiValueCalculator(snapshot)
        assert calc.cumulative_value(snapshot.kpi_by_id('P'), 2) == pytest.approx(10.0)

    def test_monthly_skips_month_without_denominator(self, make_snapshot, percentage_kpis):
        values = {'N': {1: 10.0, 2: 20.0}, 'D': {1: 100.0}}
        snapshot = make_snapshot(percentage_kpis, values, cadence=Cadence.MONTHLY, month=2)
        calc = KpiValueCalculator(snapshot)
        assert calc.cumulative_value(snapshot.kpi_by_id('P'), 2) == pytest.approx(10.0)

    def test_monthly_without_paired_months_is_zero(self, make_snapshot, percentage_kpis):
        values = {'N': {1: 10.0}, 'D': {2: 100.0}}
        snapshot = make_snapshot(percentage_kpis, values, cadence=Cadence.MONTHLY, month=2)
        calc = KpiValueCalculator(snapshot)
        assert calc.cumulative_value(snapshot.kpi_by_id('P'), 2) == 0.0

    def test_daily_sums_sides_independently(self, make_snapshot, percentage_kpis):
        """Month-to-date keeps separate side totals."""
        values = {'N': {1: 10.0, 2: 20.0}, 'D': {1: 100.0}}
        snapshot = make_snapshot(percentage_kpis, values)
        calc = KpiValueCalculator(snapshot)
        assert calc.cumulative_value(snapshot.kpi_by_id('P'), 2) == pytest.approx(30.0)

    def test_denominator_outside_catalog(self, make_snapshot):
        kpi = Kpi('P', 'P', unit='%', calculation_kind=CalculationKind.PERCENTAGE,
                  numerator_kpi_id='N', denominator_kpi_id='EXT')
        snapshot = make_snapshot([kpi, Kpi('N', 'N')], {'N': {1: 1.0}, 'EXT': {1: 4.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.cumulative_value(kpi, 1) == pytest.approx(25.0)


class TestTargetKind:
    """Target formula over cumulative values."""

    def test_evaluated_once_over_cumulative_values(self, make_snapshot):
        kpis = [
            Kpi('A', 'Satış'), Kpi('D', 'Ziyaret'),
            Kpi('T', 'T', calculation_kind=CalculationKind.TARGET,
                formula_expression='[Satış] + {{D}} * 2'),
        ]
        snapshot = make_snapshot(kpis, {'A': {1: 5.0, 2: 7.0}, 'D': {1: 1.0, 2: 2.0}})
        calc = KpiValueCalculator(snapshot)
        t = snapshot.kpi_by_id('T')

        assert calc.period_value(t, 2) is None
        assert calc.cumulative_value(t, 2) == 18.0
        assert calc.rollup_policy(t) is None

    def test_failure_is_zero(self, make_snapshot):
        kpi = Kpi('T', 'T', calculation_kind=CalculationKind.TARGET, formula_expression='1/0')
        calc = KpiValueCalculator(make_snapshot([kpi]))
        assert calc.cumulative_value(kpi, 1) == 0.0

    def test_missing_formula(self, make_snapshot):
        kpi = Kpi('T', 'T', calculation_kind=CalculationKind.TARGET)
        calc = KpiValueCalculator(make_snapshot([kpi]))
        assert calc.cumulative_value(kpi, 1) == 0.0


class TestMonthlyRollups:
    """YTD policy on monthly snapshots."""

    def test_adet_sums_percent_averages(self, make_snapshot):
        kpis = [Kpi('S', 'S', unit='Adet'), Kpi('R', 'R', unit='%')]
        values = {'S': {1: 10.0, 2: 20.0, 3: 30.0}, 'R': {1: 10.0, 2: 20.0, 3: 30.0}}
        snapshot = make_snapshot(kpis, values, cadence=Cadence.MONTHLY)
        calc = KpiValueCalculator(snapshot)

        assert calc.cumulative_value(snapshot.kpi_by_id('S'), 3) == 60.0
        assert calc.cumulative_value(snapshot.kpi_by_id('R'), 3) == 20.0

    def test_average_excludes_months_without_input(self, make_snapshot, average_kpi):
        snapshot = make_snapshot([average_kpi], {'AV': {1: 4.0, 3: 8.0}}, cadence=Cadence.MONTHLY)
        calc = KpiValueCalculator(snapshot)
        assert calc.cumulative_value(average_kpi, 3) == 6.0
        assert calc.rollup_policy(average_kpi) is YtdCalc.AVERAGE

    def test_daily_always_sums(self, make_snapshot, average_kpi):
        snapshot = make_snapshot([average_kpi], {'AV': {1: 4.0, 3: 8.0}})
        calc = KpiValueCalculator(snapshot)
        assert calc.cumulative_value(average_kpi, 3) == 12.0
        assert calc.rollup_policy(average_kpi) is YtdCalc.SUM

    def test_explicit_sum_overrides_unit(self, make_snapshot):
        kpi = Kpi('R', 'R', unit='%', ytd_calc=YtdCalc.SUM)
        snapshot = make_snapshot([kpi], {'R': {1: 1.0, 2: 2.0}}, cadence=Cadence.MONTHLY)
        assert KpiValueCalculator(snapshot).cumulative_value(kpi, 2) == 3.0


class TestWarnings:
    """Diagnostics channel."""

    def test_drain_clears(self, make_snapshot):
        kpi = formula('F', '{{nope}}')
        calc = KpiValueCalculator(make_snapshot([kpi]))
        calc.period_value(kpi, 1)

        assert calc.drain_warnings()
        assert calc.drain_warnings() == []

    def test_duplicates_collapsed(self, make_snapshot):
        kpi = formula('F', '{{nope}} + {{nope}}')
        calc = KpiValueCalculator(make_snapshot([kpi]))
        calc.cumulative_value(kpi, 5)
        assert len([w for w in calc.drain_warnings() if 'nope' in w]) == 1

    def test_snapshot_not_mutated(self, make_snapshot, direct_and_cumulative):
        snapshot = make_snapshot(direct_and_cumulative, {'A': {1: 5.0}})
        before = {k: dict(v) for k, v in snapshot.values.items()}
        calc = KpiValueCalculator(snapshot)
        for kpi in snapshot.kpis:
            calc.period_value(kpi, 1)
            calc.cumulative_value(kpi, 31)
        assert {k: dict(v) for k, v in snapshot.values.items()} == before
