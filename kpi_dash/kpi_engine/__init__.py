# Path: kpi_dash/kpi_engine/__init__.py
"""
KPI Computation Engine

Turns raw recorded values plus KPI metadata into the numbers every
dashboard view renders: period value, cumulative (month-to-date or
year-to-date) value and target attainment.

Components (leaf-first):
    - expression_evaluator: restricted arithmetic (+ - * / and parentheses)
    - reference_resolver: {{ref}} / [ref] tokens to KPI ids
    - value_provider: stored and source-derived period values
    - kpi_calculator: per-kind period and cumulative values
    - ytd_policy: sum or average rollup
    - attainment: percentage of target reached
    - kpi_engine: one pass over a snapshot

The engine is pure and cache-free. The dashboard service
(kpi_engine.dashboard_service) wraps it with data fetching and caching.

Example:
    from kpi_engine import KpiSnapshot, compute_kpi_values

    results = compute_kpi_values(snapshot, period=12)
    for row in results.values():
        print(row.name, row.period_value, row.cumulative_value)
"""

from .kpi_models import (
    normalize_text,
    Kpi,
    PeriodValue,
    CumulativeOverride,
    EvaluationFailure,
    PeriodContribution,
    KpiSnapshot,
    ComputedKpi,
)
from .expression_evaluator import evaluate, normalize_locale_expression
from .reference_resolver import (
    ReferenceResolver,
    extract_reference_tokens,
    resolve,
)
from .units import UnitMeta, unit_meta
from .value_provider import ValueProvider
from .ytd_policy import decide as decide_ytd_policy
from .attainment import attainment_pct
from .kpi_calculator import KpiValueCalculator
from .kpi_engine import compute_kpi_values, resolve_target


__all__ = [
    # Models
    'normalize_text',
    'Kpi',
    'PeriodValue',
    'CumulativeOverride',
    'EvaluationFailure',
    'PeriodContribution',
    'KpiSnapshot',
    'ComputedKpi',

    # Components
    'evaluate',
    'normalize_locale_expression',
    'ReferenceResolver',
    'extract_reference_tokens',
    'resolve',
    'UnitMeta',
    'unit_meta',
    'ValueProvider',
    'decide_ytd_policy',
    'attainment_pct',
    'KpiValueCalculator',

    # Entry point
    'compute_kpi_values',
    'resolve_target',
]
