# Path: kpi_dash/tests/conftest.py
"""
Pytest Configuration and Shared Fixtures for kpi_dash

Provides common test fixtures used across all test modules.
"""

import os
import sys
import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

# Add kpi_dash to path for imports
KPI_DASH_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(KPI_DASH_ROOT))

from constants import Cadence, CalculationKind, YtdCalc  # noqa: E402
from kpi_engine.kpi_models import Kpi, KpiSnapshot, PeriodValue, CumulativeOverride  # noqa: E402


# ==============================================================================
# ENVIRONMENT FIXTURES
# ==============================================================================

@pytest.fixture
def mock_env_vars(temp_dir):
    """Provide mock environment variables for testing."""
    env_vars = {
        'KPI_DASH_ENVIRONMENT': 'test',
        'KPI_DASH_DEBUG': 'true',

        # Logging
        'KPI_DASH_LOG_DIR': str(temp_dir / 'logs'),
        'KPI_DASH_LOG_LEVEL': 'DEBUG',
        'KPI_DASH_LOG_MAX_SIZE_MB': '2',
        'KPI_DASH_LOG_BACKUP_COUNT': '3',

        # Database
        'KPI_DASH_DB_HOST': 'localhost',
        'KPI_DASH_DB_PORT': '5432',
        'KPI_DASH_DB_NAME': 'kpi_dash_test',
        'KPI_DASH_DB_USER': 'test_user',
        'KPI_DASH_DB_PASSWORD': 'test_pass',

        # Cache
        'KPI_DASH_ENABLE_CACHING': 'true',
        'KPI_DASH_CACHE_TTL_HOURS': '0.5',

        # Calculation
        'KPI_DASH_MAX_FORMULA_DEPTH': '8',
    }

    with patch.dict(os.environ, env_vars, clear=False):
        yield env_vars


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ==============================================================================
# MOCK FIXTURES
# ==============================================================================

@pytest.fixture
def mock_config():
    """Create a mock ConfigLoader for testing."""
    config = MagicMock()
    config.get.side_effect = lambda key, default=None: {
        'environment': 'test',
        'debug': True,
        'log_dir': Path('/tmp/test/logs'),
        'enable_caching': True,
        'cache_ttl_hours': None,
        'max_formula_depth': 16,
        'decimal_separator': ',',
        'empty_placeholder': '—',
    }.get(key, default)
    return config


class FakeKpiDataSource:
    """
    In-memory KPI data source returning backend-shaped rows.

    Records every call so tests can assert on the fetch plan.
    """

    def __init__(
        self,
        kpis=None,
        daily=None,
        monthly=None,
        overrides=None,
        formulas=None,
        sources=None,
        targets=None,
    ):
        self.kpis = kpis or {}
        self.daily = daily or []
        self.monthly = monthly or []
        self.overrides = overrides or []
        self.formulas = formulas or []
        self.sources = sources or []
        self.targets = targets or []
        self.calls = []

    def list_kpis_for_brand(self, brand_id):
        self.calls.append(('kpis', brand_id))
        if brand_id not in self.kpis:
            raise LookupError(f"unknown brand {brand_id}")
        return list(self.kpis[brand_id])

    def list_daily_values(self, brand_id, year, month, kpi_ids):
        self.calls.append(('daily', brand_id, year, month, tuple(kpi_ids)))
        return [r for r in self.daily if r.get('kpi_id') in kpi_ids]

    def list_monthly_values(self, brand_id, year, month, kpi_ids):
        self.calls.append(('monthly', brand_id, year, month, tuple(kpi_ids)))
        return [r for r in self.monthly if r.get('kpi_id') in kpi_ids]

    def list_monthly_overrides(self, brand_id, year, month, kpi_ids):
        self.calls.append(('overrides', brand_id, year, month, tuple(kpi_ids)))
        return [r for r in self.overrides if r.get('kpi_id') in kpi_ids]

    def list_formula_expressions(self, kpi_ids):
        self.calls.append(('formulas', tuple(kpi_ids)))
        return [r for r in self.formulas if r.get('kpi_id') in kpi_ids]

    def list_cumulative_sources(self, kpi_ids):
        self.calls.append(('sources', tuple(kpi_ids)))
        return [r for r in self.sources if r.get('kpi_id') in kpi_ids]

    def list_targets(self, brand_id, year, month, kpi_ids):
        self.calls.append(('targets', brand_id, year, month, tuple(kpi_ids)))
        return [r for r in self.targets if r.get('kpi_id') in kpi_ids]

    def fetched(self, name):
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def fake_source():
    """
    Data source for brand 'b1' with one KPI of each kind.

    a: direct Adet, days 1-2 = 5, 7
    b: cumulative of a
    c: formula {{a}} * 2
    p: percentage a / d
    d: direct Adet, days 1-2 = 10, 10
    t: target formula [a] + [d]
    o: only cumulative, override 42
    """
    return FakeKpiDataSource(
        kpis={'b1': [
            {'id': 'a', 'name': 'Satış Adedi', 'unit': 'Adet'},
            {'id': 'b', 'name': 'Toplam Satış', 'unit': 'Adet', 'calculation_type': 'cumulative'},
            {'id': 'c', 'name': 'Çift Satış', 'unit': 'Adet', 'calculation_type': 'formula'},
            {'id': 'p', 'name': 'Dönüşüm', 'unit': '%', 'calculation_type': 'percentage',
             'numerator_kpi_id': 'a', 'denominator_kpi_id': 'd'},
            {'id': 'd', 'name': 'Ziyaret', 'kpi_unit': 'Adet'},
            {'id': 't', 'name': 'Hedef', 'unit': 'Adet', 'calculation_type': 'target',
             'target_formula_text': '[a] + [d]', 'target': 100},
            {'kpi': {'id': 'o', 'name': 'Memnuniyet', 'unit': 'Puan'}, 'only_cumulative': True},
        ]},
        daily=[
            {'kpi_id': 'a', 'day': 1, 'value': 5},
            {'kpi_id': 'a', 'report_date': '2025-03-02', 'value': '7'},
            {'kpi_id': 'd', 'day': 1, 'value': 10},
            {'kpi_id': 'd', 'day': 2, 'value': '10,0'},
        ],
        monthly=[
            {'kpi_id': 'a', 'month': 1, 'value': 10},
            {'kpi_id': 'a', 'month': 2, 'value': 20},
            {'kpi_id': 'a', 'month': 3, 'value': 30},
            {'kpi_id': 'a', 'month': 4, 'value': 99},
        ],
        overrides=[{'kpi_id': 'o', 'value': 42}],
        formulas=[{'kpi_id': 'c', 'expression': '{{a}} * 2'}],
        sources=[{'kpi_id': 'b', 'source_kpi_id': 'a'}],
        targets=[{'kpi_id': 'a', 'target': 10}],
    )


@pytest.fixture
def fake_source_class():
    """The FakeKpiDataSource class, for tests that build their own."""
    return FakeKpiDataSource


# ==============================================================================
# SNAPSHOT FIXTURES
# ==============================================================================

@pytest.fixture
def make_snapshot():
    """
    Factory for snapshots.

    Values are given as {kpi_id: {period: value}}, overrides as
    {kpi_id: {month: value}}.
    """
    def _make(kpis, values=None, cadence=Cadence.DAILY, month=3, overrides=None, targets=None):
        period_values = [
            PeriodValue(kpi_id, period, value)
            for kpi_id, by_period in (values or {}).items()
            for period, value in by_period.items()
        ]
        override_records = [
            CumulativeOverride(kpi_id, override_month, value)
            for kpi_id, by_month in (overrides or {}).items()
            for override_month, value in by_month.items()
        ]
        return KpiSnapshot.from_records(
            'b1', 2025, month, cadence, kpis,
            period_values=period_values,
            overrides=override_records,
            targets=targets or {},
        )
    return _make


@pytest.fixture
def direct_and_cumulative():
    """KPI A (direct) and KPI B (cumulative of A)."""
    return [
        Kpi('A', 'Satış', unit='Adet'),
        Kpi('B', 'Toplam', unit='Adet', calculation_kind=CalculationKind.CUMULATIVE,
            cumulative_source_ids=('A',)),
    ]


@pytest.fixture
def percentage_kpis():
    """Numerator N, denominator D and percentage P with unit '%'."""
    return [
        Kpi('N', 'Pay', unit='Adet'),
        Kpi('D', 'Payda', unit='Adet'),
        Kpi('P', 'Oran', unit='%', calculation_kind=CalculationKind.PERCENTAGE,
            numerator_kpi_id='N', denominator_kpi_id='D'),
    ]


@pytest.fixture
def average_kpi():
    """Direct KPI with an explicit average rollup."""
    return Kpi('AV', 'Süre', unit='Saat', ytd_calc=YtdCalc.AVERAGE)


# ==============================================================================
# UTILITY FIXTURES
# ==============================================================================

@pytest.fixture
def capture_logs():
    """Capture log output for testing."""
    import logging
    from io import StringIO

    log_capture = StringIO()
    handler = logging.StreamHandler(log_capture)
    handler.setLevel(logging.DEBUG)

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    previous_level = root_logger.level
    root_logger.setLevel(logging.DEBUG)

    yield log_capture

    root_logger.setLevel(previous_level)
    root_logger.removeHandler(handler)


@pytest.fixture
def reset_singletons():
    """Reset any singleton instances between tests."""
    try:
        from config_loader import ConfigLoader
        ConfigLoader._instance = None
        ConfigLoader._initialized = False
    except ImportError:
        pass

    yield

    try:
        from config_loader import ConfigLoader
        ConfigLoader._instance = None
        ConfigLoader._initialized = False
    except ImportError:
        pass
