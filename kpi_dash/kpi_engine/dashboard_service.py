# Path: kpi_dash/kpi_engine/dashboard_service.py
"""
Dashboard Service

Composition root for the dashboard views: builds snapshots from a data
source, runs the engine and memoizes the results in an injected cache.

Import it from kpi_engine.dashboard_service; the package namespace does
not re-export it (it imports loaders, which imports the engine models).
"""

import copy
from typing import Dict, Iterable, Optional

from config_loader import ConfigLoader
from constants import DEFAULT_MAX_FORMULA_DEPTH, MAX_DAY, MAX_MONTH
from core.cache import KeyValueCache, build_cache
from core.logger.ipo_logging import get_process_logger
from loaders.snapshot_builder import KpiDataSource, SnapshotBuilder

from .kpi_engine import compute_kpi_values
from .kpi_models import ComputedKpi


Overview = Dict[str, ComputedKpi]


class KpiDashboardService:
    """
    Daily and monthly KPI overviews for one or more brands.

    Example:
        service = KpiDashboardService(SqlKpiDataSource(session))
        daily = service.daily_overview('brand-1', 2025, 3, day=12)
        monthly = service.monthly_overview('brand-1', 2025, 3)
        for kpi_id, row in monthly.items():
            print(row.name, row.cumulative_value, row.attainment_pct)
    """

    def __init__(
        self,
        source: KpiDataSource,
        cache: Optional[KeyValueCache] = None,
        config: Optional[ConfigLoader] = None,
    ):
        """
        Initialize dashboard service.

        Args:
            source: KPI data source
            cache: Result cache; built from configuration when omitted
            config: ConfigLoader instance (uses singleton if not provided)
        """
        self.config = config or ConfigLoader()
        self.cache = cache if cache is not None else build_cache(self.config)
        self.builder = SnapshotBuilder(source)
        self.max_depth = self.config.get('max_formula_depth', DEFAULT_MAX_FORMULA_DEPTH)
        self.logger = get_process_logger('dashboard_service')

    def daily_overview(self, brand_id: str, year: int, month: int, day: int) -> Overview:
        """
        Day figure and month-to-date figure of every brand KPI.

        Raises:
            ValueError: If month or day is out of range
        """
        self._check_month(month)
        if not 1 <= day <= MAX_DAY:
            raise ValueError(f"Day must be between 1 and {MAX_DAY}, got {day}")

        key = f"daily:{brand_id}:{year}:{month}:{day}"
        cached = self._cached(key)
        if cached is not None:
            return cached

        snapshot = self.builder.build_daily(brand_id, year, month)
        results = compute_kpi_values(snapshot, day, max_depth=self.max_depth)
        self._remember(key, results)
        return results

    def monthly_overview(self, brand_id: str, year: int, month: int) -> Overview:
        """
        Month figure and year-to-date figure of every brand KPI.

        Raises:
            ValueError: If month is out of range
        """
        self._check_month(month)

        key = f"monthly:{brand_id}:{year}:{month}"
        cached = self._cached(key)
        if cached is not None:
            return cached

        snapshot = self.builder.build_monthly(brand_id, year, month)
        results = compute_kpi_values(snapshot, month, max_depth=self.max_depth)
        self._remember(key, results)
        return results

    def overview_for_brands(
        self,
        brand_ids: Iterable[str],
        year: int,
        month: int,
        day: Optional[int] = None,
    ) -> Dict[str, Overview]:
        """
        Overviews for several brands.

        Daily when day is given, monthly otherwise. A brand whose fetch
        fails gets an empty overview; the others still compute.
        """
        self._check_month(month)
        if day is not None and not 1 <= day <= MAX_DAY:
            raise ValueError(f"Day must be between 1 and {MAX_DAY}, got {day}")

        overviews: Dict[str, Overview] = {}
        for brand_id in brand_ids:
            try:
                if day is None:
                    overviews[brand_id] = self.monthly_overview(brand_id, year, month)
                else:
                    overviews[brand_id] = self.daily_overview(brand_id, year, month, day)
            except Exception as e:
                self.logger.error(f"Overview for brand {brand_id} failed: {e}")
                overviews[brand_id] = {}
        return overviews

    def invalidate(self) -> None:
        """Drop memoized results (call after any value is saved)."""
        self.cache.clear()
        self.logger.info("Dashboard cache cleared")

    def _cached(self, key: str) -> Optional[Overview]:
        """Copy of a memoized overview, so callers can edit rows freely."""
        cached = self.cache.get(key)
        if cached is None:
            return None
        self.logger.debug(f"Cache hit {key}")
        return copy.deepcopy(cached)

    def _remember(self, key: str, results: Overview) -> None:
        self.cache.set(key, copy.deepcopy(results))

    @staticmethod
    def _check_month(month: int) -> None:
        if not 1 <= month <= MAX_MONTH:
            raise ValueError(f"Month must be between 1 and {MAX_MONTH}, got {month}")


__all__ = ['KpiDashboardService']
