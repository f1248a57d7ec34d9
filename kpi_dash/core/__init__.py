# Path: kpi_dash/core/__init__.py
"""
kpi_dash Core Package

Core utilities for the Brand KPI Dashboard.

Submodules:
    - logger: IPO-aware logging system
    - cache: Key-value cache used by the dashboard service
"""

from .cache import KeyValueCache, InMemoryCache, NullCache, build_cache

__all__ = [
    'KeyValueCache',
    'InMemoryCache',
    'NullCache',
    'build_cache',
]
