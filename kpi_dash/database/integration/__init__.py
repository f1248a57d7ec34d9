# Path: kpi_dash/database/integration/__init__.py
"""
Database Integration Layer

Connects the snapshot builder and the catalog loader with database storage.

Components:
    - sql_data_source: SqlKpiDataSource, the engine-facing fetch interface
    - catalog_import: CatalogImporter (import from
      database.integration.catalog_import directly)
"""

from database.integration.sql_data_source import SqlKpiDataSource

__all__ = ['SqlKpiDataSource']
