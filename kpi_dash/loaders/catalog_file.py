# Path: kpi_dash/loaders/catalog_file.py
"""
Catalog File

Pydantic models and a YAML loader for catalog documents: brands, KPI
definitions, brand assignments, recorded values and targets in one file.
Used to seed or update a value store from the command line.

Example document:

    brands:
      - name: Kuzey Otomotiv
        kpis: [sales, visits, conversion]
    kpis:
      - id: sales
        name: Satış Adedi
        unit: Adet
        category: Satış
      - id: conversion
        name: Dönüşüm
        unit: '%'
        calculation_type: percentage
        numerator_kpi_id: sales
        denominator_kpi_id: visits
    daily_values:
      - {brand: Kuzey Otomotiv, kpi: sales, date: 2025-03-01, value: 5}
"""

import datetime
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from constants import CalculationKind, MAX_MONTH
from core.logger.ipo_logging import get_input_logger

from .row_normalizer import parse_ytd_calc


# =============================================================================
# CATALOG ENTRIES
# =============================================================================

class CatalogKpi(BaseModel):
    """One KPI definition."""
    id: str = Field(min_length=1, max_length=36, description="Stable KPI id")
    name: str = Field(min_length=2, max_length=100, description="Display name")
    unit: str = Field(default='', max_length=20, description="Unit label")
    category: Optional[str] = Field(default=None, max_length=50)
    calculation_type: CalculationKind = Field(default=CalculationKind.DIRECT)
    only_cumulative: bool = False
    numerator_kpi_id: Optional[str] = None
    denominator_kpi_id: Optional[str] = None
    cumulative_sources: list[str] = Field(default_factory=list)
    formula: Optional[str] = Field(default=None, description="Formula kind expression")
    ytd_calc: Optional[str] = Field(default=None, description="sum / toplam / average / ortalama")
    target: Optional[float] = Field(default=None, ge=0)
    target_formula: Optional[str] = Field(default=None, description="Target kind formula")

    @model_validator(mode='after')
    def check_kind_fields(self) -> 'CatalogKpi':
        kind = self.calculation_type
        if kind is CalculationKind.PERCENTAGE and not (
            self.numerator_kpi_id and self.denominator_kpi_id
        ):
            raise ValueError(f"percentage KPI '{self.id}' needs numerator and denominator")
        if kind is CalculationKind.FORMULA and not (self.formula or '').strip():
            raise ValueError(f"formula KPI '{self.id}' needs a formula")
        if kind is CalculationKind.CUMULATIVE and not self.cumulative_sources:
            raise ValueError(f"cumulative KPI '{self.id}' needs cumulative_sources")
        if self.ytd_calc is not None and parse_ytd_calc(self.ytd_calc) is None:
            raise ValueError(f"KPI '{self.id}' has unknown ytd_calc '{self.ytd_calc}'")
        return self


class CatalogBrand(BaseModel):
    """A brand and the KPIs it tracks, in display order."""
    name: str = Field(min_length=2, max_length=100)
    kpis: list[str] = Field(default_factory=list)


class DailyEntry(BaseModel):
    """Value of a KPI on one day."""
    brand: str
    kpi: str
    date: datetime.date
    value: float = Field(ge=0)


class MonthlyEntry(BaseModel):
    """Value of a KPI for one month (the override of only-cumulative KPIs)."""
    brand: str
    kpi: str
    year: int = Field(ge=1900, le=2100)
    month: int = Field(ge=1, le=MAX_MONTH)
    value: float = Field(ge=0)


class TargetEntry(BaseModel):
    """Monthly target of a KPI."""
    brand: str
    kpi: str
    year: int = Field(ge=1900, le=2100)
    month: int = Field(ge=1, le=MAX_MONTH)
    target: float = Field(ge=0)


class CatalogDocument(BaseModel):
    """Whole catalog file."""
    brands: list[CatalogBrand] = Field(default_factory=list)
    kpis: list[CatalogKpi] = Field(default_factory=list)
    daily_values: list[DailyEntry] = Field(default_factory=list)
    monthly_values: list[MonthlyEntry] = Field(default_factory=list)
    targets: list[TargetEntry] = Field(default_factory=list)

    @model_validator(mode='after')
    def check_references(self) -> 'CatalogDocument':
        kpi_ids = {kpi.id for kpi in self.kpis}
        if len(kpi_ids) != len(self.kpis):
            raise ValueError("duplicate KPI ids")

        for brand in self.brands:
            unknown = [k for k in brand.kpis if k not in kpi_ids]
            if unknown:
                raise ValueError(f"brand '{brand.name}' lists unknown KPIs: {unknown}")

        brand_names = {brand.name for brand in self.brands}
        for entry in [*self.daily_values, *self.monthly_values, *self.targets]:
            if entry.kpi not in kpi_ids:
                raise ValueError(f"value for unknown KPI '{entry.kpi}'")
            if entry.brand not in brand_names:
                raise ValueError(f"value for unknown brand '{entry.brand}'")
        return self


# =============================================================================
# LOADER
# =============================================================================

class CatalogFileLoader:
    """
    Loads catalog documents from YAML.

    Example:
        document = CatalogFileLoader().load_file(Path('demo_catalog.yaml'))
        print(len(document.kpis))
    """

    def __init__(self):
        self.logger = get_input_logger('catalog_file')

    def load_file(self, file_path: Path) -> CatalogDocument:
        """
        Load and validate a catalog file.

        Raises:
            ValueError: If the file is missing, not YAML or fails validation
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise ValueError(f"Catalog file not found: {file_path}")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"YAML parse error in {file_path}: {e}") from e

        document = self.parse(data or {})
        self.logger.info(
            f"Loaded catalog {file_path.name}: {len(document.brands)} brands, "
            f"{len(document.kpis)} KPIs, "
            f"{len(document.daily_values) + len(document.monthly_values)} values"
        )
        return document

    def parse(self, data: dict) -> CatalogDocument:
        """
        Validate already-parsed data.

        Raises:
            ValueError: With pydantic's error summary on invalid data
        """
        try:
            return CatalogDocument.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid catalog: {e}") from e


__all__ = [
    'CatalogKpi',
    'CatalogBrand',
    'DailyEntry',
    'MonthlyEntry',
    'TargetEntry',
    'CatalogDocument',
    'CatalogFileLoader',
]
