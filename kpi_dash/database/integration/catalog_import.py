# Path: kpi_dash/database/integration/catalog_import.py
"""
Catalog Import

Writes a validated CatalogDocument into the value store. Re-importing the
same document changes nothing: brands are matched by name, KPIs by id and
values are upserts.

Example:
    document = CatalogFileLoader().load_file(path)
    with session_scope() as session:
        counts = CatalogImporter(session).import_document(document)
"""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from constants import CalculationKind
from database.models.kpi_catalog import KpiDefinition
from database.operations.kpi_ops import KpiOperations
from database.operations.report_ops import ReportOperations
from loaders.catalog_file import CatalogDocument, CatalogKpi


logger = logging.getLogger(__name__)


@dataclass
class ImportCounts:
    """Rows written by one import."""
    brands: int = 0
    kpis: int = 0
    assignments: int = 0
    daily_values: int = 0
    monthly_values: int = 0
    targets: int = 0

    def to_dict(self) -> dict:
        return {
            'brands': self.brands,
            'kpis': self.kpis,
            'assignments': self.assignments,
            'daily_values': self.daily_values,
            'monthly_values': self.monthly_values,
            'targets': self.targets,
        }


class CatalogImporter:
    """
    Imports catalog documents through KpiOperations and ReportOperations.

    The caller owns the transaction (session_scope commits on exit).
    """

    def __init__(self, session: Session):
        self.session = session

    def import_document(self, document: CatalogDocument) -> ImportCounts:
        """
        Import every section of a catalog document.

        Returns:
            ImportCounts of rows created or updated
        """
        counts = ImportCounts()

        brand_ids = {}
        for brand in document.brands:
            existing = KpiOperations.find_brand(self.session, brand.name)
            if existing is None:
                existing = KpiOperations.create_brand(self.session, brand.name)
                counts.brands += 1
            brand_ids[brand.name] = existing.brand_id

        for entry in document.kpis:
            self._import_kpi(entry)
            counts.kpis += 1

        for brand in document.brands:
            for position, kpi_id in enumerate(brand.kpis):
                KpiOperations.assign_to_brand(
                    self.session, brand_ids[brand.name], kpi_id, sort_order=position
                )
                counts.assignments += 1

        for entry in document.daily_values:
            ReportOperations.record_daily_value(
                self.session, brand_ids[entry.brand], entry.kpi, entry.date, entry.value
            )
            counts.daily_values += 1

        for entry in document.monthly_values:
            ReportOperations.record_monthly_value(
                self.session, brand_ids[entry.brand], entry.kpi,
                entry.year, entry.month, entry.value
            )
            counts.monthly_values += 1

        for entry in document.targets:
            ReportOperations.set_target(
                self.session, brand_ids[entry.brand], entry.kpi,
                entry.year, entry.month, entry.target
            )
            counts.targets += 1

        logger.info(f"Imported catalog: {counts.to_dict()}")
        return counts

    def _import_kpi(self, entry: CatalogKpi) -> KpiDefinition:
        fields = {
            'name': entry.name.strip(),
            'unit': entry.unit,
            'calculation_type': entry.calculation_type.value,
            'category': entry.category,
            'only_cumulative': entry.only_cumulative,
            'numerator_kpi_id': entry.numerator_kpi_id,
            'denominator_kpi_id': entry.denominator_kpi_id,
            'ytd_calc': entry.ytd_calc,
            'target': entry.target,
            'target_formula_text': entry.target_formula,
        }

        kpi = KpiOperations.find_by_id(self.session, entry.id)
        if kpi is None:
            kpi = KpiOperations.create_kpi(self.session, kpi_id=entry.id, **fields)
        else:
            for key, value in fields.items():
                setattr(kpi, key, value)
            self.session.flush()
            logger.debug(f"Updated KPI: {kpi.name}")

        if entry.calculation_type is CalculationKind.FORMULA:
            KpiOperations.set_formula(self.session, entry.id, entry.formula)
        if entry.calculation_type is CalculationKind.CUMULATIVE:
            KpiOperations.set_cumulative_sources(self.session, entry.id, entry.cumulative_sources)
        return kpi


__all__ = ['ImportCounts', 'CatalogImporter']
