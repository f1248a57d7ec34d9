#!/usr/bin/env python3
# Path: kpi_dash/main.py
"""
Brand KPI Dashboard (kpi_dash) - Main Entry Point

Computes the daily or monthly KPI overview of a brand from the value
store and prints it as a table.

Data Flow:
    INPUT:  KPI catalog, recorded values and targets (database)
    PROCESS: KPI computation engine (period, cumulative, attainment)
    OUTPUT: Console table

Usage:
    python main.py --list-brands                  # List brands
    python main.py --brand "Kuzey" --day 12       # Daily overview
    python main.py --brand "Kuzey" --monthly      # Monthly / YTD overview
    python main.py --brand "Kuzey" --year 2025 --month 3 --monthly
    python main.py --import samples/demo_catalog.yaml   # Load a catalog file

Prerequisites:
    - SQLite file (--db) or a configured database (KPI_DASH_DATABASE_URL)
"""

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

# Ensure kpi_dash root is in path
sys.path.insert(0, str(Path(__file__).parent))

from config_loader import ConfigLoader
from core.logger import setup_ipo_logging, get_input_logger
from database import (
    KpiOperations,
    SqlKpiDataSource,
    initialize_database,
    session_scope,
    sqlite_url,
)
from database.integration.catalog_import import CatalogImporter
from kpi_engine.dashboard_service import KpiDashboardService
from loaders.catalog_file import CatalogFileLoader
from output import render_rows
from constants import (
    STATUS_OK, STATUS_FAIL, STATUS_INFO,
    MENU_HEADER,
)


def print_banner() -> None:
    """Print application banner."""
    print()
    print(MENU_HEADER)
    print("  KPI_DASH - Brand KPI Dashboard")
    print("  Daily and Year-to-Date KPI Computation")
    print(MENU_HEADER)
    print()


def print_system_info(config: ConfigLoader, db_url: str) -> None:
    """
    Print system configuration information.

    Args:
        config: ConfigLoader instance
        db_url: Database URL in use
    """
    print(f"  Environment: {config.get('environment')}")
    print(f"  Database: {db_url}")
    print(f"  Logs: {config.get('log_dir')}")
    print()


def list_brands() -> None:
    """List all brands in the value store."""
    with session_scope() as session:
        brands = KpiOperations.list_brands(session)

        if not brands:
            print(f"\n{STATUS_INFO} No brands found.")
            return

        print(f"\n{STATUS_OK} Found {len(brands)} brands:\n")
        for i, brand in enumerate(brands, 1):
            kpi_count = len(brand.kpi_mappings)
            print(f"  {i:3d}  {brand.name:<40} {kpi_count:>4} KPIs  ({brand.brand_id})")
        print()


def import_catalog(catalog_path: Path) -> None:
    """
    Load a catalog file and write it to the value store.

    Raises:
        ValueError: If the file is missing or invalid
    """
    document = CatalogFileLoader().load_file(catalog_path)
    with session_scope() as session:
        counts = CatalogImporter(session).import_document(document)

    print(f"{STATUS_OK} Imported {catalog_path.name}:")
    for name, count in counts.to_dict().items():
        print(f"  {name:<16} {count:>6}")
    print()


def run_overview(config: ConfigLoader, logger, args: argparse.Namespace) -> int:
    """
    Compute and print one brand overview.

    Args:
        config: Configuration loader
        logger: Logger instance
        args: Parsed arguments

    Returns:
        Exit code (0 for success)

    Raises:
        ValueError: If the brand does not exist or the window is invalid
    """
    today = date.today()
    year = args.year or today.year
    month = args.month or today.month

    with session_scope() as session:
        brand = KpiOperations.find_brand(session, args.brand)
        if brand is None:
            raise ValueError(f"Brand not found: {args.brand}")

        service = KpiDashboardService(SqlKpiDataSource(session), config=config)

        if args.monthly:
            logger.info(f"Monthly overview {brand.name} {year}-{month:02d}")
            results = service.monthly_overview(brand.brand_id, year, month)
            title = f"{brand.name} | {year}-{month:02d} | month / year-to-date"
        else:
            day = args.day or (today.day if (year, month) == (today.year, today.month) else 1)
            logger.info(f"Daily overview {brand.name} {year}-{month:02d}-{day:02d}")
            results = service.daily_overview(brand.brand_id, year, month, day)
            title = f"{brand.name} | {year}-{month:02d}-{day:02d} | day / month-to-date"

        print(render_rows(
            results.values(),
            title=title,
            decimal_separator=config.get('decimal_separator'),
            placeholder=config.get('empty_placeholder'),
            show_warnings=args.warnings,
        ))

    failed = [r for r in results.values() if not r.valid]
    if failed:
        print(f"\n{STATUS_FAIL} {len(failed)} KPIs could not be computed")
        return 1
    return 0


def initialize_system(db_path: Optional[str] = None) -> tuple[ConfigLoader, str]:
    """
    Initialize kpi_dash system components.

    Args:
        db_path: SQLite file overriding the configured database

    Returns:
        Tuple of (ConfigLoader, database URL)
    """
    config = ConfigLoader()

    setup_ipo_logging(
        log_dir=config.get('log_dir'),
        log_level=config.get('log_level', 'INFO'),
        console_output=config.get('log_console', True) and not config.get('debug', False),
        max_bytes=config.get('log_max_size_mb') * 1024 * 1024,
        backup_count=config.get('log_backup_count'),
    )

    if db_path:
        db_url = sqlite_url(db_path)
    elif config.get('database_url'):
        db_url = config.get('database_url')
    else:
        db_url = sqlite_url(config.get('database_path'))

    initialize_database(db_url)
    return config, db_url


def build_parser() -> argparse.ArgumentParser:
    """Command line parser."""
    parser = argparse.ArgumentParser(
        description='kpi_dash - Brand KPI Dashboard',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --list-brands                 List brands
  python main.py --brand "Kuzey" --day 12      Daily overview for day 12
  python main.py --brand "Kuzey" --monthly     Year-to-date overview
  python main.py --import catalog.yaml         Import brands, KPIs and values
        """
    )

    parser.add_argument('--brand', '-b', type=str, help='Brand id or name')
    parser.add_argument('--year', '-y', type=int, help='Year (default: current)')
    parser.add_argument('--month', '-m', type=int, help='Month 1-12 (default: current)')
    parser.add_argument('--day', '-d', type=int, help='Day of month for the daily overview')
    parser.add_argument(
        '--monthly',
        action='store_true',
        help='Monthly overview with year-to-date figures'
    )
    parser.add_argument('--db', type=str, help='SQLite database file')
    parser.add_argument(
        '--import',
        dest='import_file',
        type=Path,
        help='Import a catalog YAML file before anything else'
    )
    parser.add_argument(
        '--list-brands', '-l',
        action='store_true',
        help='List all brands'
    )
    parser.add_argument(
        '--warnings', '-w',
        action='store_true',
        help='Show computation warnings under each KPI'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress banner and verbose output'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for kpi_dash.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not (args.list_brands or args.brand or args.import_file):
        parser.print_help()
        return 1

    if not args.quiet:
        print_banner()

    try:
        config, db_url = initialize_system(args.db)
        logger = get_input_logger('main')

        if not args.quiet:
            print_system_info(config, db_url)

        if args.import_file:
            import_catalog(args.import_file)
            if not args.brand:
                return 0

        if args.list_brands:
            list_brands()
            return 0

        return run_overview(config, logger, args)

    except ValueError as e:
        print(f"\n{STATUS_FAIL} {e}")
        get_input_logger('main').error(f"Error: {e}")
        return 1
    except RuntimeError as e:
        print(f"\n{STATUS_FAIL} Database error: {e}")
        get_input_logger('main').error(f"Database error: {e}")
        return 1
    except KeyboardInterrupt:
        print("\n[Interrupted]")
        return 130


if __name__ == '__main__':
    sys.exit(main())
