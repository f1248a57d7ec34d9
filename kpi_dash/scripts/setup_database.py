#!/usr/bin/env python3
# Path: kpi_dash/scripts/setup_database.py
"""
Database Setup Script

Creates the PostgreSQL database and tables for kpi_dash, and optionally
seeds it from a catalog file.

Usage:
    python scripts/setup_database.py
    python scripts/setup_database.py --seed samples/demo_catalog.yaml

Prerequisites:
    1. PostgreSQL is running
    2. KPI_DASH_DB_USER / KPI_DASH_DB_PASSWORD are set in .env
    3. The user has permission to create databases

The script will:
    1. Create the kpi_dash_db database (if not exists)
    2. Create all tables (brands, kpis, reports, targets)
    3. Verify the connection works
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging

from sqlalchemy.exc import SQLAlchemyError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_database_if_not_exists(config) -> bool:
    """Create the configured database if it doesn't exist."""
    import psycopg2
    from psycopg2 import sql

    host = config.get('db_host', 'localhost')
    port = config.get('db_port', 5432)
    db_name = config.get('db_name', 'kpi_dash_db')

    try:
        # Connect to default 'postgres' database to create ours
        logger.info(f"Connecting to PostgreSQL at {host}:{port}...")
        conn = psycopg2.connect(
            host=host,
            port=port,
            user=config.get('db_user'),
            password=config.get('db_password'),
            database='postgres'
        )
        conn.autocommit = True
        cursor = conn.cursor()

        cursor.execute(
            "SELECT 1 FROM pg_database WHERE datname = %s",
            (db_name,)
        )
        if cursor.fetchone():
            logger.info(f"Database '{db_name}' already exists")
        else:
            logger.info(f"Creating database '{db_name}'...")
            cursor.execute(
                sql.SQL("CREATE DATABASE {}").format(sql.Identifier(db_name))
            )
            logger.info(f"Database '{db_name}' created successfully")

        cursor.close()
        conn.close()
        return True

    except psycopg2.Error as e:
        logger.error(f"Failed to create database: {e}")
        return False


def create_tables(db_url: str) -> bool:
    """Create all database tables."""
    from database import initialize_database, get_connection_info

    try:
        logger.info("Initializing database engine...")
        initialize_database(db_url)

        info = get_connection_info()
        logger.info(f"Connected to: {info['type']} ({info['url']})")
        logger.info("Database tables created successfully")
        return True

    except SQLAlchemyError as e:
        logger.error(f"Failed to create tables: {e}")
        return False


def verify_connection() -> bool:
    """Verify we can query the database."""
    from database import session_scope, Brand

    try:
        with session_scope() as session:
            count = session.query(Brand).count()
            logger.info(f"Connection verified. Current brands in database: {count}")
        return True

    except (SQLAlchemyError, RuntimeError) as e:
        logger.error(f"Failed to verify connection: {e}")
        return False


def seed_catalog(catalog_path: Path) -> bool:
    """Import a catalog file into the fresh database."""
    from database import session_scope
    from database.integration.catalog_import import CatalogImporter
    from loaders.catalog_file import CatalogFileLoader

    try:
        document = CatalogFileLoader().load_file(catalog_path)
        with session_scope() as session:
            counts = CatalogImporter(session).import_document(document)
        logger.info(f"Seeded from {catalog_path.name}: {counts.to_dict()}")
        return True

    except (ValueError, SQLAlchemyError, RuntimeError) as e:
        logger.error(f"Failed to seed catalog: {e}")
        return False


def main() -> int:
    """Run setup."""
    parser = argparse.ArgumentParser(description='Create the kpi_dash database')
    parser.add_argument('--seed', type=Path, help='Catalog YAML file to import')
    args = parser.parse_args()

    from config_loader import ConfigLoader
    config = ConfigLoader()

    print("=" * 60)
    print("kpi_dash Database Setup")
    print("=" * 60)
    print()

    print("Step 1: Creating database...")
    if not create_database_if_not_exists(config):
        print("  FAILED - Check PostgreSQL is running and credentials are correct")
        return 1
    print("  OK")
    print()

    print("Step 2: Creating tables...")
    if not create_tables(config.get_db_connection_string()):
        print("  FAILED - Check database permissions")
        return 1
    print("  OK")
    print()

    print("Step 3: Verifying connection...")
    if not verify_connection():
        print("  FAILED - Check logs for details")
        return 1
    print("  OK")
    print()

    if args.seed:
        print(f"Step 4: Importing {args.seed}...")
        if not seed_catalog(args.seed):
            print("  FAILED - Check the catalog file")
            return 1
        print("  OK")
        print()

    print("=" * 60)
    print("Database setup complete!")
    print("=" * 60)
    return 0


if __name__ == '__main__':
    sys.exit(main())
