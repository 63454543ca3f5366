#!/usr/bin/env python3
"""
Initialize the nutrition database.

Creates the DuckDB file and the schema the importer loads into. Tables are not
created here: every import run drops and recreates them.

Usage:
    python src/init_db.py
    python src/init_db.py --schema nutrition
"""

import argparse
import duckdb
import sys
from pathlib import Path
from config import get_db_path, get_importer_settings, load_config
from food_schema import check_identifier, schema_exists


def init_database(db_path, schema="nutrition"):
    """Create database and schema if they don't exist."""

    db_path = Path(db_path)
    check_identifier(schema)

    # Ensure data directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    # Connect to database (creates file if doesn't exist)
    conn = duckdb.connect(str(db_path))

    try:
        conn.execute(f"CREATE SCHEMA IF NOT EXISTS {schema}")

        if not schema_exists(conn, schema):
            print(f"⚠️  Warning: schema not found after creation: {schema}")
            return False

        print(f"✅ Database initialized: {db_path}")
        print(f"✅ Schema ready: {schema}")
        return True

    except duckdb.Error as e:
        print(f"❌ Error initializing database: {e}")
        return False

    finally:
        conn.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create the nutrition database and schema")
    parser.add_argument("--schema", help="Schema to create (default: importer.schema)")
    parser.add_argument("--config", help="Path to config.yaml")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    schema = args.schema or get_importer_settings(config)["schema"]

    success = init_database(get_db_path(config), schema)
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
