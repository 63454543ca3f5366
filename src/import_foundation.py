#!/usr/bin/env python3
"""
Import a USDA FoodData Central Foundation Foods JSON file into DuckDB.

Every run is a full refresh: the five nutrition tables are dropped and
recreated in the target schema, then the whole document is loaded inside a
single transaction.

    connect -> reset tables -> read JSON -> load (one transaction) -> commit

Foods, portions and nutrients are keyed by source ids and loaded with
INSERT OR IGNORE. Input foods and attributes are append logs; loading the same
document twice without a reset duplicates them.

Usage:
    python src/import_foundation.py
    python src/import_foundation.py path/to/foundation_food.json --schema nutrition
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path

import duckdb
import pandas as pd

from config import (
    LOG_FILENAME, get_db_path, get_importer_settings, get_log_dir, get_log_level,
    load_config, setup_logging,
)
from food_schema import check_identifier, reset_tables, schema_exists
from foundation_records import (
    ATTRIBUTE_COLUMNS, FOOD_COLUMNS, INPUT_FOOD_COLUMNS, NUTRIENT_COLUMNS, PORTION_COLUMNS,
    RecordError, attribute_row, child_records, food_row, input_food_row, nutrient_row,
    portion_row,
)
from validate import run_validation

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "nutrition"
DEFAULT_PROGRESS_EVERY = 100


class FoodImportError(Exception):
    """A fatal import failure; nothing from the load step was committed."""


class ConnectivityError(FoodImportError):
    pass


class SchemaSetupError(FoodImportError):
    pass


class SourceReadError(FoodImportError):
    pass


class LoadError(FoodImportError):
    pass


class ImportConfig:
    """Everything one import run needs. Built by the caller, never read from config files here."""

    def __init__(self, db_path, json_path, schema=DEFAULT_SCHEMA,
                 progress_every=DEFAULT_PROGRESS_EVERY):
        self.db_path = Path(db_path)
        self.json_path = Path(json_path)
        self.schema = schema
        self.progress_every = max(1, int(progress_every))

    @classmethod
    def from_settings(cls, db_path, settings):
        """Build from the dict returned by config.get_importer_settings()."""
        return cls(
            db_path=db_path,
            json_path=settings["json_path"],
            schema=settings["schema"],
            progress_every=settings["progress_every"],
        )

    def __repr__(self):
        return (f"ImportConfig(db_path={str(self.db_path)!r}, json_path={str(self.json_path)!r}, "
                f"schema={self.schema!r}, progress_every={self.progress_every})")


def connect(db_path):
    """Open the database and probe it. The file must already exist."""
    db_path = Path(db_path)
    if not db_path.exists():
        raise ConnectivityError(f"Database not found: {db_path} (run: python src/init_db.py)")

    try:
        conn = duckdb.connect(str(db_path))
    except duckdb.Error as e:
        raise ConnectivityError(f"Failed to open database {db_path}: {e}") from e

    try:
        conn.execute("SELECT 1").fetchone()
    except duckdb.Error as e:
        conn.close()
        raise ConnectivityError(f"Database {db_path} is not responding: {e}") from e

    logger.info("Database connection established: %s", db_path)
    return conn


def prepare_schema(conn, schema):
    """Check the schema exists, then drop and recreate the importer tables."""
    try:
        check_identifier(schema)
    except ValueError as e:
        raise SchemaSetupError(str(e)) from e

    try:
        if not schema_exists(conn, schema):
            raise SchemaSetupError(
                f"Schema '{schema}' does not exist (run: python src/init_db.py --schema {schema})"
            )
        logger.info("🔨 Recreating tables in schema '%s'", schema)
        reset_tables(conn, schema)
    except duckdb.Error as e:
        raise SchemaSetupError(f"Failed to create tables in schema '{schema}': {e}") from e

    logger.info("Tables created successfully")


def read_foundation_foods(json_path):
    """
    Read the whole JSON document and return its FoundationFoods list.

    A document without the key is treated as empty.
    """
    json_path = Path(json_path)
    logger.info("📖 Reading: %s", json_path)

    try:
        with open(json_path, encoding="utf-8") as f:
            document = json.load(f)
    except OSError as e:
        raise SourceReadError(f"Failed to read JSON file {json_path}: {e}") from e
    except ValueError as e:
        # JSONDecodeError, UnicodeDecodeError and integer literals past the digit limit
        raise SourceReadError(f"Failed to parse JSON file {json_path}: {e}") from e

    if not isinstance(document, dict):
        raise SourceReadError(f"{json_path}: top-level JSON value is not an object")

    foods = document.get("FoundationFoods")
    if foods is None:
        logger.warning("⚠️  No FoundationFoods key in %s", json_path)
        return []
    if not isinstance(foods, list):
        raise SourceReadError(f"{json_path}: FoundationFoods is not a list")

    return foods


def _collect_food(position, food, rows, counters):
    """Append one food record and its children to rows."""
    try:
        row = food_row(food)
        fdc_id = row[0]
        input_foods = child_records(food, "inputFoods")
        portions = child_records(food, "foodPortions")
        attributes = child_records(food, "foodAttributes")
        nutrients = child_records(food, "foodNutrients")
    except RecordError as e:
        label = food.get("fdcId") if isinstance(food, dict) else None
        logger.warning("Skipping food %s (record %d): %s", label, position, e)
        counters["skipped_foods"] += 1
        return

    rows["foods"].append(row)

    for entry in input_foods:
        try:
            rows["input_foods"].append(input_food_row(fdc_id, entry))
        except RecordError:
            continue

    for portion in portions:
        try:
            rows["food_portions"].append(portion_row(fdc_id, portion))
        except RecordError as e:
            portion_id = portion.get("id") if isinstance(portion, dict) else None
            logger.warning("Skipping portion %s for food %d: %s", portion_id, fdc_id, e)
            counters["skipped_portions"] += 1

    for attribute in attributes:
        counters["attributes"] += 1
        try:
            rows["food_attributes"].append(attribute_row(fdc_id, attribute))
        except RecordError:
            continue

    for entry in nutrients:
        try:
            rows["food_nutrients"].append(nutrient_row(fdc_id, entry))
        except RecordError as e:
            entry_id = entry.get("id") if isinstance(entry, dict) else None
            logger.warning("Skipping nutrient %s for food %d: %s", entry_id, fdc_id, e)
            counters["skipped_nutrients"] += 1


def collect_rows(foods, progress_every=DEFAULT_PROGRESS_EVERY):
    """
    Convert food records into per-table row lists, in source order.

    Within a food the order is input foods, portions, attributes, nutrients.
    A bad food drops its whole subtree; a bad portion or nutrient drops that
    row only. Bad input foods and attributes are dropped without a log line.

    Returns:
        tuple: (rows by table name, counters for attributes and skips)
    """
    rows = {
        "foods": [],
        "input_foods": [],
        "food_portions": [],
        "food_attributes": [],
        "food_nutrients": [],
    }
    counters = {
        "attributes": 0,
        "skipped_foods": 0,
        "skipped_portions": 0,
        "skipped_nutrients": 0,
    }
    total = len(foods)

    for position, food in enumerate(foods, start=1):
        _collect_food(position, food, rows, counters)
        if position % progress_every == 0 or position == total:
            logger.info("Processed %d/%d foods", position, total)

    return rows, counters


def _insert_rows(conn, schema, table, columns, rows, key=None):
    """
    Bulk insert rows through a DataFrame.

    With a key, duplicate keys inside the batch keep the first row and rows
    already in the table are ignored. Without a key the rows are appended.

    Returns:
        int: Number of rows added to the table
    """
    df_rows = pd.DataFrame(rows, columns=columns)
    if key:
        df_rows = df_rows.drop_duplicates(subset=[key], keep="first")
    if df_rows.empty:
        return 0

    column_list = ", ".join(columns)
    verb = "INSERT OR IGNORE INTO" if key else "INSERT INTO"

    rows_before = conn.execute(f"SELECT COUNT(*) FROM {schema}.{table}").fetchone()[0]
    conn.execute(f"""
        {verb} {schema}.{table} ({column_list})
        SELECT {column_list}
        FROM df_rows
    """)
    rows_after = conn.execute(f"SELECT COUNT(*) FROM {schema}.{table}").fetchone()[0]

    return rows_after - rows_before


def load_foods(conn, schema, foods, progress_every=DEFAULT_PROGRESS_EVERY):
    """
    Load parsed food records into existing tables inside one transaction.

    Does not reset the tables, so it can be run again over the same data.
    Any database error rolls the whole load back.

    Returns:
        dict: foods, input_foods, portions, attributes, nutrients added, plus
        skipped_foods, skipped_portions, skipped_nutrients
    """
    check_identifier(schema)
    logger.info("Found %d foods to import", len(foods))

    rows, counters = collect_rows(foods, progress_every)

    stats = dict(counters)

    conn.begin()
    try:
        # foods first: every child row references a food in this batch
        stats["foods"] = _insert_rows(conn, schema, "foods", FOOD_COLUMNS,
                                      rows["foods"], key="fdc_id")
        stats["input_foods"] = _insert_rows(conn, schema, "input_foods", INPUT_FOOD_COLUMNS,
                                            rows["input_foods"])
        stats["portions"] = _insert_rows(conn, schema, "food_portions", PORTION_COLUMNS,
                                         rows["food_portions"], key="id")
        # attributes are counted per entry seen in collect_rows, not per row written
        _insert_rows(conn, schema, "food_attributes", ATTRIBUTE_COLUMNS, rows["food_attributes"])
        stats["nutrients"] = _insert_rows(conn, schema, "food_nutrients", NUTRIENT_COLUMNS,
                                          rows["food_nutrients"], key="id")
        conn.commit()
    except duckdb.Error as e:
        conn.rollback()
        raise LoadError(f"Import transaction rolled back: {e}") from e

    for table in ("foods", "input_foods", "portions", "nutrients"):
        logger.info("Loaded %s: %d rows", table, stats[table])

    return stats


def log_summary(stats):
    logger.info("Import completed successfully:")
    logger.info("  Foods: %d", stats["foods"])
    logger.info("  Input foods: %d", stats["input_foods"])
    logger.info("  Portions: %d", stats["portions"])
    logger.info("  Attributes: %d", stats["attributes"])
    logger.info("  Nutrients: %d", stats["nutrients"])
    if stats["skipped_foods"] or stats["skipped_portions"] or stats["skipped_nutrients"]:
        logger.info("  Skipped: %d foods, %d portions, %d nutrients",
                    stats["skipped_foods"], stats["skipped_portions"], stats["skipped_nutrients"])
    logger.info("Import completed in %.2fs", stats["elapsed_seconds"])


def run_import(config):
    """
    Replace the nutrition dataset with the contents of config.json_path.

    Args:
        config: ImportConfig

    Returns:
        dict: Load counters plus elapsed_seconds

    Raises:
        ConnectivityError, SchemaSetupError, SourceReadError, LoadError
    """
    start = time.time()
    logger.info("🚀 Starting USDA food import: %r", config)

    conn = connect(config.db_path)
    try:
        prepare_schema(conn, config.schema)
        foods = read_foundation_foods(config.json_path)
        stats = load_foods(conn, config.schema, foods, config.progress_every)
    finally:
        conn.close()

    stats["elapsed_seconds"] = time.time() - start
    log_summary(stats)
    return stats


def print_summary(stats):
    """Print summary of import run."""
    print("\n" + "="*60)
    print("📊 IMPORT SUMMARY")
    print("="*60)
    print(f"Foods:                 {stats['foods']}")
    print(f"Input foods:           {stats['input_foods']}")
    print(f"Portions:              {stats['portions']}")
    print(f"Attributes:            {stats['attributes']}")
    print(f"Nutrients:             {stats['nutrients']}")
    print(f"Skipped foods:         {stats['skipped_foods']}")
    print(f"Skipped portions:      {stats['skipped_portions']}")
    print(f"Skipped nutrients:     {stats['skipped_nutrients']}")
    print(f"Elapsed:               {stats['elapsed_seconds']:.2f}s")
    print("="*60)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Import USDA Foundation Foods JSON into DuckDB")
    parser.add_argument("json_path", nargs="?", help="Foundation Foods JSON file (default: importer.json_path)")
    parser.add_argument("--schema", help="Target schema (default: importer.schema)")
    parser.add_argument("--db", help="DuckDB database file (default: data.db_path)")
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--no-validate", action="store_true",
                        help="Skip data quality checks after the import")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"❌ {e}")
        return 1

    setup_logging(get_log_level(config), get_log_dir(config) / LOG_FILENAME)

    settings = get_importer_settings(config)
    if args.json_path:
        settings["json_path"] = Path(args.json_path)
    if args.schema:
        settings["schema"] = args.schema
    db_path = Path(args.db) if args.db else get_db_path(config)

    import_config = ImportConfig.from_settings(db_path, settings)

    try:
        stats = run_import(import_config)
    except FoodImportError as e:
        print(f"❌ Import failed: {e}")
        return 1

    print_summary(stats)

    if not args.no_validate:
        print("\n⚙️  Running data quality checks...")
        report = run_validation(import_config.db_path, import_config.schema)
        if report:
            report.print_report(verbose=False)

    return 0


if __name__ == "__main__":
    sys.exit(main())
