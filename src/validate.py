#!/usr/bin/env python3
"""
Data quality validation for the imported FoodData Central tables.

Runs read-only checks after an import and prints warnings for issues that need
attention: an empty dataset (failed or interrupted import), child rows without
a parent food, foods without nutrients, and duplicated append-log rows left by
loading the same data twice without a schema reset.

Usage:
    python src/validate.py
    python src/validate.py --verbose --schema nutrition
"""

import argparse
import duckdb
import sys
from pathlib import Path
from config import get_db_path, get_importer_settings, load_config
from food_schema import check_identifier, missing_tables, schema_exists, table_counts

CHILD_TABLES = ["input_foods", "food_portions", "food_attributes", "food_nutrients"]

# Columns that identify a duplicated row in each append-only table
APPEND_LOG_KEYS = {
    "input_foods": "fdc_id, src_name, src_id, src_table, src_date",
    "food_attributes": "fdc_id, seq_num, name, value, unit, data_type, derivation_id",
}

SAMPLE_LIMIT = 3


class ValidationReport:
    """Findings for one schema, with the row counts they were taken on."""

    def __init__(self, schema):
        self.schema = schema
        self.row_counts = {}
        self.checks = []
        self.warnings = []
        self.info = []

    def add_warning(self, message):
        self.warnings.append(message)

    def add_info(self, message):
        self.info.append(message)

    def has_issues(self):
        return bool(self.warnings)

    def print_report(self, verbose=False):
        print("\n" + "="*60)
        print(f"🔍 DATA QUALITY VALIDATION ({self.schema})")
        print("="*60)

        if self.row_counts:
            print("\n📦 Rows:")
            for table, count in self.row_counts.items():
                print(f"   {table:<18}{count:>10}")

        if verbose and self.info:
            print("\n📋 Info:")
            for msg in self.info:
                print(f"   ℹ️  {msg}")

        if self.warnings:
            print(f"\n⚠️  {len(self.warnings)} warning(s) from {len(self.checks)} check(s):")
            for msg in self.warnings:
                print(f"   ⚠️  {msg}")
        elif self.checks:
            print(f"\n✅ {len(self.checks)} checks passed: {', '.join(self.checks)}")
        else:
            print("\n⚠️  No checks ran")

        print("="*60)


def validate_not_empty(conn, schema, report):
    """An empty foods table means the last import failed after the reset."""
    count = conn.execute(f"SELECT COUNT(*) FROM {schema}.foods").fetchone()[0]
    if count == 0:
        report.add_warning("No foods found: the last import failed or is still running")
        return False
    report.add_info(f"{count} foods in {schema}.foods")
    return True


def validate_no_orphans(conn, schema, report):
    """Every child row must point at an existing food."""
    for table in CHILD_TABLES:
        orphans = conn.execute(f"""
            SELECT COUNT(*)
            FROM {schema}.{table} c
            LEFT JOIN {schema}.foods f ON f.fdc_id = c.fdc_id
            WHERE f.fdc_id IS NULL
        """).fetchone()[0]
        if orphans:
            report.add_warning(f"{table}: {orphans} row(s) without a matching food")
        else:
            report.add_info(f"{table}: all rows reference a food")


def validate_nutrient_coverage(conn, schema, report):
    """Foods without nutrients are searchable but useless to the lookup API."""
    missing = conn.execute(f"""
        SELECT f.fdc_id, f.description
        FROM {schema}.foods f
        WHERE NOT EXISTS (
            SELECT 1 FROM {schema}.food_nutrients n WHERE n.fdc_id = f.fdc_id
        )
        ORDER BY f.fdc_id
    """).fetchall()

    if missing:
        report.add_warning(f"Found {len(missing)} food(s) without nutrients")
        for fdc_id, description in missing[:SAMPLE_LIMIT]:
            report.add_warning(f"  {fdc_id}: {description}")
        if len(missing) > SAMPLE_LIMIT:
            report.add_warning(f"  ... and {len(missing) - SAMPLE_LIMIT} more")
    else:
        report.add_info("Every food has at least one nutrient")


def detect_append_log_duplicates(conn, schema, report):
    """Duplicates in append-only tables mean the load ran twice without a reset."""
    for table, key in APPEND_LOG_KEYS.items():
        duplicates = conn.execute(f"""
            SELECT COALESCE(SUM(n - 1), 0)
            FROM (
                SELECT COUNT(*) AS n
                FROM {schema}.{table}
                GROUP BY {key}
                HAVING COUNT(*) > 1
            )
        """).fetchone()[0]
        if duplicates:
            report.add_warning(
                f"{table}: {duplicates} duplicated row(s), re-import with a schema reset"
            )
        else:
            report.add_info(f"{table}: no duplicated rows")


# Run only when the dataset is not empty
DATASET_CHECKS = [
    ("orphans", validate_no_orphans),
    ("nutrient_coverage", validate_nutrient_coverage),
    ("append_log_duplicates", detect_append_log_duplicates),
]


def run_validation(db_path, schema="nutrition"):
    """
    Run all validation checks.

    Args:
        db_path: Path to the DuckDB database
        schema: Schema holding the imported tables

    Returns:
        ValidationReport: Report object with findings, or None when the
        database or schema is missing
    """
    db_path = Path(db_path)
    check_identifier(schema)

    if not db_path.exists():
        print(f"❌ Database not found: {db_path}")
        return None

    conn = duckdb.connect(str(db_path), read_only=True)
    report = ValidationReport(schema)

    try:
        if not schema_exists(conn, schema):
            print(f"❌ Schema not found: {schema}")
            return None

        missing = missing_tables(conn, schema)
        if missing:
            report.add_warning(f"Missing tables in {schema}: {', '.join(missing)} (run the import)")
            return report

        report.row_counts = table_counts(conn, schema)
        report.checks.append("not_empty")
        if validate_not_empty(conn, schema, report):
            for name, check in DATASET_CHECKS:
                check(conn, schema, report)
                report.checks.append(name)

    finally:
        conn.close()

    return report


def main(argv=None):
    parser = argparse.ArgumentParser(description="Nutrition data quality validation")
    parser.add_argument("--verbose", action="store_true",
                        help="Show info messages in addition to warnings")
    parser.add_argument("--schema", help="Schema to check (default: importer.schema)")
    parser.add_argument("--config", help="Path to config.yaml")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    schema = args.schema or get_importer_settings(config)["schema"]

    report = run_validation(get_db_path(config), schema)

    if report:
        report.print_report(verbose=args.verbose)
        return 0 if not report.has_issues() else 1
    else:
        return 1


if __name__ == "__main__":
    sys.exit(main())
