"""
DDL for the five FoodData Central tables.

reset_tables() drops and recreates every table, sequence and index inside the
target schema. It runs outside the load transaction, so readers can see empty
tables until the importer commits.

DuckDB rejects ON DELETE CASCADE on foreign keys, so children reference
foods(fdc_id) plainly and are dropped before foods.
"""

import re

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Children first: a referenced table cannot be dropped before its dependents
TABLES = ["food_portions", "food_attributes", "food_nutrients", "input_foods", "foods"]
SEQUENCES = ["seq_input_foods", "seq_food_attributes"]


def check_identifier(name):
    """Return name if it is a plain SQL identifier, else raise ValueError."""
    if not isinstance(name, str) or not IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid schema name: {name!r}")
    return name


def schema_exists(conn, schema):
    row = conn.execute(
        "SELECT COUNT(*) FROM information_schema.schemata WHERE schema_name = ?",
        [schema]
    ).fetchone()
    return row[0] > 0


def table_statements(schema):
    """CREATE statements for tables, sequences and indexes, in execution order."""
    s = check_identifier(schema)
    return [
        f"CREATE SEQUENCE {s}.seq_input_foods START 1",
        f"CREATE SEQUENCE {s}.seq_food_attributes START 1",

        f"""
        CREATE TABLE {s}.foods (
            fdc_id INTEGER PRIMARY KEY,
            description TEXT NOT NULL,
            data_type TEXT,
            food_class TEXT,
            publication_date TEXT
        )
        """,

        f"""
        CREATE TABLE {s}.input_foods (
            id INTEGER PRIMARY KEY DEFAULT nextval('{s}.seq_input_foods'),
            fdc_id INTEGER REFERENCES {s}.foods(fdc_id),
            src_name TEXT,
            src_id INTEGER,
            src_table TEXT,
            src_date TEXT
        )
        """,

        f"""
        CREATE TABLE {s}.food_portions (
            id INTEGER PRIMARY KEY,
            fdc_id INTEGER REFERENCES {s}.foods(fdc_id),
            seq_num INTEGER,
            amount DOUBLE,
            unit_name TEXT,
            grams DOUBLE,
            data_points INTEGER,
            derivation_id TEXT,
            portion_name TEXT,
            portion_desc TEXT
        )
        """,

        f"""
        CREATE TABLE {s}.food_attributes (
            id INTEGER PRIMARY KEY DEFAULT nextval('{s}.seq_food_attributes'),
            fdc_id INTEGER REFERENCES {s}.foods(fdc_id),
            seq_num INTEGER,
            name TEXT,
            value TEXT,
            unit TEXT,
            data_type TEXT,
            derivation_id TEXT
        )
        """,

        f"""
        CREATE TABLE {s}.food_nutrients (
            id INTEGER PRIMARY KEY,
            fdc_id INTEGER REFERENCES {s}.foods(fdc_id),
            nutrient_id INTEGER NOT NULL,
            nutrient_name TEXT,
            nutrient_number TEXT,
            unit_name TEXT,
            amount DOUBLE,
            data_points INTEGER,
            min_val DOUBLE,
            max_val DOUBLE,
            median DOUBLE,
            derivation_code TEXT,
            derivation_desc TEXT
        )
        """,

        # Indexes for the lookup queries
        f"CREATE INDEX idx_food_nutrients_fdc ON {s}.food_nutrients(fdc_id)",
        f"CREATE INDEX idx_food_nutrients_nutrient ON {s}.food_nutrients(nutrient_id)",
        f"CREATE INDEX idx_foods_description ON {s}.foods(description)",
        f"CREATE INDEX idx_food_portions_fdc ON {s}.food_portions(fdc_id)",
        f"CREATE INDEX idx_food_attributes_fdc ON {s}.food_attributes(fdc_id)",
    ]


def drop_statements(schema):
    s = check_identifier(schema)
    statements = [f"DROP TABLE IF EXISTS {s}.{table}" for table in TABLES]
    statements += [f"DROP SEQUENCE IF EXISTS {s}.{seq}" for seq in SEQUENCES]
    return statements


def reset_tables(conn, schema):
    """Drop and recreate all importer tables in schema (destructive)."""
    for statement in drop_statements(schema) + table_statements(schema):
        conn.execute(statement)


def table_counts(conn, schema):
    """Row count per table, keyed by table name."""
    s = check_identifier(schema)
    return {
        table: conn.execute(f"SELECT COUNT(*) FROM {s}.{table}").fetchone()[0]
        for table in reversed(TABLES)
    }


def missing_tables(conn, schema):
    """Importer tables not present in schema, in drop order."""
    present = {
        row[0] for row in conn.execute(
            "SELECT table_name FROM information_schema.tables WHERE table_schema = ?",
            [schema]
        ).fetchall()
    }
    return [table for table in TABLES if table not in present]
