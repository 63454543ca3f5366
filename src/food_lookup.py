#!/usr/bin/env python3
"""
Look up imported foods and their nutrients.

Usage:
    python src/food_lookup.py --search apple
    python src/food_lookup.py --search "chicken breast" --limit 5 --json
    python src/food_lookup.py --id 321358
"""

import argparse
import duckdb
import json
import sys
from config import get_db_path, get_importer_settings, load_config
from food_schema import check_identifier

FOOD_FIELDS = ["fdc_id", "description", "data_type", "food_class", "publication_date"]

NUTRIENT_FIELDS = [
    "id", "nutrient_id", "nutrient_name", "nutrient_number", "unit_name",
    "amount", "data_points", "min_val", "max_val", "median",
    "derivation_code", "derivation_desc",
]


def _nutrients(conn, schema, fdc_id):
    rows = conn.execute(f"""
        SELECT {', '.join(NUTRIENT_FIELDS)}
        FROM {schema}.food_nutrients
        WHERE fdc_id = ?
        ORDER BY nutrient_id
    """, [fdc_id]).fetchall()
    return [dict(zip(NUTRIENT_FIELDS, row)) for row in rows]


def search_foods(db_path, query, limit=20, offset=0, schema="nutrition"):
    """
    Case-insensitive substring search on food descriptions.

    Foods whose description starts with the query come first, then the rest,
    each group alphabetical.

    Returns:
        tuple: (list of food dicts with a "nutrients" list, total match count)
    """
    check_identifier(schema)
    contains = f"%{query}%"
    prefix = f"{query}%"

    conn = duckdb.connect(str(db_path), read_only=True)
    try:
        total = conn.execute(f"""
            SELECT COUNT(*)
            FROM {schema}.foods
            WHERE description ILIKE ?
        """, [contains]).fetchone()[0]

        rows = conn.execute(f"""
            SELECT {', '.join(FOOD_FIELDS)}
            FROM {schema}.foods
            WHERE description ILIKE ?
            ORDER BY
                CASE WHEN description ILIKE ? THEN 0 ELSE 1 END,
                description
            LIMIT ? OFFSET ?
        """, [contains, prefix, limit, offset]).fetchall()

        foods = []
        for row in rows:
            food = dict(zip(FOOD_FIELDS, row))
            food["nutrients"] = _nutrients(conn, schema, food["fdc_id"])
            foods.append(food)
    finally:
        conn.close()

    return foods, total


def get_food(db_path, fdc_id, schema="nutrition"):
    """Get one food with its nutrients, or None if the id is unknown."""
    check_identifier(schema)

    conn = duckdb.connect(str(db_path), read_only=True)
    try:
        row = conn.execute(f"""
            SELECT {', '.join(FOOD_FIELDS)}
            FROM {schema}.foods
            WHERE fdc_id = ?
        """, [fdc_id]).fetchone()

        if row is None:
            return None

        food = dict(zip(FOOD_FIELDS, row))
        food["nutrients"] = _nutrients(conn, schema, fdc_id)
    finally:
        conn.close()

    return food


def format_food(food):
    """Format one food for display."""
    lines = [f"🍽️  {food['description']} (fdc_id {food['fdc_id']})"]
    if food["food_class"] or food["data_type"]:
        lines.append(f"   {food['data_type']} / {food['food_class']}")

    if not food["nutrients"]:
        lines.append("   No nutrients recorded.")
        return "\n".join(lines)

    for n in food["nutrients"]:
        amount = n["amount"] or 0
        lines.append(f"   • {n['nutrient_name']}: {amount:g} {n['unit_name']}")

    return "\n".join(lines)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Food lookup")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--search", help="Search foods by description")
    group.add_argument("--id", type=int, help="Show one food by FDC id")
    parser.add_argument("--limit", type=int, default=20, help="Max results for --search")
    parser.add_argument("--offset", type=int, default=0, help="Skip results for --search")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--config", help="Path to config.yaml")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    db_path = get_db_path(config)
    schema = get_importer_settings(config)["schema"]

    if args.id is not None:
        food = get_food(db_path, args.id, schema)
        if food is None:
            print(f"❌ Food not found: {args.id}")
            return 1
        print(json.dumps(food, indent=2, default=str) if args.json else format_food(food))
        return 0

    foods, total = search_foods(db_path, args.search, args.limit, args.offset, schema)

    if args.json:
        print(json.dumps({"total": total, "foods": foods}, indent=2, default=str))
        return 0

    print(f"🔍 {total} food(s) matching '{args.search}'")
    for food in foods:
        print()
        print(format_food(food))
    return 0


if __name__ == "__main__":
    sys.exit(main())
