"""
Turn USDA Foundation Foods JSON records into table rows.

Each *_row() function takes one decoded JSON object and returns a tuple in the
column order of the matching *_COLUMNS list, or raises RecordError when the
record cannot be stored. Optional fields fall back to zero values: "" for
text, 0 for integers and 0.0 for measurements, never None.
"""

FOOD_COLUMNS = ["fdc_id", "description", "data_type", "food_class", "publication_date"]

INPUT_FOOD_COLUMNS = ["fdc_id", "src_name", "src_id", "src_table", "src_date"]

PORTION_COLUMNS = [
    "id", "fdc_id", "seq_num", "amount", "unit_name", "grams",
    "data_points", "derivation_id", "portion_name", "portion_desc",
]

ATTRIBUTE_COLUMNS = ["fdc_id", "seq_num", "name", "value", "unit", "data_type", "derivation_id"]

NUTRIENT_COLUMNS = [
    "id", "fdc_id", "nutrient_id", "nutrient_name", "nutrient_number", "unit_name",
    "amount", "data_points", "min_val", "max_val", "median",
    "derivation_code", "derivation_desc",
]


# Range of the INTEGER columns every id and count is stored in
INT_MIN = -2**31
INT_MAX = 2**31 - 1


class RecordError(ValueError):
    """A source record that cannot be turned into a row."""


def _object(value, what):
    if not isinstance(value, dict):
        raise RecordError(f"{what} is not an object")
    return value


def child_records(food, key):
    """Child list of a food record; absent or null means empty."""
    value = food.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise RecordError(f"{key} is not a list")
    return value


def as_int(value, field, default=0):
    """Integer field; None means default. Floats must be integral and fit INTEGER."""
    if value is None:
        return default
    if isinstance(value, bool):
        raise RecordError(f"{field} is not an integer: {value!r}")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        raise RecordError(f"{field} is not an integer: {value!r}")
    if not INT_MIN <= value <= INT_MAX:
        raise RecordError(f"{field} is out of range: {value}")
    return value


def require_int(value, field):
    if value is None:
        raise RecordError(f"missing {field}")
    return as_int(value, field)


def as_float(value, field, default=0.0):
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RecordError(f"{field} is not a number: {value!r}")
    try:
        return float(value)
    except OverflowError as e:
        raise RecordError(f"{field} is out of range: {value}") from e


def as_text(value, field):
    """Text field; numbers are kept as their JSON spelling."""
    if value is None:
        return ""
    if isinstance(value, str):
        # json accepts lone surrogate escapes, which cannot be stored
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise RecordError(f"{field} is not valid UTF-8 text") from e
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise RecordError(f"{field} is not text: {value!r}")


def food_row(food):
    food = _object(food, "food record")
    return (
        require_int(food.get("fdcId"), "fdcId"),
        as_text(food.get("description"), "description"),
        as_text(food.get("dataType"), "dataType"),
        as_text(food.get("foodClass"), "foodClass"),
        as_text(food.get("publicationDate"), "publicationDate"),
    )


def input_food_row(fdc_id, entry):
    entry = _object(entry, "input food")
    return (
        fdc_id,
        as_text(entry.get("srcName"), "srcName"),
        as_int(entry.get("srcId"), "srcId"),
        as_text(entry.get("srcTable"), "srcTable"),
        as_text(entry.get("srcDate"), "srcDate"),
    )


def portion_row(fdc_id, portion):
    portion = _object(portion, "food portion")
    return (
        require_int(portion.get("id"), "portion id"),
        fdc_id,
        as_int(portion.get("seqNum"), "seqNum"),
        as_float(portion.get("amount"), "amount"),
        as_text(portion.get("unitName"), "unitName"),
        as_float(portion.get("gramWeight"), "gramWeight"),
        as_int(portion.get("dataPoints"), "dataPoints"),
        as_text(portion.get("derivationId"), "derivationId"),
        as_text(portion.get("portionName"), "portionName"),
        as_text(portion.get("portionDescription"), "portionDescription"),
    )


def attribute_row(fdc_id, attribute):
    attribute = _object(attribute, "food attribute")
    return (
        fdc_id,
        as_int(attribute.get("seqNum"), "seqNum"),
        as_text(attribute.get("name"), "name"),
        as_text(attribute.get("value"), "value"),
        as_text(attribute.get("unit"), "unit"),
        as_text(attribute.get("dataType"), "dataType"),
        as_text(attribute.get("derivationId"), "derivationId"),
    )


def nutrient_row(fdc_id, entry):
    """
    Flatten a foodNutrients entry.

    The nested "nutrient" object supplies id/name/number/unit; the optional
    "foodNutrientDerivation" object supplies code/description, both "" when
    the object is absent.
    """
    entry = _object(entry, "food nutrient")
    nutrient = _object(entry.get("nutrient"), "nutrient")

    derivation = entry.get("foodNutrientDerivation")
    if derivation is None:
        derivation_code, derivation_desc = "", ""
    else:
        derivation = _object(derivation, "foodNutrientDerivation")
        derivation_code = as_text(derivation.get("code"), "derivation code")
        derivation_desc = as_text(derivation.get("description"), "derivation description")

    return (
        require_int(entry.get("id"), "nutrient entry id"),
        fdc_id,
        require_int(nutrient.get("id"), "nutrient.id"),
        as_text(nutrient.get("name"), "nutrient.name"),
        as_text(nutrient.get("number"), "nutrient.number"),
        as_text(nutrient.get("unitName"), "nutrient.unitName"),
        as_float(entry.get("amount"), "amount"),
        as_int(entry.get("dataPoints"), "dataPoints"),
        as_float(entry.get("min"), "min"),
        as_float(entry.get("max"), "max"),
        as_float(entry.get("median"), "median"),
        derivation_code,
        derivation_desc,
    )
