"""
Unit conversion system for the Recipe Cost Engine.

This module provides:
- Standard kitchen unit conversions (weight, volume, count)
- Conversion of a recipe line's quantity into its ingredient's base unit
- Conversion display helpers

Conversion Strategy:
- Weight units convert through grams (base unit)
- Volume units convert through milliliters (base unit)
- Count and other units only match themselves (a clove is not a leaf)
- Cross-family conversions are refused; callers decide the fallback
"""

from typing import Optional, Tuple

from src.utils.constants import COUNT_UNITS, CURRENCY_DECIMAL_PLACES, OTHER_UNITS


# ============================================================================
# Standard Conversion Tables
# ============================================================================

# Weight conversions to grams (base unit)
WEIGHT_TO_GRAMS = {
    "g": 1.0,
    "kg": 1000.0,
    "etti": 100.0,
}

# Volume conversions to milliliters (base unit)
VOLUME_TO_ML = {
    "ml": 1.0,
    "dl": 100.0,
    "l": 1000.0,
    "cucchiaio": 15.0,
    "cucchiaino": 5.0,
    "tazza": 250.0,
}

# Plural spellings found in recipe data
UNIT_ALIASES = {
    "cucchiai": "cucchiaio",
    "cucchiaini": "cucchiaino",
    "tazze": "tazza",
    "spicchi": "spicchio",
    "foglie": "foglia",
    "porzioni": "porzione",
}


# ============================================================================
# Unit Type Detection
# ============================================================================


def normalize_unit(unit: str) -> str:
    """
    Lower-case a unit and resolve plural aliases.

    Args:
        unit: Unit string as entered (e.g., "Cucchiai")

    Returns:
        Canonical unit code (e.g., "cucchiaio")
    """
    unit_lower = unit.strip().lower()
    return UNIT_ALIASES.get(unit_lower, unit_lower)


def get_conversion_table(unit: str) -> Optional[dict]:
    """
    Get the appropriate conversion table for a unit.

    Args:
        unit: Unit string (e.g., "kg", "tazza")

    Returns:
        Conversion table dict, or None if the unit has no conversion family
    """
    unit_code = normalize_unit(unit)

    if unit_code in WEIGHT_TO_GRAMS:
        return WEIGHT_TO_GRAMS
    elif unit_code in VOLUME_TO_ML:
        return VOLUME_TO_ML

    return None


def get_unit_type(unit: str) -> str:
    """
    Determine the type of a unit.

    Args:
        unit: Unit string

    Returns:
        Unit type: "weight", "volume", "count", "other" or "unknown"
    """
    unit_code = normalize_unit(unit)

    if unit_code in WEIGHT_TO_GRAMS:
        return "weight"
    elif unit_code in VOLUME_TO_ML:
        return "volume"
    elif unit_code in COUNT_UNITS:
        return "count"
    elif unit_code in OTHER_UNITS:
        return "other"

    return "unknown"


def units_compatible(unit1: str, unit2: str) -> bool:
    """
    Check if two units can be converted into each other.

    Args:
        unit1: First unit
        unit2: Second unit

    Returns:
        True if units are identical or share a conversion table
    """
    if normalize_unit(unit1) == normalize_unit(unit2):
        return True

    table = get_conversion_table(unit1)
    return table is not None and normalize_unit(unit2) in table


# ============================================================================
# Standard Unit Conversions
# ============================================================================


def convert_standard_units(value: float, from_unit: str, to_unit: str) -> Tuple[bool, float, str]:
    """
    Convert between standard units of the same type.

    Args:
        value: Quantity to convert
        from_unit: Source unit (e.g., "kg")
        to_unit: Target unit (e.g., "g")

    Returns:
        Tuple of (success, converted_value, error_message)
        - success: True if conversion successful
        - converted_value: Result (0.0 if failed)
        - error_message: Error description (empty string if successful)
    """
    if value < 0:
        return False, 0.0, "Value cannot be negative"

    from_code = normalize_unit(from_unit)
    to_code = normalize_unit(to_unit)

    if from_code == to_code:
        return True, value, ""

    conversion_table = get_conversion_table(from_code)
    if not conversion_table:
        return False, 0.0, f"Unknown unit: {from_unit}"

    if to_code not in conversion_table:
        return (
            False,
            0.0,
            f"Cannot convert {from_unit} to {to_unit}: incompatible unit types",
        )

    # value -> base unit -> target unit
    base_value = value * conversion_table[from_code]
    converted_value = base_value / conversion_table[to_code]

    return True, converted_value, ""


def convert_to_ingredient_unit(
    quantity: float, line_unit: Optional[str], ingredient_unit: str
) -> Tuple[bool, float, str]:
    """
    Express a recipe line's quantity in the ingredient's base unit.

    A line without a unit override is already in the ingredient's unit.

    Args:
        quantity: Line quantity
        line_unit: Unit override on the recipe line, or None
        ingredient_unit: Unit the ingredient's cost refers to

    Returns:
        Tuple of (success, quantity_in_ingredient_unit, error_message).
        On failure the quantity is returned unconverted.
    """
    if not line_unit or normalize_unit(line_unit) == normalize_unit(ingredient_unit):
        return True, quantity, ""

    success, converted, error = convert_standard_units(quantity, line_unit, ingredient_unit)
    if not success:
        return False, quantity, error
    return True, converted, ""


def format_conversion(value: float, from_unit: str, to_unit: str, precision: int = 2) -> str:
    """
    Format a unit conversion for display.

    Args:
        value: Source quantity
        from_unit: Source unit
        to_unit: Target unit
        precision: Decimal places for result

    Returns:
        Formatted string (e.g., "1 kg = 1000.00 g")
        Returns error message if conversion fails
    """
    success, converted, error = convert_standard_units(value, from_unit, to_unit)

    if not success:
        return f"Error: {error}"

    return f"{value:g} {from_unit} = {converted:.{precision}f} {to_unit}"


def format_quantity(quantity: float, unit: str) -> str:
    """
    Format a quantity with its unit, dropping decimals for whole numbers.

    Args:
        quantity: Amount
        unit: Unit code

    Returns:
        Display string (e.g., "2 kg", "0.25 l")
    """
    if float(quantity).is_integer():
        return f"{int(quantity)} {unit}"
    return f"{quantity:.2f} {unit}"


def format_cost(
    amount: float, currency_symbol: str = "€", precision: int = CURRENCY_DECIMAL_PLACES
) -> str:
    """
    Format a cost value for display.

    Args:
        amount: Cost amount
        currency_symbol: Currency symbol to use
        precision: Decimal places

    Returns:
        Formatted currency string (e.g., "€12.50")
    """
    return f"{currency_symbol}{amount:.{precision}f}"
