"""
Input validation functions for the Recipe Cost Engine.

This module provides validation functions for catalog snapshots including:
- Numeric validation (positive, non-negative, yield percentages)
- String validation (required fields)
- Unit and time policy validation
"""

from typing import Optional, Tuple

from .constants import (
    ALL_UNITS,
    MAX_YIELD_PERCENTAGE,
    TIME_POLICIES,
    ERROR_REQUIRED_FIELD,
    ERROR_INVALID_NUMBER,
    ERROR_INVALID_POSITIVE,
    ERROR_INVALID_NON_NEGATIVE,
    ERROR_INVALID_YIELD,
    ERROR_INVALID_UNIT,
    ERROR_INVALID_TIME_POLICY,
)


def validate_required_string(value: Optional[str], field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a string field is not empty.

    Args:
        value: The string value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    return True, ""


def validate_positive_number(value: any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a positive number (> 0).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        num_value = float(value)
        if num_value <= 0:
            return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
        return True, ""
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"


def validate_non_negative_number(value: any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a non-negative number (>= 0).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        num_value = float(value)
        if num_value < 0:
            return False, f"{field_name}: {ERROR_INVALID_NON_NEGATIVE}"
        return True, ""
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"


def validate_yield_percentage(value: any, field_name: str = "Yield percentage") -> Tuple[bool, str]:
    """
    Validate that a yield percentage lies in (0, 100].

    None is accepted: a missing yield falls back to the next level.

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None:
        return True, ""
    try:
        num_value = float(value)
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if num_value <= 0 or num_value > MAX_YIELD_PERCENTAGE:
        return False, f"{field_name}: {ERROR_INVALID_YIELD}"
    return True, ""


def validate_unit(unit: str, field_name: str = "Unit") -> Tuple[bool, str]:
    """
    Validate that a unit is one of the known kitchen units.

    Args:
        unit: Unit string to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not unit:
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    if unit.lower() not in ALL_UNITS:
        return False, f"{field_name}: {ERROR_INVALID_UNIT} '{unit}'"
    return True, ""


def validate_time_policy(policy: str, field_name: str = "Time policy") -> Tuple[bool, str]:
    """
    Validate a preparation-time scaling policy name.

    Args:
        policy: Policy name
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if policy not in TIME_POLICIES:
        return False, f"{field_name}: {ERROR_INVALID_TIME_POLICY}"
    return True, ""


def validate_ingredient_data(data: dict) -> Tuple[bool, list]:
    """
    Validate ingredient fields.

    Args:
        data: Dictionary with ingredient fields (name, unit, cost_per_unit,
              yield_percentage, effective_cost_per_unit, current_stock,
              min_stock_threshold)

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors = []

    is_valid, error = validate_required_string(data.get("name"), "Name")
    if not is_valid:
        errors.append(error)

    is_valid, error = validate_required_string(data.get("unit"), "Unit")
    if not is_valid:
        errors.append(error)

    is_valid, error = validate_non_negative_number(data.get("cost_per_unit"), "Cost per unit")
    if not is_valid:
        errors.append(error)

    is_valid, error = validate_yield_percentage(data.get("yield_percentage"))
    if not is_valid:
        errors.append(error)

    for field, label in (
        ("effective_cost_per_unit", "Effective cost per unit"),
        ("current_stock", "Current stock"),
        ("min_stock_threshold", "Minimum stock threshold"),
    ):
        if data.get(field) is not None:
            is_valid, error = validate_non_negative_number(data[field], label)
            if not is_valid:
                errors.append(error)

    return len(errors) == 0, errors


def validate_recipe_ingredient_data(data: dict) -> Tuple[bool, list]:
    """
    Validate a recipe ingredient line.

    Args:
        data: Dictionary with ingredient_id, quantity and the optional
              recipe_yield_percentage

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors = []

    is_valid, error = validate_required_string(data.get("ingredient_id"), "Ingredient")
    if not is_valid:
        errors.append(error)

    is_valid, error = validate_positive_number(data.get("quantity"), "Quantity")
    if not is_valid:
        errors.append(error)

    is_valid, error = validate_yield_percentage(
        data.get("recipe_yield_percentage"), "Recipe yield percentage"
    )
    if not is_valid:
        errors.append(error)

    return len(errors) == 0, errors


def validate_recipe_data(data: dict) -> Tuple[bool, list]:
    """
    Validate recipe header fields.

    Portions are only checked for being numeric here; the scaler rejects
    non-positive portion counts when it is asked to scale. Preparation time
    may be zero (not recorded) but never negative.

    Args:
        data: Dictionary with recipe fields

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors = []

    is_valid, error = validate_required_string(data.get("name"), "Name")
    if not is_valid:
        errors.append(error)

    try:
        float(data.get("portions"))
    except (ValueError, TypeError):
        errors.append(f"Portions: {ERROR_INVALID_NUMBER}")

    is_valid, error = validate_non_negative_number(data.get("preparation_time"), "Preparation time")
    if not is_valid:
        errors.append(error)

    if data.get("selling_price") is not None:
        is_valid, error = validate_non_negative_number(data["selling_price"], "Selling price")
        if not is_valid:
            errors.append(error)

    return len(errors) == 0, errors
