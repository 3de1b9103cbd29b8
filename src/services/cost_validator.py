"""
Cost validation for yield-adjusted ingredient costs.

This module provides:
- The single precedence rule for which yield applies to a recipe line
- The effective cost formula: cost_per_unit / (yield_percentage / 100)
- Validation of a stored effective cost against that formula

Transaction boundary: Pure computation (no database access). The only side
effect is a report to the diagnostics sink when a stored value is off.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from src.services.diagnostics import (
    CollectingDiagnosticsSink,
    CostMismatch,
    DiagnosticsSink,
    LoggingDiagnosticsSink,
)
from src.services.dto import IngredientSnapshot
from src.utils.config import get_config
from src.utils.constants import DEFAULT_YIELD_PERCENTAGE


@dataclass(frozen=True)
class CostValidationResult:
    """Outcome of comparing a stored effective cost with the formula.

    Attributes:
        is_valid: True when |expected - actual| < tolerance
        expected_effective_cost: Formula value
        actual_effective_cost: Stored value, or cost_per_unit when nothing is stored
    """

    is_valid: bool
    expected_effective_cost: float
    actual_effective_cost: float


def resolve_yield_percentage(
    recipe_yield_percentage: Optional[float] = None,
    ingredient_yield_percentage: Optional[float] = None,
) -> float:
    """Pick the yield that applies to one use of an ingredient.

    Precedence: the recipe line's own yield, then the ingredient's, then 100.

    Examples:
        >>> resolve_yield_percentage(90, 80)
        90
        >>> resolve_yield_percentage(None, 80)
        80
        >>> resolve_yield_percentage(None, None)
        100.0
    """
    if recipe_yield_percentage is not None:
        return recipe_yield_percentage
    if ingredient_yield_percentage is not None:
        return ingredient_yield_percentage
    return DEFAULT_YIELD_PERCENTAGE


def calculate_effective_cost(cost_per_unit: float, yield_percentage: Optional[float] = None) -> float:
    """Cost of one usable unit after yield loss.

    Args:
        cost_per_unit: Purchase cost per unit
        yield_percentage: Usable share in (0, 100]; None means 100

    Returns:
        cost_per_unit / (yield_percentage / 100)

    Examples:
        >>> calculate_effective_cost(10, 80)
        12.5
    """
    return cost_per_unit / (resolve_yield_percentage(None, yield_percentage) / 100)


def validate_ingredient_cost(
    ingredient: IngredientSnapshot,
    sink: Optional[DiagnosticsSink] = None,
    tolerance: Optional[float] = None,
) -> CostValidationResult:
    """
    Check a stored effective cost against the yield formula.

    An invalid result is reported to the sink and returned; it never raises.

    Args:
        ingredient: Ingredient snapshot
        sink: Receiver for mismatches (defaults to a logging sink)
        tolerance: Allowed absolute difference (defaults to config, 0.01)

    Returns:
        CostValidationResult

    Example:
        >>> flour = IngredientSnapshot("f", "Flour", "kg", 10, yield_percentage=80,
        ...                            effective_cost_per_unit=10)
        >>> validate_ingredient_cost(flour, CollectingDiagnosticsSink()).is_valid
        False
    """
    if tolerance is None:
        tolerance = get_config().cost_tolerance

    expected = calculate_effective_cost(ingredient.cost_per_unit, ingredient.yield_percentage)
    if ingredient.effective_cost_per_unit is not None:
        actual = ingredient.effective_cost_per_unit
    else:
        actual = ingredient.cost_per_unit

    is_valid = abs(expected - actual) < tolerance

    if not is_valid:
        if sink is None:
            sink = LoggingDiagnosticsSink()
        sink.report_cost_mismatch(
            CostMismatch(
                ingredient_id=ingredient.id,
                ingredient_name=ingredient.name,
                expected=expected,
                actual=actual,
            )
        )

    return CostValidationResult(
        is_valid=is_valid,
        expected_effective_cost=expected,
        actual_effective_cost=actual,
    )


def resolve_line_effective_cost(
    ingredient: IngredientSnapshot,
    recipe_yield_percentage: Optional[float] = None,
) -> float:
    """
    Effective cost per unit for one recipe line.

    A line-level yield recomputes from the purchase cost. Without one the
    ingredient's stored effective cost is used as-is, even when it fails
    validation; with nothing stored the formula applies to the ingredient's
    own yield.

    Args:
        ingredient: Ingredient snapshot
        recipe_yield_percentage: Yield override from the recipe line

    Returns:
        Effective cost per ingredient unit
    """
    if recipe_yield_percentage is not None:
        return calculate_effective_cost(ingredient.cost_per_unit, recipe_yield_percentage)
    if ingredient.effective_cost_per_unit is not None:
        return ingredient.effective_cost_per_unit
    return calculate_effective_cost(ingredient.cost_per_unit, ingredient.yield_percentage)


def validate_catalog(
    ingredients: Iterable[IngredientSnapshot],
    sink: Optional[DiagnosticsSink] = None,
    tolerance: Optional[float] = None,
) -> List[CostMismatch]:
    """
    Validate every ingredient of a catalog.

    Args:
        ingredients: Ingredient snapshots
        sink: Additional receiver for mismatches (defaults to a logging sink)
        tolerance: Allowed absolute difference (defaults to config)

    Returns:
        The mismatches found, in input order
    """
    collector = CollectingDiagnosticsSink()
    forward = sink if sink is not None else LoggingDiagnosticsSink()

    for ingredient in ingredients:
        validate_ingredient_cost(ingredient, collector, tolerance)

    for mismatch in collector.mismatches:
        forward.report_cost_mismatch(mismatch)

    return list(collector.mismatches)
