"""
Food cost service.

Aggregates the flattened lines of a recipe into production cost figures:
- Total cost and cost per portion
- Food cost percentage against the selling price
- A three-band indicator for dashboards

Transaction boundary: Pure computation (no database access).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from src.services.diagnostics import DiagnosticsSink
from src.services.dto import IngredientLookup, RecipeLookup, RecipeSnapshot
from src.services.logging_utils import get_service_logger, log_operation
from src.services.recipe_expander import ExpandedIngredient, expand_recipe
from src.utils.constants import (
    FOOD_COST_ATTENTION_MAX_PCT,
    FOOD_COST_OPTIMAL_MAX_PCT,
    PRODUCTION_COST_LOW_MAX,
    PRODUCTION_COST_MEDIUM_MAX,
)


_logger = get_service_logger(__name__)


class FoodCostIndicator(str, Enum):
    """Dashboard band for a recipe's cost.

    The first three apply when the recipe has a selling price, the last three
    to recipes without one (typically semilavorati).
    """

    OPTIMAL = "optimal"
    ATTENTION = "attention"
    CRITICAL = "critical"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class RecipeCostSummary:
    """Cost figures for one recipe.

    Attributes:
        recipe_id: Recipe id
        recipe_name: Recipe name
        portions: Base portions
        total_cost: Sum of all flattened line costs
        cost_per_portion: total_cost / portions
        selling_price: Menu price per portion, if any
        food_cost_percentage: cost_per_portion / selling_price x 100, if priced
        indicator: Dashboard band
        lines: The flattened lines the totals came from
    """

    recipe_id: str
    recipe_name: str
    portions: float
    total_cost: float
    cost_per_portion: float
    selling_price: Optional[float]
    food_cost_percentage: Optional[float]
    indicator: FoodCostIndicator
    lines: List[ExpandedIngredient]


def calculate_total_cost(expanded: List[ExpandedIngredient]) -> float:
    """Sum of line costs."""
    return sum(line.line_cost for line in expanded)


def calculate_cost_per_portion(total_cost: float, portions: float) -> float:
    """
    Cost of one portion.

    Returns:
        total_cost / portions, or 0.0 when portions is not positive
    """
    if portions <= 0:
        return 0.0
    return total_cost / portions


def calculate_food_cost_percentage(
    cost_per_portion: float, selling_price: Optional[float]
) -> Optional[float]:
    """
    Share of the selling price spent on ingredients.

    Returns:
        Percentage, or None when there is no positive selling price

    Examples:
        >>> calculate_food_cost_percentage(3.0, 12.0)
        25.0
    """
    if not selling_price or selling_price <= 0:
        return None
    return (cost_per_portion / selling_price) * 100


def get_food_cost_indicator(
    cost_per_portion: float, selling_price: Optional[float] = None
) -> FoodCostIndicator:
    """
    Band a recipe's cost for display.

    With a selling price the food cost percentage is banded at 25 % and 35 %;
    without one the absolute cost per portion is banded at 3 and 8.

    Args:
        cost_per_portion: Cost of one portion
        selling_price: Menu price per portion, if any

    Returns:
        FoodCostIndicator
    """
    percentage = calculate_food_cost_percentage(cost_per_portion, selling_price)

    if percentage is not None:
        if percentage <= FOOD_COST_OPTIMAL_MAX_PCT:
            return FoodCostIndicator.OPTIMAL
        if percentage <= FOOD_COST_ATTENTION_MAX_PCT:
            return FoodCostIndicator.ATTENTION
        return FoodCostIndicator.CRITICAL

    if cost_per_portion <= PRODUCTION_COST_LOW_MAX:
        return FoodCostIndicator.LOW
    if cost_per_portion <= PRODUCTION_COST_MEDIUM_MAX:
        return FoodCostIndicator.MEDIUM
    return FoodCostIndicator.HIGH


def summarize_recipe_cost(
    recipe: RecipeSnapshot,
    ingredient_lookup: IngredientLookup,
    recipe_lookup: RecipeLookup,
    max_depth: Optional[int] = None,
    sink: Optional[DiagnosticsSink] = None,
    expanded: Optional[List[ExpandedIngredient]] = None,
) -> RecipeCostSummary:
    """
    Expand a recipe and compute its cost figures.

    Args:
        recipe: Recipe to cost
        ingredient_lookup: Ingredient snapshots by id
        recipe_lookup: Recipe snapshots by id
        max_depth: Nesting guard passed to expand_recipe
        sink: Receiver for cost mismatches
        expanded: Previously expanded lines (e.g. from a cache); skips expansion

    Returns:
        RecipeCostSummary

    Raises:
        CycleDetected, MissingReference, MaxDepthExceeded: From expand_recipe
    """
    if expanded is None:
        expanded = expand_recipe(
            recipe, ingredient_lookup, recipe_lookup, max_depth=max_depth, sink=sink
        )

    total_cost = calculate_total_cost(expanded)
    cost_per_portion = calculate_cost_per_portion(total_cost, recipe.portions)

    summary = RecipeCostSummary(
        recipe_id=recipe.id,
        recipe_name=recipe.name,
        portions=recipe.portions,
        total_cost=total_cost,
        cost_per_portion=cost_per_portion,
        selling_price=recipe.selling_price,
        food_cost_percentage=calculate_food_cost_percentage(
            cost_per_portion, recipe.selling_price
        ),
        indicator=get_food_cost_indicator(cost_per_portion, recipe.selling_price),
        lines=expanded,
    )

    log_operation(
        _logger,
        operation="summarize_recipe_cost",
        outcome="success",
        level=logging.DEBUG,
        recipe_id=recipe.id,
        total_cost=total_cost,
    )
    return summary
