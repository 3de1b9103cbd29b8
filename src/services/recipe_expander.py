"""
Recipe expansion service.

Flattens a recipe whose lines may reference other recipes (semilavorati)
into the leaf ingredients that actually get bought, with the effective cost
each leaf carries in this use.

This module provides:
- expand_recipe: pre-order depth-first flattening with cycle and depth guards
- get_base_ingredients: totals per ingredient across the flattened lines
- get_allergens: allergen names present anywhere in the flattened recipe

Transaction boundary: Pure computation (no database access). Lookups are
caller-supplied mappings treated as read-only for the duration of a call.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from src.services.cost_validator import (
    resolve_line_effective_cost,
    resolve_yield_percentage,
    validate_ingredient_cost,
)
from src.services.diagnostics import DiagnosticsSink, LoggingDiagnosticsSink
from src.services.dto import (
    IngredientLookup,
    IngredientSnapshot,
    RecipeIngredientSnapshot,
    RecipeLookup,
    RecipeSnapshot,
)
from src.services.exceptions import (
    CycleDetected,
    MaxDepthExceeded,
    MissingReference,
    ValidationError,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.services.unit_converter import convert_to_ingredient_unit
from src.utils.config import get_config
from src.utils.constants import MAX_EXPANSION_DEPTH_LIMIT, QUANTITY_DECIMAL_PLACES


_logger = get_service_logger(__name__)


@dataclass(frozen=True)
class ExpandedIngredient:
    """A leaf ingredient line of a flattened recipe.

    Attributes:
        recipe_ingredient: The originating recipe line
        ingredient: The resolved ingredient
        depth: 0 for lines of the root recipe, +1 per semilavorato level
        quantity: Line quantity multiplied by every enclosing semilavorato quantity
        base_quantity: quantity expressed in the ingredient's unit
        yield_percentage: Yield that applied to this use
        effective_cost_per_unit: Cost per ingredient unit for this use
        parent_recipe_id: Sub-recipe that contributed the line (None at depth 0)
        parent_recipe_name: Name of that sub-recipe
    """

    recipe_ingredient: RecipeIngredientSnapshot
    ingredient: IngredientSnapshot
    depth: int
    quantity: float
    base_quantity: float
    yield_percentage: float
    effective_cost_per_unit: float
    parent_recipe_id: Optional[str] = None
    parent_recipe_name: Optional[str] = None

    @property
    def ingredient_id(self) -> str:
        return self.ingredient.id

    @property
    def name(self) -> str:
        return self.ingredient.name

    @property
    def unit(self) -> str:
        """Unit the quantity is expressed in."""
        return self.recipe_ingredient.unit or self.ingredient.unit

    @property
    def line_cost(self) -> float:
        """Cost of this line: base_quantity x effective_cost_per_unit."""
        return self.base_quantity * self.effective_cost_per_unit


@dataclass
class BaseIngredientTotal:
    """Aggregated leaf ingredient across a flattened recipe."""

    ingredient_id: str
    ingredient_name: str
    unit: str
    total_quantity: float
    total_cost: float


def expand_recipe(
    recipe: RecipeSnapshot,
    ingredient_lookup: IngredientLookup,
    recipe_lookup: RecipeLookup,
    max_depth: Optional[int] = None,
    sink: Optional[DiagnosticsSink] = None,
    logger: Optional[logging.Logger] = None,
) -> List[ExpandedIngredient]:
    """
    Flatten a recipe into its leaf ingredients.

    Lines are visited in listed order; a semilavorato line is replaced in
    place by its sub-recipe's full expansion before the next sibling.

    Args:
        recipe: Root recipe
        ingredient_lookup: Ingredient snapshots by id
        recipe_lookup: Recipe snapshots by id, used for semilavorato lines
        max_depth: Deepest nesting level allowed (defaults to config)
        sink: Receiver for cost mismatches (defaults to a logging sink)
        logger: Logger for operation records (defaults to the module logger)

    Returns:
        Ordered list of ExpandedIngredient

    Raises:
        CycleDetected: If a recipe reaches itself through semilavorato lines
        MissingReference: If a line points to an id absent from its lookup
        MaxDepthExceeded: If nesting goes deeper than max_depth
        ValidationError: If an explicit max_depth is outside 0..MAX_EXPANSION_DEPTH_LIMIT

    Example:
        >>> lines = expand_recipe(pasta, ingredients, recipes)
        >>> [(line.name, line.depth, line.quantity) for line in lines]
        [('Tomato', 1, 2.0), ('Flour', 0, 0.2)]
    """
    if max_depth is None:
        max_depth = get_config().max_expansion_depth
    elif not 0 <= max_depth <= MAX_EXPANSION_DEPTH_LIMIT:
        raise ValidationError(
            [f"Max depth: Must be between 0 and {MAX_EXPANSION_DEPTH_LIMIT}"]
        )
    if sink is None:
        sink = LoggingDiagnosticsSink()
    logger = logger or _logger

    expanded: List[ExpandedIngredient] = []
    path: List[str] = [recipe.id]
    validated_ids = set()

    def expand_level(
        current: RecipeSnapshot,
        depth: int,
        multiplier: float,
        parent: Optional[RecipeSnapshot],
    ) -> None:
        for line in current.recipe_ingredients:
            if not line.is_semilavorato:
                ingredient = ingredient_lookup.get(line.ingredient_id)
                if ingredient is None:
                    raise MissingReference(line.ingredient_id, line.id, "ingredient")

                # One report per ingredient per call
                if ingredient.id not in validated_ids:
                    validated_ids.add(ingredient.id)
                    validate_ingredient_cost(ingredient, sink)

                expanded.append(_build_leaf(line, ingredient, depth, multiplier, parent, logger))
                continue

            sub_recipe_id = line.ingredient_id
            if sub_recipe_id in path:
                raise CycleDetected(path + [sub_recipe_id])

            sub_recipe = recipe_lookup.get(sub_recipe_id)
            if sub_recipe is None:
                raise MissingReference(sub_recipe_id, line.id, "recipe")

            if depth + 1 > max_depth:
                raise MaxDepthExceeded(max_depth, path + [sub_recipe_id])

            path.append(sub_recipe_id)
            expand_level(sub_recipe, depth + 1, multiplier * line.quantity, sub_recipe)
            path.pop()

    try:
        expand_level(recipe, 0, 1.0, None)
    except (CycleDetected, MissingReference, MaxDepthExceeded) as e:
        log_operation(
            logger,
            operation="expand_recipe",
            outcome=type(e).__name__,
            level=logging.WARNING,
            recipe_id=recipe.id,
            error=str(e),
        )
        raise

    log_operation(
        logger,
        operation="expand_recipe",
        outcome="success",
        level=logging.DEBUG,
        recipe_id=recipe.id,
        line_count=len(expanded),
    )
    return expanded


def _build_leaf(
    line: RecipeIngredientSnapshot,
    ingredient: IngredientSnapshot,
    depth: int,
    multiplier: float,
    parent: Optional[RecipeSnapshot],
    logger: logging.Logger,
) -> ExpandedIngredient:
    """Resolve quantity, unit and cost for one leaf line."""
    quantity = line.quantity * multiplier

    success, base_quantity, error = convert_to_ingredient_unit(
        quantity, line.unit, ingredient.unit
    )
    if not success:
        log_operation(
            logger,
            operation="expand_recipe",
            outcome="incompatible_units",
            level=logging.WARNING,
            ingredient_name=ingredient.name,
            line_unit=line.unit,
            ingredient_unit=ingredient.unit,
            error=error,
        )

    return ExpandedIngredient(
        recipe_ingredient=line,
        ingredient=ingredient,
        depth=depth,
        quantity=quantity,
        base_quantity=base_quantity,
        yield_percentage=resolve_yield_percentage(
            line.recipe_yield_percentage, ingredient.yield_percentage
        ),
        effective_cost_per_unit=resolve_line_effective_cost(
            ingredient, line.recipe_yield_percentage
        ),
        parent_recipe_id=parent.id if parent is not None else None,
        parent_recipe_name=parent.name if parent is not None else None,
    )


# ============================================================================
# Aggregation over an expanded recipe
# ============================================================================


def get_base_ingredients(expanded: List[ExpandedIngredient]) -> List[BaseIngredientTotal]:
    """
    Total each leaf ingredient across a flattened recipe.

    Quantities are summed in the ingredient's own unit, so "500 g" and
    "1 kg" of the same flour merge into one line. Order follows the first
    appearance of each ingredient.

    Args:
        expanded: Output of expand_recipe

    Returns:
        List of BaseIngredientTotal
    """
    totals: Dict[Tuple[str, str], BaseIngredientTotal] = {}

    for line in expanded:
        key = (line.ingredient_id, line.ingredient.unit)
        total = totals.get(key)
        if total is None:
            total = BaseIngredientTotal(
                ingredient_id=line.ingredient_id,
                ingredient_name=line.name,
                unit=line.ingredient.unit,
                total_quantity=0.0,
                total_cost=0.0,
            )
            totals[key] = total
        total.total_quantity += line.base_quantity
        total.total_cost += line.line_cost

    for total in totals.values():
        total.total_quantity = round(total.total_quantity, QUANTITY_DECIMAL_PLACES)

    return list(totals.values())


def get_allergens(expanded: List[ExpandedIngredient]) -> List[str]:
    """
    Collect allergen names from the leaf ingredients.

    Args:
        expanded: Output of expand_recipe

    Returns:
        Distinct allergen names in order of first appearance
    """
    allergens: List[str] = []
    for line in expanded:
        if not line.ingredient.allergens:
            continue
        for allergen in line.ingredient.allergens.split(","):
            allergen = allergen.strip()
            if allergen and allergen not in allergens:
                allergens.append(allergen)
    return allergens
