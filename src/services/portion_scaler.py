"""
Portion scaling service.

Scales a recipe's ingredient quantities and preparation time to a target
portion count.

Preparation time scales through a named policy because batch cooking
rarely takes twice as long for twice the quantity:

    linear     f(r) = r
    sublinear  f(r) = sqrt(r)
    constant   f(r) = 1

Transaction boundary: Pure computation (no database access). Inputs are
never mutated; new snapshots are returned.
"""

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

from src.services.dto import RecipeIngredientSnapshot, RecipeSnapshot
from src.services.exceptions import InvalidPortions, ValidationError
from src.services.logging_utils import get_service_logger, log_operation
from src.services.recipe_expander import ExpandedIngredient
from src.utils.config import get_config
from src.utils.validators import validate_positive_number, validate_time_policy


_logger = get_service_logger(__name__)


class TimePolicy(str, Enum):
    """Preparation-time scaling curves."""

    LINEAR = "linear"
    SUBLINEAR = "sublinear"
    CONSTANT = "constant"


TIME_SCALING_FUNCTIONS: Dict[TimePolicy, Callable[[float], float]] = {
    TimePolicy.LINEAR: lambda ratio: ratio,
    TimePolicy.SUBLINEAR: math.sqrt,
    TimePolicy.CONSTANT: lambda ratio: 1.0,
}


@dataclass(frozen=True)
class ScaledIngredient:
    """A recipe line with its quantity scaled.

    Attributes:
        recipe_ingredient: The original line, unchanged
        original_quantity: Quantity before scaling
        scaled_quantity: Quantity after scaling
    """

    recipe_ingredient: RecipeIngredientSnapshot
    original_quantity: float
    scaled_quantity: float

    @property
    def ingredient_id(self) -> str:
        return self.recipe_ingredient.ingredient_id

    @property
    def unit(self) -> Optional[str]:
        return self.recipe_ingredient.unit

    @property
    def is_semilavorato(self) -> bool:
        return self.recipe_ingredient.is_semilavorato


@dataclass(frozen=True)
class ScaledRecipe:
    """Result of scaling a recipe.

    Attributes:
        recipe: The recipe that was scaled, unchanged
        ratio: target_portions / recipe.portions
        time_policy: Policy used for the preparation time
        scaled_portions: The requested portion count
        scaled_preparation_time: preparation_time x f(ratio)
        scaled_ingredients: One ScaledIngredient per direct line, same order
    """

    recipe: RecipeSnapshot
    ratio: float
    time_policy: TimePolicy
    scaled_portions: float
    scaled_preparation_time: float
    scaled_ingredients: Tuple[ScaledIngredient, ...]


def resolve_time_policy(policy: Union[str, TimePolicy, None]) -> TimePolicy:
    """
    Turn a policy name into a TimePolicy, defaulting to the configured one.

    Raises:
        ValidationError: If the name is not a known policy
    """
    if policy is None:
        policy = get_config().time_policy
    if isinstance(policy, TimePolicy):
        return policy

    is_valid, error = validate_time_policy(policy)
    if not is_valid:
        raise ValidationError([error])
    return TimePolicy(policy)


def calculate_scaling_ratio(portions: float, target_portions: float) -> float:
    """
    Ratio between requested and base portions.

    Raises:
        InvalidPortions: If either count is not positive

    Examples:
        >>> calculate_scaling_ratio(4, 8)
        2.0
    """
    if not validate_positive_number(portions)[0] or not validate_positive_number(target_portions)[0]:
        raise InvalidPortions(portions, target_portions)
    return target_portions / portions


def scale_preparation_time(
    preparation_time: float, ratio: float, policy: Union[str, TimePolicy, None] = None
) -> float:
    """
    Apply a time policy to a preparation time.

    Examples:
        >>> scale_preparation_time(30, 2, "linear")
        60
        >>> scale_preparation_time(30, 4, "sublinear")
        60.0
        >>> scale_preparation_time(30, 2, "constant")
        30.0
    """
    return preparation_time * TIME_SCALING_FUNCTIONS[resolve_time_policy(policy)](ratio)


def scale_recipe(
    recipe: RecipeSnapshot,
    target_portions: float,
    time_policy: Union[str, TimePolicy, None] = None,
    logger: Optional[logging.Logger] = None,
) -> ScaledRecipe:
    """
    Scale a recipe's direct lines and preparation time to target_portions.

    Semilavorato lines scale like any other line: their quantity is a batch
    count of the sub-recipe.

    Args:
        recipe: Recipe to scale
        target_portions: Requested portion count
        time_policy: "linear" (default from config), "sublinear" or "constant"
        logger: Logger for operation records (defaults to the module logger)

    Returns:
        ScaledRecipe

    Raises:
        InvalidPortions: If recipe.portions or target_portions is not positive
        ValidationError: If time_policy is unknown

    Example:
        >>> result = scale_recipe(lasagna, 8, "linear")  # lasagna serves 4, 30 min
        >>> result.scaled_preparation_time
        60.0
    """
    ratio = calculate_scaling_ratio(recipe.portions, target_portions)
    policy = resolve_time_policy(time_policy)

    scaled_ingredients = tuple(
        ScaledIngredient(
            recipe_ingredient=line,
            original_quantity=line.quantity,
            scaled_quantity=line.quantity * ratio,
        )
        for line in recipe.recipe_ingredients
    )

    log_operation(
        logger or _logger,
        operation="scale_recipe",
        outcome="success",
        level=logging.DEBUG,
        recipe_id=recipe.id,
        ratio=ratio,
        time_policy=policy.value,
    )

    return ScaledRecipe(
        recipe=recipe,
        ratio=ratio,
        time_policy=policy,
        scaled_portions=target_portions,
        scaled_preparation_time=scale_preparation_time(recipe.preparation_time, ratio, policy),
        scaled_ingredients=scaled_ingredients,
    )


def scale_expanded_ingredients(
    expanded: List[ExpandedIngredient],
    portions: float,
    target_portions: float,
) -> List[ExpandedIngredient]:
    """
    Scale an already-flattened recipe to target_portions.

    Args:
        expanded: Output of expand_recipe for a recipe with `portions` servings
        portions: Base portions of the root recipe
        target_portions: Requested portion count

    Returns:
        New list with quantity and base_quantity scaled, same order

    Raises:
        InvalidPortions: If either count is not positive
    """
    ratio = calculate_scaling_ratio(portions, target_portions)
    return [
        replace(line, quantity=line.quantity * ratio, base_quantity=line.base_quantity * ratio)
        for line in expanded
    ]
