"""Data Transfer Objects for the recipe cost engine.

Read-only snapshots of catalog entries handed to the engine for one call.
The engine never mutates them; the catalog collaborator builds them from
the ORM models (see catalog_service.load_catalog) or callers build them
directly.

Lookups are plain mappings keyed by id:

    ingredient_lookup: Mapping[str, IngredientSnapshot]
    recipe_lookup: Mapping[str, RecipeSnapshot]
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from src.services.exceptions import ValidationError
from src.utils.validators import (
    validate_ingredient_data,
    validate_recipe_data,
    validate_recipe_ingredient_data,
)


@dataclass(frozen=True)
class IngredientSnapshot:
    """An ingredient as the catalog stored it.

    Attributes:
        id: Catalog id
        name: Display name
        unit: Base unit the cost refers to (e.g. "kg")
        cost_per_unit: Purchase cost of one unit
        yield_percentage: Usable share after trimming/processing, (0, 100]; None means 100
        effective_cost_per_unit: Stored yield-adjusted cost, redundant with the formula
        current_stock: Stock on hand, in unit
        min_stock_threshold: Reorder threshold, in unit
        allergens: Comma-separated allergen names

    Raises:
        ValidationError: If the fields violate the catalog invariants
    """

    id: str
    name: str
    unit: str
    cost_per_unit: float
    yield_percentage: Optional[float] = None
    effective_cost_per_unit: Optional[float] = None
    current_stock: Optional[float] = None
    min_stock_threshold: Optional[float] = None
    allergens: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate ingredient invariants."""
        is_valid, errors = validate_ingredient_data(self.__dict__)
        if not is_valid:
            raise ValidationError(errors)


@dataclass(frozen=True)
class RecipeIngredientSnapshot:
    """One line of a recipe.

    When is_semilavorato is True, ingredient_id identifies another recipe.

    Attributes:
        id: Line id
        ingredient_id: Ingredient id, or recipe id for semilavorati
        quantity: Amount used, in unit (or ingredient unit); batches for semilavorati
        unit: Optional unit override
        is_semilavorato: Whether ingredient_id is a recipe
        recipe_yield_percentage: Yield specific to this use, overrides the ingredient's
    """

    id: str
    ingredient_id: str
    quantity: float
    unit: Optional[str] = None
    is_semilavorato: bool = False
    recipe_yield_percentage: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate line invariants."""
        is_valid, errors = validate_recipe_ingredient_data(self.__dict__)
        if not is_valid:
            raise ValidationError(errors)


@dataclass(frozen=True)
class RecipeInstructionSnapshot:
    """A numbered preparation step."""

    step_number: int
    instruction: str


@dataclass(frozen=True)
class NutritionInfo:
    """Per-recipe nutrition aggregates."""

    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None


@dataclass(frozen=True)
class RecipeSnapshot:
    """A recipe with its ordered lines and steps.

    Attributes:
        id: Catalog id
        name: Recipe name
        category: Recipe category
        portions: Base serving count the quantities refer to
        preparation_time: Minutes
        recipe_ingredients: Ordered recipe lines
        instructions: Ordered preparation steps
        nutrition: Nutrition aggregates
        selling_price: Optional menu price per portion
        is_semilavorato: Whether other recipes may use this one as an ingredient
        allergens: Comma-separated allergen names declared on the recipe
    """

    id: str
    name: str
    category: str = ""
    portions: float = 1
    preparation_time: float = 0
    recipe_ingredients: Tuple[RecipeIngredientSnapshot, ...] = ()
    instructions: Tuple[RecipeInstructionSnapshot, ...] = ()
    nutrition: NutritionInfo = field(default_factory=NutritionInfo)
    selling_price: Optional[float] = None
    is_semilavorato: bool = False
    allergens: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate recipe header fields and freeze the line sequences."""
        is_valid, errors = validate_recipe_data(self.__dict__)
        if not is_valid:
            raise ValidationError(errors)
        object.__setattr__(self, "recipe_ingredients", tuple(self.recipe_ingredients))
        object.__setattr__(self, "instructions", tuple(self.instructions))


IngredientLookup = Mapping[str, IngredientSnapshot]
RecipeLookup = Mapping[str, RecipeSnapshot]
