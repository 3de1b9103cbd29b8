"""Services package - Business logic layer for the Recipe Cost Engine.

Architecture:
- Engine: Pure functions over caller-supplied snapshots (no database access)
- Catalog: SQLAlchemy persistence, transactions via session_scope()
- Exceptions: Consistent error handling via ServiceError hierarchy
- Diagnostics: Non-fatal cost mismatches go to a DiagnosticsSink

Engine Modules:
- cost_validator: Yield-adjusted effective cost and its validation
- recipe_expander: Flattening of nested recipes into leaf ingredients
- portion_scaler: Quantity and preparation-time scaling
- food_cost_service: Cost totals, food cost percentage, indicator bands
- stock_status: Caller-owned stock classification hook

Catalog Modules (import directly; they load the ORM models):
- database: Engine and session management
- catalog_service: Ingredient and recipe persistence, engine snapshots
- expansion_cache: Caller-side memoization keyed by catalog version
"""

from . import (
    cost_validator,
    diagnostics,
    food_cost_service,
    portion_scaler,
    recipe_expander,
    stock_status,
    unit_converter,
)

from .exceptions import (
    ServiceError,
    ValidationError,
    IngredientNotFound,
    RecipeNotFound,
    CycleDetected,
    MissingReference,
    MaxDepthExceeded,
    InvalidPortions,
    DatabaseError,
)

from .cost_validator import validate_ingredient_cost, calculate_effective_cost
from .recipe_expander import expand_recipe, get_base_ingredients, get_allergens
from .portion_scaler import scale_recipe, TimePolicy
from .food_cost_service import summarize_recipe_cost, get_food_cost_indicator

__all__ = [
    # Modules
    "cost_validator",
    "diagnostics",
    "food_cost_service",
    "portion_scaler",
    "recipe_expander",
    "stock_status",
    "unit_converter",
    # Exceptions
    "ServiceError",
    "ValidationError",
    "IngredientNotFound",
    "RecipeNotFound",
    "CycleDetected",
    "MissingReference",
    "MaxDepthExceeded",
    "InvalidPortions",
    "DatabaseError",
    # Engine operations
    "validate_ingredient_cost",
    "calculate_effective_cost",
    "expand_recipe",
    "get_base_ingredients",
    "get_allergens",
    "scale_recipe",
    "TimePolicy",
    "summarize_recipe_cost",
    "get_food_cost_indicator",
]
