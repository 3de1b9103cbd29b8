"""Service layer exception classes for the Recipe Cost Engine.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the engine and the catalog.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── IngredientNotFound
    ├── RecipeNotFound
    ├── CycleDetected
    ├── MissingReference
    ├── MaxDepthExceeded
    ├── InvalidPortions
    └── DatabaseError

A stored effective cost that disagrees with the yield formula is not an
exception; it is reported to the diagnostics sink and computation continues.
"""

from typing import Optional, Sequence


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    pass


class ValidationError(ServiceError):
    """Raised when data validation fails."""

    def __init__(self, errors: list):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class IngredientNotFound(ServiceError):
    """Raised when an ingredient cannot be found by ID."""

    def __init__(self, ingredient_id):
        self.ingredient_id = ingredient_id
        super().__init__(f"Ingredient with ID {ingredient_id} not found")


class RecipeNotFound(ServiceError):
    """Raised when a recipe cannot be found by ID."""

    def __init__(self, recipe_id):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found")


class CycleDetected(ServiceError):
    """Raised when a recipe includes itself, directly or through sub-recipes.

    Args:
        path: Recipe ids from the root to the repeated id, inclusive

    Example:
        >>> raise CycleDetected(["pasta", "sauce", "pasta"])
        CycleDetected: Circular recipe reference: pasta -> sauce -> pasta
    """

    def __init__(self, path: Sequence[str]):
        self.path = list(path)
        super().__init__(f"Circular recipe reference: {' -> '.join(self.path)}")


class MissingReference(ServiceError):
    """Raised when a recipe line points to an id absent from the supplied catalog.

    Args:
        reference_id: The recipe (or ingredient) id that could not be resolved
        recipe_ingredient_id: The recipe line holding the reference
        reference_type: "recipe" for semilavorato links, "ingredient" for leaves
    """

    def __init__(
        self,
        reference_id: str,
        recipe_ingredient_id: Optional[str],
        reference_type: str = "recipe",
    ):
        self.reference_id = reference_id
        self.recipe_ingredient_id = recipe_ingredient_id
        self.reference_type = reference_type
        super().__init__(
            f"Recipe ingredient {recipe_ingredient_id} references unknown "
            f"{reference_type} '{reference_id}'"
        )


class MaxDepthExceeded(ServiceError):
    """Raised when semilavorato nesting goes deeper than the configured guard.

    Args:
        max_depth: The configured limit
        path: Recipe ids from the root to the recipe that would exceed it
    """

    def __init__(self, max_depth: int, path: Sequence[str]):
        self.max_depth = max_depth
        self.path = list(path)
        super().__init__(
            f"Maximum recipe nesting depth {max_depth} exceeded: {' -> '.join(self.path)}"
        )


class InvalidPortions(ServiceError):
    """Raised when a recipe's portions or the requested portions are not positive."""

    def __init__(self, portions, target_portions):
        self.portions = portions
        self.target_portions = target_portions
        super().__init__(
            f"Portions must be greater than 0 (recipe portions: {portions}, "
            f"target portions: {target_portions})"
        )


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
