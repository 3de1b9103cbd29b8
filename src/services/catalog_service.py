"""
Catalog Service - Persistence of ingredients and recipes.

This service is the catalog collaborator of the cost engine:
- CRUD for ingredients and recipes, with input validation
- Recipe lines pointing at an ingredient or a semilavorato sub-recipe
- Refusal of sub-recipe links that would close a cycle
- load_catalog(), which hands the engine read-only snapshots and a version
  marker callers use to key their expansion caches

All public functions accept session=None; when omitted they open their own
session_scope().
"""

from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from src.models import Ingredient, Recipe, RecipeIngredient, RecipeInstruction
from src.services.database import session_scope
from src.services.dto import IngredientSnapshot, RecipeSnapshot
from src.services.exceptions import (
    CycleDetected,
    DatabaseError,
    IngredientNotFound,
    RecipeNotFound,
    ValidationError,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.datetime_utils import to_iso, utc_now
from src.utils.validators import (
    validate_ingredient_data,
    validate_positive_number,
    validate_recipe_data,
    validate_unit,
    validate_yield_percentage,
)


logger = get_service_logger(__name__)


@dataclass(frozen=True)
class CatalogSnapshot:
    """Engine inputs read from the catalog in one transaction.

    Attributes:
        ingredients: IngredientSnapshot by uuid
        recipes: RecipeSnapshot by uuid
        version: Changes whenever any ingredient or recipe is added or edited
    """

    ingredients: Dict[str, IngredientSnapshot]
    recipes: Dict[str, RecipeSnapshot]
    version: str

    def get_recipe_by_name(self, name: str) -> Optional[RecipeSnapshot]:
        """Find a recipe snapshot by exact name."""
        for recipe in self.recipes.values():
            if recipe.name == name:
                return recipe
        return None


# ============================================================================
# Ingredients
# ============================================================================


def create_ingredient(ingredient_data: Dict, session=None) -> Ingredient:
    """
    Create a new ingredient.

    When effective_cost_per_unit is not given it is derived from the cost and
    the yield percentage.

    Args:
        ingredient_data: Dictionary with name, unit, cost_per_unit and the
            optional yield_percentage, effective_cost_per_unit, current_stock,
            min_stock_threshold, allergens, category, notes
        session: Optional database session

    Returns:
        Created Ingredient instance

    Raises:
        ValidationError: If data validation fails
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_ingredient_data(ingredient_data)
    if ingredient_data.get("unit"):
        unit_valid, error = validate_unit(ingredient_data["unit"])
        if not unit_valid:
            is_valid = False
            errors.append(error)
    if not is_valid:
        raise ValidationError(errors)

    if session is not None:
        return _create_ingredient_impl(ingredient_data, session)
    try:
        with session_scope() as session:
            return _create_ingredient_impl(ingredient_data, session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create ingredient", e)


def _create_ingredient_impl(ingredient_data: Dict, session) -> Ingredient:
    effective_cost = ingredient_data.get("effective_cost_per_unit")
    if effective_cost is None:
        yield_percentage = ingredient_data.get("yield_percentage") or 100.0
        effective_cost = ingredient_data["cost_per_unit"] / (yield_percentage / 100)

    ingredient = Ingredient(
        name=ingredient_data["name"],
        unit=ingredient_data["unit"],
        category=ingredient_data.get("category"),
        cost_per_unit=ingredient_data["cost_per_unit"],
        yield_percentage=ingredient_data.get("yield_percentage"),
        effective_cost_per_unit=effective_cost,
        current_stock=ingredient_data.get("current_stock"),
        min_stock_threshold=ingredient_data.get("min_stock_threshold"),
        allergens=ingredient_data.get("allergens"),
        notes=ingredient_data.get("notes"),
    )
    session.add(ingredient)
    session.flush()

    log_operation(
        logger,
        operation="create_ingredient",
        outcome="success",
        ingredient_id=ingredient.uuid,
        ingredient_name=ingredient.name,
    )
    return ingredient


def get_ingredient(ingredient_id: str, session=None) -> Ingredient:
    """
    Retrieve an ingredient by uuid.

    Raises:
        IngredientNotFound: If no ingredient has this uuid
        DatabaseError: If database operation fails
    """
    if session is not None:
        return _get_ingredient_impl(ingredient_id, session)
    try:
        with session_scope() as session:
            return _get_ingredient_impl(ingredient_id, session)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve ingredient {ingredient_id}", e)


def _get_ingredient_impl(ingredient_id: str, session) -> Ingredient:
    ingredient = session.query(Ingredient).filter_by(uuid=ingredient_id).first()
    if not ingredient:
        raise IngredientNotFound(ingredient_id)
    return ingredient


# ============================================================================
# Recipes
# ============================================================================


def create_recipe(recipe_data: Dict, instructions: List[str] = None, session=None) -> Recipe:
    """
    Create a new recipe without lines.

    Args:
        recipe_data: Dictionary with name, portions, preparation_time and the
            optional category, description, selling_price, is_semilavorato,
            allergens, calories, protein, carbs, fat
        instructions: Preparation steps in order
        session: Optional database session

    Returns:
        Created Recipe instance

    Raises:
        ValidationError: If data validation fails
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_recipe_data(recipe_data)
    if not is_valid:
        raise ValidationError(errors)
    is_valid, error = validate_positive_number(recipe_data.get("portions"), "Portions")
    if not is_valid:
        raise ValidationError([error])

    if session is not None:
        return _create_recipe_impl(recipe_data, instructions or [], session)
    try:
        with session_scope() as session:
            return _create_recipe_impl(recipe_data, instructions or [], session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create recipe", e)


def _create_recipe_impl(recipe_data: Dict, instructions: List[str], session) -> Recipe:
    recipe = Recipe(
        name=recipe_data["name"],
        category=recipe_data.get("category") or "",
        description=recipe_data.get("description"),
        portions=recipe_data["portions"],
        preparation_time=recipe_data["preparation_time"],
        selling_price=recipe_data.get("selling_price"),
        is_semilavorato=bool(recipe_data.get("is_semilavorato", False)),
        allergens=recipe_data.get("allergens"),
        calories=recipe_data.get("calories"),
        protein=recipe_data.get("protein"),
        carbs=recipe_data.get("carbs"),
        fat=recipe_data.get("fat"),
    )
    session.add(recipe)
    session.flush()

    for step_number, text in enumerate(instructions, start=1):
        session.add(
            RecipeInstruction(recipe_id=recipe.id, step_number=step_number, instruction=text)
        )
    session.flush()
    session.refresh(recipe)

    log_operation(
        logger,
        operation="create_recipe",
        outcome="success",
        recipe_id=recipe.uuid,
        recipe_name=recipe.name,
    )
    return recipe


def get_recipe(recipe_id: str, session=None) -> Recipe:
    """
    Retrieve a recipe by uuid, lines and steps loaded.

    Raises:
        RecipeNotFound: If no recipe has this uuid
        DatabaseError: If database operation fails
    """
    if session is not None:
        return _get_recipe_impl(recipe_id, session)
    try:
        with session_scope() as session:
            return _get_recipe_impl(recipe_id, session)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve recipe {recipe_id}", e)


def _get_recipe_impl(recipe_id: str, session) -> Recipe:
    recipe = session.query(Recipe).filter_by(uuid=recipe_id).first()
    if not recipe:
        raise RecipeNotFound(recipe_id)

    # Eagerly load relationships to avoid lazy loading after the session closes
    for line in recipe.recipe_ingredients:
        _ = line.ingredient
        _ = line.sub_recipe
    _ = recipe.instructions
    return recipe


# ============================================================================
# Recipe lines
# ============================================================================


def add_recipe_ingredient(
    recipe_id: str,
    quantity: float,
    ingredient_id: Optional[str] = None,
    sub_recipe_id: Optional[str] = None,
    unit: Optional[str] = None,
    recipe_yield_percentage: Optional[float] = None,
    sort_order: Optional[int] = None,
    session=None,
) -> RecipeIngredient:
    """
    Append a line to a recipe.

    Exactly one of ingredient_id and sub_recipe_id must be given. A sub-recipe
    must be flagged as semilavorato and must not already contain recipe_id
    anywhere below it.

    Args:
        recipe_id: Owning recipe uuid
        quantity: Amount used; batch multiplier for sub-recipes
        ingredient_id: Ingredient uuid, for plain lines
        sub_recipe_id: Recipe uuid, for semilavorato lines
        unit: Optional unit override
        recipe_yield_percentage: Optional yield override for this use
        sort_order: Position (default: append to end)
        session: Optional database session

    Returns:
        Created RecipeIngredient instance

    Raises:
        ValidationError: If the arguments are malformed
        RecipeNotFound: If the recipe or sub-recipe doesn't exist
        IngredientNotFound: If the ingredient doesn't exist
        CycleDetected: If the link would make a recipe contain itself
        DatabaseError: If database operation fails
    """
    errors = []
    if (ingredient_id is None) == (sub_recipe_id is None):
        errors.append("Exactly one of ingredient and sub-recipe is required")
    is_valid, error = validate_positive_number(quantity, "Quantity")
    if not is_valid:
        errors.append(error)
    is_valid, error = validate_yield_percentage(recipe_yield_percentage, "Recipe yield percentage")
    if not is_valid:
        errors.append(error)
    if unit is not None:
        is_valid, error = validate_unit(unit)
        if not is_valid:
            errors.append(error)
    if errors:
        raise ValidationError(errors)

    args = (recipe_id, quantity, ingredient_id, sub_recipe_id, unit, recipe_yield_percentage, sort_order)
    if session is not None:
        return _add_recipe_ingredient_impl(*args, session)
    try:
        with session_scope() as session:
            return _add_recipe_ingredient_impl(*args, session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to add ingredient to recipe", e)


def _add_recipe_ingredient_impl(
    recipe_id, quantity, ingredient_id, sub_recipe_id, unit, recipe_yield_percentage, sort_order, session
) -> RecipeIngredient:
    recipe = _get_recipe_impl(recipe_id, session)

    ingredient = None
    sub_recipe = None
    if ingredient_id is not None:
        ingredient = _get_ingredient_impl(ingredient_id, session)
    else:
        sub_recipe = _get_recipe_impl(sub_recipe_id, session)
        if not sub_recipe.is_semilavorato:
            raise ValidationError([f"'{sub_recipe.name}' is not a semilavorato"])
        path = find_recipe_path(sub_recipe.id, recipe.id, session)
        if path is not None:
            log_operation(
                logger,
                operation="add_recipe_ingredient",
                outcome="cycle_refused",
                recipe_id=recipe.uuid,
                sub_recipe_id=sub_recipe.uuid,
            )
            raise CycleDetected([recipe.uuid] + path)

    if sort_order is None:
        max_order = (
            session.query(func.max(RecipeIngredient.sort_order))
            .filter_by(recipe_id=recipe.id)
            .scalar()
        )
        sort_order = (max_order or 0) + 1

    line = RecipeIngredient(
        recipe_id=recipe.id,
        ingredient_id=ingredient.id if ingredient else None,
        sub_recipe_id=sub_recipe.id if sub_recipe else None,
        quantity=quantity,
        unit=unit,
        recipe_yield_percentage=recipe_yield_percentage,
        sort_order=sort_order,
    )
    session.add(line)
    session.flush()

    # Touch the owner so the catalog version moves
    recipe.updated_at = utc_now()
    session.flush()
    session.refresh(line)
    session.refresh(recipe)
    return line


def find_recipe_path(start_id: int, target_id: int, session) -> Optional[List[str]]:
    """
    Search the sub-recipe graph below start_id for target_id.

    Breadth-first traversal with visited tracking over semilavorato lines.

    Args:
        start_id: Primary key of the recipe to search from
        target_id: Primary key of the recipe to look for
        session: Database session

    Returns:
        Recipe uuids from start to target inclusive, or None if unreachable
    """
    parents = {start_id: None}
    queue = deque([start_id])

    while queue:
        current_id = queue.popleft()
        if current_id == target_id:
            break
        children = (
            session.query(RecipeIngredient.sub_recipe_id)
            .filter(RecipeIngredient.recipe_id == current_id)
            .filter(RecipeIngredient.sub_recipe_id.isnot(None))
            .order_by(RecipeIngredient.sort_order)
            .all()
        )
        for (child_id,) in children:
            if child_id not in parents:
                parents[child_id] = current_id
                queue.append(child_id)
    else:
        return None

    ids = []
    node = target_id
    while node is not None:
        ids.append(node)
        node = parents[node]
    ids.reverse()

    uuids = dict(session.query(Recipe.id, Recipe.uuid).filter(Recipe.id.in_(ids)).all())
    return [uuids[i] for i in ids]


# ============================================================================
# Engine inputs
# ============================================================================


def get_catalog_version(session=None) -> str:
    """
    Marker that changes whenever the catalog is edited.

    Built from the row counts and the latest updated_at of ingredients,
    recipes and recipe lines.
    """
    if session is not None:
        return _get_catalog_version_impl(session)
    try:
        with session_scope() as session:
            return _get_catalog_version_impl(session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to read catalog version", e)


def _get_catalog_version_impl(session) -> str:
    parts = []
    for model in (Ingredient, Recipe, RecipeIngredient):
        count, latest = session.query(func.count(model.id), func.max(model.updated_at)).one()
        parts.append(f"{count}@{to_iso(latest)}")
    return "|".join(parts)


def load_catalog(session=None) -> CatalogSnapshot:
    """
    Read the whole catalog as engine snapshots.

    Returns:
        CatalogSnapshot with lookups keyed by uuid

    Raises:
        DatabaseError: If database operation fails
    """
    if session is not None:
        return _load_catalog_impl(session)
    try:
        with session_scope() as session:
            return _load_catalog_impl(session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to load catalog", e)


def _load_catalog_impl(session) -> CatalogSnapshot:
    ingredients = {
        ingredient.uuid: ingredient.to_snapshot()
        for ingredient in session.query(Ingredient).order_by(Ingredient.id).all()
    }
    recipes = {
        recipe.uuid: recipe.to_snapshot()
        for recipe in session.query(Recipe).order_by(Recipe.id).all()
    }
    version = _get_catalog_version_impl(session)

    log_operation(
        logger,
        operation="load_catalog",
        outcome="success",
        ingredient_count=len(ingredients),
        recipe_count=len(recipes),
        version=version,
    )
    return CatalogSnapshot(ingredients=ingredients, recipes=recipes, version=version)
