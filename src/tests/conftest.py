"""Pytest configuration and fixtures for engine and catalog tests."""

import pytest
from sqlalchemy.orm import sessionmaker, scoped_session

from src.models.base import Base
from src.services.database import create_database_engine, init_database
from src.services.dto import IngredientSnapshot, RecipeIngredientSnapshot, RecipeSnapshot
from src.utils.config import reset_config


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Give every test a fresh default configuration."""
    for var in (
        "RECIPE_COST_ENV",
        "RECIPE_COST_LOG_LEVEL",
        "RECIPE_COST_MAX_DEPTH",
        "RECIPE_COST_TIME_POLICY",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    engine = create_database_engine("sqlite:///:memory:")
    init_database(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import src.services.database as db_module

    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    db_module.get_session_factory = original_get_session


# ============================================================================
# Engine snapshots
# ============================================================================


@pytest.fixture
def tomato():
    return IngredientSnapshot(
        id="tomato",
        name="Tomato",
        unit="kg",
        cost_per_unit=2.0,
        yield_percentage=80,
        effective_cost_per_unit=2.5,
        allergens="",
    )


@pytest.fixture
def flour():
    return IngredientSnapshot(
        id="flour",
        name="Flour",
        unit="kg",
        cost_per_unit=1.2,
        effective_cost_per_unit=1.2,
        allergens="glutine",
    )


@pytest.fixture
def egg():
    return IngredientSnapshot(
        id="egg",
        name="Egg",
        unit="pz",
        cost_per_unit=0.3,
        allergens="uova, glutine",
    )


@pytest.fixture
def ingredient_lookup(tomato, flour, egg):
    return {ingredient.id: ingredient for ingredient in (tomato, flour, egg)}


@pytest.fixture
def sauce():
    """Semilavorato with a single tomato line."""
    return RecipeSnapshot(
        id="sauce",
        name="Sauce",
        category="Salse",
        portions=4,
        preparation_time=20,
        is_semilavorato=True,
        recipe_ingredients=[
            RecipeIngredientSnapshot(id="sauce-1", ingredient_id="tomato", quantity=2),
        ],
    )


@pytest.fixture
def pasta():
    """Sauce listed before flour."""
    return RecipeSnapshot(
        id="pasta",
        name="Pasta",
        category="Primi",
        portions=4,
        preparation_time=30,
        selling_price=12.0,
        recipe_ingredients=[
            RecipeIngredientSnapshot(
                id="pasta-1", ingredient_id="sauce", quantity=1, is_semilavorato=True
            ),
            RecipeIngredientSnapshot(id="pasta-2", ingredient_id="flour", quantity=0.2),
        ],
    )


@pytest.fixture
def recipe_lookup(sauce, pasta):
    return {recipe.id: recipe for recipe in (sauce, pasta)}
