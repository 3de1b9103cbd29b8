"""
Database models package.

This package contains the SQLAlchemy ORM models for the recipe catalog.
"""

from .base import Base, BaseModel
from .ingredient import Ingredient
from .recipe import Recipe, RecipeIngredient, RecipeInstruction

__all__ = [
    "Base",
    "BaseModel",
    "Ingredient",
    "Recipe",
    "RecipeIngredient",
    "RecipeInstruction",
]
