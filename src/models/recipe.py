"""
Recipe models for kitchen recipes.

This module contains:
- Recipe: Main recipe model with portions, timing and pricing
- RecipeIngredient: One recipe line, pointing at an ingredient or a semilavorato
- RecipeInstruction: Numbered preparation step
"""

from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    Text,
    ForeignKey,
    Index,
    CheckConstraint,
    UniqueConstraint,
    Boolean,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from src.services.dto import (
    NutritionInfo,
    RecipeIngredientSnapshot,
    RecipeInstructionSnapshot,
    RecipeSnapshot,
)


class Recipe(BaseModel):
    """
    Recipe model.

    Attributes:
        name: Recipe name (required)
        category: Recipe category (e.g., "Primi", "Salse")
        description: Free text
        portions: Serving count the line quantities refer to
        preparation_time: Minutes
        selling_price: Menu price per portion, NULL for semilavorati
        is_semilavorato: Whether other recipes may use this one as a line
        allergens: Comma-separated allergens declared on the recipe
        calories, protein, carbs, fat: Nutrition aggregates
    """

    __tablename__ = "recipes"

    # Basic information
    name = Column(String(200), nullable=False, index=True)
    category = Column(String(100), nullable=False, default="", index=True)
    description = Column(Text, nullable=True)

    # Yield and timing
    portions = Column(Float, nullable=False, default=1)
    preparation_time = Column(Float, nullable=False, default=0)

    # Pricing
    selling_price = Column(Float, nullable=True)
    is_semilavorato = Column(Boolean, nullable=False, default=False, index=True)

    allergens = Column(String(500), nullable=True)

    # Nutrition
    calories = Column(Float, nullable=True)
    protein = Column(Float, nullable=True)
    carbs = Column(Float, nullable=True)
    fat = Column(Float, nullable=True)

    # Relationships
    recipe_ingredients = relationship(
        "RecipeIngredient",
        foreign_keys="RecipeIngredient.recipe_id",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.sort_order",
        lazy="selectin",
    )
    used_in_recipes = relationship(
        "RecipeIngredient",
        foreign_keys="RecipeIngredient.sub_recipe_id",
        back_populates="sub_recipe",
        lazy="select",  # Only load when accessed
    )
    instructions = relationship(
        "RecipeInstruction",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeInstruction.step_number",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("portions > 0", name="ck_recipe_portions_positive"),
        CheckConstraint("preparation_time >= 0", name="ck_recipe_time_non_negative"),
        Index("idx_recipe_name", "name"),
    )

    def __repr__(self) -> str:
        """String representation of recipe."""
        return f"Recipe(id={self.id}, name='{self.name}', category='{self.category}')"

    def to_snapshot(self) -> RecipeSnapshot:
        """
        Build the read-only view handed to the cost engine.

        Lines keep their sort order; semilavorato lines carry the sub-recipe's
        uuid as ingredient_id.

        Returns:
            RecipeSnapshot keyed by this recipe's uuid
        """
        return RecipeSnapshot(
            id=self.uuid,
            name=self.name,
            category=self.category or "",
            portions=self.portions,
            preparation_time=self.preparation_time,
            recipe_ingredients=tuple(line.to_snapshot() for line in self.recipe_ingredients),
            instructions=tuple(
                RecipeInstructionSnapshot(step_number=step.step_number, instruction=step.instruction)
                for step in self.instructions
            ),
            nutrition=NutritionInfo(
                calories=self.calories, protein=self.protein, carbs=self.carbs, fat=self.fat
            ),
            selling_price=self.selling_price,
            is_semilavorato=bool(self.is_semilavorato),
            allergens=self.allergens,
        )


class RecipeIngredient(BaseModel):
    """
    One line of a recipe.

    Exactly one of ingredient_id and sub_recipe_id is set. For a sub-recipe
    line, quantity is a batch multiplier of that recipe.

    Attributes:
        recipe_id: Foreign key to the owning Recipe
        ingredient_id: Foreign key to Ingredient, for plain lines
        sub_recipe_id: Foreign key to Recipe, for semilavorato lines
        quantity: Amount used (batches for semilavorati)
        unit: Optional unit override for this line
        recipe_yield_percentage: Yield override for this use of the ingredient
        sort_order: Position within the recipe
    """

    __tablename__ = "recipe_ingredients"

    # Foreign keys
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=True
    )
    sub_recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="RESTRICT"), nullable=True)

    # Quantity information
    quantity = Column(Float, nullable=False)
    unit = Column(String(50), nullable=True)
    recipe_yield_percentage = Column(Float, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    # Relationships
    recipe = relationship(
        "Recipe", foreign_keys=[recipe_id], back_populates="recipe_ingredients"
    )
    ingredient = relationship("Ingredient", back_populates="recipe_ingredients", lazy="joined")
    sub_recipe = relationship(
        "Recipe", foreign_keys=[sub_recipe_id], back_populates="used_in_recipes", lazy="joined"
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_recipe_ingredient_quantity_positive"),
        CheckConstraint(
            "(ingredient_id IS NULL) != (sub_recipe_id IS NULL)",
            name="ck_recipe_ingredient_one_reference",
        ),
        CheckConstraint(
            "sub_recipe_id IS NULL OR recipe_id != sub_recipe_id",
            name="ck_recipe_ingredient_no_self_reference",
        ),
        Index("idx_recipe_ingredient_recipe", "recipe_id"),
        Index("idx_recipe_ingredient_ingredient", "ingredient_id"),
        Index("idx_recipe_ingredient_sub_recipe", "sub_recipe_id"),
        Index("idx_recipe_ingredient_sort", "recipe_id", "sort_order"),
    )

    @property
    def is_semilavorato(self) -> bool:
        return self.sub_recipe_id is not None

    def __repr__(self) -> str:
        """String representation of recipe ingredient."""
        target = (
            f"sub_recipe_id={self.sub_recipe_id}"
            if self.is_semilavorato
            else f"ingredient_id={self.ingredient_id}"
        )
        return f"RecipeIngredient(recipe_id={self.recipe_id}, {target}, quantity={self.quantity})"

    def to_snapshot(self) -> RecipeIngredientSnapshot:
        """Build the engine view of this line."""
        target = self.sub_recipe if self.is_semilavorato else self.ingredient
        return RecipeIngredientSnapshot(
            id=self.uuid,
            ingredient_id=target.uuid,
            quantity=self.quantity,
            unit=self.unit,
            is_semilavorato=self.is_semilavorato,
            recipe_yield_percentage=self.recipe_yield_percentage,
        )


class RecipeInstruction(BaseModel):
    """
    Numbered preparation step of a recipe.

    Attributes:
        recipe_id: Foreign key to Recipe
        step_number: 1-based position
        instruction: Step text
    """

    __tablename__ = "recipe_instructions"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    step_number = Column(Integer, nullable=False)
    instruction = Column(Text, nullable=False)

    recipe = relationship("Recipe", back_populates="instructions")

    __table_args__ = (
        CheckConstraint("step_number > 0", name="ck_recipe_instruction_step_positive"),
        UniqueConstraint("recipe_id", "step_number", name="uq_recipe_instruction_step"),
    )

    def __repr__(self) -> str:
        """String representation of recipe instruction."""
        return f"RecipeInstruction(recipe_id={self.recipe_id}, step_number={self.step_number})"
