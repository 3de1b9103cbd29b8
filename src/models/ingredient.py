"""
Ingredient model for purchasable ingredients.

An ingredient carries its purchase cost per base unit and the yield
percentage that turns it into a usable-portion cost. effective_cost_per_unit
is stored redundantly and checked against the formula every time the
ingredient is expanded.
"""

from sqlalchemy import Column, String, Text, Float, Index, CheckConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel
from src.services.dto import IngredientSnapshot


class Ingredient(BaseModel):
    """
    Ingredient model representing catalog ingredients.

    Attributes:
        name: Ingredient name (e.g., "Farina 00", "Pomodori pelati")
        category: Category (e.g., "Farine", "Verdure")
        unit: Base unit the cost refers to (e.g., "kg", "l", "pz")
        cost_per_unit: Purchase cost of one unit
        yield_percentage: Usable share after trimming, (0, 100]; NULL means 100
        effective_cost_per_unit: Stored cost of one usable unit
        current_stock: Stock on hand, in unit
        min_stock_threshold: Reorder threshold, in unit
        allergens: Comma-separated allergen names
        notes: Additional notes
    """

    __tablename__ = "ingredients"

    # Basic information
    name = Column(String(200), nullable=False, unique=True, index=True)
    category = Column(String(100), nullable=True, index=True)
    unit = Column(String(50), nullable=False)

    # Cost information
    cost_per_unit = Column(Float, nullable=False, default=0.0)
    yield_percentage = Column(Float, nullable=True)
    effective_cost_per_unit = Column(Float, nullable=True)

    # Stock information
    current_stock = Column(Float, nullable=True)
    min_stock_threshold = Column(Float, nullable=True)

    # Additional information
    allergens = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    recipe_ingredients = relationship("RecipeIngredient", back_populates="ingredient")

    __table_args__ = (
        CheckConstraint("cost_per_unit >= 0", name="ck_ingredient_cost_non_negative"),
        CheckConstraint(
            "yield_percentage IS NULL OR (yield_percentage > 0 AND yield_percentage <= 100)",
            name="ck_ingredient_yield_range",
        ),
        Index("idx_ingredient_category", "category"),
    )

    def __repr__(self) -> str:
        """String representation of ingredient."""
        return f"Ingredient(id={self.id}, name='{self.name}', unit='{self.unit}')"

    def to_snapshot(self) -> IngredientSnapshot:
        """
        Build the read-only view handed to the cost engine.

        Returns:
            IngredientSnapshot keyed by this ingredient's uuid
        """
        return IngredientSnapshot(
            id=self.uuid,
            name=self.name,
            unit=self.unit,
            cost_per_unit=self.cost_per_unit,
            yield_percentage=self.yield_percentage,
            effective_cost_per_unit=self.effective_cost_per_unit,
            current_stock=self.current_stock,
            min_stock_threshold=self.min_stock_threshold,
            allergens=self.allergens,
        )
