"""
Stock status classification hook.

The thresholds that turn a stock level into ok/low/critical belong to the
inventory subsystem. This module only fixes the vocabulary and the call
shape; the policy is always supplied by the caller.
"""

from enum import Enum
from typing import Callable, Optional

from src.services.dto import IngredientSnapshot


class StockStatus(str, Enum):
    """Three-way stock label shown next to an ingredient."""

    OK = "ok"
    LOW = "low"
    CRITICAL = "critical"


StockStatusPolicy = Callable[[Optional[float], Optional[float]], StockStatus]


def classify_stock(ingredient: IngredientSnapshot, policy: StockStatusPolicy) -> StockStatus:
    """
    Classify an ingredient's stock with a caller-owned policy.

    Args:
        ingredient: Ingredient snapshot
        policy: Callable (current_stock, min_stock_threshold) -> StockStatus

    Returns:
        StockStatus returned by the policy
    """
    status = policy(ingredient.current_stock, ingredient.min_stock_threshold)
    return StockStatus(status)
