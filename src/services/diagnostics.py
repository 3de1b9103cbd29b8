"""
Diagnostics sink for non-fatal data-quality findings.

The cost validator reports every ingredient whose stored effective cost
disagrees with the yield formula. Reporting never changes control flow:
callers get their results whether or not anyone listens.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

from src.services.logging_utils import get_service_logger, log_operation


@dataclass(frozen=True)
class CostMismatch:
    """A stored effective cost that does not match the yield formula.

    Attributes:
        ingredient_id: Catalog id of the ingredient
        ingredient_name: Display name, used as the report key
        expected: cost_per_unit / (yield_percentage / 100)
        actual: Stored effective_cost_per_unit (or cost_per_unit when absent)
    """

    ingredient_id: str
    ingredient_name: str
    expected: float
    actual: float

    @property
    def difference(self) -> float:
        """Absolute gap between expected and actual."""
        return abs(self.expected - self.actual)


# ============================================================================
# Protocol Definition
# ============================================================================


class DiagnosticsSink(Protocol):
    """
    Protocol for receivers of validation findings.

    Implementations must not raise; a finding is informational.
    """

    def report_cost_mismatch(self, mismatch: CostMismatch) -> None:
        """
        Called once per invalid ingredient.

        Args:
            mismatch: The failed comparison
        """
        ...


# ============================================================================
# Implementations
# ============================================================================


class LoggingDiagnosticsSink:
    """Renders findings as WARNING records on an injected logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_service_logger("diagnostics")

    def report_cost_mismatch(self, mismatch: CostMismatch) -> None:
        log_operation(
            self.logger,
            operation="validate_ingredient_cost",
            outcome=(
                f"cost_mismatch for {mismatch.ingredient_name}: "
                f"expected {mismatch.expected:.2f}, found {mismatch.actual:.2f}"
            ),
            level=logging.WARNING,
            ingredient_id=mismatch.ingredient_id,
            ingredient_name=mismatch.ingredient_name,
            expected=mismatch.expected,
            actual=mismatch.actual,
        )


class CollectingDiagnosticsSink:
    """Keeps findings in memory for callers that present them elsewhere."""

    def __init__(self):
        self.mismatches: List[CostMismatch] = []

    def report_cost_mismatch(self, mismatch: CostMismatch) -> None:
        self.mismatches.append(mismatch)

    def clear(self) -> None:
        self.mismatches.clear()
