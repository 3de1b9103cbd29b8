"""Tests for yield-adjusted cost validation."""

import logging

import pytest

from src.services.cost_validator import (
    calculate_effective_cost,
    resolve_line_effective_cost,
    resolve_yield_percentage,
    validate_catalog,
    validate_ingredient_cost,
)
from src.services.diagnostics import CollectingDiagnosticsSink, LoggingDiagnosticsSink
from src.services.dto import IngredientSnapshot
from src.services.exceptions import ValidationError
from src.utils.config import Config, set_config


def make_ingredient(**overrides):
    data = {
        "id": "i1",
        "name": "Basil",
        "unit": "kg",
        "cost_per_unit": 10.0,
        "yield_percentage": 80,
    }
    data.update(overrides)
    return IngredientSnapshot(**data)


class TestResolveYieldPercentage:
    """Tests for the yield precedence rule."""

    def test_recipe_yield_wins(self):
        """A line-level yield overrides the ingredient's."""
        assert resolve_yield_percentage(90, 80) == 90

    def test_ingredient_yield_used_without_override(self):
        """The ingredient's yield applies when the line has none."""
        assert resolve_yield_percentage(None, 80) == 80

    def test_defaults_to_100(self):
        """With no yield anywhere the full quantity is usable."""
        assert resolve_yield_percentage(None, None) == 100.0


class TestCalculateEffectiveCost:
    """Tests for the effective cost formula."""

    def test_yield_80(self):
        """10 at 80 % yield costs 12.50 per usable unit."""
        assert calculate_effective_cost(10, 80) == pytest.approx(12.5)

    def test_no_yield_is_cost(self):
        """Without a yield the effective cost equals the purchase cost."""
        assert calculate_effective_cost(7.3) == pytest.approx(7.3)


class TestValidateIngredientCost:
    """Tests for validate_ingredient_cost."""

    def test_matching_stored_value_is_valid(self):
        """Stored 12.50 for cost 10 at 80 % passes."""
        sink = CollectingDiagnosticsSink()
        result = validate_ingredient_cost(make_ingredient(effective_cost_per_unit=12.5), sink)

        assert result.is_valid is True
        assert result.expected_effective_cost == pytest.approx(12.5)
        assert result.actual_effective_cost == pytest.approx(12.5)
        assert sink.mismatches == []

    def test_stale_stored_value_is_invalid(self):
        """Stored 10.00 for cost 10 at 80 % fails by 2.50."""
        sink = CollectingDiagnosticsSink()
        result = validate_ingredient_cost(make_ingredient(effective_cost_per_unit=10.0), sink)

        assert result.is_valid is False
        assert result.expected_effective_cost == pytest.approx(12.5)
        assert result.actual_effective_cost == pytest.approx(10.0)
        assert len(sink.mismatches) == 1
        mismatch = sink.mismatches[0]
        assert mismatch.ingredient_name == "Basil"
        assert mismatch.difference == pytest.approx(2.5)

    def test_missing_stored_value_compares_cost(self):
        """Without a stored value the purchase cost is compared."""
        sink = CollectingDiagnosticsSink()
        result = validate_ingredient_cost(make_ingredient(), sink)

        assert result.actual_effective_cost == pytest.approx(10.0)
        assert result.is_valid is False

    def test_no_yield_no_stored_value_is_valid(self):
        """An ingredient with neither field is trivially consistent."""
        result = validate_ingredient_cost(
            make_ingredient(yield_percentage=None), CollectingDiagnosticsSink()
        )
        assert result.is_valid is True

    def test_difference_below_tolerance_is_valid(self):
        """A rounding difference under one cent passes."""
        result = validate_ingredient_cost(
            make_ingredient(effective_cost_per_unit=12.495), CollectingDiagnosticsSink()
        )
        assert result.is_valid is True

    def test_custom_tolerance(self):
        """A looser tolerance accepts a larger gap."""
        result = validate_ingredient_cost(
            make_ingredient(effective_cost_per_unit=12.4), CollectingDiagnosticsSink(), tolerance=0.5
        )
        assert result.is_valid is True

    def test_tolerance_from_config(self):
        """Without an explicit tolerance the configured one applies."""
        set_config(Config(cost_tolerance=0.5))
        result = validate_ingredient_cost(
            make_ingredient(effective_cost_per_unit=12.4), CollectingDiagnosticsSink()
        )
        assert result.is_valid is True

    def test_deterministic(self):
        """Validating the same ingredient twice gives the same result."""
        ingredient = make_ingredient(effective_cost_per_unit=10.0)
        sink = CollectingDiagnosticsSink()

        assert validate_ingredient_cost(ingredient, sink) == validate_ingredient_cost(
            ingredient, sink
        )

    def test_default_sink_logs_warning(self, caplog):
        """Without a sink the mismatch is logged as a warning keyed by name."""
        with caplog.at_level(logging.WARNING):
            validate_ingredient_cost(make_ingredient(effective_cost_per_unit=10.0))

        assert "validate_ingredient_cost: cost_mismatch for Basil" in caplog.text
        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.expected == pytest.approx(12.5)
        assert record.actual == pytest.approx(10.0)

    def test_injected_logger(self, caplog):
        """LoggingDiagnosticsSink writes to the logger it was given."""
        logger = logging.getLogger("kitchen.reports")
        with caplog.at_level(logging.WARNING, logger="kitchen.reports"):
            validate_ingredient_cost(
                make_ingredient(effective_cost_per_unit=10.0), LoggingDiagnosticsSink(logger)
            )

        assert caplog.records[-1].name == "kitchen.reports"


class TestResolveLineEffectiveCost:
    """Tests for the per-use effective cost."""

    def test_line_yield_recomputes_from_cost(self):
        """A line yield of 50 % doubles the purchase cost."""
        ingredient = make_ingredient(effective_cost_per_unit=12.5)
        assert resolve_line_effective_cost(ingredient, 50) == pytest.approx(20.0)

    def test_stored_value_used_without_override(self):
        """The stored value is used even when it is stale."""
        ingredient = make_ingredient(effective_cost_per_unit=10.0)
        assert resolve_line_effective_cost(ingredient) == pytest.approx(10.0)

    def test_formula_when_nothing_stored(self):
        """With nothing stored the ingredient's yield is applied."""
        assert resolve_line_effective_cost(make_ingredient()) == pytest.approx(12.5)


class TestValidateCatalog:
    """Tests for validate_catalog."""

    def test_returns_mismatches_in_order(self):
        """Only invalid ingredients are returned, in input order."""
        ingredients = [
            make_ingredient(id="a", name="A", effective_cost_per_unit=10.0),
            make_ingredient(id="b", name="B", effective_cost_per_unit=12.5),
            make_ingredient(id="c", name="C", effective_cost_per_unit=1.0),
        ]
        sink = CollectingDiagnosticsSink()

        mismatches = validate_catalog(ingredients, sink)

        assert [m.ingredient_id for m in mismatches] == ["a", "c"]
        assert sink.mismatches == mismatches


class TestIngredientSnapshotValidation:
    """Invalid ingredients are rejected at construction."""

    @pytest.mark.parametrize("yield_percentage", [0, -5, 100.5])
    def test_yield_out_of_range(self, yield_percentage):
        """Yield must be in (0, 100]."""
        with pytest.raises(ValidationError):
            make_ingredient(yield_percentage=yield_percentage)

    def test_negative_cost(self):
        """Purchase cost cannot be negative."""
        with pytest.raises(ValidationError):
            make_ingredient(cost_per_unit=-1)

    def test_yield_100_accepted(self):
        """The upper bound is inclusive."""
        assert make_ingredient(yield_percentage=100).yield_percentage == 100
