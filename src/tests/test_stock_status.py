"""Tests for the stock status hook."""

from src.services.dto import IngredientSnapshot
from src.services.stock_status import StockStatus, classify_stock


def threshold_policy(current_stock, min_stock_threshold):
    if current_stock is None or min_stock_threshold is None:
        return StockStatus.OK
    if current_stock <= 0:
        return StockStatus.CRITICAL
    if current_stock < min_stock_threshold:
        return StockStatus.LOW
    return StockStatus.OK


def make_ingredient(current_stock, min_stock_threshold=2.0):
    return IngredientSnapshot(
        id="flour",
        name="Flour",
        unit="kg",
        cost_per_unit=1.2,
        current_stock=current_stock,
        min_stock_threshold=min_stock_threshold,
    )


class TestClassifyStock:
    """classify_stock delegates to the supplied policy."""

    def test_policy_receives_stock_fields(self):
        """The policy gets current stock and threshold."""
        seen = []

        def policy(current, threshold):
            seen.append((current, threshold))
            return StockStatus.OK

        classify_stock(make_ingredient(5.0), policy)
        assert seen == [(5.0, 2.0)]

    def test_three_way_labels(self):
        """The sample policy covers every status."""
        assert classify_stock(make_ingredient(5.0), threshold_policy) is StockStatus.OK
        assert classify_stock(make_ingredient(1.0), threshold_policy) is StockStatus.LOW
        assert classify_stock(make_ingredient(0.0), threshold_policy) is StockStatus.CRITICAL

    def test_string_results_coerced(self):
        """A policy returning the plain label still yields the enum."""
        assert classify_stock(make_ingredient(1.0), lambda c, t: "low") is StockStatus.LOW
