"""Tests for recipe expansion.

Tests cover:
- Pre-order flattening with parent tagging
- Quantity propagation through semilavorato batches
- Cycle, missing reference and depth guards
- Per-use effective cost and unit conversion
- Aggregation helpers (base ingredients, allergens)
"""

import logging

import pytest

from src.services.diagnostics import CollectingDiagnosticsSink
from src.services.dto import IngredientSnapshot, RecipeIngredientSnapshot, RecipeSnapshot
from src.services.exceptions import (
    CycleDetected,
    MaxDepthExceeded,
    MissingReference,
    ValidationError,
)
from src.services.recipe_expander import expand_recipe, get_allergens, get_base_ingredients
from src.utils.config import Config, set_config


def line(line_id, target, quantity, **kwargs):
    return RecipeIngredientSnapshot(id=line_id, ingredient_id=target, quantity=quantity, **kwargs)


def sub(line_id, target, quantity=1):
    return line(line_id, target, quantity, is_semilavorato=True)


def recipe(recipe_id, lines, **kwargs):
    kwargs.setdefault("portions", 1)
    kwargs.setdefault("preparation_time", 10)
    return RecipeSnapshot(id=recipe_id, name=recipe_id.title(), recipe_ingredients=lines, **kwargs)


class TestExpandOrdering:
    """Tests for traversal order and tagging."""

    def test_nested_example(self, pasta, ingredient_lookup, recipe_lookup):
        """Sauce's tomato comes first, tagged with Sauce, then the flour."""
        expanded = expand_recipe(pasta, ingredient_lookup, recipe_lookup)

        assert [(e.name, e.depth, e.quantity) for e in expanded] == [
            ("Tomato", 1, 2.0),
            ("Flour", 0, 0.2),
        ]
        assert expanded[0].parent_recipe_id == "sauce"
        assert expanded[0].parent_recipe_name == "Sauce"
        assert expanded[1].parent_recipe_id is None
        assert expanded[1].parent_recipe_name is None

    def test_semilavorato_line_itself_not_emitted(self, pasta, ingredient_lookup, recipe_lookup):
        """Only leaves appear in the output."""
        expanded = expand_recipe(pasta, ingredient_lookup, recipe_lookup)
        assert all(not e.recipe_ingredient.is_semilavorato for e in expanded)

    def test_siblings_keep_listing_order(self, ingredient_lookup):
        """Each subtree is emitted before the next sibling."""
        inner = recipe("inner", [line("i1", "egg", 1), line("i2", "flour", 0.1)])
        outer = recipe(
            "outer",
            [line("o1", "tomato", 1), sub("o2", "inner"), line("o3", "egg", 2)],
        )
        lookup = {"inner": inner, "outer": outer}

        expanded = expand_recipe(outer, ingredient_lookup, lookup)

        assert [e.recipe_ingredient.id for e in expanded] == ["o1", "i1", "i2", "o3"]
        assert [e.depth for e in expanded] == [0, 1, 1, 0]

    def test_idempotent(self, pasta, ingredient_lookup, recipe_lookup):
        """Two expansions of unchanged inputs are identical."""
        first = expand_recipe(pasta, ingredient_lookup, recipe_lookup)
        second = expand_recipe(pasta, ingredient_lookup, recipe_lookup)
        assert first == second

    def test_inputs_not_mutated(self, pasta, ingredient_lookup, recipe_lookup):
        """The lookups are left exactly as supplied."""
        before = (dict(ingredient_lookup), dict(recipe_lookup))
        expand_recipe(pasta, ingredient_lookup, recipe_lookup)
        assert (dict(ingredient_lookup), dict(recipe_lookup)) == before

    def test_empty_recipe(self, ingredient_lookup):
        """A recipe with no lines expands to nothing."""
        assert expand_recipe(recipe("empty", []), ingredient_lookup, {}) == []


class TestExpandQuantities:
    """Tests for quantity propagation."""

    def test_sub_recipe_quantity_multiplies_leaves(self, ingredient_lookup, sauce):
        """Two batches of sauce need twice the tomato."""
        root = recipe("root", [sub("r1", "sauce", 2)])
        expanded = expand_recipe(root, ingredient_lookup, {"sauce": sauce})
        assert expanded[0].quantity == pytest.approx(4.0)

    def test_multiplier_compounds_through_levels(self, ingredient_lookup):
        """Batch counts multiply at every level."""
        level2 = recipe("level2", [line("l2", "egg", 3)])
        level1 = recipe("level1", [sub("l1", "level2", 2)])
        root = recipe("root", [sub("r1", "level1", 0.5)])
        lookup = {"level1": level1, "level2": level2}

        expanded = expand_recipe(root, ingredient_lookup, lookup)

        assert expanded[0].quantity == pytest.approx(3.0)
        assert expanded[0].depth == 2
        assert expanded[0].parent_recipe_id == "level2"

    def test_same_sub_recipe_in_two_branches(self, ingredient_lookup, sauce):
        """Independent branches may share a sub-recipe."""
        left = recipe("left", [sub("l1", "sauce")])
        right = recipe("right", [sub("r1", "sauce")])
        root = recipe("root", [sub("x1", "left"), sub("x2", "right")])
        lookup = {"sauce": sauce, "left": left, "right": right}

        expanded = expand_recipe(root, ingredient_lookup, lookup)

        assert [e.name for e in expanded] == ["Tomato", "Tomato"]
        assert all(e.depth == 2 for e in expanded)

    def test_same_sub_recipe_twice_in_one_recipe(self, ingredient_lookup, sauce):
        """Listing a sub-recipe twice is not a cycle."""
        root = recipe("root", [sub("r1", "sauce"), sub("r2", "sauce", 3)])
        expanded = expand_recipe(root, ingredient_lookup, {"sauce": sauce})
        assert [e.quantity for e in expanded] == [pytest.approx(2.0), pytest.approx(6.0)]


class TestExpandGuards:
    """Tests for structural errors."""

    def test_two_recipe_cycle(self, ingredient_lookup):
        """A -> B -> A fails with the full path."""
        a = recipe("a", [sub("a1", "b")])
        b = recipe("b", [sub("b1", "a")])

        with pytest.raises(CycleDetected) as exc_info:
            expand_recipe(a, ingredient_lookup, {"a": a, "b": b})

        assert exc_info.value.path == ["a", "b", "a"]
        assert "a -> b -> a" in str(exc_info.value)

    def test_self_reference(self, ingredient_lookup):
        """A recipe listing itself is a cycle."""
        a = recipe("a", [line("a0", "egg", 1), sub("a1", "a")])

        with pytest.raises(CycleDetected) as exc_info:
            expand_recipe(a, ingredient_lookup, {"a": a})

        assert exc_info.value.path == ["a", "a"]

    def test_cycle_below_root(self, ingredient_lookup):
        """A cycle that does not pass through the root is still found."""
        b = recipe("b", [sub("b1", "c")])
        c = recipe("c", [sub("c1", "b")])
        root = recipe("root", [sub("r1", "b")])

        with pytest.raises(CycleDetected) as exc_info:
            expand_recipe(root, ingredient_lookup, {"b": b, "c": c})

        assert exc_info.value.path == ["root", "b", "c", "b"]

    def test_cycle_logged(self, ingredient_lookup, caplog):
        """Structural failures are logged before they propagate."""
        a = recipe("a", [sub("a1", "b")])
        b = recipe("b", [sub("b1", "a")])

        with caplog.at_level(logging.WARNING):
            with pytest.raises(CycleDetected):
                expand_recipe(a, ingredient_lookup, {"a": a, "b": b})

        assert "expand_recipe: CycleDetected" in caplog.text

    def test_missing_sub_recipe(self, ingredient_lookup):
        """A semilavorato line pointing nowhere names the id and the line."""
        root = recipe("root", [sub("r1", "ghost")])

        with pytest.raises(MissingReference) as exc_info:
            expand_recipe(root, ingredient_lookup, {})

        assert exc_info.value.reference_id == "ghost"
        assert exc_info.value.recipe_ingredient_id == "r1"
        assert exc_info.value.reference_type == "recipe"

    def test_missing_ingredient(self, ingredient_lookup):
        """A leaf pointing to an unknown ingredient fails too."""
        root = recipe("root", [line("r1", "saffron", 0.01)])

        with pytest.raises(MissingReference) as exc_info:
            expand_recipe(root, ingredient_lookup, {})

        assert exc_info.value.reference_type == "ingredient"
        assert exc_info.value.reference_id == "saffron"

    def test_max_depth_exceeded(self, ingredient_lookup):
        """Nesting deeper than the guard fails with limit and path."""
        lookup = {}
        for level in range(5, 0, -1):
            lines = [line(f"l{level}", "egg", 1)] if level == 5 else [sub(f"l{level}", f"r{level + 1}")]
            lookup[f"r{level}"] = recipe(f"r{level}", lines)

        with pytest.raises(MaxDepthExceeded) as exc_info:
            expand_recipe(lookup["r1"], ingredient_lookup, lookup, max_depth=3)

        assert exc_info.value.max_depth == 3
        assert exc_info.value.path == ["r1", "r2", "r3", "r4", "r5"]

    def test_depth_equal_to_limit_allowed(self, ingredient_lookup, pasta, recipe_lookup):
        """One level of nesting fits max_depth=1."""
        expanded = expand_recipe(pasta, ingredient_lookup, recipe_lookup, max_depth=1)
        assert expanded[0].depth == 1

    def test_zero_depth_rejects_any_nesting(self, ingredient_lookup, pasta, recipe_lookup):
        """max_depth=0 allows only direct ingredients."""
        with pytest.raises(MaxDepthExceeded):
            expand_recipe(pasta, ingredient_lookup, recipe_lookup, max_depth=0)

    def test_default_depth_from_config(self, ingredient_lookup, pasta, recipe_lookup):
        """Without max_depth the configured guard applies."""
        set_config(Config(max_expansion_depth=0))
        with pytest.raises(MaxDepthExceeded):
            expand_recipe(pasta, ingredient_lookup, recipe_lookup)

    def test_long_chain_hits_guard_not_recursion_limit(self, ingredient_lookup):
        """A chain far deeper than the guard stops at the guard."""
        lookup = {}
        for level in range(2000, 0, -1):
            lines = [line(f"l{level}", "egg", 1)] if level == 2000 else [sub(f"l{level}", f"r{level + 1}")]
            lookup[f"r{level}"] = recipe(f"r{level}", lines)

        with pytest.raises(MaxDepthExceeded) as exc_info:
            expand_recipe(lookup["r1"], ingredient_lookup, lookup)

        assert exc_info.value.max_depth == 32
        assert len(exc_info.value.path) == 34

    def test_explicit_depth_above_limit_rejected(self, ingredient_lookup, pasta, recipe_lookup):
        """Guards the recursion cannot honor are refused up front."""
        with pytest.raises(ValidationError):
            expand_recipe(pasta, ingredient_lookup, recipe_lookup, max_depth=1000)


class TestExpandCosts:
    """Tests for per-use costing of leaves."""

    def test_line_cost(self, pasta, ingredient_lookup, recipe_lookup):
        """Line cost is quantity times effective cost."""
        expanded = expand_recipe(pasta, ingredient_lookup, recipe_lookup)

        assert expanded[0].effective_cost_per_unit == pytest.approx(2.5)
        assert expanded[0].line_cost == pytest.approx(5.0)
        assert expanded[1].line_cost == pytest.approx(0.24)

    def test_recipe_yield_override(self, ingredient_lookup):
        """A line yield replaces the ingredient's for that use only."""
        root = recipe(
            "root",
            [
                line("r1", "tomato", 1, recipe_yield_percentage=50),
                line("r2", "tomato", 1),
            ],
        )
        expanded = expand_recipe(root, ingredient_lookup, {})

        assert expanded[0].yield_percentage == 50
        assert expanded[0].effective_cost_per_unit == pytest.approx(4.0)
        assert expanded[1].yield_percentage == 80
        assert expanded[1].effective_cost_per_unit == pytest.approx(2.5)

    def test_unit_override_converted(self, ingredient_lookup):
        """500 g of an ingredient priced per kg costs half a unit."""
        root = recipe("root", [line("r1", "flour", 500, unit="g")])
        expanded = expand_recipe(root, ingredient_lookup, {})

        assert expanded[0].quantity == 500
        assert expanded[0].unit == "g"
        assert expanded[0].base_quantity == pytest.approx(0.5)
        assert expanded[0].line_cost == pytest.approx(0.6)

    def test_incompatible_units_used_unconverted(self, ingredient_lookup, caplog):
        """An incompatible unit logs a warning and keeps the raw quantity."""
        root = recipe("root", [line("r1", "flour", 2, unit="l")])

        with caplog.at_level(logging.WARNING):
            expanded = expand_recipe(root, ingredient_lookup, {})

        assert expanded[0].base_quantity == 2
        assert "incompatible_units" in caplog.text

    def test_stale_cost_reported_once(self):
        """An ingredient used twice is reported once per expansion."""
        stale = IngredientSnapshot(
            id="basil",
            name="Basil",
            unit="kg",
            cost_per_unit=10,
            yield_percentage=80,
            effective_cost_per_unit=10,
        )
        root = recipe("root", [line("r1", "basil", 1), line("r2", "basil", 2)])
        sink = CollectingDiagnosticsSink()

        expanded = expand_recipe(root, {"basil": stale}, {}, sink=sink)

        assert len(sink.mismatches) == 1
        assert sink.mismatches[0].ingredient_name == "Basil"
        # Computation continues with the stored value
        assert expanded[1].line_cost == pytest.approx(20.0)


class TestAggregation:
    """Tests for get_base_ingredients and get_allergens."""

    def test_base_ingredients_merge_units(self, ingredient_lookup):
        """Grams and kilograms of the same ingredient merge in kg."""
        root = recipe(
            "root",
            [
                line("r1", "flour", 500, unit="g"),
                line("r2", "egg", 2),
                line("r3", "flour", 1),
            ],
        )
        totals = get_base_ingredients(expand_recipe(root, ingredient_lookup, {}))

        assert [(t.ingredient_name, t.unit, t.total_quantity) for t in totals] == [
            ("Flour", "kg", 1.5),
            ("Egg", "pz", 2.0),
        ]
        assert totals[0].total_cost == pytest.approx(1.8)

    def test_base_ingredients_across_levels(self, pasta, ingredient_lookup, recipe_lookup):
        """Nested and direct uses are totalled together."""
        totals = get_base_ingredients(expand_recipe(pasta, ingredient_lookup, recipe_lookup))
        assert [t.ingredient_id for t in totals] == ["tomato", "flour"]

    def test_allergens_distinct_in_order(self, ingredient_lookup):
        """Allergens are split, trimmed and de-duplicated."""
        root = recipe("root", [line("r1", "flour", 1), line("r2", "tomato", 1), line("r3", "egg", 1)])
        allergens = get_allergens(expand_recipe(root, ingredient_lookup, {}))
        assert allergens == ["glutine", "uova"]
