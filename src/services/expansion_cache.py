"""
Caller-side memoization of recipe expansions.

expand_recipe itself never caches. Report builders that cost many recipes
sharing the same sub-recipes keep one ExpansionCache and pass the current
catalog version on every call. The cache holds entries for one version at a
time: the first call with a new version drops everything stored for the
previous one.
"""

import threading
from typing import Dict, List, Optional, Tuple

from src.services.diagnostics import DiagnosticsSink
from src.services.dto import IngredientLookup, RecipeLookup, RecipeSnapshot
from src.services.recipe_expander import ExpandedIngredient, expand_recipe
from src.utils.config import get_config


CacheKey = Tuple[str, int]  # (recipe_id, max_depth)


class ExpansionCache:
    """
    Thread-safe store of expand_recipe results for the current catalog version.

    Entries are keyed by (recipe id, depth guard) so a result computed under a
    loose guard is never served to a caller asking for a tighter one. Failed
    expansions are not stored.
    """

    def __init__(self):
        self.cache: Dict[CacheKey, List[ExpandedIngredient]] = {}
        self.catalog_version: Optional[str] = None
        self.lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def _switch_version(self, catalog_version: str) -> None:
        if catalog_version != self.catalog_version:
            self.cache.clear()
            self.catalog_version = catalog_version

    def get_or_expand(
        self,
        recipe: RecipeSnapshot,
        ingredient_lookup: IngredientLookup,
        recipe_lookup: RecipeLookup,
        catalog_version: str,
        max_depth: Optional[int] = None,
        sink: Optional[DiagnosticsSink] = None,
    ) -> List[ExpandedIngredient]:
        """
        Return the cached expansion for this catalog version, expanding on a miss.

        Args:
            recipe: Root recipe
            ingredient_lookup: Ingredient snapshots by id
            recipe_lookup: Recipe snapshots by id
            catalog_version: Marker that changes whenever the catalog changes
            max_depth: Nesting guard passed to expand_recipe (defaults to config)
            sink: Receiver for cost mismatches on a miss

        Returns:
            A copy of the cached list (callers may reorder it freely)

        Raises:
            CycleDetected, MissingReference, MaxDepthExceeded: From expand_recipe
        """
        if max_depth is None:
            max_depth = get_config().max_expansion_depth
        key = (recipe.id, max_depth)

        with self.lock:
            self._switch_version(catalog_version)
            cached = self.cache.get(key)
            if cached is not None:
                self.hits += 1
                return list(cached)
            self.misses += 1

        expanded = expand_recipe(
            recipe, ingredient_lookup, recipe_lookup, max_depth=max_depth, sink=sink
        )

        with self.lock:
            # Another caller may have moved to a newer version meanwhile
            if self.catalog_version == catalog_version:
                self.cache[key] = expanded
        return list(expanded)

    def invalidate(self, recipe_id: Optional[str] = None) -> None:
        """Remove entries, optionally only those of one recipe."""
        with self.lock:
            if recipe_id is None:
                self.cache.clear()
                self.catalog_version = None
            else:
                for key in [k for k in self.cache if k[0] == recipe_id]:
                    del self.cache[key]

    def size(self) -> int:
        """Get current cache size."""
        with self.lock:
            return len(self.cache)
