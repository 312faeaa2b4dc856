"""Quantity merger.

Consolidates ingredient occurrences into one line per (canonical name, unit):

  - names are resolved through the normalizer mapping (missing -> raw name)
    and compared case-insensitively;
  - occurrences with the same name but a different unit stay separate lines
    ("flour, cup" and "flour, g"); an empty unit only matches an empty unit;
  - numeric quantities are summed; as soon as any contribution is free text
    the quantity becomes a comma-joined description ("a pinch, a pinch").

The result does not depend on the order of the occurrences: numbers are
summed with fsum, text parts are sorted, and the display name is the
smallest spelling among the contributors.
"""
import logging
import math
from typing import Callable, Dict, List, Mapping, Optional

from mealcart.domain.Category import ShoppingCategory
from mealcart.domain.Ingredient import (
    ConsolidatedIngredient, IngredientOccurrence, MergeKey, as_number, format_quantity,
)
from mealcart.logic.shopping.categorizer import categorize

logger = logging.getLogger(__name__)


def _canonical(name: str, mapping: Mapping[str, str]) -> str:
    value = mapping.get(name)
    if isinstance(value, str) and value.strip():
        return " ".join(value.split())
    return " ".join(name.split())


def _safe_category(categorizer, name: str) -> ShoppingCategory:
    try:
        category = ShoppingCategory.parse(categorizer(name))
    except Exception:
        logger.exception("Categorizer failed for %r; using Other", name)
        return ShoppingCategory.OTHER
    return category or ShoppingCategory.OTHER


class _Running:
    __slots__ = ("names", "numbers", "texts", "recipes")

    def __init__(self):
        self.names: List[str] = []
        self.numbers: List = []
        self.texts: List[str] = []
        self.recipes: List[str] = []

    def add(self, name: str, quantity, recipe_title: str):
        self.names.append(name)
        number = as_number(quantity)
        if number is not None:
            self.numbers.append(number)
        elif isinstance(quantity, str) and quantity.strip():
            self.texts.append(quantity.strip())
        if recipe_title and recipe_title not in self.recipes:
            self.recipes.append(recipe_title)

    def quantity(self):
        total = None
        if self.numbers:
            if all(isinstance(n, int) for n in self.numbers):
                total = sum(self.numbers)
            else:
                total = math.fsum(self.numbers)
        if not self.texts:
            return total if total is not None else ""
        parts = [format_quantity(total)] if total is not None else []
        return ", ".join(parts + sorted(self.texts))


def merge_occurrences(occurrences: List[IngredientOccurrence],
                      mapping: Optional[Mapping[str, str]] = None,
                      categorizer: Callable[[str], ShoppingCategory] = categorize
                      ) -> List[ConsolidatedIngredient]:
    """Merge occurrences into consolidated ingredients, one per MergeKey.

    Args:
        occurrences: output of the extractor.
        mapping: raw name -> canonical name from the normalizer (may be partial).
        categorizer: name -> ShoppingCategory, applied to the canonical name.

    Returns:
        Unordered list of ConsolidatedIngredient; keys are unique.
    """
    mapping = mapping or {}
    running: Dict[MergeKey, _Running] = {}
    for occ in occurrences:
        canonical = _canonical(occ.name, mapping)
        key = MergeKey(canonical.lower(), (occ.unit or "").strip())
        running.setdefault(key, _Running()).add(canonical, occ.quantity, occ.recipe_title)

    merged: List[ConsolidatedIngredient] = []
    for key, entry in running.items():
        name = min(entry.names)
        merged.append(ConsolidatedIngredient(
            key=key,
            name=name,
            quantity=entry.quantity(),
            unit=key.unit,
            recipes=entry.recipes,
            category=_safe_category(categorizer, name),
        ))
    return merged


__all__ = ['merge_occurrences']
