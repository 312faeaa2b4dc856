"""ShoppingList aggregate: consolidated ingredients grouped by shopping category."""
from datetime import date
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from mealcart.domain.Category import ShoppingCategory
from mealcart.domain.CheckState import check_key
from mealcart.domain.Ingredient import ConsolidatedIngredient
from mealcart.utilities.constants import DATE_FORMAT


def _sort_key(item: ConsolidatedIngredient):
    return (item.name.lower(), item.name, item.unit)


class ShoppingList:
    def __init__(self, plan_id: str = "", plan_name: str = "", week_start: Optional[date] = None,
                 items: Optional[List[ConsolidatedIngredient]] = None, recipe_count: int = 0):
        self.plan_id = plan_id
        self.plan_name = plan_name
        self.week_start = week_start
        self.recipe_count = recipe_count
        grouped: Dict[ShoppingCategory, List[ConsolidatedIngredient]] = {}
        for item in items or []:
            grouped.setdefault(item.category, []).append(item)
        # fixed store order, empty categories omitted
        self._categories: Dict[ShoppingCategory, List[ConsolidatedIngredient]] = {
            category: sorted(grouped[category], key=_sort_key)
            for category in ShoppingCategory.ordered() if category in grouped
        }

    # --- Queries -----------------------------------------------------------
    @property
    def categories(self) -> List[ShoppingCategory]:
        return list(self._categories)

    def items_in(self, category: ShoppingCategory) -> List[ConsolidatedIngredient]:
        '''Current items of a category (empty list for unknown or empty categories).'''
        return list(self._categories.get(category, []))

    def iter_items(self) -> Iterator[Tuple[ShoppingCategory, ConsolidatedIngredient]]:
        for category, items in self._categories.items():
            for item in items:
                yield category, item

    def find(self, item_name: str) -> Optional[ConsolidatedIngredient]:
        '''First item whose name matches case-insensitively, in category order.'''
        needle = (item_name or "").strip().lower()
        for _, item in self.iter_items():
            if item.name.lower() == needle:
                return item
        return None

    def keys(self, category: Optional[ShoppingCategory] = None) -> List[str]:
        '''Check keys of every item, or of one category.'''
        if category is not None:
            return [check_key(category, item.name) for item in self.items_in(category)]
        return [check_key(c, item.name) for c, item in self.iter_items()]

    @property
    def item_count(self) -> int:
        return sum(len(items) for items in self._categories.values())

    @property
    def is_empty(self) -> bool:
        return self.item_count == 0

    def summary(self) -> Dict[str, int]:
        return {"items": self.item_count, "recipes": self.recipe_count}

    # --- Check-state projections -------------------------------------------
    def category_stats(self, check_state: Optional[Mapping[str, bool]] = None) -> Dict[str, Dict[str, int]]:
        state = check_state or {}
        return {
            category.value: {
                "total": len(items),
                "checked": sum(1 for item in items if state.get(check_key(category, item.name))),
            }
            for category, items in self._categories.items()
        }

    def progress(self, check_state: Optional[Mapping[str, bool]] = None) -> int:
        '''Checked share of all items, as a whole percentage.'''
        total = self.item_count
        if not total:
            return 0
        state = check_state or {}
        checked = sum(1 for key in self.keys() if state.get(key))
        return round(checked * 100 / total)

    def to_dict(self, check_state: Optional[Mapping[str, bool]] = None):
        '''Payload shape used by the persistence API.'''
        state = check_state
        categorized = {}
        for category, items in self._categories.items():
            categorized[category.value] = [
                item.to_dict(None if state is None else bool(state.get(check_key(category, item.name))))
                for item in items
            ]
        return {
            "mealPlanId": self.plan_id,
            "mealPlanName": self.plan_name,
            "week": self.week_start.strftime(DATE_FORMAT) if self.week_start else None,
            "numberOfRecipes": self.recipe_count,
            "summary": self.summary(),
            "categorizedIngredients": categorized,
        }

    def __str__(self) -> str:
        return f"Shopping List {self.plan_name or self.plan_id}: {self.item_count} items"

    def __repr__(self) -> str:
        return self.__str__()
