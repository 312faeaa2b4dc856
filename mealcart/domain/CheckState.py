"""Check-state keys and the operation shapes sent to the persistence API."""
from typing import Dict, Iterable, List, Optional

from mealcart.domain.Category import ShoppingCategory


def check_key(category, item_name: str) -> str:
    '''Composite key "<category>-<lowercased item name>".'''
    label = category.value if isinstance(category, ShoppingCategory) else str(category)
    return f"{label}-{(item_name or '').strip().lower()}"


class CheckUpdate:
    """One check-state mutation.

    Exactly one of ``items``, ``category`` or ``check_all`` describes the
    operation; ``keys`` holds the check keys it resolved to on this side so
    local repositories can apply it without rebuilding the shopping list.
    """

    ITEMS = "items"
    CATEGORY = "category"
    CHECK_ALL = "checkAll"

    def __init__(self, checked: bool, items: Optional[List[str]] = None,
                 category: Optional[ShoppingCategory] = None, check_all: bool = False,
                 keys: Optional[Iterable[str]] = None):
        shapes = sum([items is not None, category is not None, bool(check_all)])
        if shapes != 1:
            raise ValueError("CheckUpdate needs exactly one of items, category or check_all")
        self.checked = bool(checked)
        self.items = list(items) if items is not None else None
        self.category = category
        self.check_all = bool(check_all)
        self.keys = list(keys) if keys is not None else []

    @property
    def kind(self) -> str:
        if self.items is not None:
            return self.ITEMS
        if self.category is not None:
            return self.CATEGORY
        return self.CHECK_ALL

    @classmethod
    def for_item(cls, category: ShoppingCategory, item_name: str, checked: bool):
        return cls(checked, items=[item_name], keys=[check_key(category, item_name)])

    @classmethod
    def for_category(cls, category: ShoppingCategory, checked: bool, keys: Iterable[str]):
        return cls(checked, category=category, keys=keys)

    @classmethod
    def for_all(cls, checked: bool, keys: Iterable[str]):
        return cls(checked, check_all=True, keys=keys)

    def apply(self, state: Dict[str, bool]) -> Dict[str, bool]:
        '''Writes the update into a key -> checked mapping (in place) and returns it.'''
        for key in self.keys:
            state[key] = self.checked
        return state

    def to_payload(self):
        '''Body of PATCH /shopping-list/check.'''
        if self.items is not None:
            return {"items": list(self.items), "checked": self.checked}
        if self.category is not None:
            return {"category": self.category.value, "checked": self.checked}
        return {"checkAll": True, "checked": self.checked}

    def __repr__(self) -> str:
        return f"CheckUpdate({self.kind}, checked={self.checked}, keys={len(self.keys)})"
