"""Ingredient domain entities: per-recipe occurrences and consolidated shopping lines."""
import math
from typing import Any, List, NamedTuple, Optional, Union

from mealcart.domain.Category import ShoppingCategory

Quantity = Union[int, float, str]


def as_number(value: Any) -> Optional[Union[int, float]]:
    '''Returns the numeric value of a quantity, or None when it is descriptive text.'''
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return int(number) if number.is_integer() and "." not in text else number
    return None


def format_quantity(value: Any) -> str:
    '''Human readable quantity: 2.0 -> "2", 0.333333 -> "0.33", text unchanged.'''
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{value:.2f}".rstrip("0").rstrip(".")
    if value is None:
        return ""
    return str(value)


class MergeKey(NamedTuple):
    '''Composite consolidation key; structural equality, no string concatenation.'''
    name: str
    unit: str


class IngredientOccurrence(NamedTuple):
    name: str
    quantity: Quantity
    unit: str
    recipe_title: str
    day: str
    meal_type: str


class ConsolidatedIngredient:
    def __init__(self, key: MergeKey, name: str, quantity: Quantity, unit: str,
                 recipes: Optional[List[str]] = None,
                 category: ShoppingCategory = ShoppingCategory.OTHER):
        self.key = key
        self.name = name
        self.quantity = quantity
        self.unit = unit
        self.recipes = recipes[:] if recipes else []
        self.category = category

    def __str__(self) -> str:
        return f"{self.name} - {format_quantity(self.quantity)} {self.unit}".rstrip()

    __repr__ = __str__

    def __eq__(self, other) -> bool:
        if not isinstance(other, ConsolidatedIngredient):
            return NotImplemented
        return (self.key, self.name, self.quantity, self.unit, set(self.recipes), self.category) == \
            (other.key, other.name, other.quantity, other.unit, set(other.recipes), other.category)

    def __hash__(self) -> int:
        return hash((self.key, self.name, self.unit, self.category))

    @property
    def display_quantity(self) -> str:
        return format_quantity(self.quantity)

    def to_dict(self, checked: Optional[bool] = None):
        out = {
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "recipes": list(self.recipes),
            "category": self.category.value,
        }
        if checked is not None:
            out["checked"] = checked
        return out
