"""ShoppingCategory: the closed vocabulary of shopping-aisle categories."""
from enum import Enum
from typing import Optional


class ShoppingCategory(str, Enum):
    PRODUCE = "Produce"
    MEAT_SEAFOOD = "Meat & Seafood"
    DAIRY_EGGS = "Dairy & Eggs"
    BAKERY = "Bakery"
    PANTRY = "Pantry"
    CANNED_GOODS = "Canned Goods"
    FROZEN_FOODS = "Frozen Foods"
    CONDIMENTS_SPICES = "Condiments & Spices"
    OTHER = "Other"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def ordered(cls):
        '''Categories in walking order through a store; Other is always last.'''
        return list(cls)

    @classmethod
    def parse(cls, value) -> Optional["ShoppingCategory"]:
        '''Resolve a category from its label (case-insensitive) or enum member name.'''
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        text = value.strip().lower()
        for member in cls:
            if member.value.lower() == text or member.name.lower() == text:
                return member
        return None

__all__ = ['ShoppingCategory']
