"""
Input validation schemas using Pydantic for better data integrity.
"""
from pydantic import BaseModel, field_validator, model_validator
from typing import List, Optional

from mealcart.domain.Category import ShoppingCategory


class CheckUpdateInput(BaseModel):
    """Body of PATCH /shopping-list/check.

    Exactly one of ``items``, ``category`` or ``checkAll`` must be given.
    """
    items: Optional[List[str]] = None
    category: Optional[str] = None
    checkAll: Optional[bool] = None
    checked: bool

    @field_validator('items')
    @classmethod
    def validate_items(cls, v):
        """Strip names and require at least one."""
        if v is None:
            return v
        names = [name.strip() for name in v if name and name.strip()]
        if not names:
            raise ValueError('items must contain at least one item name')
        return names

    @field_validator('category')
    @classmethod
    def validate_category(cls, v):
        """Accept a category label or member name, return the label."""
        if v is None:
            return v
        category = ShoppingCategory.parse(v)
        if category is None:
            raise ValueError(f'Unknown category: {v}')
        return category.value

    @model_validator(mode='after')
    def exactly_one_shape(self):
        shapes = sum([self.items is not None, self.category is not None, bool(self.checkAll)])
        if shapes != 1:
            raise ValueError('Provide exactly one of items, category or checkAll')
        return self

    @property
    def shopping_category(self) -> Optional[ShoppingCategory]:
        return ShoppingCategory.parse(self.category) if self.category else None

