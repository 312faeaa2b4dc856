"""Ingredient categorizer.

Maps a canonical ingredient name to a ShoppingCategory using an ordered
keyword table. Multi-word rules come first so "black pepper" lands in
Condiments & Spices before the "pepper" produce rule sees it. Keywords match
as whole words (hyphens count as word characters) with an optional plural
suffix ("eggs", "tomatoes"), which keeps "egg" from matching "eggplant" and "nut" from matching "nutmeg".
"""
import re
from typing import List, Tuple

from mealcart.domain.Category import ShoppingCategory as C

CATEGORY_RULES: List[Tuple[C, Tuple[str, ...]]] = [
    # phrases
    (C.CONDIMENTS_SPICES, ("black pepper", "white pepper", "chili powder", "garlic powder",
                           "onion powder", "pepper flakes", "soy sauce", "hot sauce",
                           "fish sauce", "olive oil", "vegetable oil", "cooking oil", "sesame oil", "bay leaf")),
    (C.CANNED_GOODS, ("tomato sauce", "tomato paste", "canned", "coconut milk", "chickpea",
                      "chicken broth", "chicken stock", "beef broth", "vegetable broth")),
    (C.FROZEN_FOODS, ("ice cream", "frozen")),
    (C.PANTRY, ("peanut butter", "baking powder", "baking soda", "brown sugar", "maple syrup")),
    (C.DAIRY_EGGS, ("sour cream", "cream cheese", "heavy cream")),
    # single keywords
    (C.PRODUCE, ("apple", "banana", "berry", "berries", "fruit", "vegetable", "lettuce", "tomato",
                 "onion", "potato", "carrot", "pepper", "cucumber", "broccoli", "spinach", "kale",
                 "garlic", "herbs", "basil", "lemon", "lime", "avocado", "zucchini", "eggplant",
                 "mushroom", "celery", "cilantro", "parsley", "scallion", "cabbage")),
    (C.MEAT_SEAFOOD, ("beef", "chicken", "pork", "lamb", "turkey", "meat", "fish", "salmon",
                      "shrimp", "seafood", "bacon", "sausage", "tuna", "prawn")),
    (C.DAIRY_EGGS, ("milk", "cheese", "yogurt", "butter", "cream", "egg", "dairy", "parmesan",
                    "mozzarella")),
    (C.BAKERY, ("bread", "bagel", "bun", "roll", "bakery", "pastry", "croissant", "cake",
                "tortilla", "pita")),
    (C.PANTRY, ("flour", "sugar", "rice", "pasta", "spaghetti", "noodle", "cereal", "grain",
                "oat", "bean", "lentil", "nut", "seed", "coffee", "tea", "honey", "quinoa")),
    (C.CANNED_GOODS, ("can", "soup", "broth", "stock")),
    (C.FROZEN_FOODS, ("pizza", "fries")),
    (C.CONDIMENTS_SPICES, ("salt", "spice", "cumin", "ginger", "paprika", "herb", "sauce", "oil",
                           "vinegar", "condiment", "mayo", "mayonnaise", "ketchup", "mustard",
                           "cinnamon", "oregano", "thyme", "nutmeg")),
]


def _compile(keywords: Tuple[str, ...]) -> "re.Pattern[str]":
    alternatives = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
    return re.compile(rf"(?<![\w-])(?:{alternatives})(?:s|es)?(?![\w-])", re.IGNORECASE)


_COMPILED_RULES = [(category, _compile(keywords)) for category, keywords in CATEGORY_RULES]


def categorize(name) -> C:
    '''Return the shopping category for an ingredient name; Other when no rule matches.'''
    text = " ".join(str(name or "").lower().split())
    if not text:
        return C.OTHER
    for category, pattern in _COMPILED_RULES:
        if pattern.search(text):
            return category
    return C.OTHER


__all__ = ['categorize', 'CATEGORY_RULES']
