from typing import Final

DATE_FORMAT: Final[str] = "%Y-%m-%d"
DISPLAY_DATE_FORMAT: Final[str] = "{date:%B} {date.day}, {date:%Y}"  # day without zero padding
DAY_NAMES: Final[tuple[str, ...]] = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)
EMPTY_LIST_MESSAGE: Final[str] = (
    "No ingredients found. Add recipes to your meal plan to generate a shopping list."
)
NORMALIZER_PROMPT_TEMPLATE: Final[str] = (
    """
I have a list of ingredients from recipes that need to be normalized. Identify duplicate
ingredients (plural forms, variations in description, etc.) and return a mapping object.

The format should be a plain JSON object:
{
  "original ingredient name": "normalized name",
  ...
}

Rules:
1. Normalize to singular form when possible (e.g., "eggs" -> "egg")
2. Remove descriptive text in parentheses, but keep important distinctions
3. Keep different products separate (e.g., "tomato paste" and "canned tomatoes")
4. Keep different preparations separate (e.g., "garlic, minced" and "garlic powder")
5. Use the most common/generic name as the normalized value

Ingredients to normalize:
"""
)
NORMALIZER_JSON_SUFFIX: Final[str] = (
    "\nReturn ONLY the JSON object, with no code fences and no explanation text."
)
