import unittest
from mealcart.domain.Category import ShoppingCategory
from mealcart.logic.shopping.categorizer import categorize


class TestCategorizer(unittest.TestCase):

    def test_keywords_and_plurals(self):
        self.assertEqual(categorize("eggs"), ShoppingCategory.DAIRY_EGGS)
        self.assertEqual(categorize("tomatoes"), ShoppingCategory.PRODUCE)
        self.assertEqual(categorize("Chicken Breast"), ShoppingCategory.MEAT_SEAFOOD)
        self.assertEqual(categorize("sourdough bread"), ShoppingCategory.BAKERY)
        self.assertEqual(categorize("flour"), ShoppingCategory.PANTRY)

    def test_phrases_win_over_single_words(self):
        self.assertEqual(categorize("black pepper"), ShoppingCategory.CONDIMENTS_SPICES)
        self.assertEqual(categorize("red pepper"), ShoppingCategory.PRODUCE)
        self.assertEqual(categorize("tomato sauce"), ShoppingCategory.CANNED_GOODS)
        self.assertEqual(categorize("vanilla ice cream"), ShoppingCategory.FROZEN_FOODS)
        self.assertEqual(categorize("chicken broth"), ShoppingCategory.CANNED_GOODS)

    def test_whole_words_only(self):
        # "egg" must not match inside "eggplant", "nut" not inside "nutmeg"
        self.assertEqual(categorize("eggplant"), ShoppingCategory.PRODUCE)
        self.assertEqual(categorize("nutmeg"), ShoppingCategory.CONDIMENTS_SPICES)

    def test_unknown_names_are_other(self):
        self.assertEqual(categorize("xyzzy-fruit"), ShoppingCategory.OTHER)
        self.assertEqual(categorize("quux"), ShoppingCategory.OTHER)

    def test_total_on_odd_input(self):
        for value in (None, "", "   ", 42):
            self.assertEqual(categorize(value), ShoppingCategory.OTHER)

    def test_category_parse(self):
        self.assertEqual(ShoppingCategory.parse("dairy & eggs"), ShoppingCategory.DAIRY_EGGS)
        self.assertEqual(ShoppingCategory.parse("FROZEN_FOODS"), ShoppingCategory.FROZEN_FOODS)
        self.assertIsNone(ShoppingCategory.parse("Toys"))
        self.assertEqual(ShoppingCategory.ordered()[-1], ShoppingCategory.OTHER)
