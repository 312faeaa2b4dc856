import copy
import unittest
from datetime import date
from mealcart.domain.Category import ShoppingCategory
from mealcart.domain.Plan import MealPlan
from mealcart.logic.shopping.extractor import distinct_names, extract_occurrences, resolved_recipe_refs
from mealcart.logic.shopping.list_builder import consolidate
from mealcart.tests.sample_plans import RECIPE_A, RECIPE_B, plan_doc, recipe, week_doc


class TestMealPlan(unittest.TestCase):

    def test_from_dict(self):
        plan = MealPlan.from_dict(week_doc())
        self.assertEqual(plan.id, "plan-1")
        self.assertEqual(plan.week_start, date(2025, 3, 3))
        # day names are case-insensitive on input
        self.assertIn("tuesday", plan.days)
        self.assertFalse(plan.days["wednesday"]["lunch"].is_resolved)

    def test_unknown_days_dropped(self):
        doc = plan_doc({"funday": {"lunch": RECIPE_A}, "monday": {"lunch": RECIPE_B}})
        plan = MealPlan.from_dict(doc)
        self.assertEqual(list(plan.days), ["monday"])

    def test_inline_recipe_object_serves_as_details(self):
        doc = {"_id": "p", "name": "x", "week": "2025-03-03",
               "plan": {"monday": {"dinner": {"mealType": "dinner", "recipe": RECIPE_A}}}}
        plan = MealPlan.from_dict(doc)
        slot = plan.days["monday"]["dinner"]
        self.assertTrue(slot.is_resolved)
        self.assertEqual(slot.recipe_id, "recipe-a")

    def test_fingerprint_tracks_content(self):
        first = MealPlan.from_dict(week_doc())
        second = MealPlan.from_dict(week_doc())
        self.assertEqual(first.fingerprint(), second.fingerprint())
        changed = copy.deepcopy(week_doc())
        changed["plan"]["monday"]["breakfast"]["recipeDetails"]["ingredients"][0]["quantity"] = 6
        self.assertNotEqual(first.fingerprint(), MealPlan.from_dict(changed).fingerprint())


class TestExtractor(unittest.TestCase):

    def test_order_and_tags(self):
        occurrences = extract_occurrences(MealPlan.from_dict(week_doc()))
        days = [o.day for o in occurrences]
        self.assertEqual(days, sorted(days, key=["monday", "tuesday"].index))
        first = occurrences[0]
        self.assertEqual((first.name, first.quantity, first.unit), ("eggs", 2, "count"))
        self.assertEqual((first.recipe_title, first.day, first.meal_type), ("Recipe A", "monday", "breakfast"))
        # unresolved wednesday lunch contributes nothing
        self.assertNotIn("wednesday", days)

    def test_blank_names_skipped(self):
        r = recipe("Odd", [("", 1, "cup"), ("  ", 2, "g"), ("rice", 1, "cup")])
        plan = MealPlan.from_dict(plan_doc({"friday": {"dinner": r}}))
        self.assertEqual([o.name for o in extract_occurrences(plan)], ["rice"])

    def test_recipe_refs_and_names(self):
        plan = MealPlan.from_dict(week_doc())
        self.assertEqual(resolved_recipe_refs(plan), {"recipe-a", "recipe-b", "recipe-c"})
        names = distinct_names(extract_occurrences(plan))
        self.assertEqual(names.count("eggs"), 1)
        self.assertIn("Milk", names)


class TestScenarios(unittest.TestCase):

    def test_eggs_across_two_days(self):
        doc = plan_doc({
            "monday": {"breakfast": recipe("Recipe A", [("eggs", 2, "count")])},
            "tuesday": {"breakfast": recipe("Recipe B", [("eggs", 1, "count")])},
        })
        shopping_list = consolidate(MealPlan.from_dict(doc))
        self.assertEqual(shopping_list.categories, [ShoppingCategory.DAIRY_EGGS])
        [eggs] = shopping_list.items_in(ShoppingCategory.DAIRY_EGGS)
        self.assertEqual((eggs.name, eggs.unit, eggs.quantity), ("eggs", "count", 3))
        self.assertEqual(set(eggs.recipes), {"Recipe A", "Recipe B"})
        self.assertEqual(shopping_list.summary(), {"items": 1, "recipes": 2})

    def test_empty_plan(self):
        doc = plan_doc({"monday": {"lunch": "not-resolved"}})
        shopping_list = consolidate(MealPlan.from_dict(doc))
        self.assertEqual(shopping_list.categories, [])
        self.assertEqual(shopping_list.summary(), {"items": 0, "recipes": 0})
        self.assertTrue(shopping_list.is_empty)

    def test_categories_in_store_order_and_items_sorted(self):
        shopping_list = consolidate(MealPlan.from_dict(week_doc()))
        ranks = [ShoppingCategory.ordered().index(c) for c in shopping_list.categories]
        self.assertEqual(ranks, sorted(ranks))
        for category in shopping_list.categories:
            names = [i.name.lower() for i in shopping_list.items_in(category)]
            self.assertEqual(names, sorted(names))
        pantry = shopping_list.items_in(ShoppingCategory.PANTRY)
        self.assertEqual(sorted((i.name, i.unit) for i in pantry), [("flour", "cup"), ("flour", "g")])


def test_plan_repository_reads_list_and_mapping(tmp_path):
    import json
    from mealcart.infra.Plan_Repository import PlanRepository
    plans_file = tmp_path / "meal_plans.json"
    plans_file.write_text(json.dumps([week_doc("a"), week_doc("b")]), encoding="utf-8")
    repo = PlanRepository(plans_file)
    assert repo.get_plan("b").id == "b"
    assert repo.get_plan("zzz") is None
    plan = repo.get_plan("a")
    plan.name = "Renamed"
    repo.save_plan(plan)
    assert PlanRepository(plans_file).get_plan("a").name == "Renamed"
    assert PlanRepository(plans_file).get_plan("b") is not None
