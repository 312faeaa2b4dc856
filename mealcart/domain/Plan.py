"""MealPlan domain entities: week plan, meal slots and raw recipe ingredients.

The plan is read-only input to the shopping list engine. ``MealPlan.from_dict``
accepts the document produced by the meal-planning feature:

    {
      "_id": "...", "name": "...", "week": "2025-03-03",
      "plan": { "monday": { "breakfast": { "mealType": "breakfast",
                                           "recipe": "<id>" | {...},
                                           "recipeDetails": {...} } } },
      "notes": "..."
    }
"""
import hashlib
import json
from datetime import date, datetime
from typing import Any, Dict, Iterator, List, Optional, Tuple

from mealcart.utilities.constants import DATE_FORMAT, DAY_NAMES


class RawIngredient:
    def __init__(self, name: str = "", quantity: Any = "", unit: str = ""):
        self.name = name
        # number or free text ("a pinch"); never coerced here
        self.quantity = quantity
        self.unit = unit

    def __str__(self) -> str:
        return f"{self.name} - {self.quantity} {self.unit}".rstrip()

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        '''Creates a RawIngredient from a dictionary. Ignores unknown keys.'''
        d = data if isinstance(data, dict) else {}
        name = d.get("name") or ""
        unit = d.get("unit") or ""
        quantity = d.get("quantity", "")
        if quantity is None:
            quantity = ""
        return RawIngredient(str(name).strip(), quantity, str(unit).strip())

    def to_dict(self):
        return {"name": self.name, "quantity": self.quantity, "unit": self.unit}


class MealSlot:
    def __init__(self, meal_type: str, recipe_ref: Any = None, recipe_details: Optional[Dict[str, Any]] = None):
        self.meal_type = meal_type
        self.recipe_ref = recipe_ref
        self.recipe_details = recipe_details

    @property
    def is_resolved(self) -> bool:
        return isinstance(self.recipe_details, dict)

    @property
    def recipe_id(self) -> Optional[str]:
        '''Identity of the assigned recipe: the reference string, or the id of a recipe object.'''
        ref = self.recipe_ref
        if isinstance(ref, dict):
            ref = ref.get("_id") or ref.get("id") or ref.get("title")
        if ref is None and self.is_resolved:
            ref = self.recipe_details.get("_id") or self.recipe_details.get("title")
        return str(ref) if ref not in (None, "") else None

    @property
    def recipe_title(self) -> str:
        if self.is_resolved and self.recipe_details.get("title"):
            return str(self.recipe_details["title"])
        return self.recipe_id or ""

    @property
    def ingredients(self) -> List[RawIngredient]:
        if not self.is_resolved:
            return []
        raw = self.recipe_details.get("ingredients") or []
        return [RawIngredient.from_dict(i) for i in raw if isinstance(i, dict)]

    @staticmethod
    def from_dict(meal_type: str, data):
        '''Builds a slot; an inline recipe object carrying ingredients doubles as its details.'''
        d = data if isinstance(data, dict) else {"recipe": data}
        recipe = d.get("recipe")
        details = d.get("recipeDetails")
        if not isinstance(details, dict) and isinstance(recipe, dict) and "ingredients" in recipe:
            details = recipe
        return MealSlot(d.get("mealType") or meal_type, recipe, details if isinstance(details, dict) else None)

    def to_dict(self):
        out = {"mealType": self.meal_type, "recipe": self.recipe_ref}
        if self.recipe_details is not None:
            out["recipeDetails"] = self.recipe_details
        return out


class MealPlan:
    def __init__(self, plan_id: str, name: str = "", week_start: Optional[date] = None,
                 days: Optional[Dict[str, Dict[str, MealSlot]]] = None, notes: Optional[str] = None):
        self.id = plan_id
        self.name = name
        self.week_start = week_start
        self.days = days if days is not None else {}
        self.notes = notes

    def __str__(self) -> str:
        return f"MealPlan {self.id} '{self.name}' week of {self.week_start}"

    __repr__ = __str__

    def iter_slots(self) -> Iterator[Tuple[str, MealSlot]]:
        '''Yields (day, slot) Monday to Sunday, slots in document order.'''
        for day in DAY_NAMES:
            for slot in self.days.get(day, {}).values():
                yield day, slot

    def fingerprint(self) -> str:
        '''Content hash; changes whenever a slot or its ingredients change.'''
        payload = json.dumps(self.to_dict()["plan"], sort_keys=True, default=str)
        return hashlib.sha1(payload.encode("utf-8")).hexdigest()

    @staticmethod
    def _parse_week(value) -> Optional[date]:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str) and value:
            try:
                return datetime.strptime(value[:10], DATE_FORMAT).date()
            except ValueError:
                return None
        return None

    @staticmethod
    def from_dict(data):
        '''Creates a MealPlan from the meal-planning document. Unknown day names are dropped.'''
        d = dict(data) if isinstance(data, dict) else {}
        days: Dict[str, Dict[str, MealSlot]] = {}
        for day_name, meals in (d.get("plan") or {}).items():
            day = str(day_name).strip().lower()
            if day not in DAY_NAMES or not isinstance(meals, dict):
                continue
            days[day] = {meal_type: MealSlot.from_dict(meal_type, slot)
                         for meal_type, slot in meals.items() if slot}
        return MealPlan(
            plan_id=str(d.get("_id") or d.get("id") or ""),
            name=d.get("name") or "",
            week_start=MealPlan._parse_week(d.get("week")),
            days=days,
            notes=d.get("notes"),
        )

    def to_dict(self):
        return {
            "_id": self.id,
            "name": self.name,
            "week": self.week_start.strftime(DATE_FORMAT) if self.week_start else None,
            "plan": {day: {meal_type: slot.to_dict() for meal_type, slot in slots.items()}
                     for day, slots in self.days.items()},
            "notes": self.notes,
        }
