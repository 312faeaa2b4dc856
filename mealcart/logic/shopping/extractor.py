"""Ingredient extraction: flattens a week plan into tagged ingredient occurrences."""
from typing import List, Set

from mealcart.domain.Ingredient import IngredientOccurrence
from mealcart.domain.Plan import MealPlan


def extract_occurrences(plan: MealPlan) -> List[IngredientOccurrence]:
    """Walk every resolved meal slot of the plan.

    Days run Monday to Sunday, slots keep document order and ingredients keep
    recipe order. Slots whose recipe was never resolved contribute nothing.
    Ingredients without a name are ignored.
    """
    if not plan:
        return []
    occurrences: List[IngredientOccurrence] = []
    for day, slot in plan.iter_slots():
        if not slot.is_resolved:
            continue
        title = slot.recipe_title
        for ing in slot.ingredients:
            if not ing.name:
                continue
            occurrences.append(IngredientOccurrence(
                name=ing.name,
                quantity=ing.quantity,
                unit=ing.unit,
                recipe_title=title,
                day=day,
                meal_type=slot.meal_type,
            ))
    return occurrences


def resolved_recipe_refs(plan: MealPlan) -> Set[str]:
    '''Distinct recipe identities across the plan that have resolved details.'''
    if not plan:
        return set()
    return {slot.recipe_id for _, slot in plan.iter_slots()
            if slot.is_resolved and slot.recipe_id}


def distinct_names(occurrences: List[IngredientOccurrence]) -> List[str]:
    '''Raw names as authored, first-seen order, exact duplicates removed.'''
    seen: Set[str] = set()
    names: List[str] = []
    for occ in occurrences:
        if occ.name not in seen:
            seen.add(occ.name)
            names.append(occ.name)
    return names


__all__ = ['extract_occurrences', 'resolved_recipe_refs', 'distinct_names']
