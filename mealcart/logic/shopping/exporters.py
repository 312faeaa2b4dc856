"""Shopping list exporters: plain-text checklist and printable document.

Both read the aggregate and an optional check snapshot; neither touches the
check-state store.
"""
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from mealcart.domain.CheckState import check_key
from mealcart.domain.ShoppingList import ShoppingList
from mealcart.utilities.constants import DATE_FORMAT, DISPLAY_DATE_FORMAT, EMPTY_LIST_MESSAGE

UNCHECKED_BOX = "☐"
CHECKED_BOX = "☑"


def _week_label(shopping_list: ShoppingList) -> str:
    if shopping_list.week_start is None:
        return ""
    return DISPLAY_DATE_FORMAT.format(date=shopping_list.week_start)


def _quantity_text(item) -> str:
    return " ".join(part for part in (item.display_quantity, item.unit) if part)


def to_text(shopping_list: ShoppingList, check_state: Optional[Mapping[str, bool]] = None) -> str:
    """Render the list as a plain-text checklist.

    SHOPPING LIST FOR: <plan name>
    WEEK OF: <Month d, yyyy>

    ==== Produce ====
    ☐ Tomato: 3
    ...
    """
    state = check_state or {}
    lines = [f"SHOPPING LIST FOR: {shopping_list.plan_name}"]
    week = _week_label(shopping_list)
    if week:
        lines.append(f"WEEK OF: {week}")
    lines.append("")

    if shopping_list.is_empty:
        lines.append(EMPTY_LIST_MESSAGE)
        return "\n".join(lines) + "\n"

    for category in shopping_list.categories:
        lines.append(f"==== {category.value} ====")
        for item in shopping_list.items_in(category):
            box = CHECKED_BOX if state.get(check_key(category, item.name)) else UNCHECKED_BOX
            quantity = _quantity_text(item)
            lines.append(f"{box} {item.name}: {quantity}" if quantity else f"{box} {item.name}")
        lines.append("")
    return "\n".join(lines)


def to_printable(shopping_list: ShoppingList, check_state: Optional[Mapping[str, bool]] = None) -> Dict[str, Any]:
    '''Printable document: per category, each item with quantity, unit, "used in" recipes and check mark.'''
    state = check_state or {}
    categories: List[Dict[str, Any]] = []
    for category in shopping_list.categories:
        categories.append({
            "category": category.value,
            "items": [
                {
                    "name": item.name,
                    "quantity": item.display_quantity,
                    "unit": item.unit,
                    "usedIn": list(item.recipes),
                    "checked": bool(state.get(check_key(category, item.name))),
                }
                for item in shopping_list.items_in(category)
            ],
        })
    return {
        "title": f"Shopping List: {shopping_list.plan_name}" if shopping_list.plan_name else "Shopping List",
        "mealPlanId": shopping_list.plan_id,
        "week": shopping_list.week_start.strftime(DATE_FORMAT) if shopping_list.week_start else None,
        "weekLabel": _week_label(shopping_list),
        "generatedAt": datetime.now().strftime(DATE_FORMAT),
        "summary": shopping_list.summary(),
        "categories": categories,
        "emptyMessage": EMPTY_LIST_MESSAGE if shopping_list.is_empty else None,
    }


__all__ = ['to_text', 'to_printable', 'CHECKED_BOX', 'UNCHECKED_BOX']
