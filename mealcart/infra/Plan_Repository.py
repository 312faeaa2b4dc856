import json
import logging
from pathlib import Path
from typing import Dict, Optional

from mealcart.domain.Plan import MealPlan
from mealcart.infra import paths

logger = logging.getLogger(__name__)


class PlanRepository:
    """Meal plans stored in one JSON file, keyed by plan id.

    The file holds either ``{plan_id: document}`` or a list of documents
    carrying ``_id``/``id``; both are read, the mapping form is written.
    """

    def __init__(self, plans_file: Optional[Path] = None):
        self.plans_file = Path(plans_file or paths.PLANS_FILE)

    def _load_store(self) -> Dict[str, dict]:
        if not self.plans_file.exists():
            return {}
        try:
            with open(self.plans_file, "r", encoding="utf-8") as f:
                store = json.load(f) or {}
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in plans file: {e}")
            return {}
        if isinstance(store, list):
            store = {str(d.get("_id") or d.get("id")): d for d in store
                     if isinstance(d, dict) and (d.get("_id") or d.get("id"))}
        return store if isinstance(store, dict) else {}

    def get_plan(self, plan_id: str) -> Optional[MealPlan]:
        doc = self._load_store().get(plan_id)
        if not isinstance(doc, dict):
            return None
        return self._to_plan(plan_id, doc)

    def save_plan(self, plan: MealPlan) -> None:
        store = self._load_store()
        store[plan.id] = plan.to_dict()
        self.plans_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.plans_file, "w", encoding="utf-8") as f:
            json.dump(store, f, indent=2, ensure_ascii=False)

    @staticmethod
    def _to_plan(plan_id: str, doc: dict) -> MealPlan:
        plan = MealPlan.from_dict(doc)
        if not plan.id:
            plan.id = plan_id
        return plan
