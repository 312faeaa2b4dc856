"""Shopping list builder.

Runs one consolidation for a week plan:
extract -> normalize (once, batched) -> merge -> categorize -> aggregate.

``build_shopping_list(plan, consolidated)`` is the pure aggregate step;
``ShoppingListBuilder.build(plan)`` is the full async run with the
normalizer guard:

  * at most one normalization call is outstanding per plan id. A second run
    for the same plan content joins the outstanding call instead of issuing
    another one;
  * a run for changed plan content cancels the outstanding call of the old
    content (its response can no longer be used) and starts its own;
  * a run whose plan changed while it was waiting returns None, so a stale
    normalization response is never turned into a shopping list;
  * normalizer errors, timeouts and empty replies degrade to raw names.
"""
import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from mealcart.domain.Ingredient import ConsolidatedIngredient
from mealcart.domain.Plan import MealPlan
from mealcart.domain.ShoppingList import ShoppingList
from mealcart.events.Event_Bus import EventBus
from mealcart.events.event_helpers import publish_normalization_degraded
from mealcart.infra.normalizer import IdentityNormalizer, NormalizerPort
from mealcart.logic.shopping.extractor import distinct_names, extract_occurrences, resolved_recipe_refs
from mealcart.logic.shopping.merger import merge_occurrences
from mealcart.utilities import config

logger = logging.getLogger(__name__)


def build_shopping_list(plan: Optional[MealPlan], consolidated: List[ConsolidatedIngredient]) -> ShoppingList:
    """Group consolidated ingredients into the categorized aggregate.

    Args:
        plan: the MealPlan the items came from (name, week and recipe count).
        consolidated: merger output.

    Returns:
        ShoppingList with categories in store order and items sorted by name.
    """
    if plan is None:
        return ShoppingList(items=consolidated)
    return ShoppingList(
        plan_id=plan.id,
        plan_name=plan.name,
        week_start=plan.week_start,
        items=consolidated,
        recipe_count=len(resolved_recipe_refs(plan)),
    )


def consolidate(plan: MealPlan, mapping: Optional[Dict[str, str]] = None) -> ShoppingList:
    '''Synchronous consolidation with an already known mapping (no normalizer call).'''
    occurrences = extract_occurrences(plan)
    return build_shopping_list(plan, merge_occurrences(occurrences, mapping or {}))


class ShoppingListBuilder:
    def __init__(self, normalizer: Optional[NormalizerPort] = None, timeout: Optional[float] = None,
                 event_bus: Optional[EventBus] = None):
        self.normalizer = normalizer or IdentityNormalizer()
        self.timeout = config.NORMALIZER_TIMEOUT_SECONDS if timeout is None else timeout
        self._event_bus = event_bus
        # plan id -> (fingerprint, task) of the outstanding normalization call
        self._in_flight: Dict[str, Tuple[str, "asyncio.Task"]] = {}
        # plan id -> fingerprint of the newest run
        self._latest: Dict[str, str] = {}

    def is_normalizing(self, plan_id: str) -> bool:
        pending = self._in_flight.get(plan_id)
        return pending is not None and not pending[1].done()

    async def build(self, plan: MealPlan) -> Optional[ShoppingList]:
        """Run a full consolidation. Returns None when the plan changed underneath the run."""
        fingerprint = plan.fingerprint()
        self._latest[plan.id] = fingerprint
        occurrences = extract_occurrences(plan)
        names = distinct_names(occurrences)
        mapping: Dict[str, str] = {}
        if names:
            mapping = await self._normalize_once(plan.id, fingerprint, names)
        if self._latest.get(plan.id) != fingerprint:
            logger.info("Discarding stale consolidation for plan %s", plan.id)
            return None
        shopping_list = build_shopping_list(plan, merge_occurrences(occurrences, mapping))
        logger.debug("Consolidated plan %s: %d occurrences -> %d items",
                     plan.id, len(occurrences), shopping_list.item_count)
        return shopping_list

    async def _normalize_once(self, plan_id: str, fingerprint: str, names: List[str]) -> Dict[str, str]:
        while True:
            pending = self._in_flight.get(plan_id)
            if pending is None:
                break
            pending_fingerprint, task = pending
            if task.done():
                self._in_flight.pop(plan_id, None)
                if pending_fingerprint == fingerprint:
                    return self._result_of(task)
                continue
            if pending_fingerprint == fingerprint:
                logger.debug("Joining outstanding normalization for plan %s", plan_id)
                await asyncio.wait([task])
                return self._result_of(task)
            logger.info("Plan %s changed; aborting outstanding normalization", plan_id)
            task.cancel()
            await asyncio.wait([task])

        task = asyncio.ensure_future(self._normalize(plan_id, names))
        self._in_flight[plan_id] = (fingerprint, task)
        try:
            await asyncio.wait([task])
        finally:
            current = self._in_flight.get(plan_id)
            if current is not None and current[1] is task and task.done():
                del self._in_flight[plan_id]
        return self._result_of(task)

    @staticmethod
    def _result_of(task: "asyncio.Task") -> Dict[str, str]:
        if task.cancelled():
            return {}
        return task.result()

    async def _normalize(self, plan_id: str, names: List[str]) -> Dict[str, str]:
        try:
            mapping = await asyncio.wait_for(self.normalizer.normalize(names), timeout=self.timeout)
        except asyncio.TimeoutError:
            self._degraded(plan_id, f"timed out after {self.timeout}s", names)
            return {}
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._degraded(plan_id, f"{type(e).__name__}: {e}", names)
            return {}
        if not mapping:
            if not isinstance(self.normalizer, IdentityNormalizer):
                self._degraded(plan_id, "empty response", names)
            return {}
        return dict(mapping)

    def _degraded(self, plan_id: str, reason: str, names: List[str]):
        logger.warning("Normalization degraded for plan %s (%s); using raw names", plan_id, reason)
        publish_normalization_degraded(plan_id, reason, names, bus=self._event_bus)


__all__ = ['build_shopping_list', 'consolidate', 'ShoppingListBuilder']
