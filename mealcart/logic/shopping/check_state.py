"""Check-state store: the per-plan checklist over shopping list items.

Every check is a boolean under the key "<category>-<item name lowercased>"
(see ``check_key``), so check marks survive a rebuild of the list as long as
the item keeps its name and category.

Mutations are optimistic: the local cache changes first, then exactly one
repository call describes the same operation (bulk operations included).
When that call fails the touched keys are rolled back (unless rollback is
disabled), the failure is logged and a ``shopping.check_failed`` event is
published. Toggle operations never raise persistence errors to the caller.

Operations do not wait for each other. Every local write stamps its keys with
a sequence number, and a rollback only restores keys whose latest stamp is
still its own, so a later write to the same key is never undone.
"""
import logging
from typing import Dict, Iterable, Optional

from mealcart.domain.Category import ShoppingCategory
from mealcart.domain.CheckState import CheckUpdate, check_key
from mealcart.domain.errors import MealCartError, PreconditionError
from mealcart.domain.ShoppingList import ShoppingList
from mealcart.events.Event_Bus import EventBus
from mealcart.events.event_helpers import publish_check_failed
from mealcart.infra.CheckState_Repository import CheckStateRepository
from mealcart.utilities import config

logger = logging.getLogger(__name__)


class CheckStateStore:
    def __init__(self, plan_id: str, repository: CheckStateRepository,
                 shopping_list: Optional[ShoppingList] = None, event_bus: Optional[EventBus] = None,
                 rollback_on_failure: Optional[bool] = None):
        self.plan_id = plan_id
        self.repository = repository
        self.shopping_list = shopping_list or ShoppingList(plan_id=plan_id)
        self.rollback_on_failure = (config.CHECK_ROLLBACK_ON_FAILURE
                                    if rollback_on_failure is None else rollback_on_failure)
        self._event_bus = event_bus
        self._state: Dict[str, bool] = {}
        self._seq = 0
        self._written: Dict[str, int] = {}  # key -> seq of its latest local write
        self.last_error: Optional[MealCartError] = None

    # --- Queries -----------------------------------------------------------
    def is_checked(self, category: ShoppingCategory, item_name: str) -> bool:
        return bool(self._state.get(check_key(category, item_name)))

    def snapshot(self) -> Dict[str, bool]:
        return dict(self._state)

    def set_shopping_list(self, shopping_list: ShoppingList):
        '''Attach the current aggregate; category and bulk toggles read it on every call.'''
        self.shopping_list = shopping_list

    # --- Loading -----------------------------------------------------------
    async def load(self) -> Dict[str, bool]:
        """Replace the local cache with the repository snapshot.

        Raises:
            MealCartError: the snapshot could not be fetched (cache left untouched).
        """
        state = await self.repository.load(self.plan_id)
        self._state = {str(k): bool(v) for k, v in (state or {}).items()}
        logger.debug("Loaded %d check entries for plan %s", len(self._state), self.plan_id)
        return self.snapshot()

    # --- Mutations ---------------------------------------------------------
    async def toggle_item(self, category: ShoppingCategory, item_name: str) -> bool:
        """Flip one item. Returns its new value (the old one after a rollback)."""
        key = check_key(category, item_name)
        update = CheckUpdate.for_item(category, item_name, not self._state.get(key, False))
        await self._commit(update, "toggle_item")
        return bool(self._state.get(key))

    async def toggle_category(self, category: ShoppingCategory) -> bool:
        """Check every item of the category unless all are checked already, then uncheck them.

        Returns the value written. An empty category is a no-op without a request.
        """
        keys = self.shopping_list.keys(category)
        if not keys:
            return False
        checked = not self._all_checked(keys)
        await self._commit(CheckUpdate.for_category(category, checked, keys), "toggle_category")
        return checked

    async def toggle_all(self) -> bool:
        keys = self.shopping_list.keys()
        if not keys:
            return False
        checked = not self._all_checked(keys)
        await self._commit(CheckUpdate.for_all(checked, keys), "toggle_all")
        return checked

    async def reset(self):
        """Clear every check mark. On failure, keys written since the reset began keep their values."""
        previous = self._state
        self._state = {}
        seq = self._stamp(previous)
        try:
            await self.repository.clear(self.plan_id)
        except MealCartError as e:
            if self.rollback_on_failure:
                for key, value in previous.items():
                    if self._written.get(key) == seq:
                        self._state[key] = value
            self._failed("reset", e)
            return False
        self.last_error = None
        return True

    # --- Internals ---------------------------------------------------------
    def _stamp(self, keys: Iterable[str]) -> int:
        self._seq += 1
        for key in keys:
            self._written[key] = self._seq
        return self._seq

    def _all_checked(self, keys: Iterable[str]) -> bool:
        return all(self._state.get(key, False) for key in keys)

    async def _commit(self, update: CheckUpdate, operation: str) -> bool:
        previous = {key: self._state.get(key) for key in update.keys}
        update.apply(self._state)
        seq = self._stamp(update.keys)
        try:
            await self.repository.save(self.plan_id, update)
        except MealCartError as e:
            if self.rollback_on_failure:
                for key, value in previous.items():
                    if self._written.get(key) != seq:
                        continue
                    if value is None:
                        self._state.pop(key, None)
                    else:
                        self._state[key] = value
            self._failed(operation, e)
            return False
        self.last_error = None
        return True

    def _failed(self, operation: str, error: MealCartError):
        self.last_error = error
        logger.warning("Check state %s failed for plan %s: %s%s", operation, self.plan_id, error,
                       " (rolled back)" if self.rollback_on_failure else "")
        publish_check_failed(self.plan_id, operation, str(error),
                             rolled_back=self.rollback_on_failure,
                             precondition=isinstance(error, PreconditionError),
                             bus=self._event_bus)


__all__ = ['CheckStateStore']
