import asyncio
import pytest
from mealcart.domain.Category import ShoppingCategory
from mealcart.domain.CheckState import CheckUpdate, check_key
from mealcart.domain.errors import PersistenceError, PreconditionError
from mealcart.domain.Plan import MealPlan
from mealcart.events.Event_Bus import EventBus, SHOPPING_CHECK_FAILED
from mealcart.infra.CheckState_Repository import InMemoryCheckStateRepository, JsonCheckStateRepository
from mealcart.logic.shopping.check_state import CheckStateStore
from mealcart.logic.shopping.list_builder import consolidate
from mealcart.tests.sample_plans import week_doc

DAIRY = ShoppingCategory.DAIRY_EGGS


class FailingRepository(InMemoryCheckStateRepository):
    def __init__(self, error):
        super().__init__()
        self.error = error

    async def save(self, plan_id, update):
        self.calls.append(("save", plan_id, update.to_payload()))
        raise self.error

    async def clear(self, plan_id):
        self.calls.append(("clear", plan_id, None))
        raise self.error


class SlowFailingRepository(InMemoryCheckStateRepository):
    """Item saves and clears wait for ``gate`` and then fail; other saves succeed at once."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()

    async def save(self, plan_id, update):
        if update.items is None:
            return await super().save(plan_id, update)
        self.calls.append(("save", plan_id, update.to_payload()))
        await self.gate.wait()
        raise PersistenceError("item save failed")

    async def clear(self, plan_id):
        self.calls.append(("clear", plan_id, None))
        await self.gate.wait()
        raise PersistenceError("clear failed")


def _store(repository=None, **kwargs):
    shopping_list = consolidate(MealPlan.from_dict(week_doc()))
    return CheckStateStore("plan-1", repository or InMemoryCheckStateRepository(), shopping_list, **kwargs)


def _saves(repository):
    return [call for call in repository.calls if call[0] == "save"]


def test_check_key_and_update_shapes():
    assert check_key(DAIRY, "Eggs") == "Dairy & Eggs-eggs"
    assert CheckUpdate.for_item(DAIRY, "Eggs", True).to_payload() == {"items": ["Eggs"], "checked": True}
    assert CheckUpdate.for_category(DAIRY, False, []).to_payload() == {"category": "Dairy & Eggs", "checked": False}
    assert CheckUpdate.for_all(True, []).to_payload() == {"checkAll": True, "checked": True}
    with pytest.raises(ValueError):
        CheckUpdate(True)
    with pytest.raises(ValueError):
        CheckUpdate(True, items=["a"], check_all=True)


@pytest.mark.asyncio
async def test_toggle_item_is_idempotent_in_pairs():
    store = _store()
    assert not store.is_checked(DAIRY, "eggs")
    assert await store.toggle_item(DAIRY, "eggs") is True
    assert store.is_checked(DAIRY, "Eggs")
    assert await store.toggle_item(DAIRY, "eggs") is False
    assert not store.is_checked(DAIRY, "eggs")
    assert len(_saves(store.repository)) == 2


@pytest.mark.asyncio
async def test_category_toggle_symmetry():
    store = _store()
    # one of two unchecked -> check all
    await store.toggle_item(DAIRY, "eggs")
    assert await store.toggle_category(DAIRY) is True
    assert store.is_checked(DAIRY, "eggs") and store.is_checked(DAIRY, "Milk")
    # all checked -> uncheck all
    assert await store.toggle_category(DAIRY) is False
    assert not store.is_checked(DAIRY, "eggs") and not store.is_checked(DAIRY, "Milk")
    # other categories untouched
    assert not store.is_checked(ShoppingCategory.PRODUCE, "spinach")


@pytest.mark.asyncio
async def test_bulk_operations_are_one_request():
    store = _store()
    await store.toggle_all()
    await store.toggle_category(ShoppingCategory.PANTRY)
    saves = _saves(store.repository)
    assert [payload for _, _, payload in saves] == [
        {"checkAll": True, "checked": True},
        {"category": "Pantry", "checked": False},
    ]
    # both flour lines (cup and g) share one key
    assert not store.is_checked(ShoppingCategory.PANTRY, "flour")
    assert store.is_checked(ShoppingCategory.PRODUCE, "spinach")


@pytest.mark.asyncio
async def test_category_toggle_follows_current_items():
    store = _store()
    await store.toggle_category(DAIRY)
    smaller = consolidate(MealPlan.from_dict({"_id": "plan-1", "name": "x", "week": "2025-03-03", "plan": {
        "monday": {"lunch": {"mealType": "lunch", "recipe": "r", "recipeDetails": {
            "title": "R", "ingredients": [{"name": "eggs", "quantity": 1, "unit": "count"},
                                          {"name": "yogurt", "quantity": 1, "unit": "cup"}]}}}}}))
    store.set_shopping_list(smaller)
    # marks are keyed by category and name, so eggs stays checked across the rebuild
    assert store.is_checked(DAIRY, "eggs")
    # yogurt is new and unchecked, so the category is checked again rather than cleared
    assert await store.toggle_category(DAIRY) is True
    assert store.is_checked(DAIRY, "yogurt")


@pytest.mark.asyncio
async def test_empty_category_is_a_noop():
    store = _store()
    assert await store.toggle_category(ShoppingCategory.FROZEN_FOODS) is False
    assert _saves(store.repository) == []


@pytest.mark.asyncio
async def test_reset_clears_every_key():
    store = _store()
    await store.toggle_all()
    known = list(store.snapshot())
    assert known
    assert await store.reset() is True
    assert store.snapshot() == {}
    assert store.repository.calls[-1][0] == "clear"
    assert await store.repository.load("plan-1") == {}


@pytest.mark.asyncio
async def test_load_replaces_cache():
    repository = InMemoryCheckStateRepository({"plan-1": {"Produce-spinach": True}})
    store = _store(repository)
    await store.toggle_item(DAIRY, "eggs")
    repository._plans["plan-1"] = {"Produce-spinach": True}
    assert await store.load() == {"Produce-spinach": True}
    assert not store.is_checked(DAIRY, "eggs")


@pytest.mark.asyncio
async def test_failed_save_rolls_back_and_reports():
    bus = EventBus()
    events = []
    bus.subscribe(SHOPPING_CHECK_FAILED, lambda name, payload: events.append(payload))
    store = _store(FailingRepository(PersistenceError("server down", status=503)), event_bus=bus,
                   rollback_on_failure=True)
    assert await store.toggle_item(DAIRY, "eggs") is False
    assert store.snapshot() == {}
    await store.toggle_all()
    assert store.snapshot() == {}
    assert [e["operation"] for e in events] == ["toggle_item", "toggle_all"]
    assert events[0]["rolled_back"] is True
    assert events[0]["message"] == "server down"
    assert isinstance(store.last_error, PersistenceError)


@pytest.mark.asyncio
async def test_failed_save_without_rollback_keeps_local_view():
    bus = EventBus()
    events = []
    bus.subscribe(SHOPPING_CHECK_FAILED, lambda name, payload: events.append(payload))
    store = _store(FailingRepository(PreconditionError("Authentication token is required")),
                   event_bus=bus, rollback_on_failure=False)
    assert await store.toggle_item(DAIRY, "eggs") is True
    assert events[0]["rolled_back"] is False
    assert events[0]["precondition"] is True


@pytest.mark.asyncio
async def test_failed_reset_restores_previous_state():
    repository = FailingRepository(PersistenceError("nope"))
    store = _store(repository, event_bus=EventBus(), rollback_on_failure=True)
    store._state = {"Produce-spinach": True}
    assert await store.reset() is False
    assert store.is_checked(ShoppingCategory.PRODUCE, "spinach")


@pytest.mark.asyncio
async def test_failed_reset_keeps_toggles_made_while_pending():
    repository = SlowFailingRepository()
    store = _store(repository, event_bus=EventBus(), rollback_on_failure=True)
    store._state = {"Produce-spinach": True}
    pending = asyncio.create_task(store.reset())
    await asyncio.sleep(0)
    assert store.snapshot() == {}
    # a category save goes through while the clear is still outstanding
    assert await store.toggle_category(DAIRY) is True
    assert await repository.load("plan-1") == {"Dairy & Eggs-eggs": True, "Dairy & Eggs-milk": True}
    repository.gate.set()
    assert await pending is False
    assert store.snapshot() == {
        "Produce-spinach": True, "Dairy & Eggs-eggs": True, "Dairy & Eggs-milk": True}


@pytest.mark.asyncio
async def test_failed_item_save_does_not_undo_later_write():
    repository = SlowFailingRepository()
    store = _store(repository, event_bus=EventBus(), rollback_on_failure=True)
    pending = asyncio.create_task(store.toggle_item(DAIRY, "eggs"))
    await asyncio.sleep(0)
    assert store.is_checked(DAIRY, "eggs")
    # milk is unchecked, so the category toggle writes True to both keys and succeeds
    assert await store.toggle_category(DAIRY) is True
    repository.gate.set()
    assert await pending is True
    assert store.is_checked(DAIRY, "eggs") and store.is_checked(DAIRY, "milk")
    assert isinstance(store.last_error, PersistenceError)


@pytest.mark.asyncio
async def test_json_repository_round_trip(tmp_path):
    repository = JsonCheckStateRepository(tmp_path / "check_state.json")
    store = _store(repository)
    await store.toggle_category(DAIRY)
    assert repository.entries("plan-1") == {"Dairy & Eggs-eggs": True, "Dairy & Eggs-milk": True}
    assert repository.last_updated("plan-1")
    reloaded = _store(JsonCheckStateRepository(tmp_path / "check_state.json"))
    await reloaded.load()
    assert reloaded.is_checked(DAIRY, "Milk")
    await reloaded.reset()
    assert repository.entries("plan-1") == {}


@pytest.mark.asyncio
async def test_json_repository_refuses_to_overwrite_corrupt_file(tmp_path):
    path = tmp_path / "check_state.json"
    path.write_text("{not json", encoding="utf-8")
    repository = JsonCheckStateRepository(path)
    assert await repository.load("plan-1") == {}
    with pytest.raises(PersistenceError):
        await repository.save("plan-1", CheckUpdate.for_item(DAIRY, "eggs", True))
    with pytest.raises(PersistenceError):
        await repository.clear("plan-1")
    assert path.read_text(encoding="utf-8") == "{not json"
