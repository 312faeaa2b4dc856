import json
import httpx
import pytest
from mealcart.domain.CheckState import CheckUpdate
from mealcart.domain.Category import ShoppingCategory
from mealcart.domain.errors import AggregateFetchError, PersistenceError, PreconditionError
from mealcart.infra.CheckState_Repository import RemoteCheckStateRepository
from mealcart.infra.ShoppingList_Client import ShoppingListClient


def _transport(handler, seen):
    def record(request: httpx.Request):
        seen.append(request)
        return handler(request)
    return httpx.MockTransport(record)


def _client(handler, seen, token="secret", plan_id="plan-1"):
    return ShoppingListClient(plan_id, token, base_url="http://api.test", transport=_transport(handler, seen))


@pytest.mark.asyncio
async def test_missing_token_fails_before_any_request():
    seen = []
    client = _client(lambda r: httpx.Response(200, json={}), seen, token=None)
    with pytest.raises(PreconditionError):
        await client.get_categorized()
    with pytest.raises(PreconditionError):
        await client.update_check({"checkAll": True, "checked": True})
    assert seen == []


@pytest.mark.asyncio
async def test_missing_plan_id_fails_before_any_request():
    seen = []
    client = _client(lambda r: httpx.Response(200, json={}), seen, plan_id="")
    with pytest.raises(PreconditionError):
        await client.get_status()
    assert seen == []


@pytest.mark.asyncio
async def test_reads_unwrap_envelope_and_send_bearer():
    seen = []
    body = {"success": True, "data": {"categorizedIngredients": {}}, "message": None}
    client = _client(lambda r: httpx.Response(200, json=body), seen)
    data = await client.get_categorized()
    assert data == {"categorizedIngredients": {}}
    request = seen[0]
    assert request.url.path == "/meal-planner/plan-1/shopping-list/categorized"
    assert request.headers["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_read_failure_is_retryable_fetch_error():
    seen = []
    client = _client(lambda r: httpx.Response(500, json={"success": False, "message": "db down"}), seen)
    with pytest.raises(AggregateFetchError) as info:
        await client.get_status()
    assert info.value.retryable is True
    assert info.value.status == 500
    assert info.value.message == "db down"


@pytest.mark.asyncio
async def test_network_error_on_write_is_persistence_error():
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)
    client = _client(boom, [])
    with pytest.raises(PersistenceError) as info:
        await client.reset()
    assert info.value.retryable is False


@pytest.mark.asyncio
async def test_printable_formats():
    def handler(request):
        fmt = request.url.params["format"]
        if fmt == "json":
            return httpx.Response(200, json={"success": True, "data": {"categories": []}})
        if fmt == "pdf":
            return httpx.Response(200, content=b"%PDF-1.4")
        return httpx.Response(200, text="SHOPPING LIST FOR: Week One\n")
    client = _client(handler, [])
    assert await client.get_printable("json") == {"categories": []}
    assert (await client.get_printable("pdf")).startswith(b"%PDF")
    assert (await client.get_printable("text")).startswith("SHOPPING LIST FOR")


@pytest.mark.asyncio
async def test_remote_repository_speaks_the_api():
    seen = []

    def handler(request):
        if request.method == "GET":
            return httpx.Response(200, json={"success": True, "data": {"checkState": {"Produce-spinach": True}}})
        return httpx.Response(200, json={"success": True, "data": {}})

    repository = RemoteCheckStateRepository(_client(handler, seen))
    assert await repository.load("plan-1") == {"Produce-spinach": True}
    await repository.save("plan-1", CheckUpdate.for_category(ShoppingCategory.PRODUCE, True, ["Produce-spinach"]))
    await repository.clear("plan-1")
    assert [(r.method, r.url.path.rsplit("/", 1)[-1]) for r in seen] == [
        ("GET", "status"), ("PATCH", "check"), ("POST", "reset")]
    assert json.loads(seen[1].content) == {"category": "Produce", "checked": True}


@pytest.mark.asyncio
async def test_flat_list_path():
    seen = []
    client = _client(lambda r: httpx.Response(200, json={"success": True, "data": {"items": []}}), seen)
    assert await client.get_shopping_list() == {"items": []}
    assert seen[0].url.path == "/meal-planner/plan-1/shopping-list"
