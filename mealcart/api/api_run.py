from fastapi import (
    Depends,
    FastAPI,
    HTTPException,
    Query,
    Response,
)
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.exceptions import HTTPException as StarletteHTTPException

from datetime import date as _date
from typing import Any, List, Optional
import logging

from mealcart.domain.CheckState import CheckUpdate, check_key
from mealcart.domain.errors import MealCartError, PersistenceError
from mealcart.domain.Plan import MealPlan
from mealcart.domain.ShoppingList import ShoppingList
from mealcart.infra import paths
from mealcart.infra.CheckState_Repository import JsonCheckStateRepository
from mealcart.infra.normalizer import make_normalizer
from mealcart.infra.pdf_utils import generate_pdf_for_shopping_list
from mealcart.infra.Plan_Repository import PlanRepository
from mealcart.logic.shopping.exporters import to_printable, to_text
from mealcart.logic.shopping.list_builder import ShoppingListBuilder
from mealcart.utilities import config
from mealcart.utilities.constants import DATE_FORMAT, EMPTY_LIST_MESSAGE
from mealcart.utilities.validators import CheckUpdateInput
from mealcart.events.event_helpers import publish_check_failed
from mealcart.events.web_observers import start as start_event_observers, get_events as get_web_events

# Logging
logger = logging.getLogger("mealcart_app")

# A plan edited while its list is being built is rebuilt from the newer content
MAX_BUILD_ATTEMPTS = 3

# Initialize FastAPI app
app = FastAPI(title="MealCart Shopping List API")

# One builder per process so the per-plan normalization guard is shared by requests
builder = ShoppingListBuilder(make_normalizer())

_bearer = HTTPBearer(auto_error=False)


@app.on_event("startup")
def _startup_web_observers():
    """Register event bus subscribers for web notices when the app starts."""
    start_event_observers()


# -------------------- Envelope & errors --------------------
def envelope(data: Any = None, message: Optional[str] = None, success: bool = True):
    return {"success": success, "data": data, "message": message}


@app.exception_handler(StarletteHTTPException)
async def _http_error(request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=envelope(None, str(exc.detail), success=False),
                        headers=getattr(exc, "headers", None))


@app.exception_handler(MealCartError)
async def _mealcart_error(request, exc: MealCartError):
    logger.error("Request failed: %s", exc)
    return JSONResponse(status_code=exc.status or 500, content=envelope(None, exc.message, success=False))


# -------------------- Dependencies --------------------
def require_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer)) -> str:
    """Bearer token check: missing -> 401; not in API_TOKENS (when configured) -> 403."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Authentication required",
                            headers={"WWW-Authenticate": "Bearer"})
    if config.API_TOKENS and credentials.credentials not in config.API_TOKENS:
        raise HTTPException(status_code=403, detail="Invalid token")
    return credentials.credentials


def get_plan_repository() -> PlanRepository:
    return PlanRepository(paths.PLANS_FILE)


def get_check_repository() -> JsonCheckStateRepository:
    return JsonCheckStateRepository(paths.CHECK_STATE_FILE)


def _load_plan(plan_id: str, plans: PlanRepository) -> MealPlan:
    plan = plans.get_plan(plan_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="Meal plan not found")
    return plan


async def current_shopping_list(plan_id: str, plans: PlanRepository) -> ShoppingList:
    """Build the list from the stored plan, rebuilding when the plan changed mid-build."""
    for _ in range(MAX_BUILD_ATTEMPTS):
        shopping_list = await builder.build(_load_plan(plan_id, plans))
        if shopping_list is not None:
            return shopping_list
    raise HTTPException(status_code=409, detail="Meal plan changed while building the shopping list")


def _resolve_item_keys(shopping_list: ShoppingList, names: List[str]) -> List[str]:
    keys = []
    for name in names:
        item = shopping_list.find(name)
        if item is None:
            logger.info("Check update for unknown item %r in plan %s", name, shopping_list.plan_id)
            continue
        keys.append(check_key(item.category, item.name))
    return keys


async def _persist(plan_id: str, operation: str, write):
    """Await a check-state write; a failed write is published before the error response."""
    try:
        await write
    except PersistenceError as e:
        publish_check_failed(plan_id, operation, e.message, rolled_back=False)
        raise


# -------------------- API: Shopping List --------------------
@app.get('/meal-planner/{plan_id}/shopping-list')
async def api_shopping_list(plan_id: str, _token: str = Depends(require_token),
                            plans: PlanRepository = Depends(get_plan_repository)):
    """Flat consolidated list (one entry per name and unit)."""
    shopping_list = await current_shopping_list(plan_id, plans)
    items = [item.to_dict() for _, item in shopping_list.iter_items()]
    message = EMPTY_LIST_MESSAGE if shopping_list.is_empty else None
    return envelope({"mealPlanId": plan_id, "items": items, "summary": shopping_list.summary()}, message)


@app.get('/meal-planner/{plan_id}/shopping-list/categorized')
async def api_shopping_list_categorized(plan_id: str, _token: str = Depends(require_token),
                                        plans: PlanRepository = Depends(get_plan_repository)):
    shopping_list = await current_shopping_list(plan_id, plans)
    message = EMPTY_LIST_MESSAGE if shopping_list.is_empty else None
    return envelope(shopping_list.to_dict(), message)


@app.get('/meal-planner/{plan_id}/shopping-list/status')
async def api_shopping_list_status(plan_id: str, _token: str = Depends(require_token),
                                   plans: PlanRepository = Depends(get_plan_repository),
                                   checks: JsonCheckStateRepository = Depends(get_check_repository)):
    """Aggregate with check marks, per-category stats and overall progress.

    ``checkState`` carries every stored key (also keys of items no longer in
    the plan) so clients can rehydrate their cache by key.
    """
    shopping_list = await current_shopping_list(plan_id, plans)
    state = await checks.load(plan_id)
    data = shopping_list.to_dict(state)
    data.update({
        "checkState": state,
        "checkedItems": sorted(k for k in shopping_list.keys() if state.get(k)),
        "categoryStats": shopping_list.category_stats(state),
        "progress": shopping_list.progress(state),
        "lastUpdated": checks.last_updated(plan_id),
    })
    return envelope(data)


@app.patch('/meal-planner/{plan_id}/shopping-list/check')
async def api_shopping_list_check(plan_id: str, payload: CheckUpdateInput,
                                  _token: str = Depends(require_token),
                                  plans: PlanRepository = Depends(get_plan_repository),
                                  checks: JsonCheckStateRepository = Depends(get_check_repository)):
    """Apply one check operation: items, a whole category or every item."""
    shopping_list = await current_shopping_list(plan_id, plans)
    if payload.items is not None:
        keys = _resolve_item_keys(shopping_list, payload.items)
        if not keys:
            raise HTTPException(status_code=404, detail="Item not found in shopping list")
        update = CheckUpdate(payload.checked, items=payload.items, keys=keys)
    elif payload.category is not None:
        category = payload.shopping_category
        update = CheckUpdate.for_category(category, payload.checked, shopping_list.keys(category))
    else:
        update = CheckUpdate.for_all(payload.checked, shopping_list.keys())

    await _persist(plan_id, "check", checks.save(plan_id, update))
    state = await checks.load(plan_id)
    logger.info("Plan %s: %s set %d items to %s", plan_id, update.kind, len(update.keys), update.checked)
    return envelope({
        "updated": len(update.keys),
        "checkState": state,
        "categoryStats": shopping_list.category_stats(state),
        "progress": shopping_list.progress(state),
    }, "Shopping list updated")


@app.post('/meal-planner/{plan_id}/shopping-list/reset')
async def api_shopping_list_reset(plan_id: str, _token: str = Depends(require_token),
                                  plans: PlanRepository = Depends(get_plan_repository),
                                  checks: JsonCheckStateRepository = Depends(get_check_repository)):
    _load_plan(plan_id, plans)
    await _persist(plan_id, "reset", checks.clear(plan_id))
    logger.info("Plan %s: check state reset", plan_id)
    return envelope({"checkState": {}, "progress": 0}, "Shopping list reset")


@app.get('/meal-planner/{plan_id}/shopping-list/printable')
async def api_shopping_list_printable(plan_id: str,
                                      format: str = Query(default="json", pattern=r"^(json|text|pdf)$"),
                                      _token: str = Depends(require_token),
                                      plans: PlanRepository = Depends(get_plan_repository),
                                      checks: JsonCheckStateRepository = Depends(get_check_repository)):
    shopping_list = await current_shopping_list(plan_id, plans)
    state = await checks.load(plan_id)
    stamp = _date.today().strftime(DATE_FORMAT)
    if format == "text":
        return PlainTextResponse(
            to_text(shopping_list, state),
            headers={"Content-Disposition": f"attachment; filename=shopping-list-{stamp}.txt"},
        )
    if format == "pdf":
        return Response(
            content=generate_pdf_for_shopping_list(shopping_list, state),
            media_type="application/pdf",
            headers={"Content-Disposition": f"attachment; filename=shopping-list-{stamp}.pdf"},
        )
    return envelope(to_printable(shopping_list, state))


# -------------------- API: Events (polled by frontend) --------------------
@app.get('/api/events')
def api_events(
    since: Optional[int] = Query(default=None, description="Return events with id greater than this value"),
    _token: str = Depends(require_token),
):
    """
    Return recent engine events (degraded normalization, failed check updates).

    Client polling strategy:
        1. First call without 'since' to load the current backlog.
        2. Store 'next_cursor' from the response.
        3. Subsequent polls: /api/events?since=<next_cursor>
    """
    return get_web_events(since)
