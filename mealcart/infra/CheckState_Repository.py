"""Check-state repositories.

All repositories expose the same async interface, keyed by meal plan id:

    load(plan_id)          -> {check_key: checked}
    save(plan_id, update)  -> apply one CheckUpdate
    clear(plan_id)         -> drop every entry of the plan

InMemoryCheckStateRepository serves tests, JsonCheckStateRepository is the
server-side file store and RemoteCheckStateRepository forwards to the
persistence API.
"""
import json
import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from mealcart.domain.CheckState import CheckUpdate
from mealcart.domain.errors import PersistenceError
from mealcart.infra.paths import CHECK_STATE_FILE
from mealcart.infra.ShoppingList_Client import ShoppingListClient

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


class CheckStateRepository:
    async def load(self, plan_id: str) -> Dict[str, bool]:
        raise NotImplementedError

    async def save(self, plan_id: str, update: CheckUpdate) -> None:
        raise NotImplementedError

    async def clear(self, plan_id: str) -> None:
        raise NotImplementedError


class InMemoryCheckStateRepository(CheckStateRepository):
    def __init__(self, initial: Optional[Dict[str, Dict[str, bool]]] = None):
        self._plans: Dict[str, Dict[str, bool]] = {k: dict(v) for k, v in (initial or {}).items()}
        self.calls = []  # (operation, plan_id, payload) log, one entry per request

    async def load(self, plan_id: str) -> Dict[str, bool]:
        self.calls.append(("load", plan_id, None))
        return dict(self._plans.get(plan_id, {}))

    async def save(self, plan_id: str, update: CheckUpdate) -> None:
        self.calls.append(("save", plan_id, update.to_payload()))
        update.apply(self._plans.setdefault(plan_id, {}))

    async def clear(self, plan_id: str) -> None:
        self.calls.append(("clear", plan_id, None))
        self._plans.pop(plan_id, None)


class JsonCheckStateRepository(CheckStateRepository):
    """File store: { plan_id: { "entries": {key: bool}, "lastUpdated": iso } }."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or CHECK_STATE_FILE)

    def _read(self, for_write: bool = False) -> Dict[str, dict]:
        """Whole store. A corrupt file reads as empty, unless the caller is about to overwrite it."""
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                store = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in check state file: {e}")
            if for_write:
                raise PersistenceError(f"Check state file is corrupt: {e}") from e
            return {}
        return store if isinstance(store, dict) else {}

    def _write(self, store: Dict[str, dict]):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".check_state_", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(store, tmp, indent=2, ensure_ascii=False)
            shutil.move(tmp_path, self.path)
        except OSError as e:
            logger.error("Failed to save check state: %s", e)
            raise PersistenceError(f"Failed to save check state: {e}") from e

    def entries(self, plan_id: str) -> Dict[str, bool]:
        record = self._read().get(plan_id) or {}
        return {k: bool(v) for k, v in (record.get("entries") or {}).items()}

    def last_updated(self, plan_id: str) -> Optional[str]:
        return (self._read().get(plan_id) or {}).get("lastUpdated")

    async def load(self, plan_id: str) -> Dict[str, bool]:
        return self.entries(plan_id)

    async def save(self, plan_id: str, update: CheckUpdate) -> None:
        store = self._read(for_write=True)
        record = store.setdefault(plan_id, {"entries": {}})
        update.apply(record.setdefault("entries", {}))
        record["lastUpdated"] = _now()
        self._write(store)

    async def clear(self, plan_id: str) -> None:
        store = self._read(for_write=True)
        store[plan_id] = {"entries": {}, "lastUpdated": _now()}
        self._write(store)


class RemoteCheckStateRepository(CheckStateRepository):
    """Forwards to the persistence API; one HTTP request per operation."""

    def __init__(self, client: ShoppingListClient):
        self.client = client

    async def load(self, plan_id: str) -> Dict[str, bool]:
        data = await self.client.get_status()
        state = data.get("checkState") or {}
        return {str(k): bool(v) for k, v in state.items()}

    async def save(self, plan_id: str, update: CheckUpdate) -> None:
        await self.client.update_check(update.to_payload())

    async def clear(self, plan_id: str) -> None:
        await self.client.reset()


__all__ = [
    'CheckStateRepository', 'InMemoryCheckStateRepository',
    'JsonCheckStateRepository', 'RemoteCheckStateRepository'
]
