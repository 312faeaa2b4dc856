"""Simple Event Bus / Observer implementation for shopping list engine events.

Event names used so far:
  shopping.check_failed -> payload {"plan_id", "operation", "message", "rolled_back", "precondition"}
  shopping.normalization_degraded -> payload {"plan_id", "reason", "count"}

Subscribers are callables taking (event_name, payload).
"""
from __future__ import annotations
import logging
from collections import defaultdict
from typing import Callable, Any, Dict, List

logger = logging.getLogger(__name__)

# --- Event name constants (used across modules) ---
SHOPPING_CHECK_FAILED = "shopping.check_failed"
SHOPPING_NORMALIZATION_DEGRADED = "shopping.normalization_degraded"


class EventBus:
	def __init__(self):
		self._subscribers: Dict[str, List[Callable[[str, Any], None]]] = defaultdict(list)

	def subscribe(self, event_name: str, callback: Callable[[str, Any], None]):
		if callback not in self._subscribers[event_name]:
			self._subscribers[event_name].append(callback)

	def unsubscribe(self, event_name: str, callback: Callable[[str, Any], None]):
		try:
			self._subscribers[event_name].remove(callback)
		except (ValueError, KeyError):
			pass

	def publish(self, event_name: str, payload: Any):
		for cb in list(self._subscribers.get(event_name, [])):
			try:
				cb(event_name, payload)
			except Exception:
				logger.exception("[EventBus] Error delivering %s to %r", event_name, cb)


# A singleton-like instance (can be imported)
GLOBAL_EVENT_BUS = EventBus()

__all__ = [
	'EventBus', 'GLOBAL_EVENT_BUS',
	'SHOPPING_CHECK_FAILED', 'SHOPPING_NORMALIZATION_DEGRADED'
]
