"""Event helper utilities.

Helpers for publishing shopping list engine events. Each helper takes an
optional ``bus`` so components with an injected EventBus (tests, per-session
stores) do not publish on the global one.

Quick import:
    from mealcart.events.event_helpers import (
        publish_check_failed, publish_normalization_degraded,
        SHOPPING_CHECK_FAILED, SHOPPING_NORMALIZATION_DEGRADED
    )
"""
from __future__ import annotations
from typing import Iterable, Optional
from .Event_Bus import (
    EventBus, GLOBAL_EVENT_BUS,
    SHOPPING_CHECK_FAILED, SHOPPING_NORMALIZATION_DEGRADED
)

__all__ = [
    'publish_check_failed', 'publish_normalization_degraded',
    'SHOPPING_CHECK_FAILED', 'SHOPPING_NORMALIZATION_DEGRADED'
]


def publish_check_failed(plan_id: str, operation: str, message: str, *, rolled_back: bool,
                         precondition: bool = False, bus: Optional[EventBus] = None):
    """Publish a shopping.check_failed event (the server may disagree with the local view)."""
    (bus or GLOBAL_EVENT_BUS).publish(SHOPPING_CHECK_FAILED, {
        'plan_id': plan_id,
        'operation': operation,
        'message': message,
        'rolled_back': rolled_back,
        'precondition': precondition,
    })


def publish_normalization_degraded(plan_id: str, reason: str, names: Iterable[str] = (),
                                   bus: Optional[EventBus] = None):
    """Publish a shopping.normalization_degraded event; consolidation continued with raw names."""
    names_list = list(names)
    (bus or GLOBAL_EVENT_BUS).publish(SHOPPING_NORMALIZATION_DEGRADED, {
        'plan_id': plan_id,
        'reason': reason,
        'count': len(names_list),
    })
