"""Derived-view cache with an explicit invalidation table.

Each mutation names the logical entity it touched; ``INVALIDATION_TABLE``
maps that entity to the derived views that must be recomputed.
"""
import logging
from typing import Any, Callable, Dict, FrozenSet, Hashable, Tuple

from hematwoi.events import (
    ACCOUNT_UPDATED,
    BUDGET_UPDATED,
    CATEGORY_UPDATED,
    TRANSACTION_ADDED,
    TRANSACTION_DELETED,
    Event,
    EventBus,
)

logger = logging.getLogger(__name__)

INVALIDATION_TABLE: Dict[str, FrozenSet[str]] = {
    "transaction": frozenset({"balances", "budget_progress", "budget_summary", "top_spending", "rollover"}),
    "account": frozenset({"balances"}),
    "budget": frozenset({"budget_progress", "budget_summary", "rollover"}),
    "category": frozenset({"budget_progress", "top_spending"}),
    "goal": frozenset({"goals"}),
}

EVENT_ENTITIES = {
    TRANSACTION_ADDED: "transaction",
    TRANSACTION_DELETED: "transaction",
    BUDGET_UPDATED: "budget",
    ACCOUNT_UPDATED: "account",
    CATEGORY_UPDATED: "category",
}


class ViewCache:
    def __init__(self, table: Dict[str, FrozenSet[str]] = INVALIDATION_TABLE):
        self._table = table
        self._views: Dict[Tuple[str, Hashable], Any] = {}
        self.hits = 0
        self.misses = 0

    def get(self, view: str, key: Hashable, compute: Callable[[], Any]) -> Any:
        slot = (view, key)
        if slot in self._views:
            self.hits += 1
            return self._views[slot]
        self.misses += 1
        value = compute()
        self._views[slot] = value
        return value

    def invalidate(self, entity: str) -> FrozenSet[str]:
        if entity not in self._table:
            raise KeyError(f"No invalidation rule for entity {entity!r}")
        views = self._table[entity]
        stale = [slot for slot in self._views if slot[0] in views]
        for slot in stale:
            del self._views[slot]
        logger.debug("%s changed: dropped %d cached view(s)", entity, len(stale))
        return views

    def clear(self) -> None:
        self._views.clear()

    def __contains__(self, slot: Tuple[str, Hashable]) -> bool:
        return slot in self._views

    def _on_event(self, event: Event, payload: dict) -> dict:
        views = self.invalidate(EVENT_ENTITIES[event.name])
        return {"invalidated": sorted(views)}

    def bind(self, bus: EventBus) -> None:
        for name in EVENT_ENTITIES:
            bus.subscribe(name, self._on_event)
