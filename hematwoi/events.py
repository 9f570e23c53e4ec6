import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Callable, Dict, List, NamedTuple

logger = logging.getLogger(__name__)

__all__ = [
    'Event', 'EventBus',
    'TRANSACTION_ADDED', 'TRANSACTION_DELETED', 'BUDGET_UPDATED',
    'ACCOUNT_UPDATED', 'CATEGORY_UPDATED', 'BUDGET_ALERT', 'BALANCE_ALERT',
    'check_budget_handler', 'check_balance_handler',
]

TRANSACTION_ADDED = "TRANSACTION_ADDED"
TRANSACTION_DELETED = "TRANSACTION_DELETED"
BUDGET_UPDATED = "BUDGET_UPDATED"
ACCOUNT_UPDATED = "ACCOUNT_UPDATED"
CATEGORY_UPDATED = "CATEGORY_UPDATED"
BUDGET_ALERT = "BUDGET_ALERT"
BALANCE_ALERT = "BALANCE_ALERT"


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], dict]


class EventBus:
    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, name: str, handler: Handler) -> None:
        self._handlers[name].append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._handlers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        """Call every handler of ``name`` in subscription order and collect their results."""
        handlers = list(self._handlers.get(name, ()))
        if not handlers:
            return []
        event = Event(name=name, ts=datetime.now(timezone.utc).isoformat(), payload=payload)
        logger.debug("publish %s to %d handler(s)", name, len(handlers))
        return [handler(event, payload) for handler in handlers]


def check_budget_handler(event: Event, payload: dict) -> dict:
    status = payload.get("status", "on-track")
    if status not in ("warning", "overspend"):
        return {}
    label = payload.get("label") or payload.get("category_id") or "budget"
    progress = payload.get("progress", 0.0)
    verb = "exceeded" if status == "overspend" else "is close to its limit"
    return {
        "alert": f"Budget {label} {verb}: {progress:.0%} used",
        "status": status,
        "category_id": payload.get("category_id"),
        "progress": progress,
    }


def check_balance_handler(event: Event, payload: dict) -> dict:
    balance = payload.get("balance", 0)
    threshold = payload.get("threshold", 0)
    if threshold > 0 and balance < threshold:
        return {
            "alert": f"Balance of {payload.get('account_id', 'account')} is {balance:,.0f}, below {threshold:,.0f}",
            "account_id": payload.get("account_id"),
            "balance": balance,
            "threshold": threshold,
        }
    return {}
