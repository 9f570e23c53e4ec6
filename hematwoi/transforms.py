import json
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, Tuple

from hematwoi.domain import Account, Budget, Category, Transaction
from hematwoi.filters import by_type, not_deleted
from hematwoi.schemas import parse_account, parse_budget, parse_category, parse_rows, parse_transaction

logger = logging.getLogger(__name__)


def load_seed(
    path: str,
) -> Tuple[
    Tuple[Account, ...],
    Tuple[Category, ...],
    Tuple[Transaction, ...],
    Tuple[Budget, ...],
]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    accounts, _ = parse_rows(data.get("accounts", []), parse_account)
    categories, _ = parse_rows(data.get("categories", []), parse_category)
    transactions, _ = parse_rows(data.get("transactions", []), parse_transaction)
    budgets, _ = parse_rows(data.get("budgets", []), parse_budget)
    logger.info(
        "loaded seed %s: %d accounts, %d categories, %d transactions, %d budgets",
        path, len(accounts), len(categories), len(transactions), len(budgets),
    )
    return accounts, categories, transactions, budgets


def add_transaction(
    trans: Tuple[Transaction, ...], t: Transaction
) -> Tuple[Transaction, ...]:
    return trans + (t,)


def soft_delete_transaction(
    trans: Tuple[Transaction, ...], tid: str, deleted_at: Optional[str] = None
) -> Tuple[Transaction, ...]:
    stamp = deleted_at or datetime.now(timezone.utc).isoformat()
    return tuple(
        replace(t, deleted_at=stamp) if t.id == tid and not t.deleted_at else t
        for t in trans
    )


def update_budget(budgets: Tuple[Budget, ...], bid: str, **changes) -> Tuple[Budget, ...]:
    return tuple(replace(b, **changes) if b.id == bid else b for b in budgets)


def replace_budgets(
    budgets: Tuple[Budget, ...], updated: Tuple[Budget, ...]
) -> Tuple[Budget, ...]:
    """Upsert by id, keeping the original order for existing rows."""
    by_id = {b.id: b for b in updated}
    merged = tuple(by_id.pop(b.id, b) for b in budgets)
    return merged + tuple(b for b in updated if b.id in by_id)


def active_transactions(trans: Tuple[Transaction, ...]) -> Tuple[Transaction, ...]:
    return tuple(filter(not_deleted, trans))


def income_transactions(trans: Tuple[Transaction, ...]) -> Tuple[Transaction, ...]:
    return tuple(filter(by_type("income"), active_transactions(trans)))


def expense_transactions(trans: Tuple[Transaction, ...]) -> Tuple[Transaction, ...]:
    return tuple(filter(by_type("expense"), active_transactions(trans)))
