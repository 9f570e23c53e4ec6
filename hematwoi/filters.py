from typing import Callable

from hematwoi.domain import Transaction

Predicate = Callable[[Transaction], bool]


def by_type(tx_type: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return (t.type or "").lower() == tx_type

    return _filter


def by_category(cat_id) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.category_id == cat_id

    return _filter


def by_date_range(start: str, end: str) -> Predicate:
    # dates are ISO strings, so lexical order is chronological
    def _filter(t: Transaction) -> bool:
        return bool(t.date) and start <= t.date[:10] <= end

    return _filter


def not_deleted(t: Transaction) -> bool:
    return not t.deleted_at


def is_internal_transfer(t: Transaction) -> bool:
    return (t.type or "").lower() == "transfer" or bool(t.to_account_id)
