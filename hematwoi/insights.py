from datetime import date
from typing import Callable, Iterable, Iterator, Optional, Tuple

from hematwoi.budgets import spent_by_category
from hematwoi.config import UNCATEGORIZED_LABEL
from hematwoi.domain import Category, Transaction


def iter_transactions(
    trans: Iterable[Transaction], pred: Callable[[Transaction], bool]
) -> Iterator[Transaction]:
    for t in trans:
        if pred(t):
            yield t


def top_spending(
    trans: Iterable[Transaction],
    cats: Iterable[Category],
    period: Optional[str],
    k: int = 5,
    today: Optional[date] = None,
) -> Iterator[Tuple[Optional[str], str, float, float]]:
    """Yield (category_id, name, amount, share) for the biggest expense categories."""
    names = {c.id: c.name for c in cats}
    totals = spent_by_category(trans, period, today)
    grand_total = sum(totals.values())

    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    for cat_id, amount in ordered[: max(0, k)]:
        share = amount / grand_total if grand_total > 0 else 0.0
        name = names.get(cat_id, cat_id) if cat_id else UNCATEGORIZED_LABEL
        yield cat_id, name, amount, share
