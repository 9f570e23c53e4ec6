import logging
from types import MappingProxyType
from typing import Dict, Iterable, Optional

from hematwoi.domain import Account, BalanceSummary, Transaction, coerce_amount

logger = logging.getLogger(__name__)


def _apply(balances: Dict[str, float], t: Transaction) -> None:
    if t is None or t.deleted_at:
        return
    amount = coerce_amount(t.amount)
    if amount == 0:
        return

    kind = (t.type or "").lower()
    source, dest = t.account_id, t.to_account_id

    if kind == "income":
        if source in balances:
            balances[source] += amount
    elif kind == "expense":
        if source in balances:
            balances[source] -= amount
    elif kind == "transfer":
        # each side applies on its own; a one-sided transfer still moves money
        if source in balances:
            balances[source] -= amount
        if dest in balances:
            balances[dest] += amount


def aggregate_balances(
    accounts: Optional[Iterable[Account]], transactions: Optional[Iterable[Transaction]]
) -> BalanceSummary:
    known = [a for a in (accounts or ()) if a is not None and a.id]
    if not known:
        return BalanceSummary()

    by_id = {a.id: a for a in known}
    balances: Dict[str, float] = dict.fromkeys(by_id, 0.0)
    for t in transactions or ():
        _apply(balances, t)

    all_total = sum(balances.values(), 0.0)
    cash_total = sum(
        balances[acc_id] for acc_id, acc in by_id.items() if (acc.type or "").lower() == "cash"
    )

    logger.debug("aggregated %d accounts, total %.2f", len(balances), all_total)
    return BalanceSummary(
        per_account=MappingProxyType(balances),
        cash_total=cash_total,
        non_cash_total=all_total - cash_total,
        all_total=all_total,
    )


def account_balance(trans: Iterable[Transaction], acc_id: str) -> float:
    balances = {acc_id: 0.0}
    for t in trans:
        _apply(balances, t)
    return balances[acc_id]
