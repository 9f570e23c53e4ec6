from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from hematwoi.domain import Account, BalanceSummary, BudgetViewModel, Transaction, coerce_amount
from hematwoi.transforms import active_transactions


def format_idr(value) -> str:
    """Rupiah without decimals, dot as thousands separator: ``Rp123.456``."""
    amount = round(coerce_amount(value))
    sign = "-" if amount < 0 else ""
    return f"{sign}Rp{abs(amount):,}".replace(",", ".")


def budgets_frame(items: Sequence[BudgetViewModel]) -> pd.DataFrame:
    columns = ["label", "period", "planned", "rollover_in", "actual", "remaining", "progress", "status", "carry_rule"]
    rows = [
        {
            "label": vm.label,
            "period": vm.budget.period,
            "planned": vm.budget.planned,
            "rollover_in": vm.budget.rollover_in,
            "actual": vm.actual,
            "remaining": vm.remaining,
            "progress": vm.progress,
            "status": vm.status,
            "carry_rule": vm.budget.carry_rule,
        }
        for vm in items
    ]
    return pd.DataFrame(rows, columns=columns)


def balances_frame(accounts: Iterable[Account], summary: BalanceSummary) -> pd.DataFrame:
    rows = [
        {"id": a.id, "name": a.name or a.id, "type": a.type, "balance": summary.per_account.get(a.id, 0.0)}
        for a in accounts
    ]
    return pd.DataFrame(rows, columns=["id", "name", "type", "balance"])


def monthly_flow(trans: Iterable[Transaction], months: Sequence[str]) -> pd.DataFrame:
    """Income and expense totals per ``YYYY-MM`` month, zero-filled; transfers are left out."""
    index = pd.Index(list(months), name="month")
    empty = pd.DataFrame({"income": np.zeros(len(index)), "expense": np.zeros(len(index))}, index=index)

    rows = [
        {"month": t.date[:7], "type": t.type, "amount": coerce_amount(t.amount)}
        for t in active_transactions(tuple(trans))
        if t.date and t.type in ("income", "expense")
    ]
    if not rows:
        return empty

    df = pd.DataFrame(rows)
    pivot = df.pivot_table(index="month", columns="type", values="amount", aggfunc="sum", fill_value=0.0)
    return pivot.reindex(index=index, columns=["income", "expense"], fill_value=0.0).astype(float)
