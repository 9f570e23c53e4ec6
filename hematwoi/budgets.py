"""Budget progress: per-category actual spend against planned amounts.

Progress is ``actual / planned`` for budgets with a positive plan. Budgets
between the warning and overspend thresholds are "near limit", those at or
past the overspend threshold are "over limit". Budgets without a positive
plan are still reported, with progress 0, but never partitioned.
"""
import logging
import math
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from hematwoi.config import OVERSPEND_THRESHOLD, WARNING_THRESHOLD
from hematwoi.domain import Budget, BudgetProgress, BudgetSummary, BudgetViewModel, Transaction, coerce_amount
from hematwoi.filters import by_date_range, by_type, is_internal_transfer, not_deleted
from hematwoi.periods import days_in_period, month_range, normalize_period

logger = logging.getLogger(__name__)

SORT_KEYS = ("name", "planned", "actual", "remaining")


def classify(progress: float) -> str:
    if progress >= OVERSPEND_THRESHOLD:
        return "overspend"
    if progress >= WARNING_THRESHOLD:
        return "warning"
    return "on-track"


def to_view_model(budget: Budget, actual: float) -> BudgetViewModel:
    planned = coerce_amount(budget.planned)
    actual = coerce_amount(actual)
    remaining = planned + coerce_amount(budget.rollover_in) - actual
    if planned > 0:
        progress = actual / planned
        status = classify(progress)
    else:
        progress = 0.0
        status = "overspend" if remaining < 0 else "on-track"
    return BudgetViewModel(
        budget=budget,
        actual=actual,
        remaining=remaining,
        progress=progress,
        status=status,
    )


def spent_by_category(
    transactions: Iterable[Transaction], period: Optional[str], today: Optional[date] = None
) -> Dict[Optional[str], float]:
    """Expense totals per category_id within the period; transfers and deleted rows excluded."""
    start, end = month_range(period, today)
    in_range = by_date_range(start, end)
    is_expense = by_type("expense")

    totals: Dict[Optional[str], float] = defaultdict(float)
    for t in transactions:
        if not_deleted(t) and is_expense(t) and not is_internal_transfer(t) and in_range(t):
            totals[t.category_id] += coerce_amount(t.amount)
    return dict(totals)


def compute_budget_progress(
    budgets: Iterable[Budget],
    actuals_by_category: Mapping[Optional[str], float],
    period: Optional[str] = None,
) -> BudgetProgress:
    items = []
    for b in budgets:
        actual = actuals_by_category.get(b.category_id, 0.0) if b.category_id else 0.0
        items.append(to_view_model(b, actual))

    ranked = [vm for vm in items if coerce_amount(vm.budget.planned) > 0]
    near = [vm for vm in ranked if WARNING_THRESHOLD <= vm.progress < OVERSPEND_THRESHOLD]
    over = [vm for vm in ranked if vm.progress >= OVERSPEND_THRESHOLD]
    near.sort(key=lambda vm: vm.progress, reverse=True)
    over.sort(key=lambda vm: vm.progress, reverse=True)

    if over:
        logger.debug("%d budget(s) over limit", len(over))
    return BudgetProgress(
        period=period or "",
        items=tuple(items),
        near_limit=tuple(near),
        over_limit=tuple(over),
    )


def budget_progress_for_period(
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
    period: Optional[str] = None,
    today: Optional[date] = None,
) -> BudgetProgress:
    resolved = normalize_period(period)
    in_period = [b for b in budgets if b.period == resolved]
    actuals = spent_by_category(transactions, resolved, today)
    return compute_budget_progress(in_period, actuals, resolved)


def summarize_budgets(items: Sequence[BudgetViewModel], period: str) -> BudgetSummary:
    planned = sum(coerce_amount(vm.budget.planned) for vm in items)
    rollover_in = sum(coerce_amount(vm.budget.rollover_in) for vm in items)
    rollover_out = sum(coerce_amount(vm.budget.rollover_out) for vm in items)
    actual = sum(vm.actual for vm in items)
    remaining = planned + rollover_in - rollover_out - actual
    overspend = abs(remaining) if remaining < 0 else 0.0

    coverage_days = None
    if actual > 0:
        daily = actual / days_in_period(period)
        coverage_days = max(math.floor(remaining / daily), 0)

    return BudgetSummary(
        planned=planned,
        actual=actual,
        remaining=remaining,
        overspend=overspend,
        coverage_days=coverage_days,
    )


def sort_budgets(items: Iterable[BudgetViewModel], key: str = "name") -> Tuple[BudgetViewModel, ...]:
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {key!r}; expected one of {SORT_KEYS}")
    if key == "name":
        return tuple(sorted(items, key=lambda vm: vm.label.lower()))
    if key == "planned":
        return tuple(sorted(items, key=lambda vm: coerce_amount(vm.budget.planned), reverse=True))
    return tuple(sorted(items, key=lambda vm: getattr(vm, key), reverse=True))
