import logging
from datetime import date
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from hematwoi.balances import aggregate_balances
from hematwoi.budgets import budget_progress_for_period, spent_by_category, summarize_budgets
from hematwoi.cache import ViewCache
from hematwoi.domain import Account, Budget, BudgetProgress, Category, Transaction
from hematwoi.events import (
    BALANCE_ALERT,
    BUDGET_ALERT,
    BUDGET_UPDATED,
    TRANSACTION_ADDED,
    TRANSACTION_DELETED,
    EventBus,
    check_balance_handler,
    check_budget_handler,
)
from hematwoi.functional import safe_account
from hematwoi.insights import top_spending
from hematwoi.periods import next_period, normalize_period
from hematwoi.rollover import RolloverResult, roll_forward
from hematwoi.transforms import add_transaction, replace_budgets, soft_delete_transaction, update_budget

logger = logging.getLogger(__name__)

Validator = Callable[["LedgerService", str], Sequence[str]]
Calculator = Callable[["LedgerService", str, Dict[str, Any]], Dict[str, Any]]


def unknown_account_validator(service: "LedgerService", period: str) -> Sequence[str]:
    msgs = []
    for t in service.transactions:
        if t.deleted_at:
            continue
        for side in (t.account_id, t.to_account_id):
            if side and safe_account(service.accounts, side).is_none():
                msgs.append(f"transaction {t.id} references unknown account {side}")
    return msgs


def one_sided_transfer_validator(service: "LedgerService", period: str) -> Sequence[str]:
    """Flag live transfers where either side is missing or not a known account."""
    msgs = []
    for t in service.transactions:
        if t.type != "transfer" or t.deleted_at:
            continue
        if any(safe_account(service.accounts, side).is_none() for side in (t.account_id, t.to_account_id)):
            msgs.append(f"transfer {t.id} has only one side")
    return msgs


def balances_calculator(service: "LedgerService", period: str, acc: Dict[str, Any]) -> Dict[str, Any]:
    summary = service.balances()
    return {"all_total": summary.all_total, "cash_total": summary.cash_total, "non_cash_total": summary.non_cash_total}


def budget_calculator(service: "LedgerService", period: str, acc: Dict[str, Any]) -> Dict[str, Any]:
    progress = service.budget_progress(period)
    return {
        "near_limit": [vm.label for vm in progress.near_limit],
        "over_limit": [vm.label for vm in progress.over_limit],
    }


def summary_calculator(service: "LedgerService", period: str, acc: Dict[str, Any]) -> Dict[str, Any]:
    s = service.budget_summary(period)
    return {"planned": s.planned, "actual": s.actual, "remaining": s.remaining, "overspend": s.overspend}


DEFAULT_VALIDATORS = (unknown_account_validator, one_sided_transfer_validator)
DEFAULT_CALCULATORS = (balances_calculator, budget_calculator, summary_calculator)


class LedgerService:
    """In-memory ledger: immutable record tuples plus cached derived views.

    Every mutation replaces a tuple, publishes an event on ``bus`` and the
    bound ``ViewCache`` drops the views that depend on the touched entity.
    """

    def __init__(
        self,
        accounts: Tuple[Account, ...] = (),
        categories: Tuple[Category, ...] = (),
        transactions: Tuple[Transaction, ...] = (),
        budgets: Tuple[Budget, ...] = (),
        bus: Optional[EventBus] = None,
        cache: Optional[ViewCache] = None,
        today: Optional[date] = None,
    ):
        self.accounts = tuple(accounts)
        self.categories = tuple(categories)
        self.transactions = tuple(transactions)
        self.budgets = tuple(budgets)
        self.bus = bus or EventBus()
        self.cache = cache or ViewCache()
        self.today = today
        self.cache.bind(self.bus)
        self.bus.subscribe(BUDGET_ALERT, check_budget_handler)
        self.bus.subscribe(BALANCE_ALERT, check_balance_handler)

    # derived views

    def balances(self):
        return self.cache.get("balances", None, lambda: aggregate_balances(self.accounts, self.transactions))

    def budget_progress(self, period: Optional[str] = None) -> BudgetProgress:
        resolved = normalize_period(period)
        return self.cache.get(
            "budget_progress",
            resolved,
            lambda: budget_progress_for_period(self.budgets, self.transactions, resolved, self.today),
        )

    def budget_summary(self, period: Optional[str] = None):
        resolved = normalize_period(period)
        return self.cache.get(
            "budget_summary",
            resolved,
            lambda: summarize_budgets(self.budget_progress(resolved).items, resolved),
        )

    def top_spending(self, period: Optional[str] = None, k: int = 5):
        resolved = normalize_period(period)
        return self.cache.get(
            "top_spending",
            (resolved, k),
            lambda: tuple(top_spending(self.transactions, self.categories, resolved, k, self.today)),
        )

    # mutations

    def add_transaction(self, t: Transaction) -> list:
        """Append ``t`` and return the budget alerts it triggers.

        A date outside any valid month raises ``InvalidPeriodError`` and the
        ledger is left unchanged.
        """
        period = normalize_period(t.date[:7]) if t.date else None
        self.transactions = add_transaction(self.transactions, t)
        logger.info("transaction %s added (%s %.2f)", t.id, t.type, t.amount)
        self.bus.publish(TRANSACTION_ADDED, {"id": t.id, "amount": t.amount, "account_id": t.account_id})
        return self._alerts_for(t, period)

    def delete_transaction(self, tid: str, deleted_at: Optional[str] = None) -> None:
        self.transactions = soft_delete_transaction(self.transactions, tid, deleted_at)
        logger.info("transaction %s soft-deleted", tid)
        self.bus.publish(TRANSACTION_DELETED, {"id": tid})

    def update_budget(self, bid: str, **changes) -> None:
        self.budgets = update_budget(self.budgets, bid, **changes)
        logger.info("budget %s updated: %s", bid, ", ".join(sorted(changes)))
        self.bus.publish(BUDGET_UPDATED, {"id": bid, **changes})

    def preview_close(self, period: Optional[str] = None) -> RolloverResult:
        resolved = normalize_period(period)
        target = next_period(resolved)
        return self.cache.get("rollover", resolved, lambda: roll_forward(
            [b for b in self.budgets if b.period == resolved],
            spent_by_category(self.transactions, resolved),
            [b for b in self.budgets if b.period == target],
            target,
        ))

    def close_period(self, period: Optional[str] = None) -> RolloverResult:
        """Store rollover_out on the period's budgets and seed the next period."""
        result = self.preview_close(period)
        self.budgets = replace_budgets(self.budgets, result.closed + result.opened)
        logger.info("closed %s: %d budget(s) carried forward", normalize_period(period), len(result.opened))
        self.bus.publish(BUDGET_UPDATED, {"closed": [b.id for b in result.closed]})
        return result

    def _alerts_for(self, t: Transaction, period: Optional[str]) -> list:
        alerts = []
        if t.type == "expense" and period:
            progress = self.budget_progress(period)
            for vm in progress.items:
                if vm.budget.category_id and vm.budget.category_id == t.category_id:
                    alerts += self.bus.publish(BUDGET_ALERT, {
                        "label": vm.label,
                        "category_id": vm.budget.category_id,
                        "status": vm.status,
                        "progress": vm.progress,
                    })
        return [a for a in alerts if a.get("alert")]

    def balance_alerts(self, threshold: float) -> list:
        alerts = []
        for acc_id, balance in self.balances().per_account.items():
            alerts += self.bus.publish(BALANCE_ALERT, {"account_id": acc_id, "balance": balance, "threshold": threshold})
        found = [a for a in alerts if a.get("alert")]
        for a in found:
            logger.warning(a["alert"])
        return found

    # reports

    def monthly_report(
        self,
        period: Optional[str] = None,
        validators: Sequence[Validator] = DEFAULT_VALIDATORS,
        calculators: Sequence[Calculator] = DEFAULT_CALCULATORS,
    ) -> Dict[str, Any]:
        """Run validators and calculators for a month, keeping each intermediate step."""
        resolved = normalize_period(period)
        report = {"period": resolved, "validation": [], "steps": [], "result": {}}

        for v in validators:
            report["validation"].append({"validator": getattr(v, "__name__", str(v)), "messages": list(v(self, resolved))})

        acc: Dict[str, Any] = {}
        for calc in calculators:
            out = calc(self, resolved, acc)
            report["steps"].append({"calculator": getattr(calc, "__name__", str(calc)), "output": out})
            acc.update(out)

        report["result"] = acc
        return report
