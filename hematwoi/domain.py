import math
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

ACCOUNT_TYPES = ("cash", "bank", "ewallet", "other")
TRANSACTION_TYPES = ("income", "expense", "transfer")
CARRY_RULES = ("none", "carry-positive", "carry-all", "reset-zero")
BUDGET_STATUSES = ("on-track", "warning", "overspend")

_LEADING_NUMBER = re.compile(r"\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def coerce_amount(value) -> float:
    """Turn a loosely typed amount into a finite float.

    Strings are read up to the end of their leading number, so "12.5abc"
    gives 12.5 and "1_000" gives 1.0. None, strings without a leading
    number and non-finite numbers become 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if not match:
            return 0.0
        value = match.group(0)
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


@dataclass(frozen=True)
class Account:
    id: str
    type: str          # cash | bank | ewallet | other
    name: str = ""


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    type: str = "expense"


@dataclass(frozen=True)
class Transaction:
    id: str
    account_id: Optional[str]
    type: str                          # income | expense | transfer
    amount: float
    date: str = ""                     # e.g. "2025-09-01"
    to_account_id: Optional[str] = None
    category_id: Optional[str] = None
    deleted_at: Optional[str] = None   # soft delete marker
    note: str = ""


@dataclass(frozen=True)
class Budget:
    id: str
    category_id: Optional[str]
    period: str                        # "YYYY-MM"
    planned: float
    rollover_in: float = 0.0
    rollover_out: float = 0.0
    carry_rule: str = "carry-positive"
    name: Optional[str] = None


@dataclass(frozen=True)
class BudgetViewModel:
    budget: Budget
    actual: float
    remaining: float
    progress: float
    status: str

    @property
    def label(self) -> str:
        return self.budget.name or self.budget.category_id or ""


@dataclass(frozen=True)
class BalanceSummary:
    per_account: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    cash_total: float = 0.0
    non_cash_total: float = 0.0
    all_total: float = 0.0


@dataclass(frozen=True)
class BudgetProgress:
    period: str
    items: Tuple[BudgetViewModel, ...] = ()
    near_limit: Tuple[BudgetViewModel, ...] = ()
    over_limit: Tuple[BudgetViewModel, ...] = ()


@dataclass(frozen=True)
class BudgetSummary:
    planned: float
    actual: float
    remaining: float
    overspend: float
    coverage_days: Optional[int]
