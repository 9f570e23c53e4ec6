import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, Mapping, Optional, Tuple

from hematwoi.domain import Budget, coerce_amount
from hematwoi.periods import next_period

logger = logging.getLogger(__name__)


def _carry_nothing(leftover: float) -> float:
    return 0.0


def _carry_positive(leftover: float) -> float:
    return max(0.0, leftover)


def _carry_all(leftover: float) -> float:
    return leftover


# reset-zero carries nothing and leaves the next period's plan as it is
CARRY_POLICIES = {
    "none": _carry_nothing,
    "carry-positive": _carry_positive,
    "carry-all": _carry_all,
    "reset-zero": _carry_nothing,
}


def resolve_rollover(carry_rule: str, planned, rollover_in, actual) -> float:
    policy = CARRY_POLICIES.get(carry_rule)
    if policy is None:
        raise ValueError(f"Unknown carry rule {carry_rule!r}")
    leftover = coerce_amount(planned) + coerce_amount(rollover_in) - coerce_amount(actual)
    return policy(leftover)


@dataclass(frozen=True)
class RolloverResult:
    closed: Tuple[Budget, ...]
    opened: Tuple[Budget, ...]


def _match_key(b: Budget) -> Tuple[str, str]:
    if b.category_id:
        return "category", b.category_id
    return "name", (b.name or "").strip().lower()


def roll_forward(
    budgets: Iterable[Budget],
    actuals_by_category: Mapping[Optional[str], float],
    next_budgets: Iterable[Budget] = (),
    target_period: Optional[str] = None,
) -> RolloverResult:
    """Close a period and seed the following one.

    ``closed`` holds the given budgets with ``rollover_out`` filled in.
    ``opened`` holds one budget per closed budget in the next period with
    ``rollover_in`` set; a matching entry in ``next_budgets`` keeps its own
    plan, otherwise the plan is cloned from the closing budget.
    """
    existing: Dict[Tuple[str, str], Budget] = {_match_key(b): b for b in next_budgets}
    closed, opened = [], []

    for b in budgets:
        actual = actuals_by_category.get(b.category_id, 0.0) if b.category_id else 0.0
        carried = resolve_rollover(b.carry_rule, b.planned, b.rollover_in, actual)
        closed.append(replace(b, rollover_out=carried))

        period = target_period or next_period(b.period)
        match = existing.get(_match_key(b))
        if match is not None:
            opened.append(replace(match, rollover_in=carried))
        else:
            opened.append(replace(
                b,
                id=f"{b.id}:{period}",
                period=period,
                rollover_in=carried,
                rollover_out=0.0,
            ))

    logger.debug("rolled %d budget(s) forward", len(closed))
    return RolloverResult(closed=tuple(closed), opened=tuple(opened))
