import pytest

from hematwoi.domain import Budget
from hematwoi.rollover import CARRY_POLICIES, resolve_rollover, roll_forward


def test_policy_table():
    assert resolve_rollover("none", 100, 50, 80) == 0
    assert resolve_rollover("carry-positive", 100, 0, 150) == 0
    assert resolve_rollover("carry-positive", 100, 20, 70) == 50
    assert resolve_rollover("carry-all", 100, 0, 150) == -50
    assert resolve_rollover("carry-all", 100, 25, 50) == 75
    assert resolve_rollover("reset-zero", 100, 999, 10) == 0


def test_resolve_rollover_is_pure():
    results = {resolve_rollover("carry-all", 120, 30, 100) for _ in range(5)}
    assert results == {50}


def test_resolve_rollover_coerces_amounts():
    assert resolve_rollover("carry-positive", "100", None, "abc") == 100


def test_unknown_carry_rule():
    with pytest.raises(ValueError):
        resolve_rollover("carry-some", 100, 0, 0)


def test_every_carry_rule_has_a_policy():
    assert set(CARRY_POLICIES) == {"none", "carry-positive", "carry-all", "reset-zero"}


def make_budget(bid, cat_id, planned, carry_rule, period="2025-01", rollover_in=0.0, name=None):
    return Budget(
        id=bid,
        category_id=cat_id,
        period=period,
        planned=planned,
        rollover_in=rollover_in,
        carry_rule=carry_rule,
        name=name,
    )


def test_roll_forward_clones_missing_budgets():
    budgets = [
        make_budget("food", "c-food", 500, "carry-positive"),
        make_budget("fun", "c-fun", 200, "carry-all"),
        make_budget("bills", "c-bills", 300, "none"),
    ]
    result = roll_forward(budgets, {"c-food": 350, "c-fun": 260, "c-bills": 100})

    assert [b.rollover_out for b in result.closed] == [150, -60, 0]
    assert [b.period for b in result.closed] == ["2025-01"] * 3
    assert [b.period for b in result.opened] == ["2025-02"] * 3
    assert [b.rollover_in for b in result.opened] == [150, -60, 0]
    assert [b.planned for b in result.opened] == [500, 200, 300]
    assert [b.carry_rule for b in result.opened] == ["carry-positive", "carry-all", "none"]
    assert all(b.rollover_out == 0 for b in result.opened)
    assert len({b.id for b in result.opened} | {b.id for b in result.closed}) == 6


def test_roll_forward_keeps_existing_plan():
    budgets = [make_budget("fun", "c-fun", 200, "reset-zero")]
    next_budgets = [make_budget("fun-feb", "c-fun", 800, "reset-zero", period="2025-02", rollover_in=40)]
    result = roll_forward(budgets, {"c-fun": 10}, next_budgets)

    opened = result.opened[0]
    assert opened.id == "fun-feb"
    assert opened.planned == 800
    assert opened.rollover_in == 0


def test_roll_forward_matches_envelopes_by_name():
    budgets = [make_budget("env", None, 100, "carry-positive", name="Holiday")]
    next_budgets = [make_budget("env-feb", None, 120, "carry-positive", period="2025-02", name="holiday ")]
    result = roll_forward(budgets, {None: 70}, next_budgets)

    # envelopes without a category have no tracked spend
    assert result.closed[0].rollover_out == 100
    assert result.opened[0].id == "env-feb"
    assert result.opened[0].rollover_in == 100


def test_roll_forward_is_idempotent_and_leaves_inputs_alone():
    budgets = (make_budget("food", "c-food", 500, "carry-positive", rollover_in=25),)
    first = roll_forward(budgets, {"c-food": 100})
    second = roll_forward(budgets, {"c-food": 100})
    assert first == second
    assert budgets[0].rollover_out == 0.0
    assert first.opened[0].rollover_in == 425


def test_roll_forward_across_year_end():
    result = roll_forward([make_budget("b", "c", 10, "carry-all", period="2024-12")], {})
    assert result.opened[0].period == "2025-01"
    assert result.opened[0].rollover_in == 10
