from pathlib import Path

from hematwoi.domain import Budget, Transaction
from hematwoi.filters import by_category, by_date_range, by_type, is_internal_transfer, not_deleted
from hematwoi.transforms import (
    active_transactions,
    add_transaction,
    expense_transactions,
    income_transactions,
    load_seed,
    replace_budgets,
    soft_delete_transaction,
    update_budget,
)

SEED = Path(__file__).resolve().parent.parent / "data" / "seed.json"


def sample():
    return (
        Transaction("t1", "a1", "income", 100, "2025-09-01", category_id="salary"),
        Transaction("t2", "a1", "expense", 50, "2025-09-02", category_id="food"),
        Transaction("t3", "a1", "transfer", 20, "2025-09-03", to_account_id="a2"),
        Transaction("t4", "a1", "expense", 10, "2025-10-01", category_id="food", deleted_at="2025-10-02"),
    )


def test_load_seed():
    accounts, categories, transactions, budgets = load_seed(str(SEED))
    assert len(accounts) >= 3
    assert len(categories) >= 5
    assert len(transactions) >= 10
    assert len(budgets) >= 4
    assert all(b.period == "2025-09" for b in budgets)
    assert {a.type for a in accounts} == {"cash", "bank", "ewallet"}


def test_add_transaction_is_immutable():
    trans = sample()
    extra = Transaction("t5", "a1", "income", 1, "2025-09-09")
    new_trans = add_transaction(trans, extra)
    assert len(new_trans) == 5
    assert len(trans) == 4
    assert new_trans is not trans


def test_soft_delete_transaction():
    trans = sample()
    deleted = soft_delete_transaction(trans, "t2", "2025-09-30T00:00:00Z")
    assert deleted[1].deleted_at == "2025-09-30T00:00:00Z"
    assert trans[1].deleted_at is None
    # already deleted rows keep their original stamp
    again = soft_delete_transaction(deleted, "t4", "2030-01-01")
    assert again[3].deleted_at == "2025-10-02"


def test_soft_delete_defaults_to_now():
    deleted = soft_delete_transaction(sample(), "t1")
    assert deleted[0].deleted_at


def test_update_budget():
    budgets = (
        Budget("b1", "food", "2025-09", 300),
        Budget("b2", "fun", "2025-09", 150),
    )
    updated = update_budget(budgets, "b1", planned=500, carry_rule="carry-all")
    assert updated[0].planned == 500
    assert updated[0].carry_rule == "carry-all"
    assert updated[1] is budgets[1]
    assert budgets[0].planned == 300


def test_replace_budgets_upserts_by_id():
    budgets = (Budget("b1", "food", "2025-09", 300), Budget("b2", "fun", "2025-09", 150))
    merged = replace_budgets(budgets, (Budget("b2", "fun", "2025-09", 999), Budget("b3", "fun", "2025-10", 150)))
    assert [b.id for b in merged] == ["b1", "b2", "b3"]
    assert merged[1].planned == 999


def test_active_income_expense():
    trans = sample()
    assert [t.id for t in active_transactions(trans)] == ["t1", "t2", "t3"]
    assert [t.id for t in income_transactions(trans)] == ["t1"]
    assert [t.id for t in expense_transactions(trans)] == ["t2"]


def test_filters():
    trans = sample()
    assert [t.id for t in filter(by_type("transfer"), trans)] == ["t3"]
    assert [t.id for t in filter(by_category("food"), trans)] == ["t2", "t4"]
    assert [t.id for t in filter(by_date_range("2025-09-02", "2025-09-30"), trans)] == ["t2", "t3"]
    assert [t.id for t in filter(not_deleted, trans)] == ["t1", "t2", "t3"]
    assert [t.id for t in filter(is_internal_transfer, trans)] == ["t3"]
