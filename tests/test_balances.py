from hematwoi.balances import account_balance, aggregate_balances
from hematwoi.domain import Account, Transaction


def make_tx(tid, account_id, tx_type, amount, to_account_id=None, deleted_at=None):
    return Transaction(
        id=tid,
        account_id=account_id,
        type=tx_type,
        amount=amount,
        date="2025-01-01",
        to_account_id=to_account_id,
        deleted_at=deleted_at,
    )


ACCOUNTS = (
    Account("cash-1", "cash"),
    Account("bank-1", "bank"),
    Account("wallet-1", "ewallet"),
)


def test_income_expense_and_string_amounts():
    summary = aggregate_balances(ACCOUNTS[:2], [
        make_tx("t1", "cash-1", "income", 100_000),
        make_tx("t2", "cash-1", "expense", 25_000),
        make_tx("t3", "bank-1", "income", "50000"),
    ])
    assert summary.per_account == {"cash-1": 75_000, "bank-1": 50_000}
    assert summary.cash_total == 75_000
    assert summary.non_cash_total == 50_000
    assert summary.all_total == 125_000


def test_end_to_end_transfer_scenario():
    accounts = (Account("A", "cash"), Account("B", "bank"))
    summary = aggregate_balances(accounts, [
        make_tx("t1", "A", "income", 1000),
        make_tx("t2", "A", "transfer", 300, to_account_id="B"),
    ])
    assert summary.per_account == {"A": 700, "B": 300}
    assert summary.cash_total == 700
    assert summary.non_cash_total == 300
    assert summary.all_total == 1000


def test_mixed_transfers_and_deleted_rows():
    summary = aggregate_balances(ACCOUNTS, [
        make_tx("t1", "cash-1", "income", 200_000),
        make_tx("t2", "cash-1", "expense", 25_000),
        make_tx("t3", "cash-1", "transfer", 50_000, to_account_id="bank-1"),
        make_tx("t4", "bank-1", "transfer", "30000", to_account_id="wallet-1"),
        make_tx("t5", "wallet-1", "transfer", 10_000, to_account_id="cash-1"),
        make_tx("t6", "cash-1", "income", "15500"),
        make_tx("t7", "wallet-1", "expense", 5_500, deleted_at="2024-01-01"),
    ])
    assert summary.per_account == {"cash-1": 150_500, "bank-1": 20_000, "wallet-1": 20_000}
    assert summary.cash_total == 150_500
    assert summary.non_cash_total == 40_000
    assert summary.all_total == 190_500


def test_no_accounts_gives_zero_totals():
    summary = aggregate_balances([], [make_tx("t1", "A", "income", 10)])
    assert summary.per_account == {}
    assert summary.cash_total == 0
    assert summary.non_cash_total == 0
    assert summary.all_total == 0
    assert aggregate_balances(None, None).all_total == 0


def test_unknown_accounts_are_ignored():
    accounts = (Account("cash-1", "cash"),)
    summary = aggregate_balances(accounts, [
        make_tx("t1", "cash-1", "income", 100_000),
        make_tx("t2", "missing", "transfer", 20_000, to_account_id="missing"),
        make_tx("t3", "ghost", "expense", 5_000),
    ])
    assert summary.per_account == {"cash-1": 100_000}
    assert "missing" not in summary.per_account
    assert summary.all_total == 100_000


def test_transfer_to_unknown_destination_only_debits_source():
    summary = aggregate_balances(ACCOUNTS[:2], [
        make_tx("t1", "cash-1", "income", 500),
        make_tx("t2", "cash-1", "transfer", 200, to_account_id="elsewhere"),
    ])
    assert summary.per_account == {"cash-1": 300, "bank-1": 0}


def test_transfer_from_unknown_source_still_credits_destination():
    summary = aggregate_balances(ACCOUNTS[:2], [
        make_tx("t1", "elsewhere", "transfer", 200, to_account_id="bank-1"),
        make_tx("t2", None, "transfer", 50, to_account_id="bank-1"),
    ])
    assert summary.per_account["bank-1"] == 250
    assert summary.per_account["cash-1"] == 0


def test_malformed_amounts_and_types_contribute_nothing():
    summary = aggregate_balances(ACCOUNTS[:1], [
        make_tx("t1", "cash-1", "income", "abc"),
        make_tx("t2", "cash-1", "income", None),
        make_tx("t3", "cash-1", "income", float("nan")),
        make_tx("t4", "cash-1", "income", float("inf")),
        make_tx("t5", "cash-1", "refund", 99),
        make_tx("t6", "cash-1", "income", 0),
    ])
    assert summary.per_account == {"cash-1": 0}


def test_type_matching_is_case_insensitive():
    accounts = (Account("c", "Cash"),)
    summary = aggregate_balances(accounts, [make_tx("t1", "c", "INCOME", 10)])
    assert summary.per_account["c"] == 10
    assert summary.cash_total == 10


def test_totals_are_consistent_and_idempotent():
    trans = [
        make_tx("t1", "cash-1", "income", 1234.5),
        make_tx("t2", "bank-1", "income", 99.25),
        make_tx("t3", "cash-1", "transfer", 10.75, to_account_id="wallet-1"),
        make_tx("t4", "wallet-1", "expense", 3.5),
        make_tx("t5", "bank-1", "transfer", 1.25, to_account_id="nowhere"),
    ]
    first = aggregate_balances(ACCOUNTS, trans)
    second = aggregate_balances(ACCOUNTS, trans)

    assert first == second
    assert first.all_total == sum(first.per_account.values())
    assert first.cash_total + first.non_cash_total == first.all_total


def test_aggregation_does_not_mutate_inputs():
    trans = [make_tx("t1", "cash-1", "income", 10)]
    snapshot = list(trans)
    aggregate_balances(ACCOUNTS, trans)
    assert trans == snapshot


def test_account_balance_single_account():
    trans = (
        make_tx("t1", "a1", "income", 100),
        make_tx("t2", "a1", "expense", 50),
        make_tx("t3", "a2", "income", 200),
        make_tx("t4", "a2", "transfer", 30, to_account_id="a1"),
    )
    assert account_balance(trans, "a1") == 80
    assert account_balance(trans, "a2") == 170
