import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from uuid import uuid4

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from hematwoi.budgets import sort_budgets
from hematwoi.config import DEFAULT_BALANCE_THRESHOLD, SEED_PATH, configure_logging
from hematwoi.domain import TRANSACTION_TYPES
from hematwoi.periods import current_period, previous_periods
from hematwoi.reports import balances_frame, budgets_frame, format_idr, monthly_flow
from hematwoi.schemas import parse_transaction
from hematwoi.services import LedgerService
from hematwoi.transforms import load_seed

configure_logging()
st.set_page_config(page_title="HematWoi", layout="wide")

if "ledger" not in st.session_state:
    accounts, categories, transactions, budgets = load_seed(SEED_PATH)
    st.session_state.ledger = LedgerService(accounts, categories, transactions, budgets)

ledger: LedgerService = st.session_state.ledger
account_names = {a.id: a.name or a.id for a in ledger.accounts}
category_names = {c.id: c.name for c in ledger.categories}

budget_periods = sorted({b.period for b in ledger.budgets}, reverse=True)
period_options = budget_periods or previous_periods(6)
period = st.sidebar.selectbox("Period", period_options, index=0)

menu = st.sidebar.radio("Menu", ["🏠 Overview", "💰 Budgets", "🔁 Rollover", "🧾 Transactions"])

if menu == "🏠 Overview":
    summary = ledger.balances()
    k1, k2, k3 = st.columns(3)
    k1.metric("Total", format_idr(summary.all_total))
    k2.metric("Cash", format_idr(summary.cash_total))
    k3.metric("Non-cash", format_idr(summary.non_cash_total))

    bal_df = balances_frame(ledger.accounts, summary)
    fig_bal = px.bar(bal_df, x="name", y="balance", color="type", title="Account Balances", template="plotly_dark")
    st.plotly_chart(fig_bal, use_container_width=True)

    months = list(reversed(previous_periods(12, anchor=max(period_options + [current_period()]))))
    flow = monthly_flow(ledger.transactions, months)
    fig_flow = go.Figure()
    fig_flow.add_trace(go.Scatter(x=flow.index, y=flow["income"], mode="lines+markers", name="Income"))
    fig_flow.add_trace(go.Scatter(x=flow.index, y=flow["expense"], mode="lines+markers", name="Expense"))
    fig_flow.update_layout(template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10))
    st.plotly_chart(fig_flow, use_container_width=True)

    for alert in ledger.balance_alerts(DEFAULT_BALANCE_THRESHOLD):
        st.warning(alert["alert"])

elif menu == "💰 Budgets":
    st.title(f"💰 Budgets {period}")
    progress = ledger.budget_progress(period)
    summary = ledger.budget_summary(period)

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Planned", format_idr(summary.planned))
    c2.metric("Actual", format_idr(summary.actual))
    c3.metric("Remaining", format_idr(summary.remaining))
    c4.metric("Coverage", f"{summary.coverage_days} days" if summary.coverage_days is not None else "-")

    sort_key = st.selectbox("Sort by", ["name", "planned", "actual", "remaining"])
    df = budgets_frame(sort_budgets(progress.items, sort_key))
    if df.empty:
        st.info("No budgets for this period.")
    else:
        st.dataframe(df, use_container_width=True)

    left, right = st.columns(2)
    with left:
        st.subheader("⚠️ Near limit")
        for vm in progress.near_limit:
            st.write(f"{vm.label}: {vm.progress:.0%}")
    with right:
        st.subheader("🚨 Over limit")
        for vm in progress.over_limit:
            st.write(f"{vm.label}: {vm.progress:.0%}")

    top = ledger.top_spending(period, 5)
    if top:
        top_df = pd.DataFrame(top, columns=["category_id", "category", "amount", "share"])
        st.plotly_chart(px.pie(top_df, values="amount", names="category", title="Top spending"), use_container_width=True)

elif menu == "🔁 Rollover":
    st.title(f"🔁 Close {period}")
    preview = ledger.preview_close(period)
    rows = [
        {
            "budget": b.name or category_names.get(b.category_id, b.category_id),
            "carry_rule": b.carry_rule,
            "rollover_out": b.rollover_out,
            "next_period": nxt.period,
            "next_planned": nxt.planned,
        }
        for b, nxt in zip(preview.closed, preview.opened)
    ]
    st.dataframe(pd.DataFrame(rows), use_container_width=True)
    if st.button("Apply rollover"):
        result = ledger.close_period(period)
        st.success(f"{len(result.opened)} budget(s) carried into {result.opened[0].period if result.opened else '-'}")

elif menu == "🧾 Transactions":
    st.title("🧾 Transactions")
    with st.form("add_tx"):
        tx_type = st.selectbox("Type", TRANSACTION_TYPES)
        amount = st.text_input("Amount", "0")
        account = st.selectbox("Account", list(account_names), format_func=account_names.get)
        to_account = st.selectbox("To account", [None] + list(account_names), format_func=lambda a: account_names.get(a, "-"))
        category = st.selectbox("Category", [None] + list(category_names), format_func=lambda c: category_names.get(c, "-"))
        tx_date = st.date_input("Date")
        note = st.text_input("Note")
        submitted = st.form_submit_button("Add")

    if submitted:
        parsed = parse_transaction({
            "id": str(uuid4()),
            "account_id": account,
            "to_account_id": to_account if tx_type == "transfer" else None,
            "type": tx_type,
            "amount": amount,
            "date": tx_date.isoformat(),
            "category_id": category,
            "note": note,
        })
        if parsed.is_left():
            st.error(parsed.get_error()["message"])
        else:
            for alert in ledger.add_transaction(parsed.get_or_else(None)):
                st.warning(alert["alert"])
            st.success("Transaction added")

    rows = [
        {
            "id": t.id,
            "date": t.date,
            "type": t.type,
            "amount": format_idr(t.amount),
            "account": account_names.get(t.account_id, t.account_id),
            "to": account_names.get(t.to_account_id, t.to_account_id),
            "category": category_names.get(t.category_id, t.category_id),
            "deleted": bool(t.deleted_at),
        }
        for t in sorted(ledger.transactions, key=lambda t: t.date, reverse=True)
    ]
    st.dataframe(pd.DataFrame(rows), use_container_width=True)

    live = [t.id for t in ledger.transactions if not t.deleted_at]
    to_delete = st.selectbox("Delete transaction", [None] + live)
    if to_delete and st.button("Delete"):
        ledger.delete_transaction(to_delete)
        st.success(f"Transaction {to_delete} deleted")
