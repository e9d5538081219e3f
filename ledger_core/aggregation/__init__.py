"""Ledger aggregation package."""

from ledger_core.aggregation.aggregator import (
    AccountBalance,
    Period,
    account_balances,
    entry_date,
    sum_by_range,
)

__all__ = [
    "AccountBalance",
    "Period",
    "account_balances",
    "entry_date",
    "sum_by_range",
]
