"""
Balances Module

This module folds a group's expense history into per-member balances.

Features:
    - Per-member paid and owed totals
    - Net balance calculation (paid - owed)
    - Recorded settle-up payments folded into the same totals
    - Order-independent results (exact Decimal sums, sorted keys)

Data Model:
    Input - expenses: iterable of ExpenseRecord
        - amount: Decimal (credited to the payer)
        - shares: list of Share (each share debited to its member)

    Input - payments: iterable of SettlementPayment (optional)
        - amount: Decimal (credited to the payer, debited to the payee)

    Output - dict keyed by member_id (sorted):
        - aggregate_member_balances: MemberBalance
        - aggregate: Decimal net balance
            - Positive = member is owed money
            - Negative = member owes money

Functions:
    aggregate_member_balances: Accumulate paid/owed totals per member.
    aggregate: Net balance per member.
    member_names: Display name per member.
    balance_total: Sum of a net balance map (zero for well-formed input).
"""

import logging
from decimal import Decimal
from typing import Iterable

from groupsettle.models import ExpenseRecord, MemberBalance, SettlementPayment


logger = logging.getLogger(__name__)


def _entry(
    accumulator: dict,
    names: dict,
    member_id: str,
    member_name: str
) -> MemberBalance:
    """
    Look up or create the running balance for a member.

    Every non-empty display name seen for the member is recorded so the final
    name can be chosen independently of input order.
    """
    if member_name:
        names.setdefault(member_id, set()).add(member_name)
    if member_id not in accumulator:
        accumulator[member_id] = MemberBalance(member_id=member_id)
    return accumulator[member_id]


def aggregate_member_balances(
    expenses: Iterable[ExpenseRecord],
    payments: Iterable[SettlementPayment] = ()
) -> dict[str, MemberBalance]:
    """
    Accumulate paid and owed totals for every member of a group.

    For each expense:
        1. The payer's total_paid increases by the expense amount
        2. Each share member's total_owed increases by the share amount

    For each recorded payment:
        1. The payer's total_paid increases by the payment amount
        2. The payee's total_owed increases by the payment amount

    Args:
        expenses: Expense records of one group.
        payments: Settle-up payments already recorded for the group.

    Returns:
        dict[str, MemberBalance]: Balances keyed by member_id, in sorted
        member_id order.

    Notes:
        - An expense without shares only credits its payer
        - A payer who also holds a share gets both additions, no special case
        - Amounts are not validated; see shares.validate_expense
        - Does NOT modify its inputs
    """
    accumulator: dict[str, MemberBalance] = {}
    names: dict[str, set] = {}
    expense_count = 0

    for expense in expenses:
        expense_count += 1

        # Credit the payer with the full amount
        payer = _entry(accumulator, names, expense.paid_by, expense.paid_by_name)
        payer.total_paid += expense.amount

        # Debit every share holder with their portion
        for share in expense.shares:
            member = _entry(accumulator, names, share.member_id, share.member_name)
            member.total_owed += share.amount

    for payment in payments:
        payer = _entry(accumulator, names, payment.payer_id, payment.payer_name)
        payer.total_paid += payment.amount

        payee = _entry(accumulator, names, payment.payee_id, payment.payee_name)
        payee.total_owed += payment.amount

    # Sorted keys and min() over seen names keep the output independent of
    # the order expenses were supplied in
    result = {}
    for member_id in sorted(accumulator):
        balance = accumulator[member_id]
        seen = names.get(member_id)
        balance.member_name = min(seen) if seen else member_id
        result[member_id] = balance

    logger.debug(
        "Aggregated %d expenses into %d member balances",
        expense_count,
        len(result)
    )
    return result


def aggregate(
    expenses: Iterable[ExpenseRecord],
    payments: Iterable[SettlementPayment] = ()
) -> dict[str, Decimal]:
    """
    Compute the net balance (paid - owed) of every member.

    Args:
        expenses: Expense records of one group.
        payments: Settle-up payments already recorded for the group.

    Returns:
        dict[str, Decimal]: Net balance keyed by member_id (sorted).
    """
    return {
        member_id: balance.net_balance
        for member_id, balance in aggregate_member_balances(expenses, payments).items()
    }


def member_names(member_balances: dict[str, MemberBalance]) -> dict[str, str]:
    """Map member_id to the display name resolved during aggregation."""
    return {
        member_id: balance.member_name
        for member_id, balance in member_balances.items()
    }


def balance_total(balances: dict[str, Decimal]) -> Decimal:
    """
    Sum a net balance map.

    Zero for well-formed input. A non-zero total means some expense's shares
    did not add up to its amount.
    """
    return sum(balances.values(), Decimal("0"))
