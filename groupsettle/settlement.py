"""
Settlement Module

This module turns per-member balances into the payments that settle a group.

Features:
    - Convert net balances into settlement transactions
    - Minimize number of transactions using a greedy algorithm
    - Tolerate rounding noise below one cent
    - Per-member summaries of the original (un-simplified) totals

Data Model:
    Input - net balances (dict keyed by member_id):
        - Decimal (positive = owed money, negative = owes money)

    Input - member balances (dict keyed by member_id):
        - MemberBalance with total_paid, total_owed

    Output - list of DebtEdge:
        - debtor_id / debtor_name: who pays
        - creditor_id / creditor_name: who receives
        - amount: Decimal (> 0)

    Output - list of SettlementSummary (one per member)

Functions:
    simplify_debts: Reduce net balances to a minimal list of debts.
    build_settlement_summaries: Project member balances into summaries.
    simplify: Debts and summaries for a set of member balances.
    calculate_group_settlements: Aggregate and simplify in one call.
    debts_for_member: Debts a member takes part in.
    total_amount_owed: What a member still has to pay.
    total_amount_owed_to: What a member still has to receive.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from groupsettle.balances import aggregate_member_balances, member_names
from groupsettle.models import (
    DebtEdge,
    ExpenseRecord,
    MemberBalance,
    SettlementPayment,
    SettlementResult,
    SettlementSummary,
    to_decimal,
)


logger = logging.getLogger(__name__)

# Balances within one cent of zero are treated as settled
EPSILON = Decimal("0.01")


def simplify_debts(
    net_balances: dict[str, Decimal],
    names: Optional[dict[str, str]] = None,
    epsilon: Decimal = EPSILON
) -> list[DebtEdge]:
    """
    Reduce net balances to a minimal list of debtor -> creditor payments.

    Uses a greedy algorithm:
        1. Copy the balances into a working map
        2. Take the member with the lowest balance (largest debtor); stop if
           no balance is below -epsilon
        3. Take the member with the highest balance (largest creditor); stop
           if no balance is above epsilon
        4. Transfer min(-debtor_balance, creditor_balance) from debtor to
           creditor and update both working balances
        5. Repeat while any balance is outside [-epsilon, epsilon]

    Args:
        net_balances: Net balance keyed by member_id.
        names: Optional display name keyed by member_id (defaults to the id).
        epsilon: Threshold below which a balance counts as settled.

    Returns:
        list[DebtEdge]: Payments in the order they were chosen.

    Notes:
        - Ties on the lowest or highest balance go to the smallest member_id
        - Every step zeroes at least one member, so at most N - 1 debts
          are produced for N members with a non-zero balance
        - Does NOT modify input balances
    """
    names = names or {}
    working = {
        member_id: to_decimal(balance)
        for member_id, balance in sorted(net_balances.items())
    }
    debts = []

    while any(abs(balance) > epsilon for balance in working.values()):
        # Ties go to the smallest member_id
        debtor_id = min(working, key=lambda m: (working[m], m))
        debtor_balance = working[debtor_id]
        if debtor_balance >= -epsilon:
            logger.debug("No significant debtor left, stopping with %s", working)
            break

        creditor_id = min(working, key=lambda m: (-working[m], m))
        creditor_balance = working[creditor_id]
        if creditor_balance <= epsilon:
            logger.debug("No significant creditor left, stopping with %s", working)
            break

        amount = min(-debtor_balance, creditor_balance)

        debts.append(DebtEdge(
            creditor_id=creditor_id,
            creditor_name=names.get(creditor_id, creditor_id),
            debtor_id=debtor_id,
            debtor_name=names.get(debtor_id, debtor_id),
            amount=amount
        ))
        logger.debug("%s pays %s %s", debtor_id, creditor_id, amount)

        working[debtor_id] = debtor_balance + amount
        working[creditor_id] = creditor_balance - amount

    return debts


def build_settlement_summaries(
    member_balances: dict[str, MemberBalance]
) -> list[SettlementSummary]:
    """
    Build one summary per member from the original paid/owed totals.

    The summaries reflect what each member paid and consumed, not the
    working balances left after simplification.
    """
    return [
        SettlementSummary(
            member_id=member_id,
            member_name=balance.member_name,
            total_owed=balance.total_owed,
            total_owed_to_them=balance.total_paid,
            net_balance=balance.net_balance
        )
        for member_id, balance in sorted(member_balances.items())
    ]


def simplify(
    member_balances: dict[str, MemberBalance],
    epsilon: Decimal = EPSILON
) -> SettlementResult:
    """
    Produce the debt list and summaries for a set of member balances.

    Args:
        member_balances: Output of balances.aggregate_member_balances().
        epsilon: Threshold below which a balance counts as settled.

    Returns:
        SettlementResult: debts and summaries.
    """
    net_balances = {
        member_id: balance.net_balance
        for member_id, balance in member_balances.items()
    }
    debts = simplify_debts(net_balances, member_names(member_balances), epsilon)
    return SettlementResult(
        debts=debts,
        summaries=build_settlement_summaries(member_balances)
    )


def calculate_group_settlements(
    expenses: Iterable[ExpenseRecord],
    payments: Iterable[SettlementPayment] = (),
    epsilon: Decimal = EPSILON
) -> SettlementResult:
    """
    Aggregate a group's expense and payment history and simplify it.

    Args:
        expenses: Expense records of one group.
        payments: Settle-up payments already recorded for the group.
        epsilon: Threshold below which a balance counts as settled.

    Returns:
        SettlementResult: Remaining debts and per-member summaries.
    """
    member_balances = aggregate_member_balances(expenses, payments)
    result = simplify(member_balances, epsilon)
    logger.info(
        "Settled %d members with %d payments",
        len(member_balances),
        len(result.debts)
    )
    return result


def debts_for_member(debts: Iterable[DebtEdge], member_id: str) -> list[DebtEdge]:
    """Return the debts where the member is either debtor or creditor."""
    return [
        debt for debt in debts
        if debt.debtor_id == member_id or debt.creditor_id == member_id
    ]


def total_amount_owed(debts: Iterable[DebtEdge], member_id: str) -> Decimal:
    """Total the member has to pay across the debt list."""
    return sum(
        (debt.amount for debt in debts if debt.debtor_id == member_id),
        Decimal("0")
    )


def total_amount_owed_to(debts: Iterable[DebtEdge], member_id: str) -> Decimal:
    """Total the member is due to receive across the debt list."""
    return sum(
        (debt.amount for debt in debts if debt.creditor_id == member_id),
        Decimal("0")
    )
