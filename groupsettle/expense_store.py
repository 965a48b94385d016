"""
Expense Store Module

This module reads a group's expense and settlement history from Firebase
Firestore and records new settle-up payments.

Firestore Structure:
    expenses/{expense_id}
        - groupId: string
        - amount: number
        - paidBy / paidByName: payer identity
        - splitBetween: list of {userId, userName, share, isPaid}
        - description, category, date

    settlements/{settlement_id}
        - groupId: string
        - payerId / payeeId: debtor and creditor
        - amount: number
        - paymentMethod: string
        - status: "completed"
        - createdAt: timestamp

Functions:
    get_group_expenses: Get all expenses for a group.
    get_group_payments: Get all recorded settlements for a group.
    record_settlement: Record that one member paid another.
"""

import logging
from datetime import datetime, timezone

from groupsettle.config.firebase_config import get_db
from groupsettle.models import ExpenseRecord, SettlementPayment, round_money, to_decimal


logger = logging.getLogger(__name__)


def _get_timestamp() -> str:
    """Get current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def _validate_non_empty_string(value: str, field_name: str) -> bool:
    """
    Validate that a string is non-empty.

    Raises:
        ValueError: If string is empty or not a string.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")
    return True


def _require_db():
    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")
    return db


def get_group_expenses(group_id: str) -> list[ExpenseRecord]:
    """
    Get all expenses for a group.

    Args:
        group_id: The ID of the group.

    Returns:
        list[ExpenseRecord]: Expenses whose groupId matches.

    Raises:
        ValueError: If group_id is invalid.
        RuntimeError: If Firestore is not available.
    """
    _validate_non_empty_string(group_id, "group_id")
    db = _require_db()

    docs = db.collection("expenses").where("groupId", "==", group_id).stream()

    expenses = []
    for doc in docs:
        data = doc.to_dict() or {}
        data.setdefault("id", doc.id)
        expenses.append(ExpenseRecord.from_dict(data))

    logger.info("Loaded %d expenses for group %s", len(expenses), group_id)
    return expenses


def get_group_payments(group_id: str) -> list[SettlementPayment]:
    """
    Get all completed settlements recorded for a group.

    Raises:
        ValueError: If group_id is invalid.
        RuntimeError: If Firestore is not available.
    """
    _validate_non_empty_string(group_id, "group_id")
    db = _require_db()

    docs = db.collection("settlements").where("groupId", "==", group_id).stream()

    payments = []
    for doc in docs:
        data = doc.to_dict() or {}
        if data.get("status", "completed") != "completed":
            continue
        data.setdefault("id", doc.id)
        payments.append(SettlementPayment.from_dict(data))

    return payments


def record_settlement(
    group_id: str,
    payer_id: str,
    payee_id: str,
    amount,
    payer_name: str = "",
    payee_name: str = "",
    payment_method: str = "cash"
) -> SettlementPayment:
    """
    Record that payer_id paid payee_id to settle a debt.

    The engine never changes stored expenses; the next calculation folds this
    payment into the balances instead.

    Args:
        group_id: The ID of the group.
        payer_id: Member who paid (the debtor).
        payee_id: Member who received the money (the creditor).
        amount: Amount paid (must be > 0).
        payer_name: Display name of the payer.
        payee_name: Display name of the payee.
        payment_method: How the money was transferred.

    Returns:
        SettlementPayment: The recorded payment.

    Raises:
        ValueError: If input validation fails.
        RuntimeError: If Firestore is not available.
    """
    _validate_non_empty_string(group_id, "group_id")
    _validate_non_empty_string(payer_id, "payer_id")
    _validate_non_empty_string(payee_id, "payee_id")

    if payer_id == payee_id:
        raise ValueError("payer_id and payee_id must be different members")

    amount = to_decimal(amount)
    if amount <= 0:
        raise ValueError(f"amount must be a positive number, got: {amount}")

    db = _require_db()

    doc_ref = db.collection("settlements").document()
    doc_ref.set({
        "groupId": group_id,
        "payerId": payer_id,
        "payerName": payer_name,
        "payeeId": payee_id,
        "payeeName": payee_name,
        "amount": round_money(amount),
        "paymentMethod": payment_method,
        "status": "completed",
        "createdAt": _get_timestamp()
    })

    logger.info("Recorded settlement %s: %s paid %s %s", doc_ref.id, payer_id, payee_id, amount)

    return SettlementPayment(
        payment_id=doc_ref.id,
        group_id=group_id,
        payer_id=payer_id,
        payee_id=payee_id,
        amount=amount,
        payer_name=payer_name,
        payee_name=payee_name,
        payment_method=payment_method
    )
