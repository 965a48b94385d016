"""
Models Module

This module defines the value objects consumed and produced by the group
settlement engine.

Data Model:
    Input - ExpenseRecord:
        - expense_id: string
        - group_id: string
        - amount: Decimal (total amount paid)
        - paid_by / paid_by_name: payer identity and display name
        - shares: list of Share (member_id, member_name, amount, is_paid)

    Input - SettlementPayment:
        - payer_id / payee_id: who paid whom when settling up
        - amount: Decimal

    Intermediate - MemberBalance:
        - total_paid, total_owed (mutable during aggregation)

    Output - DebtEdge, SettlementSummary, SettlementResult (immutable)

Functions:
    to_decimal: Convert a number or numeric string to Decimal.
    round_money: Round a Decimal to 2 decimal places and convert to float.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional


CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """
    Convert a number or numeric string to Decimal.

    Floats go through str() so that 0.1 becomes Decimal("0.1") rather than
    its binary expansion.

    Args:
        value: int, float, str or Decimal. None is treated as zero.

    Returns:
        Decimal: The converted value.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Decimal) -> float:
    """
    Round a Decimal to 2 decimal places and convert to float.

    Args:
        value: Decimal value to round.

    Returns:
        float: Rounded value as float.
    """
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def _pick(data: dict, *keys, default=None):
    # Documents may use snake_case or the camelCase keys of the mobile app
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


@dataclass
class Share:
    """One member's portion of an expense."""

    member_id: str
    member_name: str
    amount: Decimal
    is_paid: bool = False

    def __post_init__(self):
        self.amount = to_decimal(self.amount)

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "member_name": self.member_name,
            "amount": round_money(self.amount),
            "is_paid": self.is_paid,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Share":
        """Create a Share from a snake_case or camelCase dictionary."""
        return cls(
            member_id=_pick(data, "member_id", "userId", default=""),
            member_name=_pick(data, "member_name", "userName", default=""),
            amount=_pick(data, "amount", "share", default=0),
            is_paid=_to_bool(_pick(data, "is_paid", "isPaid", default=False)),
        )


@dataclass
class ExpenseRecord:
    """
    A single shared expense.

    Attributes:
        expense_id (str): Unique identifier of the expense.
        group_id (str): Group the expense belongs to.
        amount (Decimal): Total amount paid.
        paid_by (str): Member ID of the payer.
        paid_by_name (str): Display name of the payer.
        shares (list[Share]): Each member's portion of the amount.
        description (str): Free-text description.
        category (str): Expense category (food, transportation, ...).
        date (str | None): Date of the expense (YYYY-MM-DD).

    Notes:
        - Shares are expected to sum to amount; this is not enforced here.
          See shares.validate_expense for the boundary check.
    """

    expense_id: str
    group_id: str
    amount: Decimal
    paid_by: str
    paid_by_name: str = ""
    shares: list[Share] = field(default_factory=list)
    description: str = ""
    category: str = "other"
    date: Optional[str] = None

    def __post_init__(self):
        self.amount = to_decimal(self.amount)

    def to_dict(self) -> dict:
        """Convert expense to dictionary for storage or JSON output."""
        return {
            "expense_id": self.expense_id,
            "group_id": self.group_id,
            "amount": round_money(self.amount),
            "paid_by": self.paid_by,
            "paid_by_name": self.paid_by_name,
            "shares": [s.to_dict() for s in self.shares],
            "description": self.description,
            "category": self.category,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExpenseRecord":
        """Create an ExpenseRecord from a snake_case or camelCase dictionary."""
        raw_shares = _pick(data, "shares", "splitBetween", default=[])
        return cls(
            expense_id=_pick(data, "expense_id", "id", default=""),
            group_id=_pick(data, "group_id", "groupId", default=""),
            amount=_pick(data, "amount", default=0),
            paid_by=_pick(data, "paid_by", "paidBy", default=""),
            paid_by_name=_pick(data, "paid_by_name", "paidByName", default=""),
            shares=[Share.from_dict(s) for s in raw_shares],
            description=_pick(data, "description", default=""),
            category=str(_pick(data, "category", default="other")).lower(),
            date=_pick(data, "date"),
        )

    def __repr__(self) -> str:
        return (
            f"ExpenseRecord(id='{self.expense_id}', paid_by='{self.paid_by}', "
            f"amount={self.amount}, shares={len(self.shares)})"
        )


@dataclass
class SettlementPayment:
    """
    A recorded settle-up payment from a debtor (payer) to a creditor (payee).

    Folded into aggregation like an expense paid by payer_id with a single
    share owed by payee_id.
    """

    payment_id: str
    group_id: str
    payer_id: str
    payee_id: str
    amount: Decimal
    payer_name: str = ""
    payee_name: str = ""
    payment_method: str = "cash"

    def __post_init__(self):
        self.amount = to_decimal(self.amount)

    def to_dict(self) -> dict:
        return {
            "payment_id": self.payment_id,
            "group_id": self.group_id,
            "payer_id": self.payer_id,
            "payer_name": self.payer_name,
            "payee_id": self.payee_id,
            "payee_name": self.payee_name,
            "amount": round_money(self.amount),
            "payment_method": self.payment_method,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SettlementPayment":
        return cls(
            payment_id=_pick(data, "payment_id", "id", default=""),
            group_id=_pick(data, "group_id", "groupId", default=""),
            payer_id=_pick(data, "payer_id", "payerId", default=""),
            payee_id=_pick(data, "payee_id", "payeeId", default=""),
            amount=_pick(data, "amount", default=0),
            payer_name=_pick(data, "payer_name", "payerName", default=""),
            payee_name=_pick(data, "payee_name", "payeeName", default=""),
            payment_method=_pick(data, "payment_method", "paymentMethod", default="cash"),
        )


@dataclass
class MemberBalance:
    """Running paid/owed totals for one member during aggregation."""

    member_id: str
    member_name: str = ""
    total_paid: Decimal = Decimal("0")
    total_owed: Decimal = Decimal("0")

    @property
    def net_balance(self) -> Decimal:
        # Positive = member is owed money, negative = member owes money
        return self.total_paid - self.total_owed

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "member_name": self.member_name,
            "total_paid": round_money(self.total_paid),
            "total_owed": round_money(self.total_owed),
            "net_balance": round_money(self.net_balance),
        }


@dataclass(frozen=True)
class DebtEdge:
    """A proposed payment: debtor pays creditor the given amount."""

    creditor_id: str
    creditor_name: str
    debtor_id: str
    debtor_name: str
    amount: Decimal

    def to_dict(self) -> dict:
        return {
            "creditor_id": self.creditor_id,
            "creditor_name": self.creditor_name,
            "debtor_id": self.debtor_id,
            "debtor_name": self.debtor_name,
            "amount": round_money(self.amount),
        }


@dataclass(frozen=True)
class SettlementSummary:
    """
    Per-member totals taken from the un-simplified balances.

    Attributes:
        total_owed: Sum of the member's shares (what they consumed).
        total_owed_to_them: Sum of what the member paid.
        net_balance: total_owed_to_them - total_owed.
    """

    member_id: str
    member_name: str
    total_owed: Decimal
    total_owed_to_them: Decimal
    net_balance: Decimal

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "member_name": self.member_name,
            "total_owed": round_money(self.total_owed),
            "total_owed_to_them": round_money(self.total_owed_to_them),
            "net_balance": round_money(self.net_balance),
        }


@dataclass(frozen=True)
class SettlementResult:
    """Debt list and per-member summaries produced by one simplification."""

    debts: list[DebtEdge]
    summaries: list[SettlementSummary]

    def to_dict(self) -> dict:
        return {
            "debts": [d.to_dict() for d in self.debts],
            "summaries": [s.to_dict() for s in self.summaries],
        }
