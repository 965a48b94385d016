"""
Shares Module

This module builds and checks the shares of an expense before it reaches the
settlement engine.

Features:
    - Equal, percentage-based and custom-amount splits
    - Cent-exact shares (leftover cents go to the first members)
    - Boundary validation of expense records

Data Model:
    Input - members: list of (member_id, member_name) tuples
    Input - amount: number or Decimal (total to split)
    Output - list of Share

Functions:
    equal_split: Divide an amount equally among members.
    percentage_split: Divide an amount by member percentages.
    custom_split: Divide an amount by explicit member amounts.
    calculate_splits: Dispatch on a split type name.
    validate_expense: Reject malformed expense records.
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Optional

from groupsettle.models import CENT, ExpenseRecord, Share, to_decimal


SPLIT_EQUAL = "equal"
SPLIT_PERCENTAGE = "percentage"
SPLIT_CUSTOM = "custom"

VALID_SPLIT_TYPES = {SPLIT_EQUAL, SPLIT_PERCENTAGE, SPLIT_CUSTOM}

# Percentages within this distance of 100 are accepted as-is
PERCENT_TOLERANCE = Decimal("0.1")


def _distribute(amount: Decimal, weights: list[Decimal]) -> list[Decimal]:
    """
    Split an amount into cent values proportional to weights.

    Each part is rounded down to the cent, then the leftover cents are handed
    out one at a time from the first part onward so the parts sum exactly to
    the amount.
    """
    total_weight = sum(weights, Decimal("0"))
    if total_weight <= 0:
        return [Decimal("0.00") for _ in weights]

    parts = [
        (amount * w / total_weight).quantize(CENT, rounding=ROUND_DOWN)
        for w in weights
    ]
    leftover = int((amount.quantize(CENT) - sum(parts, Decimal("0"))) / CENT)

    # Only members with a non-zero weight receive leftover cents
    eligible = [i for i, w in enumerate(weights) if w > 0]
    for n in range(leftover):
        parts[eligible[n % len(eligible)]] += CENT
    return parts


def _parse_values(values: dict, members: list[tuple[str, str]]) -> Optional[dict]:
    """
    Convert the per-member values that are present to Decimal.

    Members whose value is missing or None are left out. Returns None if any
    value is not a number.
    """
    try:
        parsed = {
            m_id: to_decimal(values[m_id])
            for m_id, _ in members
            if values.get(m_id) is not None
        }
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not all(value.is_finite() for value in parsed.values()):
        return None
    return parsed


def _zero_shares(members: list[tuple[str, str]]) -> list[Share]:
    return [Share(member_id=m_id, member_name=name, amount=Decimal("0.00")) for m_id, name in members]


def equal_split(amount, members: list[tuple[str, str]]) -> list[Share]:
    """
    Divide an amount equally among members.

    Args:
        amount: Total to split.
        members: List of (member_id, member_name).

    Returns:
        list[Share]: One share per member, summing exactly to the amount.

    Example:
        100 among 3 members -> 33.34, 33.33, 33.33
    """
    amount = to_decimal(amount)
    if not members:
        return []
    if amount <= 0:
        return _zero_shares(members)

    parts = _distribute(amount, [Decimal("1")] * len(members))
    return [
        Share(member_id=m_id, member_name=name, amount=part)
        for (m_id, name), part in zip(members, parts)
    ]


def percentage_split(
    amount,
    members: list[tuple[str, str]],
    percentages: dict[str, float]
) -> list[Share]:
    """
    Divide an amount according to member percentages.

    Args:
        amount: Total to split.
        members: List of (member_id, member_name).
        percentages: Percentage (0-100) keyed by member_id. Missing members
            count as 0.

    Returns:
        list[Share]: One share per member.

    Notes:
        - Percentages are clamped to [0, 100]
        - If the percentages do not total 100 (+/- 0.1), or a value is not
          a number, falls back to an equal split
    """
    amount = to_decimal(amount)
    if not members:
        return []
    if amount <= 0:
        return _zero_shares(members)

    parsed = _parse_values(percentages, members)
    if parsed is None:
        return equal_split(amount, members)

    raw = [parsed.get(m_id, Decimal("0")) for m_id, _ in members]
    if abs(sum(raw, Decimal("0")) - 100) > PERCENT_TOLERANCE:
        return equal_split(amount, members)

    clamped = [min(max(p, Decimal("0")), Decimal("100")) for p in raw]
    parts = _distribute(amount, clamped)
    return [
        Share(member_id=m_id, member_name=name, amount=part)
        for (m_id, name), part in zip(members, parts)
    ]


def custom_split(
    amount,
    members: list[tuple[str, str]],
    custom_amounts: dict[str, float]
) -> list[Share]:
    """
    Divide an amount using explicit per-member amounts.

    Rules:
        - Negative custom amounts are treated as 0
        - If the custom amounts exceed the total, they are scaled down
          proportionally to fit
        - Whatever remains is divided equally among members without a
          custom amount
        - A member whose custom amount is None counts as having none
        - A value that is not a number falls back to an equal split

    Args:
        amount: Total to split.
        members: List of (member_id, member_name).
        custom_amounts: Amount keyed by member_id.

    Returns:
        list[Share]: One share per member.
    """
    amount = to_decimal(amount)
    if not members:
        return []
    if amount <= 0:
        return _zero_shares(members)

    parsed = _parse_values(custom_amounts, members)
    if parsed is None:
        return equal_split(amount, members)

    specified = {m_id: max(value, Decimal("0")) for m_id, value in parsed.items()}
    specified_total = sum(specified.values(), Decimal("0"))

    if specified_total > amount:
        # Scale down to fit the expense total
        ids = list(specified)
        scaled = _distribute(amount, [specified[m_id] for m_id in ids])
        specified = dict(zip(ids, scaled))
        specified_total = amount

    unspecified = [(m_id, name) for m_id, name in members if m_id not in specified]
    remainder = amount - specified_total
    remainder_parts = {}
    if unspecified and remainder > 0:
        parts = _distribute(remainder, [Decimal("1")] * len(unspecified))
        remainder_parts = {m_id: part for (m_id, _), part in zip(unspecified, parts)}

    return [
        Share(
            member_id=m_id,
            member_name=name,
            amount=specified.get(m_id, remainder_parts.get(m_id, Decimal("0.00")))
        )
        for m_id, name in members
    ]


def calculate_splits(
    amount,
    split_type: str,
    members: list[tuple[str, str]],
    values: Optional[dict[str, float]] = None
) -> list[Share]:
    """
    Build shares for an expense using the named strategy.

    Args:
        amount: Total to split.
        split_type: "equal", "percentage" or "custom". Unknown types fall
            back to an equal split.
        members: List of (member_id, member_name).
        values: Percentages or custom amounts keyed by member_id.

    Returns:
        list[Share]: One share per member.
    """
    values = values or {}
    split_type = (split_type or "").strip().lower()

    if split_type == SPLIT_PERCENTAGE:
        return percentage_split(amount, members, values)
    if split_type == SPLIT_CUSTOM:
        return custom_split(amount, members, values)
    return equal_split(amount, members)


def validate_expense(expense: ExpenseRecord) -> ExpenseRecord:
    """
    Check that an expense record is well formed before it is stored.

    Args:
        expense: The expense to check.

    Returns:
        ExpenseRecord: The same expense, for chaining.

    Raises:
        ValueError: If the payer is missing, an amount is negative, a member
            has more than one share, or the shares do not sum to the amount
            (within one cent).
    """
    if not isinstance(expense.paid_by, str) or not expense.paid_by.strip():
        raise ValueError("paid_by must be a non-empty string")

    if expense.amount < 0:
        raise ValueError(f"amount must not be negative, got: {expense.amount}")

    seen = set()
    for share in expense.shares:
        if not isinstance(share.member_id, str) or not share.member_id.strip():
            raise ValueError("share member_id must be a non-empty string")
        if share.amount < 0:
            raise ValueError(
                f"share for '{share.member_id}' must not be negative, got: {share.amount}"
            )
        if share.member_id in seen:
            raise ValueError(f"member '{share.member_id}' has more than one share")
        seen.add(share.member_id)

    if expense.shares:
        share_total = sum((s.amount for s in expense.shares), Decimal("0"))
        if abs(share_total - expense.amount) > CENT:
            raise ValueError(
                f"shares sum to {share_total}, expected {expense.amount}"
            )

    return expense
