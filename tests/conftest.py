from decimal import Decimal

import pytest

from groupsettle.models import ExpenseRecord, Share


def equal_expense(expense_id, payer, amount, members, group_id="G1"):
    """Expense paid by payer, split equally among members (ids double as names)."""
    amount = Decimal(str(amount))
    each = amount / len(members) if members else Decimal("0")
    return ExpenseRecord(
        expense_id=expense_id,
        group_id=group_id,
        amount=amount,
        paid_by=payer,
        paid_by_name=payer,
        shares=[Share(member_id=m, member_name=m, amount=each) for m in members],
    )


@pytest.fixture
def three_friends():
    members = ["Alice", "Bob", "Charlie"]
    return [
        equal_expense("E001", "Alice", 120, members),
        equal_expense("E002", "Bob", 60, members),
        equal_expense("E003", "Charlie", 90, members),
    ]


@pytest.fixture
def four_friends():
    members = ["Alice", "Bob", "Charlie", "David"]
    return [
        equal_expense("E001", "Alice", 200, members),
        equal_expense("E002", "Bob", 120, members),
        equal_expense("E003", "Charlie", 80, members),
        equal_expense("E004", "David", 40, members),
    ]
