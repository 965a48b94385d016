import itertools
from decimal import Decimal

from groupsettle.balances import (
    aggregate,
    aggregate_member_balances,
    balance_total,
    member_names,
)
from groupsettle.models import ExpenseRecord, SettlementPayment, Share

from conftest import equal_expense


def test_three_friends_net_balances(three_friends):
    balances = aggregate(three_friends)

    assert balances == {
        "Alice": Decimal("30"),
        "Bob": Decimal("-30"),
        "Charlie": Decimal("0"),
    }


def test_four_friends_net_balances(four_friends):
    balances = aggregate(four_friends)

    assert balances == {
        "Alice": Decimal("90"),
        "Bob": Decimal("10"),
        "Charlie": Decimal("-30"),
        "David": Decimal("-70"),
    }
    assert balance_total(balances) == 0


def test_paid_and_owed_totals(four_friends):
    member_balances = aggregate_member_balances(four_friends)

    alice = member_balances["Alice"]
    assert alice.total_paid == Decimal("200")
    assert alice.total_owed == Decimal("110")
    assert alice.net_balance == Decimal("90")


def test_single_member_paying_for_themselves():
    expense = equal_expense("E001", "Alice", 50, ["Alice"])

    assert aggregate([expense]) == {"Alice": Decimal("0")}


def test_payer_outside_the_split():
    expense = ExpenseRecord(
        expense_id="E001",
        group_id="G1",
        amount=100,
        paid_by="P1",
        paid_by_name="Pat",
        shares=[
            Share("M1", "Mia", 60),
            Share("M2", "Max", 40),
        ],
    )

    balances = aggregate([expense])

    assert balances == {
        "M1": Decimal("-60"),
        "M2": Decimal("-40"),
        "P1": Decimal("100"),
    }
    assert balance_total(balances) == 0


def test_expense_without_shares_only_credits_payer():
    expense = ExpenseRecord(expense_id="E001", group_id="G1", amount=25, paid_by="P1")

    balances = aggregate([expense])

    assert balances == {"P1": Decimal("25")}
    assert balance_total(balances) == Decimal("25")


def test_empty_group():
    assert aggregate([]) == {}
    assert aggregate_member_balances([]) == {}
    assert balance_total({}) == 0


def test_shares_not_summing_to_amount_break_conservation():
    expense = ExpenseRecord(
        expense_id="E001",
        group_id="G1",
        amount=100,
        paid_by="A",
        shares=[Share("A", "A", 30), Share("B", "B", 30)],
    )

    assert balance_total(aggregate([expense])) == Decimal("40")


def test_order_independent(four_friends):
    expected = aggregate(four_friends)

    for permutation in itertools.permutations(four_friends):
        assert aggregate(list(permutation)) == expected


def test_keys_sorted_regardless_of_input_order():
    expenses = [
        equal_expense("E001", "zoe", 30, ["zoe", "amy", "kim"]),
        equal_expense("E002", "kim", 30, ["kim", "amy"]),
    ]

    assert list(aggregate(expenses)) == ["amy", "kim", "zoe"]


def test_float_amounts_do_not_drift():
    members = ["A", "B", "C"]
    expenses = [
        ExpenseRecord(
            expense_id=f"E{i}",
            group_id="G1",
            amount=0.3,
            paid_by="A",
            shares=[Share(m, m, 0.1) for m in members],
        )
        for i in range(10)
    ]

    balances = aggregate(expenses)

    assert balances["A"] == Decimal("2.0")
    assert balances["B"] == Decimal("-1.0")
    assert balance_total(balances) == 0


def test_display_name_is_order_independent():
    first = ExpenseRecord("E1", "G1", 10, "u1", "Robert", [Share("u2", "Sam", 10)])
    second = ExpenseRecord("E2", "G1", 10, "u1", "Bob", [Share("u2", "Sammy", 10)])

    names_a = member_names(aggregate_member_balances([first, second]))
    names_b = member_names(aggregate_member_balances([second, first]))

    assert names_a == names_b == {"u1": "Bob", "u2": "Sam"}


def test_missing_name_falls_back_to_id():
    expense = ExpenseRecord("E1", "G1", 10, "u1", "", [Share("u1", "", 10)])

    assert member_names(aggregate_member_balances([expense])) == {"u1": "u1"}


def test_recorded_payment_clears_debt(three_friends):
    payment = SettlementPayment(
        payment_id="S1",
        group_id="G1",
        payer_id="Bob",
        payee_id="Alice",
        amount=30,
    )

    balances = aggregate(three_friends, [payment])

    assert all(value == 0 for value in balances.values())


def test_partial_payment_reduces_debt(three_friends):
    payment = SettlementPayment("S1", "G1", payer_id="Bob", payee_id="Alice", amount=10)

    balances = aggregate(three_friends, [payment])

    assert balances["Alice"] == Decimal("20")
    assert balances["Bob"] == Decimal("-20")


def test_inputs_are_not_modified(three_friends):
    before = [e.to_dict() for e in three_friends]

    aggregate(three_friends)

    assert [e.to_dict() for e in three_friends] == before


def test_stored_share_without_member_id_is_folded():
    document = {
        "amount": 20,
        "paidBy": "u1",
        "splitBetween": [
            {"userName": "Ghost", "share": 10},
            {"userId": "u1", "share": 10},
        ],
    }
    expense = ExpenseRecord.from_dict(document)

    member_balances = aggregate_member_balances([expense])

    assert expense.shares[0].member_id == ""
    assert list(member_balances) == ["", "u1"]
    assert member_balances[""].net_balance == Decimal("-10")
    assert balance_total(aggregate([expense])) == 0


def test_stored_payment_without_ids_is_folded():
    payment = SettlementPayment.from_dict({"amount": 5, "payeeId": "u1"})
    expense = equal_expense("E001", "u1", 10, ["u1", "u2"])

    balances = aggregate([expense], [payment])

    assert payment.payer_id == ""
    assert balances == {"": Decimal("5"), "u1": Decimal("0"), "u2": Decimal("-5")}
