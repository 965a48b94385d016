from decimal import Decimal

from fastapi.testclient import TestClient

from groupsettle import expense_store
from groupsettle.config import firebase_config
from groupsettle.main import app
from groupsettle.models import SettlementPayment

from conftest import equal_expense


client = TestClient(app)


def _expense_body(payer, amount, members):
    each = amount / len(members)
    return {
        "amount": amount,
        "paid_by": payer,
        "paid_by_name": payer.title(),
        "shares": [
            {"member_id": m, "member_name": m.title(), "amount": each}
            for m in members
        ],
    }


def test_health():
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_calculate_from_posted_expenses():
    members = ["alice", "bob", "charlie"]
    body = {
        "expenses": [
            _expense_body("alice", 120, members),
            _expense_body("bob", 60, members),
            _expense_body("charlie", 90, members),
        ]
    }

    response = client.post("/settlements/calculate", json=body)

    assert response.status_code == 200
    data = response.json()
    assert data["debts"] == [{
        "creditor_id": "alice",
        "creditor_name": "Alice",
        "debtor_id": "bob",
        "debtor_name": "Bob",
        "amount": 30.0,
    }]
    assert data["balances"]["charlie"]["net_balance"] == 0.0
    assert data["unbalanced_total"] == 0.0
    assert len(data["summaries"]) == 3


def test_calculate_with_payments_settles_group():
    members = ["alice", "bob"]
    body = {
        "expenses": [_expense_body("alice", 50, members)],
        "payments": [{"payer_id": "bob", "payee_id": "alice", "amount": 25}],
    }

    data = client.post("/settlements/calculate", json=body).json()

    assert data["debts"] == []


def test_calculate_empty():
    data = client.post("/settlements/calculate", json={}).json()

    assert data == {"balances": {}, "debts": [], "summaries": [], "unbalanced_total": 0.0}


def test_calculate_reports_unbalanced_shares():
    body = {"expenses": [{"amount": 100, "paid_by": "a", "shares": [
        {"member_id": "b", "amount": 60},
    ]}]}

    data = client.post("/settlements/calculate", json=body).json()

    assert data["unbalanced_total"] == 40.0


def test_strict_mode_rejects_unbalanced_shares():
    body = {
        "strict": True,
        "expenses": [{"amount": 100, "paid_by": "a", "shares": [
            {"member_id": "b", "amount": 60},
        ]}],
    }

    response = client.post("/settlements/calculate", json=body)

    assert response.status_code == 400
    assert "shares sum" in response.json()["detail"]


def test_negative_amount_rejected_by_model():
    body = {"expenses": [{"amount": -5, "paid_by": "a"}]}

    response = client.post("/settlements/calculate", json=body)

    assert response.status_code == 422


def test_group_settlements_from_store(monkeypatch):
    members = ["Alice", "Bob", "Charlie", "David"]
    expenses = [
        equal_expense("E1", "Alice", 200, members),
        equal_expense("E2", "Bob", 120, members),
        equal_expense("E3", "Charlie", 80, members),
        equal_expense("E4", "David", 40, members),
    ]
    monkeypatch.setattr(expense_store, "get_group_expenses", lambda group_id: expenses)
    monkeypatch.setattr(expense_store, "get_group_payments", lambda group_id: [])

    response = client.get("/groups/G1/settlements")

    assert response.status_code == 200
    debts = response.json()["debts"]
    assert [(d["debtor_id"], d["creditor_id"], d["amount"]) for d in debts] == [
        ("David", "Alice", 70.0),
        ("Charlie", "Alice", 20.0),
        ("Charlie", "Bob", 10.0),
    ]


def test_group_settlements_without_database(monkeypatch):
    monkeypatch.setattr(expense_store, "get_db", lambda: None)

    response = client.get("/groups/G1/settlements")

    assert response.status_code == 503
    assert response.json()["detail"] == "Firestore is not available"


def test_record_settlement(monkeypatch):
    calls = []

    def fake_record(**kwargs):
        calls.append(kwargs)
        return SettlementPayment(
            payment_id="S1",
            group_id=kwargs["group_id"],
            payer_id=kwargs["payer_id"],
            payee_id=kwargs["payee_id"],
            amount=Decimal(str(kwargs["amount"])),
        )

    monkeypatch.setattr(expense_store, "record_settlement", fake_record)

    response = client.post(
        "/groups/G1/settlements",
        json={"payer_id": "bob", "payee_id": "alice", "amount": 30},
    )

    assert response.status_code == 201
    assert response.json()["payment_id"] == "S1"
    assert calls[0]["group_id"] == "G1"


def test_record_self_settlement_rejected(monkeypatch):
    monkeypatch.setattr(expense_store, "get_db", lambda: object())

    response = client.post(
        "/groups/G1/settlements",
        json={"payer_id": "bob", "payee_id": "bob", "amount": 30},
    )

    assert response.status_code == 400


def test_get_db_without_credentials(monkeypatch):
    monkeypatch.delenv("FIREBASE_CREDENTIALS", raising=False)
    monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)
    firebase_config.reset_db()

    assert firebase_config.get_db() is None


def _fake_firebase(monkeypatch, app_exists):
    initialized = []

    def get_app():
        if not app_exists:
            raise ValueError("The default Firebase app does not exist.")
        return object()

    monkeypatch.setenv("FIREBASE_CREDENTIALS", "/tmp/service-account.json")
    monkeypatch.setattr(firebase_config.firebase_admin, "get_app", get_app)
    monkeypatch.setattr(firebase_config.firebase_admin, "initialize_app", initialized.append)
    monkeypatch.setattr(firebase_config.credentials, "Certificate", lambda path: f"cert:{path}")
    monkeypatch.setattr(firebase_config.firestore, "client", lambda: "client")
    firebase_config.reset_db()
    return initialized


def test_get_db_initializes_default_app_once(monkeypatch):
    initialized = _fake_firebase(monkeypatch, app_exists=False)

    assert firebase_config.get_db() == "client"
    assert initialized == ["cert:/tmp/service-account.json"]
    firebase_config.reset_db()


def test_get_db_reuses_existing_app(monkeypatch):
    initialized = _fake_firebase(monkeypatch, app_exists=True)

    assert firebase_config.get_db() == "client"
    assert initialized == []
    firebase_config.reset_db()
