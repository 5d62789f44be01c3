import pytest
from fastapi.testclient import TestClient

from finledger.database import create_db_engine
from finledger.main import create_app
from finledger.services.ledger_service import Ledger
from finledger.services.seed_data import SAMPLE_ACTIVITY, seed_sample_activity

AUTH = {"Authorization": "Bearer anything-goes"}


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_send_money_then_listed_first(client):
    client.post("/api/send-money", json={"recipient": "Tunde", "amount": 500}, headers=AUTH)

    response = client.post(
        "/api/send-money",
        json={"recipient": "Chioma Okafor", "amount": 25000, "description": "Dinner split", "senderName": "Ade"},
        headers=AUTH,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["transactionId"].startswith("TXN_")
    assert body["message"] == "₦25,000 sent to Chioma Okafor successfully"

    transactions = client.get("/api/transactions").json()["transactions"]
    assert [t["id"] for t in transactions][0] == body["transactionId"]
    first = transactions[0]
    assert first["amount"] == 25000.0
    assert first["kind"] == "Transfer"
    assert first["status"] == "Completed"
    assert first["category"] == "Transfer"
    assert first["metadata"]["description"] == "Dinner split"
    assert first["metadata"]["senderName"] == "Ade"
    assert "createdAt" in first


@pytest.mark.parametrize(
    "payload",
    [
        {"recipient": "Chioma", "amount": 0},
        {"recipient": "Chioma", "amount": -20},
        {"recipient": "", "amount": 100},
        {"amount": 100},
        {"recipient": "Chioma"},
        {"recipient": "Chioma", "amount": "lots"},
    ],
)
def test_send_money_rejects_invalid_input(client, ledger, payload):
    response = client.post("/api/send-money", json=payload)

    assert response.status_code == 400
    assert set(response.json()) == {"error"}
    assert ledger.store.count() == 0


def test_send_money_rejects_amount_beyond_column_range(client, ledger):
    response = client.post("/api/send-money", json={"recipient": "Chioma", "amount": "12345678901234567.89"})

    assert response.status_code == 400
    assert response.json() == {"error": "Amount must not exceed ₦999,999,999,999.99"}
    assert ledger.store.count() == 0


def test_request_money_is_pending_and_not_listed(client, ledger):
    response = client.post("/api/request-money", json={"from": "Tunde Bakare", "amount": 15000})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["requestId"].startswith("REQ_")
    assert body["message"] == "Request for ₦15,000 sent to Tunde Bakare"
    assert client.get("/api/transactions").json() == {"transactions": []}

    record = client.get(f"/api/transactions/{body['requestId']}").json()["transaction"]
    assert record["status"] == "Pending"
    assert record["category"] == "Request"


def test_request_money_requires_from(client):
    response = client.post("/api/request-money", json={"amount": 100})
    assert response.status_code == 400
    assert "error" in response.json()


def test_pay_bills(client):
    response = client.post(
        "/api/pay-bills",
        json={"billType": "electricity", "provider": "EKEDC", "amount": 18500, "accountNumber": "0123456789"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["transactionId"].startswith("BILL_")
    assert body["message"] == "₦18,500 paid to EKEDC successfully"

    (record,) = client.get("/api/transactions").json()["transactions"]
    assert record["category"] == "Bills"
    assert record["metadata"]["billType"] == "electricity"
    assert record["metadata"]["accountNumber"] == "0123456789"


def test_pay_bills_requires_provider(client):
    response = client.post("/api/pay-bills", json={"billType": "water", "amount": 100})
    assert response.status_code == 400
    assert response.json() == {"error": "Provider is required"}


def test_idempotency_key_header_records_once(client, ledger):
    headers = {"Idempotency-Key": "checkout-42"}
    payload = {"recipient": "Chioma", "amount": 100}

    first = client.post("/api/send-money", json=payload, headers=headers).json()
    second = client.post("/api/send-money", json=payload, headers=headers).json()

    assert first["transactionId"] == second["transactionId"]
    assert ledger.store.count() == 1
    assert len(client.get("/api/transactions").json()["transactions"]) == 1


def test_transactions_capped_at_fifty(client):
    for i in range(51):
        client.post("/api/send-money", json={"recipient": f"Person {i}", "amount": 100})

    transactions = client.get("/api/transactions").json()["transactions"]

    assert len(transactions) == 50
    assert transactions[0]["counterparty"] == "Person 50"
    assert "Person 0" not in {t["counterparty"] for t in transactions}


def test_transactions_filters(client, ledger):
    seed_sample_activity(ledger)

    income = client.get("/api/transactions", params={"category": "Income"}).json()["transactions"]
    assert {t["counterparty"] for t in income} == {"Salary - GTBank", "Freelance - Paystack"}

    searched = client.get("/api/transactions", params={"q": "netflix"}).json()["transactions"]
    assert [t["counterparty"] for t in searched] == ["Netflix Subscription"]

    assert client.get("/api/transactions", params={"category": "Crypto"}).status_code == 400


def test_unknown_transaction_is_404(client):
    response = client.get("/api/transactions/TXN_missing")
    assert response.status_code == 404
    assert "error" in response.json()


def test_storage_failure_is_500_without_details(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'no_tables.db'}")
    client = TestClient(create_app(ledger=Ledger.from_engine(engine), prefix="/api"))

    response = client.post("/api/send-money", json={"recipient": "Chioma", "amount": 100})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to send money"}

    response = client.get("/api/transactions")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to get transactions"}
    engine.dispose()


def test_summary(client, ledger):
    seed_sample_activity(ledger)

    body = client.get("/api/summary").json()

    assert body["balance"] == 428231.0
    assert body["income"] == 500000.0
    assert body["expenses"] == 71769.0
    assert body["spendByCategory"]["Food"] == 16620.0
    assert "Income" not in body["spendByCategory"]


def test_budgets(client, ledger):
    seed_sample_activity(ledger)

    body = client.get("/api/budgets").json()
    food = next(b for b in body["budgets"] if b["category"] == "Food")

    assert food == {
        "category": "Food",
        "limit": 120000.0,
        "spent": 16620.0,
        "remaining": 103380.0,
        "utilization": 14,
        "status": "on_track",
    }
    assert body["totalBudget"] == 305000.0


def test_budget_for_category(client, ledger):
    seed_sample_activity(ledger)

    body = client.get("/api/budgets/Food", params={"limit": 20000}).json()
    assert body["utilization"] == 83
    assert body["status"] == "near_limit"

    response = client.get("/api/budgets/Food", params={"limit": 0})
    assert response.status_code == 400
    assert response.json() == {"error": "Budget limit must be greater than zero"}

    assert client.get("/api/budgets/Income").status_code == 400


def test_trend(client, ledger):
    seed_sample_activity(ledger)

    body = client.get("/api/trend", params={"months": 2, "asOf": "2024-01-31"}).json()

    assert body == {
        "trend": [
            {"month": "2023-12", "totalSpent": 0.0},
            {"month": "2024-01", "totalSpent": 71769.0},
        ]
    }


def test_categories(client):
    categories = client.get("/api/categories").json()["categories"]
    assert len(categories) == 10
    assert {"category": "Income", "icon": "💰", "color": "#16a34a"} in categories


def test_cors_preflight(client):
    response = client.options(
        "/api/send-money",
        headers={"Origin": "https://app.example", "Access-Control-Request-Method": "POST"},
    )
    assert response.status_code == 200
    assert "access-control-allow-origin" in response.headers


def test_seeded_sample_matches_fixture_size(ledger):
    assert len(seed_sample_activity(ledger)) == len(SAMPLE_ACTIVITY)
