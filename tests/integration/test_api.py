"""Integration tests for API endpoints"""

import pytest
from unittest.mock import AsyncMock, patch
from datetime import date
from fastapi.testclient import TestClient
from cardcycle.domain.exceptions import AggregatorAPIError, CycleRegenerationInProgressError
from cardcycle.domain.models import AccountSnapshot, Transaction
from cardcycle.infrastructure.database.models import CreditCard


@pytest.fixture
def mock_snapshot() -> AccountSnapshot:
    """Aggregator account payload without an open date"""
    return AccountSnapshot(
        card_id="card_rewards",
        name="Rewards Visa",
        balance_current_cents=60000,
        available_credit_cents=440000,
        reported_limit_cents=None,
        last_statement_balance_cents=100000,
        last_statement_date=date(2024, 6, 15),
        next_payment_due_date=date(2024, 7, 10),
        minimum_payment_cents=3500,
    )


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "cardcycle_regeneration_total" in response.text


def test_request_id_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "sync-job-42"})
    assert response.headers["X-Request-ID"] == "sync-job-42"


def test_regenerate_endpoint(client: TestClient, stored_card: CreditCard):
    """Test POST /v1/cards/{card_id}/billing-cycles/regenerate"""
    response = client.post("/v1/cards/card_rewards/billing-cycles/regenerate", params={"as_of": "2024-07-01"})

    assert response.status_code == 200
    data = response.json()
    assert data["card_id"] == "card_rewards"
    assert len(data["cycles"]) == 13

    open_cycle, closed = data["cycles"][0], data["cycles"][1]
    assert open_cycle["kind"] == "open"
    assert open_cycle["start_date"] == "2024-06-16"
    assert open_cycle["statement_balance_cents"] is None
    assert closed["kind"] == "closed"
    assert closed["end_date"] == "2024-06-15"
    assert closed["remaining_balance_cents"] == 60000
    assert closed["payment_status"] == "due"


def test_regenerate_twice_returns_same_cycles(client: TestClient, stored_card: CreditCard):
    url = "/v1/cards/card_rewards/billing-cycles/regenerate"
    first = client.post(url, params={"as_of": "2024-07-01"}).json()
    second = client.post(url, params={"as_of": "2024-07-01"}).json()

    assert first == second


def test_list_billing_cycles(client: TestClient, stored_card: CreditCard):
    """Test GET /v1/cards/{card_id}/billing-cycles"""
    empty = client.get("/v1/cards/card_rewards/billing-cycles")
    assert empty.status_code == 200
    assert empty.json()["cycles"] == []

    client.post("/v1/cards/card_rewards/billing-cycles/regenerate", params={"as_of": "2024-07-01"})
    response = client.get("/v1/cards/card_rewards/billing-cycles")

    cycles = response.json()["cycles"]
    assert len(cycles) == 13
    assert cycles[0]["end_date"] > cycles[-1]["end_date"]


def test_unknown_card_returns_404(client: TestClient):
    assert client.post("/v1/cards/missing/billing-cycles/regenerate").status_code == 404
    assert client.get("/v1/cards/missing/billing-cycles").status_code == 404
    assert client.get("/v1/cards/missing").status_code == 404


@patch("cardcycle.services.regeneration.BillingCycleService.regenerate")
def test_busy_card_returns_409(mock_regenerate, client: TestClient, stored_card: CreditCard):
    mock_regenerate.side_effect = CycleRegenerationInProgressError("busy")

    response = client.post("/v1/cards/card_rewards/billing-cycles/regenerate")
    assert response.status_code == 409


def test_batch_regenerate(client: TestClient, stored_card: CreditCard):
    """Test POST /v1/billing-cycles/regenerate with one unknown card"""
    response = client.post(
        "/v1/billing-cycles/regenerate",
        json={"card_ids": ["card_rewards", "missing"], "as_of": "2024-07-01"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["as_of"] == "2024-07-01"
    assert data["results"][0] == {"card_id": "card_rewards", "status": "ok", "cycles_created": 13, "error": None}
    assert data["results"][1]["status"] == "error"


def test_batch_regenerate_requires_cards(client: TestClient):
    response = client.post("/v1/billing-cycles/regenerate", json={"card_ids": []})
    assert response.status_code == 422


def test_card_summary_and_manual_limit(client: TestClient, stored_card: CreditCard):
    """Test GET /v1/cards/{card_id} and manual limit override"""
    data = client.get("/v1/cards/card_rewards").json()
    assert data["effective_limit_cents"] == 500000  # inferred: balance + available
    assert data["utilization_percent"] == 12.0

    data = client.put("/v1/cards/card_rewards/manual-limit", json={"manual_limit_cents": 300000}).json()
    assert data["manual_limit_cents"] == 300000
    assert data["effective_limit_cents"] == 300000
    assert data["utilization_percent"] == 20.0

    data = client.delete("/v1/cards/card_rewards/manual-limit").json()
    assert data["manual_limit_cents"] is None
    assert data["effective_limit_cents"] == 500000


def test_manual_limit_must_be_positive(client: TestClient, stored_card: CreditCard):
    response = client.put("/v1/cards/card_rewards/manual-limit", json={"manual_limit_cents": 0})
    assert response.status_code == 422


@patch("cardcycle.infrastructure.clients.aggregator.AggregatorClient.get_transactions")
@patch("cardcycle.infrastructure.clients.aggregator.AggregatorClient.get_account")
def test_sync_endpoint(
    mock_account: AsyncMock,
    mock_transactions: AsyncMock,
    client: TestClient,
    mock_snapshot: AccountSnapshot,
    sample_transactions: list[Transaction],
):
    """Test POST /v1/cards/{card_id}/sync creates the card and its cycles"""
    mock_account.return_value = mock_snapshot
    mock_transactions.return_value = sample_transactions

    response = client.post("/v1/cards/card_rewards/sync", params={"as_of": "2024-07-01"})

    assert response.status_code == 200
    data = response.json()
    assert data["transactions_received"] == len(sample_transactions)
    assert len(data["cycles"]) == 13

    card = client.get("/v1/cards/card_rewards").json()
    assert card["open_date"] == "2023-06-28"
    assert card["open_date_source"] == "earliest_transaction"


@patch("cardcycle.infrastructure.clients.aggregator.AggregatorClient.get_account")
def test_sync_aggregator_down(mock_account: AsyncMock, client: TestClient):
    """Test aggregator failures map to 503 and leave storage untouched"""
    mock_account.side_effect = AggregatorAPIError("Aggregator API timeout after 5.0s")

    response = client.post("/v1/cards/card_rewards/sync")

    assert response.status_code == 503
    assert client.get("/v1/cards/card_rewards").status_code == 404
