"""API-level tests for portfolio, market data and valuation endpoints."""
import asyncio
import random
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from conftest import FIXED_NOW
from portfolio_backend.api import dependencies
from portfolio_backend.api.websocket.charts import broadcaster
from portfolio_backend.domain.entities import ChartStatus
from portfolio_backend.main import app
from portfolio_backend.services.chart_session import ChartView
from portfolio_backend.services.portfolio_state import PortfolioState
from portfolio_backend.services.synthetic_series import SyntheticSeriesGenerator


@pytest.fixture
def state():
    return PortfolioState(api_key="secret")


@pytest.fixture
def client(finnhub_client, state):
    """TestClient with services wired to the fake upstream."""
    dependencies.init_services(finnhub_client, state)
    flat = SyntheticSeriesGenerator(step=0, rng=random.Random(1), now=lambda: FIXED_NOW)
    with patch.object(dependencies, "_generator", flat):
        yield TestClient(app)
    broadcaster.reset()


def test_health_check(client, state):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["api_key_configured"] is True
    assert data["holdings"] == 0


def test_add_item_fetches_quote(client, fake_finnhub):
    fake_finnhub.on("/quote", json={"c": 190.0, "d": 1.0, "dp": 0.5})

    response = client.post("/api/v1/portfolio/items", json={"symbol": "aapl", "allocation": 60})

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 1
    assert data["items"][0]["asset"]["symbol"] == "AAPL"
    assert data["items"][0]["asset"]["price"] == 190.0
    assert data["total_allocation"] == 60


def test_add_item_with_price_skips_quote(client, fake_finnhub):
    response = client.post(
        "/api/v1/portfolio/items",
        json={"symbol": "MSFT", "allocation": 40, "name": "Microsoft", "price": 410.0},
    )

    assert response.status_code == 200
    assert response.json()["items"][0]["asset"]["name"] == "Microsoft"
    assert fake_finnhub.requests == []


def test_add_duplicate_is_noop(client, state):
    client.post("/api/v1/portfolio/items", json={"symbol": "A", "allocation": 10, "price": 1})
    response = client.post("/api/v1/portfolio/items", json={"symbol": "a", "allocation": 90, "price": 1})

    assert response.json()["count"] == 1
    assert state.get_item("A").allocation == 10


def test_add_item_rejects_out_of_range_allocation(client):
    response = client.post("/api/v1/portfolio/items", json={"symbol": "A", "allocation": 120, "price": 1})

    assert response.status_code == 422


def test_add_unknown_symbol_is_404(client, fake_finnhub):
    fake_finnhub.on("/quote", json={"c": 0, "d": None, "dp": None})

    response = client.post("/api/v1/portfolio/items", json={"symbol": "NOPE", "allocation": 10})

    assert response.status_code == 404


def test_update_and_remove_item(client):
    client.post("/api/v1/portfolio/items", json={"symbol": "A", "allocation": 10, "price": 1})

    updated = client.put("/api/v1/portfolio/items/a", json={"allocation": 35})
    assert updated.json()["items"][0]["allocation"] == 35

    assert client.put("/api/v1/portfolio/items/ZZZ", json={"allocation": 1}).status_code == 404

    removed = client.delete("/api/v1/portfolio/items/A")
    assert removed.json()["count"] == 0
    assert client.delete("/api/v1/portfolio/items/A").status_code == 404


def test_clear_portfolio(client):
    client.post("/api/v1/portfolio/items", json={"symbol": "A", "allocation": 10, "price": 1})

    response = client.delete("/api/v1/portfolio")

    assert response.json()["items"] == []


def test_api_key_is_never_echoed(client, state):
    response = client.put("/api/v1/portfolio/api-key", json={"api_key": "new-key"})

    assert response.json() == {"configured": True}
    assert state.api_key == "new-key"
    assert client.get("/api/v1/portfolio/api-key").json() == {"configured": True}


def test_quote_without_credential_is_401(client, state, fake_finnhub):
    state.set_api_key("")

    response = client.get("/api/v1/stocks/AAPL/quote")

    assert response.status_code == 401
    assert fake_finnhub.requests == []


def test_quote_upstream_failure_is_502(client, fake_finnhub):
    fake_finnhub.on("/quote", status=500)

    assert client.get("/api/v1/stocks/AAPL/quote").status_code == 502


def test_search(client, fake_finnhub):
    fake_finnhub.on(
        "/search",
        json={"result": [
            {"symbol": "AAPL", "description": "APPLE INC", "type": "Common Stock"},
            {"symbol": "AAPL.SW", "description": "APPLE INC", "type": "DR"},
        ]},
    )

    response = client.get("/api/v1/stocks/search", params={"q": "apple"})

    data = response.json()
    assert data["count"] == 1
    assert data["results"][0]["name"] == "APPLE INC"


def test_growth_unconfigured(client, state):
    state.set_api_key("")
    client.post("/api/v1/portfolio/items", json={"symbol": "A", "allocation": 10, "price": 1})

    response = client.post("/api/v1/valuation/growth", json={"days": 30, "initial_amount": 1000})

    assert response.json()["status"] == "unconfigured"
    assert response.json()["result"]["points"] == []


def test_growth_with_synthetic_fallback(client, fake_finnhub):
    """403 candles fall back to a flat synthetic series at the quote price."""
    fake_finnhub.on("/stock/candle", status=403)
    fake_finnhub.on("/quote", json={"c": 50.0, "d": 0, "dp": 0})
    client.post("/api/v1/portfolio/items", json={"symbol": "A", "allocation": 100, "price": 50})

    response = client.post("/api/v1/valuation/growth", json={"days": 30, "initial_amount": 1000})

    data = response.json()
    assert data["status"] == "ready"
    assert len(data["result"]["points"]) == 31
    assert all(p["total_value"] == 1000 for p in data["result"]["points"])
    assert client.get("/api/v1/valuation/growth").json()["generation"] == data["generation"]


def test_heatmap(client, fake_finnhub):
    fake_finnhub.on("/quote", json={"c": 10.0, "d": 0.2, "dp": 2.0})
    client.post("/api/v1/portfolio/items", json={"symbol": "A", "allocation": 70, "price": 10})
    client.post("/api/v1/portfolio/items", json={"symbol": "B", "allocation": 0, "price": 10})

    response = client.post("/api/v1/valuation/heatmap", json={"days": 1})

    data = response.json()
    assert data["status"] == "ready"
    assert data["result"]["cells"] == [
        {"symbol": "A", "allocation": 70.0, "change_percent": 2.0, "failure": None, "synthetic": False}
    ]


def test_chart_views_start_idle(client):
    assert client.get("/api/v1/valuation/heatmap").json()["status"] == "idle"


def test_websocket_pong(client):
    with client.websocket_connect("/ws/charts") as websocket:
        websocket.send_text("ping")
        assert websocket.receive_json() == {"type": "pong"}


def test_quote_with_garbled_price_is_502(client, fake_finnhub):
    fake_finnhub.on("/quote", json={"c": "n/a", "d": None, "dp": None})

    assert client.get("/api/v1/stocks/AAPL/quote").status_code == 502


def test_websocket_replays_current_views(client):
    asyncio.run(broadcaster.publish(ChartView(chart="growth", status=ChartStatus.EMPTY, generation=3)))

    with client.websocket_connect("/ws/charts") as websocket:
        first = websocket.receive_json()
        assert first["type"] == "growth"
        assert first["data"]["generation"] == 3

        websocket.send_text("refresh")
        assert websocket.receive_json() == first