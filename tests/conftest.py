"""Pytest configuration and fixtures."""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

import httpx
import pytest

from portfolio_backend.domain.entities import (
    AllocationEntry,
    Asset,
    ChangeOutcome,
    PortfolioSnapshot,
    PricePoint,
    PriceSeries,
    SeriesResult,
)
from portfolio_backend.domain.interfaces import MarketDataProvider
from portfolio_backend.infrastructure.finnhub_client import FinnhubClient

FIXED_NOW = datetime(2026, 10, 18, 15, 30, tzinfo=timezone.utc)
TEST_BASE_URL = "https://finnhub.test/api/v1"


class FakeFinnhub:
    """Routes requests by path to canned handlers and records them."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def on(self, path: str, status: int = 200, json=None, content: bytes = None) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if content is not None:
                return httpx.Response(status, content=content)
            return httpx.Response(status, json=json if json is not None else {})
        self.routes[path] = handler

    def fail(self, path: str) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)
        self.routes[path] = handler

    def paths(self) -> List[str]:
        return [r.url.path.replace("/api/v1", "") for r in self.requests]

    def params_for(self, path: str) -> List[Dict[str, str]]:
        return [
            dict(r.url.params)
            for r in self.requests
            if r.url.path.replace("/api/v1", "") == path
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.replace("/api/v1", "")
        handler = self.routes.get(path)
        if handler is None:
            return httpx.Response(500, json={"error": "unrouted"})
        return handler(request)


@pytest.fixture
def fake_finnhub():
    """Fake upstream API."""
    return FakeFinnhub()


@pytest.fixture
def finnhub_client(fake_finnhub):
    """Finnhub client talking to the fake upstream."""
    http_client = httpx.AsyncClient(
        base_url=TEST_BASE_URL, transport=httpx.MockTransport(fake_finnhub)
    )
    return FinnhubClient(base_url=TEST_BASE_URL, http_client=http_client)


@pytest.fixture
def fixed_now():
    return lambda: FIXED_NOW


def daily_series(symbol: str, values: List[float], start: datetime = None) -> PriceSeries:
    """Series with one point per day."""
    start = start or datetime(2026, 9, 1, tzinfo=timezone.utc)
    return PriceSeries(
        symbol=symbol,
        points=[
            PricePoint(timestamp=start + timedelta(days=i), value=v)
            for i, v in enumerate(values)
        ],
    )


def make_snapshot(allocations: Dict[str, float], api_key: str = "test-key") -> PortfolioSnapshot:
    return PortfolioSnapshot(
        entries=tuple(
            AllocationEntry(asset=Asset(symbol=symbol), allocation=allocation)
            for symbol, allocation in allocations.items()
        ),
        api_key=api_key,
    )


class StubProvider(MarketDataProvider):
    """In-memory provider recording calls and concurrency."""

    def __init__(
        self,
        histories: Optional[Dict[str, PriceSeries]] = None,
        changes: Optional[Dict[str, ChangeOutcome]] = None,
        gates: Optional[Dict[str, asyncio.Event]] = None,
    ):
        self.histories = histories if histories is not None else {}
        self.changes = changes if changes is not None else {}
        self.gates = gates if gates is not None else {}
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def _enter(self, symbol: str) -> None:
        self.calls.append(symbol)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            gate = self.gates.get(symbol)
            if gate is not None:
                await gate.wait()
        finally:
            self.in_flight -= 1

    async def search(self, query):
        return []

    async def quote(self, symbol):
        return Asset(symbol=symbol)

    async def history(self, symbol, window_days):
        await self._enter(symbol)
        series = self.histories.get(symbol, PriceSeries(symbol=symbol))
        if isinstance(series, Exception):
            raise series
        return SeriesResult(series=series)

    async def change_over_window(self, symbol, window_days):
        await self._enter(symbol)
        outcome = self.changes.get(symbol, ChangeOutcome())
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
