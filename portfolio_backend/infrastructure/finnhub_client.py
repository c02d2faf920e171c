"""Finnhub REST client."""
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ValidationError

from portfolio_backend.config import finnhub_config
from portfolio_backend.domain.exceptions import (
    AuthError,
    NotFoundError,
    QuotaError,
    UpstreamError,
)
from portfolio_backend.domain.interfaces import MarketDataClient

logger = logging.getLogger(__name__)


class _Payload(BaseModel):
    """Finnhub JSON body. Unknown fields are ignored; wrong types are rejected."""

    class Config:
        extra = "ignore"
        allow_inf_nan = False


class QuotePayload(_Payload):
    c: Optional[float] = None
    d: Optional[float] = None
    dp: Optional[float] = None


class CandlePayload(_Payload):
    s: Optional[str] = None
    error: Optional[str] = None
    t: List[int] = []
    o: List[Optional[float]] = []
    c: List[Optional[float]] = []


class SearchItem(_Payload):
    symbol: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None


class SearchPayload(_Payload):
    result: Optional[List[SearchItem]] = None


class FinnhubClient(MarketDataClient):
    """Async Finnhub client translating HTTP failures into typed errors."""

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url or finnhub_config.BASE_URL
        self.timeout = timeout or finnhub_config.TIMEOUT
        self._client: Optional[httpx.AsyncClient] = http_client

    def connect(self) -> None:
        """Create the underlying HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
            logger.info(f"Finnhub client ready at {self.base_url}")

    async def disconnect(self) -> None:
        """Close the underlying HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Finnhub client closed")

    @property
    def client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("Finnhub client not connected")
        return self._client

    async def _get(self, path: str, params: Dict[str, Any], symbol: str = None) -> Any:
        """GET a JSON payload, mapping status codes onto the error taxonomy."""
        if not params.get("token"):
            raise AuthError("API key missing", symbol=symbol)

        try:
            response = await self.client.get(path, params=params)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Request to {path} failed: {e}", symbol=symbol) from e

        status = response.status_code
        if status == 401:
            raise AuthError(f"Credential rejected by {path}", symbol=symbol, status_code=status)
        if status == 403:
            raise QuotaError(f"Access to {path} denied by plan", symbol=symbol, status_code=status)
        if status == 404:
            raise NotFoundError(f"{symbol or path} not found", symbol=symbol, status_code=status)
        if status >= 400:
            raise UpstreamError(f"{path} returned HTTP {status}", symbol=symbol, status_code=status)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"Malformed payload from {path}", symbol=symbol, status_code=status) from e

    @staticmethod
    def _validate(model, payload: Any, what: str, symbol: str = None):
        """Check a decoded payload's shape; anything unexpected is an upstream fault."""
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Malformed {what} payload for {symbol or 'request'}: {e.error_count()} errors")
            raise UpstreamError(f"Malformed {what} payload", symbol=symbol) from e

    async def search_symbols(self, query: str, token: str) -> List[Dict[str, Any]]:
        payload = await self._get("/search", {"q": query, "token": token})
        search = self._validate(SearchPayload, payload, "search")
        return [item.model_dump(exclude_unset=True) for item in search.result or []]

    async def get_quote(self, symbol: str, token: str) -> Dict[str, Any]:
        payload = await self._get("/quote", {"symbol": symbol, "token": token}, symbol=symbol)
        quote = self._validate(QuotePayload, payload, "quote", symbol)
        # Unknown symbols come back as an all-zero quote with null deltas.
        if not quote.c and quote.d is None and quote.dp is None:
            raise NotFoundError(f"No quote for {symbol}", symbol=symbol)
        return quote.model_dump(exclude_unset=True)

    async def get_candles(
        self, symbol: str, resolution: str, start: int, end: int, token: str
    ) -> Dict[str, Any]:
        payload = await self._get(
            "/stock/candle",
            {
                "symbol": symbol,
                "resolution": resolution,
                "from": start,
                "to": end,
                "token": token,
            },
            symbol=symbol,
        )
        candles = self._validate(CandlePayload, payload, "candle", symbol)
        return candles.model_dump(exclude_unset=True)
