"""Market data business logic: search, quotes, history and window changes."""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import logging

from portfolio_backend.config import simulation_config
from portfolio_backend.domain.entities import (
    Asset,
    ChangeOutcome,
    FailureReason,
    PricePoint,
    PriceSeries,
    SeriesResult,
    ValuationWindow,
)
from portfolio_backend.domain.exceptions import (
    AuthError,
    MarketDataError,
    NotFoundError,
    QuotaError,
    UpstreamError,
)
from portfolio_backend.domain.interfaces import MarketDataClient, MarketDataProvider
from portfolio_backend.services.synthetic_series import SyntheticSeriesGenerator

logger = logging.getLogger(__name__)

SEARCH_RESULT_LIMIT = 10
SEARCH_SECURITY_TYPE = "Common Stock"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _failure_for(error: MarketDataError) -> FailureReason:
    if isinstance(error, QuotaError):
        return FailureReason.QUOTA
    if isinstance(error, NotFoundError):
        return FailureReason.NOT_FOUND
    return FailureReason.UPSTREAM


class MarketDataService(MarketDataProvider):
    """Market data bound to one API credential.

    ``history`` and ``change_over_window`` never raise: failures come back
    as a ``FailureReason`` with an empty series or zero change, except that
    a 403 from the candle endpoint switches to synthetic data anchored at
    the current quote.
    """

    def __init__(
        self,
        client: MarketDataClient,
        api_key: str,
        generator: Optional[SyntheticSeriesGenerator] = None,
        now: Callable[[], datetime] = _utc_now,
    ):
        self._client = client
        self._api_key = api_key or ""
        self._generator = generator or SyntheticSeriesGenerator()
        self._now = now

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def search(self, query: str) -> List[Asset]:
        query = (query or "").strip()
        if not self._api_key or not query:
            return []

        try:
            items = await self._client.search_symbols(query, self._api_key)
        except MarketDataError as e:
            logger.error(f"Search error for '{query}': {e}")
            return []

        results: List[Asset] = []
        for item in items:
            if item.get("type") != SEARCH_SECURITY_TYPE or not item.get("symbol"):
                continue
            results.append(Asset(symbol=item["symbol"], name=item.get("description") or ""))
            if len(results) >= SEARCH_RESULT_LIMIT:
                break
        return results

    async def quote(self, symbol: str) -> Asset:
        symbol = symbol.upper()
        if not self._api_key:
            raise AuthError("API key missing", symbol=symbol)

        payload = await self._client.get_quote(symbol, self._api_key)
        return Asset(
            symbol=symbol,
            name=symbol,
            price=payload.get("c") or 0.0,
            change=payload.get("d") or 0.0,
            change_percent=payload.get("dp") or 0.0,
        )

    async def history(self, symbol: str, window_days: int) -> SeriesResult:
        symbol = symbol.upper()
        empty = PriceSeries(symbol=symbol)
        if not self._api_key:
            return SeriesResult(series=empty, failure=FailureReason.UNCONFIGURED)

        window = ValuationWindow(lookback_days=max(window_days, 1))
        try:
            payload = await self._fetch_candles(symbol, window)
            series = self._decode_candles(symbol, payload)
        except QuotaError:
            logger.warning(
                f"Historical data access denied for {symbol} (403). Falling back to synthetic data."
            )
            series = await self._synthetic_series(symbol, window.lookback_days)
            return SeriesResult(series=series, failure=FailureReason.QUOTA)
        except MarketDataError as e:
            logger.error(f"History error for {symbol}: {e}")
            return SeriesResult(series=empty, failure=_failure_for(e))

        if series.is_empty:
            return SeriesResult(series=series, failure=FailureReason.NO_DATA)
        return SeriesResult(series=series)

    async def change_over_window(self, symbol: str, window_days: int) -> ChangeOutcome:
        symbol = symbol.upper()
        if not self._api_key:
            return ChangeOutcome(failure=FailureReason.UNCONFIGURED)

        # The quote's day change is cheaper and available on every plan.
        if window_days == 1:
            try:
                payload = await self._client.get_quote(symbol, self._api_key)
            except MarketDataError as e:
                logger.error(f"Fetch quote error for {symbol}: {e}")
                return ChangeOutcome(failure=_failure_for(e))
            return ChangeOutcome(value=float(payload.get("dp") or 0.0))

        window = ValuationWindow(lookback_days=max(window_days, 1))
        try:
            payload = await self._fetch_candles(symbol, window)
        except QuotaError:
            logger.warning(
                f"Candle data access denied for {symbol} (403). Falling back to synthetic change."
            )
            series = await self._synthetic_series(symbol, window.lookback_days)
            values = series.values
            if len(values) < 2:
                return ChangeOutcome(failure=FailureReason.QUOTA, synthetic=True)
            return ChangeOutcome(
                value=(values[-1] - values[0]) / values[0] * 100,
                failure=FailureReason.QUOTA,
                synthetic=True,
            )
        except MarketDataError as e:
            logger.error(f"Fetch change error for {symbol}: {e}")
            return ChangeOutcome(failure=_failure_for(e))

        if payload.get("s") == "no_data":
            return ChangeOutcome(failure=FailureReason.NO_DATA)
        if payload.get("error"):
            logger.warning(f"API error for {symbol}: {payload['error']}")
            return ChangeOutcome(failure=FailureReason.NO_DATA)

        closes = payload.get("c") or []
        opens = payload.get("o") or []
        if not closes or not opens:
            return ChangeOutcome(failure=FailureReason.NO_DATA)

        start_price, end_price = opens[0], closes[-1]
        if not start_price or end_price is None:
            return ChangeOutcome(failure=FailureReason.NO_DATA)
        return ChangeOutcome(value=(end_price - start_price) / start_price * 100)

    async def _fetch_candles(self, symbol: str, window: ValuationWindow) -> Dict[str, Any]:
        start, end = window.bounds(self._now())
        return await self._client.get_candles(symbol, window.resolution, start, end, self._api_key)

    async def _anchor_price(self, symbol: str) -> float:
        """Current price to anchor synthetic data, or the fixed fallback."""
        try:
            payload = await self._client.get_quote(symbol, self._api_key)
        except MarketDataError as e:
            logger.debug(f"Anchor quote for {symbol} unavailable: {e}")
            return simulation_config.FALLBACK_ANCHOR_PRICE
        return float(payload.get("c") or simulation_config.FALLBACK_ANCHOR_PRICE)

    async def _synthetic_series(self, symbol: str, window_days: int) -> PriceSeries:
        anchor = await self._anchor_price(symbol)
        return self._generator.generate(window_days, anchor, symbol=symbol)

    @staticmethod
    def _decode_candles(symbol: str, payload: Dict[str, Any]) -> PriceSeries:
        """Close prices keyed by candle time, ascending; repeated times keep the first close."""
        if payload.get("s") == "no_data" or payload.get("error"):
            return PriceSeries(symbol=symbol)

        timestamps = payload.get("t") or []
        closes = payload.get("c") or []
        points: List[PricePoint] = []
        seen = set()
        for ts, close in zip(timestamps, closes):
            if ts in seen or close is None:
                continue
            seen.add(ts)
            try:
                when = datetime.fromtimestamp(ts, tz=timezone.utc)
            except (OverflowError, OSError, ValueError) as e:
                raise UpstreamError(f"Bad candle time {ts!r}", symbol=symbol) from e
            points.append(PricePoint(timestamp=when, value=close))
        points.sort(key=lambda p: p.timestamp)
        return PriceSeries(symbol=symbol, points=points)
