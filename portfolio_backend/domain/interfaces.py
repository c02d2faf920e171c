"""Market data interfaces (Ports) - abstraction for upstream access."""
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from portfolio_backend.domain.entities import Asset, ChangeOutcome, SeriesResult


class MarketDataClient(ABC):
    """Raw upstream access. Every method raises ``MarketDataError`` subclasses."""

    @abstractmethod
    async def search_symbols(self, query: str, token: str) -> List[Dict[str, Any]]:
        """Return raw search result items."""
        pass

    @abstractmethod
    async def get_quote(self, symbol: str, token: str) -> Dict[str, Any]:
        """Return the raw quote payload ({c, d, dp, ...})."""
        pass

    @abstractmethod
    async def get_candles(
        self, symbol: str, resolution: str, start: int, end: int, token: str
    ) -> Dict[str, Any]:
        """Return the raw candle payload ({t, o, c, s, ...})."""
        pass


class MarketDataProvider(ABC):
    """Market data contract consumed by the valuation engine."""

    @abstractmethod
    async def search(self, query: str) -> List[Asset]:
        """Best-effort symbol search. Never raises."""
        pass

    @abstractmethod
    async def quote(self, symbol: str) -> Asset:
        """Current quote. Raises AuthError, NotFoundError or UpstreamError."""
        pass

    @abstractmethod
    async def history(self, symbol: str, window_days: int) -> SeriesResult:
        """Price history over the window. Never raises."""
        pass

    @abstractmethod
    async def change_over_window(self, symbol: str, window_days: int) -> ChangeOutcome:
        """Percentage change over the window. Never raises."""
        pass
