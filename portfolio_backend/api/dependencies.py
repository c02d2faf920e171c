"""FastAPI dependency injection setup."""
from typing import Optional

from portfolio_backend.infrastructure.finnhub_client import FinnhubClient
from portfolio_backend.services.chart_session import ChartSession
from portfolio_backend.services.market_data_service import MarketDataService
from portfolio_backend.services.portfolio_state import PortfolioState
from portfolio_backend.services.synthetic_series import SyntheticSeriesGenerator
from portfolio_backend.services.valuation_service import PortfolioValuationEngine


# Application state (set during lifespan)
_client: Optional[FinnhubClient] = None
_generator: Optional[SyntheticSeriesGenerator] = None
_portfolio_state: Optional[PortfolioState] = None
_valuation_engine: Optional[PortfolioValuationEngine] = None
_growth_session: Optional[ChartSession] = None
_heatmap_session: Optional[ChartSession] = None


def init_services(client: FinnhubClient, state: Optional[PortfolioState] = None) -> None:
    """Initialize all services around the upstream client."""
    global _client, _generator, _portfolio_state, _valuation_engine
    global _growth_session, _heatmap_session
    _client = client
    _generator = SyntheticSeriesGenerator()
    _portfolio_state = state or PortfolioState()
    _valuation_engine = PortfolioValuationEngine(provider_factory=market_data_for)
    _growth_session = ChartSession("growth")
    _heatmap_session = ChartSession("heatmap")


def market_data_for(api_key: str) -> MarketDataService:
    """Market data service bound to one credential."""
    if _client is None:
        raise RuntimeError("Services not initialized")
    return MarketDataService(_client, api_key, generator=_generator)


def get_portfolio_state() -> PortfolioState:
    """Get portfolio state dependency."""
    if _portfolio_state is None:
        raise RuntimeError("Services not initialized")
    return _portfolio_state


def get_market_data_service() -> MarketDataService:
    """Get market data service for the current credential."""
    return market_data_for(get_portfolio_state().api_key)


def get_valuation_engine() -> PortfolioValuationEngine:
    """Get valuation engine dependency."""
    if _valuation_engine is None:
        raise RuntimeError("Services not initialized")
    return _valuation_engine


def get_growth_session() -> ChartSession:
    """Get growth chart session dependency."""
    if _growth_session is None:
        raise RuntimeError("Services not initialized")
    return _growth_session


def get_heatmap_session() -> ChartSession:
    """Get heatmap chart session dependency."""
    if _heatmap_session is None:
        raise RuntimeError("Services not initialized")
    return _heatmap_session
