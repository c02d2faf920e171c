"""Growth simulation and heatmap endpoints."""
from fastapi import APIRouter, Depends
import logging

from portfolio_backend.api.dependencies import (
    get_growth_session,
    get_heatmap_session,
    get_portfolio_state,
    get_valuation_engine,
)
from portfolio_backend.api.schemas import GrowthRequest, HeatmapRequest
from portfolio_backend.domain.entities import ValuationWindow
from portfolio_backend.services.chart_session import ChartSession, ChartView
from portfolio_backend.services.portfolio_state import PortfolioState
from portfolio_backend.services.valuation_service import PortfolioValuationEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/valuation", tags=["valuation"])


@router.post("/growth", response_model=ChartView)
async def simulate_growth(
    request: GrowthRequest,
    state: PortfolioState = Depends(get_portfolio_state),
    engine: PortfolioValuationEngine = Depends(get_valuation_engine),
    session: ChartSession = Depends(get_growth_session),
) -> ChartView:
    """Simulate growth of an initial amount over the look-back window."""
    snapshot = state.snapshot()
    window = ValuationWindow(lookback_days=request.days)
    logger.info(
        f"Growth requested: {len(snapshot.entries)} holdings, {request.days} days, "
        f"initial {request.initial_amount}"
    )
    return await session.run(
        lambda: engine.simulate_growth(snapshot, window, request.initial_amount)
    )


@router.get("/growth", response_model=ChartView)
async def get_growth(session: ChartSession = Depends(get_growth_session)) -> ChartView:
    """Currently displayed growth chart."""
    return session.view


@router.post("/heatmap", response_model=ChartView)
async def compute_heatmap(
    request: HeatmapRequest,
    state: PortfolioState = Depends(get_portfolio_state),
    engine: PortfolioValuationEngine = Depends(get_valuation_engine),
    session: ChartSession = Depends(get_heatmap_session),
) -> ChartView:
    """Per-asset change over the look-back window."""
    snapshot = state.snapshot()
    return await session.run(lambda: engine.compute_heatmap(snapshot, request.days))


@router.get("/heatmap", response_model=ChartView)
async def get_heatmap(session: ChartSession = Depends(get_heatmap_session)) -> ChartView:
    """Currently displayed heatmap."""
    return session.view
