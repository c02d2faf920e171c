"""Health check endpoint."""
from datetime import datetime
from fastapi import APIRouter, Depends

from portfolio_backend.api.dependencies import get_portfolio_state
from portfolio_backend.api.schemas import HealthResponse
from portfolio_backend.api.websocket.charts import broadcaster
from portfolio_backend.services.portfolio_state import PortfolioState

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    state: PortfolioState = Depends(get_portfolio_state)
) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now().isoformat(),
        api_key_configured=bool(state.api_key),
        holdings=len(state.items),
        websocket_clients=broadcaster.client_count,
    )
