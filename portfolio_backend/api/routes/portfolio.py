"""Portfolio holdings and credential endpoints."""
from fastapi import APIRouter, Depends, HTTPException
import logging

from portfolio_backend.api.dependencies import get_market_data_service, get_portfolio_state
from portfolio_backend.api.routes.stocks import raise_for_market_error, to_asset_response
from portfolio_backend.api.schemas import (
    AddItemRequest,
    ApiKeyRequest,
    ApiKeyStatusResponse,
    HoldingResponse,
    PortfolioResponse,
    UpdateAllocationRequest,
)
from portfolio_backend.domain.entities import Asset
from portfolio_backend.domain.exceptions import MarketDataError
from portfolio_backend.services.market_data_service import MarketDataService
from portfolio_backend.services.portfolio_state import PortfolioState

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/portfolio", tags=["portfolio"])


def to_portfolio_response(state: PortfolioState) -> PortfolioResponse:
    items = state.items
    return PortfolioResponse(
        items=[
            HoldingResponse(asset=to_asset_response(item.asset), allocation=item.allocation)
            for item in items
        ],
        total_allocation=state.total_allocation,
        count=len(items),
    )


@router.get("", response_model=PortfolioResponse)
async def get_portfolio(
    state: PortfolioState = Depends(get_portfolio_state)
) -> PortfolioResponse:
    """List current holdings."""
    return to_portfolio_response(state)


@router.post("/items", response_model=PortfolioResponse)
async def add_item(
    request: AddItemRequest,
    state: PortfolioState = Depends(get_portfolio_state),
    service: MarketDataService = Depends(get_market_data_service),
) -> PortfolioResponse:
    """Add a holding. Adding a symbol that is already held changes nothing."""
    if state.get_item(request.symbol) is not None:
        return to_portfolio_response(state)

    if request.price is None:
        try:
            quote = await service.quote(request.symbol)
        except MarketDataError as e:
            logger.error(f"Error getting quote for {request.symbol}: {e}")
            raise_for_market_error(e)
        asset = quote.model_copy(update={"name": request.name or quote.name})
    else:
        asset = Asset(symbol=request.symbol, name=request.name or "", price=request.price)

    state.add_item(asset, request.allocation)
    return to_portfolio_response(state)


@router.put("/items/{symbol}", response_model=PortfolioResponse)
async def update_item(
    symbol: str,
    request: UpdateAllocationRequest,
    state: PortfolioState = Depends(get_portfolio_state),
) -> PortfolioResponse:
    """Change one holding's allocation."""
    if not state.update_allocation(symbol, request.allocation):
        raise HTTPException(status_code=404, detail=f"{symbol.upper()} is not in the portfolio")
    return to_portfolio_response(state)


@router.delete("/items/{symbol}", response_model=PortfolioResponse)
async def remove_item(
    symbol: str,
    state: PortfolioState = Depends(get_portfolio_state),
) -> PortfolioResponse:
    """Remove a holding."""
    if not state.remove_item(symbol):
        raise HTTPException(status_code=404, detail=f"{symbol.upper()} is not in the portfolio")
    return to_portfolio_response(state)


@router.delete("", response_model=PortfolioResponse)
async def clear_portfolio(
    state: PortfolioState = Depends(get_portfolio_state),
) -> PortfolioResponse:
    """Remove every holding."""
    state.clear()
    return to_portfolio_response(state)


@router.get("/api-key", response_model=ApiKeyStatusResponse)
async def get_api_key_status(
    state: PortfolioState = Depends(get_portfolio_state),
) -> ApiKeyStatusResponse:
    return ApiKeyStatusResponse(configured=bool(state.api_key))


@router.put("/api-key", response_model=ApiKeyStatusResponse)
async def set_api_key(
    request: ApiKeyRequest,
    state: PortfolioState = Depends(get_portfolio_state),
) -> ApiKeyStatusResponse:
    """Set the provider credential; an empty key clears it."""
    state.set_api_key(request.api_key)
    return ApiKeyStatusResponse(configured=bool(state.api_key))
