"""Symbol search and quote endpoints."""
from fastapi import APIRouter, Depends, HTTPException
import logging

from portfolio_backend.api.schemas import AssetResponse, SearchResponse
from portfolio_backend.api.dependencies import get_market_data_service
from portfolio_backend.domain.entities import Asset
from portfolio_backend.domain.exceptions import (
    AuthError,
    MarketDataError,
    NotFoundError,
    QuotaError,
)
from portfolio_backend.services.market_data_service import MarketDataService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["stocks"])


def to_asset_response(asset: Asset) -> AssetResponse:
    return AssetResponse(
        symbol=asset.symbol,
        name=asset.name,
        price=asset.price,
        change=asset.change,
        change_percent=asset.change_percent,
    )


def raise_for_market_error(error: MarketDataError) -> None:
    """Translate a quote failure into an HTTP error."""
    if isinstance(error, AuthError):
        raise HTTPException(status_code=401, detail="API key not configured")
    if isinstance(error, NotFoundError):
        raise HTTPException(status_code=404, detail=str(error))
    if isinstance(error, QuotaError):
        raise HTTPException(status_code=403, detail=str(error))
    raise HTTPException(status_code=502, detail=str(error))


@router.get("/stocks/search", response_model=SearchResponse)
async def search_stocks(
    q: str,
    service: MarketDataService = Depends(get_market_data_service)
) -> SearchResponse:
    """Search common stocks by name or symbol."""
    results = await service.search(q)
    return SearchResponse(
        query=q,
        results=[to_asset_response(asset) for asset in results],
        count=len(results),
    )


@router.get("/stocks/{symbol}/quote", response_model=AssetResponse)
async def get_quote(
    symbol: str,
    service: MarketDataService = Depends(get_market_data_service)
) -> AssetResponse:
    """Get the current quote for a symbol."""
    try:
        return to_asset_response(await service.quote(symbol))
    except MarketDataError as e:
        logger.error(f"Error getting quote for {symbol}: {e}")
        raise_for_market_error(e)
