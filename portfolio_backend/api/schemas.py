"""API request/response schemas (DTOs)."""
from typing import List, Optional
from pydantic import BaseModel, Field

from portfolio_backend.config import simulation_config


# Request models
class AddItemRequest(BaseModel):
    """Add a holding; the quote is fetched when no price is supplied."""
    symbol: str
    allocation: float = Field(ge=0, le=100)
    name: Optional[str] = None
    price: Optional[float] = None


class UpdateAllocationRequest(BaseModel):
    """Change one holding's allocation."""
    allocation: float = Field(ge=0, le=100)


class ApiKeyRequest(BaseModel):
    """Set or clear the provider credential."""
    api_key: str = ""


class GrowthRequest(BaseModel):
    """Growth simulation parameters."""
    days: int = Field(default=simulation_config.DEFAULT_GROWTH_DAYS, ge=1)
    initial_amount: float = Field(default=simulation_config.DEFAULT_INITIAL_AMOUNT, ge=0)


class HeatmapRequest(BaseModel):
    """Heatmap window."""
    days: int = Field(default=simulation_config.DEFAULT_HEATMAP_DAYS, ge=1)


# Response models
class AssetResponse(BaseModel):
    """Single asset with its last known quote."""
    symbol: str
    name: str
    price: float
    change: float
    change_percent: float


class SearchResponse(BaseModel):
    """Symbol search results."""
    query: str
    results: List[AssetResponse]
    count: int


class HoldingResponse(BaseModel):
    """One holding in the portfolio."""
    asset: AssetResponse
    allocation: float


class PortfolioResponse(BaseModel):
    """Current holdings."""
    items: List[HoldingResponse]
    total_allocation: float
    count: int


class ApiKeyStatusResponse(BaseModel):
    """Whether a credential is configured; the key itself is never echoed."""
    configured: bool


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    api_key_configured: bool
    holdings: int
    websocket_clients: int

