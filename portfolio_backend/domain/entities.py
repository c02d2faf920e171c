"""Domain entities - core business objects."""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

SECONDS_PER_DAY = 24 * 60 * 60


def resolution_for(days: int) -> str:
    """Candle resolution for a look-back window.

    30-minute buckets for a single day, hourly up to a week, daily beyond.
    """
    if days <= 1:
        return "30"
    if days <= 7:
        return "60"
    return "D"


class FailureReason(str, Enum):
    """Why a history or change lookup produced no real data."""
    UNCONFIGURED = "unconfigured"
    NOT_FOUND = "not_found"
    NO_DATA = "no_data"
    QUOTA = "quota"
    UPSTREAM = "upstream"


class ChartStatus(str, Enum):
    """Lifecycle of a chart-producing computation."""
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"
    UNCONFIGURED = "unconfigured"


class Asset(BaseModel):
    """A tradable symbol with its last known quote."""
    symbol: str
    name: str = Field(default="", validate_default=True)
    price: float = 0.0
    change: float = 0.0
    change_percent: float = 0.0

    class Config:
        frozen = True

    @field_validator("symbol")
    @classmethod
    def _upper_symbol(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("name")
    @classmethod
    def _default_name(cls, value: str, info) -> str:
        return value or info.data.get("symbol", "")


class AllocationEntry(BaseModel):
    """One holding: an asset and the percentage of cash assigned to it.

    The range is not enforced here; the engine tolerates any allocation.
    """
    asset: Asset
    allocation: float = 0.0

    class Config:
        frozen = True

    @property
    def symbol(self) -> str:
        return self.asset.symbol


class PortfolioSnapshot(BaseModel):
    """Read-only view of holdings and credential taken at request start."""
    entries: Tuple[AllocationEntry, ...] = ()
    api_key: str = ""

    class Config:
        frozen = True

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def active_entries(self) -> List[AllocationEntry]:
        """Entries that take part in valuation (allocation > 0)."""
        return [entry for entry in self.entries if entry.allocation > 0]


class PricePoint(BaseModel):
    """Single price observation."""
    timestamp: datetime
    value: float


class PriceSeries(BaseModel):
    """Time-ordered prices for one symbol over one request window."""
    symbol: str
    points: List[PricePoint] = Field(default_factory=list)
    synthetic: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def timestamps(self) -> List[datetime]:
        return [p.timestamp for p in self.points]

    @property
    def values(self) -> List[float]:
        return [p.value for p in self.points]


class ValuationWindow(BaseModel):
    """Look-back window ending now, in whole days."""
    lookback_days: int = Field(ge=1)

    @property
    def resolution(self) -> str:
        return resolution_for(self.lookback_days)

    def bounds(self, now: Optional[datetime] = None) -> Tuple[int, int]:
        """Return (from, to) as unix seconds."""
        now = now or datetime.now(timezone.utc)
        to = int(now.timestamp())
        return to - self.lookback_days * SECONDS_PER_DAY, to


class SeriesResult(BaseModel):
    """History lookup outcome. ``failure`` is None when data is real."""
    series: PriceSeries
    failure: Optional[FailureReason] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class ChangeOutcome(BaseModel):
    """Percentage change lookup outcome; value defaults to zero on failure."""
    value: float = 0.0
    failure: Optional[FailureReason] = None
    synthetic: bool = False

    @property
    def ok(self) -> bool:
        return self.failure is None


class PortfolioValuePoint(BaseModel):
    """Total simulated portfolio value at one canonical-axis date."""
    timestamp: datetime
    total_value: int


class GrowthResult(BaseModel):
    """Simulated growth curve plus the chart status it resolves to."""
    kind: Literal["growth"] = "growth"
    status: ChartStatus
    points: List[PortfolioValuePoint] = Field(default_factory=list)


class HeatmapCell(BaseModel):
    """Per-asset change over a window, for heatmap display."""
    symbol: str
    allocation: float
    change_percent: float
    failure: Optional[FailureReason] = None
    synthetic: bool = False


class HeatmapResult(BaseModel):
    """Heatmap cells plus the chart status they resolve to."""
    kind: Literal["heatmap"] = "heatmap"
    status: ChartStatus
    cells: List[HeatmapCell] = Field(default_factory=list)
