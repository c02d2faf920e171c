"""Portfolio valuation: simulated growth curve and per-asset heatmap."""
from typing import Callable, Dict, List, Optional
import asyncio
import logging
import math

from portfolio_backend.domain.entities import (
    AllocationEntry,
    ChangeOutcome,
    ChartStatus,
    FailureReason,
    GrowthResult,
    HeatmapCell,
    HeatmapResult,
    PortfolioSnapshot,
    PortfolioValuePoint,
    PriceSeries,
    ValuationWindow,
)
from portfolio_backend.domain.interfaces import MarketDataProvider
from portfolio_backend.services.series_aligner import SeriesAligner

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[str], MarketDataProvider]


def round_half_up(value: float) -> int:
    """Nearest integer, .5 rounding towards positive infinity."""
    return int(math.floor(value + 0.5))


def buy_and_hold_shares(initial_amount: float, allocation: float, start_price: float) -> float:
    """Shares bought at the window start with ``allocation`` percent of the cash.

    A zero start price (possible after zero-fill) buys nothing.
    """
    if not start_price:
        return 0.0
    shares = (initial_amount * allocation / 100) / start_price
    return shares if math.isfinite(shares) else 0.0


class PortfolioValuationEngine:
    """Turns an allocation snapshot into chart data.

    Both operations always resolve; a missing credential and an empty
    result are reported through ``ChartStatus`` rather than exceptions.
    """

    def __init__(
        self,
        provider_factory: ProviderFactory,
        aligner: Optional[SeriesAligner] = None,
    ):
        self._provider_factory = provider_factory
        self._aligner = aligner or SeriesAligner()

    async def simulate_growth(
        self,
        snapshot: PortfolioSnapshot,
        window: ValuationWindow,
        initial_amount: float,
    ) -> GrowthResult:
        """Value of ``initial_amount`` invested at the window start and held."""
        if not snapshot.is_configured:
            return GrowthResult(status=ChartStatus.UNCONFIGURED)
        if not snapshot.entries:
            return GrowthResult(status=ChartStatus.EMPTY)

        try:
            return await self._simulate(snapshot, window, initial_amount)
        except Exception as e:
            logger.error(f"Growth simulation failed: {e}")
            return GrowthResult(status=ChartStatus.EMPTY)

    async def _simulate(
        self,
        snapshot: PortfolioSnapshot,
        window: ValuationWindow,
        initial_amount: float,
    ) -> GrowthResult:
        active = snapshot.active_entries
        if not active:
            return GrowthResult(status=ChartStatus.EMPTY)

        provider = self._provider_factory(snapshot.api_key)
        histories: Dict[str, PriceSeries] = {}
        # One asset at a time, in allocation order.
        for entry in active:
            try:
                result = await provider.history(entry.symbol, window.lookback_days)
            except Exception as e:
                logger.error(f"History for {entry.symbol} failed, leaving it out: {e}")
                continue
            if result.series.is_empty:
                logger.info(f"No history for {entry.symbol} ({result.failure})")
                continue
            histories[entry.symbol] = result.series

        if not histories:
            return GrowthResult(status=ChartStatus.EMPTY)

        aligned = self._aligner.align(histories)
        shares = {
            entry.symbol: buy_and_hold_shares(
                initial_amount, entry.allocation, histories[entry.symbol].points[0].value
            )
            for entry in active
            if entry.symbol in histories
        }

        points: List[PortfolioValuePoint] = []
        for index, timestamp in enumerate(aligned.axis):
            total = 0.0
            for entry in active:
                if entry.symbol not in shares:
                    continue
                contribution = shares[entry.symbol] * aligned.price_at(entry.symbol, index)
                if math.isfinite(contribution):
                    total += contribution
            points.append(
                PortfolioValuePoint(timestamp=timestamp, total_value=round_half_up(total))
            )

        if not points:
            return GrowthResult(status=ChartStatus.EMPTY)
        return GrowthResult(status=ChartStatus.READY, points=points)

    async def compute_heatmap(
        self, snapshot: PortfolioSnapshot, window_days: int
    ) -> HeatmapResult:
        """Change over the window for every asset with a positive allocation.

        Requests run concurrently and resolve independently.
        """
        if not snapshot.is_configured:
            return HeatmapResult(status=ChartStatus.UNCONFIGURED)

        active = snapshot.active_entries
        if not active:
            return HeatmapResult(status=ChartStatus.EMPTY)

        provider = self._provider_factory(snapshot.api_key)
        outcomes = await asyncio.gather(
            *(provider.change_over_window(entry.symbol, window_days) for entry in active),
            return_exceptions=True,
        )

        cells = [self._cell(entry, outcome) for entry, outcome in zip(active, outcomes)]
        return HeatmapResult(status=ChartStatus.READY, cells=cells)

    @staticmethod
    def _cell(entry: AllocationEntry, outcome) -> HeatmapCell:
        if isinstance(outcome, BaseException):
            logger.error(f"Change lookup for {entry.symbol} failed: {outcome}")
            outcome = ChangeOutcome(failure=FailureReason.UPSTREAM)
        return HeatmapCell(
            symbol=entry.symbol,
            allocation=entry.allocation,
            change_percent=outcome.value,
            failure=outcome.failure,
            synthetic=outcome.synthetic,
        )
