"""Reconcile per-asset price series onto one date axis."""
from datetime import datetime
from typing import Dict, List, Mapping

from pydantic import BaseModel, Field

from portfolio_backend.domain.entities import PriceSeries


class AlignedSeries(BaseModel):
    """Canonical date axis plus each symbol's price at every axis position."""
    axis: List[datetime] = Field(default_factory=list)
    prices: Dict[str, List[float]] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.axis

    def price_at(self, symbol: str, index: int) -> float:
        return self.prices.get(symbol, [])[index]


class SeriesAligner:
    """Positional alignment against the first series' calendar.

    The first symbol in mapping order supplies the axis. Every other series
    is read by array index, not by timestamp, so a shorter series yields
    price 0 past its end. This assumes all series share one calendar.
    """

    def align(self, series_by_symbol: Mapping[str, PriceSeries]) -> AlignedSeries:
        if not series_by_symbol:
            return AlignedSeries()

        canonical = next(iter(series_by_symbol.values()))
        axis = canonical.timestamps

        prices: Dict[str, List[float]] = {}
        for symbol, series in series_by_symbol.items():
            values = series.values
            prices[symbol] = [
                values[i] if i < len(values) else 0.0
                for i in range(len(axis))
            ]
        return AlignedSeries(axis=axis, prices=prices)
