"""Synthetic price history used when real candles are unavailable."""
import random
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from portfolio_backend.config import simulation_config
from portfolio_backend.domain.entities import PricePoint, PriceSeries


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SyntheticSeriesGenerator:
    """Daily random walk anchored at a known price.

    Each day moves by a uniform delta in [-step, step) and never drops
    below ``min_price``. Only the shape is deterministic: length, daily
    spacing and the floor.
    """

    def __init__(
        self,
        step: float = None,
        min_price: float = None,
        rng: Optional[random.Random] = None,
        now: Callable[[], datetime] = _utc_now,
    ):
        self.step = step if step is not None else simulation_config.RANDOM_WALK_STEP
        self.min_price = min_price if min_price is not None else simulation_config.MIN_PRICE
        self._rng = rng or random.Random()
        self._now = now

    def generate(
        self,
        window_days: int,
        anchor_price: float = None,
        symbol: str = "",
    ) -> PriceSeries:
        """Return ``window_days + 1`` points from ``window_days`` ago through today."""
        price = anchor_price if anchor_price else simulation_config.FALLBACK_ANCHOR_PRICE
        today = self._now().replace(hour=0, minute=0, second=0, microsecond=0)

        points = []
        for days_ago in range(max(window_days, 0), -1, -1):
            price += (self._rng.random() - 0.5) * 2 * self.step
            if price < self.min_price:
                price = self.min_price
            points.append(PricePoint(timestamp=today - timedelta(days=days_ago), value=price))

        return PriceSeries(symbol=symbol, points=points, synthetic=True)
