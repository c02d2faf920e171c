"""Per-chart request lifecycle: latest request wins."""
from typing import Annotated, Awaitable, Callable, Optional, Set, Union
import asyncio
import logging

from pydantic import BaseModel, Field

from portfolio_backend.domain.entities import ChartStatus, GrowthResult, HeatmapResult

logger = logging.getLogger(__name__)

ChartResult = Annotated[Union[GrowthResult, HeatmapResult], Field(discriminator="kind")]


class ChartView(BaseModel):
    """What a chart shows: its state, data and the request that produced it."""
    chart: str
    status: ChartStatus
    generation: int
    result: Optional[ChartResult] = None
    superseded: bool = False


class ChartSession:
    """Tracks one chart through Idle -> Loading -> Ready | Empty | Unconfigured.

    Every request gets a new generation number. A result is published only
    if no newer request started while it was computing; otherwise it is
    returned to its caller marked ``superseded`` and the visible view is
    left alone.
    """

    def __init__(self, name: str):
        self.name = name
        self._generation = 0
        self._view = ChartView(chart=name, status=ChartStatus.IDLE, generation=0)
        self._callbacks: Set[Callable] = set()

    @property
    def view(self) -> ChartView:
        return self._view

    @property
    def generation(self) -> int:
        return self._generation

    def register_callback(self, callback: Callable) -> None:
        """Register a listener for published views."""
        self._callbacks.add(callback)

    def unregister_callback(self, callback: Callable) -> None:
        """Unregister a view listener."""
        self._callbacks.discard(callback)

    async def run(self, compute: Callable[[], Awaitable[ChartResult]]) -> ChartView:
        """Start a request and publish its result unless a newer one started."""
        self._generation += 1
        generation = self._generation
        await self._publish(
            ChartView(chart=self.name, status=ChartStatus.LOADING, generation=generation)
        )

        try:
            result = await compute()
            view = ChartView(
                chart=self.name, status=result.status, generation=generation, result=result
            )
        except Exception as e:
            logger.error(f"Error computing {self.name} chart: {e}")
            view = ChartView(chart=self.name, status=ChartStatus.EMPTY, generation=generation)

        if generation != self._generation:
            logger.debug(
                f"Discarding stale {self.name} result "
                f"(generation {generation}, current {self._generation})"
            )
            return view.model_copy(update={"superseded": True})

        await self._publish(view)
        return view

    async def _publish(self, view: ChartView) -> None:
        self._view = view
        for callback in list(self._callbacks):
            try:
                if asyncio.iscoroutinefunction(callback):
                    await callback(view)
                else:
                    callback(view)
            except Exception as e:
                logger.error(f"Error in {self.name} chart callback: {e}")
