"""Current holdings and provider credential for one session."""
from typing import List, Optional
import logging

from portfolio_backend.config import finnhub_config
from portfolio_backend.domain.entities import AllocationEntry, Asset, PortfolioSnapshot

logger = logging.getLogger(__name__)


class PortfolioState:
    """In-memory allocation set plus API credential.

    Symbols are unique: adding one that is already held is a no-op. The
    engine never reads this directly; it receives a ``snapshot()``.
    """

    def __init__(self, api_key: Optional[str] = None):
        self._items: List[AllocationEntry] = []
        self._api_key: str = finnhub_config.API_KEY if api_key is None else api_key

    @property
    def items(self) -> List[AllocationEntry]:
        return list(self._items)

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def total_allocation(self) -> float:
        return sum(item.allocation for item in self._items)

    def set_api_key(self, api_key: str) -> None:
        self._api_key = (api_key or "").strip()
        logger.info(f"API key {'updated' if self._api_key else 'cleared'}")

    def get_item(self, symbol: str) -> Optional[AllocationEntry]:
        symbol = symbol.upper()
        for item in self._items:
            if item.symbol == symbol:
                return item
        return None

    def add_item(self, asset: Asset, allocation: float) -> bool:
        """Add a holding. Returns False if the symbol is already held."""
        if self.get_item(asset.symbol) is not None:
            return False
        self._items.append(AllocationEntry(asset=asset, allocation=allocation))
        return True

    def remove_item(self, symbol: str) -> bool:
        symbol = symbol.upper()
        before = len(self._items)
        self._items = [item for item in self._items if item.symbol != symbol]
        return len(self._items) != before

    def update_allocation(self, symbol: str, allocation: float) -> bool:
        symbol = symbol.upper()
        updated = False
        for index, item in enumerate(self._items):
            if item.symbol == symbol:
                self._items[index] = AllocationEntry(asset=item.asset, allocation=allocation)
                updated = True
        return updated

    def clear(self) -> None:
        self._items = []

    def snapshot(self) -> PortfolioSnapshot:
        return PortfolioSnapshot(entries=tuple(self._items), api_key=self._api_key)
