import asyncio
import sys
from typing import List

from portfolio_backend.config import finnhub_config
from portfolio_backend.domain.entities import (
    AllocationEntry,
    Asset,
    ChartStatus,
    PortfolioSnapshot,
    ValuationWindow,
)
from portfolio_backend.domain.exceptions import MarketDataError
from portfolio_backend.infrastructure.finnhub_client import FinnhubClient
from portfolio_backend.services.market_data_service import MarketDataService
from portfolio_backend.services.valuation_service import PortfolioValuationEngine


def parse_allocations(args: List[str]) -> List[AllocationEntry]:
    """Parse SYMBOL:PERCENT pairs, e.g. AAPL:60 MSFT:40."""
    entries: List[AllocationEntry] = []
    seen: set = set()
    for arg in args:
        symbol, _, allocation = arg.partition(":")
        symbol = symbol.strip().upper()
        if not symbol or symbol in seen:
            continue
        seen.add(symbol)
        entries.append(
            AllocationEntry(asset=Asset(symbol=symbol), allocation=float(allocation or 0))
        )
    return entries


def print_status(status: ChartStatus) -> None:
    if status == ChartStatus.UNCONFIGURED:
        print("  Please set FINNHUB_API_KEY")
    elif status == ChartStatus.EMPTY:
        print("  No historical data available. Your API plan may not support candle data.")


async def run_search(service: MarketDataService, query: str) -> None:
    results: List[Asset] = await service.search(query)
    print(f"\n  {'Symbol':<10} | {'Name':<50}")
    print(f"  {'-'*63}")
    for asset in results:
        print(f"  {asset.symbol:<10} | {asset.name:<50}")
    print(f"\n  {len(results)} results\n")


async def run_quote(service: MarketDataService, symbol: str) -> None:
    try:
        asset: Asset = await service.quote(symbol)
    except MarketDataError as e:
        print(f"Failed to fetch quote for {symbol}: {e}")
        return
    print(f"\n  {'Symbol':<10} | {'Price':<10} | {'Change':<10} | {'Change %':<8}")
    print(f"  {'-'*48}")
    print(
        f"  {asset.symbol:<10} | {asset.price:<10.2f} | {asset.change:<10.2f} | "
        f"{asset.change_percent:>7.2f}%\n"
    )


async def run_history(service: MarketDataService, symbol: str, days: int) -> None:
    result = await service.history(symbol, days)
    label: str = " (synthetic)" if result.series.synthetic else ""
    print(f"\n  {symbol.upper()} - {len(result.series.points)} points{label}")
    if result.failure:
        print(f"  Upstream: {result.failure.value}")
    print(f"  {'-'*40}")
    for point in result.series.points:
        print(f"  {point.timestamp.strftime('%Y-%m-%d %H:%M'):<18} | {point.value:>10.2f}")
    print()


async def run_simulation(
    engine: PortfolioValuationEngine, snapshot: PortfolioSnapshot, days: int, amount: float
) -> None:
    result = await engine.simulate_growth(snapshot, ValuationWindow(lookback_days=days), amount)
    print(f"\nGrowth of {amount:,.0f} over {days} days")
    print_status(result.status)
    for point in result.points:
        print(f"  {point.timestamp.strftime('%Y-%m-%d'):<12} | {point.total_value:>12,}")
    if result.points:
        first: int = result.points[0].total_value
        last: int = result.points[-1].total_value
        if first:
            print(f"\n  Change: {(last - first) / first * 100:.2f}%\n")


async def run_heatmap(engine: PortfolioValuationEngine, snapshot: PortfolioSnapshot, days: int) -> None:
    result = await engine.compute_heatmap(snapshot, days)
    print(f"\nChange over {days} days")
    print_status(result.status)
    print(f"  {'Symbol':<10} | {'Alloc %':<8} | {'Change %':<9}")
    print(f"  {'-'*34}")
    for cell in result.cells:
        marker: str = " *" if cell.synthetic else ""
        print(f"  {cell.symbol:<10} | {cell.allocation:<8.1f} | {cell.change_percent:>+8.2f}%{marker}")
    print()


def print_usage() -> None:
    print("Usage:")
    print("  python portfolio_cli.py --search QUERY                      # Symbol search")
    print("  python portfolio_cli.py --quote SYMBOL                      # Current quote")
    print("  python portfolio_cli.py --history SYMBOL DAYS               # Price history")
    print("  python portfolio_cli.py --simulate DAYS AMOUNT SYM:PCT ...  # Growth simulation")
    print("  python portfolio_cli.py --heatmap DAYS SYM:PCT ...          # Change per holding")
    print("\nExamples:")
    print("  python portfolio_cli.py --simulate 30 10000 AAPL:60 MSFT:40")
    print("  python portfolio_cli.py --heatmap 7 NVDA:50 AMD:50")


async def main(argv: List[str]) -> int:
    if len(argv) < 2 or argv[1] in ("--help", "-h"):
        print_usage()
        return 0

    cmd: str = argv[1]
    args: List[str] = argv[2:]
    api_key: str = finnhub_config.API_KEY

    client = FinnhubClient()
    client.connect()
    service = MarketDataService(client, api_key)
    engine = PortfolioValuationEngine(provider_factory=lambda key: MarketDataService(client, key))
    try:
        if cmd == "--search" and args:
            await run_search(service, " ".join(args))
        elif cmd == "--quote" and args:
            await run_quote(service, args[0])
        elif cmd == "--history" and len(args) >= 2:
            await run_history(service, args[0], int(args[1]))
        elif cmd == "--simulate" and len(args) >= 3:
            snapshot = PortfolioSnapshot(entries=tuple(parse_allocations(args[2:])), api_key=api_key)
            await run_simulation(engine, snapshot, int(args[0]), float(args[1]))
        elif cmd == "--heatmap" and len(args) >= 2:
            snapshot = PortfolioSnapshot(entries=tuple(parse_allocations(args[1:])), api_key=api_key)
            await run_heatmap(engine, snapshot, int(args[0]))
        else:
            print(f"Unknown option: {cmd}")
            print("Run with --help for usage information")
            return 1
    finally:
        await client.disconnect()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv)))
