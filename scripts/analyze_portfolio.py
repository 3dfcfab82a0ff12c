from pathlib import Path
import argparse
import asyncio
import json
import sys

# Ensure repo root is on sys.path.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio_dash.config import load_settings
from portfolio_dash.errors import ConfigError, InvalidHoldingError, PortfolioAggregationError
from portfolio_dash.gateway.client import PortfolioGateway
from portfolio_dash.logging import setup_logging
from portfolio_dash.pipeline.snapshot_views import dashboard_view
from portfolio_dash.session import DashboardSession


def _parse_holding(raw: str):
    ticker, sep, amount = raw.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected TICKER=AMOUNT, got {raw!r}")
    try:
        return ticker, float(amount)
    except ValueError:
        raise argparse.ArgumentTypeError(f"amount must be a number in {raw!r}")


async def _run(args) -> int:
    settings = load_settings()
    setup_logging(args.log_level or settings.log_level, settings.log_error_file)
    async with PortfolioGateway.from_settings(settings) as gateway:
        session = DashboardSession(
            gateway,
            ticker_concurrency=settings.ticker_concurrency,
            include_news=not args.no_news,
        )
        if args.market:
            await session.start()
        for ticker, amount in args.holdings:
            session.add_holding(ticker, amount)
        code = 0
        try:
            await session.analyze()
        except PortfolioAggregationError:
            code = 2
        view = dashboard_view(session.portfolio.view(), session.snapshot)
        view["notifications"] = [{"level": n.level, "message": n.message} for n in session.drain_notifications()]
        print(json.dumps(view, indent=2, default=str))
        return code


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Analyze a hypothetical portfolio and print the dashboard view as JSON.")
    ap.add_argument("holdings", nargs="+", type=_parse_holding, metavar="TICKER=AMOUNT")
    ap.add_argument("--market", action="store_true", help="Also load daily insights, anomalies and macro series.")
    ap.add_argument("--no-news", action="store_true", help="Skip news and AI sentiment in security details.")
    ap.add_argument("--log-level", default=None)
    args = ap.parse_args(argv)
    try:
        return asyncio.run(_run(args))
    except ConfigError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 1
    except InvalidHoldingError as e:
        print(f"invalid holding: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
