import asyncio
import unittest

from fakes import FakeGateway, unreachable
from portfolio_dash.errors import PortfolioAggregationError, ResponseError
from portfolio_dash.pipeline.aggregator import AggregationEngine
from portfolio_dash.pipeline.snapshots import MarketOverview, Snapshot


class _InFlightGateway(FakeGateway):
    """Counts per-ticker requests that have started but not returned."""

    def __init__(self):
        super().__init__()
        self.in_flight = 0
        self.peak = 0

    async def _call(self, method, key=None):
        if key is None:
            return await super()._call(method, key)
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            if method != "details":
                for _ in range(5):
                    await asyncio.sleep(0)
            return await super()._call(method, key)
        finally:
            self.in_flight -= 1


class AggregationEngineTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.gateway = FakeGateway()
        self.engine = AggregationEngine(self.gateway)

    async def test_empty_portfolio_clears_analysis_keeps_market(self):
        base = Snapshot.empty().with_market(MarketOverview(insights=tuple(self.gateway.insights)))
        snap = await self.engine.refresh_portfolio_analysis({}, base=base, generation=3)
        self.assertIsNone(snap.performance)
        self.assertIsNone(snap.score)
        self.assertEqual(dict(snap.securities), {})
        self.assertEqual(snap.insights, base.insights)
        self.assertEqual(snap.generation, 3)
        self.assertEqual(self.gateway.calls, [])

    async def test_full_success(self):
        snap = await self.engine.refresh_portfolio_analysis({"AAPL": 1000.0, "MSFT": 500.0}, generation=1)
        self.assertEqual(snap.performance.returns, 12.5)
        self.assertEqual(snap.score.portfolio_score, 720.0)
        self.assertEqual(snap.assessment.assessment, "Concentrated in large-cap tech.")
        self.assertEqual(list(snap.securities), ["AAPL", "MSFT"])
        self.assertEqual(snap.failed_tickers, ())
        history = [p.date for p in snap.securities["AAPL"].history]
        self.assertEqual(history, sorted(history))
        self.assertTrue(snap.has_analysis)

    async def test_failed_ticker_is_omitted_not_fatal(self):
        self.gateway.fail("details", "ZZZZ")
        snap = await self.engine.refresh_portfolio_analysis({"AAPL": 1000.0, "ZZZZ": 500.0})
        self.assertEqual(list(snap.securities), ["AAPL"])
        self.assertEqual(snap.failed_tickers, ("ZZZZ",))
        self.assertIsNotNone(snap.performance)

    async def test_every_ticker_failing_still_succeeds(self):
        self.gateway.fail("history", exc=unreachable())
        snap = await self.engine.refresh_portfolio_analysis({"AAPL": 1.0, "MSFT": 1.0})
        self.assertEqual(dict(snap.securities), {})
        self.assertEqual(snap.failed_tickers, ("AAPL", "MSFT"))

    async def test_failing_ticker_does_not_block_others(self):
        gate = asyncio.Event()
        self.gateway.gates[("details", "SLOW")] = gate
        self.gateway.fail("details", "BAD")

        task = asyncio.create_task(self.engine.refresh_portfolio_analysis({"BAD": 1.0, "SLOW": 1.0, "AAPL": 1.0}))
        for _ in range(50):
            await asyncio.sleep(0)
        # Other bundles were issued while SLOW is still pending.
        self.assertIn(("details", "AAPL"), self.gateway.calls)
        self.assertFalse(task.done())
        gate.set()
        snap = await task
        self.assertEqual(list(snap.securities), ["SLOW", "AAPL"])
        self.assertEqual(snap.failed_tickers, ("BAD",))

    async def test_portfolio_batch_failure_raises(self):
        self.gateway.fail("score")
        with self.assertRaises(PortfolioAggregationError) as ctx:
            await self.engine.refresh_portfolio_analysis({"AAPL": 1000.0})
        self.assertIsInstance(ctx.exception.cause, ResponseError)
        self.assertIs(ctx.exception.__cause__, ctx.exception.cause)
        # Per-ticker work only starts after the portfolio batch succeeds.
        self.assertFalse(any(method == "details" for method, _ in self.gateway.calls))

    async def test_ticker_concurrency_limit(self):
        engine = AggregationEngine(self.gateway, ticker_concurrency=1)
        snap = await engine.refresh_portfolio_analysis({"A": 1.0, "B": 1.0, "C": 1.0})
        self.assertEqual(list(snap.securities), ["A", "B", "C"])

    async def test_failed_bundle_keeps_slot_until_settled(self):
        gateway = _InFlightGateway()
        gateway.fail("details")
        engine = AggregationEngine(gateway, ticker_concurrency=1)
        snap = await engine.refresh_portfolio_analysis({"A": 1.0, "B": 1.0, "C": 1.0})
        self.assertEqual(snap.failed_tickers, ("A", "B", "C"))
        # One bundle at a time means at most its three requests in flight.
        self.assertLessEqual(gateway.peak, 3)
        self.assertEqual(gateway.in_flight, 0)

    async def test_default_base_snapshot(self):
        snap = await self.engine.refresh_portfolio_analysis({})
        self.assertFalse(snap.has_analysis)
        self.assertEqual(dict(snap.securities), {})
        self.assertEqual(snap.generation, 0)
        self.assertIsNotNone(snap.built_at)

    async def test_include_news_passed_through(self):
        engine = AggregationEngine(self.gateway, include_news=False)
        snap = await engine.refresh_portfolio_analysis({"AAPL": 1.0})
        self.assertEqual(snap.securities["AAPL"].details.news, [])


if __name__ == "__main__":
    unittest.main()
