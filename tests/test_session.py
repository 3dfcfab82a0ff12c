import asyncio
import unittest

from fakes import FakeGateway
from portfolio_dash.errors import InvalidHoldingError, PortfolioAggregationError
from portfolio_dash.session import DashboardSession


def _messages(session):
    return [(n.level, n.message) for n in session.drain_notifications()]


class SessionHoldingsTests(unittest.TestCase):
    def test_add_and_remove_notify(self):
        session = DashboardSession(FakeGateway())
        session.add_holding("aapl", 1000)
        session.remove_holding("AAPL")
        self.assertEqual(len(session.portfolio), 0)
        self.assertEqual(
            _messages(session),
            [("success", "Added AAPL to portfolio"), ("success", "Removed AAPL from portfolio")],
        )

    def test_invalid_holding(self):
        session = DashboardSession(FakeGateway())
        with self.assertRaises(InvalidHoldingError):
            session.add_holding("AAPL", -1)
        self.assertEqual(_messages(session), [("error", "Please enter valid ticker and amount")])

    def test_remove_missing_is_silent(self):
        session = DashboardSession(FakeGateway())
        self.assertFalse(session.remove_holding("ZZZZ"))
        self.assertEqual(_messages(session), [])

    def test_notification_buffer_is_bounded(self):
        session = DashboardSession(FakeGateway(), notification_buffer=2)
        for ticker in ("A", "B", "C"):
            session.add_holding(ticker, 1)
        self.assertEqual([m for _, m in _messages(session)], ["Added B to portfolio", "Added C to portfolio"])


class SessionAnalysisTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.gateway = FakeGateway()
        self.session = DashboardSession(self.gateway)

    async def test_start_loads_market_once(self):
        self.assertTrue(await self.session.start())
        self.assertTrue(await self.session.start())
        self.assertEqual(len([c for c in self.gateway.calls if c[0] == "insights"]), 1)
        self.assertEqual(self.session.snapshot.anomalies[0].ticker, "TSLA")

    async def test_start_failure_notifies(self):
        self.gateway.fail("series")
        self.assertFalse(await self.session.start())
        self.assertFalse(self.session.market_loaded)
        self.assertEqual(_messages(self.session), [("error", "Failed to fetch market data")])

    async def test_analyze_empty_portfolio(self):
        self.assertIsNone(await self.session.analyze())
        self.assertEqual(self.gateway.calls, [])
        self.assertEqual(_messages(self.session), [("error", "Please add at least one security before analyzing")])

    async def test_partial_ticker_failure_reported_as_success(self):
        self.session.add_holding("AAPL", 1000)
        self.session.add_holding("ZZZZ", 500)
        self.gateway.fail("details", "ZZZZ")
        self.session.drain_notifications()

        snap = await self.session.analyze()

        self.assertIs(snap, self.session.snapshot)
        self.assertEqual(list(snap.securities), ["AAPL"])
        self.assertEqual(
            _messages(self.session),
            [("error", "Failed to fetch data for ZZZZ"), ("success", "Portfolio data updated successfully")],
        )

    async def test_portfolio_failure_keeps_prior_snapshot(self):
        self.session.add_holding("AAPL", 1000)
        before = await self.session.analyze()
        self.session.drain_notifications()
        self.gateway.fail("score")

        with self.assertRaises(PortfolioAggregationError):
            await self.session.analyze()

        self.assertIs(self.session.snapshot, before)
        self.assertEqual(_messages(self.session), [("error", "Failed to fetch portfolio data")])

    async def test_refresh_after_removing_last_holding_clears(self):
        await self.session.start()
        self.session.add_holding("AAPL", 1000)
        await self.session.analyze()
        self.session.remove_holding("AAPL")
        snap = await self.session.refresh()
        self.assertFalse(snap.has_analysis)
        self.assertEqual(dict(snap.securities), {})
        self.assertEqual(len(snap.insights), 1)

    async def test_stale_refresh_is_discarded(self):
        self.session.add_holding("AAPL", 1000)
        gate = asyncio.Event()
        self.gateway.gates[("performance", None)] = gate
        first = asyncio.create_task(self.session.analyze())
        while ("performance", None) not in self.gateway.calls:
            await asyncio.sleep(0)

        # Second refresh finishes first, then the first one is released.
        del self.gateway.gates[("performance", None)]
        self.session.add_holding("MSFT", 500)
        second = await self.session.analyze()
        gate.set()
        stale = await first

        self.assertIsNone(stale)
        self.assertIs(self.session.snapshot, second)
        self.assertEqual(list(self.session.snapshot.securities), ["AAPL", "MSFT"])
        self.assertEqual(self.session.snapshot.generation, 2)

    async def test_stale_failure_is_silent(self):
        self.session.add_holding("AAPL", 1000)
        gate = asyncio.Event()
        self.gateway.gates[("score", None)] = gate
        self.gateway.fail("score")
        first = asyncio.create_task(self.session.analyze())
        while ("score", None) not in self.gateway.calls:
            await asyncio.sleep(0)

        del self.gateway.gates[("score", None)]
        del self.gateway.failures[("score", None)]
        await self.session.analyze()
        self.session.drain_notifications()
        self.gateway.fail("score")
        gate.set()

        self.assertIsNone(await first)
        self.assertEqual(_messages(self.session), [])
        self.assertTrue(self.session.snapshot.has_analysis)


if __name__ == "__main__":
    unittest.main()
