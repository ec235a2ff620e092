from __future__ import annotations

import unittest

from dailydraw.config import WEI_PER_UNIT, LotteryConfig
from dailydraw.db.engine import get_sessionmaker, make_engine
from dailydraw.errors import (
    DrawingAlreadyCompleted,
    DrawingNotReady,
    DrawingWindowMissed,
    InsufficientReserve,
    LotteryNotInitialized,
    NoEntriesForPeriod,
    ReentrantCallError,
    TooManyWinners,
    TransferRejected,
)
from dailydraw.ledger import SqlLedger
from dailydraw.models import Base, LotteryState
from dailydraw.prize_draw import count_matches
from dailydraw.service import LotteryService

from lottery_fixtures import START, CountingEntropy, FakeClock, LotteryTestCase

POT = 27 * 10**14


class DrawingTimingTests(LotteryTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.fund("alice")
        self.enter("alice", digits={"alice": "123456"})

    def test_drawing_before_period_end_is_not_ready(self) -> None:
        self.close_period(offset=-1)
        with self.assertRaises(DrawingNotReady):
            self.draw("123456")
        self.assertEqual(self.service.drawing_status(START), "pending")

    def test_drawing_after_window_is_missed(self) -> None:
        self.close_period(offset=self.config.drawing_window + 1)
        with self.assertRaises(DrawingWindowMissed):
            self.draw("123456")
        self.assertEqual(self.service.drawing_status(START), "pending")
        self.assertEqual(self.service.current_jackpot(), self.config.jackpot_part)

    def test_drawing_at_window_edge_settles(self) -> None:
        self.close_period(offset=self.config.drawing_window)
        self.draw("999999")
        self.assertEqual(self.service.drawing_status(START), "completed")

    def test_second_drawing_for_same_boundary_changes_nothing(self) -> None:
        self.close_period()
        self.draw("999999")
        state_before = self.service.state()
        events_before = self.event_names()

        with self.assertRaises(DrawingNotReady):
            self.draw("999999")

        state_after = self.service.state()
        self.assertEqual(state_after.jackpot, state_before.jackpot)
        self.assertEqual(state_after.next_drawing_time, state_before.next_drawing_time)
        self.assertEqual(self.event_names(), events_before)

    def test_cursor_pointing_at_settled_period_is_refused(self) -> None:
        self.close_period()
        self.draw("999999")
        with self.Session.begin() as session:
            LotteryState.require(session).next_drawing_time = (
                START + self.config.drawing_interval
            )
        entropy_calls = self.entropy.calls

        with self.assertRaises(DrawingAlreadyCompleted):
            self.draw("999999")
        self.assertEqual(self.entropy.calls, entropy_calls)
        self.assertEqual(len(self.service.events("DrawingComplete")), 1)


class EmptyPeriodTests(LotteryTestCase):
    def test_period_without_entries_cannot_be_drawn(self) -> None:
        self.close_period()
        with self.assertRaises(NoEntriesForPeriod):
            self.draw("123456")
        self.assertIsNone(self.service.drawing(START))


class UninitializedTests(unittest.TestCase):
    def test_operations_require_initialization(self) -> None:
        engine = make_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(engine)
        service = LotteryService(
            get_sessionmaker(engine),
            LotteryConfig(),
            ledger=SqlLedger(),
            clock=FakeClock(START),
            entropy=CountingEntropy(),
        )
        with self.assertRaises(LotteryNotInitialized):
            service.conduct_drawing()
        with self.assertRaises(LotteryNotInitialized):
            service.submit_entry("alice", 10**15)
        engine.dispose()


class SettlementTests(LotteryTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.fund("alice", "bob", "carol")
        self.enter(
            "alice", "bob", "carol",
            digits={"alice": "123456", "bob": "123450", "carol": "abcdef"},
        )
        self.close_period()

    def test_top_and_second_tier_are_paid_from_pot(self) -> None:
        settlement = self.draw("123456")
        drawing = settlement.drawing

        self.assertEqual(drawing.pot, POT)
        self.assertEqual(drawing.winning_digits, "123456")
        self.assertTrue(drawing.has_jackpot_winner)
        self.assertIsNone(settlement.rollover)
        self.assertEqual(self.service.drawing_status(START), "completed")

        top = self.service.winners(START, 6)
        second = self.service.winners(START, 5)
        self.assertEqual([w.account for w in top], ["alice"])
        self.assertEqual([w.account for w in second], ["bob"])
        self.assertEqual(top[0].amount, POT * 50 // 100)
        self.assertEqual(second[0].amount, POT * 25 // 100)
        self.assertEqual(self.service.winners(START, 4), [])

        remaining = POT - POT * 50 // 100 - POT * 25 // 100
        self.assertEqual(self.service.current_jackpot(), remaining)
        self.assertEqual(
            self.service.balance_of("alice"),
            WEI_PER_UNIT - self.config.entry_fee + POT * 50 // 100,
        )
        self.assertEqual(
            self.service.next_drawing_time(), START + 2 * self.config.drawing_interval
        )
        self.assertEqual(self.service.state().last_outcome_digest, drawing.outcome_digest)

        awarded = self.service.events("PrizeAwarded")
        self.assertEqual(
            [(e.payload["account"], e.payload["match_count"]) for e in awarded],
            [("alice", 6), ("bob", 5)],
        )
        self.assertTrue(all(e.payload["is_proportional_tier"] for e in awarded))
        complete = self.service.events("DrawingComplete")
        self.assertEqual(len(complete), 1)
        self.assertEqual(complete[0].payload["total_pot"], POT)
        self.assertEqual(complete[0].payload["winning_digits"], "123456")
        self.assertEqual(self.service.events("JackpotRollover"), [])

    def test_no_top_tier_winner_rolls_jackpot_over(self) -> None:
        settlement = self.draw("999999")

        self.assertFalse(settlement.drawing.has_jackpot_winner)
        self.assertEqual(settlement.rollover, POT)
        self.assertEqual(self.service.current_jackpot(), POT)
        rollover = self.service.events("JackpotRollover")
        self.assertEqual(len(rollover), 1)
        self.assertEqual(rollover[0].payload["amount"], POT)
        self.assertEqual(rollover[0].period_key, START)
        self.assertEqual(self.service.drawing_status(START), "completed")

    def test_winners_match_persisted_digits(self) -> None:
        settlement = self.draw("123456")
        digits = settlement.drawing.winning_digits
        for account in ("alice", "bob", "carol"):
            (entry,) = self.service.entry_history(account)
            matches = count_matches(entry.match_digest, digits)
            tier = self.config.prize_tiers.lookup(matches)
            winners = self.service.winners(START, matches)
            self.assertEqual(
                account in [w.account for w in winners], tier is not None, account
            )

    def test_rejecting_recipient_aborts_whole_settlement(self) -> None:
        with self.Session.begin() as session:
            self.ledger.open_account(session, "bob", accepts_transfers=False)

        with self.assertRaises(TransferRejected):
            self.draw("123456")

        self.assertEqual(self.service.drawing_status(START), "pending")
        self.assertEqual(self.service.current_jackpot(), POT)
        self.assertEqual(
            self.service.balance_of("alice"), WEI_PER_UNIT - self.config.entry_fee
        )
        self.assertEqual(self.service.events("PrizeAwarded"), [])
        self.assertEqual(self.service.next_drawing_time(), START + self.config.drawing_interval)

        # Once the recipient accepts again, the same boundary settles normally.
        with self.Session.begin() as session:
            self.ledger.open_account(session, "bob", accepts_transfers=True)
        self.draw("123456")
        self.assertEqual(self.service.drawing_status(START), "completed")

    def test_hook_raising_mid_payout_rolls_back_earlier_payouts(self) -> None:
        def refuse(source, destination, amount):
            raise RuntimeError("no thanks")

        self.ledger.set_receiver_hook("bob", refuse)
        with self.assertRaises(TransferRejected):
            self.draw("123456")
        # alice is paid before bob; her payout must be undone as well.
        self.assertEqual(
            self.service.balance_of("alice"), WEI_PER_UNIT - self.config.entry_fee
        )
        self.assertIsNone(self.service.drawing(START))

    def test_reentrant_call_from_recipient_is_rejected(self) -> None:
        seen = []

        def reenter(source, destination, amount):
            try:
                self.service.conduct_drawing()
            except ReentrantCallError as exc:
                seen.append(exc)
                raise

        self.ledger.set_receiver_hook("alice", reenter)
        with self.assertRaises(TransferRejected):
            self.draw("123456")
        self.assertEqual(len(seen), 1)
        self.assertEqual(self.service.drawing_status(START), "pending")

        self.ledger.set_receiver_hook("alice", None)
        self.draw("123456")
        self.assertEqual(self.service.drawing_status(START), "completed")


class ReserveGuardTests(LotteryTestCase):
    def make_config(self) -> LotteryConfig:
        # Every fee goes to the jackpot, so the reserve never grows on its own.
        return LotteryConfig(jackpot_share=100)

    def test_drawing_waits_for_reserve_top_up(self) -> None:
        self.fund("alice")
        self.fund("owner", amount=WEI_PER_UNIT)
        self.enter("alice", digits={"alice": "123456"})
        self.close_period()

        with self.assertRaises(InsufficientReserve):
            self.draw("999999")
        self.assertEqual(self.service.drawing_status(START), "pending")
        self.assertEqual(self.service.current_jackpot(), self.config.entry_fee)

        self.service.top_up_reserve("owner", self.config.entry_fee)
        self.draw("999999")
        self.assertEqual(self.service.drawing_status(START), "completed")


class FixedTierTests(LotteryTestCase):
    def test_fixed_tier_paid_from_reserve(self) -> None:
        self.fund("alice", "bob")
        self.fund("owner", amount=WEI_PER_UNIT)
        self.enter("alice", "bob", digits={"alice": "123fff", "bob": "eeeeee"})
        self.service.top_up_reserve("owner", 10**16)
        reserve_before = self.service.reserve_fund()
        self.close_period()

        self.draw("123456")

        (winner,) = self.service.winners(START, 3)
        self.assertEqual(winner.account, "alice")
        self.assertFalse(winner.proportional)
        self.assertEqual(winner.amount, 2 * 10**15)
        self.assertEqual(self.service.reserve_fund(), reserve_before - 2 * 10**15)
        self.assertEqual(self.service.current_jackpot(), 2 * self.config.jackpot_part)

    def test_fixed_tier_without_reserve_aborts(self) -> None:
        self.fund("alice", "bob")
        self.enter("alice", "bob", digits={"alice": "123fff", "bob": "eeeeee"})
        self.close_period()

        with self.assertRaises(InsufficientReserve):
            self.draw("123456")
        self.assertEqual(self.service.drawing_status(START), "pending")
        self.assertEqual(self.service.reserve_fund(), 2 * self.config.reserve_part)


class BatchingTests(LotteryTestCase):
    def test_participants_beyond_first_batch_are_scored(self) -> None:
        accounts = [f"player{i:03d}" for i in range(150)]
        self.fund(*accounts)
        digits = {account: "abcdef" for account in accounts}
        digits["player149"] = "123456"
        self.enter(*accounts, digits=digits)
        self.close_period()

        settlement = self.draw("123456")

        pot = 150 * self.config.jackpot_part
        self.assertEqual(settlement.drawing.entry_count, 150)
        (winner,) = self.service.winners(START, 6)
        self.assertEqual(winner.account, "player149")
        self.assertEqual(winner.amount, pot * 50 // 100)
        self.assertEqual(len(self.service.drawing(START).winners), 1)


class SmallBatchTests(LotteryTestCase):
    def make_config(self) -> LotteryConfig:
        return LotteryConfig(batch_size=7)

    def test_batch_size_does_not_change_winners(self) -> None:
        accounts = [f"p{i:02d}" for i in range(20)]
        self.fund(*accounts)
        digits = {a: ("123456" if i % 5 == 0 else "abcdef") for i, a in enumerate(accounts)}
        self.enter(*accounts, digits=digits)
        self.close_period()

        self.draw("123456")

        winners = self.service.winners(START, 6)
        self.assertEqual([w.account for w in winners], ["p00", "p05", "p10", "p15"])
        self.assertEqual([w.position for w in winners], [0, 1, 2, 3])
        tier_prize = 20 * self.config.jackpot_part * 50 // 100
        self.assertEqual(sum(w.amount for w in winners), tier_prize)


class TierCapTests(LotteryTestCase):
    def make_config(self) -> LotteryConfig:
        return LotteryConfig(max_winners_per_tier=2)

    def test_too_many_winners_aborts_settlement(self) -> None:
        accounts = ["alice", "bob", "carol"]
        self.fund(*accounts)
        self.enter(*accounts, digits={a: "123456" for a in accounts})
        self.close_period()

        with self.assertRaises(TooManyWinners):
            self.draw("123456")

        self.assertEqual(self.service.drawing_status(START), "pending")
        self.assertEqual(self.service.current_jackpot(), POT)
        for account in accounts:
            self.assertEqual(
                self.service.balance_of(account), WEI_PER_UNIT - self.config.entry_fee
            )
        self.assertEqual(self.service.events("PrizeAwarded"), [])


if __name__ == "__main__":
    unittest.main()
