from __future__ import annotations

import unittest

from dailydraw.errors import InsufficientReserve, PrizeBelowMinimum
from dailydraw.models import Drawing, DrawingWinner, LotteryState
from dailydraw.prize_draw import PrizeDistributor, ReserveManager, split_proportional

from lottery_fixtures import START, LotteryTestCase


class SplitProportionalTests(unittest.TestCase):
    def test_even_split(self) -> None:
        self.assertEqual(split_proportional(15 * 10**15, 3), [5 * 10**15] * 3)

    def test_last_winner_absorbs_remainder(self) -> None:
        amounts = split_proportional(10**15 + 1, 3)
        self.assertEqual(amounts[:2], [333333333333333, 333333333333333])
        self.assertEqual(amounts[2], 333333333333335)
        self.assertEqual(sum(amounts), 10**15 + 1)

    def test_single_winner_takes_all(self) -> None:
        self.assertEqual(split_proportional(7, 1), [7])

    def test_invalid_arguments(self) -> None:
        with self.assertRaises(ValueError):
            split_proportional(10, 0)
        with self.assertRaises(ValueError):
            split_proportional(-1, 2)


class PrizeDistributorTests(LotteryTestCase):
    def _prepare(self, session, *, jackpot: int, reserve: int = 0):
        state = LotteryState.require(session, for_update=True)
        state.jackpot = jackpot
        state.reserve_fund = reserve
        self.ledger.deposit(session, self.config.treasury_account, jackpot + reserve + 1)
        drawing = Drawing(
            period_key=START,
            outcome_digest="0" * 64,
            winning_digits="000000",
            pot=jackpot,
            entry_count=3,
        )
        session.add(drawing)
        session.flush()
        return state, drawing

    def _winners(self, drawing, tier, accounts, *, proportional=True):
        winners = [
            DrawingWinner(
                required_matches=tier,
                position=i,
                account=account,
                match_count=tier,
                proportional=proportional,
            )
            for i, account in enumerate(accounts)
        ]
        drawing.winners.extend(winners)
        return winners

    def test_pot_split_evenly_across_tier(self) -> None:
        with self.Session() as session:
            pot = 15 * 10**16
            state, drawing = self._prepare(session, jackpot=pot, reserve=pot)
            winners = self._winners(drawing, 4, ["alice", "bob", "carol"])

            payouts = PrizeDistributor(session, self.config, ledger=self.ledger).distribute(
                state, drawing, {4: winners}
            )

            self.assertEqual([w.amount for w in winners], [5 * 10**15] * 3)
            self.assertEqual(payouts[0].total, 15 * 10**15)
            self.assertEqual(payouts[0].winner_count, 3)
            self.assertEqual(state.jackpot, pot - 15 * 10**15)
            for account in ("alice", "bob", "carol"):
                self.assertEqual(self.ledger.balance_of(session, account), 5 * 10**15)

    def test_tiers_use_pot_snapshot_not_running_jackpot(self) -> None:
        with self.Session() as session:
            pot = 10**17
            state, drawing = self._prepare(session, jackpot=pot, reserve=pot)
            top = self._winners(drawing, 6, ["alice"])
            second = self._winners(drawing, 5, ["bob"])

            PrizeDistributor(session, self.config, ledger=self.ledger).distribute(
                state, drawing, {6: top, 5: second}
            )

            self.assertEqual(top[0].amount, pot // 2)
            self.assertEqual(second[0].amount, pot // 4)
            self.assertEqual(state.jackpot, pot - pot // 2 - pot // 4)

    def test_share_below_minimum_is_rejected(self) -> None:
        with self.Session() as session:
            state, drawing = self._prepare(session, jackpot=27 * 10**14, reserve=10**16)
            winners = self._winners(drawing, 4, ["alice", "bob", "carol"])

            with self.assertRaises(PrizeBelowMinimum):
                PrizeDistributor(session, self.config, ledger=self.ledger).distribute(
                    state, drawing, {4: winners}
                )
            self.assertEqual(self.ledger.balance_of(session, "alice"), 0)

    def test_fixed_tier_needs_reserve_for_every_winner(self) -> None:
        with self.Session() as session:
            state, drawing = self._prepare(session, jackpot=0, reserve=3 * 10**15)
            winners = self._winners(drawing, 3, ["alice", "bob"], proportional=False)

            with self.assertRaises(InsufficientReserve):
                PrizeDistributor(session, self.config, ledger=self.ledger).distribute(
                    state, drawing, {3: winners}
                )
            self.assertEqual(state.reserve_fund, 3 * 10**15)

    def test_fixed_tier_checks_reserve_ratio(self) -> None:
        with self.Session() as session:
            # 5% of the jackpot in reserve, below the 10% minimum.
            state, drawing = self._prepare(session, jackpot=10**18, reserve=5 * 10**16)
            winners = self._winners(drawing, 3, ["alice"], proportional=False)

            with self.assertRaises(InsufficientReserve):
                PrizeDistributor(session, self.config, ledger=self.ledger).distribute(
                    state, drawing, {3: winners}
                )


class ReserveManagerTests(LotteryTestCase):
    def test_required_reserve_uses_integer_division(self) -> None:
        with self.Session() as session:
            reserve = ReserveManager(session, self.config)
            self.assertEqual(reserve.required_reserve(27 * 10**14), 27 * 10**13)
            self.assertEqual(reserve.required_reserve(19), 1)
            self.assertEqual(reserve.required_reserve(0), 0)


if __name__ == "__main__":
    unittest.main()
