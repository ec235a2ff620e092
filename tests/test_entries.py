from __future__ import annotations

import unittest

from dailydraw.config import WEI_PER_UNIT, LotteryConfig
from dailydraw.errors import (
    CapacityError,
    DuplicateEntry,
    EntryCapReached,
    InvalidEntryFee,
    JackpotCapExceeded,
    SubmissionWindowClosed,
    TransferRejected,
)
from dailydraw.models import Entry

from lottery_fixtures import START, LotteryTestCase


class EntrySubmissionTests(LotteryTestCase):
    def test_three_entries_split_fees_between_jackpot_and_reserve(self) -> None:
        self.fund("alice", "bob", "carol")
        entries = self.enter("alice", "bob", "carol")

        self.assertEqual(self.service.current_jackpot(), 27 * 10**14)
        self.assertEqual(self.service.reserve_fund(), 3 * 10**14)
        self.assertEqual(self.service.participants(START), ["alice", "bob", "carol"])
        self.assertEqual(self.service.entry_count(START), 3)
        self.assertEqual(
            self.service.balance_of(self.config.treasury_account), 3 * self.config.entry_fee
        )
        self.assertEqual(
            self.service.balance_of("alice"), WEI_PER_UNIT - self.config.entry_fee
        )

        for entry in entries:
            self.assertEqual(entry.period_key, START)
            self.assertEqual(entry.timestamp, START)
            self.assertEqual(entry.sequence, 0)
            self.assertEqual(len(entry.seed), 64)
            self.assertEqual(entry.match_digest, entry.seed[-self.config.match_length :])

        submitted = self.service.events("EntrySubmitted")
        self.assertEqual([e.payload["account"] for e in submitted], ["alice", "bob", "carol"])
        self.assertEqual(submitted[0].payload["seed"], entries[0].seed)

    def test_seeds_differ_between_accounts(self) -> None:
        self.fund("alice", "bob")
        alice, bob = self.enter("alice", "bob")
        self.assertNotEqual(alice.seed, bob.seed)

    def test_wrong_fee_is_rejected_without_side_effects(self) -> None:
        self.fund("alice")
        with self.assertRaises(InvalidEntryFee):
            self.service.submit_entry("alice", self.config.entry_fee - 1)
        with self.assertRaises(InvalidEntryFee):
            self.service.submit_entry("alice", self.config.entry_fee + 1)

        self.assertEqual(self.service.current_jackpot(), 0)
        self.assertEqual(self.service.balance_of("alice"), WEI_PER_UNIT)
        self.assertEqual(self.service.entry_history("alice"), [])
        self.assertEqual(self.service.events("EntrySubmitted"), [])

    def test_second_entry_in_same_period_is_duplicate(self) -> None:
        self.fund("alice")
        self.enter("alice")
        self.clock.current += 60
        with self.assertRaises(DuplicateEntry):
            self.enter("alice")
        self.assertEqual(self.service.entry_count(START), 1)
        self.assertEqual(self.service.current_jackpot(), self.config.jackpot_part)

    def test_duplicate_is_detected_before_first_period_start(self) -> None:
        self.fund("alice")
        self.clock.current = START - 500
        self.enter("alice")
        self.clock.current += 10
        with self.assertRaises(DuplicateEntry):
            self.enter("alice")
        self.assertEqual(self.service.entry_count(START), 1)
        self.assertEqual(self.service.current_jackpot(), self.config.jackpot_part)
        self.assertEqual(len(self.service.entry_history("alice")), 1)

    def test_submissions_close_at_cutoff(self) -> None:
        self.fund("alice", "bob")
        cutoff = self.service.next_drawing_time() - self.config.entry_cutoff_time

        self.clock.current = cutoff - 1
        self.enter("alice")

        self.clock.current = cutoff
        with self.assertRaises(SubmissionWindowClosed):
            self.enter("bob")
        self.assertEqual(self.service.participants(START), ["alice"])

    def test_insufficient_balance_is_rejected(self) -> None:
        self.fund("alice", amount=self.config.entry_fee - 1)
        with self.assertRaises(TransferRejected):
            self.enter("alice")
        self.assertEqual(self.service.entry_history("alice"), [])
        self.assertEqual(self.service.entry_count(START), 0)

    def test_history_is_unbounded_across_periods(self) -> None:
        self.fund("alice")
        for _ in range(3):
            self.enter("alice")
            # Nobody else entered, so the owner can drop the period without a drawing.
            self.close_period(offset=self.config.drawing_window + 1)
            self.service.skip_period("owner")
            self.clock.current = self.period_key

        history = self.service.entry_history("alice")
        self.assertEqual([e.sequence for e in history], [0, 1, 2])
        self.assertEqual(
            [e.period_key for e in history],
            [START + i * self.config.drawing_interval for i in range(3)],
        )
        self.assertEqual(len({e.seed for e in history}), 3)


class EntryCapTests(LotteryTestCase):
    def make_config(self) -> LotteryConfig:
        return LotteryConfig(max_entries_per_drawing=2)

    def test_cap_rejects_further_entries(self) -> None:
        self.fund("alice", "bob", "carol")
        self.enter("alice", "bob")
        with self.assertRaises(EntryCapReached) as ctx:
            self.enter("carol")
        self.assertIsInstance(ctx.exception, CapacityError)
        self.assertEqual(self.service.entry_count(START), 2)
        self.assertEqual(self.service.balance_of("carol"), WEI_PER_UNIT)


class JackpotCapTests(LotteryTestCase):
    def make_config(self) -> LotteryConfig:
        return LotteryConfig(max_jackpot=18 * 10**14)

    def test_entry_that_would_exceed_cap_is_rejected(self) -> None:
        self.fund("alice", "bob", "carol")
        self.enter("alice", "bob")
        self.assertEqual(self.service.current_jackpot(), 18 * 10**14)

        with self.assertRaises(JackpotCapExceeded):
            self.enter("carol")
        self.assertEqual(self.service.current_jackpot(), 18 * 10**14)
        self.assertEqual(self.service.reserve_fund(), 2 * 10**14)
        self.assertEqual(self.service.participants(START), ["alice", "bob"])


class EntryModelTests(LotteryTestCase):
    def test_for_period_groups_entries_by_account(self) -> None:
        self.fund("alice", "bob")
        self.enter("alice", "bob")
        with self.Session() as session:
            grouped = Entry.for_period(session, START, ["alice", "bob", "zed"])
        self.assertEqual(len(grouped["alice"]), 1)
        self.assertEqual(len(grouped["bob"]), 1)
        self.assertEqual(grouped["zed"], [])


if __name__ == "__main__":
    unittest.main()
