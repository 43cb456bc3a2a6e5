"""
Tests for AuctionEngine bidding rules.

This test suite validates:
1. Construction and duration validation
2. Bid acceptance, the 5% minimum increment and its floor rounding
3. The anti-snipe deadline reset
4. High-bid tracking (including the latest-increment quirk)
5. Rejection of direct payments and atomicity of failed bids

Run with: pytest english_auction/tests/test_engine_bidding.py
"""

import unittest

import pytest

from english_auction.core.engine import AuctionEngine, AuctionPhase, minimum_bid
from english_auction.core.events import NewBid
from english_auction.core.exceptions import (
    AuctionClosed,
    BidTooLow,
    DirectPaymentRejected,
    InvalidDuration,
    TransferFailure,
    ZeroBid,
)
from english_auction.infrastructure.accounts import ZERO_ADDRESS, eth_to_wei
from english_auction.infrastructure.chain import Chain

GENESIS = 1_700_000_000
ETH = eth_to_wei(1)


class AuctionTestCase(unittest.TestCase):
    """Fresh 60 minute auction with three funded bidders."""

    duration_minutes = 60

    def setUp(self):
        self.chain = Chain(genesis_time=GENESIS)
        self.owner = self.chain.new_address("owner")
        self.alice = self.chain.new_address("alice")
        self.bob = self.chain.new_address("bob")
        self.carol = self.chain.new_address("carol")
        for account in (self.alice, self.bob, self.carol):
            self.chain.fund(account, 10 * ETH)
        self.auction = AuctionEngine(self.chain, self.owner, self.duration_minutes)

    def set_time_before_end(self, seconds):
        self.chain.clock.set(self.auction.end_time - seconds)


class TestConstruction(AuctionTestCase):

    def test_initial_state(self):
        """A new auction is open with no leader."""
        self.assertEqual(self.auction.owner, self.owner)
        self.assertEqual(self.auction.end_time, GENESIS + 3600)
        self.assertFalse(self.auction.ended)
        self.assertEqual(self.auction.highest_bid, 0)
        self.assertEqual(self.auction.highest_bidder, ZERO_ADDRESS)
        self.assertEqual(self.auction.phase(), AuctionPhase.OPEN)
        self.assertEqual(self.auction.get_bids(), ([], []))
        self.assertEqual(self.auction.get_time_left(), 3600)
        print(f"\n✓ Auction {self.auction.address} open until {self.auction.end_time}")

    def test_invalid_durations(self):
        for duration in (0, -5, 1.5, "60", True):
            with self.assertRaises(InvalidDuration):
                AuctionEngine(self.chain, self.owner, duration)

    def test_owner_address_is_checksummed(self):
        auction = AuctionEngine(self.chain, self.owner.lower(), 1)
        self.assertEqual(auction.owner, self.owner)


class TestPlaceBid(AuctionTestCase):

    def test_first_bid_any_positive_value(self):
        """The opening bid only needs to be above zero."""
        self.auction.place_bid(self.alice, 1)

        self.assertEqual(self.auction.highest_bid, 1)
        self.assertEqual(self.auction.highest_bidder, self.alice)
        self.assertEqual(self.auction.contract_balance(), 1)
        self.assertEqual(self.chain.balance_of(self.alice), 10 * ETH - 1)
        self.assertEqual(self.chain.events, (NewBid(bidder=self.alice, amount=1),))
        print("\n✓ Opening bid of 1 wei accepted")

    def test_zero_bid_rejected(self):
        with self.assertRaises(ZeroBid):
            self.auction.place_bid(self.alice, 0)
        self.assertEqual(self.chain.events, ())

    def test_minimum_increment_boundary(self):
        """A bid one wei below the 5% threshold fails; the threshold passes."""
        self.auction.place_bid(self.alice, ETH)
        required = ETH + ETH * 5 // 100

        with self.assertRaises(BidTooLow):
            self.auction.place_bid(self.bob, required - 1)

        self.auction.place_bid(self.bob, required)
        self.assertEqual(self.auction.highest_bid, required)
        self.assertEqual(self.auction.min_next_bid(), required + required * 5 // 100)
        print(f"\n✓ Minimum raise over 1 ETH is {required} wei")

    def test_minimum_increment_floors(self):
        """The 5% increment is rounded down."""
        self.assertEqual(minimum_bid(0), 0)
        self.assertEqual(minimum_bid(19), 19)
        self.assertEqual(minimum_bid(20), 21)
        self.assertEqual(minimum_bid(39), 40)

        self.auction.place_bid(self.alice, 19)
        self.auction.place_bid(self.bob, 19)
        self.assertEqual(self.auction.highest_bidder, self.bob)

    def test_failed_bid_leaves_no_trace(self):
        """A rejected bid returns the attached value and records nothing."""
        self.auction.place_bid(self.alice, ETH)
        before = self.chain.balance_of(self.bob)

        with self.assertRaises(BidTooLow):
            self.auction.place_bid(self.bob, eth_to_wei("1.04"))

        self.assertEqual(self.chain.balance_of(self.bob), before)
        self.assertIsNone(self.auction.get_bid(self.bob))
        self.assertEqual(self.auction.highest_bidder, self.alice)
        self.assertEqual(len(self.chain.events_of(NewBid)), 1)

    def test_bid_exceeding_wallet_fails(self):
        poor = self.chain.new_address("poor")
        self.chain.fund(poor, 5)

        with self.assertRaises(TransferFailure):
            self.auction.place_bid(poor, 6)
        self.assertEqual(self.chain.balance_of(poor), 5)
        self.assertEqual(self.auction.highest_bid, 0)

    def test_bid_after_deadline_rejected(self):
        self.chain.clock.set(self.auction.end_time + 1)

        with self.assertRaises(AuctionClosed):
            self.auction.place_bid(self.alice, ETH)
        self.assertEqual(self.auction.phase(), AuctionPhase.CLOSABLE)

    def test_bid_exactly_at_deadline_accepted(self):
        self.chain.clock.set(self.auction.end_time)
        self.auction.place_bid(self.alice, ETH)
        self.assertEqual(self.auction.highest_bidder, self.alice)

    def test_bid_after_end_auction_rejected(self):
        self.auction.place_bid(self.alice, ETH)
        self.chain.clock.set(self.auction.end_time)
        self.auction.end_auction(self.owner)

        with self.assertRaises(AuctionClosed):
            self.auction.place_bid(self.bob, 2 * ETH)

    def test_explicit_now_overrides_clock(self):
        self.auction.place_bid(self.alice, ETH, now=GENESIS + 100)
        self.assertEqual(self.auction.get_bid(self.alice).last_update_time, GENESIS + 100)

    def test_get_bids_roster_and_balances(self):
        self.auction.place_bid(self.alice, ETH)
        self.auction.place_bid(self.bob, 2 * ETH)
        self.auction.place_bid(self.alice, 3 * ETH)

        addresses, amounts = self.auction.get_bids()
        self.assertEqual(addresses, [self.alice, self.bob])
        self.assertEqual(amounts, [4 * ETH, 2 * ETH])
        print(f"\n✓ get_bids: {list(zip(addresses, amounts))}")


class TestHighBidTracking(AuctionTestCase):

    def test_highest_bid_is_latest_accepted_value(self):
        """The leader is always whoever cleared the minimum most recently."""
        bids = [(self.alice, ETH), (self.bob, eth_to_wei("1.05")), (self.carol, eth_to_wei("1.2")),
                (self.alice, eth_to_wei("1.26"))]
        for bidder, value in bids:
            self.auction.place_bid(bidder, value)
            self.assertEqual(self.auction.highest_bid, value)
            self.assertEqual(self.auction.highest_bidder, bidder)

    def test_cumulative_balance_is_not_the_comparison_baseline(self):
        """
        Documented quirk: the minimum is computed from the last bid's raw value,
        not from the leader's cumulative balance.
        """
        self.auction.place_bid(self.alice, ETH)
        self.auction.place_bid(self.alice, eth_to_wei("1.05"))

        # Alice holds 2.05 ETH in the ledger but the baseline is 1.05 ETH
        self.assertEqual(self.auction.get_bid(self.alice).amount, eth_to_wei("2.05"))
        self.assertEqual(self.auction.highest_bid, eth_to_wei("1.05"))

        # Bob takes the lead with less than Alice has deposited
        self.auction.place_bid(self.bob, eth_to_wei("1.1025"))
        self.assertEqual(self.auction.highest_bidder, self.bob)
        print("\n✓ 1.1025 ETH outbids a bidder holding 2.05 ETH (latest-increment baseline)")


class TestAntiSnipe(AuctionTestCase):

    def test_bid_outside_window_keeps_deadline(self):
        self.set_time_before_end(601)
        self.auction.place_bid(self.alice, ETH)
        self.assertEqual(self.auction.end_time, GENESIS + 3600)

    def test_bid_at_window_edge_resets_deadline(self):
        self.set_time_before_end(600)
        now = self.chain.now()
        self.auction.place_bid(self.alice, ETH)
        self.assertEqual(self.auction.end_time, now + 600)

    def test_bid_five_minutes_before_end(self):
        """Deadline becomes now + 10 min, a net 5 minute extension."""
        original_end = self.auction.end_time
        self.set_time_before_end(300)
        now = self.chain.now()

        self.auction.place_bid(self.alice, ETH)

        self.assertEqual(self.auction.end_time, now + 600)
        self.assertEqual(self.auction.end_time - original_end, 300)
        self.assertNotEqual(self.auction.end_time, original_end + 600)
        print(f"\n✓ Deadline moved from {original_end} to {self.auction.end_time}")

    def test_repeated_late_bids_reset_rather_than_accumulate(self):
        self.set_time_before_end(300)
        self.auction.place_bid(self.alice, ETH)
        extended_end = self.auction.end_time

        self.chain.clock.advance(30)
        now = self.chain.now()
        self.auction.place_bid(self.bob, 2 * ETH)

        self.assertEqual(self.auction.end_time, now + 600)
        self.assertEqual(self.auction.end_time, extended_end + 30)

    def test_failed_late_bid_does_not_extend(self):
        self.auction.place_bid(self.alice, ETH)
        self.set_time_before_end(60)
        deadline = self.auction.end_time

        with self.assertRaises(BidTooLow):
            self.auction.place_bid(self.bob, ETH)
        self.assertEqual(self.auction.end_time, deadline)

    def test_time_left(self):
        self.set_time_before_end(90)
        self.assertEqual(self.auction.get_time_left(), 90)
        self.chain.clock.set(self.auction.end_time + 1000)
        self.assertEqual(self.auction.get_time_left(), 0)


class TestDirectPayments(AuctionTestCase):

    def test_plain_transfer_to_contract_rejected(self):
        with self.assertRaises(DirectPaymentRejected) as ctx:
            self.chain.transfer(self.alice, self.auction.address, ETH)

        self.assertEqual(ctx.exception.reason, "Direct payments not accepted; use place_bid")
        self.assertEqual(self.chain.balance_of(self.alice), 10 * ETH)
        self.assertEqual(self.auction.contract_balance(), 0)


@pytest.mark.parametrize("highest,expected", [
    (1, 1),
    (100, 105),
    (ETH, ETH + ETH // 20),
    (eth_to_wei("1.05"), eth_to_wei("1.1025")),
])
def test_minimum_bid_table(highest, expected):
    assert minimum_bid(highest) == expected


if __name__ == "__main__":
    unittest.main()
