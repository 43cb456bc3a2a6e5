"""
AuctionEngine - single-asset English auction contract.

Lifecycle: OPEN (now <= end_time) -> CLOSABLE (now > end_time) -> CLOSED
(owner called end_auction). A bid landing inside the closing window resets
the deadline to ``now + EXTENSION_WINDOW``.

Every state-changing operation runs inside a chain transaction, so a failure
at any step (including an outbound transfer) leaves no trace. Outbound
transfers always happen after the state they depend on has been updated.
"""

import functools
import logging
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Callable, List, Optional, Tuple

from ..infrastructure.accounts import ZERO_ADDRESS, normalize_address
from ..infrastructure.auction_data import AuctionInfo
from .bid_ledger import Bid, BidLedger
from .constants import (
    EXTENSION_WINDOW,
    FEE_PERCENT,
    MIN_INCREMENT_PERCENT,
    SECONDS_PER_MINUTE,
)
from .events import (
    AuctionEnded,
    EmergencyWithdrawal,
    NewBid,
    PartialWithdrawal,
    RefundIssued,
)
from .exceptions import (
    AlreadyEnded,
    AuctionClosed,
    BidTooLow,
    DirectPaymentRejected,
    InsufficientFunds,
    InvalidAmount,
    InvalidDuration,
    InvalidRecipient,
    LeaderLocked,
    NotEnded,
    NothingToRefund,
    NotOwner,
    NotYetEndable,
    WinnerNotRefundable,
    ZeroAmount,
    ZeroBid,
)

logger = logging.getLogger(__name__)

TransferPort = Callable[[str, int], None]


class AuctionPhase(str, Enum):
    OPEN = "open"
    CLOSABLE = "closable"
    CLOSED = "closed"


@dataclass
class AuctionState:
    owner: str
    highest_bidder: str
    highest_bid: int
    end_time: int
    ended: bool = False


def transactional(method):
    """Run an engine operation atomically on the engine's chain."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.chain.transaction(self):
            return method(self, *args, **kwargs)
    return wrapper


def minimum_bid(highest_bid: int) -> int:
    """Smallest acceptable next bid. Any positive bid opens the auction."""
    if highest_bid == 0:
        return 0
    return highest_bid + (highest_bid * MIN_INCREMENT_PERCENT) // 100


def settlement_split(highest_bid: int) -> Tuple[int, int]:
    """Return ``(fee, payout)`` for a winning bid."""
    fee = (highest_bid * FEE_PERCENT) // 100
    return fee, highest_bid - fee


class AuctionEngine:
    """
    English auction with anti-snipe extension, partial withdrawal and a
    fee-bearing settlement.

    Args:
        chain: Host runtime providing time, value movement, events and atomicity
        owner: Address allowed to end the auction and run emergency withdrawals
        duration_minutes: Positive auction length in minutes
        transfer: Outbound transfer port ``(recipient, amount)``; defaults to a
            chain transfer from the contract address
        address: Contract address; a fresh one is derived from the chain if omitted
    """

    def __init__(
        self,
        chain,
        owner: str,
        duration_minutes: int,
        transfer: Optional[TransferPort] = None,
        address: Optional[str] = None
    ):
        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
            raise InvalidDuration(f"Duration must be greater than 0, got {duration_minutes!r}")

        self.chain = chain
        self.address = normalize_address(address) if address else chain.new_address("auction")
        self._transfer = transfer or functools.partial(chain.transfer, self.address)
        self._ledger = BidLedger()
        self._state = AuctionState(
            owner=normalize_address(owner),
            highest_bidder=ZERO_ADDRESS,
            highest_bid=0,
            end_time=chain.now() + duration_minutes * SECONDS_PER_MINUTE,
        )

        # Plain transfers into the contract go through receive()
        chain.on_receive(self.address, self.receive)

        logger.info(
            f"Auction {self.address} created by {self._state.owner}, "
            f"ends at {self._state.end_time} ({duration_minutes} min)"
        )

    # Read-only state

    @property
    def owner(self) -> str:
        return self._state.owner

    @property
    def highest_bidder(self) -> str:
        return self._state.highest_bidder

    @property
    def highest_bid(self) -> int:
        return self._state.highest_bid

    @property
    def end_time(self) -> int:
        return self._state.end_time

    @property
    def ended(self) -> bool:
        return self._state.ended

    @property
    def ledger(self) -> BidLedger:
        return self._ledger

    def _now(self, now: Optional[int]) -> int:
        return self.chain.now() if now is None else now

    def phase(self, now: Optional[int] = None) -> AuctionPhase:
        if self._state.ended:
            return AuctionPhase.CLOSED
        if self._now(now) > self._state.end_time:
            return AuctionPhase.CLOSABLE
        return AuctionPhase.OPEN

    def min_next_bid(self) -> int:
        return minimum_bid(self._state.highest_bid)

    def contract_balance(self) -> int:
        return self.chain.balance_of(self.address)

    def get_bid(self, address: str) -> Optional[Bid]:
        return self._ledger.get(normalize_address(address))

    def get_bids(self) -> Tuple[List[str], List[int]]:
        """Roster addresses and their current ledger balances, in bid order."""
        addresses: List[str] = []
        amounts: List[int] = []
        for address, amount in self._ledger.snapshot():
            addresses.append(address)
            amounts.append(amount)
        return addresses, amounts

    def get_time_left(self, now: Optional[int] = None) -> int:
        return max(0, self._state.end_time - self._now(now))

    def info(self, now: Optional[int] = None) -> AuctionInfo:
        """Status snapshot for off-chain readers."""
        now = self._now(now)
        return AuctionInfo({
            'address': self.address,
            'owner': self._state.owner,
            'highestBidder': self._state.highest_bidder,
            'highestBid': self._state.highest_bid,
            'minNextBid': self.min_next_bid(),
            'endTime': self._state.end_time,
            'timeLeft': self.get_time_left(now),
            'ended': self._state.ended,
            'phase': self.phase(now).value,
            'bidderCount': len(self._ledger),
            'contractBalance': self.contract_balance(),
        })

    # Transaction support

    def checkpoint(self) -> Tuple[AuctionState, BidLedger]:
        return replace(self._state), self._ledger.copy()

    def rollback(self, checkpoint: Tuple[AuctionState, BidLedger]):
        saved_state, saved_ledger = checkpoint
        # Restore in place: callers further up the stack hold references
        for state_field in fields(AuctionState):
            setattr(self._state, state_field.name, getattr(saved_state, state_field.name))
        self._ledger.restore(saved_ledger)

    def _emit(self, event):
        self.chain.emit(self.address, event)

    # Operations

    @transactional
    def place_bid(self, caller: str, value: int, now: Optional[int] = None):
        """
        Place a bid of ``value`` wei, attached to the call.

        The new bid must clear the current high bid by the minimum increment.
        Only the raw value of this call becomes the new high bid, even when the
        caller already holds earlier bids in the ledger.

        Raises:
            AuctionClosed: deadline passed or auction ended
            ZeroBid: value is 0
            BidTooLow: value below the minimum increment
            TransferFailure: caller cannot cover the attached value
        """
        caller = normalize_address(caller)
        now = self._now(now)
        state = self._state

        self.chain.attach_value(caller, self.address, value)

        if now > state.end_time or state.ended:
            raise AuctionClosed()
        if value == 0:
            raise ZeroBid()

        min_bid = minimum_bid(state.highest_bid)
        if value < min_bid:
            raise BidTooLow(
                f"Bid must be at least 5% higher than current highest bid "
                f"(minimum {min_bid}, got {value})"
            )

        if state.end_time - now <= EXTENSION_WINDOW:
            state.end_time = now + EXTENSION_WINDOW
            logger.info(f"Late bid by {caller}: deadline reset to {state.end_time}")

        self._ledger.record_bid(caller, value, now)
        state.highest_bid = value
        state.highest_bidder = caller

        self._emit(NewBid(bidder=caller, amount=value))
        logger.info(f"New high bid {value} wei from {caller}")

    @transactional
    def end_auction(self, caller: str, now: Optional[int] = None):
        """
        Close the auction and settle: the leader receives the high bid minus the
        fee, the owner receives the fee. Winner is paid before the owner.

        Raises:
            NotOwner, AlreadyEnded, NotYetEndable, TransferFailure
        """
        caller = normalize_address(caller)
        now = self._now(now)
        state = self._state

        if caller != state.owner:
            raise NotOwner()
        if state.ended:
            raise AlreadyEnded()
        if now < state.end_time:
            raise NotYetEndable(f"Auction not yet ended ({state.end_time - now}s left)")

        state.ended = True
        fee, payout = settlement_split(state.highest_bid)

        self._transfer(state.highest_bidder, payout)
        self._transfer(state.owner, fee)

        self._emit(AuctionEnded(winner=state.highest_bidder, amount=state.highest_bid))
        logger.info(
            f"✅ Auction {self.address} ended: winner {state.highest_bidder}, "
            f"bid {state.highest_bid}, payout {payout}, fee {fee}"
        )

    @transactional
    def get_refund(self, caller: str):
        """
        Return the caller's whole ledger balance once the auction has ended.

        Raises:
            NotEnded, WinnerNotRefundable, NothingToRefund, TransferFailure
        """
        caller = normalize_address(caller)

        if not self._state.ended:
            raise NotEnded()
        if caller == self._state.highest_bidder:
            raise WinnerNotRefundable()
        if self._ledger.balance_of(caller) == 0:
            raise NothingToRefund()

        amount = self._ledger.refund(caller)
        self._transfer(caller, amount)

        self._emit(RefundIssued(bidder=caller, amount=amount))
        logger.info(f"Refunded {amount} wei to {caller}")
        return amount

    @transactional
    def withdraw_partial(self, caller: str, amount: int):
        """
        Withdraw part of the caller's ledger balance.

        The current leader cannot withdraw while the auction has not ended.

        Raises:
            ZeroAmount, InsufficientFunds, LeaderLocked, TransferFailure
        """
        caller = normalize_address(caller)

        if amount <= 0:
            raise ZeroAmount()
        balance = self._ledger.balance_of(caller)
        if amount > balance:
            raise InsufficientFunds(f"Insufficient funds: requested {amount}, balance {balance}")
        if caller == self._state.highest_bidder and not self._state.ended:
            raise LeaderLocked()

        self._ledger.withdraw(caller, amount)
        self._transfer(caller, amount)

        self._emit(PartialWithdrawal(bidder=caller, amount=amount))
        logger.info(f"Partial withdrawal of {amount} wei by {caller}")

    @transactional
    def emergency_withdraw(self, caller: str, to: str, amount: int):
        """
        Owner override: move ``amount`` wei out of the contract to ``to``.

        The bid ledger is not touched, so this can drain funds that back
        outstanding refunds.

        Raises:
            NotOwner, InvalidRecipient, InvalidAmount, TransferFailure
        """
        caller = normalize_address(caller)

        if caller != self._state.owner:
            raise NotOwner()
        to = normalize_address(to)
        if to == ZERO_ADDRESS:
            raise InvalidRecipient()
        if amount <= 0 or amount > self.contract_balance():
            raise InvalidAmount(f"Invalid amount {amount} (contract holds {self.contract_balance()})")

        self._transfer(to, amount)

        self._emit(EmergencyWithdrawal(to=to, amount=amount))
        logger.warning(f"⚠️  Emergency withdrawal of {amount} wei to {to}")

    def receive(self, caller: str, value: int):
        """Plain value transfers to the contract are always rejected."""
        raise DirectPaymentRejected()
