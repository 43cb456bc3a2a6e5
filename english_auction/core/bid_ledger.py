"""Per-bidder balance bookkeeping for a single auction."""

import copy
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from .exceptions import InsufficientFunds, NothingToRefund

logger = logging.getLogger(__name__)


@dataclass
class Bid:
    """Value held on behalf of one bidder."""
    amount: int = 0
    last_update_time: int = 0
    is_active: bool = False


class BidLedger:
    """
    Running balances keyed by bidder address plus an insertion-ordered roster.

    The ledger does no validation of its own beyond the balance checks in
    ``withdraw`` and ``refund``; the engine validates value and timing before
    recording anything.
    """

    def __init__(self):
        self._bids: Dict[str, Bid] = {}
        self._roster: List[str] = []

    def __contains__(self, address: str) -> bool:
        return address in self._bids

    def __len__(self) -> int:
        return len(self._roster)

    @property
    def bidders(self) -> Tuple[str, ...]:
        return tuple(self._roster)

    def get(self, address: str) -> Optional[Bid]:
        """Return a copy of the bid record for ``address``, or None."""
        bid = self._bids.get(address)
        return copy.copy(bid) if bid is not None else None

    def balance_of(self, address: str) -> int:
        bid = self._bids.get(address)
        return bid.amount if bid is not None else 0

    def record_bid(self, address: str, value: int, now: int):
        """
        Add ``value`` to the bidder's balance.

        A first-time bidder is appended to the roster. A bidder that was
        refunded earlier is reactivated; the roster is left unchanged.
        """
        bid = self._bids.get(address)
        if bid is None:
            bid = Bid()
            self._bids[address] = bid
            self._roster.append(address)
            logger.debug(f"New bidder {address} (roster size {len(self._roster)})")

        bid.amount += value
        bid.last_update_time = now
        bid.is_active = True

    def withdraw(self, address: str, amount: int):
        """Decrease the bidder's balance. The active flag is untouched."""
        balance = self.balance_of(address)
        if amount > balance:
            raise InsufficientFunds(f"Insufficient funds: requested {amount}, balance {balance}")
        if amount:
            self._bids[address].amount = balance - amount

    def refund(self, address: str) -> int:
        """
        Clear the bidder's balance and mark them inactive.

        Returns:
            The amount that was cleared
        """
        amount = self.balance_of(address)
        if amount == 0:
            raise NothingToRefund()

        bid = self._bids[address]
        bid.amount = 0
        bid.is_active = False
        return amount

    def snapshot(self) -> Iterator[Tuple[str, int]]:
        """Yield ``(address, amount)`` pairs in roster order."""
        for address in self._roster:
            yield address, self._bids[address].amount

    def copy(self) -> "BidLedger":
        """Independent copy, used to roll back a failed transaction."""
        clone = BidLedger()
        clone._bids = {address: copy.copy(bid) for address, bid in self._bids.items()}
        clone._roster = list(self._roster)
        return clone

    def restore(self, other: "BidLedger"):
        """Overwrite this ledger's contents with a copy of ``other``."""
        self._bids = {address: copy.copy(bid) for address, bid in other._bids.items()}
        self._roster = list(other._roster)
