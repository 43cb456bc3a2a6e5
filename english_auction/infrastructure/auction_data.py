"""Data classes for auction information."""

from typing import Any, Dict

from .accounts import wei_to_eth


class AuctionInfo:
    """Read-only snapshot of an auction contract's public state."""

    def __init__(self, auction_data: Dict[str, Any]):
        """
        Initialize from contract data.

        Args:
            auction_data: Dictionary with auction fields as the contract exposes them
        """
        self.address = auction_data.get('address', '')
        self.owner = auction_data.get('owner', '')
        self.highest_bidder = auction_data.get('highestBidder', '')
        self.highest_bid = auction_data.get('highestBid', 0)
        self.min_next_bid = auction_data.get('minNextBid', 0)
        self.end_time = auction_data.get('endTime', 0)
        self.time_left = auction_data.get('timeLeft', 0)
        self.ended = auction_data.get('ended', False)
        self.phase = auction_data.get('phase', 'open')
        self.bidder_count = auction_data.get('bidderCount', 0)
        self.contract_balance = auction_data.get('contractBalance', 0)

    def __repr__(self):
        return (
            f"AuctionInfo(address={self.address[:10]}..., phase={self.phase}, "
            f"highest_bid={self.highest_bid}, bidders={self.bidder_count})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'address': self.address,
            'owner': self.owner,
            'highest_bidder': self.highest_bidder,
            'highest_bid': self.highest_bid,
            'min_next_bid': self.min_next_bid,
            'end_time': self.end_time,
            'time_left': self.time_left,
            'ended': self.ended,
            'phase': self.phase,
            'bidder_count': self.bidder_count,
            'contract_balance': self.contract_balance
        }

    def describe(self) -> str:
        """Human readable multi-line summary, amounts in ETH."""
        return "\n".join([
            f"Auction {self.address}",
            f"  Owner:          {self.owner}",
            f"  Phase:          {self.phase} ({self.time_left}s left)",
            f"  Highest bidder: {self.highest_bidder}",
            f"  Highest bid:    {wei_to_eth(self.highest_bid)} ETH",
            f"  Next minimum:   {wei_to_eth(self.min_next_bid)} ETH",
            f"  Bidders:        {self.bidder_count}",
            f"  Held:           {wei_to_eth(self.contract_balance)} ETH",
        ])
