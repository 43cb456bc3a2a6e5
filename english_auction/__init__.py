"""
English Auction - single-asset auction contract with an in-process host chain.

Structure:
- core/: Auction state machine (bid ledger, engine, events, errors)
- infrastructure/: Host chain runtime, address/unit helpers, status snapshots
- simulation/: YAML scenario runner and bundled scenarios
- config.py: Shared configuration
"""

__version__ = "0.1.0"

from .config import config
from .core import (
    AuctionEngine,
    AuctionPhase,
    Bid,
    BidLedger,
    AuctionEvent,
    NewBid,
    AuctionEnded,
    RefundIssued,
    PartialWithdrawal,
    EmergencyWithdrawal,
    exceptions
)
from .infrastructure import (
    AuctionInfo,
    Chain,
    ManualClock,
    SystemClock,
    ZERO_ADDRESS,
    eth_to_wei,
    wei_to_eth
)

__all__ = [
    "config",
    "AuctionEngine",
    "AuctionPhase",
    "Bid",
    "BidLedger",
    "AuctionEvent",
    "NewBid",
    "AuctionEnded",
    "RefundIssued",
    "PartialWithdrawal",
    "EmergencyWithdrawal",
    "exceptions",
    "AuctionInfo",
    "Chain",
    "ManualClock",
    "SystemClock",
    "ZERO_ADDRESS",
    "eth_to_wei",
    "wei_to_eth",
    "__version__"
]
