"""Host runtime and shared helpers for the auction contract."""

from .accounts import (
    ZERO_ADDRESS,
    create_account_address,
    derive_address,
    eth_to_wei,
    normalize_address,
    wei_to_eth
)
from .auction_data import AuctionInfo
from .chain import Chain, LogEntry, ManualClock, SystemClock

__all__ = [
    "ZERO_ADDRESS",
    "create_account_address",
    "derive_address",
    "eth_to_wei",
    "normalize_address",
    "wei_to_eth",
    "AuctionInfo",
    "Chain",
    "LogEntry",
    "ManualClock",
    "SystemClock",
]
