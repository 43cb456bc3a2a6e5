"""Auction contract state machine: bid ledger, engine, events and errors."""

from .bid_ledger import Bid, BidLedger
from .engine import AuctionEngine, AuctionPhase, AuctionState, minimum_bid, settlement_split
from .events import (
    AuctionEnded,
    AuctionEvent,
    EmergencyWithdrawal,
    NewBid,
    PartialWithdrawal,
    RefundIssued
)
from . import exceptions

__all__ = [
    "Bid",
    "BidLedger",
    "AuctionEngine",
    "AuctionPhase",
    "AuctionState",
    "minimum_bid",
    "settlement_split",
    "AuctionEvent",
    "NewBid",
    "AuctionEnded",
    "RefundIssued",
    "PartialWithdrawal",
    "EmergencyWithdrawal",
    "exceptions",
]
