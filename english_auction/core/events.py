"""
Auction event records.

Events are immutable and carry exactly the fields an off-chain reader sees
in the contract log. They are appended to the chain's event log only when
the emitting operation commits.
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class AuctionEvent(BaseModel):
    """Base class for all events emitted by the auction contract."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, tagged with the event name."""
        return {"event": self.name, **self.model_dump()}


class NewBid(AuctionEvent):
    bidder: str = Field(description="Address that placed the bid")
    amount: int = Field(ge=0, description="Raw value of the accepted bid, in wei")


class AuctionEnded(AuctionEvent):
    winner: str = Field(description="Leader at settlement time")
    amount: int = Field(ge=0, description="Winning bid, in wei")


class RefundIssued(AuctionEvent):
    bidder: str
    amount: int = Field(ge=0)


class PartialWithdrawal(AuctionEvent):
    bidder: str
    amount: int = Field(ge=0)


class EmergencyWithdrawal(AuctionEvent):
    to: str
    amount: int = Field(ge=0)
