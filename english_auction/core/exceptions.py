"""
Error taxonomy for the auction contract.

Every failure is fail-fast and aborts the whole operation. Errors are grouped
by what went wrong:

- PreconditionViolation: wrong caller or wrong lifecycle state
- ValueViolation: a rejected amount, address or duration
- StateViolation: the caller's own position forbids the operation
- TransferFailure: value movement rejected by the recipient or the chain
"""

from .constants import DIRECT_PAYMENT_MESSAGE


class AuctionError(Exception):
    """Base class for all auction failures. ``reason`` is the revert message."""

    reason = "Auction operation failed"

    def __init__(self, reason: str = None):
        if reason is not None:
            self.reason = reason
        super().__init__(self.reason)


class PreconditionViolation(AuctionError):
    reason = "Precondition not met"


class ValueViolation(AuctionError):
    reason = "Invalid value"


class StateViolation(AuctionError):
    reason = "Operation not allowed in current state"


class TransferFailure(AuctionError):
    reason = "Transfer failed"


# Preconditions

class NotOwner(PreconditionViolation):
    reason = "Only owner can call this function"


class AuctionClosed(PreconditionViolation):
    reason = "Auction already ended"


class NotYetEndable(PreconditionViolation):
    reason = "Auction not yet ended"


class AlreadyEnded(PreconditionViolation):
    reason = "Auction end already called"


class NotEnded(PreconditionViolation):
    reason = "Auction not ended yet"


# Values

class ZeroBid(ValueViolation):
    reason = "Bid must be greater than 0"


class BidTooLow(ValueViolation):
    reason = "Bid must be at least 5% higher than current highest bid"


class ZeroAmount(ValueViolation):
    reason = "Amount must be greater than 0"


class InsufficientFunds(ValueViolation):
    reason = "Insufficient funds"


class InvalidAmount(ValueViolation):
    reason = "Invalid amount"


class InvalidRecipient(ValueViolation):
    reason = "Invalid recipient address"


class InvalidAddress(ValueViolation):
    reason = "Not a valid address"


class InvalidDuration(ValueViolation):
    reason = "Duration must be greater than 0"


# Caller position

class WinnerNotRefundable(StateViolation):
    reason = "Winner cannot get refund"


class NothingToRefund(StateViolation):
    reason = "No funds to refund"


class LeaderLocked(StateViolation):
    reason = "Highest bidder cannot withdraw during auction"


class DirectPaymentRejected(StateViolation):
    reason = DIRECT_PAYMENT_MESSAGE


ERRORS_BY_NAME = {
    cls.__name__: cls
    for cls in (
        AuctionError, PreconditionViolation, ValueViolation, StateViolation, TransferFailure,
        NotOwner, AuctionClosed, NotYetEndable, AlreadyEnded, NotEnded,
        ZeroBid, BidTooLow, ZeroAmount, InsufficientFunds, InvalidAmount,
        InvalidRecipient, InvalidAddress, InvalidDuration,
        WinnerNotRefundable, NothingToRefund, LeaderLocked, DirectPaymentRejected,
    )
}
