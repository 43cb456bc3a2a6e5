"""
In-process host runtime for the auction contract.

The Chain stands in for the ledger the contract would normally run on. It
provides:
- Native-value accounts with balances
- An injectable clock
- Value transfer with success/failure signalling
- Per-operation atomic transactions with full rollback
- An append-only event log
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple, Type

from ..core.events import AuctionEvent
from ..core.exceptions import TransferFailure
from .accounts import create_account_address, derive_address, normalize_address

logger = logging.getLogger(__name__)

ReceiveHook = Callable[[str, int], None]


class ManualClock:
    """Clock that only moves when told to. Time never goes backwards."""

    def __init__(self, start: Optional[int] = None):
        self._now = int(time.time()) if start is None else int(start)

    def __call__(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += int(seconds)
        return self._now

    def set(self, timestamp: int) -> int:
        if timestamp < self._now:
            raise ValueError(f"Clock cannot move backwards ({timestamp} < {self._now})")
        self._now = int(timestamp)
        return self._now


class SystemClock:
    """Wall clock, whole seconds."""

    def __call__(self) -> int:
        return int(time.time())


@dataclass(frozen=True)
class LogEntry:
    """One committed event together with the contract that emitted it."""
    emitter: str
    event: AuctionEvent
    timestamp: int


class Chain:
    """Serialized, single-threaded host for one or more contracts."""

    def __init__(self, clock: Optional[Callable[[], int]] = None, genesis_time: Optional[int] = None):
        self.clock = clock or ManualClock(genesis_time)
        self._balances: Dict[str, int] = {}
        self._logs: List[LogEntry] = []
        self._hooks: Dict[str, ReceiveHook] = {}
        self._rejecting: Set[str] = set()
        self._nonce = 0
        self._depth = 0

    @classmethod
    def from_config(cls, chain_config=None) -> "Chain":
        """Create a chain with a manual clock starting at the configured genesis time."""
        if chain_config is None:
            from ..config import config
            chain_config = config.chain
        return cls(genesis_time=chain_config.genesis_time)

    # Time

    def now(self) -> int:
        return self.clock()

    # Accounts

    def new_address(self, label: str = "account") -> str:
        """Deterministic fresh address, unique per chain."""
        self._nonce += 1
        return derive_address(label, self._nonce)

    def create_account(self, balance: int = 0) -> str:
        """Address of a freshly generated keypair, optionally funded."""
        address = create_account_address()
        if balance:
            self.fund(address, balance)
        return address

    def fund(self, address: str, amount: int):
        """Mint ``amount`` wei into ``address``."""
        if amount < 0:
            raise ValueError("Cannot fund a negative amount")
        address = normalize_address(address)
        self._balances[address] = self._balances.get(address, 0) + amount
        logger.debug(f"Funded {address} with {amount} wei")

    def balance_of(self, address: str) -> int:
        return self._balances.get(normalize_address(address), 0)

    def total_balance(self) -> int:
        return sum(self._balances.values())

    def reject_payments(self, address: str, reject: bool = True):
        """Make every transfer to ``address`` fail (or succeed again)."""
        address = normalize_address(address)
        if reject:
            self._rejecting.add(address)
        else:
            self._rejecting.discard(address)

    def on_receive(self, address: str, hook: Optional[ReceiveHook]):
        """Register code that runs when ``address`` receives a transfer."""
        address = normalize_address(address)
        if hook is None:
            self._hooks.pop(address, None)
        else:
            self._hooks[address] = hook

    # Value movement

    def attach_value(self, sender: str, recipient: str, amount: int):
        """Move value attached to a contract call. Recipient code is not run."""
        with self.transaction():
            self._move(normalize_address(sender), normalize_address(recipient), amount)

    def transfer(self, sender: str, recipient: str, amount: int):
        """
        Send ``amount`` wei from ``sender`` to ``recipient``.

        The recipient's receive hook runs after the balances move; if it raises,
        the transfer is undone and the error propagates to the caller.

        Raises:
            TransferFailure: recipient rejects payments or sender cannot cover amount
        """
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)

        with self.transaction():
            if recipient in self._rejecting:
                raise TransferFailure(f"Transfer failed: {recipient} rejected payment")
            self._move(sender, recipient, amount)

            hook = self._hooks.get(recipient)
            if hook is not None:
                hook(sender, amount)

    def _move(self, sender: str, recipient: str, amount: int):
        if not isinstance(amount, int) or amount < 0:
            raise TransferFailure(f"Transfer failed: invalid amount {amount!r}")

        available = self._balances.get(sender, 0)
        if available < amount:
            raise TransferFailure(
                f"Transfer failed: {sender} holds {available} wei, needs {amount}"
            )

        self._balances[sender] = available - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount

    # Events

    def emit(self, emitter: str, event: AuctionEvent):
        self._logs.append(LogEntry(emitter=emitter, event=event, timestamp=self.now()))

    @property
    def logs(self) -> Tuple[LogEntry, ...]:
        return tuple(self._logs)

    @property
    def events(self) -> Tuple[AuctionEvent, ...]:
        return tuple(entry.event for entry in self._logs)

    def events_of(self, event_type: Type[AuctionEvent]) -> List[Any]:
        return [entry.event for entry in self._logs if isinstance(entry.event, event_type)]

    # Atomicity

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def transaction(self, *participants) -> Iterator["Chain"]:
        """
        Run a block atomically.

        Balances, the event log and the state of every participant (anything
        with ``checkpoint()`` / ``rollback(checkpoint)``) are restored if the
        block raises. Transactions nest: an inner failure undoes only the
        inner block.
        """
        balances = dict(self._balances)
        log_length = len(self._logs)
        checkpoints = [(participant, participant.checkpoint()) for participant in participants]

        self._depth += 1
        try:
            yield self
        except Exception as e:
            self._balances = balances
            del self._logs[log_length:]
            for participant, checkpoint in reversed(checkpoints):
                participant.rollback(checkpoint)
            logger.debug(f"Rolled back transaction at depth {self._depth}: {e}")
            raise
        finally:
            self._depth -= 1
